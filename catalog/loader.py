"""Reference catalog loading.

The catalog is read once per process from two JSON files and handed to the
simulation by reference:

* ``instruments.json``: a JSON array of tradable instruments.
* ``events.json``: a JSON array of market-event templates.

Both default to the copies packaged under ``catalog/data``. Each file is
checked against its JSON Schema (``catalog/schemas``) before it is parsed
into pydantic models, and the two are then cross-checked (unique keys, every
affected ticker exists). Any failure raises ``CatalogError``; a simulation
cannot run without valid reference data.
"""

from __future__ import annotations

import json
import logging
from collections.abc import Iterable
from pathlib import Path
from typing import Any

from jsonschema import Draft202012Validator
from pydantic import ValidationError

from models.catalog import EventCategory, Instrument, MarketEvent

logger = logging.getLogger(__name__)

_PACKAGE_DIR = Path(__file__).resolve().parent
DATA_DIR = _PACKAGE_DIR / "data"
SCHEMA_DIR = _PACKAGE_DIR / "schemas"

DEFAULT_INSTRUMENTS_PATH = DATA_DIR / "instruments.json"
DEFAULT_EVENTS_PATH = DATA_DIR / "events.json"


class CatalogError(ValueError):
    """Reference data is missing or malformed."""


class Catalog:
    """Immutable view over the instruments and event templates of a run."""

    def __init__(
        self,
        instruments: Iterable[Instrument],
        events: Iterable[MarketEvent],
    ) -> None:
        self._instruments = tuple(instruments)
        self._events = tuple(events)
        _check_integrity(self._instruments, self._events)
        self._by_ticker = {i.ticker: i for i in self._instruments}
        self._by_event_id = {e.id: e for e in self._events}

    # ------------------------------------------------------------------
    # Queries
    # ------------------------------------------------------------------

    @property
    def instruments(self) -> tuple[Instrument, ...]:
        return self._instruments

    @property
    def events(self) -> tuple[MarketEvent, ...]:
        return self._events

    @property
    def tickers(self) -> list[str]:
        return [i.ticker for i in self._instruments]

    def instrument(self, ticker: str) -> Instrument | None:
        return self._by_ticker.get(ticker)

    def event(self, event_id: str) -> MarketEvent | None:
        return self._by_event_id.get(event_id)

    def events_for_ticker(self, ticker: str) -> list[MarketEvent]:
        """Templates that would move *ticker*, market-wide ones included."""
        return [e for e in self._events if e.affects(ticker)]

    def events_by_category(self, category: EventCategory) -> list[MarketEvent]:
        return [e for e in self._events if e.category is category]

    def __len__(self) -> int:
        return len(self._instruments)

    def __repr__(self) -> str:
        return f"Catalog({len(self._instruments)} instruments, {len(self._events)} events)"


# ------------------------------------------------------------------
# Loading from disk
# ------------------------------------------------------------------

def load_catalog(
    instruments_path: str | Path | None = None,
    events_path: str | Path | None = None,
) -> Catalog:
    """Load, validate, and return the reference catalog.

    Paths default to the packaged data files. Raises ``CatalogError`` when a
    file is missing, unreadable, fails its schema, or references unknown
    tickers.
    """
    instruments_path = Path(instruments_path or DEFAULT_INSTRUMENTS_PATH)
    events_path = Path(events_path or DEFAULT_EVENTS_PATH)

    raw_instruments = _load_validated(instruments_path, "instruments.schema.json")
    raw_events = _load_validated(events_path, "events.schema.json")

    try:
        instruments = [Instrument.model_validate(item) for item in raw_instruments]
        events = [MarketEvent.model_validate(item) for item in raw_events]
    except ValidationError as exc:
        raise CatalogError(f"Catalog records failed model validation: {exc}") from exc

    catalog = Catalog(instruments, events)
    logger.info(
        "Loaded catalog: %d instruments from '%s', %d events from '%s'.",
        len(catalog.instruments),
        instruments_path,
        len(catalog.events),
        events_path,
    )
    return catalog


# ------------------------------------------------------------------
# Internal helpers
# ------------------------------------------------------------------

def _load_validated(path: Path, schema_name: str) -> list[dict[str, Any]]:
    """Read a JSON array from *path* and validate it against *schema_name*."""
    if not path.is_file():
        raise CatalogError(f"Catalog file not found: {path}")
    try:
        instance = json.loads(path.read_text(encoding="utf-8"))
    except json.JSONDecodeError as exc:
        raise CatalogError(f"Catalog file '{path}' is not valid JSON: {exc}") from exc

    schema = json.loads((SCHEMA_DIR / schema_name).read_text(encoding="utf-8"))
    validator = Draft202012Validator(schema)
    errors = sorted(validator.iter_errors(instance), key=lambda e: list(e.path))
    if errors:
        details = "; ".join(
            f"{'.'.join(str(p) for p in e.path) or '(root)'}: {e.message}"
            for e in errors[:5]
        )
        raise CatalogError(
            f"Schema validation failed for {path.name} ({len(errors)} error(s)): {details}"
        )
    return instance


def _check_integrity(
    instruments: tuple[Instrument, ...],
    events: tuple[MarketEvent, ...],
) -> None:
    if not instruments:
        raise CatalogError("Catalog must contain at least one instrument.")

    tickers = [i.ticker for i in instruments]
    duplicate_tickers = sorted({t for t in tickers if tickers.count(t) > 1})
    if duplicate_tickers:
        raise CatalogError(f"Duplicate instrument ticker(s): {', '.join(duplicate_tickers)}.")

    event_ids = [e.id for e in events]
    duplicate_ids = sorted({i for i in event_ids if event_ids.count(i) > 1})
    if duplicate_ids:
        raise CatalogError(f"Duplicate event id(s): {', '.join(duplicate_ids)}.")

    known = set(tickers)
    for event in events:
        unknown = [t for t in event.affected_tickers if t not in known]
        if unknown:
            raise CatalogError(
                f"Event '{event.id}' references unknown ticker(s): {', '.join(unknown)}."
            )
