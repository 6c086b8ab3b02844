"""Per-hour news feed: real event headlines mixed with decoys.

Every hour shows ``NEWS_ITEMS_PER_HOUR`` items. Newly activated events are
wrapped as items with their tone forced to ``neutral`` so the feed never
reveals which way an event moves prices; decoys fill the rest. The feed draws
from its own generator, so building it (or swapping the headline writer)
never changes the market's random sequence.

Decoy headlines are Jinja2 templates grouped by sector, loaded from
``templates/decoy_headlines.yaml`` next to this module.
"""

from __future__ import annotations

import logging
import random
from collections.abc import Mapping, Sequence
from pathlib import Path
from typing import Protocol

import yaml
from jinja2 import Environment, StrictUndefined, Template

from models.catalog import Instrument
from models.state import ActiveEvent, NewsItem, PublicEvent

logger = logging.getLogger(__name__)

NEWS_ITEMS_PER_HOUR = 10
DECOY_NEUTRAL_PROBABILITY = 0.4
DECOY_TICKER_PROBABILITY = 0.6

NEWS_SOURCES: tuple[str, ...] = (
    "Bloomberg",
    "Reuters",
    "Wall Street Journal",
    "Financial Times",
    "CNBC",
    "MarketWatch",
    "TechCrunch",
    "Business Wire",
    "PR Newswire",
    "Yahoo Finance",
    "Seeking Alpha",
    "The Street",
)

# ---------------------------------------------------------------------------
# Jinja2 environment; templates live in templates/ next to this module
# ---------------------------------------------------------------------------

_TEMPLATE_DIR = Path(__file__).resolve().parent / "templates"
_env = Environment(undefined=StrictUndefined, autoescape=False)


def load_decoy_templates(path: Path | None = None) -> dict[str, list[Template]]:
    """Return sector -> compiled headline templates."""
    path = path or _TEMPLATE_DIR / "decoy_headlines.yaml"
    raw = yaml.safe_load(path.read_text(encoding="utf-8"))
    if not isinstance(raw, dict) or not raw:
        raise ValueError(f"Expected a non-empty sector mapping in {path}.")
    return {sector: [_env.from_string(line) for line in lines] for sector, lines in raw.items()}


class HeadlineWriter(Protocol):
    """Produces display text for a real event.

    Receives only the sentiment-free projection, so whatever it writes cannot
    leak an event's direction from the engine's own data.
    """

    def write(self, event: PublicEvent, instrument_names: Mapping[str, str]) -> str:
        ...


class TitleHeadlineWriter:
    """Default writer: the catalog title, unchanged."""

    def write(self, event: PublicEvent, instrument_names: Mapping[str, str]) -> str:
        return event.title


class NewsFeed:
    """Builds the displayed news items for each simulated hour."""

    def __init__(
        self,
        instruments: Sequence[Instrument],
        rng: random.Random,
        writer: HeadlineWriter | None = None,
        decoy_templates: dict[str, list[Template]] | None = None,
    ) -> None:
        self._instruments = list(instruments)
        self._names = {i.ticker: i.name for i in self._instruments}
        self._rng = rng
        self._writer = writer or TitleHeadlineWriter()
        self._templates = decoy_templates or load_decoy_templates()

    def build(self, hour: int, new_events: Sequence[ActiveEvent]) -> list[NewsItem]:
        """Return this hour's shuffled feed: real items plus decoys to fill."""
        items = [self._real_item(hour, active.public_view()) for active in new_events]
        for n in range(max(0, NEWS_ITEMS_PER_HOUR - len(items))):
            items.append(self._decoy_item(hour, n))
        self._rng.shuffle(items)
        return items

    # ------------------------------------------------------------------
    # Internal helpers
    # ------------------------------------------------------------------

    def _real_item(self, hour: int, event: PublicEvent) -> NewsItem:
        return NewsItem(
            id=f"real-{event.id}",
            headline=self._writer.write(event, self._names),
            source=self._rng.choice(NEWS_SOURCES),
            time=f"{hour}:00",
            hour=hour,
            tickers=list(event.affected_tickers),
            tone="neutral",
            is_real=True,
        )

    def _decoy_item(self, hour: int, n: int) -> NewsItem:
        instrument = self._rng.choice(self._instruments)
        templates = self._templates.get(instrument.sector)
        if not templates:
            templates = self._templates[self._rng.choice(sorted(self._templates))]
        headline = self._rng.choice(templates).render(ticker=instrument.ticker, name=instrument.name)

        if self._rng.random() < DECOY_NEUTRAL_PROBABILITY:
            tone = "neutral"
        else:
            tone = "positive" if self._rng.random() < 0.5 else "negative"

        return NewsItem(
            id=f"decoy-{hour}-{n}",
            headline=headline,
            source=self._rng.choice(NEWS_SOURCES),
            time=f"{hour}:00",
            hour=hour,
            tickers=[instrument.ticker] if self._rng.random() < DECOY_TICKER_PROBABILITY else [],
            tone=tone,
            is_real=False,
        )
