"""Tests for reference catalog loading and load-time validation."""

from __future__ import annotations

import json
from pathlib import Path

import pytest

from catalog.loader import DEFAULT_INSTRUMENTS_PATH, Catalog, CatalogError, load_catalog
from models.catalog import EventCategory, Sentiment
from conftest import make_event, make_instrument

# ===================================================================
# Helpers
# ===================================================================


def _write(path: Path, data) -> Path:
    path.write_text(json.dumps(data), encoding="utf-8")
    return path


@pytest.fixture()
def instruments_file(tmp_path: Path) -> Path:
    return _write(
        tmp_path / "instruments.json",
        [
            {"ticker": "AAA", "name": "Alpha", "base_price": 10.0, "sector": "Energy"},
            {"ticker": "BBB", "name": "Beta", "base_price": 20.0, "sector": "Financial"},
        ],
    )


def _event(**overrides) -> dict:
    event = {
        "id": "1",
        "title": "Alpha wins contract",
        "description": "Big one.",
        "category": "partnership",
        "sentiment": "positive",
        "impact": "high",
        "duration": "short",
        "affected_tickers": ["AAA"],
    }
    event.update(overrides)
    return event


# ===================================================================
# Packaged catalog
# ===================================================================


def test_packaged_catalog_loads():
    catalog = load_catalog()
    assert len(catalog.instruments) == 10
    assert len(catalog.events) == 280
    assert len({e.id for e in catalog.events}) == 280
    known = set(catalog.tickers)
    assert all(set(e.affected_tickers) <= known for e in catalog.events)


def test_packaged_catalog_has_both_selectable_pools():
    catalog = load_catalog()
    sentiments = {e.sentiment for e in catalog.events}
    assert Sentiment.POSITIVE in sentiments
    assert Sentiment.NEGATIVE in sentiments


def test_queries_on_packaged_catalog():
    catalog = load_catalog()
    glacier = catalog.instrument("GLCR")
    assert glacier is not None and glacier.base_price == pytest.approx(178.20)
    assert catalog.instrument("NOPE") is None
    assert catalog.event("1").title.startswith("Glacier Tech")
    assert all(e.affects("GLCR") for e in catalog.events_for_ticker("GLCR"))
    assert all(e.category is EventCategory.EARNINGS for e in catalog.events_by_category(EventCategory.EARNINGS))


def test_market_wide_events_affect_every_ticker():
    catalog = Catalog(
        [make_instrument("AAA"), make_instrument("BBB")],
        [make_event("m", tickers=()), make_event("a", tickers=("AAA",))],
    )
    assert [e.id for e in catalog.events_for_ticker("BBB")] == ["m"]
    assert [e.id for e in catalog.events_for_ticker("AAA")] == ["m", "a"]


# ===================================================================
# Load-time failures are fatal
# ===================================================================


def test_custom_files_load(tmp_path, instruments_file):
    events = _write(tmp_path / "events.json", [_event(), _event(id="2", affected_tickers=[])])
    catalog = load_catalog(instruments_file, events)
    assert catalog.tickers == ["AAA", "BBB"]
    assert catalog.event("2").is_market_wide


def test_missing_file_raises(tmp_path):
    with pytest.raises(CatalogError, match="not found"):
        load_catalog(tmp_path / "missing.json", tmp_path / "missing_events.json")


def test_invalid_json_raises(tmp_path, instruments_file):
    bad = tmp_path / "events.json"
    bad.write_text("{not json", encoding="utf-8")
    with pytest.raises(CatalogError, match="not valid JSON"):
        load_catalog(instruments_file, bad)


def test_schema_violation_raises(tmp_path, instruments_file):
    events = _write(tmp_path / "events.json", [_event(sentiment="bullish")])
    with pytest.raises(CatalogError, match="events.json"):
        load_catalog(instruments_file, events)


def test_non_positive_price_rejected(tmp_path):
    instruments = _write(
        tmp_path / "instruments.json",
        [{"ticker": "AAA", "name": "Alpha", "base_price": 0, "sector": "Energy"}],
    )
    events = _write(tmp_path / "events.json", [])
    with pytest.raises(CatalogError):
        load_catalog(instruments, events)


def test_unknown_affected_ticker_raises(tmp_path, instruments_file):
    events = _write(tmp_path / "events.json", [_event(affected_tickers=["ZZZ"])])
    with pytest.raises(CatalogError, match="unknown ticker"):
        load_catalog(instruments_file, events)


def test_duplicate_event_ids_raise(tmp_path, instruments_file):
    events = _write(tmp_path / "events.json", [_event(), _event()])
    with pytest.raises(CatalogError, match="Duplicate event"):
        load_catalog(instruments_file, events)


def test_duplicate_tickers_raise():
    with pytest.raises(CatalogError, match="Duplicate instrument"):
        Catalog([make_instrument("AAA"), make_instrument("AAA")], [])


def test_empty_instrument_list_raises():
    with pytest.raises(CatalogError, match="at least one"):
        Catalog([], [])


def test_default_path_points_at_packaged_data():
    assert DEFAULT_INSTRUMENTS_PATH.is_file()


@pytest.mark.parametrize("name", ["instruments.schema.json", "events.schema.json"])
def test_schemas_are_valid_draft_2020_12(name):
    from jsonschema import Draft202012Validator

    from catalog.loader import SCHEMA_DIR

    Draft202012Validator.check_schema(json.loads((SCHEMA_DIR / name).read_text(encoding="utf-8")))
