"""Shared pytest fixtures: small synthetic catalogs and a predictable RNG."""

from __future__ import annotations

import random

import pytest

from catalog.loader import Catalog
from models.catalog import ImpactTier, Instrument, MarketEvent, Sentiment


class MidpointRandom(random.Random):
    """A ``random.Random`` whose draws are pinned.

    ``random()`` returns *roll* (0.99 by default: no crash, no shock, no
    retirement) and ``uniform(a, b)`` returns the midpoint, so uniform noise
    centred on zero vanishes.
    """

    def __init__(self, roll: float = 0.99) -> None:
        super().__init__(0)
        self.roll = roll

    def random(self) -> float:
        return self.roll

    def uniform(self, a: float, b: float) -> float:
        return (a + b) / 2


def make_instrument(ticker: str, base_price: float = 100.0, sector: str = "Technology") -> Instrument:
    return Instrument(ticker=ticker, name=f"{ticker} Corp", base_price=base_price, sector=sector)


def make_event(
    event_id: str,
    sentiment: Sentiment = Sentiment.POSITIVE,
    impact: ImpactTier = ImpactTier.MEDIUM,
    tickers: tuple[str, ...] = ("AAA",),
) -> MarketEvent:
    return MarketEvent(
        id=event_id,
        title=f"Event {event_id}",
        description=f"Synthetic event {event_id}.",
        sentiment=sentiment,
        impact=impact,
        affected_tickers=tickers,
    )


@pytest.fixture()
def midpoint_rng() -> MidpointRandom:
    return MidpointRandom()


@pytest.fixture()
def hundred_catalog() -> Catalog:
    """One $100 instrument and no events: prices follow the random walk only."""
    return Catalog([make_instrument("AAA", 100.0)], [])


@pytest.fixture()
def small_catalog() -> Catalog:
    """Three instruments and a balanced pool of 40 positive / 40 negative events."""
    instruments = [
        make_instrument("AAA", 100.0, "Technology"),
        make_instrument("BBB", 50.0, "Energy"),
        make_instrument("CCC", 20.0, "Healthcare"),
    ]
    tickers = ("AAA", "BBB", "CCC")
    events = []
    for n in range(80):
        sentiment = Sentiment.POSITIVE if n % 2 == 0 else Sentiment.NEGATIVE
        impact = list(ImpactTier)[n % 4]
        events.append(make_event(str(n), sentiment, impact, (tickers[n % 3],)))
    return Catalog(instruments, events)
