"""Hourly price computation.

Each instrument's next price combines, in order:

1. an optional market-wide shock (drawn once per hour for all instruments);
2. the summed impact of at most two active events touching the instrument,
   each decayed by how long it has been active, clamped to +/-6%;
3. a random walk: uniform noise, a small negative drift, and an occasional
   crash term.

The combined move is capped at +/-8% of the start-of-hour price, and the
result is clamped to ``[max(0.01, 0.2 * base), 3 * base]``.
"""

from __future__ import annotations

import logging
import random
from collections.abc import Sequence

from models.catalog import ImpactTier, Instrument, MarketEvent, Sentiment
from models.config import Difficulty
from models.state import ActiveEvent
from simulation.difficulty import profile_for

logger = logging.getLogger(__name__)

TIER_VOLATILITY: dict[ImpactTier, float] = {
    ImpactTier.LOW: 0.01,
    ImpactTier.MEDIUM: 0.015,
    ImpactTier.HIGH: 0.02,
    ImpactTier.EXTREME: 0.03,
}

MAX_INFLUENTIAL_EVENTS = 2
DECAY_PER_HOUR = 0.15
DECAY_FLOOR = 0.3
MAX_EVENT_IMPACT = 0.06
MAX_HOURLY_CHANGE = 0.08

DRIFT = -0.0003
CRASH_PROBABILITY = 0.15
MARKET_SHOCK_PROBABILITY = 0.05
SHOCK_RANGE = (0.02, 0.05)

PRICE_FLOOR = 0.01
MIN_PRICE_FACTOR = 0.2
MAX_PRICE_FACTOR = 3.0


def decay_factor(hours_active: int) -> float:
    """Share of an event's impact still applied after *hours_active* hours.

    ``hours_active`` is 1 during the activation hour.
    """
    return max(DECAY_FLOOR, 1.0 - (hours_active - 1) * DECAY_PER_HOUR)


def price_bounds(base_price: float) -> tuple[float, float]:
    """Absolute (floor, ceiling) an instrument's price may take in a run."""
    return max(PRICE_FLOOR, MIN_PRICE_FACTOR * base_price), MAX_PRICE_FACTOR * base_price


def _clamp(value: float, low: float, high: float) -> float:
    return max(low, min(high, value))


class PriceEngine:
    """Computes next-hour prices for one run's difficulty and generator."""

    def __init__(self, difficulty: Difficulty, rng: random.Random) -> None:
        self._profile = profile_for(difficulty)
        self._rng = rng

    def market_shock(self) -> float:
        """Return this hour's market-wide shock (0.0 most hours)."""
        if self._rng.random() < MARKET_SHOCK_PROBABILITY:
            shock = -self._rng.uniform(*SHOCK_RANGE)
            logger.debug("Market-wide shock of %.2f%%.", shock * 100)
            return shock
        return 0.0

    def sentiment_sign(self, sentiment: Sentiment) -> float:
        if sentiment is Sentiment.POSITIVE:
            return 1.0
        if sentiment is Sentiment.NEGATIVE:
            return -1.0
        if sentiment is Sentiment.MIXED:
            return self._rng.uniform(-1.0, 1.0)
        return 0.0

    def event_impact(self, event: MarketEvent, hours_active: int) -> float:
        """Fractional price move one event contributes this hour."""
        return (
            TIER_VOLATILITY[event.impact]
            * self.sentiment_sign(event.sentiment)
            * self._profile.impact_multiplier
            * decay_factor(hours_active)
        )

    def next_price(
        self,
        instrument: Instrument,
        current_price: float,
        active_events: Sequence[ActiveEvent],
        hour: int,
        market_shock: float = 0.0,
    ) -> float:
        """Compute *instrument*'s price for *hour* from its start-of-hour price.

        *active_events* must be in activation order; only the first two that
        touch the instrument apply.
        """
        start = current_price
        price = start * (1.0 + market_shock)

        influential = [a for a in active_events if a.event.affects(instrument.ticker)]
        influential = influential[:MAX_INFLUENTIAL_EVENTS]
        impact = sum(
            self.event_impact(a.event, hour - a.activated_at + 1) for a in influential
        )
        price *= 1.0 + _clamp(impact, -MAX_EVENT_IMPACT, MAX_EVENT_IMPACT)

        volatility = self._profile.random_volatility
        noise = self._rng.uniform(-volatility, volatility)
        crash = 0.0
        if self._rng.random() < CRASH_PROBABILITY:
            crash = -self._rng.uniform(*SHOCK_RANGE)
        price *= 1.0 + noise + DRIFT + crash

        change = _clamp((price - start) / start, -MAX_HOURLY_CHANGE, MAX_HOURLY_CHANGE)
        low, high = price_bounds(instrument.base_price)
        new_price = _clamp(start * (1.0 + change), low, high)

        logger.debug(
            "%s hour %d: %.4f -> %.4f (events=%d, impact=%.4f, crash=%.4f)",
            instrument.ticker,
            hour,
            start,
            new_price,
            len(influential),
            impact,
            crash,
        )
        return new_price
