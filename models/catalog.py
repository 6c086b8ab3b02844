"""Reference catalog models: tradable instruments and market-event templates.

Both are immutable for the life of a run; the simulation only ever reads them.
"""

from __future__ import annotations

from enum import Enum

from pydantic import BaseModel, ConfigDict, Field


class Sentiment(str, Enum):
    """Direction an event pushes the prices it touches."""

    POSITIVE = "positive"
    NEGATIVE = "negative"
    NEUTRAL = "neutral"
    MIXED = "mixed"


class ImpactTier(str, Enum):
    """Coarse magnitude of an event's price influence."""

    LOW = "low"
    MEDIUM = "medium"
    HIGH = "high"
    EXTREME = "extreme"


class DurationClass(str, Enum):
    """Catalog hint for how long an event lasts (informational only)."""

    IMMEDIATE = "immediate"
    SHORT = "short"
    MEDIUM = "medium"
    LONG = "long"


class EventCategory(str, Enum):
    EARNINGS = "earnings"
    REGULATORY = "regulatory"
    PARTNERSHIP = "partnership"
    PRODUCT = "product"
    MACRO = "macro"
    RUMOR = "rumor"
    SECTOR = "sector"
    CRISIS = "crisis"
    MERGER = "merger"
    ANALYST = "analyst"
    TECHNICAL = "technical"
    PANDEMIC = "pandemic"
    POLITICAL = "political"
    SOCIAL = "social"
    ENVIRONMENTAL = "environmental"
    GEOPOLITICAL = "geopolitical"
    OTHER = "other"


class Instrument(BaseModel):
    """A tradable equity. ``base_price`` is both the hour-0 price and the
    anchor for the absolute price bounds."""

    model_config = ConfigDict(frozen=True)

    ticker: str
    name: str
    base_price: float = Field(gt=0)
    sector: str
    industry: str = ""
    description: str = ""


class MarketEvent(BaseModel):
    """A catalog event template.

    An empty ``affected_tickers`` tuple means the event is market-wide.
    """

    model_config = ConfigDict(frozen=True)

    id: str
    title: str
    description: str
    category: EventCategory = EventCategory.OTHER
    sentiment: Sentiment
    impact: ImpactTier
    duration: DurationClass = DurationClass.SHORT
    affected_tickers: tuple[str, ...] = ()

    @property
    def is_market_wide(self) -> bool:
        return not self.affected_tickers

    def affects(self, ticker: str) -> bool:
        """True if this event moves *ticker* (listed, or market-wide)."""
        return self.is_market_wide or ticker in self.affected_tickers
