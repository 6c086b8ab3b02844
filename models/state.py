"""Run-state models: active events, news items, per-hour reports, and the
``SimulationState`` snapshot handed to callers."""

from __future__ import annotations

from typing import Literal

from pydantic import BaseModel, ConfigDict

from models.catalog import MarketEvent
from models.config import Difficulty
from models.portfolio import EquityPosition, OptionPosition
from models.trade import TradeRecord


class PublicEvent(BaseModel):
    """Display projection of an active event: everything but sentiment and impact."""

    model_config = ConfigDict(frozen=True)

    id: str
    title: str
    description: str
    affected_tickers: tuple[str, ...]
    activated_at: int


class ActiveEvent(BaseModel):
    """A catalog event plus the hour it was activated."""

    model_config = ConfigDict(frozen=True)

    event: MarketEvent
    activated_at: int

    @property
    def id(self) -> str:
        return self.event.id

    def public_view(self) -> PublicEvent:
        return PublicEvent(
            id=self.event.id,
            title=self.event.title,
            description=self.event.description,
            affected_tickers=self.event.affected_tickers,
            activated_at=self.activated_at,
        )


class EventLogEntry(BaseModel):
    """Permanent record of an activation: which event fired and when."""

    model_config = ConfigDict(frozen=True)

    event: MarketEvent
    hour: int


class NewsItem(BaseModel):
    """One displayed headline. Real and decoy items share this shape.

    ``tone`` is always ``neutral`` for real events; decoys carry a random tone.
    """

    id: str
    headline: str
    source: str
    time: str
    hour: int
    tickers: list[str] = []
    tone: Literal["positive", "negative", "neutral"] = "neutral"
    is_real: bool = False

    def public_view(self, position: int) -> PublicNewsItem:
        """Player-facing copy, re-keyed by its *position* in the hour's feed."""
        return PublicNewsItem(
            id=f"news-{self.hour}-{position}",
            headline=self.headline,
            source=self.source,
            time=self.time,
            hour=self.hour,
            tickers=tuple(self.tickers),
            tone=self.tone,
        )


class PublicNewsItem(BaseModel):
    """Display projection of a news item: no real/decoy flag and an opaque id."""

    model_config = ConfigDict(frozen=True)

    id: str
    headline: str
    source: str
    time: str
    hour: int
    tickers: tuple[str, ...] = ()
    tone: Literal["positive", "negative", "neutral"] = "neutral"


def public_news(items: list[NewsItem]) -> list[PublicNewsItem]:
    """Project *items* for display, numbering them within each hour."""
    seen: dict[int, int] = {}
    projected = []
    for item in items:
        position = seen.get(item.hour, 0)
        seen[item.hour] = position + 1
        projected.append(item.public_view(position))
    return projected


class PriceChange(BaseModel):
    """Per-instrument price move for one hour."""

    ticker: str
    old: float
    new: float

    @property
    def change(self) -> float:
        return self.new - self.old

    @property
    def change_pct(self) -> float:
        return (self.new - self.old) / self.old * 100 if self.old else 0.0


class HourReport(BaseModel):
    """What ``advance_hour`` returns. Empty when the run is already complete."""

    hour: int
    new_events: list[MarketEvent] = []
    price_changes: dict[str, PriceChange] = {}
    is_end_of_day: bool = False
    is_mid_day: bool = False
    news_items: list[NewsItem] = []

    @property
    def is_empty(self) -> bool:
        return not (self.new_events or self.price_changes or self.news_items)

    @property
    def public_news(self) -> list[PublicNewsItem]:
        return public_news(self.news_items)


class SimulationState(BaseModel):
    """Full run state. Callers always receive a deep copy."""

    current_hour: int
    total_hours: int
    difficulty: Difficulty
    cash: float
    starting_cash: float
    positions: dict[str, EquityPosition] = {}
    option_positions: dict[str, list[OptionPosition]] = {}
    watchlist: list[str] = []
    price_history: dict[str, list[float]] = {}
    active_events: list[ActiveEvent] = []
    completed_events: list[ActiveEvent] = []
    portfolio_history: list[float] = []
    event_log: list[EventLogEntry] = []
    news_log: list[NewsItem] = []
    trades: list[TradeRecord] = []

    @property
    def is_complete(self) -> bool:
        return self.current_hour >= self.total_hours

    @property
    def current_prices(self) -> dict[str, float]:
        return {ticker: series[-1] for ticker, series in self.price_history.items()}

    @property
    def public_news_log(self) -> list[PublicNewsItem]:
        return public_news(self.news_log)
