"""The simulation orchestrator: one hour-by-hour trading run.

Lifecycle::

    sim = TradingSimulation(total_hours=80, starting_cash=10_000, difficulty="hard")
    sim.buy("GLCR", 10)
    while not sim.is_complete():
        report = sim.advance_hour()
    analysis = analyze_trading_behavior(...)

Each ``advance_hour`` call runs, in order: event selection (mid-day and end
of day only), pricing for every instrument, probabilistic retirement of
active events, option expiry, the news feed, and the portfolio-value record.

The simulation is single-threaded and performs no locking; an embedding
server must serialise access to a given run. Everything returned to callers
is a copy.
"""

from __future__ import annotations

import logging
import random

from catalog.loader import Catalog, load_catalog
from models.catalog import Sentiment
from models.config import Difficulty, SimulationConfig
from models.portfolio import OptionType
from models.state import ActiveEvent, EventLogEntry, HourReport, NewsItem, PriceChange, SimulationState
from models.trade import FailureKind, TradeResult
from simulation.event_selector import HOURS_PER_DAY, EventSelector, is_end_of_day, is_mid_day
from simulation.ledger import PositionLedger
from simulation.news import HeadlineWriter, NewsFeed
from simulation.price_engine import PriceEngine

logger = logging.getLogger(__name__)

# Chance per hour that an active event retires. Negative news lingers longer.
RETIREMENT_PROBABILITY: dict[Sentiment, float] = {
    Sentiment.NEGATIVE: 0.2,
    Sentiment.POSITIVE: 0.4,
    Sentiment.NEUTRAL: 0.3,
    Sentiment.MIXED: 0.3,
}


class TradingSimulation:
    """Owns all state for one run and is the only thing that mutates it."""

    def __init__(
        self,
        total_hours: int = 80,
        starting_cash: float = 10_000.0,
        difficulty: Difficulty | str = Difficulty.MEDIUM,
        catalog: Catalog | None = None,
        seed: int | None = None,
        headline_writer: HeadlineWriter | None = None,
    ) -> None:
        if total_hours <= 0:
            raise ValueError(f"total_hours must be positive, got {total_hours}.")
        if total_hours % HOURS_PER_DAY:
            logger.warning(
                "total_hours=%d is not a multiple of %d; the last trading day is partial.",
                total_hours,
                HOURS_PER_DAY,
            )

        self._catalog = catalog if catalog is not None else load_catalog()
        self._difficulty = Difficulty(difficulty)
        self._total_hours = total_hours
        self._hour = 0
        self._seed = seed

        # Separate generators so the news feed never shifts the market sequence.
        seeder = random.Random(seed)
        market_rng = random.Random(seeder.getrandbits(64))
        news_rng = random.Random(seeder.getrandbits(64))

        self._selector = EventSelector(self._catalog.events, self._difficulty, market_rng)
        self._price_engine = PriceEngine(self._difficulty, market_rng)
        self._retire_rng = market_rng
        self._news = NewsFeed(self._catalog.instruments, news_rng, headline_writer)
        self._ledger = PositionLedger(starting_cash, total_hours)

        self._price_history: dict[str, list[float]] = {
            i.ticker: [i.base_price] for i in self._catalog.instruments
        }
        self._active: list[ActiveEvent] = []
        self._completed: list[ActiveEvent] = []
        self._event_log: list[EventLogEntry] = []
        self._news_log: list[NewsItem] = []
        self._portfolio_history: list[float] = [starting_cash]

        logger.info(
            "New simulation: %d hours, $%.2f cash, difficulty=%s, %d instruments, seed=%s.",
            total_hours,
            starting_cash,
            self._difficulty.value,
            len(self._catalog.instruments),
            seed,
        )

    @classmethod
    def from_config(
        cls,
        config: SimulationConfig,
        catalog: Catalog | None = None,
        run_index: int = 0,
        headline_writer: HeadlineWriter | None = None,
    ) -> TradingSimulation:
        """Build a run from a loaded config. Seeded runs get ``seed + run_index``."""
        seed = config.market.seed
        if seed is not None:
            seed += run_index
        if catalog is None:
            catalog = load_catalog(config.catalog.instruments_path, config.catalog.events_path)
        return cls(
            total_hours=config.market.total_hours,
            starting_cash=config.ledger.starting_cash,
            difficulty=config.market.difficulty,
            catalog=catalog,
            seed=seed,
            headline_writer=headline_writer,
        )

    # ------------------------------------------------------------------
    # Queries
    # ------------------------------------------------------------------

    @property
    def catalog(self) -> Catalog:
        return self._catalog

    @property
    def current_hour(self) -> int:
        return self._hour

    @property
    def total_hours(self) -> int:
        return self._total_hours

    @property
    def difficulty(self) -> Difficulty:
        return self._difficulty

    @property
    def seed(self) -> int | None:
        return self._seed

    def is_complete(self) -> bool:
        return self._hour >= self._total_hours

    def current_price(self, ticker: str) -> float | None:
        series = self._price_history.get(ticker)
        return series[-1] if series else None

    def current_prices(self) -> dict[str, float]:
        return {ticker: series[-1] for ticker, series in self._price_history.items()}

    def get_portfolio_value(self) -> float:
        return self._ledger.portfolio_value(self.current_prices(), self._hour)

    def get_state(self) -> SimulationState:
        """Return a deep copy of the full run state."""
        portfolio = self._ledger.get_portfolio()
        state = SimulationState(
            current_hour=self._hour,
            total_hours=self._total_hours,
            difficulty=self._difficulty,
            cash=portfolio.cash,
            starting_cash=self._ledger.starting_cash,
            positions=portfolio.positions,
            option_positions=portfolio.options,
            watchlist=portfolio.watchlist,
            price_history=self._price_history,
            active_events=self._active,
            completed_events=self._completed,
            portfolio_history=self._portfolio_history,
            event_log=self._event_log,
            news_log=self._news_log,
            trades=self._ledger.get_trade_history(),
        )
        return state.model_copy(deep=True)

    # ------------------------------------------------------------------
    # Commands
    # ------------------------------------------------------------------

    def buy(self, ticker: str, shares: int) -> TradeResult:
        price = self.current_price(ticker)
        if price is None:
            return _not_found(ticker)
        return self._ledger.buy(ticker, shares, price, self._hour)

    def sell(self, ticker: str, shares: int) -> TradeResult:
        price = self.current_price(ticker)
        if price is None:
            return _not_found(ticker)
        return self._ledger.sell(ticker, shares, price, self._hour)

    def open_option(
        self,
        ticker: str,
        option_type: OptionType | str,
        contracts: int,
        strike: float,
        expiration_hours: int,
    ) -> TradeResult:
        price = self.current_price(ticker)
        if price is None:
            return _not_found(ticker)
        try:
            option_type = OptionType(option_type)
        except ValueError:
            return TradeResult(
                status="rejected",
                failure=FailureKind.INVALID_ORDER,
                message=f"Unknown option type '{option_type}'; expected 'call' or 'put'.",
            )
        return self._ledger.open_option(
            ticker, option_type, contracts, strike, expiration_hours, price, self._hour
        )

    def close_option(self, ticker: str, index: int) -> TradeResult:
        price = self.current_price(ticker)
        if price is None:
            return _not_found(ticker)
        return self._ledger.close_option(ticker, index, price, self._hour)

    def toggle_watchlist(self, ticker: str) -> TradeResult:
        if self._catalog.instrument(ticker) is None:
            return _not_found(ticker)
        watched = self._ledger.toggle_watchlist(ticker)
        verb = "Added" if watched else "Removed"
        return TradeResult(status="accepted", message=f"{verb} {ticker} {'to' if watched else 'from'} watchlist.")

    # ------------------------------------------------------------------
    # Clock
    # ------------------------------------------------------------------

    def advance_hour(self) -> HourReport:
        """Advance the clock one hour. A no-op once the run is complete."""
        if self.is_complete():
            return HourReport(hour=self._hour)

        self._hour += 1
        hour = self._hour
        mid_day = is_mid_day(hour)
        end_of_day = is_end_of_day(hour)

        new_events: list[ActiveEvent] = []
        if mid_day or end_of_day:
            for event in self._selector.select(hour, self._event_log):
                activated = ActiveEvent(event=event, activated_at=hour)
                new_events.append(activated)
                self._active.append(activated)
                self._event_log.append(EventLogEntry(event=event, hour=hour))
            if new_events:
                logger.info(
                    "Hour %d: %d event(s) activated: %s",
                    hour,
                    len(new_events),
                    "; ".join(a.event.title for a in new_events),
                )

        price_changes = self._update_prices(hour)
        mover = max(price_changes.values(), key=lambda c: abs(c.change_pct), default=None)
        if mover is not None:
            logger.debug("Hour %d: largest move %s %+.2f%%.", hour, mover.ticker, mover.change_pct)
        self._retire_events(hour)

        expired = self._ledger.expire_options(hour)
        for option in expired:
            logger.debug(
                "Hour %d: %s %s x%d @ %.2f expired unclosed.",
                hour,
                option.ticker,
                option.option_type.value,
                option.contracts,
                option.strike,
            )

        news_items = self._news.build(hour, new_events)
        self._news_log.extend(news_items)

        self._portfolio_history.append(self.get_portfolio_value())

        if end_of_day:
            logger.info(
                "End of trading day %d (hour %d): portfolio $%.2f, %d active event(s).",
                hour // HOURS_PER_DAY,
                hour,
                self._portfolio_history[-1],
                len(self._active),
            )

        return HourReport(
            hour=hour,
            new_events=[a.event for a in new_events],
            price_changes=price_changes,
            is_end_of_day=end_of_day,
            is_mid_day=mid_day,
            news_items=[item.model_copy() for item in news_items],
        )

    # ------------------------------------------------------------------
    # Internal helpers
    # ------------------------------------------------------------------

    def _update_prices(self, hour: int) -> dict[str, PriceChange]:
        shock = self._price_engine.market_shock()
        changes: dict[str, PriceChange] = {}
        for instrument in self._catalog.instruments:
            series = self._price_history[instrument.ticker]
            old = series[-1]
            new = self._price_engine.next_price(instrument, old, self._active, hour, shock)
            series.append(new)
            changes[instrument.ticker] = PriceChange(ticker=instrument.ticker, old=old, new=new)
        return changes

    def _retire_events(self, hour: int) -> None:
        still_active: list[ActiveEvent] = []
        for active in self._active:
            if self._retire_rng.random() < RETIREMENT_PROBABILITY[active.event.sentiment]:
                self._completed.append(active)
                logger.debug(
                    "Hour %d: event %s retired after %d hour(s).",
                    hour,
                    active.id,
                    hour - active.activated_at + 1,
                )
            else:
                still_active.append(active)
        self._active = still_active


def _not_found(ticker: str) -> TradeResult:
    return TradeResult(
        status="rejected",
        failure=FailureKind.NOT_FOUND,
        message=f"Stock not found: {ticker}.",
    )
