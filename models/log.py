"""Logging and experiment storage models.

- ``RunLog``: full audit trail for one simulation run.
- ``SimulationLog``: run-level log with embedded config for reproducibility.
"""

from __future__ import annotations

from pydantic import BaseModel

from models.analysis import PerformanceMetrics, TradingAnalysis
from models.config import ScheduledOrder, SimulationConfig
from models.state import EventLogEntry, NewsItem
from models.trade import TradeRecord, TradeResult


class OrderLog(BaseModel):
    """A scripted order and what the ledger said about it."""

    order: ScheduledOrder
    result: TradeResult


class RunLog(BaseModel):
    """Full audit trail of one run.

    Run-level parameters (difficulty, starting cash, etc.) are stored once on
    ``SimulationLog.config``.
    """

    run_id: str
    seed: int | None = None
    hours_elapsed: int = 0
    order_logs: list[OrderLog] = []
    trades: list[TradeRecord] = []
    event_log: list[EventLogEntry] = []
    portfolio_history: list[float] = []
    price_history: dict[str, list[float]] = {}
    news: list[NewsItem] = []
    final_cash: float | None = None
    final_prices: dict[str, float] = {}
    metrics: PerformanceMetrics | None = None
    analysis: TradingAnalysis | None = None

    @property
    def rejected_orders(self) -> list[OrderLog]:
        return [o for o in self.order_logs if not o.result.ok]


class SimulationLog(BaseModel):
    """Run-level log with embedded configuration for reproducibility.

    ``run_name`` is derived from the configuration file path by the runner.
    """

    run_name: str
    config: SimulationConfig
    run_logs: list[RunLog] = []
    errors: list[str] = []
