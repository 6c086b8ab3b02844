"""Data models for the hourly market simulation.

The catalog, simulation, and analysis packages all import from models.
"""

from models.analysis import InsightCategory, PerformanceMetrics, Severity, TradingAnalysis, TradingInsight
from models.catalog import DurationClass, EventCategory, ImpactTier, Instrument, MarketEvent, Sentiment
from models.config import CatalogConfig, Difficulty, LedgerConfig, MarketConfig, ScheduledOrder, SimulationConfig
from models.log import OrderLog, RunLog, SimulationLog
from models.portfolio import CONTRACT_MULTIPLIER, EquityPosition, OptionPosition, OptionType, PortfolioSnapshot
from models.state import (
    ActiveEvent,
    EventLogEntry,
    HourReport,
    NewsItem,
    PriceChange,
    PublicEvent,
    PublicNewsItem,
    SimulationState,
)
from models.trade import FailureKind, TradeAction, TradeRecord, TradeResult

__all__ = [
    # analysis
    "InsightCategory",
    "PerformanceMetrics",
    "Severity",
    "TradingAnalysis",
    "TradingInsight",
    # catalog
    "DurationClass",
    "EventCategory",
    "ImpactTier",
    "Instrument",
    "MarketEvent",
    "Sentiment",
    # config
    "CatalogConfig",
    "Difficulty",
    "LedgerConfig",
    "MarketConfig",
    "ScheduledOrder",
    "SimulationConfig",
    # log
    "OrderLog",
    "RunLog",
    "SimulationLog",
    # portfolio
    "CONTRACT_MULTIPLIER",
    "EquityPosition",
    "OptionPosition",
    "OptionType",
    "PortfolioSnapshot",
    # state
    "ActiveEvent",
    "EventLogEntry",
    "HourReport",
    "NewsItem",
    "PriceChange",
    "PublicEvent",
    "PublicNewsItem",
    "SimulationState",
    # trade
    "FailureKind",
    "TradeAction",
    "TradeRecord",
    "TradeResult",
]
