"""End-of-run analysis models produced by ``analysis.trading_analysis``."""

from __future__ import annotations

from enum import Enum

from pydantic import BaseModel, Field


class InsightCategory(str, Enum):
    STRENGTH = "strength"
    WEAKNESS = "weakness"
    TIP = "tip"


class Severity(str, Enum):
    LOW = "low"
    MEDIUM = "medium"
    HIGH = "high"


class TradingInsight(BaseModel):
    """One qualitative observation about how the run was traded."""

    category: InsightCategory
    title: str
    description: str
    severity: Severity | None = None


class TradingAnalysis(BaseModel):
    insights: list[TradingInsight] = []
    trading_style: str
    risk_level: str
    diversification_score: float = Field(ge=0, le=100)
    concentration_pct: float = Field(ge=0, le=100)
    timing_score: float = Field(ge=0, le=100)
    max_drawdown_pct: float = Field(ge=0)


class PerformanceMetrics(BaseModel):
    """Headline numbers for the end-of-run screen."""

    starting_balance: float
    final_value: float
    total_return: float
    total_return_pct: float
    max_drawdown_pct: float
    total_trades: int
