"""End-of-run analysis over a simulation's trade and portfolio history."""

from analysis.trading_analysis import (
    analyze_trading_behavior,
    max_drawdown_pct,
    performance_metrics,
    trades_frame,
)

__all__ = [
    "analyze_trading_behavior",
    "max_drawdown_pct",
    "performance_metrics",
    "trades_frame",
]
