"""Post-hoc analysis of a finished run.

A pure function of the run's logs: the trade record, the portfolio-value
history, and the event log. Nothing here reads or changes simulation state.
"""

from __future__ import annotations

import logging
from collections.abc import Sequence

import pandas as pd

from models.analysis import (
    InsightCategory,
    PerformanceMetrics,
    Severity,
    TradingAnalysis,
    TradingInsight,
)
from models.state import EventLogEntry
from models.trade import TradeAction, TradeRecord

logger = logging.getLogger(__name__)

HOURS_PER_DAY = 8
OVERTRADING_PER_DAY = 5
TIMING_WINDOW_HOURS = 3

_TRADE_COLUMNS = ["ticker", "action", "quantity", "price", "hour"]


def trades_frame(trades: Sequence[TradeRecord]) -> pd.DataFrame:
    """Trades as a DataFrame with one row per record."""
    rows = [
        {
            "ticker": t.ticker,
            "action": t.action.value,
            "quantity": t.quantity,
            "price": t.price,
            "hour": t.hour,
        }
        for t in trades
    ]
    return pd.DataFrame(rows, columns=_TRADE_COLUMNS)


def max_drawdown_pct(portfolio_history: Sequence[float]) -> float:
    """Largest peak-to-trough fall in the history, in percent."""
    values = pd.Series(list(portfolio_history), dtype=float)
    if values.empty:
        return 0.0
    peaks = values.cummax()
    drawdowns = ((peaks - values) / peaks.where(peaks > 0)).fillna(0.0)
    return float(drawdowns.max() * 100)


def performance_metrics(
    portfolio_history: Sequence[float],
    starting_balance: float,
    total_trades: int,
) -> PerformanceMetrics:
    final_value = portfolio_history[-1] if portfolio_history else starting_balance
    total_return = final_value - starting_balance
    return PerformanceMetrics(
        starting_balance=starting_balance,
        final_value=final_value,
        total_return=total_return,
        total_return_pct=total_return / starting_balance * 100 if starting_balance else 0.0,
        max_drawdown_pct=max_drawdown_pct(portfolio_history),
        total_trades=total_trades,
    )


def analyze_trading_behavior(
    trades: Sequence[TradeRecord],
    portfolio_history: Sequence[float],
    event_log: Sequence[EventLogEntry],
    final_return: float,
    catalog_size: int,
) -> TradingAnalysis:
    """Derive style, risk, and coaching insights from a run's logs.

    *final_return* is the run's return in percent.
    """
    insights: list[TradingInsight] = []
    df = trades_frame(trades)
    total_trades = len(df)
    trading_days = max(1.0, (len(portfolio_history) - 1) / HOURS_PER_DAY)

    # Frequency
    trades_per_day = total_trades / trading_days
    overtrading = trades_per_day > OVERTRADING_PER_DAY
    undertrading = trades_per_day < 1 and total_trades > 0
    if overtrading:
        insights.append(
            TradingInsight(
                category=InsightCategory.WEAKNESS,
                title="Overtrading Detected",
                description=(
                    f"You made {total_trades} trades ({trades_per_day:.1f} per day). "
                    "Overtrading can lead to higher transaction costs and emotional "
                    "decision-making. Consider being more selective with your trades."
                ),
                severity=Severity.HIGH,
            )
        )
    elif undertrading:
        insights.append(
            TradingInsight(
                category=InsightCategory.TIP,
                title="Consider More Active Trading",
                description=(
                    f"You made only {total_trades} trades. While patience is good, consider "
                    "taking advantage of more opportunities when they arise."
                ),
                severity=Severity.LOW,
            )
        )

    # Diversification
    unique_tickers = df["ticker"].nunique()
    diversification = min(100.0, unique_tickers / catalog_size * 100) if catalog_size else 0.0
    if total_trades and diversification < 30:
        insights.append(
            TradingInsight(
                category=InsightCategory.WEAKNESS,
                title="Low Diversification",
                description=(
                    f"You traded only {unique_tickers} different stocks. Diversification helps "
                    "reduce risk. Consider spreading investments across more sectors."
                ),
                severity=Severity.HIGH,
            )
        )
    elif diversification > 70:
        insights.append(
            TradingInsight(
                category=InsightCategory.STRENGTH,
                title="Good Diversification",
                description=(
                    f"You diversified across {unique_tickers} different stocks. "
                    "This helps manage risk effectively."
                ),
                severity=Severity.LOW,
            )
        )

    # Concentration of bought shares
    buys = df[df["action"] == TradeAction.BUY.value]
    bought = buys.groupby("ticker")["quantity"].sum()
    concentration = float(bought.max() / bought.sum() * 100) if bought.sum() > 0 else 0.0
    if concentration > 50:
        insights.append(
            TradingInsight(
                category=InsightCategory.WEAKNESS,
                title="High Position Concentration",
                description=(
                    f"Your largest position represents {concentration:.0f}% of the shares you "
                    "bought. High concentration increases risk if that stock underperforms."
                ),
                severity=Severity.HIGH,
            )
        )

    # Cash usage, estimated from buy notional against the starting value
    starting = portfolio_history[0] if portfolio_history else 0.0
    if starting > 0 and total_trades:
        buy_value = float((buys["quantity"] * buys["price"]).sum())
        cash_pct = (starting - min(buy_value, starting)) / starting * 100
        if cash_pct > 80:
            insights.append(
                TradingInsight(
                    category=InsightCategory.TIP,
                    title="High Cash Position",
                    description=(
                        f"You held {cash_pct:.0f}% cash. While safe, you may have missed "
                        "opportunities. Consider deploying more capital when confident."
                    ),
                    severity=Severity.LOW,
                )
            )
        elif cash_pct < 10:
            insights.append(
                TradingInsight(
                    category=InsightCategory.WEAKNESS,
                    title="Low Cash Reserve",
                    description=(
                        f"You held very little cash ({cash_pct:.0f}%). Maintaining cash reserves "
                        "helps you take advantage of opportunities and manage risk."
                    ),
                    severity=Severity.MEDIUM,
                )
            )

    # Options usage
    option_opens = df["action"].isin([TradeAction.CALL_OPEN.value, TradeAction.PUT_OPEN.value]).sum()
    if total_trades and option_opens / total_trades > 0.5:
        insights.append(
            TradingInsight(
                category=InsightCategory.TIP,
                title="Heavy Options Usage",
                description=(
                    f"{option_opens} of your {total_trades} trades opened options. Premiums "
                    "decay to nothing if the move never comes; size option bets accordingly."
                ),
                severity=Severity.MEDIUM,
            )
        )

    # Timing: buys made within a few hours after news touching the same ticker
    good_timing = 0
    for trade in trades:
        if trade.action is not TradeAction.BUY:
            continue
        if any(
            entry.event.affects(trade.ticker)
            and trade.hour - TIMING_WINDOW_HOURS <= entry.hour < trade.hour
            for entry in event_log
        ):
            good_timing += 1
    timing_score = min(100.0, good_timing / total_trades * 100) if total_trades else 50.0

    # Returns and drawdown
    if final_return > 20:
        insights.append(
            TradingInsight(
                category=InsightCategory.STRENGTH,
                title="Strong Performance",
                description=(
                    f"You achieved a {final_return:.1f}% return! Excellent work managing your "
                    "portfolio through market volatility."
                ),
                severity=Severity.LOW,
            )
        )
    elif final_return < -10:
        insights.append(
            TradingInsight(
                category=InsightCategory.WEAKNESS,
                title="Negative Returns",
                description=(
                    f"You finished with {final_return:.1f}% return. Review your strategy - "
                    "consider risk management and research before trades."
                ),
                severity=Severity.HIGH,
            )
        )

    drawdown = max_drawdown_pct(portfolio_history)
    if drawdown > 20:
        insights.append(
            TradingInsight(
                category=InsightCategory.WEAKNESS,
                title="Deep Drawdown",
                description=(
                    f"Your portfolio fell {drawdown:.1f}% from its peak at one point. "
                    "Cutting losing positions earlier limits how deep a slide can go."
                ),
                severity=Severity.MEDIUM,
            )
        )

    # Style
    if total_trades == 0:
        trading_style = "Passive Observer"
    elif overtrading and concentration > 40:
        trading_style = "Aggressive Momentum Trader"
    elif trades_per_day < 2 and diversification > 60:
        trading_style = "Conservative Diversified Investor"
    elif concentration > 60:
        trading_style = "Concentrated Position Trader"
    else:
        trading_style = "Balanced Trader"

    # Risk
    if concentration > 50 or (total_trades and diversification < 30):
        risk_level = "High"
    elif diversification > 70 and concentration < 30:
        risk_level = "Low"
    else:
        risk_level = "Moderate"

    logger.debug(
        "Analysis: %d trades, style=%s, risk=%s, diversification=%.0f, timing=%.0f",
        total_trades,
        trading_style,
        risk_level,
        diversification,
        timing_score,
    )
    return TradingAnalysis(
        insights=insights,
        trading_style=trading_style,
        risk_level=risk_level,
        diversification_score=diversification,
        concentration_pct=concentration,
        timing_score=timing_score,
        max_drawdown_pct=drawdown,
    )
