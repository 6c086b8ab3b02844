"""Scripted simulation runner: the batch orchestration loop.

Lifecycle:
    1. Load config and the reference catalog.
    2. For each run:
        a. Build a fresh ``TradingSimulation``.
        b. For each hour until the run completes:
            - Execute the orders scheduled for the current hour.
            - Advance the clock.
        c. Analyse the run and record its log.
    3. Finalise and write summary.
"""

from __future__ import annotations

import logging
import time
from collections import defaultdict
from typing import Any

from analysis.trading_analysis import analyze_trading_behavior, performance_metrics
from catalog.loader import Catalog, load_catalog
from models.config import ScheduledOrder, SimulationConfig
from models.log import OrderLog, RunLog
from models.trade import TradeResult
from simulation.engine import TradingSimulation
from simulation.sim_logging import SimulationLogger, run_name_from_config_path

logger = logging.getLogger(__name__)


def execute_order(sim: TradingSimulation, order: ScheduledOrder) -> TradeResult:
    """Route one scripted order to the matching simulation command."""
    if order.action == "buy":
        return sim.buy(order.ticker, order.quantity)
    if order.action == "sell":
        return sim.sell(order.ticker, order.quantity)
    if order.action in ("call", "put"):
        return sim.open_option(
            order.ticker,
            order.action,
            order.quantity,
            order.strike,
            order.expiration_hours,
        )
    if order.action == "close_option":
        return sim.close_option(order.ticker, order.option_index)
    return sim.toggle_watchlist(order.ticker)


def run_once(
    sim: TradingSimulation,
    orders: list[ScheduledOrder],
    run_id: str,
) -> RunLog:
    """Drive *sim* to completion, replaying *orders*, and return its log."""
    by_hour: dict[int, list[ScheduledOrder]] = defaultdict(list)
    for order in orders:
        by_hour[order.hour].append(order)

    order_logs: list[OrderLog] = []
    while True:
        for order in by_hour.get(sim.current_hour, []):
            result = execute_order(sim, order)
            if not result.ok:
                logger.warning(
                    "Run %s hour %d: %s %s rejected (%s): %s",
                    run_id,
                    sim.current_hour,
                    order.action,
                    order.ticker,
                    result.failure.value if result.failure else "unknown",
                    result.message,
                )
            order_logs.append(OrderLog(order=order, result=result))
        if sim.is_complete():
            break
        sim.advance_hour()

    state = sim.get_state()
    metrics = performance_metrics(state.portfolio_history, state.starting_cash, len(state.trades))
    analysis = analyze_trading_behavior(
        state.trades,
        state.portfolio_history,
        state.event_log,
        metrics.total_return_pct,
        len(sim.catalog),
    )
    return RunLog(
        run_id=run_id,
        seed=sim.seed,
        hours_elapsed=state.current_hour,
        order_logs=order_logs,
        trades=state.trades,
        event_log=state.event_log,
        portfolio_history=state.portfolio_history,
        price_history=state.price_history,
        news=state.news_log,
        final_cash=state.cash,
        final_prices=state.current_prices,
        metrics=metrics,
        analysis=analysis,
    )


class SimulationRunner:
    """Drives the simulation loop across runs."""

    def __init__(
        self,
        config: SimulationConfig,
        config_yaml_path: str,
        output_dir: str = "results",
    ) -> None:
        self._config = config
        self._config_yaml_path = config_yaml_path
        self._run_name = run_name_from_config_path(config_yaml_path)
        self._sim_logger = SimulationLogger(output_dir, config, self._run_name)

    def run(self) -> None:
        """Execute every configured run."""
        self._sim_logger.open(self._config_yaml_path)

        # Load the catalog once (shared, read-only, across runs).
        catalog = load_catalog(
            self._config.catalog.instruments_path,
            self._config.catalog.events_path,
        )
        logger.info(
            "Starting simulation '%s': %d run(s) of %d hours each.",
            self._run_name,
            self._config.num_runs,
            self._config.market.total_hours,
        )

        for run_idx in range(self._config.num_runs):
            run_id = f"run_{run_idx:03d}"
            try:
                run_log = self._run(run_id, run_idx, catalog)
                self._sim_logger.write_run(run_log)
            except Exception as exc:
                msg = f"Run '{run_id}' failed: {exc}"
                logger.exception(msg)
                self._sim_logger.record_error(msg)

        # Finalize with a lightweight summary.
        summary = self._build_summary()
        self._sim_logger.close(summary)
        logger.info("Simulation '%s' complete. Output: %s", self._run_name, self._sim_logger.run_dir)

    def _run(self, run_id: str, run_idx: int, catalog: Catalog) -> RunLog:
        sim = TradingSimulation.from_config(self._config, catalog=catalog, run_index=run_idx)
        t0 = time.monotonic()
        run_log = run_once(sim, self._config.orders, run_id)
        elapsed = time.monotonic() - t0

        metrics = run_log.metrics
        logger.info(
            "Run '%s' complete in %.2fs. Final value: $%.2f (%+.2f%%), trades: %d, rejected orders: %d",
            run_id,
            elapsed,
            metrics.final_value,
            metrics.total_return_pct,
            metrics.total_trades,
            len(run_log.rejected_orders),
        )
        return run_log

    # ------------------------------------------------------------------
    # Summary
    # ------------------------------------------------------------------

    def _build_summary(self) -> dict[str, Any]:
        """Build a lightweight summary dict for the batch."""
        runs = self._sim_logger.simulation_log.run_logs
        summaries = []
        for run in runs:
            if run.metrics is None:
                continue
            summaries.append(
                {
                    "run_id": run.run_id,
                    "seed": run.seed,
                    "starting_cash": run.metrics.starting_balance,
                    "final_value": run.metrics.final_value,
                    "return_pct": run.metrics.total_return_pct,
                    "max_drawdown_pct": run.metrics.max_drawdown_pct,
                    "total_trades": run.metrics.total_trades,
                    "rejected_orders": len(run.rejected_orders),
                    "events_fired": len(run.event_log),
                    "trading_style": run.analysis.trading_style if run.analysis else None,
                    "risk_level": run.analysis.risk_level if run.analysis else None,
                }
            )
        return {
            "run_name": self._run_name,
            "difficulty": self._config.market.difficulty.value,
            "num_runs": len(runs),
            "run_summaries": summaries,
        }
