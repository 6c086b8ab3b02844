"""Tests for the scripted runner and its on-disk output."""

from __future__ import annotations

import json

import pytest
import yaml

from conftest import make_instrument
from catalog.loader import Catalog
from models.config import ScheduledOrder, SimulationConfig
from models.trade import FailureKind, TradeAction
from simulation.engine import TradingSimulation
from simulation.runner import SimulationRunner, execute_order, run_once


@pytest.fixture()
def two_stock_catalog():
    return Catalog([make_instrument("AAA", 100.0), make_instrument("BBB", 40.0, "Energy")], [])


def _order(**fields):
    return ScheduledOrder(**fields)


def test_execute_order_routes_each_action(two_stock_catalog):
    sim = TradingSimulation(total_hours=16, catalog=two_stock_catalog, seed=1)
    assert execute_order(sim, _order(hour=0, action="buy", ticker="AAA", quantity=2)).ok
    assert execute_order(sim, _order(hour=0, action="sell", ticker="AAA", quantity=1)).ok
    assert execute_order(
        sim, _order(hour=0, action="put", ticker="BBB", quantity=1, strike=40.0, expiration_hours=8)
    ).ok
    assert execute_order(sim, _order(hour=0, action="close_option", ticker="BBB", option_index=0)).ok
    assert execute_order(sim, _order(hour=0, action="watch", ticker="BBB")).ok
    actions = [t.action for t in sim.get_state().trades]
    assert actions == [TradeAction.BUY, TradeAction.SELL, TradeAction.PUT_OPEN, TradeAction.OPTION_CLOSE]
    assert sim.get_state().watchlist == ["BBB"]


def test_run_once_replays_orders_by_hour(two_stock_catalog):
    sim = TradingSimulation(total_hours=16, catalog=two_stock_catalog, seed=2)
    orders = [
        _order(hour=0, action="buy", ticker="AAA", quantity=10),
        _order(hour=8, action="sell", ticker="AAA", quantity=10),
        _order(hour=9, action="sell", ticker="BBB", quantity=1),
        _order(hour=99, action="buy", ticker="AAA", quantity=1),
    ]
    run_log = run_once(sim, orders, "run_000")

    assert run_log.hours_elapsed == 16
    assert [t.hour for t in run_log.trades] == [0, 8]
    assert len(run_log.order_logs) == 3
    [rejected] = run_log.rejected_orders
    assert rejected.result.failure is FailureKind.INSUFFICIENT_SHARES
    assert len(run_log.portfolio_history) == 17
    assert all(len(series) == 17 for series in run_log.price_history.values())
    assert run_log.metrics.total_trades == 2
    assert run_log.analysis is not None
    assert run_log.final_cash == pytest.approx(run_log.metrics.final_value)


def test_runner_writes_output_tree(tmp_path):
    config_path = tmp_path / "smoke.yaml"
    config_path.write_text(
        yaml.safe_dump(
            {
                "market": {"total_hours": 16, "difficulty": "easy", "seed": 3},
                "num_runs": 2,
                "orders": [
                    {"hour": 0, "action": "buy", "ticker": "GLCR", "quantity": 5},
                    {"hour": 4, "action": "call", "ticker": "EDU", "quantity": 1,
                     "strike": 30.0, "expiration_hours": 8},
                ],
            }
        ),
        encoding="utf-8",
    )
    config = SimulationConfig.from_yaml(config_path)
    out = tmp_path / "results"
    SimulationRunner(config, str(config_path), str(out)).run()

    run_dir = out / "smoke"
    assert (run_dir / "config.yaml").is_file()
    for run_id in ("run_000", "run_001"):
        files = {p.name for p in (run_dir / "runs" / run_id).iterdir()}
        assert {"run_log.json", "trades.json", "prices.json", "news.json", "analysis.json"} <= files

    summary = json.loads((run_dir / "summary.json").read_text(encoding="utf-8"))
    assert summary["num_runs"] == 2
    assert [r["seed"] for r in summary["run_summaries"]] == [3, 4]

    log = json.loads((run_dir / "simulation_log.json").read_text(encoding="utf-8"))
    assert log["errors"] == []
    assert len(log["run_logs"]) == 2


def test_second_batch_gets_a_fresh_directory(tmp_path):
    config_path = tmp_path / "tiny.yaml"
    config_path.write_text("market:\n  total_hours: 8\n  seed: 1\n", encoding="utf-8")
    config = SimulationConfig.from_yaml(config_path)
    out = tmp_path / "results"
    SimulationRunner(config, str(config_path), str(out)).run()
    SimulationRunner(config, str(config_path), str(out)).run()
    assert (out / "tiny").is_dir()
    assert (out / "tiny_001").is_dir()
