"""Tests for the position ledger: equity and option commands, rejections,
valuation, and snapshot isolation."""

from __future__ import annotations

import pytest

from models.portfolio import OptionType
from models.trade import FailureKind, TradeAction
from simulation.ledger import PositionLedger, estimate_premium


@pytest.fixture()
def ledger() -> PositionLedger:
    return PositionLedger(starting_cash=10_000.0, total_hours=80)


def _state(ledger: PositionLedger):
    return ledger.get_portfolio(), ledger.get_trade_history()


# ===================================================================
# Construction
# ===================================================================


@pytest.mark.parametrize("cash, hours", [(0, 80), (-5, 80), (100, 0)])
def test_rejects_bad_construction(cash, hours):
    with pytest.raises(ValueError):
        PositionLedger(cash, hours)


# ===================================================================
# Equities
# ===================================================================


def test_buy_then_sell_all(ledger):
    bought = ledger.buy("AAA", 10, 100.0, hour=0)
    assert bought.ok
    assert ledger.cash == pytest.approx(9_000.0)
    assert ledger.position("AAA").avg_price == pytest.approx(100.0)

    sold = ledger.sell("AAA", 10, 110.0, hour=3)
    assert sold.ok
    assert ledger.cash == pytest.approx(10_100.0)
    assert ledger.position("AAA") is None
    assert "AAA" not in ledger.get_portfolio().positions
    assert [t.action for t in ledger.get_trade_history()] == [TradeAction.BUY, TradeAction.SELL]


def test_average_cost_is_volume_weighted(ledger):
    ledger.buy("AAA", 10, 100.0, hour=0)
    ledger.buy("AAA", 30, 120.0, hour=1)
    assert ledger.position("AAA").avg_price == pytest.approx(115.0)
    ledger.sell("AAA", 20, 90.0, hour=2)
    pos = ledger.position("AAA")
    assert pos.shares == 20
    assert pos.avg_price == pytest.approx(115.0)


def test_insufficient_funds_changes_nothing(ledger):
    before = _state(ledger)
    result = ledger.buy("AAA", 101, 100.0, hour=0)
    assert not result.ok
    assert result.failure is FailureKind.INSUFFICIENT_FUNDS
    assert "Insufficient funds" in result.message
    assert _state(ledger) == before


def test_buy_exactly_all_cash(ledger):
    assert ledger.buy("AAA", 100, 100.0, hour=0).ok
    assert ledger.cash == pytest.approx(0.0)


def test_sell_without_position_changes_nothing(ledger):
    before = _state(ledger)
    result = ledger.sell("AAA", 1, 100.0, hour=0)
    assert result.failure is FailureKind.INSUFFICIENT_SHARES
    assert _state(ledger) == before


def test_sell_more_than_held(ledger):
    ledger.buy("AAA", 5, 100.0, hour=0)
    result = ledger.sell("AAA", 6, 100.0, hour=1)
    assert result.failure is FailureKind.INSUFFICIENT_SHARES
    assert ledger.position("AAA").shares == 5


@pytest.mark.parametrize("shares", [0, -3])
def test_non_positive_quantities_are_invalid(ledger, shares):
    assert ledger.buy("AAA", shares, 100.0, hour=0).failure is FailureKind.INVALID_ORDER
    assert ledger.sell("AAA", shares, 100.0, hour=0).failure is FailureKind.INVALID_ORDER
    assert ledger.get_trade_history() == []


def test_cash_is_conserved_across_trades(ledger):
    ledger.buy("AAA", 10, 100.0, hour=0)
    ledger.buy("BBB", 20, 25.0, hour=1)
    ledger.sell("AAA", 4, 105.0, hour=2)
    ledger.open_option("BBB", OptionType.PUT, 1, 25.0, 8, 25.0, hour=2)
    ledger.sell("BBB", 20, 24.0, hour=3)

    flows = 0.0
    for trade in ledger.get_trade_history():
        sign = 1 if trade.action in (TradeAction.SELL, TradeAction.OPTION_CLOSE) else -1
        flows += sign * trade.notional
    assert ledger.cash == pytest.approx(ledger.starting_cash + flows)


def test_position_pnl(ledger):
    ledger.buy("AAA", 10, 100.0, hour=0)
    pnl, pct = ledger.position_pnl("AAA", 110.0)
    assert pnl == pytest.approx(100.0)
    assert pct == pytest.approx(10.0)
    assert ledger.position_pnl("ZZZ", 1.0) == (0.0, 0.0)


# ===================================================================
# Options
# ===================================================================


def test_premium_is_time_value_out_of_the_money():
    assert estimate_premium(100.0, 100.0, OptionType.CALL, 8, 80) == pytest.approx(1.5)
    assert estimate_premium(100.0, 120.0, OptionType.CALL, 40, 80) == pytest.approx(7.5)


def test_premium_adds_in_the_money_bonus():
    assert estimate_premium(110.0, 100.0, OptionType.CALL, 8, 80) == pytest.approx(1.65 + 1.0)
    assert estimate_premium(90.0, 100.0, OptionType.PUT, 8, 80) == pytest.approx(1.35 + 1.0)
    assert estimate_premium(110.0, 100.0, OptionType.PUT, 8, 80) == pytest.approx(1.65)


def test_open_call_charges_premium_times_multiplier(ledger):
    result = ledger.open_option("AAA", OptionType.CALL, 1, 100.0, 8, 100.0, hour=0)
    assert result.ok
    assert result.trade.action is TradeAction.CALL_OPEN
    assert result.trade.price == pytest.approx(1.5)
    assert result.trade.expiration_hour == 8
    assert ledger.cash == pytest.approx(9_850.0)
    [option] = ledger.options_for("AAA")
    assert option.cost_basis == pytest.approx(150.0)
    assert option.purchase_hour == 0


def test_open_option_insufficient_funds(ledger):
    before = _state(ledger)
    result = ledger.open_option("AAA", OptionType.CALL, 100, 100.0, 80, 100.0, hour=0)
    assert result.failure is FailureKind.INSUFFICIENT_FUNDS
    assert _state(ledger) == before


@pytest.mark.parametrize(
    "contracts, strike, expiration",
    [(0, 100.0, 8), (1, 0.0, 8), (1, 100.0, 0)],
)
def test_open_option_invalid_orders(ledger, contracts, strike, expiration):
    result = ledger.open_option("AAA", OptionType.PUT, contracts, strike, expiration, 100.0, hour=0)
    assert result.failure is FailureKind.INVALID_ORDER
    assert ledger.cash == pytest.approx(10_000.0)


def test_close_option_pays_intrinsic_value(ledger):
    ledger.open_option("AAA", OptionType.CALL, 2, 100.0, 8, 100.0, hour=0)
    cash_after_open = ledger.cash
    result = ledger.close_option("AAA", 0, 104.0, hour=3)
    assert result.ok
    assert result.trade.action is TradeAction.OPTION_CLOSE
    assert result.trade.price == pytest.approx(4.0)
    assert ledger.cash == pytest.approx(cash_after_open + 4.0 * 2 * 100)
    assert ledger.options_for("AAA") == []


def test_close_out_of_the_money_pays_nothing(ledger):
    ledger.open_option("AAA", OptionType.PUT, 1, 100.0, 8, 100.0, hour=0)
    cash_after_open = ledger.cash
    assert ledger.close_option("AAA", 0, 104.0, hour=3).ok
    assert ledger.cash == pytest.approx(cash_after_open)


def test_close_option_bad_index(ledger):
    ledger.open_option("AAA", OptionType.CALL, 1, 100.0, 8, 100.0, hour=0)
    before = _state(ledger)
    assert ledger.close_option("AAA", 1, 100.0, hour=1).failure is FailureKind.NOT_FOUND
    assert ledger.close_option("AAA", -1, 100.0, hour=1).failure is FailureKind.NOT_FOUND
    assert ledger.close_option("BBB", 0, 100.0, hour=1).failure is FailureKind.NOT_FOUND
    assert _state(ledger) == before


def test_close_expired_option_rejected(ledger):
    ledger.open_option("AAA", OptionType.CALL, 1, 100.0, 8, 100.0, hour=0)
    result = ledger.close_option("AAA", 0, 150.0, hour=8)
    assert result.failure is FailureKind.EXPIRED
    assert len(ledger.options_for("AAA")) == 1


def test_expired_options_are_worth_nothing(ledger):
    ledger.open_option("AAA", OptionType.CALL, 1, 100.0, 8, 100.0, hour=0)
    prices = {"AAA": 120.0}
    assert ledger.portfolio_value(prices, hour=7) == pytest.approx(9_850.0 + 20.0 * 100)
    assert ledger.portfolio_value(prices, hour=8) == pytest.approx(9_850.0)

    expired = ledger.expire_options(hour=8)
    assert len(expired) == 1
    assert ledger.options_for("AAA") == []
    assert ledger.cash == pytest.approx(9_850.0)


def test_expire_keeps_live_options(ledger):
    ledger.open_option("AAA", OptionType.CALL, 1, 100.0, 4, 100.0, hour=0)
    ledger.open_option("AAA", OptionType.PUT, 1, 100.0, 12, 100.0, hour=0)
    ledger.expire_options(hour=4)
    [remaining] = ledger.options_for("AAA")
    assert remaining.option_type is OptionType.PUT
    assert ledger.open_options(hour=4) == [remaining]


def test_option_pnl():
    ledger = PositionLedger(10_000.0, 80)
    ledger.open_option("AAA", OptionType.CALL, 1, 100.0, 8, 100.0, hour=0)
    [option] = ledger.options_for("AAA")
    assert PositionLedger.option_pnl(option, 103.0) == pytest.approx(300.0 - 150.0)


# ===================================================================
# Watchlist and snapshots
# ===================================================================


def test_toggle_watchlist(ledger):
    assert ledger.toggle_watchlist("AAA") is True
    assert ledger.get_portfolio().watchlist == ["AAA"]
    assert ledger.toggle_watchlist("AAA") is False
    assert ledger.get_portfolio().watchlist == []


def test_snapshot_mutation_does_not_leak(ledger):
    ledger.buy("AAA", 10, 100.0, hour=0)
    ledger.open_option("AAA", OptionType.CALL, 1, 100.0, 8, 100.0, hour=0)
    snapshot = ledger.get_portfolio()
    snapshot.positions["AAA"].shares = 999
    snapshot.options["AAA"].clear()
    snapshot.watchlist.append("BBB")
    ledger.get_trade_history().clear()

    assert ledger.position("AAA").shares == 10
    assert len(ledger.options_for("AAA")) == 1
    assert ledger.get_portfolio().watchlist == []
    assert len(ledger.get_trade_history()) == 2
