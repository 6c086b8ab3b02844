"""Position ledger: cash, equity and option holdings, and the trade log.

Every command is all-or-nothing: it validates first and only then mutates,
so a rejected command leaves the ledger exactly as it was. Rejections are
returned as ``TradeResult(status="rejected")`` rather than raised, because
callers are expected to hit them routinely.

The ledger knows nothing about the market; the orchestrator passes in the
current price and hour with each command.
"""

from __future__ import annotations

import logging
import uuid
from collections.abc import Mapping

from models.portfolio import (
    CONTRACT_MULTIPLIER,
    EquityPosition,
    OptionPosition,
    OptionType,
    PortfolioSnapshot,
)
from models.trade import FailureKind, TradeAction, TradeRecord, TradeResult

logger = logging.getLogger(__name__)

# Premium heuristic: share of spot charged for an option spanning the whole run.
PREMIUM_RATE = 0.15
IN_THE_MONEY_RATE = 0.1


def estimate_premium(
    spot: float,
    strike: float,
    option_type: OptionType,
    expiration_hours: int,
    total_hours: int,
) -> float:
    """Premium per underlying unit.

    ``spot * 0.15 * (expiration_hours / total_hours)`` plus 10% of however far
    the option is already in the money. Deliberately simple; not a pricing model.
    """
    time_value = spot * PREMIUM_RATE * (expiration_hours / total_hours)
    if option_type is OptionType.CALL and spot > strike:
        return time_value + IN_THE_MONEY_RATE * (spot - strike)
    if option_type is OptionType.PUT and spot < strike:
        return time_value + IN_THE_MONEY_RATE * (strike - spot)
    return time_value


def _reject(kind: FailureKind, message: str) -> TradeResult:
    return TradeResult(status="rejected", failure=kind, message=message)


class PositionLedger:
    """Stateful ledger for one run.

    Instantiate one ``PositionLedger`` per run. It owns the canonical cash and
    holdings; everything it hands out is a copy.
    """

    def __init__(self, starting_cash: float, total_hours: int) -> None:
        if starting_cash <= 0:
            raise ValueError(f"starting_cash must be positive, got {starting_cash}.")
        if total_hours <= 0:
            raise ValueError(f"total_hours must be positive, got {total_hours}.")
        self._starting_cash = starting_cash
        self._total_hours = total_hours
        self._cash: float = starting_cash
        self._positions: dict[str, EquityPosition] = {}
        self._options: dict[str, list[OptionPosition]] = {}
        self._watchlist: list[str] = []
        self._trades: list[TradeRecord] = []

    # ------------------------------------------------------------------
    # Queries
    # ------------------------------------------------------------------

    @property
    def cash(self) -> float:
        return self._cash

    @property
    def starting_cash(self) -> float:
        return self._starting_cash

    def get_portfolio(self) -> PortfolioSnapshot:
        """Return a snapshot of the current holdings."""
        return PortfolioSnapshot(
            cash=self._cash,
            positions={t: p.model_copy() for t, p in self._positions.items()},
            options={t: list(opts) for t, opts in self._options.items()},
            watchlist=list(self._watchlist),
        )

    def get_trade_history(self) -> list[TradeRecord]:
        """Return the full list of executed trades so far."""
        return list(self._trades)

    def position(self, ticker: str) -> EquityPosition | None:
        pos = self._positions.get(ticker)
        return pos.model_copy() if pos is not None else None

    def options_for(self, ticker: str) -> list[OptionPosition]:
        return list(self._options.get(ticker, []))

    def open_options(self, hour: int) -> list[OptionPosition]:
        """All option positions that have not expired as of *hour*."""
        return [
            opt
            for opts in self._options.values()
            for opt in opts
            if not opt.is_expired(hour)
        ]

    def portfolio_value(self, prices: Mapping[str, float], hour: int) -> float:
        """Cash + equity at market + intrinsic value of live options.

        Expired options that were never closed are worth nothing.
        """
        total = self._cash
        for ticker, pos in self._positions.items():
            total += pos.shares * prices.get(ticker, 0.0)
        for opt in self.open_options(hour):
            spot = prices.get(opt.ticker, 0.0)
            total += opt.intrinsic_value(spot) * opt.contracts * CONTRACT_MULTIPLIER
        return total

    def position_pnl(self, ticker: str, price: float) -> tuple[float, float]:
        """Unrealized (P&L, P&L %) of the equity position in *ticker*."""
        pos = self._positions.get(ticker)
        if pos is None:
            return 0.0, 0.0
        pnl = (price - pos.avg_price) * pos.shares
        pnl_pct = (price - pos.avg_price) / pos.avg_price * 100 if pos.avg_price > 0 else 0.0
        return pnl, pnl_pct

    @staticmethod
    def option_pnl(option: OptionPosition, price: float) -> float:
        value = option.intrinsic_value(price) * option.contracts * CONTRACT_MULTIPLIER
        return value - option.cost_basis

    # ------------------------------------------------------------------
    # Equity commands
    # ------------------------------------------------------------------

    def buy(self, ticker: str, shares: int, price: float, hour: int) -> TradeResult:
        """Buy *shares* of *ticker* at *price*, updating the average cost."""
        if shares <= 0:
            return _reject(FailureKind.INVALID_ORDER, f"Share quantity must be positive, got {shares}.")

        cost = shares * price
        if cost > self._cash:
            return _reject(
                FailureKind.INSUFFICIENT_FUNDS,
                f"Insufficient funds to buy {shares} shares of {ticker} at ${price:.2f} "
                f"(cost ${cost:.2f}, available ${self._cash:.2f}).",
            )

        existing = self._positions.get(ticker)
        held = existing.shares if existing else 0
        avg = existing.avg_price if existing else 0.0
        total_shares = held + shares
        self._positions[ticker] = EquityPosition(
            ticker=ticker,
            shares=total_shares,
            avg_price=(held * avg + cost) / total_shares,
        )
        self._cash -= cost
        return self._record(ticker, TradeAction.BUY, shares, price, hour)

    def sell(self, ticker: str, shares: int, price: float, hour: int) -> TradeResult:
        """Sell *shares* of *ticker* at *price*. Average cost is unchanged."""
        if shares <= 0:
            return _reject(FailureKind.INVALID_ORDER, f"Share quantity must be positive, got {shares}.")

        existing = self._positions.get(ticker)
        held = existing.shares if existing else 0
        if shares > held:
            return _reject(
                FailureKind.INSUFFICIENT_SHARES,
                f"Insufficient shares: cannot sell {shares} shares of {ticker}, only {held} held.",
            )

        remaining = held - shares
        if remaining == 0:
            del self._positions[ticker]
        else:
            self._positions[ticker] = existing.model_copy(update={"shares": remaining})
        self._cash += shares * price
        return self._record(ticker, TradeAction.SELL, shares, price, hour)

    # ------------------------------------------------------------------
    # Option commands
    # ------------------------------------------------------------------

    def open_option(
        self,
        ticker: str,
        option_type: OptionType,
        contracts: int,
        strike: float,
        expiration_hours: int,
        price: float,
        hour: int,
    ) -> TradeResult:
        """Buy *contracts* calls or puts expiring *expiration_hours* from now."""
        if contracts <= 0:
            return _reject(FailureKind.INVALID_ORDER, f"Contract count must be positive, got {contracts}.")
        if strike <= 0:
            return _reject(FailureKind.INVALID_ORDER, f"Strike must be positive, got {strike}.")
        if expiration_hours < 1:
            return _reject(
                FailureKind.INVALID_ORDER,
                f"Expiration must be at least 1 hour away, got {expiration_hours}.",
            )

        premium = estimate_premium(price, strike, option_type, expiration_hours, self._total_hours)
        cost = premium * contracts * CONTRACT_MULTIPLIER
        if cost > self._cash:
            return _reject(
                FailureKind.INSUFFICIENT_FUNDS,
                f"Insufficient funds for {contracts} {option_type.value} contract(s) on {ticker} "
                f"(cost ${cost:.2f}, available ${self._cash:.2f}).",
            )

        option = OptionPosition(
            ticker=ticker,
            option_type=option_type,
            contracts=contracts,
            strike=strike,
            premium=premium,
            expiration_hour=hour + expiration_hours,
            purchase_hour=hour,
        )
        self._options.setdefault(ticker, []).append(option)
        self._cash -= cost
        action = TradeAction.CALL_OPEN if option_type is OptionType.CALL else TradeAction.PUT_OPEN
        return self._record(
            ticker,
            action,
            contracts,
            premium,
            hour,
            option_type=option_type,
            strike=strike,
            expiration_hour=option.expiration_hour,
        )

    def close_option(self, ticker: str, index: int, price: float, hour: int) -> TradeResult:
        """Close the *index*-th option on *ticker* at its intrinsic value."""
        options = self._options.get(ticker, [])
        if not 0 <= index < len(options):
            return _reject(
                FailureKind.NOT_FOUND,
                f"Option position {index} on {ticker} not found ({len(options)} open).",
            )

        option = options[index]
        if option.is_expired(hour):
            return _reject(
                FailureKind.EXPIRED,
                f"Option on {ticker} expired at hour {option.expiration_hour}.",
            )

        intrinsic = option.intrinsic_value(price)
        del options[index]
        if not options:
            del self._options[ticker]
        self._cash += intrinsic * option.contracts * CONTRACT_MULTIPLIER
        return self._record(
            ticker,
            TradeAction.OPTION_CLOSE,
            option.contracts,
            intrinsic,
            hour,
            option_type=option.option_type,
            strike=option.strike,
            expiration_hour=option.expiration_hour,
        )

    def expire_options(self, hour: int) -> list[OptionPosition]:
        """Drop options whose expiration hour has passed. No cash moves."""
        expired: list[OptionPosition] = []
        for ticker in list(self._options):
            live = [o for o in self._options[ticker] if not o.is_expired(hour)]
            expired.extend(o for o in self._options[ticker] if o.is_expired(hour))
            if live:
                self._options[ticker] = live
            else:
                del self._options[ticker]
        return expired

    # ------------------------------------------------------------------
    # Watchlist
    # ------------------------------------------------------------------

    def toggle_watchlist(self, ticker: str) -> bool:
        """Flip *ticker*'s watchlist membership; return True if now watched."""
        if ticker in self._watchlist:
            self._watchlist.remove(ticker)
            return False
        self._watchlist.append(ticker)
        return True

    # ------------------------------------------------------------------
    # Internal helpers
    # ------------------------------------------------------------------

    def _record(
        self,
        ticker: str,
        action: TradeAction,
        quantity: int,
        price: float,
        hour: int,
        **option_fields,
    ) -> TradeResult:
        trade = TradeRecord(
            trade_id=uuid.uuid4().hex[:12],
            ticker=ticker,
            action=action,
            quantity=quantity,
            price=price,
            hour=hour,
            **option_fields,
        )
        self._trades.append(trade)
        logger.debug(
            "Hour %d: %s %d %s @ %.4f (cash now %.2f)",
            hour,
            action.value,
            quantity,
            ticker,
            price,
            self._cash,
        )
        return TradeResult(
            status="accepted",
            trade=trade,
            message=f"Executed {action.value} of {quantity} {ticker} at ${price:.2f}.",
        )
