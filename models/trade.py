"""Trade models: TradeRecord (the audit trail) and TradeResult (command outcome)."""

from __future__ import annotations

from enum import Enum
from typing import Literal

from pydantic import BaseModel, ConfigDict

from models.portfolio import CONTRACT_MULTIPLIER, OptionType


class TradeAction(str, Enum):
    BUY = "buy"
    SELL = "sell"
    CALL_OPEN = "call_open"
    PUT_OPEN = "put_open"
    OPTION_CLOSE = "option_close"


class FailureKind(str, Enum):
    """Why a command was rejected. Rejections never change state."""

    INSUFFICIENT_FUNDS = "insufficient_funds"
    INSUFFICIENT_SHARES = "insufficient_shares"
    NOT_FOUND = "not_found"
    EXPIRED = "expired"
    INVALID_ORDER = "invalid_order"


class TradeRecord(BaseModel):
    """Single executed trade. Appended once, never mutated.

    ``price`` is the share price for equity trades, the premium per unit for
    option opens, and the intrinsic value per unit for option closes.
    """

    model_config = ConfigDict(frozen=True)

    trade_id: str
    ticker: str
    action: TradeAction
    quantity: int  # shares, or contracts for options
    price: float
    hour: int
    option_type: OptionType | None = None
    strike: float | None = None
    expiration_hour: int | None = None

    @property
    def notional(self) -> float:
        """Cash moved by this trade (always positive)."""
        if self.action in (TradeAction.BUY, TradeAction.SELL):
            return self.quantity * self.price
        return self.quantity * self.price * CONTRACT_MULTIPLIER


class TradeResult(BaseModel):
    """Outcome of a ledger command.

    When rejected, ``failure`` names the kind and ``message`` explains it in
    words a player can read (e.g. "Insufficient funds ...").
    """

    status: Literal["accepted", "rejected"]
    trade: TradeRecord | None = None  # Set only when accepted (watchlist toggles excepted)
    failure: FailureKind | None = None
    message: str = ""

    @property
    def ok(self) -> bool:
        return self.status == "accepted"
