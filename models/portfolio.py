"""Portfolio state models: equity and option holdings."""

from __future__ import annotations

from enum import Enum

from pydantic import BaseModel, ConfigDict, Field

# Underlying units represented by one option contract.
CONTRACT_MULTIPLIER = 100


class OptionType(str, Enum):
    CALL = "call"
    PUT = "put"


class EquityPosition(BaseModel):
    """Shares held in one ticker with their volume-weighted average cost."""

    ticker: str
    shares: int = Field(ge=0)
    avg_price: float = Field(ge=0)


class OptionPosition(BaseModel):
    """A purchased call or put. Immutable until closed or expired."""

    model_config = ConfigDict(frozen=True)

    ticker: str
    option_type: OptionType
    contracts: int = Field(gt=0)
    strike: float = Field(gt=0)
    premium: float = Field(ge=0, description="Premium paid per underlying unit.")
    expiration_hour: int
    purchase_hour: int

    def intrinsic_value(self, spot: float) -> float:
        """In-the-money payoff per underlying unit at *spot*."""
        if self.option_type is OptionType.CALL:
            return max(0.0, spot - self.strike)
        return max(0.0, self.strike - spot)

    def is_expired(self, hour: int) -> bool:
        return self.expiration_hour <= hour

    @property
    def cost_basis(self) -> float:
        return self.premium * self.contracts * CONTRACT_MULTIPLIER


class PortfolioSnapshot(BaseModel):
    """Cash and holdings at a point in time.

    Returned by the ledger as a copy; mutating it never touches the ledger.
    """

    cash: float
    positions: dict[str, EquityPosition] = {}
    options: dict[str, list[OptionPosition]] = {}
    watchlist: list[str] = []
