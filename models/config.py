"""Simulation configuration models, loaded from YAML.

These live in ``models/`` because they are shared data contracts used by the
orchestrator, the scripted runner, and the CLI.
"""

from __future__ import annotations

from enum import Enum
from pathlib import Path
from typing import Literal

import yaml
from pydantic import BaseModel, Field, model_validator


class Difficulty(str, Enum):
    """Run-level knob skewing event sentiment and volatility."""

    EASY = "easy"
    MEDIUM = "medium"
    HARD = "hard"


class MarketConfig(BaseModel):
    """Clock and market-behaviour settings for a run."""

    total_hours: int = Field(
        default=80,
        gt=0,
        description="Run length in simulated hours (8 hours per trading day).",
    )
    difficulty: Difficulty = Field(
        default=Difficulty.MEDIUM,
        description="Event sentiment skew and volatility profile.",
    )
    seed: int | None = Field(
        default=None,
        description="Seed for the market and news generators. Unset = nondeterministic.",
    )


class LedgerConfig(BaseModel):
    """Configuration for the position ledger."""

    starting_cash: float = Field(
        default=10_000.0,
        gt=0,
        description="Starting cash balance for the portfolio.",
    )


class CatalogConfig(BaseModel):
    """Optional overrides for the packaged reference data."""

    instruments_path: str | None = Field(
        default=None,
        description="Path to an instruments JSON file. Defaults to the packaged catalog.",
    )
    events_path: str | None = Field(
        default=None,
        description="Path to an event-template JSON file. Defaults to the packaged catalog.",
    )


class ScheduledOrder(BaseModel):
    """One scripted command, executed just before *hour* advances."""

    hour: int = Field(ge=0)
    action: Literal["buy", "sell", "call", "put", "close_option", "watch"]
    ticker: str
    quantity: int | None = None
    strike: float | None = None
    expiration_hours: int | None = None
    option_index: int | None = None

    @model_validator(mode="after")
    def _check_fields(self) -> ScheduledOrder:
        if self.action in ("buy", "sell", "call", "put") and self.quantity is None:
            raise ValueError(f"'{self.action}' order for {self.ticker} needs a quantity.")
        if self.action in ("call", "put") and (
            self.strike is None or self.expiration_hours is None
        ):
            raise ValueError(
                f"'{self.action}' order for {self.ticker} needs strike and expiration_hours."
            )
        if self.action == "close_option" and self.option_index is None:
            raise ValueError(f"'close_option' order for {self.ticker} needs option_index.")
        return self


class SimulationConfig(BaseModel):
    """Top-level configuration for a simulation run, loaded from YAML.

    The run name is derived from the config file path at load time rather
    than being specified inside the YAML itself.
    """

    market: MarketConfig = Field(default_factory=MarketConfig)
    ledger: LedgerConfig = Field(default_factory=LedgerConfig)
    catalog: CatalogConfig = Field(default_factory=CatalogConfig)
    num_runs: int = Field(
        default=1,
        ge=1,
        description="Number of independent runs to execute.",
    )
    orders: list[ScheduledOrder] = Field(
        default_factory=list,
        description="Scripted orders replayed in every run.",
    )

    @classmethod
    def from_yaml(cls, path: str | Path) -> SimulationConfig:
        """Load and validate a ``SimulationConfig`` from a YAML file.

        Raises ``FileNotFoundError`` if the file does not exist and
        ``ValueError`` if the content is not a valid YAML mapping.
        """
        path = Path(path)
        if not path.exists():
            raise FileNotFoundError(f"Config file not found: {path}")

        with path.open(encoding="utf-8") as fh:
            raw = yaml.safe_load(fh)

        if not isinstance(raw, dict):
            raise ValueError(
                f"Expected a YAML mapping in {path}, got {type(raw).__name__}."
            )

        return cls(**raw)
