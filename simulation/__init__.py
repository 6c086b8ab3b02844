"""Simulation core: event selection, pricing, the position ledger, and the clock."""

from simulation.engine import TradingSimulation
from simulation.ledger import PositionLedger, estimate_premium

__all__ = ["PositionLedger", "TradingSimulation", "estimate_premium"]
