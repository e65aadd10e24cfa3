"""
tradepnl - Multi-method position and P&L engine

Public API for computing per-instrument position reports from a trade
history under Real (cash-flow), FIFO, LIFO and Average Cost accounting.
"""

from importlib.metadata import PackageNotFoundError, version

from tradepnl.services.pnl import PnLConfig, PnLService, PositionReport, Trade, calculate_pnl

try:
    __version__ = version("tradepnl")
except PackageNotFoundError:
    __version__ = "0.0.0.dev"  # Fallback for development


__all__ = [
    "__version__",
    "PnLConfig",
    "PnLService",
    "PositionReport",
    "Trade",
    "calculate_pnl",
]
