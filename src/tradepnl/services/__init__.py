"""tradepnl services package.

Each service is independently testable; the P&L service is a pure function
of its inputs.
"""

from tradepnl.services.pnl import PnLService, calculate_pnl

__all__: list[str] = [
    "PnLService",
    "calculate_pnl",
]
