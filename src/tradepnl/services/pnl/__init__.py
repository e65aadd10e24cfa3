"""P&L service for multi-method position accounting.

Calculates, per instrument, realized/unrealized P&L under four
conventions at once - cash-flow ("Real"), FIFO, LIFO and Average Cost -
plus daily P&L, "Made Up Ground" and an options rollup onto the
underlying stock.

Key components:
- PnLService / calculate_pnl: Report assembly
- methods: The four accounting methods
- LotTracker: FIFO/LIFO lot matching
- Models: Trade, Lot, MethodResult, RealResult, PositionReport, PnLConfig
- apply_split_adjustments: Split normalization applied before calculation

Example:
    >>> from datetime import date, datetime
    >>> from decimal import Decimal
    >>> from tradepnl.services.pnl import Trade, calculate_pnl
    >>>
    >>> trades = [
    ...     Trade(date=datetime(2024, 1, 2), symbol="AAPL", is_buy=True,
    ...           quantity=Decimal("10"), price=Decimal("100")),
    ...     Trade(date=datetime(2024, 1, 3), symbol="AAPL", is_buy=False,
    ...           quantity=Decimal("4"), price=Decimal("120")),
    ... ]
    >>> reports = calculate_pnl(trades, {"AAPL": Decimal("110")}, as_of=date(2024, 1, 4))
    >>> reports[0].fifo.realized_pnl
    Decimal('80.00')
"""

from tradepnl.services.pnl.daily import DailyMetrics, calculate_daily_metrics
from tradepnl.services.pnl.diagnostics import Diagnostics
from tradepnl.services.pnl.grouping import group_trades_by_symbol
from tradepnl.services.pnl.instruments import (
    Instrument,
    OptionContract,
    Stock,
    extract_parent_instrument,
    resolve_instrument,
)
from tradepnl.services.pnl.lot_tracker import LotTracker
from tradepnl.services.pnl.methods import (
    calculate_average_cost,
    calculate_fifo,
    calculate_lifo,
    calculate_lot_method,
    calculate_real,
)
from tradepnl.services.pnl.models import (
    Lot,
    LotOrder,
    MethodResult,
    PnLConfig,
    PositionReport,
    RealResult,
    Trade,
    TradeMark,
)
from tradepnl.services.pnl.rollup import attach_option_rollups, rollup_options_by_parent
from tradepnl.services.pnl.service import PnLService, calculate_pnl
from tradepnl.services.pnl.snapshots import to_price_benchmark, to_snapshot_record, to_snapshot_records
from tradepnl.services.pnl.splits import apply_split_adjustments

__all__ = [
    # Service
    "PnLService",
    "calculate_pnl",
    # Methods
    "calculate_real",
    "calculate_average_cost",
    "calculate_fifo",
    "calculate_lifo",
    "calculate_lot_method",
    "calculate_daily_metrics",
    "DailyMetrics",
    "LotTracker",
    # Grouping, instruments, rollup
    "group_trades_by_symbol",
    "Instrument",
    "Stock",
    "OptionContract",
    "extract_parent_instrument",
    "resolve_instrument",
    "attach_option_rollups",
    "rollup_options_by_parent",
    "Diagnostics",
    # Collaborator boundaries
    "apply_split_adjustments",
    "to_snapshot_record",
    "to_snapshot_records",
    "to_price_benchmark",
    # Models
    "Trade",
    "Lot",
    "LotOrder",
    "TradeMark",
    "MethodResult",
    "RealResult",
    "PositionReport",
    "PnLConfig",
]
