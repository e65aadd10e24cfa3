"""Mapping of position reports onto the snapshot table row shapes.

The persistence layer stores one ``pnl_snapshots`` row per (as-of date,
symbol) and one ``price_benchmarks`` row per symbol and price level. The
column names below are that boundary; renaming any of them breaks stored
history. No I/O happens here.
"""

from datetime import date
from decimal import Decimal
from typing import Any

from tradepnl.services.pnl.models import PositionReport

SNAPSHOT_COLUMNS = (
    "asof_date",
    "symbol",
    "position",
    "avg_cost",
    "current_price",
    "current_value",
    "realized_pnl",
    "unrealized_pnl",
    "total_pnl",
    "daily_pnl",
    "options_pnl",
    "percentage",
    "lowest_open_buy_price",
    "lowest_open_buy_days_ago",
    "recent_lowest_buy_price",
    "recent_lowest_buy_days_ago",
    "recent_lowest_sell_price",
    "recent_lowest_sell_days_ago",
)

BENCHMARK_COLUMNS = (
    "symbol",
    "price_level",
    "total_pnl",
    "position",
    "avg_cost",
    "realized_pnl",
    "unrealized_pnl",
)


def _num(value: Decimal) -> float:
    return float(value)


def to_snapshot_record(report: PositionReport, asof_date: date | str) -> dict[str, Any]:
    """
    Build a ``pnl_snapshots`` row from a report (Real method figures).

    Args:
        report: Top-level position report
        asof_date: Snapshot date (date or ISO string)

    Returns:
        Dict keyed by SNAPSHOT_COLUMNS
    """
    real = report.real
    return {
        "asof_date": asof_date.isoformat() if isinstance(asof_date, date) else asof_date,
        "symbol": report.symbol,
        "position": _num(real.position),
        "avg_cost": _num(real.avg_cost_basis),
        "current_price": _num(report.current_price),
        "current_value": _num(real.current_value),
        "realized_pnl": _num(real.realized_pnl),
        "unrealized_pnl": _num(real.unrealized_pnl),
        "total_pnl": _num(real.total_pnl),
        "daily_pnl": _num(report.daily_pnl),
        "options_pnl": _num(report.options_pnl),
        "percentage": _num(real.percentage_return),
        "lowest_open_buy_price": _num(real.lowest_open_buy_price),
        "lowest_open_buy_days_ago": real.lowest_open_buy_days_ago,
        "recent_lowest_buy_price": _num(real.recent_lowest_buy_price),
        "recent_lowest_buy_days_ago": real.recent_lowest_buy_days_ago,
        "recent_lowest_sell_price": _num(real.recent_lowest_sell_price),
        "recent_lowest_sell_days_ago": real.recent_lowest_sell_days_ago,
    }


def to_price_benchmark(report: PositionReport) -> dict[str, Any]:
    """
    Build a ``price_benchmarks`` row: total P&L observed at the current price.

    Position and cost come from the Average-Cost method, P&L from Real.
    """
    return {
        "symbol": report.symbol,
        "price_level": _num(report.current_price),
        "total_pnl": _num(report.real.total_pnl),
        "position": _num(report.avg_cost.position),
        "avg_cost": _num(report.avg_cost.avg_cost_basis),
        "realized_pnl": _num(report.real.realized_pnl),
        "unrealized_pnl": _num(report.real.unrealized_pnl),
    }


def to_snapshot_records(reports: list[PositionReport], asof_date: date | str) -> list[dict[str, Any]]:
    """Snapshot rows for a full report list, in report order."""
    return [to_snapshot_record(report, asof_date) for report in reports]
