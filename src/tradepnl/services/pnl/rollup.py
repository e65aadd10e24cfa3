"""Options rollup: attribute option P&L to the underlying instrument."""

from decimal import Decimal
from typing import Iterable, Optional, Sequence

from tradepnl.services.pnl.diagnostics import Diagnostics
from tradepnl.services.pnl.models import MethodResult, PositionReport, RealResult

_ZERO = Decimal("0")


def _sum(values: Iterable[Decimal]) -> Decimal:
    return sum(values, start=_ZERO)


def group_options_by_parent(
    reports: Iterable[PositionReport],
    diagnostics: Optional[Diagnostics] = None,
) -> dict[str, list[PositionReport]]:
    """
    Collect option reports under their parent ticker.

    Options whose parent could not be resolved are left out and reported.

    Args:
        reports: Flat per-symbol reports
        diagnostics: Optional sink for resolution notices

    Returns:
        Mapping parent ticker -> option reports (input order)
    """
    by_parent: dict[str, list[PositionReport]] = {}
    for report in reports:
        if not report.is_option:
            continue
        if report.parent_instrument:
            if diagnostics is not None:
                diagnostics.emit(
                    "pnl.option_parent_resolved",
                    f"Option: {report.symbol} -> Parent: {report.parent_instrument}",
                    symbol=report.symbol,
                    parent=report.parent_instrument,
                )
            by_parent.setdefault(report.parent_instrument, []).append(report)
        elif diagnostics is not None:
            diagnostics.emit(
                "pnl.option_without_parent",
                f"Option without parent: {report.symbol}",
                symbol=report.symbol,
            )
    return by_parent


def attach_option_rollups(
    reports: Sequence[PositionReport],
    diagnostics: Optional[Diagnostics] = None,
) -> list[PositionReport]:
    """
    Fold option P&L into parent stock rows and drop options from the top level.

    Every returned row carries ``options_pnl``, ``options_daily_pnl``,
    ``options_made_up_ground``, ``options_count`` and the nested ``options``
    list; rows without options get zeros and an empty list.

    Args:
        reports: Flat per-symbol reports (stocks and options)
        diagnostics: Optional sink for rollup narration

    Returns:
        Non-option reports with rollup fields populated (input order)
    """
    by_parent = group_options_by_parent(reports, diagnostics)
    stock_symbols = {r.symbol for r in reports if not r.is_option}

    if diagnostics is not None:
        tracked = sum(len(options) for options in by_parent.values())
        diagnostics.emit(
            "pnl.options_tracked",
            f"Tracked {tracked} options across {len(by_parent)} parent stocks",
            options=tracked,
            parents=len(by_parent),
        )
        for parent in by_parent:
            if parent not in stock_symbols:
                diagnostics.emit(
                    "pnl.options_without_stock_row",
                    f"Options for {parent} have no stock row and are not reported",
                    parent=parent,
                    options=len(by_parent[parent]),
                )

    rows: list[PositionReport] = []
    for report in reports:
        if report.is_option:
            continue
        options = by_parent.get(report.symbol, [])
        if options and diagnostics is not None:
            diagnostics.emit(
                "pnl.options_rolled_up",
                f"{report.symbol} has {len(options)} options",
                symbol=report.symbol,
                options=len(options),
            )
        rows.append(
            report.model_copy(
                update={
                    "options_pnl": _sum(o.real.total_pnl for o in options),
                    "options_daily_pnl": _sum(o.daily_pnl for o in options),
                    "options_made_up_ground": _sum(o.made_up_ground for o in options),
                    "options_count": len(options),
                    "options": list(options),
                }
            )
        )
    return rows


def rollup_options_by_parent(reports: Sequence[PositionReport]) -> list[PositionReport]:
    """
    Group options under synthetic parent rows.

    Alternative presentation to :func:`attach_option_rollups` for option
    books without stock rows: every option with a resolvable parent is moved
    under a synthetic ``is_rollup`` row whose method figures are the sums of
    its options. The synthetic row has no price of its own. Other rows pass
    through unchanged.

    Args:
        reports: Flat per-symbol reports

    Returns:
        Pass-through rows plus synthetic parents, sorted by symbol
    """
    grouped: dict[str, list[PositionReport]] = {}
    passthrough: list[PositionReport] = []
    for report in reports:
        if report.is_option and report.parent_instrument:
            grouped.setdefault(report.parent_instrument, []).append(report)
        else:
            passthrough.append(report)

    parents = [_synthetic_parent(parent, options) for parent, options in grouped.items()]
    return sorted([*passthrough, *parents], key=lambda r: (r.symbol, r.is_rollup))


def _synthetic_parent(parent: str, options: list[PositionReport]) -> PositionReport:
    def lot_sum(method: str) -> MethodResult:
        results = [getattr(o, method) for o in options]
        return MethodResult(
            realized_pnl=_sum(r.realized_pnl for r in results),
            unrealized_pnl=_sum(r.unrealized_pnl for r in results),
            total_pnl=_sum(r.total_pnl for r in results),
        )

    real_total = _sum(o.real.total_pnl for o in options)
    return PositionReport(
        symbol=parent,
        instrument=parent,
        is_option=False,
        is_rollup=True,
        real=RealResult(
            realized_pnl=_sum(o.real.realized_pnl for o in options),
            unrealized_pnl=_sum(o.real.unrealized_pnl for o in options),
            total_pnl=real_total,
        ),
        avg_cost=MethodResult(unrealized_pnl=_sum(o.avg_cost.unrealized_pnl for o in options)),
        fifo=lot_sum("fifo"),
        lifo=lot_sum("lifo"),
        daily_pnl=_sum(o.daily_pnl for o in options),
        made_up_ground=_sum(o.made_up_ground for o in options),
        options_pnl=real_total,
        options_daily_pnl=_sum(o.daily_pnl for o in options),
        options_made_up_ground=_sum(o.made_up_ground for o in options),
        options_count=len(options),
        options=list(options),
    )
