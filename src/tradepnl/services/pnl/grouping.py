"""Partition trades by symbol in execution order."""

from datetime import datetime, tzinfo
from typing import Iterable, Optional

from tradepnl.services.pnl.diagnostics import Diagnostics
from tradepnl.services.pnl.models import PnLConfig, Trade

_DEFAULT_TZ = PnLConfig().tzinfo


def is_degenerate(trade: Trade) -> bool:
    """Trade violates the parser contract (quantity > 0, price > 0)."""
    return trade.quantity <= 0 or trade.price <= 0


def execution_time(trade: Trade, tz: tzinfo = _DEFAULT_TZ) -> datetime:
    """Timezone-aware execution time; naive timestamps are read as ``tz`` wall time."""
    when = trade.date
    return when.replace(tzinfo=tz) if when.tzinfo is None else when


def group_trades_by_symbol(
    trades: Iterable[Trade],
    diagnostics: Optional[Diagnostics] = None,
    tz: tzinfo = _DEFAULT_TZ,
) -> dict[str, list[Trade]]:
    """
    Group trades by symbol, each group sorted chronologically.

    Lot matching depends on processing executions in time order, not in
    file order. The sort is stable so same-instant trades keep their input
    order. Naive and timezone-aware timestamps may be mixed: naive ones are
    taken as wall time in ``tz``. Degenerate records are skipped.

    Args:
        trades: Flat trade list
        diagnostics: Optional sink for skipped-record notices
        tz: Timezone of naive timestamps (the configured trading timezone)

    Returns:
        Mapping symbol -> sorted trades, keyed in order of first appearance
    """
    groups: dict[str, list[Trade]] = {}
    for trade in trades:
        if is_degenerate(trade):
            if diagnostics is not None:
                diagnostics.emit(
                    "pnl.trade_skipped",
                    f"Skipped trade {trade.id} for {trade.symbol}: quantity={trade.quantity} price={trade.price}",
                    symbol=trade.symbol,
                    trade_id=str(trade.id),
                )
            continue
        groups.setdefault(trade.symbol, []).append(trade)

    return {symbol: sorted(group, key=lambda t: execution_time(t, tz)) for symbol, group in groups.items()}
