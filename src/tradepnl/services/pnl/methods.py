"""Accounting methods: Real (cash-flow), FIFO, LIFO and Average Cost.

Pure functions over one symbol's chronologically sorted trades. Each call
builds and discards its own lot state; nothing is shared between symbols
or between calls.

Internal arithmetic is unrounded; every reported figure is rounded to
``PnLConfig.decimal_places`` with ROUND_HALF_UP.

Usage:
    >>> from tradepnl.services.pnl import methods
    >>> fifo = methods.calculate_fifo(trades, current_price=Decimal("150"))
    >>> fifo.realized_pnl
    Decimal('650.00')
"""

from datetime import date, datetime, tzinfo
from decimal import ROUND_HALF_UP, Decimal
from typing import Optional, Sequence

from tradepnl.services.pnl.diagnostics import Diagnostics
from tradepnl.services.pnl.grouping import is_degenerate
from tradepnl.services.pnl.lot_tracker import LotTracker
from tradepnl.services.pnl.models import Lot, LotOrder, MethodResult, PnLConfig, RealResult, Trade, TradeMark

_DEFAULT_CONFIG = PnLConfig()
_ZERO = Decimal("0")


def quantize(value: Decimal, places: int = 2) -> Decimal:
    """
    Round half-up to ``places`` decimals, normalizing negative zero.

    Example:
        >>> quantize(Decimal("2.345"))
        Decimal('2.35')
        >>> quantize(Decimal("-0.001"))
        Decimal('0.00')
    """
    result = value.quantize(Decimal(1).scaleb(-places), rounding=ROUND_HALF_UP)
    return result.copy_abs() if result == 0 else result


def trade_day(when: datetime, tz: tzinfo) -> date:
    """Calendar day of a timestamp; aware timestamps are converted to ``tz`` first."""
    if when.tzinfo is not None:
        when = when.astimezone(tz)
    return when.date()


def days_ago(when: datetime, as_of: date, tz: tzinfo) -> int:
    """Whole calendar days between a timestamp and ``as_of``."""
    return (as_of - trade_day(when, tz)).days


def calculate_lot_method(
    trades: Sequence[Trade],
    current_price: Decimal,
    order: LotOrder,
    config: PnLConfig = _DEFAULT_CONFIG,
) -> MethodResult:
    """
    Lot-matched P&L with the given consumption order.

    Each sell is matched against open lots; every match realizes
    ``(sell_price - lot.price) * matched_qty``. The lots left over define the
    open position and its average cost. Positions at or below
    ``config.position_epsilon`` are rounding residue and reported as closed.

    Args:
        trades: One symbol's trades, chronological
        current_price: Valuation price for the open position
        order: FIFO or LIFO
        config: Tolerances and rounding

    Returns:
        MethodResult for the method
    """
    tracker = LotTracker(order)
    realized = _ZERO

    for trade in trades:
        if is_degenerate(trade):
            continue
        if trade.is_buy:
            tracker.add_lot(Lot(quantity=trade.quantity, price=trade.price, date=trade.date))
        else:
            for lot, matched in tracker.match_close(trade.quantity):
                realized += (trade.price - lot.price) * matched

    position = tracker.total_quantity()
    avg_cost_basis = _ZERO
    unrealized = _ZERO
    if position > config.position_epsilon:
        avg_cost_basis = tracker.total_cost() / position
        unrealized = (current_price - avg_cost_basis) * position
    else:
        position = _ZERO

    places = config.decimal_places
    return MethodResult(
        realized_pnl=quantize(realized, places),
        unrealized_pnl=quantize(unrealized, places),
        total_pnl=quantize(realized + unrealized, places),
        position=quantize(position, places),
        avg_cost_basis=quantize(avg_cost_basis, places),
    )


def calculate_fifo(
    trades: Sequence[Trade], current_price: Decimal, config: PnLConfig = _DEFAULT_CONFIG
) -> MethodResult:
    """FIFO: sells consume the oldest open lot first."""
    return calculate_lot_method(trades, current_price, LotOrder.FIFO, config)


def calculate_lifo(
    trades: Sequence[Trade], current_price: Decimal, config: PnLConfig = _DEFAULT_CONFIG
) -> MethodResult:
    """LIFO: sells consume the newest open lot first."""
    return calculate_lot_method(trades, current_price, LotOrder.LIFO, config)


def calculate_average_cost(
    trades: Sequence[Trade], current_price: Decimal, config: PnLConfig = _DEFAULT_CONFIG
) -> MethodResult:
    """
    Average-cost P&L with one blended cost basis.

    ``total_cost`` only ever grows with buy notional; sells reduce
    ``total_shares`` but not cost. Realized P&L books sold shares at the
    blended cost of everything bought.

    Args:
        trades: One symbol's trades, chronological
        current_price: Valuation price for the open position
        config: Tolerances and rounding

    Returns:
        MethodResult for the method
    """
    total_shares = _ZERO
    total_cost = _ZERO
    bought_shares = _ZERO
    sold_shares = _ZERO
    sell_amount = _ZERO

    for trade in trades:
        if is_degenerate(trade):
            continue
        if trade.is_buy:
            total_shares += trade.quantity
            total_cost += trade.notional
            bought_shares += trade.quantity
        else:
            total_shares -= trade.quantity
            sold_shares += trade.quantity
            sell_amount += trade.notional

    avg_cost_basis = _ZERO
    unrealized = _ZERO
    # Residue at or below epsilon carries no basis, as in the lot methods
    if total_shares > config.position_epsilon and total_cost > 0:
        # The denominator is every share ever bought (open + sold), not the
        # open quantity. Kept as-is pending a product decision; pinned by
        # test_denominator_counts_sold_shares.
        avg_cost_basis = total_cost / (total_shares + sold_shares)
        unrealized = (current_price - avg_cost_basis) * total_shares

    realized = _ZERO
    if bought_shares > 0:
        realized = sell_amount - (total_cost / bought_shares) * sold_shares

    if abs(total_shares) <= config.position_epsilon:
        total_shares = _ZERO

    places = config.decimal_places
    return MethodResult(
        realized_pnl=quantize(realized, places),
        unrealized_pnl=quantize(unrealized, places),
        total_pnl=quantize(realized + unrealized, places),
        position=quantize(total_shares, places),
        avg_cost_basis=quantize(avg_cost_basis, places),
    )


def calculate_real(
    trades: Sequence[Trade],
    current_price: Decimal,
    as_of: date,
    config: PnLConfig = _DEFAULT_CONFIG,
    diagnostics: Optional[Diagnostics] = None,
) -> RealResult:
    """
    Cash-flow ("Real") P&L with sale-opportunity diagnostics.

    ``realized = sum(sell notional) - sum(buy notional)``, so the cost of any
    open shares is already inside the realized figure and the open position is
    valued at full market value: ``total = realized + current_price * position``.

    A FIFO lot queue is replayed alongside to derive the display cost basis of
    the open lots and the profit realized by sells dated ``as_of``.

    Args:
        trades: One symbol's trades, chronological
        current_price: Valuation price for the open position
        as_of: Calendar day treated as "today"
        config: Tolerances, list lengths, rounding and timezone
        diagnostics: Optional sink for position-mismatch notices

    Returns:
        RealResult
    """
    tz = config.tzinfo
    places = config.decimal_places
    tracker = LotTracker(LotOrder.FIFO)

    total_buy_amount = _ZERO
    total_sell_amount = _ZERO
    total_buy_shares = _ZERO
    position = _ZERO
    todays_realized_profit = _ZERO
    buys: list[Trade] = []
    sells: list[Trade] = []

    for trade in trades:
        if is_degenerate(trade):
            continue
        if trade.is_buy:
            total_buy_amount += trade.notional
            total_buy_shares += trade.quantity
            position += trade.quantity
            tracker.add_lot(Lot(quantity=trade.quantity, price=trade.price, date=trade.date))
            buys.append(trade)
        else:
            total_sell_amount += trade.notional
            position -= trade.quantity
            sells.append(trade)

            is_todays_sell = trade_day(trade.date, tz) == as_of
            for lot, matched in tracker.match_close(trade.quantity):
                if is_todays_sell:
                    todays_realized_profit += (trade.price - lot.price) * matched

    if abs(position) <= config.position_epsilon:
        position = _ZERO

    realized = total_sell_amount - total_buy_amount
    unrealized = _ZERO
    avg_cost_basis = _ZERO

    if position > 0:
        unrealized = current_price * position
        remaining = tracker.total_quantity()
        if remaining > 0 and abs(remaining - position) <= config.position_mismatch_tolerance:
            avg_cost_basis = tracker.total_cost() / remaining
        else:
            if diagnostics is not None:
                symbol = trades[0].symbol if trades else ""
                diagnostics.emit(
                    "pnl.position_mismatch",
                    f"[{symbol}] Lot queue holds {remaining} but position is {position}; using average of all buys",
                    symbol=symbol,
                    lot_quantity=str(remaining),
                    position=str(position),
                )
            if total_buy_shares > 0:
                avg_cost_basis = total_buy_amount / total_buy_shares

    total = realized + unrealized
    percentage_return = total / total_buy_amount * 100 if total_buy_amount > 0 else _ZERO

    lowest_price = _ZERO
    lowest_days = 0
    if buys:
        lowest = min(buys, key=lambda t: t.price)
        lowest_price = lowest.price
        lowest_days = days_ago(lowest.date, as_of, tz)

    limit = config.max_tracked_trades
    recent_lowest_buys = [
        TradeMark(price=quantize(t.price, places), date=t.date, days_ago=days_ago(t.date, as_of, tz))
        for t in sorted(buys, key=lambda t: t.price)[:limit]
    ]
    recent_sells = [
        TradeMark(price=quantize(t.price, places), date=t.date, days_ago=days_ago(t.date, as_of, tz))
        for t in sorted(sells, key=lambda t: trade_day(t.date, tz), reverse=True)[:limit]
    ]

    return RealResult(
        realized_pnl=quantize(realized, places),
        unrealized_pnl=quantize(unrealized, places),
        total_pnl=quantize(total, places),
        position=quantize(position, places),
        avg_cost_basis=quantize(avg_cost_basis, places),
        percentage_return=quantize(percentage_return, places),
        current_value=quantize(unrealized, places),
        lowest_open_buy_price=quantize(lowest_price, places),
        lowest_open_buy_days_ago=lowest_days,
        recent_lowest_buys=recent_lowest_buys,
        recent_sells=recent_sells,
        recent_lowest_buy_price=recent_lowest_buys[0].price if recent_lowest_buys else _ZERO,
        recent_lowest_buy_days_ago=recent_lowest_buys[0].days_ago if recent_lowest_buys else 0,
        recent_lowest_sell_price=recent_sells[0].price if recent_sells else _ZERO,
        recent_lowest_sell_days_ago=recent_sells[0].days_ago if recent_sells else 0,
        todays_realized_profit=quantize(todays_realized_profit, places),
    )
