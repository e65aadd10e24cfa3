"""Daily P&L and "Made Up Ground" metrics."""

from dataclasses import dataclass
from decimal import Decimal

from tradepnl.services.pnl.methods import quantize


@dataclass(frozen=True)
class DailyMetrics:
    """Per-symbol daily figures."""

    daily_pnl: Decimal
    made_up_ground: Decimal


def calculate_daily_metrics(
    position: Decimal,
    current_price: Decimal,
    previous_close: Decimal,
    todays_realized_profit: Decimal,
    places: int = 2,
) -> DailyMetrics:
    """
    Calculate daily P&L and Made Up Ground.

    Daily P&L is the price move since the previous close applied to the open
    position. Made Up Ground is the combined daily profit (price move plus
    profit realized by today's sells) on a day the price fell; it is zero
    whenever the price did not fall or the combined profit is not positive.

    Args:
        position: Open quantity (the average-cost position)
        current_price: Current price
        previous_close: Previous session close
        todays_realized_profit: Profit realized by sells dated today
        places: Rounding precision

    Returns:
        DailyMetrics(daily_pnl, made_up_ground)

    Example:
        >>> calculate_daily_metrics(Decimal("10"), Decimal("95"), Decimal("100"), Decimal("80"))
        DailyMetrics(daily_pnl=Decimal('-50.00'), made_up_ground=Decimal('30.00'))
    """
    zero = quantize(Decimal("0"), places)
    daily_pnl = quantize((current_price - previous_close) * position, places) if position > 0 else zero

    total_daily_profit = daily_pnl + todays_realized_profit
    if current_price < previous_close and total_daily_profit > 0:
        made_up_ground = total_daily_profit
    else:
        made_up_ground = zero

    return DailyMetrics(daily_pnl=daily_pnl, made_up_ground=made_up_ground)
