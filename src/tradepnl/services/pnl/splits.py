"""Stock split adjustment applied to trade history before calculation.

A split ratio of 4 (4-for-1) turns a historical buy of 100 @ $400 into
400 @ $100. Notional (quantity * price) is preserved, so cash-flow P&L is
unchanged while per-share figures become comparable with post-split prices.
"""

from decimal import Decimal
from typing import Iterable, Mapping, Union

from tradepnl.services.pnl.models import Trade

Ratio = Union[Decimal, int, float, str]


def _to_decimal(value: Ratio) -> Decimal:
    return value if isinstance(value, Decimal) else Decimal(str(value))


def validate_split_ratios(ratios: Mapping[str, Ratio]) -> None:
    """
    Validate split ratios.

    Raises:
        ValueError: If any ratio is zero or negative
    """
    for symbol, ratio in ratios.items():
        if _to_decimal(ratio) <= 0:
            raise ValueError(f"Split ratio for {symbol} must be positive, got {ratio}")


def apply_split_adjustments(trades: Iterable[Trade], ratios: Mapping[str, Ratio]) -> list[Trade]:
    """
    Apply per-symbol split ratios to every historical trade of that symbol.

    ``price' = price / ratio`` and ``quantity' = quantity * ratio``. The
    broker ``amount`` is left as reported. Trades of symbols without a ratio
    are returned as-is; inputs are never mutated.

    Args:
        trades: Trades to adjust
        ratios: Symbol -> split ratio (new shares per old share)

    Returns:
        New list of trades

    Raises:
        ValueError: If any ratio is zero or negative

    Example:
        >>> adjusted = apply_split_adjustments(trades, {"NVDA": Decimal("10")})
    """
    validate_split_ratios(ratios)

    adjusted: list[Trade] = []
    for trade in trades:
        ratio = ratios.get(trade.symbol)
        if ratio is None:
            adjusted.append(trade)
            continue
        factor = _to_decimal(ratio)
        adjusted.append(
            trade.model_copy(
                update={
                    "price": trade.price / factor,
                    "quantity": trade.quantity * factor,
                }
            )
        )
    return adjusted
