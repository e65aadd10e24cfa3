"""Lot tracker for FIFO/LIFO buy-lot accounting.

One tracker holds the open buy lots of a single symbol for a single
calculation. The matching order is fixed at construction:
- FIFO: sells consume the oldest lot first (front of the queue)
- LIFO: sells consume the newest lot first (back of the queue)
"""

from collections import deque
from decimal import Decimal

from tradepnl.services.pnl.models import Lot, LotOrder


class LotTracker:
    """
    Tracker for lot-based position accounting.

    Handles partial lot closes by replacing the consumed lot with a lot
    carrying the remaining quantity at the same price and date.

    Example:
        >>> tracker = LotTracker(LotOrder.FIFO)
        >>> tracker.add_lot(Lot(quantity=Decimal("10"), price=Decimal("100"), date=day1))
        >>> tracker.add_lot(Lot(quantity=Decimal("10"), price=Decimal("120"), date=day2))
        >>> matches = tracker.match_close(Decimal("15"))
        >>> # Returns: [(Lot(10@$100), 10), (Lot(10@$120), 5)]
        >>> # Leaves: [Lot(5@$120)]
    """

    def __init__(self, order: LotOrder = LotOrder.FIFO) -> None:
        """Initialize an empty tracker with the given matching order."""
        self._order = order
        self._lots: deque[Lot] = deque()

    @property
    def order(self) -> LotOrder:
        """Matching order of this tracker."""
        return self._order

    def add_lot(self, lot: Lot) -> None:
        """
        Append lot to the end of the queue.

        Args:
            lot: Lot to add

        Raises:
            ValueError: If lot quantity is not positive
        """
        if lot.quantity <= 0:
            raise ValueError(f"Lot quantity must be positive, got {lot.quantity}")
        self._lots.append(lot)

    def get_lots(self) -> list[Lot]:
        """Open lots, oldest first."""
        return list(self._lots)

    def total_quantity(self) -> Decimal:
        """Total open quantity across all lots."""
        return sum((lot.quantity for lot in self._lots), start=Decimal("0"))

    def total_cost(self) -> Decimal:
        """Total cost of the open quantity."""
        return sum((lot.cost for lot in self._lots), start=Decimal("0"))

    def has_position(self) -> bool:
        """Check if any lots remain open."""
        return len(self._lots) > 0

    def match_close(self, quantity: Decimal) -> list[tuple[Lot, Decimal]]:
        """
        Match a sell quantity against open lots in tracker order.

        Selling more than is held consumes every open lot and leaves the
        excess unmatched: a sell of shares bought before the trade history
        began is valid input.

        Args:
            quantity: Quantity sold (positive)

        Returns:
            List of (lot, quantity_matched) tuples in match order

        Raises:
            ValueError: If quantity is zero or negative
        """
        if quantity <= 0:
            raise ValueError(f"Quantity must be positive, got {quantity}")

        matches: list[tuple[Lot, Decimal]] = []
        remaining_to_close = quantity

        while remaining_to_close > 0 and self._lots:
            lot = self._peek()
            matched = min(lot.quantity, remaining_to_close)
            self._pop()
            matches.append((lot, matched))
            remaining_to_close -= matched

            if matched < lot.quantity:
                # Partial close - put the remainder back where it came from
                self._push_back(lot.model_copy(update={"quantity": lot.quantity - matched}))

        return matches

    def _peek(self) -> Lot:
        return self._lots[0] if self._order == LotOrder.FIFO else self._lots[-1]

    def _pop(self) -> Lot:
        return self._lots.popleft() if self._order == LotOrder.FIFO else self._lots.pop()

    def _push_back(self, lot: Lot) -> None:
        if self._order == LotOrder.FIFO:
            self._lots.appendleft(lot)
        else:
            self._lots.append(lot)
