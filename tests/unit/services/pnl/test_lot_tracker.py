"""Unit tests for LotTracker - FIFO/LIFO matching logic."""

from datetime import datetime
from decimal import Decimal

import pytest

from tradepnl.services.pnl.lot_tracker import LotTracker
from tradepnl.services.pnl.models import Lot, LotOrder


@pytest.fixture
def timestamp() -> datetime:
    """Standard timestamp for tests."""
    return datetime(2024, 1, 15, 10, 30, 0)


def make_lot(quantity: str, price: str, timestamp: datetime) -> Lot:
    return Lot(quantity=Decimal(quantity), price=Decimal(price), date=timestamp)


class TestFIFOMatching:
    """Test FIFO matching (oldest lot first)."""

    def test_match_full_close_single_lot(self, timestamp: datetime) -> None:
        """Test closing entire position with one lot."""
        tracker = LotTracker(LotOrder.FIFO)
        tracker.add_lot(make_lot("100", "150.00", timestamp))

        matches = tracker.match_close(Decimal("100"))

        assert len(matches) == 1
        assert matches[0][0].price == Decimal("150.00")
        assert matches[0][1] == Decimal("100")
        assert not tracker.has_position()

    def test_match_partial_close_single_lot(self, timestamp: datetime) -> None:
        """Test partial close leaving remainder at the same price."""
        tracker = LotTracker(LotOrder.FIFO)
        tracker.add_lot(make_lot("100", "150.00", timestamp))

        matches = tracker.match_close(Decimal("60"))

        assert matches[0][1] == Decimal("60")
        remaining = tracker.get_lots()
        assert len(remaining) == 1
        assert remaining[0].quantity == Decimal("40")
        assert remaining[0].price == Decimal("150.00")
        assert remaining[0].date == timestamp

    def test_match_fifo_order_multiple_lots(self, timestamp: datetime) -> None:
        """Test FIFO matching closes oldest first."""
        tracker = LotTracker(LotOrder.FIFO)
        tracker.add_lot(make_lot("100", "150.00", timestamp))
        tracker.add_lot(make_lot("50", "155.00", timestamp))
        tracker.add_lot(make_lot("75", "160.00", timestamp))

        # Close 130 shares (lot1 fully + lot2 partially)
        matches = tracker.match_close(Decimal("130"))

        assert [(lot.price, qty) for lot, qty in matches] == [
            (Decimal("150.00"), Decimal("100")),
            (Decimal("155.00"), Decimal("30")),
        ]
        remaining = tracker.get_lots()
        assert [lot.quantity for lot in remaining] == [Decimal("20"), Decimal("75")]
        assert remaining[0].price == Decimal("155.00")

    def test_oversell_consumes_everything_without_error(self, timestamp: datetime) -> None:
        """Test selling more than held matches what exists and stops."""
        tracker = LotTracker(LotOrder.FIFO)
        tracker.add_lot(make_lot("100", "150.00", timestamp))

        matches = tracker.match_close(Decimal("150"))

        assert matches[0][1] == Decimal("100")
        assert tracker.total_quantity() == Decimal("0")

    def test_sell_with_no_lots(self) -> None:
        """Test selling from an empty tracker returns no matches."""
        tracker = LotTracker(LotOrder.FIFO)

        assert tracker.match_close(Decimal("10")) == []

    def test_match_zero_quantity(self) -> None:
        """Test error when closing zero quantity."""
        tracker = LotTracker()

        with pytest.raises(ValueError, match="must be positive"):
            tracker.match_close(Decimal("0"))

    def test_match_negative_quantity(self) -> None:
        """Test error when closing negative quantity."""
        tracker = LotTracker()

        with pytest.raises(ValueError, match="must be positive"):
            tracker.match_close(Decimal("-50"))


class TestLIFOMatching:
    """Test LIFO matching (newest lot first)."""

    def test_match_lifo_order_multiple_lots(self, timestamp: datetime) -> None:
        """Test LIFO matching closes newest first."""
        tracker = LotTracker(LotOrder.LIFO)
        tracker.add_lot(make_lot("100", "150.00", timestamp))
        tracker.add_lot(make_lot("100", "155.00", timestamp))

        matches = tracker.match_close(Decimal("150"))

        assert [(lot.price, qty) for lot, qty in matches] == [
            (Decimal("155.00"), Decimal("100")),
            (Decimal("150.00"), Decimal("50")),
        ]
        remaining = tracker.get_lots()
        assert len(remaining) == 1
        assert remaining[0].quantity == Decimal("50")
        assert remaining[0].price == Decimal("150.00")

    def test_partial_close_keeps_remainder_newest(self, timestamp: datetime) -> None:
        """Test a partially closed newest lot stays at the back."""
        tracker = LotTracker(LotOrder.LIFO)
        tracker.add_lot(make_lot("10", "100", timestamp))
        tracker.add_lot(make_lot("10", "120", timestamp))

        tracker.match_close(Decimal("4"))
        matches = tracker.match_close(Decimal("6"))

        assert [(lot.price, qty) for lot, qty in matches] == [(Decimal("120"), Decimal("6"))]
        assert [lot.price for lot in tracker.get_lots()] == [Decimal("100")]


class TestTrackerState:
    """Test tracker bookkeeping."""

    def test_totals(self, timestamp: datetime) -> None:
        """Test total quantity and cost across lots."""
        tracker = LotTracker()
        tracker.add_lot(make_lot("10", "100", timestamp))
        tracker.add_lot(make_lot("5", "120", timestamp))

        assert tracker.total_quantity() == Decimal("15")
        assert tracker.total_cost() == Decimal("1600")
        assert tracker.has_position()

    def test_add_lot_rejects_non_positive_quantity(self, timestamp: datetime) -> None:
        """Test adding an empty lot is an error."""
        tracker = LotTracker()

        with pytest.raises(ValueError, match="must be positive"):
            tracker.add_lot(make_lot("0", "100", timestamp))

    def test_default_order_is_fifo(self) -> None:
        """Test default tracker order."""
        assert LotTracker().order == LotOrder.FIFO
