"""Unit tests for PnLService."""

from datetime import date, datetime, timezone
from decimal import Decimal

import pytest

from tradepnl import PnLConfig, PnLService, calculate_pnl

CALL = "AAPL 01/15/2026 $150 Call"


def day(n: int, hour: int = 10) -> datetime:
    return datetime(2024, 6, n, hour, 30)


@pytest.fixture
def book(make_trade) -> list:
    """AAPL shares plus one AAPL call."""
    return [
        make_trade("AAPL", "buy", 10, 100, day(3)),
        make_trade(CALL, "buy", 2, 5, day(4), is_option=True),
    ]


@pytest.fixture
def prices() -> dict[str, Decimal]:
    return {"AAPL": Decimal("110"), CALL: Decimal("7")}


@pytest.fixture
def closes() -> dict[str, Decimal]:
    return {"AAPL": Decimal("105"), CALL: Decimal("6")}


class TestCalculate:
    """Test the end-to-end calculation."""

    def test_report_fields(self, lot_order_trades, as_of: date) -> None:
        (report,) = PnLService().calculate(
            lot_order_trades,
            {"AAPL": Decimal("150")},
            {"AAPL": Decimal("140")},
            as_of=as_of,
        )

        assert report.symbol == "AAPL"
        assert report.instrument == "AAPL"
        assert not report.is_option
        assert report.current_price == Decimal("150")
        assert report.real.total_pnl == Decimal("800.00")
        assert report.avg_cost.avg_cost_basis == Decimal("110.00")
        assert report.fifo.realized_pnl == Decimal("650.00")
        assert report.lifo.realized_pnl == Decimal("550.00")
        assert report.daily_pnl == Decimal("50.00")  # avg-cost position 5 * (150 - 140)
        assert report.made_up_ground == Decimal("0")

    def test_options_roll_into_parent(self, book, prices, closes, as_of: date) -> None:
        reports = PnLService().calculate(book, prices, closes, as_of=as_of)

        assert [r.symbol for r in reports] == ["AAPL"]
        aapl = reports[0]
        assert aapl.options_count == 1
        assert aapl.options_pnl == Decimal("4.00")  # -10 cash + 2 * 7
        assert aapl.options_daily_pnl == Decimal("2.00")
        assert aapl.real.total_pnl == Decimal("100.00")

        (call,) = aapl.options
        assert call.is_option
        assert call.parent_instrument == "AAPL"
        assert not call.is_expired
        assert call.real.position == Decimal("2")

    def test_options_only_reports_nothing(self, make_trade, as_of: date) -> None:
        messages: list[str] = []
        trades = [make_trade("TSLA 01/15/2026 $300 Put", "buy", 1, 12, day(1), is_option=True)]

        reports = PnLService().calculate(trades, debug_callback=messages.append, as_of=as_of)

        assert reports == []
        assert "Options for TSLA have no stock row and are not reported" in messages

    def test_option_without_parent(self, make_trade, as_of: date) -> None:
        messages: list[str] = []
        trades = [
            make_trade("AAPL", "buy", 1, 100, day(1)),
            make_trade("weekly call", "buy", 1, 2, day(1), is_option=True),
        ]

        reports = PnLService().calculate(trades, debug_callback=messages.append, as_of=as_of)

        assert [r.symbol for r in reports] == ["AAPL"]
        assert reports[0].options_count == 0
        assert messages[0] == "Input: 2 trades, 1 are options"
        assert "Option without parent: weekly call" in messages

    def test_sorted_by_symbol(self, make_trade, as_of: date) -> None:
        trades = [make_trade(s, "buy", 1, 10, day(1)) for s in ("MSFT", "AAPL", "GOOG")]

        reports = calculate_pnl(trades, as_of=as_of)

        assert [r.symbol for r in reports] == ["AAPL", "GOOG", "MSFT"]

    def test_trades_are_sorted_before_matching(self, make_trade, as_of: date) -> None:
        """Test file order does not affect lot matching."""
        trades = [
            make_trade("AAPL", "sell", 15, 150, day(3)),
            make_trade("AAPL", "buy", 10, 120, day(2)),
            make_trade("AAPL", "buy", 10, 100, day(1)),
        ]

        (report,) = calculate_pnl(trades, {"AAPL": 150}, as_of=as_of)

        assert report.fifo.realized_pnl == Decimal("650.00")

    def test_same_timestamp_keeps_input_order(self, make_trade, as_of: date) -> None:
        """Test a buy and a sell at the same instant are processed as given."""
        trades = [
            make_trade("AAPL", "buy", 10, 100, day(1)),
            make_trade("AAPL", "sell", 10, 110, day(1)),
        ]

        (report,) = calculate_pnl(trades, {"AAPL": 110}, as_of=as_of)

        assert report.fifo.realized_pnl == Decimal("100.00")
        assert report.fifo.position == Decimal("0")

    def test_idempotent(self, book, prices, closes, as_of: date) -> None:
        service = PnLService()

        first = service.calculate(book, prices, closes, as_of=as_of)
        second = service.calculate(book, prices, closes, as_of=as_of)

        assert first == second

    def test_mixed_naive_and_aware_timestamps(self, make_trade, as_of: date) -> None:
        """Test one symbol may mix naive and timezone-aware execution times."""
        trades = [
            make_trade("AAPL", "buy", 10, 100, datetime(2024, 6, 1, 10, 0)),
            make_trade("AAPL", "sell", 4, 120, datetime(2024, 6, 2, 14, 0, tzinfo=timezone.utc)),
        ]

        (report,) = calculate_pnl(trades, {"AAPL": 110}, as_of=as_of)

        assert report.fifo.realized_pnl == Decimal("80.00")
        assert report.fifo.position == Decimal("6")

    def test_empty_input(self, as_of: date) -> None:
        assert calculate_pnl([], as_of=as_of) == []

    def test_datetime_as_of_uses_its_date(self, book, prices, closes, as_of: date) -> None:
        by_date = calculate_pnl(book, prices, closes, as_of=as_of)
        by_datetime = calculate_pnl(book, prices, closes, as_of=datetime(2024, 6, 14, 16, 0))

        assert by_date == by_datetime

    def test_default_as_of_is_today(self, book, prices, closes) -> None:
        service = PnLService()

        assert service.calculate(book, prices, closes) == service.calculate(
            book, prices, closes, as_of=service.today()
        )


class TestPrices:
    """Test price lookup."""

    def test_missing_prices_value_at_zero(self, book, as_of: date) -> None:
        messages: list[str] = []

        (aapl,) = calculate_pnl(book, debug_callback=messages.append, as_of=as_of)

        assert aapl.current_price == Decimal("0")
        assert aapl.real.unrealized_pnl == Decimal("0")
        assert aapl.real.total_pnl == Decimal("-1000.00")
        assert "[AAPL] previousClose not set, currentPrice=0, position=10.00" in messages

    @pytest.mark.parametrize("bad", ["abc", float("nan"), float("inf")])
    def test_unusable_price_counts_as_zero(self, book, as_of: date, bad) -> None:
        messages: list[str] = []

        (aapl,) = calculate_pnl(book, {"AAPL": bad}, debug_callback=messages.append, as_of=as_of)

        assert aapl.current_price == Decimal("0")
        assert any(m.startswith("[AAPL] Ignoring unusable price") for m in messages)

    def test_numeric_prices_accepted(self, book, as_of: date) -> None:
        (aapl,) = calculate_pnl(book, {"AAPL": 110.5, CALL: "7"}, {"AAPL": 110}, as_of=as_of)

        assert aapl.current_price == Decimal("110.5")
        assert aapl.daily_pnl == Decimal("5.00")


class TestMadeUpGround:
    """Test Made Up Ground through the service."""

    def test_sold_into_a_down_day(self, make_trade, as_of: date) -> None:
        trades = [
            make_trade("AAPL", "buy", 20, 100, day(10)),
            make_trade("AAPL", "sell", 10, 108, day(14, hour=11)),
        ]

        (report,) = calculate_pnl(trades, {"AAPL": 104}, {"AAPL": 106}, as_of=as_of)

        assert report.real.todays_realized_profit == Decimal("80.00")
        assert report.daily_pnl == Decimal("-20.00")
        assert report.made_up_ground == Decimal("60.00")


class TestExpiredOptions:
    """Test expiry handling."""

    def test_zeroed_when_enabled(self, book, prices, closes) -> None:
        messages: list[str] = []
        config = PnLConfig(zero_expired_options=True)

        (aapl,) = calculate_pnl(
            book, prices, closes, messages.append, as_of=date(2026, 2, 1), config=config
        )

        (call,) = aapl.options
        assert call.is_expired
        for result in (call.real, call.avg_cost, call.fifo, call.lifo):
            assert result.position == Decimal("0")
            assert result.unrealized_pnl == Decimal("0")
            assert result.total_pnl == result.realized_pnl
        assert call.real.total_pnl == Decimal("-10.00")
        assert call.real.current_value == Decimal("0")
        assert call.daily_pnl == Decimal("0")
        assert aapl.options_pnl == Decimal("-10.00")
        assert any(m.startswith(f"Expired option detected: {CALL}") for m in messages)

    def test_left_open_by_default(self, book, prices, closes) -> None:
        (aapl,) = calculate_pnl(book, prices, closes, as_of=date(2026, 2, 1))

        (call,) = aapl.options
        assert not call.is_expired
        assert call.real.position == Decimal("2")

    def test_not_expired_on_expiry_day(self, book, prices, closes) -> None:
        config = PnLConfig(zero_expired_options=True)

        (aapl,) = calculate_pnl(book, prices, closes, as_of=date(2026, 1, 15), config=config)

        assert not aapl.options[0].is_expired
