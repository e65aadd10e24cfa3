"""P&L service implementation.

Assembles per-symbol position reports under all four accounting methods.
The calculation is a pure function of its inputs: it is re-run in full on
every price refresh, manual price edit or split change, so no state is
carried between calls.
"""

from datetime import date, datetime
from decimal import Decimal, InvalidOperation
from typing import Iterable, Mapping, Optional, Union

from tradepnl.services.pnl.daily import calculate_daily_metrics
from tradepnl.services.pnl.diagnostics import DebugCallback, Diagnostics
from tradepnl.services.pnl.grouping import group_trades_by_symbol
from tradepnl.services.pnl.instruments import OptionContract, resolve_instrument
from tradepnl.services.pnl.methods import (
    calculate_average_cost,
    calculate_fifo,
    calculate_lifo,
    calculate_real,
    quantize,
)
from tradepnl.services.pnl.models import MethodResult, PnLConfig, PositionReport, RealResult, Trade
from tradepnl.services.pnl.rollup import attach_option_rollups
from tradepnl.system import LoggerFactory

logger = LoggerFactory.get_logger()

PriceValue = Union[Decimal, int, float, str]
PriceMap = Mapping[str, PriceValue]


class PnLService:
    """
    Multi-method P&L calculator.

    Runs Real (cash-flow), Average Cost, FIFO and LIFO over each symbol's
    trades, adds daily metrics, rolls options into their underlying rows and
    returns the stock rows sorted by symbol.

    Attributes:
        config: Service configuration

    Example:
        >>> service = PnLService(PnLConfig())
        >>> reports = service.calculate(
        ...     trades,
        ...     current_prices={"AAPL": Decimal("190.00")},
        ...     previous_close_prices={"AAPL": Decimal("188.50")},
        ...     as_of=date(2024, 6, 3),
        ... )
        >>> reports[0].fifo.realized_pnl
        Decimal('650.00')
    """

    def __init__(self, config: Optional[PnLConfig] = None) -> None:
        """
        Initialize P&L service.

        Args:
            config: Service configuration (defaults to PnLConfig())
        """
        self.config = config or PnLConfig()

    def today(self) -> date:
        """Current calendar day in the configured timezone."""
        return datetime.now(self.config.tzinfo).date()

    def calculate(
        self,
        trades: Iterable[Trade],
        current_prices: Optional[PriceMap] = None,
        previous_close_prices: Optional[PriceMap] = None,
        debug_callback: Optional[DebugCallback] = None,
        *,
        as_of: Optional[date] = None,
    ) -> list[PositionReport]:
        """
        Calculate position reports for a trade history.

        Args:
            trades: Parsed (and split-adjusted) trades
            current_prices: Symbol -> current price; missing symbols price at 0
            previous_close_prices: Symbol -> previous close; missing symbols at 0
            debug_callback: Optional sink for anomaly narration
            as_of: Day treated as "today" (defaults to today in config.timezone)

        Returns:
            Non-option reports sorted by symbol, options nested under ``options``
        """
        diagnostics = Diagnostics(debug_callback)
        as_of = as_of or self.today()
        if isinstance(as_of, datetime):
            as_of = as_of.date()
        trades = list(trades)

        option_count = sum(1 for t in trades if t.is_option)
        diagnostics.emit(
            "pnl.input",
            f"Input: {len(trades)} trades, {option_count} are options",
            trades=len(trades),
            options=option_count,
        )

        groups = group_trades_by_symbol(trades, diagnostics, self.config.tzinfo)
        reports = [
            self.calculate_symbol(
                symbol,
                group,
                current_price=self._price(current_prices, symbol, diagnostics),
                previous_close=self._price(previous_close_prices, symbol, diagnostics),
                as_of=as_of,
                diagnostics=diagnostics,
            )
            for symbol, group in groups.items()
        ]

        rows = sorted(attach_option_rollups(reports, diagnostics), key=lambda r: r.symbol)

        logger.info(
            "pnl_service.calculated",
            trades=len(trades),
            symbols=len(groups),
            rows=len(rows),
            as_of=as_of.isoformat(),
        )
        return rows

    def calculate_symbol(
        self,
        symbol: str,
        trades: list[Trade],
        current_price: Decimal,
        previous_close: Decimal,
        as_of: date,
        diagnostics: Optional[Diagnostics] = None,
    ) -> PositionReport:
        """
        Calculate the report of one symbol (no options rollup).

        Args:
            symbol: Group key
            trades: The symbol's trades, chronological
            current_price: Valuation price
            previous_close: Previous session close
            as_of: Day treated as "today"
            diagnostics: Optional anomaly sink

        Returns:
            PositionReport with all four methods and daily metrics
        """
        config = self.config
        instrument = resolve_instrument(symbol, trades)
        is_option = isinstance(instrument, OptionContract)

        real = calculate_real(trades, current_price, as_of, config, diagnostics)
        avg_cost = calculate_average_cost(trades, current_price, config)
        fifo = calculate_fifo(trades, current_price, config)
        lifo = calculate_lifo(trades, current_price, config)

        is_expired = (
            isinstance(instrument, OptionContract) and config.zero_expired_options and instrument.is_expired(as_of)
        )
        if is_expired:
            if diagnostics is not None:
                diagnostics.emit(
                    "pnl.option_expired",
                    f"Expired option detected: {symbol} - Realized P&L: ${real.realized_pnl}",
                    symbol=symbol,
                )
            real = self._expire(real)
            avg_cost = self._expire(avg_cost)
            fifo = self._expire(fifo)
            lifo = self._expire(lifo)

        position = avg_cost.position
        daily = calculate_daily_metrics(
            position,
            current_price,
            previous_close,
            real.todays_realized_profit,
            config.decimal_places,
        )

        if diagnostics is not None and position > 0:
            if not is_option:
                diagnostics.emit(
                    "pnl.daily_pnl",
                    f"[{symbol}] Daily PNL calc: position={position} x "
                    f"(current=${current_price} - prevClose=${previous_close}) = ${daily.daily_pnl}",
                    symbol=symbol,
                )
            if previous_close == 0:
                diagnostics.emit(
                    "pnl.previous_close_missing",
                    f"[{symbol}] previousClose not set, currentPrice={current_price}, position={position}",
                    symbol=symbol,
                )

        first = trades[0] if trades else None
        return PositionReport(
            symbol=symbol,
            instrument=first.instrument if first else symbol,
            is_option=is_option,
            current_price=current_price,
            previous_close=previous_close,
            daily_pnl=daily.daily_pnl,
            made_up_ground=daily.made_up_ground,
            real=real,
            avg_cost=avg_cost,
            fifo=fifo,
            lifo=lifo,
            parent_instrument=instrument.parent if isinstance(instrument, OptionContract) else None,
            is_expired=is_expired,
        )

    def _expire(self, result: MethodResult) -> MethodResult:
        """Close an expired option: keep realized P&L, zero the open position."""
        zero = quantize(Decimal("0"), self.config.decimal_places)
        update: dict[str, Decimal] = {
            "position": zero,
            "unrealized_pnl": zero,
            "total_pnl": result.realized_pnl,
        }
        if isinstance(result, RealResult):
            update["current_value"] = zero
        return result.model_copy(update=update)

    @staticmethod
    def _price(prices: Optional[PriceMap], symbol: str, diagnostics: Diagnostics) -> Decimal:
        """Look up a price; missing or unusable entries count as 0."""
        if not prices or prices.get(symbol) is None:
            return Decimal("0")
        value = prices[symbol]
        try:
            price = value if isinstance(value, Decimal) else Decimal(str(value))
        except InvalidOperation:
            price = None
        if price is None or not price.is_finite():
            diagnostics.emit(
                "pnl.invalid_price",
                f"[{symbol}] Ignoring unusable price {value!r}",
                symbol=symbol,
            )
            return Decimal("0")
        return price


def calculate_pnl(
    trades: Iterable[Trade],
    current_prices: Optional[PriceMap] = None,
    previous_close_prices: Optional[PriceMap] = None,
    debug_callback: Optional[DebugCallback] = None,
    *,
    as_of: Optional[date] = None,
    config: Optional[PnLConfig] = None,
) -> list[PositionReport]:
    """
    Calculate position reports with a one-off service.

    See :meth:`PnLService.calculate`.
    """
    return PnLService(config).calculate(
        trades,
        current_prices,
        previous_close_prices,
        debug_callback,
        as_of=as_of,
    )
