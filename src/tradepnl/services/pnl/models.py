"""Data models for the P&L service.

Defines all core entities for multi-method position accounting:
- Trade: Broker execution as delivered by the upstream parser
- Lot: Open buy lot used by the lot-matching methods
- MethodResult / RealResult: Per-method accounting outputs
- PositionReport: Per-symbol report returned to callers
- PnLConfig: Service configuration
"""

from datetime import datetime
from decimal import Decimal
from enum import Enum
from pathlib import Path
from uuid import uuid4
from zoneinfo import ZoneInfo, ZoneInfoNotFoundError

from pydantic import BaseModel, ConfigDict, Field, field_validator


class LotOrder(str, Enum):
    """Which end of the open-lot queue a sell consumes first."""

    FIFO = "fifo"
    LIFO = "lifo"


class Trade(BaseModel):
    """
    Single brokerage execution.

    Trades arrive already parsed and (if applicable) split-adjusted. For
    options, ``symbol`` is the full contract description rather than a ticker.

    Attributes:
        id: Execution identifier
        date: Execution timestamp
        symbol: Grouping key (ticker, or full description for options)
        instrument: Raw ticker/description as supplied by the broker
        description: Broker description text
        is_option: Whether the execution is an option contract
        is_buy: True for buys, False for sells
        quantity: Shares/contracts executed (expected > 0)
        price: Execution price (expected > 0)
        amount: Broker-reported cash amount (informational)

    Example:
        >>> trade = Trade(
        ...     date=datetime(2024, 1, 15, 10, 30),
        ...     symbol="AAPL",
        ...     instrument="AAPL",
        ...     is_buy=True,
        ...     quantity=Decimal("10"),
        ...     price=Decimal("150.00"),
        ... )
    """

    id: str | int = Field(default_factory=lambda: str(uuid4()))
    date: datetime
    symbol: str
    instrument: str = ""
    description: str = ""
    is_option: bool = False
    is_buy: bool
    quantity: Decimal
    price: Decimal
    amount: Decimal | None = None

    @property
    def notional(self) -> Decimal:
        """Quantity times price."""
        return self.quantity * self.price

    model_config = ConfigDict(frozen=True)


class Lot(BaseModel):
    """
    Open buy lot awaiting matching sells.

    Created when a buy is processed; replaced by a smaller lot on partial
    consumption and dropped when fully consumed.
    """

    quantity: Decimal
    price: Decimal
    date: datetime

    @property
    def cost(self) -> Decimal:
        """Cost of the remaining quantity."""
        return self.quantity * self.price

    model_config = ConfigDict(frozen=True)


class TradeMark(BaseModel):
    """Price/date pair with its age in whole calendar days."""

    price: Decimal
    date: datetime
    days_ago: int

    model_config = ConfigDict(frozen=True)


class MethodResult(BaseModel):
    """
    Accounting result of one method for one symbol.

    Attributes:
        realized_pnl: P&L attributed to shares already sold
        unrealized_pnl: Paper P&L on shares still held
        total_pnl: realized + unrealized
        position: Open quantity (near-zero noise reported as 0)
        avg_cost_basis: Average cost of the open position
    """

    realized_pnl: Decimal = Decimal("0")
    unrealized_pnl: Decimal = Decimal("0")
    total_pnl: Decimal = Decimal("0")
    position: Decimal = Decimal("0")
    avg_cost_basis: Decimal = Decimal("0")

    model_config = ConfigDict(frozen=True)


class RealResult(MethodResult):
    """
    Cash-flow ("Real") method result with sale-opportunity diagnostics.

    ``realized_pnl`` is total sell proceeds minus total buy cost, so
    ``unrealized_pnl`` is the full market value of the open position.

    The ``recent_lowest_*`` single values mirror the first entry of each
    list for the snapshot table columns of the same name.
    """

    percentage_return: Decimal = Decimal("0")
    current_value: Decimal = Decimal("0")
    lowest_open_buy_price: Decimal = Decimal("0")
    lowest_open_buy_days_ago: int = 0
    recent_lowest_buys: list[TradeMark] = Field(default_factory=list)
    recent_sells: list[TradeMark] = Field(default_factory=list)
    recent_lowest_buy_price: Decimal = Decimal("0")
    recent_lowest_buy_days_ago: int = 0
    recent_lowest_sell_price: Decimal = Decimal("0")
    recent_lowest_sell_days_ago: int = 0
    todays_realized_profit: Decimal = Decimal("0")


class PositionReport(BaseModel):
    """
    Per-symbol position and P&L report under all four methods.

    Option reports are nested under their parent's ``options`` list; the
    ``options_*`` aggregates are populated on stock rows only.

    Attributes:
        symbol: Grouping key
        instrument: Raw instrument of the first trade
        is_option: Symbol represents an option contract
        current_price: Price used for valuation (0 if unknown)
        previous_close: Previous session close (0 if unknown)
        daily_pnl: (current - previous close) * open position
        made_up_ground: Daily profit captured while the price fell
        real: Cash-flow method result
        avg_cost: Average-cost method result
        fifo: FIFO method result
        lifo: LIFO method result
        parent_instrument: Underlying ticker (options only)
        options_pnl: Sum of option real.total_pnl
        options_daily_pnl: Sum of option daily_pnl
        options_made_up_ground: Sum of option made_up_ground
        options_count: Number of options rolled into this row
        options: Option reports rolled into this row
        is_rollup: Synthetic parent built from options only
        is_expired: Option past its expiry date (positions zeroed)
    """

    symbol: str
    instrument: str = ""
    is_option: bool = False
    current_price: Decimal = Decimal("0")
    previous_close: Decimal = Decimal("0")
    daily_pnl: Decimal = Decimal("0")
    made_up_ground: Decimal = Decimal("0")
    real: RealResult = Field(default_factory=RealResult)
    avg_cost: MethodResult = Field(default_factory=MethodResult)
    fifo: MethodResult = Field(default_factory=MethodResult)
    lifo: MethodResult = Field(default_factory=MethodResult)
    parent_instrument: str | None = None
    options_pnl: Decimal = Decimal("0")
    options_daily_pnl: Decimal = Decimal("0")
    options_made_up_ground: Decimal = Decimal("0")
    options_count: int = 0
    options: list["PositionReport"] = Field(default_factory=list)
    is_rollup: bool = False
    is_expired: bool = False

    model_config = ConfigDict(frozen=True)


class PnLConfig(BaseModel):
    """
    Configuration for P&L service.

    Attributes:
        position_epsilon: Open quantity at or below this is treated as closed
        position_mismatch_tolerance: Allowed gap between the Real method's lot
            queue and its running position before falling back to the
            all-buys average cost
        max_tracked_trades: Length of the recent lowest buys / recent sells lists
        decimal_places: Rounding applied to every reported figure
        timezone: Timezone defining "today" and calendar-day ages
        zero_expired_options: Zero positions of options past their expiry date

    Example:
        >>> config = PnLConfig(max_tracked_trades=5, zero_expired_options=True)
    """

    position_epsilon: Decimal = Decimal("0.0001")
    position_mismatch_tolerance: Decimal = Decimal("0.01")
    max_tracked_trades: int = 10
    decimal_places: int = 2
    timezone: str = "America/New_York"
    zero_expired_options: bool = False

    @field_validator("position_epsilon", "position_mismatch_tolerance")
    @classmethod
    def validate_tolerance(cls, v: Decimal) -> Decimal:
        """Validate tolerances are positive."""
        if v <= 0:
            raise ValueError(f"Tolerance must be positive, got {v}")
        return v

    @field_validator("max_tracked_trades")
    @classmethod
    def validate_max_tracked(cls, v: int) -> int:
        """Validate tracked list length is positive."""
        if v <= 0:
            raise ValueError(f"max_tracked_trades must be positive, got {v}")
        return v

    @field_validator("decimal_places")
    @classmethod
    def validate_decimal_places(cls, v: int) -> int:
        """Validate rounding precision."""
        if v < 0:
            raise ValueError(f"decimal_places cannot be negative, got {v}")
        return v

    @field_validator("timezone")
    @classmethod
    def validate_timezone(cls, v: str) -> str:
        """Validate timezone is a known IANA name."""
        try:
            ZoneInfo(v)
        except (ZoneInfoNotFoundError, ValueError) as e:
            raise ValueError(f"Unknown timezone: {v}") from e
        return v

    @property
    def tzinfo(self) -> ZoneInfo:
        """Timezone object for calendar-day calculations."""
        return ZoneInfo(self.timezone)

    @classmethod
    def from_yaml(cls, path: Path) -> "PnLConfig":
        """Load configuration from the ``pnl`` section of a YAML file."""
        import yaml

        with open(path) as f:
            data = yaml.safe_load(f) or {}
        return cls(**(data.get("pnl") or {}))

    model_config = ConfigDict(frozen=True)
