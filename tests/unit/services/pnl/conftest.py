"""Test configuration and fixtures for P&L service tests."""

from datetime import date, datetime
from decimal import Decimal
from itertools import count
from typing import Callable

import pytest

from tradepnl.services.pnl.models import PnLConfig, Trade

AS_OF = date(2024, 6, 14)

TradeFactory = Callable[..., Trade]


def _day(n: int, hour: int = 10) -> datetime:
    """Timestamp on day ``n`` of June 2024."""
    return datetime(2024, 6, n, hour, 30)


@pytest.fixture
def as_of() -> date:
    """Calendar day treated as today."""
    return AS_OF


@pytest.fixture
def config() -> PnLConfig:
    """Default P&L configuration."""
    return PnLConfig()


@pytest.fixture
def make_trade() -> TradeFactory:
    """Factory for trades with sequential ids."""
    ids = count(1)

    def _make(
        symbol: str,
        side: str,
        quantity: str | int,
        price: str | int,
        when: datetime,
        *,
        is_option: bool = False,
        description: str = "",
    ) -> Trade:
        quantity = Decimal(str(quantity))
        price = Decimal(str(price))
        return Trade(
            id=f"t{next(ids):03d}",
            date=when,
            symbol=symbol,
            instrument=symbol,
            description=description or symbol,
            is_option=is_option,
            is_buy=side == "buy",
            quantity=quantity,
            price=price,
            amount=quantity * price * (-1 if side == "buy" else 1),
        )

    return _make


@pytest.fixture
def lot_order_trades(make_trade: TradeFactory) -> list[Trade]:
    """Buy 10 @ $100, buy 10 @ $120, sell 15 @ $150 on consecutive days."""
    return [
        make_trade("AAPL", "buy", 10, 100, _day(1)),
        make_trade("AAPL", "buy", 10, 120, _day(2)),
        make_trade("AAPL", "sell", 15, 150, _day(3)),
    ]
