"""Instrument resolution for trade groups.

Options arrive with their full contract description as the symbol, e.g.
``"AAPL 01/15/2026 $150 Call"``. The description is parsed once per symbol
group into a tagged instrument so the accounting methods never re-derive
option attributes from strings.
"""

import re
from dataclasses import dataclass
from datetime import date
from decimal import Decimal, InvalidOperation
from typing import Literal, Sequence, Union

from tradepnl.services.pnl.models import Trade

_PARENT_RE = re.compile(r"^([A-Z]+)")
_EXPIRY_RE = re.compile(r"(\d{1,2})/(\d{1,2})/(\d{4})")
_STRIKE_RE = re.compile(r"\$\s*([\d,]+(?:\.\d+)?)")
_RIGHT_RE = re.compile(r"\b(call|put)\b", re.IGNORECASE)

OptionRight = Literal["call", "put"]


@dataclass(frozen=True)
class Stock:
    """Plain equity instrument."""

    symbol: str


@dataclass(frozen=True)
class OptionContract:
    """
    Option contract parsed from its broker description.

    Attributes:
        symbol: Full description used as the grouping key
        parent: Underlying ticker, None when it cannot be resolved
        strike: Strike price if present in the description
        expiry: Expiration date if present in the description
        right: "call" or "put" if present in the description
    """

    symbol: str
    parent: str | None
    strike: Decimal | None = None
    expiry: date | None = None
    right: OptionRight | None = None

    def is_expired(self, as_of: date) -> bool:
        """Expiry strictly before ``as_of``. Unknown expiry never expires."""
        return self.expiry is not None and self.expiry < as_of


Instrument = Union[Stock, OptionContract]


def extract_parent_instrument(description: str | None) -> str | None:
    """
    Leading run of uppercase letters of an option description.

    Example:
        >>> extract_parent_instrument("AAPL 01/15/2026 $150 Call")
        'AAPL'
        >>> extract_parent_instrument("weekly call") is None
        True
    """
    if not description:
        return None
    match = _PARENT_RE.match(description)
    return match.group(1) if match else None


def parse_expiry(description: str) -> date | None:
    """Parse the first MM/DD/YYYY date in a description."""
    match = _EXPIRY_RE.search(description)
    if not match:
        return None
    month, day, year = (int(part) for part in match.groups())
    try:
        return date(year, month, day)
    except ValueError:
        return None


def parse_strike(description: str) -> Decimal | None:
    """Parse a ``$``-prefixed strike price from a description."""
    match = _STRIKE_RE.search(description)
    if not match:
        return None
    try:
        return Decimal(match.group(1).replace(",", ""))
    except InvalidOperation:
        return None


def parse_right(description: str) -> OptionRight | None:
    """Parse "call"/"put" from a description."""
    match = _RIGHT_RE.search(description)
    if not match:
        return None
    return "call" if match.group(1).lower() == "call" else "put"


def parse_option(symbol: str, description: str) -> OptionContract:
    """Build an OptionContract from its description text."""
    return OptionContract(
        symbol=symbol,
        parent=extract_parent_instrument(description),
        strike=parse_strike(description),
        expiry=parse_expiry(description),
        right=parse_right(description),
    )


def resolve_instrument(symbol: str, trades: Sequence[Trade]) -> Instrument:
    """
    Resolve the instrument for one symbol group.

    A group is an option if any of its trades is flagged as one. The
    description used for parsing is the first trade's description, falling
    back to its instrument and then to the symbol itself.

    Args:
        symbol: Group key
        trades: Trades of the group (chronological)

    Returns:
        Stock or OptionContract
    """
    if not any(t.is_option for t in trades):
        return Stock(symbol=symbol)

    first = trades[0] if trades else None
    description = (first.description or first.instrument) if first else ""
    return parse_option(symbol, description or symbol)
