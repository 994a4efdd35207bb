"""Display formatting for amounts and dates used in reminder emails.

Usage
-----
    from paynudge.utils.formatting import format_date, format_money

    format_money(123456, "GBP")            # "£1,234.56"
    format_date(dt.date(2026, 3, 5))       # "05 Mar 2026"
"""

from __future__ import annotations

import datetime as dt
from decimal import ROUND_HALF_UP, Decimal

_CURRENCY_SYMBOLS = {
    "GBP": "£",
    "USD": "$",
    "EUR": "€",
    "NGN": "₦",
}


def to_minor_units(amount: Decimal | float | int) -> int:
    """Convert a major-unit amount (e.g. 12.345 pounds) to rounded minor units."""
    value = Decimal(str(amount)) * 100
    return int(value.quantize(Decimal("1"), rounding=ROUND_HALF_UP))


def format_money(amount_minor_units: int, currency: str = "GBP") -> str:
    """Format an integer amount of minor units (pence, cents) with its symbol."""
    code = (currency or "GBP").upper()
    major = Decimal(amount_minor_units) / 100
    sign = "-" if major < 0 else ""
    text = f"{abs(major):,.2f}"
    symbol = _CURRENCY_SYMBOLS.get(code)
    if symbol:
        return f"{sign}{symbol}{text}"
    return f"{sign}{text} {code}"


def format_date(value: dt.date | dt.datetime | str) -> str:
    """Format a date the en-GB way: two-digit day, short month, full year."""
    if isinstance(value, str):
        value = dt.date.fromisoformat(value[:10])
    if isinstance(value, dt.datetime):
        value = value.date()
    return value.strftime("%d %b %Y")
