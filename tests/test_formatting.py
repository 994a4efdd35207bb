import datetime as dt
from decimal import Decimal

from paynudge.utils.formatting import format_date, format_money, to_minor_units


def test_format_money_known_and_unknown_currencies():
    assert format_money(123456, "GBP") == "£1,234.56"
    assert format_money(5, "usd") == "$0.05"
    assert format_money(100000000, "EUR") == "€1,000,000.00"
    assert format_money(2500, "CHF") == "25.00 CHF"


def test_to_minor_units_rounds_half_up():
    assert to_minor_units(Decimal("12.345")) == 1235
    assert to_minor_units(Decimal("0.01")) == 1
    assert to_minor_units(1000000) == 100000000


def test_format_date_en_gb_style():
    assert format_date(dt.date(2026, 3, 5)) == "05 Mar 2026"
    assert format_date(dt.datetime(2026, 12, 25, 18, 30)) == "25 Dec 2026"
    assert format_date("2026-01-09") == "09 Jan 2026"
