"""
Value normaliser tests — parse_amount, to_date, clean_str.
Pure functions, no DB.
"""

from datetime import date
from decimal import Decimal

import pytest

from app.services.extraction.base import ParseError, clean_str, parse_amount, to_date


class TestParseAmountSeparators:
    @pytest.mark.parametrize(
        "raw, expected",
        [
            ("1.234,56", Decimal("1234.56")),  # es-AR
            ("1,234.56", Decimal("1234.56")),  # en-US
            ("1.234.567", Decimal("1234567")),  # repeated dots are thousands
            ("1,234,567", Decimal("1234567")),  # repeated commas are thousands
            ("1234,56", Decimal("1234.56")),  # single comma is decimal
            ("594710.00", Decimal("594710.00")),  # single dot is decimal
            ("18.500,00", Decimal("18500.00")),
            ("42", Decimal("42")),
        ],
    )
    def test_locale_formats(self, raw, expected):
        assert parse_amount(raw) == expected

    def test_currency_symbol_and_spaces_are_stripped(self):
        assert parse_amount("$ 1.234,56") == Decimal("1234.56")
        assert parse_amount("  ARS 800,00 ") == Decimal("800.00")

    def test_leading_minus_is_kept(self):
        assert parse_amount("-1.500,00") == Decimal("-1500.00")

    def test_trailing_minus_is_negative(self):
        assert parse_amount("100.00-") == Decimal("-100.00")
        assert parse_amount("$ 1.500,00 -") == Decimal("-1500.00")

    def test_decimal_passes_through(self):
        assert parse_amount(Decimal("3.50")) == Decimal("3.50")

    def test_result_is_decimal_not_float(self):
        assert isinstance(parse_amount("0,10"), Decimal)
        assert parse_amount("0,10") + parse_amount("0,20") == Decimal("0.30")


class TestParseAmountErrors:
    @pytest.mark.parametrize("raw", ["", "   ", "abc", "$", ".,", "-"])
    def test_non_numeric_raises(self, raw):
        with pytest.raises(ParseError):
            parse_amount(raw)

    @pytest.mark.parametrize("raw", ["12-34", "1.234-56", "-100-", "--5"])
    def test_embedded_dash_raises(self, raw):
        with pytest.raises(ParseError):
            parse_amount(raw)

    def test_none_raises(self):
        with pytest.raises(ParseError, match="empty"):
            parse_amount(None)

    def test_malformed_digits_raise(self):
        # two commas right of the dot leave two decimal points
        with pytest.raises(ParseError):
            parse_amount("1.2,3,4")


class TestToDate:
    def test_day_first(self):
        assert to_date("05/02/2026") == date(2026, 2, 5)

    def test_month_first_when_requested(self):
        assert to_date("05/02/2026", dayfirst=False) == date(2026, 5, 2)

    def test_unparseable_returns_none(self):
        assert to_date("not a date") is None

    def test_blank_returns_none(self):
        assert to_date("") is None
        assert to_date(None) is None


class TestCleanStr:
    def test_collapses_whitespace(self):
        assert clean_str("  Vaso   de\tvidrio  ") == "Vaso de vidrio"

    def test_blank_is_none(self):
        assert clean_str("   ") is None
        assert clean_str(None) is None
