"""
Unit tests for number parsing and formatting.
"""

import pytest

from mgnrega_tracker.formatting import (
    parse_or_zero,
    format_number,
    format_currency,
    format_wage,
    format_percentage,
    format_days,
    format_share,
)


class TestParseOrZero:

    @pytest.mark.parametrize("raw,expected", [
        ("245.41", 245.41),
        ("42", 42.0),
        ("  17 ", 17.0),
        ("-3.5", -3.5),
        (".5", 0.5),
        ("1e3", 1000.0),
        ("12.5 lakh", 12.5),
        ("1,234", 1.0),
        (7, 7.0),
        (2.25, 2.25),
    ])
    def test_valid_values(self, raw, expected):
        assert parse_or_zero(raw) == expected

    @pytest.mark.parametrize("raw", ["", "NA", "abc", "nan", "inf", None, float('nan'), float('inf'), True])
    def test_invalid_values_default_to_zero(self, raw):
        assert parse_or_zero(raw) == 0.0


class TestFormatNumber:

    @pytest.mark.parametrize("raw,expected", [
        ("12345678", "1.2 Cr"),
        ("10000000", "1.0 Cr"),
        ("150000", "1.5 L"),
        ("100000", "1.0 L"),
        ("99999", "100.0 K"),
        ("2500", "2.5 K"),
        ("1000", "1.0 K"),
        ("999", "999"),
        ("42", "42"),
        ("12.5", "12.5"),
        ("", "0"),
        ("junk", "0"),
        (None, "0"),
    ])
    def test_scales(self, raw, expected):
        assert format_number(raw) == expected

    def test_rounds_half_up(self):
        assert format_number("1250") == "1.3 K"

    def test_accepts_numbers(self):
        assert format_number(24607.0) == "24.6 K"


class TestFormatCurrency:

    @pytest.mark.parametrize("raw,expected", [
        ("38841000", "₹3.9 Cr"),
        ("388410", "₹3.9 L"),
        ("3884.10", "₹3.9 K"),
        ("278.06", "₹278.06"),
        ("", "₹0"),
    ])
    def test_scales(self, raw, expected):
        assert format_currency(raw) == expected


class TestOtherFormats:

    def test_format_wage(self):
        assert format_wage("245.41") == "₹245.41"
        assert format_wage("230.5") == "₹230.50"
        assert format_wage("") == "₹0.00"

    def test_format_percentage(self):
        assert format_percentage("99.92") == "99.92%"
        assert format_percentage("") == "0%"
        assert format_percentage(None) == "0%"
        assert format_percentage(95.0) == "95%"

    def test_format_days(self):
        assert format_days("43") == "43"
        assert format_days("") == "0"
        assert format_days(43.0) == "43"

    def test_format_share(self):
        assert format_share(400, 1000) == "40.0"
        assert format_share(1, 3) == "33.3"
        assert format_share(5, 0) is None
