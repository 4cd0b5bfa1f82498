"""
Tests for unit conversion.
"""

from decimal import Decimal

import pytest

from limitless_trader.utils.units import format_units_prec, gwei_to_wei, parse_units_prec


class TestParseUnits:
    """Tests for human -> chain conversion."""

    def test_whole_amount(self):
        """Should scale a whole amount by decimals."""
        assert parse_units_prec("25", 6) == 25_000_000

    def test_rounds_to_precision(self):
        """Should round to four fractional digits before scaling."""
        assert parse_units_prec("1.23456789", 6) == 1_234_600

    def test_float_input(self):
        """Floats are converted via their shortest repr."""
        assert parse_units_prec(0.1, 18) == 10 ** 17

    def test_decimal_input(self):
        assert parse_units_prec(Decimal("3.5"), 6, precision=2) == 3_500_000

    @pytest.mark.parametrize("value", ["abc", "", None, "nan"])
    def test_unparseable_returns_zero(self, value):
        """Should return 0 for input that is not a number."""
        assert parse_units_prec(value, 6) == 0


class TestFormatUnits:
    """Tests for chain -> human conversion."""

    def test_formats_with_precision(self):
        assert format_units_prec(777_000000, 6) == "777.0000"

    def test_rounds_half_up(self):
        assert format_units_prec(1_234_550, 6) == "1.2346"

    def test_large_amount(self):
        """Should not lose digits on 18-decimal amounts."""
        assert format_units_prec(123456789 * 10 ** 18, 18, precision=2) == "123456789.00"


def test_gwei_to_wei_fractional():
    """Fractional gwei prices are exact."""
    assert gwei_to_wei(Decimal("0.005")) == 5_000_000
    assert gwei_to_wei("30") == 30 * 10 ** 9
