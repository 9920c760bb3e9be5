"""
Unit tests for lot and pip scaling.
"""

import pytest

from journalmigrate.records import LOT_SIZES, pip_size, signed_pips, units_for
from journalmigrate.records.instruments import quote_currency


class TestUnits:
    """Tests for units_for."""

    @pytest.mark.parametrize(
        ("lot_type", "expected"),
        [("standard", 100_000), ("mini", 10_000), ("micro", 1_000)],
    )
    def test_lot_types(self, lot_type: str, expected: int):
        assert units_for(1.0, lot_type) == expected
        assert LOT_SIZES[lot_type] == expected

    def test_fractional_lots(self):
        assert units_for(0.5, "mini") == 5_000

    @pytest.mark.parametrize("lot_type", [None, "", "jumbo"])
    def test_unknown_lot_type_is_standard(self, lot_type):
        assert units_for(2.0, lot_type) == 200_000

    def test_missing_lot_size(self):
        assert units_for(None, "standard") is None


class TestPips:
    """Tests for pip_size and signed_pips."""

    def test_quote_currency(self):
        assert quote_currency("eur/usd") == "USD"
        assert quote_currency("EURUSD") is None
        assert quote_currency(None) is None

    def test_pip_sizes(self):
        assert pip_size("EUR/USD") == pytest.approx(0.0001)
        assert pip_size("USD/JPY") == pytest.approx(0.01)
        assert pip_size(None) == pytest.approx(0.0001)

    def test_long_gain(self):
        assert signed_pips(1.10, 1.105, "EUR/USD", "long") == pytest.approx(50.0)

    def test_short_gain(self):
        assert signed_pips(1.105, 1.10, "EUR/USD", "short") == pytest.approx(50.0)

    def test_long_loss_is_negative(self):
        assert signed_pips(150.00, 149.50, "USD/JPY", "long") == pytest.approx(-50.0)
