"""Tests for the default label formatter in formatting.py."""

import pytest

from pyimagechartqt.formatting import LabelFormatterFactory, ValueFormatter, parse_format


class TestParseFormat:
    """Tests for format string parsing."""

    @pytest.mark.parametrize("fmt", [None, "", "General", "g"])
    def test_general(self, fmt):
        """Test that empty and General formats carry no decimals."""
        assert parse_format(fmt).decimals is None

    def test_decimals_and_grouping(self):
        """Test decimals and thousands separator detection."""
        parsed = parse_format("#,0.00")
        assert parsed.grouping is True
        assert parsed.decimals == 2

    def test_currency_prefix(self):
        """Test literal prefixes."""
        parsed = parse_format("$#,0.00")
        assert parsed.prefix == "$"
        assert parsed.decimals == 2

    def test_percent_suffix(self):
        """Test percent detection."""
        parsed = parse_format("0.0%")
        assert parsed.percent is True
        assert parsed.suffix == "%"


class TestValueFormatter:
    """Tests for formatting numbers with units and precision."""

    def test_precision(self):
        """Test that precision fixes the number of decimals."""
        assert ValueFormatter(None, 1, 2)(3.14159) == "3.14"

    def test_no_units(self):
        """Test displayUnits=1 leaves values unscaled."""
        assert ValueFormatter("#,0", 1, None)(1234567) == "1,234,567"

    def test_explicit_units(self):
        """Test thousands and millions."""
        assert ValueFormatter(None, 1000, 1)(2500) == "2.5K"
        assert ValueFormatter(None, 1e6, 2)(3_250_000) == "3.25M"

    def test_auto_units(self):
        """Test that displayUnits=0 picks units from the magnitude."""
        assert ValueFormatter(None, 0, 1)(4_200_000_000) == "4.2bn"
        assert ValueFormatter(None, 0, 0)(950) == "950"

    def test_percent(self):
        """Test percent formats scale by 100 and skip units."""
        assert ValueFormatter("0.0%", 0, None)(0.256) == "25.6%"

    def test_currency(self):
        """Test prefix and grouping together."""
        assert ValueFormatter("$#,0.00", 1, None)(1234.5) == "$1,234.50"

    def test_general_decimals(self):
        """Test General format without precision."""
        assert ValueFormatter(None, 1, None)(7) == "7"
        assert ValueFormatter(None, 1, None)(2.5) == "2.5"

    def test_non_numeric_passthrough(self):
        """Test that strings pass through and None is empty."""
        formatter = ValueFormatter("0.00", 0, 2)
        assert formatter("Widgets") == "Widgets"
        assert formatter(None) == ""

    def test_negative_precision_is_zero(self):
        """Test that negative precision is treated as zero decimals."""
        assert ValueFormatter(None, 1, -3)(5.7) == "6"

    def test_axis_magnitude_fixes_auto_units(self):
        """Test that a known axis magnitude gives every value the same unit."""
        formatter = ValueFormatter(None, 0, 2, magnitude=2000)
        assert [formatter(v) for v in (0, 400, 2000)] == ["0.00K", "0.40K", "2.00K"]

    def test_magnitude_ignored_for_explicit_units(self):
        """Test that explicit display units win over the axis magnitude."""
        assert ValueFormatter(None, 1e6, 1, magnitude=2000)(2_500_000) == "2.5M"


class TestLabelFormatterFactory:
    """Tests for the factory contract."""

    def test_create_is_deterministic(self):
        """Test that identical arguments format identically."""
        factory = LabelFormatterFactory()
        a = factory.create("#,0.00", 1000, 1)
        b = factory.create("#,0.00", 1000, 1)
        assert a(12345) == b(12345) == "12.3K"

    def test_create_passes_magnitude(self):
        """Test that the factory resolves auto units from the magnitude."""
        formatter = LabelFormatterFactory().create(None, 0, 1, 4_000_000)
        assert formatter(300_000) == "0.3M"
        assert formatter(4_000_000) == "4.0M"
