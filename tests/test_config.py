"""Tests for ChartConfig in config.py."""

import pytest

from pyimagechartqt.config import ChartConfig


def test_defaults():
    """Test the stock layout and rendering constants."""
    cfg = ChartConfig()
    assert cfg.band_padding == 0.1
    assert (cfg.solid_opacity, cfg.transparent_opacity) == (1.0, 0.5)
    assert (cfg.min_viewport_width, cfg.min_viewport_height) == (100, 100)
    assert cfg.image_aspect == (1024, 768)
    assert cfg.tooltip_precision == 3


@pytest.mark.parametrize("padding", [-0.01, 1.0])
def test_invalid_band_padding(padding):
    """Test that padding outside [0, 1) is rejected."""
    with pytest.raises(ValueError):
        ChartConfig(band_padding=padding)


def test_negative_viewport_threshold():
    """Test that negative minimum sizes are rejected."""
    with pytest.raises(ValueError):
        ChartConfig(min_viewport_width=-1)
