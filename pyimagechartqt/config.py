"""Configuration models for the chart visual.

Provides frozen dataclasses for layout, selection and rendering constants.
Same pattern as models.py: plain values, no Qt dependency.
"""

from __future__ import annotations

from dataclasses import dataclass
from typing import Tuple


@dataclass(frozen=True)
class Viewport:
    """Available drawing area in pixels."""

    width: float
    height: float


@dataclass(frozen=True)
class ChartConfig:
    """Constants used by the layout engine, selection and render plan."""

    band_padding: float = 0.1  # Fraction of each band left empty between bars
    solid_opacity: float = 1.0
    transparent_opacity: float = 0.5  # Unselected bars while a selection exists
    min_viewport_width: float = 100.0
    min_viewport_height: float = 100.0
    label_rotation_deg: float = -35.0
    rotated_label_dx_em: float = -0.5
    axis_label_padding: float = 6.0
    axis_title_padding: float = 4.0
    margin_sample_text: str = "Wg"
    value_tick_count: int = 5
    image_width_factor: float = 4.0
    image_aspect: Tuple[int, int] = (1024, 768)  # width, height of the source tiles
    tooltip_precision: int = 3
    palette_name: str = "tab10"

    def __post_init__(self) -> None:
        if not 0.0 <= self.band_padding < 1.0:
            raise ValueError("band_padding must be in [0, 1)")
        if self.min_viewport_width < 0 or self.min_viewport_height < 0:
            raise ValueError("viewport thresholds must be non-negative")
