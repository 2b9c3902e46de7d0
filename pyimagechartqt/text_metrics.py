"""Text measurement used to size axis margins.

The layout engine only needs two numbers per label, so any object with
``measure_width`` and ``measure_height`` will do. PillowTextMeasurer is the
default; the Qt widget swaps in a QFontMetricsF based measurer so margins
match the font it actually paints with.
"""

from __future__ import annotations

from functools import lru_cache
from typing import Optional, Protocol

from PIL import ImageFont


class TextMeasurer(Protocol):
    def measure_width(self, text: str, font_size: float) -> float:
        ...

    def measure_height(self, text: str, font_size: float) -> float:
        ...


class PillowTextMeasurer:
    """Measures text with a Pillow font (bundled default or a TrueType file)."""

    def __init__(self, font_path: Optional[str] = None) -> None:
        self.font_path = font_path
        self._font = lru_cache(maxsize=16)(self._load_font)

    def _load_font(self, size: int):
        if self.font_path:
            return ImageFont.truetype(self.font_path, size)
        return ImageFont.load_default(size=size)

    def _bbox(self, text: str, font_size: float):
        font = self._font(max(1, int(round(font_size))))
        return font.getbbox(text or " ")

    def measure_width(self, text: str, font_size: float) -> float:
        if not text:
            return 0.0
        left, _, right, _ = self._bbox(text, font_size)
        return float(right - left)

    def measure_height(self, text: str, font_size: float) -> float:
        _, top, _, bottom = self._bbox(text, font_size)
        return float(bottom - top)
