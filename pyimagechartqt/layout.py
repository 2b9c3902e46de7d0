"""Adaptive layout: margins from measured labels, scales, label rotation.

The engine runs a two-pass fixed point per update cycle:

1. Size the left margin from the formatted min/max value labels and the
   bottom margin from a representative label height (hidden axes take no
   space), then build the category and value scales.
2. If any category label is wider than its band, rotate all labels and grow
   the bottom margin by the rotated extent, then rebuild the value scale.

Nothing is cached between cycles; measurements and scales are discarded
with the LayoutResult.
"""

from __future__ import annotations

import logging
import math
from dataclasses import dataclass, field
from typing import Optional, Tuple

from .config import ChartConfig, Viewport
from .models import ChartModel
from .scales import BandScale, LinearScale
from .text_metrics import PillowTextMeasurer, TextMeasurer

logger = logging.getLogger(__name__)

NOT_RENDERABLE_VIEWPORT = "viewport"
NOT_RENDERABLE_NO_DATA = "no-data"
NOT_RENDERABLE_NO_ROOM = "no-room"


@dataclass(frozen=True)
class Margins:
    top: float = 0.0
    right: float = 0.0
    bottom: float = 0.0
    left: float = 0.0


@dataclass(frozen=True)
class LabelPlacement:
    """How category labels are drawn under their bands."""

    rotation_deg: float = 0.0
    anchor: str = "middle"  # 'middle' or 'end'
    dx: float = 0.0  # Horizontal offset in pixels

    @property
    def rotated(self) -> bool:
        return self.rotation_deg != 0.0


@dataclass(frozen=True)
class LayoutResult:
    """Outcome of one layout pass.

    When ``renderable`` is False no scales are produced and the caller must
    clear anything it drew before.
    """

    renderable: bool
    reason: str = ""
    margins: Margins = Margins()
    inner_width: float = 0.0
    inner_height: float = 0.0
    category_scale: Optional[BandScale] = None
    value_scale: Optional[LinearScale] = None
    label_placement: LabelPlacement = LabelPlacement()
    value_ticks: Tuple[Tuple[float, float, str], ...] = field(default_factory=tuple)

    @classmethod
    def not_renderable(cls, reason: str) -> LayoutResult:
        return cls(renderable=False, reason=reason)


class LayoutEngine:
    """Sizes margins and builds scales for a ChartModel in a viewport."""

    def __init__(
        self,
        measurer: Optional[TextMeasurer] = None,
        config: Optional[ChartConfig] = None,
    ) -> None:
        self.measurer = measurer if measurer is not None else PillowTextMeasurer()
        self.config = config if config is not None else ChartConfig()

    def layout(self, model: ChartModel, viewport: Viewport) -> LayoutResult:
        cfg = self.config
        if viewport.width < cfg.min_viewport_width or viewport.height < cfg.min_viewport_height:
            logger.info(
                "Viewport %.0fx%.0f below minimum %.0fx%.0f; not renderable",
                viewport.width, viewport.height, cfg.min_viewport_width, cfg.min_viewport_height,
            )
            return LayoutResult.not_renderable(NOT_RENDERABLE_VIEWPORT)

        if model.is_empty or not model.has_range:
            logger.info("Model has no bars to draw; not renderable")
            return LayoutResult.not_renderable(NOT_RENDERABLE_NO_DATA)

        left = self._left_margin(model)
        bottom = self._bottom_margin(model)

        inner_width = viewport.width - left
        if inner_width <= 0:
            return LayoutResult.not_renderable(NOT_RENDERABLE_NO_ROOM)

        categories = [dp.category for dp in model.data_points]
        category_scale = BandScale(categories, (0.0, inner_width), cfg.band_padding)

        placement = LabelPlacement()
        category_axis = model.settings.category_axis
        if category_axis.show:
            labels = [model.format_category(c) for c in categories]
            font_size = category_axis.font_size
            widths = [self.measurer.measure_width(label, font_size) for label in labels]
            widest = max(widths) if widths else 0.0
            if widest > category_scale.bandwidth:
                placement = LabelPlacement(
                    rotation_deg=cfg.label_rotation_deg,
                    anchor="end",
                    dx=cfg.rotated_label_dx_em * font_size,
                )
                # Second pass: rotated labels need vertical room for their projection
                bottom += widest * abs(math.sin(math.radians(cfg.label_rotation_deg)))

        inner_height = viewport.height - bottom
        if inner_height <= 0:
            return LayoutResult.not_renderable(NOT_RENDERABLE_NO_ROOM)

        value_scale = LinearScale((model.min_value, model.max_value), (inner_height, 0.0))
        ticks = tuple(
            (value, float(value_scale(value)), model.format_value(value))
            for value in value_scale.ticks(cfg.value_tick_count)
        )

        margins = Margins(left=left, bottom=bottom)
        logger.debug(
            "Layout %.0fx%.0f: margins left=%.1f bottom=%.1f, band=%.1f, rotated=%s",
            viewport.width, viewport.height, left, bottom, category_scale.bandwidth, placement.rotated,
        )
        return LayoutResult(
            renderable=True,
            margins=margins,
            inner_width=inner_width,
            inner_height=inner_height,
            category_scale=category_scale,
            value_scale=value_scale,
            label_placement=placement,
            value_ticks=ticks,
        )

    def _title_extent(self, show: bool, title: str, font_size: float) -> float:
        if not show or not title:
            return 0.0
        return self.measurer.measure_height(title, font_size) + self.config.axis_title_padding

    def _left_margin(self, model: ChartModel) -> float:
        axis = model.settings.value_axis
        if not axis.show:
            return 0.0
        bounds = (model.format_value(model.min_value), model.format_value(model.max_value))
        widest = max(self.measurer.measure_width(text, axis.font_size) for text in bounds)
        title = axis.title or model.value_display_name
        return widest + self.config.axis_label_padding + self._title_extent(
            axis.show_title, title, axis.font_size
        )

    def _bottom_margin(self, model: ChartModel) -> float:
        axis = model.settings.category_axis
        if not axis.show:
            return 0.0
        height = self.measurer.measure_height(self.config.margin_sample_text, axis.font_size)
        title = axis.title or model.category_display_name
        return height + self.config.axis_label_padding + self._title_extent(
            axis.show_title, title, axis.font_size
        )
