"""Visual instance: one update cycle from query result to render plan.

ImageChartVisual wires the pieces together the way a host drives a visual:

    visual = ImageChartVisual(VisualHost())
    plan = visual.update(result, properties, Viewport(640, 480))
    if not plan.renderable:
        surface.clear()
    else:
        surface.paint(plan)            # bars, labels, ticks
        visual.bar_opacity(bar.key)    # re-read after every selection change

The render plan is plain data; painting it is the surface's job (see
chart_widget.ImageChartWidget). Besides the update cycle the visual answers
the host's tooltip and format-pane queries for the bars it last bound.
"""

from __future__ import annotations

import logging
from dataclasses import dataclass, field
from typing import Any, Dict, List, Optional, Tuple

from .binding import DEFAULT_ROLES, DataBinder
from .colors import ColormapPalette, PaletteService
from .config import ChartConfig, Viewport
from .formatting import LabelFormatterFactory
from .layout import NOT_RENDERABLE_NO_DATA, LabelPlacement, LayoutEngine, LayoutResult, Margins
from .models import (
    COLOR_SELECTOR,
    FILL_PROPERTY,
    CategoricalResult,
    ChartModel,
    PersistedProperties,
    SelectionKey,
    _color_to_css,
)
from .selection_manager import ClickEvent, SelectionCoordinator, SelectionService, SelectionState
from .settings import OBJECT_NAMES, Settings, SettingsResolver
from .text_metrics import PillowTextMeasurer, TextMeasurer
from .utils import clamp

logger = logging.getLogger(__name__)

OPACITY_RANGE = (10.0, 100.0)
DEFAULT_AXIS_COLOR = "#000000"


@dataclass
class VisualHost:
    """External collaborators supplied by the host application."""

    palette: Optional[PaletteService] = None
    formatter_factory: Optional[LabelFormatterFactory] = None
    measurer: Optional[TextMeasurer] = None
    selection_service: Optional[SelectionService] = None
    allow_interactions: bool = True


@dataclass(frozen=True)
class BarGeometry:
    """One bar in inner-area coordinates (origin top-left of the plot area)."""

    index: int
    key: SelectionKey
    category: str
    value: float
    x: float
    y: float
    width: float
    height: float
    color: str
    fill_opacity: float
    image_url: Optional[str] = None

    @property
    def fill_css(self) -> str:
        return _color_to_css(self.color, self.fill_opacity)


@dataclass(frozen=True)
class CategoryLabel:
    text: str
    x: float  # Band center
    y: float  # Top of the label, below the plot area


@dataclass(frozen=True)
class AxisStyle:
    show: bool
    color: str
    font_size: float
    title: str = ""  # Empty when the title is hidden


@dataclass(frozen=True)
class RenderPlan:
    """Everything a surface needs to paint one update cycle."""

    renderable: bool
    width: float = 0.0
    height: float = 0.0
    margins: Margins = Margins()
    inner_width: float = 0.0
    inner_height: float = 0.0
    bars: Tuple[BarGeometry, ...] = ()
    category_labels: Tuple[CategoryLabel, ...] = ()
    label_placement: LabelPlacement = LabelPlacement()
    value_ticks: Tuple[Tuple[float, float, str], ...] = ()
    category_axis: Optional[AxisStyle] = None
    value_axis: Optional[AxisStyle] = None
    images_enabled: bool = False
    image_size: Tuple[float, float] = (0.0, 0.0)  # Pattern tile width, height

    @classmethod
    def empty(cls, width: float = 0.0, height: float = 0.0) -> RenderPlan:
        return cls(renderable=False, width=width, height=height)


@dataclass(frozen=True)
class TooltipItem:
    display_name: str
    value: str
    color: str


@dataclass(frozen=True)
class ObjectInstance:
    """One format-pane entry: current values of an object's properties."""

    object_name: str
    properties: Dict[str, Any]
    selector: Optional[SelectionKey] = None
    display_name: Optional[str] = None
    valid_values: Dict[str, Tuple[float, float]] = field(default_factory=dict)


class ImageChartVisual:
    """Owns settings, model and selection for one chart instance."""

    def __init__(self, host: Optional[VisualHost] = None, config: Optional[ChartConfig] = None) -> None:
        self.host = host if host is not None else VisualHost()
        self.config = config if config is not None else ChartConfig()
        cfg = self.config

        self._palette = self.host.palette if self.host.palette is not None else ColormapPalette(cfg.palette_name)
        self._formatters = (
            self.host.formatter_factory if self.host.formatter_factory is not None else LabelFormatterFactory()
        )
        self._resolver = SettingsResolver()
        self._binder = DataBinder(self._palette, self._formatters, self._resolver)
        self._layout_engine = LayoutEngine(
            self.host.measurer if self.host.measurer is not None else PillowTextMeasurer(), cfg
        )
        self._tooltip_formatter = self._formatters.create(None, 1, cfg.tooltip_precision)

        self.selection = SelectionCoordinator(
            self.host.selection_service,
            allow_interactions=self.host.allow_interactions,
            solid_opacity=cfg.solid_opacity,
            transparent_opacity=cfg.transparent_opacity,
        )

        self._settings = Settings()
        self._model = ChartModel(settings=self._settings)
        self._layout: LayoutResult = LayoutResult.not_renderable(NOT_RENDERABLE_NO_DATA)
        self._plan = RenderPlan.empty()

    @property
    def settings(self) -> Settings:
        return self._settings

    @property
    def model(self) -> ChartModel:
        return self._model

    @property
    def layout_result(self) -> LayoutResult:
        return self._layout

    @property
    def plan(self) -> RenderPlan:
        return self._plan

    def update(
        self,
        result: Optional[CategoricalResult],
        properties: Optional[PersistedProperties] = None,
        viewport: Viewport = Viewport(0.0, 0.0),
        role_map=DEFAULT_ROLES,
    ) -> RenderPlan:
        """Run one update cycle and return the plan to paint."""
        self._settings = self._resolver.resolve(properties.objects if properties else None)
        self._model = self._binder.bind(result, properties, role_map, settings=self._settings)
        self._layout = self._layout_engine.layout(self._model, viewport)

        if not self._layout.renderable:
            logger.debug("Clearing surface (%s)", self._layout.reason)
            self._plan = RenderPlan.empty(viewport.width, viewport.height)
        else:
            self._plan = self._build_plan(viewport)
        return self._plan

    def base_opacity(self) -> float:
        """Fill opacity from the general view setting, limited to 10..100 %."""
        return clamp(self._settings.general_view.opacity, *OPACITY_RANGE) / 100.0

    def bar_opacity(self, key: SelectionKey) -> float:
        return self.base_opacity() * self.selection.opacity(key)

    def bar_opacities(self) -> Dict[SelectionKey, float]:
        base = self.base_opacity()
        return {key: base * value for key, value in self.selection.opacities(self._model.keys()).items()}

    def on_point_click(self, index: int, event: Optional[ClickEvent] = None) -> None:
        points = self._model.data_points
        if 0 <= index < len(points):
            self.selection.on_point_click(points[index].selection_key, event)

    def on_background_click(self, event: Optional[ClickEvent] = None) -> None:
        self.selection.on_background_click(event)

    def hit_test(self, x: float, y: float) -> Optional[int]:
        """Index of the bar under viewport point (x, y), or None."""
        scale = self._layout.category_scale
        if not self._plan.renderable or scale is None:
            return None
        index = scale.index_at(x - self._plan.margins.left)
        if index is None:
            return None
        bar = self._plan.bars[index]
        top = self._plan.margins.top + bar.y
        if top <= y <= top + bar.height:
            return index
        return None

    def handle_click(self, x: float, y: float) -> ClickEvent:
        """Dispatch one gesture: bar handler first, then background."""
        event = ClickEvent(x, y)
        index = self.hit_test(x, y)
        if index is not None:
            self.on_point_click(index, event)
        self.on_background_click(event)
        return event

    def tooltip_items(self, key: SelectionKey) -> List[TooltipItem]:
        point = self._model.point_for(key)
        if point is None:
            return []
        return [
            TooltipItem(
                display_name=point.category,
                value=self._tooltip_formatter(point.value),
                color=point.color,
            )
        ]

    def enumerate_object_instances(self, object_name: str) -> List[ObjectInstance]:
        """Current values for one format-pane object."""
        if object_name == COLOR_SELECTOR:
            return [
                ObjectInstance(
                    object_name=COLOR_SELECTOR,
                    properties={FILL_PROPERTY: {"solid": {"color": dp.color}}},
                    selector=dp.selection_key,
                    display_name=dp.category,
                )
                for dp in self._model.data_points
            ]
        if object_name not in OBJECT_NAMES:
            return []

        valid_values = {"opacity": OPACITY_RANGE} if object_name == "generalView" else {}
        return [
            ObjectInstance(
                object_name=object_name,
                properties=self._settings.properties_of(object_name),
                valid_values=valid_values,
            )
        ]

    def selection_state(self) -> SelectionState:
        return self.selection.state

    def dispose(self) -> None:
        self.selection.dispose()

    def _build_plan(self, viewport: Viewport) -> RenderPlan:
        cfg = self.config
        model = self._model
        layout = self._layout
        category_scale = layout.category_scale
        value_scale = layout.value_scale
        base_opacity = self.base_opacity()
        images_enabled = model.images_enabled

        bandwidth = category_scale.bandwidth
        positions = category_scale.positions()
        tops = value_scale([dp.value for dp in model.data_points])

        bars = []
        labels = []
        for i, dp in enumerate(model.data_points):
            y = float(tops[i])
            bars.append(
                BarGeometry(
                    index=i,
                    key=dp.selection_key,
                    category=dp.category,
                    value=dp.value,
                    x=float(positions[i]),
                    y=y,
                    width=bandwidth,
                    height=max(0.0, layout.inner_height - y),
                    color=dp.color,
                    fill_opacity=base_opacity,
                    image_url=dp.image_url if images_enabled else None,
                )
            )
            labels.append(
                CategoryLabel(
                    text=model.format_category(dp.category),
                    x=category_scale.center(i),
                    y=layout.inner_height + cfg.axis_label_padding / 2.0,
                )
            )

        image_width = bandwidth * cfg.image_width_factor
        aspect_w, aspect_h = cfg.image_aspect
        image_size = (image_width, image_width / aspect_w * aspect_h)

        settings = self._settings
        category_settings = settings.category_axis
        value_settings = settings.value_axis

        return RenderPlan(
            renderable=True,
            width=viewport.width,
            height=viewport.height,
            margins=layout.margins,
            inner_width=layout.inner_width,
            inner_height=layout.inner_height,
            bars=tuple(bars),
            category_labels=tuple(labels) if category_settings.show else (),
            label_placement=layout.label_placement,
            value_ticks=layout.value_ticks if value_settings.show else (),
            category_axis=AxisStyle(
                show=category_settings.show,
                color=category_settings.color or DEFAULT_AXIS_COLOR,
                font_size=category_settings.font_size,
                title=(category_settings.title or model.category_display_name)
                if category_settings.show_title else "",
            ),
            value_axis=AxisStyle(
                show=value_settings.show,
                color=value_settings.color or DEFAULT_AXIS_COLOR,
                font_size=value_settings.font_size,
                title=(value_settings.title or model.value_display_name)
                if value_settings.show_title else "",
            ),
            images_enabled=images_enabled,
            image_size=image_size,
        )
