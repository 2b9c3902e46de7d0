from .config import ChartConfig, Viewport
from .models import (
    CategoricalResult,
    CategoryColumn,
    MeasureColumn,
    PersistedProperties,
    SelectionKey,
    DataPoint,
    ChartModel,
    VALUE_ROLE,
    IMAGE_URL_ROLE,
)

from .settings import (
    Settings,
    CategoryAxisSettings,
    ValueAxisSettings,
    ImageSettings,
    GeneralSettings,
    SettingsResolver,
    resolve_settings,
)

from .colors import ColorAssigner, ColormapPalette
from .formatting import LabelFormatterFactory, ValueFormatter
from .binding import DataBinder, RoleIndex, bind_model
from .scales import BandScale, LinearScale
from .text_metrics import PillowTextMeasurer
from .layout import LayoutEngine, LayoutResult, LabelPlacement, Margins
from .selection_manager import (
    ClickEvent,
    ImmediateSelectionService,
    SelectionCoordinator,
    SelectionState,
    next_selection,
    opacity_for,
)
from .visual import ImageChartVisual, RenderPlan, VisualHost
from .logging_config import setup_logging

# The Qt surface lives in pyimagechartqt.chart_widget so the core imports
# without a display or Qt runtime.

__all__ = [
    "ChartConfig",
    "Viewport",
    # Data model
    "CategoricalResult",
    "CategoryColumn",
    "MeasureColumn",
    "PersistedProperties",
    "SelectionKey",
    "DataPoint",
    "ChartModel",
    "VALUE_ROLE",
    "IMAGE_URL_ROLE",
    # Settings
    "Settings",
    "CategoryAxisSettings",
    "ValueAxisSettings",
    "ImageSettings",
    "GeneralSettings",
    "SettingsResolver",
    "resolve_settings",
    # Binding
    "ColorAssigner",
    "ColormapPalette",
    "LabelFormatterFactory",
    "ValueFormatter",
    "DataBinder",
    "RoleIndex",
    "bind_model",
    # Layout
    "BandScale",
    "LinearScale",
    "PillowTextMeasurer",
    "LayoutEngine",
    "LayoutResult",
    "LabelPlacement",
    "Margins",
    # Selection
    "ClickEvent",
    "ImmediateSelectionService",
    "SelectionCoordinator",
    "SelectionState",
    "next_selection",
    "opacity_for",
    # Visual
    "ImageChartVisual",
    "RenderPlan",
    "VisualHost",
    "setup_logging",
]
