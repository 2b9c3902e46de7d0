from __future__ import annotations

from dataclasses import dataclass, field
from typing import Any, Callable, Dict, FrozenSet, Hashable, Mapping, Optional, Sequence, Tuple, Union

from matplotlib import colors as mcolors

# Color type: "#RRGGBB", color names, or persisted fill mappings {"solid": {"color": ...}}
Color = Union[str, Mapping[str, Any]]
ValueFormatter = Callable[[Any], str]

VALUE_ROLE = "value"
IMAGE_URL_ROLE = "image-url"

COLOR_SELECTOR = "colorSelector"
FILL_PROPERTY = "fill"


def _fill_to_hex(fill: Any) -> Optional[str]:
    """Extract a hex color from a persisted fill value.

    Accepts a color string ("#ff0000", "red") or a fill mapping of the form
    ``{"solid": {"color": "#ff0000"}}``.

    Returns:
        Lower-case "#rrggbb" string, or None when the value is not a color.
    """
    if isinstance(fill, Mapping):
        solid = fill.get("solid")
        if not isinstance(solid, Mapping):
            return None
        fill = solid.get("color")

    if not isinstance(fill, str) or not fill.strip():
        return None

    try:
        return mcolors.to_hex(fill.strip())
    except ValueError:
        return None


def _color_to_css(color: str, alpha: Optional[float] = None) -> str:
    """Convert a color into a CSS color string, optionally with alpha."""
    if alpha is None:
        return color
    r, g, b, _ = mcolors.to_rgba(color)
    return f"rgba({round(r * 255)},{round(g * 255)},{round(b * 255)},{float(alpha)})"


@dataclass(frozen=True)
class SelectionKey:
    """Stable identity of one category row.

    Built from the category column and the row's identity (or the raw category
    value, disambiguated for repeats, when the source supplies no identities),
    so the same logical row compares equal across update cycles.
    """

    query_name: str
    identity: Hashable


@dataclass(frozen=True)
class CategoryColumn:
    """The discrete axis column of a categorical result."""

    display_name: str
    values: Tuple[Any, ...]
    query_name: str = ""
    format_string: Optional[str] = None
    identities: Optional[Tuple[Hashable, ...]] = None

    def key_for(self, index: int) -> SelectionKey:
        return self.keys()[index]

    def keys(self) -> Tuple[SelectionKey, ...]:
        """Selection key of every row, in row order.

        Without identities a row is identified by its category value; repeated
        values get ``(value, n)`` for their n-th repeat so every row keeps a
        distinct key.
        """
        name = self.query_name or self.display_name
        seen: Dict[Any, int] = {}
        keys = []
        for index, value in enumerate(self.values):
            if self.identities is not None and index < len(self.identities):
                identity = self.identities[index]
            else:
                repeat = seen.get(value, 0)
                seen[value] = repeat + 1
                identity = value if repeat == 0 else (value, repeat)
            keys.append(SelectionKey(name, identity))
        return tuple(keys)


@dataclass(frozen=True)
class MeasureColumn:
    """A measure column tagged with zero or more semantic roles."""

    display_name: str
    values: Tuple[Any, ...]
    roles: FrozenSet[str] = frozenset()
    query_name: str = ""
    format_string: Optional[str] = None

    def has_role(self, role: str) -> bool:
        return role in self.roles

    def value_at(self, index: int) -> Any:
        if 0 <= index < len(self.values):
            return self.values[index]
        return None


@dataclass(frozen=True)
class CategoricalResult:
    """Tabular query result as supplied by the host. Read-only for the core."""

    categories: Tuple[CategoryColumn, ...] = ()
    values: Tuple[MeasureColumn, ...] = ()

    @classmethod
    def from_columns(
        cls,
        category: CategoryColumn,
        measures: Sequence[MeasureColumn] = (),
    ) -> CategoricalResult:
        return cls(categories=(category,), values=tuple(measures))


@dataclass(frozen=True)
class PersistedProperties:
    """Opaque property bag written by the host's property editor.

    objects: object_name -> {property_name -> value} for visual-wide settings.
    selector_objects: SelectionKey -> {object_name -> {property_name -> value}}
        for per-row settings such as color overrides.
    """

    objects: Mapping[str, Mapping[str, Any]] = field(default_factory=dict)
    selector_objects: Mapping[SelectionKey, Mapping[str, Mapping[str, Any]]] = field(
        default_factory=dict
    )

    def get_for(
        self,
        key: SelectionKey,
        object_name: str,
        property_name: str,
        default: Any = None,
    ) -> Any:
        per_key = self.selector_objects.get(key)
        if not isinstance(per_key, Mapping):
            return default
        props = per_key.get(object_name)
        if not isinstance(props, Mapping):
            return default
        return props.get(property_name, default)

    def with_color_override(self, key: SelectionKey, color: str) -> PersistedProperties:
        """Return a copy with a persisted fill color for ``key``."""
        if not color:
            raise ValueError("color override must be a non-empty color string")
        selector_objects: Dict[SelectionKey, Dict[str, Dict[str, Any]]] = {
            k: {obj: dict(props) for obj, props in v.items()}
            for k, v in self.selector_objects.items()
        }
        per_key = selector_objects.setdefault(key, {})
        per_key.setdefault(COLOR_SELECTOR, {})[FILL_PROPERTY] = {"solid": {"color": color}}
        return PersistedProperties(objects=self.objects, selector_objects=selector_objects)


@dataclass(frozen=True)
class DataPoint:
    """One bar: a category row bound to its value, color and identity."""

    category: str
    value: float
    color: str
    selection_key: SelectionKey
    image_url: Optional[str] = None


@dataclass(frozen=True)
class ChartModel:
    """Render-ready snapshot produced by the data binder.

    min_value/max_value are None when no row carried a numeric value.
    """

    data_points: Tuple[DataPoint, ...] = ()
    min_value: Optional[float] = None
    max_value: Optional[float] = None
    settings: Any = None  # settings.Settings; Any to avoid an import cycle
    value_formatter: Optional[ValueFormatter] = None
    category_formatter: Optional[ValueFormatter] = None
    category_display_name: str = ""
    value_display_name: str = ""
    has_images: bool = False

    @property
    def is_empty(self) -> bool:
        return len(self.data_points) == 0

    @property
    def has_range(self) -> bool:
        return self.min_value is not None and self.max_value is not None

    @property
    def images_enabled(self) -> bool:
        if self.settings is None:
            return False
        return bool(self.settings.enable_images.show and self.has_images)

    def keys(self) -> Tuple[SelectionKey, ...]:
        return tuple(dp.selection_key for dp in self.data_points)

    def point_for(self, key: SelectionKey) -> Optional[DataPoint]:
        for dp in self.data_points:
            if dp.selection_key == key:
                return dp
        return None

    def format_value(self, value: Any) -> str:
        if self.value_formatter is None:
            return "" if value is None else str(value)
        return self.value_formatter(value)

    def format_category(self, value: Any) -> str:
        if self.category_formatter is None:
            return "" if value is None else str(value)
        return self.category_formatter(value)
