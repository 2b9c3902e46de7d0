"""Typed chart settings resolved from the host's persisted property bag.

Every update cycle rebuilds a fresh ``Settings`` snapshot from the defaults
below plus whatever the property editor persisted. Each dataclass field
carries the persisted property name and its expected kind in its metadata,
so the resolver only ever reads the enumerated options:

    settings = resolve_settings({"generalView": {"opacity": 40}})
    settings.general_view.opacity  # 40.0
    settings.value_axis.show       # True (default)

Values of the wrong type fall back to the default; nothing here raises on
bad input and nothing is clamped (the format pane owns value ranges).
"""

from __future__ import annotations

import logging
from dataclasses import dataclass, field, fields, replace
from typing import Any, Dict, Mapping, Optional

from .models import _fill_to_hex
from .utils import is_finite_number

logger = logging.getLogger(__name__)

# Expected kinds of persisted properties
BOOL = "bool"
INT = "int"
FLOAT = "float"
OPTIONAL_FLOAT = "optional_float"
TEXT = "text"
COLOR = "color"


def _prop(name: str, kind: str) -> Dict[str, str]:
    return {"property": name, "kind": kind}


@dataclass(frozen=True)
class CategoryAxisSettings:
    """Category (X) axis options; persisted object ``categoryAxis``."""

    show: bool = field(default=True, metadata=_prop("show", BOOL))
    show_title: bool = field(default=False, metadata=_prop("showAxisTitle", BOOL))
    display_units: int = field(default=0, metadata=_prop("displayUnits", INT))
    precision: int = field(default=2, metadata=_prop("precision", INT))
    title: str = field(default="", metadata=_prop("title", TEXT))
    color: str = field(default="", metadata=_prop("color", COLOR))
    font_size: float = field(default=12.0, metadata=_prop("fontSize", FLOAT))


@dataclass(frozen=True)
class ValueAxisSettings:
    """Value (Y) axis options; persisted object ``valueAxis``."""

    show: bool = field(default=True, metadata=_prop("show", BOOL))
    show_title: bool = field(default=False, metadata=_prop("showAxisTitle", BOOL))
    min_value: Optional[float] = field(default=None, metadata=_prop("minValue", OPTIONAL_FLOAT))
    max_value: Optional[float] = field(default=None, metadata=_prop("maxValue", OPTIONAL_FLOAT))
    display_units: int = field(default=0, metadata=_prop("displayUnits", INT))
    precision: int = field(default=2, metadata=_prop("precision", INT))
    title: str = field(default="", metadata=_prop("title", TEXT))
    color: str = field(default="", metadata=_prop("color", COLOR))
    font_size: float = field(default=12.0, metadata=_prop("fontSize", FLOAT))


@dataclass(frozen=True)
class ImageSettings:
    """Bar image texturing; persisted object ``enableImages``."""

    show: bool = field(default=True, metadata=_prop("show", BOOL))


@dataclass(frozen=True)
class GeneralSettings:
    """General view options; persisted object ``generalView``.

    opacity is a percentage; the format pane limits it to 10..100.
    """

    opacity: float = field(default=100.0, metadata=_prop("opacity", FLOAT))


# Persisted object name -> Settings attribute
OBJECT_NAMES = {
    "categoryAxis": "category_axis",
    "valueAxis": "value_axis",
    "enableImages": "enable_images",
    "generalView": "general_view",
}


@dataclass(frozen=True)
class Settings:
    """Immutable settings snapshot for one update cycle."""

    category_axis: CategoryAxisSettings = CategoryAxisSettings()
    value_axis: ValueAxisSettings = ValueAxisSettings()
    enable_images: ImageSettings = ImageSettings()
    general_view: GeneralSettings = GeneralSettings()

    def group(self, object_name: str) -> Any:
        """Return the settings group for a persisted object name."""
        return getattr(self, OBJECT_NAMES[object_name])

    def properties_of(self, object_name: str) -> Dict[str, Any]:
        """Persisted-bag form of one group: {property_name: value}."""
        group = self.group(object_name)
        return {f.metadata["property"]: getattr(group, f.name) for f in fields(group)}

    def to_objects(self) -> Dict[str, Dict[str, Any]]:
        """Persisted-bag form of the whole snapshot (round-trips via resolve)."""
        return {name: self.properties_of(name) for name in OBJECT_NAMES}


_MISSING = object()


def _coerce(kind: str, raw: Any) -> Any:
    """Coerce a persisted value to ``kind`` or return ``_MISSING``."""
    if kind == BOOL:
        return raw if isinstance(raw, bool) else _MISSING
    if kind == INT:
        return int(raw) if is_finite_number(raw) else _MISSING
    if kind == FLOAT:
        return float(raw) if is_finite_number(raw) else _MISSING
    if kind == OPTIONAL_FLOAT:
        if raw is None:
            return None
        return float(raw) if is_finite_number(raw) else _MISSING
    if kind == TEXT:
        return raw if isinstance(raw, str) else _MISSING
    if kind == COLOR:
        if isinstance(raw, str) and raw == "":
            return ""
        color = _fill_to_hex(raw)
        return color if color is not None else _MISSING
    return _MISSING


class SettingsResolver:
    """Merges persisted property overrides with typed defaults."""

    def __init__(self, defaults: Optional[Settings] = None) -> None:
        self._defaults = defaults if defaults is not None else Settings()

    @property
    def defaults(self) -> Settings:
        return self._defaults

    def resolve(self, objects: Optional[Mapping[str, Mapping[str, Any]]]) -> Settings:
        """Build a fresh Settings snapshot.

        Args:
            objects: Persisted bag, object_name -> {property_name -> value}.
                Unknown objects and properties are ignored.

        Returns:
            A new Settings instance; malformed values fall back to defaults.
        """
        objects = objects if isinstance(objects, Mapping) else {}
        groups = {}
        for object_name, attr in OBJECT_NAMES.items():
            default_group = getattr(self._defaults, attr)
            persisted = objects.get(object_name)
            if not isinstance(persisted, Mapping):
                groups[attr] = default_group
                continue
            groups[attr] = self._resolve_group(object_name, default_group, persisted)
        return Settings(**groups)

    def _resolve_group(self, object_name: str, default_group: Any, persisted: Mapping[str, Any]) -> Any:
        changes = {}
        for f in fields(default_group):
            prop = f.metadata["property"]
            if prop not in persisted:
                continue
            raw = persisted[prop]
            value = _coerce(f.metadata["kind"], raw)
            if value is _MISSING:
                logger.debug(
                    "Ignoring malformed setting %s.%s=%r; using default", object_name, prop, raw
                )
                continue
            changes[f.name] = value
        return replace(default_group, **changes) if changes else default_group


def resolve_settings(objects: Optional[Mapping[str, Mapping[str, Any]]]) -> Settings:
    """Resolve a Settings snapshot with the stock defaults."""
    return SettingsResolver().resolve(objects)
