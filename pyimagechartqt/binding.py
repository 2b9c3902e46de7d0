"""Categorical result -> render-ready ChartModel.

Rows are bound in source order (the order drives the category axis). Measure
columns are located once per bind through a role index instead of scanning
the result for every field:

    binder = DataBinder(ColormapPalette(), LabelFormatterFactory())
    model = binder.bind(result, properties)
    model.min_value, model.max_value   # observed range (None when no numbers)

Missing data never raises: an absent or empty category column yields an
empty model, unmapped roles yield value 0 / no image URL, and non-numeric
cells are emitted with value 0 but left out of the range.
"""

from __future__ import annotations

import logging
from dataclasses import dataclass
from typing import Dict, List, Mapping, Optional, Tuple

from .colors import ColorAssigner, PaletteService
from .formatting import LabelFormatterFactory
from .models import (
    IMAGE_URL_ROLE,
    VALUE_ROLE,
    CategoricalResult,
    ChartModel,
    DataPoint,
    MeasureColumn,
    PersistedProperties,
)
from .settings import Settings, SettingsResolver
from .utils import is_finite_number

logger = logging.getLogger(__name__)

# Model field -> role tag looked up in the result's measure columns
DEFAULT_ROLES: Mapping[str, str] = {
    "value": VALUE_ROLE,
    "image_url": IMAGE_URL_ROLE,
}


@dataclass(frozen=True)
class RoleIndex:
    """Precomputed role -> measure column index for one result."""

    value: Optional[int] = None
    image_url: Optional[int] = None

    @classmethod
    def build(
        cls,
        measures: Tuple[MeasureColumn, ...],
        role_map: Mapping[str, str] = DEFAULT_ROLES,
    ) -> RoleIndex:
        value_role = role_map.get("value", VALUE_ROLE)
        image_role = role_map.get("image_url", IMAGE_URL_ROLE)

        found: Dict[str, int] = {}
        for index, column in enumerate(measures):
            for role in (value_role, image_role):
                if role not in found and column.has_role(role):
                    found[role] = index

        value_index = found.get(value_role)
        image_index = found.get(image_role)

        # A single untagged measure feeds every row's value
        if value_index is None and image_index is None and len(measures) == 1:
            value_index = 0

        return cls(value=value_index, image_url=image_index)


def _image_url(raw: object) -> Optional[str]:
    if isinstance(raw, str) and raw.strip():
        return raw.strip()
    return None


def _apply_axis_bounds(
    settings: Settings,
    observed_min: Optional[float],
    observed_max: Optional[float],
) -> Tuple[Optional[float], Optional[float]]:
    """Honor explicit axis bounds that do not invert the observed range.

    Each bound is checked against the opposite observed extreme only, so an
    explicit min and max that both pass may still leave min > max.
    """
    if observed_min is None or observed_max is None:
        return observed_min, observed_max

    explicit_min = settings.value_axis.min_value
    explicit_max = settings.value_axis.max_value
    min_value = explicit_min if explicit_min is not None and explicit_min < observed_max else observed_min
    max_value = explicit_max if explicit_max is not None and explicit_max > observed_min else observed_max
    return min_value, max_value


def _axis_magnitude(min_value: Optional[float], max_value: Optional[float]) -> Optional[float]:
    if min_value is None or max_value is None:
        return None
    return max(abs(min_value), abs(max_value))


class DataBinder:
    """Builds ChartModel snapshots from categorical results."""

    def __init__(
        self,
        palette: PaletteService,
        formatter_factory: Optional[LabelFormatterFactory] = None,
        settings_resolver: Optional[SettingsResolver] = None,
    ) -> None:
        self._colors = ColorAssigner(palette)
        self._formatters = formatter_factory if formatter_factory is not None else LabelFormatterFactory()
        self._resolver = settings_resolver if settings_resolver is not None else SettingsResolver()

    def bind(
        self,
        result: Optional[CategoricalResult],
        properties: Optional[PersistedProperties] = None,
        role_map: Mapping[str, str] = DEFAULT_ROLES,
        settings: Optional[Settings] = None,
    ) -> ChartModel:
        """Convert a categorical result into a ChartModel.

        Args:
            result: Host query result (may be None).
            properties: Persisted property bag for settings and color overrides.
            role_map: Model field -> role tag.
            settings: Pre-resolved settings; resolved from ``properties`` if None.

        Returns:
            A ChartModel. Empty (no data points) when there is no category data.
        """
        if settings is None:
            settings = self._resolver.resolve(properties.objects if properties else None)

        if result is None or not result.categories or not result.categories[0].values:
            logger.debug("No category data; returning empty model")
            return ChartModel(settings=settings)

        category = result.categories[0]
        measures = result.values
        roles = RoleIndex.build(measures, role_map)
        value_column = measures[roles.value] if roles.value is not None else None
        image_column = measures[roles.image_url] if roles.image_url is not None else None

        points: List[DataPoint] = []
        observed_min: Optional[float] = None
        observed_max: Optional[float] = None

        keys = category.keys()
        for index, raw_category in enumerate(category.values):
            label = "" if raw_category is None else str(raw_category)
            key = keys[index]

            value = 0.0
            if value_column is not None:
                raw_value = value_column.value_at(index)
                if is_finite_number(raw_value):
                    value = float(raw_value)
                    observed_min = value if observed_min is None else min(observed_min, value)
                    observed_max = value if observed_max is None else max(observed_max, value)

            image_url = _image_url(image_column.value_at(index)) if image_column is not None else None

            points.append(
                DataPoint(
                    category=label,
                    value=value,
                    color=self._colors.color_for(label, key, properties),
                    selection_key=key,
                    image_url=image_url,
                )
            )

        min_value, max_value = _apply_axis_bounds(settings, observed_min, observed_max)

        value_axis = settings.value_axis
        category_axis = settings.category_axis
        value_formatter = self._formatters.create(
            value_column.format_string if value_column is not None else None,
            value_axis.display_units,
            value_axis.precision,
            _axis_magnitude(min_value, max_value),
        )
        category_formatter = self._formatters.create(
            category.format_string,
            category_axis.display_units,
            category_axis.precision,
        )

        logger.debug(
            "Bound %d rows (observed range %s..%s, axis range %s..%s)",
            len(points), observed_min, observed_max, min_value, max_value,
        )

        return ChartModel(
            data_points=tuple(points),
            min_value=min_value,
            max_value=max_value,
            settings=settings,
            value_formatter=value_formatter,
            category_formatter=category_formatter,
            category_display_name=category.display_name,
            value_display_name=value_column.display_name if value_column is not None else "",
            has_images=image_column is not None,
        )


def bind_model(
    result: Optional[CategoricalResult],
    palette: PaletteService,
    properties: Optional[PersistedProperties] = None,
    role_map: Mapping[str, str] = DEFAULT_ROLES,
) -> ChartModel:
    """One-shot helper: bind with the default formatter factory."""
    return DataBinder(palette).bind(result, properties, role_map)
