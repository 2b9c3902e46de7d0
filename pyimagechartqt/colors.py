"""Per-category colors: palette defaults plus persisted overrides.

The palette hands out one color per distinct key and remembers it for the
rest of its session, so a category keeps its color across update cycles.
ColorAssigner always keys the palette by the category's string value; a fill
persisted for the row's selection key takes precedence over the default.
"""

from __future__ import annotations

from typing import Dict, List, Optional, Protocol

from matplotlib import colormaps
from matplotlib import colors as mcolors

from .models import COLOR_SELECTOR, FILL_PROPERTY, PersistedProperties, SelectionKey, _fill_to_hex

DEFAULT_PALETTE = "tab10"
MAX_LISTED_COLORS = 20


class PaletteService(Protocol):
    """Host palette: stable color for identical keys within one session."""

    def get_color(self, key: str) -> str:
        ...


class ColormapPalette:
    """Palette backed by a qualitative matplotlib colormap.

    Colors are handed out in colormap order as new keys appear and are cached
    by key, wrapping around when the colormap is exhausted.
    """

    def __init__(self, name: str = DEFAULT_PALETTE) -> None:
        cmap = colormaps[name]
        listed = getattr(cmap, "colors", None)
        if listed is None or len(listed) > MAX_LISTED_COLORS:
            # Continuous colormap: sample ten evenly spaced colors
            listed = [cmap(i / 9.0) for i in range(10)]
        self._colors: List[str] = [mcolors.to_hex(c) for c in listed]
        self._assigned: Dict[str, str] = {}

    @property
    def colors(self) -> List[str]:
        return list(self._colors)

    def get_color(self, key: str) -> str:
        color = self._assigned.get(key)
        if color is None:
            color = self._colors[len(self._assigned) % len(self._colors)]
            self._assigned[key] = color
        return color

    def reset(self) -> None:
        """Start a new palette session."""
        self._assigned.clear()


def override_color(properties: Optional[PersistedProperties], key: SelectionKey) -> Optional[str]:
    """Return the persisted fill for ``key`` or None (missing or malformed)."""
    if properties is None:
        return None
    return _fill_to_hex(properties.get_for(key, COLOR_SELECTOR, FILL_PROPERTY))


class ColorAssigner:
    """Resolves the color of each category row."""

    def __init__(self, palette: PaletteService) -> None:
        self._palette = palette

    def default_color(self, category: object) -> str:
        return self._palette.get_color(str(category))

    def color_for(
        self,
        category: object,
        key: SelectionKey,
        overrides: Optional[PersistedProperties] = None,
    ) -> str:
        """Color of one row.

        Args:
            category: Raw category value; its string form keys the palette.
            key: Selection key of the row, used to look up persisted fills.
            overrides: Persisted property bag (may be None).

        Returns:
            The persisted override when present, else the palette default.
        """
        # Always request the default so palette assignment order does not depend on overrides
        default = self.default_color(category)
        override = override_color(overrides, key)
        return override if override is not None else default
