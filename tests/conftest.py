"""Shared fixtures and deterministic fakes for the chart core tests.

Fakes stand in for the host collaborators the core consumes:
  - FakePalette: hands out "#0000NN" colors per new key and records requests.
  - FixedWidthMeasurer: every character is ``char_width * font_size`` wide.
  - DeferredSelectionService: returns unresolved futures the test settles.
"""

from concurrent.futures import Future
from typing import List, Sequence

import pytest

from pyimagechartqt.config import ChartConfig, Viewport
from pyimagechartqt.models import (
    IMAGE_URL_ROLE,
    VALUE_ROLE,
    CategoricalResult,
    CategoryColumn,
    MeasureColumn,
)
from pyimagechartqt.visual import ImageChartVisual, VisualHost


class FakePalette:
    """Palette that records every key it is asked for."""

    def __init__(self):
        self.requests: List[str] = []
        self._assigned = {}

    def get_color(self, key: str) -> str:
        self.requests.append(key)
        if key not in self._assigned:
            self._assigned[key] = f"#0000{len(self._assigned) + 1:02x}"
        return self._assigned[key]


class FixedWidthMeasurer:
    """Monospace measurer: width = len(text) * char_width * font_size."""

    def __init__(self, char_width: float = 0.5, line_height: float = 1.25):
        self.char_width = char_width
        self.line_height = line_height

    def measure_width(self, text: str, font_size: float) -> float:
        return len(text) * self.char_width * font_size

    def measure_height(self, text: str, font_size: float) -> float:
        return self.line_height * font_size


class DeferredSelectionService:
    """Selection service whose confirmations are settled by the test."""

    def __init__(self):
        self.requests: List[List] = []
        self.futures: List[Future] = []

    def select(self, keys: Sequence) -> Future:
        future: Future = Future()
        self.requests.append(list(keys))
        self.futures.append(future)
        return future

    def confirm(self, index: int = -1, keys=None) -> None:
        """Resolve a request with the requested keys (or explicit ``keys``)."""
        future = self.futures[index]
        future.set_result(self.requests[index] if keys is None else list(keys))


def make_result(
    categories=("A", "B", "C"),
    values=(10, 5, 20),
    images=None,
    value_roles=frozenset({VALUE_ROLE}),
    value_format=None,
) -> CategoricalResult:
    """Build a categorical result with optional value and image columns."""
    measures = []
    if values is not None:
        measures.append(
            MeasureColumn(
                "Sales",
                tuple(values),
                roles=value_roles,
                query_name="Sum(Sales)",
                format_string=value_format,
            )
        )
    if images is not None:
        measures.append(
            MeasureColumn("Image", tuple(images), roles=frozenset({IMAGE_URL_ROLE}), query_name="Image")
        )
    category = CategoryColumn("Product", tuple(categories), query_name="Product.Name")
    return CategoricalResult.from_columns(category, measures)


@pytest.fixture
def palette():
    return FakePalette()


@pytest.fixture
def measurer():
    return FixedWidthMeasurer()


@pytest.fixture
def deferred_service():
    return DeferredSelectionService()


@pytest.fixture
def viewport():
    return Viewport(600.0, 400.0)


@pytest.fixture
def visual(palette, measurer):
    host = VisualHost(palette=palette, measurer=measurer)
    return ImageChartVisual(host, ChartConfig())
