"""Qt rendering surface for the image bar chart.

This module provides a PyQtGraph-based widget that paints the RenderPlan
produced by ImageChartVisual and feeds clicks back into its selection state.

Key features:
  - Bars colored per category or textured with per-category images
  - Category labels rotated automatically when they do not fit their band
  - Click a bar to select it, click it again or the background to clear
  - Selected bars stay solid, the others are dimmed
  - Re-layout on every resize

Typical usage:

    chart = ImageChartWidget()
    chart.set_data(result, properties)
    chart.selectionKeysChanged.connect(on_chart_selection)

Google-style docstrings + PEP8.
"""

from __future__ import annotations

import logging
from typing import Dict, List, Optional
from urllib.parse import urlparse
from urllib.request import url2pathname

import pyqtgraph as pg
from PySide6 import QtCore, QtGui
from PySide6.QtCore import Qt, Signal
from PySide6.QtWidgets import (
    QGraphicsItem,
    QGraphicsLineItem,
    QGraphicsRectItem,
    QGraphicsSimpleTextItem,
    QVBoxLayout,
    QWidget,
)

from .config import ChartConfig, Viewport
from .models import CategoricalResult, PersistedProperties, SelectionKey
from .selection_manager import SelectionState
from .visual import ImageChartVisual, RenderPlan, VisualHost

logger = logging.getLogger(__name__)


class QtTextMeasurer:
    """Measures text with the font the widget paints labels with."""

    def __init__(self, family: str = "") -> None:
        self.family = family

    def _metrics(self, font_size: float) -> QtGui.QFontMetricsF:
        font = QtGui.QFont(self.family) if self.family else QtGui.QFont()
        font.setPixelSize(max(1, int(round(font_size))))
        return QtGui.QFontMetricsF(font)

    def measure_width(self, text: str, font_size: float) -> float:
        if not text:
            return 0.0
        return float(self._metrics(font_size).horizontalAdvance(text))

    def measure_height(self, text: str, font_size: float) -> float:
        return float(self._metrics(font_size).height())


def _local_image_path(url: str) -> Optional[str]:
    """Local file path for a file:// URL or plain path; None for remote URLs."""
    parsed = urlparse(url)
    if parsed.scheme in ("", "file"):
        return url2pathname(parsed.path) if parsed.scheme == "file" else url
    if len(parsed.scheme) == 1:  # Windows drive letter
        return url
    return None


class ImageChartWidget(QWidget):
    """Bar/column chart widget backed by ImageChartVisual.

    Attributes:
        selectionKeysChanged: Signal emitted when the confirmed selection
            changes. Emits a list of SelectionKey.
    """

    selectionKeysChanged = Signal(list)

    def __init__(
        self,
        parent: Optional[QWidget] = None,
        host: Optional[VisualHost] = None,
        config: Optional[ChartConfig] = None,
    ) -> None:
        """Initialize the chart widget.

        Args:
            parent: Parent widget.
            host: External services; a Qt text measurer is used when the
                host does not supply one.
            config: Layout and rendering constants.
        """
        super().__init__(parent)

        host = host if host is not None else VisualHost()
        if host.measurer is None:
            host.measurer = QtTextMeasurer()
        self.visual = ImageChartVisual(host, config)
        self.visual.selection.add_listener(self._on_selection_changed)

        self._result: Optional[CategoricalResult] = None
        self._properties: Optional[PersistedProperties] = None
        self._bar_items: Dict[SelectionKey, QGraphicsRectItem] = {}
        self._items: List[QGraphicsItem] = []
        self._pixmaps: Dict[str, QtGui.QPixmap] = {}

        self._build_ui()

    def _build_ui(self) -> None:
        """Build the user interface."""
        layout = QVBoxLayout(self)
        layout.setContentsMargins(0, 0, 0, 0)

        self.view = pg.GraphicsView(background="w")
        self.view.enableMouse(False)
        layout.addWidget(self.view)

        self.scene = self.view.scene()
        self.scene.sigMouseClicked.connect(self._on_scene_clicked)

    def set_data(
        self,
        result: Optional[CategoricalResult],
        properties: Optional[PersistedProperties] = None,
    ) -> None:
        """Set the query result and persisted properties, then redraw.

        Args:
            result: Categorical query result from the host.
            properties: Persisted property bag (settings and color overrides).
        """
        self._result = result
        self._properties = properties
        # Textures of the previous result are not reused
        self._pixmaps.clear()
        self.refresh()

    def set_properties(self, properties: Optional[PersistedProperties]) -> None:
        """Apply new persisted properties to the current data."""
        self._properties = properties
        self.refresh()

    def refresh(self) -> None:
        """Run an update cycle for the current size and repaint."""
        viewport = Viewport(float(self.view.width()), float(self.view.height()))
        plan = self.visual.update(self._result, self._properties, viewport)
        self._paint(plan)

    def resizeEvent(self, event: QtGui.QResizeEvent) -> None:
        super().resizeEvent(event)
        self.refresh()

    def selected_keys(self) -> List[SelectionKey]:
        """Get currently selected keys."""
        return list(self.visual.selection.selected_keys)

    def select_keys(self, keys: List[SelectionKey]) -> None:
        """Programmatically select bars by keys."""
        self.visual.selection.select_keys(keys)

    def clear_selection(self) -> None:
        """Clear the selection."""
        self.visual.selection.select_keys([])

    def clear_chart(self) -> None:
        """Remove the items this widget drew; the view's own items stay."""
        for item in self._items:
            self.scene.removeItem(item)
        self._items = []
        self._bar_items = {}

    def _add_item(self, item: QGraphicsItem) -> None:
        self.scene.addItem(item)
        self._items.append(item)

    def closeEvent(self, event: QtGui.QCloseEvent) -> None:
        self.visual.dispose()
        super().closeEvent(event)

    def _paint(self, plan: RenderPlan) -> None:
        self.clear_chart()
        if not plan.renderable:
            return

        self.view.setRange(QtCore.QRectF(0, 0, plan.width, plan.height), padding=0)
        left = plan.margins.left
        top = plan.margins.top

        for bar in plan.bars:
            item = QGraphicsRectItem(left + bar.x, top + bar.y, bar.width, bar.height)
            item.setPen(QtGui.QPen(Qt.NoPen))
            item.setBrush(self._brush_for(bar.color, bar.image_url, plan))
            item.setData(0, bar.index)
            item.setToolTip(self._tooltip_text(bar.key))
            self._add_item(item)
            self._bar_items[bar.key] = item

        if plan.category_axis is not None and plan.category_axis.show:
            self._paint_category_axis(plan)
        if plan.value_axis is not None and plan.value_axis.show:
            self._paint_value_axis(plan)

        self._apply_opacity()

    def _brush_for(self, color: str, image_url: Optional[str], plan: RenderPlan) -> QtGui.QBrush:
        if image_url:
            pixmap = self._pixmap_for(image_url, plan.image_size)
            if pixmap is not None:
                return QtGui.QBrush(pixmap)
        return pg.mkBrush(color)

    def _pixmap_for(self, url: str, size) -> Optional[QtGui.QPixmap]:
        path = _local_image_path(url)
        if path is None:
            logger.debug("Remote image %s not loaded; using color fill", url)
            return None
        if path not in self._pixmaps:
            self._pixmaps[path] = QtGui.QPixmap(path)
        pixmap = self._pixmaps[path]
        if pixmap.isNull():
            logger.debug("Image %s could not be read; using color fill", path)
            return None
        width, height = size
        return pixmap.scaled(
            max(1, int(width)), max(1, int(height)),
            Qt.IgnoreAspectRatio, Qt.SmoothTransformation,
        )

    def _text_item(self, text: str, color: str, font_size: float) -> QGraphicsSimpleTextItem:
        item = QGraphicsSimpleTextItem(text)
        font = QtGui.QFont()
        font.setPixelSize(max(1, int(round(font_size))))
        item.setFont(font)
        item.setBrush(pg.mkBrush(color))
        self._add_item(item)
        return item

    def _paint_category_axis(self, plan: RenderPlan) -> None:
        axis = plan.category_axis
        left = plan.margins.left
        baseline = plan.margins.top + plan.inner_height

        line = QGraphicsLineItem(left, baseline, left + plan.inner_width, baseline)
        line.setPen(pg.mkPen(axis.color))
        self._add_item(line)

        placement = plan.label_placement
        for label in plan.category_labels:
            item = self._text_item(label.text, axis.color, axis.font_size)
            rect = item.boundingRect()
            x = left + label.x + placement.dx
            y = plan.margins.top + label.y
            if placement.rotated:
                # Right-aligned: rotate around the label's top-right corner
                item.setTransformOriginPoint(rect.width(), 0)
                item.setRotation(placement.rotation_deg)
                item.setPos(x - rect.width(), y)
            else:
                item.setPos(x - rect.width() / 2.0, y)

        if axis.title:
            item = self._text_item(axis.title, axis.color, axis.font_size)
            rect = item.boundingRect()
            item.setPos(left + (plan.inner_width - rect.width()) / 2.0, plan.height - rect.height())

    def _paint_value_axis(self, plan: RenderPlan) -> None:
        axis = plan.value_axis
        left = plan.margins.left
        top = plan.margins.top

        line = QGraphicsLineItem(left, top, left, top + plan.inner_height)
        line.setPen(pg.mkPen(axis.color))
        self._add_item(line)

        for _, y, text in plan.value_ticks:
            item = self._text_item(text, axis.color, axis.font_size)
            rect = item.boundingRect()
            item.setPos(left - rect.width() - 3.0, top + y - rect.height() / 2.0)

        if axis.title:
            item = self._text_item(axis.title, axis.color, axis.font_size)
            rect = item.boundingRect()
            item.setRotation(-90)
            item.setPos(0, top + (plan.inner_height + rect.width()) / 2.0)

    def _tooltip_text(self, key: SelectionKey) -> str:
        return "\n".join(
            f"{item.display_name}: {item.value}" for item in self.visual.tooltip_items(key)
        )

    def _apply_opacity(self) -> None:
        for key, opacity in self.visual.bar_opacities().items():
            item = self._bar_items.get(key)
            if item is not None:
                item.setOpacity(opacity)

    def _on_scene_clicked(self, ev) -> None:
        """Route a scene click to the bar handler, then the background."""
        if ev.button() != Qt.LeftButton:
            return
        pos = ev.scenePos()
        event = self.visual.handle_click(pos.x(), pos.y())
        if event.propagation_stopped:
            ev.accept()

    def _on_selection_changed(self, state: SelectionState) -> None:
        self._apply_opacity()
        self.selectionKeysChanged.emit(list(state.keys))
