import sys
import tempfile
from pathlib import Path

import numpy as np
from PIL import Image, ImageDraw

from PySide6.QtCore import Qt, QItemSelectionModel
from PySide6.QtGui import QStandardItemModel, QStandardItem
from PySide6.QtWidgets import (
    QApplication,
    QCheckBox,
    QMainWindow,
    QWidget,
    QSplitter,
    QVBoxLayout,
    QLabel,
    QTableView,
    QSlider,
    QHBoxLayout,
)

from pyimagechartqt import (
    CategoricalResult,
    CategoryColumn,
    IMAGE_URL_ROLE,
    MeasureColumn,
    PersistedProperties,
    VALUE_ROLE,
    setup_logging,
)
from pyimagechartqt.chart_widget import ImageChartWidget


def make_texture(path, rgb, seed):
    """Write a striped PNG tile used as a bar texture."""
    rng = np.random.default_rng(seed)
    img = Image.new("RGB", (256, 192), rgb)
    draw = ImageDraw.Draw(img)
    for x in range(-192, 256, 24):
        shade = tuple(int(c * rng.uniform(0.6, 0.9)) for c in rgb)
        draw.line([(x, 192), (x + 192, 0)], fill=shade, width=10)
    img.save(path)
    return str(path)


def main():
    setup_logging()
    app = QApplication(sys.argv)
    win = QMainWindow()
    win.setWindowTitle("pyimagechartqt demo: images, selection, opacity")

    splitter = QSplitter(Qt.Horizontal)
    win.setCentralWidget(splitter)

    # --- Left: chart ---
    chart = ImageChartWidget()
    splitter.addWidget(chart)

    # --- Right: controls + table ---
    right = QWidget()
    rlayout = QVBoxLayout(right)

    info = QLabel("Selection: none")
    info.setWordWrap(True)

    row = QWidget()
    row_l = QHBoxLayout(row)
    row_l.setContentsMargins(0, 0, 0, 0)
    row_l.addWidget(QLabel("Opacity"))
    opacity_slider = QSlider(Qt.Horizontal)
    opacity_slider.setRange(10, 100)
    opacity_slider.setValue(100)
    row_l.addWidget(opacity_slider)
    images_box = QCheckBox("Images")
    images_box.setChecked(True)
    row_l.addWidget(images_box)

    table = QTableView()
    model = QStandardItemModel(0, 2)
    model.setHorizontalHeaderLabels(["fruit", "sales"])
    table.setModel(model)
    table.setSelectionBehavior(QTableView.SelectRows)
    table.setSelectionMode(QTableView.SingleSelection)

    rlayout.addWidget(info)
    rlayout.addWidget(row)
    rlayout.addWidget(table)

    splitter.addWidget(right)
    splitter.setSizes([900, 350])

    # --- Data ---
    fruits = ["Apples", "Bananas", "Cherries", "Dragon fruit (imported)", "Elderberries"]
    colors = [(200, 40, 40), (230, 200, 40), (150, 0, 40), (220, 60, 160), (60, 40, 120)]
    rng = np.random.default_rng(7)
    sales = np.round(rng.uniform(2_000, 25_000, size=len(fruits)), 2)

    tmp = Path(tempfile.mkdtemp(prefix="pyimagechartqt_"))
    images = [make_texture(tmp / f"{i}.png", rgb, i) for i, rgb in enumerate(colors)]

    category = CategoryColumn("Fruit", tuple(fruits), query_name="Fruit.Name")
    result = CategoricalResult.from_columns(
        category,
        [
            MeasureColumn("Sales", tuple(float(s) for s in sales), frozenset({VALUE_ROLE}), "Sum(Sales)", "$#,0.00"),
            MeasureColumn("Image", tuple(images), frozenset({IMAGE_URL_ROLE}), "Image"),
        ],
    )

    for fruit, value in zip(fruits, sales):
        model.appendRow([QStandardItem(fruit), QStandardItem(f"{value:,.2f}")])

    keys = [category.key_for(i) for i in range(len(fruits))]
    key_to_row = {k: i for i, k in enumerate(keys)}

    def current_properties():
        return PersistedProperties(objects={
            "generalView": {"opacity": opacity_slider.value()},
            "enableImages": {"show": images_box.isChecked()},
            "valueAxis": {"showAxisTitle": True, "displayUnits": 1000, "precision": 1},
            "categoryAxis": {"showAxisTitle": True},
        })

    chart.set_data(result, current_properties())

    opacity_slider.valueChanged.connect(lambda _: chart.set_properties(current_properties()))
    images_box.toggled.connect(lambda _: chart.set_properties(current_properties()))

    # --- Selection <-> table wiring ---
    suppress_table = {"flag": False}

    def on_chart_select(selected):
        info.setText(f"Selection: {', '.join(str(k.identity) for k in selected) or 'none'}")
        sel = table.selectionModel()
        suppress_table["flag"] = True
        try:
            sel.blockSignals(True)
            sel.clearSelection()
            flags = (
                QItemSelectionModel.SelectionFlag.Select
                | QItemSelectionModel.SelectionFlag.Rows
            )
            for key in selected:
                r = key_to_row.get(key)
                if r is not None:
                    sel.select(model.index(r, 0), flags)
        finally:
            sel.blockSignals(False)
            suppress_table["flag"] = False

    chart.selectionKeysChanged.connect(on_chart_select)

    def on_table_selection_changed(*_):
        if suppress_table["flag"]:
            return
        rows = [idx.row() for idx in table.selectionModel().selectedRows()]
        chart.select_keys([keys[r] for r in rows])

    table.selectionModel().selectionChanged.connect(on_table_selection_changed)

    win.resize(1300, 700)
    win.show()
    sys.exit(app.exec())


if __name__ == "__main__":
    main()
