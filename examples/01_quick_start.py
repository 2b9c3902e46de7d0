#!/usr/bin/env python3
"""Quick Start Example

This example shows the most basic usage of pyimagechartqt:
- Building a categorical result with a value column
- Creating the chart widget
- Displaying the chart
"""

import sys

from PySide6 import QtWidgets

from pyimagechartqt import CategoricalResult, CategoryColumn, MeasureColumn, VALUE_ROLE
from pyimagechartqt.chart_widget import ImageChartWidget

def main():
    """Run the quick start example."""
    app = QtWidgets.QApplication(sys.argv)

    # One category column and one value column
    category = CategoryColumn("Product", ("A", "B", "C"), query_name="Product.Name")
    sales = MeasureColumn("Sales", (10, 5, 20), roles=frozenset({VALUE_ROLE}))
    result = CategoricalResult.from_columns(category, [sales])

    chart = ImageChartWidget()
    chart.set_data(result)

    # Show the chart
    chart.resize(640, 480)
    chart.show()
    sys.exit(app.exec())

if __name__ == "__main__":
    main()
