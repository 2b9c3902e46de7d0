#!/usr/bin/env python3
"""Color Overrides and Format Pane Example

Shows how a host property editor talks to the chart:
- enumerate_object_instances() lists the current value of each property
- a persisted fill for one category overrides its palette color
- tooltips are answered for the bar under the pointer
"""

import logging
import sys

from PySide6 import QtWidgets

from pyimagechartqt import (
    CategoricalResult,
    CategoryColumn,
    MeasureColumn,
    PersistedProperties,
    VALUE_ROLE,
    setup_logging,
)
from pyimagechartqt.chart_widget import ImageChartWidget


def main():
    """Run the color override example."""
    setup_logging(logging.DEBUG)
    app = QtWidgets.QApplication(sys.argv)

    category = CategoryColumn("Region", ("North", "South", "East", "West"), query_name="Region")
    revenue = MeasureColumn(
        "Revenue", (1_250_000, 830_000, 1_710_000, 990_000),
        roles=frozenset({VALUE_ROLE}), format_string="$#,0",
    )
    result = CategoricalResult.from_columns(category, [revenue])

    chart = ImageChartWidget()
    chart.set_data(result)

    # What the format pane would show
    for instance in chart.visual.enumerate_object_instances("colorSelector"):
        print(f"{instance.display_name}: {instance.properties['fill']['solid']['color']}")
    print(chart.visual.enumerate_object_instances("valueAxis")[0].properties)

    # The user picks a new color for "South"; the host persists it and updates
    south = category.key_for(1)
    properties = PersistedProperties(
        objects={"valueAxis": {"displayUnits": 1e6, "precision": 1, "showAxisTitle": True}},
    ).with_color_override(south, "#ff8800")
    chart.set_properties(properties)

    for item in chart.visual.tooltip_items(south):
        print(f"tooltip: {item.display_name} = {item.value} ({item.color})")

    chart.resize(640, 480)
    chart.show()
    sys.exit(app.exec())


if __name__ == "__main__":
    main()
