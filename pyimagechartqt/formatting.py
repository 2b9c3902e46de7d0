"""Default label formatter factory.

The host normally supplies its own formatter; this implementation covers the
format strings a categorical result usually declares ("0.00", "#,0", "0%",
"$#,0.00") together with display units and precision from the axis settings.
"""

from __future__ import annotations

import math
import re
from dataclasses import dataclass
from typing import Any, Optional, Tuple

from .utils import is_finite_number

# displayUnits value -> label suffix
DISPLAY_UNITS = (
    (1e12, "T"),
    (1e9, "bn"),
    (1e6, "M"),
    (1e3, "K"),
)
AUTO_UNITS = 0
NO_UNITS = 1

_GENERAL = {"", "general", "g"}
_NUMBER_FORMAT = re.compile(r"^(?P<prefix>[^#0]*)(?P<body>[#0,]*0(?:\.0+|\.#+)?)(?P<suffix>.*)$")


@dataclass(frozen=True)
class ParsedFormat:
    """Pieces of a numeric format string."""

    prefix: str = ""
    suffix: str = ""
    grouping: bool = False
    decimals: Optional[int] = None
    percent: bool = False


def parse_format(format_string: Optional[str]) -> ParsedFormat:
    """Parse a numeric format string. Unknown formats behave like General."""
    if format_string is None or format_string.strip().lower() in _GENERAL:
        return ParsedFormat()

    match = _NUMBER_FORMAT.match(format_string.strip())
    if match is None:
        return ParsedFormat()

    body = match.group("body")
    decimals = len(body.split(".", 1)[1]) if "." in body else 0
    suffix = match.group("suffix")
    return ParsedFormat(
        prefix=match.group("prefix"),
        suffix=suffix,
        grouping="," in body,
        decimals=decimals,
        percent="%" in suffix,
    )


def _pick_units(display_units: float, magnitude: float) -> Tuple[float, str]:
    if display_units == NO_UNITS:
        return 1.0, ""
    if display_units == AUTO_UNITS:
        for scale, suffix in DISPLAY_UNITS:
            if magnitude >= scale:
                return scale, suffix
        return 1.0, ""
    for scale, suffix in DISPLAY_UNITS:
        if math.isclose(display_units, scale):
            return scale, suffix
    return 1.0, ""


class ValueFormatter:
    """Callable formatter bound to one format string and display settings."""

    def __init__(
        self,
        format_string: Optional[str] = None,
        display_units: float = AUTO_UNITS,
        precision: Optional[int] = None,
        magnitude: Optional[float] = None,
    ) -> None:
        self.format_string = format_string
        self.display_units = display_units
        self.precision = None if precision is None else max(0, int(precision))
        self._parsed = parse_format(format_string)
        # Auto units are fixed up front when the axis magnitude is known
        self._units: Optional[Tuple[float, str]] = None
        if display_units == AUTO_UNITS and is_finite_number(magnitude):
            self._units = _pick_units(display_units, abs(float(magnitude)))

    def __call__(self, value: Any) -> str:
        return self.format(value)

    def format(self, value: Any) -> str:
        if value is None:
            return ""
        if not is_finite_number(value):
            return str(value)

        fmt = self._parsed
        number = float(value)
        if fmt.percent:
            number *= 100.0

        units_suffix = ""
        if not fmt.percent:
            scale, units_suffix = self._units or _pick_units(self.display_units, abs(number))
            number /= scale

        decimals = self.precision
        if decimals is None:
            decimals = fmt.decimals if fmt.decimals is not None else _general_decimals(number)

        pattern = f"{',' if fmt.grouping else ''}.{decimals}f"
        text = format(number, pattern)
        return f"{fmt.prefix}{text}{units_suffix}{fmt.suffix}"


def _general_decimals(number: float) -> int:
    if float(number).is_integer():
        return 0
    # General format: up to four decimals, trailing zeros dropped
    text = f"{number:.4f}".rstrip("0")
    return len(text.split(".", 1)[1]) if "." in text else 0


class LabelFormatterFactory:
    """Creates formatters from (format string, display units, precision).

    ``magnitude`` is the representative value of the axis; with automatic
    display units it picks one unit for every label the formatter produces.
    """

    def create(
        self,
        format_string: Optional[str] = None,
        display_units: float = AUTO_UNITS,
        precision: Optional[int] = None,
        magnitude: Optional[float] = None,
    ) -> ValueFormatter:
        return ValueFormatter(format_string, display_units, precision, magnitude)
