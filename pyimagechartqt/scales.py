"""Linear and band scales used by the layout engine.

Both scales are plain value objects rebuilt every update cycle. They accept
numpy arrays so a renderer can map all bars in one call.
"""

from __future__ import annotations

from typing import Any, List, Optional, Sequence, Tuple, Union

import numpy as np
from matplotlib.ticker import MaxNLocator

Number = Union[float, np.ndarray]
NICE_STEPS = [1, 2, 2.5, 5, 10]


class LinearScale:
    """Continuous mapping from a value domain to a pixel range.

    A zero-width domain maps every value to the middle of the range.
    """

    def __init__(self, domain: Tuple[float, float], range_: Tuple[float, float]) -> None:
        self.domain = (float(domain[0]), float(domain[1]))
        self.range = (float(range_[0]), float(range_[1]))

    def __call__(self, value: Number) -> Number:
        d0, d1 = self.domain
        r0, r1 = self.range
        values = np.asarray(value, dtype=np.float64)
        if d1 == d0:
            out = np.full_like(values, (r0 + r1) / 2.0)
        else:
            out = r0 + (values - d0) / (d1 - d0) * (r1 - r0)
        return float(out) if out.ndim == 0 else out

    def ticks(self, count: int = 5) -> List[float]:
        """Round tick values inside the domain."""
        lo, hi = sorted(self.domain)
        if lo == hi:
            return [lo]
        locator = MaxNLocator(nbins=max(1, int(count)), steps=NICE_STEPS)
        values = locator.tick_values(lo, hi)
        eps = (hi - lo) * 1e-9
        return [float(v) for v in values if lo - eps <= v <= hi + eps]

    def __repr__(self) -> str:
        return f"LinearScale(domain={self.domain}, range={self.range})"


class BandScale:
    """Ordinal mapping from categories to evenly spaced bands.

    Each category gets a step of ``width / n`` pixels; ``padding`` of that
    step is left empty, split evenly on both sides of the band.
    """

    def __init__(
        self,
        domain: Sequence[Any],
        range_: Tuple[float, float],
        padding: float = 0.1,
    ) -> None:
        if not 0.0 <= padding < 1.0:
            raise ValueError("padding must be in [0, 1)")
        self.domain = list(domain)
        self.range = (float(range_[0]), float(range_[1]))
        self.padding = float(padding)
        self._index = {}
        for i, item in enumerate(self.domain):
            self._index.setdefault(item, i)

    @property
    def step(self) -> float:
        if not self.domain:
            return 0.0
        return (self.range[1] - self.range[0]) / len(self.domain)

    @property
    def bandwidth(self) -> float:
        return self.step * (1.0 - self.padding)

    def position(self, index: int) -> float:
        return self.range[0] + index * self.step + self.step * self.padding / 2.0

    def positions(self) -> np.ndarray:
        """Band start for every domain entry, in domain order."""
        indices = np.arange(len(self.domain), dtype=np.float64)
        return self.range[0] + indices * self.step + self.step * self.padding / 2.0

    def __call__(self, item: Any) -> Optional[float]:
        index = self._index.get(item)
        if index is None:
            return None
        return self.position(index)

    def center(self, index: int) -> float:
        return self.position(index) + self.bandwidth / 2.0

    def index_at(self, x: float) -> Optional[int]:
        """Index of the band containing ``x`` (padding excluded), or None."""
        if not self.domain or self.step <= 0:
            return None
        index = int(np.floor((x - self.range[0]) / self.step))
        if index < 0 or index >= len(self.domain):
            return None
        start = self.position(index)
        if start <= x <= start + self.bandwidth:
            return index
        return None

    def __repr__(self) -> str:
        return f"BandScale(n={len(self.domain)}, range={self.range}, padding={self.padding})"
