"""Straight-line fit used to fill gaps in calibration readings."""
from __future__ import annotations

from dataclasses import dataclass
from typing import Iterable, Optional, Tuple

import numpy as np


@dataclass(frozen=True)
class LinearRegressor:
    slope: float
    intercept: float

    def calculate(self, x: float) -> float:
        return self.slope * x + self.intercept

    @classmethod
    def fit(cls, points: Iterable[Tuple[float, float]]) -> Optional["LinearRegressor"]:
        """
        Least-squares line through (x, y) points.

        Returns None when fewer than two distinct x values are present,
        since no line is defined; callers skip interpolation in that case.
        With exactly two distinct x values the fit passes through both.
        """
        pts = np.asarray(list(points), dtype=float)
        if pts.size == 0 or len(np.unique(pts[:, 0])) < 2:
            return None
        slope, intercept = np.polyfit(pts[:, 0], pts[:, 1], deg=1)
        return cls(float(slope), float(intercept))

    def __str__(self) -> str:
        return f"y = {self.slope:.5f}x + {self.intercept:.5f}"
