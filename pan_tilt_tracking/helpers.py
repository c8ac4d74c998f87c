"""Small utility classes that don’t fit elsewhere."""
from typing import Optional, Tuple

import numpy as np


class PointSmoother:
    """
    Simple exponential smoother for (x, y) pixel points.
    Keeps a jittery detector from re-targeting the turret every frame.
    """

    def __init__(self, alpha: float = 0.5):
        self.alpha = alpha
        self.state: Optional[np.ndarray] = None

    def update(self, point: Tuple[float, float]) -> Tuple[float, float]:
        meas = np.array(point, dtype=float)
        if self.state is None:
            self.state = meas.copy()
        else:
            self.state = self.alpha * meas + (1.0 - self.alpha) * self.state
        return float(self.state[0]), float(self.state[1])

    def reset(self) -> None:
        self.state = None
