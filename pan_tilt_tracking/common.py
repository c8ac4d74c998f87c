"""Objects that are shared across multiple modules."""
from __future__ import annotations

from dataclasses import dataclass
from enum import Enum
from typing import Tuple


class UnsupportedAxisError(ValueError):
    """Raised when an axis selector is not HORIZONTAL or VERTICAL."""


class PanTiltAxis(Enum):
    UNSPECIFIED = 0
    HORIZONTAL = 1
    VERTICAL = 2


def check_axis(axis: PanTiltAxis) -> PanTiltAxis:
    if axis not in (PanTiltAxis.HORIZONTAL, PanTiltAxis.VERTICAL):
        raise UnsupportedAxisError(f"Unsupported axis {axis!r}")
    return axis


@dataclass(frozen=True)
class Resolution:
    width: int
    height: int

    def __str__(self) -> str:
        return f"{self.width}x{self.height}"

    @property
    def centre(self) -> Tuple[float, float]:
        return self.width / 2.0, self.height / 2.0


@dataclass(frozen=True)
class PanTiltSetting:
    """
    Pan/tilt position (or relative movement) in servo percent.
    Absolute positions live in 0‒100; nothing here clamps unless asked to.
    """
    pan_percent: float = 0.0
    tilt_percent: float = 0.0

    def __add__(self, other: "PanTiltSetting") -> "PanTiltSetting":
        return PanTiltSetting(
            self.pan_percent + other.pan_percent,
            self.tilt_percent + other.tilt_percent,
        )

    def __sub__(self, other: "PanTiltSetting") -> "PanTiltSetting":
        return PanTiltSetting(
            self.pan_percent - other.pan_percent,
            self.tilt_percent - other.tilt_percent,
        )

    def clamped(self, low: float = 0.0, high: float = 100.0) -> "PanTiltSetting":
        return PanTiltSetting(
            min(max(self.pan_percent, low), high),
            min(max(self.tilt_percent, low), high),
        )

    def on_axis(self, axis: PanTiltAxis) -> float:
        if check_axis(axis) is PanTiltAxis.HORIZONTAL:
            return self.pan_percent
        return self.tilt_percent

    @classmethod
    def along(cls, axis: PanTiltAxis, percent: float) -> "PanTiltSetting":
        """Movement of `percent` on one axis, the other axis untouched."""
        if check_axis(axis) is PanTiltAxis.HORIZONTAL:
            return cls(pan_percent=percent)
        return cls(tilt_percent=percent)

    def __str__(self) -> str:
        return f"(pan={self.pan_percent:.2f}%, tilt={self.tilt_percent:.2f}%)"


@dataclass(frozen=True)
class DetectionResult:
    """
    One detector verdict for a captured frame.
    `point` is in pixel space and meaningless when `found` is False.
    """
    found: bool
    point: Tuple[float, float] = (0.0, 0.0)

    def on_axis(self, axis: PanTiltAxis) -> float:
        x, y = self.point
        return x if check_axis(axis) is PanTiltAxis.HORIZONTAL else y


NOT_FOUND = DetectionResult(found=False)
