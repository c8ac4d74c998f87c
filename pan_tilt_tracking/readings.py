"""
Calibration data model.

A calibration maps *pixel deviation* (how far the target moved in the frame)
to the servo percentage that produced that movement, per axis and per camera
resolution::

    PanTiltCalibrationReadings   Resolution -> AxesCalibrationReadings
    AxesCalibrationReadings      horizontal / vertical AxisCalibrationReadings
    AxisCalibrationReadings      int pixel deviation -> ReadingSet
    ReadingSet                   raw readings + accepted value
"""
from __future__ import annotations

from dataclasses import dataclass, field
from typing import Dict, Iterator, List, Optional, Tuple

from pan_tilt_tracking.common import (
    PanTiltAxis,
    PanTiltSetting,
    Resolution,
    UnsupportedAxisError,
)
from pan_tilt_tracking.regression import LinearRegressor


@dataclass
class ReadingSet:
    all_readings: List[float] = field(default_factory=list)
    accepted: Optional[float] = None
    is_interpolated: bool = False

    @classmethod
    def seeded(cls, first_reading: float) -> "ReadingSet":
        return cls(all_readings=[first_reading])

    @classmethod
    def interpolated(cls, accepted: float) -> "ReadingSet":
        return cls(all_readings=[], accepted=accepted, is_interpolated=True)

    def add(self, reading: float) -> None:
        self.all_readings.append(reading)

    def calculate_accepted(self) -> None:
        """Accepted value is the mean of every raw reading."""
        if self.is_interpolated or not self.all_readings:
            return
        self.accepted = sum(self.all_readings) / len(self.all_readings)

    def __str__(self) -> str:
        return f"Accepted={self.accepted}, AllReadings.Count={len(self.all_readings)}"


class AxisCalibrationReadings(Dict[int, ReadingSet]):
    """Pixel deviation -> servo percentages that moved the target that far."""

    def record(self, pixel_deviation: int, movement_pct: float) -> ReadingSet:
        reading_set = self.get(pixel_deviation)
        if reading_set is None:
            reading_set = ReadingSet.seeded(movement_pct)
            self[pixel_deviation] = reading_set
        else:
            reading_set.add(movement_pct)
        return reading_set

    def calculate_accepted(self) -> None:
        for reading_set in self.values():
            reading_set.calculate_accepted()

    def accepted_points(self) -> List[Tuple[int, float]]:
        return sorted(
            (key, rs.accepted) for key, rs in self.items() if rs.accepted is not None
        )

    def fit(self) -> Optional[LinearRegressor]:
        return LinearRegressor.fit(self.accepted_points())

    def interpolate(self, regressor: Optional[LinearRegressor] = None) -> int:
        """
        Fill every missing integer key between the smallest and largest
        observed deviation (inclusive) from a straight-line fit.
        Existing keys are never touched. Returns the number of keys added.
        """
        if not self:
            return 0
        if regressor is None:
            regressor = self.fit()
        if regressor is None:
            return 0

        keys = sorted(self)
        added = 0
        for deviation in range(keys[0], keys[-1] + 1):
            if deviation not in self:
                self[deviation] = ReadingSet.interpolated(regressor.calculate(deviation))
                added += 1
        return added

    def lookup(self, pixel_deviation: float) -> Optional[float]:
        """
        Accepted movement for a pixel deviation; the nearest key is used when
        the exact one is missing (ties favour the smaller magnitude).
        """
        candidates = [(k, rs.accepted) for k, rs in self.items() if rs.accepted is not None]
        if not candidates:
            return None
        key, accepted = min(
            candidates, key=lambda kv: (abs(kv[0] - pixel_deviation), abs(kv[0]))
        )
        return accepted

    def __str__(self) -> str:
        return f"{len(self)} pixel readings"


class AxesCalibrationReadings:
    """Horizontal and vertical readings for one camera resolution."""

    def __init__(
        self,
        horizontal: Optional[AxisCalibrationReadings] = None,
        vertical: Optional[AxisCalibrationReadings] = None,
    ) -> None:
        self.horizontal = horizontal if horizontal is not None else AxisCalibrationReadings()
        self.vertical = vertical if vertical is not None else AxisCalibrationReadings()

    def __getitem__(self, axis: PanTiltAxis) -> AxisCalibrationReadings:
        if axis is PanTiltAxis.HORIZONTAL:
            return self.horizontal
        if axis is PanTiltAxis.VERTICAL:
            return self.vertical
        raise UnsupportedAxisError(f"Unsupported axis {axis!r}")

    def __iter__(self) -> Iterator[Tuple[PanTiltAxis, AxisCalibrationReadings]]:
        yield PanTiltAxis.HORIZONTAL, self.horizontal
        yield PanTiltAxis.VERTICAL, self.vertical

    def calculate_accepted_readings(self) -> None:
        self.horizontal.calculate_accepted()
        self.vertical.calculate_accepted()

    def interpolate(self) -> Dict[PanTiltAxis, int]:
        """Each axis is fitted on its own; an unfit axis is left as it is."""
        return {axis: readings.interpolate() for axis, readings in self}

    def movement_for(self, dx_px: float, dy_px: float) -> PanTiltSetting:
        """Relative servo movement that shifts the target by (dx, dy) pixels."""
        pan = self.horizontal.lookup(dx_px) if dx_px else None
        tilt = self.vertical.lookup(dy_px) if dy_px else None
        return PanTiltSetting(
            0.0 if pan is None else pan,
            0.0 if tilt is None else tilt,
        )

    def is_empty(self) -> bool:
        return not self.horizontal and not self.vertical

    def __repr__(self) -> str:
        return (
            f"<AxesCalibrationReadings horizontal={self.horizontal} "
            f"vertical={self.vertical}>"
        )


class PanTiltCalibrationReadings(Dict[Resolution, AxesCalibrationReadings]):
    """The calibration table: one entry per camera resolution."""

    def replace(
        self, resolution: Resolution, readings: AxesCalibrationReadings
    ) -> AxesCalibrationReadings:
        # Recalibration discards the old entry, it is never merged.
        self.pop(resolution, None)
        self[resolution] = readings
        return readings

    def interpolate(self) -> None:
        for readings in self.values():
            readings.interpolate()
