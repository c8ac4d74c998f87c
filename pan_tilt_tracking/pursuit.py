"""Smooth pursuit: calibrated lookup + time-based trajectory per detection."""
from __future__ import annotations

from typing import Optional

from pan_tilt_tracking.common import DetectionResult, PanTiltSetting, Resolution
from pan_tilt_tracking.config import PursuitConfig
from pan_tilt_tracking.helpers import PointSmoother
from pan_tilt_tracking.mechanism import PanTiltMechanism
from pan_tilt_tracking.readings import AxesCalibrationReadings
from pan_tilt_tracking.trajectory import Stopwatch, TimeTarget


class PursuitController:
    """
    Keeps a detected target centred.

    `react` turns the pixel error of a detection into a destination setting
    using the calibration readings for the current resolution; `tick` walks
    the turret towards that destination along a TimeTarget.
    """

    def __init__(
        self,
        mechanism: PanTiltMechanism,
        readings: AxesCalibrationReadings,
        cfg: Optional[PursuitConfig] = None,
        stopwatch: Optional[Stopwatch] = None,
    ):
        self.mechanism = mechanism
        self.readings = readings
        self.cfg = cfg or PursuitConfig()
        self.stopwatch = stopwatch or Stopwatch()
        self.smoother = (
            PointSmoother(self.cfg.smoother_alpha)
            if self.cfg.smoother_alpha is not None
            else None
        )
        self.time_target: Optional[TimeTarget] = None

    # ------------------------------------------------------------------ #
    def pixel_error(self, detection: DetectionResult, resolution: Resolution) -> tuple:
        x, y = detection.point
        if self.smoother is not None:
            x, y = self.smoother.update((x, y))
        cx, cy = resolution.centre
        ex, ey = x - cx, y - cy
        # Dead-zone
        if abs(ex) < self.cfg.error_deadzone_px:
            ex = 0.0
        if abs(ey) < self.cfg.error_deadzone_px:
            ey = 0.0
        return ex, ey

    def react(self, detection: DetectionResult, resolution: Resolution) -> Optional[TimeTarget]:
        """Re-target when the detection asks for a noticeably different setting."""
        if not detection.found:
            if self.smoother is not None:
                self.smoother.reset()
            return None

        ex, ey = self.pixel_error(detection, resolution)
        if ex == 0.0 and ey == 0.0:
            return None

        # The target has to shift by -error pixels to land on the centre.
        movement = self.readings.movement_for(-ex, -ey)
        current = self.mechanism.current_setting
        destination = (current + movement).clamped()

        if self.time_target is not None:
            diff = destination - self.time_target.target
            if (
                abs(diff.pan_percent) < self.cfg.min_retarget_pct
                and abs(diff.tilt_percent) < self.cfg.min_retarget_pct
            ):
                return None
        elif (
            abs(movement.pan_percent) < self.cfg.min_retarget_pct
            and abs(movement.tilt_percent) < self.cfg.min_retarget_pct
        ):
            return None

        self.stopwatch.restart()
        self.time_target = TimeTarget(
            self.stopwatch, current, destination, self.cfg.move_duration_s
        )
        return self.time_target

    def tick(self) -> Optional[PanTiltSetting]:
        """Command the next point on the active trajectory, if any."""
        if self.time_target is None:
            return None
        setting = self.time_target.get_next_position()
        if setting != self.mechanism.current_setting:
            self.mechanism.move_absolute(setting)
        if self.time_target.is_complete():
            self.time_target = None
        return setting
