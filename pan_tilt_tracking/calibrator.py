"""
Closed-loop calibration of pixel deviation against servo percentage.

For each axis and each direction the rig is re-centred, a reference
detection is taken, the servo is nudged by an ever larger saccade and the
target is detected again. The pixel shift between the two detections is
recorded against the saccade that caused it. Re-centring before every
sample keeps backlash from earlier moves out of the measurement.
"""
from __future__ import annotations

import threading
import time
from datetime import datetime
from typing import Any, Callable, Optional, Protocol

from pan_tilt_tracking.common import (
    DetectionResult,
    PanTiltAxis,
    PanTiltSetting,
    Resolution,
    check_axis,
)
from pan_tilt_tracking.config import CalibrationConfig
from pan_tilt_tracking.mechanism import PanTiltMechanism
from pan_tilt_tracking.readings import (
    AxesCalibrationReadings,
    AxisCalibrationReadings,
    PanTiltCalibrationReadings,
)


class CalibrationCancelled(RuntimeError):
    """Raised when the stop event is set part-way through a run."""


class Detector(Protocol):
    def detect(self, frame: Any) -> DetectionResult:
        ...


DetectionHook = Callable[[DetectionResult, Any], None]

# Strictly sequential: the mechanism is a single actuator.
HALF_AXIS_ORDER = (
    (1, PanTiltAxis.HORIZONTAL),
    (-1, PanTiltAxis.HORIZONTAL),
    (1, PanTiltAxis.VERTICAL),
    (-1, PanTiltAxis.VERTICAL),
)


class CalibratingPanTiltController:
    """Drives mechanism + camera + detector to build AxesCalibrationReadings."""

    def __init__(
        self,
        mechanism: PanTiltMechanism,
        capture: Callable[[], Any],
        detector: Detector,
        cfg: Optional[CalibrationConfig] = None,
        *,
        sleep: Callable[[float], None] = time.sleep,
        on_detection: Optional[DetectionHook] = None,
    ):
        self.mechanism = mechanism
        self.capture = capture
        self.detector = detector
        self.cfg = cfg or CalibrationConfig()
        self.sleep = sleep
        self.on_detection = on_detection

    @property
    def centre(self) -> PanTiltSetting:
        return PanTiltSetting(self.cfg.centre_pan_pct, self.cfg.centre_tilt_pct)

    # ------------------------------------------------------------------ #
    #   P U B L I C   A P I
    # ------------------------------------------------------------------ #
    def calibrate(
        self,
        resolution: Resolution,
        stop_event: Optional[threading.Event] = None,
    ) -> AxesCalibrationReadings:
        """
        Sample both directions of both axes and average duplicate deviations.
        A run that never sees the target returns empty axis tables.
        """
        self._log(f"Calibrating {resolution}")
        readings = AxesCalibrationReadings()
        for sign, axis in HALF_AXIS_ORDER:
            self.calibrate_half_axis(sign, axis, readings[axis], stop_event)
        readings.calculate_accepted_readings()
        self._log(
            f"{resolution}: horizontal {readings.horizontal}, "
            f"vertical {readings.vertical}"
        )
        return readings

    def calibrate_into(
        self,
        table: PanTiltCalibrationReadings,
        resolution: Resolution,
        stop_event: Optional[threading.Event] = None,
    ) -> AxesCalibrationReadings:
        """Recalibrate one resolution, replace its table entry and fill gaps."""
        readings = self.calibrate(resolution, stop_event)
        added = readings.interpolate()
        table.replace(resolution, readings)
        self.reset_to_centre()
        self._log(
            f"{resolution}: interpolated "
            f"{added[PanTiltAxis.HORIZONTAL]} horizontal / "
            f"{added[PanTiltAxis.VERTICAL]} vertical deviations"
        )
        return readings

    def calibrate_half_axis(
        self,
        sign: int,
        axis: PanTiltAxis,
        axis_readings: AxisCalibrationReadings,
        stop_event: Optional[threading.Event] = None,
    ) -> int:
        """
        Walk one direction of one axis until the target is lost or the
        deviation bound is reached. Returns the number of iterations.
        """
        check_axis(axis)
        increment = self.cfg.saccade_increment_pct
        bound = self.cfg.max_deviation_pct
        step = 0
        accumulated = 0.0

        while True:
            if stop_event is not None and stop_event.is_set():
                raise CalibrationCancelled(f"Stopped during {axis.name} {sign:+d}")

            self.reset_to_centre()
            self._wait_servo("Relocated to center position. About to capture first detection")
            first = self.locate()
            self._step(f"Center detection @ {self.mechanism.current_setting} is {first}")

            step += 1
            accumulated = sign * round(step * increment, 10)
            movement = PanTiltSetting.along(axis, accumulated)

            self.mechanism.move_relative(movement)
            self._wait_servo(f"Settle time after moving {movement}. About to capture new detection.")
            new = self.locate()
            self._step(f"New detection @ {self.mechanism.current_setting} is {new}")

            if new.found and first.found:
                deviation = int(round(new.on_axis(axis) - first.on_axis(axis)))
                axis_readings.record(deviation, accumulated)
                self._step(f"{axis.name} sign={sign:+d} saccade={accumulated} deviation={deviation}")

            if not new.found or abs(accumulated) >= bound:
                return step

    def reset_to_centre(self) -> None:
        self.mechanism.move_absolute(self.centre)

    def locate(self) -> DetectionResult:
        """Detect on the last of `capture_buffer_burn` frames; earlier ones are stale."""
        frame = None
        for _ in range(max(1, self.cfg.capture_buffer_burn)):
            frame = self.capture()
        detection = self.detector.detect(frame)
        if self.on_detection is not None:
            self.on_detection(detection, frame)
        return detection

    # ------------------------------------------------------------------ #
    #   D I A G N O S T I C S
    # ------------------------------------------------------------------ #
    def _wait_servo(self, reason: str) -> None:
        self._step(f"Waiting: {reason}")
        self.sleep(self.cfg.servo_settle_time_s)

    def _step(self, message: str) -> None:
        if self.cfg.verbose:
            stamp = datetime.now().strftime("%H:%M:%S %f")[:-3]
            print(f"[Calibrate] {stamp} {message}")

    def _log(self, message: str) -> None:
        if self.cfg.verbose:
            print(f"[Calibrate] {message}")
