from typing import List, Optional, Tuple

import pytest

from pan_tilt_tracking.common import NOT_FOUND, DetectionResult, PanTiltSetting, Resolution
from pan_tilt_tracking.config import CalibrationConfig
from pan_tilt_tracking.mechanism import RecordingPanTiltMechanism


class FakeClock:
    def __init__(self, elapsed: float = 0.0):
        self.elapsed = elapsed


class FakeStopwatch(FakeClock):
    """Stopwatch stand-in: restart() rewinds to zero, time moves only via advance()."""

    def __init__(self):
        super().__init__(0.0)
        self.restarts = 0

    def restart(self) -> None:
        self.elapsed = 0.0
        self.restarts += 1

    def advance(self, seconds: float) -> None:
        self.elapsed += seconds


class SimulatedRig:
    """
    Camera + detector that see a fixed target through the mechanism.
    Moving pan/tilt by one percent shifts the target by `px_per_pct` pixels;
    the target is only found while it stays inside the frame.
    """

    def __init__(
        self,
        mechanism: RecordingPanTiltMechanism,
        resolution: Resolution = Resolution(640, 480),
        px_per_pct: Tuple[float, float] = (-10.0, 8.0),
        centre_point: Tuple[float, float] = (320.0, 240.0),
        always_visible: bool = False,
    ):
        self.mechanism = mechanism
        self.resolution = resolution
        self.px_per_pct = px_per_pct
        self.centre_point = centre_point
        self.always_visible = always_visible
        self.captures = 0
        self.detections: List[DetectionResult] = []

    def capture(self) -> PanTiltSetting:
        self.captures += 1
        return self.mechanism.current_setting

    def detect(self, frame: Optional[PanTiltSetting]) -> DetectionResult:
        x = self.centre_point[0] + (frame.pan_percent - 50.0) * self.px_per_pct[0]
        y = self.centre_point[1] + (frame.tilt_percent - 50.0) * self.px_per_pct[1]
        visible = self.always_visible or (
            0 <= x < self.resolution.width and 0 <= y < self.resolution.height
        )
        result = DetectionResult(True, (x, y)) if visible else NOT_FOUND
        self.detections.append(result)
        return result


class ScriptedDetector:
    """Returns a fixed sequence of results, then repeats the last one."""

    def __init__(self, results: List[DetectionResult]):
        self.results = list(results)
        self.calls = 0

    def detect(self, frame) -> DetectionResult:
        idx = min(self.calls, len(self.results) - 1)
        self.calls += 1
        return self.results[idx]


@pytest.fixture
def quiet_cfg() -> CalibrationConfig:
    return CalibrationConfig(servo_settle_time_s=0.0, verbose=False)


@pytest.fixture
def mechanism() -> RecordingPanTiltMechanism:
    return RecordingPanTiltMechanism()


@pytest.fixture
def rig(mechanism) -> SimulatedRig:
    return SimulatedRig(mechanism)
