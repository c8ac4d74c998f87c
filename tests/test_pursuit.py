import pytest

from pan_tilt_tracking.common import NOT_FOUND, DetectionResult, PanTiltSetting, Resolution
from pan_tilt_tracking.config import PursuitConfig
from pan_tilt_tracking.mechanism import RecordingPanTiltMechanism
from pan_tilt_tracking.pursuit import PursuitController
from pan_tilt_tracking.readings import AxesCalibrationReadings, AxisCalibrationReadings

from conftest import FakeStopwatch

RES = Resolution(640, 480)


def _linear_axis(pct_per_px):
    axis = AxisCalibrationReadings()
    for deviation in (-300, 300):
        axis.record(deviation, deviation * pct_per_px)
    axis.calculate_accepted()
    axis.interpolate()
    return axis


@pytest.fixture
def readings():
    # +1 % pan moves the target -10 px, +1 % tilt moves it +8 px
    return AxesCalibrationReadings(_linear_axis(-0.1), _linear_axis(0.125))


@pytest.fixture
def stopwatch():
    return FakeStopwatch()


@pytest.fixture
def pursuit(readings, stopwatch):
    cfg = PursuitConfig(move_duration_s=0.4, error_deadzone_px=8, min_retarget_pct=0.5, smoother_alpha=None)
    return PursuitController(RecordingPanTiltMechanism(), readings, cfg, stopwatch)


def test_react_targets_the_calibrated_setting(pursuit, stopwatch):
    tt = pursuit.react(DetectionResult(True, (420.0, 200.0)), RES)

    # +100 px must shift by -100 px -> +10 % pan; -40 px -> +40 px -> +5 % tilt
    assert tt is not None
    assert tt.original == PanTiltSetting(50.0, 50.0)
    assert tt.target.pan_percent == pytest.approx(60.0)
    assert tt.target.tilt_percent == pytest.approx(55.0)
    assert stopwatch.restarts == 1


def test_tick_walks_the_trajectory(pursuit, stopwatch):
    pursuit.react(DetectionResult(True, (420.0, 240.0)), RES)

    stopwatch.advance(0.2)
    mid = pursuit.tick()
    assert mid.pan_percent == pytest.approx(55.0)
    assert pursuit.mechanism.current_setting == mid

    stopwatch.advance(0.3)
    end = pursuit.tick()
    assert end.pan_percent == pytest.approx(60.0)
    assert pursuit.time_target is None
    assert pursuit.tick() is None


def test_deadzone_and_lost_target_do_not_move(pursuit):
    assert pursuit.react(DetectionResult(True, (325.0, 236.0)), RES) is None
    assert pursuit.react(NOT_FOUND, RES) is None
    assert pursuit.tick() is None
    assert pursuit.mechanism.history == []


def test_small_change_keeps_current_trajectory(pursuit, stopwatch):
    first = pursuit.react(DetectionResult(True, (420.0, 240.0)), RES)
    stopwatch.advance(0.1)
    assert pursuit.react(DetectionResult(True, (422.0, 240.0)), RES) is None
    assert pursuit.time_target is first
    assert stopwatch.restarts == 1


def test_new_destination_retargets_from_current_setting(pursuit, stopwatch):
    pursuit.react(DetectionResult(True, (420.0, 240.0)), RES)
    stopwatch.advance(0.2)
    pursuit.tick()

    tt = pursuit.react(DetectionResult(True, (120.0, 240.0)), RES)
    assert tt is not None
    assert tt.original.pan_percent == pytest.approx(55.0)
    assert tt.target.pan_percent == pytest.approx(35.0)
    assert stopwatch.elapsed == 0.0


def test_destination_is_clamped_to_servo_range(readings, stopwatch):
    mech = RecordingPanTiltMechanism(PanTiltSetting(95.0, 50.0))
    pursuit = PursuitController(mech, readings, PursuitConfig(smoother_alpha=None), stopwatch)
    tt = pursuit.react(DetectionResult(True, (600.0, 240.0)), RES)
    assert tt.target.pan_percent == 100.0


def test_smoother_damps_a_jump(readings, stopwatch):
    pursuit = PursuitController(
        RecordingPanTiltMechanism(), readings, PursuitConfig(smoother_alpha=0.5), stopwatch
    )
    pursuit.react(DetectionResult(True, (320.0, 240.0)), RES)
    tt = pursuit.react(DetectionResult(True, (520.0, 240.0)), RES)
    # smoothed x = 420 -> +10 % rather than +20 %
    assert tt.target.pan_percent == pytest.approx(60.0)
