from collections import deque

import pytest

from pan_tilt_tracking import pan_tilt
from pan_tilt_tracking.common import PanTiltSetting
from pan_tilt_tracking.config import PanTiltConfig
from pan_tilt_tracking.pan_tilt import AxisRange, FirmwareError, PanTiltLink, SerialPanTiltMechanism

PAN = AxisRange(-90.0, 90.0)
TILT = AxisRange(-45.0, 45.0)


class FakeSerial:
    instances = []

    def __init__(self, **kwargs):
        self.kwargs = kwargs
        self.is_open = True
        self.written = []
        self.replies = deque()
        FakeSerial.instances.append(self)

    def reset_input_buffer(self):
        pass

    def write(self, data):
        self.written.append(data)

    def flush(self):
        pass

    def readline(self):
        return self.replies.popleft() if self.replies else b""

    def close(self):
        self.is_open = False


@pytest.fixture
def link(monkeypatch):
    FakeSerial.instances.clear()
    monkeypatch.setattr(pan_tilt.serial, "Serial", FakeSerial)
    monkeypatch.setattr(pan_tilt.time, "sleep", lambda s: None)
    t = PanTiltLink("/dev/null", pan=PAN, tilt=TILT, baudrate=115_200)
    t.open()
    return t


@pytest.fixture
def ser(link):
    return FakeSerial.instances[0]


def test_move_waits_for_ack_and_skips_noise(link, ser):
    ser.replies.extend([b"debug: stepping\n", b"MOVE_OK\n"])
    link.move(PanTiltSetting(75.0, 50.0))
    assert ser.written == [b"MOVE_DEGW 45.000 0.000\n"]
    assert ser.replies == deque()


def test_async_move_does_not_read(link, ser):
    link.move(PanTiltSetting(0.0, 100.0), wait=False)
    assert ser.written == [b"MOVE_DEG -90.000 45.000\n"]


def test_missing_reply_raises_firmware_error(link):
    with pytest.raises(FirmwareError):
        link.home()


def test_position_reported_in_percent(link, ser):
    ser.replies.append(b"45.0,-22.5\r\n")
    assert link.position() == PanTiltSetting(75.0, 25.0)


def test_closed_port_refuses_commands(link):
    link.close()
    with pytest.raises(RuntimeError):
        link.rest()


@pytest.mark.parametrize(
    "percent, invert, deg",
    [(0.0, False, -90.0), (50.0, False, 0.0), (100.0, False, 90.0), (25.0, True, 45.0)],
)
def test_axis_range_round_trip(percent, invert, deg):
    axis = AxisRange(-90.0, 90.0, invert)
    assert axis.to_deg(percent) == pytest.approx(deg)
    assert axis.to_percent(deg) == pytest.approx(percent)


def test_axis_range_clamps_out_of_range_percent():
    assert PAN.to_deg(130.0) == 90.0
    assert PAN.to_deg(-5.0) == -90.0


def test_mechanism_moves_and_syncs(link, ser):
    mech = SerialPanTiltMechanism(link)
    ser.replies.append(b"MOVE_OK\n")
    mech.move_absolute(PanTiltSetting(75.0, 50.0))
    ser.replies.append(b"MOVE_OK\n")
    mech.move_relative(PanTiltSetting(0.0, 50.0))
    assert ser.written == [b"MOVE_DEGW 45.000 0.000\n", b"MOVE_DEGW 45.000 45.000\n"]
    assert mech.current_setting == PanTiltSetting(75.0, 100.0)

    ser.replies.append(b"0.0,0.0\n")
    assert mech.sync() == PanTiltSetting(50.0, 50.0)
    assert mech.current_setting == PanTiltSetting(50.0, 50.0)


def test_from_config_builds_ranges():
    cfg = PanTiltConfig(port="/dev/null", tilt_range_deg=(-30.0, 60.0), invert_pan_output=True,
                        use_blocking_moves=False)
    mech = SerialPanTiltMechanism.from_config(cfg)
    assert mech.turret.tilt == AxisRange(-30.0, 60.0)
    assert mech.turret.pan.invert
    assert not mech.blocking


def test_mechanism_requires_port():
    with pytest.raises(ValueError):
        SerialPanTiltMechanism.from_config(PanTiltConfig(port=None))
