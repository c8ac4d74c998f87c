import pytest

from cli import main as cli_main
from cli.main import build_parser, main
from pan_tilt_tracking.common import Resolution
from pan_tilt_tracking.readings import AxesCalibrationReadings, AxisCalibrationReadings, PanTiltCalibrationReadings
from pan_tilt_tracking.repository import CalibrationReadingsRepository


def test_parser_requires_a_command():
    with pytest.raises(SystemExit):
        build_parser().parse_args([])


def test_parser_options():
    args = build_parser().parse_args(["--port", "/dev/ttyACM0", "--detector", "face", "track", "--show"])
    assert args.command == "track"
    assert args.port == "/dev/ttyACM0"
    assert args.detector == "face"
    assert args.show


def test_show_summarises_table(tmp_path, capsys):
    horizontal = AxisCalibrationReadings()
    horizontal.record(-6, 0.6)
    horizontal.record(6, -0.6)
    axes = AxesCalibrationReadings(horizontal=horizontal)
    axes.calculate_accepted_readings()
    axes.interpolate()
    table = PanTiltCalibrationReadings()
    table[Resolution(640, 480)] = axes
    path = tmp_path / "cal.json"
    CalibrationReadingsRepository(path).write(table)

    assert main(["--calibration", str(path), "show"]) == 0
    out = capsys.readouterr().out
    assert "640x480:" in out
    assert "13 deviations (11 interpolated), -6..6 px" in out
    assert "vertical      0 deviations (0 interpolated), empty, fit: n/a" in out


def test_show_without_file(tmp_path, capsys):
    assert main(["--calibration", str(tmp_path / "missing.json"), "show"]) == 0
    assert "No calibration" in capsys.readouterr().out


@pytest.fixture
def corrupt_file(tmp_path):
    path = tmp_path / "cal.json"
    path.write_text("{not json")
    return path


def test_show_reports_corrupt_file(corrupt_file, capsys):
    assert main(["--calibration", str(corrupt_file), "show"]) == 1
    out = capsys.readouterr().out
    assert out.startswith("[Storage] JSON error in")


@pytest.mark.parametrize("command", ["calibrate", "track"])
def test_corrupt_file_stops_before_camera_opens(corrupt_file, capsys, monkeypatch, command):
    opened = []

    class FakeCamera:
        def __init__(self, cfg):
            opened.append(cfg)

    monkeypatch.setattr(cli_main, "Camera", FakeCamera)
    assert main(["--calibration", str(corrupt_file), command]) == 1
    assert opened == []
    assert "[Storage] JSON error in" in capsys.readouterr().out
