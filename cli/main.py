"""
Entry-point for the pan/tilt calibration and tracking system.

Sub-commands
------------
calibrate   Sweep both axes from the centre, build the pixel→percent table for
            the camera's resolution and write it to disk.
track       Load the table and keep the detected target centred.
show        Print a summary of the stored calibration table.
"""
from __future__ import annotations

import argparse
import sys
import time
from typing import Optional

import cv2
import serial

from pan_tilt_tracking.calibrator import CalibratingPanTiltController, CalibrationCancelled
from pan_tilt_tracking.camera import Camera
from pan_tilt_tracking.config import AppConfig
from pan_tilt_tracking.detector import ColourDetector, MediaPipeFaceDetector
from pan_tilt_tracking.mechanism import PanTiltMechanism, RecordingPanTiltMechanism
from pan_tilt_tracking.pan_tilt import FirmwareError, SerialPanTiltMechanism
from pan_tilt_tracking.pursuit import PursuitController
from pan_tilt_tracking.readings import PanTiltCalibrationReadings
from pan_tilt_tracking.repository import CalibrationFileError, CalibrationReadingsRepository


# ────────────────────────────────────────────────────────────────────────────
#   B U I L D E R S
# ────────────────────────────────────────────────────────────────────────────
def _build_config(args: argparse.Namespace) -> AppConfig:
    cfg = AppConfig()
    cfg.camera.device_index = args.camera
    cfg.camera.width, cfg.camera.height = args.width, args.height
    cfg.pantilt.port = args.port
    cfg.storage.calibration_path = args.calibration
    if args.csv is not None:
        cfg.storage.csv_path = args.csv or None
    if getattr(args, "quiet", False):
        cfg.calibration.verbose = False
    return cfg


def _build_mechanism(cfg: AppConfig) -> PanTiltMechanism:
    if cfg.pantilt.port:
        return SerialPanTiltMechanism.from_config(cfg.pantilt)
    print("[Turret] No port configured – dry run, moves are only recorded")
    return RecordingPanTiltMechanism()


def _build_detector(name: str, cfg: AppConfig):
    if name == "face":
        return MediaPipeFaceDetector(cfg.detector)
    return ColourDetector(cfg.colour)


def _read_table(repo: CalibrationReadingsRepository) -> Optional[PanTiltCalibrationReadings]:
    """None (after a [Storage] message) when the file cannot be parsed."""
    try:
        return repo.read()
    except CalibrationFileError as exc:
        print(f"[Storage] {exc}")
        return None


def _print_table(repo: CalibrationReadingsRepository) -> int:
    table = _read_table(repo)
    if table is None:
        return 1
    if not table:
        print(f"[Storage] No calibration in {repo.path}")
        return 0
    for res, axes in table.items():
        print(f"{res}:")
        for axis, readings in axes:
            interpolated = sum(rs.is_interpolated for rs in readings.values())
            span = f"{min(readings)}..{max(readings)} px" if readings else "empty"
            fit = readings.fit()
            print(
                f"  {axis.name.lower():<10} {len(readings):4d} deviations "
                f"({interpolated} interpolated), {span}, fit: {fit or 'n/a'}"
            )
    return 0


# ────────────────────────────────────────────────────────────────────────────
#   C O M M A N D S
# ────────────────────────────────────────────────────────────────────────────
def run_calibrate(cfg: AppConfig, detector_name: str) -> int:
    repo = CalibrationReadingsRepository(cfg.storage.calibration_path)
    table = _read_table(repo)
    if table is None:
        return 1
    camera = Camera(cfg.camera)
    if not camera.open():
        return 1

    detector = _build_detector(detector_name, cfg)
    mechanism = _build_mechanism(cfg)
    turret = getattr(mechanism, "turret", None)
    try:
        if turret is not None:
            turret.open()
            if cfg.pantilt.home_on_startup:
                turret.home()
            mechanism.sync()

        controller = CalibratingPanTiltController(
            mechanism, camera.capture, detector, cfg.calibration
        )
        readings = controller.calibrate_into(table, camera.resolution)
        if readings.is_empty():
            print("[Calibrate] Target was never found – table entry is empty")

        repo.write(table)
        if cfg.storage.csv_path:
            repo.to_csv(table, cfg.storage.csv_path)
        print("[Calibrate] Calibration written to disk")
        return 0
    except KeyboardInterrupt:
        print("\n[Calibrate] Stopped by user – nothing written.")
        return 130
    except CalibrationCancelled as exc:
        print(f"[Calibrate] Cancelled: {exc}")
        return 130
    except (FirmwareError, serial.SerialException) as exc:
        print(f"[Turret] Error: {exc}")
        return 1
    finally:
        if turret is not None and turret.is_open():
            turret.close()
        camera.release()
        detector.close()


def run_track(cfg: AppConfig, detector_name: str, show: bool) -> int:
    repo = CalibrationReadingsRepository(cfg.storage.calibration_path)
    table = _read_table(repo)
    if table is None:
        return 1
    table.interpolate()

    camera = Camera(cfg.camera)
    if not camera.open():
        return 1

    readings = table.get(camera.resolution)
    if readings is None or readings.is_empty():
        print(f"[Pursuit] No calibration for {camera.resolution} – run `calibrate` first")
        camera.release()
        return 1

    detector = _build_detector(detector_name, cfg)
    mechanism = _build_mechanism(cfg)
    turret = getattr(mechanism, "turret", None)
    pursuit = PursuitController(mechanism, readings, cfg.pursuit)
    min_interval = 1.0 / cfg.pursuit.max_cmd_rate_hz if cfg.pursuit.max_cmd_rate_hz > 0 else 0.0

    try:
        if turret is not None:
            turret.open()
            if cfg.pantilt.home_on_startup:
                turret.home()
            mechanism.sync()

        print("[Pursuit] Tracking – press 'q' (or Ctrl-C) to quit.")
        while True:
            tic = time.monotonic()
            frame = camera.capture()
            detection = detector.detect(frame)
            pursuit.react(detection, camera.resolution)
            pursuit.tick()

            if show and frame is not None:
                if detection.found:
                    x, y = map(int, detection.point)
                    cv2.circle(frame, (x, y), 7, (0, 255, 255), -1)
                cv2.imshow("Pan-Tilt Pursuit", frame)
                if (cv2.waitKey(1) & 0xFF) == ord("q"):
                    break

            spare = min_interval - (time.monotonic() - tic)
            if spare > 0:
                time.sleep(spare)
        return 0
    except KeyboardInterrupt:
        print("\n[Pursuit] Stopped by user.")
        return 0
    except (FirmwareError, serial.SerialException) as exc:
        print(f"[Turret] Error: {exc}")
        return 1
    finally:
        if turret is not None and turret.is_open():
            if cfg.pantilt.rest_on_shutdown:
                try:
                    turret.rest()
                except (FirmwareError, serial.SerialException) as exc:
                    print(f"[Turret] Rest failed: {exc}")
            turret.close()
        camera.release()
        detector.close()
        if show:
            cv2.destroyAllWindows()


# ────────────────────────────────────────────────────────────────────────────
#   M A I N
# ────────────────────────────────────────────────────────────────────────────
def build_parser() -> argparse.ArgumentParser:
    parser = argparse.ArgumentParser(description="Pan/tilt calibration and tracking")
    parser.add_argument("--calibration", default="calibration.json", help="calibration JSON path")
    parser.add_argument("--csv", default=None, help="CSV export path ('' disables)")
    parser.add_argument("--port", default=None, help="turret serial port; omit for a dry run")
    parser.add_argument("--camera", type=int, default=0, help="camera device index")
    parser.add_argument("--width", type=int, default=640)
    parser.add_argument("--height", type=int, default=480)
    parser.add_argument("--detector", choices=("colour", "face"), default="colour")

    sub = parser.add_subparsers(dest="command", required=True)
    cal = sub.add_parser("calibrate", help="build the calibration table")
    cal.add_argument("--quiet", action="store_true", help="suppress per-step output")
    trk = sub.add_parser("track", help="keep the target centred")
    trk.add_argument("--show", action="store_true", help="display the camera feed")
    sub.add_parser("show", help="summarise the stored table")
    return parser


def main(argv: Optional[list] = None) -> int:
    args = build_parser().parse_args(argv)
    cfg = _build_config(args)

    if args.command == "show":
        return _print_table(CalibrationReadingsRepository(cfg.storage.calibration_path))
    if args.command == "calibrate":
        return run_calibrate(cfg, args.detector)
    return run_track(cfg, args.detector, args.show)


if __name__ == "__main__":
    sys.exit(main())
