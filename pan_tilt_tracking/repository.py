"""JSON persistence and CSV export for the calibration table."""
from __future__ import annotations

import csv
import json
import os
import tempfile
from pathlib import Path
from typing import Any, Dict

from pan_tilt_tracking.common import Resolution
from pan_tilt_tracking.readings import (
    AxesCalibrationReadings,
    AxisCalibrationReadings,
    PanTiltCalibrationReadings,
    ReadingSet,
)

CSV_HEADER = (
    "width", "height", "axis", "pixel_deviation",
    "accepted", "is_interpolated", "reading_count",
)


class CalibrationFileError(RuntimeError):
    """The calibration file exists but could not be parsed."""


# ------------------------------------------------------------------
#   dict <-> model
# ------------------------------------------------------------------
def _axis_to_dict(readings: AxisCalibrationReadings) -> Dict[str, Any]:
    return {
        str(deviation): {
            "all_readings": list(rs.all_readings),
            "accepted": rs.accepted,
            "is_interpolated": rs.is_interpolated,
        }
        for deviation, rs in sorted(readings.items())
    }


def _axis_from_dict(raw: Dict[str, Any]) -> AxisCalibrationReadings:
    readings = AxisCalibrationReadings()
    for deviation, rs in raw.items():
        readings[int(deviation)] = ReadingSet(
            all_readings=[float(r) for r in rs.get("all_readings", [])],
            accepted=None if rs.get("accepted") is None else float(rs["accepted"]),
            is_interpolated=bool(rs.get("is_interpolated", False)),
        )
    return readings


def table_to_dict(table: PanTiltCalibrationReadings) -> Dict[str, Any]:
    return {
        "resolutions": [
            {
                "width": res.width,
                "height": res.height,
                "horizontal": _axis_to_dict(axes.horizontal),
                "vertical": _axis_to_dict(axes.vertical),
            }
            for res, axes in table.items()
        ]
    }


def table_from_dict(raw: Dict[str, Any]) -> PanTiltCalibrationReadings:
    table = PanTiltCalibrationReadings()
    for entry in raw.get("resolutions", []):
        res = Resolution(int(entry["width"]), int(entry["height"]))
        table[res] = AxesCalibrationReadings(
            _axis_from_dict(entry.get("horizontal", {})),
            _axis_from_dict(entry.get("vertical", {})),
        )
    return table


# ------------------------------------------------------------------
#   Repository
# ------------------------------------------------------------------
class CalibrationReadingsRepository:
    def __init__(self, path: str | Path = "calibration.json") -> None:
        self.path = Path(path).expanduser().resolve()

    def exists(self) -> bool:
        return self.path.is_file()

    def read(self) -> PanTiltCalibrationReadings:
        """Empty table when the file is missing."""
        try:
            with self.path.open("r", encoding="utf-8") as fp:
                raw = json.load(fp)
        except FileNotFoundError:
            return PanTiltCalibrationReadings()
        except json.JSONDecodeError as exc:
            raise CalibrationFileError(f"JSON error in {self.path}: {exc}") from exc
        try:
            return table_from_dict(raw)
        except (KeyError, TypeError, ValueError, AttributeError) as exc:
            raise CalibrationFileError(f"Malformed calibration in {self.path}: {exc}") from exc

    def write(self, table: PanTiltCalibrationReadings) -> None:
        """Write to a sibling temp file, then swap it in with os.replace."""
        self.path.parent.mkdir(parents=True, exist_ok=True)
        fd, tmp = tempfile.mkstemp(
            prefix=f".{self.path.name}.", suffix=".tmp", dir=self.path.parent
        )
        try:
            with os.fdopen(fd, "w", encoding="utf-8") as fp:
                json.dump(table_to_dict(table), fp, indent=2)
                fp.flush()
                os.fsync(fp.fileno())
            os.replace(tmp, self.path)
        except BaseException:
            if os.path.exists(tmp):
                os.unlink(tmp)
            raise
        print(f"[Storage] Calibration written to {self.path}")

    @staticmethod
    def to_csv(table: PanTiltCalibrationReadings, path: str | Path) -> None:
        with Path(path).open("w", newline="", encoding="utf-8") as fp:
            writer = csv.writer(fp)
            writer.writerow(CSV_HEADER)
            for res, axes in table.items():
                for axis, readings in axes:
                    for deviation, rs in sorted(readings.items()):
                        writer.writerow(
                            (
                                res.width, res.height, axis.name.lower(), deviation,
                                rs.accepted, rs.is_interpolated, len(rs.all_readings),
                            )
                        )
        print(f"[Storage] CSV export written to {path}")
