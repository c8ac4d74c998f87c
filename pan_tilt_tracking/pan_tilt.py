"""Serial-controlled Pan-Tilt turret, addressed in servo percent."""
from __future__ import annotations

import re
import threading
import time
from dataclasses import dataclass
from pathlib import Path
from typing import Callable, Optional

import serial

from pan_tilt_tracking.common import PanTiltSetting
from pan_tilt_tracking.config import PanTiltConfig
from pan_tilt_tracking.mechanism import PanTiltMechanism


class FirmwareError(RuntimeError):
    """Raised when the firmware replies with an unexpected line."""


_POSITION = re.compile(r"^(-?\d+(?:\.\d+)?),(-?\d+(?:\.\d+)?)$")


@dataclass(frozen=True)
class AxisRange:
    """Degrees at 0 % and 100 % for one axis; `invert` swaps the ends."""
    lo_deg: float
    hi_deg: float
    invert: bool = False

    def to_deg(self, percent: float) -> float:
        percent = min(max(percent, 0.0), 100.0)
        if self.invert:
            percent = 100.0 - percent
        return self.lo_deg + (percent / 100.0) * (self.hi_deg - self.lo_deg)

    def to_percent(self, deg: float) -> float:
        percent = (deg - self.lo_deg) / (self.hi_deg - self.lo_deg) * 100.0
        return 100.0 - percent if self.invert else percent


class PanTiltLink:
    """
    ASCII line protocol: one upper-case command per line, the firmware
    answers with an ack token (or a `pan,tilt` degree pair) and may print
    unrelated debug lines in between.
    """

    def __init__(
        self,
        port: str | Path,
        pan: AxisRange,
        tilt: AxisRange,
        baudrate: int = 250_000,
        timeout: float = 10.0,
    ):
        self.port = str(port)
        self.pan = pan
        self.tilt = tilt
        self.baudrate = baudrate
        self.timeout = timeout
        self._ser: Optional[serial.Serial] = None
        self._lock = threading.Lock()

    # ---------------- Serial plumbing ----------------
    def open(self) -> None:
        if self.is_open():
            return
        self._ser = serial.Serial(
            port=self.port,
            baudrate=self.baudrate,
            timeout=self.timeout,
            write_timeout=self.timeout,
        )
        time.sleep(0.2)  # board resets on open
        self._ser.reset_input_buffer()

    def close(self) -> None:
        if self.is_open():
            self._ser.close()
        self._ser = None

    def is_open(self) -> bool:
        return bool(self._ser and self._ser.is_open)

    # ------------------ Commands ---------------------
    def home(self) -> None:
        self._exchange("HOME", "HOME_OK".__eq__)

    def rest(self) -> None:
        self._exchange("REST", "REST_OK".__eq__)

    def move(self, setting: PanTiltSetting, wait: bool = True) -> None:
        pan_deg = self.pan.to_deg(setting.pan_percent)
        tilt_deg = self.tilt.to_deg(setting.tilt_percent)
        if wait:
            self._exchange(f"MOVE_DEGW {pan_deg:.3f} {tilt_deg:.3f}", "MOVE_OK".__eq__)
        else:
            self._exchange(f"MOVE_DEG {pan_deg:.3f} {tilt_deg:.3f}")

    def position(self) -> PanTiltSetting:
        line = self._exchange("POSITION_DEG", lambda l: bool(_POSITION.match(l)))
        pan_deg, tilt_deg = map(float, line.split(","))
        return PanTiltSetting(self.pan.to_percent(pan_deg), self.tilt.to_percent(tilt_deg))

    def _exchange(self, cmd: str, accept: Optional[Callable[[str], bool]] = None) -> Optional[str]:
        """Send `cmd`; with `accept`, read lines until one satisfies it."""
        if not self.is_open():
            raise RuntimeError("Serial port is not open")
        with self._lock:
            self._ser.write(cmd.encode() + b"\n")
            self._ser.flush()
            if accept is None:
                return None
            while True:
                raw = self._ser.readline()
                if not raw:
                    raise FirmwareError(f"Timeout waiting for response to {cmd!r}")
                line = raw.decode(errors="replace").strip()
                if accept(line):
                    return line

    def __enter__(self) -> "PanTiltLink":
        self.open()
        return self

    def __exit__(self, exc_type, exc_val, exc_tb) -> None:
        self.close()

    def __repr__(self) -> str:
        state = "open" if self.is_open() else "closed"
        return f"<PanTiltLink port={self.port!r} ({state})>"


class SerialPanTiltMechanism(PanTiltMechanism):
    """PanTiltMechanism backed by the serial turret."""

    def __init__(self, turret: PanTiltLink, blocking: bool = True) -> None:
        super().__init__()
        self.turret = turret
        self.blocking = blocking

    def _apply(self, setting: PanTiltSetting) -> None:
        self.turret.move(setting, wait=self.blocking)

    def sync(self) -> PanTiltSetting:
        """Adopt the position the firmware reports as the current setting."""
        self.current_setting = self.turret.position()
        print(f"[Turret] Position {self.current_setting}")
        return self.current_setting

    @classmethod
    def from_config(cls, cfg: PanTiltConfig) -> "SerialPanTiltMechanism":
        if not cfg.port:
            raise ValueError("PanTiltConfig.port is not set")
        link = PanTiltLink(
            cfg.port,
            pan=AxisRange(*cfg.pan_range_deg, invert=cfg.invert_pan_output),
            tilt=AxisRange(*cfg.tilt_range_deg, invert=cfg.invert_tilt_output),
            baudrate=cfg.baudrate,
        )
        return cls(link, blocking=cfg.use_blocking_moves)
