"""Time-parameterised pan/tilt movement for smooth pursuit."""
from __future__ import annotations

import time
from typing import Callable, Optional, Protocol

from pan_tilt_tracking.common import PanTiltSetting


class Clock(Protocol):
    @property
    def elapsed(self) -> float:
        """Seconds since the reference instant."""
        ...


class Stopwatch:
    """Monotonic elapsed-time source (seconds)."""

    def __init__(self, timer: Callable[[], float] = time.perf_counter) -> None:
        self._timer = timer
        self._started_at: Optional[float] = None

    def restart(self) -> None:
        self._started_at = self._timer()

    start = restart

    @property
    def running(self) -> bool:
        return self._started_at is not None

    @property
    def elapsed(self) -> float:
        if self._started_at is None:
            return 0.0
        return self._timer() - self._started_at


def _lerp(a: float, b: float, t: float) -> float:
    # Weighted form: at t = 0.5 this is exactly (a + b) / 2.
    return (1.0 - t) * a + t * b


class TimeTarget:
    """
    Linear move from `original` to `target` over `duration_s`, sampled at
    whatever time the clock reports. Querying does not advance any state:
    the same elapsed time always gives the same setting.
    """

    def __init__(
        self,
        clock: Clock,
        original: PanTiltSetting,
        target: PanTiltSetting,
        duration_s: float,
    ) -> None:
        if not duration_s > 0:
            raise ValueError(f"duration must be positive, got {duration_s!r}")
        self.clock = clock
        self.original = original
        self.target = target
        self.duration_s = float(duration_s)

    def progress(self) -> float:
        return min(max(self.clock.elapsed / self.duration_s, 0.0), 1.0)

    def is_complete(self) -> bool:
        return self.progress() >= 1.0

    def get_next_position(self) -> PanTiltSetting:
        t = self.progress()
        if t <= 0.0:
            return self.original
        if t >= 1.0:
            return self.target
        return PanTiltSetting(
            _lerp(self.original.pan_percent, self.target.pan_percent, t),
            _lerp(self.original.tilt_percent, self.target.tilt_percent, t),
        )

    def __repr__(self) -> str:
        return (
            f"<TimeTarget {self.original} -> {self.target} "
            f"over {self.duration_s:.3f}s>"
        )
