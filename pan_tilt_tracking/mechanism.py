"""Percent-space pan/tilt actuator interface."""
from __future__ import annotations

from typing import List

from pan_tilt_tracking.common import PanTiltSetting


class PanTiltMechanism:
    """
    Tracks the last commanded setting and turns relative moves into absolute
    ones. Subclasses do the actual actuation in `_apply`.
    """

    def __init__(self, initial: PanTiltSetting = PanTiltSetting(50.0, 50.0)) -> None:
        self.current_setting = initial

    def move_absolute(self, setting: PanTiltSetting) -> None:
        self._apply(setting)
        self.current_setting = setting

    def move_relative(self, delta: PanTiltSetting) -> None:
        self.move_absolute(self.current_setting + delta)

    def _apply(self, setting: PanTiltSetting) -> None:
        raise NotImplementedError

    def __repr__(self) -> str:
        return f"<{type(self).__name__} at {self.current_setting}>"


class RecordingPanTiltMechanism(PanTiltMechanism):
    """No hardware; keeps every commanded setting (dry runs and tests)."""

    def __init__(self, initial: PanTiltSetting = PanTiltSetting(50.0, 50.0)) -> None:
        super().__init__(initial)
        self.history: List[PanTiltSetting] = []

    def _apply(self, setting: PanTiltSetting) -> None:
        self.history.append(setting)
