"""
Interaction mode machine: exactly one tool mode is active, plus a point-editing sub-state
in measure mode. Owned by the session and injected where needed.
"""
from dataclasses import dataclass
from enum import Enum
from typing import Callable, Optional

from inspector3d.core.logger import get_logger

_log = get_logger("interaction")


class ToolMode(Enum):
    VIEW = "view"
    MEASURE = "measure"
    ANNOTATE = "annotate"
    REFERENCE = "reference"
    CONDITION_SCORE = "condition_score"


@dataclass(frozen=True)
class EditTarget:
    measurement_id: str
    point_index: int


class InteractionModeMachine:
    """
    Mode + edit sub-state + camera-input gate.

    Listeners receive the machine after every change; a failing listener is logged and does
    not stop the others.
    """

    def __init__(self) -> None:
        self._mode = ToolMode.VIEW
        self._editing: Optional[EditTarget] = None
        self._listeners: list[Callable[["InteractionModeMachine"], None]] = []

    @property
    def mode(self) -> ToolMode:
        return self._mode

    @property
    def editing(self) -> Optional[EditTarget]:
        return self._editing

    @property
    def is_editing(self) -> bool:
        return self._editing is not None

    @property
    def camera_input_enabled(self) -> bool:
        """Camera orbit is disabled for the whole duration of a point drag."""
        return self._editing is None

    def is_active(self, mode: ToolMode) -> bool:
        return self._mode is mode

    def activate(self, mode: ToolMode) -> None:
        """Switch to mode; leaving measure ends any drag in progress."""
        if mode is self._mode:
            return
        if self._editing is not None:
            self._editing = None
        previous, self._mode = self._mode, mode
        _log.info("Mode %s -> %s", previous.value, mode.value)
        self._notify()

    def toggle(self, mode: ToolMode) -> ToolMode:
        """Activate mode, or fall back to view if it is already active."""
        self.activate(ToolMode.VIEW if self._mode is mode else mode)
        return self._mode

    def begin_edit(self, measurement_id: str, point_index: int) -> bool:
        if self._mode is not ToolMode.MEASURE:
            _log.debug("Point editing only available in measure mode")
            return False
        self._editing = EditTarget(measurement_id, point_index)
        _log.debug("Started editing point %d of %s", point_index, measurement_id)
        self._notify()
        return True

    def end_edit(self) -> None:
        """Always returns to idle and re-enables camera input, even if nothing moved."""
        if self._editing is None:
            return
        self._editing = None
        _log.debug("Stopped editing")
        self._notify()

    def reset(self) -> None:
        """Escape: drop the edit sub-state, keep the active mode."""
        self.end_edit()

    def subscribe(self, callback: Callable[["InteractionModeMachine"], None]) -> None:
        self._listeners.append(callback)

    def unsubscribe(self, callback: Callable[["InteractionModeMachine"], None]) -> None:
        if callback in self._listeners:
            self._listeners.remove(callback)

    def _notify(self) -> None:
        for cb in list(self._listeners):
            try:
                cb(self)
            except Exception:
                _log.exception("Mode listener failed")
