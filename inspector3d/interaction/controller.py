"""
InputController: decides what a raw pointer or key event means under the active tool mode
and forwards it to exactly one handler.

Measure mode bindings: click adds a point, Shift+click deletes the nearest point, Ctrl+press
near a point starts a drag, move drags, release ends the drag. Keys: n (new), c (close),
l (labels), 1-9 (switch measurement), escape (reset).
"""
from dataclasses import dataclass
from enum import Enum
from typing import Any, Callable, Optional

from inspector3d.core.logger import get_logger
from inspector3d.interaction.state_machine import InteractionModeMachine, ToolMode
from inspector3d.model.entities import LinkedMeasurementRef, Point

_log = get_logger("input")

PickFn = Callable[[float, float], Optional[Any]]


@dataclass(frozen=True)
class PointerEvent:
    x: float
    y: float
    shift: bool = False
    ctrl: bool = False

    @classmethod
    def from_qt(cls, event) -> "PointerEvent":
        """Build from a QMouseEvent (position in widget pixels)."""
        from PySide6.QtCore import Qt

        pos = event.position()
        mods = event.modifiers()
        return cls(
            pos.x(),
            pos.y(),
            shift=bool(mods & Qt.KeyboardModifier.ShiftModifier),
            ctrl=bool(mods & Qt.KeyboardModifier.ControlModifier),
        )


class Action(Enum):
    NONE = "none"
    NO_TARGET = "no_target"
    REJECTED = "rejected"
    POINT_ADDED = "point_added"
    POINT_DELETED = "point_deleted"
    EDIT_STARTED = "edit_started"
    POINT_MOVED = "point_moved"
    EDIT_ENDED = "edit_ended"
    MEASUREMENT_CREATED = "measurement_created"
    MEASUREMENT_CLOSED = "measurement_closed"
    MEASUREMENT_SWITCHED = "measurement_switched"
    LABELS_TOGGLED = "labels_toggled"
    ANNOTATION_PENDING = "annotation_pending"
    ANNOTATION_SELECTED = "annotation_selected"
    REFERENCE_PENDING = "reference_pending"
    CONDITION_SCORE_PENDING = "condition_score_pending"
    RESET = "reset"


@dataclass(frozen=True)
class InputResult:
    action: Action
    target: Any = None
    point: Optional[Point] = None
    link: Optional[LinkedMeasurementRef] = None


@dataclass(frozen=True)
class PendingPoint:
    """Surface point waiting for its record's metadata (annotation / datum / assessment)."""

    mode: ToolMode
    point: Point
    link: Optional[LinkedMeasurementRef] = None


_NOTHING = InputResult(Action.NONE)

_PENDING_ACTIONS = {
    ToolMode.REFERENCE: Action.REFERENCE_PENDING,
    ToolMode.CONDITION_SCORE: Action.CONDITION_SCORE_PENDING,
}


class InputController:
    def __init__(
        self,
        machine: InteractionModeMachine,
        measurements,
        annotations,
        linker,
        projector,
        camera,
        pick_surface_point: PickFn,
        pick_tolerance: float = 0.1,
        hit_radius_px: float = 12.0,
        labels=None,
    ):
        self._machine = machine
        self._measurements = measurements
        self._annotations = annotations
        self._linker = linker
        self._projector = projector
        self._camera = camera
        self._pick = pick_surface_point
        self._pick_tolerance = pick_tolerance
        self._hit_radius_px = hit_radius_px
        self._labels = labels
        self.pending: Optional[PendingPoint] = None

    def _pick_point(self, event: PointerEvent) -> Optional[Point]:
        hit = self._pick(event.x, event.y)
        return Point.of(hit) if hit is not None else None

    # ------------------------------------------------------------------
    # Pointer events
    # ------------------------------------------------------------------

    def press(self, event: PointerEvent) -> InputResult:
        if not (self._machine.is_active(ToolMode.MEASURE) and event.ctrl):
            return _NOTHING
        point = self._pick_point(event)
        if point is None:
            return InputResult(Action.NO_TARGET)
        ref = self._measurements.find_nearest_point(point, self._pick_tolerance)
        if ref is None:
            return InputResult(Action.NO_TARGET, point=point)
        if ref.measurement.locked:
            _log.warning("Cannot edit point of locked measurement %s", ref.measurement.id)
            return InputResult(Action.REJECTED, target=ref.measurement)
        self._machine.begin_edit(ref.measurement.id, ref.index)
        return InputResult(Action.EDIT_STARTED, target=ref.measurement, point=point)

    def move(self, event: PointerEvent) -> InputResult:
        edit = self._machine.editing
        if edit is None:
            return _NOTHING
        measurement = self._measurements.get(edit.measurement_id)
        if measurement is None:
            self._machine.end_edit()
            return InputResult(Action.EDIT_ENDED)
        point = self._pick_point(event)
        if point is None:
            return InputResult(Action.NO_TARGET, target=measurement)
        if not self._measurements.move_point(measurement, edit.point_index, point):
            return InputResult(Action.REJECTED, target=measurement)
        return InputResult(Action.POINT_MOVED, target=measurement, point=point)

    def release(self, event: Optional[PointerEvent] = None) -> InputResult:
        if not self._machine.is_editing:
            return _NOTHING
        self._machine.end_edit()
        return InputResult(Action.EDIT_ENDED)

    def click(self, event: PointerEvent) -> InputResult:
        mode = self._machine.mode
        if mode is ToolMode.MEASURE:
            return self._measure_click(event)
        if mode is ToolMode.ANNOTATE:
            return self._annotate_click(event)
        if mode in _PENDING_ACTIONS:
            point = self._pick_point(event)
            if point is None:
                return InputResult(Action.NO_TARGET)
            self.pending = PendingPoint(mode, point)
            return InputResult(_PENDING_ACTIONS[mode], point=point)
        return _NOTHING

    def _measure_click(self, event: PointerEvent) -> InputResult:
        # Ctrl is the drag modifier; its click is the tail of a press/release pair
        if self._machine.is_editing or event.ctrl:
            return _NOTHING
        point = self._pick_point(event)
        if point is None:
            return InputResult(Action.NO_TARGET)
        if event.shift:
            ref = self._measurements.find_nearest_point(point, self._pick_tolerance)
            if ref is None:
                return InputResult(Action.NO_TARGET, point=point)
            if not self._measurements.delete_point(ref.measurement, ref.index):
                return InputResult(Action.REJECTED, target=ref.measurement)
            return InputResult(Action.POINT_DELETED, target=ref.measurement, point=point)
        measurement = self._measurements.current or self._measurements.create_measurement()
        if not self._measurements.add_point(measurement, point):
            return InputResult(Action.REJECTED, target=measurement)
        return InputResult(Action.POINT_ADDED, target=measurement, point=point)

    def _annotate_click(self, event: PointerEvent) -> InputResult:
        selected = self.annotation_at(event.x, event.y)
        if selected is not None:
            return InputResult(Action.ANNOTATION_SELECTED, target=selected)
        point = self._pick_point(event)
        if point is None:
            return InputResult(Action.NO_TARGET)
        link = self._linker.find_link(point, self._measurements.measurements)
        self.pending = PendingPoint(ToolMode.ANNOTATE, point, link)
        return InputResult(Action.ANNOTATION_PENDING, point=point, link=link)

    def annotation_at(self, x: float, y: float):
        """Annotation whose on-screen label lies within the hit radius of (x, y), if any."""
        best, best_d2 = None, self._hit_radius_px ** 2
        for annotation in self._annotations:
            pos = self._projector.project(annotation.position, self._camera)
            if not pos.visible:
                continue
            d2 = (pos.x - x) ** 2 + (pos.y - y) ** 2
            if d2 <= best_d2:
                best, best_d2 = annotation, d2
        return best

    # ------------------------------------------------------------------
    # Keyboard
    # ------------------------------------------------------------------

    def key(self, key: str) -> InputResult:
        key = key.lower()
        if key == "escape":
            self.pending = None
            self._machine.reset()
            return InputResult(Action.RESET)
        if not self._machine.is_active(ToolMode.MEASURE):
            return _NOTHING
        if key == "n":
            return InputResult(Action.MEASUREMENT_CREATED, target=self._measurements.create_measurement())
        if key == "c":
            current = self._measurements.current
            if current is None or not self._measurements.close(current):
                return InputResult(Action.REJECTED, target=current)
            return InputResult(Action.MEASUREMENT_CLOSED, target=current)
        if key == "l" and self._labels is not None:
            return InputResult(Action.LABELS_TOGGLED, target=self._labels.toggle_measurement_labels())
        if len(key) == 1 and key in "123456789":
            measurement = self._measurements.switch_to(int(key) - 1)
            if measurement is None:
                return InputResult(Action.NO_TARGET)
            return InputResult(Action.MEASUREMENT_SWITCHED, target=measurement)
        return _NOTHING
