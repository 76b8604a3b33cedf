"""
MeasurementStore: sole owner and mutator of measurements and their points.

Every point mutation re-derives perimeter and area before returning. Mutations on a locked
measurement are rejected with a logged warning and a False return; they never raise.
"""
from datetime import datetime
from typing import Optional

from inspector3d.core.event_bus import (
    EventBus,
    MEASUREMENT_CHANGED,
    MEASUREMENT_CREATED,
    MEASUREMENT_DELETED,
)
from inspector3d.core.logger import get_entity_logger, get_logger
from inspector3d.geometry import kernel
from inspector3d.geometry.spatial_index import SpatialIndex
from inspector3d.model.entities import Measurement, Point

_log = get_logger("measurement")

MIN_POLYGON_POINTS = 3


class PointRef:
    """Result of a nearest-point search: the owning measurement and the point index."""

    __slots__ = ("measurement", "index", "distance")

    def __init__(self, measurement: Measurement, index: int, distance: float):
        self.measurement = measurement
        self.index = index
        self.distance = distance

    def __repr__(self) -> str:
        return f"PointRef({self.measurement.id}, {self.index}, {self.distance:.4f})"


class MeasurementStore:
    def __init__(self, palette: list[str], event_bus: Optional[EventBus] = None):
        self._palette = list(palette)
        self._event_bus = event_bus
        self._measurements: list[Measurement] = []
        self._current_index = -1
        self._id_counter = 1

    # ------------------------------------------------------------------
    # Collection
    # ------------------------------------------------------------------

    @property
    def measurements(self) -> list[Measurement]:
        """Measurements in creation order. Treat as read-only; mutate through the store."""
        return self._measurements

    @property
    def current(self) -> Optional[Measurement]:
        if 0 <= self._current_index < len(self._measurements):
            return self._measurements[self._current_index]
        return None

    def get(self, measurement_id: str) -> Optional[Measurement]:
        for m in self._measurements:
            if m.id == measurement_id:
                return m
        return None

    def __len__(self) -> int:
        return len(self._measurements)

    def __iter__(self):
        return iter(self._measurements)

    def create_measurement(self) -> Measurement:
        """Append a new empty measurement and make it current. Color cycles through the palette."""
        color = self._palette[len(self._measurements) % len(self._palette)]
        measurement = Measurement(id=f"M{self._id_counter}", color=color)
        self._id_counter += 1
        self._measurements.append(measurement)
        self._current_index = len(self._measurements) - 1
        _log.info("Created new measurement: %s", measurement.id)
        self._emit(MEASUREMENT_CREATED, measurement)
        return measurement

    def switch_to(self, index: int) -> Optional[Measurement]:
        """Make the measurement at index current; out-of-range indices are ignored."""
        if 0 <= index < len(self._measurements):
            self._current_index = index
            _log.info("Switched to measurement %s", self._measurements[index].id)
            return self._measurements[index]
        _log.debug("No measurement at index %d", index)
        return None

    def delete_measurement(self, measurement_id: str) -> bool:
        measurement = self.get(measurement_id)
        if measurement is None:
            _log.warning("Cannot delete unknown measurement %s", measurement_id)
            return False
        if self._rejected_locked(measurement, "delete"):
            return False
        index = self._measurements.index(measurement)
        del self._measurements[index]
        if self._current_index >= index:
            self._current_index -= 1
        _log.info("Deleted measurement %s", measurement.id)
        self._emit(MEASUREMENT_DELETED, measurement)
        return True

    def clear(self) -> int:
        """Delete every unlocked measurement. Returns how many were removed."""
        removed = 0
        for m in list(self._measurements):
            if not m.locked and self.delete_measurement(m.id):
                removed += 1
        return removed

    def lock(self, measurement: Measurement) -> None:
        if not measurement.locked:
            measurement.locked = True
            get_entity_logger(_log, measurement.id).info("Locked")
            self._emit(MEASUREMENT_CHANGED, measurement)

    def unlock(self, measurement: Measurement) -> None:
        if measurement.locked:
            measurement.locked = False
            get_entity_logger(_log, measurement.id).info("Unlocked")
            self._emit(MEASUREMENT_CHANGED, measurement)

    # ------------------------------------------------------------------
    # Point editing
    # ------------------------------------------------------------------

    def add_point(self, measurement: Measurement, point) -> bool:
        if self._rejected_locked(measurement, "add point to"):
            return False
        measurement.points.append(Point.of(point))
        self._refresh(measurement)
        get_entity_logger(_log, measurement.id).debug("Added point %d", len(measurement.points))
        return True

    def insert_point(self, measurement: Measurement, index: int, point) -> bool:
        """Insert before index (index == len appends)."""
        if self._rejected_locked(measurement, "insert point into"):
            return False
        if not 0 <= index <= len(measurement.points):
            get_entity_logger(_log, measurement.id).warning("Insert index %d out of range", index)
            return False
        measurement.points.insert(index, Point.of(point))
        self._refresh(measurement)
        return True

    def delete_point(self, measurement: Measurement, index: int) -> bool:
        if self._rejected_locked(measurement, "delete point from"):
            return False
        if not 0 <= index < len(measurement.points):
            get_entity_logger(_log, measurement.id).warning("Delete index %d out of range", index)
            return False
        del measurement.points[index]
        if measurement.closed and len(measurement.points) < MIN_POLYGON_POINTS:
            measurement.closed = False
            get_entity_logger(_log, measurement.id).info("Reopened: fewer than %d points", MIN_POLYGON_POINTS)
        self._refresh(measurement)
        get_entity_logger(_log, measurement.id).debug("Deleted point %d", index)
        return True

    def move_point(self, measurement: Measurement, index: int, new_position) -> bool:
        """Move a point in place. Called for every drag step, not only on release."""
        if self._rejected_locked(measurement, "move point of"):
            return False
        if not 0 <= index < len(measurement.points):
            get_entity_logger(_log, measurement.id).warning("Move index %d out of range", index)
            return False
        measurement.points[index].set(Point.of(new_position))
        self._refresh(measurement)
        return True

    def close(self, measurement: Measurement) -> bool:
        if len(measurement.points) < MIN_POLYGON_POINTS:
            get_entity_logger(_log, measurement.id).warning(
                "Need at least %d points to close measurement", MIN_POLYGON_POINTS
            )
            return False
        if self._rejected_locked(measurement, "close"):
            return False
        measurement.closed = True
        self._refresh(measurement)
        get_entity_logger(_log, measurement.id).info("Closed (area: %.2f)", measurement.area)
        return True

    # ------------------------------------------------------------------
    # Queries
    # ------------------------------------------------------------------

    def find_nearest_point(self, position, max_distance: float) -> Optional[PointRef]:
        """Globally closest point within max_distance, scanning measurements then point indices."""
        entries = (
            (m, i, p)
            for m in self._measurements
            for i, p in enumerate(m.points)
        )
        hit = SpatialIndex.nearest(position, max_distance, entries)
        if hit is None:
            return None
        return PointRef(hit.key, hit.index, hit.distance)

    # ------------------------------------------------------------------

    def _refresh(self, measurement: Measurement) -> None:
        """Re-derive perimeter and area from the current point sequence."""
        points = measurement.points
        measurement.perimeter = kernel.polyline_length(points, measurement.closed)
        if measurement.closed and len(points) >= MIN_POLYGON_POINTS:
            measurement.area = kernel.polygon_area(points)
        else:
            measurement.area = 0.0
        measurement.updated_at = datetime.now()
        self._emit(MEASUREMENT_CHANGED, measurement)

    def _rejected_locked(self, measurement: Measurement, action: str) -> bool:
        if measurement.locked:
            get_entity_logger(_log, measurement.id).warning("Cannot %s locked measurement", action)
            return True
        return False

    def _emit(self, event_name: str, measurement: Measurement) -> None:
        if self._event_bus is not None:
            self._event_bus.emit(event_name, measurement)
