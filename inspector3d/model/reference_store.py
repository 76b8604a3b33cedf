"""Reference datums: named anchor points, and coordinates relative to them."""

from dataclasses import dataclass
from datetime import datetime
from typing import Optional

from inspector3d.core.event_bus import REFERENCE_CHANGED, EventBus
from inspector3d.core.exceptions import NotFoundError, ValidationError
from inspector3d.core.logger import get_entity_logger, get_logger
from inspector3d.geometry import kernel
from inspector3d.geometry.spatial_index import SpatialIndex
from inspector3d.model.entities import REFERENCE_TYPES, Point, ReferenceDatum

_log = get_logger("reference")


@dataclass(frozen=True)
class RelativeCoordinates:
    reference_id: str
    offset: Point
    distance: float


class ReferenceStore:
    def __init__(self, event_bus: Optional[EventBus] = None):
        self._event_bus = event_bus
        self._references: list[ReferenceDatum] = []
        self._id_counter = 1

    @property
    def references(self) -> list[ReferenceDatum]:
        return self._references

    def __len__(self) -> int:
        return len(self._references)

    def __iter__(self):
        return iter(self._references)

    def get(self, reference_id: str) -> Optional[ReferenceDatum]:
        for r in self._references:
            if r.id == reference_id:
                return r
        return None

    def _check(self, name: str, type_: str, exclude_id: Optional[str] = None) -> str:
        name = name.strip()
        if not name:
            raise ValidationError("Reference point name is required")
        if type_ not in REFERENCE_TYPES:
            raise ValidationError(f"Unknown reference type: {type_!r}")
        if any(r.name == name and r.id != exclude_id for r in self._references):
            raise ValidationError(f"A reference point named {name!r} already exists")
        return name

    def create(self, position, name: str, type_: str = "primary", description: str = "") -> ReferenceDatum:
        name = self._check(name, type_)
        reference = ReferenceDatum(
            id=f"REF{self._id_counter}",
            name=name,
            position=Point.of(position),
            type=type_,
            description=description.strip(),
        )
        self._id_counter += 1
        self._references.append(reference)
        get_entity_logger(_log, reference.id).info("Created reference point %s", reference.name)
        self._emit(reference)
        return reference

    def update(self, reference_id: str, name: Optional[str] = None, type_: Optional[str] = None,
               description: Optional[str] = None) -> ReferenceDatum:
        reference = self.get(reference_id)
        if reference is None:
            raise NotFoundError(f"Reference point not found: {reference_id}")
        new_type = type_ if type_ is not None else reference.type
        reference.name = self._check(name if name is not None else reference.name, new_type, reference.id)
        reference.type = new_type
        if description is not None:
            reference.description = description.strip()
        reference.updated_at = datetime.now()
        get_entity_logger(_log, reference.id).info("Updated reference point %s", reference.name)
        self._emit(reference)
        return reference

    def delete(self, reference_id: str) -> bool:
        reference = self.get(reference_id)
        if reference is None:
            _log.warning("Cannot delete unknown reference point %s", reference_id)
            return False
        self._references.remove(reference)
        get_entity_logger(_log, reference.id).info("Deleted reference point %s", reference.name)
        self._emit(reference)
        return True

    def clear(self) -> int:
        count = len(self._references)
        for reference in list(self._references):
            self.delete(reference.id)
        return count

    def relative_coordinates(self, point, reference_id: str) -> Optional[RelativeCoordinates]:
        """Offset of point from a datum, or None if the datum does not exist."""
        reference = self.get(reference_id)
        if reference is None:
            return None
        p = Point.of(point)
        offset = Point(p.x - reference.position.x, p.y - reference.position.y, p.z - reference.position.z)
        return RelativeCoordinates(reference.id, offset, kernel.distance(p, reference.position))

    def find_nearest(self, position, max_distance: float) -> Optional[ReferenceDatum]:
        hit = SpatialIndex.nearest(position, max_distance, SpatialIndex.point_entries(self._references))
        return hit.key if hit else None

    def _emit(self, reference: ReferenceDatum) -> None:
        if self._event_bus is not None:
            self._event_bus.emit(REFERENCE_CHANGED, reference)
