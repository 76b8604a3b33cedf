"""
AnnotationStore: discrepancy annotations and their measurement links.

Links are id-only snapshots taken at save time. Deleting a measurement clears every link
that references it (see clear_links_to); links are never re-validated against later edits.
"""
from datetime import datetime
from typing import Optional

from inspector3d.core.event_bus import (
    ANNOTATION_CHANGED,
    ANNOTATION_CREATED,
    ANNOTATION_DELETED,
    EventBus,
)
from inspector3d.core.exceptions import NotFoundError, ValidationError
from inspector3d.core.logger import get_entity_logger, get_logger
from inspector3d.geometry.spatial_index import SpatialIndex
from inspector3d.model.entities import (
    ANNOTATION_TYPES,
    SEVERITY_LEVELS,
    Annotation,
    AnnotationFlags,
    LinkedMeasurementRef,
    Point,
)

_log = get_logger("annotation")


def _check_metadata(type_: str, severity: str, description: str) -> None:
    if type_ not in ANNOTATION_TYPES:
        raise ValidationError(f"Unknown annotation type: {type_!r}")
    if severity not in SEVERITY_LEVELS:
        raise ValidationError(f"Unknown severity level: {severity!r}")
    if not description.strip():
        raise ValidationError("Description is required")


class AnnotationStore:
    def __init__(self, event_bus: Optional[EventBus] = None):
        self._event_bus = event_bus
        self._annotations: list[Annotation] = []
        self._id_counter = 1

    @property
    def annotations(self) -> list[Annotation]:
        return self._annotations

    def __len__(self) -> int:
        return len(self._annotations)

    def __iter__(self):
        return iter(self._annotations)

    def get(self, annotation_id: str) -> Optional[Annotation]:
        for a in self._annotations:
            if a.id == annotation_id:
                return a
        return None

    def next_id(self) -> str:
        return f"D{self._id_counter:03d}"

    def create(
        self,
        position,
        description: str,
        type_: str = "corrosion",
        severity: str = "Low",
        title: str = "",
        ndt_required: bool = False,
        abs_required: bool = False,
        link: Optional[LinkedMeasurementRef] = None,
    ) -> Annotation:
        _check_metadata(type_, severity, description)
        annotation = Annotation(
            id=self.next_id(),
            position=Point.of(position),
            type=type_,
            severity=severity,
            title=title.strip(),
            description=description.strip(),
            flags=AnnotationFlags(ndt_required, abs_required),
            link=link,
        )
        self._id_counter += 1
        self._annotations.append(annotation)
        log = get_entity_logger(_log, annotation.id)
        if link is not None:
            log.info("Linked to measurement %s (%s)", link.measurement_id, link.relationship.value)
        log.info("Created annotation")
        self._emit(ANNOTATION_CREATED, annotation)
        return annotation

    def update(
        self,
        annotation_id: str,
        description: Optional[str] = None,
        type_: Optional[str] = None,
        severity: Optional[str] = None,
        title: Optional[str] = None,
        ndt_required: Optional[bool] = None,
        abs_required: Optional[bool] = None,
    ) -> Annotation:
        """Update metadata fields; None leaves a field unchanged. Position and link are not editable here."""
        annotation = self.get(annotation_id)
        if annotation is None:
            raise NotFoundError(f"Annotation not found: {annotation_id}")
        type_ = annotation.type if type_ is None else type_
        severity = annotation.severity if severity is None else severity
        description = annotation.description if description is None else description
        _check_metadata(type_, severity, description)
        annotation.type = type_
        annotation.severity = severity
        annotation.description = description.strip()
        if title is not None:
            annotation.title = title.strip()
        annotation.flags = AnnotationFlags(
            annotation.flags.ndt_required if ndt_required is None else ndt_required,
            annotation.flags.abs_required if abs_required is None else abs_required,
        )
        annotation.updated_at = datetime.now()
        get_entity_logger(_log, annotation.id).info("Updated annotation")
        self._emit(ANNOTATION_CHANGED, annotation)
        return annotation

    def remove_link(self, annotation_id: str) -> bool:
        annotation = self.get(annotation_id)
        if annotation is None or annotation.link is None:
            return False
        annotation.link = None
        annotation.updated_at = datetime.now()
        get_entity_logger(_log, annotation.id).info("Measurement link removed")
        self._emit(ANNOTATION_CHANGED, annotation)
        return True

    def delete(self, annotation_id: str) -> bool:
        annotation = self.get(annotation_id)
        if annotation is None:
            _log.warning("Cannot delete unknown annotation %s", annotation_id)
            return False
        self._annotations.remove(annotation)
        get_entity_logger(_log, annotation.id).info("Removed annotation")
        self._emit(ANNOTATION_DELETED, annotation)
        return True

    def linked_to(self, measurement_id: str) -> list[Annotation]:
        return [a for a in self._annotations if a.link and a.link.measurement_id == measurement_id]

    def clear_links_to(self, measurement_id: str) -> int:
        """Drop links to a measurement that no longer exists. Returns how many were cleared."""
        cleared = 0
        for annotation in self.linked_to(measurement_id):
            annotation.link = None
            annotation.updated_at = datetime.now()
            cleared += 1
            get_entity_logger(_log, annotation.id).info("Link to deleted measurement %s cleared", measurement_id)
            self._emit(ANNOTATION_CHANGED, annotation)
        return cleared

    def find_nearest(self, position, max_distance: float) -> Optional[Annotation]:
        hit = SpatialIndex.nearest(position, max_distance, SpatialIndex.point_entries(self._annotations))
        return hit.key if hit else None

    def _emit(self, event_name: str, annotation: Annotation) -> None:
        if self._event_bus is not None:
            self._event_bus.emit(event_name, annotation)
