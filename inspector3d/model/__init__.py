"""Domain entities; the stores live in their own modules."""

from inspector3d.model.entities import (
    Point,
    Measurement,
    Annotation,
    AnnotationFlags,
    LinkedMeasurementRef,
    Relationship,
    ReferenceDatum,
    ConditionScoreAssessment,
    Zone,
)

__all__ = [
    "Point",
    "Measurement",
    "Annotation",
    "AnnotationFlags",
    "LinkedMeasurementRef",
    "Relationship",
    "ReferenceDatum",
    "ConditionScoreAssessment",
    "Zone",
]
