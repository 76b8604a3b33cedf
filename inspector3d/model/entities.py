"""
Domain entities: points, measurements, annotations, reference datums, condition-score assessments.
Entities hold geometric/semantic data only; overlay handles live in the rendering layer.
"""
from dataclasses import dataclass, field
from datetime import datetime
from enum import Enum
from typing import Optional

import numpy as np


def _now() -> datetime:
    return datetime.now()


def _iso(ts: Optional[datetime]) -> Optional[str]:
    return ts.isoformat() if ts is not None else None


@dataclass
class Point:
    """3D coordinate in model-local space."""

    x: float
    y: float
    z: float

    @classmethod
    def of(cls, value) -> "Point":
        """Coerce a Point, an (x, y, z) sequence, or any object with x/y/z attributes."""
        if isinstance(value, Point):
            return value.copy()
        if hasattr(value, "x") and hasattr(value, "y") and hasattr(value, "z"):
            x, y, z = value.x, value.y, value.z
            # QVector3D exposes x()/y()/z() as methods
            if callable(x):
                x, y, z = x(), y(), z()
            return cls(float(x), float(y), float(z))
        x, y, z = value
        return cls(float(x), float(y), float(z))

    def copy(self) -> "Point":
        return Point(self.x, self.y, self.z)

    def set(self, other: "Point") -> None:
        """Overwrite coordinates in place (drag edits)."""
        self.x, self.y, self.z = float(other.x), float(other.y), float(other.z)

    def as_array(self) -> np.ndarray:
        return np.array((self.x, self.y, self.z), dtype=float)

    def to_dict(self) -> dict:
        return {"x": self.x, "y": self.y, "z": self.z}


class Relationship(str, Enum):
    INSIDE = "inside"
    NEAR_LINE = "near_line"


@dataclass(frozen=True)
class LinkedMeasurementRef:
    """Non-owning link from an annotation to a measurement, snapshotted at save time."""

    measurement_id: str
    relationship: Relationship
    distance: float = 0.0

    def to_dict(self) -> dict:
        return {
            "measurementId": self.measurement_id,
            "relationship": self.relationship.value,
            "distance": self.distance,
        }


@dataclass
class Measurement:
    """
    Ordered point sequence forming an open polyline or, once closed, a polygon.
    perimeter and area are derived; MeasurementStore recomputes them after every point mutation.
    """

    id: str
    color: str
    points: list[Point] = field(default_factory=list)
    closed: bool = False
    locked: bool = False
    perimeter: float = 0.0
    area: float = 0.0
    created_at: datetime = field(default_factory=_now)
    updated_at: Optional[datetime] = None

    @property
    def point_count(self) -> int:
        return len(self.points)

    @property
    def kind(self) -> str:
        return "area" if self.closed else "linear"

    def to_dict(self) -> dict:
        return {
            "id": self.id,
            "points": [p.to_dict() for p in self.points],
            "perimeter": self.perimeter,
            "area": self.area,
            "closed": self.closed,
            "locked": self.locked,
            "color": self.color,
            "createdAt": _iso(self.created_at),
            "updatedAt": _iso(self.updated_at),
            "pointCount": self.point_count,
            "measurementType": self.kind,
        }


ANNOTATION_TYPES = ("corrosion", "crack", "pitting", "structure", "housekeeping")
SEVERITY_LEVELS = ("Low", "Medium", "High", "Critical")


@dataclass
class AnnotationFlags:
    ndt_required: bool = False
    abs_required: bool = False

    def to_dict(self) -> dict:
        return {"ndtRequired": self.ndt_required, "absRequired": self.abs_required}


@dataclass
class Annotation:
    """Single-point discrepancy record, optionally linked to a measurement."""

    id: str
    position: Point
    type: str = "corrosion"
    severity: str = "Low"
    title: str = ""
    description: str = ""
    flags: AnnotationFlags = field(default_factory=AnnotationFlags)
    link: Optional[LinkedMeasurementRef] = None
    created_at: datetime = field(default_factory=_now)
    updated_at: Optional[datetime] = None

    def to_dict(self) -> dict:
        return {
            "id": self.id,
            "position": self.position.to_dict(),
            "type": self.type,
            "severity": self.severity,
            "title": self.title,
            "description": self.description,
            "flags": self.flags.to_dict(),
            "link": self.link.to_dict() if self.link else None,
            "createdAt": _iso(self.created_at),
            "updatedAt": _iso(self.updated_at),
        }


REFERENCE_TYPES = ("primary", "secondary", "landmark", "origin")
REFERENCE_COLORS = {
    "primary": "#ff6b35",
    "secondary": "#2e86ab",
    "landmark": "#9b59b6",
    "origin": "#e74c3c",
}


@dataclass
class ReferenceDatum:
    """Named reference point other positions can be expressed relative to."""

    id: str
    name: str
    position: Point
    type: str = "primary"
    description: str = ""
    created_at: datetime = field(default_factory=_now)
    updated_at: Optional[datetime] = None

    @property
    def color(self) -> str:
        return REFERENCE_COLORS.get(self.type, REFERENCE_COLORS["primary"])

    def to_dict(self) -> dict:
        return {
            "id": self.id,
            "name": self.name,
            "description": self.description,
            "type": self.type,
            "position": self.position.to_dict(),
            "color": self.color,
            "createdAt": _iso(self.created_at),
            "updatedAt": _iso(self.updated_at),
        }


CONDITION_CATEGORIES = (
    "coating_condition",
    "general_corrosion",
    "pitting_grooving",
    "deformation",
    "fracture",
    "cleanliness",
)
SCORE_MIN = 0
SCORE_MAX = 6
RECOAT_THRESHOLD = 2


class Zone(str, Enum):
    SAFE = "safe"
    CAUTION = "caution"
    WARNING = "warning"


@dataclass
class ConditionScoreAssessment:
    """Six-category 0-6 severity scoring anchored at a surface point."""

    id: str
    surface_id: str
    position: Point
    scores: dict[str, int]
    notes: str = ""
    created_at: datetime = field(default_factory=_now)
    updated_at: Optional[datetime] = None

    @property
    def max_score(self) -> int:
        return max(self.scores.values())

    @property
    def average_score(self) -> float:
        return sum(self.scores.values()) / len(self.scores)

    @property
    def recommend_recoat(self) -> bool:
        return any(score >= RECOAT_THRESHOLD for score in self.scores.values())

    @property
    def zone(self) -> Zone:
        if self.max_score >= 3:
            return Zone.WARNING
        if self.max_score >= 2:
            return Zone.CAUTION
        return Zone.SAFE

    def to_dict(self) -> dict:
        return {
            "id": self.id,
            "surfaceId": self.surface_id,
            "scores": dict(self.scores),
            "recommendRecoat": self.recommend_recoat,
            "maxScore": self.max_score,
            "averageScore": self.average_score,
            "zone": self.zone.value,
            "notes": self.notes,
            "position": self.position.to_dict(),
            "createdAt": _iso(self.created_at),
            "updatedAt": _iso(self.updated_at),
        }
