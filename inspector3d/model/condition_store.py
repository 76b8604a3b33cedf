"""Condition-score assessments: six categories scored 0 (excellent) to 6 (unacceptable)."""

from datetime import datetime
from typing import Mapping, Optional

from inspector3d.core.event_bus import CONDITION_SCORE_CHANGED, EventBus
from inspector3d.core.exceptions import NotFoundError, ValidationError
from inspector3d.core.logger import get_entity_logger, get_logger
from inspector3d.geometry.spatial_index import SpatialIndex
from inspector3d.model.entities import (
    CONDITION_CATEGORIES,
    RECOAT_THRESHOLD,
    SCORE_MAX,
    SCORE_MIN,
    ConditionScoreAssessment,
    Point,
)

_log = get_logger("condition_score")

CATEGORY_LABELS = {
    "coating_condition": "Coating Condition",
    "general_corrosion": "General Corrosion",
    "pitting_grooving": "Pitting & Grooving",
    "deformation": "Deformation",
    "fracture": "Fracture",
    "cleanliness": "Cleanliness & Housekeeping",
}


def severity_for_score(max_score: int) -> str:
    """Annotation severity for an assessment's worst category score."""
    if max_score >= 5:
        return "Critical"
    if max_score >= 3:
        return "High"
    if max_score >= 2:
        return "Medium"
    return "Low"


def discrepancy_text(assessment: ConditionScoreAssessment) -> tuple[str, str]:
    """(title, description) for an annotation raised from an assessment."""
    high = ", ".join(
        f"{CATEGORY_LABELS[c]}: {assessment.scores[c]}"
        for c in CONDITION_CATEGORIES
        if assessment.scores[c] >= RECOAT_THRESHOLD
    )
    description = f"HIMP scores: {high}." if high else f"HIMP scores: none at {RECOAT_THRESHOLD} or above."
    if assessment.notes:
        description = f"{description} {assessment.notes}"
    return f"HIMP Assessment: {assessment.surface_id}", description


def validate_scores(scores: Mapping[str, int]) -> dict[str, int]:
    """All six categories present, integer, within 0-6. Unknown categories are rejected."""
    missing = [c for c in CONDITION_CATEGORIES if c not in scores]
    if missing:
        raise ValidationError(f"Missing scores for: {', '.join(missing)}")
    unknown = sorted(set(scores) - set(CONDITION_CATEGORIES))
    if unknown:
        raise ValidationError(f"Unknown score categories: {', '.join(unknown)}")
    out = {}
    for category in CONDITION_CATEGORIES:
        value = scores[category]
        if isinstance(value, bool) or not isinstance(value, int):
            raise ValidationError(f"Score for {category} must be an integer, got {value!r}")
        if not SCORE_MIN <= value <= SCORE_MAX:
            raise ValidationError(f"Score for {category} must be {SCORE_MIN}-{SCORE_MAX}, got {value}")
        out[category] = value
    return out


class ConditionScoreStore:
    def __init__(self, event_bus: Optional[EventBus] = None):
        self._event_bus = event_bus
        self._assessments: list[ConditionScoreAssessment] = []
        self._id_counter = 1

    @property
    def assessments(self) -> list[ConditionScoreAssessment]:
        return self._assessments

    def __len__(self) -> int:
        return len(self._assessments)

    def __iter__(self):
        return iter(self._assessments)

    def get(self, assessment_id: str) -> Optional[ConditionScoreAssessment]:
        for a in self._assessments:
            if a.id == assessment_id:
                return a
        return None

    def _check_surface_id(self, surface_id: str, exclude_id: Optional[str] = None) -> str:
        surface_id = surface_id.strip()
        if not surface_id:
            raise ValidationError("Surface ID is required")
        if any(a.surface_id == surface_id and a.id != exclude_id for a in self._assessments):
            raise ValidationError(f"An assessment for surface {surface_id!r} already exists")
        return surface_id

    def create(self, position, surface_id: str, scores: Mapping[str, int], notes: str = "") -> ConditionScoreAssessment:
        assessment = ConditionScoreAssessment(
            id=f"CS{self._id_counter}",
            surface_id=self._check_surface_id(surface_id),
            position=Point.of(position),
            scores=validate_scores(scores),
            notes=notes.strip(),
        )
        self._id_counter += 1
        self._assessments.append(assessment)
        get_entity_logger(_log, assessment.id).info(
            "Created assessment for %s (max %d, recoat=%s)",
            assessment.surface_id, assessment.max_score, assessment.recommend_recoat,
        )
        self._emit(assessment)
        return assessment

    def update(self, assessment_id: str, surface_id: Optional[str] = None,
               scores: Optional[Mapping[str, int]] = None, notes: Optional[str] = None) -> ConditionScoreAssessment:
        assessment = self.get(assessment_id)
        if assessment is None:
            raise NotFoundError(f"Assessment not found: {assessment_id}")
        # validate everything before touching the record
        new_surface_id = assessment.surface_id if surface_id is None else self._check_surface_id(surface_id, assessment.id)
        new_scores = assessment.scores if scores is None else validate_scores(scores)
        assessment.surface_id = new_surface_id
        assessment.scores = new_scores
        if notes is not None:
            assessment.notes = notes.strip()
        assessment.updated_at = datetime.now()
        get_entity_logger(_log, assessment.id).info("Updated assessment for %s", assessment.surface_id)
        self._emit(assessment)
        return assessment

    def delete(self, assessment_id: str) -> bool:
        assessment = self.get(assessment_id)
        if assessment is None:
            _log.warning("Cannot delete unknown assessment %s", assessment_id)
            return False
        self._assessments.remove(assessment)
        get_entity_logger(_log, assessment.id).info("Deleted assessment")
        self._emit(assessment)
        return True

    def clear(self) -> int:
        count = len(self._assessments)
        for assessment in list(self._assessments):
            self.delete(assessment.id)
        return count

    def find_nearest(self, position, max_distance: float) -> Optional[ConditionScoreAssessment]:
        hit = SpatialIndex.nearest(position, max_distance, SpatialIndex.point_entries(self._assessments))
        return hit.key if hit else None

    def _emit(self, assessment: ConditionScoreAssessment) -> None:
        if self._event_bus is not None:
            self._event_bus.emit(CONDITION_SCORE_CHANGED, assessment)
