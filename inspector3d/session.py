"""
InspectionSession: owns one interactive inspection and wires its parts together explicitly
(config, event bus, camera, mode machine, stores, linker, projector, input controller).

Collaborators supply pick_surface_point(screen_x, screen_y) -> point | None; everything else
goes through the session's components.
"""
from datetime import datetime
from typing import Mapping, Optional

from inspector3d import __version__
from inspector3d.core.config import load_config
from inspector3d.core.event_bus import ANNOTATION_DELETED, MEASUREMENT_DELETED, EventBus
from inspector3d.core.logger import get_logger
from inspector3d.interaction.controller import InputController, PendingPoint, PickFn
from inspector3d.interaction.state_machine import InteractionModeMachine, ToolMode
from inspector3d.model.annotation_store import AnnotationStore
from inspector3d.model.condition_store import ConditionScoreStore, discrepancy_text, severity_for_score
from inspector3d.model.entities import Annotation, ConditionScoreAssessment, ReferenceDatum
from inspector3d.model.linker import AnnotationLinker
from inspector3d.model.measurement_store import MeasurementStore
from inspector3d.model.reference_store import ReferenceStore
from inspector3d.viewer.camera import Camera
from inspector3d.viewer.projector import LabelRefresher, ScreenProjector

logger = get_logger("session")


def _no_pick(screen_x: float, screen_y: float):
    return None


class InspectionSession:
    def __init__(self, pick_surface_point: PickFn = _no_pick, camera=None, config: Optional[dict] = None):
        self.config = config if config is not None else load_config()
        cfg_m = self.config["measurement"]
        cfg_link = self.config["linking"]
        cfg_labels = self.config["labels"]
        cfg_units = self.config["units"]

        self.event_bus = EventBus()
        self.camera = camera if camera is not None else Camera()
        self.modes = InteractionModeMachine()

        self.measurements = MeasurementStore(cfg_m["palette"], self.event_bus)
        self.annotations = AnnotationStore(self.event_bus)
        self.references = ReferenceStore(self.event_bus)
        self.condition_scores = ConditionScoreStore(self.event_bus)

        self.linker = AnnotationLinker(cfg_link["proximity_threshold"])
        self.lock_linked_measurements = bool(cfg_link.get("lock_linked_measurements", False))

        self.projector = ScreenProjector(cfg_labels["max_distance"])
        self.labels = LabelRefresher(
            self.projector,
            self.camera,
            self.measurements,
            self.annotations,
            self.references,
            self.condition_scores,
            offsets={k: tuple(v) for k, v in cfg_labels.get("offsets", {}).items()},
            mesh_units=cfg_units["mesh_units"],
            show_imperial=bool(cfg_units.get("show_imperial", True)),
            fallback_interval_ms=int(cfg_labels["fallback_interval_ms"]),
        )
        self.input = InputController(
            self.modes,
            self.measurements,
            self.annotations,
            self.linker,
            self.projector,
            self.camera,
            pick_surface_point,
            pick_tolerance=cfg_m["pick_tolerance"],
            hit_radius_px=float(cfg_labels["hit_radius_px"]),
            labels=self.labels,
        )

        self._mode_seen = self.modes.mode
        self.modes.subscribe(self._on_modes_changed)
        self.event_bus.subscribe(MEASUREMENT_DELETED, self._on_measurement_deleted)
        self.event_bus.subscribe(ANNOTATION_DELETED, self._on_annotation_deleted)

    # ------------------------------------------------------------------
    # Wiring
    # ------------------------------------------------------------------

    def _on_modes_changed(self, machine: InteractionModeMachine) -> None:
        self.camera.set_input_enabled(machine.camera_input_enabled)
        if machine.mode is not self._mode_seen:
            # deactivating a tool cancels its pending point
            self._mode_seen = machine.mode
            self.input.pending = None

    def _on_measurement_deleted(self, _, measurement) -> None:
        cleared = self.annotations.clear_links_to(measurement.id)
        if cleared:
            logger.info("Cleared %d annotation link(s) to deleted measurement %s", cleared, measurement.id)

    def _on_annotation_deleted(self, _, annotation) -> None:
        if annotation.link is not None:
            self._release_lock(annotation.link.measurement_id)

    def _release_lock(self, measurement_id: str) -> None:
        if not self.lock_linked_measurements:
            return
        measurement = self.measurements.get(measurement_id)
        if measurement is not None and not self.annotations.linked_to(measurement_id):
            self.measurements.unlock(measurement)

    # ------------------------------------------------------------------
    # Modes
    # ------------------------------------------------------------------

    @property
    def mode(self) -> ToolMode:
        return self.modes.mode

    def toggle_mode(self, mode: ToolMode) -> ToolMode:
        return self.modes.toggle(mode)

    # ------------------------------------------------------------------
    # Saving pending points
    # ------------------------------------------------------------------

    def _take_pending(self, mode: ToolMode):
        pending = self.input.pending
        if pending is None or pending.mode is not mode:
            logger.warning("No pending %s point", mode.value)
            return None
        return pending

    def save_annotation(
        self,
        description: str,
        type_: str = "corrosion",
        severity: str = "Low",
        title: str = "",
        ndt_required: bool = False,
        abs_required: bool = False,
        keep_link: bool = True,
    ) -> Optional[Annotation]:
        """
        Create an annotation at the pending point. The candidate link computed at click time is
        stored as a snapshot unless keep_link is False.
        """
        pending = self._take_pending(ToolMode.ANNOTATE)
        if pending is None:
            return None
        link = pending.link if keep_link else None
        if link is not None and self.measurements.get(link.measurement_id) is None:
            logger.warning("Candidate link target %s no longer exists; saving unlinked", link.measurement_id)
            link = None
        annotation = self.annotations.create(
            pending.point,
            description,
            type_=type_,
            severity=severity,
            title=title,
            ndt_required=ndt_required,
            abs_required=abs_required,
            link=link,
        )
        self.input.pending = None
        if link is not None and self.lock_linked_measurements:
            self.measurements.lock(self.measurements.get(link.measurement_id))
        return annotation

    def remove_annotation_link(self, annotation_id: str) -> bool:
        annotation = self.annotations.get(annotation_id)
        if annotation is None or annotation.link is None:
            return False
        measurement_id = annotation.link.measurement_id
        self.annotations.remove_link(annotation_id)
        self._release_lock(measurement_id)
        return True

    def save_reference(self, name: str, type_: str = "primary", description: str = "") -> Optional[ReferenceDatum]:
        pending = self._take_pending(ToolMode.REFERENCE)
        if pending is None:
            return None
        reference = self.references.create(pending.point, name, type_=type_, description=description)
        self.input.pending = None
        return reference

    def save_condition_score(self, surface_id: str, scores: Mapping[str, int],
                             notes: str = "") -> Optional[ConditionScoreAssessment]:
        pending = self._take_pending(ToolMode.CONDITION_SCORE)
        if pending is None:
            return None
        assessment = self.condition_scores.create(pending.point, surface_id, scores, notes=notes)
        self.input.pending = None
        return assessment

    def annotation_from_assessment(self, assessment_id: str, keep_link: bool = True) -> Optional[Annotation]:
        """
        Raise a discrepancy annotation at an assessment's position. Title, description and
        severity are derived from the scores; the link is computed as for a clicked point.
        """
        assessment = self.condition_scores.get(assessment_id)
        if assessment is None:
            logger.warning("Cannot raise annotation from unknown assessment %s", assessment_id)
            return None
        position = assessment.position.copy()
        link = self.linker.find_link(position, self.measurements.measurements)
        self.input.pending = PendingPoint(ToolMode.ANNOTATE, position, link)
        title, description = discrepancy_text(assessment)
        logger.info("Creating annotation from assessment %s (%s)", assessment.id, assessment.surface_id)
        return self.save_annotation(
            description,
            severity=severity_for_score(assessment.max_score),
            title=title,
            keep_link=keep_link,
        )

    # ------------------------------------------------------------------
    # Export
    # ------------------------------------------------------------------

    def export_data(self) -> dict:
        """Plain serializable snapshot of every entity, consistent with current state."""
        units = self.config["units"]["mesh_units"]
        measurements = []
        for m in self.measurements:
            record = m.to_dict()
            record["units"] = units
            record["linkedAnnotations"] = [a.id for a in self.annotations.linked_to(m.id)]
            measurements.append(record)
        annotations = []
        for a in self.annotations:
            record = a.to_dict()
            target = self.measurements.get(a.link.measurement_id) if a.link else None
            if target is not None:
                record["link"]["area"] = target.area
                record["link"]["perimeter"] = target.perimeter
            annotations.append(record)
        return {
            "metadata": {
                "version": __version__,
                "exportedAt": datetime.now().isoformat(),
                "units": units,
            },
            "measurements": measurements,
            "annotations": annotations,
            "referencePoints": [r.to_dict() for r in self.references],
            "conditionScores": [c.to_dict() for c in self.condition_scores],
            "summary": {
                "measurementCount": len(self.measurements),
                "closedMeasurementCount": sum(1 for m in self.measurements if m.closed),
                "annotationCount": len(self.annotations),
                "linkedAnnotationCount": sum(1 for a in self.annotations if a.link),
                "referencePointCount": len(self.references),
                "conditionScoreCount": len(self.condition_scores),
                "recoatRecommendedCount": sum(1 for c in self.condition_scores if c.recommend_recoat),
            },
        }
