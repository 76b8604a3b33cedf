"""
Screen projection for overlay labels.

ScreenProjector is a pure function of point + camera state. LabelRefresher collects label
anchors from the stores and re-projects them on every render frame, with a slower QTimer
fallback in case the render loop stalls; both paths call the same idempotent refresh().
"""
import math
from dataclasses import dataclass
from typing import Callable, Iterable, NamedTuple, Optional

from PySide6.QtCore import QTimer
from PySide6.QtGui import QVector4D

from inspector3d.core.logger import get_logger
from inspector3d.geometry import kernel, units
from inspector3d.model.entities import Point

_log = get_logger("projector")

DEFAULT_MAX_LABEL_DISTANCE = 100.0


class ScreenPosition(NamedTuple):
    x: float
    y: float
    visible: bool


class ScreenProjector:
    def __init__(self, max_distance: float = DEFAULT_MAX_LABEL_DISTANCE):
        self.max_distance = max_distance

    def project(self, point, camera) -> ScreenPosition:
        """
        Model point -> viewport pixels (origin top-left, y down).
        visible = ndc depth < 1 (in front of the far side / not behind the camera) and
        the point is closer than max_distance to the eye.
        """
        p = Point.of(point)
        mvp = camera.projection_matrix() * camera.view_matrix()
        clip = mvp.map(QVector4D(p.x, p.y, p.z, 1.0))
        w = clip.w()
        if w == 0.0:
            return ScreenPosition(math.nan, math.nan, False)
        ndc_x, ndc_y, ndc_z = clip.x() / w, clip.y() / w, clip.z() / w
        width, height = camera.viewport_size()
        x = (ndc_x * 0.5 + 0.5) * width
        y = (-ndc_y * 0.5 + 0.5) * height
        eye_distance = kernel.distance(p, Point.of(camera.eye_position()))
        # points behind the eye have w < 0, which maps depth past 1
        visible = ndc_z < 1.0 and eye_distance < self.max_distance
        return ScreenPosition(x, y, visible)


@dataclass(frozen=True)
class LabelAnchor:
    key: str
    kind: str
    anchor: Point
    text: str


@dataclass(frozen=True)
class LabelPlacement:
    key: str
    kind: str
    text: str
    x: float
    y: float
    visible: bool


class LabelRefresher:
    """Builds label anchors from the stores and pushes projected placements to a sink."""

    def __init__(
        self,
        projector: ScreenProjector,
        camera,
        measurements,
        annotations,
        references,
        assessments,
        offsets: Optional[dict] = None,
        mesh_units: str = "m",
        show_imperial: bool = True,
        fallback_interval_ms: int = 200,
        sink: Optional[Callable[[list[LabelPlacement]], None]] = None,
    ):
        self._projector = projector
        self._camera = camera
        self._measurements = measurements
        self._annotations = annotations
        self._references = references
        self._assessments = assessments
        self._offsets = offsets or {}
        self._mesh_units = mesh_units
        self._show_imperial = show_imperial
        self._fallback_interval_ms = fallback_interval_ms
        self._sink = sink
        self._timer: Optional[QTimer] = None
        self.measurement_labels_visible = True

    def set_sink(self, sink: Optional[Callable[[list[LabelPlacement]], None]]) -> None:
        self._sink = sink

    def toggle_measurement_labels(self) -> bool:
        self.measurement_labels_visible = not self.measurement_labels_visible
        _log.info("Measurement labels %s", "shown" if self.measurement_labels_visible else "hidden")
        return self.measurement_labels_visible

    def anchors(self) -> list[LabelAnchor]:
        out: list[LabelAnchor] = []
        if self.measurement_labels_visible:
            for m in self._measurements:
                pts = m.points
                # the closing segment gets no distance label
                for i, j in kernel.segments(pts, closed=False):
                    out.append(LabelAnchor(
                        f"{m.id}:seg:{i}-{j}",
                        "distance",
                        kernel.midpoint(pts[i], pts[j]),
                        units.format_distance(kernel.distance(pts[i], pts[j]), self._mesh_units, self._show_imperial),
                    ))
                if m.closed and m.area > 0:
                    out.append(LabelAnchor(
                        f"{m.id}:area",
                        "area",
                        kernel.polygon_centroid(pts),
                        "AREA " + units.format_area(m.area, self._mesh_units, self._show_imperial),
                    ))
        for a in self._annotations:
            out.append(LabelAnchor(a.id, "annotation", a.position, a.title or a.id))
        for r in self._references:
            out.append(LabelAnchor(r.id, "reference", r.position, r.name))
        for c in self._assessments:
            out.append(LabelAnchor(c.id, "condition_score", c.position, f"{c.surface_id} ({c.max_score})"))
        return out

    def placements(self, anchors: Optional[Iterable[LabelAnchor]] = None) -> list[LabelPlacement]:
        result = []
        for anchor in (self.anchors() if anchors is None else anchors):
            pos = self._projector.project(anchor.anchor, self._camera)
            dx, dy = self._offsets.get(anchor.kind, (0, 0))
            result.append(LabelPlacement(anchor.key, anchor.kind, anchor.text, pos.x + dx, pos.y + dy, pos.visible))
        return result

    def refresh(self) -> list[LabelPlacement]:
        """Project every label once and hand the result to the sink."""
        placements = self.placements()
        if self._sink is not None:
            self._sink(placements)
        return placements

    def on_frame(self) -> list[LabelPlacement]:
        """Render-loop hook."""
        return self.refresh()

    def start_fallback_timer(self, parent=None) -> QTimer:
        if self._timer is None:
            self._timer = QTimer(parent)
            self._timer.setInterval(self._fallback_interval_ms)
            self._timer.timeout.connect(self.refresh)
        self._timer.start()
        return self._timer

    def stop_fallback_timer(self) -> None:
        if self._timer is not None:
            self._timer.stop()

    @property
    def fallback_active(self) -> bool:
        return self._timer is not None and self._timer.isActive()
