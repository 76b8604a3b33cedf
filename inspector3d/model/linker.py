"""Annotation-to-measurement linking: enclosing polygon first, then nearest edge."""

import math
from typing import Iterable, Optional

from inspector3d.geometry import kernel
from inspector3d.model.entities import LinkedMeasurementRef, Measurement, Relationship

DEFAULT_PROXIMITY_THRESHOLD = 0.5


def distance_to_measurement(point, measurement: Measurement) -> float:
    """Minimum distance from point to any segment (closing segment included when closed)."""
    points = measurement.points
    best = math.inf
    for i, j in kernel.segments(points, measurement.closed):
        best = min(best, kernel.distance_point_to_segment(point, points[i], points[j]))
    return best


class AnnotationLinker:
    """
    Reads measurements, never mutates them.

    Inside checks run over every closed measurement before any edge-distance check, so an
    enclosing polygon always beats a closer edge of another measurement.
    """

    def __init__(self, proximity_threshold: float = DEFAULT_PROXIMITY_THRESHOLD):
        self.proximity_threshold = proximity_threshold

    def find_link(self, point, measurements: Iterable[Measurement]) -> Optional[LinkedMeasurementRef]:
        measurements = list(measurements)
        for m in measurements:
            if m.closed and len(m.points) >= 3 and kernel.point_in_polygon(point, m.points):
                return LinkedMeasurementRef(m.id, Relationship.INSIDE, 0.0)

        best: Optional[Measurement] = None
        best_distance = math.inf
        for m in measurements:
            d = distance_to_measurement(point, m)
            if d < best_distance:
                best, best_distance = m, d
        if best is not None and best_distance < self.proximity_threshold:
            return LinkedMeasurementRef(best.id, Relationship.NEAR_LINE, best_distance)
        return None
