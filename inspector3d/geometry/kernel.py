"""
Geometry kernel: pure functions over 3D point sequences.

Inputs are Points (or any x/y/z objects / 3-sequences). Degenerate inputs never raise:
too few points gives 0 / False.
"""
from typing import Iterator, Sequence

import numpy as np

from inspector3d.model.entities import Point


def _vec(p) -> np.ndarray:
    if isinstance(p, Point):
        return p.as_array()
    return Point.of(p).as_array()


def distance(a, b) -> float:
    """Euclidean distance between two points."""
    return float(np.linalg.norm(_vec(a) - _vec(b)))


def midpoint(a, b) -> Point:
    m = (_vec(a) + _vec(b)) * 0.5
    return Point(float(m[0]), float(m[1]), float(m[2]))


def segments(points: Sequence, closed: bool = False) -> Iterator[tuple[int, int]]:
    """Yield (from_index, to_index) for consecutive segments, plus the closing segment if closed."""
    n = len(points)
    for i in range(1, n):
        yield i - 1, i
    if closed and n >= 3:
        yield n - 1, 0


def polyline_length(points: Sequence, closed: bool = False) -> float:
    """Sum of consecutive segment lengths; includes the closing segment when closed (n >= 3)."""
    if len(points) < 2:
        return 0.0
    return float(sum(distance(points[i], points[j]) for i, j in segments(points, closed)))


def polygon_area(points: Sequence) -> float:
    """
    Area by fan triangulation from points[0]: sum of |(p[i]-p0) x (p[i+1]-p0)| / 2.

    Exact for planar convex and most simple polygons in 3D. Self-intersecting polygons are not
    handled; their result is the sum of the fan triangle areas, not the enclosed area.
    """
    if len(points) < 3:
        return 0.0
    arr = np.array([_vec(p) for p in points])
    v = arr[1:] - arr[0]
    cross = np.cross(v[:-1], v[1:])
    return float(np.linalg.norm(cross, axis=1).sum() / 2.0)


def polygon_centroid(points: Sequence) -> Point:
    """Vertex centroid (mean of vertices). Good for label placement, not center of mass."""
    if not points:
        return Point(0.0, 0.0, 0.0)
    c = np.mean([_vec(p) for p in points], axis=0)
    return Point(float(c[0]), float(c[1]), float(c[2]))


def point_in_polygon(point, polygon_points: Sequence) -> bool:
    """
    Ray-casting parity test on the (x, z) projection; y is ignored.

    Only meaningful for polygons roughly level in y: a point far above or below the polygon
    but within its (x, z) footprint is reported inside.
    """
    n = len(polygon_points)
    if n < 3:
        return False
    p = _vec(point)
    x, z = p[0], p[2]
    poly = [_vec(q) for q in polygon_points]
    inside = False
    j = n - 1
    for i in range(n):
        xi, zi = poly[i][0], poly[i][2]
        xj, zj = poly[j][0], poly[j][2]
        if (zi > z) != (zj > z) and x < (xj - xi) * (z - zi) / (zj - zi) + xi:
            inside = not inside
        j = i
    return inside


def distance_point_to_segment(point, seg_start, seg_end) -> float:
    """Distance from point to the closest point on segment [seg_start, seg_end]."""
    p, a, b = _vec(point), _vec(seg_start), _vec(seg_end)
    ab = b - a
    denom = float(np.dot(ab, ab))
    if denom == 0.0:
        return float(np.linalg.norm(p - a))
    t = min(1.0, max(0.0, float(np.dot(p - a, ab)) / denom))
    return float(np.linalg.norm(p - (a + t * ab)))
