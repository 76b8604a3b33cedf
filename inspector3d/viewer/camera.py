"""Orbit camera for the inspection viewport; supplies the matrices and pixel size used for label projection."""

import math
from dataclasses import dataclass

from PySide6.QtGui import QMatrix4x4, QVector3D

WORLD_UP = QVector3D(0.0, 1.0, 0.0)
HOME_DISTANCE = 10.0
HOME_ELEVATION = 0.3

_ELEVATION_LIMIT = math.pi / 2 - 0.01
_DISTANCE_RANGE = (0.1, 1e5)


def _clamp(value: float, low: float, high: float) -> float:
    return max(low, min(high, value))


@dataclass
class Lens:
    fov_deg: float = 75.0
    near: float = 0.1
    far: float = 1000.0


class Camera:
    """
    Eye orbits a target at (distance, azimuth, elevation); Y is up and azimuth turns in XZ.

    orbit/pan/zoom come from user input and do nothing while input is disabled (during a point
    drag). The set_* methods are programmatic and always apply.
    """

    def __init__(self, width: int = 800, height: int = 600) -> None:
        self.lens = Lens()
        self._target = QVector3D(0.0, 0.0, 0.0)
        self._distance = HOME_DISTANCE
        self._azimuth = 0.0
        self._elevation = HOME_ELEVATION
        self._input_enabled = True
        self._size = (1, 1)
        self.set_viewport(width, height)

    def _offset(self) -> QVector3D:
        horizontal = self._distance * math.cos(self._elevation)
        return QVector3D(
            horizontal * math.sin(self._azimuth),
            self._distance * math.sin(self._elevation),
            horizontal * math.cos(self._azimuth),
        )

    # ------------------------------------------------------------------
    # Programmatic setup
    # ------------------------------------------------------------------

    def set_position(self, x: float, y: float, z: float) -> None:
        """Move the eye to (x, y, z) around the current target."""
        offset = QVector3D(x, y, z) - self._target
        length = offset.length()
        self._distance = _clamp(length, *_DISTANCE_RANGE)
        if length > 0:
            direction = offset.normalized()
            self._elevation = math.asin(_clamp(direction.y(), -1.0, 1.0))
            self._azimuth = math.atan2(direction.x(), direction.z())

    def set_look_at(self, x: float, y: float, z: float) -> None:
        self._target = QVector3D(x, y, z)

    def set_viewport(self, width: int, height: int) -> None:
        """Pixel size of the render surface; the aspect ratio follows from it."""
        self._size = (max(1, int(width)), max(1, int(height)))

    def fit_to_points(self, points, offset: float = 1.5) -> None:
        """Aim at the bounding-box center and back off until the box fills the vertical field of view."""
        pts = list(points)
        if not pts:
            return
        lows = [min(getattr(p, axis) for p in pts) for axis in "xyz"]
        highs = [max(getattr(p, axis) for p in pts) for axis in "xyz"]
        self._target = QVector3D(*((lo + hi) / 2 for lo, hi in zip(lows, highs)))
        extent = max(max(hi - lo for lo, hi in zip(lows, highs)), 1e-6)
        fit = extent / 2 / math.tan(math.radians(self.lens.fov_deg) / 2)
        self._distance = _clamp(fit * offset, *_DISTANCE_RANGE)

    def reset(self) -> None:
        self._target = QVector3D(0.0, 0.0, 0.0)
        self._distance = HOME_DISTANCE
        self._azimuth = 0.0
        self._elevation = HOME_ELEVATION

    # ------------------------------------------------------------------
    # User input
    # ------------------------------------------------------------------

    @property
    def input_enabled(self) -> bool:
        return self._input_enabled

    def set_input_enabled(self, enabled: bool) -> None:
        self._input_enabled = bool(enabled)

    def orbit(self, delta_azimuth: float, delta_elevation: float) -> None:
        """Radians, typically scaled mouse deltas."""
        if not self._input_enabled:
            return
        self._azimuth += delta_azimuth
        self._elevation = _clamp(self._elevation + delta_elevation, -_ELEVATION_LIMIT, _ELEVATION_LIMIT)

    def pan(self, dx: float, dy: float) -> None:
        """Slide the target across the view plane by a pixel delta."""
        if not self._input_enabled:
            return
        forward = (self._target - self.eye_position()).normalized()
        right = QVector3D.crossProduct(forward, WORLD_UP).normalized()
        up = QVector3D.crossProduct(right, forward).normalized()
        step = self._distance * 0.002
        self._target = self._target + right * (-dx * step) + up * (dy * step)

    def zoom(self, delta: float) -> None:
        """Wheel delta; positive moves closer."""
        if not self._input_enabled:
            return
        self._distance = _clamp(self._distance * (1.0 - delta * 0.001), *_DISTANCE_RANGE)

    # ------------------------------------------------------------------
    # Read side for ScreenProjector
    # ------------------------------------------------------------------

    def view_matrix(self) -> QMatrix4x4:
        m = QMatrix4x4()
        m.lookAt(self.eye_position(), self._target, WORLD_UP)
        return m

    def projection_matrix(self) -> QMatrix4x4:
        width, height = self._size
        m = QMatrix4x4()
        m.perspective(self.lens.fov_deg, width / height, self.lens.near, self.lens.far)
        return m

    def eye_position(self) -> QVector3D:
        return self._target + self._offset()

    def target(self) -> QVector3D:
        return self._target

    def distance(self) -> float:
        return self._distance

    def viewport_size(self) -> tuple[int, int]:
        return self._size
