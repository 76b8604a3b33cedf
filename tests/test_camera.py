"""Camera: input gate, programmatic placement, matrices."""
import math

import pytest
from PySide6.QtGui import QVector3D

from inspector3d.model.entities import Point
from inspector3d.viewer.camera import Camera


def test_disabled_input_ignores_orbit_pan_zoom():
    cam = Camera()
    before = Point.of(cam.eye_position())
    cam.set_input_enabled(False)
    cam.orbit(0.5, 0.2)
    cam.pan(30, 10)
    cam.zoom(200)
    assert Point.of(cam.eye_position()) == before
    cam.set_input_enabled(True)
    cam.zoom(200)
    assert cam.distance() == pytest.approx(8.0)


def test_programmatic_setters_ignore_gate():
    cam = Camera()
    cam.set_input_enabled(False)
    cam.set_position(0, 0, 5)
    eye = cam.eye_position()
    assert (eye.x(), eye.y(), eye.z()) == pytest.approx((0.0, 0.0, 5.0), abs=1e-6)


def test_fit_to_points_centers_target():
    cam = Camera()
    cam.fit_to_points([Point(-2, 0, -2), Point(2, 1, 2)])
    target = cam.target()
    assert (target.x(), target.y(), target.z()) == pytest.approx((0.0, 0.5, 0.0))
    expected = 2 / math.tan(math.radians(75) / 2) * 1.5
    assert cam.distance() == pytest.approx(expected)


def test_viewport_minimum_size():
    cam = Camera()
    cam.set_viewport(0, -5)
    assert cam.viewport_size() == (1, 1)


def test_point_of_accepts_qvector():
    assert Point.of(QVector3D(1, 2, 3)) == Point(1, 2, 3)


def test_look_at_and_reset():
    cam = Camera()
    home = cam.distance()
    cam.set_look_at(3, 1, -2)
    target = cam.target()
    assert (target.x(), target.y(), target.z()) == pytest.approx((3.0, 1.0, -2.0))
    cam.zoom(500)
    cam.reset()
    target = cam.target()
    assert (target.x(), target.y(), target.z()) == pytest.approx((0.0, 0.0, 0.0))
    assert cam.distance() == pytest.approx(home)
