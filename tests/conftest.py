"""
Pytest configuration and shared fixtures.

Headless Qt on Linux: set QT_QPA_PLATFORM=offscreen so QTimer/QCoreApplication work in CI
without a display.
"""
import os
import sys

# Must set before any PySide6/Qt import
if sys.platform.startswith("linux"):
    os.environ.setdefault("QT_QPA_PLATFORM", "offscreen")

import pytest

from inspector3d.core.config import load_config, reset_config
from inspector3d.model.entities import Point


@pytest.fixture(autouse=True)
def _fresh_config(monkeypatch):
    """Every test starts from packaged defaults, ignoring any INSPECTOR3D_CONFIG in the env."""
    monkeypatch.delenv("INSPECTOR3D_CONFIG", raising=False)
    reset_config()
    yield
    reset_config()


@pytest.fixture
def config():
    return load_config()


@pytest.fixture
def unit_square():
    """Unit square in the (x, z) plane at y=0."""
    return [Point(0, 0, 0), Point(1, 0, 0), Point(1, 0, 1), Point(0, 0, 1)]


@pytest.fixture
def qapp():
    from PySide6.QtCore import QCoreApplication

    app = QCoreApplication.instance()
    if app is None:
        app = QCoreApplication([])
    yield app
