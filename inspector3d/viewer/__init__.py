"""Camera and overlay-label projection."""

from inspector3d.viewer.camera import Camera
from inspector3d.viewer.projector import (
    ScreenProjector,
    ScreenPosition,
    LabelRefresher,
    LabelAnchor,
    LabelPlacement,
)

__all__ = [
    "Camera",
    "ScreenProjector",
    "ScreenPosition",
    "LabelRefresher",
    "LabelAnchor",
    "LabelPlacement",
]
