"""inspector3d: measurement and linking geometry engine for interactive 3D inspection."""

__version__ = "0.1.0"

from inspector3d.session import InspectionSession
from inspector3d.interaction.state_machine import ToolMode
from inspector3d.interaction.controller import PointerEvent, Action
from inspector3d.model.entities import Point
from inspector3d.viewer.camera import Camera

__all__ = [
    "__version__",
    "InspectionSession",
    "ToolMode",
    "PointerEvent",
    "Action",
    "Point",
    "Camera",
]
