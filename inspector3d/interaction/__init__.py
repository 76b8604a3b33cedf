"""Tool-mode state machine and input routing."""

from inspector3d.interaction.state_machine import InteractionModeMachine, ToolMode, EditTarget
from inspector3d.interaction.controller import (
    InputController,
    InputResult,
    PointerEvent,
    PendingPoint,
    Action,
)

__all__ = [
    "InteractionModeMachine",
    "ToolMode",
    "EditTarget",
    "InputController",
    "InputResult",
    "PointerEvent",
    "PendingPoint",
    "Action",
]
