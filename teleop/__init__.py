# ================================
# file: teleop/__init__.py
# ================================
"""Teleoperation: joystick controller, session context, render tick."""
from .joystick import TeleopController
from .surface import RenderSurface, RecordingSurface
from .session import TeleopSession, LatestSlot
from .render_tick import RenderTick, PublishThrottle

__all__ = [
    "TeleopController", "RenderSurface", "RecordingSurface",
    "TeleopSession", "LatestSlot", "RenderTick", "PublishThrottle",
]
