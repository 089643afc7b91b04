# ================================
# file: gui/__init__.py
# ================================
"""Matplotlib viewer: render surface, joystick pad and window."""
from .teleop_view import MatplotlibSurface, JoystickPad, TeleopView

__all__ = ["MatplotlibSurface", "JoystickPad", "TeleopView"]
