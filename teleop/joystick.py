# ================================
# file: teleop/joystick.py
# ================================
from __future__ import annotations
from typing import Tuple, Optional
import math
from core.types import VelocityCommand
from core.config import JOYSTICK_RADIUS_PX, LINEAR_GAIN, JOYSTICK_KNOB_FRACTION


class TeleopController:
    """
    Virtual joystick: pointer drag -> (linear_x, angular_z).

    - Idle -> Dragging on begin(anchor); a second pointer is ignored
    - update(pointer) while dragging recomputes the command
    - end() returns to Idle and arms one explicit zero command
    - The command is only read here; the render tick decides when to send it
    """
    def __init__(self,
                 max_radius: float  = JOYSTICK_RADIUS_PX,   # stick travel (input px)
                 linear_gain: float = LINEAR_GAIN,          # forward scale
                 ) -> None:
        self.max_radius  = float(max_radius)
        self.linear_gain = float(linear_gain)

        self._anchor: Optional[Tuple[float,float]] = None
        self._offset: Optional[Tuple[float,float]] = None
        self._cmd = VelocityCommand.zero()
        self._stop_pending: bool = False

    # --------- state ---------
    @property
    def is_dragging(self) -> bool:
        return self._anchor is not None

    @property
    def anchor(self) -> Optional[Tuple[float,float]]:
        return self._anchor

    @property
    def offset(self) -> Optional[Tuple[float,float]]:
        """Clamped stick offset, +y forward. None until the first move."""
        return self._offset

    @property
    def knob_radius(self) -> float:
        return self.max_radius * JOYSTICK_KNOB_FRACTION

    @property
    def stop_pending(self) -> bool:
        return self._stop_pending

    @property
    def command(self) -> VelocityCommand:
        return VelocityCommand(self._cmd.linear_x, self._cmd.angular_z)

    # --------- input ---------
    def begin(self, anchor: Tuple[float,float]) -> bool:
        """Pointer down. Returns False if a drag is already active."""
        if self._anchor is not None:
            return False
        self._anchor = (float(anchor[0]), float(anchor[1]))
        self._offset = None
        return True

    def update(self, pointer: Tuple[float,float]) -> Optional[VelocityCommand]:
        """Pointer move in input coordinates (y grows downward).
        Returns the new command, or None when idle.
        """
        if self._anchor is None:
            return None

        ax, ay = self._anchor
        dx = float(pointer[0]) - ax
        dy = ay - float(pointer[1])   # screen down -> stick up is forward

        R = self.max_radius
        if R <= 0.0:
            self._offset = (0.0, 0.0)
            self._cmd = VelocityCommand.zero()
            return self.command

        # clamp on the circle, keep direction exactly
        if dx*dx + dy*dy > R*R:
            ang = math.atan2(dy, dx)
            dx = R * math.cos(ang)
            dy = R * math.sin(ang)

        self._offset = (dx, dy)
        self._cmd = VelocityCommand(self.linear_gain * dy / R, dx / R)
        return self.command

    def end(self) -> VelocityCommand:
        """Pointer up. Always yields the zero command."""
        self._anchor = None
        self._offset = None
        self._cmd = VelocityCommand.zero()
        self._stop_pending = True
        return VelocityCommand.zero()

    # --------- output ---------
    def pop_outgoing(self) -> Optional[VelocityCommand]:
        """Command to transmit at a publish slot.
        The zero armed by end() goes out first, exactly once; then the live
        command while dragging; None when idle.
        """
        if self._stop_pending:
            self._stop_pending = False
            return VelocityCommand.zero()
        if self._anchor is not None:
            return self.command
        return None

    def rearm_stop(self) -> None:
        """Put back the zero taken by pop_outgoing() when sending it failed."""
        self._stop_pending = True
