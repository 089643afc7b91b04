# ================================
# file: core/types.py
# ================================
"""Shared data structures for pose, LiDAR scans, history snapshots and
velocity commands.
Use minimal typing: Tuple/Optional/Sequence only.
"""
from __future__ import annotations
from typing import Sequence, Optional, Tuple
import math
import time


class Pose2D:
    """2D pose of the robot in the odometry frame.


    Attributes
    -----------
    x, y : meters
    theta : radians (heading, not normalized)
    """
    __slots__ = ("x", "y", "theta")


    def __init__(self, x: float = 0.0, y: float = 0.0, theta: float = 0.0) -> None:
        self.x = float(x)
        self.y = float(y)
        self.theta = float(theta)


    def copy(self) -> "Pose2D":
        return Pose2D(self.x, self.y, self.theta)


    def distance_sq_to(self, other: "Pose2D") -> float:
        dx = self.x - other.x
        dy = self.y - other.y
        return dx * dx + dy * dy


    def heading_delta_to(self, other: "Pose2D") -> float:
        """Absolute heading difference wrapped to [0, pi]."""
        d = self.theta - other.theta
        return abs(math.atan2(math.sin(d), math.cos(d)))


    def __repr__(self) -> str:
        return f"Pose2D(x={self.x:.3f}, y={self.y:.3f}, theta={self.theta:.3f})"




class LaserScan:
    """LiDAR scan container.


    Parameters
    ----------
    angle_min : float
    Starting angle (radians) relative to robot +x axis.
    angle_increment : float
    Angle increment per beam (radians).
    ranges : Sequence[float]
    Range array in meters; length equals beam count. Non-finite or negative
    entries mean "no return".
    t : Optional[float]
    Timestamp seconds.
    """
    __slots__ = ("angle_min", "angle_increment", "ranges", "t")


    def __init__(self, angle_min: float = 0.0, angle_increment: float = 0.0,
        ranges: Sequence[float] = (), t: Optional[float] = None) -> None:
        self.angle_min = float(angle_min)
        self.angle_increment = float(angle_increment)
        self.ranges = list(ranges)
        self.t = t


    def copy(self, frozen: bool = False) -> "LaserScan":
        out = LaserScan(self.angle_min, self.angle_increment, (), self.t)
        out.ranges = tuple(self.ranges) if frozen else list(self.ranges)
        return out


    def beam_count(self) -> int:
        return len(self.ranges)




class Snapshot:
    """(scan, pose) pair captured at one moment.

    The snapshot keeps private copies; the live scan and pose it was built from
    can keep changing. Accessors return copies and t/seq are read-only, so
    stored entries cannot be edited from outside.
    """
    __slots__ = ("_scan", "_pose", "_t", "_seq")


    def __init__(self, scan: LaserScan, pose: Pose2D, t: Optional[float] = None) -> None:
        self._scan = scan.copy(frozen=True)
        self._pose = pose.copy()
        self._t = time.monotonic() if t is None else float(t)
        self._seq = -1  # stays -1 until a HistoryBuffer stores its own copy


    def _with_seq(self, seq: int) -> "Snapshot":
        """Copy carrying a sequence number; used by HistoryBuffer on admission."""
        out = Snapshot.__new__(Snapshot)
        out._scan = self._scan
        out._pose = self._pose.copy()
        out._t = self._t
        out._seq = int(seq)
        return out


    @property
    def t(self) -> float:
        return self._t


    @property
    def seq(self) -> int:
        return self._seq


    @property
    def scan(self) -> LaserScan:
        return self._scan.copy(frozen=True)


    @property
    def pose(self) -> Pose2D:
        return self._pose.copy()


    @property
    def xy(self) -> Tuple[float, float]:
        return (self._pose.x, self._pose.y)


    def __repr__(self) -> str:
        return (f"Snapshot(seq={self._seq}, pose={self._pose!r}, "
                f"beams={self._scan.beam_count()})")




class VelocityCommand:
    """Planar twist for a differential-drive base.
    Only forward speed and yaw rate exist; the other four twist axes are
    always zero on the wire.
    """
    __slots__ = ("linear_x", "angular_z")


    def __init__(self, linear_x: float = 0.0, angular_z: float = 0.0) -> None:
        self.linear_x = float(linear_x)
        self.angular_z = float(angular_z)


    @classmethod
    def zero(cls) -> "VelocityCommand":
        return cls(0.0, 0.0)


    def is_zero(self) -> bool:
        return self.linear_x == 0.0 and self.angular_z == 0.0


    def as_tuple(self) -> Tuple[float, float]:
        return (self.linear_x, self.angular_z)


    def __eq__(self, other: object) -> bool:
        if not isinstance(other, VelocityCommand):
            return NotImplemented
        return self.as_tuple() == other.as_tuple()


    def __repr__(self) -> str:
        return f"VelocityCommand(linear_x={self.linear_x:.3f}, angular_z={self.angular_z:.3f})"
