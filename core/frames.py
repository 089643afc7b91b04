# ================================
# file: core/frames.py
# ================================
"""
Frame transforms for planar robots.
- Heading (yaw) from an orientation quaternion
- Polar LiDAR samples -> Cartesian points in the view frame
"""
from __future__ import annotations
from typing import Iterator, Tuple
import math
import numpy as np

from core.types import Pose2D, LaserScan


def yaw_from_quaternion(x: float, y: float, z: float, w: float) -> float:
    """Yaw part of the ZYX Euler conversion.
    Roll and pitch are assumed zero and never computed; recovering them needs
    the pitch singularity clamp, which this function does not have.
    """
    t3 = 2.0 * (w * z + x * y)
    t4 = 1.0 - 2.0 * (y * y + z * z)
    return math.atan2(t3, t4)


def pose_from_quaternion(px: float, py: float,
                         qx: float, qy: float, qz: float, qw: float) -> Pose2D:
    return Pose2D(px, py, yaw_from_quaternion(qx, qy, qz, qw))


def _valid_range(r) -> bool:
    if r is None:
        return False
    try:
        r = float(r)
    except (TypeError, ValueError):
        return False
    return math.isfinite(r) and r >= 0.0


class ProjectedScan:
    """Lazy view of a scan projected into Cartesian coordinates.

    Iterating yields (x, y) per valid sample, in sample order; iterating again
    starts over. Samples with no return (None, NaN, inf, negative) are skipped.
    """

    def __init__(self, scan: LaserScan, heading_offset: float = 0.0, scale: float = 1.0,
                 origin: Tuple[float, float] = (0.0, 0.0)) -> None:
        self.scan = scan
        self.heading_offset = float(heading_offset)
        self.scale = float(scale)
        self.origin = (float(origin[0]), float(origin[1]))

    def __iter__(self) -> Iterator[Tuple[float, float]]:
        ox, oy = self.origin
        angle = self.scan.angle_min + self.heading_offset
        inc = self.scan.angle_increment
        k = self.scale
        for i, r in enumerate(self.scan.ranges):
            if not _valid_range(r):
                continue
            a = angle + i * inc
            d = k * float(r)
            yield (ox + d * math.cos(a), oy + d * math.sin(a))

    def translated(self, dx: float, dy: float) -> "ProjectedScan":
        """Same projection drawn about a different origin (view units)."""
        return ProjectedScan(self.scan, self.heading_offset, self.scale,
                             (self.origin[0] + dx, self.origin[1] + dy))

    def as_array(self) -> np.ndarray:
        """(N, 2) float array of the same points in the same order."""
        n = len(self.scan.ranges)
        if n == 0:
            return np.zeros((0, 2), dtype=float)
        # same skip rule as __iter__
        r = np.array([float(v) if _valid_range(v) else np.nan for v in self.scan.ranges], dtype=float)
        mask = np.isfinite(r)
        a = self.scan.angle_min + self.heading_offset + np.arange(n) * self.scan.angle_increment
        d = self.scale * r[mask]
        a = a[mask]
        pts = np.empty((d.size, 2), dtype=float)
        pts[:, 0] = self.origin[0] + d * np.cos(a)
        pts[:, 1] = self.origin[1] + d * np.sin(a)
        return pts


def project_scan(scan: LaserScan, heading_offset: float = 0.0, scale: float = 1.0) -> ProjectedScan:
    """Project a scan about the robot.

    heading_offset : pose heading for a world-aligned view, 0 for the body frame
    scale          : meters -> view units (pixels)
    """
    return ProjectedScan(scan, heading_offset, scale)
