# ================================
# file: teleop/render_tick.py
# ================================
"""
Per-frame orchestration: ingest -> draw -> (every Nth frame) publish.
One call of RenderTick.tick() is one display frame.
"""

from __future__ import annotations
from typing import Optional, List, Tuple
import math

from core.types import VelocityCommand, Pose2D
from core.frames import project_scan
from core.config import (
    SCALE_PX_PER_M, ROBOT_LENGTH_M, PUBLISH_EVERY_N_TICKS, FADE_ALPHA,
    BACKGROUND_COLOR, SCAN_COLOR, HISTORY_SCAN_COLOR, TRAIL_COLOR,
    ROBOT_STROKE_COLOR, ROBOT_FILL_COLOR, DRAW_HISTORY_SCANS,
)
from teleop.surface import RenderSurface


class PublishThrottle:
    """Fires once every `every` ticks while the transport is ready.

    Ticks keep counting while not ready; the first ready tick after the
    count is reached fires immediately.
    """
    def __init__(self, every: int = PUBLISH_EVERY_N_TICKS) -> None:
        if int(every) <= 0:
            raise ValueError(f"publish divisor must be positive, got {every}")
        self.every = int(every)
        self._count = 0

    def tick(self, ready: bool = True) -> bool:
        self._count += 1
        if ready and self._count >= self.every:
            self._count = 0
            return True
        return False

    def reset(self) -> None:
        self._count = 0


class RenderTick:
    """Draws the current scan, the history trail and the robot, and hands the
    joystick command to the session at the throttled rate.
    """

    def __init__(self, session, surface: RenderSurface,
                 scale: float = SCALE_PX_PER_M,
                 robot_length: float = ROBOT_LENGTH_M,
                 publish_every: int = PUBLISH_EVERY_N_TICKS,
                 fade_alpha: float = FADE_ALPHA,
                 draw_history_scans: bool = DRAW_HISTORY_SCANS) -> None:
        self.session = session
        self.surface = surface
        self.scale = float(scale)
        self.robot_length = float(robot_length)
        self.fade_alpha = float(fade_alpha)
        self.draw_history_scans = bool(draw_history_scans)
        self.throttle = PublishThrottle(publish_every)
        self.tick_count = 0
        self.publish_count = 0
        self.last_published: Optional[VelocityCommand] = None

    # ---------- geometry helpers ----------
    def _rel(self, x: float, y: float, cur: Pose2D) -> Tuple[float, float]:
        return (self.scale * (x - cur.x), self.scale * (y - cur.y))

    def trail_points(self, cur: Pose2D) -> List[Tuple[float, float]]:
        """History positions relative to the robot, oldest-first, view units."""
        return [self._rel(x, y, cur) for (x, y) in self.session.history.poses_xy()]

    @property
    def robot_radius(self) -> float:
        return self.scale * self.robot_length / 2.0

    # ---------- frame ----------
    def tick(self) -> Optional[VelocityCommand]:
        """Run one frame. Returns the command published this frame, if any."""
        self.tick_count += 1
        s = self.session
        s.pump()
        cur = s.display_pose()
        scan = s.display_scan()
        surf = self.surface

        surf.clear_or_fade(BACKGROUND_COLOR, self.fade_alpha)

        # older scans where they were taken, relative to the robot now
        if self.draw_history_scans:
            for snap in s.history.snapshots()[:-1]:
                sp = snap.pose
                ox, oy = self._rel(sp.x, sp.y, cur)
                pts = project_scan(snap.scan, sp.theta, self.scale).translated(ox, oy)
                surf.draw_points(pts, HISTORY_SCAN_COLOR)

        # current scan in a heading-aligned view centred on the robot
        surf.draw_points(project_scan(scan, cur.theta, self.scale), SCAN_COLOR)

        # trail
        surf.draw_line_path(self.trail_points(cur), TRAIL_COLOR)

        # robot body and heading tick
        r = self.robot_radius
        surf.draw_circle((0.0, 0.0), r, ROBOT_STROKE_COLOR, ROBOT_FILL_COLOR)
        surf.draw_line_path([(0.0, 0.0), (r * math.cos(cur.theta), r * math.sin(cur.theta))],
                            ROBOT_STROKE_COLOR)

        published = None
        if self.throttle.tick(s.publish_ready):
            stopping = s.controller.stop_pending
            cmd = s.controller.pop_outgoing()
            if cmd is not None:
                if s.publish(cmd):
                    published = cmd
                    self.publish_count += 1
                    self.last_published = cmd
                elif stopping:
                    # retry the stop at the next slot
                    s.controller.rearm_stop()

        surf.present()
        return published
