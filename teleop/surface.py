# ================================
# file: teleop/surface.py
# ================================
from abc import ABC, abstractmethod
from typing import List, Optional, Sequence, Tuple

Point = Tuple[float, float]


class RenderSurface(ABC):
    """Drawing surface used by the render tick.

    View coordinates: origin at the robot, +y up, units are whatever the
    scale maps meters to (pixels for the matplotlib viewer).
    """

    @abstractmethod
    def clear_or_fade(self, color: str, alpha: float) -> None:
        """alpha >= 1 clears to color; smaller values fade older drawings."""
        pass

    @abstractmethod
    def draw_point(self, x: float, y: float, color: str) -> None:
        pass

    @abstractmethod
    def draw_line_path(self, points: Sequence[Point], color: str) -> None:
        pass

    @abstractmethod
    def draw_circle(self, center: Point, radius: float,
                    stroke: str, fill: Optional[str] = None) -> None:
        pass

    def draw_points(self, points, color: str) -> None:
        """Batch of points; surfaces may override with a faster path."""
        for x, y in points:
            self.draw_point(x, y, color)

    def present(self) -> None:
        """Flush the frame. Default: nothing to flush."""
        pass


class RecordingSurface(RenderSurface):
    """Keeps every call as (name, args) for headless runs and inspection."""

    def __init__(self) -> None:
        self.calls: List[Tuple[str, tuple]] = []
        self.frames = 0

    def clear_or_fade(self, color: str, alpha: float) -> None:
        self.calls.append(("clear_or_fade", (color, alpha)))

    def draw_point(self, x: float, y: float, color: str) -> None:
        self.calls.append(("draw_point", (x, y, color)))

    def draw_line_path(self, points: Sequence[Point], color: str) -> None:
        self.calls.append(("draw_line_path", (list(points), color)))

    def draw_circle(self, center: Point, radius: float,
                    stroke: str, fill: Optional[str] = None) -> None:
        self.calls.append(("draw_circle", (center, radius, stroke, fill)))

    def present(self) -> None:
        self.frames += 1
        self.calls.append(("present", ()))

    def named(self, name: str) -> List[tuple]:
        return [args for n, args in self.calls if n == name]

    def reset(self) -> None:
        self.calls.clear()
