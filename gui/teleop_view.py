# ================================
# file: gui/teleop_view.py
# ================================
"""
Matplotlib front end for teleoperation.
- MatplotlibSurface: RenderSurface on an Axes, origin at the robot, +y up
- JoystickPad: pointer events on a second Axes -> TeleopController
- TeleopView: window with both panes, Start/Stop buttons and a status line
"""

from __future__ import annotations
from typing import Callable, List, Optional, Sequence, Tuple
import numpy as np
import matplotlib.pyplot as plt
import matplotlib.patches as patches
from matplotlib.widgets import Button

from core.config import (
    VIEW_HALF_SIZE_PX, JOYSTICK_COLOR, BACKGROUND_COLOR,
    STATUS_CONNECTED, STATUS_ERROR, STATUS_DISCONNECTED,
)
from teleop.surface import RenderSurface
from teleop.joystick import TeleopController

Point = Tuple[float, float]

_STATUS_COLORS = {
    STATUS_CONNECTED: "#00AA00",
    STATUS_ERROR: "#FF0000",
    STATUS_DISCONNECTED: "#FF8800",
}


class MatplotlibSurface(RenderSurface):
    """Draws into one Axes. Points are batched per colour and flushed in
    present() as a single scatter; painter's order is kept with zorder.
    """

    def __init__(self, ax, half_extent: float = VIEW_HALF_SIZE_PX) -> None:
        self.ax = ax
        self.half_extent = float(half_extent)
        self._artists: List = []
        self._batches: List[Tuple[int, str, List[Point]]] = []
        self._z = 1
        ax.set_xlim(-self.half_extent, self.half_extent)
        ax.set_ylim(-self.half_extent, self.half_extent)
        ax.set_aspect('equal')
        ax.set_xticks([])
        ax.set_yticks([])

    def _next_z(self) -> int:
        z = self._z
        self._z += 1
        return z

    def _remove(self, artist) -> None:
        try:
            artist.remove()
        except (ValueError, NotImplementedError):
            pass

    def clear_or_fade(self, color: str, alpha: float) -> None:
        self.ax.set_facecolor(color)
        self._batches = []
        self._z = 1
        if alpha >= 1.0:
            for a in self._artists:
                self._remove(a)
            self._artists = []
            return
        # fade: older artists lose `alpha` of their opacity per frame
        kept = []
        for a in self._artists:
            cur = a.get_alpha()
            cur = 1.0 if cur is None else cur
            nxt = cur * (1.0 - alpha)
            if nxt < 0.05:
                self._remove(a)
            else:
                a.set_alpha(nxt)
                a.set_zorder(0)
                kept.append(a)
        self._artists = kept

    def draw_point(self, x: float, y: float, color: str) -> None:
        if self._batches and self._batches[-1][1] == color and self._batches[-1][0] == self._z - 1:
            self._batches[-1][2].append((x, y))
        else:
            self._batches.append((self._next_z(), color, [(x, y)]))

    def draw_points(self, points, color: str) -> None:
        arr = points.as_array() if hasattr(points, "as_array") else np.asarray(list(points), dtype=float)
        if arr.size == 0:
            return
        self._batches.append((self._next_z(), color, [tuple(p) for p in arr.reshape(-1, 2)]))

    def draw_line_path(self, points: Sequence[Point], color: str) -> None:
        pts = list(points)
        if len(pts) < 2:
            return
        xs = [p[0] for p in pts]
        ys = [p[1] for p in pts]
        line, = self.ax.plot(xs, ys, '-', color=color, lw=1.0, zorder=self._next_z())
        self._artists.append(line)

    def draw_circle(self, center: Point, radius: float,
                    stroke: str, fill: Optional[str] = None) -> None:
        circ = patches.Circle(center, radius, ec=stroke, fc=fill if fill else 'none',
                              fill=fill is not None, lw=1.0, zorder=self._next_z())
        self.ax.add_patch(circ)
        self._artists.append(circ)

    def present(self) -> None:
        for z, color, pts in self._batches:
            arr = np.asarray(pts, dtype=float)
            sc = self.ax.scatter(arr[:, 0], arr[:, 1], s=1, c=color, marker='s',
                                 linewidths=0, zorder=z)
            self._artists.append(sc)
        self._batches = []
        self.ax.figure.canvas.draw_idle()


class JoystickPad:
    """Virtual joystick on an Axes.

    Mouse/touch events are converted to pad-local pixels with y growing
    downward (the convention TeleopController expects), then forwarded.
    """

    def __init__(self, ax, controller: TeleopController, color: str = JOYSTICK_COLOR) -> None:
        self.ax = ax
        self.controller = controller
        self.color = color
        self._ring = None
        self._knob = None
        ax.set_xticks([])
        ax.set_yticks([])
        ax.set_title("drag to drive", fontsize=8)
        self._fit_limits()
        canvas = ax.figure.canvas
        self._cids = [
            canvas.mpl_connect('button_press_event', self.on_press),
            canvas.mpl_connect('motion_notify_event', self.on_move),
            canvas.mpl_connect('button_release_event', self.on_release),
        ]

    def _fit_limits(self) -> None:
        bb = self.ax.bbox
        self.ax.set_xlim(0, bb.width)
        self.ax.set_ylim(bb.height, 0)   # y down, like screen coordinates

    def to_local(self, event) -> Point:
        bb = self.ax.bbox
        return (event.x - bb.x0, bb.y1 - event.y)

    # ---- event handlers ----
    def on_press(self, event) -> None:
        if event.inaxes is not self.ax:
            return
        if self.controller.begin(self.to_local(event)):
            self.redraw()

    def on_move(self, event) -> None:
        if not self.controller.is_dragging or event.x is None or event.y is None:
            return
        self.controller.update(self.to_local(event))
        self.redraw()

    def on_release(self, event) -> None:
        if not self.controller.is_dragging:
            return
        self.controller.end()
        self.redraw()

    # ---- drawing ----
    def redraw(self) -> None:
        for a in (self._ring, self._knob):
            if a is not None:
                a.remove()
        self._ring = None
        self._knob = None
        self._fit_limits()
        anchor = self.controller.anchor
        if anchor is not None:
            ax_, ay_ = anchor
            self._ring = patches.Circle((ax_, ay_), self.controller.max_radius,
                                        ec=self.color, fill=False, lw=1.5)
            self.ax.add_patch(self._ring)
            off = self.controller.offset
            if off is not None:
                # stick offset is +y forward; pad y grows downward
                self._knob = patches.Circle((ax_ + off[0], ay_ - off[1]), self.controller.knob_radius,
                                            ec=self.color, fill=False, lw=1.5)
                self.ax.add_patch(self._knob)
        self.ax.figure.canvas.draw_idle()

    def disconnect(self) -> None:
        for cid in self._cids:
            self.ax.figure.canvas.mpl_disconnect(cid)
        self._cids = []


class TeleopView:
    """Window: scan/trail view on the left, joystick pad on the right."""

    def __init__(self, controller: TeleopController,
                 half_extent: float = VIEW_HALF_SIZE_PX,
                 on_start: Optional[Callable[[], None]] = None,
                 on_stop: Optional[Callable[[], None]] = None) -> None:
        self.fig = plt.figure(figsize=(12, 6))
        self.ax_map = self.fig.add_axes([0.02, 0.12, 0.55, 0.84])
        self.ax_pad = self.fig.add_axes([0.60, 0.12, 0.38, 0.84])
        self.ax_pad.set_facecolor(BACKGROUND_COLOR)
        self.surface = MatplotlibSurface(self.ax_map, half_extent)
        self.pad = JoystickPad(self.ax_pad, controller)

        self._btn_start = Button(self.fig.add_axes([0.02, 0.02, 0.10, 0.06]), "Start")
        self._btn_stop = Button(self.fig.add_axes([0.13, 0.02, 0.10, 0.06]), "Stop")
        if on_start is not None:
            self._btn_start.on_clicked(lambda _event: on_start())
        if on_stop is not None:
            self._btn_stop.on_clicked(lambda _event: on_stop())
        self._status = self.fig.text(0.26, 0.04, "", fontsize=11)
        plt.ion()
        plt.show(block=False)

    def set_status(self, status: str) -> None:
        try:
            self._status.set_text(status)
            self._status.set_color(_STATUS_COLORS.get(status, "#000000"))
            self.fig.canvas.draw_idle()
        except Exception as e:
            # 不要因为状态栏错误而退出程序
            print(f"[GUI_ERROR] 状态更新失败: {e}")

    def is_open(self) -> bool:
        return plt.fignum_exists(self.fig.number)

    def close(self) -> None:
        self.pad.disconnect()
        if self.is_open():
            plt.close(self.fig)
