# ================================
# file: teleop/session.py
# ================================
"""
Teleop session: owns everything one robot connection needs.
- current scan / pose (written only by pump() on the render thread)
- history buffer, joystick controller, connection status
- capacity-1 inbox per topic between the transport thread and the render thread
"""

from __future__ import annotations
from typing import Optional, Callable, Any, Tuple
import threading

from core.types import Pose2D, LaserScan, Snapshot, VelocityCommand
from core.history import HistoryBuffer
from core.messages import decode_scan, decode_pose, encode_twist
from core.config import (
    SCAN_TOPIC, SCAN_MSG_TYPE, SCAN_THROTTLE_MS, ODOM_TOPIC, ODOM_MSG_TYPE,
    CMD_VEL_TOPIC, CMD_VEL_MSG_TYPE, TOPIC_QUEUE_LENGTH,
    STATUS_IDLE, STATUS_CONNECTING, STATUS_CONNECTED, STATUS_ERROR,
    STATUS_DISCONNECTED,
)
from teleop.joystick import TeleopController


class LatestSlot:
    """Single-value mailbox: put() overwrites, take() empties.
    Safe to put() from a reader thread and take() from the render thread.
    """
    def __init__(self) -> None:
        self._lock = threading.Lock()
        self._value: Any = None
        self._full = False
        self._closed = False

    def put(self, value: Any) -> bool:
        with self._lock:
            if self._closed:
                return False
            self._value = value
            self._full = True
            return True

    def take(self) -> Optional[Any]:
        with self._lock:
            if not self._full:
                return None
            value, self._value = self._value, None
            self._full = False
            return value

    def close(self) -> None:
        with self._lock:
            self._closed = True
            self._value = None
            self._full = False

    @property
    def closed(self) -> bool:
        return self._closed


class TeleopSession:
    """Session context passed to the render tick and the message handlers."""

    def __init__(self, bridge=None,
                 history: Optional[HistoryBuffer] = None,
                 controller: Optional[TeleopController] = None,
                 data_logger=None,
                 on_status: Optional[Callable[[str], None]] = None,
                 logger_func=None, log_file=None,
                 scan_topic: str = SCAN_TOPIC, odom_topic: str = ODOM_TOPIC,
                 cmd_topic: str = CMD_VEL_TOPIC,
                 scan_throttle_ms: int = SCAN_THROTTLE_MS) -> None:
        self.bridge = bridge
        self.history = history if history is not None else HistoryBuffer()
        self.controller = controller if controller is not None else TeleopController()
        self.data_logger = data_logger
        self.on_status = on_status
        self.logger_func = logger_func
        self.log_file = log_file
        self.scan_topic = scan_topic
        self.odom_topic = odom_topic
        self.cmd_topic = cmd_topic
        self.scan_throttle_ms = int(scan_throttle_ms)

        # defaults so nothing downstream sees None before the first message
        self.current_scan = LaserScan()
        self.current_pose = Pose2D()
        self.history.seed(Snapshot(self.current_scan, self.current_pose))
        self._have_scan = False
        self._have_pose = False

        self._scan_inbox = LatestSlot()
        self._pose_inbox = LatestSlot()
        self._subscribed = False
        self.status = STATUS_IDLE
        self.published_count = 0
        if bridge is not None:
            bridge.on_status = self._on_transport_status

    def _log(self, message: str, module: str = "SESSION") -> None:
        if self.logger_func:
            self.logger_func(self.log_file, message, module)
        else:
            print(f"[{module}] {message}")

    def _set_status(self, status: str) -> None:
        self.status = status
        if self.on_status:
            self.on_status(status)

    def _on_transport_status(self, status: str) -> None:
        # called from the transport reader thread
        if status == STATUS_DISCONNECTED:
            self._subscribed = False
            self._log("传输断开，保留最后的位姿/扫描/历史")
        self._set_status(status)

    # ---- connection lifecycle ----
    def connect(self) -> bool:
        """Open the transport and subscribe. Failure is reported, not raised."""
        if self.bridge is None:
            raise ValueError("a bridge transport is required to connect")
        if self._subscribed:
            return True
        if self._scan_inbox.closed:
            self._scan_inbox = LatestSlot()
            self._pose_inbox = LatestSlot()

        self._set_status(STATUS_CONNECTING)
        if not self.bridge.connect():
            self._set_status(STATUS_ERROR)
            self._log("连接失败，保持最后的位姿/扫描用于显示")
            return False

        self.bridge.subscribe(self.scan_topic, SCAN_MSG_TYPE, self._scan_inbox.put,
                              throttle_rate=self.scan_throttle_ms,
                              queue_length=TOPIC_QUEUE_LENGTH)
        self.bridge.subscribe(self.odom_topic, ODOM_MSG_TYPE, self._pose_inbox.put,
                              queue_length=TOPIC_QUEUE_LENGTH)
        self.bridge.advertise(self.cmd_topic, CMD_VEL_MSG_TYPE)
        self._subscribed = True
        self._set_status(STATUS_CONNECTED)
        self._log(f"已订阅 {self.scan_topic}, {self.odom_topic}; 发布 {self.cmd_topic}")
        return True

    def close(self) -> None:
        """Unsubscribe handlers first, then drop the transport connection.
        Local pose/scan/history stay valid for display.
        """
        self._scan_inbox.close()
        self._pose_inbox.close()
        if self.bridge is not None:
            if self._subscribed:
                self.bridge.unsubscribe(self.scan_topic)
                self.bridge.unsubscribe(self.odom_topic)
            self.bridge.close()
        self._subscribed = False
        self._set_status(STATUS_IDLE)

    @property
    def publish_ready(self) -> bool:
        return (self.bridge is not None and self._subscribed
                and bool(getattr(self.bridge, "is_connected", False)))

    # ---- inbound ----
    def pump(self) -> Tuple[bool, bool]:
        """Apply the latest scan then the latest pose, if any arrived.
        Returns (scan_applied, pose_applied).
        """
        scan_msg = self._scan_inbox.take()
        if scan_msg is not None:
            self.handle_scan(scan_msg)
        pose_msg = self._pose_inbox.take()
        if pose_msg is not None:
            self.handle_pose(pose_msg)
        return (scan_msg is not None, pose_msg is not None)

    def handle_scan(self, msg) -> LaserScan:
        self.current_scan = decode_scan(msg, self.current_scan)
        self._have_scan = True
        if self.data_logger is not None:
            self.data_logger.log_scan(self.current_scan)
        return self.current_scan

    def handle_pose(self, msg) -> bool:
        """Update the pose and offer a snapshot. Returns True if admitted."""
        self.current_pose = decode_pose(msg, self.current_pose)
        self._have_pose = True
        if self.data_logger is not None:
            self.data_logger.log_pose(self.current_pose)
        admitted = self.history.offer(Snapshot(self.current_scan, self.current_pose))
        if admitted:
            self._log(f"历史快照 #{self.history.newest().seq} @ {self.current_pose!r}", "HISTORY")
        return admitted

    # ---- what the render tick reads ----
    def display_scan(self) -> LaserScan:
        return self.current_scan if self._have_scan else self.history.newest().scan

    def display_pose(self) -> Pose2D:
        return self.current_pose if self._have_pose else self.history.newest().pose

    # ---- outbound ----
    def publish(self, cmd: VelocityCommand) -> bool:
        if not self.publish_ready:
            return False
        ok = self.bridge.publish(self.cmd_topic, encode_twist(cmd))
        if ok:
            self.published_count += 1
            if self.data_logger is not None:
                self.data_logger.log_command(cmd.linear_x, cmd.angular_z)
        return ok
