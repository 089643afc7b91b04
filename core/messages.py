# ================================
# file: core/messages.py
# ================================
"""
Message decoding/encoding for the rosbridge JSON protocol.
Handles LaserScan / Odometry payloads coming in and Twist going out.
Missing or malformed fields fall back to the previous value (or zero);
they never raise.
"""

from __future__ import annotations
from typing import Optional, Dict, List, Any
import json
import math

from core.types import Pose2D, LaserScan, VelocityCommand
from core.frames import yaw_from_quaternion


def _as_float(value: Any, default: float) -> float:
    try:
        out = float(value)
    except (TypeError, ValueError):
        return default
    return out if math.isfinite(out) else default


def _as_range(value: Any) -> float:
    # rosbridge serializes inf/nan as null
    try:
        return float(value)
    except (TypeError, ValueError):
        return math.nan


def decode_scan(msg: Dict, previous: Optional[LaserScan] = None) -> LaserScan:
    """sensor_msgs/LaserScan dict -> LaserScan.
    Only ranges, angle_min and angle_increment are kept; angle_max,
    range_min/max, intensities, scan_time etc. are dropped.
    """
    prev = previous if previous is not None else LaserScan()
    if not isinstance(msg, dict):
        return prev.copy()

    amin = _as_float(msg.get("angle_min"), prev.angle_min)
    ainc = _as_float(msg.get("angle_increment"), prev.angle_increment)
    raw = msg.get("ranges")
    if isinstance(raw, (list, tuple)):
        ranges = [_as_range(r) for r in raw]
    else:
        ranges = list(prev.ranges)

    t = prev.t
    header = msg.get("header")
    if isinstance(header, dict):
        t = _stamp_seconds(header.get("stamp"), prev.t)
    return LaserScan(amin, ainc, ranges, t=t)


def _stamp_seconds(stamp: Any, default: Optional[float]) -> Optional[float]:
    if not isinstance(stamp, dict):
        return default
    sec = stamp.get("secs", stamp.get("sec"))
    nsec = stamp.get("nsecs", stamp.get("nanosec", 0))
    try:
        return float(sec) + float(nsec) * 1e-9
    except (TypeError, ValueError):
        return default


def decode_pose(msg: Dict, previous: Optional[Pose2D] = None) -> Pose2D:
    """Odometry (nested pose.pose) or flat {position, orientation} -> Pose2D.
    Heading comes from the quaternion yaw; roll/pitch are ignored.
    """
    prev = previous if previous is not None else Pose2D()
    if not isinstance(msg, dict):
        return prev.copy()

    body = msg
    # nav_msgs/Odometry: {pose: {pose: {position, orientation}, covariance}}
    for _ in range(2):
        inner = body.get("pose")
        if isinstance(inner, dict) and "position" not in body:
            body = inner
        else:
            break

    pos = body.get("position")
    ori = body.get("orientation")
    x = prev.x
    y = prev.y
    theta = prev.theta
    if isinstance(pos, dict):
        x = _as_float(pos.get("x"), prev.x)
        y = _as_float(pos.get("y"), prev.y)
    if isinstance(ori, dict):
        try:
            q = [float(ori[k]) for k in ("x", "y", "z", "w")]
        except (KeyError, TypeError, ValueError):
            q = None
        if q is not None and all(math.isfinite(v) for v in q):
            theta = yaw_from_quaternion(*q)
    return Pose2D(x, y, theta)


def encode_twist(cmd: VelocityCommand) -> Dict:
    """geometry_msgs/Twist dict; strafe, lift, roll and pitch are always 0."""
    return {
        "linear": {"x": float(cmd.linear_x), "y": 0.0, "z": 0.0},
        "angular": {"x": 0.0, "y": 0.0, "z": float(cmd.angular_z)},
    }


def decode_twist(msg: Dict) -> VelocityCommand:
    lin = msg.get("linear", {}) if isinstance(msg, dict) else {}
    ang = msg.get("angular", {}) if isinstance(msg, dict) else {}
    return VelocityCommand(_as_float(lin.get("x"), 0.0), _as_float(ang.get("z"), 0.0))


# ---- rosbridge v2 operations (one JSON object per line) ----

def op_subscribe(topic: str, msg_type: str, throttle_rate: int = 0, queue_length: int = 1) -> Dict:
    return {"op": "subscribe", "topic": topic, "type": msg_type,
            "throttle_rate": int(throttle_rate), "queue_length": int(queue_length)}


def op_unsubscribe(topic: str) -> Dict:
    return {"op": "unsubscribe", "topic": topic}


def op_advertise(topic: str, msg_type: str) -> Dict:
    return {"op": "advertise", "topic": topic, "type": msg_type}


def op_publish(topic: str, msg: Dict) -> Dict:
    return {"op": "publish", "topic": topic, "msg": msg}


def encode_line(op: Dict) -> bytes:
    return (json.dumps(op, separators=(",", ":")) + "\n").encode("utf-8")


def parse_line(line: str) -> Optional[Dict]:
    """Parse one bridge line. Returns the op dict or None if not a JSON op."""
    line = line.strip()
    if not line or not line.startswith("{"):
        return None
    try:
        msg = json.loads(line)
    except ValueError:
        return None
    if not isinstance(msg, dict) or "op" not in msg:
        return None
    return msg


def split_lines(buf: bytearray) -> List[str]:
    """Pop complete lines out of buf (in place); the partial tail stays."""
    out = []
    while b"\n" in buf:
        line_bytes, rest = buf.split(b"\n", 1)
        buf[:] = rest
        if line_bytes.endswith(b"\r"):
            line_bytes = line_bytes[:-1]
        line = line_bytes.decode("utf-8", errors="ignore").strip()
        if line:
            out.append(line)
    return out
