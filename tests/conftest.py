import math

import matplotlib
matplotlib.use("Agg")

import pytest

from core.config import STATUS_DISCONNECTED


class FakeBridge:
    """In-memory stand-in for BridgeInterface with the same pub/sub API."""

    def __init__(self, connect_ok=True):
        self.connect_ok = connect_ok
        self.on_status = None
        self.handlers = {}
        self.published = []
        self.calls = []
        self._connected = False

    @property
    def is_connected(self):
        return self._connected

    def connect(self):
        self.calls.append(("connect",))
        self._connected = self.connect_ok
        return self.connect_ok

    def subscribe(self, topic, msg_type, callback, throttle_rate=0, queue_length=1):
        self.calls.append(("subscribe", topic, msg_type, throttle_rate, queue_length))
        self.handlers[topic] = callback
        return True

    def unsubscribe(self, topic):
        self.calls.append(("unsubscribe", topic))
        return self.handlers.pop(topic, None) is not None

    def advertise(self, topic, msg_type):
        self.calls.append(("advertise", topic, msg_type))
        return True

    def publish(self, topic, msg):
        if not self._connected:
            return False
        self.published.append((topic, msg))
        return True

    def close(self):
        self.calls.append(("close",))
        self.handlers.clear()
        self._connected = False

    # test helpers
    def push(self, topic, msg):
        cb = self.handlers.get(topic)
        if cb is not None:
            cb(msg)

    def drop(self):
        self._connected = False
        self.handlers.clear()
        if self.on_status:
            self.on_status(STATUS_DISCONNECTED)


def odom_msg(x, y, theta):
    return {
        "header": {"stamp": {"secs": 1, "nsecs": 0}, "frame_id": "odom"},
        "child_frame_id": "base_link",
        "pose": {
            "pose": {
                "position": {"x": x, "y": y, "z": 0.0},
                "orientation": {"x": 0.0, "y": 0.0,
                                "z": math.sin(theta / 2.0), "w": math.cos(theta / 2.0)},
            },
            "covariance": [0.0] * 36,
        },
    }


def scan_msg(ranges, angle_min=0.0, angle_increment=0.0):
    return {
        "header": {"stamp": {"secs": 2, "nsecs": 500000000}, "frame_id": "laser"},
        "angle_min": angle_min,
        "angle_max": angle_min + angle_increment * max(0, len(ranges) - 1),
        "angle_increment": angle_increment,
        "time_increment": 0.0,
        "scan_time": 0.1,
        "range_min": 0.1,
        "range_max": 10.0,
        "ranges": list(ranges),
        "intensities": [1.0] * len(ranges),
    }


@pytest.fixture
def fake_bridge():
    return FakeBridge()
