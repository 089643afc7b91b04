import math

import pytest

from core.config import (
    SCAN_TOPIC, ODOM_TOPIC, CMD_VEL_TOPIC, SCAN_MSG_TYPE, ODOM_MSG_TYPE, CMD_VEL_MSG_TYPE,
    SCAN_THROTTLE_MS, STATUS_IDLE, STATUS_CONNECTED, STATUS_ERROR, STATUS_DISCONNECTED,
    STATUS_CONNECTING,
)
from core.types import VelocityCommand
from core.history import HistoryBuffer
from teleop.session import TeleopSession, LatestSlot
from appio.logger import DataLogger

from conftest import FakeBridge, odom_msg, scan_msg


def quiet_session(bridge=None, **kw):
    statuses = []
    s = TeleopSession(bridge, on_status=statuses.append,
                      logger_func=lambda f, m, mod="MAIN": None, **kw)
    return s, statuses


def test_latest_slot_keeps_only_last_value():
    slot = LatestSlot()
    assert slot.take() is None
    slot.put(1)
    slot.put(2)
    assert slot.take() == 2
    assert slot.take() is None
    slot.close()
    assert slot.put(3) is False
    assert slot.take() is None


def test_new_session_is_seeded_and_displays_defaults():
    s, _ = quiet_session()
    assert len(s.history) == 1
    assert s.status == STATUS_IDLE
    p = s.display_pose()
    assert (p.x, p.y, p.theta) == (0.0, 0.0, 0.0)
    assert list(s.display_scan().ranges) == []


def test_connect_without_bridge_is_an_error():
    s, _ = quiet_session()
    with pytest.raises(ValueError):
        s.connect()


def test_connect_subscribes_and_advertises(fake_bridge):
    s, statuses = quiet_session(fake_bridge)
    assert s.connect()
    assert statuses == [STATUS_CONNECTING, STATUS_CONNECTED]
    assert ("subscribe", SCAN_TOPIC, SCAN_MSG_TYPE, SCAN_THROTTLE_MS, 1) in fake_bridge.calls
    assert ("subscribe", ODOM_TOPIC, ODOM_MSG_TYPE, 0, 1) in fake_bridge.calls
    assert ("advertise", CMD_VEL_TOPIC, CMD_VEL_MSG_TYPE) in fake_bridge.calls
    assert s.publish_ready


def test_connect_failure_reports_error_and_keeps_state():
    bridge = FakeBridge(connect_ok=False)
    s, statuses = quiet_session(bridge)
    assert s.connect() is False
    assert statuses[-1] == STATUS_ERROR
    assert not s.publish_ready
    assert len(s.history) == 1
    assert not s.publish(VelocityCommand(1.0, 0.0))


def test_messages_apply_only_on_pump(fake_bridge):
    s, _ = quiet_session(fake_bridge)
    s.connect()
    fake_bridge.push(ODOM_TOPIC, odom_msg(1.0, 2.0, 0.5))
    assert s.current_pose.x == 0.0
    assert s.pump() == (False, True)
    assert (s.current_pose.x, s.current_pose.y) == (1.0, 2.0)
    assert s.current_pose.theta == pytest.approx(0.5)


def test_pump_applies_last_value_per_topic(fake_bridge):
    s, _ = quiet_session(fake_bridge)
    s.connect()
    for i in range(5):
        fake_bridge.push(SCAN_TOPIC, scan_msg([float(i)] * 3))
        fake_bridge.push(ODOM_TOPIC, odom_msg(float(i), 0.0, 0.0))
    assert s.pump() == (True, True)
    assert list(s.current_scan.ranges) == [4.0, 4.0, 4.0]
    assert s.current_pose.x == 4.0
    # one pose applied, one snapshot admitted
    assert len(s.history) == 2
    assert s.pump() == (False, False)


def test_snapshot_pairs_pose_with_scan_known_at_that_time(fake_bridge):
    s, _ = quiet_session(fake_bridge)
    s.connect()
    fake_bridge.push(SCAN_TOPIC, scan_msg([2.5]))
    fake_bridge.push(ODOM_TOPIC, odom_msg(1.0, 0.0, 0.0))
    s.pump()
    newest = s.history.newest()
    assert newest.pose.x == 1.0
    assert list(newest.scan.ranges) == [2.5]


def test_stationary_robot_does_not_grow_history(fake_bridge):
    s, _ = quiet_session(fake_bridge)
    s.connect()
    for _ in range(20):
        fake_bridge.push(ODOM_TOPIC, odom_msg(0.0, 0.0, 0.0))
        s.pump()
    assert len(s.history) == 1


def test_history_never_exceeds_capacity(fake_bridge):
    s, _ = quiet_session(fake_bridge, history=HistoryBuffer(3, 0.04, 0.03))
    s.connect()
    for i in range(1, 10):
        fake_bridge.push(ODOM_TOPIC, odom_msg(float(i), 0.0, 0.0))
        s.pump()
        assert len(s.history) <= 3
    assert s.history.newest().pose.x == 9.0


def test_display_falls_back_to_seed_before_first_message(fake_bridge):
    s, _ = quiet_session(fake_bridge)
    s.connect()
    fake_bridge.push(SCAN_TOPIC, scan_msg([1.0, 2.0]))
    s.pump()
    assert list(s.display_scan().ranges) == [1.0, 2.0]
    assert s.display_pose().x == 0.0


def test_close_unsubscribes_before_closing(fake_bridge):
    s, statuses = quiet_session(fake_bridge)
    s.connect()
    s.close()
    names = [c[0] for c in fake_bridge.calls]
    assert names.index("unsubscribe") < names.index("close")
    assert ("unsubscribe", SCAN_TOPIC) in fake_bridge.calls
    assert ("unsubscribe", ODOM_TOPIC) in fake_bridge.calls
    assert statuses[-1] == STATUS_IDLE
    assert not s.publish_ready


def test_late_callbacks_after_close_are_ignored(fake_bridge):
    s, _ = quiet_session(fake_bridge)
    s.connect()
    scan_cb = fake_bridge.handlers[SCAN_TOPIC]
    s.close()
    scan_cb(scan_msg([7.0]))
    assert s.pump() == (False, False)
    assert list(s.current_scan.ranges) == []


def test_reconnect_after_close(fake_bridge):
    s, _ = quiet_session(fake_bridge)
    s.connect()
    s.close()
    assert s.connect()
    fake_bridge.push(ODOM_TOPIC, odom_msg(3.0, 0.0, 0.0))
    assert s.pump() == (False, True)


def test_transport_drop_keeps_display_state(fake_bridge):
    s, statuses = quiet_session(fake_bridge)
    s.connect()
    fake_bridge.push(ODOM_TOPIC, odom_msg(2.0, 1.0, 0.0))
    s.pump()
    fake_bridge.drop()
    assert statuses[-1] == STATUS_DISCONNECTED
    assert not s.publish_ready
    assert s.display_pose().x == 2.0
    assert len(s.history) == 2


def test_publish_encodes_twist_and_records(fake_bridge):
    log = DataLogger()
    s, _ = quiet_session(fake_bridge, data_logger=log)
    s.connect()
    assert s.publish(VelocityCommand(1.5, -0.25))
    topic, msg = fake_bridge.published[-1]
    assert topic == CMD_VEL_TOPIC
    assert msg == {"linear": {"x": 1.5, "y": 0.0, "z": 0.0},
                   "angular": {"x": 0.0, "y": 0.0, "z": -0.25}}
    assert s.published_count == 1
    assert log.cmds[-1][1:] == (1.5, -0.25)


def test_malformed_pose_keeps_previous_values(fake_bridge):
    s, _ = quiet_session(fake_bridge)
    s.connect()
    fake_bridge.push(ODOM_TOPIC, odom_msg(1.0, 1.0, math.pi / 4))
    s.pump()
    fake_bridge.push(ODOM_TOPIC, {"pose": {"pose": {"position": {"x": "bad", "y": 2.0}}}})
    s.pump()
    assert s.current_pose.x == 1.0
    assert s.current_pose.y == 2.0
    assert s.current_pose.theta == pytest.approx(math.pi / 4)
