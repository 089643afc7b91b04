import math

import pytest

from core.types import VelocityCommand
from teleop.joystick import TeleopController


def test_idle_controller_has_nothing_to_send():
    c = TeleopController(100.0, 2.0)
    assert not c.is_dragging
    assert c.update((10.0, 10.0)) is None
    assert c.pop_outgoing() is None
    assert c.command.is_zero()


def test_clamps_to_radius_and_keeps_direction():
    c = TeleopController(max_radius=100.0, linear_gain=1.0)
    assert c.begin((0.0, 0.0))
    c.update((300.0, -400.0))
    dx, dy = c.offset
    assert (dx, dy) == pytest.approx((60.0, 80.0))
    assert math.hypot(dx, dy) == pytest.approx(100.0)
    assert math.atan2(dy, dx) == pytest.approx(math.atan2(400.0, 300.0))


def test_command_is_normalized_with_gain():
    c = TeleopController(max_radius=100.0, linear_gain=2.0)
    c.begin((50.0, 50.0))
    cmd = c.update((100.0, 0.0))      # dx=50, dy=50 (screen y down)
    assert cmd.linear_x == pytest.approx(1.0)
    assert cmd.angular_z == pytest.approx(0.5)


def test_full_forward_deflection():
    c = TeleopController(100.0, 2.0)
    c.begin((0.0, 0.0))
    cmd = c.update((0.0, -500.0))
    assert cmd.as_tuple() == pytest.approx((2.0, 0.0))


def test_pulling_back_reverses():
    c = TeleopController(100.0, 2.0)
    c.begin((0.0, 0.0))
    cmd = c.update((0.0, 25.0))
    assert cmd.linear_x == pytest.approx(-0.5)
    assert cmd.angular_z == 0.0


def test_no_movement_yields_zero():
    c = TeleopController(100.0, 2.0)
    c.begin((10.0, 20.0))
    assert c.update((10.0, 20.0)).is_zero()


def test_zero_radius_yields_zero_command():
    c = TeleopController(0.0, 2.0)
    c.begin((0.0, 0.0))
    assert c.update((5.0, -5.0)) == VelocityCommand.zero()
    assert c.offset == (0.0, 0.0)


def test_second_begin_is_ignored():
    c = TeleopController(100.0, 1.0)
    assert c.begin((0.0, 0.0))
    assert not c.begin((40.0, 40.0))
    assert c.anchor == (0.0, 0.0)


def test_end_returns_zero_and_arms_one_zero():
    c = TeleopController(100.0, 2.0)
    c.begin((0.0, 0.0))
    c.update((0.0, -50.0))
    assert c.pop_outgoing().linear_x == pytest.approx(1.0)
    out = c.end()
    assert out.is_zero()
    assert not c.is_dragging
    assert c.offset is None
    assert c.pop_outgoing() == VelocityCommand.zero()
    assert c.pop_outgoing() is None


def test_pending_zero_survives_a_quick_new_drag():
    c = TeleopController(100.0, 2.0)
    c.begin((0.0, 0.0))
    c.update((0.0, -100.0))
    c.end()
    c.begin((0.0, 0.0))
    c.update((100.0, 0.0))
    assert c.pop_outgoing().is_zero()
    assert c.pop_outgoing().as_tuple() == pytest.approx((0.0, 1.0))


def test_command_property_is_a_copy():
    c = TeleopController(100.0, 2.0)
    c.begin((0.0, 0.0))
    c.update((0.0, -100.0))
    cmd = c.command
    cmd.linear_x = 0.0
    assert c.command.linear_x == pytest.approx(2.0)


def test_knob_radius_follows_stick_radius():
    assert TeleopController(200.0).knob_radius == pytest.approx(20.0)


def test_rearm_stop_restores_one_zero():
    c = TeleopController(100.0, 2.0)
    c.begin((0.0, 0.0))
    c.end()
    assert c.stop_pending
    assert c.pop_outgoing().is_zero()
    assert not c.stop_pending
    c.rearm_stop()
    assert c.pop_outgoing().is_zero()
    assert c.pop_outgoing() is None
