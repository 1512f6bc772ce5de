"""
Tests for the heading-up rotation gate.

Tests the distance, cooldown and angle gates, the north-up starting
assumption and the rotation convention.
"""

import pytest

import sys
import os
sys.path.insert(0, os.path.dirname(os.path.dirname(os.path.abspath(__file__))))

from interpolator import SmoothedPosition
from rotation import BearingState, RotationCommand, RotationController
from conftest import BRISBANE, offset_point


def _pos(point):
    return SmoothedPosition(lat=point[0], lng=point[1])


@pytest.fixture
def commands():
    return []


@pytest.fixture
def controller(clock, commands):
    return RotationController(on_rotate=commands.append, clock=clock)


class TestFirstPosition:
    """Tests for the very first position."""

    def test_no_decision_on_first_position(self, controller, commands):
        assert controller.update(_pos(BRISBANE)) is None
        assert commands == []
        assert controller.previous_position == _pos(BRISBANE)
        assert controller.state == BearingState()


class TestDistanceGate:
    """Tests for the minimum movement gate."""

    def test_small_moves_never_rotate(self, clock, controller, commands):
        """A zig-zag of 10 m moves never reaches the 25 m threshold."""
        point = BRISBANE
        controller.update(_pos(point))
        for i in range(20):
            clock.advance(5000)
            point = offset_point(*point, meters_east=10.0 if i % 2 else -10.0)
            assert controller.update(_pos(point)) is None
        assert commands == []
        assert controller.state.last_bearing is None

    def test_previous_updated_even_when_gate_holds(self, clock, controller):
        """Distance is measured between consecutive positions, not from the last rotation."""
        controller.update(_pos(BRISBANE))
        step1 = offset_point(*BRISBANE, meters_east=15.0)
        step2 = offset_point(*step1, meters_east=15.0)
        clock.advance(5000)
        assert controller.update(_pos(step1)) is None
        clock.advance(5000)
        assert controller.update(_pos(step2)) is None
        assert controller.previous_position == _pos(step2)


class TestAngleGate:
    """Tests for the minimum bearing change gate."""

    def test_north_travel_from_north_up_does_not_rotate(self, clock, controller, commands):
        """Heading due north matches the initial north-up view."""
        controller.update(_pos(BRISBANE))
        clock.advance(5000)
        assert controller.update(_pos(offset_point(*BRISBANE, meters_north=50.0))) is None
        assert commands == []

    def test_small_heading_changes_ignored(self, clock, controller, commands):
        """After rotating east, a 10 degree drift does not rotate again."""
        controller.update(_pos(BRISBANE))
        east = offset_point(*BRISBANE, meters_east=50.0)
        clock.advance(5000)
        assert controller.update(_pos(east)) is not None

        # 50 m at ~100 degrees
        drift = offset_point(*east, meters_north=-8.7, meters_east=49.2)
        clock.advance(5000)
        assert controller.update(_pos(drift)) is None
        assert len(commands) == 1


class TestRotation:
    """Tests for accepted rotations."""

    def test_qualifying_move_emits_one_command(self, clock, controller, commands):
        """A 50 m move east after the cooldown rotates to ~90 degrees."""
        controller.update(_pos(BRISBANE))
        clock.advance(5000)
        command = controller.update(_pos(offset_point(*BRISBANE, meters_east=50.0)))

        assert command is not None
        assert commands == [command]
        assert command.target_bearing == pytest.approx(90.0, abs=0.5)
        assert command.transition_duration_ms == 2000
        assert controller.state.last_bearing == command.target_bearing
        assert controller.state.last_rotation_time == clock()

    def test_first_rotation_ignores_cooldown(self, controller, commands):
        """With no previous rotation the cooldown gate passes immediately."""
        controller.update(_pos(BRISBANE))
        assert controller.update(_pos(offset_point(*BRISBANE, meters_east=50.0))) is not None

    def test_cooldown_blocks_second_rotation(self, clock, controller, commands):
        """A second qualifying turn inside 4 s is held back."""
        controller.update(_pos(BRISBANE))
        east = offset_point(*BRISBANE, meters_east=50.0)
        clock.advance(5000)
        controller.update(_pos(east))

        south = offset_point(*east, meters_north=-50.0)
        clock.advance(3000)
        assert controller.update(_pos(south)) is None

        further_south = offset_point(*south, meters_north=-50.0)
        clock.advance(1500)
        command = controller.update(_pos(further_south))
        assert command is not None
        assert command.target_bearing == pytest.approx(180.0, abs=0.5)
        assert len(commands) == 2

    def test_cooldown_boundary_is_exclusive(self, clock, controller):
        """Exactly 4000 ms after a rotation is still inside the cooldown."""
        controller.update(_pos(BRISBANE))
        east = offset_point(*BRISBANE, meters_east=50.0)
        controller.update(_pos(east))
        clock.advance(4000)
        assert controller.update(_pos(offset_point(*east, meters_north=-50.0))) is None

    def test_wraparound_turn(self, clock, controller):
        """Turning from 350 to ~6 degrees is a 16 degree change, not 344, and held back."""
        controller.update(_pos(BRISBANE))
        nnw = offset_point(*BRISBANE, meters_north=49.2, meters_east=-8.7)
        clock.advance(5000)
        assert controller.update(_pos(nnw)) is None

        controller.state.last_bearing = 350.0
        nne = offset_point(*nnw, meters_north=49.2, meters_east=5.0)
        clock.advance(5000)
        assert controller.update(_pos(nne)) is None

    def test_reset_clears_state(self, clock, controller):
        controller.update(_pos(BRISBANE))
        controller.update(_pos(offset_point(*BRISBANE, meters_east=50.0)))
        controller.reset()
        assert controller.state == BearingState()
        assert controller.previous_position is None

    def test_custom_gates(self, clock, commands):
        """Gate thresholds come from the constructor."""
        controller = RotationController(
            on_rotate=commands.append, clock=clock,
            min_distance_m=100.0, cooldown_ms=0, min_angle_deg=5.0, transition_ms=750,
        )
        controller.update(_pos(BRISBANE))
        assert controller.update(_pos(offset_point(*BRISBANE, meters_east=50.0))) is None
        command = controller.update(_pos(offset_point(*BRISBANE, meters_east=200.0)))
        assert command is not None
        assert command.transition_duration_ms == 750


class TestRotationCommand:
    """Tests for the renderer-facing rotation angle."""

    @pytest.mark.parametrize("bearing,expected", [
        (0.0, 0.0),
        (90.0, 270.0),
        (180.0, 180.0),
        (270.0, 90.0),
    ])
    def test_view_rotation(self, bearing, expected):
        command = RotationCommand(target_bearing=bearing, transition_duration_ms=2000)
        assert command.view_rotation_deg == pytest.approx(expected)
