"""Tests for PendulumSimulator: the per-tick loop and its collaborators.

Tests:
- Tick ordering: integrate, broadcast, pose
- Grab / release round trip and held ticks
- Gravity change while running and while stopped
- Parameter setters, presets and reset
- Degraded operation without a renderer
"""

import logging
import math

import pytest

from pendulum_twin.exceptions import InvalidParameter, InvalidSelection, MissingCollaborator
from pendulum_twin.params import SimulationParameters
from pendulum_twin.physics import small_angle_period
from pendulum_twin.protocols import GrabTarget
from pendulum_twin.simulator import PendulumSimulator

DT = 0.01


class TestInitialize:
    """Tests for simulator start-up."""

    def test_initial_state(self, simulator):
        """The simulation starts at the initial angle, at rest, running."""
        assert simulator.angle_deg == pytest.approx(45.0)
        assert simulator.angular_velocity == 0.0
        assert simulator.running is True
        assert simulator.held is False
        assert simulator.sim_time == 0.0

    def test_initial_pose(self, simulator):
        """A pose exists before the first tick."""
        bx, by, _ = simulator.pose.bob
        assert bx == pytest.approx(math.sin(math.radians(45.0)))
        assert by == pytest.approx(-math.cos(math.radians(45.0)))

    def test_invalid_length_rejected(self):
        with pytest.raises(InvalidParameter):
            PendulumSimulator(params=SimulationParameters(length_cm=-5.0))

    def test_is_a_grab_target(self, simulator):
        assert isinstance(simulator, GrabTarget)


class TestStep:
    """Tests for step()."""

    def test_running_tick_publishes(self, simulator, recorder):
        """One sample per integrated tick with angle in degrees and sim time."""
        simulator.step(DT)
        simulator.step(DT)

        assert len(recorder) == 2
        sample = recorder.samples[-1]
        assert sample.angle_deg == pytest.approx(simulator.angle_deg)
        assert sample.angular_velocity == simulator.angular_velocity
        assert sample.sim_time == pytest.approx(2 * DT)

    def test_pose_every_tick(self, simulator, renderer):
        simulator.step(DT)
        simulator.step(DT)
        assert len(renderer.poses) == 2
        assert renderer.poses[-1].angle_rad == simulator.state.angle_rad

    def test_held_tick_does_not_integrate_or_publish(self, simulator, recorder, renderer):
        """While held: frozen state, no broadcast, pose still produced."""
        simulator.step(DT)
        simulator.notify_grab_start()
        frozen = (simulator.state.angle_rad, simulator.angular_velocity)

        for _ in range(5):
            simulator.step(DT)

        assert (simulator.state.angle_rad, simulator.angular_velocity) == frozen
        assert len(recorder) == 1
        assert len(renderer.poses) == 6
        assert simulator.sim_time == pytest.approx(6 * DT)

    def test_stopped_tick_does_not_integrate(self, simulator, recorder):
        simulator.stop()
        simulator.step(DT)
        assert simulator.angle_deg == pytest.approx(45.0)
        assert len(recorder) == 0

    @pytest.mark.parametrize("dt", [0.0, -0.02])
    def test_non_positive_tick_rejected(self, simulator, dt):
        with pytest.raises(InvalidParameter):
            simulator.step(dt)

    def test_swing_crosses_bottom_after_quarter_period(self, simulator, recorder):
        """From 45 degrees the bob heads down and crosses 0 within half a period."""
        period = small_angle_period(1.0, 9.81)

        for _ in range(int(round(period / 4.0 / DT))):
            simulator.step(DT)
        # large swings are slower than the small-angle estimate
        assert 0.0 < simulator.angle_deg < 10.0
        assert simulator.angular_velocity < 0.0

        for _ in range(int(round(period / 4.0 / DT))):
            simulator.step(DT)
        crossed = [s for s in recorder.samples if s.angle_deg <= 0.0]
        assert crossed
        assert period / 4.0 < crossed[0].sim_time < period / 2.0


class TestGrabRelease:
    """Grab / release notifications."""

    def test_round_trip_sets_angle_and_rest(self, simulator):
        """Release angle is exactly atan2(x, -y) with no leftover velocity."""
        for _ in range(20):
            simulator.step(DT)
        assert simulator.angular_velocity != 0.0

        simulator.notify_grab_start()
        simulator.notify_grab_end((0.25, -0.4))

        assert simulator.state.angle_rad == math.atan2(0.25, 0.4)
        assert simulator.angular_velocity == 0.0
        assert simulator.held is False

    def test_swing_resumes_after_release(self, simulator, recorder):
        simulator.notify_grab_start()
        simulator.step(DT)
        simulator.notify_grab_end((-0.5, -0.5))
        simulator.step(DT)
        assert len(recorder) == 1
        assert simulator.angular_velocity > 0.0

    def test_drag_moves_held_bob(self, simulator, renderer):
        """The pose follows the hand while held."""
        simulator.notify_grab_start()
        simulator.drag_to(0.3, -0.1)
        simulator.step(DT)
        assert renderer.poses[-1].bob == (0.3, -0.1, 0.0)

    def test_drag_ignored_when_not_held(self, simulator, renderer):
        simulator.drag_to(0.3, -0.1)
        simulator.step(DT)
        assert renderer.poses[-1].bob != (0.3, -0.1, 0.0)


class TestGravity:
    """Gravity changes through the simulator."""

    def test_running_change_keeps_state(self, simulator):
        """Angle and velocity are identical right before and after the change."""
        for _ in range(10):
            simulator.step(DT)
        before = (simulator.state.angle_rad, simulator.angular_velocity)
        simulator.set_gravity(1.62)
        assert (simulator.state.angle_rad, simulator.angular_velocity) == before
        assert simulator.params.gravity == 1.62

    def test_stopped_change_reseeds(self, simulator):
        simulator.stop()
        simulator.set_gravity(3.71)
        assert simulator.running is True
        assert simulator.state.angle_rad == pytest.approx(math.radians(5.0))

    def test_change_applies_on_next_tick(self, simulator):
        """The tick after the change already uses the new gravity."""
        simulator.set_gravity(0.0)
        simulator.params.damping = 0.0
        simulator.step(DT)
        assert simulator.angular_velocity == 0.0

    def test_select_preset(self, simulator):
        simulator.select_gravity_preset(3)
        assert simulator.params.gravity == 24.79

    @pytest.mark.parametrize("index", [-1, 4])
    def test_select_preset_out_of_range(self, simulator, index):
        with pytest.raises(InvalidSelection):
            simulator.select_gravity_preset(index)
        assert simulator.params.gravity == 9.81


class TestSetters:
    """Length, mass and damping setters."""

    def test_set_length_converts_and_moves_bob(self, simulator, renderer):
        """Length is given in cm and the bob moves at once."""
        simulator.set_length(50.0)
        assert simulator.params.length_m == pytest.approx(0.5)
        bx, by, _ = renderer.poses[-1].bob
        assert math.hypot(bx, by) == pytest.approx(0.5)

    @pytest.mark.parametrize("length_cm", [0.0, -10.0])
    def test_set_length_rejects_non_positive(self, simulator, length_cm):
        with pytest.raises(InvalidParameter):
            simulator.set_length(length_cm)
        assert simulator.params.length_cm == 100.0

    def test_set_mass_and_damping(self, simulator):
        simulator.set_mass(2.5)
        simulator.set_damping(0.3)
        assert simulator.params.mass_kg == 2.5
        assert simulator.params.damping == 0.3

    def test_damping_slows_swing(self, params):
        """A damped twin swings less far than an undamped one."""
        free = PendulumSimulator(params=params)
        damped = PendulumSimulator(params=SimulationParameters(length_cm=100.0, damping=0.5, initial_angle_deg=45.0))
        for _ in range(400):
            free.step(DT)
            damped.step(DT)
        assert max(abs(a) for a, _ in free.trail_points[-250:]) > max(abs(a) for a, _ in damped.trail_points[-250:])


class TestObservers:
    """Subscribers and renderers."""

    def test_subscribe_between_ticks(self, simulator, recorder):
        late = []
        simulator.step(DT)
        simulator.subscribe(late.append)
        simulator.step(DT)
        simulator.unsubscribe(recorder)
        simulator.step(DT)
        assert len(recorder) == 2
        assert len(late) == 2

    def test_independent_instances(self, recorder):
        """Subscribers of one simulator never hear another one."""
        first = PendulumSimulator()
        second = PendulumSimulator()
        first.subscribe(recorder)
        second.step(DT)
        assert len(recorder) == 0

    def test_no_renderer_keeps_simulating(self, caplog, recorder):
        """Without a renderer physics and broadcast continue, warning once."""
        sim = PendulumSimulator()
        sim.subscribe(recorder)
        with caplog.at_level(logging.WARNING, logger="pendulum_twin"):
            sim.step(DT)
            sim.step(DT)
        assert len(recorder) == 2
        assert sim.pose is not None
        warnings = [r for r in caplog.records if "No renderer" in r.getMessage()]
        assert len(warnings) == 1

    def test_attach_renderer(self, renderer):
        sim = PendulumSimulator()
        sim.attach_renderer(renderer)
        sim.step(DT)
        assert len(renderer.poses) == 1

    @pytest.mark.parametrize("candidate", [None, object()])
    def test_attach_unusable_renderer(self, candidate):
        sim = PendulumSimulator()
        with pytest.raises(MissingCollaborator):
            sim.attach_renderer(candidate)

    def test_detach_renderer(self, simulator, renderer):
        simulator.detach_renderer()
        simulator.step(DT)
        assert renderer.poses == []


class TestSessionExtras:
    """Reset, trail and energy drift monitor."""

    def test_reset_keeps_subscribers(self, simulator, recorder):
        for _ in range(10):
            simulator.step(DT)
        simulator.notify_grab_start()
        simulator.reset()
        assert simulator.angle_deg == pytest.approx(45.0)
        assert simulator.angular_velocity == 0.0
        assert simulator.held is False
        assert simulator.sim_time == 0.0
        assert simulator.trail_points == []
        simulator.step(DT)
        assert len(recorder) == 11

    def test_trail_bounded(self, simulator):
        simulator.trail_max_points = 5
        for _ in range(12):
            simulator.step(DT)
        assert len(simulator.trail_points) == 5

    def test_trail_disabled(self, simulator):
        simulator.trail_enabled = False
        simulator.step(DT)
        assert simulator.trail_points == []

    def test_get_positions(self, simulator):
        positions = simulator.get_positions()
        assert positions["pivot_x"] == 0.0
        assert positions["bob_y"] == pytest.approx(-math.cos(math.radians(45.0)))

    def test_energy_drift_small_without_damping(self, simulator):
        for _ in range(300):
            simulator.step(DT)
        assert simulator.energy_ref is not None
        assert simulator.energy_err < 0.02

    def test_energy_monitor_idle_with_damping(self):
        sim = PendulumSimulator(params=SimulationParameters(damping=0.2))
        for _ in range(100):
            sim.step(DT)
        assert sim.energy_ref is None
        assert sim.energy_err == 0.0

    def test_from_config(self):
        from pendulum_twin.config import SimulationConfig

        sim = PendulumSimulator.from_config(SimulationConfig(length_cm=40.0, initial_angle_deg=10.0))
        assert sim.params.length_m == pytest.approx(0.4)
        assert sim.angle_deg == pytest.approx(10.0)
