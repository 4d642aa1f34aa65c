from __future__ import annotations

import logging
from dataclasses import dataclass, field
from typing import List, Optional, Tuple

from pendulum_twin import config
from pendulum_twin.controller import PendulumState, StateController
from pendulum_twin.events import EventBroadcaster, PendulumSample, Subscriber
from pendulum_twin.exceptions import InvalidParameter, MissingCollaborator
from pendulum_twin.params import SimulationParameters, check_length_cm, gravity_preset
from pendulum_twin.physics import symplectic_euler_step, total_energy
from pendulum_twin.pose import Pose, derive_pose
from pendulum_twin.protocols import PoseSink

logger = logging.getLogger(__name__)


@dataclass
class PendulumSimulator:
    """Holds one pendulum's parameters and state and advances it per fixed tick.

    The host calls :meth:`step` once per frame. Grab notifications and
    parameter setters may be called between ticks and take effect before the
    next one.
    """

    params: SimulationParameters = field(default_factory=SimulationParameters)
    renderer: Optional[PoseSink] = None

    sim_time: float = 0.0

    trail_enabled: bool = True
    trail_max_points: int = config.DEFAULT_TRAIL_MAX_POINTS
    trail_points: List[Tuple[float, float]] = field(default_factory=list)

    energy_ref: Optional[float] = None
    energy_err: float = 0.0
    energy_check_interval: float = config.DEFAULT_ENERGY_CHECK_INTERVAL
    _energy_accum: float = 0.0

    state: PendulumState = field(init=False)
    controller: StateController = field(init=False)
    events: EventBroadcaster = field(init=False, default_factory=EventBroadcaster)
    pose: Optional[Pose] = field(init=False, default=None)
    _held_at: Optional[Tuple[float, float]] = field(init=False, default=None)
    _renderer_warned: bool = field(init=False, default=False)

    def __post_init__(self) -> None:
        self.initialize(self.params)

    @classmethod
    def from_config(cls, cfg: config.SimulationConfig, renderer: Optional[PoseSink] = None) -> "PendulumSimulator":
        return cls(params=SimulationParameters.from_config(cfg), renderer=renderer)

    def initialize(self, params: SimulationParameters) -> None:
        """(Re)start the simulation from ``params.initial_angle_deg`` at rest."""
        check_length_cm(params.length_cm)
        self.params = params
        self.state = PendulumState.from_degrees(params.initial_angle_deg)
        self.controller = StateController(self.state, self.params)
        self.sim_time = 0.0
        self._held_at = None
        self.trail_points.clear()
        self._reset_energy_reference()
        self.pose = derive_pose(self.state.angle_rad, self.params.length_m)

    # -- host tick ---------------------------------------------------------

    def step(self, dt: float) -> None:
        """Advance by one fixed tick of ``dt`` seconds."""
        if not dt > 0.0:
            raise InvalidParameter(f"tick length must be positive, got {dt}")

        self.sim_time += dt

        if self.controller.integrating:
            self.state.angle_rad, self.state.angular_velocity = symplectic_euler_step(
                [self.state.angle_rad, self.state.angular_velocity], dt, self.params
            )
            self._monitor_energy(dt)
            self.events.publish(
                PendulumSample(self.state.angle_deg, self.state.angular_velocity, self.sim_time)
            )

        # visual sync runs held or not
        self._sync_pose()

    # -- interaction -------------------------------------------------------

    def notify_grab_start(self) -> None:
        self.controller.grab_start()
        self._held_at = None

    def notify_grab_end(self, local_position: Tuple[float, float]) -> None:
        x, y = local_position
        self.controller.grab_end(float(x), float(y))
        self._held_at = None
        self._reset_energy_reference()

    def drag_to(self, x: float, y: float) -> None:
        """Move a held bob to local (x, y) for display only."""
        if not self.controller.held:
            logger.debug("drag_to ignored, bob is not held")
            return
        self._held_at = (float(x), float(y))

    # -- parameter setters -------------------------------------------------

    def set_length(self, length_cm: float) -> None:
        self.params.length_cm = check_length_cm(length_cm)
        self._reset_energy_reference()
        # the bob moves with the rope immediately, not on the next tick
        self._sync_pose()

    def set_mass(self, mass_kg: float) -> None:
        self.params.mass_kg = float(mass_kg)
        self._reset_energy_reference()

    def set_damping(self, damping: float) -> None:
        self.params.damping = float(damping)
        self._reset_energy_reference()

    def set_gravity(self, gravity: float) -> None:
        self.controller.set_gravity(gravity)
        self._reset_energy_reference()

    def select_gravity_preset(self, index: int) -> None:
        preset = gravity_preset(index)
        logger.info("Gravity preset selected: %s", preset.label)
        self.set_gravity(preset.value)

    # -- run control -------------------------------------------------------

    def start(self) -> None:
        self.controller.start()

    def stop(self) -> None:
        self.controller.stop()

    def reset(self) -> None:
        """Back to the initial angle at rest; subscribers are kept."""
        self.initialize(self.params)

    # -- observers and renderer --------------------------------------------

    def subscribe(self, handler: Subscriber) -> None:
        self.events.subscribe(handler)

    def unsubscribe(self, handler: Subscriber) -> bool:
        return self.events.unsubscribe(handler)

    def attach_renderer(self, renderer: PoseSink) -> None:
        if renderer is None or not isinstance(renderer, PoseSink):
            raise MissingCollaborator(f"{renderer!r} cannot apply a pose")
        self.renderer = renderer
        self._renderer_warned = False

    def detach_renderer(self) -> None:
        self.renderer = None

    # -- read-only views ---------------------------------------------------

    @property
    def angle_deg(self) -> float:
        return self.state.angle_deg

    @property
    def angular_velocity(self) -> float:
        return self.state.angular_velocity

    @property
    def running(self) -> bool:
        return self.state.running

    @property
    def held(self) -> bool:
        return self.controller.held

    def get_positions(self) -> dict:
        pose = self.pose if self.pose is not None else derive_pose(self.state.angle_rad, self.params.length_m)
        (px, py, _), (bx, by, _) = pose.rope
        return {"pivot_x": px, "pivot_y": py, "bob_x": bx, "bob_y": by}

    # -- internals ---------------------------------------------------------

    def _sync_pose(self) -> None:
        held_at = self._held_at if self.controller.held else None
        self.pose = derive_pose(self.state.angle_rad, self.params.length_m, held_at=held_at)

        if self.trail_enabled:
            bx, by, _ = self.pose.bob
            self._append_trail_point(bx, by)

        if self.renderer is None:
            if not self._renderer_warned:
                logger.warning("No renderer attached, pose output skipped")
                self._renderer_warned = True
            return
        self.renderer.apply_pose(self.pose)

    def _append_trail_point(self, x: float, y: float) -> None:
        self.trail_points.append((float(x), float(y)))
        if len(self.trail_points) > self.trail_max_points:
            self.trail_points.pop(0)

    def _reset_energy_reference(self) -> None:
        self.energy_ref = None
        self.energy_err = 0.0
        self._energy_accum = 0.0

    def _monitor_energy(self, dt: float) -> None:
        """Relative energy drift of the undamped pendulum, diagnostic only."""
        if float(self.params.damping) != 0.0:
            return
        state = [self.state.angle_rad, self.state.angular_velocity]
        if self.energy_ref is None:
            self.energy_ref = total_energy(state, self.params)
            return
        self._energy_accum += dt
        if self._energy_accum < self.energy_check_interval:
            return
        self._energy_accum = 0.0
        e = total_energy(state, self.params)
        self.energy_err = abs(e - self.energy_ref) / max(1e-9, abs(self.energy_ref))
        logger.debug("Energy drift %.4f%% at t=%.2fs", self.energy_err * 100.0, self.sim_time)
