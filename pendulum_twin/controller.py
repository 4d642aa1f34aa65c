"""Run/held state machine gating the integrator."""

from __future__ import annotations

import logging
import math
from dataclasses import dataclass

from pendulum_twin import config
from pendulum_twin.params import SimulationParameters
from pendulum_twin.physics import release_angle

logger = logging.getLogger(__name__)


@dataclass
class PendulumState:
    """Dynamical state of the pendulum. The angle is never wrapped."""

    angle_rad: float = 0.0
    angular_velocity: float = 0.0
    running: bool = True

    @classmethod
    def from_degrees(cls, angle_deg: float) -> "PendulumState":
        return cls(angle_rad=math.radians(angle_deg))

    @property
    def angle_deg(self) -> float:
        return math.degrees(self.angle_rad)


class StateController:
    """Owns the grab/release and gravity-change transitions.

    Two flags are kept apart: ``held`` is set by an explicit grab,
    ``state.running`` is the stopped/running flag consulted by
    :meth:`set_gravity`. The integrator only advances when running and not held.
    """

    def __init__(self, state: PendulumState, params: SimulationParameters) -> None:
        self.state = state
        self.params = params
        self.held = False

    @property
    def integrating(self) -> bool:
        return self.state.running and not self.held

    def grab_start(self) -> None:
        """Freeze the pendulum where it is."""
        if self.held:
            logger.debug("grab_start while already held")
        self.held = True
        logger.info("Bob grabbed at %.2f deg", self.state.angle_deg)

    def grab_end(self, x: float, y: float) -> None:
        """Release the bob at local (x, y); the swing restarts from rest."""
        if not self.held:
            logger.debug("grab_end without a preceding grab_start")
        self.state.angle_rad = release_angle(x, y)
        self.state.angular_velocity = 0.0
        self.state.running = True
        self.held = False
        logger.info("Bob released at %.2f deg", self.state.angle_deg)

    def set_gravity(self, value: float) -> bool:
        """Set gravity; a stopped pendulum is reseeded and restarted.

        Returns True when the reseed happened. A running pendulum keeps its
        angle and velocity and continues under the new gravity.
        """
        self.params.gravity = float(value)
        logger.info("Gravity set to %s m/s²", value)
        if self.state.running:
            return False
        self.state.angle_rad = math.radians(config.RESEED_ANGLE_DEG)
        self.state.running = True
        logger.info("Stopped pendulum reseeded at %.1f deg", config.RESEED_ANGLE_DEG)
        return True

    def stop(self) -> None:
        self.state.running = False

    def start(self) -> None:
        self.state.running = True
