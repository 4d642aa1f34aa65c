"""Real-time digital twin of a damped simple pendulum."""

from pendulum_twin.controller import PendulumState, StateController
from pendulum_twin.events import EventBroadcaster, PendulumSample, SampleRecorder
from pendulum_twin.exceptions import (
    InvalidParameter,
    InvalidSelection,
    MissingCollaborator,
    PendulumTwinError,
)
from pendulum_twin.params import GRAVITY_PRESETS, SimulationParameters
from pendulum_twin.pose import Pose, derive_pose
from pendulum_twin.simulator import PendulumSimulator

__all__ = [
    "EventBroadcaster",
    "GRAVITY_PRESETS",
    "InvalidParameter",
    "InvalidSelection",
    "MissingCollaborator",
    "PendulumSample",
    "PendulumSimulator",
    "PendulumState",
    "PendulumTwinError",
    "Pose",
    "SampleRecorder",
    "SimulationParameters",
    "StateController",
    "derive_pose",
]
