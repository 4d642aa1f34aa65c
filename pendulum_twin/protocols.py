"""Capability interfaces between the simulator and its collaborators."""

from __future__ import annotations

from typing import Protocol, Tuple, runtime_checkable

from pendulum_twin.pose import Pose


@runtime_checkable
class GrabTarget(Protocol):
    """What the interaction subsystem may call on a grabbable pendulum."""

    def notify_grab_start(self) -> None:
        ...

    def notify_grab_end(self, local_position: Tuple[float, float]) -> None:
        ...


@runtime_checkable
class PoseSink(Protocol):
    """A renderer applying the per-tick pose to a renderable object."""

    def apply_pose(self, pose: Pose) -> None:
        ...
