"""Visual pose of the pendulum derived from its angle.

The pose is a pure value; how it is applied to a renderable object is up to
the renderer (see :class:`pendulum_twin.protocols.PoseSink`).
"""

from __future__ import annotations

import math
from dataclasses import dataclass
from typing import Optional, Tuple

from pendulum_twin.physics import bob_position, release_angle

Vec3 = Tuple[float, float, float]
Quaternion = Tuple[float, float, float, float]

PIVOT: Vec3 = (0.0, 0.0, 0.0)

# Swing plane is x/y, rotation about z
SWING_AXIS: Vec3 = (0.0, 0.0, 1.0)


def axis_angle_quaternion(angle_rad: float, axis: Vec3 = SWING_AXIS) -> Quaternion:
    """Unit quaternion (w, x, y, z) rotating by ``angle_rad`` about ``axis``."""
    half = 0.5 * angle_rad
    s = math.sin(half)
    ax, ay, az = axis
    return (math.cos(half), ax * s, ay * s, az * s)


@dataclass(frozen=True)
class Pose:
    """Bob position, rope endpoints and body orientation in pivot-local metres."""

    angle_rad: float
    bob: Vec3
    orientation: Quaternion

    @property
    def pivot(self) -> Vec3:
        return PIVOT

    @property
    def rope(self) -> Tuple[Vec3, Vec3]:
        return PIVOT, self.bob

    @property
    def angle_deg(self) -> float:
        return math.degrees(self.angle_rad)


def derive_pose(angle_rad: float, length_m: float, held_at: Optional[Tuple[float, float]] = None) -> Pose:
    """Compute the pose for ``angle_rad`` on a rope of ``length_m``.

    ``held_at`` is the externally driven bob position while it is grabbed;
    the bob is drawn there and the body is oriented towards it.
    """
    if held_at is not None:
        x, y = held_at
        angle_rad = release_angle(x, y)
    else:
        x, y = bob_position(angle_rad, length_m)
    return Pose(
        angle_rad=angle_rad,
        bob=(x, y, 0.0),
        orientation=axis_angle_quaternion(angle_rad),
    )


def rotate(q: Quaternion, v: Vec3) -> Vec3:
    """Rotate vector ``v`` by unit quaternion ``q``."""
    w, qx, qy, qz = q
    vx, vy, vz = v
    # t = 2 * (q_vec x v)
    tx = 2.0 * (qy * vz - qz * vy)
    ty = 2.0 * (qz * vx - qx * vz)
    tz = 2.0 * (qx * vy - qy * vx)
    return (
        vx + w * tx + (qy * tz - qz * ty),
        vy + w * ty + (qz * tx - qx * tz),
        vz + w * tz + (qx * ty - qy * tx),
    )
