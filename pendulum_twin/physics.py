"""
Numerical physics utilities for the damped simple pendulum.

This module provides:
- The derivative function of the damped pendulum
- The semi-implicit (symplectic) Euler step used every tick
- Energy, small-angle period and release-angle helpers
- Bob position helper for visualization
"""

from __future__ import annotations

import math
from typing import List, Sequence, Tuple

from pendulum_twin.exceptions import InvalidParameter
from pendulum_twin.params import SimulationParameters

State = List[float]


def _length_m(params: SimulationParameters) -> float:
    length = float(params.length_m)
    if not length > 0.0:
        raise InvalidParameter(f"pendulum length must be positive, got {length} m")
    return length


def angular_acceleration(theta: float, omega: float, params: SimulationParameters) -> float:
    """Angular acceleration of the pendulum.

    Angles are measured from the vertical (hanging straight down is 0 rad).
    Damping is linear in angular velocity.
    """
    g = float(params.gravity)  # m/s^2
    l = _length_m(params)  # m
    return -(g / l) * math.sin(theta) - float(params.damping) * omega


def pendulum_derivatives(state: Sequence[float], params: SimulationParameters) -> State:
    """Return derivatives [dtheta, domega] for the simple pendulum."""
    theta, omega = state[:2]
    return [omega, angular_acceleration(theta, omega, params)]


def symplectic_euler_step(state: Sequence[float], dt: float, params: SimulationParameters) -> State:
    """Symplectic (semi-implicit) Euler step.

    The angular velocity is updated from the acceleration first, then the
    angle from the new velocity. The angle is left unwrapped.
    """
    th, w = state[:2]
    a = angular_acceleration(th, w, params)
    w = w + a * dt
    th = th + w * dt
    return [th, w]


def total_energy(state: Sequence[float], params: SimulationParameters) -> float:
    """Total mechanical energy (kinetic + potential).

    Reference y=0 at the pivot, bob hanging along negative y.
    """
    th, w = state[:2]
    m = float(params.mass_kg)
    l = _length_m(params)
    g = float(params.gravity)
    KE = 0.5 * m * (w * l) ** 2
    PE = -m * g * l * math.cos(th)
    return KE + PE


def small_angle_period(length_m: float, gravity: float) -> float:
    """Period 2*pi*sqrt(l/g) of the linearised pendulum."""
    if not length_m > 0.0:
        raise InvalidParameter(f"pendulum length must be positive, got {length_m} m")
    return 2.0 * math.pi * math.sqrt(length_m / gravity)


def release_angle(x: float, y: float) -> float:
    """Angle of a bob released at local (x, y) relative to the pivot.

    The bob hangs along negative y, hence the negated vertical component.
    """
    return math.atan2(x, -y)


def bob_position(theta: float, length_m: float) -> Tuple[float, float]:
    """Bob position in metres relative to the pivot at (0, 0), y pointing up."""
    return length_m * math.sin(theta), -length_m * math.cos(theta)
