"""
Configuration
=============
Default physical constants and host settings for the pendulum twin.

Every default can be overridden through a ``PENDULUM_TWIN_*`` environment
variable, read by :meth:`SimulationConfig.from_env`.
"""

from __future__ import annotations

import logging
import os
from dataclasses import dataclass
from typing import Mapping, Optional

from pendulum_twin.exceptions import InvalidParameter

ENV_PREFIX = "PENDULUM_TWIN_"

DEFAULT_LENGTH_CM: float = 100.0
DEFAULT_MASS_KG: float = 1.0
DEFAULT_GRAVITY: float = 9.81
DEFAULT_DAMPING: float = 0.05
DEFAULT_INITIAL_ANGLE_DEG: float = 45.0

# Host tick, not wall-clock
DEFAULT_FIXED_DT: float = 0.02

# Angle given to a stopped pendulum when gravity changes
RESEED_ANGLE_DEG: float = 5.0

DEFAULT_TRAIL_MAX_POINTS: int = 300
DEFAULT_ENERGY_CHECK_INTERVAL: float = 0.5


def _read_float(env: Mapping[str, str], name: str, default: float) -> float:
    raw = env.get(ENV_PREFIX + name)
    if raw is None or raw.strip() == "":
        return default
    try:
        return float(raw)
    except ValueError as exc:
        raise InvalidParameter(f"{ENV_PREFIX}{name}={raw!r} is not a number") from exc


@dataclass(frozen=True)
class SimulationConfig:
    """Startup values handed to the simulator and the host loop."""

    length_cm: float = DEFAULT_LENGTH_CM
    mass_kg: float = DEFAULT_MASS_KG
    gravity: float = DEFAULT_GRAVITY
    damping: float = DEFAULT_DAMPING
    initial_angle_deg: float = DEFAULT_INITIAL_ANGLE_DEG
    fixed_dt: float = DEFAULT_FIXED_DT
    log_level: int = logging.INFO

    @classmethod
    def from_env(cls, env: Optional[Mapping[str, str]] = None) -> "SimulationConfig":
        env = os.environ if env is None else env
        level_name = env.get(ENV_PREFIX + "LOG_LEVEL", "INFO").upper()
        level = logging.getLevelName(level_name)
        if not isinstance(level, int):
            raise InvalidParameter(f"{ENV_PREFIX}LOG_LEVEL={level_name!r} is not a logging level")

        fixed_dt = _read_float(env, "FIXED_DT", DEFAULT_FIXED_DT)
        if fixed_dt <= 0.0:
            raise InvalidParameter(f"{ENV_PREFIX}FIXED_DT must be positive, got {fixed_dt}")

        return cls(
            length_cm=_read_float(env, "LENGTH_CM", DEFAULT_LENGTH_CM),
            mass_kg=_read_float(env, "MASS_KG", DEFAULT_MASS_KG),
            gravity=_read_float(env, "GRAVITY", DEFAULT_GRAVITY),
            damping=_read_float(env, "DAMPING", DEFAULT_DAMPING),
            initial_angle_deg=_read_float(env, "INITIAL_ANGLE_DEG", DEFAULT_INITIAL_ANGLE_DEG),
            fixed_dt=fixed_dt,
            log_level=level,
        )
