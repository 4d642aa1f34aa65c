"""Physical parameters of the pendulum, gravity presets and UI ranges."""

from __future__ import annotations

from dataclasses import dataclass
from typing import Tuple

from pendulum_twin import config
from pendulum_twin.exceptions import InvalidParameter, InvalidSelection


@dataclass
class SimulationParameters:
    """Mutable physical constants of one pendulum.

    Length is edited in centimetres and read by the physics in metres.
    """

    length_cm: float = config.DEFAULT_LENGTH_CM
    mass_kg: float = config.DEFAULT_MASS_KG
    gravity: float = config.DEFAULT_GRAVITY
    damping: float = config.DEFAULT_DAMPING
    initial_angle_deg: float = config.DEFAULT_INITIAL_ANGLE_DEG

    def __post_init__(self) -> None:
        check_length_cm(self.length_cm)

    @property
    def length_m(self) -> float:
        return self.length_cm / 100.0

    @classmethod
    def from_config(cls, cfg: config.SimulationConfig) -> "SimulationParameters":
        return cls(
            length_cm=cfg.length_cm,
            mass_kg=cfg.mass_kg,
            gravity=cfg.gravity,
            damping=cfg.damping,
            initial_angle_deg=cfg.initial_angle_deg,
        )


def check_length_cm(length_cm: float) -> float:
    """Return ``length_cm`` or raise InvalidParameter when it is not positive."""
    if not length_cm > 0.0:
        raise InvalidParameter(f"pendulum length must be positive, got {length_cm} cm")
    return float(length_cm)


@dataclass(frozen=True)
class GravityPreset:
    name: str
    value: float

    @property
    def label(self) -> str:
        return f"{self.name} ({self.value} m/s²)"


# Order matters: hosts select presets by index
GRAVITY_PRESETS: Tuple[GravityPreset, ...] = (
    GravityPreset("Earth", 9.81),
    GravityPreset("Moon", 1.62),
    GravityPreset("Mars", 3.71),
    GravityPreset("Jupiter", 24.79),
)


def gravity_preset(index: int) -> GravityPreset:
    if not 0 <= index < len(GRAVITY_PRESETS):
        raise InvalidSelection(
            f"gravity preset index {index} outside 0..{len(GRAVITY_PRESETS) - 1}"
        )
    return GRAVITY_PRESETS[index]


def preset_index_for(gravity: float) -> int:
    """Index of the preset matching ``gravity``; Earth when none matches."""
    for i, preset in enumerate(GRAVITY_PRESETS):
        if preset.value == gravity:
            return i
    return 0


@dataclass(frozen=True)
class ParameterRange:
    """Slider bounds offered to host layers. The core never enforces them."""

    minimum: float
    maximum: float
    step: float

    def clamp(self, value: float) -> float:
        return min(self.maximum, max(self.minimum, float(value)))


MASS_RANGE = ParameterRange(0.1, 10.0, 0.1)
LENGTH_CM_RANGE = ParameterRange(1.0, 200.0, 1.0)
DAMPING_RANGE = ParameterRange(0.0, 0.5, 0.005)
