"""Pytest configuration and fixtures for pendulum twin tests."""

import pytest

from pendulum_twin.events import SampleRecorder
from pendulum_twin.params import SimulationParameters
from pendulum_twin.simulator import PendulumSimulator


class RecordingRenderer:
    """Pose sink that keeps every pose it is given."""

    def __init__(self):
        self.poses = []

    def apply_pose(self, pose):
        self.poses.append(pose)


@pytest.fixture
def params():
    """Scenario parameters: 1 m, 1 kg, Earth gravity, no damping, 45 degrees."""
    return SimulationParameters(length_cm=100.0, mass_kg=1.0, gravity=9.81, damping=0.0, initial_angle_deg=45.0)


@pytest.fixture
def renderer():
    return RecordingRenderer()


@pytest.fixture
def recorder():
    return SampleRecorder(max_samples=10_000)


@pytest.fixture
def simulator(params, renderer, recorder):
    """Simulator with a renderer and a recorder attached."""
    sim = PendulumSimulator(params=params, renderer=renderer)
    sim.subscribe(recorder)
    return sim
