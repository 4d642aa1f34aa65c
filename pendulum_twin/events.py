"""Synchronous per-tick broadcast of pendulum state.

Each simulator owns its own broadcaster, so several simulations can run
side by side without sharing subscribers.
"""

from __future__ import annotations

import logging
from collections import deque
from typing import Callable, Deque, List, NamedTuple

logger = logging.getLogger(__name__)


class PendulumSample(NamedTuple):
    """State published after an integrated tick."""

    angle_deg: float
    angular_velocity: float
    sim_time: float


Subscriber = Callable[[PendulumSample], None]


class EventBroadcaster:
    """Observer registry publishing samples in subscription order.

    Example:
        broadcaster = EventBroadcaster()
        broadcaster.subscribe(recorder)
        broadcaster.publish(PendulumSample(12.0, -0.4, 1.25))
    """

    def __init__(self) -> None:
        self._subscribers: List[Subscriber] = []

    def subscribe(self, handler: Subscriber) -> None:
        """Register ``handler``; it is called after the ones already registered."""
        self._subscribers.append(handler)
        logger.debug("Subscriber added (%d total)", len(self._subscribers))

    def unsubscribe(self, handler: Subscriber) -> bool:
        """Remove ``handler``.

        Returns:
            True if the handler was registered, False otherwise
        """
        if handler in self._subscribers:
            self._subscribers.remove(handler)
            logger.debug("Subscriber removed (%d left)", len(self._subscribers))
            return True
        return False

    def publish(self, sample: PendulumSample) -> None:
        """Call every subscriber synchronously with ``sample``.

        Exceptions raised by a subscriber propagate to the caller.
        """
        # Snapshot so a handler may (un)subscribe while being called
        for handler in tuple(self._subscribers):
            handler(sample)

    def clear_subscribers(self) -> None:
        self._subscribers.clear()

    def subscriber_count(self) -> int:
        return len(self._subscribers)


class SampleRecorder:
    """Bounded subscriber keeping the latest samples for graphing."""

    def __init__(self, max_samples: int = 600) -> None:
        self.samples: Deque[PendulumSample] = deque(maxlen=max_samples)

    def __call__(self, sample: PendulumSample) -> None:
        self.samples.append(sample)

    def __len__(self) -> int:
        return len(self.samples)

    @property
    def times(self) -> List[float]:
        return [s.sim_time for s in self.samples]

    @property
    def angles_deg(self) -> List[float]:
        return [s.angle_deg for s in self.samples]

    @property
    def velocities(self) -> List[float]:
        return [s.angular_velocity for s in self.samples]

    def clear(self) -> None:
        self.samples.clear()
