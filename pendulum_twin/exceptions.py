"""Pendulum twin exception hierarchy.

Physical values (gravity of any sign, any non-negative damping) are never
errors. Only structural problems are.
"""


class PendulumTwinError(Exception):
    """Root of all pendulum twin exceptions."""


class InvalidParameter(PendulumTwinError, ValueError):
    """A parameter breaks a structural invariant (e.g. length <= 0)."""


class MissingCollaborator(PendulumTwinError):
    """A required external collaborator (renderer, bob transform) is absent."""


class InvalidSelection(PendulumTwinError, IndexError):
    """An index-based selection (e.g. gravity preset) is out of range."""
