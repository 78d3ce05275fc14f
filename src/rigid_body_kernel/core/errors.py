from __future__ import annotations


class RigidBodyError(ValueError):
    """Base error raised by rigid-body operations; names the offending body."""

    def __init__(self, body_id: str, message: str) -> None:
        super().__init__(f"Rigid body {body_id!r}: {message}")
        self.body_id = body_id
        self.reason = message


class RigidBodySetupError(RigidBodyError):
    """Member attachment or reference-geometry construction failed."""


class InvariantViolationError(RigidBodyError):
    """A collaborator supplied state that breaks a kinematic invariant."""
