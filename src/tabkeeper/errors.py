"""Normalized failure signals for the supervisory core.

Hosts map their own exceptions into these so the controller's recovery
logic and the supervisor's restart logic work the same for every host.
"""
from enum import Enum


class FailureKind(Enum):
    """Normalized failure kinds that hosts must map host-specific errors into."""
    CRASHED = "crashed"             # renderer process died
    UNRESPONSIVE = "unresponsive"   # renderer alive but hung
    LOAD_FAILED = "load_failed"     # navigation did not commit
    DESTROYED = "destroyed"         # surface already torn down
    SPAWN_FAILED = "spawn_failed"   # child UI process could not start

    @property
    def recoverable(self) -> bool:
        """True if reloading the same surface in place can fix it."""
        return self in (FailureKind.CRASHED, FailureKind.UNRESPONSIVE)


class ShellError(Exception):
    """Exception carrying a normalized FailureKind."""

    def __init__(self, kind: FailureKind, message: str = ""):
        self.kind = kind
        super().__init__(message or kind.value)
