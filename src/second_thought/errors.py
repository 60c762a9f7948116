"""Error taxonomy for the decision lifecycle."""
from __future__ import annotations


class SecondThoughtError(Exception):
    """Base class for all lifecycle errors."""


class ValidationError(SecondThoughtError):
    """Raised when user input cannot leave the draft stage."""


class InvalidStateError(SecondThoughtError):
    """Raised when an operation is invoked in the wrong lifecycle phase."""


class PersistenceError(SecondThoughtError):
    """Raised when the decision store cannot be read or written."""


class NotificationDeliveryError(SecondThoughtError):
    """Raised by notifiers; never propagated past the engine."""


__all__ = [
    "SecondThoughtError",
    "ValidationError",
    "InvalidStateError",
    "PersistenceError",
    "NotificationDeliveryError",
]
