"""
Error taxonomy for the recommendation core.

Only InvalidContext ever reaches a caller of the engine. InvalidArm and
PersistenceFailure are raised by the lower layers and absorbed (logged) by
RecommendationEngine.
"""

from __future__ import annotations


class FocusEngineError(Exception):
    """Base class for all engine errors."""


class InvalidContext(FocusEngineError, ValueError):
    """A required context field is missing, empty or not a known value."""


class InvalidArm(FocusEngineError, ValueError):
    """A duration is non-positive or not present in the arm set it was used with."""

    def __init__(self, duration, message: str = ""):
        self.duration = duration
        super().__init__(message or f"invalid arm duration: {duration!r}")


class PersistenceFailure(FocusEngineError, RuntimeError):
    """Loading or saving the model snapshot failed."""
