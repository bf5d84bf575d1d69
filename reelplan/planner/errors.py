"""
Planning errors.

Every planning failure is a PlanningError carrying the offending field name
and value so callers can render a precise message.  Planning is pure and
deterministic, so these are never retried.

Render execution failures live in renderer.ffmpeg_runner
(RenderExecutionError) and are never mixed with these.
"""
from __future__ import annotations

from typing import Any, Optional


class PlanningError(Exception):
    """Base class for every error raised while building a RenderPlan."""

    def __init__(self, message: str, field: Optional[str] = None, value: Any = None) -> None:
        super().__init__(message)
        self.message = message
        self.field = field
        self.value = value

    def to_dict(self) -> dict:
        return {
            "error": type(self).__name__,
            "message": self.message,
            "field": self.field,
            "value": self.value,
        }


class EmptyInputError(PlanningError):
    """No visual sources supplied."""


class InvalidDurationError(PlanningError):
    """Per-image duration is not positive."""


class InvalidFitModeError(PlanningError):
    """Fit mode is neither 'cover' nor 'contain'."""


class InvalidCaptionWindowError(PlanningError):
    """Caption end time does not exceed its start time."""


class MissingRequiredFieldError(PlanningError):
    """A field required by the chosen flow is absent."""


class InvalidRequestError(PlanningError):
    """A request field has the wrong type or an out-of-range value."""


class AssetNotFoundError(PlanningError):
    """A source reference does not resolve to a readable local file."""
