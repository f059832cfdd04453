"""Error kinds raised by the price series pipeline.

All of them subclass ``ValueError`` so callers that only guard against bad
input values keep working.
"""

from __future__ import annotations


class PipelineError(ValueError):
    """Base class for terminal pipeline errors."""


class EmptyInputError(PipelineError):
    """No observations were provided (or none survived date parsing)."""


class AllMissingError(PipelineError):
    """The series has no known value to carry into its gaps."""


class InvalidSplitError(PipelineError):
    """Split index outside the open interval (0, len(series))."""


class MismatchedLengthError(PipelineError):
    """Actual and predicted sequences differ in length."""


class InsufficientWarmupError(PipelineError):
    """Window, lag count or seasonal cycle longer than the available history."""
