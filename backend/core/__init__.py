from .errors import (
    PipelineError,
    EmptyInputError,
    AllMissingError,
    InvalidSplitError,
    MismatchedLengthError,
    InsufficientWarmupError,
)

__all__ = [
    "PipelineError",
    "EmptyInputError",
    "AllMissingError",
    "InvalidSplitError",
    "MismatchedLengthError",
    "InsufficientWarmupError",
]
