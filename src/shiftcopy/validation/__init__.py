"""Validation module for copy requests."""

from shiftcopy.validation.validator import (
    PatternValidator,
    ValidationError,
    ValidationErrorType,
    ValidationResult,
)

__all__ = [
    "PatternValidator",
    "ValidationError",
    "ValidationErrorType",
    "ValidationResult",
]
