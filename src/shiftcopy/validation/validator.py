"""Validation of copy requests.

Intervals themselves are validated when they are constructed, so a
WeekPattern can never hold an interval with end <= start. This module
checks the request as a whole before it is analysed or applied.
"""

from dataclasses import dataclass, field
from enum import Enum
from typing import Iterable, Optional

from shiftcopy.domain.models import WEEKDAY_NAMES, WeekPattern


class ValidationErrorType(Enum):
    """Types of validation errors."""

    EMPTY_PATTERN = "empty_pattern"
    NO_TARGETS = "no_targets"
    SOURCE_IS_TARGET = "source_is_target"
    DUPLICATE_TARGET = "duplicate_target"
    UNKNOWN_TARGET = "unknown_target"


@dataclass
class ValidationError:
    """A single validation error."""

    error_type: ValidationErrorType
    message: str
    employee_id: Optional[str] = None
    weekday: Optional[int] = None

    def __str__(self) -> str:
        parts = [f"[{self.error_type.value}]"]
        if self.employee_id:
            parts.append(f"Employee {self.employee_id}:")
        parts.append(self.message)
        return " ".join(parts)


@dataclass
class ValidationResult:
    """Result of validating a copy request."""

    is_valid: bool = True
    errors: list[ValidationError] = field(default_factory=list)
    warnings: list[str] = field(default_factory=list)

    def add_error(self, error: ValidationError) -> None:
        """Add an error and mark as invalid."""
        self.errors.append(error)
        self.is_valid = False

    def add_warning(self, warning: str) -> None:
        """Add a warning (doesn't affect validity)."""
        self.warnings.append(warning)


class PatternValidator:
    """Checks a pattern and target selection before a copy.

    Example:
        >>> validator = PatternValidator()
        >>> result = validator.validate(pattern, ["E2", "E3"], source_employee_id="E1")
        >>> if not result.is_valid:
        ...     for error in result.errors:
        ...         print(error)
    """

    def validate(
        self,
        pattern: WeekPattern,
        target_ids: Iterable[str],
        source_employee_id: Optional[str] = None,
        known_employee_ids: Optional[Iterable[str]] = None,
    ) -> ValidationResult:
        """Validate a complete copy request.

        Args:
            pattern: The pattern to copy.
            target_ids: Selected target employees.
            source_employee_id: Source employee, if the pattern came from one.
            known_employee_ids: When given, targets must be among these.

        Returns:
            ValidationResult with is_valid flag, errors and warnings.
        """
        result = ValidationResult()
        self._validate_pattern(pattern, result)
        self._validate_targets(list(target_ids), source_employee_id, known_employee_ids, result)
        return result

    def validate_pattern(self, pattern: WeekPattern) -> ValidationResult:
        """Validate only the pattern."""
        result = ValidationResult()
        self._validate_pattern(pattern, result)
        return result

    def _validate_pattern(self, pattern: WeekPattern, result: ValidationResult) -> None:
        if not pattern.has_valid_pattern():
            result.add_error(
                ValidationError(
                    error_type=ValidationErrorType.EMPTY_PATTERN,
                    message="Pattern has no enabled day with intervals",
                )
            )

        for weekday, day in pattern.items():
            if day.enabled and not day.intervals:
                result.add_warning(
                    f"{WEEKDAY_NAMES[weekday]} is enabled but has no intervals"
                    " (replace clears its existing shifts)"
                )

            intervals = day.active_intervals()
            for i, first in enumerate(intervals):
                for second in intervals[i + 1:]:
                    if first.overlaps(second):
                        result.add_warning(
                            f"{WEEKDAY_NAMES[weekday]}: {first} overlaps {second}"
                        )

    def _validate_targets(
        self,
        target_ids: list[str],
        source_employee_id: Optional[str],
        known_employee_ids: Optional[Iterable[str]],
        result: ValidationResult,
    ) -> None:
        if not target_ids:
            result.add_error(
                ValidationError(
                    error_type=ValidationErrorType.NO_TARGETS,
                    message="No target employees selected",
                )
            )
            return

        known = set(known_employee_ids) if known_employee_ids is not None else None
        seen: set[str] = set()
        for target_id in target_ids:
            if target_id in seen:
                result.add_error(
                    ValidationError(
                        error_type=ValidationErrorType.DUPLICATE_TARGET,
                        message="Target selected more than once",
                        employee_id=target_id,
                    )
                )
            seen.add(target_id)

            if source_employee_id is not None and target_id == source_employee_id:
                result.add_error(
                    ValidationError(
                        error_type=ValidationErrorType.SOURCE_IS_TARGET,
                        message="Source employee cannot be a target",
                        employee_id=target_id,
                    )
                )

            if known is not None and target_id not in known:
                result.add_error(
                    ValidationError(
                        error_type=ValidationErrorType.UNKNOWN_TARGET,
                        message="Unknown employee ID",
                        employee_id=target_id,
                    )
                )
