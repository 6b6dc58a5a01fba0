"""Step-by-step copy session.

A CopySession drives one run of the copy wizard:

    SOURCE -> PATTERN -> TARGETS -> RESULT

The caller picks a source (an employee or the opening hours), edits the
resulting pattern, selects targets and a strategy, reviews the dry run and
finally applies once. Analyses are recomputed from the current state every
time they are requested and have no side effects.
"""

import logging
from enum import Enum
from typing import Iterable, Optional, Union

from shiftcopy.copying.orchestrator import CopyOrchestrator
from shiftcopy.domain.models import (
    ApplyResult,
    CopyStrategy,
    CopySummary,
    Employee,
    OpeningHours,
    TargetAnalysis,
    WeekPattern,
)
from shiftcopy.exceptions import SessionStateError
from shiftcopy.patterns.builder import from_opening_hours, from_shifts
from shiftcopy.patterns.hours import calc_hours, employee_stats
from shiftcopy.validation.validator import PatternValidator, ValidationResult

logger = logging.getLogger(__name__)


class SessionStep(Enum):
    """Steps of the copy wizard."""

    SOURCE = "source"
    PATTERN = "pattern"
    TARGETS = "targets"
    RESULT = "result"


class SourceType(Enum):
    """Where the pattern came from."""

    EMPLOYEE = "employee"
    OPENING_HOURS = "opening_hours"


class CopySession:
    """State of one copy wizard run.

    Example:
        >>> session = CopySession(orchestrator, employees, opening_hours)
        >>> session.select_employee_source("E1")
        >>> session.proceed_to_targets()
        >>> session.select_all_targets()
        >>> session.summary().total_create
        12
        >>> result = await session.apply()
    """

    def __init__(
        self,
        orchestrator: CopyOrchestrator,
        employees: Iterable[Employee],
        opening_hours: Optional[OpeningHours] = None,
        validator: Optional[PatternValidator] = None,
    ):
        self.orchestrator = orchestrator
        self.employees = list(employees)
        self.opening_hours = opening_hours
        self.validator = validator or PatternValidator()

        self.step = SessionStep.SOURCE
        self.source_type: Optional[SourceType] = None
        self.source_employee_id: Optional[str] = None
        self.pattern = WeekPattern()
        self.selected_targets: list[str] = []
        self.strategy = CopyStrategy.ADDITIVE
        self.apply_result: Optional[ApplyResult] = None

    def _require(self, *steps: SessionStep) -> None:
        if self.step not in steps:
            expected = ", ".join(s.value for s in steps)
            raise SessionStateError(
                f"Operation not allowed in step '{self.step.value}' (expected {expected})"
            )

    # Source selection

    def select_employee_source(self, employee_id: str) -> WeekPattern:
        """Use an employee's shifts as the pattern source."""
        self._require(SessionStep.SOURCE, SessionStep.PATTERN)
        if employee_id not in {e.id for e in self.employees}:
            raise ValueError(f"Unknown employee ID: {employee_id}")

        self.source_type = SourceType.EMPLOYEE
        self.source_employee_id = employee_id
        self.pattern = from_shifts(employee_id, self.orchestrator.shifts)
        if employee_id in self.selected_targets:
            self.selected_targets.remove(employee_id)
        self.step = SessionStep.PATTERN
        return self.pattern

    def select_opening_hours_source(self) -> WeekPattern:
        """Use the salon's opening hours as the pattern source."""
        self._require(SessionStep.SOURCE, SessionStep.PATTERN)
        if self.opening_hours is None:
            raise SessionStateError("No opening hours configured for this session")

        self.source_type = SourceType.OPENING_HOURS
        self.source_employee_id = None
        self.pattern = from_opening_hours(self.opening_hours.lookup)
        self.step = SessionStep.PATTERN
        return self.pattern

    # Navigation

    def proceed_to_targets(self) -> None:
        """Move from pattern editing to target selection."""
        self._require(SessionStep.PATTERN)
        if not self.pattern.has_valid_pattern():
            raise SessionStateError("Pattern has no enabled day with intervals")
        self.step = SessionStep.TARGETS

    def back(self) -> None:
        """Return to the previous step."""
        self._require(SessionStep.PATTERN, SessionStep.TARGETS)
        if self.step is SessionStep.TARGETS:
            self.step = SessionStep.PATTERN
        else:
            self.step = SessionStep.SOURCE

    # Target selection

    def available_targets(self) -> list[Employee]:
        """Employees that may receive the pattern (everyone but the source employee)."""
        if self.source_type is SourceType.EMPLOYEE:
            return [e for e in self.employees if e.id != self.source_employee_id]
        return list(self.employees)

    def search(self, query: str) -> list[Employee]:
        """Filter available targets by name, case-insensitively."""
        available = self.available_targets()
        query = query.strip().lower()
        if not query:
            return available
        return [e for e in available if query in e.display_name.lower()]

    def toggle_target(self, employee_id: str) -> None:
        if employee_id in self.selected_targets:
            self.selected_targets.remove(employee_id)
            return
        if employee_id not in {e.id for e in self.available_targets()}:
            raise ValueError(f"Employee {employee_id} is not an available target")
        self.selected_targets.append(employee_id)

    def select_all_targets(self) -> None:
        self.selected_targets = [e.id for e in self.available_targets()]

    def select_no_targets(self) -> None:
        self.selected_targets = []

    def select_targets_without_shifts(self) -> None:
        """Select every available target that currently has no shifts."""
        stats = employee_stats(self.orchestrator.shifts)
        self.selected_targets = [
            e.id for e in self.available_targets()
            if e.id not in stats or stats[e.id].hours == 0
        ]

    def set_strategy(self, strategy: Union[CopyStrategy, str]) -> None:
        self.strategy = CopyStrategy(strategy)

    # Dry run

    def pattern_hours(self) -> float:
        return calc_hours(self.pattern)

    def validate(self) -> ValidationResult:
        return self.validator.validate(
            self.pattern,
            self.selected_targets,
            source_employee_id=self.source_employee_id,
            known_employee_ids=[e.id for e in self.employees],
        )

    def analyses(self) -> list[TargetAnalysis]:
        return self.orchestrator.analyse_all(self.selected_targets, self.pattern, self.strategy)

    def summary(self) -> CopySummary:
        return self.orchestrator.get_summary(self.analyses())

    def existing_shift_count(self) -> int:
        """Existing shifts held by the selected targets.

        Shown to the operator before a replace, since those shifts may be
        deleted.
        """
        selected = set(self.selected_targets)
        return sum(1 for s in self.orchestrator.shifts if s.employee_id in selected)

    # Commit

    async def apply(self) -> ApplyResult:
        """Commit the copy. Allowed exactly once per session."""
        self._require(SessionStep.TARGETS)
        validation = self.validate()
        if not validation.is_valid:
            raise SessionStateError(
                "Cannot apply: " + "; ".join(str(e) for e in validation.errors)
            )

        logger.info(
            "Session apply: source=%s targets=%d strategy=%s",
            self.source_employee_id or (self.source_type.value if self.source_type else None),
            len(self.selected_targets),
            self.strategy.value,
        )
        self.apply_result = await self.orchestrator.apply(
            list(self.selected_targets), self.pattern, self.strategy
        )
        self.step = SessionStep.RESULT
        return self.apply_result

    def retry_session(self) -> "CopySession":
        """Start a new session for the targets that failed.

        The new session starts at target selection with a copy of this
        session's pattern and strategy. Its dry run reads the orchestrator's
        current snapshot.
        """
        self._require(SessionStep.RESULT)
        session = CopySession(
            self.orchestrator,
            self.employees,
            self.opening_hours,
            self.validator,
        )
        session.source_type = self.source_type
        session.source_employee_id = self.source_employee_id
        session.pattern = self.pattern.copy()
        session.strategy = self.strategy
        session.selected_targets = list(self.apply_result.failed_targets)
        session.step = SessionStep.TARGETS
        return session
