"""Hour totals for patterns and employees."""

import math
from dataclasses import dataclass
from typing import Iterable

from shiftcopy.domain.models import ExistingShift, WeekPattern


def round_hours(minutes: int) -> float:
    """Convert minutes to hours rounded half-up to one decimal place."""
    return math.floor(minutes / 6 + 0.5) / 10


def calc_hours(pattern: WeekPattern) -> float:
    """Total weekly hours of a pattern.

    Only enabled days count. The value is informational and does not gate
    any operation.
    """
    total_minutes = sum(
        interval.duration_minutes
        for _, day in pattern.items()
        for interval in day.active_intervals()
    )
    return round_hours(total_minutes)


@dataclass(frozen=True)
class EmployeeStats:
    """Weekly hours and number of working days of one employee."""

    hours: float = 0.0
    days: int = 0


def employee_stats(shifts: Iterable[ExistingShift]) -> dict[str, EmployeeStats]:
    """Summarize existing shifts per employee.

    Employees without shifts are absent from the result.
    """
    minutes: dict[str, int] = {}
    days: dict[str, set[int]] = {}
    for shift in shifts:
        minutes[shift.employee_id] = (
            minutes.get(shift.employee_id, 0) + shift.interval.duration_minutes
        )
        days.setdefault(shift.employee_id, set()).add(shift.weekday)

    return {
        employee_id: EmployeeStats(
            hours=round_hours(total),
            days=len(days[employee_id]),
        )
        for employee_id, total in minutes.items()
    }
