"""Week pattern construction, editing and hour totals."""

from shiftcopy.patterns.builder import (
    add_interval,
    clear_day,
    copy_monday_to_rest,
    from_opening_hours,
    from_shifts,
    remove_interval,
    toggle_day,
    update_interval,
)
from shiftcopy.patterns.hours import EmployeeStats, calc_hours, employee_stats

__all__ = [
    # Builders
    "from_opening_hours",
    "from_shifts",
    # Editing
    "add_interval",
    "clear_day",
    "copy_monday_to_rest",
    "remove_interval",
    "toggle_day",
    "update_interval",
    # Hours
    "EmployeeStats",
    "calc_hours",
    "employee_stats",
]
