"""Pattern construction and editing.

A WeekPattern is built once per copy operation, either from a source
employee's shifts or from the salon's opening hours, and is then edited in
place by the caller before it is handed to the batch orchestrator. The
builders never look at the targets: the same pattern is reused against
every target employee.
"""

from typing import Callable, Iterable, Optional

from shiftcopy.domain.models import (
    DayPattern,
    ExistingShift,
    Interval,
    WeekPattern,
    check_iso_weekday,
)

OpeningHoursLookup = Callable[[int], Optional[Interval]]

DEFAULT_INTERVAL = Interval.from_strings("09:00", "17:00")


def from_shifts(employee_id: str, shifts: Iterable[ExistingShift]) -> WeekPattern:
    """Build a pattern from an employee's existing shifts.

    Shifts of other employees are ignored, so the full salon snapshot can be
    passed in. A weekday is enabled iff the employee has at least one shift
    on it. Intervals are copied in input order.

    Args:
        employee_id: The source employee.
        shifts: Existing shifts (any employees).

    Returns:
        A new WeekPattern independent of the shift records.
    """
    pattern = WeekPattern()
    for shift in shifts:
        if shift.employee_id != employee_id:
            continue
        day = pattern[shift.weekday]
        day.intervals.append(Interval(start=shift.interval.start, end=shift.interval.end))
        day.enabled = True
    return pattern


def from_opening_hours(lookup: OpeningHoursLookup) -> WeekPattern:
    """Build a pattern from opening hours.

    Args:
        lookup: Called with each ISO weekday; returns the opening interval
            or None when the salon is closed that day.

    Returns:
        A pattern with one interval on every open day.
    """
    pattern = WeekPattern()
    for weekday, day in pattern.items():
        interval = lookup(weekday)
        if interval is not None:
            day.enabled = True
            day.intervals = [interval]
    return pattern


def toggle_day(pattern: WeekPattern, weekday: int) -> None:
    """Flip a day between enabled and disabled, keeping its intervals."""
    day = pattern[weekday]
    day.enabled = not day.enabled


def add_interval(
    pattern: WeekPattern,
    weekday: int,
    interval: Interval = DEFAULT_INTERVAL,
) -> None:
    """Append an interval to a day and enable it."""
    day = pattern[weekday]
    day.intervals.append(interval)
    day.enabled = True


def update_interval(
    pattern: WeekPattern,
    weekday: int,
    index: int,
    start: Optional[str] = None,
    end: Optional[str] = None,
) -> Interval:
    """Change one end of an interval.

    The interval is rebuilt, so an edit that would leave ``end <= start``
    raises InvalidIntervalError and the pattern is left untouched.

    Returns:
        The new interval.
    """
    day = pattern[weekday]
    current = day.intervals[index]
    updated = Interval(
        start=start if start is not None else current.start,
        end=end if end is not None else current.end,
    )
    day.intervals[index] = updated
    return updated


def remove_interval(pattern: WeekPattern, weekday: int, index: int) -> None:
    """Remove an interval. A day left without intervals is disabled."""
    day = pattern[weekday]
    del day.intervals[index]
    day.enabled = bool(day.intervals)


def copy_monday_to_rest(pattern: WeekPattern) -> None:
    """Copy Monday's intervals onto every other enabled day.

    Disabled days stay disabled. Nothing happens if Monday has no intervals.
    """
    monday = pattern[1]
    if not monday.intervals:
        return
    for weekday, day in pattern.items():
        if weekday == 1 or not day.enabled:
            continue
        pattern[weekday] = DayPattern(enabled=True, intervals=list(monday.intervals))


def clear_day(pattern: WeekPattern, weekday: int) -> None:
    """Disable a day and drop its intervals."""
    pattern[check_iso_weekday(weekday)] = DayPattern()
