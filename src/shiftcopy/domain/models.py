"""Domain models for the shift copy engine.

This module contains the core value types used throughout the engine:
time intervals, day and week patterns, existing shift records, and the
analysis and apply results produced by the batch orchestrator.

Weekdays are ISO weekdays (1=Monday ... 7=Sunday) everywhere inside the
engine. Persisted records use the database convention (0=Sunday ...
6=Saturday) and are converted at the repository boundary.
"""

from dataclasses import dataclass, field
from datetime import time
from enum import Enum
from typing import Iterator, Optional, Union

from shiftcopy.exceptions import InvalidIntervalError

ISO_WEEKDAYS = (1, 2, 3, 4, 5, 6, 7)

WEEKDAY_NAMES = {
    1: "Mon",
    2: "Tue",
    3: "Wed",
    4: "Thu",
    5: "Fri",
    6: "Sat",
    7: "Sun",
}

TimeLike = Union[str, time]

MINUTES_PER_DAY = 24 * 60
END_OF_DAY = "24:00"


def check_iso_weekday(weekday: int) -> int:
    """Return weekday unchanged if it is an ISO weekday, else raise ValueError."""
    if weekday not in ISO_WEEKDAYS:
        raise ValueError(f"ISO weekday must be 1-7, got {weekday!r}")
    return weekday


def iso_to_db_weekday(weekday: int) -> int:
    """Convert an ISO weekday (1=Mon..7=Sun) to the database convention (0=Sun..6=Sat)."""
    check_iso_weekday(weekday)
    return 0 if weekday == 7 else weekday


def db_to_iso_weekday(weekday: int) -> int:
    """Convert a database weekday (0=Sun..6=Sat) to an ISO weekday."""
    if weekday not in range(7):
        raise ValueError(f"Database weekday must be 0-6, got {weekday!r}")
    return 7 if weekday == 0 else weekday


def parse_time(value: TimeLike, end_of_day: bool = False) -> time:
    """Parse a wall-clock time.

    Accepts ``datetime.time`` objects and ``HH:MM`` or ``HH:MM:SS`` strings.
    Seconds are validated and then dropped, since shifts are scheduled at
    minute granularity.

    Args:
        value: The time to parse.
        end_of_day: Also accept ``24:00`` (as stored by Postgres ``time``
            columns). It is returned as ``time(0, 0)``, which an interval
            end reads as midnight at the end of the day.

    Raises:
        InvalidIntervalError: If the value is not a valid time of day.
    """
    if isinstance(value, time):
        return value.replace(second=0, microsecond=0, tzinfo=None)

    if not isinstance(value, str):
        raise InvalidIntervalError(f"Unsupported time value: {value!r}")

    parts = value.strip().split(":")
    if len(parts) not in (2, 3):
        raise InvalidIntervalError(f"Time must be HH:MM or HH:MM:SS, got {value!r}")
    try:
        hours, minutes = int(parts[0]), int(parts[1])
        seconds = int(parts[2]) if len(parts) == 3 else 0
        if not 0 <= seconds <= 59:
            raise ValueError(seconds)
        if end_of_day and hours == 24 and minutes == 0 and seconds == 0:
            return time(0, 0)
        return time(hour=hours, minute=minutes)
    except ValueError:
        raise InvalidIntervalError(f"Invalid time of day: {value!r}") from None


def format_time(t: time) -> str:
    """Format a time as HH:MM."""
    return t.strftime("%H:%M")


def format_end_time(t: time) -> str:
    """Format an interval end as HH:MM, with midnight written as 24:00."""
    return END_OF_DAY if t == time(0, 0) else format_time(t)



def time_to_minutes(t: time) -> int:
    """Minutes from midnight."""
    return t.hour * 60 + t.minute


@dataclass(frozen=True)
class Interval:
    """A same-day time interval.

    Intervals never cross midnight: ``start`` must be strictly before ``end``.
    Both ends may be given as ``datetime.time`` or as ``HH:MM`` strings. An
    interval may end at midnight, given as ``"24:00"`` and stored as
    ``time(0, 0)`` in ``end``; ``end_minutes`` is then 1440.

    Attributes:
        start: Start of the interval (inclusive).
        end: End of the interval (exclusive).
    """

    start: time
    end: time

    def __post_init__(self):
        object.__setattr__(self, "start", parse_time(self.start))
        object.__setattr__(self, "end", parse_time(self.end, end_of_day=True))
        if self.end_minutes <= self.start_minutes:
            raise InvalidIntervalError(
                f"Interval end {format_end_time(self.end)} must be after "
                f"start {format_time(self.start)}"
            )

    @classmethod
    def from_strings(cls, start: str, end: str) -> "Interval":
        """Create an interval from HH:MM strings."""
        return cls(start=start, end=end)

    @property
    def start_minutes(self) -> int:
        """Minutes from midnight when the interval starts."""
        return time_to_minutes(self.start)

    @property
    def end_minutes(self) -> int:
        """Minutes from midnight when the interval ends (1440 for midnight)."""
        return time_to_minutes(self.end) or MINUTES_PER_DAY

    @property
    def duration_minutes(self) -> int:
        """Length of the interval in minutes."""
        return self.end_minutes - self.start_minutes

    def overlaps(self, other: "Interval") -> bool:
        """Check if two intervals overlap. Touching endpoints do not overlap."""
        return self.start_minutes < other.end_minutes and other.start_minutes < self.end_minutes

    def is_duplicate(self, other: "Interval") -> bool:
        """Check if both endpoints are equal."""
        return self.start == other.start and self.end == other.end

    def to_dict(self) -> dict:
        return {"start": format_time(self.start), "end": format_end_time(self.end)}

    def __str__(self) -> str:
        return f"{format_time(self.start)}-{format_end_time(self.end)}"


def overlaps(a: Interval, b: Interval) -> bool:
    """True iff ``a.start < b.end and b.start < a.end``."""
    return a.overlaps(b)


def is_duplicate(a: Interval, b: Interval) -> bool:
    """True iff both endpoints of ``a`` and ``b`` are equal."""
    return a.is_duplicate(b)


@dataclass
class DayPattern:
    """Proposed intervals for one weekday.

    Attributes:
        enabled: Whether the day takes part in the copy.
        intervals: Intervals in the order the caller entered them.
    """

    enabled: bool = False
    intervals: list[Interval] = field(default_factory=list)

    @property
    def is_active(self) -> bool:
        """True if the day is enabled and has at least one interval."""
        return self.enabled and bool(self.intervals)

    def active_intervals(self) -> list[Interval]:
        """Intervals that count for analysis. A disabled day contributes nothing."""
        if not self.enabled:
            return []
        return list(self.intervals)

    def copy(self) -> "DayPattern":
        return DayPattern(enabled=self.enabled, intervals=list(self.intervals))


@dataclass
class WeekPattern:
    """A weekly availability template with one slot per ISO weekday.

    All seven days are always present; a day that takes no part in the
    copy is simply disabled. Index with ISO weekdays::

        >>> pattern = WeekPattern()
        >>> pattern[1].enabled = True
        >>> pattern[1].intervals.append(Interval.from_strings("09:00", "17:00"))
    """

    days: list[DayPattern] = field(
        default_factory=lambda: [DayPattern() for _ in ISO_WEEKDAYS]
    )

    def __post_init__(self):
        if len(self.days) != len(ISO_WEEKDAYS):
            raise ValueError(f"WeekPattern needs exactly 7 days, got {len(self.days)}")

    def __getitem__(self, weekday: int) -> DayPattern:
        return self.days[check_iso_weekday(weekday) - 1]

    def __setitem__(self, weekday: int, day: DayPattern) -> None:
        self.days[check_iso_weekday(weekday) - 1] = day

    def items(self) -> Iterator[tuple[int, DayPattern]]:
        """Iterate (ISO weekday, DayPattern) pairs, Monday first."""
        return zip(ISO_WEEKDAYS, self.days)

    def enabled_weekdays(self) -> list[int]:
        """Weekdays that are enabled, with or without intervals."""
        return [weekday for weekday, day in self.items() if day.enabled]

    def active_weekdays(self) -> list[int]:
        """Weekdays that are enabled and have at least one interval."""
        return [weekday for weekday, day in self.items() if day.is_active]

    def has_valid_pattern(self) -> bool:
        """True if at least one day would produce shifts."""
        return bool(self.active_weekdays())

    def copy(self) -> "WeekPattern":
        return WeekPattern(days=[day.copy() for day in self.days])

    @classmethod
    def from_mapping(cls, mapping: dict[int, DayPattern]) -> "WeekPattern":
        """Build a pattern from a weekday mapping. Missing weekdays are disabled."""
        pattern = cls()
        for weekday, day in mapping.items():
            pattern[weekday] = day.copy()
        return pattern

    def to_dict(self) -> dict:
        return {
            str(weekday): {
                "enabled": day.enabled,
                "intervals": [iv.to_dict() for iv in day.intervals],
            }
            for weekday, day in self.items()
        }


@dataclass(frozen=True)
class ExistingShift:
    """A persisted weekly shift of one employee.

    Attributes:
        employee_id: Employee the shift belongs to.
        weekday: ISO weekday of the shift.
        interval: Time of the shift.
        shift_id: Identifier in the backing store, if known.
    """

    employee_id: str
    weekday: int
    interval: Interval
    shift_id: Optional[str] = None

    def __post_init__(self):
        check_iso_weekday(self.weekday)

    @classmethod
    def from_record(cls, record: dict) -> "ExistingShift":
        """Create from a database record (weekday 0=Sun..6=Sat)."""
        shift_id = record.get("id")
        return cls(
            employee_id=str(record["employee_id"]),
            weekday=db_to_iso_weekday(int(record["weekday"])),
            interval=Interval.from_strings(record["start_time"], record["end_time"]),
            shift_id=str(shift_id) if shift_id is not None else None,
        )

    def to_record(self) -> dict:
        """Convert to a database record (weekday 0=Sun..6=Sat)."""
        return {
            "id": self.shift_id,
            "employee_id": self.employee_id,
            "weekday": iso_to_db_weekday(self.weekday),
            "start_time": format_time(self.interval.start),
            "end_time": format_end_time(self.interval.end),
        }


class CopyStrategy(Enum):
    """How a copied pattern is merged with a target's existing shifts."""

    ADDITIVE = "additive"  # Keep existing shifts, add only non-conflicting intervals
    REPLACE = "replace"  # Clear existing shifts on the pattern's enabled weekdays first


class DetailAction(Enum):
    """Classification of one pattern interval for one target."""

    CREATE = "create"
    SKIP_DUPE = "skip_dupe"
    SKIP_OVERLAP = "skip_overlap"


@dataclass(frozen=True)
class DayDetail:
    """One classified interval of a target's analysis."""

    weekday: int
    action: DetailAction
    intervals: tuple[Interval, ...]

    @property
    def interval(self) -> Interval:
        return self.intervals[0]


@dataclass
class TargetAnalysis:
    """Dry-run classification of a pattern against one target employee.

    Attributes:
        employee_id: The target employee.
        details: One row per (weekday, interval), in pattern order.
    """

    employee_id: str
    details: list[DayDetail] = field(default_factory=list)

    def _count(self, action: DetailAction) -> int:
        return sum(1 for detail in self.details if detail.action is action)

    @property
    def to_create(self) -> int:
        """Number of intervals that would become new shifts."""
        return self._count(DetailAction.CREATE)

    @property
    def to_skip(self) -> int:
        """Number of intervals skipped as exact duplicates."""
        return self._count(DetailAction.SKIP_DUPE)

    @property
    def conflicts(self) -> int:
        """Number of intervals skipped because they overlap."""
        return self._count(DetailAction.SKIP_OVERLAP)

    def create_instructions(self) -> list[tuple[int, Interval]]:
        """(weekday, interval) pairs to persist for this target."""
        return [
            (detail.weekday, interval)
            for detail in self.details
            if detail.action is DetailAction.CREATE
            for interval in detail.intervals
        ]


@dataclass(frozen=True)
class CopySummary:
    """Totals across all target analyses."""

    total_create: int = 0
    total_skip: int = 0
    total_conflict: int = 0
    target_count: int = 0
    targets_with_changes: int = 0


@dataclass(frozen=True)
class TargetApplyResult:
    """Outcome of applying the pattern to one target.

    Attributes:
        employee_id: The target employee.
        created: Shifts actually committed for this target.
        skipped: Intervals skipped as duplicates or conflicts.
        error: Failure message, or None when the target succeeded.
        failed_step: Which step failed ("read", "delete" or "insert").
    """

    employee_id: str
    created: int = 0
    skipped: int = 0
    error: Optional[str] = None
    failed_step: Optional[str] = None

    @property
    def ok(self) -> bool:
        return self.error is None


@dataclass(frozen=True)
class ApplyResult:
    """Committed outcome of a batch copy."""

    created: int = 0
    skipped: int = 0
    per_target: tuple[TargetApplyResult, ...] = ()
    errors: tuple[str, ...] = ()

    @classmethod
    def from_targets(cls, results: list[TargetApplyResult]) -> "ApplyResult":
        """Aggregate per-target results, including partially failed targets."""
        errors = tuple(
            f"{(r.failed_step or 'copy').capitalize()} failed for {r.employee_id}: {r.error}"
            for r in results
            if not r.ok
        )
        return cls(
            created=sum(r.created for r in results),
            skipped=sum(r.skipped for r in results),
            per_target=tuple(results),
            errors=errors,
        )

    @property
    def failed_targets(self) -> list[str]:
        return [r.employee_id for r in self.per_target if not r.ok]


@dataclass(frozen=True)
class Employee:
    """An employee who can act as a copy source or target."""

    id: str
    full_name: str = ""

    @property
    def display_name(self) -> str:
        return self.full_name or self.id


@dataclass
class OpeningHours:
    """Salon opening hours keyed by ISO weekday. Closed days map to None."""

    hours: dict[int, Optional[Interval]] = field(default_factory=dict)

    def lookup(self, weekday: int) -> Optional[Interval]:
        return self.hours.get(check_iso_weekday(weekday))

    @classmethod
    def from_records(cls, records: list[dict]) -> "OpeningHours":
        """Create from database records (weekday 0=Sun..6=Sat).

        Records flagged ``is_closed`` or lacking open/close times are closed days.
        """
        hours: dict[int, Optional[Interval]] = {}
        for record in records:
            weekday = db_to_iso_weekday(int(record["weekday"]))
            open_time = record.get("open_time")
            close_time = record.get("close_time")
            if record.get("is_closed") or not open_time or not close_time:
                hours[weekday] = None
            else:
                hours[weekday] = Interval.from_strings(open_time, close_time)
        return cls(hours=hours)

    def to_records(self) -> list[dict]:
        records = []
        for weekday in ISO_WEEKDAYS:
            if weekday not in self.hours:
                continue
            interval = self.hours[weekday]
            records.append({
                "weekday": iso_to_db_weekday(weekday),
                "open_time": format_time(interval.start) if interval else None,
                "close_time": format_end_time(interval.end) if interval else None,
                "is_closed": interval is None,
            })
        return records
