"""Domain models and storage interfaces for shift copying."""

from shiftcopy.domain.models import (
    ApplyResult,
    CopyStrategy,
    CopySummary,
    DayDetail,
    DayPattern,
    DetailAction,
    Employee,
    ExistingShift,
    Interval,
    OpeningHours,
    TargetAnalysis,
    TargetApplyResult,
    WeekPattern,
    db_to_iso_weekday,
    is_duplicate,
    iso_to_db_weekday,
    overlaps,
)
from shiftcopy.domain.repository import (
    InMemoryShiftRepository,
    JsonShiftRepository,
    ShiftRepository,
)

__all__ = [
    # Models
    "ApplyResult",
    "CopyStrategy",
    "CopySummary",
    "DayDetail",
    "DayPattern",
    "DetailAction",
    "Employee",
    "ExistingShift",
    "Interval",
    "OpeningHours",
    "TargetAnalysis",
    "TargetApplyResult",
    "WeekPattern",
    # Interval predicates and weekday conversion
    "db_to_iso_weekday",
    "is_duplicate",
    "iso_to_db_weekday",
    "overlaps",
    # Repositories
    "InMemoryShiftRepository",
    "JsonShiftRepository",
    "ShiftRepository",
]
