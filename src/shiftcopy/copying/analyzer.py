"""Conflict analysis of a week pattern against one target employee.

Every active interval of the pattern is classified as one of:

- create: the interval becomes a new shift
- skip_dupe: an identical interval already exists (benign)
- skip_overlap: the interval overlaps an existing one (a real conflict)

Under the additive strategy the comparison is against the target's
existing shifts on the same weekday. Under the replace strategy those
shifts are cleared before insertion, so each interval is only compared
against the intervals already accepted for the same day of the pattern.
Classification is order dependent there: the first interval wins.
"""

import logging
from typing import Iterable, Sequence, Union

from shiftcopy.domain.models import (
    CopyStrategy,
    DayDetail,
    DetailAction,
    ExistingShift,
    Interval,
    TargetAnalysis,
    WeekPattern,
)

logger = logging.getLogger(__name__)


def classify_interval(interval: Interval, others: Iterable[Interval]) -> DetailAction:
    """Classify an interval against a set of intervals on the same day.

    Duplicates take precedence over overlaps.
    """
    others = list(others)
    if any(interval.is_duplicate(other) for other in others):
        return DetailAction.SKIP_DUPE
    if any(interval.overlaps(other) for other in others):
        return DetailAction.SKIP_OVERLAP
    return DetailAction.CREATE


def accept_interval(
    interval: Interval,
    accepted: tuple[Interval, ...],
) -> tuple[DetailAction, tuple[Interval, ...]]:
    """Classify an interval against the intervals accepted so far for a day.

    Args:
        interval: The interval to classify.
        accepted: Intervals of the same day already classified as create.

    Returns:
        Tuple of (action, accepted intervals after this step).
    """
    action = classify_interval(interval, accepted)
    if action is DetailAction.CREATE:
        return action, accepted + (interval,)
    return action, accepted


class ConflictAnalyzer:
    """Classifies a pattern's intervals for a single target.

    The analyzer is pure: it never mutates the pattern or the existing
    shifts, and the same inputs always produce the same analysis.

    Example:
        >>> analyzer = ConflictAnalyzer()
        >>> analysis = analyzer.analyse("E2", pattern, shifts, CopyStrategy.ADDITIVE)
        >>> analysis.to_create, analysis.to_skip, analysis.conflicts
        (4, 1, 0)
    """

    def analyse(
        self,
        target_employee_id: str,
        pattern: WeekPattern,
        existing_shifts: Iterable[ExistingShift],
        strategy: Union[CopyStrategy, str],
    ) -> TargetAnalysis:
        """Analyse the pattern against one target's existing shifts.

        Args:
            target_employee_id: The employee receiving the pattern.
            pattern: The pattern to copy.
            existing_shifts: Existing shifts. Shifts of other employees are
                ignored.
            strategy: Merge strategy.

        Returns:
            TargetAnalysis with one detail row per active interval.
        """
        strategy = CopyStrategy(strategy)
        target_shifts = [s for s in existing_shifts if s.employee_id == target_employee_id]

        details: list[DayDetail] = []
        for weekday, day in pattern.items():
            intervals = day.active_intervals()
            if not intervals:
                continue

            if strategy is CopyStrategy.REPLACE:
                details.extend(self._classify_replace(weekday, intervals))
            else:
                existing_on_day = [s.interval for s in target_shifts if s.weekday == weekday]
                details.extend(self._classify_additive(weekday, intervals, existing_on_day))

        analysis = TargetAnalysis(employee_id=target_employee_id, details=details)
        logger.debug(
            "Analysed %s (%s): create=%d skip=%d conflicts=%d",
            target_employee_id,
            strategy.value,
            analysis.to_create,
            analysis.to_skip,
            analysis.conflicts,
        )
        return analysis

    def _classify_additive(
        self,
        weekday: int,
        intervals: Sequence[Interval],
        existing_on_day: Sequence[Interval],
    ) -> list[DayDetail]:
        """Classify each interval against the target's shifts on that weekday."""
        return [
            DayDetail(
                weekday=weekday,
                action=classify_interval(interval, existing_on_day),
                intervals=(interval,),
            )
            for interval in intervals
        ]

    def _classify_replace(
        self,
        weekday: int,
        intervals: Sequence[Interval],
    ) -> list[DayDetail]:
        """Classify each interval against those already accepted for the day."""
        details = []
        accepted: tuple[Interval, ...] = ()
        for interval in intervals:
            action, accepted = accept_interval(interval, accepted)
            details.append(DayDetail(weekday=weekday, action=action, intervals=(interval,)))
        return details


def analyse(
    target_employee_id: str,
    pattern: WeekPattern,
    existing_shifts: Iterable[ExistingShift],
    strategy: Union[CopyStrategy, str],
) -> TargetAnalysis:
    """Module-level shortcut for ConflictAnalyzer().analyse()."""
    return ConflictAnalyzer().analyse(target_employee_id, pattern, existing_shifts, strategy)
