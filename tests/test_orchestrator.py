"""Tests for batch analysis and apply."""

import asyncio

import pytest

from shiftcopy.copying.orchestrator import CopyConfig, CopyOrchestrator
from shiftcopy.domain.models import (
    CopyStrategy,
    DayPattern,
    ExistingShift,
    Interval,
    WeekPattern,
)
from shiftcopy.domain.repository import InMemoryShiftRepository
from shiftcopy.exceptions import RepositoryError


def iv(start: str, end: str) -> Interval:
    return Interval.from_strings(start, end)


class FlakyRepository(InMemoryShiftRepository):
    """In-memory repository that fails on request and records call order."""

    def __init__(
        self,
        shifts=None,
        fail_read_for=(),
        fail_delete_for=(),
        fail_insert_for=(),
        insert_limit=None,
    ):
        super().__init__(shifts)
        self.fail_read_for = set(fail_read_for)
        self.fail_delete_for = set(fail_delete_for)
        self.fail_insert_for = set(fail_insert_for)
        self.insert_limit = insert_limit or {}
        self.calls = []

    async def get_shifts_for_employee(self, employee_id):
        await asyncio.sleep(0)
        self.calls.append(("read", employee_id))
        if employee_id in self.fail_read_for:
            raise RepositoryError("connection lost")
        return await super().get_shifts_for_employee(employee_id)

    async def create_shift(self, employee_id, weekday, interval):
        await asyncio.sleep(0)
        self.calls.append(("insert", employee_id))
        if employee_id in self.fail_insert_for:
            raise RepositoryError("insert rejected")
        limit = self.insert_limit.get(employee_id)
        if limit is not None:
            if limit == 0:
                raise asyncio.TimeoutError()
            self.insert_limit[employee_id] = limit - 1
        return await super().create_shift(employee_id, weekday, interval)

    async def delete_shifts_for_employee_on_weekday(self, employee_id, weekday):
        await asyncio.sleep(0)
        self.calls.append(("delete", employee_id))
        if employee_id in self.fail_delete_for:
            raise RepositoryError("delete rejected")
        return await super().delete_shifts_for_employee_on_weekday(employee_id, weekday)


@pytest.fixture
def weekday_pattern():
    """Mon-Fri 09:00-17:00."""
    pattern = WeekPattern()
    for weekday in range(1, 6):
        pattern[weekday] = DayPattern(enabled=True, intervals=[iv("09:00", "17:00")])
    return pattern


@pytest.fixture
def existing():
    return [
        ExistingShift("E2", 1, iv("09:00", "17:00")),
        ExistingShift("E3", 2, iv("12:00", "20:00")),
        ExistingShift("E3", 6, iv("10:00", "14:00")),
    ]


def shifts_of(repository, employee_id):
    return sorted(
        (s.weekday, str(s.interval)) for s in repository.shifts if s.employee_id == employee_id
    )


class TestAnalyseAll:
    """Tests for the dry run."""

    def test_order_matches_targets(self, weekday_pattern, existing):
        orchestrator = CopyOrchestrator(InMemoryShiftRepository(existing), existing)
        analyses = orchestrator.analyse_all(["E3", "E1", "E2"], weekday_pattern, CopyStrategy.ADDITIVE)
        assert [a.employee_id for a in analyses] == ["E3", "E1", "E2"]

    def test_targets_are_independent(self, weekday_pattern, existing):
        orchestrator = CopyOrchestrator(InMemoryShiftRepository(existing), existing)
        alone = orchestrator.analyse_all(["E3"], weekday_pattern, CopyStrategy.ADDITIVE)
        together = orchestrator.analyse_all(["E2", "E3"], weekday_pattern, CopyStrategy.ADDITIVE)
        assert alone[0] == together[1]

    def test_summary_sums_counts(self, weekday_pattern, existing):
        orchestrator = CopyOrchestrator(InMemoryShiftRepository(existing), existing)
        analyses = orchestrator.analyse_all(["E1", "E2", "E3"], weekday_pattern, CopyStrategy.ADDITIVE)
        summary = orchestrator.get_summary(analyses)

        assert summary.total_create == sum(a.to_create for a in analyses) == 13
        assert summary.total_skip == 1
        assert summary.total_conflict == sum(a.conflicts for a in analyses) == 1
        assert summary.target_count == 3
        assert summary.targets_with_changes == 3

    def test_empty_inputs(self, existing):
        orchestrator = CopyOrchestrator(InMemoryShiftRepository(existing), existing)
        assert orchestrator.analyse_all([], WeekPattern(), CopyStrategy.ADDITIVE) == []
        summary = orchestrator.get_summary([])
        assert (summary.total_create, summary.total_skip, summary.total_conflict, summary.target_count) == (0, 0, 0, 0)

    def test_load_reads_snapshot(self, existing):
        orchestrator = asyncio.run(CopyOrchestrator.load(InMemoryShiftRepository(existing)))
        assert len(orchestrator.shifts) == 3


class TestApply:
    """Tests for committing a copy."""

    def test_additive_creates_missing_shifts(self, weekday_pattern, existing):
        repository = InMemoryShiftRepository(existing)
        orchestrator = CopyOrchestrator(repository, existing)

        result = asyncio.run(orchestrator.apply(["E2", "E3"], weekday_pattern, CopyStrategy.ADDITIVE))

        assert result.created == 8
        assert result.skipped == 2
        assert result.errors == ()
        assert [t.created for t in result.per_target] == [4, 4]
        assert (1, "09:00-17:00") in shifts_of(repository, "E3")
        assert (2, "12:00-20:00") in shifts_of(repository, "E3")
        assert len(shifts_of(repository, "E3")) == 6

    def test_replace_clears_only_pattern_weekdays(self, weekday_pattern, existing):
        repository = InMemoryShiftRepository(existing)
        orchestrator = CopyOrchestrator(repository, existing)

        result = asyncio.run(orchestrator.apply(["E3"], weekday_pattern, CopyStrategy.REPLACE))

        assert result.created == 5
        assert shifts_of(repository, "E3") == [
            (1, "09:00-17:00"),
            (2, "09:00-17:00"),
            (3, "09:00-17:00"),
            (4, "09:00-17:00"),
            (5, "09:00-17:00"),
            (6, "10:00-14:00"),
        ]

    def test_replace_deletes_before_insert(self, weekday_pattern, existing):
        repository = FlakyRepository(existing)
        orchestrator = CopyOrchestrator(repository, existing)

        asyncio.run(orchestrator.apply(["E3"], weekday_pattern, CopyStrategy.REPLACE))

        ops = [op for op, _ in repository.calls]
        assert ops == ["read"] + ["delete"] * 5 + ["insert"] * 5

    def test_failing_target_does_not_abort_batch(self, weekday_pattern, existing):
        repository = FlakyRepository(existing, fail_insert_for={"E1"})
        orchestrator = CopyOrchestrator(repository, existing)

        result = asyncio.run(orchestrator.apply(["E1", "E2"], weekday_pattern, CopyStrategy.ADDITIVE))

        assert [t.employee_id for t in result.per_target] == ["E1", "E2"]
        assert result.created > 0
        assert result.per_target[0].error == "insert rejected"
        assert result.per_target[0].failed_step == "insert"
        assert result.per_target[1].ok
        assert result.errors == ("Insert failed for E1: insert rejected",)

    def test_partial_failure_counts_committed_shifts(self, weekday_pattern):
        repository = FlakyRepository([], insert_limit={"E1": 2})
        orchestrator = CopyOrchestrator(repository, [])

        result = asyncio.run(orchestrator.apply(["E1", "E2"], weekday_pattern, CopyStrategy.ADDITIVE))

        assert result.per_target[0].created == 2
        assert result.per_target[0].error == "TimeoutError"
        assert result.created == 7
        assert len(repository.shifts) == 7

    def test_read_failure(self, weekday_pattern, existing):
        repository = FlakyRepository(existing, fail_read_for={"E2"})
        orchestrator = CopyOrchestrator(repository, existing)

        result = asyncio.run(orchestrator.apply(["E2", "E3"], weekday_pattern, CopyStrategy.ADDITIVE))

        assert result.per_target[0].failed_step == "read"
        assert result.per_target[0].created == 0
        assert result.per_target[1].created == 4
        assert result.errors == ("Read failed for E2: connection lost",)

    def test_delete_failure_skips_insert_for_that_target(self, weekday_pattern, existing):
        repository = FlakyRepository(existing, fail_delete_for={"E3"})
        orchestrator = CopyOrchestrator(repository, existing)

        result = asyncio.run(orchestrator.apply(["E3", "E2"], weekday_pattern, CopyStrategy.REPLACE))

        assert ("insert", "E3") not in repository.calls
        assert result.per_target[0].failed_step == "delete"
        assert result.per_target[1].created == 5
        assert shifts_of(repository, "E2") == [(d, "09:00-17:00") for d in range(1, 6)]

    def test_snapshot_refreshed_when_only_deletes_committed(self, weekday_pattern, existing):
        repository = FlakyRepository(existing, fail_insert_for={"E3"})
        orchestrator = CopyOrchestrator(repository, existing)

        result = asyncio.run(orchestrator.apply(["E3"], weekday_pattern, CopyStrategy.REPLACE))

        assert result.created == 0
        assert result.errors == ("Insert failed for E3: insert rejected",)
        assert orchestrator.shifts == repository.shifts
        assert shifts_of(repository, "E3") == [(6, "10:00-14:00")]

    def test_replace_clears_enabled_day_without_intervals(self, weekday_pattern, existing):
        weekday_pattern[6] = DayPattern(enabled=True, intervals=[])
        repository = InMemoryShiftRepository(existing)
        orchestrator = CopyOrchestrator(repository, existing)

        result = asyncio.run(orchestrator.apply(["E3"], weekday_pattern, CopyStrategy.REPLACE))

        assert result.created == 5
        assert (6, "10:00-14:00") not in shifts_of(repository, "E3")

    def test_replace_keeps_disabled_days(self, weekday_pattern, existing):
        weekday_pattern[6] = DayPattern(enabled=False, intervals=[iv("08:00", "12:00")])
        repository = InMemoryShiftRepository(existing)
        orchestrator = CopyOrchestrator(repository, existing)

        asyncio.run(orchestrator.apply(["E3"], weekday_pattern, CopyStrategy.REPLACE))

        assert (6, "10:00-14:00") in shifts_of(repository, "E3")

    def test_apply_rereads_existing_shifts(self, weekday_pattern):
        repository = InMemoryShiftRepository([])
        orchestrator = CopyOrchestrator(repository, [])
        asyncio.run(repository.create_shift("E1", 1, iv("09:00", "17:00")))

        result = asyncio.run(orchestrator.apply(["E1"], weekday_pattern, CopyStrategy.ADDITIVE))

        assert result.created == 4
        assert result.skipped == 1

    def test_snapshot_refreshed_after_apply(self, weekday_pattern):
        repository = InMemoryShiftRepository([])
        orchestrator = CopyOrchestrator(repository, [])

        asyncio.run(orchestrator.apply(["E1"], weekday_pattern, CopyStrategy.ADDITIVE))

        analyses = orchestrator.analyse_all(["E1"], weekday_pattern, CopyStrategy.ADDITIVE)
        assert analyses[0].to_create == 0
        assert analyses[0].to_skip == 5

    def test_pattern_not_modified(self, weekday_pattern, existing):
        before = weekday_pattern.copy()
        orchestrator = CopyOrchestrator(InMemoryShiftRepository(existing), existing)
        asyncio.run(orchestrator.apply(["E2"], weekday_pattern, CopyStrategy.REPLACE))
        assert weekday_pattern == before

    def test_no_targets(self, weekday_pattern):
        orchestrator = CopyOrchestrator(InMemoryShiftRepository([]), [])
        result = asyncio.run(orchestrator.apply([], weekday_pattern, CopyStrategy.ADDITIVE))
        assert result.created == 0
        assert result.per_target == ()


class TestConcurrentApply:
    """Tests for concurrent per-target apply."""

    def test_results_keep_target_order(self, weekday_pattern, existing):
        repository = FlakyRepository(existing, fail_insert_for={"E2"})
        orchestrator = CopyOrchestrator(
            repository, existing, config=CopyConfig(concurrent=True, max_concurrency=3)
        )

        result = asyncio.run(
            orchestrator.apply(["E1", "E2", "E3"], weekday_pattern, CopyStrategy.ADDITIVE)
        )

        assert [t.employee_id for t in result.per_target] == ["E1", "E2", "E3"]
        assert [t.ok for t in result.per_target] == [True, False, True]
        assert result.created == 9

    def test_each_target_deletes_before_insert(self, weekday_pattern, existing):
        repository = FlakyRepository(existing)
        orchestrator = CopyOrchestrator(
            repository, existing, config=CopyConfig(concurrent=True, max_concurrency=2)
        )

        asyncio.run(orchestrator.apply(["E2", "E3"], weekday_pattern, CopyStrategy.REPLACE))

        for target in ("E2", "E3"):
            ops = [op for op, employee in repository.calls if employee == target]
            assert ops == ["read"] + ["delete"] * 5 + ["insert"] * 5

    def test_invalid_concurrency(self):
        with pytest.raises(ValueError):
            CopyConfig(max_concurrency=0)
