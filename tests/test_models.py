"""Tests for the interval model, patterns and weekday conversion."""

from datetime import time

import pytest

from shiftcopy.domain.models import (
    ApplyResult,
    DayPattern,
    ExistingShift,
    Interval,
    OpeningHours,
    TargetApplyResult,
    WeekPattern,
    db_to_iso_weekday,
    is_duplicate,
    iso_to_db_weekday,
    overlaps,
    parse_time,
)
from shiftcopy.exceptions import InvalidIntervalError


def iv(start: str, end: str) -> Interval:
    return Interval.from_strings(start, end)


class TestParseTime:
    """Tests for time parsing."""

    def test_hh_mm(self):
        assert parse_time("09:30") == time(9, 30)

    def test_seconds_are_dropped(self):
        assert parse_time("17:00:00") == time(17, 0)
        assert parse_time(time(8, 15, 42)) == time(8, 15)

    @pytest.mark.parametrize(
        "value",
        ["9", "25:00", "ab:cd", "12:60", "1:2:3:4", "09:00:xx", "09:00:99", "09:00:-1"],
    )
    def test_invalid_values_raise(self, value):
        with pytest.raises(InvalidIntervalError):
            parse_time(value)

    def test_midnight_only_as_end_of_day(self):
        assert parse_time("24:00", end_of_day=True) == time(0, 0)
        assert parse_time("24:00:00", end_of_day=True) == time(0, 0)
        with pytest.raises(InvalidIntervalError):
            parse_time("24:00")

    @pytest.mark.parametrize("value", ["24:30", "24:00:01", "25:00"])
    def test_past_midnight_rejected(self, value):
        with pytest.raises(InvalidIntervalError):
            parse_time(value, end_of_day=True)


class TestInterval:
    """Tests for Interval construction and predicates."""

    def test_accepts_strings_and_times(self):
        assert Interval("09:00", "17:00") == Interval(time(9), time(17))

    def test_end_before_start_rejected(self):
        with pytest.raises(InvalidIntervalError):
            iv("17:00", "09:00")

    def test_zero_length_rejected(self):
        with pytest.raises(InvalidIntervalError):
            iv("09:00", "09:00")

    def test_invalid_interval_is_value_error(self):
        with pytest.raises(ValueError):
            iv("12:00", "11:00")

    def test_duration(self):
        assert iv("09:00", "12:30").duration_minutes == 210

    def test_overlap_is_symmetric(self):
        a, b = iv("10:00", "11:00"), iv("10:30", "11:30")
        assert overlaps(a, b)
        assert overlaps(b, a)

    def test_touching_intervals_do_not_overlap(self):
        a, b = iv("09:00", "12:00"), iv("12:00", "15:00")
        assert not overlaps(a, b)
        assert not overlaps(b, a)

    def test_disjoint_intervals_do_not_overlap(self):
        assert not overlaps(iv("08:00", "09:00"), iv("13:00", "14:00"))

    def test_containment_overlaps(self):
        assert overlaps(iv("08:00", "18:00"), iv("12:00", "13:00"))

    def test_interval_overlaps_itself(self):
        a = iv("08:00", "08:15")
        assert overlaps(a, a)

    def test_duplicate(self):
        a = iv("09:00", "17:00")
        assert is_duplicate(a, a)
        assert is_duplicate(a, iv("09:00", "17:00"))
        assert not is_duplicate(a, iv("09:00", "16:00"))

    def test_str(self):
        assert str(iv("09:00", "17:00")) == "09:00-17:00"

    def test_interval_ending_at_midnight(self):
        late = iv("18:00", "24:00")
        assert late.end_minutes == 1440
        assert late.duration_minutes == 360
        assert str(late) == "18:00-24:00"
        assert late.to_dict() == {"start": "18:00", "end": "24:00"}
        assert overlaps(late, iv("23:00", "23:30"))
        assert not overlaps(late, iv("12:00", "18:00"))

    def test_midnight_is_not_a_start(self):
        with pytest.raises(InvalidIntervalError):
            iv("24:00", "24:00")


class TestWeekdayConversion:
    """Tests for ISO/database weekday conversion."""

    def test_sunday(self):
        assert iso_to_db_weekday(7) == 0
        assert db_to_iso_weekday(0) == 7

    def test_weekdays_map_to_themselves(self):
        for day in range(1, 7):
            assert iso_to_db_weekday(day) == day
            assert db_to_iso_weekday(day) == day

    @pytest.mark.parametrize("day", [0, 8, -1])
    def test_invalid_iso_weekday(self, day):
        with pytest.raises(ValueError):
            iso_to_db_weekday(day)

    def test_invalid_db_weekday(self):
        with pytest.raises(ValueError):
            db_to_iso_weekday(7)


class TestWeekPattern:
    """Tests for DayPattern and WeekPattern."""

    def test_all_days_present_and_disabled(self):
        pattern = WeekPattern()
        for weekday in range(1, 8):
            assert pattern[weekday].enabled is False
            assert pattern[weekday].intervals == []
        assert not pattern.has_valid_pattern()

    def test_disabled_day_contributes_nothing(self):
        day = DayPattern(enabled=False, intervals=[iv("09:00", "17:00")])
        assert day.active_intervals() == []
        assert not day.is_active

    def test_active_weekdays(self):
        pattern = WeekPattern()
        pattern[1] = DayPattern(enabled=True, intervals=[iv("09:00", "17:00")])
        pattern[3] = DayPattern(enabled=True, intervals=[])
        pattern[5] = DayPattern(enabled=False, intervals=[iv("09:00", "17:00")])
        assert pattern.active_weekdays() == [1]
        assert pattern.has_valid_pattern()

    def test_index_out_of_range(self):
        with pytest.raises(ValueError):
            WeekPattern()[0]

    def test_requires_seven_days(self):
        with pytest.raises(ValueError):
            WeekPattern(days=[DayPattern()])

    def test_from_mapping_missing_days_disabled(self):
        pattern = WeekPattern.from_mapping(
            {2: DayPattern(enabled=True, intervals=[iv("10:00", "14:00")])}
        )
        assert pattern.active_weekdays() == [2]
        assert pattern[7].enabled is False

    def test_copy_is_independent(self):
        pattern = WeekPattern()
        pattern[1] = DayPattern(enabled=True, intervals=[iv("09:00", "17:00")])
        clone = pattern.copy()
        clone[1].intervals.append(iv("18:00", "20:00"))
        assert len(pattern[1].intervals) == 1


class TestRecords:
    """Tests for conversion to and from database records."""

    def test_existing_shift_from_record(self):
        shift = ExistingShift.from_record({
            "id": 12,
            "employee_id": "E1",
            "weekday": 0,
            "start_time": "09:00:00",
            "end_time": "13:00:00",
        })
        assert shift.weekday == 7
        assert shift.interval == iv("09:00", "13:00")
        assert shift.shift_id == "12"

    def test_existing_shift_to_record(self):
        shift = ExistingShift("E1", 7, iv("09:00", "13:00"), shift_id="S1")
        assert shift.to_record() == {
            "id": "S1",
            "employee_id": "E1",
            "weekday": 0,
            "start_time": "09:00",
            "end_time": "13:00",
        }

    def test_opening_hours_from_records(self):
        hours = OpeningHours.from_records([
            {"weekday": 1, "open_time": "09:00:00", "close_time": "18:00:00"},
            {"weekday": 0, "open_time": None, "close_time": None, "is_closed": True},
            {"weekday": 6, "open_time": "10:00", "close_time": "14:00", "is_closed": True},
        ])
        assert hours.lookup(1) == iv("09:00", "18:00")
        assert hours.lookup(7) is None
        assert hours.lookup(6) is None
        assert hours.lookup(2) is None

    def test_opening_hours_closing_at_midnight(self):
        hours = OpeningHours.from_records([
            {"weekday": 5, "open_time": "18:00:00", "close_time": "24:00:00"},
        ])
        assert hours.lookup(5) == iv("18:00", "24:00")
        assert hours.to_records()[0]["close_time"] == "24:00"

    def test_shift_ending_at_midnight_round_trips(self):
        record = ExistingShift("E1", 5, iv("20:00", "24:00"), shift_id="S1").to_record()
        assert record["end_time"] == "24:00"
        assert ExistingShift.from_record(record).interval == iv("20:00", "24:00")


class TestApplyResult:
    """Tests for aggregating per-target apply results."""

    def test_totals_and_errors(self):
        result = ApplyResult.from_targets([
            TargetApplyResult("E1", created=3, skipped=1),
            TargetApplyResult("E2", created=1, skipped=2, error="boom", failed_step="insert"),
        ])
        assert result.created == 4
        assert result.skipped == 3
        assert result.errors == ("Insert failed for E2: boom",)
        assert result.failed_targets == ["E2"]
        assert [t.ok for t in result.per_target] == [True, False]
