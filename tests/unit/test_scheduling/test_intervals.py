"""
Unit tests for the busy-interval algebra and slot suggestions.
"""

import pytest
from datetime import datetime, timedelta, timezone
from pathlib import Path

import sys
sys.path.insert(0, str(Path(__file__).parent.parent.parent.parent))

from calendar_assistant.core.models import TimeSlot
from calendar_assistant.scheduling.intervals import (
    combine_busy,
    daily_windows,
    filter_slots_by_time_of_day,
    find_free_slots,
    find_gaps,
    find_mutual_availability,
    get_best_slots,
    is_slot_available,
    merge_intervals,
    suggest_optimal_times,
)


UTC = timezone.utc


def at(hour, minute=0, day=19):
    return datetime(2026, 10, day, hour, minute, tzinfo=UTC)


def slot(start_hour, end_hour, day=19):
    """Whole-hour slot on the given October 2026 day; fractional hours allowed."""
    base = datetime(2026, 10, day, tzinfo=UTC)
    return TimeSlot(start=base + timedelta(hours=start_hour), end=base + timedelta(hours=end_hour))


def total_minutes(slots):
    return sum(s.duration for s in slots)


# =============================================================================
# Merging
# =============================================================================

class TestMergeIntervals:
    """Tests for merge_intervals."""

    def test_empty(self):
        assert merge_intervals([]) == []

    def test_morning_overlap(self):
        busy = [slot(9, 9.5), slot(9.25, 10), slot(14, 15)]

        assert merge_intervals(busy) == [slot(9, 10), slot(14, 15)]

    def test_overlapping_and_touching(self):
        """Overlaps and shared endpoints collapse; disjoint intervals stay apart."""
        busy = [slot(9, 10), slot(9.5, 11), slot(11, 11.5), slot(14, 15)]

        assert merge_intervals(busy) == [slot(9, 11.5), slot(14, 15)]

    def test_unsorted_input(self):
        busy = [slot(14, 15), slot(9, 10), slot(9.5, 10.5)]

        assert merge_intervals(busy) == [slot(9, 10.5), slot(14, 15)]

    def test_contained_interval(self):
        """An interval inside another does not shorten it."""
        assert merge_intervals([slot(9, 12), slot(10, 11)]) == [slot(9, 12)]

    def test_input_not_modified(self):
        busy = [slot(14, 15), slot(9, 10), slot(9.5, 10.5)]
        original = list(busy)

        merge_intervals(busy)

        assert busy == original

    @pytest.mark.parametrize("busy", [
        [slot(9, 10), slot(9.5, 11), slot(14, 15)],
        [slot(8, 9), slot(9, 10), slot(10, 11)],
        [slot(13, 14)],
    ])
    def test_idempotent(self, busy):
        once = merge_intervals(busy)
        assert merge_intervals(once) == once

    def test_result_sorted_and_disjoint(self):
        merged = merge_intervals([slot(15, 16), slot(9, 10), slot(12, 13), slot(12.5, 14)])

        for previous, current in zip(merged, merged[1:]):
            assert previous.end < current.start

    def test_covers_same_instants(self):
        """Merging never adds or loses busy time."""
        busy = [slot(9, 10), slot(9.5, 11), slot(14, 15)]
        merged = merge_intervals(busy)

        probes = [at(9) + timedelta(minutes=15 * i) for i in range(40)]
        for probe in probes:
            in_input = any(b.start <= probe <= b.end for b in busy)
            in_merged = any(m.start <= probe <= m.end for m in merged)
            assert in_input == in_merged


# =============================================================================
# Gaps
# =============================================================================

class TestFindGaps:
    """Tests for find_gaps."""

    def test_free_time_between_meetings(self):
        """Two meetings leave three gaps in a work day."""
        merged = merge_intervals([slot(9, 10), slot(9.5, 11), slot(14, 15)])

        gaps = find_gaps(at(8), at(18), merged, 60)

        assert merged == [slot(9, 11), slot(14, 15)]
        assert gaps == [slot(8, 9), slot(11, 14), slot(15, 18)]

    def test_gap_lengths(self):
        gaps = find_gaps(at(8), at(18), [slot(9, 10), slot(14, 15)], 60)

        assert gaps == [slot(8, 9), slot(10, 14), slot(15, 18)]
        assert [g.duration for g in gaps] == [60, 240, 180]
        assert find_gaps(at(8), at(18), [slot(9, 10), slot(14, 15)], 300) == []
        assert find_gaps(at(8), at(18), [slot(9, 10), slot(14, 15)], 240) == [slot(10, 14)]

    def test_min_duration_filters(self):
        """Only the 3-hour gap survives a 3-hour minimum."""
        merged = [slot(9, 11), slot(14, 15)]

        assert find_gaps(at(8), at(18), merged, 180) == [slot(11, 14), slot(15, 18)]
        assert find_gaps(at(8), at(18), merged, 300) == []

    def test_no_busy_returns_window(self):
        assert find_gaps(at(9), at(17), [], 30) == [slot(9, 17)]

    def test_busy_covers_window(self):
        assert find_gaps(at(9), at(17), [slot(8, 18)], 0) == []

    def test_busy_before_window_start(self):
        """A meeting already running at window start pushes the first gap."""
        assert find_gaps(at(9), at(12), [slot(8, 10)], 30) == [slot(10, 12)]

    def test_busy_past_window_end_is_clipped(self):
        assert find_gaps(at(9), at(12), [slot(11, 13)], 30) == [slot(9, 11)]

    def test_busy_after_window_ignored(self):
        assert find_gaps(at(9), at(12), [slot(13, 14)], 30) == [slot(9, 12)]

    def test_no_zero_length_gaps(self):
        """Touching busy intervals never produce an empty gap."""
        gaps = find_gaps(at(9), at(12), [slot(9, 10), slot(10, 12)], 0)

        assert gaps == []

    def test_gaps_and_busy_partition_window(self):
        """With no minimum, gaps plus clipped busy time fill the window exactly."""
        window_start, window_end = at(8), at(18)
        merged = merge_intervals([slot(7, 9), slot(10, 11), slot(10.5, 12), slot(17, 19)])

        gaps = find_gaps(window_start, window_end, merged, 0)
        busy_minutes = sum(
            TimeSlot(max(b.start, window_start), min(b.end, window_end)).duration
            for b in merged
            if b.end > window_start and b.start < window_end
        )

        assert total_minutes(gaps) + busy_minutes == 600
        for gap in gaps:
            assert is_slot_available(gap, merged)

    def test_gaps_do_not_overlap(self):
        gaps = find_gaps(at(8), at(18), [slot(9, 10), slot(12, 13)], 0)

        for previous, current in zip(gaps, gaps[1:]):
            assert previous.end <= current.start


# =============================================================================
# Multiple Calendars
# =============================================================================

class TestMultipleCalendars:
    """Tests for combining calendars."""

    PER_CALENDAR = {
        "primary": [slot(9, 10)],
        "alice@example.com": [slot(9.5, 11)],
        "bob@example.com": [slot(14, 15)],
    }

    def test_combine_busy(self):
        assert combine_busy(self.PER_CALENDAR) == [slot(9, 11), slot(14, 15)]

    def test_combine_busy_empty(self):
        assert combine_busy({}) == []

    def test_mutual_availability(self):
        """Busy on any calendar is busy for the group."""
        result = find_mutual_availability(self.PER_CALENDAR, at(8), at(18), 60)

        assert result == [slot(8, 9), slot(11, 14), slot(15, 18)]


class TestIsSlotAvailable:
    """Tests for is_slot_available."""

    def test_touching_is_available(self):
        assert is_slot_available(slot(10, 11), [slot(9, 10), slot(11, 12)])

    def test_overlap_is_unavailable(self):
        assert not is_slot_available(slot(10, 11), [slot(10.5, 11.5)])


# =============================================================================
# Slot Selection
# =============================================================================

class TestSlotSelection:
    """Tests for filtering and ranking free slots."""

    def test_filter_by_time_of_day(self):
        slots = [slot(8, 9), slot(9, 11), slot(11, 13), slot(10, 12)]

        assert filter_slots_by_time_of_day(slots, 9, 12, tz=UTC) == [slot(9, 11), slot(10, 12)]

    def test_best_slots_longest_first(self):
        slots = [slot(8, 9), slot(10, 13), slot(14, 16)]

        assert get_best_slots(slots) == [slot(10, 13), slot(14, 16), slot(8, 9)]

    def test_best_slots_limit_and_stable_ties(self):
        slots = [slot(8, 9), slot(10, 11), slot(14, 15)]

        assert get_best_slots(slots, max_results=2) == [slot(8, 9), slot(10, 11)]

    def test_suggest_longest_first(self):
        suggestions = suggest_optimal_times([slot(12, 13)], at(9), at(17), 60, tz=UTC)

        assert suggestions == [slot(13, 17), slot(9, 12)]

    def test_suggest_prefer_morning(self):
        suggestions = suggest_optimal_times([slot(12, 13)], at(9), at(17), 60,
                                            prefer_morning=True, tz=UTC)

        assert suggestions == [slot(9, 12), slot(13, 17)]

    def test_suggest_prefer_afternoon(self):
        suggestions = suggest_optimal_times([slot(14, 16)], at(9), at(17), 60,
                                            prefer_afternoon=True, tz=UTC)

        assert suggestions == [slot(16, 17), slot(9, 14)]

    def test_suggest_avoid_lunch(self):
        """Gaps spanning 12:00-13:00 are dropped; touching lunch is fine."""
        assert suggest_optimal_times([slot(10, 11)], at(9), at(17), 60,
                                     avoid_lunch=True, tz=UTC) == [slot(9, 10)]
        assert suggest_optimal_times([slot(12, 13)], at(9), at(17), 60,
                                     avoid_lunch=True, tz=UTC) == [slot(13, 17), slot(9, 12)]

    def test_suggest_max_results(self):
        busy = [slot(10, 10.5), slot(11, 11.5), slot(12, 12.5), slot(13, 13.5)]

        suggestions = suggest_optimal_times(busy, at(9), at(17), 30, max_results=2, tz=UTC)

        assert suggestions == [slot(13.5, 17), slot(9, 10)]


# =============================================================================
# Working Hours
# =============================================================================

class TestWorkingHours:
    """Tests for per-day working windows."""

    def test_daily_windows_clip_to_range(self):
        windows = daily_windows(at(10, 30), at(12, day=21), (9, 0), (17, 0), tz=UTC)

        assert windows == [
            TimeSlot(at(10, 30), at(17)),
            slot(9, 17, day=20),
            slot(9, 12, day=21),
        ]

    def test_daily_windows_skip_empty_days(self):
        """A range ending at midnight adds nothing for that day."""
        windows = daily_windows(at(0), at(0, day=20), (9, 0), (17, 0), tz=UTC)

        assert windows == [slot(9, 17)]

    def test_find_free_slots_with_work_hours(self):
        busy = [slot(10, 11, day=20)]

        free = find_free_slots(busy, at(0), at(0, day=21), 60,
                               work_start=(9, 0), work_end=(17, 0), tz=UTC)

        assert free == [slot(9, 17), slot(9, 10, day=20), slot(11, 17, day=20)]

    def test_find_free_slots_without_work_hours(self):
        busy = [slot(14, 15), slot(9, 10)]

        assert find_free_slots(busy, at(8), at(18), 60) == [slot(8, 9), slot(10, 14), slot(15, 18)]

    def test_find_free_slots_with_combined_calendars(self):
        """A combined busy set is used as is."""
        merged = combine_busy({
            "primary": [slot(9, 11, day=20)],
            "alice@example.com": [slot(10, 12, day=20)],
        })

        free = find_free_slots(merged, at(0, day=20), at(0, day=21), 60,
                               work_start=(9, 0), work_end=(17, 0), tz=UTC,
                               already_merged=True)

        assert free == [slot(12, 17, day=20)]
