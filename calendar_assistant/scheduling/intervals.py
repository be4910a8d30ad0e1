"""
Interval algebra over busy periods.

Merges overlapping busy intervals, finds the free gaps left in a query
window, and combines several calendars' busy sets into one. Every function
returns new TimeSlot values; inputs are never modified.

Intervals are assumed well formed (start <= end). Callers that build them
from raw timestamps validate before calling in.
"""

from datetime import datetime, time, timedelta, tzinfo
from typing import Iterable, List, Mapping, Optional, Tuple
import logging

from ..core.config import DEFAULT_TIMEZONE
from ..core.dates import minutes_between
from ..core.models import TimeSlot


logger = logging.getLogger(__name__)

LUNCH_START_HOUR = 12
LUNCH_END_HOUR = 13


def merge_intervals(slots: Iterable[TimeSlot]) -> List[TimeSlot]:
    """
    Collapse possibly-overlapping intervals into a sorted, disjoint list.

    Touching intervals (next.start == last.end) are merged.

    Args:
        slots: Intervals in any order

    Returns:
        New list of merged intervals sorted by start
    """
    merged: List[TimeSlot] = []
    for slot in sorted(slots, key=lambda s: s.start):
        if merged and slot.start <= merged[-1].end:
            if slot.end > merged[-1].end:
                merged[-1] = merged[-1].with_end(slot.end)
        else:
            merged.append(slot)
    return merged


def find_gaps(
    window_start: datetime,
    window_end: datetime,
    merged_busy: Iterable[TimeSlot],
    min_duration: int
) -> List[TimeSlot]:
    """
    Free intervals inside a window, given already merged busy intervals.

    Args:
        window_start: Start of the query window
        window_end: End of the query window
        merged_busy: Output of merge_intervals (sorted, disjoint)
        min_duration: Minimum gap length in minutes

    Returns:
        Gaps in chronological order, each at least min_duration long
    """
    gaps: List[TimeSlot] = []
    cursor = window_start

    def emit(gap_end: datetime) -> None:
        gap_end = min(gap_end, window_end)
        if gap_end <= cursor:
            return
        if minutes_between(cursor, gap_end) >= min_duration:
            gaps.append(TimeSlot(start=cursor, end=gap_end))

    for busy in merged_busy:
        if busy.start >= window_end:
            break
        if busy.start > cursor:
            emit(busy.start)
        cursor = max(cursor, busy.end)

    if cursor < window_end:
        emit(window_end)

    return gaps


def combine_busy(per_calendar: Mapping[str, Iterable[TimeSlot]]) -> List[TimeSlot]:
    """
    Union every calendar's busy intervals and merge them.

    Busy on any calendar counts as busy for the whole group.
    """
    combined: List[TimeSlot] = []
    for calendar_id, slots in per_calendar.items():
        slots = list(slots)
        logger.debug(f"Calendar {calendar_id}: {len(slots)} busy interval(s)")
        combined.extend(slots)
    return merge_intervals(combined)


def find_mutual_availability(
    per_calendar: Mapping[str, Iterable[TimeSlot]],
    window_start: datetime,
    window_end: datetime,
    min_duration: int
) -> List[TimeSlot]:
    """Gaps in a window where none of the calendars is busy."""
    return find_gaps(window_start, window_end, combine_busy(per_calendar), min_duration)


def is_slot_available(slot: TimeSlot, busy: Iterable[TimeSlot]) -> bool:
    """True if no busy interval overlaps the slot (touching is fine)."""
    return not any(b.start < slot.end and b.end > slot.start for b in busy)


def filter_slots_by_time_of_day(
    slots: Iterable[TimeSlot],
    start_hour: int,
    end_hour: int,
    tz: Optional[tzinfo] = None
) -> List[TimeSlot]:
    """Keep slots that start at or after start_hour and end by end_hour local time."""
    tz = tz or DEFAULT_TIMEZONE
    kept = []
    for slot in slots:
        local_start = slot.start.astimezone(tz)
        local_end = slot.end.astimezone(tz)
        end_minutes = local_end.hour * 60 + local_end.minute
        if local_start.hour >= start_hour and end_minutes <= end_hour * 60:
            kept.append(slot)
    return kept


def get_best_slots(slots: Iterable[TimeSlot], max_results: int = 5) -> List[TimeSlot]:
    """Longest slots first; equal lengths keep their input order."""
    return sorted(slots, key=lambda s: s.duration, reverse=True)[:max_results]


def _overlaps_lunch(slot: TimeSlot, tz: tzinfo) -> bool:
    local_start = slot.start.astimezone(tz)
    local_end = slot.end.astimezone(tz)
    day = local_start.date()
    while day <= local_end.date():
        lunch_start = datetime.combine(day, time(LUNCH_START_HOUR), tzinfo=tz)
        lunch_end = datetime.combine(day, time(LUNCH_END_HOUR), tzinfo=tz)
        if local_start < lunch_end and local_end > lunch_start:
            return True
        day += timedelta(days=1)
    return False


def suggest_optimal_times(
    busy: Iterable[TimeSlot],
    window_start: datetime,
    window_end: datetime,
    duration: int,
    prefer_morning: bool = False,
    prefer_afternoon: bool = False,
    avoid_lunch: bool = False,
    max_results: int = 5,
    tz: Optional[tzinfo] = None
) -> List[TimeSlot]:
    """
    Suggest meeting slots of at least `duration` minutes.

    Args:
        busy: Busy intervals, merged or not
        window_start: Start of the search window
        window_end: End of the search window
        duration: Required length in minutes
        prefer_morning: Put slots starting before noon first
        prefer_afternoon: Put slots starting at or after noon first
        avoid_lunch: Drop slots that overlap 12:00-13:00 local time
        max_results: Number of suggestions to return
        tz: Timezone for local-time preferences

    Returns:
        Up to max_results slots, longest first within the preferred group
    """
    tz = tz or DEFAULT_TIMEZONE
    available = find_gaps(window_start, window_end, merge_intervals(busy), duration)

    if avoid_lunch:
        available = [slot for slot in available if not _overlaps_lunch(slot, tz)]

    best = get_best_slots(available, len(available))

    # Preferred half of the day first, longest first within each half
    if prefer_morning:
        best.sort(key=lambda s: s.start.astimezone(tz).hour >= 12)
    elif prefer_afternoon:
        best.sort(key=lambda s: s.start.astimezone(tz).hour < 12)

    return best[:max_results]


def daily_windows(
    window_start: datetime,
    window_end: datetime,
    work_start: Tuple[int, int],
    work_end: Tuple[int, int],
    tz: Optional[tzinfo] = None
) -> List[TimeSlot]:
    """
    Working-hour windows for each local day touched by [window_start, window_end].

    Each day's window is clipped to the overall window; days where nothing
    is left after clipping are skipped.

    Args:
        work_start: (hour, minute) the working day starts
        work_end: (hour, minute) the working day ends
    """
    tz = tz or DEFAULT_TIMEZONE
    local_start = window_start.astimezone(tz)
    local_end = window_end.astimezone(tz)

    windows = []
    current_date = local_start.date()
    while current_date <= local_end.date():
        day_start = datetime.combine(current_date, time(*work_start), tzinfo=tz)
        day_end = datetime.combine(current_date, time(*work_end), tzinfo=tz)

        day_start = max(day_start, window_start)
        day_end = min(day_end, window_end)
        if day_end > day_start:
            windows.append(TimeSlot(start=day_start, end=day_end))

        current_date += timedelta(days=1)

    return windows


def find_free_slots(
    busy: Iterable[TimeSlot],
    window_start: datetime,
    window_end: datetime,
    min_duration: int,
    work_start: Optional[Tuple[int, int]] = None,
    work_end: Optional[Tuple[int, int]] = None,
    tz: Optional[tzinfo] = None,
    already_merged: bool = False
) -> List[TimeSlot]:
    """
    Merge busy intervals and return the free gaps.

    When work hours are given, gaps are searched per day inside the working
    window only; otherwise the whole window is searched at once. Pass
    already_merged=True when busy comes from merge_intervals or combine_busy.
    """
    merged = list(busy) if already_merged else merge_intervals(busy)

    if work_start is None or work_end is None:
        return find_gaps(window_start, window_end, merged, min_duration)

    free_slots: List[TimeSlot] = []
    for window in daily_windows(window_start, window_end, work_start, work_end, tz):
        day_busy = [b for b in merged if b.end > window.start and b.start < window.end]
        free_slots.extend(find_gaps(window.start, window.end, day_busy, min_duration))
    return free_slots
