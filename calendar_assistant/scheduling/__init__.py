"""
Scheduling module for Calendar Assistant
Interval algebra for busy periods, free gaps and multi-calendar availability
"""

from .intervals import (
    merge_intervals,
    find_gaps,
    combine_busy,
    find_mutual_availability,
    is_slot_available,
    filter_slots_by_time_of_day,
    get_best_slots,
    suggest_optimal_times,
    daily_windows,
    find_free_slots,
)

__all__ = [
    'merge_intervals', 'find_gaps', 'combine_busy', 'find_mutual_availability',
    'is_slot_available', 'filter_slots_by_time_of_day', 'get_best_slots',
    'suggest_optimal_times', 'daily_windows', 'find_free_slots',
]
