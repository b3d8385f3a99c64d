"""
Schedule domain module.

Time-of-day programming: which style each terminal should play, with
terminal-specific entries overriding global ones.
"""

from .models import ScheduleEntry
from .schedule import (
    add_schedule_entry,
    delete_schedule_entry,
    format_hhmm,
    get_current_program,
    get_schedule_entries,
    get_schedule_entry,
    resolve_program,
    time_in_range,
    update_schedule_entry,
    validate_time_format,
)

__all__ = [
    "ScheduleEntry",
    "add_schedule_entry",
    "get_schedule_entries",
    "get_schedule_entry",
    "update_schedule_entry",
    "delete_schedule_entry",
    "format_hhmm",
    "validate_time_format",
    "time_in_range",
    "resolve_program",
    "get_current_program",
]
