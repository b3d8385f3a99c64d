"""
Schedule management and program resolution.

Schedule entries say which style a terminal should play during a time window.
The resolver picks the entry for "now", preferring entries scoped to the
terminal over global ones.
"""

from datetime import datetime
from typing import Any, Iterable, Optional

from loguru import logger

from aura.core.database import get_db_connection

from ..catalog.models import Style
from ..catalog.styles import find_style, get_style
from ..catalog.terminals import get_terminal
from ..exceptions import NotFoundError
from .models import ScheduleEntry


def _row_to_schedule_entry(row: Any) -> ScheduleEntry:
    """Convert database row to ScheduleEntry dataclass."""
    return ScheduleEntry(
        id=row["id"],
        start_time=row["start_time"],
        end_time=row["end_time"],
        style_id=row["style_id"],
        terminal_id=row["terminal_id"],
    )


def format_hhmm(moment: datetime) -> str:
    """Format a datetime as the zero-padded "HH:MM" the schedule compares against."""
    return f"{moment.hour:02d}:{moment.minute:02d}"


def validate_time_format(time_str: str) -> None:
    """Validate time string is in zero-padded HH:MM format.

    Zero padding matters: window checks compare the strings directly.

    Raises:
        ValueError: If the string is not HH:MM
    """
    try:
        parts = time_str.split(":")
        if len(parts) != 2 or len(parts[0]) != 2 or len(parts[1]) != 2:
            raise ValueError()
        hour, minute = int(parts[0]), int(parts[1])
        if not (0 <= hour <= 23 and 0 <= minute <= 59):
            raise ValueError()
    except (ValueError, AttributeError):
        raise ValueError(
            f"Invalid time format: '{time_str}'. Expected 'HH:MM' (e.g., '09:00')"
        )


def _validate_window(start_time: str, end_time: str) -> None:
    validate_time_format(start_time)
    validate_time_format(end_time)
    if start_time > end_time:
        raise ValueError(
            f"Schedule window {start_time}-{end_time} crosses midnight; "
            "split it into two same-day entries"
        )


def time_in_range(start: str, end: str, now: str) -> bool:
    """Check if "HH:MM" now falls within [start, end], both ends inclusive.

    Examples:
        time_in_range("09:00", "12:00", "10:00")  # True
        time_in_range("09:00", "12:00", "12:00")  # True (end is inclusive)
        time_in_range("09:00", "12:00", "12:01")  # False
    """
    return start <= now <= end


def resolve_program(
    terminal_id: str, entries: Iterable[ScheduleEntry], now: str
) -> Optional[ScheduleEntry]:
    """Pick the schedule entry a terminal should be playing at "now".

    Entries scoped to the terminal win over global entries. Within a scope
    the first match in the given order wins; overlaps are not an error.

    Args:
        terminal_id: Terminal being resolved
        entries: All schedule entries, in creation order
        now: Current time as "HH:MM"

    Returns:
        The matching entry, or None when nothing is scheduled
    """
    entries = list(entries)

    for entry in entries:
        if entry.terminal_id == terminal_id and time_in_range(
            entry.start_time, entry.end_time, now
        ):
            return entry

    for entry in entries:
        if entry.is_global and time_in_range(entry.start_time, entry.end_time, now):
            return entry

    return None


def get_current_program(
    terminal_id: str, now: Optional[datetime | str] = None
) -> Optional[Style]:
    """Resolve the style a terminal should be playing right now.

    Read-only: the terminal's state is not touched.

    Args:
        terminal_id: Terminal being resolved
        now: Datetime or "HH:MM" string (defaults to the server's local time)

    Returns:
        The scheduled Style, or None when nothing is scheduled
    """
    if now is None:
        now_str = format_hhmm(datetime.now())
    elif isinstance(now, datetime):
        now_str = format_hhmm(now)
    else:
        validate_time_format(now)
        now_str = now

    entry = resolve_program(terminal_id, get_schedule_entries(terminal_id), now_str)
    if entry is None:
        logger.debug(f"No program scheduled for terminal {terminal_id} at {now_str}")
        return None

    style = find_style(entry.style_id)
    logger.debug(
        f"Terminal {terminal_id} at {now_str} -> style {entry.style_id} "
        f"(entry {entry.id}, {'global' if entry.is_global else 'terminal'})"
    )
    return style


def add_schedule_entry(
    start_time: str,
    end_time: str,
    style_id: str,
    terminal_id: Optional[str] = None,
) -> ScheduleEntry:
    """Add a schedule entry.

    Args:
        start_time: Start time in "HH:MM" format
        end_time: End time in "HH:MM" format (same day, not before start)
        style_id: Style to play during the window
        terminal_id: Terminal the entry applies to, None for all terminals

    Returns:
        The created ScheduleEntry

    Raises:
        ValueError: If times are invalid or the window crosses midnight
        NotFoundError: If the style or terminal does not exist
    """
    _validate_window(start_time, end_time)
    get_style(style_id)
    if terminal_id is not None:
        get_terminal(terminal_id)

    with get_db_connection() as conn:
        cursor = conn.execute(
            """
            INSERT INTO schedules (start_time, end_time, style_id, terminal_id)
            VALUES (?, ?, ?, ?)
            """,
            (start_time, end_time, style_id, terminal_id),
        )
        conn.commit()
        entry_id = cursor.lastrowid

    entry = get_schedule_entry(entry_id)
    logger.info(
        f"Added schedule entry {entry_id}: {start_time}-{end_time} -> style {style_id} "
        f"({terminal_id or 'global'})"
    )
    return entry


def get_schedule_entries(terminal_id: Optional[str] = None) -> list[ScheduleEntry]:
    """Get schedule entries in creation order.

    Args:
        terminal_id: Restrict to entries of this terminal plus global ones

    Returns:
        List of schedule entries
    """
    with get_db_connection() as conn:
        if terminal_id is None:
            cursor = conn.execute("SELECT * FROM schedules ORDER BY id")
        else:
            cursor = conn.execute(
                """
                SELECT * FROM schedules
                WHERE terminal_id = ? OR terminal_id IS NULL
                ORDER BY id
                """,
                (terminal_id,),
            )
        return [_row_to_schedule_entry(row) for row in cursor.fetchall()]


def get_schedule_entry(entry_id: int) -> ScheduleEntry:
    """Get a specific schedule entry by ID.

    Raises:
        NotFoundError: If the entry does not exist
    """
    with get_db_connection() as conn:
        cursor = conn.execute("SELECT * FROM schedules WHERE id = ?", (entry_id,))
        row = cursor.fetchone()
    if row is None:
        raise NotFoundError("Schedule entry", entry_id)
    return _row_to_schedule_entry(row)


def update_schedule_entry(
    entry_id: int,
    start_time: Optional[str] = None,
    end_time: Optional[str] = None,
    style_id: Optional[str] = None,
) -> ScheduleEntry:
    """Update a schedule entry.

    Raises:
        NotFoundError: If the entry or the new style does not exist
        ValueError: If the resulting window is invalid
    """
    current = get_schedule_entry(entry_id)
    new_start = start_time if start_time is not None else current.start_time
    new_end = end_time if end_time is not None else current.end_time
    _validate_window(new_start, new_end)
    if style_id is not None:
        get_style(style_id)

    with get_db_connection() as conn:
        conn.execute(
            "UPDATE schedules SET start_time = ?, end_time = ?, style_id = ? WHERE id = ?",
            (new_start, new_end, style_id or current.style_id, entry_id),
        )
        conn.commit()

    logger.info(f"Updated schedule entry {entry_id}")
    return get_schedule_entry(entry_id)


def delete_schedule_entry(entry_id: int) -> bool:
    """Delete a schedule entry.

    Returns:
        True if deleted, False if entry not found
    """
    with get_db_connection() as conn:
        cursor = conn.execute("DELETE FROM schedules WHERE id = ?", (entry_id,))
        conn.commit()
        deleted = cursor.rowcount > 0
    if deleted:
        logger.info(f"Deleted schedule entry {entry_id}")
    return deleted
