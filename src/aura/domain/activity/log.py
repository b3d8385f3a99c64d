"""
Activity log: append-only audit trail of what terminals did.

Entries are written once and never updated or deleted here.
"""

import json
from datetime import datetime
from typing import Any, Optional

from loguru import logger

from aura.core.database import get_db_connection, now_timestamp

from ..catalog.models import ActivityEntry
from ..catalog.terminals import get_terminal

VALID_ACTIONS = ("PLAY", "PAUSE", "CHANGE_STYLE")


def _row_to_activity(row: Any) -> ActivityEntry:
    """Convert database row to ActivityEntry, decoding the details payload."""
    details = None
    if row["details"]:
        try:
            details = json.loads(row["details"])
        except json.JSONDecodeError:
            logger.warning(f"Activity entry {row['id']} has undecodable details")
            details = {"raw": row["details"]}
    return ActivityEntry(
        id=row["id"],
        terminal_id=row["terminal_id"],
        action=row["action"],
        details=details,
        created_at=row["created_at"],
    )


def log_activity(
    terminal_id: str,
    action: str,
    details: Optional[dict[str, Any]] = None,
    now: Optional[datetime] = None,
) -> ActivityEntry:
    """Append an audit entry for a terminal.

    Raises:
        ValueError: If action is not PLAY, PAUSE or CHANGE_STYLE
        NotFoundError: If the terminal does not exist
    """
    if action not in VALID_ACTIONS:
        raise ValueError(
            f"Invalid action: '{action}'. Expected one of {', '.join(VALID_ACTIONS)}"
        )
    get_terminal(terminal_id)

    stamp = now_timestamp(now)
    payload = json.dumps(details) if details else None

    with get_db_connection() as conn:
        cursor = conn.execute(
            """
            INSERT INTO activity_log (terminal_id, action, details, created_at)
            VALUES (?, ?, ?, ?)
            """,
            (terminal_id, action, payload, stamp),
        )
        conn.commit()
        entry_id = cursor.lastrowid

    logger.info(f"Activity {action} from terminal {terminal_id}")
    return ActivityEntry(
        id=entry_id,
        terminal_id=terminal_id,
        action=action,
        details=details or None,
        created_at=stamp,
    )


def get_activity(
    terminal_id: Optional[str] = None,
    day: Optional[str] = None,
    limit: int = 100,
) -> list[ActivityEntry]:
    """Read back audit entries, newest first.

    Args:
        terminal_id: Only entries of this terminal
        day: Only entries of this day ("YYYY-MM-DD")
        limit: Maximum number of entries

    Raises:
        ValueError: If day is not a valid date
    """
    conditions: list[str] = []
    params: list[Any] = []

    if terminal_id:
        conditions.append("terminal_id = ?")
        params.append(terminal_id)
    if day:
        start = datetime.strptime(day, "%Y-%m-%d")
        conditions.append("created_at >= ? AND created_at < date(?, '+1 day')")
        params.extend([now_timestamp(start), day])

    where = f"WHERE {' AND '.join(conditions)}" if conditions else ""
    params.append(max(1, limit))

    with get_db_connection() as conn:
        cursor = conn.execute(
            f"""
            SELECT * FROM activity_log
            {where}
            ORDER BY created_at DESC, id DESC
            LIMIT ?
            """,
            params,
        )
        return [_row_to_activity(row) for row in cursor.fetchall()]
