"""
Play session accumulation.

A play session holds the listening seconds of one (terminal, style, day).
Each heartbeat received while playing adds a fixed quantum to today's session
for the terminal's active style, creating the row on the first heartbeat of
the day. Sessions are never closed explicitly; they just stop growing.

The read side aggregates sessions into listening time per style, per
terminal and per day for the dashboard.
"""

import sqlite3
from dataclasses import dataclass
from datetime import datetime, timedelta
from typing import Any, Optional

from loguru import logger

from aura.core.database import get_db_connection, now_timestamp, start_of_day

from ..catalog.models import PlaySession

# Seconds credited per heartbeat. Matches the client's heartbeat cadence; a
# missed heartbeat under-counts and a duplicate one over-counts.
HEARTBEAT_QUANTUM_SECONDS = 10


def _row_to_play_session(row: Any) -> PlaySession:
    """Convert database row to PlaySession dataclass."""
    return PlaySession(
        id=row["id"],
        terminal_id=row["terminal_id"],
        style_id=row["style_id"],
        started_at=row["started_at"],
        ended_at=row["ended_at"],
        total_played=row["total_played"],
    )


def _find_open_session(
    conn: sqlite3.Connection, terminal_id: str, style_id: str, now: datetime
) -> Optional[PlaySession]:
    cursor = conn.execute(
        """
        SELECT * FROM play_sessions
        WHERE terminal_id = ? AND style_id = ?
          AND started_at >= ? AND started_at < date(?, '+1 day')
        ORDER BY started_at DESC, id DESC
        LIMIT 1
        """,
        (terminal_id, style_id, start_of_day(now), start_of_day(now)),
    )
    row = cursor.fetchone()
    return _row_to_play_session(row) if row else None


def accumulate_play_session(
    conn: sqlite3.Connection,
    terminal_id: str,
    style_id: str,
    now: Optional[datetime] = None,
    quantum: int = HEARTBEAT_QUANTUM_SECONDS,
) -> int:
    """Credit one heartbeat to today's session for (terminal, style).

    Runs inside the caller's transaction; the caller commits.

    Returns:
        The session's total_played after the increment
    """
    moment = now or datetime.now()
    stamp = now_timestamp(moment)
    session = _find_open_session(conn, terminal_id, style_id, moment)

    if session is not None:
        conn.execute(
            """
            UPDATE play_sessions
            SET total_played = total_played + ?, ended_at = ?
            WHERE id = ?
            """,
            (quantum, stamp, session.id),
        )
        return session.total_played + quantum

    conn.execute(
        """
        INSERT INTO play_sessions (terminal_id, style_id, started_at, ended_at, total_played)
        VALUES (?, ?, ?, ?, ?)
        """,
        (terminal_id, style_id, stamp, stamp, quantum),
    )
    logger.debug(f"Opened play session for terminal {terminal_id}, style {style_id}")
    return quantum


def get_play_session(
    terminal_id: str, style_id: str, day: Optional[datetime] = None
) -> Optional[PlaySession]:
    """Get the session of (terminal, style) for the given day (default today)."""
    with get_db_connection() as conn:
        return _find_open_session(conn, terminal_id, style_id, day or datetime.now())


def get_listened_seconds(day: Optional[datetime] = None) -> int:
    """Total listening seconds across all terminals for the given day."""
    moment = day or datetime.now()
    with get_db_connection() as conn:
        cursor = conn.execute(
            """
            SELECT COALESCE(SUM(total_played), 0) AS seconds
            FROM play_sessions
            WHERE started_at >= ? AND started_at < date(?, '+1 day')
            """,
            (start_of_day(moment), start_of_day(moment)),
        )
        return cursor.fetchone()["seconds"]


@dataclass(frozen=True)
class StylePlaytime:
    style_id: str
    name: str
    duration: int
    seconds: int
    sessions: int


@dataclass(frozen=True)
class TerminalPlaytime:
    terminal_id: str
    name: str
    seconds: int
    sessions: int
    favorite_style: Optional[str]  # name of the most listened style


@dataclass(frozen=True)
class DailyPlaytime:
    day: str  # YYYY-MM-DD
    seconds: int


def get_style_playtime(since: Optional[datetime] = None) -> list[StylePlaytime]:
    """Listening time per style, most listened first.

    Every style is listed, those never played with zero seconds.

    Args:
        since: Only count sessions started at or after this moment
    """
    since_stamp = now_timestamp(since) if since else None
    with get_db_connection() as conn:
        cursor = conn.execute(
            """
            SELECT
                s.id, s.name, s.duration,
                COALESCE(SUM(p.total_played), 0) AS seconds,
                COUNT(p.id) AS sessions
            FROM styles s
            LEFT JOIN play_sessions p
                ON p.style_id = s.id AND (? IS NULL OR p.started_at >= ?)
            GROUP BY s.id
            ORDER BY seconds DESC, s.name
            """,
            (since_stamp, since_stamp),
        )
        return [
            StylePlaytime(
                style_id=row["id"],
                name=row["name"],
                duration=row["duration"] or 0,
                seconds=row["seconds"],
                sessions=row["sessions"],
            )
            for row in cursor.fetchall()
        ]


def get_terminal_playtime(since: Optional[datetime] = None) -> list[TerminalPlaytime]:
    """Listening time, session count and most listened style per terminal.

    Every terminal is listed; most listened first, then by name.
    """
    since_stamp = now_timestamp(since) if since else None
    with get_db_connection() as conn:
        terminals = conn.execute("SELECT id, name FROM terminals").fetchall()
        cursor = conn.execute(
            """
            SELECT
                p.terminal_id, s.name AS style_name,
                SUM(p.total_played) AS seconds,
                COUNT(p.id) AS sessions
            FROM play_sessions p
            JOIN styles s ON s.id = p.style_id
            WHERE ? IS NULL OR p.started_at >= ?
            GROUP BY p.terminal_id, p.style_id
            ORDER BY seconds DESC, s.name
            """,
            (since_stamp, since_stamp),
        )
        per_style: dict[str, list[Any]] = {}
        for row in cursor.fetchall():
            per_style.setdefault(row["terminal_id"], []).append(row)

    result = []
    for terminal in terminals:
        rows = per_style.get(terminal["id"], [])
        result.append(
            TerminalPlaytime(
                terminal_id=terminal["id"],
                name=terminal["name"],
                seconds=sum(r["seconds"] for r in rows),
                sessions=sum(r["sessions"] for r in rows),
                favorite_style=rows[0]["style_name"] if rows else None,
            )
        )
    result.sort(key=lambda t: t.name.lower())
    result.sort(key=lambda t: t.seconds, reverse=True)
    return result


def get_daily_playtime(days: int = 7, now: Optional[datetime] = None) -> list[DailyPlaytime]:
    """Listening seconds for each of the last `days` days, oldest first.

    Sessions count toward the day they started; days without any are zero.
    """
    today = (now or datetime.now()).date()
    first = today - timedelta(days=days - 1)
    with get_db_connection() as conn:
        cursor = conn.execute(
            """
            SELECT date(started_at) AS day, SUM(total_played) AS seconds
            FROM play_sessions
            WHERE started_at >= ?
            GROUP BY day
            """,
            (first.isoformat(),),
        )
        totals = {row["day"]: row["seconds"] for row in cursor.fetchall()}

    return [
        DailyPlaytime(day=day.isoformat(), seconds=totals.get(day.isoformat(), 0))
        for day in (first + timedelta(days=i) for i in range(days))
    ]
