"""
Per-style playback progress: heartbeats, resume lookups and style switches.

Progress is kept per (terminal, style) so a terminal can come back to a style
exactly where it left it, whichever style is active in between.
"""

from dataclasses import dataclass
from datetime import datetime
from typing import Optional

from loguru import logger

from aura.core.database import get_db_connection, now_timestamp

from ..catalog.models import Style, Terminal
from ..catalog.styles import get_style
from ..catalog.terminals import get_terminal
from ..exceptions import NoActiveStyleError, NotFoundError, StyleUnavailableError
from .sessions import accumulate_play_session


@dataclass(frozen=True)
class HeartbeatResult:
    """What a heartbeat wrote."""

    style_id: str
    last_position: int
    session_total: Optional[int]  # None when the heartbeat was not playing


@dataclass(frozen=True)
class StyleChange:
    """Outcome of an explicit style switch."""

    terminal: Terminal
    style: Style
    resume_position: int


def record_heartbeat(
    terminal_id: str,
    position: int,
    is_playing: bool,
    now: Optional[datetime] = None,
) -> HeartbeatResult:
    """Persist a heartbeat from a terminal, atomically.

    - Stamps the terminal's last_played_at and sets its is_playing flag
    - Upserts the progress row for (terminal, active style), last write wins
    - While playing, credits today's play session for the active style

    Args:
        terminal_id: Reporting terminal
        position: Elapsed seconds in the active mix
        is_playing: Play state reported by the terminal
        now: Override for the current time

    Raises:
        NotFoundError: If the terminal does not exist
        NoActiveStyleError: If the terminal has no active style
    """
    moment = now or datetime.now()
    stamp = now_timestamp(moment)
    position = max(0, int(position))

    with get_db_connection() as conn:
        try:
            row = conn.execute(
                "SELECT current_style_id FROM terminals WHERE id = ?",
                (terminal_id,),
            ).fetchone()
            if row is None:
                raise NotFoundError("Terminal", terminal_id)
            style_id = row["current_style_id"]
            if style_id is None:
                raise NoActiveStyleError(terminal_id)

            conn.execute(
                "UPDATE terminals SET is_playing = ?, last_played_at = ? WHERE id = ?",
                (is_playing, stamp, terminal_id),
            )

            conn.execute(
                """
                INSERT INTO style_progress (terminal_id, style_id, last_position, updated_at)
                VALUES (?, ?, ?, ?)
                ON CONFLICT (terminal_id, style_id) DO UPDATE SET
                    last_position = excluded.last_position,
                    updated_at = excluded.updated_at
                """,
                (terminal_id, style_id, position, stamp),
            )

            session_total = None
            if is_playing:
                session_total = accumulate_play_session(
                    conn, terminal_id, style_id, moment
                )

            conn.commit()
        except Exception:
            conn.rollback()
            raise

    logger.debug(
        f"Heartbeat terminal={terminal_id} style={style_id} position={position} "
        f"playing={is_playing} session_total={session_total}"
    )
    return HeartbeatResult(
        style_id=style_id, last_position=position, session_total=session_total
    )


def get_position(terminal_id: str, style_id: Optional[str]) -> int:
    """Get the saved resume position of a style for a terminal.

    Returns:
        Seconds to resume from, 0 when nothing was saved or no style given

    Raises:
        NotFoundError: If the terminal does not exist
    """
    get_terminal(terminal_id)
    if not style_id:
        return 0

    with get_db_connection() as conn:
        row = conn.execute(
            """
            SELECT last_position FROM style_progress
            WHERE terminal_id = ? AND style_id = ?
            """,
            (terminal_id, style_id),
        ).fetchone()
    return row["last_position"] if row else 0


def change_style(terminal_id: str, style_id: str) -> StyleChange:
    """Make a style the terminal's active one.

    Returns the position previously saved for that specific style so the
    terminal can seek straight to it.

    Raises:
        NotFoundError: If the terminal or style does not exist
        StyleUnavailableError: If the style has no mix yet
    """
    style = get_style(style_id)
    if not style.is_selectable:
        raise StyleUnavailableError(style_id)

    with get_db_connection() as conn:
        cursor = conn.execute(
            "UPDATE terminals SET current_style_id = ? WHERE id = ?",
            (style_id, terminal_id),
        )
        conn.commit()
        if cursor.rowcount == 0:
            raise NotFoundError("Terminal", terminal_id)

    resume_position = get_position(terminal_id, style_id)
    logger.info(
        f"Terminal {terminal_id} switched to style {style_id} "
        f"(resume at {resume_position}s)"
    )
    return StyleChange(
        terminal=get_terminal(terminal_id),
        style=style,
        resume_position=resume_position,
    )
