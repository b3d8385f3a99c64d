"""
Terminal lookups, the terminal's own settings and its favorite styles.

Creating terminals here is the minimum the playback core needs to be
exercised; full store administration lives elsewhere.
"""

import uuid
from typing import Any, Optional

from loguru import logger

from aura.core.database import get_db_connection, now_timestamp

from ..exceptions import NotFoundError
from .models import Style, Terminal
from .styles import _row_to_style, get_style


def _row_to_terminal(row: Any) -> Terminal:
    """Convert database row to Terminal dataclass."""
    return Terminal(
        id=row["id"],
        name=row["name"],
        city=row["city"],
        group_id=row["group_id"],
        is_active=bool(row["is_active"]),
        current_style_id=row["current_style_id"],
        volume=row["volume"],
        is_playing=bool(row["is_playing"]),
        is_auto_mode=bool(row["is_auto_mode"]),
        last_played_at=row["last_played_at"],
    )


def create_terminal(
    name: str,
    terminal_id: Optional[str] = None,
    city: Optional[str] = None,
    group_id: Optional[str] = None,
    volume: int = 70,
    is_active: bool = True,
) -> Terminal:
    """Register a terminal.

    Args:
        name: Display name of the store
        terminal_id: Explicit identity (generated when omitted)
        city: Optional city shown on the live view
        group_id: Optional group membership
        volume: Initial volume (0-100)
        is_active: Deactivated terminals are listed as inactive

    Returns:
        The created Terminal
    """
    if not 0 <= volume <= 100:
        raise ValueError(f"Volume must be between 0 and 100, got {volume}")

    terminal_id = terminal_id or uuid.uuid4().hex
    with get_db_connection() as conn:
        conn.execute(
            """
            INSERT INTO terminals (id, name, city, group_id, volume, is_active)
            VALUES (?, ?, ?, ?, ?, ?)
            """,
            (terminal_id, name, city, group_id, volume, is_active),
        )
        conn.commit()

    logger.info(f"Created terminal {terminal_id} ({name})")
    return get_terminal(terminal_id)


def find_terminal(terminal_id: str) -> Optional[Terminal]:
    """Get a terminal by ID, or None if it does not exist."""
    with get_db_connection() as conn:
        cursor = conn.execute("SELECT * FROM terminals WHERE id = ?", (terminal_id,))
        row = cursor.fetchone()
        return _row_to_terminal(row) if row else None


def get_terminal(terminal_id: str) -> Terminal:
    """Get a terminal by ID.

    Raises:
        NotFoundError: If the terminal does not exist
    """
    terminal = find_terminal(terminal_id)
    if terminal is None:
        raise NotFoundError("Terminal", terminal_id)
    return terminal


def get_all_terminals() -> list[Terminal]:
    """Get all terminals ordered by name."""
    with get_db_connection() as conn:
        cursor = conn.execute("SELECT * FROM terminals ORDER BY name")
        return [_row_to_terminal(row) for row in cursor.fetchall()]


def update_terminal_settings(
    terminal_id: str,
    volume: Optional[int] = None,
    is_auto_mode: Optional[bool] = None,
    is_playing: Optional[bool] = None,
    is_active: Optional[bool] = None,
) -> Terminal:
    """Update the settings a terminal owns.

    Only the fields passed (not None) are written.

    Raises:
        NotFoundError: If the terminal does not exist
        ValueError: If volume is out of range
    """
    if volume is not None and not 0 <= volume <= 100:
        raise ValueError(f"Volume must be between 0 and 100, got {volume}")

    updates: list[str] = []
    params: list[Any] = []

    if volume is not None:
        updates.append("volume = ?")
        params.append(volume)
    if is_auto_mode is not None:
        updates.append("is_auto_mode = ?")
        params.append(is_auto_mode)
    if is_playing is not None:
        updates.append("is_playing = ?")
        params.append(is_playing)
    if is_active is not None:
        updates.append("is_active = ?")
        params.append(is_active)

    if not updates:
        return get_terminal(terminal_id)

    params.append(terminal_id)

    with get_db_connection() as conn:
        cursor = conn.execute(
            f"UPDATE terminals SET {', '.join(updates)} WHERE id = ?",
            params,
        )
        conn.commit()
        if cursor.rowcount == 0:
            raise NotFoundError("Terminal", terminal_id)

    logger.debug(f"Updated terminal {terminal_id}: {', '.join(updates)}")
    return get_terminal(terminal_id)


def get_favorites(terminal_id: str) -> list[Style]:
    """Styles a terminal marked as favorite, most recently added first.

    Raises:
        NotFoundError: If the terminal does not exist
    """
    get_terminal(terminal_id)
    with get_db_connection() as conn:
        cursor = conn.execute(
            """
            SELECT s.* FROM terminal_favorites f
            JOIN styles s ON s.id = f.style_id
            WHERE f.terminal_id = ?
            ORDER BY f.created_at DESC, f.id DESC
            """,
            (terminal_id,),
        )
        return [_row_to_style(row) for row in cursor.fetchall()]


def toggle_favorite(terminal_id: str, style_id: str) -> bool:
    """Add the style to the terminal's favorites, or remove it if already there.

    Returns:
        True if the style is now a favorite

    Raises:
        NotFoundError: If the terminal or the style does not exist
    """
    get_terminal(terminal_id)
    get_style(style_id)

    with get_db_connection() as conn:
        cursor = conn.execute(
            "DELETE FROM terminal_favorites WHERE terminal_id = ? AND style_id = ?",
            (terminal_id, style_id),
        )
        if cursor.rowcount:
            conn.commit()
            logger.debug(f"Terminal {terminal_id} unfavorited style {style_id}")
            return False

        conn.execute(
            """
            INSERT INTO terminal_favorites (terminal_id, style_id, created_at)
            VALUES (?, ?, ?)
            """,
            (terminal_id, style_id, now_timestamp()),
        )
        conn.commit()

    logger.debug(f"Terminal {terminal_id} favorited style {style_id}")
    return True
