"""
Style and group lookups.
"""

import uuid
from typing import Any, Optional

from loguru import logger

from aura.core.database import get_db_connection

from ..exceptions import NotFoundError
from .models import Group, Style


def _row_to_style(row: Any) -> Style:
    """Convert database row to Style dataclass."""
    return Style(
        id=row["id"],
        name=row["name"],
        mix_url=row["mix_url"],
        duration=row["duration"] or 0,
    )


def create_style(
    name: str,
    mix_url: Optional[str] = None,
    duration: int = 0,
    style_id: Optional[str] = None,
) -> Style:
    """Register a style. Without a mix_url it is listed but not selectable."""
    style_id = style_id or uuid.uuid4().hex
    with get_db_connection() as conn:
        conn.execute(
            "INSERT INTO styles (id, name, mix_url, duration) VALUES (?, ?, ?, ?)",
            (style_id, name, mix_url, duration),
        )
        conn.commit()

    logger.info(f"Created style {style_id} ({name})")
    return get_style(style_id)


def find_style(style_id: str) -> Optional[Style]:
    """Get a style by ID, or None if it does not exist."""
    with get_db_connection() as conn:
        cursor = conn.execute("SELECT * FROM styles WHERE id = ?", (style_id,))
        row = cursor.fetchone()
        return _row_to_style(row) if row else None


def get_style(style_id: str) -> Style:
    """Get a style by ID.

    Raises:
        NotFoundError: If the style does not exist
    """
    style = find_style(style_id)
    if style is None:
        raise NotFoundError("Style", style_id)
    return style


def get_all_styles() -> list[Style]:
    """Get all styles ordered by name."""
    with get_db_connection() as conn:
        cursor = conn.execute("SELECT * FROM styles ORDER BY name")
        return [_row_to_style(row) for row in cursor.fetchall()]


def create_group(name: str, color: Optional[str] = None, group_id: Optional[str] = None) -> Group:
    """Register a terminal group."""
    group_id = group_id or uuid.uuid4().hex
    with get_db_connection() as conn:
        conn.execute(
            "INSERT INTO groups (id, name, color) VALUES (?, ?, ?)",
            (group_id, name, color),
        )
        conn.commit()
    return Group(id=group_id, name=name, color=color)
