"""
SQLite database operations for the Aura backend
"""

import os
import sqlite3
from contextlib import contextmanager
from datetime import datetime
from pathlib import Path
from typing import Iterator, Optional

from loguru import logger

from .config import get_data_dir


# Database schema version
SCHEMA_VERSION = 1


def get_database_path() -> Path:
    """Get the path to the SQLite database file.

    AURA_DATABASE_PATH wins over the data directory default.
    """
    override = os.environ.get("AURA_DATABASE_PATH")
    if override:
        return Path(override).expanduser()
    return get_data_dir() / "aura.db"


@contextmanager
def get_db_connection() -> Iterator[sqlite3.Connection]:
    """Get a database connection with proper cleanup and concurrency support."""
    db_path = get_database_path()
    db_path.parent.mkdir(parents=True, exist_ok=True)
    # Terminals heartbeat concurrently; WAL lets the live view read during writes
    conn = sqlite3.connect(db_path, timeout=30.0)
    conn.row_factory = sqlite3.Row
    conn.execute("PRAGMA journal_mode=WAL")
    conn.execute("PRAGMA foreign_keys=ON")

    try:
        yield conn
    finally:
        conn.close()


def now_timestamp(now: Optional[datetime] = None) -> str:
    """Format a timestamp the way every table stores it (local time, seconds)."""
    moment = now or datetime.now()
    return moment.replace(microsecond=0).isoformat(sep=" ")


def start_of_day(now: Optional[datetime] = None) -> str:
    """Timestamp string for local midnight of the given (or current) day."""
    moment = now or datetime.now()
    return now_timestamp(moment.replace(hour=0, minute=0, second=0, microsecond=0))


def init_database() -> None:
    """Create all tables if they do not exist yet."""
    with get_db_connection() as conn:
        conn.execute("""
            CREATE TABLE IF NOT EXISTS schema_version (
                version INTEGER PRIMARY KEY
            )
        """)

        conn.execute("""
            CREATE TABLE IF NOT EXISTS groups (
                id TEXT PRIMARY KEY,
                name TEXT NOT NULL,
                color TEXT
            )
        """)

        conn.execute("""
            CREATE TABLE IF NOT EXISTS styles (
                id TEXT PRIMARY KEY,
                name TEXT NOT NULL,
                mix_url TEXT, -- NULL means "coming soon", not selectable
                duration INTEGER NOT NULL DEFAULT 0 -- informational only, mixes loop
            )
        """)

        conn.execute("""
            CREATE TABLE IF NOT EXISTS terminals (
                id TEXT PRIMARY KEY,
                name TEXT NOT NULL,
                city TEXT,
                group_id TEXT REFERENCES groups (id) ON DELETE SET NULL,
                is_active BOOLEAN NOT NULL DEFAULT TRUE,
                current_style_id TEXT REFERENCES styles (id) ON DELETE SET NULL,
                volume INTEGER NOT NULL DEFAULT 70 CHECK (volume BETWEEN 0 AND 100),
                is_playing BOOLEAN NOT NULL DEFAULT FALSE,
                is_auto_mode BOOLEAN NOT NULL DEFAULT FALSE,
                last_played_at TIMESTAMP
            )
        """)

        # One row per (terminal, style), created lazily by the first heartbeat
        conn.execute("""
            CREATE TABLE IF NOT EXISTS style_progress (
                id INTEGER PRIMARY KEY AUTOINCREMENT,
                terminal_id TEXT NOT NULL REFERENCES terminals (id) ON DELETE CASCADE,
                style_id TEXT NOT NULL REFERENCES styles (id) ON DELETE CASCADE,
                last_position INTEGER NOT NULL DEFAULT 0,
                updated_at TIMESTAMP,
                UNIQUE (terminal_id, style_id)
            )
        """)

        conn.execute("""
            CREATE TABLE IF NOT EXISTS schedules (
                id INTEGER PRIMARY KEY AUTOINCREMENT,
                start_time TEXT NOT NULL, -- "HH:MM"
                end_time TEXT NOT NULL, -- "HH:MM", same day as start_time
                style_id TEXT NOT NULL REFERENCES styles (id) ON DELETE CASCADE,
                terminal_id TEXT REFERENCES terminals (id) ON DELETE CASCADE -- NULL = global
            )
        """)

        conn.execute("""
            CREATE TABLE IF NOT EXISTS play_sessions (
                id INTEGER PRIMARY KEY AUTOINCREMENT,
                terminal_id TEXT NOT NULL REFERENCES terminals (id) ON DELETE CASCADE,
                style_id TEXT NOT NULL REFERENCES styles (id) ON DELETE CASCADE,
                started_at TIMESTAMP NOT NULL,
                ended_at TIMESTAMP,
                total_played INTEGER NOT NULL DEFAULT 0
            )
        """)

        conn.execute("""
            CREATE TABLE IF NOT EXISTS terminal_favorites (
                id INTEGER PRIMARY KEY AUTOINCREMENT,
                terminal_id TEXT NOT NULL REFERENCES terminals (id) ON DELETE CASCADE,
                style_id TEXT NOT NULL REFERENCES styles (id) ON DELETE CASCADE,
                created_at TIMESTAMP NOT NULL,
                UNIQUE (terminal_id, style_id)
            )
        """)

        conn.execute("""
            CREATE TABLE IF NOT EXISTS activity_log (
                id INTEGER PRIMARY KEY AUTOINCREMENT,
                terminal_id TEXT NOT NULL REFERENCES terminals (id) ON DELETE CASCADE,
                action TEXT NOT NULL, -- 'PLAY', 'PAUSE', 'CHANGE_STYLE'
                details TEXT, -- JSON payload
                created_at TIMESTAMP NOT NULL
            )
        """)

        conn.execute(
            "CREATE INDEX IF NOT EXISTS idx_schedules_terminal ON schedules (terminal_id)"
        )
        conn.execute(
            "CREATE INDEX IF NOT EXISTS idx_play_sessions_lookup "
            "ON play_sessions (terminal_id, style_id, started_at)"
        )
        conn.execute(
            "CREATE INDEX IF NOT EXISTS idx_activity_log_terminal "
            "ON activity_log (terminal_id, created_at DESC)"
        )

        conn.execute(
            "INSERT OR IGNORE INTO schema_version (version) VALUES (?)",
            (SCHEMA_VERSION,),
        )
        conn.commit()

    logger.debug(f"Database initialized at {get_database_path()}")
