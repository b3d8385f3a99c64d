"""
Progress domain module.

Heartbeat persistence, per-style resume positions, explicit style switches
and the play session counters heartbeats feed.
"""

from .progress import (
    HeartbeatResult,
    StyleChange,
    change_style,
    get_position,
    record_heartbeat,
)
from .sessions import (
    HEARTBEAT_QUANTUM_SECONDS,
    DailyPlaytime,
    StylePlaytime,
    TerminalPlaytime,
    accumulate_play_session,
    get_daily_playtime,
    get_listened_seconds,
    get_play_session,
    get_style_playtime,
    get_terminal_playtime,
)

__all__ = [
    "HeartbeatResult",
    "StyleChange",
    "record_heartbeat",
    "get_position",
    "change_style",
    "HEARTBEAT_QUANTUM_SECONDS",
    "accumulate_play_session",
    "get_play_session",
    "get_listened_seconds",
    # Listening analytics
    "StylePlaytime",
    "TerminalPlaytime",
    "DailyPlaytime",
    "get_style_playtime",
    "get_terminal_playtime",
    "get_daily_playtime",
]
