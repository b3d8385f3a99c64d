"""
Catalog domain models.

Contains data structures for terminals (stores), styles and their groups, as
well as the per-terminal facts the playback core writes.
"""

from dataclasses import dataclass
from typing import Any, Optional


@dataclass(frozen=True)
class Group:
    """A named set of terminals (e.g. a region or a brand)."""

    id: str
    name: str
    color: Optional[str]


@dataclass(frozen=True)
class Style:
    """A program: one continuous mix, looped forever while active.

    A style without a mix_url is "coming soon" and cannot be selected.
    """

    id: str
    name: str
    mix_url: Optional[str]
    duration: int  # Seconds, informational only

    @property
    def is_selectable(self) -> bool:
        return bool(self.mix_url)


@dataclass(frozen=True)
class Terminal:
    """A physical playback endpoint.

    Only the terminal's own playback actions mutate current_style_id, volume,
    is_playing, is_auto_mode and last_played_at.
    """

    id: str
    name: str
    city: Optional[str]
    group_id: Optional[str]
    is_active: bool
    current_style_id: Optional[str]
    volume: int  # 0-100
    is_playing: bool
    is_auto_mode: bool
    last_played_at: Optional[str]


@dataclass(frozen=True)
class PlaySession:
    """Listening seconds accumulated for a (terminal, style, day)."""

    id: int
    terminal_id: str
    style_id: str
    started_at: str
    ended_at: Optional[str]
    total_played: int


@dataclass(frozen=True)
class ActivityEntry:
    """Write-once audit record of a PLAY / PAUSE / CHANGE_STYLE event."""

    id: int
    terminal_id: str
    action: str
    details: Optional[dict[str, Any]]
    created_at: str
