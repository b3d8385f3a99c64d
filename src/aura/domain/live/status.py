"""
Live status read-model for the operations dashboard.

Recomputed from scratch on every request: terminal counts are small, so there
is no cache to invalidate.
"""

from dataclasses import dataclass, field
from datetime import datetime, timedelta
from typing import Any, Iterable, Optional

from aura.core.database import get_db_connection

from ..catalog.models import Group
from ..progress.sessions import StylePlaytime, get_listened_seconds, get_style_playtime

POPULAR_WINDOW_DAYS = 7
POPULAR_STYLES_LIMIT = 4


@dataclass(frozen=True)
class StyleRef:
    id: str
    name: str


@dataclass(frozen=True)
class TerminalStatus:
    """One terminal as shown on the live view."""

    id: str
    name: str
    city: Optional[str]
    volume: int
    is_active: bool
    is_playing: bool
    is_auto_mode: bool
    last_played_at: Optional[str]
    group: Optional[Group]
    style: Optional[StyleRef]


@dataclass(frozen=True)
class LiveStats:
    total: int
    active: int
    playing_now: int
    auto_mode_count: int
    listened_seconds_today: int


@dataclass(frozen=True)
class FeaturedStyle:
    style: StyleRef
    terminal_count: int


@dataclass(frozen=True)
class LiveStatus:
    stats: LiveStats
    playing: list[TerminalStatus] = field(default_factory=list)
    paused: list[TerminalStatus] = field(default_factory=list)
    inactive: list[TerminalStatus] = field(default_factory=list)
    featured: Optional[FeaturedStyle] = None  # style most terminals play right now
    popular_styles: list[StylePlaytime] = field(default_factory=list)


def _row_to_status(row: Any) -> TerminalStatus:
    group = None
    if row["group_id"] is not None:
        group = Group(id=row["group_id"], name=row["group_name"], color=row["group_color"])
    style = None
    if row["style_id"] is not None:
        style = StyleRef(id=row["style_id"], name=row["style_name"])
    return TerminalStatus(
        id=row["id"],
        name=row["name"],
        city=row["city"],
        volume=row["volume"],
        is_active=bool(row["is_active"]),
        is_playing=bool(row["is_playing"]),
        is_auto_mode=bool(row["is_auto_mode"]),
        last_played_at=row["last_played_at"],
        group=group,
        style=style,
    )


def sort_for_display(terminals: Iterable[TerminalStatus]) -> list[TerminalStatus]:
    """Playing first, then most recently played, then by name.

    Applied as successive stable sorts, least significant key first.
    Terminals that never played sort after those that did.
    """
    ordered = sorted(terminals, key=lambda t: t.name.lower())
    ordered.sort(key=lambda t: t.last_played_at or "", reverse=True)
    ordered.sort(key=lambda t: t.is_playing, reverse=True)
    return ordered


def pick_featured(playing: Iterable[TerminalStatus]) -> Optional[FeaturedStyle]:
    """The style the most playing terminals have on, ties broken by name."""
    counts: dict[str, int] = {}
    refs: dict[str, StyleRef] = {}
    for terminal in playing:
        if terminal.style is None:
            continue
        counts[terminal.style.id] = counts.get(terminal.style.id, 0) + 1
        refs[terminal.style.id] = terminal.style
    if not counts:
        return None
    best = min(counts, key=lambda sid: (-counts[sid], refs[sid].name.lower()))
    return FeaturedStyle(style=refs[best], terminal_count=counts[best])


def partition_terminals(
    terminals: Iterable[TerminalStatus],
    listened_seconds_today: int = 0,
    popular_styles: Optional[list[StylePlaytime]] = None,
) -> LiveStatus:
    """Split terminals into playing / paused / inactive and count them.

    Deactivated terminals are inactive whatever their last reported state.
    """
    ordered = sort_for_display(terminals)

    playing = [t for t in ordered if t.is_active and t.is_playing]
    paused = [t for t in ordered if t.is_active and not t.is_playing]
    inactive = [t for t in ordered if not t.is_active]

    stats = LiveStats(
        total=len(ordered),
        active=len(playing) + len(paused),
        playing_now=len(playing),
        auto_mode_count=sum(1 for t in ordered if t.is_active and t.is_auto_mode),
        listened_seconds_today=listened_seconds_today,
    )
    return LiveStatus(
        stats=stats,
        playing=playing,
        paused=paused,
        inactive=inactive,
        featured=pick_featured(playing),
        popular_styles=popular_styles or [],
    )


def build_live_status(now: Optional[datetime] = None) -> LiveStatus:
    """Fetch every terminal with its style and group and project the live view.

    Popular styles rank listening over the last week.
    """
    moment = now or datetime.now()
    with get_db_connection() as conn:
        cursor = conn.execute(
            """
            SELECT
                t.id, t.name, t.city, t.volume, t.is_active, t.is_playing,
                t.is_auto_mode, t.last_played_at, t.group_id,
                g.name AS group_name, g.color AS group_color,
                s.id AS style_id, s.name AS style_name
            FROM terminals t
            LEFT JOIN groups g ON g.id = t.group_id
            LEFT JOIN styles s ON s.id = t.current_style_id
            """
        )
        terminals = [_row_to_status(row) for row in cursor.fetchall()]

    popular = get_style_playtime(since=moment - timedelta(days=POPULAR_WINDOW_DAYS))
    return partition_terminals(
        terminals, get_listened_seconds(moment), popular[:POPULAR_STYLES_LIMIT]
    )


def get_counts() -> dict[str, int]:
    """Headline counts: terminals, styles, styles with a mix, play sessions."""
    with get_db_connection() as conn:
        row = conn.execute(
            """
            SELECT
                (SELECT COUNT(*) FROM terminals) AS terminals,
                (SELECT COUNT(*) FROM styles) AS styles,
                (SELECT COUNT(*) FROM styles WHERE mix_url IS NOT NULL) AS styles_with_mix,
                (SELECT COUNT(*) FROM play_sessions) AS sessions
            """
        ).fetchone()
    return dict(row)
