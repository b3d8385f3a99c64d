"""
Listening analytics over all recorded play sessions.

Everything is reported in seconds; turning them into hours is the
dashboard's business.
"""

from dataclasses import dataclass, field
from datetime import datetime
from typing import Optional

from ..progress.sessions import (
    DailyPlaytime,
    StylePlaytime,
    TerminalPlaytime,
    get_daily_playtime,
    get_style_playtime,
    get_terminal_playtime,
)

DAILY_WINDOW_DAYS = 7
TOP_TERMINALS_LIMIT = 5


@dataclass(frozen=True)
class AnalyticsKpis:
    total_seconds: int
    total_sessions: int
    active_terminals: int  # terminals with at least one session
    total_terminals: int
    top_style: Optional[str]


@dataclass(frozen=True)
class Analytics:
    kpis: AnalyticsKpis
    style_distribution: list[StylePlaytime] = field(default_factory=list)
    terminal_stats: list[TerminalPlaytime] = field(default_factory=list)
    daily: list[DailyPlaytime] = field(default_factory=list)

    @property
    def top_terminals(self) -> list[TerminalPlaytime]:
        return self.terminal_stats[:TOP_TERMINALS_LIMIT]


def build_analytics(now: Optional[datetime] = None) -> Analytics:
    """Aggregate listening per style, per terminal and per day."""
    distribution = [s for s in get_style_playtime() if s.sessions > 0]
    terminals = get_terminal_playtime()

    kpis = AnalyticsKpis(
        total_seconds=sum(s.seconds for s in distribution),
        total_sessions=sum(s.sessions for s in distribution),
        active_terminals=sum(1 for t in terminals if t.sessions > 0),
        total_terminals=len(terminals),
        top_style=distribution[0].name if distribution else None,
    )
    return Analytics(
        kpis=kpis,
        style_distribution=distribution,
        terminal_stats=terminals,
        daily=get_daily_playtime(DAILY_WINDOW_DAYS, now),
    )
