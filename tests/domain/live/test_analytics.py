"""Tests for listening analytics over play sessions."""

from datetime import datetime, timedelta

import pytest

from aura.domain.catalog import create_terminal
from aura.domain.live import build_analytics
from aura.domain.progress import (
    change_style,
    get_daily_playtime,
    get_style_playtime,
    get_terminal_playtime,
    record_heartbeat,
)

NOW = datetime(2024, 5, 10, 15, 0, 0)


def _listen(terminal_id: str, style_id: str, beats: int, when: datetime) -> None:
    change_style(terminal_id, style_id)
    for i in range(beats):
        record_heartbeat(terminal_id, i * 10, True, now=when)


@pytest.fixture
def listening(catalog):
    """T1: 30s lounge today, 10s jazz two days ago. T2: 20s jazz today."""
    _listen("T1", "lounge", 3, NOW)
    _listen("T1", "jazz", 1, NOW - timedelta(days=2))
    _listen("T2", "jazz", 2, NOW)
    return catalog


class TestStylePlaytime:
    def test_all_styles_most_listened_first(self, listening) -> None:
        playtime = get_style_playtime()
        assert [(s.style_id, s.seconds, s.sessions) for s in playtime] == [
            ("jazz", 30, 2),
            ("lounge", 30, 1),
            ("techno", 0, 0),
        ]

    def test_since_bounds_sessions(self, listening) -> None:
        playtime = get_style_playtime(since=NOW - timedelta(days=1))
        assert {s.style_id: s.seconds for s in playtime} == {
            "lounge": 30,
            "jazz": 20,
            "techno": 0,
        }


class TestTerminalPlaytime:
    def test_totals_and_favorite_style(self, listening) -> None:
        create_terminal("Idle Store", terminal_id="T3")

        stats = get_terminal_playtime()
        assert [(t.terminal_id, t.seconds, t.sessions) for t in stats] == [
            ("T1", 40, 2),
            ("T2", 20, 1),
            ("T3", 0, 0),
        ]
        assert stats[0].favorite_style == "Lounge"
        assert stats[1].favorite_style == "Jazz"
        assert stats[2].favorite_style is None


def test_daily_playtime_oldest_first(listening) -> None:
    daily = get_daily_playtime(7, now=NOW)
    assert [d.day for d in daily] == [
        "2024-05-04",
        "2024-05-05",
        "2024-05-06",
        "2024-05-07",
        "2024-05-08",
        "2024-05-09",
        "2024-05-10",
    ]
    assert daily[4].seconds == 10
    assert daily[-1].seconds == 50
    assert sum(d.seconds for d in daily) == 60


class TestBuildAnalytics:
    def test_kpis(self, listening) -> None:
        create_terminal("Idle Store", terminal_id="T3")

        analytics = build_analytics(now=NOW)

        assert analytics.kpis.total_seconds == 60
        assert analytics.kpis.total_sessions == 3
        assert analytics.kpis.active_terminals == 2
        assert analytics.kpis.total_terminals == 3
        assert analytics.kpis.top_style == "Jazz"
        assert [s.style_id for s in analytics.style_distribution] == ["jazz", "lounge"]
        assert [t.terminal_id for t in analytics.top_terminals] == ["T1", "T2", "T3"]
        assert len(analytics.daily) == 7

    def test_no_sessions(self, catalog) -> None:
        analytics = build_analytics(now=NOW)

        assert analytics.kpis.total_seconds == 0
        assert analytics.kpis.top_style is None
        assert analytics.style_distribution == []
        assert analytics.kpis.active_terminals == 0
        assert all(d.seconds == 0 for d in analytics.daily)
