from fastapi import APIRouter, HTTPException
from loguru import logger

from aura.domain.live import Analytics, build_analytics, get_counts
from aura.domain.progress import (
    DailyPlaytime,
    StylePlaytime,
    TerminalPlaytime,
    get_listened_seconds,
)

from ..schemas import (
    AnalyticsKpisResponse,
    AnalyticsResponse,
    DailyPlaytimeResponse,
    StatsResponse,
    StylePlaytimeResponse,
    TerminalPlaytimeResponse,
)

router = APIRouter()


def style_playtime_to_response(style: StylePlaytime) -> StylePlaytimeResponse:
    return StylePlaytimeResponse(
        id=style.style_id,
        name=style.name,
        duration=style.duration,
        seconds=style.seconds,
        sessions=style.sessions,
    )


def _terminal_playtime_to_response(terminal: TerminalPlaytime) -> TerminalPlaytimeResponse:
    return TerminalPlaytimeResponse(
        id=terminal.terminal_id,
        name=terminal.name,
        seconds=terminal.seconds,
        sessions=terminal.sessions,
        favorite_style=terminal.favorite_style,
    )


def _daily_to_response(day: DailyPlaytime) -> DailyPlaytimeResponse:
    return DailyPlaytimeResponse(day=day.day, seconds=day.seconds)


def _analytics_to_response(analytics: Analytics) -> AnalyticsResponse:
    kpis = analytics.kpis
    return AnalyticsResponse(
        kpis=AnalyticsKpisResponse(
            total_seconds=kpis.total_seconds,
            total_sessions=kpis.total_sessions,
            active_terminals=kpis.active_terminals,
            total_terminals=kpis.total_terminals,
            top_style=kpis.top_style,
        ),
        style_distribution=[
            style_playtime_to_response(s) for s in analytics.style_distribution
        ],
        terminal_stats=[
            _terminal_playtime_to_response(t) for t in analytics.terminal_stats
        ],
        top_terminals=[_terminal_playtime_to_response(t) for t in analytics.top_terminals],
        daily=[_daily_to_response(d) for d in analytics.daily],
    )


@router.get("/stats", response_model=StatsResponse)
def get_stats() -> StatsResponse:
    """Headline counts for the admin dashboard."""
    try:
        counts = get_counts()
        return StatsResponse(
            terminals=counts["terminals"],
            styles=counts["styles"],
            styles_with_mix=counts["styles_with_mix"],
            sessions=counts["sessions"],
            listened_seconds_today=get_listened_seconds(),
        )
    except Exception:
        logger.exception("Failed to compute stats")
        raise HTTPException(status_code=500, detail="Failed to get stats")


@router.get("/analytics", response_model=AnalyticsResponse)
def get_analytics() -> AnalyticsResponse:
    """Listening time per style, per terminal and over the last week."""
    try:
        return _analytics_to_response(build_analytics())
    except Exception:
        logger.exception("Failed to compute analytics")
        raise HTTPException(status_code=500, detail="Failed to get analytics")
