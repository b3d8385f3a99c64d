"""
Live status endpoint for the operations dashboard.
"""

from fastapi import APIRouter, HTTPException
from loguru import logger

from aura.domain.live import LiveStatus, TerminalStatus, build_live_status

from ..schemas import (
    FeaturedStyleResponse,
    GroupResponse,
    LiveStatsResponse,
    LiveStatusResponse,
    LiveStoresResponse,
    LiveTerminalResponse,
    StyleRefResponse,
)
from .stats import style_playtime_to_response

router = APIRouter()


def _status_to_response(terminal: TerminalStatus) -> LiveTerminalResponse:
    group = None
    if terminal.group is not None:
        group = GroupResponse(
            id=terminal.group.id, name=terminal.group.name, color=terminal.group.color
        )
    style = None
    if terminal.style is not None:
        style = StyleRefResponse(id=terminal.style.id, name=terminal.style.name)
    return LiveTerminalResponse(
        id=terminal.id,
        name=terminal.name,
        city=terminal.city,
        volume=terminal.volume,
        is_active=terminal.is_active,
        is_playing=terminal.is_playing,
        is_auto_mode=terminal.is_auto_mode,
        last_played_at=terminal.last_played_at,
        group=group,
        style=style,
    )


def _live_to_response(live: LiveStatus) -> LiveStatusResponse:
    featured = None
    if live.featured is not None:
        style = live.featured.style
        featured = FeaturedStyleResponse(
            style=StyleRefResponse(id=style.id, name=style.name),
            terminal_count=live.featured.terminal_count,
        )
    return LiveStatusResponse(
        stats=LiveStatsResponse(
            total=live.stats.total,
            active=live.stats.active,
            playing_now=live.stats.playing_now,
            auto_mode_count=live.stats.auto_mode_count,
            listened_seconds_today=live.stats.listened_seconds_today,
        ),
        stores=LiveStoresResponse(
            playing=[_status_to_response(t) for t in live.playing],
            paused=[_status_to_response(t) for t in live.paused],
            inactive=[_status_to_response(t) for t in live.inactive],
        ),
        featured=featured,
        popular_styles=[style_playtime_to_response(s) for s in live.popular_styles],
    )


@router.get("/live", response_model=LiveStatusResponse)
def get_live_status() -> LiveStatusResponse:
    """Terminals grouped as playing / paused / inactive, plus counts and popular styles."""
    try:
        return _live_to_response(build_live_status())
    except Exception:
        logger.exception("Failed to build live status")
        raise HTTPException(status_code=500, detail="Failed to get live status")
