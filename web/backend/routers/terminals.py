"""
Terminal endpoints: the calls a running terminal makes about itself.

Heartbeats, explicit style switches, resume lookups, schedule resolution,
own-settings updates, favorite styles and audit events.
"""

from datetime import datetime
from typing import Optional

from fastapi import APIRouter, HTTPException, Query
from loguru import logger

from aura.domain.activity import log_activity
from aura.domain.catalog import (
    Terminal,
    find_style,
    get_favorites,
    get_terminal,
    toggle_favorite,
    update_terminal_settings,
)
from aura.domain.exceptions import (
    NoActiveStyleError,
    NotFoundError,
    StyleUnavailableError,
)
from aura.domain.progress import change_style, get_position, record_heartbeat
from aura.domain.schedule import format_hhmm, get_current_program

from ..schemas import (
    ActivityEntryResponse,
    ActivityRequest,
    ChangeStyleRequest,
    ChangeStyleResponse,
    CurrentProgramResponse,
    FavoriteToggleRequest,
    FavoriteToggleResponse,
    PositionResponse,
    SavePositionRequest,
    SavePositionResponse,
    StyleResponse,
    TerminalResponse,
    TerminalSettingsRequest,
)
from .styles import style_to_response

router = APIRouter(prefix="/terminals", tags=["terminals"])


def _terminal_to_response(terminal: Terminal) -> TerminalResponse:
    style = find_style(terminal.current_style_id) if terminal.current_style_id else None
    return TerminalResponse(
        id=terminal.id,
        name=terminal.name,
        city=terminal.city,
        group_id=terminal.group_id,
        is_active=terminal.is_active,
        current_style_id=terminal.current_style_id,
        volume=terminal.volume,
        is_playing=terminal.is_playing,
        is_auto_mode=terminal.is_auto_mode,
        last_played_at=terminal.last_played_at,
        style=style_to_response(style) if style else None,
    )


@router.get("/{terminal_id}", response_model=TerminalResponse)
def get_terminal_by_id(terminal_id: str) -> TerminalResponse:
    """Get a terminal with its active style."""
    try:
        return _terminal_to_response(get_terminal(terminal_id))
    except NotFoundError as e:
        raise HTTPException(status_code=404, detail=str(e))


@router.patch("/{terminal_id}", response_model=TerminalResponse)
def update_terminal(terminal_id: str, req: TerminalSettingsRequest) -> TerminalResponse:
    """Update a terminal's own settings (volume, auto-mode, play flag)."""
    try:
        terminal = update_terminal_settings(
            terminal_id,
            volume=req.volume,
            is_auto_mode=req.is_auto_mode,
            is_playing=req.is_playing,
        )
        return _terminal_to_response(terminal)
    except NotFoundError as e:
        raise HTTPException(status_code=404, detail=str(e))
    except ValueError as e:
        raise HTTPException(status_code=400, detail=str(e))
    except Exception:
        logger.exception(f"Settings update on terminal {terminal_id} failed")
        raise HTTPException(status_code=500, detail="Failed to update terminal")


@router.get("/{terminal_id}/current-program", response_model=CurrentProgramResponse)
def get_terminal_program(
    terminal_id: str, at: Optional[str] = Query(default=None)
) -> CurrentProgramResponse:
    """Resolve which style the schedule wants on this terminal now (or at "at").

    Read-only: the terminal's active style is not changed.
    """
    now = at or format_hhmm(datetime.now())
    try:
        get_terminal(terminal_id)
        style = get_current_program(terminal_id, now)
    except NotFoundError as e:
        raise HTTPException(status_code=404, detail=str(e))
    except ValueError as e:
        raise HTTPException(status_code=400, detail=str(e))

    return CurrentProgramResponse(
        at=now, style=style_to_response(style) if style else None
    )


@router.post("/{terminal_id}/save-position", response_model=SavePositionResponse)
def save_position(terminal_id: str, req: SavePositionRequest) -> SavePositionResponse:
    """Heartbeat: save the resume position and credit today's play session."""
    try:
        result = record_heartbeat(terminal_id, req.position, req.is_playing)
    except NotFoundError as e:
        raise HTTPException(status_code=404, detail=str(e))
    except NoActiveStyleError as e:
        raise HTTPException(status_code=400, detail=str(e))
    except Exception:
        logger.exception(f"Heartbeat from terminal {terminal_id} failed")
        raise HTTPException(status_code=500, detail="Failed to save position")

    return SavePositionResponse(
        success=True,
        style_id=result.style_id,
        last_position=result.last_position,
        session_total=result.session_total,
    )


@router.post("/{terminal_id}/change-style", response_model=ChangeStyleResponse)
def change_terminal_style(
    terminal_id: str, req: ChangeStyleRequest
) -> ChangeStyleResponse:
    """Make a style active and return where this terminal left it."""
    try:
        change = change_style(terminal_id, req.style_id)
    except NotFoundError as e:
        raise HTTPException(status_code=404, detail=str(e))
    except StyleUnavailableError as e:
        raise HTTPException(status_code=400, detail=str(e))
    except Exception:
        logger.exception(f"Style change on terminal {terminal_id} failed")
        raise HTTPException(status_code=500, detail="Failed to change style")

    return ChangeStyleResponse(
        terminal=_terminal_to_response(change.terminal),
        style=style_to_response(change.style),
        resume_position=change.resume_position,
    )


@router.get("/{terminal_id}/position", response_model=PositionResponse)
def get_style_position(
    terminal_id: str, style_id: Optional[str] = Query(default=None)
) -> PositionResponse:
    """Saved resume position for a style, 0 when nothing was saved."""
    try:
        position = get_position(terminal_id, style_id)
    except NotFoundError as e:
        raise HTTPException(status_code=404, detail=str(e))
    return PositionResponse(style_id=style_id, position=position)


@router.post(
    "/{terminal_id}/activity", response_model=ActivityEntryResponse, status_code=201
)
def record_activity(terminal_id: str, req: ActivityRequest) -> ActivityEntryResponse:
    """Append a PLAY, PAUSE or CHANGE_STYLE audit entry."""
    try:
        entry = log_activity(terminal_id, req.action, req.details)
    except NotFoundError as e:
        raise HTTPException(status_code=404, detail=str(e))
    except ValueError as e:
        raise HTTPException(status_code=400, detail=str(e))
    except Exception:
        logger.exception(f"Activity from terminal {terminal_id} not recorded")
        raise HTTPException(status_code=500, detail="Failed to record activity")

    return ActivityEntryResponse(
        id=entry.id,
        terminal_id=entry.terminal_id,
        action=entry.action,
        details=entry.details,
        created_at=entry.created_at,
    )


@router.get("/{terminal_id}/favorites", response_model=list[StyleResponse])
def list_favorites(terminal_id: str) -> list[StyleResponse]:
    """The terminal's favorite styles, most recently added first."""
    try:
        return [style_to_response(s) for s in get_favorites(terminal_id)]
    except NotFoundError as e:
        raise HTTPException(status_code=404, detail=str(e))


@router.post("/{terminal_id}/favorites", response_model=FavoriteToggleResponse)
def toggle_favorite_style(
    terminal_id: str, req: FavoriteToggleRequest
) -> FavoriteToggleResponse:
    """Add a style to the favorites, or remove it when already there."""
    try:
        is_favorite = toggle_favorite(terminal_id, req.style_id)
    except NotFoundError as e:
        raise HTTPException(status_code=404, detail=str(e))
    except Exception:
        logger.exception(f"Favorite toggle on terminal {terminal_id} failed")
        raise HTTPException(status_code=500, detail="Failed to update favorites")
    return FavoriteToggleResponse(is_favorite=is_favorite)
