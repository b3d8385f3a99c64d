"""
Activity log read-back for the admin view.
"""

from typing import Optional

from fastapi import APIRouter, HTTPException, Query

from aura.domain.activity import get_activity

from ..schemas import ActivityEntryResponse, ActivityListResponse

router = APIRouter()


@router.get("/activity", response_model=ActivityListResponse)
def list_activity(
    terminal_id: Optional[str] = Query(default=None),
    date: Optional[str] = Query(default=None, description="YYYY-MM-DD"),
    limit: int = Query(default=100, ge=1, le=1000),
) -> ActivityListResponse:
    """Audit entries, newest first."""
    try:
        entries = get_activity(terminal_id=terminal_id, day=date, limit=limit)
    except ValueError as e:
        raise HTTPException(status_code=400, detail=f"Invalid date: {e}")

    return ActivityListResponse(
        entries=[
            ActivityEntryResponse(
                id=e.id,
                terminal_id=e.terminal_id,
                action=e.action,
                details=e.details,
                created_at=e.created_at,
            )
            for e in entries
        ]
    )
