"""
Schedule endpoints: time-of-day programming per terminal or globally.
"""

from typing import Optional

from fastapi import APIRouter, HTTPException, Query

from aura.domain.exceptions import NotFoundError
from aura.domain.schedule import (
    ScheduleEntry,
    add_schedule_entry,
    delete_schedule_entry,
    get_schedule_entries,
    update_schedule_entry,
)

from ..schemas import (
    CreateScheduleRequest,
    ScheduleEntryResponse,
    UpdateScheduleRequest,
)

router = APIRouter(prefix="/schedules", tags=["schedules"])


def _schedule_entry_to_response(entry: ScheduleEntry) -> ScheduleEntryResponse:
    return ScheduleEntryResponse(
        id=entry.id,
        start_time=entry.start_time,
        end_time=entry.end_time,
        style_id=entry.style_id,
        terminal_id=entry.terminal_id,
    )


@router.get("", response_model=list[ScheduleEntryResponse])
def list_schedule(
    terminal_id: Optional[str] = Query(default=None),
) -> list[ScheduleEntryResponse]:
    """List schedule entries in creation order.

    With terminal_id, only that terminal's entries plus global ones.
    """
    return [_schedule_entry_to_response(e) for e in get_schedule_entries(terminal_id)]


@router.post("", response_model=ScheduleEntryResponse, status_code=201)
def create_schedule_entry(req: CreateScheduleRequest) -> ScheduleEntryResponse:
    """Add a schedule entry."""
    try:
        entry = add_schedule_entry(
            req.start_time, req.end_time, req.style_id, req.terminal_id
        )
        return _schedule_entry_to_response(entry)
    except NotFoundError as e:
        raise HTTPException(status_code=404, detail=str(e))
    except ValueError as e:
        raise HTTPException(status_code=400, detail=str(e))


@router.patch("/{entry_id}", response_model=ScheduleEntryResponse)
def edit_schedule_entry(
    entry_id: int, req: UpdateScheduleRequest
) -> ScheduleEntryResponse:
    """Update a schedule entry."""
    try:
        entry = update_schedule_entry(
            entry_id,
            start_time=req.start_time,
            end_time=req.end_time,
            style_id=req.style_id,
        )
        return _schedule_entry_to_response(entry)
    except NotFoundError as e:
        raise HTTPException(status_code=404, detail=str(e))
    except ValueError as e:
        raise HTTPException(status_code=400, detail=str(e))


@router.delete("/{entry_id}")
def remove_schedule_entry(entry_id: int) -> dict[str, bool]:
    """Delete a schedule entry."""
    if not delete_schedule_entry(entry_id):
        raise HTTPException(status_code=404, detail="Schedule entry not found")
    return {"ok": True}
