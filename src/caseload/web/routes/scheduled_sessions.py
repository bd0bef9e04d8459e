"""Scheduled session endpoints and calendar expansion."""

from fastapi import APIRouter, Query, status

from caseload.core.session_calendar import expand_occurrences
from caseload.db.helpers import merge_changes, new_id, now_iso, parse_date
from caseload.db.scheduled_sessions_repository import (
    ScheduledSessionRecord,
    delete_scheduled_session,
    get_scheduled_session,
    insert_scheduled_session,
    list_scheduled_sessions,
    update_scheduled_session,
)
from caseload.db.sessions_repository import list_sessions
from caseload.web.errors import ApiValidationError
from caseload.web.routes.common import not_found, payload_fields
from caseload.web.schemas import (
    OccurrenceResponse,
    ScheduledSessionCreate,
    ScheduledSessionResponse,
    ScheduledSessionUpdate,
)

router = APIRouter(prefix="/api/scheduled-sessions", tags=["scheduled-sessions"])

MAX_WINDOW_DAYS = 366


@router.get("", response_model=list[ScheduledSessionResponse])
async def list_all_scheduled_sessions(school: str | None = None) -> list[ScheduledSessionRecord]:
    """List active scheduled sessions."""
    return list_scheduled_sessions(school=school)


@router.get("/occurrences", response_model=list[OccurrenceResponse])
async def list_occurrences(
    start_date: str = Query(..., alias="startDate"),
    end_date: str = Query(..., alias="endDate"),
    school: str | None = None,
) -> list[OccurrenceResponse]:
    """Expand active schedules into dated occurrences within a window."""
    window_start = parse_date(start_date)
    window_end = parse_date(end_date)
    if window_start is None:
        raise ApiValidationError("startDate", "Must be a date (YYYY-MM-DD)")
    if window_end is None:
        raise ApiValidationError("endDate", "Must be a date (YYYY-MM-DD)")
    if window_end < window_start:
        raise ApiValidationError("endDate", "Must not be before startDate")
    if (window_end - window_start).days > MAX_WINDOW_DAYS:
        raise ApiValidationError("endDate", f"Window must be at most {MAX_WINDOW_DAYS} days")

    logged = list_sessions(
        school=school, start_date=window_start.isoformat(), end_date=window_end.isoformat()
    )
    occurrences = expand_occurrences(
        list_scheduled_sessions(school=school), window_start, window_end, logged
    )
    return [
        OccurrenceResponse(
            id=o.id,
            scheduled_session_id=o.scheduled_session_id,
            date=o.date,
            start_time=o.start_time,
            end_time=o.end_time,
            student_ids=o.student_ids,
            goals_targeted=o.goals_targeted,
            is_direct_services=o.is_direct_services,
            has_conflict=o.has_conflict,
            is_logged=o.is_logged,
            is_missed=o.is_missed,
        )
        for o in occurrences
    ]


@router.get("/{scheduled_session_id}", response_model=ScheduledSessionResponse)
async def get_one_scheduled_session(scheduled_session_id: str) -> ScheduledSessionRecord:
    scheduled = get_scheduled_session(scheduled_session_id)
    if scheduled is None:
        raise not_found("Scheduled session")
    return scheduled


@router.post("", response_model=ScheduledSessionResponse, status_code=status.HTTP_201_CREATED)
async def create_scheduled_session(body: ScheduledSessionCreate) -> ScheduledSessionRecord:
    """Create a scheduled session."""
    data = payload_fields(body)
    now = now_iso()
    data["id"] = data["id"] or new_id("scheduled")
    data["date_created"] = now
    data["date_updated"] = now

    scheduled = ScheduledSessionRecord(**data)
    insert_scheduled_session(scheduled)
    return scheduled


@router.put("/{scheduled_session_id}", response_model=ScheduledSessionResponse)
async def update_one_scheduled_session(
    scheduled_session_id: str, body: ScheduledSessionUpdate
) -> ScheduledSessionRecord:
    """Partially update a scheduled session."""
    scheduled = get_scheduled_session(scheduled_session_id)
    if scheduled is None:
        raise not_found("Scheduled session")

    changes = payload_fields(body, partial=True)
    changes["date_updated"] = now_iso()
    updated = merge_changes(scheduled, changes)
    update_scheduled_session(updated)
    return updated


@router.delete("/{scheduled_session_id}", status_code=status.HTTP_204_NO_CONTENT)
async def delete_one_scheduled_session(scheduled_session_id: str) -> None:
    if not delete_scheduled_session(scheduled_session_id):
        raise not_found("Scheduled session")
