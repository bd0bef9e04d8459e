"""Caseload reminder endpoint."""

from fastapi import APIRouter

from caseload.core.reminders import Reminder, get_reminders
from caseload.web.schemas import ReminderResponse

router = APIRouter(prefix="/api/reminders", tags=["reminders"])


@router.get("", response_model=list[ReminderResponse])
async def list_reminders(school: str | None = None) -> list[Reminder]:
    """Reminders sorted by priority, then by days until due."""
    return get_reminders(school=school)
