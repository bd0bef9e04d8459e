"""Due-date item endpoints.

Statuses are derived on read: anything not completed whose due date has
passed is reported as ``overdue``.
"""

from fastapi import APIRouter, Query, status

from caseload.db.due_date_items_repository import (
    DueDateItemRecord,
    compute_status,
    delete_due_date_item,
    delete_due_date_items,
    get_due_date_item,
    insert_due_date_item,
    list_due_date_items,
    list_upcoming_due_date_items,
    update_due_date_item,
)
from caseload.db.helpers import merge_changes, new_id, now_iso
from caseload.web.routes.common import not_found, payload_fields, require_student
from caseload.web.schemas import (
    BulkDeleteRequest,
    BulkDeleteResponse,
    CompleteRequest,
    DueDateItemCreate,
    DueDateItemResponse,
    DueDateItemUpdate,
)

router = APIRouter(prefix="/api/due-date-items", tags=["due-date-items"])


@router.get("", response_model=list[DueDateItemResponse])
async def list_all_due_date_items(
    student_id: str | None = Query(default=None, alias="studentId"),
    item_status: str | None = Query(default=None, alias="status"),
    category: str | None = None,
    school: str | None = None,
    start_date: str | None = Query(default=None, alias="startDate"),
    end_date: str | None = Query(default=None, alias="endDate"),
) -> list[DueDateItemRecord]:
    """List items by due date."""
    return list_due_date_items(
        student_id=student_id,
        status=item_status,
        category=category,
        school=school,
        start_date=start_date,
        end_date=end_date,
    )


@router.get("/upcoming", response_model=list[DueDateItemResponse])
async def list_upcoming_items(
    days: int = Query(default=30, ge=0, le=366),
    school: str | None = None,
) -> list[DueDateItemRecord]:
    """Open items due within ``days``."""
    return list_upcoming_due_date_items(days=days, school=school)


@router.get("/{item_id}", response_model=DueDateItemResponse)
async def get_one_due_date_item(item_id: str) -> DueDateItemRecord:
    item = get_due_date_item(item_id)
    if item is None:
        raise not_found("Due date item")
    return item


@router.post("", response_model=DueDateItemResponse, status_code=status.HTTP_201_CREATED)
async def create_due_date_item(body: DueDateItemCreate) -> DueDateItemRecord:
    """Create an item, optionally tied to a student."""
    if body.student_id:
        require_student(body.student_id)

    data = payload_fields(body)
    now = now_iso()
    data["id"] = data["id"] or new_id("due")
    data["date_created"] = now
    data["date_updated"] = now
    if data["status"] == "completed" and not data["completed_date"]:
        data["completed_date"] = now

    item = DueDateItemRecord(**data)
    insert_due_date_item(item)
    item.status = compute_status(item)
    return item


@router.put("/{item_id}", response_model=DueDateItemResponse)
async def update_one_due_date_item(item_id: str, body: DueDateItemUpdate) -> DueDateItemRecord:
    """Partially update an item.

    Moving to ``completed`` stamps completedDate; moving away clears it.
    """
    item = get_due_date_item(item_id)
    if item is None:
        raise not_found("Due date item")

    changes = payload_fields(body, partial=True)
    if changes.get("student_id"):
        require_student(changes["student_id"])

    changes["date_updated"] = now_iso()
    was_completed = item.status == "completed"
    updated = merge_changes(item, changes)
    if updated.status == "completed" and not was_completed:
        updated.completed_date = updated.completed_date or changes["date_updated"]
    elif "status" in changes and updated.status != "completed" and was_completed:
        updated.completed_date = None

    update_due_date_item(updated)
    updated.status = compute_status(updated)
    return updated


@router.post("/{item_id}/complete", response_model=DueDateItemResponse)
async def complete_due_date_item(
    item_id: str, body: CompleteRequest | None = None
) -> DueDateItemRecord:
    """Mark an item completed."""
    item = get_due_date_item(item_id)
    if item is None:
        raise not_found("Due date item")

    now = now_iso()
    item.status = "completed"
    item.completed_date = (body.completed_date if body else None) or now
    item.date_updated = now
    update_due_date_item(item)
    return item


@router.delete("/bulk", response_model=BulkDeleteResponse)
async def bulk_delete_due_date_items(body: BulkDeleteRequest) -> BulkDeleteResponse:
    return BulkDeleteResponse(deleted_count=delete_due_date_items(body.ids))


@router.delete("/{item_id}", status_code=status.HTTP_204_NO_CONTENT)
async def delete_one_due_date_item(item_id: str) -> None:
    if not delete_due_date_item(item_id):
        raise not_found("Due date item")
