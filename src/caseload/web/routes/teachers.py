"""Teacher endpoints."""

from fastapi import APIRouter, status

from caseload.db.helpers import merge_changes, new_id, now_iso
from caseload.db.staff_repository import (
    TeacherRecord,
    delete_teacher,
    get_teacher,
    insert_teacher,
    list_teachers,
    update_teacher,
)
from caseload.web.routes.common import not_found, payload_fields
from caseload.web.schemas import TeacherCreate, TeacherResponse, TeacherUpdate

router = APIRouter(prefix="/api/teachers", tags=["teachers"])


@router.get("", response_model=list[TeacherResponse])
async def list_all_teachers(school: str | None = None) -> list[TeacherRecord]:
    """List teachers by name; a school filter also keeps teachers without one."""
    return list_teachers(school=school)


@router.get("/{teacher_id}", response_model=TeacherResponse)
async def get_one_teacher(teacher_id: str) -> TeacherRecord:
    """Get a specific teacher by ID."""
    teacher = get_teacher(teacher_id)
    if teacher is None:
        raise not_found("Teacher")
    return teacher


@router.post("", response_model=TeacherResponse, status_code=status.HTTP_201_CREATED)
async def create_teacher(body: TeacherCreate) -> TeacherRecord:
    """Create a teacher."""
    data = payload_fields(body)
    data["id"] = data["id"] or new_id("teacher")
    data["date_created"] = data["date_created"] or now_iso()

    teacher = TeacherRecord(**data)
    insert_teacher(teacher)
    return teacher


@router.put("/{teacher_id}", response_model=TeacherResponse)
async def update_one_teacher(teacher_id: str, body: TeacherUpdate) -> TeacherRecord:
    """Partially update a teacher."""
    teacher = get_teacher(teacher_id)
    if teacher is None:
        raise not_found("Teacher")

    updated = merge_changes(teacher, payload_fields(body, partial=True))
    update_teacher(updated)
    return updated


@router.delete("/{teacher_id}", status_code=status.HTTP_204_NO_CONTENT)
async def delete_one_teacher(teacher_id: str) -> None:
    """Delete a teacher by ID."""
    if not delete_teacher(teacher_id):
        raise not_found("Teacher")
