"""Student endpoints."""

from fastapi import APIRouter, Query, status

from caseload.db.helpers import merge_changes, new_id, now_iso
from caseload.db.schools_repository import ensure_school
from caseload.db.students_repository import (
    StudentRecord,
    delete_student,
    get_student,
    insert_student,
    list_students,
    update_student,
)
from caseload.web.routes.common import not_found, payload_fields
from caseload.web.schemas import StudentCreate, StudentResponse, StudentUpdate

router = APIRouter(prefix="/api/students", tags=["students"])


@router.get("", response_model=list[StudentResponse])
async def list_all_students(
    school: str | None = None,
    teacher_id: str | None = Query(default=None, alias="teacherId"),
    case_manager_id: str | None = Query(default=None, alias="caseManagerId"),
) -> list[StudentRecord]:
    """List students, optionally filtered by school, teacher or case manager."""
    return list_students(
        school=school, teacher_id=teacher_id, case_manager_id=case_manager_id
    )


@router.get("/{student_id}", response_model=StudentResponse)
async def get_one_student(student_id: str) -> StudentRecord:
    """Get a specific student by ID."""
    student = get_student(student_id)
    if student is None:
        raise not_found("Student")
    return student


@router.post("", response_model=StudentResponse, status_code=status.HTTP_201_CREATED)
async def create_student(body: StudentCreate) -> StudentRecord:
    """Create a student, creating the school on the fly when it is new."""
    data = payload_fields(body)
    data["id"] = data["id"] or new_id("student")
    data["date_added"] = data["date_added"] or now_iso()
    data["school"] = ensure_school(body.school).name

    student = StudentRecord(**data)
    insert_student(student)
    return student


@router.put("/{student_id}", response_model=StudentResponse)
async def update_one_student(student_id: str, body: StudentUpdate) -> StudentRecord:
    """Partially update a student."""
    student = get_student(student_id)
    if student is None:
        raise not_found("Student")

    changes = payload_fields(body, partial=True)
    if changes.get("school"):
        changes["school"] = ensure_school(changes["school"]).name

    updated = merge_changes(student, changes)
    update_student(updated)
    return updated


@router.delete("/{student_id}", status_code=status.HTTP_204_NO_CONTENT)
async def delete_one_student(student_id: str) -> None:
    """Delete a student and everything that cascades from it."""
    if not delete_student(student_id):
        raise not_found("Student")
