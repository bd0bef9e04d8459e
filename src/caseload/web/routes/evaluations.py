"""Evaluation endpoints."""

from fastapi import APIRouter, Query, status

from caseload.db.evaluations_repository import (
    EvaluationRecord,
    delete_evaluation,
    get_evaluation,
    insert_evaluation,
    list_evaluations,
    update_evaluation,
)
from caseload.db.helpers import merge_changes, new_id, now_iso
from caseload.web.routes.common import not_found, payload_fields, require_student
from caseload.web.schemas import EvaluationCreate, EvaluationResponse, EvaluationUpdate

router = APIRouter(prefix="/api/evaluations", tags=["evaluations"])


@router.get("", response_model=list[EvaluationResponse])
async def list_all_evaluations(
    student_id: str | None = Query(default=None, alias="studentId"),
    school: str | None = None,
) -> list[EvaluationRecord]:
    """List evaluations newest first."""
    return list_evaluations(student_id=student_id, school=school)


@router.get("/{evaluation_id}", response_model=EvaluationResponse)
async def get_one_evaluation(evaluation_id: str) -> EvaluationRecord:
    """Get a specific evaluation by ID."""
    evaluation = get_evaluation(evaluation_id)
    if evaluation is None:
        raise not_found("Evaluation")
    return evaluation


@router.post("", response_model=EvaluationResponse, status_code=status.HTTP_201_CREATED)
async def create_evaluation(body: EvaluationCreate) -> EvaluationRecord:
    """Create an evaluation for an existing student."""
    require_student(body.student_id)

    data = payload_fields(body)
    now = now_iso()
    data["id"] = data["id"] or new_id("evaluation")
    data["date_created"] = data["date_created"] or now
    data["date_updated"] = now

    evaluation = EvaluationRecord(**data)
    insert_evaluation(evaluation)
    return evaluation


@router.put("/{evaluation_id}", response_model=EvaluationResponse)
async def update_one_evaluation(
    evaluation_id: str, body: EvaluationUpdate
) -> EvaluationRecord:
    """Partially update an evaluation, stamping dateUpdated."""
    evaluation = get_evaluation(evaluation_id)
    if evaluation is None:
        raise not_found("Evaluation")

    changes = payload_fields(body, partial=True)
    changes["date_updated"] = now_iso()
    updated = merge_changes(evaluation, changes)
    update_evaluation(updated)
    return updated


@router.delete("/{evaluation_id}", status_code=status.HTTP_204_NO_CONTENT)
async def delete_one_evaluation(evaluation_id: str) -> None:
    if not delete_evaluation(evaluation_id):
        raise not_found("Evaluation")
