"""Goal endpoints."""

from fastapi import APIRouter, Query, status

from caseload.core.goal_hierarchy import GoalHierarchy, organize_goals
from caseload.db.goals_repository import (
    GoalRecord,
    delete_goal,
    delete_goals,
    get_goal,
    insert_goal,
    list_goals,
    update_goal,
)
from caseload.db.helpers import merge_changes, new_id, now_iso
from caseload.web.routes.common import not_found, payload_fields, require_student
from caseload.web.schemas import (
    BulkDeleteRequest,
    BulkDeleteResponse,
    GoalCreate,
    GoalHierarchyResponse,
    GoalResponse,
    GoalUpdate,
)

router = APIRouter(prefix="/api/goals", tags=["goals"])


@router.get("", response_model=list[GoalResponse])
async def list_all_goals(
    student_id: str | None = Query(default=None, alias="studentId"),
    school: str | None = None,
) -> list[GoalRecord]:
    """List goals for a student or for every student of a school."""
    return list_goals(student_id=student_id, school=school)


@router.get("/hierarchy", response_model=GoalHierarchyResponse)
async def get_goal_hierarchy(
    student_id: str = Query(..., alias="studentId", min_length=1),
) -> GoalHierarchy:
    """Goals of one student grouped into parents, sub-goals and orphans."""
    return organize_goals(list_goals(student_id=student_id))


@router.get("/{goal_id}", response_model=GoalResponse)
async def get_one_goal(goal_id: str) -> GoalRecord:
    """Get a specific goal by ID."""
    goal = get_goal(goal_id)
    if goal is None:
        raise not_found("Goal")
    return goal


@router.post("", response_model=GoalResponse, status_code=status.HTTP_201_CREATED)
async def create_goal(body: GoalCreate) -> GoalRecord:
    """Create a goal for an existing student."""
    require_student(body.student_id)

    data = payload_fields(body)
    data["id"] = data["id"] or new_id("goal")
    data["date_created"] = data["date_created"] or now_iso()

    goal = GoalRecord(**data)
    insert_goal(goal)
    return goal


@router.put("/{goal_id}", response_model=GoalResponse)
async def update_one_goal(goal_id: str, body: GoalUpdate) -> GoalRecord:
    """Partially update a goal."""
    goal = get_goal(goal_id)
    if goal is None:
        raise not_found("Goal")

    updated = merge_changes(goal, payload_fields(body, partial=True))
    update_goal(updated)
    return updated


@router.delete("/bulk", response_model=BulkDeleteResponse)
async def bulk_delete_goals(body: BulkDeleteRequest) -> BulkDeleteResponse:
    """Delete several goals at once."""
    return BulkDeleteResponse(deleted_count=delete_goals(body.ids))


@router.delete("/{goal_id}", status_code=status.HTTP_204_NO_CONTENT)
async def delete_one_goal(goal_id: str) -> None:
    """Delete a goal by ID."""
    if not delete_goal(goal_id):
        raise not_found("Goal")
