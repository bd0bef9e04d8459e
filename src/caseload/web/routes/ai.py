"""AI clinical writing endpoints.

Handlers are plain ``def`` so the blocking model calls run in the
threadpool.
"""

from fastapi import APIRouter, HTTPException, status

from caseload.core.clinical_writer import (
    RECENT_SESSIONS_IN_PROMPT,
    ClinicalText,
    ClinicalWriterError,
    generate_goal_suggestions,
    generate_iep_update,
    generate_progress_note,
    generate_session_plan,
    generate_treatment_ideas,
    generate_treatment_recommendations,
    progress_for_goals,
    sessions_in_period,
)
from caseload.db.goals_repository import GoalRecord, list_goals
from caseload.db.sessions_repository import list_sessions
from caseload.db.students_repository import StudentRecord, get_student
from caseload.llm.client import LLMError
from caseload.web.errors import ApiValidationError
from caseload.web.routes import common
from caseload.web.schemas import (
    AITextResponse,
    GoalSuggestionsRequest,
    IEPUpdateRequest,
    ProgressNoteRequest,
    StudentAIRequest,
    TreatmentIdeasRequest,
)

router = APIRouter(prefix="/api/ai", tags=["ai"])


def _load_student(student_id: str) -> StudentRecord:
    student = get_student(student_id)
    if student is None:
        raise ApiValidationError("studentId", f"Student '{student_id}' does not exist")
    return student


def _active_goals(student_id: str, goal_ids: list[str] | None = None) -> list[GoalRecord]:
    goals = list_goals(student_id=student_id)
    if goal_ids:
        wanted = set(goal_ids)
        return [g for g in goals if g.id in wanted]
    return [g for g in goals if g.status == "in-progress"]


def _run(action, *args, **kwargs) -> ClinicalText:
    """Call a generator, translating its errors to HTTP responses."""
    try:
        return action(*args, **kwargs)
    except ClinicalWriterError as e:
        raise HTTPException(status_code=status.HTTP_400_BAD_REQUEST, detail=str(e)) from e
    except LLMError as e:
        raise common.llm_http_error(e) from e


@router.post("/session-plan", response_model=AITextResponse)
def session_plan(body: StudentAIRequest) -> ClinicalText:
    """Plan the next session from active goals and recent sessions."""
    student = _load_student(body.student_id)
    client = common.build_llm_client(body.api_key)
    recent = list_sessions(student_id=student.id, limit=RECENT_SESSIONS_IN_PROMPT)
    return _run(generate_session_plan, client, student, _active_goals(student.id), recent)


@router.post("/progress-note", response_model=AITextResponse)
def progress_note(body: ProgressNoteRequest) -> ClinicalText:
    """Summarize goal progress over an optional period."""
    student = _load_student(body.student_id)
    client = common.build_llm_client(body.api_key)
    sessions = sessions_in_period(
        list_sessions(student_id=student.id), body.period_start, body.period_end
    )
    progress = progress_for_goals(_active_goals(student.id, body.goal_ids), sessions)
    return _run(generate_progress_note, client, student, progress)


@router.post("/iep-update", response_model=AITextResponse)
def iep_update(body: IEPUpdateRequest) -> ClinicalText:
    """Draft updated IEP text from the old note, summary and goal data."""
    student = _load_student(body.student_id)
    client = common.build_llm_client(body.api_key)
    progress = []
    if body.include_goals:
        progress = progress_for_goals(
            _active_goals(student.id), list_sessions(student_id=student.id)
        )
    return _run(
        generate_iep_update,
        client,
        student,
        progress,
        old_note=body.old_iep_note,
        summary_statement=body.summary_statement,
        recent_sessions_summary=body.recent_sessions_summary,
    )


@router.post("/treatment-ideas", response_model=AITextResponse)
def treatment_ideas(body: TreatmentIdeasRequest) -> ClinicalText:
    """Suggest activities for a goal area."""
    client = common.build_llm_client(body.api_key)
    return _run(generate_treatment_ideas, client, body.goal_area, body.age_range, body.materials)


@router.post("/treatment-recommendations", response_model=AITextResponse)
def treatment_recommendations(body: StudentAIRequest) -> ClinicalText:
    """Recommend treatment adjustments from measured progress."""
    student = _load_student(body.student_id)
    client = common.build_llm_client(body.api_key)
    sessions = list_sessions(student_id=student.id)
    progress = progress_for_goals(_active_goals(student.id), sessions)
    return _run(
        generate_treatment_recommendations,
        client,
        student,
        progress,
        sessions[:RECENT_SESSIONS_IN_PROMPT],
    )


@router.post("/goal-suggestions", response_model=AITextResponse)
def goal_suggestions(body: GoalSuggestionsRequest) -> ClinicalText:
    """Suggest SMART goals for a goal area."""
    student = _load_student(body.student_id)
    client = common.build_llm_client(body.api_key)
    return _run(generate_goal_suggestions, client, student, body.goal_area)
