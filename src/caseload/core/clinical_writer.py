"""AI-drafted clinical documents.

Builds prompts from caseload data and asks the LLM for session plans,
progress notes, IEP updates, treatment ideas and goal suggestions.

Student names never leave the service: prompts use the placeholder
"Student", and the real name is put back into the generated text.
"""

from __future__ import annotations

import re
from dataclasses import dataclass, field
from statistics import mean

import structlog

from caseload.db.goals_repository import GoalRecord
from caseload.db.helpers import parse_date
from caseload.db.sessions_repository import SessionRecord
from caseload.db.students_repository import StudentRecord
from caseload.llm.client import LLMClient, sanitize_output
from caseload.prompts.registry import get_prompt

logger = structlog.get_logger(__name__)

NAME_PLACEHOLDER = "Student"
RECENT_SESSIONS_IN_PROMPT = 3
HISTORY_ENTRIES_IN_PROMPT = 5
CURRENT_ACCURACY_WINDOW = 3


class ClinicalWriterError(Exception):
    """Invalid input for a clinical document request."""

    pass


@dataclass
class PerformancePoint:
    """One session's measurement for one goal."""

    date: str
    accuracy: float
    correct_trials: int | None = None
    incorrect_trials: int | None = None
    cuing_levels: list[str] = field(default_factory=list)
    notes: str | None = None


@dataclass
class GoalProgress:
    """Goal with the performance measured across sessions."""

    goal_id: str
    description: str
    baseline: str
    target: str
    status: str
    current: float | None
    sessions: int
    history: list[PerformancePoint] = field(default_factory=list)


@dataclass
class ClinicalText:
    """Generated document plus the model that wrote it."""

    content: str
    model: str


# =============================================================================
# DATA PREPARATION
# =============================================================================


def compute_goal_progress(goal: GoalRecord, sessions: list[SessionRecord]) -> GoalProgress:
    """Collect a goal's measurements, newest first.

    ``current`` is the mean accuracy of the three most recent measurements.
    """
    history: list[PerformancePoint] = []
    ordered = sorted(sessions, key=lambda s: s.date, reverse=True)
    for session in ordered:
        if session.missed_session:
            continue
        for perf in session.performance_data:
            if perf.get("goalId") != goal.id or perf.get("accuracy") is None:
                continue
            history.append(
                PerformancePoint(
                    date=session.date[:10],
                    accuracy=float(perf["accuracy"]),
                    correct_trials=perf.get("correctTrials"),
                    incorrect_trials=perf.get("incorrectTrials"),
                    cuing_levels=list(perf.get("cuingLevels") or []),
                    notes=perf.get("notes"),
                )
            )

    recent = [p.accuracy for p in history[:CURRENT_ACCURACY_WINDOW]]
    return GoalProgress(
        goal_id=goal.id,
        description=goal.description,
        baseline=goal.baseline,
        target=goal.target,
        status=goal.status,
        current=round(mean(recent), 1) if recent else None,
        sessions=len(history),
        history=history,
    )


def format_goal_progress(progress: list[GoalProgress]) -> str:
    """Render goal progress as the indented block used in prompts."""
    blocks = []
    for index, goal in enumerate(progress, start=1):
        lines = [
            f"Goal {index}: {goal.description}",
            f"  Baseline: {goal.baseline or 'not recorded'}",
            f"  Current Performance: "
            + (f"{goal.current:.1f}%" if goal.current is not None else "no data yet"),
            f"  Target: {goal.target or 'not recorded'}",
            f"  Status: {goal.status}",
            f"  Total Sessions: {goal.sessions}",
        ]
        if goal.history:
            lines.append("  Recent Performance History:")
            for point in goal.history[:HISTORY_ENTRIES_IN_PROMPT]:
                line = f"    - {point.date}: {point.accuracy:.1f}%"
                if point.correct_trials is not None and point.incorrect_trials is not None:
                    line += f" ({point.correct_trials} correct, {point.incorrect_trials} incorrect)"
                if point.cuing_levels:
                    line += f" | Cuing: {', '.join(point.cuing_levels)}"
                if point.notes:
                    line += f" - Notes: {point.notes}"
                lines.append(line)
        blocks.append("\n".join(lines))
    return "\n\n".join(blocks)


def format_recent_sessions(sessions: list[SessionRecord]) -> str:
    """Render the latest sessions as a prompt section (empty if none)."""
    recent = sorted(sessions, key=lambda s: s.date, reverse=True)[:RECENT_SESSIONS_IN_PROMPT]
    if not recent:
        return ""
    blocks = []
    for index, session in enumerate(recent, start=1):
        block = f"Session {index} ({session.date[:10]}):\n"
        block += f"  Activities: {', '.join(session.activities_used) or 'none recorded'}"
        if session.notes:
            block += f"\n  Notes: {session.notes}"
        blocks.append(block)
    return "\n\nRecent Session History:\n" + "\n\n".join(blocks)


def redact_name(text: str, name: str) -> str:
    """Replace the student's name with the placeholder (case-insensitive)."""
    if not name or not text:
        return text
    return re.sub(re.escape(name.strip()), NAME_PLACEHOLDER, text, flags=re.IGNORECASE)


def restore_name(text: str, name: str) -> str:
    """Put the student's name back where the model used the placeholder."""
    if not name:
        return text
    return re.sub(rf"\b{NAME_PLACEHOLDER}\b", name, text)


def student_age(student: StudentRecord) -> str:
    return str(student.age) if student.age is not None else "unknown"


def _generate(
    client: LLMClient, prompt: str, action: str, student_name: str | None = None
) -> ClinicalText:
    response = client.simple_chat(get_prompt("clinical/system"), prompt, action=action)
    content = sanitize_output(response.content)
    if student_name:
        content = restore_name(content, student_name)
    logger.info("clinical_writer.generated", action=action, model=response.model)
    return ClinicalText(content=content, model=response.model)


# =============================================================================
# DOCUMENTS
# =============================================================================


def generate_session_plan(
    client: LLMClient,
    student: StudentRecord,
    goals: list[GoalRecord],
    recent_sessions: list[SessionRecord],
) -> ClinicalText:
    """Draft a plan for the next session from goals and recent history.

    Raises:
        ClinicalWriterError: If the student has no goals to plan for
    """
    if not goals:
        raise ClinicalWriterError("Student has no goals to plan a session for")

    goals_text = "\n\n".join(
        f"Goal {i}: {g.description}\n  Baseline: {g.baseline}\n  Target: {g.target}"
        for i, g in enumerate(goals, start=1)
    )
    prompt = get_prompt(
        "clinical/session_plan",
        student_age=student_age(student),
        goals_text=redact_name(goals_text, student.name),
        recent_sessions_text=redact_name(format_recent_sessions(recent_sessions), student.name),
    )
    return _generate(client, prompt, "generate session plan", student.name)


def generate_progress_note(
    client: LLMClient, student: StudentRecord, progress: list[GoalProgress]
) -> ClinicalText:
    """Draft a progress note covering each goal's measured performance.

    Raises:
        ClinicalWriterError: If there are no goals to report on
    """
    if not progress:
        raise ClinicalWriterError("At least one goal is required for a progress note")

    prompt = get_prompt(
        "clinical/progress_note",
        goals_text=redact_name(format_goal_progress(progress), student.name),
    )
    return _generate(client, prompt, "generate progress note", student.name)


def generate_iep_update(
    client: LLMClient,
    student: StudentRecord,
    progress: list[GoalProgress],
    old_note: str | None = None,
    summary_statement: str | None = None,
    recent_sessions_summary: str | None = None,
) -> ClinicalText:
    """Draft an updated IEP communication section, summary and goal changes.

    Each section is produced only when its input is present.

    Raises:
        ClinicalWriterError: If no old note, summary or goals were given
    """
    want_communication = bool(old_note and old_note.strip())
    want_summary = bool(summary_statement and summary_statement.strip())
    want_goals = bool(progress)
    if not (want_communication or want_summary or want_goals):
        raise ClinicalWriterError(
            "Provide an old IEP note, a summary statement, or goals to update"
        )

    inputs: list[str] = []
    instructions: list[str] = []
    outputs: list[str] = []
    context: list[str] = []

    if want_communication:
        inputs.append(
            '- The current IEP Communication note (with "Student" as placeholder for the name)'
        )
        instructions.append(
            "- For the Communication section: update outdated info (therapy frequency, dates), "
            "describe progress and the rationale for ongoing services, and match the level of "
            "detail in the original."
        )
        outputs.append(
            "UPDATED IEP COMMUNICATION SECTION: a cohesive paragraph (similar in length and style "
            "to the original), ready to paste into the IEP. No bullet points."
        )
        context.append(
            f"Current IEP Communication Note:\n---\n{redact_name(old_note or '', student.name).strip()}\n---"
        )
    if want_summary:
        inputs.append(
            '- The current summary or present levels statement (with "Student" as placeholder)'
        )
        outputs.append(
            "SUMMARY STATEMENT: an updated present levels / summary statement reflecting "
            "current performance."
        )
        context.append(
            "Current Summary / Present Levels:\n---\n"
            f"{redact_name(summary_statement or '', student.name).strip()}\n---"
        )
    if want_goals:
        inputs.append(
            "- The student's current goals with baseline, target, current performance, "
            "and recent session data"
        )
        instructions.append(
            "- For goal suggestions: compare each goal to recent session data and suggest "
            "measurable changes (revised targets, baselines, or new goal ideas) with rationale."
        )
        outputs.append(
            "SUGGESTED GOAL CHANGES: concrete changes referencing the progress data."
        )
        goals_block = format_goal_progress(progress)
        if recent_sessions_summary:
            goals_block += f"\n\nRecent Session Summary:\n{recent_sessions_summary}"
        context.append(
            "Goal Progress and Recent Session Data:\n" + redact_name(goals_block, student.name)
        )

    prompt = get_prompt(
        "clinical/iep_update",
        inputs_list="".join(f"{line}\n" for line in inputs),
        extra_instructions="".join(f"{line}\n" for line in instructions),
        output_parts="\n".join(f"{i}. {part}" for i, part in enumerate(outputs, start=1)),
        context_blocks="\n\n".join(context),
    )
    return _generate(client, prompt, "generate IEP update", student.name)


def generate_treatment_ideas(
    client: LLMClient,
    goal_area: str,
    age_range: str,
    materials: list[str] | None = None,
) -> ClinicalText:
    """Suggest three teletherapy activities for a goal area."""
    if not goal_area.strip():
        raise ClinicalWriterError("Goal area is required")

    materials_text = (
        f"Available Materials: {', '.join(materials)}" if materials else ""
    )
    prompt = get_prompt(
        "clinical/treatment_ideas",
        goal_area=goal_area.strip(),
        age_range=age_range.strip() or "not specified",
        materials_text=materials_text,
    )
    return _generate(client, prompt, "generate treatment ideas")


def generate_treatment_recommendations(
    client: LLMClient,
    student: StudentRecord,
    progress: list[GoalProgress],
    recent_sessions: list[SessionRecord],
) -> ClinicalText:
    """Recommend treatment adjustments from measured goal progress."""
    if not progress:
        raise ClinicalWriterError("At least one goal is required for recommendations")

    prompt = get_prompt(
        "clinical/treatment_recommendations",
        student_age=student_age(student),
        goals_text=redact_name(format_goal_progress(progress), student.name),
        recent_sessions_text=redact_name(format_recent_sessions(recent_sessions), student.name),
    )
    return _generate(client, prompt, "generate treatment recommendations", student.name)


def generate_goal_suggestions(
    client: LLMClient, student: StudentRecord, goal_area: str
) -> ClinicalText:
    """Suggest SMART goals for a student in a goal area."""
    if not goal_area.strip():
        raise ClinicalWriterError("Goal area is required")

    concerns = ", ".join(student.concerns) if student.concerns else "none listed"
    prompt = get_prompt(
        "clinical/goal_suggestions",
        goal_area=goal_area.strip(),
        student_age=student_age(student),
        student_grade=student.grade or "not specified",
        concerns_text=redact_name(concerns, student.name),
    )
    return _generate(client, prompt, "generate goal suggestions", student.name)


def sessions_in_period(
    sessions: list[SessionRecord], start: str | None, end: str | None
) -> list[SessionRecord]:
    """Keep sessions whose date falls inside an optional inclusive period."""
    start_date = parse_date(start)
    end_date = parse_date(end)
    result = []
    for session in sessions:
        day = parse_date(session.date)
        if day is None:
            continue
        if start_date and day < start_date:
            continue
        if end_date and day > end_date:
            continue
        result.append(session)
    return result


def progress_for_goals(
    goals: list[GoalRecord], sessions: list[SessionRecord]
) -> list[GoalProgress]:
    """Compute progress for every goal over the same session list."""
    return [compute_goal_progress(goal, sessions) for goal in goals]
