"""Deterministic SOAP-note drafting from a logged session.

Builds the four SOAP sections from the session's notes, goals targeted,
activities and per-goal performance data. No AI is involved; the output is
a starting draft the clinician edits.
"""

from __future__ import annotations

from dataclasses import dataclass
from typing import Any

from caseload.db.goals_repository import GoalRecord
from caseload.db.helpers import parse_datetime
from caseload.db.sessions_repository import SessionRecord

COMMON_SUBJECTIVE_STATEMENTS = [
    "Student was cooperative and engaged throughout the session",
    "Student arrived on time and ready to work",
    "Student required frequent redirection to task",
    "Student appeared tired or fatigued",
    "Student was in good spirits",
    "Student reported feeling well",
    "Student was easily distracted",
    "Student demonstrated good effort",
    "Student was reluctant to participate initially",
    "Student showed improved attention compared to previous sessions",
    "Student was talkative and social",
    "Student needed breaks during the session",
]

CUING_LABELS = {
    "independent": "Independent",
    "verbal": "Verbal cuing",
    "visual": "Visual cuing",
    "tactile": "Tactile cuing",
    "physical": "Physical cuing",
}

STRONG_ACCURACY = 80
MODERATE_ACCURACY = 60


@dataclass
class SoapDraft:
    """Generated SOAP sections."""

    subjective: str
    objective: str
    assessment: str
    plan: str


def _fmt(value: float | int) -> str:
    """Render numbers without a trailing ``.0``."""
    return str(int(value)) if float(value).is_integer() else str(value)


def _sentence_join(parts: list[str]) -> str:
    text = ". ".join(p.strip().rstrip(".") for p in parts if p and p.strip())
    return f"{text}." if text else ""


def _goal_description(goal_id: str, goals: dict[str, GoalRecord]) -> str:
    goal = goals.get(goal_id)
    return goal.description if goal else "Goal"


def session_duration_minutes(session: SessionRecord) -> int | None:
    """Minutes between session start and end, None when unknown."""
    start = parse_datetime(session.date)
    end = parse_datetime(session.end_time)
    if start is None or end is None:
        return None
    if (start.tzinfo is None) != (end.tzinfo is None):
        start = start.replace(tzinfo=None)
        end = end.replace(tzinfo=None)
    minutes = round((end - start).total_seconds() / 60)
    return minutes if minutes > 0 else None


def build_subjective(
    session: SessionRecord,
    selected_statements: list[str] | None = None,
    custom_subjective: str | None = None,
) -> str:
    """Subjective: selected statements, custom text, then session notes."""
    parts = list(selected_statements or [])
    if custom_subjective and custom_subjective.strip():
        parts.append(custom_subjective.strip())
    if session.notes and session.notes.strip():
        parts.append(f"Session notes: {session.notes.strip()}")
    return _sentence_join(parts) or "No subjective information provided."


def _performance_line(perf: dict[str, Any], goals: dict[str, GoalRecord]) -> str:
    pieces = []
    if perf.get("accuracy") is not None:
        pieces.append(f"{_fmt(perf['accuracy'])}% accuracy")
    correct = perf.get("correctTrials")
    incorrect = perf.get("incorrectTrials")
    if correct is not None and incorrect is not None:
        pieces.append(f"{correct}/{correct + incorrect} trials correct")
    cuing = [CUING_LABELS.get(c, c) for c in perf.get("cuingLevels") or []]
    if cuing:
        pieces.append(f"Cuing levels: {', '.join(cuing)}")
    if perf.get("notes"):
        pieces.append(f"Notes: {perf['notes']}")

    description = _goal_description(perf.get("goalId", ""), goals)
    return f"{description}: {'; '.join(pieces)}" if pieces else description


def build_objective(session: SessionRecord, goals: dict[str, GoalRecord]) -> str:
    """Objective: duration, goals targeted, activities and performance data."""
    parts = []
    duration = session_duration_minutes(session)
    if duration:
        parts.append(f"Session duration: {duration} minutes")
    if session.goals_targeted:
        names = [_goal_description(g, goals) for g in session.goals_targeted]
        parts.append(f"Goals targeted: {'; '.join(names)}")
    if session.activities_used:
        parts.append(f"Activities: {', '.join(session.activities_used)}")
    if session.performance_data:
        lines = [_performance_line(p, goals) for p in session.performance_data]
        parts.append(f"Performance data: {'. '.join(lines)}")
    return _sentence_join(parts) or "No objective data recorded."


def build_assessment(session: SessionRecord, goals: dict[str, GoalRecord]) -> str:
    """Assessment: qualitative read of each goal's accuracy."""
    if session.performance_data:
        parts = []
        for perf in session.performance_data:
            description = _goal_description(perf.get("goalId", ""), goals)
            accuracy = perf.get("accuracy")
            if accuracy is None:
                parts.append(f"{description}: Progress observed during session")
            elif accuracy >= STRONG_ACCURACY:
                parts.append(
                    f"{description}: Student demonstrated strong performance "
                    f"({_fmt(accuracy)}% accuracy)"
                )
            elif accuracy >= MODERATE_ACCURACY:
                parts.append(
                    f"{description}: Student is making moderate progress "
                    f"({_fmt(accuracy)}% accuracy)"
                )
            else:
                parts.append(
                    f"{description}: Student is demonstrating emerging skills "
                    f"({_fmt(accuracy)}% accuracy). Continued support needed"
                )
        return _sentence_join(parts)

    if session.goals_targeted:
        names = [_goal_description(g, goals) for g in session.goals_targeted]
        return _sentence_join(
            [f"Goals addressed: {'; '.join(names)}", "Student participated in therapy activities"]
        )

    return "Student participated in therapy session."


def build_plan(session: SessionRecord, goals: dict[str, GoalRecord]) -> str:
    """Plan: continue goals, adjust low-accuracy ones, fade cues."""
    parts = []
    if session.goals_targeted:
        parts.append("Continue targeting current goals in next session")

    for perf in session.performance_data:
        description = _goal_description(perf.get("goalId", ""), goals)
        accuracy = perf.get("accuracy")
        if accuracy is not None and accuracy < MODERATE_ACCURACY:
            parts.append(
                f"Modify approach for {description} to increase support and scaffolding"
            )
        cuing = perf.get("cuingLevels") or []
        if any(level != "independent" for level in cuing):
            parts.append(f"Gradually reduce cuing for {description} to promote independence")

    if session.activities_used:
        parts.append(
            f"Consider continuing with similar activities: {', '.join(session.activities_used[:2])}"
        )

    return _sentence_join(parts) or "Continue therapy services as indicated."


def generate_soap_note(
    session: SessionRecord,
    goals: list[GoalRecord],
    selected_statements: list[str] | None = None,
    custom_subjective: str | None = None,
) -> SoapDraft:
    """Draft all four SOAP sections for a session.

    Args:
        session: Logged session
        goals: The student's goals (used to resolve goal descriptions)
        selected_statements: Subjective statements; defaults to the
            session's stored selection
        custom_subjective: Free-text subjective; defaults to the session's

    Returns:
        SoapDraft with every section filled
    """
    by_id = {g.id: g for g in goals}
    statements = (
        selected_statements
        if selected_statements is not None
        else session.selected_subjective_statements
    )
    custom = custom_subjective if custom_subjective is not None else session.custom_subjective

    # A plan typed while logging the session wins over the generated one
    plan = (session.plan or "").strip() or build_plan(session, by_id)

    return SoapDraft(
        subjective=build_subjective(session, statements, custom),
        objective=build_objective(session, by_id),
        assessment=build_assessment(session, by_id),
        plan=plan,
    )
