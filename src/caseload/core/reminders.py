"""Caseload reminders.

Scans goals, evaluations, progress reports and students for things that
need the clinician's attention soon. ``days_until_due`` is signed: negative
means overdue (or, for goal reviews, days since the goal was last worked).
"""

from __future__ import annotations

from dataclasses import dataclass
from datetime import date
from typing import Literal

import structlog

from caseload.db.evaluations_repository import list_evaluations
from caseload.db.goals_repository import GoalRecord, list_goals
from caseload.db.helpers import parse_date, today
from caseload.db.progress_reports_repository import list_progress_reports
from caseload.db.sessions_repository import SessionRecord, list_sessions
from caseload.db.students_repository import StudentRecord, list_students

logger = structlog.get_logger(__name__)

ReminderType = Literal[
    "goal-review", "re-evaluation", "report-deadline", "annual-review", "no-goals"
]
Priority = Literal["high", "medium", "low"]

GOAL_REVIEW_DAYS = 30
GOAL_REVIEW_HIGH_DAYS = 60
REEVALUATION_WINDOW_DAYS = 14
REEVALUATION_HIGH_DAYS = 7
REPORT_WINDOW_DAYS = 7
ANNUAL_REVIEW_WINDOW_DAYS = 30
ANNUAL_REVIEW_HIGH_DAYS = 14

_PRIORITY_ORDER = {"high": 0, "medium": 1, "low": 2}


@dataclass
class Reminder:
    """Something on the caseload that needs attention."""

    id: str
    type: ReminderType
    title: str
    description: str
    student_id: str
    student_name: str
    priority: Priority
    due_date: str | None = None
    days_until_due: int | None = None
    related_id: str | None = None


def days_between(start: date, end: date) -> int:
    """Signed whole days from ``start`` to ``end``."""
    return (end - start).days


def _truncate(text: str, limit: int = 60) -> str:
    return text if len(text) <= limit else text[:limit] + "..."


def _last_targeted(goal: GoalRecord, sessions: list[SessionRecord]) -> date | None:
    """Date of the most recent session that targeted the goal."""
    dates = [
        parse_date(s.date)
        for s in sessions
        if goal.id in s.goals_targeted and not s.missed_session
    ]
    dates = [d for d in dates if d is not None]
    return max(dates) if dates else None


def _goal_review_reminders(
    students: dict[str, StudentRecord], reference: date
) -> list[Reminder]:
    reminders = []
    sessions_by_student: dict[str, list[SessionRecord]] = {}
    for goal in list_goals(status="in-progress"):
        student = students.get(goal.student_id)
        if student is None:
            continue
        if goal.student_id not in sessions_by_student:
            sessions_by_student[goal.student_id] = list_sessions(student_id=goal.student_id)

        last = _last_targeted(goal, sessions_by_student[goal.student_id])
        last = last or parse_date(goal.date_created)
        if last is None:
            continue

        elapsed = days_between(last, reference)
        if elapsed < GOAL_REVIEW_DAYS:
            continue

        reminders.append(
            Reminder(
                id=f"goal-review-{goal.id}",
                type="goal-review",
                title=f"Goal review needed for {student.name}",
                description=(
                    f'Goal "{_truncate(goal.description)}" has not been targeted '
                    f"in {elapsed} days"
                ),
                student_id=student.id,
                student_name=student.name,
                priority="high" if elapsed >= GOAL_REVIEW_HIGH_DAYS else "medium",
                due_date=last.isoformat(),
                days_until_due=-elapsed,
                related_id=goal.id,
            )
        )
    return reminders


def _reevaluation_reminders(
    students: dict[str, StudentRecord], reference: date
) -> list[Reminder]:
    reminders = []
    for evaluation in list_evaluations():
        student = students.get(evaluation.student_id)
        due = parse_date(evaluation.due_date)
        if student is None or due is None:
            continue
        if (evaluation.report_completed or "").lower() == "yes":
            continue

        remaining = days_between(reference, due)
        if remaining > REEVALUATION_WINDOW_DAYS:
            continue

        when = f"overdue by {-remaining} days" if remaining < 0 else f"due in {remaining} days"
        reminders.append(
            Reminder(
                id=f"re-evaluation-{evaluation.id}",
                type="re-evaluation",
                title=f"{evaluation.evaluation_type} for {student.name}",
                description=f"Evaluation report {when}",
                student_id=student.id,
                student_name=student.name,
                priority="high" if remaining <= REEVALUATION_HIGH_DAYS else "medium",
                due_date=due.isoformat(),
                days_until_due=remaining,
                related_id=evaluation.id,
            )
        )
    return reminders


def _report_deadline_reminders(
    students: dict[str, StudentRecord], reference: date
) -> list[Reminder]:
    reminders = []
    for report in list_progress_reports():
        student = students.get(report.student_id)
        due = parse_date(report.due_date)
        if student is None or due is None or report.status == "completed":
            continue

        remaining = days_between(reference, due)
        if remaining > REPORT_WINDOW_DAYS:
            continue

        when = f"overdue by {-remaining} days" if remaining < 0 else f"due in {remaining} days"
        reminders.append(
            Reminder(
                id=f"report-deadline-{report.id}",
                type="report-deadline",
                title=f"{report.report_type.capitalize()} progress report for {student.name}",
                description=f"Progress report {when}",
                student_id=student.id,
                student_name=student.name,
                priority="high",
                due_date=due.isoformat(),
                days_until_due=remaining,
                related_id=report.id,
            )
        )
    return reminders


def _annual_review_reminders(
    students: dict[str, StudentRecord], reference: date
) -> list[Reminder]:
    reminders = []
    for student in students.values():
        review = parse_date(student.annual_review_date)
        if review is None:
            continue
        remaining = days_between(reference, review)
        if not 0 <= remaining <= ANNUAL_REVIEW_WINDOW_DAYS:
            continue
        reminders.append(
            Reminder(
                id=f"annual-review-{student.id}",
                type="annual-review",
                title=f"Annual IEP review for {student.name}",
                description=f"Annual review in {remaining} days",
                student_id=student.id,
                student_name=student.name,
                priority="high" if remaining <= ANNUAL_REVIEW_HIGH_DAYS else "medium",
                due_date=review.isoformat(),
                days_until_due=remaining,
            )
        )
    return reminders


def _no_goal_reminders(students: dict[str, StudentRecord]) -> list[Reminder]:
    with_goals = {g.student_id for g in list_goals(status="in-progress")}
    return [
        Reminder(
            id=f"no-goals-{student.id}",
            type="no-goals",
            title=f"No active goals for {student.name}",
            description="Add IEP goals so sessions can be tracked",
            student_id=student.id,
            student_name=student.name,
            priority="low",
        )
        for student in students.values()
        if student.id not in with_goals
    ]


def _sort_key(reminder: Reminder) -> tuple[int, float]:
    days = reminder.days_until_due
    return (_PRIORITY_ORDER[reminder.priority], days if days is not None else float("inf"))


def get_reminders(school: str | None = None, as_of: date | None = None) -> list[Reminder]:
    """Collect every reminder for active, non-archived students.

    Args:
        school: Limit to students of this school
        as_of: Reference date (defaults to today)

    Returns:
        Reminders sorted by priority, then by days until due
    """
    reference = as_of or today()
    students = {s.id: s for s in list_students(school=school, active_only=True)}

    reminders = (
        _goal_review_reminders(students, reference)
        + _reevaluation_reminders(students, reference)
        + _report_deadline_reminders(students, reference)
        + _annual_review_reminders(students, reference)
        + _no_goal_reminders(students)
    )
    reminders.sort(key=_sort_key)

    logger.debug("reminders.collected", school=school, count=len(reminders))
    return reminders
