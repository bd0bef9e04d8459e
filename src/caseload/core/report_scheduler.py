"""Progress-report auto-scheduling.

Quarterly reports follow the school year (September start); annual reports
are due three weeks before the student's annual IEP review.

Quarters:
    Q1  Sep 1 - Nov 30
    Q2  Dec 1 - end of February
    Q3  Mar 1 - May 31
    Q4  Jun 1 - Aug 31
"""

from __future__ import annotations

import calendar
from dataclasses import dataclass
from datetime import date, timedelta

import structlog

from caseload.db.helpers import new_id, now_iso, parse_date, today
from caseload.db.progress_reports_repository import (
    ProgressReportRecord,
    find_progress_report,
    insert_progress_report,
)
from caseload.db.students_repository import StudentRecord, get_student, list_students

logger = structlog.get_logger(__name__)

# Days after quarter end a quarterly report is due
QUARTER_REPORT_GRACE_DAYS = 14
# Days before the annual review a report must be ready
ANNUAL_REVIEW_LEAD_DAYS = 21
# Quarters that ended longer ago than this are not scheduled
STALE_QUARTER_MONTHS = 3


class ReportSchedulingError(Exception):
    """Error scheduling progress reports."""

    pass


@dataclass
class Quarter:
    """One school-year quarter."""

    number: int
    start: date
    end: date


def add_months(value: date, months: int) -> date:
    """Add calendar months, clamping the day to the target month's length."""
    month_index = value.month - 1 + months
    year = value.year + month_index // 12
    month = month_index % 12 + 1
    day = min(value.day, calendar.monthrange(year, month)[1])
    return date(year, month, day)


def add_years(value: date, years: int) -> date:
    """Add calendar years (Feb 29 becomes Feb 28 in non-leap years)."""
    return add_months(value, 12 * years)


def school_year_start(reference: date) -> int:
    """Calendar year in which the school year containing ``reference`` began."""
    return reference.year if reference.month >= 9 else reference.year - 1


def school_year_quarters(start_year: int) -> list[Quarter]:
    """The four quarters of the school year starting September ``start_year``."""
    next_year = start_year + 1
    feb_end = calendar.monthrange(next_year, 2)[1]
    return [
        Quarter(1, date(start_year, 9, 1), date(start_year, 11, 30)),
        Quarter(2, date(start_year, 12, 1), date(next_year, 2, feb_end)),
        Quarter(3, date(next_year, 3, 1), date(next_year, 5, 31)),
        Quarter(4, date(next_year, 6, 1), date(next_year, 8, 31)),
    ]


def quarterly_due_date(quarter_end: date, annual_review: date | None) -> date:
    """Due date of a quarterly report.

    Two weeks after the quarter ends, pulled in to three weeks before the
    annual review when the review comes first.
    """
    due = quarter_end + timedelta(days=QUARTER_REPORT_GRACE_DAYS)
    if annual_review is not None and due > annual_review:
        due = annual_review - timedelta(days=ANNUAL_REVIEW_LEAD_DAYS)
    return due


def annual_review_date(student: StudentRecord) -> date | None:
    """Explicit annual review date, else one year after the IEP date."""
    explicit = parse_date(student.annual_review_date)
    if explicit is not None:
        return explicit
    iep = parse_date(student.iep_date)
    if iep is not None:
        return add_years(iep, 1)
    return None


def _new_report(
    student_id: str,
    report_type: str,
    period_start: date,
    period_end: date,
    due: date,
    as_of: date,
) -> ProgressReportRecord:
    stamp = now_iso()
    return ProgressReportRecord(
        id=new_id("report"),
        student_id=student_id,
        report_type=report_type,
        due_date=due.isoformat(),
        scheduled_date=stamp,
        period_start=period_start.isoformat(),
        period_end=period_end.isoformat(),
        status="overdue" if due < as_of else "scheduled",
        date_created=stamp,
        date_updated=stamp,
    )


def plan_quarterly_reports(
    student: StudentRecord, as_of: date | None = None
) -> list[ProgressReportRecord]:
    """Build (but do not store) the quarterly reports a student needs.

    Quarters come from the school year containing the IEP date, or the
    current school year when there is none. Quarters that ended more than
    three months ago are skipped.
    """
    reference = as_of or today()
    base = parse_date(student.iep_date) or reference
    review = parse_date(student.annual_review_date)

    reports = []
    for quarter in school_year_quarters(school_year_start(base)):
        if add_months(quarter.end, STALE_QUARTER_MONTHS) < reference:
            continue
        due = quarterly_due_date(quarter.end, review)
        reports.append(
            _new_report(student.id, "quarterly", quarter.start, quarter.end, due, reference)
        )
    return reports


def plan_annual_report(
    student: StudentRecord, as_of: date | None = None
) -> ProgressReportRecord | None:
    """Build (but do not store) the annual report, None without review dates."""
    reference = as_of or today()
    review = annual_review_date(student)
    if review is None:
        return None
    due = review - timedelta(days=ANNUAL_REVIEW_LEAD_DAYS)
    return _new_report(student.id, "annual", add_years(review, -1), review, due, reference)


def schedule_reports_for_student(
    student_id: str, as_of: date | None = None
) -> list[ProgressReportRecord]:
    """Create missing progress reports for one student.

    Reports already stored for the same period and type are left alone.

    Args:
        student_id: Student to schedule for
        as_of: Reference date (defaults to today)

    Returns:
        Newly created reports

    Raises:
        ReportSchedulingError: If the student does not exist
    """
    student = get_student(student_id)
    if student is None:
        raise ReportSchedulingError(f"Student '{student_id}' not found")

    frequency = student.progress_report_frequency or "annual"
    if frequency == "quarterly":
        planned = plan_quarterly_reports(student, as_of)
    else:
        annual = plan_annual_report(student, as_of)
        planned = [annual] if annual else []

    created = []
    for report in planned:
        existing = find_progress_report(
            report.student_id, report.period_start, report.period_end, report.report_type
        )
        if existing is not None:
            continue
        insert_progress_report(report)
        created.append(report)

    logger.info(
        "progress_reports.scheduled",
        student_id=student_id,
        frequency=frequency,
        created=len(created),
    )
    return created


def schedule_reports_for_school(
    school: str, as_of: date | None = None
) -> list[ProgressReportRecord]:
    """Create missing progress reports for every active student of a school."""
    created: list[ProgressReportRecord] = []
    for student in list_students(school=school, active_only=True):
        created.extend(schedule_reports_for_student(student.id, as_of))
    return created
