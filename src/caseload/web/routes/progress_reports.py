"""Progress report endpoints.

Every request first flips scheduled reports that are past due to
``overdue`` so that listings always reflect the current date.
"""

from fastapi import APIRouter, Depends, Query, status

from caseload.core.report_scheduler import (
    ReportSchedulingError,
    schedule_reports_for_school,
    schedule_reports_for_student,
)
from caseload.db.helpers import merge_changes, new_id, now_iso
from caseload.db.progress_reports_repository import (
    ProgressReportRecord,
    delete_progress_report,
    delete_progress_reports,
    get_progress_report,
    insert_progress_report,
    list_progress_reports,
    list_upcoming_progress_reports,
    mark_overdue_reports,
    update_progress_report,
)
from caseload.web.errors import ApiValidationError
from caseload.web.routes.common import not_found, payload_fields, require_student
from caseload.web.schemas import (
    BulkDeleteRequest,
    BulkDeleteResponse,
    CompleteRequest,
    ProgressReportCreate,
    ProgressReportResponse,
    ProgressReportUpdate,
    ScheduleReportsRequest,
    ScheduleReportsResponse,
)


async def refresh_overdue() -> None:
    mark_overdue_reports()


router = APIRouter(
    prefix="/api/progress-reports",
    tags=["progress-reports"],
    dependencies=[Depends(refresh_overdue)],
)


@router.get("", response_model=list[ProgressReportResponse])
async def list_all_progress_reports(
    student_id: str | None = Query(default=None, alias="studentId"),
    school: str | None = None,
    report_status: str | None = Query(default=None, alias="status"),
    start_date: str | None = Query(default=None, alias="startDate"),
    end_date: str | None = Query(default=None, alias="endDate"),
) -> list[ProgressReportRecord]:
    """List progress reports by due date."""
    return list_progress_reports(
        student_id=student_id,
        school=school,
        status=report_status,
        start_date=start_date,
        end_date=end_date,
    )


@router.get("/upcoming", response_model=list[ProgressReportResponse])
async def list_upcoming_reports(
    days: int = Query(default=30, ge=0, le=366),
    school: str | None = None,
) -> list[ProgressReportRecord]:
    """Reports not yet completed that fall due within ``days``."""
    return list_upcoming_progress_reports(days=days, school=school)


@router.post("/schedule-auto", response_model=ScheduleReportsResponse)
async def schedule_reports(body: ScheduleReportsRequest) -> ScheduleReportsResponse:
    """Create missing reports for one student or every active student of a school."""
    if body.student_id:
        try:
            created = schedule_reports_for_student(body.student_id)
        except ReportSchedulingError as e:
            raise ApiValidationError("studentId", str(e)) from e
    elif body.school:
        created = schedule_reports_for_school(body.school)
    else:
        raise ApiValidationError("studentId", "Either studentId or school is required")

    return ScheduleReportsResponse(
        scheduled=len(created),
        reports=[ProgressReportResponse.model_validate(r) for r in created],
    )


@router.get("/{report_id}", response_model=ProgressReportResponse)
async def get_one_progress_report(report_id: str) -> ProgressReportRecord:
    """Get a specific progress report by ID."""
    report = get_progress_report(report_id)
    if report is None:
        raise not_found("Progress report")
    return report


@router.post("", response_model=ProgressReportResponse, status_code=status.HTTP_201_CREATED)
async def create_progress_report(body: ProgressReportCreate) -> ProgressReportRecord:
    """Create a progress report for an existing student."""
    require_student(body.student_id)

    data = payload_fields(body)
    now = now_iso()
    data["id"] = data["id"] or new_id("report")
    data["scheduled_date"] = data["scheduled_date"] or now
    data["date_created"] = now
    data["date_updated"] = now
    if data["status"] == "completed" and not data["completed_date"]:
        data["completed_date"] = now

    report = ProgressReportRecord(**data)
    insert_progress_report(report)
    return report


@router.put("/{report_id}", response_model=ProgressReportResponse)
async def update_one_progress_report(
    report_id: str, body: ProgressReportUpdate
) -> ProgressReportRecord:
    """Partially update a report; completing it stamps completedDate."""
    report = get_progress_report(report_id)
    if report is None:
        raise not_found("Progress report")

    changes = payload_fields(body, partial=True)
    changes["date_updated"] = now_iso()
    updated = merge_changes(report, changes)
    if updated.status == "completed" and not updated.completed_date:
        updated.completed_date = changes["date_updated"]

    update_progress_report(updated)
    return updated


@router.post("/{report_id}/complete", response_model=ProgressReportResponse)
async def complete_progress_report(
    report_id: str, body: CompleteRequest | None = None
) -> ProgressReportRecord:
    """Mark a report completed."""
    report = get_progress_report(report_id)
    if report is None:
        raise not_found("Progress report")

    now = now_iso()
    report.status = "completed"
    report.completed_date = (body.completed_date if body else None) or now
    report.date_updated = now
    update_progress_report(report)
    return report


@router.delete("/bulk", response_model=BulkDeleteResponse)
async def bulk_delete_progress_reports(body: BulkDeleteRequest) -> BulkDeleteResponse:
    return BulkDeleteResponse(deleted_count=delete_progress_reports(body.ids))


@router.delete("/{report_id}", status_code=status.HTTP_204_NO_CONTENT)
async def delete_one_progress_report(report_id: str) -> None:
    if not delete_progress_report(report_id):
        raise not_found("Progress report")
