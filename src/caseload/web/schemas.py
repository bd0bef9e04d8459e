"""Pydantic schemas for the caseload Web API.

Request bodies and responses use camelCase on the wire (``dateAdded``)
while Python code uses snake_case (``date_added``). Create models carry the
validation rules; Update models make every field optional for partial
updates; Response models are permissive so that legacy rows always render.
"""

from __future__ import annotations

import re
from datetime import date, datetime
from typing import Annotated, Any, Literal

from pydantic import (
    AfterValidator,
    BaseModel,
    BeforeValidator,
    ConfigDict,
    Field,
    StringConstraints,
)
from pydantic.alias_generators import to_camel

# =============================================================================
# SHARED TYPES
# =============================================================================


class ApiModel(BaseModel):
    """Base model: camelCase aliases, populate by either name."""

    model_config = ConfigDict(
        alias_generator=to_camel,
        populate_by_name=True,
        from_attributes=True,
    )


def _empty_to_none(value: Any) -> Any:
    """Treat blank strings from forms as missing values."""
    if isinstance(value, str) and not value.strip():
        return None
    return value


def _validate_date(value: str) -> str:
    """Accept ``YYYY-MM-DD`` or a full ISO-8601 datetime."""
    try:
        if len(value) == 10:
            date.fromisoformat(value)
        else:
            datetime.fromisoformat(value.replace("Z", "+00:00"))
    except ValueError as e:
        raise ValueError("Must be a date (YYYY-MM-DD) or ISO datetime") from e
    return value


_EMAIL = re.compile(r"^[^\s@]+@[^\s@]+\.[^\s@]+$")


def _validate_email(value: str) -> str:
    if not _EMAIL.match(value):
        raise ValueError("Must be a valid email address")
    return value


_HHMM = re.compile(r"^([01]\d|2[0-3]):[0-5]\d$")


def _validate_time(value: str) -> str:
    if not _HHMM.match(value):
        raise ValueError("Must be a time in HH:mm format")
    return value


def _text(max_length: int) -> Any:
    return Annotated[str, StringConstraints(strip_whitespace=True, max_length=max_length)]


def _optional_text(max_length: int) -> Any:
    return Annotated[
        Annotated[str, StringConstraints(strip_whitespace=True, max_length=max_length)] | None,
        BeforeValidator(_empty_to_none),
    ]



Name = Annotated[str, StringConstraints(strip_whitespace=True, min_length=1, max_length=200)]
RequiredText = Annotated[str, StringConstraints(strip_whitespace=True, min_length=1)]
DateString = Annotated[str, AfterValidator(_validate_date)]
OptionalDate = Annotated[DateString | None, BeforeValidator(_empty_to_none)]
TimeString = Annotated[str, AfterValidator(_validate_time)]
OptionalId = Annotated[str | None, BeforeValidator(_empty_to_none)]
EmailString = Annotated[str, StringConstraints(strip_whitespace=True), AfterValidator(_validate_email)]
OptionalEmail = Annotated[EmailString | None, BeforeValidator(_empty_to_none)]

Priority = Literal["high", "medium", "low"]
CuingLevel = Literal["independent", "verbal", "visual", "tactile", "physical"]


class HealthResponse(ApiModel):
    """Health check response."""

    status: str
    version: str
    environment: str
    timestamp: str


class MessageResponse(ApiModel):
    """Generic acknowledgement."""

    message: str


class BulkDeleteRequest(ApiModel):
    """Request body for bulk deletes."""

    ids: list[Annotated[str, StringConstraints(min_length=1)]] = Field(..., min_length=1)


class BulkDeleteResponse(ApiModel):
    """Result of a bulk delete."""

    deleted_count: int


# =============================================================================
# SCHOOL SCHEMAS
# =============================================================================


class SchoolHours(ApiModel):
    """School day as whole hours (24h clock)."""

    start_hour: int = Field(..., ge=0, le=23)
    end_hour: int = Field(..., ge=0, le=23)


class SchoolCreate(ApiModel):
    """Request body for creating a school."""

    id: str | None = None
    name: Name
    state: Annotated[str, StringConstraints(strip_whitespace=True, max_length=2)] = "NC"
    teletherapy: bool = False
    school_hours: SchoolHours | None = None
    date_created: OptionalDate = None


class SchoolUpdate(ApiModel):
    """Request body for updating a school (all fields optional)."""

    name: Name | None = None
    state: Annotated[str, StringConstraints(strip_whitespace=True, max_length=2)] | None = None
    teletherapy: bool | None = None
    school_hours: SchoolHours | None = None


class SchoolResponse(ApiModel):
    """Response for a school."""

    id: str
    name: str
    state: str
    teletherapy: bool
    date_created: str
    school_hours: dict[str, int] | None = None
    student_count: int | None = None


# =============================================================================
# TEACHER / CASE MANAGER SCHEMAS
# =============================================================================


class TeacherCreate(ApiModel):
    """Request body for creating a teacher."""

    id: str | None = None
    name: Name
    grade: _optional_text(20) = None
    school: Name
    phone_number: _optional_text(50) = None
    email_address: OptionalEmail = None
    date_created: OptionalDate = None


class TeacherUpdate(ApiModel):
    """Request body for updating a teacher."""

    name: Name | None = None
    grade: _optional_text(20) = None
    school: Name | None = None
    phone_number: _optional_text(50) = None
    email_address: OptionalEmail = None


class TeacherResponse(ApiModel):
    """Response for a teacher."""

    id: str
    name: str
    grade: str | None = None
    school: str
    phone_number: str | None = None
    email_address: str | None = None
    date_created: str


class CaseManagerCreate(ApiModel):
    """Request body for creating a case manager."""

    id: str | None = None
    name: Name
    role: _optional_text(100) = None
    school: Name
    phone_number: _optional_text(50) = None
    email_address: OptionalEmail = None
    date_created: OptionalDate = None


class CaseManagerUpdate(ApiModel):
    """Request body for updating a case manager."""

    name: Name | None = None
    role: _optional_text(100) = None
    school: Name | None = None
    phone_number: _optional_text(50) = None
    email_address: OptionalEmail = None


class CaseManagerResponse(ApiModel):
    """Response for a case manager."""

    id: str
    name: str
    role: str | None = None
    school: str
    phone_number: str | None = None
    email_address: str | None = None
    date_created: str


# =============================================================================
# STUDENT SCHEMAS
# =============================================================================


class StudentCreate(ApiModel):
    """Request body for creating a student."""

    id: str | None = None
    name: Name
    age: int | None = Field(default=None, ge=0, le=25)
    grade: _optional_text(20) = None
    concerns: list[str] = Field(default_factory=list)
    exceptionality: list[str] = Field(default_factory=list)
    status: Literal["active", "discharged"] = "active"
    date_added: OptionalDate = None
    archived: bool = False
    date_archived: OptionalDate = None
    school: Name
    teacher_id: OptionalId = None
    case_manager_id: OptionalId = None
    iep_date: OptionalDate = None
    annual_review_date: OptionalDate = None
    progress_report_frequency: Literal["quarterly", "annual"] | None = None
    frequency_per_week: int | None = Field(default=None, ge=0, le=31)
    frequency_type: Literal["per-week", "per-month"] | None = None


class StudentUpdate(ApiModel):
    """Request body for updating a student."""

    name: Name | None = None
    age: int | None = Field(default=None, ge=0, le=25)
    grade: _optional_text(20) = None
    concerns: list[str] | None = None
    exceptionality: list[str] | None = None
    status: Literal["active", "discharged"] | None = None
    archived: bool | None = None
    date_archived: OptionalDate = None
    school: Name | None = None
    teacher_id: OptionalId = None
    case_manager_id: OptionalId = None
    iep_date: OptionalDate = None
    annual_review_date: OptionalDate = None
    progress_report_frequency: Literal["quarterly", "annual"] | None = None
    frequency_per_week: int | None = Field(default=None, ge=0, le=31)
    frequency_type: Literal["per-week", "per-month"] | None = None


class StudentResponse(ApiModel):
    """Response for a student."""

    id: str
    name: str
    age: int | None = None
    grade: str | None = None
    concerns: list[str] = Field(default_factory=list)
    exceptionality: list[str] = Field(default_factory=list)
    status: str
    date_added: str
    archived: bool
    date_archived: str | None = None
    school: str
    teacher_id: str | None = None
    case_manager_id: str | None = None
    iep_date: str | None = None
    annual_review_date: str | None = None
    progress_report_frequency: str | None = None
    frequency_per_week: int | None = None
    frequency_type: str | None = None


# =============================================================================
# GOAL SCHEMAS
# =============================================================================


class GoalCreate(ApiModel):
    """Request body for creating a goal."""

    id: str | None = None
    student_id: Annotated[str, StringConstraints(min_length=1)]
    description: Annotated[
        str, StringConstraints(strip_whitespace=True, min_length=1, max_length=2000)
    ]
    baseline: _text(500) = ""
    target: _text(500) = ""
    status: Literal["in-progress", "achieved", "modified"] = "in-progress"
    date_created: OptionalDate = None
    date_achieved: OptionalDate = None
    parent_goal_id: OptionalId = None
    sub_goal_ids: list[str] = Field(default_factory=list)
    domain: _optional_text(100) = None
    priority: Priority | None = None
    template_id: OptionalId = None


class GoalUpdate(ApiModel):
    """Request body for updating a goal."""

    description: Annotated[
        str, StringConstraints(strip_whitespace=True, min_length=1, max_length=2000)
    ] | None = None
    baseline: _text(500) | None = None
    target: _text(500) | None = None
    status: Literal["in-progress", "achieved", "modified"] | None = None
    date_achieved: OptionalDate = None
    parent_goal_id: OptionalId = None
    sub_goal_ids: list[str] | None = None
    domain: _optional_text(100) = None
    priority: Priority | None = None
    template_id: OptionalId = None


class GoalResponse(ApiModel):
    """Response for a goal."""

    id: str
    student_id: str
    description: str
    baseline: str
    target: str
    status: str
    date_created: str
    date_achieved: str | None = None
    parent_goal_id: str | None = None
    sub_goal_ids: list[str] = Field(default_factory=list)
    domain: str | None = None
    priority: str | None = None
    template_id: str | None = None


class GoalHierarchyResponse(ApiModel):
    """Goals organized into parents, sub-goals and orphans."""

    parent_goals: list[GoalResponse]
    sub_goals_by_parent: dict[str, list[GoalResponse]]
    orphan_goals: list[GoalResponse]


# =============================================================================
# SESSION SCHEMAS
# =============================================================================


class PerformanceData(ApiModel):
    """Measured performance on one goal during a session."""

    goal_id: Annotated[str, StringConstraints(min_length=1)]
    student_id: OptionalId = None
    accuracy: float | None = Field(default=None, ge=0, le=100)
    correct_trials: int | None = Field(default=None, ge=0)
    incorrect_trials: int | None = Field(default=None, ge=0)
    notes: _optional_text(1000) = None
    cuing_levels: list[CuingLevel] = Field(default_factory=list)


class SessionCreate(ApiModel):
    """Request body for logging a session."""

    id: str | None = None
    student_id: Annotated[str, StringConstraints(min_length=1)]
    date: DateString
    end_time: OptionalDate = None
    goals_targeted: list[str] = Field(default_factory=list)
    activities_used: list[str] = Field(default_factory=list)
    performance_data: list[PerformanceData] = Field(default_factory=list)
    notes: _text(5000) = ""
    is_direct_services: bool = True
    indirect_services_notes: _optional_text(5000) = None
    group_session_id: OptionalId = None
    missed_session: bool = False
    selected_subjective_statements: list[str] = Field(default_factory=list)
    custom_subjective: _optional_text(2000) = None
    plan: _optional_text(2000) = None
    scheduled_session_id: OptionalId = None


class SessionUpdate(ApiModel):
    """Request body for updating a session."""

    date: DateString | None = None
    end_time: OptionalDate = None
    goals_targeted: list[str] | None = None
    activities_used: list[str] | None = None
    performance_data: list[PerformanceData] | None = None
    notes: _text(5000) | None = None
    is_direct_services: bool | None = None
    indirect_services_notes: _optional_text(5000) = None
    group_session_id: OptionalId = None
    missed_session: bool | None = None
    selected_subjective_statements: list[str] | None = None
    custom_subjective: _optional_text(2000) = None
    plan: _optional_text(2000) = None
    scheduled_session_id: OptionalId = None


class SessionResponse(ApiModel):
    """Response for a session."""

    id: str
    student_id: str
    date: str
    end_time: str | None = None
    goals_targeted: list[str] = Field(default_factory=list)
    activities_used: list[str] = Field(default_factory=list)
    performance_data: list[dict[str, Any]] = Field(default_factory=list)
    notes: str = ""
    is_direct_services: bool = True
    indirect_services_notes: str | None = None
    group_session_id: str | None = None
    missed_session: bool = False
    selected_subjective_statements: list[str] = Field(default_factory=list)
    custom_subjective: str | None = None
    plan: str | None = None
    scheduled_session_id: str | None = None


# =============================================================================
# EVALUATION SCHEMAS
# =============================================================================


class EvaluationCreate(ApiModel):
    """Request body for creating an evaluation."""

    id: str | None = None
    student_id: Annotated[str, StringConstraints(min_length=1)]
    grade: _text(20) = ""
    evaluation_type: Annotated[
        str, StringConstraints(strip_whitespace=True, min_length=1, max_length=100)
    ]
    areas_of_concern: list[str] = Field(default_factory=list)
    teacher: _optional_text(200) = None
    results_of_screening: _optional_text(5000) = None
    due_date: OptionalDate = None
    assessments: _optional_text(5000) = None
    qualify: _optional_text(50) = None
    report_completed: _optional_text(50) = None
    iep_completed: _optional_text(50) = None
    meeting_date: OptionalDate = None
    date_created: OptionalDate = None


class EvaluationUpdate(ApiModel):
    """Request body for updating an evaluation."""

    grade: _text(20) | None = None
    evaluation_type: Annotated[
        str, StringConstraints(strip_whitespace=True, min_length=1, max_length=100)
    ] | None = None
    areas_of_concern: list[str] | None = None
    teacher: _optional_text(200) = None
    results_of_screening: _optional_text(5000) = None
    due_date: OptionalDate = None
    assessments: _optional_text(5000) = None
    qualify: _optional_text(50) = None
    report_completed: _optional_text(50) = None
    iep_completed: _optional_text(50) = None
    meeting_date: OptionalDate = None


class EvaluationResponse(ApiModel):
    """Response for an evaluation."""

    id: str
    student_id: str
    grade: str
    evaluation_type: str
    areas_of_concern: list[str] = Field(default_factory=list)
    teacher: str | None = None
    results_of_screening: str | None = None
    due_date: str | None = None
    assessments: str | None = None
    qualify: str | None = None
    report_completed: str | None = None
    iep_completed: str | None = None
    meeting_date: str | None = None
    date_created: str
    date_updated: str


# =============================================================================
# SOAP NOTE SCHEMAS
# =============================================================================


class SoapNoteCreate(ApiModel):
    """Request body for creating a SOAP note."""

    id: str | None = None
    session_id: Annotated[str, StringConstraints(min_length=1)]
    student_id: Annotated[str, StringConstraints(min_length=1)]
    date: DateString
    template_id: OptionalId = None
    subjective: _text(2000) = ""
    objective: _text(2000) = ""
    assessment: _text(2000) = ""
    plan: _text(2000) = ""


class SoapNoteUpdate(ApiModel):
    """Request body for updating a SOAP note."""

    date: DateString | None = None
    template_id: OptionalId = None
    subjective: _text(2000) | None = None
    objective: _text(2000) | None = None
    assessment: _text(2000) | None = None
    plan: _text(2000) | None = None


class SoapNoteResponse(ApiModel):
    """Response for a SOAP note."""

    id: str
    session_id: str
    student_id: str
    date: str
    template_id: str | None = None
    subjective: str
    objective: str
    assessment: str
    plan: str
    date_created: str
    date_updated: str


class SoapNoteGenerateRequest(ApiModel):
    """Request body for drafting a SOAP note from a session."""

    session_id: Annotated[str, StringConstraints(min_length=1)]
    selected_subjective_statements: list[str] | None = None
    custom_subjective: str | None = None
    save: bool = False


class SoapDraftResponse(ApiModel):
    """Drafted SOAP sections (and the stored note when saved)."""

    session_id: str
    student_id: str
    subjective: str
    objective: str
    assessment: str
    plan: str
    soap_note: SoapNoteResponse | None = None


# =============================================================================
# PROGRESS REPORT SCHEMAS
# =============================================================================

ReportStatus = Literal["scheduled", "in-progress", "completed", "overdue"]


class ProgressReportCreate(ApiModel):
    """Request body for creating a progress report."""

    id: str | None = None
    student_id: Annotated[str, StringConstraints(min_length=1)]
    report_type: Literal["quarterly", "annual"]
    due_date: DateString
    scheduled_date: OptionalDate = None
    period_start: DateString
    period_end: DateString
    status: ReportStatus = "scheduled"
    completed_date: OptionalDate = None
    template_id: OptionalId = None
    content: _optional_text(50000) = None
    custom_due_date: OptionalDate = None


class ProgressReportUpdate(ApiModel):
    """Request body for updating a progress report."""

    report_type: Literal["quarterly", "annual"] | None = None
    due_date: DateString | None = None
    period_start: DateString | None = None
    period_end: DateString | None = None
    status: ReportStatus | None = None
    completed_date: OptionalDate = None
    template_id: OptionalId = None
    content: _optional_text(50000) = None
    custom_due_date: OptionalDate = None
    reminder_sent: bool | None = None
    reminder_sent_date: OptionalDate = None


class ProgressReportResponse(ApiModel):
    """Response for a progress report."""

    id: str
    student_id: str
    report_type: str
    due_date: str
    scheduled_date: str
    period_start: str
    period_end: str
    status: str
    completed_date: str | None = None
    template_id: str | None = None
    content: str | None = None
    date_created: str
    date_updated: str
    custom_due_date: str | None = None
    reminder_sent: bool = False
    reminder_sent_date: str | None = None


class ScheduleReportsRequest(ApiModel):
    """Schedule reports for one student or a whole school."""

    student_id: OptionalId = None
    school: _optional_text(200) = None


class ScheduleReportsResponse(ApiModel):
    """Reports created by auto-scheduling."""

    scheduled: int
    reports: list[ProgressReportResponse]


class CompleteRequest(ApiModel):
    """Optional body for completion endpoints."""

    completed_date: OptionalDate = None


# =============================================================================
# DUE DATE ITEM SCHEMAS
# =============================================================================


class DueDateItemCreate(ApiModel):
    """Request body for creating a due-date item."""

    id: str | None = None
    title: Name
    description: _optional_text(5000) = None
    due_date: DateString
    student_id: OptionalId = None
    status: Literal["pending", "completed", "overdue"] = "pending"
    completed_date: OptionalDate = None
    category: _optional_text(100) = None
    priority: Priority | None = None


class DueDateItemUpdate(ApiModel):
    """Request body for updating a due-date item."""

    title: Name | None = None
    description: _optional_text(5000) = None
    due_date: DateString | None = None
    student_id: OptionalId = None
    status: Literal["pending", "completed", "overdue"] | None = None
    completed_date: OptionalDate = None
    category: _optional_text(100) = None
    priority: Priority | None = None


class DueDateItemResponse(ApiModel):
    """Response for a due-date item."""

    id: str
    title: str
    description: str | None = None
    due_date: str
    student_id: str | None = None
    status: str
    completed_date: str | None = None
    category: str | None = None
    priority: str | None = None
    date_created: str
    date_updated: str


# =============================================================================
# COMMUNICATION SCHEMAS
# =============================================================================

ContactType = Literal["teacher", "parent", "case-manager"]
ContactMethod = Literal["email", "phone", "in-person", "other"]


class CommunicationCreate(ApiModel):
    """Request body for logging a communication."""

    id: str | None = None
    student_id: OptionalId = None
    contact_type: ContactType
    contact_id: OptionalId = None
    contact_name: Name
    contact_email: OptionalEmail = None
    subject: Annotated[str, StringConstraints(strip_whitespace=True, min_length=1, max_length=500)]
    body: Annotated[str, StringConstraints(max_length=10000)]
    method: ContactMethod
    date: OptionalDate = None
    session_id: OptionalId = None
    related_to: _optional_text(200) = None


class CommunicationUpdate(ApiModel):
    """Request body for updating a communication."""

    student_id: OptionalId = None
    contact_type: ContactType | None = None
    contact_id: OptionalId = None
    contact_name: Name | None = None
    contact_email: OptionalEmail = None
    subject: Annotated[
        str, StringConstraints(strip_whitespace=True, min_length=1, max_length=500)
    ] | None = None
    body: Annotated[str, StringConstraints(max_length=10000)] | None = None
    method: ContactMethod | None = None
    date: DateString | None = None
    session_id: OptionalId = None
    related_to: _optional_text(200) = None


class CommunicationResponse(ApiModel):
    """Response for a communication."""

    id: str
    student_id: str | None = None
    contact_type: str
    contact_id: str | None = None
    contact_name: str
    contact_email: str | None = None
    subject: str
    body: str
    method: str
    date: str
    session_id: str | None = None
    related_to: str | None = None
    date_created: str


# =============================================================================
# SCHEDULED SESSION SCHEMAS
# =============================================================================

RecurrencePattern = Literal["weekly", "daily", "specific-dates", "none"]
DayOfWeek = Annotated[int, Field(ge=0, le=6)]


class ScheduledSessionCreate(ApiModel):
    """Request body for creating a scheduled session."""

    id: str | None = None
    student_ids: list[str] = Field(..., min_length=1)
    start_time: TimeString
    end_time: Annotated[TimeString | None, BeforeValidator(_empty_to_none)] = None
    duration: int | None = Field(default=None, ge=1, le=480)
    day_of_week: list[DayOfWeek] = Field(default_factory=list)
    specific_dates: list[DateString] = Field(default_factory=list)
    recurrence_pattern: RecurrencePattern = "weekly"
    start_date: DateString
    end_date: OptionalDate = None
    goals_targeted: list[str] = Field(default_factory=list)
    notes: _optional_text(5000) = None
    is_direct_services: bool = True
    active: bool = True
    cancelled_dates: list[DateString] = Field(default_factory=list)


class ScheduledSessionUpdate(ApiModel):
    """Request body for updating a scheduled session."""

    student_ids: list[str] | None = Field(default=None, min_length=1)
    start_time: TimeString | None = None
    end_time: Annotated[TimeString | None, BeforeValidator(_empty_to_none)] = None
    duration: int | None = Field(default=None, ge=1, le=480)
    day_of_week: list[DayOfWeek] | None = None
    specific_dates: list[DateString] | None = None
    recurrence_pattern: RecurrencePattern | None = None
    start_date: DateString | None = None
    end_date: OptionalDate = None
    goals_targeted: list[str] | None = None
    notes: _optional_text(5000) = None
    is_direct_services: bool | None = None
    active: bool | None = None
    cancelled_dates: list[DateString] | None = None


class ScheduledSessionResponse(ApiModel):
    """Response for a scheduled session."""

    id: str
    student_ids: list[str] = Field(default_factory=list)
    start_time: str
    end_time: str | None = None
    duration: int | None = None
    day_of_week: list[int] = Field(default_factory=list)
    specific_dates: list[str] = Field(default_factory=list)
    recurrence_pattern: str
    start_date: str
    end_date: str | None = None
    goals_targeted: list[str] = Field(default_factory=list)
    notes: str | None = None
    is_direct_services: bool = True
    active: bool = True
    cancelled_dates: list[str] = Field(default_factory=list)
    date_created: str
    date_updated: str


class OccurrenceResponse(ApiModel):
    """One dated occurrence of a scheduled session."""

    id: str
    scheduled_session_id: str
    date: str
    start_time: str
    end_time: str
    student_ids: list[str]
    goals_targeted: list[str]
    is_direct_services: bool
    has_conflict: bool
    is_logged: bool
    is_missed: bool


# =============================================================================
# TIMESHEET NOTE SCHEMAS
# =============================================================================


class TimesheetNoteCreate(ApiModel):
    """Request body for creating a timesheet note."""

    id: str | None = None
    content: Annotated[str, StringConstraints(min_length=1, max_length=10000)]
    date_created: OptionalDate = None
    date_for: OptionalDate = None
    school: _optional_text(200) = None


class TimesheetNoteUpdate(ApiModel):
    """Request body for updating a timesheet note."""

    content: Annotated[str, StringConstraints(min_length=1, max_length=10000)] | None = None
    date_for: OptionalDate = None
    school: _optional_text(200) = None


class TimesheetNoteResponse(ApiModel):
    """Response for a timesheet note."""

    id: str
    content: str
    date_created: str
    date_for: str | None = None
    school: str | None = None


# =============================================================================
# REMINDER SCHEMAS
# =============================================================================


class ReminderResponse(ApiModel):
    """A caseload reminder."""

    id: str
    type: str
    title: str
    description: str
    student_id: str
    student_name: str
    priority: str
    due_date: str | None = None
    days_until_due: int | None = None
    related_id: str | None = None


# =============================================================================
# AI SCHEMAS
# =============================================================================


class AIRequest(ApiModel):
    """Fields shared by every AI request."""

    api_key: OptionalId = None


class StudentAIRequest(AIRequest):
    """AI request about one student."""

    student_id: Annotated[str, StringConstraints(min_length=1)]


class ProgressNoteRequest(StudentAIRequest):
    """Progress note over an optional period."""

    goal_ids: list[str] | None = None
    period_start: OptionalDate = None
    period_end: OptionalDate = None


class IEPUpdateRequest(StudentAIRequest):
    """IEP update inputs; at least one of note, summary or goals is needed."""

    old_iep_note: _optional_text(20000) = None
    summary_statement: _optional_text(20000) = None
    include_goals: bool = True
    recent_sessions_summary: _optional_text(10000) = None


class GoalSuggestionsRequest(StudentAIRequest):
    """Goal suggestions for a goal area."""

    goal_area: Annotated[str, StringConstraints(strip_whitespace=True, min_length=1, max_length=200)]


class TreatmentIdeasRequest(AIRequest):
    """Activity ideas for a goal area."""

    goal_area: Annotated[str, StringConstraints(strip_whitespace=True, min_length=1, max_length=200)]
    age_range: _text(100) = ""
    materials: list[str] = Field(default_factory=list)


class AITextResponse(ApiModel):
    """Generated clinical text."""

    content: str
    model: str


# =============================================================================
# DOCUMENT PARSER SCHEMAS
# =============================================================================


class ExtractedPersonResponse(ApiModel):
    """A staff member found in a document."""

    name: str
    type: str
    email: str | None = None
    phone_number: str | None = None
    grade: str | None = None
    role: str | None = None


class ParsedDocumentResponse(ApiModel):
    """Staff directory extracted from a document."""

    school_name: str | None = None
    people: list[ExtractedPersonResponse]


# =============================================================================
# EMAIL SCHEMAS
# =============================================================================


class EmailRequest(ApiModel):
    """Outgoing email through the clinician's own SMTP account."""

    to: Annotated[str, StringConstraints(strip_whitespace=True, min_length=3)]
    subject: Annotated[str, StringConstraints(strip_whitespace=True, min_length=1, max_length=500)]
    body: Annotated[str, StringConstraints(min_length=1, max_length=50000)]
    from_email: EmailString
    from_name: _optional_text(200) = None
    smtp_host: _optional_text(255) = None
    smtp_port: int | None = Field(default=None, ge=1, le=65535)
    smtp_user: _optional_text(255) = None
    smtp_password: _optional_text(255) = None
    cc: _optional_text(2000) = None
    bcc: _optional_text(2000) = None


class EmailResponse(ApiModel):
    """Result of sending an email."""

    success: bool
    message_id: str
    message: str


# =============================================================================
# AUTH SCHEMAS
# =============================================================================


class AuthStatusResponse(ApiModel):
    """Whether auth is on and whether a password exists."""

    enabled: bool
    setup: bool
    requires_login: bool
    requires_setup: bool


class PasswordRequest(ApiModel):
    """Body for setup and login."""

    password: Annotated[str, StringConstraints(min_length=1, max_length=200)]


class ChangePasswordRequest(ApiModel):
    """Body for changing the password."""

    current_password: Annotated[str, StringConstraints(min_length=1, max_length=200)]
    new_password: Annotated[str, StringConstraints(min_length=1, max_length=200)]


class TokenResponse(ApiModel):
    """Issued bearer token."""

    message: str
    token: str
    expires_at: str


# =============================================================================
# EXPORT / BACKUP SCHEMAS
# =============================================================================


class ImportRequest(ApiModel):
    """Legacy JSON import."""

    data: dict[str, Any]
    mode: Literal["replace", "append"] = "replace"


class ImportResponse(ApiModel):
    """Rows imported per entity key."""

    success: bool
    counts: dict[str, int]


class BackupResponse(ApiModel):
    """A backup file."""

    name: str
    size: int
    created_at: str


class RestoreResponse(ApiModel):
    """Result of restoring a backup."""

    restored: str
    safety_backup: str
