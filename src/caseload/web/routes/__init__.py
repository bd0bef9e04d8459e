"""Route handlers for the caseload Web API."""

from caseload.web.routes.ai import router as ai_router
from caseload.web.routes.auth import router as auth_router
from caseload.web.routes.backup import router as backup_router
from caseload.web.routes.case_managers import router as case_managers_router
from caseload.web.routes.communications import router as communications_router
from caseload.web.routes.document_parser import router as document_parser_router
from caseload.web.routes.due_date_items import router as due_date_items_router
from caseload.web.routes.email import router as email_router
from caseload.web.routes.evaluations import router as evaluations_router
from caseload.web.routes.export import router as export_router
from caseload.web.routes.goals import router as goals_router
from caseload.web.routes.health import router as health_router
from caseload.web.routes.progress_reports import router as progress_reports_router
from caseload.web.routes.reminders import router as reminders_router
from caseload.web.routes.scheduled_sessions import router as scheduled_sessions_router
from caseload.web.routes.schools import router as schools_router
from caseload.web.routes.sessions import router as sessions_router
from caseload.web.routes.soap_notes import router as soap_notes_router
from caseload.web.routes.students import router as students_router
from caseload.web.routes.teachers import router as teachers_router
from caseload.web.routes.timesheet_notes import router as timesheet_notes_router

# Routers behind auth and the general API rate limit
RESOURCE_ROUTERS = [
    students_router,
    goals_router,
    sessions_router,
    schools_router,
    teachers_router,
    case_managers_router,
    evaluations_router,
    soap_notes_router,
    progress_reports_router,
    due_date_items_router,
    communications_router,
    scheduled_sessions_router,
    timesheet_notes_router,
    reminders_router,
    export_router,
    backup_router,
    ai_router,
    document_parser_router,
]

__all__ = [
    "RESOURCE_ROUTERS",
    "auth_router",
    "email_router",
    "health_router",
]
