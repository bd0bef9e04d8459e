"""Core business logic.

Modules:
- report_scheduler: Progress-report calendar arithmetic and auto-scheduling
- reminders: Caseload reminders (goal reviews, deadlines, missing goals)
- soap_generator: Deterministic SOAP-note drafting
- goal_hierarchy: Goal/sub-goal organization
- session_calendar: Scheduled-session expansion and conflicts
- clinical_writer: AI-drafted clinical documents
- document_parser: Staff-directory extraction from uploads
- mailer: SMTP email sending
- auth: Password storage and JWT tokens
"""

__all__ = [
    "auth",
    "clinical_writer",
    "document_parser",
    "goal_hierarchy",
    "mailer",
    "reminders",
    "report_scheduler",
    "session_calendar",
    "soap_generator",
]
