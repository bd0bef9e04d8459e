"""SLP caseload management: students, goals, sessions and clinical paperwork."""

__version__ = "0.1.0"
