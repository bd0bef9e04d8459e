"""Command-line interface for the caseload service."""
