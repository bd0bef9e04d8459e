"""Web API (FastAPI) for the caseload service."""
