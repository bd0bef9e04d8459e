"""Health check endpoint."""

from datetime import datetime, timezone

from fastapi import APIRouter

from caseload import __version__
from caseload.config import load_app_config
from caseload.web.schemas import HealthResponse

router = APIRouter(tags=["health"])


@router.get("/health", response_model=HealthResponse)
async def health_check() -> HealthResponse:
    """Check API health status."""
    return HealthResponse(
        status="ok",
        version=__version__,
        environment=load_app_config().server.env,
        timestamp=datetime.now(timezone.utc).isoformat(),
    )
