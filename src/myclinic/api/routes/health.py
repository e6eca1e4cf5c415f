"""Health check endpoint."""

from datetime import datetime, timezone

from fastapi import APIRouter

from myclinic.api.models import HealthResponse

router = APIRouter(tags=["Health"])

SERVICE_NAME = "Myclinic API Wrapper"


@router.get("/", response_model=HealthResponse)
async def health_check():
    """Liveness probe; does not touch the Myclinic site."""
    return HealthResponse(
        status="healthy",
        service=SERVICE_NAME,
        timestamp=datetime.now(timezone.utc).isoformat(),
    )
