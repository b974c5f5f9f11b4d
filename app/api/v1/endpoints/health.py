"""
Liveness probe.
"""

from datetime import datetime, timezone

from fastapi import APIRouter, Request

from app.core.limiter import api_limit
from app.schemas.common import HealthResponse

router = APIRouter(tags=["health"])


@router.get("/health", response_model=HealthResponse)
@api_limit
async def health(request: Request) -> HealthResponse:
    """Public health check — no auth, no database round-trip."""
    return HealthResponse(
        status="OK",
        message="Server is running",
        timestamp=datetime.now(timezone.utc).isoformat(),
    )
