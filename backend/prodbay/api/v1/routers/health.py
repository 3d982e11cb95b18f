# backend/prodbay/api/v1/routers/health.py
"""
Health API Router.
"""

from datetime import datetime

from fastapi import APIRouter, Depends, Request

from prodbay.api.v1.responses import ok
from prodbay.api.v1.schemas import ApiResponse, HealthResponse
from prodbay.config import settings
from prodbay.core.llm.llm_service import LLMService
from prodbay.core.notify.email_service import EmailService
from prodbay.dependencies import get_email_service, get_llm_service

router = APIRouter(tags=["system"])


@router.get(
    "/health",
    response_model=ApiResponse[HealthResponse],
    summary="Service health",
    description="Service version, database connectivity and row counts, AI and email configuration.",
)
async def health_check(
    request: Request,
    llm: LLMService = Depends(get_llm_service),
    email_service: EmailService = Depends(get_email_service),
):
    database = getattr(request.app.state, "database", None)
    if database is not None:
        db_health = await database.health_check()
    else:
        db_health = {"status": "unhealthy", "connected": False, "error": "Database service has not been started"}

    return ok(
        HealthResponse(
            status="healthy" if db_health.get("connected") else "degraded",
            version=settings.api_version,
            timestamp=datetime.now(),
            database=db_health,
            llm_available=llm.is_available,
            email_backend=type(email_service.backend).__name__,
        )
    )
