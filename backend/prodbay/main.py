# ============================================================================
# ProdBay - FastAPI Application Entry Point
# ============================================================================
"""
Main FastAPI application module for ProdBay, a production project workflow API.

This module sets up the FastAPI application with:
- CORS middleware configuration for the web client
- Request logging middleware
- Application startup/shutdown event handlers
- Error handlers rendering the standard error envelope
- API router integration

Usage:
    Direct: python -m prodbay.main
    Server: uvicorn prodbay.main:app --host 0.0.0.0 --port 8000 --reload

Architecture:
    - FastAPI for REST API framework
    - Pydantic for data validation and settings
    - Service layer over async SQLAlchemy for business logic
    - Shared services (database, email, LLM) held on app.state
"""

import logging
import time
from datetime import datetime
from typing import Any, Dict

from fastapi import FastAPI, Request
from fastapi.exceptions import RequestValidationError
from fastapi.middleware.cors import CORSMiddleware
from fastapi.responses import JSONResponse
from starlette.exceptions import HTTPException as StarletteHTTPException

from prodbay import __description__, __version__
from prodbay.api.v1 import api_router
from prodbay.config import settings
from prodbay.core.errors import ProdBayError
from prodbay.core.llm.llm_service import LLMService
from prodbay.core.notify.email_service import EmailService
from prodbay.core.shared.database_service import DatabaseService

logging.basicConfig(
    level=getattr(logging, settings.log_level.upper(), logging.INFO),
    format="%(asctime)s %(levelname)s [%(name)s] %(message)s",
)
logger = logging.getLogger("prodbay.main")

# ============================================================================
# APPLICATION INITIALIZATION
# ============================================================================

app = FastAPI(
    title=settings.api_title,
    version=settings.api_version,
    description=__description__,
    docs_url="/docs",
    redoc_url="/redoc",
    openapi_url="/openapi.json",
)

# ============================================================================
# MIDDLEWARE CONFIGURATION
# ============================================================================

app.add_middleware(
    CORSMiddleware,
    allow_origins=settings.cors_origins,
    allow_origin_regex=settings.cors_origin_regex,
    allow_credentials=True,
    allow_methods=["GET", "POST", "PUT", "DELETE", "OPTIONS"],
    allow_headers=["*"],
)


@app.middleware("http")
async def log_requests(request: Request, call_next):
    """Log each request as ``METHOD path -> status (ms)``."""
    start = time.monotonic()
    response = await call_next(request)
    elapsed_ms = (time.monotonic() - start) * 1000
    logging.getLogger("prodbay.api.requests").info(
        f"{request.method} {request.url.path} -> {response.status_code} ({elapsed_ms:.0f}ms)"
    )
    return response


# ============================================================================
# APPLICATION EVENT HANDLERS
# ============================================================================

@app.on_event("startup")
async def startup_event() -> None:
    """
    Application startup event handler.

    Creates the shared services and the database schema. A database that
    cannot be reached is logged, not raised: the API still starts and store
    operations answer 503 until it is fixed.
    """
    logger.info(f"Starting ProdBay v{__version__} (debug={settings.debug})")

    database = DatabaseService()
    if database.is_initialized:
        try:
            await database.init_db()
        except Exception as e:
            logger.error(f"Database schema initialization failed: {e}")
    app.state.database = database

    app.state.email_service = EmailService()
    app.state.llm_service = LLMService()
    llm_status = "available" if app.state.llm_service.is_available else "unavailable"
    logger.info(f"LLM service: {llm_status}")

    logger.info("Startup complete - ProdBay ready")


@app.on_event("shutdown")
async def shutdown_event() -> None:
    logger.info("Shutting down ProdBay...")
    database = getattr(app.state, "database", None)
    if database is not None:
        try:
            await database.close()
        except Exception as e:
            logger.warning(f"Shutdown cleanup warning: {e}")
    logger.info("Shutdown complete")


# ============================================================================
# ERROR HANDLERS
# ============================================================================

def _error_response(status_code: int, code: str, message: str, details: Any = None) -> JSONResponse:
    error: Dict[str, Any] = {"code": code, "message": message}
    if details:
        error["details"] = details
    return JSONResponse(status_code=status_code, content={"success": False, "error": error})


@app.exception_handler(ProdBayError)
async def prodbay_exception_handler(request: Request, exc: ProdBayError) -> JSONResponse:
    """Render domain errors raised by the services."""
    if exc.status_code >= 500:
        logger.error(f"{request.method} {request.url.path} failed: {exc.code}: {exc.message}")
    return JSONResponse(status_code=exc.status_code, content={"success": False, "error": exc.to_dict()})


@app.exception_handler(RequestValidationError)
async def validation_exception_handler(request: Request, exc: RequestValidationError) -> JSONResponse:
    errors = [
        {"field": ".".join(str(p) for p in err.get("loc", ())), "message": err.get("msg")}
        for err in exc.errors()
    ]
    return _error_response(422, "VALIDATION_ERROR", "Request validation failed", {"errors": errors})


@app.exception_handler(StarletteHTTPException)
async def http_exception_handler(request: Request, exc: StarletteHTTPException) -> JSONResponse:
    code = "NOT_FOUND" if exc.status_code == 404 else f"HTTP_{exc.status_code}"
    return _error_response(exc.status_code, code, str(exc.detail))


@app.exception_handler(Exception)
async def general_exception_handler(request: Request, exc: Exception) -> JSONResponse:
    """
    Catch-all for unexpected errors.

    The error detail is only exposed in debug mode.
    """
    logger.exception(f"Unhandled error on {request.method} {request.url.path}")
    message = str(exc) if settings.debug else "An unexpected error occurred"
    return _error_response(500, "INTERNAL_SERVER_ERROR", message)


# ============================================================================
# ROUTER CONFIGURATION
# ============================================================================

app.include_router(api_router, prefix="/api")

# ============================================================================
# ROOT ENDPOINT
# ============================================================================

@app.get("/", tags=["root"])
async def root() -> Dict[str, Any]:
    return {
        "name": settings.api_title,
        "version": settings.api_version,
        "status": "running",
        "description": __description__,
        "docs_url": "/docs",
        "health_check": "/api/health",
        "timestamp": datetime.now(),
    }


# ============================================================================
# DEVELOPMENT SERVER
# ============================================================================

if __name__ == "__main__":
    import uvicorn

    uvicorn.run(
        "prodbay.main:app",
        host="0.0.0.0",
        port=8000,
        reload=settings.debug,
        log_level=settings.log_level.lower(),
    )
