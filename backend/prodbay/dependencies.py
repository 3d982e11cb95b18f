# backend/prodbay/dependencies.py
"""
FastAPI dependency injection functions for ProdBay services.

The shared infrastructure objects (DatabaseService, EmailService,
LLMService) are created once at startup and kept on ``app.state``. Domain
services are cheap wrappers built per request from those objects, so tests
can swap any of them through ``app.dependency_overrides``.

Usage:
    from fastapi import Depends
    from prodbay.dependencies import get_producer_service

    @router.get("/projects")
    async def list_projects(producer: ProducerService = Depends(get_producer_service)):
        return await producer.load_projects()
"""

from fastapi import Depends, Request

from prodbay.core.errors import StoreUnavailableError
from prodbay.core.llm.ai_allocation_service import AIAllocationService
from prodbay.core.llm.brief_highlight_service import BriefHighlightService
from prodbay.core.llm.llm_service import LLMService
from prodbay.core.notify.email_service import EmailService
from prodbay.core.services.automation_service import AutomationService
from prodbay.core.services.brief_processor import BriefProcessor
from prodbay.core.services.dashboard_service import DashboardService
from prodbay.core.services.portal_service import PortalService
from prodbay.core.services.producer_service import ProducerService
from prodbay.core.services.quote_request_service import QuoteRequestService
from prodbay.core.services.quote_service import QuoteService
from prodbay.core.services.supplier_service import SupplierService
from prodbay.core.services.tracking_service import ProjectTrackingService
from prodbay.core.shared.database_service import DatabaseService


# =========================================================================
# INFRASTRUCTURE
# =========================================================================


def get_database(request: Request) -> DatabaseService:
    database = getattr(request.app.state, "database", None)
    if database is None:
        raise StoreUnavailableError("Database service has not been started")
    return database


def get_email_service(request: Request) -> EmailService:
    email_service = getattr(request.app.state, "email_service", None)
    if email_service is None:
        email_service = EmailService()
        request.app.state.email_service = email_service
    return email_service


def get_llm_service(request: Request) -> LLMService:
    llm = getattr(request.app.state, "llm_service", None)
    if llm is None:
        llm = LLMService()
        request.app.state.llm_service = llm
    return llm


# =========================================================================
# DOMAIN SERVICES
# =========================================================================


def get_producer_service(database: DatabaseService = Depends(get_database)) -> ProducerService:
    return ProducerService(database)


def get_supplier_service(database: DatabaseService = Depends(get_database)) -> SupplierService:
    return SupplierService(database)


def get_quote_service(
    database: DatabaseService = Depends(get_database),
    email_service: EmailService = Depends(get_email_service),
) -> QuoteService:
    return QuoteService(database, email_service)


def get_quote_request_service(
    database: DatabaseService = Depends(get_database),
    email_service: EmailService = Depends(get_email_service),
) -> QuoteRequestService:
    return QuoteRequestService(database, email_service)


def get_portal_service(
    database: DatabaseService = Depends(get_database),
    email_service: EmailService = Depends(get_email_service),
) -> PortalService:
    return PortalService(database, email_service)


def get_automation_service(
    database: DatabaseService = Depends(get_database),
    email_service: EmailService = Depends(get_email_service),
) -> AutomationService:
    return AutomationService(database, email_service)


def get_ai_allocation_service(
    database: DatabaseService = Depends(get_database),
    llm: LLMService = Depends(get_llm_service),
) -> AIAllocationService:
    return AIAllocationService(database, llm)


def get_brief_highlight_service(
    database: DatabaseService = Depends(get_database),
    llm: LLMService = Depends(get_llm_service),
) -> BriefHighlightService:
    return BriefHighlightService(database, llm)


def get_brief_processor(
    automation: AutomationService = Depends(get_automation_service),
    allocator: AIAllocationService = Depends(get_ai_allocation_service),
) -> BriefProcessor:
    return BriefProcessor(automation, allocator)


def get_dashboard_service(database: DatabaseService = Depends(get_database)) -> DashboardService:
    return DashboardService(database)


def get_tracking_service(database: DatabaseService = Depends(get_database)) -> ProjectTrackingService:
    return ProjectTrackingService(database)
