# backend/prodbay/api/v1/routers/portal.py
"""
Supplier Portal API Router.

Unauthenticated endpoints for suppliers. Every call carries the quote's
access token, which scopes it to that single quote.
"""

import logging
from datetime import datetime
from typing import Optional

from fastapi import APIRouter, Depends, Query

from prodbay.api.v1.responses import ok
from prodbay.api.v1.schemas import (
    ApiResponse,
    AssetResponse,
    MessageListResponse,
    MessageResponse,
    PortalMessageRequest,
    PortalSessionResponse,
    ProjectResponse,
    QuoteResponse,
    SubmitQuoteRequest,
    SupplierResponse,
)
from prodbay.config import settings
from prodbay.core.services.portal_service import PortalService
from prodbay.core.services.quote_service import QuoteService
from prodbay.dependencies import get_portal_service, get_quote_service

logger = logging.getLogger("prodbay.api.portal")

router = APIRouter(prefix="/portal", tags=["portal"])


@router.get(
    "/session/{token}",
    response_model=ApiResponse[PortalSessionResponse],
    summary="Open portal session",
    description="Quote, asset, project, supplier and chat history for an access token.",
)
async def get_portal_session(token: str, portal: PortalService = Depends(get_portal_service)):
    session = await portal.get_portal_session(token)
    return ok(
        PortalSessionResponse(
            quote=QuoteResponse.model_validate(session["quote"]),
            asset=AssetResponse.model_validate(session["asset"]),
            project=ProjectResponse.model_validate(session["project"]),
            supplier=SupplierResponse.model_validate(session["supplier"]),
            messages=[MessageResponse.model_validate(m) for m in session["messages"]],
            poll_interval_seconds=session["poll_interval_seconds"],
        )
    )


@router.get(
    "/messages/{token}",
    response_model=ApiResponse[MessageListResponse],
    summary="Poll portal messages",
)
async def list_portal_messages(
    token: str,
    since: Optional[datetime] = Query(None, description="Only messages created after this instant"),
    portal: PortalService = Depends(get_portal_service),
):
    messages = await portal.get_messages_for_token(token, since=since)
    return ok(
        MessageListResponse(
            messages=[MessageResponse.model_validate(m) for m in messages],
            poll_interval_seconds=settings.chat_poll_interval_seconds,
        )
    )


@router.post(
    "/messages",
    response_model=ApiResponse[MessageResponse],
    status_code=201,
    summary="Send message to producer",
)
async def send_supplier_message(request: PortalMessageRequest, portal: PortalService = Depends(get_portal_service)):
    message = await portal.send_supplier_message(request.token, request.content)
    return ok(MessageResponse.model_validate(message), message="Message sent")


@router.post(
    "/submit-quote",
    response_model=ApiResponse[QuoteResponse],
    summary="Submit bid",
    description="Record the supplier's price and notes; the quote moves to Submitted.",
)
async def submit_quote(request: SubmitQuoteRequest, quotes: QuoteService = Depends(get_quote_service)):
    quote = await quotes.submit_quote(request.token, request.cost, request.notes_capacity)
    return ok(QuoteResponse.model_validate(quote), message="Quote submitted")
