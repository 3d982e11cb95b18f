# backend/prodbay/api/v1/routers/quotes.py
"""
Quotes API Router.

Producer-side quote decisions (accept, reject), cost comparison across an
asset's quotes, and the producer's side of the quote chat.
"""

import logging
from datetime import datetime
from typing import Optional
from uuid import UUID

from fastapi import APIRouter, Depends, Query

from prodbay.api.v1.responses import ok, quote_with_supplier
from prodbay.api.v1.schemas import (
    ApiResponse,
    AssetResponse,
    ComparedQuote,
    MessageCreateRequest,
    MessageListResponse,
    MessageResponse,
    QuoteAcceptanceResponse,
    QuoteComparisonResponse,
    QuoteResponse,
)
from prodbay.config import settings
from prodbay.core.services.portal_service import PortalService
from prodbay.core.services.quote_service import QuoteService
from prodbay.core.statuses import SenderType
from prodbay.dependencies import get_portal_service, get_quote_service

logger = logging.getLogger("prodbay.api.quotes")

router = APIRouter(prefix="/quotes", tags=["quotes"])


@router.get(
    "/compare/{asset_id}",
    response_model=ApiResponse[QuoteComparisonResponse],
    summary="Compare quotes for an asset",
    description="Quotes ordered by cost with rank, cost relative to the lowest bid, and summary metrics.",
)
async def compare_quotes(asset_id: UUID, quotes: QuoteService = Depends(get_quote_service)):
    result = await quotes.compare_quotes(asset_id)
    return ok(
        QuoteComparisonResponse(
            asset=AssetResponse.model_validate(result["asset"]),
            quotes=[
                quote_with_supplier(
                    item["quote"],
                    response_cls=ComparedQuote,
                    cost_rank=item["cost_rank"],
                    cost_percentage_of_lowest=item["cost_percentage_of_lowest"],
                )
                for item in result["quotes"]
            ],
            metrics=result["metrics"],
        )
    )


@router.post(
    "/{quote_id}/accept",
    response_model=ApiResponse[QuoteAcceptanceResponse],
    summary="Accept quote",
    description="Accept a submitted quote, reject its competitors and award the asset to the supplier.",
)
async def accept_quote(quote_id: UUID, quotes: QuoteService = Depends(get_quote_service)):
    result = await quotes.accept_quote(quote_id)
    return ok(
        QuoteAcceptanceResponse(
            quote=QuoteResponse.model_validate(result["quote"]),
            asset=AssetResponse.model_validate(result["asset"]),
            rejected_quote_ids=result["rejected_quote_ids"],
        ),
        message="Quote accepted",
    )


@router.post("/{quote_id}/reject", response_model=ApiResponse[QuoteResponse], summary="Reject quote")
async def reject_quote(quote_id: UUID, quotes: QuoteService = Depends(get_quote_service)):
    quote = await quotes.reject_quote(quote_id)
    return ok(QuoteResponse.model_validate(quote), message="Quote rejected")


# =========================================================================
# PRODUCER CHAT
# =========================================================================


@router.get(
    "/{quote_id}/messages",
    response_model=ApiResponse[MessageListResponse],
    summary="List quote messages",
    description="Chat history for a quote; pass ``since`` to poll for newer messages only.",
)
async def list_quote_messages(
    quote_id: UUID,
    since: Optional[datetime] = Query(None, description="Only messages created after this instant"),
    mark_read: bool = Query(False, description="Mark the supplier's messages as read"),
    portal: PortalService = Depends(get_portal_service),
):
    messages = await portal.get_quote_messages(quote_id, since=since)
    if mark_read:
        await portal.mark_messages_read(quote_id, SenderType.PRODUCER)
    return ok(
        MessageListResponse(
            messages=[MessageResponse.model_validate(m) for m in messages],
            poll_interval_seconds=settings.chat_poll_interval_seconds,
        )
    )


@router.post(
    "/{quote_id}/messages",
    response_model=ApiResponse[MessageResponse],
    status_code=201,
    summary="Send message to supplier",
)
async def send_producer_message(
    quote_id: UUID,
    request: MessageCreateRequest,
    portal: PortalService = Depends(get_portal_service),
):
    message = await portal.send_producer_message(quote_id, request.content)
    return ok(MessageResponse.model_validate(message), message="Message sent")
