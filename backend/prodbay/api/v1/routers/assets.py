# backend/prodbay/api/v1/routers/assets.py
"""
Assets API Router.

Single-asset operations; listing and creation live under the owning
project (``/projects/{id}/assets``).
"""

import logging
from uuid import UUID

from fastapi import APIRouter, Depends

from prodbay.api.v1.responses import ok
from prodbay.api.v1.schemas import (
    ApiResponse,
    AssetResponse,
    AssetUpdateRequest,
    AutoQuoteRequestBody,
    SendQuoteRequestsResponse,
)
from prodbay.core.services.automation_service import AutomationService
from prodbay.core.services.producer_service import ProducerService
from prodbay.dependencies import get_automation_service, get_producer_service

logger = logging.getLogger("prodbay.api.assets")

router = APIRouter(prefix="/assets", tags=["assets"])


@router.get("/{asset_id}", response_model=ApiResponse[AssetResponse], summary="Get asset")
async def get_asset(asset_id: UUID, producer: ProducerService = Depends(get_producer_service)):
    asset = await producer.load_asset(asset_id)
    return ok(AssetResponse.model_validate(asset))


@router.put("/{asset_id}", response_model=ApiResponse[AssetResponse], summary="Update asset")
async def update_asset(
    asset_id: UUID,
    request: AssetUpdateRequest,
    producer: ProducerService = Depends(get_producer_service),
):
    asset = await producer.update_asset(asset_id, request.model_dump(exclude_unset=True))
    return ok(AssetResponse.model_validate(asset), message="Asset updated")


@router.delete(
    "/{asset_id}",
    response_model=ApiResponse[dict],
    summary="Delete asset",
    description="Delete an asset with its quotes and their chat messages.",
)
async def delete_asset(asset_id: UUID, producer: ProducerService = Depends(get_producer_service)):
    counts = await producer.delete_asset(asset_id)
    return ok({"deleted": counts}, message="Asset deleted")


@router.post(
    "/{asset_id}/request-quotes",
    response_model=ApiResponse[SendQuoteRequestsResponse],
    summary="Request quotes from matching suppliers",
    description="Send a quote request to every supplier whose categories match the asset.",
)
async def request_quotes_for_asset(
    asset_id: UUID,
    request: AutoQuoteRequestBody,
    automation: AutomationService = Depends(get_automation_service),
):
    sender = request.sender.model_dump() if request.sender else None
    result = await automation.send_quote_requests_for_asset(asset_id, request.required_tags, sender)
    logger.info(f"Automatic quote requests for asset {asset_id}: {result['successful_requests']} sent")
    return ok(SendQuoteRequestsResponse(**result))
