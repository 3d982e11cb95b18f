# backend/prodbay/api/v1/routers/producer_settings.py
"""
Producer Settings API Router.

The sender identity (name and address) used on outbound quote requests.
"""

from typing import Optional

from fastapi import APIRouter, Depends

from prodbay.api.v1.responses import ok
from prodbay.api.v1.schemas import ApiResponse, ProducerSettingsRequest, ProducerSettingsResponse
from prodbay.core.services.producer_service import ProducerService
from prodbay.dependencies import get_producer_service

router = APIRouter(prefix="/producer-settings", tags=["settings"])


@router.get(
    "",
    response_model=ApiResponse[Optional[ProducerSettingsResponse]],
    summary="Get producer settings",
    description="The saved sender identity, or null when none has been saved.",
)
async def get_producer_settings(producer: ProducerService = Depends(get_producer_service)):
    row = await producer.load_producer_settings()
    return ok(ProducerSettingsResponse.model_validate(row) if row else None)


@router.put("", response_model=ApiResponse[ProducerSettingsResponse], summary="Save producer settings")
async def save_producer_settings(
    request: ProducerSettingsRequest,
    producer: ProducerService = Depends(get_producer_service),
):
    row = await producer.save_producer_settings(request.from_name, request.from_email)
    return ok(ProducerSettingsResponse.model_validate(row), message="Settings saved")
