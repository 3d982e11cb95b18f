# backend/prodbay/api/v1/routers/ai.py
"""
Brief processing and AI API Router.

Rule-based or AI-assisted asset derivation, AI suggestion review and
application, brief field extraction, and AI health.
"""

import logging
from typing import Any, Dict, List

from fastapi import APIRouter, Depends

from prodbay.api.v1.responses import ok
from prodbay.api.v1.schemas import (
    AIAllocateRequest,
    AIAllocationResponse,
    AICreateAssetsRequest,
    ApiResponse,
    AssetResponse,
    BriefHighlights,
    ExtractHighlightsRequest,
    ProcessBriefRequest,
    ProcessBriefResponse,
)
from prodbay.core.llm.ai_allocation_service import AIAllocationService
from prodbay.core.llm.brief_highlight_service import BriefHighlightService
from prodbay.core.services.brief_processor import BriefProcessor, validate_brief
from prodbay.core.services.producer_service import ProducerService
from prodbay.dependencies import (
    get_ai_allocation_service,
    get_brief_highlight_service,
    get_brief_processor,
    get_producer_service,
)

logger = logging.getLogger("prodbay.api.ai")

router = APIRouter(tags=["ai"])


@router.post(
    "/process-brief",
    response_model=ApiResponse[ProcessBriefResponse],
    summary="Process brief",
    description="Derive assets from a brief by keyword matching, or by AI with keyword fallback.",
)
async def process_brief(
    request: ProcessBriefRequest,
    processor: BriefProcessor = Depends(get_brief_processor),
    producer: ProducerService = Depends(get_producer_service),
):
    await producer.load_project(request.project_id)
    result = await processor.process_brief(
        request.project_id,
        request.brief_description,
        use_ai=request.use_ai,
        project_context=request.project_context,
    )
    return ok(
        ProcessBriefResponse(
            project_id=request.project_id,
            identified_assets=result["identified_assets"],
            matched_keywords=result["matched_keywords"],
            created_assets=[AssetResponse.model_validate(a) for a in result["created_assets"]],
            processing_time_ms=result["processing_time_ms"],
            strategy=result["strategy"],
        ),
        message=f"Created {len(result['created_assets'])} assets",
        warning=result["warning"],
    )


@router.post(
    "/ai-allocate-assets",
    response_model=ApiResponse[AIAllocationResponse],
    summary="Suggest assets with AI",
    description="AI asset suggestions for review; nothing is stored. Falls back to keyword suggestions.",
)
async def ai_allocate_assets(
    request: AIAllocateRequest,
    allocator: AIAllocationService = Depends(get_ai_allocation_service),
    producer: ProducerService = Depends(get_producer_service),
):
    validate_brief(request.brief_description)
    context: Dict[str, Any] = dict(request.project_context or {})
    if request.project_id and not context:
        project = await producer.load_project(request.project_id)
        context = {
            "financial_parameters": project.financial_parameters,
            "timeline_deadline": str(project.timeline_deadline) if project.timeline_deadline else None,
            "physical_parameters": project.physical_parameters,
        }

    result = await allocator.analyze_brief_for_assets(request.brief_description, context)
    warning = None if result["success"] else f"AI analysis failed: {result['error']}"
    return ok(AIAllocationResponse(**result), warning=warning)


@router.post(
    "/ai-create-assets",
    response_model=ApiResponse[List[AssetResponse]],
    status_code=201,
    summary="Apply AI suggestions",
    description="Create the reviewed suggestions as Pending assets. Allowed once per project.",
)
async def ai_create_assets(
    request: AICreateAssetsRequest,
    allocator: AIAllocationService = Depends(get_ai_allocation_service),
):
    assets = await allocator.create_assets_from_suggestions(
        request.project_id,
        [a.model_dump() for a in request.assets],
    )
    return ok(
        [AssetResponse.model_validate(a) for a in assets],
        message=f"Created {len(assets)} assets",
    )


@router.get("/ai-health", response_model=ApiResponse[dict], summary="AI health")
async def ai_health(allocator: AIAllocationService = Depends(get_ai_allocation_service)):
    return ok(await allocator.check_health())


@router.post(
    "/ai/extract-highlights",
    response_model=ApiResponse[BriefHighlights],
    summary="Extract brief highlights",
    description="Extract project name, client, budget, deadline and physical parameters from a brief.",
)
async def extract_highlights(
    request: ExtractHighlightsRequest,
    highlights: BriefHighlightService = Depends(get_brief_highlight_service),
):
    validate_brief(request.brief_description)
    result = await highlights.extract_highlights(request.brief_description)
    logger.debug(f"Highlights extracted in {result['processing_time_ms']}ms")
    return ok(BriefHighlights(**result["highlights"]))
