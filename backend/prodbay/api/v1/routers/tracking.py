# backend/prodbay/api/v1/routers/tracking.py
"""
Project Tracking API Router.

Milestones on the project timeline, action items waiting on the producer
or suppliers, and the status history of a quote.
"""

from typing import List, Optional
from uuid import UUID

from fastapi import APIRouter, Depends, Query

from prodbay.api.v1.responses import ok
from prodbay.api.v1.schemas import (
    ActionItemCreateRequest,
    ActionItemResponse,
    ApiResponse,
    MilestoneCreateRequest,
    MilestoneResponse,
    MilestoneUpdateRequest,
    QuoteHistoryResponse,
    QuoteResponse,
    QuoteStatusHistoryResponse,
)
from prodbay.core.services.tracking_service import ProjectTrackingService
from prodbay.core.statuses import ActionAssignee, ActionStatus
from prodbay.dependencies import get_tracking_service

router = APIRouter(tags=["tracking"])


# =========================================================================
# MILESTONES
# =========================================================================

@router.get(
    "/projects/{project_id}/milestones",
    response_model=ApiResponse[List[MilestoneResponse]],
    summary="List milestones",
    description="Milestones of a project, earliest date first.",
)
async def list_milestones(project_id: UUID, tracking: ProjectTrackingService = Depends(get_tracking_service)):
    milestones = await tracking.get_project_milestones(project_id)
    return ok([MilestoneResponse.model_validate(m) for m in milestones])


@router.post(
    "/projects/{project_id}/milestones",
    response_model=ApiResponse[MilestoneResponse],
    status_code=201,
    summary="Create milestone",
)
async def create_milestone(
    project_id: UUID,
    request: MilestoneCreateRequest,
    tracking: ProjectTrackingService = Depends(get_tracking_service),
):
    milestone = await tracking.create_milestone(project_id, **request.model_dump())
    return ok(MilestoneResponse.model_validate(milestone), message="Milestone created")


@router.put("/milestones/{milestone_id}", response_model=ApiResponse[MilestoneResponse], summary="Update milestone")
async def update_milestone(
    milestone_id: UUID,
    request: MilestoneUpdateRequest,
    tracking: ProjectTrackingService = Depends(get_tracking_service),
):
    milestone = await tracking.update_milestone(milestone_id, request.model_dump(exclude_unset=True))
    return ok(MilestoneResponse.model_validate(milestone), message="Milestone updated")


@router.delete("/milestones/{milestone_id}", response_model=ApiResponse[dict], summary="Delete milestone")
async def delete_milestone(milestone_id: UUID, tracking: ProjectTrackingService = Depends(get_tracking_service)):
    await tracking.delete_milestone(milestone_id)
    return ok({"id": str(milestone_id)}, message="Milestone deleted")


# =========================================================================
# ACTION ITEMS
# =========================================================================

@router.get(
    "/projects/{project_id}/actions",
    response_model=ApiResponse[List[ActionItemResponse]],
    summary="List action items",
    description="Action items of a project, newest first.",
)
async def list_actions(
    project_id: UUID,
    status: Optional[ActionStatus] = Query(None, description="Only items in this status"),
    assigned_to: Optional[ActionAssignee] = Query(None, description="Only items for this party"),
    tracking: ProjectTrackingService = Depends(get_tracking_service),
):
    items = await tracking.get_action_items(project_id, status=status, assigned_to=assigned_to)
    return ok([ActionItemResponse.model_validate(item) for item in items])


@router.post(
    "/projects/{project_id}/actions",
    response_model=ApiResponse[ActionItemResponse],
    status_code=201,
    summary="Create action item",
)
async def create_action(
    project_id: UUID,
    request: ActionItemCreateRequest,
    tracking: ProjectTrackingService = Depends(get_tracking_service),
):
    item = await tracking.create_action_item(project_id, **request.model_dump())
    return ok(ActionItemResponse.model_validate(item), message="Action item created")


@router.post("/actions/{action_id}/complete", response_model=ApiResponse[ActionItemResponse], summary="Complete action")
async def complete_action(action_id: UUID, tracking: ProjectTrackingService = Depends(get_tracking_service)):
    item = await tracking.complete_action_item(action_id)
    return ok(ActionItemResponse.model_validate(item), message="Action item completed")


# =========================================================================
# QUOTE HISTORY
# =========================================================================

@router.get(
    "/quotes/{quote_id}/history",
    response_model=ApiResponse[QuoteHistoryResponse],
    summary="Quote status history",
    description="Every status the quote has been in, oldest first.",
)
async def quote_history(quote_id: UUID, tracking: ProjectTrackingService = Depends(get_tracking_service)):
    result = await tracking.get_quote_history(quote_id)
    return ok(
        QuoteHistoryResponse(
            quote=QuoteResponse.model_validate(result["quote"]),
            history=[QuoteStatusHistoryResponse.model_validate(h) for h in result["history"]],
        )
    )
