# backend/prodbay/api/v1/routers/projects.py
"""
Projects API Router.

Project CRUD with cascade delete, project details and summary, status
refresh, brief highlight segments, and the project's assets.
"""

import logging
from typing import List, Optional
from uuid import UUID

from fastapi import APIRouter, Depends, Query

from prodbay.api.v1.responses import asset_with_supplier, highlight_segment, ok, quote_with_supplier
from prodbay.api.v1.schemas import (
    ApiResponse,
    AssetCreateRequest,
    AssetResponse,
    AssetWithSupplierResponse,
    BriefHighlightSegmentsResponse,
    MilestoneResponse,
    ProjectCreateRequest,
    ProjectDetailsResponse,
    ProjectResponse,
    ProjectSummaryResponse,
    ProjectUpdateRequest,
)
from prodbay.core.errors import ProdBayError
from prodbay.core.llm.brief_highlight_service import BriefHighlightService
from prodbay.core.services.automation_service import AutomationService
from prodbay.core.services.brief_processor import BriefProcessor, check_brief_length
from prodbay.core.services.dashboard_service import DashboardService
from prodbay.core.services.producer_service import ProducerService
from prodbay.dependencies import (
    get_automation_service,
    get_brief_highlight_service,
    get_brief_processor,
    get_dashboard_service,
    get_producer_service,
)

logger = logging.getLogger("prodbay.api.projects")

router = APIRouter(prefix="/projects", tags=["projects"])


@router.get(
    "",
    response_model=ApiResponse[List[ProjectResponse]],
    summary="List projects",
    description="List all projects, newest first, optionally for one client.",
)
async def list_projects(
    client_name: Optional[str] = Query(None, description="Only this client's projects"),
    producer: ProducerService = Depends(get_producer_service),
):
    projects = await producer.load_projects(client_name=client_name)
    return ok([ProjectResponse.model_validate(p) for p in projects])


@router.post(
    "",
    response_model=ApiResponse[ProjectResponse],
    status_code=201,
    summary="Create project",
    description="Create a project; optionally derive assets from its brief.",
)
async def create_project(
    request: ProjectCreateRequest,
    producer: ProducerService = Depends(get_producer_service),
    processor: BriefProcessor = Depends(get_brief_processor),
):
    """
    Create a project in status New.

    With ``generate_assets`` the brief is processed right away. Asset
    generation problems never fail the request: the project is kept and the
    response carries a ``warning``.
    """
    check_brief_length(request.brief_description)
    project = await producer.create_project(
        **request.model_dump(exclude={"generate_assets", "use_ai"}),
    )

    warning = None
    if request.generate_assets and request.brief_description.strip():
        try:
            result = await processor.process_brief(
                project.id,
                request.brief_description,
                use_ai=request.use_ai,
                project_context={
                    "financial_parameters": request.financial_parameters,
                    "timeline_deadline": str(request.timeline_deadline) if request.timeline_deadline else None,
                    "physical_parameters": request.physical_parameters,
                },
            )
            warning = result["warning"]
        except ProdBayError as e:
            logger.warning(f"Asset generation failed for project {project.id}: {e.message}")
            warning = f"Project created, but assets could not be generated: {e.message}"

    return ok(ProjectResponse.model_validate(project), message="Project created", warning=warning)


@router.get("/{project_id}", response_model=ApiResponse[ProjectResponse], summary="Get project")
async def get_project(project_id: UUID, producer: ProducerService = Depends(get_producer_service)):
    project = await producer.load_project(project_id)
    return ok(ProjectResponse.model_validate(project))


@router.put("/{project_id}", response_model=ApiResponse[ProjectResponse], summary="Update project")
async def update_project(
    project_id: UUID,
    request: ProjectUpdateRequest,
    producer: ProducerService = Depends(get_producer_service),
):
    updates = request.model_dump(exclude_unset=True)
    check_brief_length(updates.get("brief_description"))
    project = await producer.update_project(project_id, updates)
    return ok(ProjectResponse.model_validate(project), message="Project updated")


@router.delete(
    "/{project_id}",
    response_model=ApiResponse[dict],
    summary="Delete project",
    description="Delete a project with its assets, their quotes and chat messages.",
)
async def delete_project(project_id: UUID, producer: ProducerService = Depends(get_producer_service)):
    counts = await producer.delete_project(project_id)
    return ok({"deleted": counts}, message="Project deleted")


@router.get(
    "/{project_id}/details",
    response_model=ApiResponse[ProjectDetailsResponse],
    summary="Project details",
    description="Project with its assets (and assigned suppliers) and all their quotes.",
)
async def get_project_details(project_id: UUID, producer: ProducerService = Depends(get_producer_service)):
    details = await producer.load_project_details(project_id)
    return ok(
        ProjectDetailsResponse(
            project=ProjectResponse.model_validate(details["project"]),
            assets=[asset_with_supplier(a) for a in details["assets"]],
            quotes=[quote_with_supplier(q) for q in details["quotes"]],
        )
    )


@router.get("/{project_id}/summary", response_model=ApiResponse[ProjectSummaryResponse], summary="Project summary")
async def get_project_summary(project_id: UUID, dashboards: DashboardService = Depends(get_dashboard_service)):
    summary = await dashboards.get_project_summary(project_id)
    return ok(
        ProjectSummaryResponse(
            project=ProjectResponse.model_validate(summary["project"]),
            stats=summary["stats"],
            budget=summary["budget"],
            days_remaining=summary["days_remaining"],
            status_color=summary["status_color"],
            milestones=[MilestoneResponse.model_validate(m) for m in summary["milestones"]],
            actions=summary["actions"],
        )
    )


@router.post(
    "/{project_id}/refresh-status",
    response_model=ApiResponse[ProjectResponse],
    summary="Refresh project status",
    description="Recompute the project status from its asset statuses.",
)
async def refresh_project_status(
    project_id: UUID,
    automation: AutomationService = Depends(get_automation_service),
):
    project = await automation.update_project_status(project_id)
    return ok(ProjectResponse.model_validate(project))


@router.get(
    "/{project_id}/brief-highlights",
    response_model=ApiResponse[BriefHighlightSegmentsResponse],
    summary="Brief highlight segments",
    description="Brief and physical parameters split into segments, highlighting each asset's source text.",
)
async def get_brief_highlights(
    project_id: UUID,
    highlights: BriefHighlightService = Depends(get_brief_highlight_service),
):
    result = await highlights.get_brief_segments(project_id)
    return ok(
        BriefHighlightSegmentsResponse(
            project_id=result["project_id"],
            brief_segments=[highlight_segment(s) for s in result["brief_segments"]],
            physical_parameter_segments=[highlight_segment(s) for s in result["physical_parameter_segments"]],
            unmatched_asset_ids=result["unmatched_asset_ids"],
        )
    )


# =========================================================================
# PROJECT ASSETS
# =========================================================================


@router.get("/{project_id}/assets", response_model=ApiResponse[List[AssetWithSupplierResponse]], summary="List assets")
async def list_project_assets(project_id: UUID, producer: ProducerService = Depends(get_producer_service)):
    assets = await producer.load_project_assets(project_id)
    return ok([asset_with_supplier(a) for a in assets])


@router.post(
    "/{project_id}/assets",
    response_model=ApiResponse[AssetResponse],
    status_code=201,
    summary="Create asset",
)
async def create_project_asset(
    project_id: UUID,
    request: AssetCreateRequest,
    producer: ProducerService = Depends(get_producer_service),
):
    asset = await producer.create_asset(project_id, **request.model_dump())
    return ok(AssetResponse.model_validate(asset), message="Asset created")
