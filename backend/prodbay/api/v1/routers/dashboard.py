# backend/prodbay/api/v1/routers/dashboard.py
"""
Dashboard API Router.

Producer overview of every project and the client view of their own
projects, each with derived progress and accepted spend.
"""

from fastapi import APIRouter, Depends, Query

from prodbay.api.v1.responses import ok
from prodbay.api.v1.schemas import ApiResponse, DashboardProject, DashboardResponse, ProjectResponse
from prodbay.core.services.dashboard_service import DashboardService
from prodbay.dependencies import get_dashboard_service

router = APIRouter(prefix="/dashboard", tags=["dashboard"])


def _to_response(result: dict) -> DashboardResponse:
    return DashboardResponse(
        projects=[
            DashboardProject(
                project=ProjectResponse.model_validate(row["project"]),
                stats=row["stats"],
                status_priority=row["status_priority"],
                status_color=row["status_color"],
            )
            for row in result["projects"]
        ],
        total_projects=result["total_projects"],
        total_cost=result["total_cost"],
    )


@router.get(
    "/producer",
    response_model=ApiResponse[DashboardResponse],
    summary="Producer dashboard",
    description="All projects with stats, ordered by status priority.",
)
async def producer_dashboard(dashboards: DashboardService = Depends(get_dashboard_service)):
    return ok(_to_response(await dashboards.get_producer_dashboard()))


@router.get(
    "/client",
    response_model=ApiResponse[DashboardResponse],
    summary="Client dashboard",
)
async def client_dashboard(
    client_name: str = Query(..., min_length=1, description="Client whose projects to show"),
    dashboards: DashboardService = Depends(get_dashboard_service),
):
    return ok(_to_response(await dashboards.get_client_dashboard(client_name)))
