"""
Dashboard Service for producer and client overviews.

Loads projects with their assets and quotes in one session and derives
progress, spend and budget figures with the pure helpers in
``prodbay.core.briefs.calculations``.
"""

import logging
from collections import defaultdict
from typing import Any, Dict, List, Optional

from sqlalchemy import select

from prodbay.core.briefs.calculations import (
    calculate_budget,
    calculate_project_stats,
    days_until,
)
from prodbay.core.services.lookups import get_or_404
from prodbay.core.shared.database_service import DatabaseService
from prodbay.core.statuses import ActionAssignee, ActionStatus, get_status_color, get_status_priority
from prodbay.database.models import ActionItem, Asset, Project, ProjectMilestone, Quote

logger = logging.getLogger("prodbay.dashboard_service")


class DashboardService:
    def __init__(self, database: DatabaseService):
        self._db = database

    async def _load_rollup(self, session, projects: List[Project]) -> Dict[Any, Dict[str, list]]:
        """Assets and quotes per project id for the given projects."""
        rollup: Dict[Any, Dict[str, list]] = defaultdict(lambda: {"assets": [], "quotes": []})
        if not projects:
            return rollup

        assets_result = await session.execute(
            select(Asset).where(Asset.project_id.in_([p.id for p in projects]))
        )
        assets = list(assets_result.scalars().all())
        project_of_asset = {a.id: a.project_id for a in assets}
        for asset in assets:
            rollup[asset.project_id]["assets"].append(asset)

        if assets:
            quotes_result = await session.execute(
                select(Quote).where(Quote.asset_id.in_(list(project_of_asset)))
            )
            for quote in quotes_result.scalars().all():
                rollup[project_of_asset[quote.asset_id]]["quotes"].append(quote)
        return rollup

    async def get_project_summary(self, project_id: Any) -> Dict[str, Any]:
        """Stats, budget position, days to deadline, milestones and pending actions for one project."""
        async with self._db.get_session() as session:
            project = await get_or_404(session, Project, project_id)
            rollup = await self._load_rollup(session, [project])
            milestones_result = await session.execute(
                select(ProjectMilestone)
                .where(ProjectMilestone.project_id == project.id)
                .order_by(ProjectMilestone.milestone_date, ProjectMilestone.created_at)
            )
            milestones = list(milestones_result.scalars().all())
            assignees_result = await session.execute(
                select(ActionItem.assigned_to).where(
                    ActionItem.project_id == project.id,
                    ActionItem.status == ActionStatus.PENDING.value,
                )
            )
            assignees = list(assignees_result.scalars().all())

        entry = rollup[project.id]
        stats = calculate_project_stats(entry["assets"], entry["quotes"])
        return {
            "project": project,
            "stats": stats,
            "budget": calculate_budget(project.financial_parameters, stats["total_cost"]),
            "days_remaining": days_until(project.timeline_deadline),
            "status_color": get_status_color(project.project_status),
            "milestones": milestones,
            "actions": {
                "producer_actions": assignees.count(ActionAssignee.PRODUCER.value),
                "supplier_actions": assignees.count(ActionAssignee.SUPPLIER.value),
            },
        }

    async def _dashboard(self, client_name: Optional[str] = None) -> Dict[str, Any]:
        async with self._db.get_session() as session:
            stmt = select(Project).order_by(Project.created_at.desc())
            if client_name is not None:
                stmt = stmt.where(Project.client_name == client_name)
            result = await session.execute(stmt)
            projects = list(result.scalars().all())
            rollup = await self._load_rollup(session, projects)

        rows = []
        for project in projects:
            entry = rollup[project.id]
            rows.append({
                "project": project,
                "stats": calculate_project_stats(entry["assets"], entry["quotes"]),
                "status_priority": get_status_priority(project.project_status),
                "status_color": get_status_color(project.project_status),
            })
        # stable sort keeps newest-first within a priority
        rows.sort(key=lambda row: row["status_priority"])

        return {
            "projects": rows,
            "total_projects": len(rows),
            "total_cost": float(sum(row["stats"]["total_cost"] for row in rows)),
        }

    async def get_client_dashboard(self, client_name: str) -> Dict[str, Any]:
        """The client's own projects with progress and accepted spend."""
        logger.debug(f"Loading client dashboard for {client_name}")
        return await self._dashboard(client_name=client_name)

    async def get_producer_dashboard(self) -> Dict[str, Any]:
        """Every project with stats, ordered by status priority."""
        return await self._dashboard()
