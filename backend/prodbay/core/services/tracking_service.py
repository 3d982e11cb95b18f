"""
Project Tracking Service: milestones, action items and quote status history.

Milestones are dated checkpoints shown on the project timeline next to the
final deadline. Action items count the follow-ups waiting on the producer
and on suppliers. Every quote status change (request, bid, acceptance,
rejection) appends a ``QuoteStatusHistory`` row through
``record_quote_status``, inside the session that made the change.
"""

import logging
from datetime import date, datetime
from enum import Enum
from typing import Any, Dict, Iterable, List, Optional, Type

from sqlalchemy import delete, or_, select
from sqlalchemy.ext.asyncio import AsyncSession

from prodbay.core.errors import InvalidRequestError
from prodbay.core.services.lookups import apply_updates, coerce_uuid, get_or_404
from prodbay.core.shared.database_service import DatabaseService
from prodbay.core.statuses import ActionAssignee, ActionStatus, ActionType, MilestoneStatus
from prodbay.database.models import (
    ActionItem,
    Asset,
    Project,
    ProjectMilestone,
    Quote,
    QuoteStatusHistory,
)

logger = logging.getLogger("prodbay.tracking_service")

MILESTONE_FIELDS = ("milestone_name", "milestone_date", "status", "description")


def _enum_value(enum_cls: Type[Enum], value: Any, label: str) -> str:
    try:
        return enum_cls(getattr(value, "value", value)).value
    except ValueError:
        allowed = ", ".join(member.value for member in enum_cls)
        raise InvalidRequestError(f"Invalid {label} '{value}'. Expected one of: {allowed}")


def record_quote_status(
    session: AsyncSession,
    quote_id: Any,
    status: str,
    notes: Optional[str] = None,
) -> QuoteStatusHistory:
    """Append a status history row in the caller's session."""
    entry = QuoteStatusHistory(quote_id=quote_id, status=getattr(status, "value", status), notes=notes)
    session.add(entry)
    return entry


async def delete_tracking_rows(
    session: AsyncSession,
    project_id: Any = None,
    asset_ids: Iterable[Any] = (),
    quote_ids: Iterable[Any] = (),
) -> None:
    """
    Remove milestones, action items and status history that hang off rows
    about to be deleted, in the caller's transaction.
    """
    asset_ids = list(asset_ids)
    quote_ids = list(quote_ids)

    if quote_ids:
        await session.execute(delete(QuoteStatusHistory).where(QuoteStatusHistory.quote_id.in_(quote_ids)))

    conditions = []
    if project_id is not None:
        conditions.append(ActionItem.project_id == project_id)
        await session.execute(delete(ProjectMilestone).where(ProjectMilestone.project_id == project_id))
    if asset_ids:
        conditions.append(ActionItem.asset_id.in_(asset_ids))
    if quote_ids:
        conditions.append(ActionItem.quote_id.in_(quote_ids))
    if conditions:
        await session.execute(delete(ActionItem).where(or_(*conditions)))


class ProjectTrackingService:
    """
    Service for project milestones, action items and quote history.
    """

    def __init__(self, database: DatabaseService):
        self._db = database

    # =========================================================================
    # MILESTONES
    # =========================================================================

    async def get_project_milestones(self, project_id: Any) -> List[ProjectMilestone]:
        """Milestones of a project, earliest date first."""
        async with self._db.get_session() as session:
            project = await get_or_404(session, Project, project_id)
            result = await session.execute(
                select(ProjectMilestone)
                .where(ProjectMilestone.project_id == project.id)
                .order_by(ProjectMilestone.milestone_date, ProjectMilestone.created_at)
            )
            return list(result.scalars().all())

    async def create_milestone(
        self,
        project_id: Any,
        milestone_name: str,
        milestone_date: date,
        description: Optional[str] = None,
    ) -> ProjectMilestone:
        name = (milestone_name or "").strip()
        if not name:
            raise InvalidRequestError("Milestone name is required")
        if milestone_date is None:
            raise InvalidRequestError("Milestone date is required")

        async with self._db.get_session() as session:
            project = await get_or_404(session, Project, project_id)
            milestone = ProjectMilestone(
                project_id=project.id,
                milestone_name=name,
                milestone_date=milestone_date,
                description=description or "",
                status=MilestoneStatus.PENDING.value,
            )
            session.add(milestone)
            await session.flush()
            await session.refresh(milestone)

        logger.info(f"Created milestone {milestone.id} ({name}) for project {milestone.project_id}")
        return milestone

    async def update_milestone(self, milestone_id: Any, updates: Dict[str, Any]) -> ProjectMilestone:
        if updates.get("status") is not None:
            updates = {**updates, "status": _enum_value(MilestoneStatus, updates["status"], "milestone status")}
        async with self._db.get_session() as session:
            milestone = await get_or_404(session, ProjectMilestone, milestone_id, label="Milestone")
            apply_updates(milestone, updates, MILESTONE_FIELDS)
            await session.flush()
            await session.refresh(milestone)
        logger.info(f"Updated milestone {milestone.id}: {sorted(updates)}")
        return milestone

    async def delete_milestone(self, milestone_id: Any) -> None:
        async with self._db.get_session() as session:
            milestone = await get_or_404(session, ProjectMilestone, milestone_id, label="Milestone")
            await session.delete(milestone)
        logger.info(f"Deleted milestone {milestone_id}")

    # =========================================================================
    # ACTION ITEMS
    # =========================================================================

    async def get_action_items(
        self,
        project_id: Any,
        status: Optional[str] = None,
        assigned_to: Optional[str] = None,
    ) -> List[ActionItem]:
        """Action items of a project, newest first, optionally filtered."""
        async with self._db.get_session() as session:
            project = await get_or_404(session, Project, project_id)
            stmt = (
                select(ActionItem)
                .where(ActionItem.project_id == project.id)
                .order_by(ActionItem.created_at.desc())
            )
            if status:
                stmt = stmt.where(ActionItem.status == _enum_value(ActionStatus, status, "action status"))
            if assigned_to:
                stmt = stmt.where(ActionItem.assigned_to == _enum_value(ActionAssignee, assigned_to, "assignee"))
            result = await session.execute(stmt)
            return list(result.scalars().all())

    async def create_action_item(
        self,
        project_id: Any,
        action_type: str,
        action_description: str,
        assigned_to: str,
        asset_id: Any = None,
        quote_id: Any = None,
        priority: int = 1,
        due_date: Optional[date] = None,
    ) -> ActionItem:
        """
        Create a pending action item.

        Raises:
            InvalidRequestError: unknown type/assignee, empty description,
                priority outside 1-5, or an asset/quote from another project
            NotFoundError: unknown project, asset or quote
        """
        action_type = _enum_value(ActionType, action_type, "action type")
        assigned_to = _enum_value(ActionAssignee, assigned_to, "assignee")
        description = (action_description or "").strip()
        if not description:
            raise InvalidRequestError("Action description is required")
        if not 1 <= int(priority) <= 5:
            raise InvalidRequestError("Priority must be between 1 and 5")

        async with self._db.get_session() as session:
            project = await get_or_404(session, Project, project_id)
            asset = None
            if asset_id is not None:
                asset = await get_or_404(session, Asset, asset_id)
                if asset.project_id != project.id:
                    raise InvalidRequestError("Asset does not belong to this project")
            if quote_id is not None:
                quote = await get_or_404(session, Quote, quote_id)
                quote_asset = await get_or_404(session, Asset, quote.asset_id)
                if quote_asset.project_id != project.id:
                    raise InvalidRequestError("Quote does not belong to this project")

            item = ActionItem(
                project_id=project.id,
                asset_id=coerce_uuid(asset_id, "asset ID") if asset_id is not None else None,
                quote_id=coerce_uuid(quote_id, "quote ID") if quote_id is not None else None,
                action_type=action_type,
                action_description=description,
                assigned_to=assigned_to,
                priority=int(priority),
                due_date=due_date,
                status=ActionStatus.PENDING.value,
            )
            session.add(item)
            await session.flush()
            await session.refresh(item)

        logger.info(f"Created {action_type} action {item.id} for {assigned_to} on project {item.project_id}")
        return item

    async def complete_action_item(self, action_id: Any) -> ActionItem:
        async with self._db.get_session() as session:
            item = await get_or_404(session, ActionItem, action_id, label="Action item")
            item.status = ActionStatus.COMPLETED.value
            item.completed_at = datetime.utcnow()
            await session.flush()
            await session.refresh(item)
        logger.info(f"Completed action {item.id}")
        return item

    async def get_action_counts(self, project_id: Any) -> Dict[str, int]:
        """Pending actions waiting on the producer and on suppliers."""
        async with self._db.get_session() as session:
            project = await get_or_404(session, Project, project_id)
            result = await session.execute(
                select(ActionItem.assigned_to).where(
                    ActionItem.project_id == project.id,
                    ActionItem.status == ActionStatus.PENDING.value,
                )
            )
            assignees = list(result.scalars().all())
        return {
            "producer_actions": assignees.count(ActionAssignee.PRODUCER.value),
            "supplier_actions": assignees.count(ActionAssignee.SUPPLIER.value),
        }

    # =========================================================================
    # QUOTE HISTORY
    # =========================================================================

    async def get_quote_history(self, quote_id: Any) -> Dict[str, Any]:
        """The quote and its status changes, oldest first."""
        async with self._db.get_session() as session:
            quote = await get_or_404(session, Quote, quote_id)
            result = await session.execute(
                select(QuoteStatusHistory)
                .where(QuoteStatusHistory.quote_id == quote.id)
                .order_by(QuoteStatusHistory.created_at)
            )
            history = list(result.scalars().all())
        return {"quote": quote, "history": history}
