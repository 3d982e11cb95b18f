"""
Automation Service for the rule-based project workflow.

Ties the keyword classifier, supplier matching, quote requests and quote
acceptance together, and derives a project's status from its assets.

Usage:
    from prodbay.core.services.automation_service import AutomationService

    automation = AutomationService(database, email_service)
    assets = await automation.create_assets_for_project(project.id, project.brief_description)
    await automation.send_quote_requests_for_asset(assets[0].id, required_tags=["Printing"])
    await automation.update_project_status(project.id)
"""

import logging
from typing import Any, Dict, List, Mapping, Optional, Sequence

from sqlalchemy import select

from prodbay.core.briefs.keyword_classifier import default_specifications, parse_assets_from_brief
from prodbay.core.notify.email_service import EmailService
from prodbay.core.services.lookups import get_or_404
from prodbay.core.services.quote_request_service import QuoteRequestService
from prodbay.core.services.quote_service import QuoteService
from prodbay.core.services.supplier_service import SupplierService
from prodbay.core.shared.database_service import DatabaseService
from prodbay.core.statuses import AssetStatus, ProjectStatus
from prodbay.database.models import Asset, Project

logger = logging.getLogger("prodbay.automation_service")


def derive_project_status(asset_statuses: Sequence[str]) -> Optional[str]:
    """
    Project status implied by its asset statuses, or None without assets.

    All Delivered -> Completed; any In Production or Approved -> In Progress;
    any Quoting -> Quoting; otherwise New.
    """
    if not asset_statuses:
        return None
    if all(s == AssetStatus.DELIVERED.value for s in asset_statuses):
        return ProjectStatus.COMPLETED.value
    if any(s in (AssetStatus.IN_PRODUCTION.value, AssetStatus.APPROVED.value) for s in asset_statuses):
        return ProjectStatus.IN_PROGRESS.value
    if any(s == AssetStatus.QUOTING.value for s in asset_statuses):
        return ProjectStatus.QUOTING.value
    return ProjectStatus.NEW.value


class AutomationService:
    def __init__(self, database: DatabaseService, email_service: EmailService):
        self._db = database
        self._suppliers = SupplierService(database)
        self._quote_requests = QuoteRequestService(database, email_service)
        self._quotes = QuoteService(database, email_service)

    @staticmethod
    def parse_assets_from_brief(brief: str) -> List[str]:
        return parse_assets_from_brief(brief)

    async def create_assets_for_project(self, project_id: Any, brief: str) -> List[Asset]:
        """One Pending asset per category the brief mentions."""
        names = parse_assets_from_brief(brief)
        async with self._db.get_session() as session:
            project = await get_or_404(session, Project, project_id)
            assets = [
                Asset(
                    project_id=project.id,
                    asset_name=name,
                    specifications=default_specifications(name),
                    status=AssetStatus.PENDING.value,
                    tags=[],
                )
                for name in names
            ]
            session.add_all(assets)
            await session.flush()
            for asset in assets:
                await session.refresh(asset)

        logger.info(f"Created {len(assets)} assets for project {project_id}: {names}")
        return assets

    async def send_quote_requests_for_asset(
        self,
        asset_id: Any,
        required_tags: Sequence[str] = (),
        sender: Optional[Mapping[str, str]] = None,
    ) -> Dict[str, Any]:
        """
        Request quotes from every supplier relevant to the asset.

        Suppliers already holding a quote for the asset are skipped.
        """
        async with self._db.get_session() as session:
            asset = await get_or_404(session, Asset, asset_id)

        suppliers = await self._suppliers.find_relevant_suppliers(asset.asset_name, required_tags)
        if not suppliers:
            logger.info(f"No relevant suppliers for asset {asset.id} ({asset.asset_name})")
            return {
                "total_suppliers": 0,
                "successful_requests": 0,
                "failed_requests": 0,
                "results": [],
                "errors": [],
            }

        return await self._quote_requests.send_quote_requests(
            asset.id,
            [s.id for s in suppliers],
            sender=sender,
        )

    async def accept_quote(self, quote_id: Any) -> Dict[str, Any]:
        return await self._quotes.accept_quote(quote_id)

    async def update_project_status(self, project_id: Any) -> Project:
        """Recompute the project status from its assets; unchanged when it has none."""
        async with self._db.get_session() as session:
            project = await get_or_404(session, Project, project_id)
            result = await session.execute(select(Asset.status).where(Asset.project_id == project.id))
            new_status = derive_project_status(list(result.scalars().all()))
            if new_status and new_status != project.project_status:
                logger.info(f"Project {project.id} status {project.project_status} -> {new_status}")
                project.project_status = new_status
                await session.flush()
                await session.refresh(project)
        return project
