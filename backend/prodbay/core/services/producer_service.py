"""
Producer Service for project, asset, and quote management.

Every operation opens one session on the injected DatabaseService, so
composite reads and cascading deletes run inside a single transaction.

Usage:
    from prodbay.core.services.producer_service import ProducerService

    producer = ProducerService(database)

    project = await producer.create_project(
        project_name="Summer Launch",
        client_name="Acme",
        brief_description="Need banners and catering",
    )
    details = await producer.load_project_details(project.id)
    await producer.delete_project(project.id)  # assets, quotes and messages go too
"""

import logging
from typing import Any, Dict, Iterable, List, Optional
from uuid import UUID

from sqlalchemy import select
from sqlalchemy.orm import selectinload

from prodbay.core.services.lookups import apply_updates, coerce_uuid, get_or_404
from prodbay.core.services.tracking_service import delete_tracking_rows, record_quote_status
from prodbay.core.shared.database_service import DatabaseService
from prodbay.core.statuses import AssetStatus, ProjectStatus, QuoteStatus
from prodbay.database.models import Asset, Project, ProducerSettings, Quote, Supplier

logger = logging.getLogger("prodbay.producer_service")

PROJECT_FIELDS = (
    "project_name",
    "client_name",
    "brief_description",
    "physical_parameters",
    "financial_parameters",
    "timeline_deadline",
    "event_date",
    "project_status",
)
ASSET_FIELDS = (
    "asset_name",
    "specifications",
    "timeline",
    "status",
    "assigned_supplier_id",
    "source_text",
    "quantity",
    "tags",
)


class ProducerService:
    """
    Service for the producer workspace.

    Handles project and asset CRUD, cascading deletes, quote listing and
    rejection, and the producer's email sender settings.
    """

    def __init__(self, database: DatabaseService):
        self._db = database

    # =========================================================================
    # PROJECTS
    # =========================================================================

    async def load_projects(self, client_name: Optional[str] = None) -> List[Project]:
        """All projects, newest first; optionally only one client's."""
        async with self._db.get_session() as session:
            stmt = select(Project).order_by(Project.created_at.desc())
            if client_name:
                stmt = stmt.where(Project.client_name == client_name)
            result = await session.execute(stmt)
            return list(result.scalars().all())

    async def load_project(self, project_id: Any) -> Project:
        async with self._db.get_session() as session:
            return await get_or_404(session, Project, project_id)

    async def create_project(
        self,
        project_name: str,
        client_name: str,
        brief_description: str = "",
        physical_parameters: Optional[str] = None,
        financial_parameters: Optional[float] = None,
        timeline_deadline=None,
        event_date=None,
    ) -> Project:
        """Create a project in status New; the budget defaults to 0."""
        project = Project(
            project_name=project_name,
            client_name=client_name,
            brief_description=brief_description or "",
            physical_parameters=physical_parameters,
            financial_parameters=financial_parameters if financial_parameters is not None else 0.0,
            timeline_deadline=timeline_deadline,
            event_date=event_date,
            project_status=ProjectStatus.NEW.value,
        )
        async with self._db.get_session() as session:
            session.add(project)
            await session.flush()
            await session.refresh(project)

        logger.info(f"Created project {project.id} ({project.project_name}) for client {client_name}")
        return project

    async def update_project(self, project_id: Any, updates: Dict[str, Any]) -> Project:
        async with self._db.get_session() as session:
            project = await get_or_404(session, Project, project_id)
            apply_updates(project, updates, PROJECT_FIELDS)
            await session.flush()
            await session.refresh(project)
        logger.info(f"Updated project {project.id}: {sorted(updates)}")
        return project

    async def delete_project(self, project_id: Any) -> Dict[str, int]:
        """
        Delete a project with its assets, their quotes and chat messages.

        Runs in one transaction; a failure leaves every row in place.

        Returns:
            Counts of deleted rows: {"assets": n, "quotes": m, "messages": k}
        """
        async with self._db.get_session() as session:
            project = await get_or_404(
                session,
                Project,
                project_id,
                options=[selectinload(Project.assets).selectinload(Asset.quotes).selectinload(Quote.messages)],
            )
            counts = {
                "assets": len(project.assets),
                "quotes": sum(len(asset.quotes) for asset in project.assets),
                "messages": sum(len(q.messages) for asset in project.assets for q in asset.quotes),
            }
            await delete_tracking_rows(
                session,
                project_id=project.id,
                asset_ids=[asset.id for asset in project.assets],
                quote_ids=[q.id for asset in project.assets for q in asset.quotes],
            )
            await session.delete(project)

        logger.info(
            f"Deleted project {project_id} with {counts['assets']} assets, "
            f"{counts['quotes']} quotes, {counts['messages']} messages"
        )
        return counts

    # =========================================================================
    # ASSETS
    # =========================================================================

    async def load_project_assets(self, project_id: Any) -> List[Asset]:
        """Assets of a project with their assigned supplier, oldest first."""
        async with self._db.get_session() as session:
            await get_or_404(session, Project, project_id)
            result = await session.execute(
                select(Asset)
                .where(Asset.project_id == coerce_uuid(project_id, "project ID"))
                .options(selectinload(Asset.assigned_supplier))
                .order_by(Asset.created_at)
            )
            return list(result.scalars().all())

    async def load_asset(self, asset_id: Any) -> Asset:
        async with self._db.get_session() as session:
            return await get_or_404(session, Asset, asset_id)

    async def create_asset(
        self,
        project_id: Any,
        asset_name: str,
        specifications: Optional[str] = None,
        timeline: Optional[str] = None,
        status: str = AssetStatus.PENDING.value,
        assigned_supplier_id: Optional[UUID] = None,
        source_text: Optional[str] = None,
        quantity: Optional[int] = None,
        tags: Optional[Iterable[str]] = None,
    ) -> Asset:
        async with self._db.get_session() as session:
            project = await get_or_404(session, Project, project_id)
            if assigned_supplier_id is not None:
                await get_or_404(session, Supplier, assigned_supplier_id)

            asset = Asset(
                project_id=project.id,
                asset_name=asset_name,
                specifications=specifications,
                timeline=timeline,
                status=getattr(status, "value", status),
                assigned_supplier_id=assigned_supplier_id,
                source_text=source_text,
                quantity=quantity,
                tags=list(tags or []),
            )
            session.add(asset)
            await session.flush()
            await session.refresh(asset)

        logger.info(f"Created asset {asset.id} ({asset.asset_name}) for project {asset.project_id}")
        return asset

    async def update_asset(self, asset_id: Any, updates: Dict[str, Any]) -> Asset:
        async with self._db.get_session() as session:
            asset = await get_or_404(session, Asset, asset_id)
            if updates.get("assigned_supplier_id") is not None:
                await get_or_404(session, Supplier, updates["assigned_supplier_id"])
            apply_updates(asset, updates, ASSET_FIELDS)
            await session.flush()
            await session.refresh(asset)
        logger.info(f"Updated asset {asset.id}: {sorted(updates)}")
        return asset

    async def delete_asset(self, asset_id: Any) -> Dict[str, int]:
        """Delete an asset with its quotes and their messages in one transaction."""
        async with self._db.get_session() as session:
            asset = await get_or_404(
                session,
                Asset,
                asset_id,
                options=[selectinload(Asset.quotes).selectinload(Quote.messages)],
            )
            counts = {
                "quotes": len(asset.quotes),
                "messages": sum(len(q.messages) for q in asset.quotes),
            }
            await delete_tracking_rows(session, asset_ids=[asset.id], quote_ids=[q.id for q in asset.quotes])
            await session.delete(asset)

        logger.info(f"Deleted asset {asset_id} with {counts['quotes']} quotes")
        return counts

    # =========================================================================
    # QUOTES
    # =========================================================================

    async def load_quotes_for_assets(self, asset_ids: Iterable[Any]) -> List[Quote]:
        """Quotes for the given assets with supplier and asset loaded, newest first."""
        ids = [coerce_uuid(asset_id, "asset ID") for asset_id in asset_ids]
        if not ids:
            return []
        async with self._db.get_session() as session:
            result = await session.execute(
                select(Quote)
                .where(Quote.asset_id.in_(ids))
                .options(selectinload(Quote.supplier), selectinload(Quote.asset))
                .order_by(Quote.created_at.desc())
            )
            return list(result.scalars().all())

    async def reject_quote(self, quote_id: Any) -> Quote:
        async with self._db.get_session() as session:
            quote = await get_or_404(session, Quote, quote_id)
            quote.status = QuoteStatus.REJECTED.value
            record_quote_status(session, quote.id, QuoteStatus.REJECTED)
            await session.flush()
            await session.refresh(quote)
        logger.info(f"Rejected quote {quote.id}")
        return quote

    # =========================================================================
    # SUPPLIERS & SETTINGS
    # =========================================================================

    async def load_suppliers(self) -> List[Supplier]:
        async with self._db.get_session() as session:
            result = await session.execute(select(Supplier).order_by(Supplier.supplier_name))
            return list(result.scalars().all())

    async def load_producer_settings(self) -> Optional[ProducerSettings]:
        """The producer's sender identity, or None when never saved."""
        async with self._db.get_session() as session:
            result = await session.execute(
                select(ProducerSettings).order_by(ProducerSettings.updated_at.desc()).limit(1)
            )
            return result.scalar_one_or_none()

    async def save_producer_settings(self, from_name: str, from_email: str) -> ProducerSettings:
        async with self._db.get_session() as session:
            result = await session.execute(
                select(ProducerSettings).order_by(ProducerSettings.updated_at.desc()).limit(1)
            )
            row = result.scalar_one_or_none()
            if row is None:
                row = ProducerSettings(from_name=from_name, from_email=from_email)
                session.add(row)
            else:
                row.from_name = from_name
                row.from_email = from_email
            await session.flush()
            await session.refresh(row)
        logger.info(f"Saved producer settings: {from_name} <{from_email}>")
        return row

    # =========================================================================
    # COMPOSITE READS
    # =========================================================================

    async def load_project_details(self, project_id: Any) -> Dict[str, Any]:
        """
        Project, its assets (with supplier) and every quote on those assets.

        Both queries share one session so the pair is read consistently.
        """
        async with self._db.get_session() as session:
            project = await get_or_404(session, Project, project_id)
            assets_result = await session.execute(
                select(Asset)
                .where(Asset.project_id == project.id)
                .options(selectinload(Asset.assigned_supplier))
                .order_by(Asset.created_at)
            )
            assets = list(assets_result.scalars().all())

            quotes: List[Quote] = []
            if assets:
                quotes_result = await session.execute(
                    select(Quote)
                    .where(Quote.asset_id.in_([asset.id for asset in assets]))
                    .options(selectinload(Quote.supplier), selectinload(Quote.asset))
                    .order_by(Quote.created_at.desc())
                )
                quotes = list(quotes_result.scalars().all())

        return {"project": project, "assets": assets, "quotes": quotes}

    @staticmethod
    def get_available_tags(suppliers: Iterable[Supplier]) -> List[str]:
        """Sorted, de-duplicated service categories across suppliers."""
        tags = {
            category.strip()
            for supplier in suppliers
            for category in (supplier.service_categories or [])
            if category and category.strip()
        }
        return sorted(tags)

