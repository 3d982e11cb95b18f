"""
Supplier Service for the vendor directory and supplier matching.

Provides CRUD over suppliers, category/term search, relevance matching
between assets and supplier service categories, and the per-supplier list
of assets they have been asked to quote.

Usage:
    from prodbay.core.services.supplier_service import SupplierService

    suppliers = SupplierService(database)

    relevant = await suppliers.find_relevant_suppliers("Printing", required_tags=["Printing"])
    suggestions = await suppliers.get_suggested_suppliers(asset_id)
"""

import logging
from typing import Any, Dict, Iterable, List, Optional, Sequence

from sqlalchemy import func, or_, select
from sqlalchemy.orm import selectinload

from prodbay.core.services.lookups import apply_updates, coerce_uuid, get_or_404
from prodbay.core.services.tracking_service import delete_tracking_rows
from prodbay.core.shared.database_service import DatabaseService
from prodbay.core.statuses import QUOTABLE_STATUSES
from prodbay.database.models import Asset, Quote, Supplier

logger = logging.getLogger("prodbay.supplier_service")

SUPPLIER_FIELDS = ("supplier_name", "contact_email", "service_categories", "contact_persons")


def get_primary_contact(supplier: Supplier) -> Optional[Dict[str, Any]]:
    """The contact flagged primary, else the first contact, else None."""
    contacts = supplier.contact_persons or []
    if not contacts:
        return None
    for person in contacts:
        if person.get("is_primary"):
            return person
    return contacts[0]


def is_relevant_supplier(
    supplier: Supplier,
    asset_name: str,
    required_tags: Sequence[str] = (),
) -> bool:
    """
    Whether a supplier can serve an asset.

    A category matches when either string contains the other
    (case-insensitive). With required tags, the supplier must also carry a
    category equal to one of them.
    """
    name = (asset_name or "").strip().lower()
    categories = [c.strip().lower() for c in (supplier.service_categories or []) if c and c.strip()]

    if not any(c in name or name in c for c in categories):
        return False

    tags = {t.strip().lower() for t in required_tags if t and t.strip()}
    if tags and not any(c in tags for c in categories):
        return False
    return True


class SupplierService:
    """
    Service for managing Supplier records.
    """

    def __init__(self, database: DatabaseService):
        self._db = database

    # =========================================================================
    # CRUD OPERATIONS
    # =========================================================================

    async def get_all_suppliers(self) -> List[Supplier]:
        async with self._db.get_session() as session:
            result = await session.execute(select(Supplier).order_by(Supplier.supplier_name))
            return list(result.scalars().all())

    async def get_supplier_by_id(self, supplier_id: Any) -> Optional[Supplier]:
        async with self._db.get_session() as session:
            result = await session.execute(
                select(Supplier).where(Supplier.id == coerce_uuid(supplier_id, "supplier ID"))
            )
            return result.scalar_one_or_none()

    async def get_supplier(self, supplier_id: Any) -> Supplier:
        async with self._db.get_session() as session:
            return await get_or_404(session, Supplier, supplier_id)

    async def create_supplier(
        self,
        supplier_name: str,
        contact_email: str,
        service_categories: Optional[Iterable[str]] = None,
        contact_persons: Optional[Iterable[Dict[str, Any]]] = None,
    ) -> Supplier:
        supplier = Supplier(
            supplier_name=supplier_name,
            contact_email=contact_email,
            service_categories=[c.strip() for c in (service_categories or []) if c and c.strip()],
            contact_persons=list(contact_persons or []),
        )
        async with self._db.get_session() as session:
            session.add(supplier)
            await session.flush()
            await session.refresh(supplier)

        logger.info(f"Created supplier {supplier.id} ({supplier.supplier_name})")
        return supplier

    async def update_supplier(self, supplier_id: Any, updates: Dict[str, Any]) -> Supplier:
        if "service_categories" in updates and updates["service_categories"] is not None:
            updates = {
                **updates,
                "service_categories": [c.strip() for c in updates["service_categories"] if c and c.strip()],
            }
        async with self._db.get_session() as session:
            supplier = await get_or_404(session, Supplier, supplier_id)
            apply_updates(supplier, updates, SUPPLIER_FIELDS)
            await session.flush()
            await session.refresh(supplier)
        logger.info(f"Updated supplier {supplier.id}: {sorted(updates)}")
        return supplier

    async def delete_supplier(self, supplier_id: Any) -> Dict[str, int]:
        """
        Delete a supplier, its quotes and their messages, and unassign it
        from any awarded assets, in one transaction.
        """
        async with self._db.get_session() as session:
            supplier = await get_or_404(
                session,
                Supplier,
                supplier_id,
                options=[
                    selectinload(Supplier.quotes).selectinload(Quote.messages),
                    selectinload(Supplier.assigned_assets),
                ],
            )
            counts = {"quotes": len(supplier.quotes), "unassigned_assets": len(supplier.assigned_assets)}
            for asset in supplier.assigned_assets:
                asset.assigned_supplier_id = None
            await delete_tracking_rows(session, quote_ids=[q.id for q in supplier.quotes])
            await session.delete(supplier)

        logger.info(
            f"Deleted supplier {supplier_id} ({counts['quotes']} quotes, "
            f"{counts['unassigned_assets']} assets unassigned)"
        )
        return counts

    # =========================================================================
    # SEARCH
    # =========================================================================

    async def get_suppliers_by_categories(self, categories: Iterable[str]) -> List[Supplier]:
        """Suppliers sharing at least one category (case-insensitive)."""
        wanted = {c.strip().lower() for c in categories if c and c.strip()}
        if not wanted:
            return []
        suppliers = await self.get_all_suppliers()
        return [
            s for s in suppliers
            if any(c.strip().lower() in wanted for c in (s.service_categories or []))
        ]

    async def search_suppliers(self, term: str) -> List[Supplier]:
        """Case-insensitive substring match on supplier name or contact email."""
        term = (term or "").strip().lower()
        async with self._db.get_session() as session:
            result = await session.execute(
                select(Supplier)
                .where(
                    or_(
                        func.lower(Supplier.supplier_name).contains(term, autoescape=True),
                        func.lower(Supplier.contact_email).contains(term, autoescape=True),
                    )
                )
                .order_by(Supplier.supplier_name)
            )
            return list(result.scalars().all())

    async def find_relevant_suppliers(
        self,
        asset_name: str,
        required_tags: Sequence[str] = (),
    ) -> List[Supplier]:
        suppliers = await self.get_all_suppliers()
        return [s for s in suppliers if is_relevant_supplier(s, asset_name, required_tags)]

    async def get_suggested_suppliers(self, asset_id: Any) -> Dict[str, Any]:
        """
        Relevant suppliers for an asset, each flagged ``already_contacted``
        when it already holds a quote for the asset.
        """
        async with self._db.get_session() as session:
            asset = await get_or_404(session, Asset, asset_id)
            suppliers_result = await session.execute(select(Supplier).order_by(Supplier.supplier_name))
            suppliers = list(suppliers_result.scalars().all())
            contacted_result = await session.execute(
                select(Quote.supplier_id).where(Quote.asset_id == asset.id)
            )
            contacted = set(contacted_result.scalars().all())

        relevant = [s for s in suppliers if is_relevant_supplier(s, asset.asset_name, asset.tags or [])]
        return {
            "asset": asset,
            "suppliers": [
                {"supplier": s, "already_contacted": s.id in contacted}
                for s in relevant
            ],
        }

    async def get_quotable_assets(self, supplier_id: Any) -> Dict[str, Any]:
        """
        Assets this supplier has an open quote request for (Pending or
        Submitted), with project and the quote id.
        """
        async with self._db.get_session() as session:
            supplier = await get_or_404(session, Supplier, supplier_id)
            result = await session.execute(
                select(Quote)
                .where(Quote.supplier_id == supplier.id, Quote.status.in_(QUOTABLE_STATUSES))
                .options(selectinload(Quote.asset).selectinload(Asset.project))
                .order_by(Quote.created_at.desc())
            )
            quotes = list(result.scalars().all())

        return {
            "supplier": supplier,
            "items": [{"quote": q, "asset": q.asset, "project": q.asset.project} for q in quotes],
        }
