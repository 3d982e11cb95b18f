"""
Quote Request Service for previewing and sending supplier quote requests.

A quote request creates one Pending quote per supplier for an asset. The
quote's access token is embedded in the emailed link, which is how the
supplier later submits a bid and chats through the portal.

Usage:
    from prodbay.core.services.quote_request_service import QuoteRequestService

    requests = QuoteRequestService(database, email_service)
    previews = await requests.generate_email_previews(asset_id, [supplier_id], sender)
    outcome = await requests.send_quote_requests(asset_id, [supplier_id], sender)
"""

import logging
from typing import Any, Dict, Iterable, List, Mapping, Optional

from sqlalchemy import select

from prodbay.config import settings
from prodbay.core.errors import NotFoundError
from prodbay.core.notify.email_service import EmailService
from prodbay.core.services.lookups import coerce_uuid, get_or_404
from prodbay.core.services.supplier_service import get_primary_contact
from prodbay.core.services.tracking_service import record_quote_status
from prodbay.core.shared.database_service import DatabaseService
from prodbay.core.statuses import AssetStatus, QuoteStatus
from prodbay.database.models import Asset, Quote, Supplier

logger = logging.getLogger("prodbay.quote_request_service")

QUOTE_REQUEST_TEMPLATE = "quote_request"


def quote_request_subject(asset_name: str) -> str:
    return f"Quote Request: {asset_name}"


class QuoteRequestService:
    """
    Service for producer-initiated quote requests.
    """

    def __init__(self, database: DatabaseService, email_service: EmailService):
        self._db = database
        self._email = email_service

    def render_request_body(
        self,
        asset: Asset,
        supplier: Supplier,
        sender: Optional[Mapping[str, str]] = None,
        quote_url: Optional[str] = None,
    ) -> str:
        """Default quote request email body for one supplier."""
        contact = get_primary_contact(supplier) or {}
        sender = sender or {}
        return self._email.render_text(
            QUOTE_REQUEST_TEMPLATE,
            {
                "contact_name": contact.get("name") or supplier.supplier_name,
                "asset_name": asset.asset_name,
                "specifications": asset.specifications,
                "timeline": asset.timeline,
                "quote_url": quote_url,
                "from_name": sender.get("name"),
                "from_email": sender.get("email"),
            },
        )

    async def _load_request_targets(self, session, asset_id: Any, supplier_ids: Iterable[Any]):
        asset = await get_or_404(session, Asset, asset_id)
        ids = [coerce_uuid(supplier_id, "supplier ID") for supplier_id in supplier_ids]
        result = await session.execute(select(Supplier).where(Supplier.id.in_(ids)))
        found = {s.id: s for s in result.scalars().all()}
        missing = [str(i) for i in ids if i not in found]
        if missing:
            raise NotFoundError(
                "One or more suppliers not found",
                details={"missing_supplier_ids": missing},
            )
        return asset, [found[i] for i in ids]

    # =========================================================================
    # PREVIEW
    # =========================================================================

    async def generate_email_previews(
        self,
        asset_id: Any,
        supplier_ids: Iterable[Any],
        sender: Optional[Mapping[str, str]] = None,
    ) -> Dict[str, Any]:
        """
        Render the email each supplier would receive, without creating quotes.

        Returns:
            {"asset": Asset, "suppliers": [{"supplier", "preview_email": {to, subject, body}}]}

        Raises:
            NotFoundError: asset or any supplier does not exist
        """
        async with self._db.get_session() as session:
            asset, suppliers = await self._load_request_targets(session, asset_id, supplier_ids)

        previews = []
        for supplier in suppliers:
            contact = get_primary_contact(supplier) or {}
            previews.append({
                "supplier": supplier,
                "preview_email": {
                    "to": contact.get("email") or supplier.contact_email,
                    "subject": quote_request_subject(asset.asset_name),
                    "body": self.render_request_body(asset, supplier, sender),
                },
            })
        return {"asset": asset, "suppliers": previews}

    # =========================================================================
    # SEND
    # =========================================================================

    async def send_quote_requests(
        self,
        asset_id: Any,
        supplier_ids: Iterable[Any],
        sender: Optional[Mapping[str, str]] = None,
        customized_emails: Iterable[Mapping[str, Any]] = (),
    ) -> Dict[str, Any]:
        """
        Create a Pending quote per supplier and email each a bid link.

        Suppliers that already hold a quote for the asset are reported in
        ``errors`` and skipped. Emails go out only when a sender identity is
        given; otherwise ``email_sent`` is False and the link can be shared
        by hand. The asset moves to Quoting once any quote was created.

        Returns:
            {"total_suppliers", "successful_requests", "failed_requests",
             "results": [...], "errors": [...]}
        """
        overrides = {
            coerce_uuid(c["supplier_id"], "supplier ID"): c
            for c in customized_emails
            if c.get("supplier_id")
        }

        created: List[Dict[str, Any]] = []
        errors: List[Dict[str, Any]] = []

        async with self._db.get_session() as session:
            asset, suppliers = await self._load_request_targets(session, asset_id, supplier_ids)
            existing_result = await session.execute(
                select(Quote.supplier_id).where(Quote.asset_id == asset.id)
            )
            already_contacted = set(existing_result.scalars().all())

            for supplier in suppliers:
                if supplier.id in already_contacted:
                    errors.append({
                        "supplier_id": supplier.id,
                        "supplier_name": supplier.supplier_name,
                        "error": "Quote request already sent to this supplier",
                    })
                    continue

                quote = Quote(
                    asset_id=asset.id,
                    supplier_id=supplier.id,
                    cost=0.0,
                    status=QuoteStatus.PENDING.value,
                )
                session.add(quote)
                await session.flush()
                record_quote_status(session, quote.id, QuoteStatus.PENDING, notes="Quote requested")

                link = settings.quote_url(quote.access_token)
                custom = overrides.get(supplier.id, {})
                body = custom.get("body") or self.render_request_body(asset, supplier, sender, link)
                if link not in body:
                    body = f"{body}\n\nPlease provide your quote by visiting: {link}"
                quote.request_email_body = body

                contact = get_primary_contact(supplier) or {}
                created.append({
                    "quote": quote,
                    "supplier": supplier,
                    "to": contact.get("email") or supplier.contact_email,
                    "subject": custom.get("subject") or quote_request_subject(asset.asset_name),
                    "body": body,
                })
                already_contacted.add(supplier.id)

            if created and asset.status == AssetStatus.PENDING.value:
                asset.status = AssetStatus.QUOTING.value

        results = []
        for item in created:
            email_sent = False
            if sender:
                email_sent = await self._email.send_text(
                    to=item["to"],
                    subject=item["subject"],
                    body=item["body"],
                    from_address=sender.get("email"),
                    from_name=sender.get("name"),
                )
                if not email_sent:
                    logger.warning(f"Quote request email to {item['to']} was not delivered")
            results.append({
                "supplier_id": item["supplier"].id,
                "supplier_name": item["supplier"].supplier_name,
                "quote_id": item["quote"].id,
                "access_token": item["quote"].access_token,
                "email_sent": email_sent,
            })

        logger.info(
            f"Quote requests for asset {asset.id}: {len(results)} created, {len(errors)} skipped"
        )
        return {
            "total_suppliers": len(suppliers),
            "successful_requests": len(results),
            "failed_requests": len(errors),
            "results": results,
            "errors": errors,
        }
