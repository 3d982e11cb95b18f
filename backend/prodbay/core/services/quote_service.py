"""
Quote Service for bid acceptance, rejection, comparison and submission.

Acceptance is exclusive: the accepted quote's siblings are rejected and the
asset is awarded to the winning supplier, all in one transaction. The chat
message and email that follow are notifications; their failure is logged
and never undoes the acceptance.

Usage:
    from prodbay.core.services.quote_service import QuoteService

    quotes = QuoteService(database, email_service)
    outcome = await quotes.accept_quote(quote_id)
    comparison = await quotes.compare_quotes(asset_id)
"""

import logging
from typing import Any, Dict, List, Optional

from sqlalchemy import select, update
from sqlalchemy.orm import selectinload

from prodbay.core.errors import ConflictError, InvalidRequestError
from prodbay.core.notify.email_service import EmailService
from prodbay.core.services.lookups import check_access_token, find_quote_by_token, get_or_404
from prodbay.core.services.supplier_service import get_primary_contact
from prodbay.core.services.tracking_service import record_quote_status
from prodbay.core.shared.database_service import DatabaseService
from prodbay.core.statuses import QUOTABLE_STATUSES, AssetStatus, QuoteStatus, SenderType
from prodbay.database.models import Asset, Message, Quote

logger = logging.getLogger("prodbay.quote_service")

ACCEPTANCE_MESSAGE = "Quote Accepted. Looking forward to working together."


class QuoteService:
    """
    Service for quote decisions and supplier bids.
    """

    def __init__(self, database: DatabaseService, email_service: Optional[EmailService] = None):
        self._db = database
        self._email = email_service

    # =========================================================================
    # PRODUCER DECISIONS
    # =========================================================================

    async def accept_quote(self, quote_id: Any) -> Dict[str, Any]:
        """
        Accept a submitted quote.

        - The quote becomes Accepted
        - Every other quote for the same asset becomes Rejected
        - The asset is assigned to the quote's supplier and moves to Approved

        Returns:
            {"quote": Quote, "asset": Asset, "rejected_quote_ids": [...]}

        Raises:
            NotFoundError: unknown quote
            ConflictError: quote is not in Submitted status
        """
        async with self._db.get_session() as session:
            quote = await get_or_404(
                session,
                Quote,
                quote_id,
                options=[selectinload(Quote.supplier), selectinload(Quote.asset)],
            )

            if quote.status != QuoteStatus.SUBMITTED.value:
                raise ConflictError(
                    f"Quote cannot be accepted. Current status is '{quote.status}'. "
                    f"Only quotes with status 'Submitted' can be accepted.",
                    code="INVALID_QUOTE_STATUS",
                )

            siblings = await session.execute(
                select(Quote.id, Quote.status).where(Quote.asset_id == quote.asset_id, Quote.id != quote.id)
            )
            sibling_rows = siblings.all()
            rejected_ids = [row.id for row in sibling_rows]

            quote.status = QuoteStatus.ACCEPTED.value
            record_quote_status(session, quote.id, QuoteStatus.ACCEPTED)
            for row in sibling_rows:
                if row.status != QuoteStatus.REJECTED.value:
                    record_quote_status(session, row.id, QuoteStatus.REJECTED, notes="Another quote was accepted")
            if rejected_ids:
                await session.execute(
                    update(Quote)
                    .where(Quote.id.in_(rejected_ids))
                    .values(status=QuoteStatus.REJECTED.value)
                    .execution_options(synchronize_session=False)
                )

            asset = quote.asset
            supplier = quote.supplier
            asset.assigned_supplier_id = quote.supplier_id
            asset.status = AssetStatus.APPROVED.value

            await session.flush()
            await session.refresh(quote)
            await session.refresh(asset)

        logger.info(
            f"Accepted quote {quote.id} for asset {asset.id}; "
            f"rejected {len(rejected_ids)} competing quotes"
        )

        await self._post_acceptance_message(quote.id)
        await self._notify_acceptance(supplier, asset)

        return {"quote": quote, "asset": asset, "rejected_quote_ids": rejected_ids}

    async def _post_acceptance_message(self, quote_id) -> None:
        try:
            async with self._db.get_session() as session:
                session.add(
                    Message(
                        quote_id=quote_id,
                        sender_type=SenderType.PRODUCER.value,
                        content=ACCEPTANCE_MESSAGE,
                        is_read=False,
                    )
                )
        except Exception as e:
            logger.warning(f"Failed to insert acceptance message for quote {quote_id}: {e}")

    async def _notify_acceptance(self, supplier, asset: Asset) -> None:
        if not self._email or supplier is None:
            return
        contact = get_primary_contact(supplier) or {}
        to = contact.get("email") or supplier.contact_email
        if not to:
            logger.warning(f"No email address for supplier {supplier.id}; acceptance email skipped")
            return
        sent = await self._email.send_quote_accepted_email(
            to=to,
            supplier_name=contact.get("name") or supplier.supplier_name,
            quote_title=asset.asset_name,
        )
        if not sent:
            logger.warning(f"Acceptance email to {to} was not delivered")

    async def reject_quote(self, quote_id: Any) -> Quote:
        async with self._db.get_session() as session:
            quote = await get_or_404(session, Quote, quote_id)
            if quote.status == QuoteStatus.ACCEPTED.value:
                raise ConflictError(
                    "An accepted quote cannot be rejected", code="INVALID_QUOTE_STATUS"
                )
            quote.status = QuoteStatus.REJECTED.value
            record_quote_status(session, quote.id, QuoteStatus.REJECTED)
            await session.flush()
            await session.refresh(quote)
        logger.info(f"Rejected quote {quote.id}")
        return quote

    # =========================================================================
    # COMPARISON
    # =========================================================================

    async def compare_quotes(self, asset_id: Any) -> Dict[str, Any]:
        """
        Quotes for an asset ordered by cost, with rank and cost relative to
        the lowest bid.

        Returns:
            {"asset": Asset, "quotes": [{"quote", "cost_rank",
             "cost_percentage_of_lowest"}], "metrics": {...}}
        """
        async with self._db.get_session() as session:
            asset = await get_or_404(session, Asset, asset_id)
            result = await session.execute(
                select(Quote)
                .where(Quote.asset_id == asset.id)
                .options(selectinload(Quote.supplier), selectinload(Quote.asset))
                .order_by(Quote.cost.asc(), Quote.created_at.asc())
            )
            quotes = list(result.scalars().all())

        costs = [q.cost or 0.0 for q in quotes]
        lowest = min(costs) if costs else None
        highest = max(costs) if costs else None

        ranked: List[Dict[str, Any]] = []
        for rank, quote in enumerate(quotes, start=1):
            percentage = None
            if lowest:
                percentage = round((quote.cost or 0.0) / lowest * 100, 1)
            ranked.append({"quote": quote, "cost_rank": rank, "cost_percentage_of_lowest": percentage})

        return {
            "asset": asset,
            "quotes": ranked,
            "metrics": {
                "lowest_cost": lowest,
                "highest_cost": highest,
                "average_cost": round(sum(costs) / len(costs), 2) if costs else None,
                "quote_count": len(quotes),
                "cost_range": (highest - lowest) if costs else None,
            },
        }

    # =========================================================================
    # SUPPLIER BIDS
    # =========================================================================

    async def submit_quote(self, token: str, cost: Any, notes_capacity: Optional[str] = None) -> Quote:
        """
        Record a supplier's bid through the token link.

        Raises:
            InvalidRequestError: empty or malformed token, or negative/non-numeric cost
            NotFoundError: unknown token
            ConflictError: the quote was already accepted or rejected
        """
        token = check_access_token(token)
        try:
            cost_value = float(cost)
        except (TypeError, ValueError):
            raise InvalidRequestError("Cost must be a number")
        if cost_value < 0:
            raise InvalidRequestError("Cost must be a non-negative number")

        async with self._db.get_session() as session:
            quote = await find_quote_by_token(session, token)
            if quote.status not in QUOTABLE_STATUSES:
                raise ConflictError(
                    f"Quote can no longer be submitted. Current status is '{quote.status}'.",
                    code="INVALID_QUOTE_STATUS",
                )
            quote.cost = cost_value
            quote.notes_capacity = (notes_capacity or "").strip() or None
            quote.status = QuoteStatus.SUBMITTED.value
            record_quote_status(session, quote.id, QuoteStatus.SUBMITTED, notes=f"Bid of {cost_value:.2f}")
            await session.flush()
            await session.refresh(quote)

        logger.info(f"Supplier submitted quote {quote.id} at {cost_value}")
        return quote
