"""
Portal Service for supplier token access and quote chat.

Suppliers have no accounts. The access token on their quote grants access
to a portal session for that single quote: the asset and project it belongs
to, the supplier's own bid, and the chat thread with the producer.

Usage:
    from prodbay.core.services.portal_service import PortalService

    portal = PortalService(database, email_service)
    session = await portal.get_portal_session(token)
    await portal.send_supplier_message(token, "Can we deliver on Friday?")
    newer = await portal.get_quote_messages(quote_id, since=last_seen)
"""

import logging
from datetime import datetime, timezone
from typing import Any, Dict, List, Optional

from sqlalchemy import select
from sqlalchemy.orm import selectinload

from prodbay.config import settings
from prodbay.core.errors import InvalidRequestError
from prodbay.core.notify.email_service import EmailService
from prodbay.core.services.lookups import check_access_token, find_quote_by_token, get_or_404
from prodbay.core.services.supplier_service import get_primary_contact
from prodbay.core.shared.database_service import DatabaseService
from prodbay.core.statuses import SenderType
from prodbay.database.models import Asset, Message, Quote

logger = logging.getLogger("prodbay.portal_service")

PREVIEW_LENGTH = 100


def validate_message_content(content: Optional[str]) -> str:
    """Trimmed message text; raises InvalidRequestError when empty or too long."""
    text = (content or "").strip()
    if not text:
        raise InvalidRequestError("Message content is required")
    if len(text) > settings.max_message_length:
        raise InvalidRequestError(
            f"Message content exceeds {settings.max_message_length} characters"
        )
    return text


def message_preview(content: str) -> str:
    if len(content) <= PREVIEW_LENGTH:
        return content
    return content[:PREVIEW_LENGTH] + "..."


class PortalService:
    """
    Service for the supplier portal and the producer/supplier chat.
    """

    def __init__(self, database: DatabaseService, email_service: Optional[EmailService] = None):
        self._db = database
        self._email = email_service

    # =========================================================================
    # TOKEN ACCESS
    # =========================================================================

    async def validate_access_token(self, token: Optional[str]) -> Quote:
        """
        Resolve a token to its quote.

        Raises:
            InvalidRequestError: empty or malformed token
            NotFoundError: no quote carries the token
        """
        token = check_access_token(token)
        async with self._db.get_session() as session:
            return await find_quote_by_token(session, token)

    async def get_portal_session(self, token: Optional[str]) -> Dict[str, Any]:
        """Quote, asset, project, supplier and chat history for a token."""
        token = check_access_token(token)
        async with self._db.get_session() as session:
            quote = await find_quote_by_token(
                session,
                token,
                options=[
                    selectinload(Quote.asset).selectinload(Asset.project),
                    selectinload(Quote.supplier),
                    selectinload(Quote.messages),
                ],
            )
            portal = {
                "quote": quote,
                "asset": quote.asset,
                "project": quote.asset.project,
                "supplier": quote.supplier,
                "messages": list(quote.messages),
                "poll_interval_seconds": settings.chat_poll_interval_seconds,
            }

        logger.debug(f"Portal session opened for quote {quote.id}")
        return portal

    # =========================================================================
    # CHAT
    # =========================================================================

    async def send_supplier_message(self, token: Optional[str], content: Optional[str]) -> Message:
        """Post a supplier message and notify the producer."""
        text = validate_message_content(content)
        token = check_access_token(token)

        async with self._db.get_session() as session:
            quote = await find_quote_by_token(
                session,
                token,
                options=[selectinload(Quote.asset), selectinload(Quote.supplier)],
            )
            message = Message(
                quote_id=quote.id,
                sender_type=SenderType.SUPPLIER.value,
                content=text,
                is_read=False,
            )
            session.add(message)
            await session.flush()
            await session.refresh(message)
            asset_name = quote.asset.asset_name
            supplier_name = quote.supplier.supplier_name

        logger.info(f"Supplier message {message.id} posted on quote {message.quote_id}")

        if settings.producer_email:
            await self._notify(
                to=settings.producer_email,
                sender_name=supplier_name,
                quote_name=asset_name,
                link_url=settings.producer_dashboard_url,
                content=text,
            )
        else:
            logger.debug("producer_email not configured; supplier message notification skipped")
        return message

    async def send_producer_message(self, quote_id: Any, content: Optional[str]) -> Message:
        """Post a producer message and notify the supplier's primary contact."""
        text = validate_message_content(content)

        async with self._db.get_session() as session:
            quote = await get_or_404(
                session,
                Quote,
                quote_id,
                options=[selectinload(Quote.asset), selectinload(Quote.supplier)],
            )
            message = Message(
                quote_id=quote.id,
                sender_type=SenderType.PRODUCER.value,
                content=text,
                is_read=False,
            )
            session.add(message)
            await session.flush()
            await session.refresh(message)
            supplier = quote.supplier
            asset_name = quote.asset.asset_name
            token = quote.access_token

        logger.info(f"Producer message {message.id} posted on quote {message.quote_id}")

        contact = get_primary_contact(supplier) or {}
        to = contact.get("email") or supplier.contact_email
        if to:
            await self._notify(
                to=to,
                sender_name=settings.producer_name,
                quote_name=asset_name,
                link_url=settings.portal_url(token),
                content=text,
            )
        return message

    async def _notify(self, to: str, sender_name: str, quote_name: str, link_url: str, content: str) -> None:
        if not self._email:
            return
        try:
            sent = await self._email.send_new_message_notification(
                to=to,
                sender_name=sender_name,
                quote_name=quote_name,
                link_url=link_url,
                message_preview=message_preview(content),
            )
        except Exception as e:
            logger.warning(f"Message notification to {to} failed: {e}")
            return
        if not sent:
            logger.warning(f"Message notification to {to} was not delivered")

    async def get_quote_messages(self, quote_id: Any, since: Optional[datetime] = None) -> List[Message]:
        """
        Chat history for a quote, oldest first.

        With ``since``, only messages created after that instant are
        returned, which is what polling clients ask for.
        """
        async with self._db.get_session() as session:
            quote = await get_or_404(session, Quote, quote_id)
            stmt = select(Message).where(Message.quote_id == quote.id)
            if since is not None:
                if since.tzinfo is not None:
                    since = since.astimezone(timezone.utc).replace(tzinfo=None)
                stmt = stmt.where(Message.created_at > since)
            result = await session.execute(stmt.order_by(Message.created_at.asc()))
            return list(result.scalars().all())

    async def get_messages_for_token(self, token: Optional[str], since: Optional[datetime] = None) -> List[Message]:
        quote = await self.validate_access_token(token)
        return await self.get_quote_messages(quote.id, since=since)

    async def mark_messages_read(self, quote_id: Any, reader: SenderType) -> int:
        """Mark the other party's messages on a quote as read; returns the count."""
        async with self._db.get_session() as session:
            quote = await get_or_404(session, Quote, quote_id)
            result = await session.execute(
                select(Message).where(
                    Message.quote_id == quote.id,
                    Message.sender_type != reader.value,
                    Message.is_read.is_(False),
                )
            )
            unread = list(result.scalars().all())
            for message in unread:
                message.is_read = True
        return len(unread)
