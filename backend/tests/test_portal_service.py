"""
Tests for PortalService: token access and the producer/supplier chat.
"""

import uuid
from datetime import datetime, timedelta, timezone

import pytest
import pytest_asyncio

from prodbay.config import settings
from prodbay.core.errors import InvalidRequestError, NotFoundError
from prodbay.core.services.portal_service import PortalService, message_preview, validate_message_content
from prodbay.core.services.producer_service import ProducerService
from prodbay.core.services.supplier_service import SupplierService
from prodbay.core.statuses import SenderType
from prodbay.database.models import Quote


@pytest.fixture
def portal(database, email_service):
    return PortalService(database, email_service)


@pytest_asyncio.fixture
async def quote(database):
    producer = ProducerService(database)
    project = await producer.create_project(project_name="Launch", client_name="Acme")
    asset = await producer.create_asset(project.id, asset_name="Printing", status="Quoting")
    supplier = await SupplierService(database).create_supplier(
        "PrintCo",
        "orders@printco.com",
        ["Printing"],
        [{"name": "Pat", "email": "pat@printco.com", "is_primary": True}],
    )
    async with database.get_session() as session:
        row = Quote(asset_id=asset.id, supplier_id=supplier.id, cost=0.0, status="Pending")
        session.add(row)
        await session.flush()
        await session.refresh(row)
    return row


class TestMessageValidation:
    """Test message content rules."""

    def test_trims_content(self):
        assert validate_message_content("  hello  ") == "hello"

    def test_rejects_blank(self):
        with pytest.raises(InvalidRequestError):
            validate_message_content("   ")
        with pytest.raises(InvalidRequestError):
            validate_message_content(None)

    def test_rejects_too_long(self):
        with pytest.raises(InvalidRequestError):
            validate_message_content("x" * (settings.max_message_length + 1))
        assert validate_message_content("x" * settings.max_message_length)

    def test_preview_truncates(self):
        assert message_preview("short") == "short"
        assert message_preview("y" * 150) == "y" * 100 + "..."


class TestTokenAccess:
    """Test access token resolution."""

    @pytest.mark.asyncio
    async def test_valid_token(self, portal, quote):
        resolved = await portal.validate_access_token(quote.access_token)
        assert resolved.id == quote.id

    @pytest.mark.asyncio
    async def test_empty_token(self, portal):
        with pytest.raises(InvalidRequestError) as exc_info:
            await portal.validate_access_token("")
        assert exc_info.value.code == "INVALID_TOKEN"

    @pytest.mark.asyncio
    async def test_malformed_token(self, portal):
        with pytest.raises(InvalidRequestError):
            await portal.validate_access_token("abc123")

    @pytest.mark.asyncio
    async def test_unknown_token(self, portal, quote):
        with pytest.raises(NotFoundError) as exc_info:
            await portal.validate_access_token(str(uuid.uuid4()))
        assert exc_info.value.code == "INVALID_TOKEN"

    @pytest.mark.asyncio
    async def test_portal_session(self, portal, quote):
        session = await portal.get_portal_session(quote.access_token)
        assert session["quote"].id == quote.id
        assert session["asset"].asset_name == "Printing"
        assert session["project"].project_name == "Launch"
        assert session["supplier"].supplier_name == "PrintCo"
        assert session["messages"] == []
        assert session["poll_interval_seconds"] == settings.chat_poll_interval_seconds


class TestChat:
    """Test message posting and notifications."""

    @pytest.mark.asyncio
    async def test_supplier_message_notifies_producer(self, portal, quote, email_backend):
        message = await portal.send_supplier_message(quote.access_token, "  Can we deliver Friday?  ")

        assert message.sender_type == "SUPPLIER"
        assert message.content == "Can we deliver Friday?"
        assert message.is_read is False
        assert len(email_backend.sent) == 1
        sent = email_backend.sent[0]
        assert sent["to"] == settings.producer_email
        assert sent["subject"] == "New Message from PrintCo - Printing"
        assert settings.producer_dashboard_url in sent["text"]

    @pytest.mark.asyncio
    async def test_producer_message_notifies_primary_contact(self, portal, quote, email_backend):
        message = await portal.send_producer_message(quote.id, "Friday works")

        assert message.sender_type == "PRODUCER"
        sent = email_backend.sent[0]
        assert sent["to"] == "pat@printco.com"
        assert settings.portal_url(quote.access_token) in sent["text"]
        assert "Friday works" in sent["text"]

    @pytest.mark.asyncio
    async def test_notification_failure_keeps_message(self, portal, quote, email_backend):
        async def explode(**kwargs):
            raise RuntimeError("mail server down")

        email_backend.send_email = explode
        message = await portal.send_producer_message(quote.id, "Still stored")

        messages = await portal.get_quote_messages(quote.id)
        assert [m.id for m in messages] == [message.id]

    @pytest.mark.asyncio
    async def test_blank_message_rejected(self, portal, quote):
        with pytest.raises(InvalidRequestError):
            await portal.send_supplier_message(quote.access_token, "  ")

    @pytest.mark.asyncio
    async def test_messages_in_order_and_since_filter(self, portal, quote):
        first = await portal.send_producer_message(quote.id, "one")
        second = await portal.send_supplier_message(quote.access_token, "two")

        messages = await portal.get_quote_messages(quote.id)
        assert [m.content for m in messages] == ["one", "two"]

        newer = await portal.get_quote_messages(quote.id, since=first.created_at)
        assert [m.id for m in newer] == [second.id]

        aware = second.created_at.replace(tzinfo=timezone.utc)
        assert await portal.get_quote_messages(quote.id, since=aware) == []

    @pytest.mark.asyncio
    async def test_messages_for_token(self, portal, quote):
        await portal.send_producer_message(quote.id, "hello")
        past = datetime.utcnow() - timedelta(hours=1)
        messages = await portal.get_messages_for_token(quote.access_token, since=past)
        assert [m.content for m in messages] == ["hello"]

    @pytest.mark.asyncio
    async def test_mark_read(self, portal, quote):
        await portal.send_supplier_message(quote.access_token, "from supplier")
        await portal.send_producer_message(quote.id, "from producer")

        marked = await portal.mark_messages_read(quote.id, SenderType.PRODUCER)

        assert marked == 1
        messages = await portal.get_quote_messages(quote.id)
        read = {m.sender_type: m.is_read for m in messages}
        assert read == {"SUPPLIER": True, "PRODUCER": False}
