"""
Tests for QuoteRequestService: email previews and quote request sending.
"""

import uuid

import pytest
import pytest_asyncio
from sqlalchemy import select

from prodbay.config import settings
from prodbay.core.errors import NotFoundError
from prodbay.core.services.producer_service import ProducerService
from prodbay.core.services.quote_request_service import QuoteRequestService, quote_request_subject
from prodbay.core.services.supplier_service import SupplierService
from prodbay.database.models import Quote

SENDER = {"name": "Alex Producer", "email": "alex@prodbay.test"}


@pytest.fixture
def requests_service(database, email_service):
    return QuoteRequestService(database, email_service)


@pytest_asyncio.fixture
async def printing_asset(database):
    producer = ProducerService(database)
    project = await producer.create_project(project_name="Launch", client_name="Acme")
    return await producer.create_asset(
        project.id,
        asset_name="Printing",
        specifications="Six roll-up banners",
        timeline="Two weeks",
    )


async def _supplier(database, name, contacts=None):
    return await SupplierService(database).create_supplier(
        name,
        f"{name.lower()}@example.com",
        ["Printing"],
        contacts or [],
    )


class TestPreviews:
    """Test email previews."""

    @pytest.mark.asyncio
    async def test_preview_per_supplier(self, database, requests_service, printing_asset):
        supplier = await _supplier(
            database,
            "PrintCo",
            [{"name": "Pat", "email": "pat@printco.com", "is_primary": True}],
        )

        result = await requests_service.generate_email_previews(printing_asset.id, [supplier.id], SENDER)

        preview = result["suppliers"][0]["preview_email"]
        assert preview["to"] == "pat@printco.com"
        assert preview["subject"] == "Quote Request: Printing"
        assert "Dear Pat" in preview["body"]
        assert "Six roll-up banners" in preview["body"]
        assert "Alex Producer" in preview["body"]

    @pytest.mark.asyncio
    async def test_preview_creates_no_quotes(self, database, requests_service, printing_asset):
        supplier = await _supplier(database, "PrintCo")
        await requests_service.generate_email_previews(printing_asset.id, [supplier.id])

        async with database.get_session() as session:
            result = await session.execute(select(Quote))
            assert result.scalars().all() == []

    @pytest.mark.asyncio
    async def test_preview_falls_back_to_supplier_fields(self, database, requests_service, printing_asset):
        supplier = await _supplier(database, "PrintCo")
        result = await requests_service.generate_email_previews(printing_asset.id, [supplier.id])
        preview = result["suppliers"][0]["preview_email"]
        assert preview["to"] == "printco@example.com"
        assert "Dear PrintCo" in preview["body"]
        assert "[Your Name]" in preview["body"]

    @pytest.mark.asyncio
    async def test_unknown_supplier(self, requests_service, printing_asset):
        missing = uuid.uuid4()
        with pytest.raises(NotFoundError) as exc_info:
            await requests_service.generate_email_previews(printing_asset.id, [missing])
        assert exc_info.value.details["missing_supplier_ids"] == [str(missing)]


class TestSendQuoteRequests:
    """Test quote creation and delivery."""

    @pytest.mark.asyncio
    async def test_creates_pending_quotes_and_moves_asset_to_quoting(
        self, database, requests_service, printing_asset, email_backend
    ):
        first = await _supplier(database, "PrintCo")
        second = await _supplier(database, "BannerWorks")

        result = await requests_service.send_quote_requests(
            printing_asset.id, [first.id, second.id], sender=SENDER
        )

        assert result["total_suppliers"] == 2
        assert result["successful_requests"] == 2
        assert result["failed_requests"] == 0
        assert all(r["email_sent"] for r in result["results"])
        assert [m["to"] for m in email_backend.sent] == ["printco@example.com", "bannerworks@example.com"]
        assert email_backend.sent[0]["from_address"] == "alex@prodbay.test"

        async with database.get_session() as session:
            quotes = (await session.execute(select(Quote))).scalars().all()
        assert {q.status for q in quotes} == {"Pending"}
        assert {q.cost for q in quotes} == {0.0}

        asset = await ProducerService(database).load_asset(printing_asset.id)
        assert asset.status == "Quoting"

    @pytest.mark.asyncio
    async def test_body_carries_portal_link(self, database, requests_service, printing_asset, email_backend):
        supplier = await _supplier(database, "PrintCo")
        result = await requests_service.send_quote_requests(printing_asset.id, [supplier.id], sender=SENDER)

        token = result["results"][0]["access_token"]
        assert settings.quote_url(token) in email_backend.sent[0]["text"]

    @pytest.mark.asyncio
    async def test_link_appended_to_custom_body(self, database, requests_service, printing_asset, email_backend):
        supplier = await _supplier(database, "PrintCo")
        result = await requests_service.send_quote_requests(
            printing_asset.id,
            [supplier.id],
            sender=SENDER,
            customized_emails=[{"supplier_id": str(supplier.id), "subject": "Banners?", "body": "Hi, can you quote?"}],
        )

        token = result["results"][0]["access_token"]
        sent = email_backend.sent[0]
        assert sent["subject"] == "Banners?"
        assert sent["text"] == f"Hi, can you quote?\n\nPlease provide your quote by visiting: {settings.quote_url(token)}"

        async with database.get_session() as session:
            quote = (await session.execute(select(Quote))).scalar_one()
        assert quote.request_email_body == sent["text"]

    @pytest.mark.asyncio
    async def test_no_sender_sends_no_email(self, database, requests_service, printing_asset, email_backend):
        supplier = await _supplier(database, "PrintCo")
        result = await requests_service.send_quote_requests(printing_asset.id, [supplier.id])

        assert result["successful_requests"] == 1
        assert result["results"][0]["email_sent"] is False
        assert email_backend.sent == []

    @pytest.mark.asyncio
    async def test_already_contacted_supplier_is_skipped(self, database, requests_service, printing_asset):
        supplier = await _supplier(database, "PrintCo")
        await requests_service.send_quote_requests(printing_asset.id, [supplier.id])

        result = await requests_service.send_quote_requests(printing_asset.id, [supplier.id])

        assert result["successful_requests"] == 0
        assert result["failed_requests"] == 1
        assert result["errors"][0]["supplier_id"] == supplier.id

        async with database.get_session() as session:
            quotes = (await session.execute(select(Quote))).scalars().all()
        assert len(quotes) == 1


def test_subject():
    assert quote_request_subject("Catering") == "Quote Request: Catering"
