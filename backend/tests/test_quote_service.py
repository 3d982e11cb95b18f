"""
Tests for QuoteService: acceptance, rejection, comparison and bid submission.
"""

import uuid

import pytest
from sqlalchemy import select

from prodbay.core.errors import ConflictError, InvalidRequestError, NotFoundError
from prodbay.core.services.producer_service import ProducerService
from prodbay.core.services.quote_service import ACCEPTANCE_MESSAGE, QuoteService
from prodbay.core.services.supplier_service import SupplierService
from prodbay.database.models import Message, Quote


async def _seed(database, bids):
    """
    A project with one Printing asset and one quote per ``(supplier_name, cost, status)``.

    Returns (asset, [quote, ...]).
    """
    producer = ProducerService(database)
    suppliers = SupplierService(database)
    project = await producer.create_project(project_name="Launch", client_name="Acme")
    asset = await producer.create_asset(project.id, asset_name="Printing", status="Quoting")

    quotes = []
    for name, cost, status in bids:
        supplier = await suppliers.create_supplier(
            name,
            f"{name.lower()}@example.com",
            ["Printing"],
            [{"name": f"{name} Rep", "email": f"rep@{name.lower()}.com", "is_primary": True}],
        )
        async with database.get_session() as session:
            quote = Quote(asset_id=asset.id, supplier_id=supplier.id, cost=cost, status=status)
            session.add(quote)
            await session.flush()
            await session.refresh(quote)
        quotes.append(quote)
    return asset, quotes


async def _statuses(database, asset_id):
    async with database.get_session() as session:
        result = await session.execute(select(Quote).where(Quote.asset_id == asset_id))
        return {q.id: q.status for q in result.scalars().all()}


@pytest.fixture
def quotes(database, email_service):
    return QuoteService(database, email_service)


class TestAcceptQuote:
    """Test exclusive acceptance."""

    @pytest.mark.asyncio
    async def test_accept_rejects_siblings_and_awards_asset(self, database, quotes):
        asset, (a, b, c) = await _seed(
            database,
            [("Alpha", 1000.0, "Submitted"), ("Beta", 800.0, "Submitted"), ("Gamma", 0.0, "Pending")],
        )

        result = await quotes.accept_quote(b.id)

        assert result["quote"].status == "Accepted"
        assert result["asset"].status == "Approved"
        assert result["asset"].assigned_supplier_id == b.supplier_id
        assert set(result["rejected_quote_ids"]) == {a.id, c.id}
        assert await _statuses(database, asset.id) == {a.id: "Rejected", b.id: "Accepted", c.id: "Rejected"}

    @pytest.mark.asyncio
    async def test_single_accepted_quote_per_asset(self, database, quotes):
        asset, (a, b) = await _seed(database, [("Alpha", 10.0, "Submitted"), ("Beta", 20.0, "Submitted")])
        await quotes.accept_quote(a.id)

        with pytest.raises(ConflictError):
            await quotes.accept_quote(b.id)

        statuses = await _statuses(database, asset.id)
        assert list(statuses.values()).count("Accepted") == 1

    @pytest.mark.asyncio
    async def test_pending_quote_cannot_be_accepted(self, database, quotes):
        _, (a,) = await _seed(database, [("Alpha", 0.0, "Pending")])
        with pytest.raises(ConflictError) as exc_info:
            await quotes.accept_quote(a.id)
        assert exc_info.value.code == "INVALID_QUOTE_STATUS"

    @pytest.mark.asyncio
    async def test_unknown_quote(self, quotes):
        with pytest.raises(NotFoundError):
            await quotes.accept_quote(uuid.uuid4())

    @pytest.mark.asyncio
    async def test_acceptance_posts_chat_message(self, database, quotes):
        _, (a,) = await _seed(database, [("Alpha", 50.0, "Submitted")])
        await quotes.accept_quote(a.id)

        async with database.get_session() as session:
            result = await session.execute(select(Message).where(Message.quote_id == a.id))
            messages = result.scalars().all()
        assert len(messages) == 1
        assert messages[0].sender_type == "PRODUCER"
        assert messages[0].content == ACCEPTANCE_MESSAGE

    @pytest.mark.asyncio
    async def test_acceptance_emails_primary_contact(self, database, quotes, email_backend):
        _, (a,) = await _seed(database, [("Alpha", 50.0, "Submitted")])
        await quotes.accept_quote(a.id)

        assert len(email_backend.sent) == 1
        sent = email_backend.sent[0]
        assert sent["to"] == "rep@alpha.com"
        assert sent["subject"] == "Your Quote was Accepted"
        assert "Alpha Rep" in sent["text"]
        assert "Printing" in sent["text"]

    @pytest.mark.asyncio
    async def test_email_failure_does_not_undo_acceptance(self, database, quotes, email_backend):
        _, (a,) = await _seed(database, [("Alpha", 50.0, "Submitted")])

        async def refuse(**kwargs):
            return False

        email_backend.send_email = refuse
        result = await quotes.accept_quote(a.id)
        assert result["quote"].status == "Accepted"


class TestRejectQuote:
    """Test rejection."""

    @pytest.mark.asyncio
    async def test_reject_submitted(self, database, quotes):
        _, (a,) = await _seed(database, [("Alpha", 50.0, "Submitted")])
        rejected = await quotes.reject_quote(a.id)
        assert rejected.status == "Rejected"

    @pytest.mark.asyncio
    async def test_accepted_quote_cannot_be_rejected(self, database, quotes):
        _, (a,) = await _seed(database, [("Alpha", 50.0, "Accepted")])
        with pytest.raises(ConflictError):
            await quotes.reject_quote(a.id)


class TestCompareQuotes:
    """Test cost comparison."""

    @pytest.mark.asyncio
    async def test_ranks_by_cost(self, database, quotes):
        asset, _ = await _seed(
            database,
            [("Alpha", 1500.0, "Submitted"), ("Beta", 1000.0, "Submitted"), ("Gamma", 1250.0, "Submitted")],
        )

        result = await quotes.compare_quotes(asset.id)

        ranked = [(item["quote"].supplier.supplier_name, item["cost_rank"]) for item in result["quotes"]]
        assert ranked == [("Beta", 1), ("Gamma", 2), ("Alpha", 3)]
        assert [item["cost_percentage_of_lowest"] for item in result["quotes"]] == [100.0, 125.0, 150.0]
        assert result["metrics"] == {
            "lowest_cost": 1000.0,
            "highest_cost": 1500.0,
            "average_cost": 1250.0,
            "quote_count": 3,
            "cost_range": 500.0,
        }

    @pytest.mark.asyncio
    async def test_no_quotes(self, database, quotes):
        asset, _ = await _seed(database, [])
        result = await quotes.compare_quotes(asset.id)
        assert result["quotes"] == []
        assert result["metrics"]["quote_count"] == 0
        assert result["metrics"]["lowest_cost"] is None


class TestSubmitQuote:
    """Test supplier bid submission through the access token."""

    @pytest.mark.asyncio
    async def test_submit_pending_quote(self, database, quotes):
        _, (a,) = await _seed(database, [("Alpha", 0.0, "Pending")])
        submitted = await quotes.submit_quote(a.access_token, "750.50", "  Two weeks lead time  ")
        assert submitted.status == "Submitted"
        assert submitted.cost == 750.5
        assert submitted.notes_capacity == "Two weeks lead time"

    @pytest.mark.asyncio
    async def test_resubmit_updates_bid(self, database, quotes):
        _, (a,) = await _seed(database, [("Alpha", 100.0, "Submitted")])
        submitted = await quotes.submit_quote(a.access_token, 90)
        assert submitted.cost == 90.0
        assert submitted.notes_capacity is None

    @pytest.mark.asyncio
    async def test_negative_cost(self, database, quotes):
        _, (a,) = await _seed(database, [("Alpha", 0.0, "Pending")])
        with pytest.raises(InvalidRequestError):
            await quotes.submit_quote(a.access_token, -1)

    @pytest.mark.asyncio
    async def test_non_numeric_cost(self, database, quotes):
        _, (a,) = await _seed(database, [("Alpha", 0.0, "Pending")])
        with pytest.raises(InvalidRequestError):
            await quotes.submit_quote(a.access_token, "a lot")

    @pytest.mark.asyncio
    async def test_closed_quote(self, database, quotes):
        _, (a,) = await _seed(database, [("Alpha", 10.0, "Accepted")])
        with pytest.raises(ConflictError):
            await quotes.submit_quote(a.access_token, 5)

    @pytest.mark.asyncio
    async def test_unknown_token(self, quotes):
        with pytest.raises(NotFoundError) as exc_info:
            await quotes.submit_quote(str(uuid.uuid4()), 5)
        assert exc_info.value.code == "INVALID_TOKEN"

    @pytest.mark.asyncio
    async def test_missing_token(self, quotes):
        with pytest.raises(InvalidRequestError) as exc_info:
            await quotes.submit_quote("  ", 5)
        assert exc_info.value.code == "INVALID_TOKEN"

    @pytest.mark.asyncio
    async def test_malformed_token(self, quotes):
        with pytest.raises(InvalidRequestError) as exc_info:
            await quotes.submit_quote("not-a-token", 5)
        assert exc_info.value.code == "INVALID_TOKEN"
