# backend/prodbay/database/models.py
"""
SQLAlchemy ORM models for ProdBay.

Models:
    - Project: Client project carrying the free-text brief
    - Asset: Deliverable derived from a project brief
    - Supplier: Vendor with service categories and contact persons
    - Quote: Supplier bid for one asset, reachable through an access token
    - Message: Producer/supplier chat attached to a quote
    - ProducerSettings: Sender identity used for outbound quote emails
    - AIProcessingLog: Audit trail of AI brief analysis calls
    - QuoteStatusHistory: Status changes of a quote
    - ProjectMilestone: Timeline checkpoints of a project
    - ActionItem: Pending follow-ups for producer, supplier or client

All models use UUID primary keys and include timestamps for auditing.
"""

from __future__ import annotations

import uuid
from datetime import datetime

from sqlalchemy import (
    Boolean,
    Column,
    Date,
    DateTime,
    Float,
    ForeignKey,
    Index,
    Integer,
    JSON,
    String,
    Text,
    TypeDecorator,
)
from sqlalchemy.dialects.postgresql import UUID as PG_UUID
from sqlalchemy.orm import relationship

from .base import Base


# UUID type that works with both SQLite and PostgreSQL
class UUID(TypeDecorator):
    """Platform-independent UUID type.

    Uses PostgreSQL's UUID type when available, otherwise uses String(36).
    """
    impl = String
    cache_ok = True

    def load_dialect_impl(self, dialect):
        if dialect.name == 'postgresql':
            return dialect.type_descriptor(PG_UUID(as_uuid=True))
        return dialect.type_descriptor(String(36))

    def process_bind_param(self, value, dialect):
        if value is None:
            return value
        if dialect.name == 'postgresql':
            return value if isinstance(value, uuid.UUID) else uuid.UUID(str(value))
        return str(value)

    def process_result_value(self, value, dialect):
        if value is None or isinstance(value, uuid.UUID):
            return value
        return uuid.UUID(value)


def generate_access_token() -> str:
    """Random token embedded in supplier-facing quote links."""
    return str(uuid.uuid4())


class Project(Base):
    """
    Project model.

    A client engagement described by a free-text brief. Assets are derived
    from the brief and quoted by suppliers.

    Attributes:
        id: Unique project identifier
        project_name: Display name
        client_name: Client the project is delivered for
        brief_description: Free-text brief
        physical_parameters: Venue/space notes
        financial_parameters: Budget
        timeline_deadline: Delivery deadline
        event_date: Optional event date
        project_status: New, In Progress, Quoting, Completed, Cancelled
        ai_allocation_completed_at: Set once AI suggestions have been applied

    Relationships:
        assets: Assets derived from this project (deleted with it)
    """

    __tablename__ = "projects"

    id = Column(UUID(), primary_key=True, default=uuid.uuid4)
    project_name = Column(String(255), nullable=False)
    client_name = Column(String(255), nullable=False, index=True)
    brief_description = Column(Text, nullable=False, default="")
    physical_parameters = Column(Text, nullable=True)
    financial_parameters = Column(Float, nullable=True)
    timeline_deadline = Column(Date, nullable=True)
    event_date = Column(Date, nullable=True)
    project_status = Column(String(50), nullable=False, default="New", index=True)
    ai_allocation_completed_at = Column(DateTime, nullable=True)

    # Timestamps
    created_at = Column(DateTime, default=datetime.utcnow, nullable=False, index=True)
    updated_at = Column(
        DateTime, default=datetime.utcnow, onupdate=datetime.utcnow, nullable=False
    )

    # Relationships
    assets = relationship(
        "Asset", back_populates="project", cascade="all, delete-orphan"
    )

    def __repr__(self) -> str:
        return f"<Project(id={self.id}, name={self.project_name}, status={self.project_status})>"


class Supplier(Base):
    """
    Supplier model.

    Attributes:
        supplier_name: Company name
        contact_email: Default contact address
        service_categories: List of category tags (e.g. ["Printing", "Design"])
        contact_persons: List of {name, email, role, phone, is_primary}

    Relationships:
        quotes: Quotes submitted by this supplier (deleted with it)
        assigned_assets: Assets awarded to this supplier (unassigned on delete)
    """

    __tablename__ = "suppliers"

    id = Column(UUID(), primary_key=True, default=uuid.uuid4)
    supplier_name = Column(String(255), nullable=False, index=True)
    contact_email = Column(String(255), nullable=False)
    service_categories = Column(JSON, nullable=False, default=list)
    contact_persons = Column(JSON, nullable=False, default=list)

    created_at = Column(DateTime, default=datetime.utcnow, nullable=False)
    updated_at = Column(
        DateTime, default=datetime.utcnow, onupdate=datetime.utcnow, nullable=False
    )

    quotes = relationship(
        "Quote", back_populates="supplier", cascade="all, delete-orphan"
    )
    assigned_assets = relationship("Asset", back_populates="assigned_supplier")

    def __repr__(self) -> str:
        return f"<Supplier(id={self.id}, name={self.supplier_name})>"


class Asset(Base):
    """
    Asset model.

    A deliverable or service derived from a project brief.

    Attributes:
        project_id: Owning project
        asset_name: Display name (usually a category label)
        specifications: Free-text requirements
        timeline: Free-text timing notes
        status: Pending, Quoting, Approved, In Production, Delivered
        assigned_supplier_id: Supplier whose quote was accepted
        source_text: Brief excerpt the asset was derived from
        quantity: Optional unit count
        tags: Category tags used to filter suppliers

    Relationships:
        project: Owning project
        assigned_supplier: Awarded supplier
        quotes: Quotes for this asset (deleted with it)
    """

    __tablename__ = "assets"

    id = Column(UUID(), primary_key=True, default=uuid.uuid4)
    project_id = Column(
        UUID(), ForeignKey("projects.id", ondelete="CASCADE"), nullable=False, index=True
    )
    asset_name = Column(String(255), nullable=False)
    specifications = Column(Text, nullable=True)
    timeline = Column(String(255), nullable=True)
    status = Column(String(50), nullable=False, default="Pending", index=True)
    assigned_supplier_id = Column(
        UUID(), ForeignKey("suppliers.id", ondelete="SET NULL"), nullable=True
    )
    source_text = Column(Text, nullable=True)
    quantity = Column(Integer, nullable=True)
    tags = Column(JSON, nullable=False, default=list)

    created_at = Column(DateTime, default=datetime.utcnow, nullable=False)
    updated_at = Column(
        DateTime, default=datetime.utcnow, onupdate=datetime.utcnow, nullable=False
    )

    project = relationship("Project", back_populates="assets")
    assigned_supplier = relationship("Supplier", back_populates="assigned_assets")
    quotes = relationship(
        "Quote", back_populates="asset", cascade="all, delete-orphan"
    )

    def __repr__(self) -> str:
        return f"<Asset(id={self.id}, name={self.asset_name}, status={self.status})>"


class Quote(Base):
    """
    Quote model.

    A supplier's bid for one asset. The access token grants the supplier
    unauthenticated access to the portal for this quote.

    Attributes:
        asset_id: Quoted asset
        supplier_id: Bidding supplier
        cost: Quoted price
        notes_capacity: Supplier notes on capacity and lead time
        status: Pending, Submitted, Accepted, Rejected
        access_token: Random token for the supplier portal link
        request_email_body: Body of the quote request sent to the supplier
    """

    __tablename__ = "quotes"

    id = Column(UUID(), primary_key=True, default=uuid.uuid4)
    asset_id = Column(
        UUID(), ForeignKey("assets.id", ondelete="CASCADE"), nullable=False, index=True
    )
    supplier_id = Column(
        UUID(), ForeignKey("suppliers.id", ondelete="CASCADE"), nullable=False, index=True
    )
    cost = Column(Float, nullable=False, default=0.0)
    notes_capacity = Column(Text, nullable=True)
    status = Column(String(50), nullable=False, default="Pending", index=True)
    access_token = Column(
        String(64), nullable=False, unique=True, index=True, default=generate_access_token
    )
    request_email_body = Column(Text, nullable=True)

    created_at = Column(DateTime, default=datetime.utcnow, nullable=False)
    updated_at = Column(
        DateTime, default=datetime.utcnow, onupdate=datetime.utcnow, nullable=False
    )

    asset = relationship("Asset", back_populates="quotes")
    supplier = relationship("Supplier", back_populates="quotes")
    messages = relationship(
        "Message",
        back_populates="quote",
        cascade="all, delete-orphan",
        order_by="Message.created_at",
    )

    __table_args__ = (
        Index("ix_quotes_asset_supplier", "asset_id", "supplier_id"),
    )

    def __repr__(self) -> str:
        return f"<Quote(id={self.id}, asset={self.asset_id}, status={self.status})>"


class Message(Base):
    """
    Chat message exchanged on a quote.

    Attributes:
        quote_id: Quote the conversation belongs to
        sender_type: PRODUCER or SUPPLIER
        content: Message text
        is_read: Read flag for the receiving side
    """

    __tablename__ = "messages"

    id = Column(UUID(), primary_key=True, default=uuid.uuid4)
    quote_id = Column(
        UUID(), ForeignKey("quotes.id", ondelete="CASCADE"), nullable=False, index=True
    )
    sender_type = Column(String(20), nullable=False)
    content = Column(Text, nullable=False)
    is_read = Column(Boolean, nullable=False, default=False)

    created_at = Column(DateTime, default=datetime.utcnow, nullable=False, index=True)

    quote = relationship("Quote", back_populates="messages")

    def __repr__(self) -> str:
        return f"<Message(id={self.id}, quote={self.quote_id}, sender={self.sender_type})>"


class ProducerSettings(Base):
    """Sender identity for outbound quote request emails (single row)."""

    __tablename__ = "producer_settings"

    id = Column(UUID(), primary_key=True, default=uuid.uuid4)
    from_name = Column(String(255), nullable=False)
    from_email = Column(String(255), nullable=False)

    created_at = Column(DateTime, default=datetime.utcnow, nullable=False)
    updated_at = Column(
        DateTime, default=datetime.utcnow, onupdate=datetime.utcnow, nullable=False
    )

    def __repr__(self) -> str:
        return f"<ProducerSettings(from={self.from_name} <{self.from_email}>)>"


class AIProcessingLog(Base):
    """
    Audit record of an AI call.

    Attributes:
        processing_type: e.g. asset_allocation, highlight_extraction
        input_data: Request payload summary
        output_data: Parsed result (or None on failure)
        processing_time_ms: Wall time of the call
        success: Whether the call produced a usable result
        error_message: Failure reason
    """

    __tablename__ = "ai_processing_logs"

    id = Column(UUID(), primary_key=True, default=uuid.uuid4)
    processing_type = Column(String(100), nullable=False, index=True)
    input_data = Column(JSON, nullable=True)
    output_data = Column(JSON, nullable=True)
    processing_time_ms = Column(Integer, nullable=False, default=0)
    success = Column(Boolean, nullable=False, default=False)
    error_message = Column(Text, nullable=True)

    created_at = Column(DateTime, default=datetime.utcnow, nullable=False, index=True)

    def __repr__(self) -> str:
        return f"<AIProcessingLog(type={self.processing_type}, success={self.success})>"


class QuoteStatusHistory(Base):
    """
    One entry per quote status change, oldest first.

    Attributes:
        quote_id: Quote whose status changed
        status: Status that was set
        notes: Optional reason (e.g. "Another quote was accepted")
    """

    __tablename__ = "quote_status_history"

    id = Column(UUID(), primary_key=True, default=uuid.uuid4)
    quote_id = Column(
        UUID(), ForeignKey("quotes.id", ondelete="CASCADE"), nullable=False, index=True
    )
    status = Column(String(50), nullable=False, index=True)
    notes = Column(Text, nullable=True)

    created_at = Column(DateTime, default=datetime.utcnow, nullable=False, index=True)

    def __repr__(self) -> str:
        return f"<QuoteStatusHistory(quote={self.quote_id}, status={self.status})>"


class ProjectMilestone(Base):
    """
    Timeline checkpoint of a project, in addition to its final deadline.

    Attributes:
        project_id: Owning project
        milestone_name: Display name
        milestone_date: Date the checkpoint falls on
        status: pending, completed, cancelled
        description: Free-text notes
    """

    __tablename__ = "project_milestones"

    id = Column(UUID(), primary_key=True, default=uuid.uuid4)
    project_id = Column(
        UUID(), ForeignKey("projects.id", ondelete="CASCADE"), nullable=False, index=True
    )
    milestone_name = Column(String(255), nullable=False)
    milestone_date = Column(Date, nullable=False, index=True)
    status = Column(String(20), nullable=False, default="pending", index=True)
    description = Column(Text, nullable=False, default="")

    created_at = Column(DateTime, default=datetime.utcnow, nullable=False)
    updated_at = Column(
        DateTime, default=datetime.utcnow, onupdate=datetime.utcnow, nullable=False
    )

    def __repr__(self) -> str:
        return f"<ProjectMilestone(id={self.id}, name={self.milestone_name}, date={self.milestone_date})>"


class ActionItem(Base):
    """
    A pending follow-up for the producer, a supplier or the client.

    Attributes:
        project_id: Owning project
        asset_id: Optional asset the action concerns
        quote_id: Optional quote the action concerns
        action_type: See ActionType
        action_description: What needs doing
        status: pending, in_progress, completed, cancelled
        assigned_to: producer, supplier, client
        priority: 1 (lowest) to 5 (highest)
        due_date: Optional due date
        completed_at: Set when the action is completed
    """

    __tablename__ = "action_items"

    id = Column(UUID(), primary_key=True, default=uuid.uuid4)
    project_id = Column(
        UUID(), ForeignKey("projects.id", ondelete="CASCADE"), nullable=False, index=True
    )
    asset_id = Column(
        UUID(), ForeignKey("assets.id", ondelete="CASCADE"), nullable=True, index=True
    )
    quote_id = Column(
        UUID(), ForeignKey("quotes.id", ondelete="CASCADE"), nullable=True, index=True
    )
    action_type = Column(String(50), nullable=False)
    action_description = Column(Text, nullable=False)
    status = Column(String(20), nullable=False, default="pending", index=True)
    assigned_to = Column(String(20), nullable=False, index=True)
    priority = Column(Integer, nullable=False, default=1)
    due_date = Column(Date, nullable=True, index=True)
    completed_at = Column(DateTime, nullable=True)

    created_at = Column(DateTime, default=datetime.utcnow, nullable=False)
    updated_at = Column(
        DateTime, default=datetime.utcnow, onupdate=datetime.utcnow, nullable=False
    )

    __table_args__ = (
        Index("ix_action_items_project_status_assignee", "project_id", "status", "assigned_to"),
    )

    def __repr__(self) -> str:
        return f"<ActionItem(id={self.id}, type={self.action_type}, status={self.status})>"
