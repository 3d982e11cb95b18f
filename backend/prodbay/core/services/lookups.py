"""
Row lookup helpers shared by the domain services.
"""

from typing import Any, Iterable, Optional, Type, TypeVar
from uuid import UUID

from sqlalchemy import select
from sqlalchemy.ext.asyncio import AsyncSession

from prodbay.core.errors import InvalidRequestError, NotFoundError
from prodbay.database.models import Quote

ModelT = TypeVar("ModelT")


def coerce_uuid(value: Any, label: str = "id") -> UUID:
    """Parse a UUID, raising InvalidRequestError for malformed input."""
    if isinstance(value, UUID):
        return value
    try:
        return UUID(str(value))
    except (TypeError, ValueError):
        raise InvalidRequestError(f"Invalid {label} format: {value}")


async def get_or_404(
    session: AsyncSession,
    model: Type[ModelT],
    row_id: Any,
    label: Optional[str] = None,
    options: Iterable[Any] = (),
) -> ModelT:
    """Load one row by primary key or raise NotFoundError."""
    label = label or model.__name__
    stmt = select(model).where(model.id == coerce_uuid(row_id, f"{label.lower()} ID"))
    for option in options:
        stmt = stmt.options(option)
    result = await session.execute(stmt)
    row = result.scalar_one_or_none()
    if row is None:
        raise NotFoundError(f"{label} not found")
    return row


def check_access_token(token: Optional[str]) -> str:
    """Trim a supplier access token; empty or non-UUID tokens raise InvalidRequestError."""
    token = (token or "").strip()
    if not token:
        raise InvalidRequestError("Access token is required", code="INVALID_TOKEN")
    try:
        UUID(token)
    except ValueError:
        raise InvalidRequestError("Malformed access token", code="INVALID_TOKEN")
    return token


async def find_quote_by_token(
    session: AsyncSession,
    token: Optional[str],
    options: Iterable[Any] = (),
):
    """Resolve a supplier access token to its quote or raise NotFoundError."""
    token = check_access_token(token)
    stmt = select(Quote).where(Quote.access_token == token)
    for option in options:
        stmt = stmt.options(option)
    result = await session.execute(stmt)
    quote = result.scalar_one_or_none()
    if quote is None:
        raise NotFoundError("Invalid or expired access token", code="INVALID_TOKEN")
    return quote


def apply_updates(row: Any, updates: dict, allowed: Iterable[str]) -> None:
    """
    Copy whitelisted fields onto an ORM row; enum values are stored as plain strings.

    Raises:
        InvalidRequestError: unknown field, or null for a NOT NULL column
    """
    allowed = set(allowed)
    columns = row.__table__.columns
    for field, value in updates.items():
        if field not in allowed:
            raise InvalidRequestError(f"Field '{field}' cannot be updated")
        if value is None and field in columns and not columns[field].nullable:
            raise InvalidRequestError(f"Field '{field}' cannot be null", details={"field": field})
        if hasattr(value, "value"):
            value = value.value
        setattr(row, field, value)
