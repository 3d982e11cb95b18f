# backend/prodbay/api/v1/responses.py
"""
Builders that turn service results (ORM rows, dicts) into response models.

Relationships are only read here when the service eager-loaded them.
"""

from typing import Any, Optional

from prodbay.api.v1.schemas import (
    ApiResponse,
    AssetResponse,
    AssetWithSupplierResponse,
    HighlightSegmentResponse,
    QuoteWithSupplierResponse,
    SupplierResponse,
)


def ok(data: Any = None, message: Optional[str] = None, warning: Optional[str] = None) -> ApiResponse:
    return ApiResponse(success=True, data=data, message=message, warning=warning)


def asset_with_supplier(asset) -> AssetWithSupplierResponse:
    supplier = asset.assigned_supplier
    return AssetWithSupplierResponse(
        **AssetResponse.model_validate(asset).model_dump(),
        assigned_supplier=SupplierResponse.model_validate(supplier) if supplier else None,
    )


def quote_with_supplier(quote, response_cls=QuoteWithSupplierResponse, **extra) -> QuoteWithSupplierResponse:
    """Quote with its supplier and asset name; both must be loaded."""
    return response_cls(
        **quote_fields(quote),
        supplier=SupplierResponse.model_validate(quote.supplier) if quote.supplier else None,
        asset_name=quote.asset.asset_name if quote.asset else None,
        **extra,
    )


def quote_fields(quote) -> dict:
    return {
        "id": quote.id,
        "asset_id": quote.asset_id,
        "supplier_id": quote.supplier_id,
        "cost": quote.cost,
        "notes_capacity": quote.notes_capacity,
        "status": quote.status,
        "access_token": quote.access_token,
        "created_at": quote.created_at,
        "updated_at": quote.updated_at,
    }


def highlight_segment(segment) -> HighlightSegmentResponse:
    return HighlightSegmentResponse(
        text=segment.text,
        highlighted=segment.highlighted,
        asset_id=segment.asset_id,
        asset_name=segment.asset_name,
        strategy=segment.strategy,
    )
