# backend/prodbay/api/v1/routers/suppliers.py
"""
Suppliers API Router.

Supplier directory CRUD and search, supplier suggestions for an asset, the
assets a supplier may quote, and producer-initiated quote requests
(preview and send).
"""

import logging
from typing import List, Optional
from uuid import UUID

from fastapi import APIRouter, Depends, Query

from prodbay.api.v1.responses import ok
from prodbay.api.v1.schemas import (
    ApiResponse,
    AssetResponse,
    EmailPreviewResponse,
    QuotableAsset,
    QuotableAssetsResponse,
    QuoteRequestPreviewRequest,
    SendQuoteRequestsRequest,
    SendQuoteRequestsResponse,
    SuggestedSupplierResponse,
    SupplierCreateRequest,
    SupplierEmailPreview,
    SupplierResponse,
    SupplierUpdateRequest,
)
from prodbay.core.services.producer_service import ProducerService
from prodbay.core.services.quote_request_service import QuoteRequestService
from prodbay.core.services.supplier_service import SupplierService
from prodbay.dependencies import get_quote_request_service, get_supplier_service

logger = logging.getLogger("prodbay.api.suppliers")

router = APIRouter(prefix="/suppliers", tags=["suppliers"])


@router.get(
    "",
    response_model=ApiResponse[List[SupplierResponse]],
    summary="List suppliers",
    description="List suppliers, optionally filtered by search term and service categories.",
)
async def list_suppliers(
    q: Optional[str] = Query(None, description="Case-insensitive match on name or email"),
    category: Optional[List[str]] = Query(None, description="Service category filter (repeatable)"),
    suppliers: SupplierService = Depends(get_supplier_service),
):
    if q:
        rows = await suppliers.search_suppliers(q)
    elif category:
        rows = await suppliers.get_suppliers_by_categories(category)
    else:
        rows = await suppliers.get_all_suppliers()
    if q and category:
        matching = {s.id for s in await suppliers.get_suppliers_by_categories(category)}
        rows = [s for s in rows if s.id in matching]
    return ok([SupplierResponse.model_validate(s) for s in rows])


@router.post("", response_model=ApiResponse[SupplierResponse], status_code=201, summary="Create supplier")
async def create_supplier(
    request: SupplierCreateRequest,
    suppliers: SupplierService = Depends(get_supplier_service),
):
    supplier = await suppliers.create_supplier(
        supplier_name=request.supplier_name,
        contact_email=request.contact_email,
        service_categories=request.service_categories,
        contact_persons=[p.model_dump() for p in request.contact_persons],
    )
    return ok(SupplierResponse.model_validate(supplier), message="Supplier created")


@router.get(
    "/tags",
    response_model=ApiResponse[List[str]],
    summary="Available service categories",
    description="Sorted, de-duplicated service categories across all suppliers.",
)
async def get_available_tags(suppliers: SupplierService = Depends(get_supplier_service)):
    rows = await suppliers.get_all_suppliers()
    return ok(ProducerService.get_available_tags(rows))


@router.get(
    "/suggestions/{asset_id}",
    response_model=ApiResponse[List[SuggestedSupplierResponse]],
    summary="Suggested suppliers for an asset",
)
async def get_suggested_suppliers(asset_id: UUID, suppliers: SupplierService = Depends(get_supplier_service)):
    result = await suppliers.get_suggested_suppliers(asset_id)
    return ok([
        SuggestedSupplierResponse(
            **SupplierResponse.model_validate(item["supplier"]).model_dump(),
            already_contacted=item["already_contacted"],
        )
        for item in result["suppliers"]
    ])


@router.post(
    "/preview-quote-requests",
    response_model=ApiResponse[EmailPreviewResponse],
    summary="Preview quote request emails",
)
async def preview_quote_requests(
    request: QuoteRequestPreviewRequest,
    quote_requests: QuoteRequestService = Depends(get_quote_request_service),
):
    sender = request.sender.model_dump() if request.sender else None
    result = await quote_requests.generate_email_previews(request.asset_id, request.supplier_ids, sender)
    return ok(
        EmailPreviewResponse(
            asset=AssetResponse.model_validate(result["asset"]),
            suppliers=[
                SupplierEmailPreview(
                    id=item["supplier"].id,
                    supplier_name=item["supplier"].supplier_name,
                    contact_email=item["supplier"].contact_email,
                    contact_persons=item["supplier"].contact_persons or [],
                    preview_email=item["preview_email"],
                )
                for item in result["suppliers"]
            ],
        )
    )


@router.post(
    "/send-quote-requests",
    response_model=ApiResponse[SendQuoteRequestsResponse],
    summary="Send quote requests",
    description="Create a quote per supplier and email each a link to submit their bid.",
)
async def send_quote_requests(
    request: SendQuoteRequestsRequest,
    quote_requests: QuoteRequestService = Depends(get_quote_request_service),
):
    sender = request.sender.model_dump() if request.sender else None
    result = await quote_requests.send_quote_requests(
        request.asset_id,
        request.supplier_ids,
        sender=sender,
        customized_emails=[c.model_dump() for c in request.customized_emails],
    )
    message = f"Quote requests sent to {result['successful_requests']} of {result['total_suppliers']} suppliers"
    return ok(SendQuoteRequestsResponse(**result), message=message)


@router.get("/{supplier_id}", response_model=ApiResponse[SupplierResponse], summary="Get supplier")
async def get_supplier(supplier_id: UUID, suppliers: SupplierService = Depends(get_supplier_service)):
    supplier = await suppliers.get_supplier(supplier_id)
    return ok(SupplierResponse.model_validate(supplier))


@router.put("/{supplier_id}", response_model=ApiResponse[SupplierResponse], summary="Update supplier")
async def update_supplier(
    supplier_id: UUID,
    request: SupplierUpdateRequest,
    suppliers: SupplierService = Depends(get_supplier_service),
):
    updates = request.model_dump(exclude_unset=True)
    supplier = await suppliers.update_supplier(supplier_id, updates)
    return ok(SupplierResponse.model_validate(supplier), message="Supplier updated")


@router.delete("/{supplier_id}", response_model=ApiResponse[dict], summary="Delete supplier")
async def delete_supplier(supplier_id: UUID, suppliers: SupplierService = Depends(get_supplier_service)):
    counts = await suppliers.delete_supplier(supplier_id)
    return ok({"deleted": counts}, message="Supplier deleted")


@router.get(
    "/{supplier_id}/quotable-assets",
    response_model=ApiResponse[QuotableAssetsResponse],
    summary="Assets the supplier may quote",
    description="Assets for which the supplier holds a Pending or Submitted quote request.",
)
async def get_quotable_assets(supplier_id: UUID, suppliers: SupplierService = Depends(get_supplier_service)):
    result = await suppliers.get_quotable_assets(supplier_id)
    assets = [
        QuotableAsset(
            **AssetResponse.model_validate(item["asset"]).model_dump(),
            quote_request_id=item["quote"].id,
            quote_status=item["quote"].status,
            project_name=item["project"].project_name,
            client_name=item["project"].client_name,
        )
        for item in result["items"]
    ]
    return ok(
        QuotableAssetsResponse(
            supplier=SupplierResponse.model_validate(result["supplier"]),
            assets=assets,
            total_count=len(assets),
        )
    )
