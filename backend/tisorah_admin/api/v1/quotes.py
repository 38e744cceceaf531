"""Quote request API endpoints."""

from typing import Optional
from uuid import UUID

from fastapi import APIRouter, Depends, Query
from sqlalchemy.ext.asyncio import AsyncSession

from tisorah_admin.dependencies import get_db
from tisorah_admin.schemas import (
    ApiResponse,
    ProductResponse,
    QuoteDetailResponse,
    QuoteResponse,
    QuoteStatus,
    QuoteStatusUpdate,
    ShortlistedProduct,
)
from tisorah_admin.services.quote_service import QuoteService

router = APIRouter()


@router.get("", response_model=ApiResponse)
async def list_quotes(
    status: Optional[QuoteStatus] = Query(None, description="Filter by quote status"),
    limit: Optional[int] = Query(None, ge=1, le=100, description="Return only the newest N"),
    db: AsyncSession = Depends(get_db),
):
    """List quote requests, newest first."""
    quotes = await QuoteService(db).list_quotes(status.value if status else None, limit=limit)
    return ApiResponse(
        status="success",
        data=[QuoteResponse.model_validate(q) for q in quotes],
    )


@router.get("/{quote_id}", response_model=ApiResponse)
async def get_quote(
    quote_id: UUID,
    db: AsyncSession = Depends(get_db),
):
    """Get a quote request with its shortlisted products resolved."""
    service = QuoteService(db)
    quote = await service.get_quote(quote_id)
    shortlisted = await service.get_shortlisted_products(quote)

    detail = QuoteDetailResponse.model_validate(quote)
    detail.products = [
        ShortlistedProduct(product=ProductResponse.model_validate(p), quantity=qty)
        for p, qty in shortlisted
    ]
    return ApiResponse(status="success", data=detail)


@router.patch("/{quote_id}/status", response_model=ApiResponse)
async def update_quote_status(
    quote_id: UUID,
    body: QuoteStatusUpdate,
    db: AsyncSession = Depends(get_db),
):
    """Move a quote request to a new status."""
    quote = await QuoteService(db).update_status(quote_id, body.status.value)
    return ApiResponse(status="success", data=QuoteResponse.model_validate(quote))
