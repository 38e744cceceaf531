"""Dashboard API endpoints."""

from fastapi import APIRouter, Depends, Query
from sqlalchemy.ext.asyncio import AsyncSession

from tisorah_admin.dependencies import get_db
from tisorah_admin.schemas import ApiResponse, ProductResponse
from tisorah_admin.services.product_service import ProductService
from tisorah_admin.services.stats_service import get_dashboard_stats

router = APIRouter()


@router.get("/stats", response_model=ApiResponse)
async def dashboard_stats(db: AsyncSession = Depends(get_db)):
    """Product, category and quote counters for the dashboard landing page."""
    return ApiResponse(status="success", data=await get_dashboard_stats(db))


@router.get("/top-products", response_model=ApiResponse)
async def top_products(
    limit: int = Query(5, ge=1, le=50, description="Number of products"),
    db: AsyncSession = Depends(get_db),
):
    """Featured products first, then the newest ones."""
    products = await ProductService(db).get_top_products(limit=limit)
    return ApiResponse(
        status="success",
        data=[ProductResponse.model_validate(p) for p in products],
    )
