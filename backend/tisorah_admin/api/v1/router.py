"""API v1 router -- aggregates all v1 endpoint routers."""

from fastapi import APIRouter, Depends

from tisorah_admin.api.v1 import auth, categories, dashboard, health, products, quotes
from tisorah_admin.dependencies import get_current_admin

api_v1_router = APIRouter()

_admin_only = [Depends(get_current_admin)]

api_v1_router.include_router(health.router, tags=["health"])
api_v1_router.include_router(auth.router, prefix="/auth", tags=["auth"])
api_v1_router.include_router(products.router, prefix="/products", tags=["products"], dependencies=_admin_only)
api_v1_router.include_router(categories.router, prefix="/categories", tags=["categories"], dependencies=_admin_only)
api_v1_router.include_router(quotes.router, prefix="/quotes", tags=["quotes"], dependencies=_admin_only)
api_v1_router.include_router(dashboard.router, prefix="/dashboard", tags=["dashboard"], dependencies=_admin_only)
