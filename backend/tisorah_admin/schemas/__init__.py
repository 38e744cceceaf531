"""Pydantic schemas for the admin API.

All request/response models are defined here for easy import.
"""

from tisorah_admin.schemas.common import ApiResponse, ErrorDetail, ErrorResponse, PaginationMeta
from tisorah_admin.schemas.category import (
    CategoryBrief,
    CategoryOption,
    CategoryOptionsResponse,
    CategoryResponse,
)
from tisorah_admin.schemas.product import (
    CatalogQueryParams,
    ImageRolesRequest,
    ProductCreateRequest,
    ProductDetailResponse,
    ProductFields,
    ProductResponse,
    ProductUpdateRequest,
)
from tisorah_admin.schemas.quote import (
    QuoteDetailResponse,
    QuoteResponse,
    QuoteStatus,
    QuoteStatusUpdate,
    ShortlistedProduct,
)
from tisorah_admin.schemas.auth import LoginRequest, TokenResponse
from tisorah_admin.schemas.health import DashboardStats, HealthCheckResponse

__all__ = [
    # Common
    "ApiResponse",
    "ErrorDetail",
    "ErrorResponse",
    "PaginationMeta",
    # Category
    "CategoryBrief",
    "CategoryOption",
    "CategoryOptionsResponse",
    "CategoryResponse",
    # Product
    "CatalogQueryParams",
    "ImageRolesRequest",
    "ProductCreateRequest",
    "ProductDetailResponse",
    "ProductFields",
    "ProductResponse",
    "ProductUpdateRequest",
    # Quote
    "QuoteDetailResponse",
    "QuoteResponse",
    "QuoteStatus",
    "QuoteStatusUpdate",
    "ShortlistedProduct",
    # Auth
    "LoginRequest",
    "TokenResponse",
    # Health / dashboard
    "DashboardStats",
    "HealthCheckResponse",
]
