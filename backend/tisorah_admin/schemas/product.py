"""Product Pydantic schemas for request/response validation."""

from datetime import datetime
from decimal import Decimal
from typing import List, Optional
from uuid import UUID

from pydantic import BaseModel, ConfigDict, Field

from tisorah_admin.schemas.category import CategoryBrief
from tisorah_admin.services.catalog_query import SortDirection, SortField


class ProductResponse(BaseModel):
    """Product response schema used in listings."""

    model_config = ConfigDict(from_attributes=True)

    id: UUID
    name: str
    price: Decimal
    price_min: Optional[Decimal] = None
    price_max: Optional[Decimal] = None
    has_price_range: Optional[bool] = None
    images: Optional[List[str]] = None
    display_image: Optional[str] = None
    hover_image: Optional[str] = None
    featured: Optional[bool] = None
    customizable: Optional[bool] = None
    main_category: Optional[UUID] = None
    primary_category: Optional[UUID] = None
    secondary_category: Optional[UUID] = None
    main_category_data: Optional[CategoryBrief] = None
    primary_category_data: Optional[CategoryBrief] = None
    secondary_category_data: Optional[CategoryBrief] = None
    created_at: datetime


class ProductDetailResponse(ProductResponse):
    """Detailed product response with the full field set."""

    description: Optional[str] = None
    moq: Optional[int] = None
    delivery: Optional[str] = None
    rating: Optional[Decimal] = None
    reviews: Optional[int] = None
    updated_at: datetime


class ProductFields(BaseModel):
    """Editable scalar and category fields of the product form."""

    name: Optional[str] = None
    description: Optional[str] = None
    price_min: Optional[Decimal] = Field(None, ge=0)
    price_max: Optional[Decimal] = Field(None, ge=0)
    moq: Optional[int] = Field(None, ge=0)
    delivery: Optional[str] = None
    featured: Optional[bool] = None
    customizable: Optional[bool] = None
    main_category: Optional[str] = None
    primary_category: Optional[str] = None
    secondary_category: Optional[str] = None


class ProductCreateRequest(ProductFields):
    """New product submission; images arrive as multipart files."""

    featured: bool = False
    customizable: bool = False
    display_index: Optional[int] = Field(None, ge=0)
    hover_index: Optional[int] = Field(None, ge=0)
    auto_roles: bool = True


class ProductUpdateRequest(ProductFields):
    """Partial product update; only fields that were sent are applied."""

    auto_roles: bool = False


class ImageRolesRequest(BaseModel):
    """Full display/hover assignment by gallery index (null = unassigned)."""

    display_index: Optional[int] = Field(None, ge=0)
    hover_index: Optional[int] = Field(None, ge=0)


class CatalogQueryParams(BaseModel):
    """Listing filters as accepted by GET /products."""

    page: int = Field(1, ge=1)
    limit: int = Field(20, ge=1, le=100)
    search: str = ""
    category: Optional[str] = None
    sort_by: SortField = SortField.CREATED_AT
    sort_order: SortDirection = SortDirection.DESC
