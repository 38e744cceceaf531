"""Quote request Pydantic schemas."""

from datetime import datetime
from enum import Enum
from typing import Any, List, Optional
from uuid import UUID

from pydantic import BaseModel, ConfigDict

from tisorah_admin.schemas.product import ProductResponse


class QuoteStatus(str, Enum):
    PENDING = "pending"
    IN_PROGRESS = "in-progress"
    APPROVED = "approved"
    REJECTED = "rejected"
    COMPLETED = "completed"


class QuoteResponse(BaseModel):
    """Quote request as listed in the dashboard."""

    model_config = ConfigDict(from_attributes=True)

    id: UUID
    name: str
    email: str
    phone: Optional[str] = None
    company: str
    message: Optional[str] = None
    budget: Optional[str] = None
    timeline: Optional[str] = None
    event_type: Optional[str] = None
    customization: Optional[bool] = None
    branding: Optional[bool] = None
    packaging: Optional[bool] = None
    shortlisted_products: List[Any] = []
    status: Optional[str] = None
    created_at: datetime
    updated_at: datetime


class ShortlistedProduct(BaseModel):
    """A shortlisted product resolved against the catalog."""

    product: ProductResponse
    quantity: Optional[int] = None


class QuoteDetailResponse(QuoteResponse):
    """Quote request with shortlisted products resolved."""

    products: List[ShortlistedProduct] = []


class QuoteStatusUpdate(BaseModel):
    status: QuoteStatus
