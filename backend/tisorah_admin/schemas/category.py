"""Category Pydantic schemas for request/response validation."""

from typing import List, Optional
from uuid import UUID

from pydantic import BaseModel, ConfigDict


class CategoryBrief(BaseModel):
    """Brief category information embedded in product responses."""

    model_config = ConfigDict(from_attributes=True)

    id: UUID
    name: str
    slug: str


class CategoryResponse(BaseModel):
    """Category response schema."""

    model_config = ConfigDict(from_attributes=True)

    id: UUID
    name: str
    slug: str
    description: Optional[str] = None
    image_url: Optional[str] = None
    parent_id: Optional[UUID] = None
    level: Optional[str] = None
    type: Optional[str] = None


class CategoryOption(BaseModel):
    """One selectable entry in a category select."""

    model_config = ConfigDict(from_attributes=True)

    id: str
    name: str
    slug: Optional[str] = None
    level: str
    parent_id: Optional[str] = None
    type: Optional[str] = None


class CategoryOptionsResponse(BaseModel):
    """Option lists for the three cascading category selects."""

    main: List[CategoryOption] = []
    primary: List[CategoryOption] = []
    secondary: List[CategoryOption] = []
    main_groups: dict[str, List[CategoryOption]] = {}
    category_type: Optional[str] = None
    selected_main: Optional[str] = None
    selected_primary: Optional[str] = None
