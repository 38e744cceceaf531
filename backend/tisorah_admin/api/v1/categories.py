"""Categories API endpoints."""

from typing import Optional

from fastapi import APIRouter, Depends, Query
from sqlalchemy.ext.asyncio import AsyncSession

from tisorah_admin.dependencies import get_db
from tisorah_admin.schemas import (
    ApiResponse,
    CategoryOption,
    CategoryOptionsResponse,
    CategoryResponse,
)
from tisorah_admin.services.category_resolver import CategoryNode
from tisorah_admin.services.category_service import CategoryService

router = APIRouter()


def _option(node: CategoryNode) -> CategoryOption:
    return CategoryOption(
        id=node.id,
        name=node.name,
        slug=node.slug,
        level=node.level.value,
        parent_id=node.parent_id,
        type=node.type.value if node.type else None,
    )


@router.get("", response_model=ApiResponse)
async def list_categories(db: AsyncSession = Depends(get_db)):
    """List all categories as a flat list ordered by name."""
    categories = await CategoryService(db).list_categories()
    return ApiResponse(
        status="success",
        data=[CategoryResponse.model_validate(c) for c in categories],
    )


@router.get("/options", response_model=ApiResponse)
async def category_options(
    main: Optional[str] = Query(None, description="Selected main category ID"),
    primary: Optional[str] = Query(None, description="Selected primary category ID"),
    db: AsyncSession = Depends(get_db),
):
    """Options for the cascading main / primary / secondary selects.

    Primary options are the children of ``main`` and secondary options the
    children of ``primary``. A selection that does not fit the hierarchy is
    dropped and yields no child options.
    """
    resolved = await CategoryService(db).resolve_options(main, primary)
    category_type = resolved["category_type"]

    return ApiResponse(
        status="success",
        data=CategoryOptionsResponse(
            main=[_option(n) for n in resolved["main"]],
            primary=[_option(n) for n in resolved["primary"]],
            secondary=[_option(n) for n in resolved["secondary"]],
            main_groups={
                label: [_option(n) for n in nodes]
                for label, nodes in resolved["main_groups"].items()
            },
            category_type=category_type.value if category_type else None,
            selected_main=resolved["selected_main"],
            selected_primary=resolved["selected_primary"],
        ),
    )
