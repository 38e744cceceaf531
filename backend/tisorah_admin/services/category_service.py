"""Category lookups and form option resolution."""

from typing import Any, List, Optional

import structlog
from sqlalchemy import func, select
from sqlalchemy.exc import SQLAlchemyError
from sqlalchemy.ext.asyncio import AsyncSession

from tisorah_admin.core.exceptions import PersistenceError
from tisorah_admin.models.category import Category
from tisorah_admin.services.category_resolver import (
    CategorySelection,
    group_main_options,
)
from tisorah_admin.services.product_service import to_uuid

logger = structlog.get_logger(__name__)


class CategoryService:
    """Read-only access to the category tree."""

    def __init__(self, db: AsyncSession):
        self.db = db
        self.logger = logger.bind(service="category_service")

    async def list_categories(self) -> List[Category]:
        """All categories ordered by name.

        Raises:
            PersistenceError: if the query fails
        """
        try:
            result = await self.db.execute(select(Category).order_by(Category.name.asc()))
        except SQLAlchemyError as e:
            self.logger.error("categories_fetch_failed", error=str(e), exc_info=True)
            raise PersistenceError("load categories", str(e)) from e

        categories = list(result.scalars().all())
        self.logger.debug("categories_fetched", count=len(categories))
        return categories

    async def get_category_by_id(self, category_id: Any) -> Optional[Category]:
        result = await self.db.execute(
            select(Category).where(Category.id == to_uuid("category_id", category_id))
        )
        return result.scalar_one_or_none()

    async def count_categories(self) -> int:
        result = await self.db.execute(select(func.count(Category.id)))
        return result.scalar() or 0

    async def resolve_options(
        self,
        selected_main: Optional[str] = None,
        selected_primary: Optional[str] = None,
    ) -> dict:
        """Option lists for the three category selects.

        The given selections pass through the same cascade as the product
        form, so a primary that does not belong to the selected main yields
        no secondary options.
        """
        selection = CategorySelection(categories=await self.list_categories())
        selection.on_main_change(selected_main)
        selection.on_primary_change(selected_primary)

        options = selection.options()
        return {
            **options,
            "main_groups": group_main_options(selection.categories),
            "selected_main": selection.main_category,
            "selected_primary": selection.primary_category,
        }
