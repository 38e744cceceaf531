"""Product service for the gift catalog.

Handles product CRUD, the paginated/filtered catalog listing and submission
of product forms (validation, image upload, persistence).
"""

import uuid
from typing import Any, Iterable, List, Optional, Sequence
from uuid import UUID

import structlog
from sqlalchemy import func, or_, select
from sqlalchemy.exc import SQLAlchemyError
from sqlalchemy.ext.asyncio import AsyncSession
from sqlalchemy.orm import selectinload

from tisorah_admin.core.exceptions import (
    NotFoundError,
    PersistenceError,
    RoleConflictError,
    ValidationError,
)
from tisorah_admin.models.product import Product
from tisorah_admin.services.catalog_query import (
    CatalogFilters,
    CatalogPage,
    SortDirection,
    SortField,
)
from tisorah_admin.services.product_form import CATEGORY_FIELDS, ProductForm
from tisorah_admin.services.storage_service import UploadedFile

logger = structlog.get_logger(__name__)

# Columns a caller may write; joined *_category_data views never are
WRITABLE_FIELDS = frozenset({
    "name",
    "description",
    "price",
    "price_min",
    "price_max",
    "has_price_range",
    "display_image",
    "hover_image",
    "main_category",
    "primary_category",
    "secondary_category",
    "moq",
    "delivery",
    "rating",
    "reviews",
    "featured",
    "customizable",
    "images",
})

SORT_COLUMNS = {
    SortField.CREATED_AT: Product.created_at,
    SortField.NAME: Product.name,
    SortField.PRICE: Product.price,
}


def to_uuid(field: str, value: Any) -> Optional[UUID]:
    """Parse an id coming from a form or query string."""
    if value is None or value == "":
        return None
    if isinstance(value, UUID):
        return value
    try:
        return UUID(str(value))
    except ValueError:
        raise ValidationError(field, f"{field} is not a valid id")


def _with_categories(query):
    return query.options(
        selectinload(Product.main_category_data),
        selectinload(Product.primary_category_data),
        selectinload(Product.secondary_category_data),
    )


class ProductService:
    """Service for managing catalog products.

    Wraps every write in a commit/rollback pair and converts database
    failures into PersistenceError so callers never see raw SQLAlchemy
    exceptions.
    """

    def __init__(self, db: AsyncSession):
        """Initialize product service.

        Args:
            db: Async database session
        """
        self.db = db
        self.logger = logger.bind(service="product_service")

    async def get_product_by_id(self, product_id: Any) -> Optional[Product]:
        """Get product by ID with category views loaded.

        Args:
            product_id: Product UUID (or its string form)

        Returns:
            Product object or None if not found
        """
        query = _with_categories(select(Product)).where(
            Product.id == to_uuid("product_id", product_id)
        ).execution_options(populate_existing=True)

        result = await self.db.execute(query)
        return result.scalar_one_or_none()

    async def require_product(self, product_id: Any) -> Product:
        product = await self.get_product_by_id(product_id)
        if product is None:
            raise NotFoundError("Product", str(product_id))
        return product

    async def get_products_page(
        self,
        filters: CatalogFilters,
        page: int = 1,
        page_size: int = 20,
    ) -> CatalogPage:
        """Get one page of products matching the catalog filters.

        Args:
            filters: Search text, main-category equality and sort order
            page: Page number (1-indexed)
            page_size: Results per page

        Returns:
            CatalogPage with the page's products and the total match count
        """
        self.logger.info(
            "fetching_products",
            page=page,
            page_size=page_size,
            search=filters.search or None,
            category=filters.category,
            sort=f"{filters.sort_field.value}:{filters.sort_direction.value}",
        )

        conditions = []
        if filters.search:
            conditions.append(or_(
                Product.name.icontains(filters.search, autoescape=True),
                Product.description.icontains(filters.search, autoescape=True),
            ))
        if filters.category:
            conditions.append(Product.main_category == to_uuid("category", filters.category))

        query = _with_categories(select(Product)).where(*conditions)
        count_query = select(func.count(Product.id)).where(*conditions)

        column = SORT_COLUMNS[filters.sort_field]
        order = column.asc() if filters.sort_direction is SortDirection.ASC else column.desc()
        # id keeps page boundaries stable between equal sort keys
        query = query.order_by(order, Product.id.asc())

        offset = (max(page, 1) - 1) * page_size
        query = query.offset(offset).limit(page_size)

        result = await self.db.execute(query)
        products = list(result.scalars().all())

        total_result = await self.db.execute(count_query)
        total = total_result.scalar() or 0

        self.logger.info("products_fetched", count=len(products), total=total, page=page)

        return CatalogPage(records=products, total_count=total)

    async def get_products_by_ids(self, product_ids: Iterable[Any]) -> List[Product]:
        """Fetch the products whose ids parse; unknown ids are skipped."""
        ids = []
        for raw in product_ids:
            try:
                ids.append(to_uuid("product_id", raw))
            except ValidationError:
                self.logger.warning("invalid_product_id_skipped", product_id=str(raw))
        ids = [i for i in ids if i is not None]
        if not ids:
            return []

        result = await self.db.execute(_with_categories(select(Product)).where(Product.id.in_(ids)))
        return list(result.scalars().all())

    async def get_top_products(self, limit: int = 5) -> List[Product]:
        """Products for the dashboard: featured first, then newest."""
        query = _with_categories(select(Product)).order_by(
            Product.featured.desc().nulls_last(),
            Product.created_at.desc(),
            Product.id.asc(),
        ).limit(limit)

        result = await self.db.execute(query)
        products = list(result.scalars().all())
        self.logger.info("top_products_fetched", count=len(products), limit=limit)
        return products

    async def count_products(self) -> int:
        result = await self.db.execute(select(func.count(Product.id)))
        return result.scalar() or 0

    def _clean(self, fields: dict) -> dict:
        cleaned = {k: v for k, v in fields.items() if k in WRITABLE_FIELDS}
        for key in CATEGORY_FIELDS:
            if key in cleaned:
                cleaned[key] = to_uuid(key, cleaned[key])
        return cleaned

    async def create_product(self, payload: dict) -> Product:
        """Insert a product row.

        Raises:
            ValidationError: if the name is missing
            PersistenceError: if the insert fails
        """
        values = self._clean(payload)
        if not values.get("name"):
            raise ValidationError("name", "Product name is required")

        product = Product(id=uuid.uuid4(), **values)
        self.db.add(product)
        try:
            await self.db.commit()
        except SQLAlchemyError as e:
            await self.db.rollback()
            self.logger.error("product_create_failed", error=str(e), exc_info=True)
            raise PersistenceError("create product", str(e)) from e

        self.logger.info("product_created", product_id=str(product.id), name=product.name[:50])
        return await self.require_product(product.id)

    async def update_product(self, product_id: Any, fields: dict) -> Product:
        """Apply a partial update; keys absent from ``fields`` stay unchanged.

        An explicit None clears the column (e.g. display_image).

        Raises:
            NotFoundError: if the product does not exist
            PersistenceError: if the update fails
        """
        product = await self.require_product(product_id)
        values = self._clean(fields)

        for key, value in values.items():
            setattr(product, key, value)

        try:
            await self.db.commit()
        except SQLAlchemyError as e:
            await self.db.rollback()
            self.logger.error("product_update_failed", product_id=str(product_id), error=str(e), exc_info=True)
            raise PersistenceError("update product", str(e)) from e

        self.logger.info("product_updated", product_id=str(product.id), fields=sorted(values))
        return await self.require_product(product.id)

    async def delete_product(self, product_id: Any) -> None:
        """Delete a product row; its images stay in storage.

        Raises:
            NotFoundError: if the product does not exist
            PersistenceError: if the delete fails
        """
        product = await self.require_product(product_id)
        await self.db.delete(product)
        try:
            await self.db.commit()
        except SQLAlchemyError as e:
            await self.db.rollback()
            self.logger.error("product_delete_failed", product_id=str(product_id), error=str(e), exc_info=True)
            raise PersistenceError("delete product", str(e)) from e

        self.logger.info("product_deleted", product_id=str(product_id))

    async def submit_form(
        self,
        form: ProductForm,
        files: Sequence[UploadedFile] = (),
        display_index: Optional[int] = None,
        hover_index: Optional[int] = None,
    ) -> Product:
        """Validate, upload new images, then create or update the product.

        Validation, role conflicts and role indices are checked before any
        upload. Upload failure aborts the submission with UploadError and
        writes nothing. Retrying with the same file objects after a failed
        write does not upload them again.
        """
        form.validate()
        if display_index is not None and display_index == hover_index:
            raise RoleConflictError()

        pending = form.pending_uploads(files)
        size = len(form.gallery.gallery) + len(pending)
        for index in (display_index, hover_index):
            if index is not None and not 0 <= index < size:
                raise ValidationError("images", f"Image index {index} is out of range for {size} image(s)")

        if pending:
            await form.gallery.add_images(pending)
            form.mark_uploaded(pending)
        if display_index is not None or hover_index is not None:
            form.gallery.assign(
                display_index if display_index is not None else form.gallery.display_index,
                hover_index if hover_index is not None else form.gallery.hover_index,
            )

        payload = form.to_payload()
        if form.is_new:
            return await self.create_product(payload)
        return await self.update_product(form.product_id, payload)
