"""Products API endpoints."""

from typing import List, Optional
from uuid import UUID

from fastapi import APIRouter, Depends, File, Form, Query, UploadFile
from pydantic import ValidationError as PydanticValidationError
from sqlalchemy.ext.asyncio import AsyncSession

from tisorah_admin.core.exceptions import ValidationError
from tisorah_admin.dependencies import get_db, get_storage
from tisorah_admin.schemas import (
    ApiResponse,
    ImageRolesRequest,
    PaginationMeta,
    ProductCreateRequest,
    ProductDetailResponse,
    ProductResponse,
    ProductUpdateRequest,
)
from tisorah_admin.services.catalog_query import (
    CatalogFilters,
    SortDirection,
    SortField,
    has_more_rows,
)
from tisorah_admin.services.category_service import CategoryService
from tisorah_admin.services.gallery_service import GalleryService, gallery_locks
from tisorah_admin.services.product_form import ProductForm
from tisorah_admin.services.product_service import ProductService
from tisorah_admin.services.storage_service import StorageService, UploadedFile

router = APIRouter()


async def _read_uploads(files: Optional[List[UploadFile]]) -> List[UploadedFile]:
    uploads = []
    for f in files or []:
        content = await f.read()
        if not content:
            continue
        uploads.append(UploadedFile(
            filename=f.filename or "upload",
            content=content,
            content_type=f.content_type,
        ))
    return uploads


def _detail(product) -> ProductDetailResponse:
    return ProductDetailResponse.model_validate(product)


@router.get("", response_model=ApiResponse)
async def list_products(
    page: int = Query(1, ge=1, description="Page number (1-indexed)"),
    limit: int = Query(20, ge=1, le=100, description="Items per page"),
    search: str = Query("", description="Case-insensitive match on name or description"),
    category: Optional[str] = Query(None, description="Filter by main category UUID"),
    sort_by: SortField = Query(SortField.CREATED_AT, description="Sort column"),
    sort_order: SortDirection = Query(SortDirection.DESC, description="Sort direction"),
    db: AsyncSession = Depends(get_db),
):
    """List products one page at a time for the infinite-scroll catalog.

    ``meta.has_more`` is true while rows remain beyond this page.
    """
    service = ProductService(db)
    filters = CatalogFilters(
        search=search,
        category=category,
        sort_field=sort_by,
        sort_direction=sort_order,
    )

    result = await service.get_products_page(filters, page=page, page_size=limit)
    total = result.total_count
    total_pages = (total + limit - 1) // limit if total > 0 else 0

    return ApiResponse(
        status="success",
        data=[ProductResponse.model_validate(p) for p in result.records],
        meta=PaginationMeta(
            page=page,
            limit=limit,
            total=total,
            total_pages=total_pages,
            has_more=has_more_rows(total, page, limit),
        ),
    )


@router.get("/{product_id}", response_model=ApiResponse)
async def get_product(
    product_id: UUID,
    db: AsyncSession = Depends(get_db),
):
    """Get product details by ID."""
    product = await ProductService(db).require_product(product_id)
    return ApiResponse(status="success", data=_detail(product))


@router.post("", response_model=ApiResponse, status_code=201)
async def create_product(
    data: str = Form(..., description="ProductCreateRequest as JSON"),
    images: Optional[List[UploadFile]] = File(None),
    display_index: Optional[int] = Form(None, ge=0),
    hover_index: Optional[int] = Form(None, ge=0),
    db: AsyncSession = Depends(get_db),
    storage: StorageService = Depends(get_storage),
):
    """Create a product from the form fields plus uploaded gallery images.

    Images are uploaded before the row is written; if any upload fails
    nothing is created. Role indices refer to positions in ``images``.
    """
    try:
        body = ProductCreateRequest.model_validate_json(data)
    except PydanticValidationError as e:
        first = e.errors()[0]
        field = ".".join(str(p) for p in first.get("loc", ())) or None
        raise ValidationError(field, first.get("msg", "Invalid product data"))

    categories = await CategoryService(db).list_categories()
    form = ProductForm.new(
        categories,
        storage=storage,
        fields=body.model_dump(exclude={"display_index", "hover_index", "auto_roles"}),
        auto_roles=body.auto_roles,
    )
    files = await _read_uploads(images)

    product = await ProductService(db).submit_form(
        form,
        files=files,
        display_index=display_index if display_index is not None else body.display_index,
        hover_index=hover_index if hover_index is not None else body.hover_index,
    )

    return ApiResponse(status="success", data=_detail(product))


@router.patch("/{product_id}", response_model=ApiResponse)
async def update_product(
    product_id: UUID,
    body: ProductUpdateRequest,
    db: AsyncSession = Depends(get_db),
    storage: StorageService = Depends(get_storage),
):
    """Edit a product; only the fields present in the body change.

    Category changes cascade: a new main category clears primary and
    secondary unless they are sent too and belong to the new branch.
    """
    service = ProductService(db)

    async with gallery_locks.hold(product_id):
        product = await service.require_product(product_id)
        categories = await CategoryService(db).list_categories()
        form = ProductForm.for_edit(product, categories, storage=storage, auto_roles=body.auto_roles)
        form.apply_changes(body.model_dump(exclude_unset=True, exclude={"auto_roles"}))
        product = await service.submit_form(form)

    return ApiResponse(status="success", data=_detail(product))


@router.delete("/{product_id}", response_model=ApiResponse)
async def delete_product(
    product_id: UUID,
    db: AsyncSession = Depends(get_db),
):
    """Delete a product. Its images are left in storage."""
    await ProductService(db).delete_product(product_id)
    return ApiResponse(status="success", data={"id": str(product_id)})


@router.post("/{product_id}/images", response_model=ApiResponse)
async def add_product_images(
    product_id: UUID,
    images: List[UploadFile] = File(...),
    db: AsyncSession = Depends(get_db),
    storage: StorageService = Depends(get_storage),
):
    """Upload images and append them to the product's gallery."""
    files = await _read_uploads(images)
    if not files:
        raise ValidationError("images", "No file provided")

    product = await GalleryService(db, storage).add_images(product_id, files)
    return ApiResponse(status="success", data=_detail(product))


@router.delete("/{product_id}/images", response_model=ApiResponse)
async def remove_product_image(
    product_id: UUID,
    url: str = Query(..., min_length=1, description="Public URL of the image to remove"),
    db: AsyncSession = Depends(get_db),
    storage: StorageService = Depends(get_storage),
):
    """Delete one image from storage and from the product's gallery."""
    product = await GalleryService(db, storage).remove_image(product_id, url)
    return ApiResponse(status="success", data=_detail(product))


@router.put("/{product_id}/image-roles", response_model=ApiResponse)
async def assign_image_roles(
    product_id: UUID,
    body: ImageRolesRequest,
    db: AsyncSession = Depends(get_db),
    storage: StorageService = Depends(get_storage),
):
    """Set which gallery images are the display and hover images."""
    try:
        product = await GalleryService(db, storage).assign_roles(
            product_id, body.display_index, body.hover_index
        )
    except IndexError as e:
        raise ValidationError("image_roles", str(e))

    return ApiResponse(status="success", data=_detail(product))
