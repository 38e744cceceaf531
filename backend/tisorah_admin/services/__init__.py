"""Services module for business logic and data operations.

This module contains the catalog administration logic: category
resolution, image role tracking, paginated catalog queries, product form
submission and the persistence/storage services they rely on.
"""

from tisorah_admin.services.catalog_query import CatalogFilters, CatalogPage, CatalogQuery
from tisorah_admin.services.category_resolver import CategorySelection
from tisorah_admin.services.category_service import CategoryService
from tisorah_admin.services.gallery_service import GalleryService
from tisorah_admin.services.image_roles import ProductGallery
from tisorah_admin.services.product_form import ProductForm
from tisorah_admin.services.product_service import ProductService
from tisorah_admin.services.quote_service import QuoteService
from tisorah_admin.services.storage_service import StorageService

__all__ = [
    "CatalogFilters",
    "CatalogPage",
    "CatalogQuery",
    "CategorySelection",
    "CategoryService",
    "GalleryService",
    "ProductGallery",
    "ProductForm",
    "ProductService",
    "QuoteService",
    "StorageService",
]
