"""Image gallery operations on stored products."""

from typing import Any, Optional, Sequence

import structlog
from sqlalchemy.ext.asyncio import AsyncSession

from tisorah_admin.core.exceptions import RoleConflictError
from tisorah_admin.models.product import Product
from tisorah_admin.services.image_roles import GalleryLocks, ProductGallery
from tisorah_admin.services.product_service import ProductService
from tisorah_admin.services.storage_service import StorageService, UploadedFile

logger = structlog.get_logger(__name__)

# Shared by every request so concurrent edits of one product queue up
gallery_locks = GalleryLocks()


class GalleryService:
    """Add, remove and re-role images of an existing product.

    Every operation loads the product, rebuilds its ProductGallery from the
    stored URLs, mutates it and writes images/display_image/hover_image back.
    """

    def __init__(
        self,
        db: AsyncSession,
        storage: StorageService,
        locks: Optional[GalleryLocks] = None,
    ):
        self.db = db
        self.storage = storage
        self.locks = locks or gallery_locks
        self.products = ProductService(db)
        self.logger = logger.bind(service="gallery_service")

    async def _load(self, product_id: Any) -> ProductGallery:
        product = await self.products.require_product(product_id)
        return ProductGallery.from_product(
            product.images,
            display_image=product.display_image,
            hover_image=product.hover_image,
            storage=self.storage,
        )

    async def _save(self, product_id: Any, gallery: ProductGallery) -> Product:
        return await self.products.update_product(product_id, gallery.as_fields(auto=False))

    async def add_images(self, product_id: Any, files: Sequence[UploadedFile]) -> Product:
        """Upload files and append them to the product's gallery.

        Raises:
            NotFoundError: if the product does not exist
            UploadError: if any upload fails (the gallery is left unchanged)
        """
        async with self.locks.hold(product_id):
            gallery = await self._load(product_id)
            urls = await gallery.add_images(files)
            self.logger.info("product_images_added", product_id=str(product_id), count=len(urls))
            return await self._save(product_id, gallery)

    async def remove_image(self, product_id: Any, url: str) -> Product:
        """Delete one image from storage and from the product's gallery.

        Removing a URL that is not in the gallery changes nothing.

        Raises:
            NotFoundError: if the product does not exist
            StorageError: if storage refuses the delete (the gallery is left unchanged)
        """
        async with self.locks.hold(product_id):
            gallery = await self._load(product_id)
            if not await gallery.remove_image(url):
                return await self.products.require_product(product_id)
            self.logger.info("product_image_removed", product_id=str(product_id), url=url)
            return await self._save(product_id, gallery)

    async def assign_roles(
        self,
        product_id: Any,
        display_index: Optional[int],
        hover_index: Optional[int],
    ) -> Product:
        """Replace both role assignments; None leaves a role unassigned.

        Raises:
            RoleConflictError: if both roles name the same index
            IndexError: if an index is outside the gallery
            NotFoundError: if the product does not exist
        """
        if display_index is not None and display_index == hover_index:
            raise RoleConflictError()

        async with self.locks.hold(product_id):
            gallery = await self._load(product_id)
            gallery.assign(display_index, hover_index)
            self.logger.info(
                "product_image_roles_assigned",
                product_id=str(product_id),
                display_index=display_index,
                hover_index=hover_index,
            )
            return await self._save(product_id, gallery)
