"""Gallery and display/hover image role tracking for one product.

A product gallery is an ordered list of public image URLs. At most one entry
is the *display* image (listing thumbnail) and at most one other entry is the
*hover* image (shown on mouse-over). Roles are tracked by gallery index and
follow their image when earlier entries are removed.
"""

import asyncio
from contextlib import asynccontextmanager
from typing import TYPE_CHECKING, AsyncIterator, List, Optional, Sequence

import structlog

from tisorah_admin.core.exceptions import RoleConflictError, UploadError

if TYPE_CHECKING:
    from tisorah_admin.services.storage_service import StorageService, UploadedFile

logger = structlog.get_logger(__name__)


def sanitize_images(images) -> List[str]:
    """Keep only non-empty string URLs, preserving order."""
    if not isinstance(images, (list, tuple)):
        return []
    return [img for img in images if isinstance(img, str) and img]


class ProductGallery:
    """Ordered gallery plus display/hover role indices.

    Storage I/O (``add_images`` / ``remove_image``) goes through the given
    StorageService. Role operations are synchronous and never touch storage.
    """

    def __init__(
        self,
        storage: Optional["StorageService"] = None,
        images: Optional[Sequence[str]] = None,
        display_index: Optional[int] = None,
        hover_index: Optional[int] = None,
        folder: str = "products",
    ):
        self.storage = storage
        self.folder = folder
        self.gallery: List[str] = sanitize_images(list(images or []))
        self.display_index: Optional[int] = None
        self.hover_index: Optional[int] = None
        self.logger = logger.bind(service="product_gallery")

        if display_index is not None:
            self.set_display(display_index)
        if hover_index is not None:
            self.set_hover(hover_index)

    @classmethod
    def from_product(
        cls,
        images: Optional[Sequence[str]],
        display_image: Optional[str] = None,
        hover_image: Optional[str] = None,
        storage: Optional["StorageService"] = None,
    ) -> "ProductGallery":
        """Rebuild role indices from persisted URLs, matched by value.

        A stored role URL that is no longer in the gallery (or that collides
        with the other role) is left unassigned.
        """
        gallery = cls(storage=storage, images=images)
        if display_image and display_image in gallery.gallery:
            gallery.display_index = gallery.gallery.index(display_image)
        if hover_image and hover_image in gallery.gallery:
            index = gallery.gallery.index(hover_image)
            if index != gallery.display_index:
                gallery.hover_index = index
        return gallery

    # ------------------------------------------------------------------
    # Storage-backed gallery mutations
    # ------------------------------------------------------------------

    async def add_images(self, files: Sequence["UploadedFile"]) -> List[str]:
        """Upload a batch of files and append their URLs in upload order.

        All-or-nothing: if any upload in the batch fails, nothing is appended
        and UploadError propagates to the caller.

        Returns:
            The newly appended URLs
        """
        if not files:
            return []
        if self.storage is None:
            raise UploadError("No storage backend configured for gallery uploads")

        urls = await self.storage.upload_many(files, folder=self.folder)
        self.gallery.extend(urls)

        self.logger.info("gallery_images_added", count=len(urls), gallery_size=len(self.gallery))
        return urls

    async def remove_image(self, url: str) -> bool:
        """Delete an image from storage and drop it from the gallery.

        A URL that is not in the gallery is a no-op. If the removed entry held
        the display or hover role, that role becomes unassigned.

        Returns:
            True if the gallery changed, False otherwise
        """
        if url not in self.gallery:
            self.logger.debug("gallery_image_absent", url=url)
            return False

        if self.storage is not None:
            await self.storage.delete(url)

        index = self.gallery.index(url)
        del self.gallery[index]
        self.display_index = self._shift(self.display_index, index)
        self.hover_index = self._shift(self.hover_index, index)

        self.logger.info("gallery_image_removed", url=url, gallery_size=len(self.gallery))
        return True

    @staticmethod
    def _shift(role_index: Optional[int], removed: int) -> Optional[int]:
        if role_index is None or role_index == removed:
            return None
        if role_index > removed:
            return role_index - 1
        return role_index

    # ------------------------------------------------------------------
    # Role assignment
    # ------------------------------------------------------------------

    def _check_index(self, index: int) -> None:
        if not 0 <= index < len(self.gallery):
            raise IndexError(f"Gallery index {index} out of range (size {len(self.gallery)})")

    def set_display(self, index: int) -> None:
        """Mark gallery[index] as the display image.

        Raises:
            RoleConflictError: if that entry is already the hover image
            IndexError: if index is outside the gallery
        """
        self._check_index(index)
        if index == self.hover_index:
            raise RoleConflictError()
        self.display_index = index

    def set_hover(self, index: int) -> None:
        """Mark gallery[index] as the hover image.

        Raises:
            RoleConflictError: if that entry is already the display image
            IndexError: if index is outside the gallery
        """
        self._check_index(index)
        if index == self.display_index:
            raise RoleConflictError()
        self.hover_index = index

    def clear_display(self) -> None:
        self.display_index = None

    def clear_hover(self) -> None:
        self.hover_index = None

    def assign(self, display_index: Optional[int], hover_index: Optional[int]) -> None:
        """Set both roles at once, validating before mutating anything."""
        if display_index is not None:
            self._check_index(display_index)
        if hover_index is not None:
            self._check_index(hover_index)
        if display_index is not None and display_index == hover_index:
            raise RoleConflictError()
        self.display_index = display_index
        self.hover_index = hover_index

    def resolve_roles(self, auto: bool = True) -> dict:
        """Compute the persisted display_image / hover_image values.

        Explicit roles win. With ``auto`` a missing display falls back to the
        first image and a missing hover to the second, as long as the fallback
        differs from the resolved display image.
        """
        display = self.gallery[self.display_index] if self.display_index is not None else None
        hover = self.gallery[self.hover_index] if self.hover_index is not None else None

        if auto:
            if display is None and self.gallery:
                candidate = self.gallery[0]
                if candidate != hover:
                    display = candidate
            if hover is None and len(self.gallery) > 1:
                candidate = self.gallery[1]
                if candidate != display:
                    hover = candidate

        if display is not None and display == hover:
            hover = None

        return {"display_image": display, "hover_image": hover}

    def as_fields(self, auto: bool = True) -> dict:
        """images / display_image / hover_image as written to the product row."""
        return {"images": list(self.gallery) or None, **self.resolve_roles(auto=auto)}


class GalleryLocks:
    """One asyncio.Lock per product so gallery mutations never interleave.

    A product's lock lives only while someone holds or waits for it.
    """

    def __init__(self):
        self._locks: dict = {}
        self._users: dict = {}

    def for_product(self, product_id) -> asyncio.Lock:
        key = str(product_id)
        lock = self._locks.get(key)
        if lock is None:
            lock = asyncio.Lock()
            self._locks[key] = lock
        return lock

    @asynccontextmanager
    async def hold(self, product_id) -> AsyncIterator[None]:
        """Hold the product's lock, dropping it when the last user leaves."""
        key = str(product_id)
        lock = self.for_product(key)
        self._users[key] = self._users.get(key, 0) + 1
        try:
            async with lock:
                yield
        finally:
            self._users[key] -= 1
            if not self._users[key]:
                del self._users[key]
                self._locks.pop(key, None)

    def __len__(self) -> int:
        return len(self._locks)
