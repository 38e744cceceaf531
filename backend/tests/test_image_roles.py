"""Tests for gallery editing and display/hover role assignment."""

import asyncio
import random
from unittest.mock import AsyncMock

import pytest

from tisorah_admin.core.exceptions import RoleConflictError, StorageError, UploadError
from tisorah_admin.services.image_roles import GalleryLocks, ProductGallery, sanitize_images
from tisorah_admin.services.storage_service import StorageService, UploadedFile


def make_files(*names) -> list:
    return [UploadedFile(filename=n, content=b"\x89PNG" + n.encode()) for n in names]


# ============================================================================
# TESTS: ROLE RESOLUTION
# ============================================================================

class TestResolveRoles:
    """Tests for computing the persisted display/hover URLs."""

    async def test_auto_roles_follow_gallery_after_removal(self):
        """Auto fallback picks the first two images, also after a removal."""
        gallery = ProductGallery(images=["a.png", "b.png", "c.png"])

        assert gallery.resolve_roles() == {"display_image": "a.png", "hover_image": "b.png"}

        assert await gallery.remove_image("a.png") is True
        assert gallery.gallery == ["b.png", "c.png"]
        assert gallery.resolve_roles() == {"display_image": "b.png", "hover_image": "c.png"}

    def test_explicit_roles_win(self):
        gallery = ProductGallery(images=["a.png", "b.png", "c.png"], display_index=2, hover_index=0)

        assert gallery.resolve_roles() == {"display_image": "c.png", "hover_image": "a.png"}

    def test_auto_hover_skips_display_image(self):
        gallery = ProductGallery(images=["a.png", "b.png"], display_index=1)

        roles = gallery.resolve_roles()

        assert roles["display_image"] == "b.png"
        assert roles["hover_image"] is None

    def test_single_image_has_no_hover(self):
        gallery = ProductGallery(images=["a.png"])

        assert gallery.resolve_roles() == {"display_image": "a.png", "hover_image": None}

    def test_without_auto_unset_roles_stay_null(self):
        gallery = ProductGallery(images=["a.png", "b.png"])

        assert gallery.resolve_roles(auto=False) == {"display_image": None, "hover_image": None}

    def test_duplicate_urls_never_resolve_to_same_value(self):
        gallery = ProductGallery(images=["a.png", "a.png"])

        roles = gallery.resolve_roles()

        assert roles["display_image"] == "a.png"
        assert roles["hover_image"] is None

    def test_as_fields_empty_gallery(self):
        assert ProductGallery().as_fields() == {
            "images": None,
            "display_image": None,
            "hover_image": None,
        }

    def test_from_product_restores_indices_by_url(self):
        gallery = ProductGallery.from_product(
            ["a.png", "b.png", "c.png"], display_image="c.png", hover_image="a.png"
        )

        assert gallery.display_index == 2
        assert gallery.hover_index == 0

    def test_from_product_ignores_stale_or_colliding_roles(self):
        gallery = ProductGallery.from_product(
            ["a.png", "b.png"], display_image="gone.png", hover_image="a.png"
        )
        assert gallery.display_index is None
        assert gallery.hover_index == 0

        colliding = ProductGallery.from_product(["a.png"], display_image="a.png", hover_image="a.png")
        assert colliding.display_index == 0
        assert colliding.hover_index is None

    def test_sanitize_images_drops_non_strings(self):
        assert sanitize_images(["a.png", None, "", 3, "b.png"]) == ["a.png", "b.png"]
        assert sanitize_images(None) == []


# ============================================================================
# TESTS: ROLE ASSIGNMENT
# ============================================================================

class TestRoleAssignment:
    """Tests for setDisplay / setHover exclusivity."""

    def test_set_display_on_hover_index_is_rejected(self):
        gallery = ProductGallery(images=["a.png", "b.png"], hover_index=1)

        with pytest.raises(RoleConflictError, match="same image cannot be used for both roles"):
            gallery.set_display(1)

        assert gallery.display_index is None
        assert gallery.hover_index == 1

    def test_set_hover_on_display_index_is_rejected(self):
        gallery = ProductGallery(images=["a.png", "b.png"], display_index=0)

        with pytest.raises(RoleConflictError):
            gallery.set_hover(0)

        assert gallery.hover_index is None

    def test_out_of_range_index(self):
        gallery = ProductGallery(images=["a.png"])

        with pytest.raises(IndexError):
            gallery.set_display(3)

    def test_clear_roles_independently(self):
        gallery = ProductGallery(images=["a.png", "b.png"], display_index=0, hover_index=1)

        gallery.clear_display()
        assert (gallery.display_index, gallery.hover_index) == (None, 1)

        gallery.clear_hover()
        assert gallery.gallery == ["a.png", "b.png"]
        assert gallery.hover_index is None

    def test_assign_is_all_or_nothing(self):
        gallery = ProductGallery(images=["a.png", "b.png", "c.png"], display_index=0, hover_index=1)

        with pytest.raises(RoleConflictError):
            gallery.assign(2, 2)
        with pytest.raises(IndexError):
            gallery.assign(2, 9)

        assert (gallery.display_index, gallery.hover_index) == (0, 1)

        gallery.assign(1, 0)
        assert (gallery.display_index, gallery.hover_index) == (1, 0)

    def test_roles_never_collide_under_random_calls(self):
        rng = random.Random(99)
        gallery = ProductGallery(images=[f"{i}.png" for i in range(4)])

        for _ in range(300):
            op = rng.choice([gallery.set_display, gallery.set_hover])
            before = (gallery.display_index, gallery.hover_index)
            try:
                op(rng.randrange(4))
            except RoleConflictError:
                assert (gallery.display_index, gallery.hover_index) == before
            if gallery.display_index is not None:
                assert gallery.display_index != gallery.hover_index


# ============================================================================
# TESTS: STORAGE-BACKED MUTATIONS
# ============================================================================

class TestGalleryStorage:
    """Tests for uploads and deletes through the storage collaborator."""

    async def test_add_images_appends_in_upload_order(self, mock_storage):
        gallery = ProductGallery(storage=mock_storage, images=["old.png"])

        urls = await gallery.add_images(make_files("x.png", "y.png"))

        assert len(urls) == 2
        assert gallery.gallery == ["old.png", *urls]
        assert urls[0].endswith("/x.png")
        mock_storage.upload_many.assert_awaited_once()

    async def test_failed_batch_appends_nothing(self):
        storage = AsyncMock(spec=StorageService)
        storage.upload_many.side_effect = UploadError("Failed to upload y.png")
        gallery = ProductGallery(storage=storage, images=["old.png"], display_index=0)

        with pytest.raises(UploadError):
            await gallery.add_images(make_files("x.png", "y.png"))

        assert gallery.gallery == ["old.png"]
        assert gallery.display_index == 0

    async def test_add_without_storage_fails(self):
        with pytest.raises(UploadError):
            await ProductGallery().add_images(make_files("x.png"))

    async def test_remove_absent_url_is_noop(self, mock_storage):
        gallery = ProductGallery(storage=mock_storage, images=["a.png", "b.png"])

        assert await gallery.remove_image("nope.png") is False
        assert await gallery.remove_image("nope.png") is False

        assert gallery.gallery == ["a.png", "b.png"]
        mock_storage.delete.assert_not_awaited()

    async def test_remove_role_image_unassigns_role(self, mock_storage):
        gallery = ProductGallery(storage=mock_storage, images=["a.png", "b.png", "c.png"], display_index=1, hover_index=2)

        await gallery.remove_image("b.png")

        assert gallery.display_index is None
        # hover followed its image from index 2 to index 1
        assert gallery.hover_index == 1
        assert gallery.gallery[gallery.hover_index] == "c.png"
        mock_storage.delete.assert_awaited_once_with("b.png")

    async def test_storage_failure_leaves_gallery_unchanged(self):
        storage = AsyncMock(spec=StorageService)
        storage.delete.side_effect = StorageError("Failed to delete")
        gallery = ProductGallery(storage=storage, images=["a.png", "b.png"], display_index=0)

        with pytest.raises(StorageError):
            await gallery.remove_image("a.png")

        assert gallery.gallery == ["a.png", "b.png"]
        assert gallery.display_index == 0


# ============================================================================
# TESTS: PER-PRODUCT LOCKS
# ============================================================================

class TestGalleryLocks:
    """Tests for per-product serialisation."""

    def test_same_product_same_lock(self):
        locks = GalleryLocks()

        assert locks.for_product("p1") is locks.for_product("p1")
        assert locks.for_product("p1") is not locks.for_product("p2")

    async def test_mutations_for_one_product_do_not_interleave(self):
        locks = GalleryLocks()
        events = []

        async def mutate(name):
            async with locks.hold("p1"):
                events.append(f"{name}:start")
                await asyncio.sleep(0.01)
                events.append(f"{name}:end")

        await asyncio.gather(mutate("a"), mutate("b"))

        assert events == ["a:start", "a:end", "b:start", "b:end"]

    async def test_lock_dropped_after_last_holder(self):
        locks = GalleryLocks()

        async with locks.hold("p1"):
            assert len(locks) == 1

        assert len(locks) == 0

    async def test_lock_kept_while_someone_waits(self):
        locks = GalleryLocks()
        seen = []

        async def edit(name):
            async with locks.hold("p1"):
                seen.append((name, len(locks)))
                await asyncio.sleep(0.01)

        await asyncio.gather(edit("a"), edit("b"), edit("c"))

        assert seen == [("a", 1), ("b", 1), ("c", 1)]
        assert len(locks) == 0

    async def test_lock_dropped_when_body_raises(self):
        locks = GalleryLocks()

        with pytest.raises(RuntimeError):
            async with locks.hold("p1"):
                raise RuntimeError("boom")

        assert len(locks) == 0
