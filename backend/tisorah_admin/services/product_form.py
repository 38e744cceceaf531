"""Product create/edit form state.

A ProductForm is either NEW (nothing persisted yet) or EDIT (loaded from an
existing product). It combines the scalar fields, the cascading category
selection and the image gallery with its display/hover roles, and turns
them into the row written by ProductService.
"""

from decimal import Decimal, InvalidOperation
from enum import Enum
from typing import TYPE_CHECKING, Any, Iterable, Mapping, Optional

import structlog

from tisorah_admin.core.exceptions import ValidationError
from tisorah_admin.services.category_resolver import CategorySelection
from tisorah_admin.services.image_roles import ProductGallery

if TYPE_CHECKING:
    from tisorah_admin.models.product import Product
    from tisorah_admin.services.storage_service import StorageService

logger = structlog.get_logger(__name__)

SCALAR_FIELDS = (
    "name",
    "description",
    "price_min",
    "price_max",
    "moq",
    "delivery",
    "featured",
    "customizable",
)

CATEGORY_FIELDS = ("main_category", "primary_category", "secondary_category")


class DraftState(str, Enum):
    NEW = "new"
    EDIT = "edit"


def _to_decimal(field: str, value: Any) -> Optional[Decimal]:
    if value is None or value == "":
        return None
    try:
        return Decimal(str(value))
    except (InvalidOperation, ValueError):
        raise ValidationError(field, f"{field} must be a number")


def _id_or_none(value: Any) -> Optional[str]:
    return str(value) if value is not None else None


class ProductForm:
    """Form state for creating or editing one product."""

    def __init__(
        self,
        state: DraftState,
        selection: CategorySelection,
        gallery: ProductGallery,
        product_id: Optional[str] = None,
        fields: Optional[Mapping[str, Any]] = None,
        auto_roles: bool = True,
    ):
        self.state = state
        self.selection = selection
        self.gallery = gallery
        self.product_id = product_id
        self.auto_roles = auto_roles
        # Files whose upload already landed in the gallery
        self._uploaded: list = []
        self.fields: dict = {
            "name": "",
            "description": None,
            "price_min": None,
            "price_max": None,
            "moq": None,
            "delivery": None,
            "featured": False,
            "customizable": False,
        }
        if fields:
            self.update_fields(fields)

    @classmethod
    def new(
        cls,
        categories: Iterable[Any],
        storage: Optional["StorageService"] = None,
        fields: Optional[Mapping[str, Any]] = None,
        auto_roles: bool = True,
    ) -> "ProductForm":
        """Blank form; category fields in ``fields`` go through the cascade."""
        form = cls(
            DraftState.NEW,
            CategorySelection(categories=categories),
            ProductGallery(storage=storage),
            auto_roles=auto_roles,
        )
        if fields:
            form.apply_changes(fields)
        return form

    @classmethod
    def for_edit(
        cls,
        product: "Product",
        categories: Iterable[Any],
        storage: Optional["StorageService"] = None,
        auto_roles: bool = False,
    ) -> "ProductForm":
        """Form pre-filled from a stored product.

        Stored category ids are replayed through the cascade, so an id that
        is not under its stored parent comes back as None. Roles are matched
        back to gallery indices by URL. A missing price range falls back to
        the legacy single price.
        """
        selection = CategorySelection(categories=categories)
        selection.on_main_change(_id_or_none(product.main_category))
        selection.on_primary_change(_id_or_none(product.primary_category))
        selection.on_secondary_change(_id_or_none(product.secondary_category))
        gallery = ProductGallery.from_product(
            product.images,
            display_image=product.display_image,
            hover_image=product.hover_image,
            storage=storage,
        )
        price_min = product.price_min if product.price_min is not None else product.price
        price_max = product.price_max if product.price_max is not None else product.price

        return cls(
            DraftState.EDIT,
            selection,
            gallery,
            product_id=str(product.id),
            fields={
                "name": product.name,
                "description": product.description,
                "price_min": price_min,
                "price_max": price_max,
                "moq": product.moq,
                "delivery": product.delivery,
                "featured": bool(product.featured),
                "customizable": bool(product.customizable),
            },
            auto_roles=auto_roles,
        )

    @property
    def is_new(self) -> bool:
        return self.state is DraftState.NEW

    def pending_uploads(self, files: Iterable[Any]) -> list:
        """Files not yet uploaded by an earlier submit of this form."""
        return [f for f in files if not any(f is done for done in self._uploaded)]

    def mark_uploaded(self, files: Iterable[Any]) -> None:
        self._uploaded.extend(files)

    def update_fields(self, changes: Mapping[str, Any]) -> None:
        for key in SCALAR_FIELDS:
            if key in changes:
                self.fields[key] = changes[key]

    def apply_changes(self, changes: Mapping[str, Any]) -> None:
        """Apply scalar and category changes in main -> primary -> secondary order.

        A category value equal to the current one is not a change and
        triggers no cascade.
        """
        self.update_fields(changes)

        if "main_category" in changes and changes["main_category"] != self.selection.main_category:
            self.selection.on_main_change(changes["main_category"])
        if "primary_category" in changes and changes["primary_category"] != self.selection.primary_category:
            self.selection.on_primary_change(changes["primary_category"])
        if "secondary_category" in changes and changes["secondary_category"] != self.selection.secondary_category:
            self.selection.on_secondary_change(changes["secondary_category"])

    def validate(self) -> None:
        """Check required fields before anything is uploaded or written.

        Raises:
            ValidationError: on the first missing or inconsistent field
        """
        name = (self.fields.get("name") or "").strip()
        if not name:
            raise ValidationError("name", "Product name is required")

        price_min = _to_decimal("price_min", self.fields.get("price_min"))
        price_max = _to_decimal("price_max", self.fields.get("price_max"))
        if price_min is None or price_max is None:
            raise ValidationError("price_min" if price_min is None else "price_max", "Price range is required")
        if price_min > price_max:
            raise ValidationError("price_max", "Maximum price must not be lower than minimum price")

        if not self.selection.main_category:
            raise ValidationError("main_category", "Main category is required")

    def to_payload(self) -> dict:
        """Row values to persist; call validate() first."""
        price_min = _to_decimal("price_min", self.fields.get("price_min"))
        price_max = _to_decimal("price_max", self.fields.get("price_max"))
        moq = self.fields.get("moq")

        payload = {
            "name": (self.fields.get("name") or "").strip(),
            "description": self.fields.get("description") or None,
            "price": price_min if price_min is not None else Decimal("0"),
            "has_price_range": True,
            "price_min": price_min,
            "price_max": price_max,
            "moq": int(moq) if moq not in (None, "") else None,
            "delivery": self.fields.get("delivery") or None,
            "featured": bool(self.fields.get("featured")),
            "customizable": bool(self.fields.get("customizable")),
        }
        payload.update(self.selection.as_fields())
        payload.update(self.gallery.as_fields(auto=self.auto_roles))

        logger.debug(
            "product_payload_built",
            state=self.state.value,
            product_id=self.product_id,
            images=len(self.gallery.gallery),
        )
        return payload
