"""Product model for the corporate gift catalog."""

import uuid
from decimal import Decimal
from typing import TYPE_CHECKING, Optional

from sqlalchemy import Boolean, ForeignKey, Integer, Numeric, String, Text
from sqlalchemy.orm import Mapped, mapped_column, relationship

from tisorah_admin.models.base import Base, JSONType, TimestampMixin, UUIDPrimaryKeyMixin

if TYPE_CHECKING:
    from tisorah_admin.models.category import Category


class Product(UUIDPrimaryKeyMixin, TimestampMixin, Base):
    """Gift product shown in the catalog.

    ``images`` is the ordered gallery. ``display_image`` and ``hover_image``
    are copies of two distinct gallery entries (or null) used for the listing
    card and its mouse-over state.
    """

    __tablename__ = "products"

    # Product info
    name: Mapped[str] = mapped_column(String(300), nullable=False, index=True)
    description: Mapped[Optional[str]] = mapped_column(Text, nullable=True)

    # Pricing: price is the legacy single price, kept equal to price_min
    price: Mapped[Decimal] = mapped_column(Numeric(12, 2), nullable=False, default=Decimal("0"))
    price_min: Mapped[Optional[Decimal]] = mapped_column(Numeric(12, 2), nullable=True)
    price_max: Mapped[Optional[Decimal]] = mapped_column(Numeric(12, 2), nullable=True)
    has_price_range: Mapped[Optional[bool]] = mapped_column(Boolean, nullable=True, default=True)

    # Media
    images: Mapped[Optional[list]] = mapped_column(JSONType, nullable=True)
    display_image: Mapped[Optional[str]] = mapped_column(String(1000), nullable=True)
    hover_image: Mapped[Optional[str]] = mapped_column(String(1000), nullable=True)

    # Categorization
    main_category: Mapped[Optional[uuid.UUID]] = mapped_column(
        ForeignKey("categories.id", ondelete="SET NULL"), nullable=True, index=True
    )
    primary_category: Mapped[Optional[uuid.UUID]] = mapped_column(
        ForeignKey("categories.id", ondelete="SET NULL"), nullable=True, index=True
    )
    secondary_category: Mapped[Optional[uuid.UUID]] = mapped_column(
        ForeignKey("categories.id", ondelete="SET NULL"), nullable=True, index=True
    )

    # Ordering details
    moq: Mapped[Optional[int]] = mapped_column(Integer, nullable=True, comment="Minimum order quantity")
    delivery: Mapped[Optional[str]] = mapped_column(String(200), nullable=True)
    featured: Mapped[Optional[bool]] = mapped_column(Boolean, nullable=True, default=False)
    customizable: Mapped[Optional[bool]] = mapped_column(Boolean, nullable=True, default=False)

    # Storefront feedback
    rating: Mapped[Optional[Decimal]] = mapped_column(Numeric(3, 2), nullable=True)
    reviews: Mapped[Optional[int]] = mapped_column(Integer, nullable=True)

    # Denormalized read views of the three category references
    main_category_data: Mapped[Optional["Category"]] = relationship(foreign_keys=[main_category], viewonly=True)
    primary_category_data: Mapped[Optional["Category"]] = relationship(foreign_keys=[primary_category], viewonly=True)
    secondary_category_data: Mapped[Optional["Category"]] = relationship(foreign_keys=[secondary_category], viewonly=True)

    def __repr__(self) -> str:
        return f"<Product(id={self.id}, name='{self.name[:50]}')>"
