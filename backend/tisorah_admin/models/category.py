"""Category model for the three-tier gift classification."""

import uuid
from typing import Optional

from sqlalchemy import ForeignKey, String, Text
from sqlalchemy.orm import Mapped, mapped_column

from tisorah_admin.models.base import Base, TimestampMixin, UUIDPrimaryKeyMixin


class Category(UUIDPrimaryKeyMixin, TimestampMixin, Base):
    """Product category with hierarchical support.

    Categories form a tree through ``parent_id``: a ``main`` category (tagged
    edible / non_edible) owns ``primary`` children which in turn own
    ``secondary`` children (e.g. 'Edible Gifts' > 'Chocolates' > 'Truffles').
    Level and type are stored as free strings; consumers drop rows whose
    values fall outside the known sets.
    """

    __tablename__ = "categories"

    # Basic info
    name: Mapped[str] = mapped_column(String(100), nullable=False)
    slug: Mapped[str] = mapped_column(String(120), unique=True, index=True, nullable=False, comment="URL-friendly identifier")
    description: Mapped[Optional[str]] = mapped_column(Text, nullable=True)
    image_url: Mapped[Optional[str]] = mapped_column(String(1000), nullable=True)

    # Hierarchy
    parent_id: Mapped[Optional[uuid.UUID]] = mapped_column(
        ForeignKey("categories.id", ondelete="SET NULL"),
        nullable=True,
        index=True,
        comment="Parent category ID; null for main categories",
    )
    level: Mapped[Optional[str]] = mapped_column(String(20), nullable=True, index=True, comment="main | primary | secondary")
    type: Mapped[Optional[str]] = mapped_column(String(20), nullable=True, comment="edible | non_edible (main level only)")

    def __repr__(self) -> str:
        return f"<Category(id={self.id}, slug='{self.slug}', level='{self.level}')>"
