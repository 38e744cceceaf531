"""Quote request submitted from the storefront."""

from typing import Optional

from sqlalchemy import Boolean, String, Text
from sqlalchemy.orm import Mapped, mapped_column

from tisorah_admin.models.base import Base, JSONType, TimestampMixin, UUIDPrimaryKeyMixin


class QuoteRequest(UUIDPrimaryKeyMixin, TimestampMixin, Base):
    """Customer request for a corporate gifting quote.

    ``shortlisted_products`` is a JSON list whose items are either bare
    product id strings or objects carrying ``id`` and an optional ``quantity``.
    """

    __tablename__ = "quote_requests"

    # Contact
    name: Mapped[str] = mapped_column(String(200), nullable=False)
    email: Mapped[str] = mapped_column(String(320), nullable=False)
    phone: Mapped[Optional[str]] = mapped_column(String(50), nullable=True)
    company: Mapped[str] = mapped_column(String(200), nullable=False)
    message: Mapped[Optional[str]] = mapped_column(Text, nullable=True)

    # Request details
    budget: Mapped[Optional[str]] = mapped_column(String(100), nullable=True)
    timeline: Mapped[Optional[str]] = mapped_column(String(100), nullable=True)
    event_type: Mapped[Optional[str]] = mapped_column(String(100), nullable=True)
    customization: Mapped[Optional[bool]] = mapped_column(Boolean, nullable=True)
    branding: Mapped[Optional[bool]] = mapped_column(Boolean, nullable=True)
    packaging: Mapped[Optional[bool]] = mapped_column(Boolean, nullable=True)

    shortlisted_products: Mapped[list] = mapped_column(JSONType, nullable=False, default=list)
    status: Mapped[Optional[str]] = mapped_column(String(30), nullable=True, default="pending", index=True)

    def __repr__(self) -> str:
        return f"<QuoteRequest(id={self.id}, company='{self.company}', status='{self.status}')>"
