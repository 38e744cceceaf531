"""SQLAlchemy models for the admin backend.

All models are imported here so metadata.create_all sees every table.
"""

from tisorah_admin.models.base import Base, TimestampMixin, UUIDPrimaryKeyMixin
from tisorah_admin.models.category import Category
from tisorah_admin.models.product import Product
from tisorah_admin.models.quote_request import QuoteRequest

__all__ = [
    "Base",
    "TimestampMixin",
    "UUIDPrimaryKeyMixin",
    "Category",
    "Product",
    "QuoteRequest",
]
