"""Quote request service for the dashboard."""

from datetime import datetime, timezone
from typing import Any, List, Optional, Tuple

import structlog
from sqlalchemy import func, or_, select
from sqlalchemy.exc import SQLAlchemyError
from sqlalchemy.ext.asyncio import AsyncSession

from tisorah_admin.core.exceptions import NotFoundError, PersistenceError
from tisorah_admin.models.product import Product
from tisorah_admin.models.quote_request import QuoteRequest
from tisorah_admin.services.product_service import ProductService, to_uuid

logger = structlog.get_logger(__name__)

# Quote statuses that still need a response from the team
PENDING_STATUSES = ("pending", "")


def shortlist_entries(shortlisted: Any) -> List[Tuple[str, Optional[int]]]:
    """Normalise a shortlist into (product_id, quantity) pairs.

    Items may be bare id strings or objects with ``id`` and an optional
    ``quantity``; anything else is skipped.
    """
    entries = []
    for item in shortlisted or []:
        if isinstance(item, str) and item:
            entries.append((item, None))
        elif isinstance(item, dict) and item.get("id"):
            quantity = item.get("quantity")
            entries.append((str(item["id"]), int(quantity) if isinstance(quantity, (int, float)) else None))
    return entries


class QuoteService:
    """Listing and status handling for storefront quote requests."""

    def __init__(self, db: AsyncSession):
        self.db = db
        self.logger = logger.bind(service="quote_service")

    async def list_quotes(
        self,
        status: Optional[str] = None,
        limit: Optional[int] = None,
    ) -> List[QuoteRequest]:
        """Quote requests newest first, optionally filtered by status."""
        query = select(QuoteRequest).order_by(QuoteRequest.created_at.desc())
        if status:
            query = query.where(QuoteRequest.status == status)
        if limit:
            query = query.limit(limit)

        result = await self.db.execute(query)
        quotes = list(result.scalars().all())
        self.logger.info("quotes_fetched", count=len(quotes), status=status)
        return quotes

    async def get_quote(self, quote_id: Any) -> QuoteRequest:
        """Get one quote request.

        Raises:
            NotFoundError: if it does not exist
        """
        result = await self.db.execute(
            select(QuoteRequest)
            .where(QuoteRequest.id == to_uuid("quote_id", quote_id))
            .execution_options(populate_existing=True)
        )
        quote = result.scalar_one_or_none()
        if quote is None:
            raise NotFoundError("QuoteRequest", str(quote_id))
        return quote

    async def get_shortlisted_products(self, quote: QuoteRequest) -> List[Tuple[Product, Optional[int]]]:
        """Resolve the shortlist against the catalog, keeping shortlist order.

        Products that no longer exist are left out.
        """
        entries = shortlist_entries(quote.shortlisted_products)
        if not entries:
            return []

        products = await ProductService(self.db).get_products_by_ids(pid for pid, _ in entries)
        by_id = {str(p.id): p for p in products}

        resolved = [(by_id[pid], qty) for pid, qty in entries if pid in by_id]
        if len(resolved) < len(entries):
            self.logger.warning(
                "shortlisted_products_missing",
                quote_id=str(quote.id),
                missing=len(entries) - len(resolved),
            )
        return resolved

    async def update_status(self, quote_id: Any, status: str) -> QuoteRequest:
        """Set a quote's status and stamp updated_at.

        Raises:
            NotFoundError: if the quote does not exist
            PersistenceError: if the update fails
        """
        quote = await self.get_quote(quote_id)
        previous = quote.status
        quote.status = status
        quote.updated_at = datetime.now(timezone.utc)

        try:
            await self.db.commit()
        except SQLAlchemyError as e:
            await self.db.rollback()
            self.logger.error("quote_status_update_failed", quote_id=str(quote_id), error=str(e), exc_info=True)
            raise PersistenceError("update quote status", str(e)) from e

        self.logger.info("quote_status_updated", quote_id=str(quote_id), previous=previous, status=status)
        return await self.get_quote(quote_id)

    async def count_quotes(self) -> int:
        result = await self.db.execute(select(func.count(QuoteRequest.id)))
        return result.scalar() or 0

    async def count_pending(self) -> int:
        """Quotes still pending; a missing or empty status counts as pending."""
        result = await self.db.execute(
            select(func.count(QuoteRequest.id)).where(
                or_(
                    QuoteRequest.status.in_(PENDING_STATUSES),
                    QuoteRequest.status.is_(None),
                )
            )
        )
        return result.scalar() or 0
