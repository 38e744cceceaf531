"""Dashboard counters."""

import structlog
from sqlalchemy.exc import SQLAlchemyError
from sqlalchemy.ext.asyncio import AsyncSession

from tisorah_admin.core.exceptions import PersistenceError
from tisorah_admin.schemas.health import DashboardStats
from tisorah_admin.services.category_service import CategoryService
from tisorah_admin.services.product_service import ProductService
from tisorah_admin.services.quote_service import QuoteService

logger = structlog.get_logger(__name__)


async def get_dashboard_stats(db: AsyncSession) -> DashboardStats:
    """Totals for products, categories and quotes plus the pending quote count.

    Raises:
        PersistenceError: if any count query fails
    """
    quotes = QuoteService(db)
    try:
        stats = DashboardStats(
            total_products=await ProductService(db).count_products(),
            total_categories=await CategoryService(db).count_categories(),
            total_quotes=await quotes.count_quotes(),
            pending_quotes=await quotes.count_pending(),
        )
    except SQLAlchemyError as e:
        logger.error("dashboard_stats_failed", error=str(e), exc_info=True)
        raise PersistenceError("load dashboard stats", str(e)) from e

    logger.info("dashboard_stats_computed", **stats.model_dump())
    return stats
