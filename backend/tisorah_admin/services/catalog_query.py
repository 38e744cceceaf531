"""Incremental product catalog retrieval for infinite-scroll listings.

CatalogQuery accumulates fixed-size pages of products into one list. Any
filter change restarts from page 1 after a debounce. Only the response to
the most recently requested filter set is ever applied: every first-page
load bumps a generation counter and responses from older generations are
dropped when they arrive.

Fetch failures never raise out of this module. They are logged, recorded on
``error`` and leave ``items`` / ``page`` exactly as they were so the caller
can retry the same call.
"""

from dataclasses import dataclass, field, replace
from enum import Enum
from typing import Any, Awaitable, Callable, List, Optional

import structlog

from tisorah_admin.config import settings
from tisorah_admin.services.debounce import Debouncer

logger = structlog.get_logger(__name__)


class SortField(str, Enum):
    CREATED_AT = "created_at"
    NAME = "name"
    PRICE = "price"


class SortDirection(str, Enum):
    ASC = "asc"
    DESC = "desc"


@dataclass(frozen=True)
class CatalogFilters:
    """Search text, main-category equality and sort order."""

    search: str = ""
    category: Optional[str] = None
    sort_field: SortField = SortField.CREATED_AT
    sort_direction: SortDirection = SortDirection.DESC

    def __post_init__(self):
        # Frozen dataclass: normalise through object.__setattr__
        object.__setattr__(self, "search", (self.search or "").strip())
        object.__setattr__(self, "category", self.category or None)
        object.__setattr__(self, "sort_field", SortField(self.sort_field))
        object.__setattr__(self, "sort_direction", SortDirection(self.sort_direction))

    def with_changes(self, **changes: Any) -> "CatalogFilters":
        return replace(self, **changes)


@dataclass
class CatalogPage:
    """One page of records plus the total matching row count."""

    records: List[Any] = field(default_factory=list)
    total_count: int = 0


PageFetcher = Callable[[CatalogFilters, int, int], Awaitable[CatalogPage]]


def has_more_rows(total_count: int, page: int, page_size: int) -> bool:
    return total_count > page * page_size


class CatalogQuery:
    """Paginated, filterable product list for one listing view.

    Args:
        fetch_page: ``async (filters, page, page_size) -> CatalogPage``
        page_size: Rows per page (defaults to settings.CATALOG_PAGE_SIZE)
        debounce_seconds: Quiet period before a filter change reloads
    """

    def __init__(
        self,
        fetch_page: PageFetcher,
        page_size: Optional[int] = None,
        debounce_seconds: Optional[float] = None,
        filters: Optional[CatalogFilters] = None,
    ):
        self.fetch_page = fetch_page
        self.page_size = page_size or settings.CATALOG_PAGE_SIZE
        if debounce_seconds is None:
            debounce_seconds = settings.CATALOG_DEBOUNCE_SECONDS

        self.items: List[Any] = []
        self.page: int = 1
        self.has_more: bool = False
        self.total_count: int = 0
        # Filters the current items were loaded with
        self.filters: CatalogFilters = filters or CatalogFilters()
        self.loading: bool = False
        self.error: Optional[str] = None

        self._requested_filters: CatalogFilters = self.filters
        self._generation = 0
        self._sentinel_visible = False
        self._debouncer = Debouncer(debounce_seconds)
        self.logger = logger.bind(service="catalog_query")

    async def load_first_page(self, filters: Optional[CatalogFilters] = None) -> bool:
        """Replace items with page 1 for the given (or last requested) filters.

        Returns:
            True if the result was applied, False on failure or if a newer
            request superseded this one
        """
        if filters is None:
            filters = self._requested_filters
        self._requested_filters = filters

        self._generation += 1
        generation = self._generation
        self.loading = True
        self.error = None

        try:
            result = await self.fetch_page(filters, 1, self.page_size)
        except Exception as e:
            if generation == self._generation:
                self.error = str(e) or e.__class__.__name__
            self.logger.error("catalog_page_failed", page=1, error=str(e), exc_info=True)
            return False
        finally:
            if generation == self._generation:
                self.loading = False

        if generation != self._generation:
            self.logger.debug("catalog_stale_response_discarded", page=1, generation=generation)
            return False

        self.items = list(result.records)
        self.page = 1
        self.filters = filters
        self.total_count = result.total_count
        self.has_more = has_more_rows(result.total_count, 1, self.page_size)

        self.logger.info(
            "catalog_page_loaded",
            page=1,
            count=len(result.records),
            total=result.total_count,
            has_more=self.has_more,
        )
        return True

    async def load_next_page(self) -> bool:
        """Append the next page; a no-op without more rows or while loading.

        Returns:
            True if a page was appended
        """
        if not self.has_more or self.loading:
            return False

        generation = self._generation
        next_page = self.page + 1
        self.loading = True
        self.error = None

        try:
            result = await self.fetch_page(self.filters, next_page, self.page_size)
        except Exception as e:
            if generation == self._generation:
                self.error = str(e) or e.__class__.__name__
            self.logger.error("catalog_page_failed", page=next_page, error=str(e), exc_info=True)
            return False
        finally:
            if generation == self._generation:
                self.loading = False

        if generation != self._generation:
            self.logger.debug("catalog_stale_response_discarded", page=next_page, generation=generation)
            return False

        self.items.extend(result.records)
        self.page = next_page
        self.total_count = result.total_count
        self.has_more = has_more_rows(result.total_count, next_page, self.page_size)

        self.logger.info(
            "catalog_page_loaded",
            page=next_page,
            count=len(result.records),
            total=result.total_count,
            has_more=self.has_more,
        )
        return True

    def on_filter_change(self, filters: CatalogFilters):
        """Debounced restart from page 1; supersedes any pending change."""
        self._requested_filters = filters
        return self._debouncer.call(self.load_first_page, filters)

    async def settle(self) -> None:
        """Wait until pending debounced loads have finished."""
        await self._debouncer.wait()

    def cancel_pending(self) -> None:
        self._debouncer.cancel()

    async def on_sentinel_visibility(self, visible: bool) -> bool:
        """Feed the end-of-list sentinel's visibility.

        Loads the next page once per hidden -> visible transition.
        """
        was_visible = self._sentinel_visible
        self._sentinel_visible = visible
        if visible and not was_visible and not self.loading and self.has_more:
            return await self.load_next_page()
        return False
