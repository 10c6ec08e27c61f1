"""
Catalog Fetcher

Runs a catalog query against the backing store:

1. Validate the query (ValidationError, never retried)
2. Build the predicate tree
3. Call the store under a deadline (short for promoted, longer for pages)
4. Retry retryable failures up to the attempt bound
5. Validate and repair every returned record
6. Wrap terminal failures in CatalogFetchError with tenant/page context

This layer never turns a failure into an empty result; that is the
caller's decision (see CatalogService.fetch_all).
"""

import logging
from dataclasses import replace
from typing import Any, Awaitable, Callable, Optional, TypeVar

from .errors import CatalogFetchError, ValidationError
from .predicates import build_predicate, describe
from .records import DEFAULT_CATEGORY_LABEL, PLACEHOLDER_IMAGE, repair_records
from .retry import RetryPolicy, with_retry, with_timeout
from .store import CatalogStore
from .types import ALL_CATEGORIES, CatalogQuery, FeaturedResult, PagedResult

logger = logging.getLogger(__name__)

T = TypeVar("T")


class CatalogFetcher:
    """
    Executes promoted and paginated catalog queries with timeout and retry.

    Usage:
        fetcher = CatalogFetcher.from_settings(store, get_settings())
        featured = await fetcher.fetch_promoted(CatalogQuery.create("demo-cafe"))
        page = await fetcher.fetch_standard(CatalogQuery.create("demo-cafe", page=2))
    """

    def __init__(
        self,
        store: CatalogStore,
        retry_policy: Optional[RetryPolicy] = None,
        *,
        page_size: int = 10,
        promoted_timeout: float = 5.0,
        standard_timeout: float = 10.0,
        default_category: str = DEFAULT_CATEGORY_LABEL,
        placeholder_image: str = PLACEHOLDER_IMAGE,
        all_categories_sentinel: str = ALL_CATEGORIES,
    ):
        if page_size < 1:
            raise ValueError(f"page_size must be >= 1, got {page_size}")
        self.store = store
        self.retry_policy = retry_policy or RetryPolicy()
        self.page_size = page_size
        self.promoted_timeout = promoted_timeout
        self.standard_timeout = standard_timeout
        self.default_category = default_category
        self.placeholder_image = placeholder_image
        self.all_categories_sentinel = all_categories_sentinel

    @classmethod
    def from_settings(cls, store: CatalogStore, settings: Any) -> "CatalogFetcher":
        return cls(
            store,
            RetryPolicy.from_settings(settings),
            page_size=settings.catalog_page_size,
            promoted_timeout=settings.catalog_promoted_timeout_seconds,
            standard_timeout=settings.catalog_standard_timeout_seconds,
            default_category=settings.default_category_label,
            placeholder_image=settings.placeholder_image,
            all_categories_sentinel=settings.all_categories_sentinel,
        )

    async def fetch_promoted(self, query: CatalogQuery) -> FeaturedResult:
        """Fetch every promoted item matching the query, unpaginated."""
        # page does not apply here, so validate as a promoted query
        replace(query, promoted_only=True).validate()
        predicate = build_predicate(
            query.tenant_id,
            query.search_term,
            query.category,
            promoted_only=True,
            sentinel=self.all_categories_sentinel,
        )
        logger.debug(f"Fetching promoted items for {query.tenant_id}: {describe(predicate)}")

        records = await self._run(
            lambda: with_timeout(
                self.store.find_items(predicate, offset=0, limit=None),
                self.promoted_timeout,
                {"tenant_id": query.tenant_id},
            ),
            query,
            page=None,
        )
        items = self._repair(records)
        return FeaturedResult(items=tuple(items))

    async def fetch_standard(self, query: CatalogQuery) -> PagedResult:
        """
        Fetch one page of non-promoted items.

        has_more is True iff the page came back full after dropping malformed
        records, so it can under-report when bad rows sit at a page boundary.
        """
        return await self._fetch_page(query, promoted_only=False)

    async def fetch_combined(self, query: CatalogQuery) -> PagedResult:
        """One page of every available item, promoted or not, for the legacy listing."""
        return await self._fetch_page(query, promoted_only=None)

    async def _fetch_page(self, query: CatalogQuery, promoted_only: Optional[bool]) -> PagedResult:
        query.validate()
        predicate = build_predicate(
            query.tenant_id,
            query.search_term,
            query.category,
            promoted_only=promoted_only,
            sentinel=self.all_categories_sentinel,
        )
        offset = (query.page - 1) * self.page_size
        logger.debug(
            f"Fetching page {query.page} for {query.tenant_id} (offset={offset}): {describe(predicate)}"
        )

        records = await self._run(
            lambda: with_timeout(
                self.store.find_items(predicate, offset=offset, limit=self.page_size),
                self.standard_timeout,
                {"tenant_id": query.tenant_id, "page": query.page},
            ),
            query,
            page=query.page,
        )
        items = self._repair(records)
        return PagedResult(
            items=tuple(items),
            has_more=len(items) == self.page_size,
            page=query.page,
        )

    async def fetch_categories(self, tenant_id: str) -> list[dict[str, Any]]:
        """List a tenant's categories, skipping unnamed rows."""
        query = CatalogQuery.create(tenant_id).validate()
        rows = await self._run(
            lambda: with_timeout(
                self.store.list_categories(query.tenant_id),
                self.standard_timeout,
                {"tenant_id": query.tenant_id},
            ),
            query,
            page=None,
        )
        return [
            {"id": row.get("id"), "name": str(row["name"]).strip()}
            for row in rows
            if row.get("name") and str(row["name"]).strip()
        ]

    def _repair(self, records):
        return repair_records(
            records,
            default_category=self.default_category,
            placeholder_image=self.placeholder_image,
        )

    async def _run(
        self,
        operation: Callable[[], Awaitable[T]],
        query: CatalogQuery,
        page: Optional[int],
    ) -> T:
        attempts = 0

        async def attempt() -> T:
            nonlocal attempts
            attempts += 1
            return await operation()

        try:
            return await with_retry(
                attempt,
                self.retry_policy,
                label=f"Catalog fetch for {query.tenant_id}",
            )
        except ValidationError:
            raise
        except Exception as e:
            where = f"tenant={query.tenant_id}" + (f" page={page}" if page is not None else "")
            raise CatalogFetchError(
                f"Catalog fetch failed ({where}) after {attempts} attempt(s): {type(e).__name__}: {e}",
                tenant_id=query.tenant_id,
                page=page,
                search_term=query.search_term,
                attempts=attempts,
            ) from e
