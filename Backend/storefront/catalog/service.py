"""
Catalog Service

The entry points consumed by the storefront UI layer:

    fetch_featured(tenant, search, category)            -> {"products": [...]}
    fetch_regular(tenant, page, search, category)       -> {"products": [...], "hasMore": bool}
    fetch_all(tenant, page, search, category)           -> legacy, featured + regular, never raises
    fetch_regular_up_to_page(tenant, max_page, ...)     -> infinite-scroll reload
    list_categories(tenant)                             -> [{"id", "name"}]
    invalidate(tenant=None)                             -> mutation hook

Flow: build query -> consult cache -> on miss fetch -> cache -> return.

Error discipline: fetch_featured / fetch_regular / fetch_regular_up_to_page
propagate ValidationError and CatalogFetchError so the UI can tell "no items"
from "fetch failed" and offer a retry. fetch_all is kept for older templates
and degrades every failure to an empty page.
"""

import logging
from typing import Any, Optional

from .cache import ResultCache, get_catalog_cache
from .errors import CatalogFetchError
from .fetcher import CatalogFetcher
from .types import ALL_CATEGORIES, CatalogItem, CatalogQuery

logger = logging.getLogger(__name__)


def _products(items) -> list[dict[str, Any]]:
    # Fresh dicts per call; cached CatalogItems are frozen and never handed out mutable
    return [item.to_dict() for item in items]


class CatalogService:
    """
    Cache-first catalog reads for one store.

    Usage:
        service = CatalogService(CatalogFetcher.from_settings(store, settings))
        featured = await service.fetch_featured("demo-cafe")
        page = await service.fetch_regular("demo-cafe", page=2, search_term="tea")
    """

    def __init__(
        self,
        fetcher: CatalogFetcher,
        cache: Optional[ResultCache] = None,
    ):
        self.fetcher = fetcher
        self.cache = cache if cache is not None else get_catalog_cache()

    def _query(self, tenant_id, search_term, category, page=1, promoted_only=False) -> CatalogQuery:
        return CatalogQuery.create(
            tenant_id,
            search_term=search_term,
            category=category,
            page=page,
            promoted_only=promoted_only,
            sentinel=self.fetcher.all_categories_sentinel,
        ).validate()

    # ────────────────────────────────────────────────────────────
    # Split entry points (propagate errors)
    # ────────────────────────────────────────────────────────────

    async def fetch_featured(
        self,
        tenant_id: str,
        search_term: Optional[str] = "",
        category: Optional[str] = ALL_CATEGORIES,
    ) -> dict[str, Any]:
        query = self._query(tenant_id, search_term, category, promoted_only=True)

        cached = self.cache.get_promoted(query.tenant_id, query.search_term, query.category)
        if cached is not None:
            logger.debug(f"Featured cache hit: {query.tenant_id} search={query.search_term!r} category={query.category!r}")
            return {"products": _products(cached.items)}

        generation = self.cache.generation(query.tenant_id)
        result = await self.fetcher.fetch_promoted(query)
        self.cache.set_promoted(
            query.tenant_id,
            query.search_term,
            query.category,
            result.items,
            generation=generation,
        )
        return {"products": _products(result.items)}

    async def fetch_regular(
        self,
        tenant_id: str,
        page: int = 1,
        search_term: Optional[str] = "",
        category: Optional[str] = ALL_CATEGORIES,
    ) -> dict[str, Any]:
        query = self._query(tenant_id, search_term, category, page=page)
        items, has_more = await self._load_page(query)
        return {"products": _products(items), "hasMore": has_more}

    async def fetch_regular_up_to_page(
        self,
        tenant_id: str,
        max_page: int,
        search_term: Optional[str] = "",
        category: Optional[str] = ALL_CATEGORIES,
    ) -> dict[str, Any]:
        """
        Return pages 1..max_page as one list for an infinite-scroll reload.

        The cached prefix is reused; only pages after it are fetched, and
        fetching stops early once a page reports no more items.
        """
        first = self._query(tenant_id, search_term, category, page=max_page)

        items: list[CatalogItem] = []
        has_more = True
        next_page = 1

        assembled = self.cache.get_assembled_up_to_page(
            first.tenant_id, first.search_term, first.category, max_page
        )
        if assembled is not None:
            items.extend(assembled.items)
            has_more = assembled.has_more
            next_page = assembled.last_cached_page + 1
            logger.debug(f"Reused {assembled.last_cached_page} cached page(s) for {first.tenant_id}")

        last_page = next_page - 1
        while has_more and next_page <= max_page:
            query = self._query(first.tenant_id, first.search_term, first.category, page=next_page)
            page_items, has_more = await self._load_page(query)
            items.extend(page_items)
            last_page = next_page
            next_page += 1

        return {"products": _products(items), "hasMore": has_more, "lastPage": last_page}

    async def _load_page(
        self,
        query: CatalogQuery,
        include_promoted: bool = False,
    ) -> tuple[tuple[CatalogItem, ...], bool]:
        if include_promoted:
            get_page, set_page = self.cache.get_combined_page, self.cache.set_combined_page
            fetch_page = self.fetcher.fetch_combined
        else:
            get_page, set_page = self.cache.get_standard_page, self.cache.set_standard_page
            fetch_page = self.fetcher.fetch_standard

        cached = get_page(
            query.tenant_id, query.search_term, query.category, query.page
        )
        if cached is not None:
            logger.debug(f"Page cache hit: {query.tenant_id} page={query.page}")
            return cached.items, cached.has_more

        generation = self.cache.generation(query.tenant_id)
        result = await fetch_page(query)
        set_page(
            query.tenant_id,
            query.search_term,
            query.category,
            query.page,
            result.items,
            result.has_more,
            generation=generation,
        )
        return result.items, result.has_more

    async def list_categories(self, tenant_id: str) -> list[dict[str, Any]]:
        return await self.fetcher.fetch_categories(tenant_id)

    # ────────────────────────────────────────────────────────────
    # Legacy combined entry point (swallows errors)
    # ────────────────────────────────────────────────────────────

    async def fetch_all(
        self,
        tenant_id: str,
        page: int = 1,
        search_term: Optional[str] = "",
        category: Optional[str] = ALL_CATEGORIES,
    ) -> dict[str, Any]:
        """
        Older single-call entry point. Never raises.

        Pages run over every available item, featured ones included, newest
        first. Any failure, including invalid input, is logged and returned
        as an empty page, so callers cannot distinguish it from an empty
        catalog.
        """
        try:
            query = self._query(tenant_id, search_term, category, page=page)
            items, has_more = await self._load_page(query, include_promoted=True)
            return {"products": _products(items), "hasMore": has_more}
        except CatalogFetchError:
            logger.exception(f"Error fetching products for {tenant_id!r} page={page}")
        except Exception as e:
            logger.error(f"Error fetching products for {tenant_id!r} page={page}: {type(e).__name__}: {e}")
        return {"products": [], "hasMore": False}

    # ────────────────────────────────────────────────────────────
    # Invalidation
    # ────────────────────────────────────────────────────────────

    def invalidate(self, tenant_id: Optional[str] = None) -> int:
        return self.cache.invalidate(tenant_id)
