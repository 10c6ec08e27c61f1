"""
Result Cache

Process-local, TTL-bounded cache for catalog query results.

Two sub-caches are kept:
    featured  (tenant, search, category)        -> FeaturedResult
    regular   (tenant, search, category, page)  -> PagedResult

Combined pages (promoted and standard items together, for the legacy
listing) share the regular sub-cache under keys with include_promoted set,
so they never collide with standard pages.

Rules:
- Reads treat entries at least TTL old as absent and drop them.
- Each sub-cache holds at most max_entries; after a write, expired entries
  are purged and the oldest stored_at entries evicted until within bound.
- Search terms are trimmed and lowercased in keys; categories match exactly.
- invalidate(tenant) drops one tenant's entries; invalidate() drops all.

Every invalidation bumps a generation counter. Writers that captured a
generation before an await pass it back to set_*; if an invalidation ran in
between, the write is dropped instead of resurrecting stale data.

A miss is None, never an exception.

Usage:
    cache = get_catalog_cache()
    cached = cache.get_standard_page("demo-cafe", "", "All", 1)
    if cached is None:
        ...
"""

import logging
import threading
import time
from dataclasses import dataclass
from typing import Any, Callable, Optional, Sequence, Union

from ..core.config import get_settings
from .types import (
    AssembledResult,
    CacheStats,
    CatalogItem,
    FeaturedResult,
    PagedResult,
    normalize_category,
    normalize_search_term,
)

logger = logging.getLogger(__name__)

DEFAULT_TTL_SECONDS = 5 * 60
DEFAULT_MAX_ENTRIES = 50


@dataclass(frozen=True)
class CacheKey:
    tenant_id: str
    search_term: str
    category: str
    page: Optional[int] = None
    include_promoted: bool = False


@dataclass(frozen=True)
class CacheEntry:
    key: CacheKey
    payload: Union[FeaturedResult, PagedResult]
    stored_at: float


Generation = tuple[int, int]


class ResultCache:
    """
    TTL cache for featured results and paginated catalog pages.

    All public methods hold an internal lock, so the cache is safe to share
    between the event loop and threadpool workers.
    """

    def __init__(
        self,
        ttl_seconds: float = DEFAULT_TTL_SECONDS,
        max_entries: int = DEFAULT_MAX_ENTRIES,
        clock: Callable[[], float] = time.monotonic,
        all_categories_sentinel: str = "All",
    ):
        if ttl_seconds <= 0:
            raise ValueError(f"ttl_seconds must be positive, got {ttl_seconds}")
        if max_entries < 1:
            raise ValueError(f"max_entries must be >= 1, got {max_entries}")
        self.ttl_seconds = ttl_seconds
        self.max_entries = max_entries
        self.clock = clock
        self.all_categories_sentinel = all_categories_sentinel
        self._featured: dict[CacheKey, CacheEntry] = {}
        self._regular: dict[CacheKey, CacheEntry] = {}
        self._epoch = 0
        self._tenant_generations: dict[str, int] = {}
        self._lock = threading.RLock()

    @classmethod
    def from_settings(cls, settings: Any) -> "ResultCache":
        return cls(
            ttl_seconds=settings.catalog_cache_ttl_seconds,
            max_entries=settings.catalog_cache_max_entries,
            all_categories_sentinel=settings.all_categories_sentinel,
        )

    # ────────────────────────────────────────────────────────────
    # Keys & entry housekeeping
    # ────────────────────────────────────────────────────────────

    def make_key(
        self,
        tenant_id: str,
        search_term: Optional[str],
        category: Optional[str],
        page: Optional[int] = None,
        include_promoted: bool = False,
    ) -> CacheKey:
        if not isinstance(tenant_id, str) or not tenant_id.strip():
            raise ValueError("Cache keys require a non-empty tenant_id")
        return CacheKey(
            tenant_id=tenant_id.strip(),
            search_term=normalize_search_term(search_term),
            category=normalize_category(category, self.all_categories_sentinel),
            page=page,
            include_promoted=include_promoted,
        )

    def _is_fresh(self, entry: CacheEntry, now: float) -> bool:
        return now - entry.stored_at < self.ttl_seconds

    def _read(self, store: dict[CacheKey, CacheEntry], key: CacheKey):
        entry = store.get(key)
        if entry is None:
            return None
        if not self._is_fresh(entry, self.clock()):
            del store[key]
            logger.debug(f"Cache entry expired: {key}")
            return None
        return entry.payload

    def _write(self, store: dict[CacheKey, CacheEntry], key: CacheKey, payload) -> None:
        now = self.clock()
        # Re-inserting moves the key to the end, so dict order stays by stored_at
        store.pop(key, None)
        store[key] = CacheEntry(key=key, payload=payload, stored_at=now)
        self._cleanup(store, now)

    def _cleanup(self, store: dict[CacheKey, CacheEntry], now: float) -> None:
        for key in [key for key, entry in store.items() if not self._is_fresh(entry, now)]:
            del store[key]

        overflow = len(store) - self.max_entries
        if overflow > 0:
            oldest = sorted(store.values(), key=lambda entry: entry.stored_at)[:overflow]
            for entry in oldest:
                del store[entry.key]
            logger.debug(f"Evicted {overflow} cache entries over the {self.max_entries} bound")

    def generation(self, tenant_id: str) -> Generation:
        """Token that changes whenever tenant_id's entries are invalidated."""
        with self._lock:
            return self._epoch, self._tenant_generations.get(tenant_id.strip(), 0)

    def _is_current(self, tenant_id: str, generation: Optional[Generation]) -> bool:
        if generation is None:
            return True
        return generation == (self._epoch, self._tenant_generations.get(tenant_id, 0))

    # ────────────────────────────────────────────────────────────
    # Featured (promoted) results
    # ────────────────────────────────────────────────────────────

    def get_promoted(
        self,
        tenant_id: str,
        search_term: Optional[str] = "",
        category: Optional[str] = None,
    ) -> Optional[FeaturedResult]:
        key = self.make_key(tenant_id, search_term, category)
        with self._lock:
            return self._read(self._featured, key)

    def set_promoted(
        self,
        tenant_id: str,
        search_term: Optional[str],
        category: Optional[str],
        items: Sequence[CatalogItem],
        generation: Optional[Generation] = None,
    ) -> bool:
        """Store a featured result. Returns False if the write was dropped as stale."""
        key = self.make_key(tenant_id, search_term, category)
        with self._lock:
            if not self._is_current(key.tenant_id, generation):
                logger.debug(f"Dropped stale featured write for {key}")
                return False
            self._write(self._featured, key, FeaturedResult(items=tuple(items)))
            return True

    # ────────────────────────────────────────────────────────────
    # Regular (paginated) results
    # ────────────────────────────────────────────────────────────

    def get_standard_page(
        self,
        tenant_id: str,
        search_term: Optional[str],
        category: Optional[str],
        page: int,
    ) -> Optional[PagedResult]:
        key = self.make_key(tenant_id, search_term, category, page)
        with self._lock:
            return self._read(self._regular, key)

    def set_standard_page(
        self,
        tenant_id: str,
        search_term: Optional[str],
        category: Optional[str],
        page: int,
        items: Sequence[CatalogItem],
        has_more: bool,
        generation: Optional[Generation] = None,
    ) -> bool:
        """Store one catalog page. Returns False if the write was dropped as stale."""
        key = self.make_key(tenant_id, search_term, category, page)
        with self._lock:
            if not self._is_current(key.tenant_id, generation):
                logger.debug(f"Dropped stale page write for {key}")
                return False
            self._write(
                self._regular,
                key,
                PagedResult(items=tuple(items), has_more=has_more, page=page),
            )
            return True

    def get_combined_page(
        self,
        tenant_id: str,
        search_term: Optional[str],
        category: Optional[str],
        page: int,
    ) -> Optional[PagedResult]:
        key = self.make_key(tenant_id, search_term, category, page, include_promoted=True)
        with self._lock:
            return self._read(self._regular, key)

    def set_combined_page(
        self,
        tenant_id: str,
        search_term: Optional[str],
        category: Optional[str],
        page: int,
        items: Sequence[CatalogItem],
        has_more: bool,
        generation: Optional[Generation] = None,
    ) -> bool:
        key = self.make_key(tenant_id, search_term, category, page, include_promoted=True)
        with self._lock:
            if not self._is_current(key.tenant_id, generation):
                logger.debug(f"Dropped stale combined page write for {key}")
                return False
            self._write(
                self._regular,
                key,
                PagedResult(items=tuple(items), has_more=has_more, page=page),
            )
            return True

    def get_assembled_up_to_page(
        self,
        tenant_id: str,
        search_term: Optional[str],
        category: Optional[str],
        max_page: int,
    ) -> Optional[AssembledResult]:
        """
        Concatenate cached pages 1..max_page, stopping at the first miss.

        Returns None when page 1 is not cached. has_more comes from the last
        page reached, not from max_page.
        """
        items: list[CatalogItem] = []
        has_more = True
        last_cached_page = 0

        with self._lock:
            for page in range(1, max_page + 1):
                cached = self.get_standard_page(tenant_id, search_term, category, page)
                if cached is None:
                    break
                items.extend(cached.items)
                has_more = cached.has_more
                last_cached_page = page

        if last_cached_page == 0:
            return None
        return AssembledResult(
            items=tuple(items),
            has_more=has_more,
            last_cached_page=last_cached_page,
        )

    # ────────────────────────────────────────────────────────────
    # Invalidation & stats
    # ────────────────────────────────────────────────────────────

    def invalidate(self, tenant_id: Optional[str] = None) -> int:
        """
        Drop cached results for one tenant, or for everyone when tenant_id is None.

        Returns the number of entries removed.
        """
        with self._lock:
            if tenant_id is None:
                removed = len(self._featured) + len(self._regular)
                self._featured.clear()
                self._regular.clear()
                self._epoch += 1
                logger.info(f"Invalidated entire catalog cache ({removed} entries)")
                return removed

            tenant = tenant_id.strip()
            removed = 0
            for store in (self._featured, self._regular):
                for key in [key for key in store if key.tenant_id == tenant]:
                    del store[key]
                    removed += 1
            self._tenant_generations[tenant] = self._tenant_generations.get(tenant, 0) + 1
            logger.info(f"Invalidated catalog cache for {tenant} ({removed} entries)")
            return removed

    def stats(self) -> CacheStats:
        with self._lock:
            return CacheStats(
                featured_cache_size=len(self._featured),
                regular_cache_size=len(self._regular),
            )


# ────────────────────────────────────────────────────────────────
# Process-wide instance
# ────────────────────────────────────────────────────────────────

# Created at import, never persisted; safe to recreate empty at any time.
_catalog_cache = ResultCache.from_settings(get_settings())


def get_catalog_cache() -> ResultCache:
    return _catalog_cache


def reset_catalog_cache() -> ResultCache:
    """Replace the process-wide cache with an empty one."""
    global _catalog_cache
    _catalog_cache = ResultCache.from_settings(get_settings())
    return _catalog_cache
