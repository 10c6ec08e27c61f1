"""
Catalog retrieval and caching.

Modules:
    types:        CatalogQuery, CatalogItem and result value objects
    errors:       error taxonomy (validation, transient, timeout, terminal)
    predicates:   predicate tree and its builder
    translators:  predicate tree -> SQLAlchemy clause / in-memory match
    records:      validation and repair of raw store records
    store:        CatalogStore contract, SQL and in-memory stores
    retry:        timeout and bounded-retry helpers
    fetcher:      CatalogFetcher (promoted + paginated queries)
    cache:        ResultCache and the process-wide instance
    service:      CatalogService entry points used by the UI layer
    mutations:    tenant-scoped writes that invalidate the cache
"""

from .cache import ResultCache, get_catalog_cache, reset_catalog_cache
from .errors import (
    CatalogError,
    CatalogFetchError,
    FetchTimeoutError,
    MalformedRecordError,
    TransientError,
    ValidationError,
)
from .fetcher import CatalogFetcher
from .predicates import And, Contains, Equals, Or, build_predicate
from .records import repair_records, validate_record
from .retry import RetryPolicy, is_retryable, with_retry, with_timeout
from .service import CatalogService
from .store import CatalogStore, InMemoryCatalogStore, SqlCatalogStore
from .types import (
    ALL_CATEGORIES,
    AssembledResult,
    CatalogItem,
    CatalogQuery,
    FeaturedResult,
    PagedResult,
)

__all__ = [
    # Cache
    "ResultCache",
    "get_catalog_cache",
    "reset_catalog_cache",
    # Errors
    "CatalogError",
    "CatalogFetchError",
    "FetchTimeoutError",
    "MalformedRecordError",
    "TransientError",
    "ValidationError",
    # Fetching
    "CatalogFetcher",
    "CatalogService",
    "CatalogStore",
    "InMemoryCatalogStore",
    "SqlCatalogStore",
    "RetryPolicy",
    "is_retryable",
    "with_retry",
    "with_timeout",
    # Predicates
    "And",
    "Contains",
    "Equals",
    "Or",
    "build_predicate",
    # Records
    "repair_records",
    "validate_record",
    # Types
    "ALL_CATEGORIES",
    "AssembledResult",
    "CatalogItem",
    "CatalogQuery",
    "FeaturedResult",
    "PagedResult",
]
