"""
Catalog error taxonomy.

    CatalogError
    ├── ValidationError        bad input, never retried
    ├── TransientError         store failure, retried
    ├── FetchTimeoutError      deadline exceeded, retried (also a TimeoutError)
    ├── MalformedRecordError   one bad record, dropped from results
    └── CatalogFetchError      terminal failure after retries, with context
"""

from typing import Any, Optional


class CatalogError(Exception):
    """Base class for catalog retrieval errors."""

    def __init__(self, message: str, context: Optional[dict[str, Any]] = None):
        self.message = message
        self.context = dict(context or {})
        super().__init__(message)


class ValidationError(CatalogError):
    """Raised when a catalog query is malformed. Names the offending field."""

    def __init__(self, field: str, message: str, context: Optional[dict[str, Any]] = None):
        self.field = field
        super().__init__(message, context)


class TransientError(CatalogError):
    """Raised when the backing store fails for reasons unrelated to the input."""


class FetchTimeoutError(CatalogError, TimeoutError):
    """Raised when a store call does not finish before its deadline."""

    def __init__(self, timeout_seconds: float, context: Optional[dict[str, Any]] = None):
        self.timeout_seconds = timeout_seconds
        super().__init__(f"Operation timed out after {timeout_seconds:g}s", context)


class MalformedRecordError(CatalogError):
    """A single store record that cannot be turned into a CatalogItem."""

    def __init__(self, reason: str, record_id: Optional[str] = None):
        self.reason = reason
        self.record_id = record_id
        super().__init__(f"Malformed record {record_id or '<no id>'}: {reason}")


class CatalogFetchError(CatalogError):
    """A fetch that failed for good: retries exhausted or a non-retryable error."""

    def __init__(
        self,
        message: str,
        *,
        tenant_id: str,
        page: Optional[int] = None,
        search_term: str = "",
        attempts: int = 0,
    ):
        self.tenant_id = tenant_id
        self.page = page
        self.search_term = search_term
        self.attempts = attempts
        context = {"tenant_id": tenant_id, "search_term": search_term, "attempts": attempts}
        if page is not None:
            context["page"] = page
        super().__init__(message, context)
