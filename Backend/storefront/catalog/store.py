"""
Backing store contract for catalog retrieval.

The fetcher only needs a filterable, sortable, paginatable item collection
keyed by tenant. Records come back as plain dicts (loosely typed, possibly
incomplete) and are validated upstream by records.repair_records().

Record keys:
    id, name, category, category_name, description, price, offer_price,
    image, is_featured, is_available, tenant_id (in-memory only)

Implementations:
    SqlCatalogStore       PostgreSQL via SQLAlchemy asyncio
    InMemoryCatalogStore  process-local list, for development and tests
"""

import asyncio
import logging
from typing import Any, Iterable, Optional, Protocol, Sequence

from sqlalchemy import select
from sqlalchemy.exc import SQLAlchemyError
from sqlalchemy.ext.asyncio import AsyncSession, async_sessionmaker

from ..models import Category, MenuItem, Shop
from .errors import TransientError
from .predicates import Predicate, describe
from .translators import matches, to_sql_clause

logger = logging.getLogger(__name__)


class CatalogStore(Protocol):
    async def find_items(
        self,
        predicate: Predicate,
        *,
        offset: int = 0,
        limit: Optional[int] = None,
    ) -> list[dict[str, Any]]:
        """Return matching records, newest first."""

    async def list_categories(self, tenant_id: str) -> list[dict[str, Any]]:
        """Return the tenant's categories ordered by name."""


# ────────────────────────────────────────────────────────────────
# SQLAlchemy Store
# ────────────────────────────────────────────────────────────────

class SqlCatalogStore:
    """
    Catalog store backed by the menu_items table.

    Each call opens its own session so that a call abandoned by a timeout
    never leaves a half-used session behind for the retry.

    Usage:
        store = SqlCatalogStore(AsyncSessionLocal)
        records = await store.find_items(predicate, offset=0, limit=10)
    """

    def __init__(self, session_factory: async_sessionmaker[AsyncSession]):
        self.session_factory = session_factory

    async def find_items(
        self,
        predicate: Predicate,
        *,
        offset: int = 0,
        limit: Optional[int] = None,
    ) -> list[dict[str, Any]]:
        stmt = (
            select(
                MenuItem.id,
                MenuItem.name,
                MenuItem.category,
                Category.name.label("category_name"),
                MenuItem.description,
                MenuItem.price,
                MenuItem.offer_price,
                MenuItem.image,
                MenuItem.is_featured,
                MenuItem.is_available,
            )
            .join(Shop, Shop.id == MenuItem.shop_id)
            .outerjoin(Category, Category.id == MenuItem.category_id)
            .where(to_sql_clause(predicate))
            .order_by(MenuItem.created_at.desc(), MenuItem.id.desc())
            .offset(offset)
        )
        if limit is not None:
            stmt = stmt.limit(limit)

        logger.debug("Catalog query %s offset=%s limit=%s", describe(predicate), offset, limit)
        try:
            async with self.session_factory() as session:
                result = await session.execute(stmt)
                return [dict(row._mapping) for row in result.all()]
        except (SQLAlchemyError, OSError) as e:
            raise TransientError(
                f"Catalog store query failed: {type(e).__name__}: {e}",
                {"predicate": describe(predicate), "offset": offset, "limit": limit},
            ) from e

    async def list_categories(self, tenant_id: str) -> list[dict[str, Any]]:
        stmt = (
            select(Category.id, Category.name)
            .join(Shop, Shop.id == Category.shop_id)
            .where(Shop.slug == tenant_id)
            .order_by(Category.name)
        )
        try:
            async with self.session_factory() as session:
                result = await session.execute(stmt)
                return [dict(row._mapping) for row in result.all()]
        except (SQLAlchemyError, OSError) as e:
            raise TransientError(
                f"Category query failed: {type(e).__name__}: {e}",
                {"tenant_id": tenant_id},
            ) from e


# ────────────────────────────────────────────────────────────────
# In-Memory Store
# ────────────────────────────────────────────────────────────────

class InMemoryCatalogStore:
    """
    Catalog store over a list of record dicts.

    Records are kept in the order given, which is treated as newest first.
    Failures and latency can be injected to exercise retries and timeouts:

        store.fail_next(TransientError("db down"), TransientError("db down"))
        store.delay_seconds = 0.5
    """

    def __init__(
        self,
        records: Optional[Iterable[dict[str, Any]]] = None,
        categories: Optional[Iterable[dict[str, Any]]] = None,
    ):
        self.records: list[dict[str, Any]] = [dict(record) for record in records or []]
        self.categories: list[dict[str, Any]] = [dict(category) for category in categories or []]
        self.delay_seconds: float = 0.0
        self.calls: int = 0
        self._failures: list[BaseException] = []
        self._always_fail: Optional[BaseException] = None

    def fail_next(self, *errors: BaseException) -> None:
        """Raise each error once, in order, on the next calls."""
        self._failures.extend(errors)

    def fail_always(self, error: Optional[BaseException]) -> None:
        """Raise error on every call until reset with None."""
        self._always_fail = error

    def add(self, *records: dict[str, Any]) -> None:
        self.records.extend(dict(record) for record in records)

    def update(self, item_id: str, **changes: Any) -> None:
        for record in self.records:
            if record.get("id") == item_id:
                record.update(changes)
                return
        raise KeyError(item_id)

    async def _enter_call(self) -> None:
        self.calls += 1
        if self.delay_seconds:
            await asyncio.sleep(self.delay_seconds)
        if self._always_fail is not None:
            raise self._always_fail
        if self._failures:
            raise self._failures.pop(0)

    async def find_items(
        self,
        predicate: Predicate,
        *,
        offset: int = 0,
        limit: Optional[int] = None,
    ) -> list[dict[str, Any]]:
        await self._enter_call()
        matched = [dict(record) for record in self.records if matches(predicate, record)]
        end = None if limit is None else offset + limit
        return matched[offset:end]

    async def list_categories(self, tenant_id: str) -> list[dict[str, Any]]:
        await self._enter_call()
        owned: Sequence[dict[str, Any]] = [
            category for category in self.categories if category.get("tenant_id") == tenant_id
        ]
        return [
            {"id": category.get("id"), "name": category.get("name")}
            for category in sorted(owned, key=lambda category: category.get("name") or "")
        ]
