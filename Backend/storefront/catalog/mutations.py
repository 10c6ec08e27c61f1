"""
Tenant-scoped catalog writes.

Every helper here commits its change and only then invalidates the tenant's
cached results, before returning to the caller. A failed write rolls back
and leaves the cache untouched.

Usage:
    category = await rename_category(session, ctx, category_id, "Hot Drinks")
"""

import logging
from decimal import Decimal, InvalidOperation
from typing import Any, Optional

from sqlalchemy import update
from sqlalchemy.exc import IntegrityError
from sqlalchemy.ext.asyncio import AsyncSession

from ..models import Category, MenuItem
from ..tenancy import ShopContext, get_category_by_id, get_menu_item_by_id
from .cache import ResultCache, get_catalog_cache
from .errors import ValidationError

logger = logging.getLogger(__name__)

EDITABLE_ITEM_FIELDS = (
    "name",
    "description",
    "category",
    "category_id",
    "price",
    "offer_price",
    "image",
    "is_featured",
    "is_available",
)

# Columns that may be changed but never cleared
NON_NULLABLE_ITEM_FIELDS = ("name", "price", "is_featured", "is_available")


class NotFoundError(LookupError):
    """Raised when a category or item does not exist for this shop."""

    def __init__(self, message: str, shop_id: Optional[int] = None):
        self.message = message
        self.shop_id = shop_id
        super().__init__(message)


class ConflictError(Exception):
    """Raised when a write collides with an existing row (duplicate name)."""

    def __init__(self, message: str):
        self.message = message
        super().__init__(message)


async def _commit_and_invalidate(
    session: AsyncSession,
    ctx: ShopContext,
    cache: Optional[ResultCache],
    action: str,
) -> None:
    try:
        await session.commit()
    except IntegrityError as e:
        await session.rollback()
        raise ConflictError(f"{action} conflicts with existing data") from e
    except Exception:
        await session.rollback()
        raise

    removed = (cache or get_catalog_cache()).invalidate(ctx.shop_slug)
    logger.info(f"{action} for shop {ctx.shop_slug}; invalidated {removed} cached result(s)")


# ────────────────────────────────────────────────────────────────
# Categories
# ────────────────────────────────────────────────────────────────

async def rename_category(
    session: AsyncSession,
    ctx: ShopContext,
    category_id: int,
    name: Optional[str] = None,
    image: Optional[str] = None,
    cache: Optional[ResultCache] = None,
) -> Category:
    """Update a category, rewriting the denormalized name on its items."""
    category = await get_category_by_id(session, ctx.shop_id, category_id)
    if not category:
        raise NotFoundError("Category not found", ctx.shop_id)

    if name is not None:
        cleaned = name.strip()
        if not cleaned:
            raise ValidationError("name", "Category name is required")
        category.name = cleaned
        await session.execute(
            update(MenuItem)
            .where(MenuItem.shop_id == ctx.shop_id, MenuItem.category_id == category.id)
            .values(category=cleaned)
        )
    if image is not None:
        category.image = image or None

    await _commit_and_invalidate(session, ctx, cache, f"Updated category {category_id}")
    return category


async def delete_category(
    session: AsyncSession,
    ctx: ShopContext,
    category_id: int,
    cache: Optional[ResultCache] = None,
) -> None:
    """Delete a category; its items stay but lose the link."""
    category = await get_category_by_id(session, ctx.shop_id, category_id)
    if not category:
        raise NotFoundError("Category not found", ctx.shop_id)

    await session.execute(
        update(MenuItem)
        .where(MenuItem.shop_id == ctx.shop_id, MenuItem.category_id == category.id)
        .values(category_id=None)
    )
    await session.delete(category)
    await _commit_and_invalidate(session, ctx, cache, f"Deleted category {category_id}")


# ────────────────────────────────────────────────────────────────
# Items
# ────────────────────────────────────────────────────────────────

def _clean_item_changes(changes: dict[str, Any]) -> dict[str, Any]:
    unknown = set(changes) - set(EDITABLE_ITEM_FIELDS)
    if unknown:
        raise ValidationError(sorted(unknown)[0], f"Unknown item field(s): {', '.join(sorted(unknown))}")

    cleaned = dict(changes)
    for field in NON_NULLABLE_ITEM_FIELDS:
        if field in cleaned and cleaned[field] is None:
            raise ValidationError(field, f"{field} cannot be cleared")
    if "name" in cleaned:
        name = (cleaned["name"] or "").strip()
        if not name:
            raise ValidationError("name", "Item name is required")
        cleaned["name"] = name
    for field in ("price", "offer_price"):
        if field in cleaned and cleaned[field] is not None:
            try:
                value = Decimal(str(cleaned[field]))
            except InvalidOperation:
                raise ValidationError(field, f"{field} must be a number") from None
            if value < 0:
                raise ValidationError(field, f"{field} must be >= 0")
            cleaned[field] = value
    return cleaned


async def update_item(
    session: AsyncSession,
    ctx: ShopContext,
    item_id: str,
    cache: Optional[ResultCache] = None,
    **changes: Any,
) -> MenuItem:
    """Apply changes to one item (pricing, visibility, naming, category)."""
    cleaned = _clean_item_changes(changes)

    item = await get_menu_item_by_id(session, ctx.shop_id, item_id)
    if not item:
        raise NotFoundError("Item not found", ctx.shop_id)

    if cleaned.get("category_id") is not None:
        category = await get_category_by_id(session, ctx.shop_id, cleaned["category_id"])
        if not category:
            raise NotFoundError("Category not found", ctx.shop_id)
        cleaned.setdefault("category", category.name)

    for field, value in cleaned.items():
        setattr(item, field, value)

    await _commit_and_invalidate(session, ctx, cache, f"Updated item {item_id}")
    return item


async def delete_item(
    session: AsyncSession,
    ctx: ShopContext,
    item_id: str,
    cache: Optional[ResultCache] = None,
) -> None:
    item = await get_menu_item_by_id(session, ctx.shop_id, item_id)
    if not item:
        raise NotFoundError("Item not found", ctx.shop_id)

    await session.delete(item)
    await _commit_and_invalidate(session, ctx, cache, f"Deleted item {item_id}")
