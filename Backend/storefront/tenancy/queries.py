"""
Tenant-scoped query helpers.

ALL queries for tenant data MUST use these helpers or include explicit
shop_id filtering.

Usage:
    from storefront.tenancy.queries import get_category_by_id, scoped_select

    category = await get_category_by_id(session, ctx.shop_id, category_id)

    # Or using composable helpers:
    stmt = scoped_select(MenuItem, shop_id).where(MenuItem.is_featured.is_(True))
"""

from typing import Optional, Type, TypeVar

from sqlalchemy import Select, select
from sqlalchemy.ext.asyncio import AsyncSession
from sqlalchemy.orm import DeclarativeBase

from ..models import Category, MenuItem, Shop

T = TypeVar("T", bound=DeclarativeBase)


# ────────────────────────────────────────────────────────────────
# Composable Query Helpers
# ────────────────────────────────────────────────────────────────

def scoped_select(model: Type[T], shop_id: int) -> Select:
    """
    Create a SELECT statement pre-filtered by shop_id.

    Usage:
        stmt = scoped_select(MenuItem, ctx.shop_id).where(MenuItem.is_available.is_(True))
        result = await session.execute(stmt)
    """
    return select(model).where(model.shop_id == shop_id)


def tenant_filter(model: Type[T], shop_id: int):
    """Return a SQLAlchemy filter clause for shop_id."""
    return model.shop_id == shop_id


async def require_owned(
    session: AsyncSession,
    model: Type[T],
    entity_id,
    shop_id: int,
) -> Optional[T]:
    """
    Fetch an entity by ID, validating shop ownership.
    Returns None if not found or wrong shop.
    """
    result = await session.execute(
        select(model).where(
            model.id == entity_id,
            model.shop_id == shop_id
        )
    )
    return result.scalar_one_or_none()


# ────────────────────────────────────────────────────────────────
# Shop Queries
# ────────────────────────────────────────────────────────────────

async def get_shop_by_slug(session: AsyncSession, slug: str) -> Optional[Shop]:
    """Get a shop by URL slug."""
    result = await session.execute(select(Shop).where(Shop.slug == slug))
    return result.scalar_one_or_none()


# ────────────────────────────────────────────────────────────────
# Category Queries (Tenant-Scoped)
# ────────────────────────────────────────────────────────────────

async def get_category_by_id(
    session: AsyncSession,
    shop_id: int,
    category_id: int,
) -> Optional[Category]:
    """Get a category by ID, scoped to shop."""
    return await require_owned(session, Category, category_id, shop_id)


# ────────────────────────────────────────────────────────────────
# Menu Item Queries (Tenant-Scoped)
# ────────────────────────────────────────────────────────────────

async def get_menu_item_by_id(
    session: AsyncSession,
    shop_id: int,
    item_id: str,
) -> Optional[MenuItem]:
    """Get a menu item by ID, scoped to shop."""
    return await require_owned(session, MenuItem, item_id, shop_id)
