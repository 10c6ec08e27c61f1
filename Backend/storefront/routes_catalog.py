"""
Slug-scoped catalog routes.

Pattern: /s/{slug}/catalog/...

Reads (public):
    GET    /s/demo-cafe/catalog/featured?search=&category=
    GET    /s/demo-cafe/catalog/items?page=&search=&category=
    GET    /s/demo-cafe/catalog/all?page=&search=&category=     (legacy, never fails)
    GET    /s/demo-cafe/catalog/scroll?max_page=&search=&category=
    GET    /s/demo-cafe/catalog/categories

Writes (invalidate the shop's cached results before responding):
    PUT    /s/demo-cafe/catalog/categories/{category_id}
    DELETE /s/demo-cafe/catalog/categories/{category_id}
    PUT    /s/demo-cafe/catalog/items/{item_id}
    DELETE /s/demo-cafe/catalog/items/{item_id}

Reads scope by slug inside the catalog predicate, so an unknown slug simply
yields an empty catalog. Writes resolve the shop first and 404 if missing.
"""

import logging
from typing import Optional

from fastapi import APIRouter, Depends, Path, Query
from pydantic import BaseModel
from sqlalchemy.ext.asyncio import AsyncSession

from .catalog import CatalogFetcher, CatalogService, SqlCatalogStore, get_catalog_cache
from .catalog import mutations
from .core.config import get_settings
from .core.db import AsyncSessionLocal, get_session
from .tenancy import ShopContext, ShopNotFoundError, normalize_slug, resolve_shop_from_slug

settings = get_settings()
logger = logging.getLogger(__name__)


# ────────────────────────────────────────────────────────────────
# Router Definition
# ────────────────────────────────────────────────────────────────

router = APIRouter(prefix="/s/{slug}/catalog", tags=["catalog"])


# ────────────────────────────────────────────────────────────────
# Dependencies
# ────────────────────────────────────────────────────────────────

def get_catalog_service() -> CatalogService:
    """Catalog service over the SQL store and the process-wide cache."""
    store = SqlCatalogStore(AsyncSessionLocal)
    return CatalogService(CatalogFetcher.from_settings(store, settings), get_catalog_cache())


async def get_shop_context_from_slug(
    slug: str = Path(..., description="Shop URL slug (e.g., 'demo-cafe')"),
    session: AsyncSession = Depends(get_session),
) -> ShopContext:
    """Resolve shop context strictly from URL slug; ShopNotFoundError (404) if missing."""
    ctx = await resolve_shop_from_slug(session, slug)
    if not ctx:
        raise ShopNotFoundError(slug)
    logger.debug(f"Resolved shop from slug '{slug}': shop_id={ctx.shop_id}")
    return ctx


# ────────────────────────────────────────────────────────────────
# Request / Response Models
# ────────────────────────────────────────────────────────────────

class ProductOut(BaseModel):
    id: str
    name: str
    category: str
    description: str
    price: float
    offerPrice: Optional[float] = None
    image: str
    isFeatured: bool = False


class FeaturedResponse(BaseModel):
    products: list[ProductOut]


class RegularResponse(BaseModel):
    products: list[ProductOut]
    hasMore: bool


class ScrollResponse(RegularResponse):
    lastPage: int


class CategoryOut(BaseModel):
    id: int
    name: str


class CategoriesResponse(BaseModel):
    categories: list[CategoryOut]


class CategoryUpdateRequest(BaseModel):
    name: Optional[str] = None
    image: Optional[str] = None


class ItemUpdateRequest(BaseModel):
    name: Optional[str] = None
    description: Optional[str] = None
    category_id: Optional[int] = None
    price: Optional[float] = None
    offer_price: Optional[float] = None
    image: Optional[str] = None
    is_featured: Optional[bool] = None
    is_available: Optional[bool] = None


# ────────────────────────────────────────────────────────────────
# Read Endpoints
# ────────────────────────────────────────────────────────────────

@router.get("/featured", response_model=FeaturedResponse, response_model_exclude_none=True)
async def featured_products(
    slug: str,
    search: str = Query("", description="Case-insensitive name/category search"),
    category: str = Query(settings.all_categories_sentinel),
    service: CatalogService = Depends(get_catalog_service),
):
    return await service.fetch_featured(normalize_slug(slug), search, category)


@router.get("/items", response_model=RegularResponse, response_model_exclude_none=True)
async def regular_products(
    slug: str,
    page: int = Query(1),
    search: str = Query(""),
    category: str = Query(settings.all_categories_sentinel),
    service: CatalogService = Depends(get_catalog_service),
):
    return await service.fetch_regular(normalize_slug(slug), page, search, category)


@router.get("/all", response_model=RegularResponse, response_model_exclude_none=True)
async def all_products_legacy(
    slug: str,
    page: int = Query(1),
    search: str = Query(""),
    category: str = Query(settings.all_categories_sentinel),
    service: CatalogService = Depends(get_catalog_service),
):
    """Deprecated single-call listing of featured and regular items; failures come back as an empty page."""
    return await service.fetch_all(normalize_slug(slug), page, search, category)


@router.get("/scroll", response_model=ScrollResponse, response_model_exclude_none=True)
async def scroll_products(
    slug: str,
    max_page: int = Query(1),
    search: str = Query(""),
    category: str = Query(settings.all_categories_sentinel),
    service: CatalogService = Depends(get_catalog_service),
):
    return await service.fetch_regular_up_to_page(normalize_slug(slug), max_page, search, category)


@router.get("/categories", response_model=CategoriesResponse)
async def list_shop_categories(
    slug: str,
    service: CatalogService = Depends(get_catalog_service),
):
    return {"categories": await service.list_categories(normalize_slug(slug))}


# ────────────────────────────────────────────────────────────────
# Write Endpoints
# ────────────────────────────────────────────────────────────────

@router.put("/categories/{category_id}", response_model=CategoryOut)
async def update_category(
    category_id: int,
    payload: CategoryUpdateRequest,
    ctx: ShopContext = Depends(get_shop_context_from_slug),
    session: AsyncSession = Depends(get_session),
):
    category = await mutations.rename_category(
        session, ctx, category_id, name=payload.name, image=payload.image
    )
    return {"id": category.id, "name": category.name}


@router.delete("/categories/{category_id}")
async def delete_category(
    category_id: int,
    ctx: ShopContext = Depends(get_shop_context_from_slug),
    session: AsyncSession = Depends(get_session),
):
    await mutations.delete_category(session, ctx, category_id)
    return {"success": True}


@router.put("/items/{item_id}")
async def update_item(
    item_id: str,
    payload: ItemUpdateRequest,
    ctx: ShopContext = Depends(get_shop_context_from_slug),
    session: AsyncSession = Depends(get_session),
):
    changes = payload.model_dump(exclude_unset=True)
    item = await mutations.update_item(session, ctx, item_id, **changes)
    return {"id": item.id, "updated": sorted(changes)}


@router.delete("/items/{item_id}")
async def delete_item(
    item_id: str,
    ctx: ShopContext = Depends(get_shop_context_from_slug),
    session: AsyncSession = Depends(get_session),
):
    await mutations.delete_item(session, ctx, item_id)
    return {"success": True}
