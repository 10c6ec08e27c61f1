"""
Multi-Tenant Isolation Tests

These tests verify that tenant isolation is enforced:
1. ShopContext only accepts a real shop id and slug
2. Query helpers always filter by shop_id
3. Catalog reads for shop A never return shop B's items
4. Slug resolution rejects malformed and unknown slugs

Run with: pytest Backend/tests/test_tenant_isolation.py -v
"""

from unittest.mock import AsyncMock, MagicMock

import pytest

from storefront.models import Category, MenuItem, Shop
from storefront.tenancy.context import (
    ShopContext,
    ShopResolutionSource,
    is_valid_slug,
    normalize_slug,
    resolve_shop_from_slug,
)


# ────────────────────────────────────────────────────────────────
# Test Fixtures
# ────────────────────────────────────────────────────────────────

@pytest.fixture
def shop_a_context():
    """ShopContext for Shop A (ID=1)."""
    return ShopContext(
        shop_id=1,
        shop_slug="shop-a",
        shop_name="Test Shop A",
        source=ShopResolutionSource.URL_SLUG,
    )


def session_returning(value):
    result = MagicMock()
    result.scalar_one_or_none.return_value = value
    session = AsyncMock()
    session.execute.return_value = result
    return session


# ────────────────────────────────────────────────────────────────
# Unit Tests - ShopContext
# ────────────────────────────────────────────────────────────────

class TestShopContext:
    """Test ShopContext validation and immutability."""

    def test_shop_context_requires_positive_shop_id(self):
        """ShopContext should reject non-positive shop_id."""
        with pytest.raises(ValueError, match="shop_id must be positive"):
            ShopContext(shop_id=0, shop_slug="shop-a")

        with pytest.raises(ValueError, match="shop_id must be positive"):
            ShopContext(shop_id=-1, shop_slug="shop-a")

    def test_shop_context_requires_slug(self):
        """The slug doubles as the catalog tenant id, so it cannot be blank."""
        with pytest.raises(ValueError, match="shop_slug"):
            ShopContext(shop_id=1, shop_slug="  ")

    def test_shop_context_is_immutable(self, shop_a_context):
        """ShopContext should be frozen (immutable)."""
        with pytest.raises(Exception):  # FrozenInstanceError
            shop_a_context.shop_id = 999

    def test_shop_context_default_values(self):
        ctx = ShopContext(shop_id=1, shop_slug="shop-a")
        assert ctx.shop_name is None
        assert ctx.source == ShopResolutionSource.INTERNAL


# ────────────────────────────────────────────────────────────────
# Unit Tests - Query Scoping Helpers
# ────────────────────────────────────────────────────────────────

class TestQueryScoping:
    """Test that query helpers properly scope by shop_id."""

    def test_scoped_select_adds_shop_filter(self):
        """scoped_select() should add shop_id filter to SELECT."""
        from storefront.tenancy.queries import scoped_select

        stmt = scoped_select(MenuItem, shop_id=1)
        compiled = str(stmt.compile())
        assert "menu_items.shop_id" in compiled.lower()

    def test_tenant_filter_returns_filter_clause(self):
        from storefront.tenancy.queries import tenant_filter

        clause = tenant_filter(Category, shop_id=1)
        assert "shop_id" in str(clause).lower()

    @pytest.mark.asyncio
    async def test_require_owned_filters_by_shop(self):
        """Lookups by ID must also match the owning shop."""
        from storefront.tenancy.queries import get_menu_item_by_id

        session = session_returning(None)
        assert await get_menu_item_by_id(session, 2, "item-from-shop-1") is None

        stmt = session.execute.await_args.args[0]
        compiled = str(stmt.compile()).lower()
        assert "menu_items.id" in compiled
        assert "menu_items.shop_id" in compiled


# ────────────────────────────────────────────────────────────────
# Catalog Isolation
# ────────────────────────────────────────────────────────────────

class TestCatalogIsolation:
    """Catalog reads are scoped by slug in the predicate itself."""

    @pytest.mark.asyncio
    async def test_featured_scoped_to_shop(self, service):
        demo = await service.fetch_featured("demo-cafe")
        other = await service.fetch_featured("other-shop")

        demo_ids = {product["id"] for product in demo["products"]}
        other_ids = {product["id"] for product in other["products"]}
        assert demo_ids and other_ids
        assert not demo_ids & other_ids, "Featured items visible to multiple shops!"

    @pytest.mark.asyncio
    async def test_search_never_crosses_shops(self, service):
        response = await service.fetch_regular("demo-cafe", 1, "latte")
        assert response["products"] == []

    @pytest.mark.asyncio
    async def test_categories_scoped_to_shop(self, service):
        categories = await service.list_categories("other-shop")
        assert [category["id"] for category in categories] == [4]


# ────────────────────────────────────────────────────────────────
# Slug Resolution
# ────────────────────────────────────────────────────────────────

class TestSlugResolution:

    def test_normalize_slug(self):
        assert normalize_slug("  Demo-Cafe ") == "demo-cafe"
        assert normalize_slug(None) == ""

    @pytest.mark.parametrize("slug, valid", [
        ("demo-cafe", True),
        ("cafe42", True),
        ("-cafe", False),
        ("demo cafe", False),
        ("", False),
    ])
    def test_is_valid_slug(self, slug, valid):
        assert is_valid_slug(slug) is valid

    @pytest.mark.asyncio
    async def test_resolves_known_slug(self):
        shop = Shop(id=3, slug="demo-cafe", name="Demo Cafe")
        ctx = await resolve_shop_from_slug(session_returning(shop), "Demo-Cafe")

        assert ctx == ShopContext(
            shop_id=3,
            shop_slug="demo-cafe",
            shop_name="Demo Cafe",
            source=ShopResolutionSource.URL_SLUG,
        )

    @pytest.mark.asyncio
    async def test_unknown_slug_is_none(self):
        assert await resolve_shop_from_slug(session_returning(None), "ghost-shop") is None

    @pytest.mark.asyncio
    async def test_malformed_slug_skips_query(self):
        session = session_returning(None)
        assert await resolve_shop_from_slug(session, "../etc") is None
        session.execute.assert_not_awaited()
