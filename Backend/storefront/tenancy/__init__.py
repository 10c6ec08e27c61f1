"""
Multi-tenancy package for the storefront.

Modules:
    context: ShopContext resolution from URL slugs
    queries: Tenant-scoped query helpers
"""

from .context import (
    ShopContext,
    ShopNotFoundError,
    ShopResolutionSource,
    resolve_shop_from_slug,
    normalize_slug,
    is_valid_slug,
)

from .queries import (
    # Composable helpers
    scoped_select,
    tenant_filter,
    require_owned,
    # Shop queries
    get_shop_by_slug,
    # Category queries
    get_category_by_id,
    # Menu item queries
    get_menu_item_by_id,
)

__all__ = [
    # Context
    "ShopContext",
    "ShopNotFoundError",
    "ShopResolutionSource",
    "resolve_shop_from_slug",
    "normalize_slug",
    "is_valid_slug",
    # Query helpers
    "scoped_select",
    "tenant_filter",
    "require_owned",
    "get_shop_by_slug",
    "get_category_by_id",
    "get_menu_item_by_id",
]
