"""
Multi-tenancy context module for the storefront.

Every catalog read and write is scoped to one shop. The shop is identified
publicly by its URL slug, which is also the tenant id used in cache keys.
"""

import logging
import re
from dataclasses import dataclass
from enum import Enum
from typing import Optional

from sqlalchemy.ext.asyncio import AsyncSession

from .queries import get_shop_by_slug


logger = logging.getLogger(__name__)

SLUG_PATTERN = re.compile(r"^[a-z0-9][a-z0-9-]*$")


class ShopNotFoundError(LookupError):
    """Raised when a URL slug does not resolve to a shop."""

    def __init__(self, slug: str):
        self.slug = slug
        self.message = f"Shop not found: {slug}. Check the URL and try again."
        super().__init__(self.message)


class ShopResolutionSource(str, Enum):
    """How the shop context was determined."""

    URL_SLUG = "url_slug"           # From /s/[slug]/ in the URL path
    INTERNAL = "internal"           # Built directly by trusted code (scripts, tests)


@dataclass(frozen=True)
class ShopContext:
    """
    Immutable context representing the current tenant for a request.

    Attributes:
        shop_id: The database ID of the shop (shops.id)
        shop_slug: URL-safe identifier (e.g., "demo-cafe"); the tenant id
        shop_name: Human-readable shop name
        source: How this context was determined (for audit logging)
    """

    shop_id: int
    shop_slug: str
    shop_name: Optional[str] = None
    source: ShopResolutionSource = ShopResolutionSource.INTERNAL

    def __post_init__(self):
        if self.shop_id <= 0:
            raise ValueError(f"shop_id must be positive, got {self.shop_id}")
        if not self.shop_slug or not self.shop_slug.strip():
            raise ValueError("shop_slug must be non-empty")


def normalize_slug(slug: str) -> str:
    """Lowercase and trim a slug taken from a URL."""
    return (slug or "").strip().lower()


def is_valid_slug(slug: str) -> bool:
    return bool(SLUG_PATTERN.match(slug or ""))


async def resolve_shop_from_slug(
    session: AsyncSession,
    slug: str,
) -> Optional[ShopContext]:
    """
    Resolve shop context from a URL slug.

    Returns:
        ShopContext if found, None if the slug is malformed or unknown
    """
    normalized = normalize_slug(slug)
    if not is_valid_slug(normalized):
        logger.debug(f"Rejected malformed shop slug: {slug!r}")
        return None

    shop = await get_shop_by_slug(session, normalized)

    if not shop:
        return None

    return ShopContext(
        shop_id=shop.id,
        shop_slug=shop.slug,
        shop_name=shop.name,
        source=ShopResolutionSource.URL_SLUG,
    )
