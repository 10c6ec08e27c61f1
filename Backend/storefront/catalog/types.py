"""
Value objects shared by the catalog components.
"""

from dataclasses import dataclass
from typing import Any, Optional

from .errors import ValidationError

ALL_CATEGORIES = "All"


def normalize_search_term(search_term: Optional[str]) -> str:
    """Search terms are matched case-insensitively, so keys use lowercase."""
    return (search_term or "").strip().lower()


def normalize_category(category: Optional[str], sentinel: str = ALL_CATEGORIES) -> str:
    """An empty category means no filter, same as the sentinel."""
    if category is None or category == "":
        return sentinel
    return category


@dataclass(frozen=True)
class CatalogQuery:
    """
    One logical catalog query.

    promoted_only selects the unpaginated featured path; page is ignored there.
    """

    tenant_id: str
    search_term: str = ""
    category: str = ALL_CATEGORIES
    page: int = 1
    promoted_only: bool = False

    @classmethod
    def create(
        cls,
        tenant_id: str,
        search_term: Optional[str] = "",
        category: Optional[str] = ALL_CATEGORIES,
        page: int = 1,
        promoted_only: bool = False,
        sentinel: str = ALL_CATEGORIES,
    ) -> "CatalogQuery":
        """Build a normalized query; call validate() before using it."""
        return cls(
            tenant_id=(tenant_id or "").strip() if isinstance(tenant_id, str) else tenant_id,
            search_term=normalize_search_term(search_term),
            category=normalize_category(category, sentinel),
            page=page,
            promoted_only=promoted_only,
        )

    def validate(self) -> "CatalogQuery":
        context = {"tenant_id": self.tenant_id, "page": self.page}
        if not isinstance(self.tenant_id, str) or not self.tenant_id.strip():
            raise ValidationError("tenant_id", "tenant_id is required", context)
        if not self.promoted_only:
            if isinstance(self.page, bool) or not isinstance(self.page, int):
                raise ValidationError("page", f"page must be an integer, got {self.page!r}", context)
            if self.page < 1:
                raise ValidationError("page", f"page must be >= 1, got {self.page}", context)
        return self


@dataclass(frozen=True)
class CatalogItem:
    """A validated catalog entry. Never mutated after validation."""

    id: str
    name: str
    category: str
    price: float
    image: str
    promoted: bool = False
    offer_price: Optional[float] = None
    description: str = ""

    def to_dict(self) -> dict[str, Any]:
        data: dict[str, Any] = {
            "id": self.id,
            "name": self.name,
            "category": self.category,
            "description": self.description,
            "price": self.price,
            "image": self.image,
            "isFeatured": self.promoted,
        }
        if self.offer_price is not None:
            data["offerPrice"] = self.offer_price
        return data


@dataclass(frozen=True)
class FeaturedResult:
    items: tuple[CatalogItem, ...] = ()

    def to_dict(self) -> dict[str, Any]:
        return {"products": [item.to_dict() for item in self.items]}


@dataclass(frozen=True)
class PagedResult:
    items: tuple[CatalogItem, ...] = ()
    has_more: bool = False
    page: int = 1

    def to_dict(self) -> dict[str, Any]:
        return {"products": [item.to_dict() for item in self.items], "hasMore": self.has_more}


@dataclass(frozen=True)
class AssembledResult:
    """A contiguous run of cached pages starting at page 1."""

    items: tuple[CatalogItem, ...] = ()
    has_more: bool = False
    last_cached_page: int = 0

    def to_dict(self) -> dict[str, Any]:
        return {
            "products": [item.to_dict() for item in self.items],
            "hasMore": self.has_more,
            "lastCachedPage": self.last_cached_page,
        }


@dataclass
class CacheStats:
    featured_cache_size: int = 0
    regular_cache_size: int = 0

    @property
    def total_cache_size(self) -> int:
        return self.featured_cache_size + self.regular_cache_size

    def to_dict(self) -> dict[str, Any]:
        return {
            "featured_cache_size": self.featured_cache_size,
            "regular_cache_size": self.regular_cache_size,
            "total_cache_size": self.total_cache_size,
        }
