"""
Pytest configuration and fixtures for catalog tests.

Everything here runs in-process: an InMemoryCatalogStore stands in for the
database, a FakeClock drives cache TTLs, and retries never sleep.
"""
import pytest

from storefront.catalog import (
    CatalogFetcher,
    CatalogService,
    InMemoryCatalogStore,
    ResultCache,
    RetryPolicy,
)

PAGE_SIZE = 3


class FakeClock:
    """Monotonic clock that only moves when told to."""

    def __init__(self, start: float = 1000.0):
        self.now = start

    def __call__(self) -> float:
        return self.now

    def advance(self, seconds: float) -> None:
        self.now += seconds


def make_record(id, name, category="Coffee", price=3.0, tenant_id="demo-cafe", **extra):
    record = {
        "id": id,
        "name": name,
        "category": category,
        "price": price,
        "offer_price": None,
        "image": f"/img/{id}.png",
        "is_featured": False,
        "is_available": True,
        "tenant_id": tenant_id,
    }
    record.update(extra)
    return record


def demo_records():
    """Newest first: 7 standard, 2 featured, 1 unavailable, plus another shop."""
    return [
        make_record("s1", "Masala Chai", "Tea"),
        make_record("s2", "Green Tea", "Tea"),
        make_record("s3", "Tea Cake", "Snacks", 2.2, offer_price=1.9),
        make_record("s4", "Butter Croissant", "Snacks", 2.9),
        make_record("s5", "Flat White", "Coffee", 3.6),
        make_record("s6", "Chocolate Muffin", "Snacks", 2.5),
        make_record("s7", "Oat Cookie", "Snacks", 1.5),
        make_record("f1", "Espresso", "Coffee", 2.5, is_featured=True),
        make_record("f2", "Cappuccino", "Coffee", 3.8, offer_price=3.2, is_featured=True),
        make_record("u1", "Old Special", "Coffee", 4.0, is_available=False),
        make_record("o1", "Tea Latte", "Tea", 4.1, tenant_id="other-shop"),
        make_record("o2", "House Blend", "Coffee", 5.0, tenant_id="other-shop", is_featured=True),
    ]


@pytest.fixture
def record_factory():
    return make_record


@pytest.fixture
def clock():
    return FakeClock()


@pytest.fixture
def store():
    return InMemoryCatalogStore(
        demo_records(),
        categories=[
            {"id": 2, "name": "Tea", "tenant_id": "demo-cafe"},
            {"id": 1, "name": "Coffee", "tenant_id": "demo-cafe"},
            {"id": 3, "name": "Snacks", "tenant_id": "demo-cafe"},
            {"id": 4, "name": "Tea", "tenant_id": "other-shop"},
        ],
    )


@pytest.fixture
def retry_policy():
    return RetryPolicy(max_attempts=3, base_delay=0)


@pytest.fixture
def fetcher(store, retry_policy):
    return CatalogFetcher(
        store,
        retry_policy,
        page_size=PAGE_SIZE,
        promoted_timeout=0.2,
        standard_timeout=0.5,
    )


@pytest.fixture
def cache(clock):
    return ResultCache(ttl_seconds=300, max_entries=50, clock=clock)


@pytest.fixture
def service(fetcher, cache):
    return CatalogService(fetcher, cache)
