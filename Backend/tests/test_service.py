"""
Catalog service tests: cache-first reads, error propagation and the
legacy fetch_all fallback.
"""

import asyncio
import logging

import pytest

from storefront.catalog import (
    CatalogFetchError,
    CatalogFetcher,
    CatalogService,
    RetryPolicy,
    TransientError,
    ValidationError,
)


def product_ids(response):
    return [product["id"] for product in response["products"]]


# ────────────────────────────────────────────────────────────────
# Split entry points
# ────────────────────────────────────────────────────────────────

class TestFetchFeatured:

    @pytest.mark.asyncio
    async def test_response_shape(self, service):
        response = await service.fetch_featured("demo-cafe")

        assert set(response) == {"products"}
        assert product_ids(response) == ["f1", "f2"]
        assert response["products"][1]["offerPrice"] == 3.2

    @pytest.mark.asyncio
    async def test_second_call_served_from_cache(self, service, store):
        first = await service.fetch_featured("demo-cafe", "", "All")
        second = await service.fetch_featured("demo-cafe", "", "All")

        assert first == second
        assert store.calls == 1

    @pytest.mark.asyncio
    async def test_refetches_after_ttl(self, service, store, clock):
        await service.fetch_featured("demo-cafe")
        clock.advance(301)
        await service.fetch_featured("demo-cafe")

        assert store.calls == 2

    @pytest.mark.asyncio
    async def test_returned_products_are_fresh_dicts(self, service):
        first = await service.fetch_featured("demo-cafe")
        first["products"][0]["name"] = "Tampered"

        second = await service.fetch_featured("demo-cafe")
        assert second["products"][0]["name"] == "Espresso"


class TestFetchRegular:

    @pytest.mark.asyncio
    async def test_response_shape(self, service):
        response = await service.fetch_regular("demo-cafe", page=1)

        assert set(response) == {"products", "hasMore"}
        assert product_ids(response) == ["s1", "s2", "s3"]
        assert response["hasMore"] is True

    @pytest.mark.asyncio
    async def test_cache_key_uses_normalized_search(self, service, store):
        await service.fetch_regular("demo-cafe", 1, "Tea")
        await service.fetch_regular("demo-cafe", 1, "  tea ")

        assert store.calls == 1

    @pytest.mark.asyncio
    async def test_each_page_cached_separately(self, service, store):
        await service.fetch_regular("demo-cafe", 1)
        await service.fetch_regular("demo-cafe", 2)
        await service.fetch_regular("demo-cafe", 1)

        assert store.calls == 2

    @pytest.mark.asyncio
    async def test_failure_propagates_and_is_not_cached(self, service, store, cache):
        store.fail_always(TransientError("database unavailable"))

        with pytest.raises(CatalogFetchError):
            await service.fetch_regular("demo-cafe", 1)

        assert cache.stats().total_cache_size == 0

        store.fail_always(None)
        response = await service.fetch_regular("demo-cafe", 1)
        assert product_ids(response) == ["s1", "s2", "s3"]

    @pytest.mark.asyncio
    async def test_timeout_is_not_cached(self, store, cache):
        fetcher = CatalogFetcher(store, RetryPolicy(max_attempts=1, base_delay=0), page_size=3, standard_timeout=0.01)
        service = CatalogService(fetcher, cache)
        store.delay_seconds = 0.1

        with pytest.raises(CatalogFetchError):
            await service.fetch_regular("demo-cafe", 1)

        assert cache.get_standard_page("demo-cafe", "", "All", 1) is None

    @pytest.mark.asyncio
    async def test_invalid_page_raises_validation_error(self, service, store):
        with pytest.raises(ValidationError):
            await service.fetch_regular("demo-cafe", 0)

        assert store.calls == 0

    @pytest.mark.asyncio
    async def test_invalidation_during_fetch_discards_result(self, service, store, cache):
        store.delay_seconds = 0.05

        task = asyncio.create_task(service.fetch_regular("demo-cafe", 1))
        await asyncio.sleep(0.01)
        service.invalidate("demo-cafe")
        response = await task

        assert product_ids(response) == ["s1", "s2", "s3"]
        assert cache.get_standard_page("demo-cafe", "", "All", 1) is None


class TestInvalidationVisibility:

    @pytest.mark.asyncio
    async def test_change_visible_after_invalidate(self, service, store):
        await service.fetch_regular("demo-cafe", 1)
        store.update("s1", name="Masala Chai (Large)")

        stale = await service.fetch_regular("demo-cafe", 1)
        assert stale["products"][0]["name"] == "Masala Chai"

        service.invalidate("demo-cafe")

        fresh = await service.fetch_regular("demo-cafe", 1)
        assert fresh["products"][0]["name"] == "Masala Chai (Large)"

    @pytest.mark.asyncio
    async def test_other_tenant_keeps_its_cache(self, service, store):
        await service.fetch_featured("other-shop")
        service.invalidate("demo-cafe")
        await service.fetch_featured("other-shop")

        assert store.calls == 1


# ────────────────────────────────────────────────────────────────
# Infinite-scroll reload
# ────────────────────────────────────────────────────────────────

class TestFetchRegularUpToPage:

    @pytest.mark.asyncio
    async def test_reuses_cached_prefix(self, service, store):
        await service.fetch_regular("demo-cafe", 1)
        await service.fetch_regular("demo-cafe", 2)
        assert store.calls == 2

        response = await service.fetch_regular_up_to_page("demo-cafe", 3)

        assert store.calls == 3
        assert product_ids(response) == ["s1", "s2", "s3", "s4", "s5", "s6", "s7"]
        assert response["hasMore"] is False
        assert response["lastPage"] == 3

    @pytest.mark.asyncio
    async def test_stops_when_no_more(self, service, store):
        response = await service.fetch_regular_up_to_page("demo-cafe", 10)

        assert store.calls == 3
        assert response["lastPage"] == 3
        assert len(response["products"]) == 7

    @pytest.mark.asyncio
    async def test_fully_cached_makes_no_calls(self, service, store):
        await service.fetch_regular_up_to_page("demo-cafe", 2)
        calls = store.calls

        response = await service.fetch_regular_up_to_page("demo-cafe", 2)

        assert store.calls == calls
        assert response["hasMore"] is True
        assert response["lastPage"] == 2

    @pytest.mark.asyncio
    async def test_rejects_invalid_max_page(self, service):
        with pytest.raises(ValidationError):
            await service.fetch_regular_up_to_page("demo-cafe", 0)


# ────────────────────────────────────────────────────────────────
# Legacy entry point
# ────────────────────────────────────────────────────────────────

class TestFetchAll:

    @pytest.mark.asyncio
    async def test_includes_featured_items_newest_first(self, service):
        seen = []
        for page in (1, 2, 3):
            response = await service.fetch_all("demo-cafe", page)
            assert response["hasMore"] is True
            seen.extend(product_ids(response))

        assert seen == ["s1", "s2", "s3", "s4", "s5", "s6", "s7", "f1", "f2"]
        assert await service.fetch_all("demo-cafe", 4) == {"products": [], "hasMore": False}

    @pytest.mark.asyncio
    async def test_featured_products_keep_offer_price(self, service):
        response = await service.fetch_all("demo-cafe", 3)
        cappuccino = next(product for product in response["products"] if product["id"] == "f2")
        assert cappuccino["offerPrice"] == 3.2

    @pytest.mark.asyncio
    async def test_cached_apart_from_regular_pages(self, service, store):
        regular = await service.fetch_regular("demo-cafe", 3)
        combined = await service.fetch_all("demo-cafe", 3)

        assert product_ids(regular) == ["s7"]
        assert product_ids(combined) == ["s7", "f1", "f2"]
        assert store.calls == 2

        await service.fetch_all("demo-cafe", 3)
        assert store.calls == 2

    @pytest.mark.asyncio
    async def test_invalidate_clears_combined_pages(self, service, store):
        await service.fetch_all("demo-cafe", 1)
        service.invalidate("demo-cafe")

        await service.fetch_all("demo-cafe", 1)
        assert store.calls == 2

    @pytest.mark.asyncio
    async def test_store_failure_becomes_empty_page(self, service, store, caplog):
        store.fail_always(TransientError("database unavailable"))

        with caplog.at_level(logging.ERROR, logger="storefront.catalog.service"):
            response = await service.fetch_all("demo-cafe", 1)

        assert response == {"products": [], "hasMore": False}
        assert "Error fetching products" in caplog.text

    @pytest.mark.asyncio
    async def test_invalid_input_becomes_empty_page(self, service):
        assert await service.fetch_all("", 1) == {"products": [], "hasMore": False}
        assert await service.fetch_all("demo-cafe", -3) == {"products": [], "hasMore": False}


@pytest.mark.asyncio
async def test_list_categories(service):
    categories = await service.list_categories("other-shop")
    assert categories == [{"id": 4, "name": "Tea"}]
