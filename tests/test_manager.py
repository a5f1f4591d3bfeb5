from decimal import Decimal

from src.app.schemas import FetchOutcome, ItemPrice
from src.cache.price_cache import PriceCache
from src.prices.base import PriceProvider
from src.prices.manager import DEMO_MODE_REASON, PriceProviderManager
from src.prices.mock_provider import MockPriceProvider, mock_price
from tests.helpers import FailingProvider, StaticProvider


async def test_demo_mode_returns_mock_prices_without_caching(cache, items):
    manager = PriceProviderManager(cache=cache, force_mock_data=True)
    walmart = StaticProvider("Walmart", {1: "3.00", 2: "4.00", 3: "2.00"})
    manager.register_provider("walmart", walmart)

    result = await manager.get_prices_for_store("Walmart Supercenter", items)

    assert result.outcome == FetchOutcome.DEMO
    assert result.used_mock_data is True
    assert result.mock_data_reason == DEMO_MODE_REASON
    assert [p.price for p in result.prices] == [mock_price(i.normalized_name, i.quantity) for i in items]
    assert walmart.calls == 0
    assert cache.get_stats()["prices"]["keys"] == 0


async def test_unregistered_brand_uses_mock_and_does_not_cache(manager, cache, items):
    result = await manager.get_prices_for_store("Aldi", items)

    assert result.outcome == FetchOutcome.PROVIDER
    assert result.used_mock_data is True
    assert all(p.is_mock_data for p in result.prices)
    assert cache.get_stats()["prices"]["keys"] == 0


async def test_live_prices_are_cached_and_reused(manager, cache, items):
    walmart = StaticProvider("Walmart", {1: "3.48", 2: "5.10", 3: "2.00"})
    manager.register_provider("Walmart", walmart)

    first = await manager.get_prices_for_store("Walmart Supercenter", items)
    second = await manager.get_prices_for_store("walmart supercenter ", items)

    assert first.outcome == FetchOutcome.PROVIDER
    assert first.used_mock_data is False
    assert first.mock_data_reason is None
    assert second.outcome == FetchOutcome.CACHE
    assert [p.price for p in second.prices] == [Decimal("3.48"), Decimal("5.10"), Decimal("2.00")]
    assert walmart.calls == 1


async def test_full_cache_hit_bypasses_provider_selection(cache, items):
    for item, price in zip(items, ("1.00", "2.00", "3.00")):
        cache.put_price("Target", item.product_id, Decimal(price))
    manager = PriceProviderManager(cache=cache, force_mock_data=False)
    manager.register_provider("target", FailingProvider())

    result = await manager.get_prices_for_store("Target", items)

    assert result.outcome == FetchOutcome.CACHE
    assert result.used_mock_data is False
    assert [p.item_name for p in result.prices] == [i.display_name for i in items]


async def test_partial_cache_hit_is_discarded(manager, cache, items):
    cache.put_price("Target", 1, Decimal("9.99"))
    target = StaticProvider("Target", {1: "3.00", 2: "4.00", 3: "2.00"})
    manager.register_provider("target", target)

    result = await manager.get_prices_for_store("Target", items)

    assert target.calls == 1
    assert result.outcome == FetchOutcome.PROVIDER
    assert result.prices[0].price == Decimal("3.00")


async def test_missing_items_are_not_cached(manager, cache, items):
    manager.register_provider("target", StaticProvider("Target", {1: "3.00", 2: None, 3: "2.00"}))

    result = await manager.get_prices_for_store("Target", items)

    assert result.prices[1].price is None
    assert cache.get_price("Target", 1) == Decimal("3.00")
    assert cache.get_price("Target", 2) is None


async def test_unavailable_provider_falls_back_to_mock(manager, items):
    manager.register_provider("walmart", StaticProvider("Walmart", {}, available=False))

    result = await manager.get_prices_for_store("Walmart", items)

    assert result.outcome == FetchOutcome.FALLBACK
    assert result.used_mock_data is True
    assert "not available" in result.mock_data_reason
    assert len(result.prices) == len(items)
    assert all(p.is_mock_data for p in result.prices)


async def test_raising_provider_falls_back_to_mock(manager, cache, items):
    manager.register_provider("walmart", FailingProvider("connection reset"))

    result = await manager.get_prices_for_store("Walmart Neighborhood Market", items)

    assert result.outcome == FetchOutcome.FALLBACK
    assert result.mock_data_reason == "Scraper failed: connection reset"
    assert [p.price for p in result.prices] == [mock_price(i.normalized_name, i.quantity) for i in items]
    assert cache.get_stats()["prices"]["keys"] == 0


async def test_short_price_list_is_treated_as_failure(manager, items):
    class ShortProvider:
        name = "Short"

        async def is_available(self):
            return True

        async def get_prices(self, items):
            return [ItemPrice(item_name="only one", price=Decimal("1.00"))]

    manager.register_provider("target", ShortProvider())

    result = await manager.get_prices_for_store("Target", items)

    assert result.outcome == FetchOutcome.FALLBACK
    assert len(result.prices) == len(items)


async def test_mock_flagged_results_from_live_provider_are_not_cached(manager, cache, items):
    class HalfMock(StaticProvider):
        async def get_prices(self, items):
            prices = await super().get_prices(items)
            return [p.model_copy(update={"is_mock_data": True}) for p in prices]

    manager.register_provider("target", HalfMock("Target", {1: "1.00", 2: "2.00", 3: "3.00"}))

    result = await manager.get_prices_for_store("Target", items)

    assert result.used_mock_data is True
    assert cache.get_stats()["prices"]["keys"] == 0


def test_select_provider_matches_brand_substring_case_insensitively(cache):
    manager = PriceProviderManager(cache=cache)
    walmart = StaticProvider("Walmart", {})
    manager.register_provider("Walmart", walmart)

    assert manager.select_provider("WALMART Supercenter") is walmart
    assert manager.select_provider("Target") is manager.mock_provider
    assert manager.list_providers() == ["walmart"]


def test_providers_satisfy_protocol():
    assert isinstance(MockPriceProvider(), PriceProvider)
    assert isinstance(StaticProvider("x", {}), PriceProvider)


def test_from_settings_reads_demo_flag(app_settings):
    demo = app_settings.model_copy(update={"force_mock_data": True})
    manager = PriceProviderManager.from_settings(demo, PriceCache())
    assert manager.force_mock_data is True
    assert manager.mock_provider.latency_seconds == 0.0
