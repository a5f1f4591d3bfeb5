"""Single entry point for per-store prices.

Resolution order for one store:
1. demo mode (force_mock_data) -> mock prices
2. full cache hit -> cached prices (a partial hit is discarded, never mixed)
3. provider picked by store-brand substring, mock if none is registered
4. provider unavailable or raising -> mock prices, flagged with the reason

Only real (non-mock, non-null) prices are written back to the cache.
"""
import logging
from typing import Dict, List, Optional

from src.app.schemas import CURRENCY, FetchOutcome, GroceryItem, ItemPrice, PriceFetchResult
from src.app.settings import Settings
from src.cache.price_cache import PriceCache
from src.prices.base import PriceProvider, ProviderUnavailableError
from src.prices.mock_provider import MockPriceProvider

logger = logging.getLogger(__name__)

DEMO_MODE_REASON = "demo mode enabled"
NO_PROVIDER_REASON = "scraper not yet implemented"


class PriceProviderManager:
    def __init__(
        self,
        cache: PriceCache,
        mock_provider: Optional[MockPriceProvider] = None,
        force_mock_data: bool = False,
    ):
        self.cache = cache
        self.mock_provider = mock_provider or MockPriceProvider()
        self.force_mock_data = force_mock_data
        # brand substring (lowercase) -> provider, checked in registration order
        self._providers: Dict[str, PriceProvider] = {}

    @classmethod
    def from_settings(cls, settings: Settings, cache: PriceCache) -> "PriceProviderManager":
        return cls(
            cache=cache,
            mock_provider=MockPriceProvider(latency_seconds=settings.mock_latency_seconds),
            force_mock_data=settings.force_mock_data,
        )

    def register_provider(self, brand: str, provider: PriceProvider) -> None:
        self._providers[brand.strip().lower()] = provider

    def list_providers(self) -> List[str]:
        return list(self._providers)

    def select_provider(self, store_name: str) -> PriceProvider:
        normalized = store_name.lower()
        for brand, provider in self._providers.items():
            if brand in normalized:
                return provider
        return self.mock_provider

    async def get_prices_for_store(self, store_name: str, items: List[GroceryItem]) -> PriceFetchResult:
        if self.force_mock_data:
            prices = await self.mock_provider.get_prices(items)
            return PriceFetchResult(
                prices=prices,
                outcome=FetchOutcome.DEMO,
                used_mock_data=True,
                mock_data_reason=DEMO_MODE_REASON,
            )

        cached = self._prices_from_cache(store_name, items)
        if cached is not None:
            logger.info("Cache hit for all %d items at %s", len(items), store_name)
            return PriceFetchResult(prices=cached, outcome=FetchOutcome.CACHE, used_mock_data=False)

        provider = self.select_provider(store_name)
        try:
            if not await provider.is_available():
                raise ProviderUnavailableError(f"Provider {provider.name} is not available")
            prices = await provider.get_prices(items)
            if len(prices) != len(items):
                raise ValueError(f"Provider {provider.name} returned {len(prices)} prices for {len(items)} items")
        except Exception as exc:  # noqa: BLE001
            logger.warning("Provider %s failed for %s: %s", provider.name, store_name, exc)
            return await self._fallback(items, exc)

        self._cache_prices(store_name, items, prices)
        is_mock = provider is self.mock_provider
        return PriceFetchResult(
            prices=prices,
            outcome=FetchOutcome.PROVIDER,
            used_mock_data=is_mock or any(p.is_mock_data for p in prices),
            mock_data_reason=NO_PROVIDER_REASON if is_mock else None,
        )

    async def _fallback(self, items: List[GroceryItem], exc: Exception) -> PriceFetchResult:
        prices = await self.mock_provider.get_prices(items)
        detail = str(exc) or type(exc).__name__
        return PriceFetchResult(
            prices=prices,
            outcome=FetchOutcome.FALLBACK,
            used_mock_data=True,
            mock_data_reason=f"Scraper failed: {detail}",
        )

    def _prices_from_cache(self, store_name: str, items: List[GroceryItem]) -> Optional[List[ItemPrice]]:
        prices = []
        for item in items:
            price = self.cache.get_price(store_name, item.product_id)
            if price is None:
                return None
            prices.append(ItemPrice(item_name=item.display_name, price=price, currency=CURRENCY, is_mock_data=False))
        return prices

    def _cache_prices(self, store_name: str, items: List[GroceryItem], prices: List[ItemPrice]) -> None:
        for item, item_price in zip(items, prices):
            if item_price.price is not None and not item_price.is_mock_data:
                self.cache.put_price(store_name, item.product_id, item_price.price)
