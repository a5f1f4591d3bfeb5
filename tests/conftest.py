from typing import List

import pytest

from src.app.schemas import GroceryItem
from src.app.settings import Settings
from src.cache.price_cache import PriceCache
from src.prices.manager import PriceProviderManager
from src.prices.mock_provider import MockPriceProvider
from tests.helpers import FakeClock, make_item


@pytest.fixture
def app_settings() -> Settings:
    return Settings(_env_file=None, force_mock_data=False, mock_latency_seconds=0.0, geoapify_api_key=None)


@pytest.fixture
def clock() -> FakeClock:
    return FakeClock()


@pytest.fixture
def cache(clock) -> PriceCache:
    return PriceCache(clock=clock)


@pytest.fixture
def manager(cache) -> PriceProviderManager:
    return PriceProviderManager(cache=cache, mock_provider=MockPriceProvider())


@pytest.fixture
def items() -> List[GroceryItem]:
    return [
        make_item(1, "whole milk"),
        make_item(2, "large eggs", quantity=2),
        make_item(3, "white bread", category="Bakery"),
    ]
