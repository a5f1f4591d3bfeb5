import asyncio
import logging
import math
from typing import List, Optional, Sequence

from src.app.schemas import Store
from src.app.settings import Settings
from src.cache.price_cache import PriceCache
from src.stores.geoapify_client import (
    Feature,
    GeoapifyClient,
    feature_address,
    feature_distance,
    feature_name,
    feature_website,
)

logger = logging.getLogger(__name__)

# (id, name, address, website) in the order their mock distances are derived
MOCK_STORES = [
    ("walmart-1", "Walmart Supercenter", "123 Main St, City, ST 12345", "https://www.walmart.com"),
    ("target-1", "Target", "456 Oak Ave, City, ST 12345", "https://www.target.com"),
    ("walmart-2", "Walmart Neighborhood Market", "789 Elm St, City, ST 12345", "https://www.walmart.com"),
    ("target-2", "Target", "321 Pine Rd, City, ST 12345", "https://www.target.com"),
]


def mock_distance(latitude: float, longitude: float, index: int) -> int:
    """Pseudo distance between 1 km and 7 km, stable for a given location."""
    seed = abs(math.floor(latitude * longitude * 1000)) + index * 1000
    return 1000 + seed % 6000


def _by_distance(store: Store) -> float:
    return store.distance_meters or 0


class StoreDiscoveryService:
    """Nearby grocery stores for a location.

    Cache first, then Geoapify. Any failure (not configured, HTTP error, no
    matching stores) yields the mock store list instead; the mock list is not
    cached so the real API is retried on the next request.
    """

    def __init__(
        self,
        cache: PriceCache,
        client: GeoapifyClient,
        default_radius_meters: int = 8000,
        store_names: Sequence[str] = ("Walmart", "Target"),
        max_stores: int = 10,
        mock_latency_seconds: float = 0.0,
    ):
        self.cache = cache
        self.client = client
        self.default_radius_meters = default_radius_meters
        self.store_names = list(store_names)
        self.max_stores = max_stores
        self.mock_latency_seconds = mock_latency_seconds

    @classmethod
    def from_settings(cls, settings: Settings, cache: PriceCache, client: GeoapifyClient) -> "StoreDiscoveryService":
        return cls(
            cache=cache,
            client=client,
            default_radius_meters=settings.default_search_radius_meters,
            store_names=settings.target_store_names,
            max_stores=settings.max_stores,
            mock_latency_seconds=settings.mock_latency_seconds,
        )

    async def find_nearby_stores(
        self, latitude: float, longitude: float, radius: Optional[float] = None
    ) -> List[Store]:
        radius = radius if radius is not None else self.default_radius_meters

        cached = self.cache.get_store_list(latitude, longitude, radius)
        if cached is not None:
            logger.info("Store cache hit")
            return cached

        try:
            features = await self.client.find_stores(
                latitude=latitude,
                longitude=longitude,
                radius=radius,
                categories=["commercial.supermarket"],
                limit=50,
                store_names=self.store_names,
            )
            stores = self.features_to_stores(features)
        except Exception as exc:  # noqa: BLE001
            logger.warning("Store lookup failed, falling back to mock stores: %s", exc)
            return await self.mock_stores(latitude, longitude)

        logger.info("Found %d stores via Geoapify", len(stores))
        if not stores:
            logger.info("No matching stores found via Geoapify, falling back to mock stores")
            return await self.mock_stores(latitude, longitude)

        self.cache.put_store_list(latitude, longitude, radius, stores)
        return stores

    def features_to_stores(self, features: List[Feature]) -> List[Store]:
        stores = []
        for feature in features:
            name = feature_name(feature)
            if not name:
                logger.warning("Feature %s has no name, skipping", feature.get("properties", {}).get("place_id"))
                continue
            distance = feature_distance(feature)
            stores.append(
                Store(
                    id=f"geoapify-{feature['properties']['place_id']}",
                    name=name,
                    address=feature_address(feature),
                    distance_meters=round(distance) if distance else None,
                    website_url=feature_website(feature, name),
                )
            )
        stores.sort(key=_by_distance)
        return stores[: self.max_stores]

    async def mock_stores(self, latitude: float, longitude: float) -> List[Store]:
        if self.mock_latency_seconds:
            await asyncio.sleep(self.mock_latency_seconds)
        stores = [
            Store(
                id=store_id,
                name=name,
                address=address,
                distance_meters=mock_distance(latitude, longitude, index),
                website_url=website,
            )
            for index, (store_id, name, address, website) in enumerate(MOCK_STORES)
        ]
        return sorted(stores, key=_by_distance)
