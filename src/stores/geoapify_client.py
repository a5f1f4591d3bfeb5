"""Async client for the Geoapify Places API (supermarkets near a point).

API docs: https://apidocs.geoapify.com/docs/places/
"""
import logging
from typing import Any, Dict, List, Optional, Sequence

import httpx

logger = logging.getLogger(__name__)

Feature = Dict[str, Any]

BRAND_WEBSITES = {
    "walmart": "https://www.walmart.com",
    "target": "https://www.target.com",
}


class GeoapifyError(RuntimeError):
    pass


def brand_website(store_name: str) -> Optional[str]:
    name = store_name.lower()
    for brand, url in BRAND_WEBSITES.items():
        if brand in name:
            return url
    return None


class GeoapifyClient:
    def __init__(
        self,
        api_key: Optional[str],
        api_url: str = "https://api.geoapify.com/v2/places",
        timeout: float = 10.0,
        user_agent: str = "GroceryPriceFinder/1.0",
        transport: Optional[httpx.AsyncBaseTransport] = None,
    ):
        self.api_key = api_key or ""
        self.api_url = api_url
        self.client = httpx.AsyncClient(
            timeout=timeout,
            headers={"User-Agent": user_agent},
            transport=transport,
        )
        if not self.api_key:
            logger.warning("GEOAPIFY_API_KEY not set - store discovery will use mock stores")

    def is_configured(self) -> bool:
        return bool(self.api_key)

    async def find_stores(
        self,
        latitude: float,
        longitude: float,
        radius: float,
        categories: Sequence[str] = ("commercial.supermarket",),
        limit: int = 50,
        store_names: Sequence[str] = (),
    ) -> List[Feature]:
        """
        Query places within `radius` metres and optionally keep only features
        whose name contains one of `store_names` (case-insensitive).

        Raises:
            GeoapifyError: not configured, timeout, HTTP error status or network failure
        """
        if not self.is_configured():
            raise GeoapifyError("Geoapify API key not configured")

        params = {
            "categories": ",".join(categories) or "commercial.supermarket",
            # GeoJSON order: lon,lat
            "filter": f"circle:{longitude},{latitude},{radius}",
            "limit": limit,
            "apiKey": self.api_key,
        }
        logger.info("Querying Geoapify API for stores near (%s, %s)", latitude, longitude)

        try:
            response = await self.client.get(self.api_url, params=params)
            response.raise_for_status()
            data = response.json()
        except httpx.TimeoutException as e:
            raise GeoapifyError("Geoapify API request timed out") from e
        except httpx.HTTPStatusError as e:
            status = e.response.status_code
            if status == 429:
                raise GeoapifyError("Geoapify API rate limit exceeded") from e
            if status in (401, 403):
                raise GeoapifyError("Geoapify API authentication failed - check API key") from e
            raise GeoapifyError(f"Geoapify API error: {status} - {e.response.reason_phrase}") from e
        except httpx.RequestError as e:
            raise GeoapifyError(f"Network error querying Geoapify API: {e}") from e

        features = data.get("features", [])
        logger.info("Geoapify API returned %d features", len(features))
        if store_names:
            features = filter_by_store_names(features, store_names)
            logger.info("Filtered to %d stores matching: %s", len(features), ", ".join(store_names))
        return features

    async def close(self):
        await self.client.aclose()


def filter_by_store_names(features: List[Feature], store_names: Sequence[str]) -> List[Feature]:
    wanted = [name.lower() for name in store_names]
    return [
        f for f in features
        if any(name in (f.get("properties", {}).get("name") or "").lower() for name in wanted)
    ]


def feature_name(feature: Feature) -> Optional[str]:
    return feature.get("properties", {}).get("name") or None


def feature_address(feature: Feature) -> str:
    props = feature.get("properties", {})
    if props.get("formatted"):
        return props["formatted"]
    if props.get("address_line1"):
        if props.get("address_line2"):
            return f"{props['address_line1']}, {props['address_line2']}"
        return props["address_line1"]

    parts = []
    if props.get("housenumber") and props.get("street"):
        parts.append(f"{props['housenumber']} {props['street']}")
    elif props.get("street"):
        parts.append(props["street"])
    for field in ("city", "state", "postcode"):
        if props.get(field):
            parts.append(str(props[field]))
    return ", ".join(parts) if parts else "Address not available"


def feature_website(feature: Feature, store_name: str) -> Optional[str]:
    return feature.get("properties", {}).get("website") or brand_website(store_name)


def feature_distance(feature: Feature) -> Optional[float]:
    return feature.get("properties", {}).get("distance")
