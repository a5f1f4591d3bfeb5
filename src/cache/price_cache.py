"""In-memory TTL cache for nearby-store lists and per-store product prices.

Two entry classes with independent TTLs: store lists (long-lived) and prices
(short-lived). Expiry is lazy on read plus a periodic sweep piggybacked on
access, so an expired entry may linger in memory until the next sweep but is
never returned. The key formats are stable so the backend can be swapped for
a shared cache (e.g. Redis) without invalidating anything.
"""
import logging
import time
from decimal import ROUND_HALF_UP, Decimal
from typing import Any, Callable, Dict, List, Optional, Tuple

from src.app.schemas import Store
from src.app.settings import Settings

logger = logging.getLogger(__name__)

Clock = Callable[[], float]


def _fixed3(value: float) -> str:
    """Format like JavaScript's Number.prototype.toFixed(3)."""
    if value == 0:
        value = 0.0  # toFixed drops the sign of -0
    return str(Decimal(value).quantize(Decimal("0.001"), rounding=ROUND_HALF_UP))


def _plain_number(value: float) -> str:
    if isinstance(value, float) and value.is_integer():
        return str(int(value))
    return str(value)


def store_key(lat: float, lng: float, radius: float) -> str:
    return f"stores:{_fixed3(lat)}:{_fixed3(lng)}:{_plain_number(radius)}"


def price_key(store_name: str, product_id: int) -> str:
    return f"price:{store_name.strip().lower()}:{product_id}"


class ExpiringStore:
    """Dict of key -> (value, expires_at) with hit/miss counters."""

    def __init__(self, ttl_seconds: float, check_period_seconds: float, clock: Clock = time.monotonic):
        self.ttl = ttl_seconds
        self.check_period = check_period_seconds
        self._clock = clock
        self._entries: Dict[str, Tuple[Any, float]] = {}
        self._last_sweep = clock()
        self.hits = 0
        self.misses = 0

    def get(self, key: str) -> Optional[Any]:
        now = self._clock()
        self._maybe_sweep(now)
        entry = self._entries.get(key)
        if entry is None:
            self.misses += 1
            return None
        value, expires_at = entry
        if now >= expires_at:
            del self._entries[key]
            self.misses += 1
            return None
        self.hits += 1
        return value

    def set(self, key: str, value: Any) -> None:
        now = self._clock()
        self._maybe_sweep(now)
        self._entries[key] = (value, now + self.ttl)

    def flush(self) -> None:
        self._entries.clear()
        self.hits = 0
        self.misses = 0

    def __len__(self) -> int:
        return len(self._entries)

    def stats(self) -> Dict[str, int]:
        return {"keys": len(self._entries), "hits": self.hits, "misses": self.misses}

    def _maybe_sweep(self, now: float) -> None:
        if now - self._last_sweep < self.check_period:
            return
        expired = [k for k, (_, expires_at) in self._entries.items() if now >= expires_at]
        for k in expired:
            del self._entries[k]
        self._last_sweep = now
        if expired:
            logger.debug("Swept %d expired cache entries", len(expired))


class PriceCache:
    def __init__(
        self,
        store_ttl_seconds: float = 86400,
        price_ttl_seconds: float = 14400,
        store_check_period_seconds: float = 600,
        price_check_period_seconds: float = 300,
        clock: Clock = time.monotonic,
    ):
        self._stores = ExpiringStore(store_ttl_seconds, store_check_period_seconds, clock)
        self._prices = ExpiringStore(price_ttl_seconds, price_check_period_seconds, clock)

    @classmethod
    def from_settings(cls, settings: Settings, clock: Clock = time.monotonic) -> "PriceCache":
        return cls(
            store_ttl_seconds=settings.store_ttl_seconds,
            price_ttl_seconds=settings.price_ttl_seconds,
            store_check_period_seconds=settings.store_cache_check_period_seconds,
            price_check_period_seconds=settings.price_cache_check_period_seconds,
            clock=clock,
        )

    # Store lists

    def get_store_list(self, lat: float, lng: float, radius: float) -> Optional[List[Store]]:
        stores = self._stores.get(store_key(lat, lng, radius))
        return list(stores) if stores is not None else None

    def put_store_list(self, lat: float, lng: float, radius: float, stores: List[Store]) -> None:
        self._stores.set(store_key(lat, lng, radius), tuple(stores))

    # Prices

    def get_price(self, store_name: str, product_id: int) -> Optional[Decimal]:
        return self._prices.get(price_key(store_name, product_id))

    def put_price(self, store_name: str, product_id: int, price: Optional[Decimal]) -> None:
        # no negative caching: a later retry must be able to find the price
        if price is None:
            return
        self._prices.set(price_key(store_name, product_id), price)

    def clear_all(self) -> None:
        self._stores.flush()
        self._prices.flush()

    def get_stats(self) -> Dict[str, Dict[str, int]]:
        return {"stores": self._stores.stats(), "prices": self._prices.stats()}
