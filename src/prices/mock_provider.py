"""Deterministic placeholder prices.

Used for demos (force_mock_data), for stores without a live provider, and as
the fallback when a live provider fails. The same normalized name and quantity
always produce the same price, across runs as well as within one.
"""
import asyncio
from decimal import ROUND_HALF_UP, Decimal
from typing import Dict, List, Optional, Tuple

from src.app.schemas import CURRENCY, GroceryItem, ItemPrice

CENT = Decimal("0.01")

PriceRange = Tuple[Decimal, Decimal]


def _range(low: str, high: str) -> PriceRange:
    return Decimal(low), Decimal(high)


PRICE_RANGES: Dict[str, PriceRange] = {
    "milk": _range("3.50", "5.00"),
    "eggs": _range("3.00", "6.00"),
    "bread": _range("2.50", "4.50"),
    "butter": _range("4.00", "6.50"),
    "cheese": _range("4.50", "8.00"),
    "chicken": _range("6.00", "12.00"),
    "beef": _range("8.00", "15.00"),
    "rice": _range("2.00", "5.00"),
    "pasta": _range("1.50", "3.50"),
    "apples": _range("2.00", "5.00"),
    "bananas": _range("1.50", "3.00"),
    "tomatoes": _range("2.50", "4.50"),
    "lettuce": _range("2.00", "4.00"),
    "carrots": _range("1.50", "3.50"),
    "onions": _range("1.00", "2.50"),
    "potatoes": _range("3.00", "6.00"),
    "cereal": _range("3.50", "6.50"),
    "coffee": _range("6.00", "12.00"),
    "sugar": _range("2.50", "4.50"),
    "flour": _range("3.00", "5.50"),
}
DEFAULT_RANGE: PriceRange = _range("2.00", "10.00")


def string_hash(value: str) -> int:
    """Stable 32-bit `h = h * 31 + c` hash (absolute value). Python's hash() is salted per process."""
    h = 0
    for ch in value:
        h = (h * 31 + ord(ch)) & 0xFFFFFFFF
    if h >= 0x80000000:
        h -= 0x100000000
    return abs(h)


def _catalogue_key(normalized: str) -> Optional[str]:
    if normalized in PRICE_RANGES:
        return normalized
    # "whole milk" -> milk, "roma tomato" -> tomatoes; the last word is usually the noun
    for word in reversed(normalized.split()):
        for candidate in (word, word + "s", word + "es"):
            if candidate in PRICE_RANGES:
                return candidate
    return None


def price_range_for(normalized_name: str) -> PriceRange:
    key = _catalogue_key(normalized_name.strip().lower())
    return PRICE_RANGES[key] if key else DEFAULT_RANGE


def unit_price(normalized_name: str) -> Decimal:
    normalized = normalized_name.strip().lower()
    low, high = price_range_for(normalized)
    fraction = Decimal(string_hash(normalized) % 100) / 100
    return low + fraction * (high - low)


def mock_price(normalized_name: str, quantity: int = 1) -> Decimal:
    return (unit_price(normalized_name) * quantity).quantize(CENT, rounding=ROUND_HALF_UP)


class MockPriceProvider:
    name = "MockProvider"

    def __init__(self, latency_seconds: float = 0.0):
        self.latency_seconds = latency_seconds

    async def get_prices(self, items: List[GroceryItem]) -> List[ItemPrice]:
        if self.latency_seconds:
            await asyncio.sleep(self.latency_seconds)
        return [
            ItemPrice(
                item_name=item.display_name,
                price=mock_price(item.normalized_name, item.quantity),
                currency=CURRENCY,
                is_mock_data=True,
            )
            for item in items
        ]

    async def is_available(self) -> bool:
        return True
