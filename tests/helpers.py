from decimal import Decimal
from typing import Dict, List, Optional

from src.app.schemas import GroceryItem, ItemPrice, Store


class FakeClock:
    def __init__(self, start: float = 1000.0):
        self.now = start

    def __call__(self) -> float:
        return self.now

    def advance(self, seconds: float) -> None:
        self.now += seconds


class StaticProvider:
    """Live-provider stand-in returning fixed prices keyed by product id."""

    def __init__(self, name: str, prices: Dict[int, Optional[str]], available: bool = True):
        self.name = name
        self.prices = prices
        self.available = available
        self.calls = 0

    async def is_available(self) -> bool:
        return self.available

    async def get_prices(self, items: List[GroceryItem]) -> List[ItemPrice]:
        self.calls += 1
        out = []
        for item in items:
            raw = self.prices.get(item.product_id)
            out.append(ItemPrice(item_name=item.display_name, price=Decimal(raw) if raw is not None else None))
        return out


class FailingProvider:
    name = "FailingProvider"

    def __init__(self, message: str = "boom"):
        self.message = message

    async def is_available(self) -> bool:
        return True

    async def get_prices(self, items: List[GroceryItem]) -> List[ItemPrice]:
        raise ConnectionError(self.message)


def make_item(product_id: int, name: str, quantity: int = 1, category: str = "Dairy") -> GroceryItem:
    return GroceryItem(
        product_id=product_id,
        display_name=name.title(),
        normalized_name=name,
        category=category,
        quantity=quantity,
    )


def make_store(store_id: str, name: str, distance: Optional[float] = None) -> Store:
    return Store(id=store_id, name=name, address="1 Test St", distance_meters=distance)
