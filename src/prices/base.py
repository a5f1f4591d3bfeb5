"""Contract every price data source implements (mock generator, store scrapers, APIs)."""
from typing import List, Protocol, runtime_checkable

from src.app.schemas import GroceryItem, ItemPrice


class ProviderUnavailableError(RuntimeError):
    """The provider cannot be used at all right now (not configured, outage)."""


@runtime_checkable
class PriceProvider(Protocol):
    """
    - name: readable provider name, used in logs and fallback reasons
    - get_prices: one ItemPrice per item, same order. A missing item is an
      ItemPrice with price=None; raise only when the provider itself is unusable.
    - is_available: cheap liveness/configuration check done before each use
    """

    name: str

    async def get_prices(self, items: List[GroceryItem]) -> List[ItemPrice]:
        ...

    async def is_available(self) -> bool:
        ...
