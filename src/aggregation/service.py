"""Turns nearby stores + a grocery list into ranked per-store totals."""
import asyncio
import logging
from decimal import ROUND_HALF_UP, Decimal
from typing import List, Optional, Sequence

from src.app.schemas import CURRENCY, ComparisonStats, GroceryItem, ItemPrice, Store, StoreWithPrices
from src.prices.manager import PriceProviderManager

logger = logging.getLogger(__name__)

CENT = Decimal("0.01")


def calculate_total(prices: Sequence[ItemPrice]) -> Optional[Decimal]:
    """Sum of item prices, or None if any price is missing.

    A partial total would look cheaper than a complete one, so stores with a
    gap in their list are never given a total.
    """
    total = Decimal("0")
    for item_price in prices:
        if item_price.price is None:
            return None
        total += item_price.price
    return total.quantize(CENT, rounding=ROUND_HALF_UP)


def rank_stores(stores: Sequence[StoreWithPrices]) -> List[StoreWithPrices]:
    # cheapest first, stores without a total last (stable among themselves)
    return sorted(stores, key=lambda s: (s.total is None, s.total if s.total is not None else Decimal("0")))


class AggregationService:
    def __init__(self, manager: PriceProviderManager):
        self.manager = manager

    async def compare_stores(self, stores: Sequence[Store], items: Sequence[GroceryItem]) -> List[StoreWithPrices]:
        """Price every store concurrently and rank them by total.

        Never raises: a store whose pipeline fails comes back as a degraded row
        (no prices, no total, used_mock_data=True) so the result always has one
        entry per input store.
        """
        items = list(items)
        results = await asyncio.gather(*(self._store_with_prices(store, items) for store in stores))
        return rank_stores(results)

    async def _store_with_prices(self, store: Store, items: List[GroceryItem]) -> StoreWithPrices:
        try:
            fetched = await self.manager.get_prices_for_store(store.name, items)
            return StoreWithPrices(
                **store.model_dump(),
                items=fetched.prices,
                total=calculate_total(fetched.prices),
                used_mock_data=fetched.used_mock_data,
                mock_data_reason=fetched.mock_data_reason,
            )
        except Exception as exc:  # noqa: BLE001
            logger.exception("Failed to get prices for %s", store.name)
            return StoreWithPrices(
                **store.model_dump(),
                items=[
                    ItemPrice(item_name=item.display_name, price=None, currency=CURRENCY, is_mock_data=False)
                    for item in items
                ],
                total=None,
                used_mock_data=True,
                mock_data_reason=f"Error: {str(exc) or type(exc).__name__}",
            )

    @staticmethod
    def get_stats(results: Sequence[StoreWithPrices]) -> ComparisonStats:
        return ComparisonStats(
            total_stores=len(results),
            stores_with_complete_prices=sum(1 for s in results if s.total is not None),
            stores_using_mock_data=sum(1 for s in results if s.used_mock_data),
        )
