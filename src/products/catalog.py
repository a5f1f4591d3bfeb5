import json
import pathlib
from typing import Dict, Iterable, List, Optional

from src.app.schemas import GroceryItem, ProductRecord, ProductSearchResult

FIXTURE_PATH = pathlib.Path(__file__).parent / "fixtures" / "products.json"


def load_products(path: pathlib.Path = FIXTURE_PATH) -> List[ProductRecord]:
    data = json.loads(path.read_text(encoding="utf-8"))
    return [ProductRecord(**row) for row in data]


def display_name(product: ProductRecord) -> str:
    """'Whole Milk (1 gallon)', or just the name when there is no size."""
    if product.size:
        return f"{product.name} ({product.size})"
    return product.name


def to_grocery_item(product: ProductRecord, quantity: int) -> GroceryItem:
    return GroceryItem(
        product_id=product.id,
        display_name=product.name,
        normalized_name=product.normalized_name,
        category=product.category,
        quantity=quantity,
    )


class ProductCatalog:
    """Read-only product lookup backed by the bundled fixture."""

    def __init__(self, products: Optional[Iterable[ProductRecord]] = None):
        records = list(products) if products is not None else load_products()
        self._by_id: Dict[int, ProductRecord] = {p.id: p for p in records}

    def get_product_by_id(self, product_id: int) -> Optional[ProductRecord]:
        return self._by_id.get(product_id)

    def get_products_by_ids(self, ids: Iterable[int]) -> Dict[int, ProductRecord]:
        # unknown ids are left out; the caller decides how to report them
        return {i: self._by_id[i] for i in ids if i in self._by_id}

    def search_products(self, query: str, limit: int = 10) -> List[ProductSearchResult]:
        needle = query.strip().lower()
        products = self._by_id.values()
        if not needle:
            matches = sorted((p for p in products if p.is_common), key=lambda p: p.normalized_name)
        else:
            matches = sorted(
                (p for p in products if needle in p.normalized_name or needle in (p.search_terms or "")),
                key=lambda p: (not p.is_common, p.normalized_name),
            )
        return [self._search_result(p) for p in matches[:limit]]

    @staticmethod
    def _search_result(product: ProductRecord) -> ProductSearchResult:
        return ProductSearchResult(
            id=product.id,
            name=product.name,
            category=product.category,
            brand=product.brand,
            size=product.size,
            unit=product.unit,
            display_name=display_name(product),
        )
