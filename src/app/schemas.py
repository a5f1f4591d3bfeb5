from decimal import Decimal
from enum import Enum
from typing import Annotated, List, Optional

from pydantic import BaseModel, ConfigDict, Field, PlainSerializer
from pydantic.alias_generators import to_camel

# Prices stay exact internally and go out as JSON numbers
Money = Annotated[Decimal, PlainSerializer(float, return_type=float, when_used="json")]

CURRENCY = "USD"


class ApiModel(BaseModel):
    model_config = ConfigDict(alias_generator=to_camel, populate_by_name=True)


class FrozenModel(ApiModel):
    model_config = ConfigDict(alias_generator=to_camel, populate_by_name=True, frozen=True)


class ProductRecord(BaseModel):
    id: int
    name: str
    normalized_name: str
    category: str
    brand: Optional[str] = None
    size: Optional[str] = None
    unit: Optional[str] = None
    search_terms: Optional[str] = None
    is_common: bool = False


class ProductSearchResult(ApiModel):
    id: int
    name: str
    category: str
    brand: Optional[str] = None
    size: Optional[str] = None
    unit: Optional[str] = None
    display_name: str


class ProductSearchResponse(ApiModel):
    products: List[ProductSearchResult]


class GroceryItem(FrozenModel):
    product_id: int
    display_name: str
    normalized_name: str
    category: str
    quantity: int = Field(1, gt=0)


class ItemPrice(FrozenModel):
    item_name: str
    price: Optional[Money] = None  # None means "not found", never an error
    currency: str = CURRENCY
    is_mock_data: bool = False


class Store(FrozenModel):
    id: str
    name: str
    address: str
    distance_meters: Optional[float] = None
    website_url: Optional[str] = None


class StoreWithPrices(Store):
    items: List[ItemPrice]
    total: Optional[Money] = None
    used_mock_data: bool = False
    mock_data_reason: Optional[str] = None


class FetchOutcome(str, Enum):
    DEMO = "demo"
    CACHE = "cache"
    PROVIDER = "provider"
    FALLBACK = "fallback"


class PriceFetchResult(FrozenModel):
    """What the provider manager hands back for one store.

    A FALLBACK outcome is still a successful result: `prices` is full length
    and `mock_data_reason` says why real data was not used.
    """

    prices: List[ItemPrice]
    outcome: FetchOutcome
    used_mock_data: bool
    mock_data_reason: Optional[str] = None


class ComparisonStats(ApiModel):
    total_stores: int
    stores_with_complete_prices: int
    stores_using_mock_data: int


class CompareItem(ApiModel):
    product_id: int
    quantity: int = Field(..., gt=0)


class CompareRequest(ApiModel):
    latitude: float = Field(..., ge=-90, le=90)
    longitude: float = Field(..., ge=-180, le=180)
    items: List[CompareItem] = Field(..., min_length=1)


class CompareResponse(ApiModel):
    stores: List[StoreWithPrices]
    timestamp: str


class ErrorResponse(BaseModel):
    error: str
    message: str
