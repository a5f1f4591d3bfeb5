import logging
import time
from dataclasses import dataclass
from datetime import datetime, timezone

from fastapi import Depends, FastAPI, Query, Request
from fastapi.responses import JSONResponse

from src.aggregation.service import AggregationService
from src.app.logging import configure_logging, event
from src.app.schemas import CompareRequest, CompareResponse, ErrorResponse, ProductSearchResponse
from src.app.settings import Settings, settings
from src.cache.price_cache import PriceCache
from src.prices.manager import PriceProviderManager
from src.products.catalog import ProductCatalog, to_grocery_item
from src.stores.discovery import StoreDiscoveryService
from src.stores.geoapify_client import GeoapifyClient

logger = logging.getLogger(__name__)


@dataclass
class Services:
    cache: PriceCache
    prices: PriceProviderManager
    aggregation: AggregationService
    discovery: StoreDiscoveryService
    catalog: ProductCatalog
    geoapify: GeoapifyClient


def build_services(cfg: Settings) -> Services:
    cache = PriceCache.from_settings(cfg)
    manager = PriceProviderManager.from_settings(cfg, cache)
    geoapify = GeoapifyClient(
        api_key=cfg.geoapify_api_key,
        api_url=cfg.geoapify_api_url,
        timeout=cfg.geoapify_timeout,
        user_agent=cfg.user_agent,
    )
    return Services(
        cache=cache,
        prices=manager,
        aggregation=AggregationService(manager),
        discovery=StoreDiscoveryService.from_settings(cfg, cache, geoapify),
        catalog=ProductCatalog(),
        geoapify=geoapify,
    )


def _error(status_code: int, error: str, message: str) -> JSONResponse:
    return JSONResponse(status_code=status_code, content=ErrorResponse(error=error, message=message).model_dump())


def _now_iso() -> str:
    return datetime.now(timezone.utc).isoformat()


def get_services(request: Request) -> Services:
    return request.app.state.services


def create_app(cfg: Settings | None = None, services: Services | None = None) -> FastAPI:
    cfg = cfg or settings
    app = FastAPI(title="Grocery Price Finder")
    app.state.services = services or build_services(cfg)

    @app.on_event("shutdown")
    async def close_clients():
        await app.state.services.geoapify.close()

    @app.get("/health")
    def health():
        return {"status": "ok", "timestamp": _now_iso()}

    @app.get("/products/search", response_model=ProductSearchResponse)
    def search_products(
        q: str = "",
        limit: int = Query(10),
        svc: Services = Depends(get_services),
    ):
        if limit < 1 or limit > 100:
            return _error(400, "Bad Request", "Limit must be between 1 and 100")
        return ProductSearchResponse(products=svc.catalog.search_products(q, limit))

    @app.get("/cache/stats")
    def cache_stats(svc: Services = Depends(get_services)):
        return svc.cache.get_stats()

    @app.post("/compare", response_model=CompareResponse)
    async def compare(payload: CompareRequest, svc: Services = Depends(get_services)):
        start = time.perf_counter()
        try:
            logger.info(
                "Comparing prices for %d items at location (%s, %s)",
                len(payload.items),
                payload.latitude,
                payload.longitude,
            )
            product_ids = [item.product_id for item in payload.items]
            products = svc.catalog.get_products_by_ids(product_ids)
            missing = [pid for pid in product_ids if pid not in products]
            if missing:
                return _error(400, "Bad Request", f"Products not found: {', '.join(map(str, missing))}")

            items = [to_grocery_item(products[item.product_id], item.quantity) for item in payload.items]
            stores = await svc.discovery.find_nearby_stores(payload.latitude, payload.longitude)
            logger.info("Found %d nearby stores", len(stores))

            results = await svc.aggregation.compare_stores(stores, items)
            stats = svc.aggregation.get_stats(results)
            event(
                f"Comparison stats: {stats.model_dump()}",
                extra={**stats.model_dump(), "latency_ms": int((time.perf_counter() - start) * 1000)},
            )
            return CompareResponse(stores=results, timestamp=_now_iso())
        except Exception as exc:  # noqa: BLE001
            logger.exception("compare handler failed")
            return _error(500, "Internal Server Error", str(exc) or "Unknown error occurred")

    return app


configure_logging(settings.log_level)
app = create_app()


if __name__ == "__main__":
    import uvicorn

    uvicorn.run(app, host="0.0.0.0", port=3001)
