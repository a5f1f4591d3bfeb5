from typing import List

from pydantic_settings import BaseSettings, SettingsConfigDict


class Settings(BaseSettings):
    model_config = SettingsConfigDict(env_file=".env", env_file_encoding="utf-8", extra="ignore")

    # Demo mode: bypass every real price provider
    force_mock_data: bool = False

    # Cache TTLs (stores move rarely, prices drift faster)
    store_ttl_seconds: int = 86400
    price_ttl_seconds: int = 14400
    store_cache_check_period_seconds: int = 600
    price_cache_check_period_seconds: int = 300

    # Simulated delay for mock prices / mock stores
    mock_latency_seconds: float = 0.1

    # Keys must be provided via env / .env (never hardcode secrets in code)
    geoapify_api_key: str | None = None
    geoapify_api_url: str = "https://api.geoapify.com/v2/places"
    geoapify_timeout: float = 10.0
    user_agent: str = "GroceryPriceFinder/1.0"

    default_search_radius_meters: int = 8000
    max_stores: int = 10
    target_store_names: List[str] = ["Walmart", "Target"]

    log_level: str = "INFO"


settings = Settings()  # load once at import
