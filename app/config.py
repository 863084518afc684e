"""
Configuration management for the Inventory Availability Report service
"""
from dataclasses import dataclass
from pydantic_settings import BaseSettings
from functools import lru_cache
from typing import Optional

from app.exceptions import ConfigurationError


class Settings(BaseSettings):
    """Application settings"""

    # Application
    app_name: str = "Inventory Availability Report"
    environment: str = "development"
    debug: bool = False
    log_level: str = "INFO"
    log_to_file: bool = True

    # API
    api_host: str = "0.0.0.0"
    api_port: int = 8000

    # Shopify
    shopify_store_domain: Optional[str] = None
    shopify_admin_api_access_token: Optional[str] = None
    shopify_api_version: str = "2024-10"
    shopify_requests_per_second: float = 0.0  # 0 disables client-side throttling

    # Sell-through sheet (published CSV export)
    sellthrough_sheet_csv_url: Optional[str] = None

    # Report
    default_range_months: int = 24
    inventory_batch_size: int = 10  # Concurrent inventory sub-fetches per batch
    reconstruction_policy: str = "forward"  # forward | backward
    report_cache_ttl_seconds: int = 300
    http_timeout_seconds: float = 60.0

    class Config:
        env_file = ".env"
        case_sensitive = False


@lru_cache()
def get_settings() -> Settings:
    """Get cached settings instance"""
    return Settings()


@dataclass(frozen=True)
class ReportConfig:
    """
    Explicit configuration passed into the report engine.

    Built from Settings at the HTTP edge so the engine itself never reads
    the environment.
    """
    store_domain: Optional[str]
    access_token: Optional[str]
    api_version: str = "2024-10"
    requests_per_second: float = 0.0
    sheet_csv_url: Optional[str] = None
    default_range_months: int = 24
    inventory_batch_size: int = 10
    reconstruction_policy: str = "forward"
    http_timeout_seconds: float = 60.0

    @classmethod
    def from_settings(cls, settings: Settings) -> "ReportConfig":
        return cls(
            store_domain=settings.shopify_store_domain,
            access_token=settings.shopify_admin_api_access_token,
            api_version=settings.shopify_api_version,
            requests_per_second=settings.shopify_requests_per_second,
            sheet_csv_url=settings.sellthrough_sheet_csv_url,
            default_range_months=settings.default_range_months,
            inventory_batch_size=settings.inventory_batch_size,
            reconstruction_policy=settings.reconstruction_policy,
            http_timeout_seconds=settings.http_timeout_seconds,
        )

    def require_shopify(self) -> None:
        """Raise ConfigurationError unless Shopify credentials are present"""
        if not self.store_domain or not self.access_token:
            raise ConfigurationError("Missing Shopify environment variables")

    def require_sheet(self) -> None:
        if not self.sheet_csv_url:
            raise ConfigurationError("SELLTHROUGH_SHEET_CSV_URL is not set")
