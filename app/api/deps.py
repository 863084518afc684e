"""
Shared API dependencies
"""
from typing import Callable

from fastapi import Depends

from app.config import ReportConfig, Settings, get_settings
from app.connectors.shopify import ShopifyConnector
from app.services.inventory_report_service import InventoryReportService

# ReportConfig -> service; resolved inside handlers so ConfigurationError
# becomes an { ok: false } payload instead of an unhandled dependency error
ReportServiceFactory = Callable[[ReportConfig], InventoryReportService]


def get_report_config(settings: Settings = Depends(get_settings)) -> ReportConfig:
    """Explicit engine configuration built from the environment"""
    return ReportConfig.from_settings(settings)


def get_report_service_factory() -> ReportServiceFactory:
    return InventoryReportService


def build_shopify_connector(config: ReportConfig) -> ShopifyConnector:
    config.require_shopify()
    return ShopifyConnector(
        store_url=config.store_domain,
        access_token=config.access_token,
        api_version=config.api_version,
        timeout=config.http_timeout_seconds,
        requests_per_second=config.requests_per_second,
    )


def get_shopify_factory() -> Callable[[ReportConfig], ShopifyConnector]:
    return build_shopify_connector
