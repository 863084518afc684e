"""Domain models for the inventory availability report"""

from app.models.inventory_report import (
    DailyAvailability,
    InventoryItem,
    StockEvent,
    SaleEvent,
    ItemEventsResult,
    SkuMetrics,
    ExternalSkuRecord,
    MergedSkuReport,
)

__all__ = [
    "DailyAvailability",
    "InventoryItem",
    "StockEvent",
    "SaleEvent",
    "ItemEventsResult",
    "SkuMetrics",
    "ExternalSkuRecord",
    "MergedSkuReport",
]
