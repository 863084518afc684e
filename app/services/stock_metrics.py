"""
Per-SKU stocking metrics

A day counts as "in stock" when its reconstructed availability is above
IN_STOCK_THRESHOLD, whichever reconstruction policy produced the series.
"""
from datetime import date
from typing import Mapping, Optional, Sequence

from app.models.inventory_report import SkuMetrics
from app.services.sales_index import SalesIndex

IN_STOCK_THRESHOLD = 0


def compute_sku_metrics(
    daily_availability: Mapping[date, int],
    sales_index: SalesIndex,
    normalized_sku: str,
    days: Sequence[date],
    sku_raw: Optional[str] = None
) -> SkuMetrics:
    """
    Single pass over the window.

    Args:
        daily_availability: Available units per day (missing days count as 0)
        sales_index: Shared (day, sku) -> units sold index
        normalized_sku: Join key of the SKU being measured
        days: Ordered days of the report window
        sku_raw: Raw SKU text to carry into the output

    Returns:
        SkuMetrics where days_in_stock + stockout_days == len(days)
    """
    metrics = SkuMetrics(sku=normalized_sku, sku_raw=sku_raw or normalized_sku)

    for day in days:
        available = daily_availability.get(day, 0)
        sold = sales_index.get((day, normalized_sku), 0)

        metrics.total_sold += sold

        if available > IN_STOCK_THRESHOLD:
            metrics.days_in_stock += 1
            metrics.sold_while_in_stock += sold
        else:
            metrics.stockout_days += 1

    return metrics
