"""
Merge Shopify metrics with the sell-through sheet

Full outer join on normalized SKU. Ratios that cannot be computed stay None
(serialized as null) instead of being coerced to zero.
"""
from typing import Dict, Mapping, Optional

from app.models.inventory_report import ExternalSkuRecord, MergedSkuReport, SkuMetrics
from app.utils.helpers import safe_divide


def _empty_external(sku: str, sku_raw: str) -> ExternalSkuRecord:
    return ExternalSkuRecord(sku=sku, sku_raw=sku_raw, days_in_stock=0, days_out_of_stock=0)


def merge_sku(
    sku: str,
    platform: Optional[SkuMetrics],
    sheet: Optional[ExternalSkuRecord],
    units_sold: int = 0
) -> MergedSkuReport:
    """
    Build the merged row for one SKU; either side may be missing

    Args:
        units_sold: Units sold in the window, used when the SKU has no
            catalog metrics (e.g. a discontinued variant that still has orders)
    """
    in_platform = platform is not None
    in_sheet = sheet is not None

    if platform is None:
        platform = SkuMetrics(sku=sku, sku_raw=sheet.sku_raw if sheet else sku, total_sold=units_sold)
    if sheet is None:
        sheet = _empty_external(sku, platform.sku_raw or sku)

    days_in_stock = sheet.days_in_stock or 0
    days_out_of_stock = sheet.days_out_of_stock or 0

    return MergedSkuReport(
        sku=sku,
        sku_raw=sheet.sku_raw or platform.sku_raw or sku,
        product_title=sheet.product_title,
        variant_title=sheet.variant_title,
        abc_grade=sheet.abc_grade,
        total_sold=platform.total_sold,
        sold_while_in_stock=platform.sold_while_in_stock,
        platform_days_in_stock=platform.days_in_stock,
        platform_stockout_days=platform.stockout_days,
        days_in_stock=days_in_stock,
        days_out_of_stock=days_out_of_stock,
        in_stock_rate=safe_divide(days_in_stock, days_in_stock + days_out_of_stock),
        velocity_in_stock=safe_divide(platform.total_sold, days_in_stock),
        units_sold_reported=sheet.units_sold_reported,
        sell_through_rate_reported=sheet.sell_through_rate_reported,
        percent_inventory_sold_reported=sheet.percent_inventory_sold_reported,
        starting_units=sheet.starting_units,
        ending_units=sheet.ending_units,
        in_platform=in_platform,
        in_sheet=in_sheet,
    )


def merge_metrics(
    platform_metrics: Mapping[str, SkuMetrics],
    external_records: Mapping[str, ExternalSkuRecord],
    units_sold_by_sku: Optional[Mapping[str, int]] = None
) -> Dict[str, MergedSkuReport]:
    """
    Join the two sources on normalized SKU

    Args:
        platform_metrics: Shopify-derived metrics by normalized SKU
        external_records: Sell-through sheet rows by normalized SKU
        units_sold_by_sku: Order totals per normalized SKU; supplies total_sold
            for sheet SKUs that are no longer in the catalog

    Returns:
        One MergedSkuReport per SKU present in either source, sorted by SKU
    """
    units_sold_by_sku = units_sold_by_sku or {}
    all_skus = sorted(set(platform_metrics) | set(external_records))
    return {
        sku: merge_sku(
            sku,
            platform_metrics.get(sku),
            external_records.get(sku),
            units_sold=units_sold_by_sku.get(sku, 0),
        )
        for sku in all_skus
    }
