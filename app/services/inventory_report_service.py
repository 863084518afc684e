"""
Inventory Report Service

Builds the per-SKU inventory availability report for one request:

  1. Variant catalog (inventory items + SKUs); fatal on failure
  2. Orders since the window start, concurrently with per-item inventory
     sub-fetches in fixed-size batches; orders are fatal, items degrade to zero
  3. Sales index, timeline reconstruction, metrics
  4. Optional merge with the sell-through sheet

Data joins:
  order line item sku (or variant -> catalog sku) -> normalized SKU
  inventory item sku                              -> normalized SKU
  sell-through "Product variant SKU"              -> normalized SKU
"""
import asyncio
from collections import defaultdict
from datetime import date, datetime, timezone
from typing import Any, Dict, List, Optional

from app.config import ReportConfig
from app.connectors.sell_through_sheet import SellThroughSheetConnector
from app.connectors.shopify import ShopifyConnector
from app.exceptions import EnrichmentError, SourceFormatError, UpstreamError
from app.models.inventory_report import ExternalSkuRecord, InventoryItem, ItemEventsResult, SkuMetrics, StockEvent
from app.services.metrics_merger import merge_metrics
from app.services.sales_index import (
    SalesIndex,
    build_sales_index,
    group_sales_by_sku,
    sale_events_from_orders,
    total_sales_by_sku,
)
from app.services.sell_through_parser import parse_sell_through_report
from app.services.sku_normalizer import normalize_sku
from app.services.stock_metrics import compute_sku_metrics
from app.services.timeline_reconstruction import SOURCE_HISTORY, get_policy
from app.utils.helpers import calculate_report_window, chunk_list, enumerate_days
from app.utils.logger import log


class InventoryReportService:
    def __init__(
        self,
        config: ReportConfig,
        shopify: Optional[ShopifyConnector] = None,
        sheet: Optional[SellThroughSheetConnector] = None,
        today: Optional[date] = None
    ):
        """
        Args:
            config: Explicit report configuration
            shopify: Connector override (tests inject fakes)
            sheet: Sell-through connector override
            today: Fixed "today" for the report window (defaults to UTC today)

        Raises:
            ConfigurationError: Shopify credentials missing or unknown policy
        """
        config.require_shopify()
        self.config = config
        self.policy = get_policy(config.reconstruction_policy)
        self.today = today

        self.shopify = shopify or ShopifyConnector(
            store_url=config.store_domain,
            access_token=config.access_token,
            api_version=config.api_version,
            timeout=config.http_timeout_seconds,
            requests_per_second=config.requests_per_second,
        )
        self.sheet = sheet
        if self.sheet is None and config.sheet_csv_url:
            self.sheet = SellThroughSheetConnector(config.sheet_csv_url, timeout=config.http_timeout_seconds)

    async def generate(
        self,
        range_months: Optional[int] = None,
        merge_sell_through: bool = False,
        require_sell_through: bool = False
    ) -> Dict[str, Any]:
        """
        Generate the report payload

        Args:
            range_months: Trailing window in months (defaults to config)
            merge_sell_through: Join the sell-through sheet into every row
            require_sell_through: Sheet problems are fatal instead of skipped

        Raises:
            UpstreamError: catalog or orders fetch failed
            SourceFormatError: required sheet could not be parsed
            ConfigurationError: required sheet URL missing
        """
        months = range_months or self.config.default_range_months
        if merge_sell_through and require_sell_through and self.sheet is None:
            self.config.require_sheet()

        start, end = calculate_report_window(months, self.today)
        days = enumerate_days(start, end)
        log.info(
            f"Building inventory report {start} -> {end} ({months}m, {len(days)} days, "
            f"{self.policy.name} reconstruction)"
        )

        # 1) All variants with inventory items
        items = await self.shopify.fetch_inventory_items()
        reportable = [item for item in items if normalize_sku(item.sku)]
        if len(reportable) < len(items):
            log.info(f"Skipping {len(items) - len(reportable)} inventory items without a SKU")

        # 2) Orders and per-item inventory, concurrently
        item_task = asyncio.ensure_future(self.fetch_item_events(reportable, start, end))
        try:
            orders = await self.shopify.fetch_orders(start)
            events_by_item = await item_task
        finally:
            if not item_task.done():
                item_task.cancel()

        sku_by_variant = {item.variant_id: item.sku for item in items if item.variant_id and item.sku}
        sales_index = build_sales_index(sale_events_from_orders(orders, sku_by_variant))

        # 3) Per-SKU metrics
        metrics = self.compute_platform_metrics(reportable, events_by_item, sales_index, start, end)

        result_items: Dict[str, Any] = {sku: m.to_dict() for sku, m in metrics.items()}

        # 4) Sell-through merge
        if merge_sell_through:
            external = await self.load_sell_through(required=require_sell_through)
            if external is not None:
                totals = total_sales_by_sku(sales_index, days)
                merged = merge_metrics(metrics, external, totals)
                result_items = {sku: row.to_dict() for sku, row in merged.items()}

        log.info(f"Inventory report complete: {len(result_items)} SKUs")

        return {
            "ok": True,
            "range_months": months,
            "start_date": start.isoformat(),
            "end_date": end.isoformat(),
            "generated_at": datetime.now(timezone.utc).isoformat(),
            "reconstruction_policy": self.policy.name,
            "item_count": len(result_items),
            "items": result_items,
        }

    async def fetch_item_events(
        self,
        items: List[InventoryItem],
        start: date,
        end: date
    ) -> Dict[str, ItemEventsResult]:
        """
        Inventory sub-fetches in batches of ``inventory_batch_size``

        Work inside a batch runs concurrently; batches run one after another.
        Each task writes its own item id, so the shared dict needs no lock.
        """
        results: Dict[str, ItemEventsResult] = {}
        unique = list({item.item_id: item for item in items}.values())

        async def _fetch_one(item: InventoryItem):
            results[item.item_id] = await self._fetch_item_events(item, start, end)

        for batch in chunk_list(unique, max(self.config.inventory_batch_size, 1)):
            await asyncio.gather(*[_fetch_one(item) for item in batch])

        failed = sum(1 for r in results.values() if not r.ok)
        if failed:
            log.warning(f"Inventory data unavailable for {failed} of {len(results)} items")
        return results

    async def _fetch_item_events(self, item: InventoryItem, start: date, end: date) -> ItemEventsResult:
        if not item.location_id:
            return ItemEventsResult.empty(item.item_id, "no inventory location")

        try:
            events = await self._load_events(item, start, end)
        except EnrichmentError as e:
            log.warning(str(e))
            return ItemEventsResult.empty(item.item_id, str(e))

        return ItemEventsResult.success(item.item_id, events)

    async def _load_events(self, item: InventoryItem, start: date, end: date) -> List[StockEvent]:
        try:
            if self.policy.source == SOURCE_HISTORY:
                return await self.shopify.fetch_inventory_history(item.item_id, start, end)
            return await self.shopify.fetch_inventory_snapshot(item.item_id, end)
        except (UpstreamError, ValueError, TypeError) as e:
            raise EnrichmentError(item.item_id, str(e)) from e

    def compute_platform_metrics(
        self,
        items: List[InventoryItem],
        events_by_item: Dict[str, ItemEventsResult],
        sales_index: SalesIndex,
        start: date,
        end: date
    ) -> Dict[str, SkuMetrics]:
        """
        Reconstruct one timeline per normalized SKU and measure it

        Items that normalize to the same SKU are reconstructed together; items
        with no inventory data contribute an all-zero series.
        """
        days = enumerate_days(start, end)
        sales_by_sku = group_sales_by_sku(sales_index)

        events_by_sku: Dict[str, List[StockEvent]] = defaultdict(list)
        raw_by_sku: Dict[str, str] = {}
        missing_by_sku: Dict[str, List[str]] = defaultdict(list)
        ok_by_sku: Dict[str, int] = defaultdict(int)
        for item in items:
            sku = normalize_sku(item.sku)
            raw_by_sku.setdefault(sku, item.sku)
            result = events_by_item.get(item.item_id)
            if result is not None and result.ok:
                events_by_sku[sku].extend(result.events)
                ok_by_sku[sku] += 1
            else:
                missing_by_sku[sku].append(item.item_id)

        for sku, missing in missing_by_sku.items():
            if ok_by_sku.get(sku):
                log.warning(
                    f"SKU {sku} reconstructed from partial inventory data: "
                    f"{len(missing)} of {len(missing) + ok_by_sku[sku]} items unavailable ({', '.join(missing)})"
                )

        metrics: Dict[str, SkuMetrics] = {}
        for sku in sorted(raw_by_sku):
            events = events_by_sku.get(sku)
            if events:
                daily = self.policy.reconstruct(start, end, events, sales_by_sku.get(sku))
            else:
                daily = self.policy.empty_series(start, end)
            metrics[sku] = compute_sku_metrics(daily, sales_index, sku, days, raw_by_sku[sku])

        return metrics

    async def load_sell_through(self, required: bool = False) -> Optional[Dict[str, ExternalSkuRecord]]:
        """
        Fetch and parse the sell-through sheet

        Returns None when the sheet is optional and unavailable.
        """
        if self.sheet is None:
            if required:
                self.config.require_sheet()
            log.warning("SELLTHROUGH_SHEET_CSV_URL not set; skipping sell-through merge")
            return None

        try:
            text = await self.sheet.fetch_csv()
            return parse_sell_through_report(text)
        except (UpstreamError, SourceFormatError) as e:
            if required:
                raise
            log.warning(f"Sell-through sheet unavailable, continuing with Shopify metrics only: {e}")
            return None
