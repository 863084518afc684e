"""
Sales index: units sold per (day, normalized SKU)

Built once per report from order line items and shared read-only by every
per-SKU computation.
"""
from collections import defaultdict
from datetime import date
from typing import Any, Dict, Iterable, List, Mapping, Optional, Tuple

from app.models.inventory_report import SaleEvent
from app.services.sku_normalizer import normalize_sku
from app.utils.helpers import to_utc_day
from app.utils.logger import log

SalesIndex = Dict[Tuple[date, str], int]


def sale_events_from_orders(
    orders: Iterable[Dict[str, Any]],
    sku_by_variant: Optional[Mapping[str, str]] = None
) -> List[SaleEvent]:
    """
    One SaleEvent per order line item.

    The line item's own SKU wins; when it is blank the variant's catalog SKU
    is used instead.

    Args:
        orders: Orders as returned by ShopifyConnector.fetch_orders
        sku_by_variant: Variant GID -> raw catalog SKU
    """
    sku_by_variant = sku_by_variant or {}
    events = []

    for order in orders:
        created_at = order.get("created_at")
        if not created_at:
            continue
        day = to_utc_day(created_at)

        for li in order.get("line_items", []):
            sku = li.get("sku")
            if not (sku and str(sku).strip()):
                sku = sku_by_variant.get(li.get("variant_id"))
            events.append(SaleEvent(occurred_on=day, sku=sku, quantity=max(int(li.get("quantity") or 0), 0)))

    return events


def build_sales_index(sale_events: Iterable[SaleEvent]) -> SalesIndex:
    """Sum quantities per (day, normalized SKU); unattributable sales are dropped"""
    index: SalesIndex = defaultdict(int)
    dropped = 0

    for event in sale_events:
        sku = normalize_sku(event.sku)
        if not sku:
            dropped += 1
            continue
        index[(event.occurred_on, sku)] += event.quantity

    if dropped:
        log.debug(f"Dropped {dropped} sale events without a SKU")

    return dict(index)


def group_sales_by_sku(index: SalesIndex) -> Dict[str, Dict[date, int]]:
    """Regroup the index as sku -> {day: units}, for policies that walk one SKU at a time"""
    grouped: Dict[str, Dict[date, int]] = defaultdict(dict)
    for (day, sku), qty in index.items():
        grouped[sku][day] = qty
    return dict(grouped)


def total_sales_by_sku(index: SalesIndex, days: Iterable[date]) -> Dict[str, int]:
    """Units sold per normalized SKU over the given days"""
    window = set(days)
    totals: Dict[str, int] = defaultdict(int)
    for (day, sku), qty in index.items():
        if day in window:
            totals[sku] += qty
    return dict(totals)
