"""
Sales index and per-SKU metric tests.

Guards against:
1. Sales attributed to the wrong SKU or day
2. days_in_stock + stockout_days drifting from the window length
3. sold_while_in_stock exceeding total_sold
"""
from datetime import date, timedelta

from app.models.inventory_report import SaleEvent
from app.services.sales_index import (
    build_sales_index,
    group_sales_by_sku,
    sale_events_from_orders,
    total_sales_by_sku,
)
from app.services.stock_metrics import compute_sku_metrics
from app.utils.helpers import enumerate_days

D1 = date(2024, 3, 1)
DAYS = enumerate_days(D1, D1 + timedelta(days=4))


# ---------------------------------------------------------------------------
# Sales index
# ---------------------------------------------------------------------------

def test_sale_events_use_utc_day_of_order():
    orders = [{"created_at": "2024-03-01T23:30:00-02:00", "line_items": [{"sku": "HAT-053", "quantity": 1}]}]
    events = sale_events_from_orders(orders)
    assert events == [SaleEvent(occurred_on=date(2024, 3, 2), sku="HAT-053", quantity=1)]


def test_blank_line_item_sku_falls_back_to_catalog_variant():
    orders = [{
        "created_at": "2024-03-01T10:00:00Z",
        "line_items": [{"sku": "  ", "variant_id": "gid://shopify/ProductVariant/1", "quantity": 2}],
    }]
    events = sale_events_from_orders(orders, {"gid://shopify/ProductVariant/1": "HAT-053-##"})
    assert events[0].sku == "HAT-053-##"


def test_orders_without_created_at_are_skipped():
    orders = [{"line_items": [{"sku": "HAT-053", "quantity": 1}]}]
    assert sale_events_from_orders(orders) == []


def test_negative_quantities_clamp_to_zero():
    orders = [{"created_at": "2024-03-01T10:00:00Z", "line_items": [{"sku": "A", "quantity": -3}]}]
    assert sale_events_from_orders(orders)[0].quantity == 0


def test_index_sums_by_day_and_normalized_sku():
    events = [
        SaleEvent(D1, "HAT-053-##", 2),
        SaleEvent(D1, "HAT-053", 1),
        SaleEvent(D1 + timedelta(days=1), "HAT-053", 4),
    ]
    index = build_sales_index(events)
    assert index == {(D1, "HAT-053"): 3, (D1 + timedelta(days=1), "HAT-053"): 4}


def test_index_drops_sales_without_sku():
    index = build_sales_index([SaleEvent(D1, None, 5), SaleEvent(D1, "", 2)])
    assert index == {}


def test_group_sales_by_sku():
    index = {(D1, "A"): 2, (D1, "B"): 1, (DAYS[2], "A"): 3}
    assert group_sales_by_sku(index) == {"A": {D1: 2, DAYS[2]: 3}, "B": {D1: 1}}


# ---------------------------------------------------------------------------
# Metrics
# ---------------------------------------------------------------------------

def test_all_zero_series_is_all_stockout():
    index = {(DAYS[2], "X-1"): 2}
    metrics = compute_sku_metrics({d: 0 for d in DAYS}, index, "X-1", DAYS)
    assert metrics.days_in_stock == 0
    assert metrics.stockout_days == 5
    assert metrics.total_sold == 2
    assert metrics.sold_while_in_stock == 0


def test_sales_on_in_stock_days_counted():
    daily = {d: 0 for d in DAYS}
    daily[DAYS[0]] = 3
    daily[DAYS[2]] = 1
    index = {(DAYS[2], "X-1"): 2, (DAYS[3], "X-1"): 4}

    metrics = compute_sku_metrics(daily, index, "X-1", DAYS, sku_raw="X-1-##")

    assert metrics.days_in_stock == 2
    assert metrics.stockout_days == 3
    assert metrics.total_sold == 6
    assert metrics.sold_while_in_stock == 2
    assert metrics.sku_raw == "X-1-##"


def test_negative_availability_is_stockout():
    daily = {d: -2 for d in DAYS}
    metrics = compute_sku_metrics(daily, {}, "X-1", DAYS)
    assert metrics.stockout_days == len(DAYS)


def test_missing_days_count_as_zero():
    metrics = compute_sku_metrics({DAYS[0]: 5}, {}, "X-1", DAYS)
    assert metrics.days_in_stock == 1
    assert metrics.stockout_days == 4


def test_other_skus_sales_are_ignored():
    index = {(DAYS[0], "OTHER"): 9}
    metrics = compute_sku_metrics({d: 1 for d in DAYS}, index, "X-1", DAYS)
    assert metrics.total_sold == 0


def test_invariants_hold_for_mixed_series():
    daily = {d: (i % 3) - 1 for i, d in enumerate(DAYS)}
    index = {(d, "X-1"): i for i, d in enumerate(DAYS)}
    metrics = compute_sku_metrics(daily, index, "X-1", DAYS)
    assert metrics.days_in_stock + metrics.stockout_days == len(DAYS)
    assert metrics.sold_while_in_stock <= metrics.total_sold


def test_total_sales_by_sku_limited_to_window():
    index = {(DAYS[0], "A"): 2, (DAYS[4], "A"): 3, (DAYS[0] - timedelta(days=1), "A"): 50, (DAYS[1], "B"): 1}
    assert total_sales_by_sku(index, DAYS) == {"A": 5, "B": 1}
