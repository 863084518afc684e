"""
Shared fixtures: an in-memory Shopify stand-in and report configuration.

Nothing here talks to the network.
"""
import asyncio
import os
from datetime import date
from typing import Any, Dict, List, Optional

import pytest

# Keep test runs from writing rotating log files
os.environ.setdefault("LOG_TO_FILE", "false")

from app.config import ReportConfig  # noqa: E402
from app.exceptions import UpstreamError  # noqa: E402
from app.models.inventory_report import InventoryItem, StockEvent  # noqa: E402


class FakeShopify:
    """Duck-typed ShopifyConnector returning canned catalog, inventory and orders"""

    def __init__(
        self,
        items: Optional[List[InventoryItem]] = None,
        history: Optional[Dict[str, List[StockEvent]]] = None,
        snapshots: Optional[Dict[str, int]] = None,
        orders: Optional[List[Dict[str, Any]]] = None,
        failing_items: Optional[set] = None,
        orders_error: Optional[Exception] = None,
        catalog_error: Optional[Exception] = None,
    ):
        self.items = items or []
        self.history = history or {}
        self.snapshots = snapshots or {}
        self.orders = orders or []
        self.failing_items = failing_items or set()
        self.orders_error = orders_error
        self.catalog_error = catalog_error

        self.history_calls: List[str] = []
        self.snapshot_calls: List[str] = []
        self.in_flight = 0
        self.max_in_flight = 0

    async def _track(self):
        self.in_flight += 1
        self.max_in_flight = max(self.max_in_flight, self.in_flight)
        await asyncio.sleep(0)
        self.in_flight -= 1

    async def fetch_inventory_items(self):
        if self.catalog_error:
            raise self.catalog_error
        return list(self.items)

    async def fetch_inventory_history(self, item_id, start, end):
        self.history_calls.append(item_id)
        await self._track()
        if item_id in self.failing_items:
            raise UpstreamError("Shopify GraphQL error: inventoryHistory not available", status=200)
        return [e for e in self.history.get(item_id, []) if start <= e.occurred_on <= end]

    async def fetch_inventory_snapshot(self, item_id, as_of):
        self.snapshot_calls.append(item_id)
        await self._track()
        if item_id in self.failing_items:
            raise UpstreamError("Shopify GraphQL error: throttled", status=429)
        if item_id not in self.snapshots:
            return []
        return [StockEvent.snapshot(item_id, as_of, self.snapshots[item_id])]

    async def fetch_orders(self, start):
        if self.orders_error:
            raise self.orders_error
        return list(self.orders)

    # Diagnostics

    async def fetch_inventory_item_detail(self, item_id):
        return {"inventoryItem": {"id": item_id, "inventoryLevels": {"edges": []}}}

    async def fetch_variant(self, variant_id):
        return {"id": f"gid://shopify/ProductVariant/{variant_id}", "sku": "HAT-053-##"}

    async def count_orders(self):
        return 42

    async def fetch_order_line_item_sample(self, limit=50):
        return [{"order_id": 1, "items": [{"variant_id": 11, "sku": "HAT-053", "qty": 2}]}]


class FakeSheet:
    """Duck-typed SellThroughSheetConnector"""

    def __init__(self, text: str = "", error: Optional[Exception] = None):
        self.text = text
        self.error = error

    async def fetch_csv(self):
        if self.error:
            raise self.error
        return self.text


def order(day: date, *line_items, variant_id: Optional[str] = None) -> Dict[str, Any]:
    """Order in the shape returned by ShopifyConnector.fetch_orders; line items are (sku, qty)"""
    return {
        "created_at": f"{day.isoformat()}T10:00:00Z",
        "line_items": [
            {"sku": sku, "variant_id": variant_id, "quantity": qty}
            for sku, qty in line_items
        ],
    }


@pytest.fixture
def report_config():
    return ReportConfig(store_domain="test-shop.myshopify.com", access_token="shpat_test")


@pytest.fixture
def fake_shopify_cls():
    return FakeShopify


@pytest.fixture
def fake_sheet_cls():
    return FakeSheet


@pytest.fixture
def make_order():
    return order


@pytest.fixture
def captured_warnings():
    """Messages logged at WARNING or above while the test runs"""
    from app.utils.logger import log

    messages: List[str] = []
    sink_id = log.add(lambda message: messages.append(str(message).strip()), level="WARNING", format="{message}")
    yield messages
    log.remove(sink_id)
