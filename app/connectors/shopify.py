"""
Shopify Connector

Reads the variant catalog, inventory levels/history and orders from the
Shopify Admin API. Everything is read-only and fetched fresh per report.
"""
import asyncio
import json
import time
from datetime import date, datetime, time as dt_time, timezone
from typing import Any, Dict, List, Optional, Tuple

import httpx

from app.connectors.base import BaseConnector
from app.connectors.pagination import Page, collect_all, get_connection_cursor, get_next_page_info
from app.exceptions import UpstreamError
from app.models.inventory_report import InventoryItem, StockEvent
from app.utils.helpers import to_utc_day
from app.utils.logger import log


PRODUCTS_QUERY = """
query FetchVariants($cursor: String) {
  products(first: 50, after: $cursor) {
    pageInfo { hasNextPage }
    edges {
      cursor
      node {
        variants(first: 100) {
          edges {
            node {
              id
              sku
              inventoryItem {
                id
                inventoryLevels(first: 1) {
                  edges { node { location { id } } }
                }
              }
            }
          }
        }
      }
    }
  }
}
"""

INVENTORY_HISTORY_QUERY = """
query InvHistory($id: ID!, $start: DateTime!, $end: DateTime!, $cursor: String) {
  inventoryItem(id: $id) {
    inventoryHistory(first: 250, after: $cursor, occurredAtMin: $start, occurredAtMax: $end) {
      pageInfo { hasNextPage }
      edges {
        cursor
        node {
          occurredAt
          availableDelta
          availableAfterAdjustment
        }
      }
    }
  }
}
"""

INVENTORY_LEVELS_QUERY = """
query InvLevels($id: ID!, $cursor: String) {
  inventoryItem(id: $id) {
    inventoryLevels(first: 10, after: $cursor) {
      pageInfo { hasNextPage }
      edges {
        cursor
        node {
          quantities(names: ["available"]) { name quantity }
          location { id name }
        }
      }
    }
  }
}
"""

ORDERS_QUERY = """
query Orders($cursor: String, $query: String!) {
  orders(first: 100, after: $cursor, query: $query, sortKey: CREATED_AT) {
    pageInfo { hasNextPage }
    edges {
      cursor
      node {
        createdAt
        lineItems(first: 100) {
          edges {
            node {
              sku
              quantity
              variant { id }
            }
          }
        }
      }
    }
  }
}
"""

INVENTORY_ITEM_DEBUG_QUERY = """
query TestInventory($id: ID!) {
  inventoryItem(id: $id) {
    id
    inventoryLevels(first: 10) {
      edges {
        node {
          quantities(names: ["available"]) { name quantity }
          location { name }
        }
      }
    }
    inventoryHistory(first: 10) {
      edges {
        node {
          occurredAt
          availableAfterAdjustment
        }
      }
    }
  }
}
"""

VARIANT_QUERY = """
query GetVariant($id: ID!) {
  productVariant(id: $id) {
    id
    sku
    inventoryItem { id }
  }
}
"""

# GraphQL resource name -> (query, path from ``data`` to the connection)
GRAPHQL_COLLECTIONS: Dict[str, Tuple[str, Tuple[str, ...]]] = {
    "products": (PRODUCTS_QUERY, ("products",)),
    "inventoryHistory": (INVENTORY_HISTORY_QUERY, ("inventoryItem", "inventoryHistory")),
    "inventoryLevels": (INVENTORY_LEVELS_QUERY, ("inventoryItem", "inventoryLevels")),
    "orders": (ORDERS_QUERY, ("orders",)),
}


def _edges(connection: Optional[Dict[str, Any]]) -> List[Dict[str, Any]]:
    return (connection or {}).get("edges") or []


class ShopifyConnector(BaseConnector):
    """
    Connector for the Shopify Admin API

    GraphQL is used for the report (catalog, inventory, orders); REST with
    Link-header pagination backs the diagnostic endpoints.
    """

    def __init__(
        self,
        store_url: str,
        access_token: str,
        api_version: str = "2024-10",
        timeout: float = 60.0,
        requests_per_second: float = 0.0,
        transport: Optional[httpx.AsyncBaseTransport] = None
    ):
        """
        Initialize Shopify connector

        Args:
            store_url: Shopify store URL (e.g., "your-store.myshopify.com")
            access_token: Shopify Admin API access token
            api_version: API version to use
            timeout: Per-request timeout in seconds
            requests_per_second: Client-side throttle, 0 disables it
            transport: Optional httpx transport
        """
        super().__init__(source_name="shopify", source_type="ecommerce", timeout=timeout, transport=transport)

        self.store_url = store_url.replace('https://', '').replace('http://', '').rstrip('/')
        self.access_token = access_token
        self.api_version = api_version
        self.base_url = f"https://{self.store_url}/admin/api/{api_version}"
        self.graphql_url = f"{self.base_url}/graphql.json"

        # Rate limiting
        self.requests_per_second = requests_per_second
        self.last_request_time = float("-inf")

    async def authenticate(self) -> bool:
        """
        Test Shopify authentication

        Returns:
            True if authenticated successfully
        """
        response = await self._request("GET", f"{self.base_url}/shop.json", headers=self._get_headers())

        if response.status_code == 200:
            shop = response.json().get("shop", {})
            log.info(f"Authenticated with Shopify store: {shop.get('name')}")
            self._authenticated = True
            return True

        log.error(f"Shopify authentication failed: {response.status_code} - {response.text}")
        return False

    # ==================== TRANSPORT ====================

    async def graphql(self, query: str, variables: Optional[Dict[str, Any]] = None) -> Dict[str, Any]:
        """
        Run a GraphQL query and return its ``data`` object

        Raises:
            UpstreamError: non-2xx status, invalid JSON or a GraphQL ``errors`` body
        """
        await self._rate_limit()
        response = await self._request(
            "POST",
            self.graphql_url,
            json={"query": query, "variables": variables or {}},
            headers=self._get_headers()
        )

        if response.status_code == 429:
            self._handle_rate_limit(float(response.headers.get("Retry-After", 2.0)))

        text = response.text
        try:
            payload = json.loads(text)
        except ValueError:
            log.error(f"Invalid JSON from Shopify: {text[:500]}")
            raise UpstreamError("Invalid JSON from Shopify", status=response.status_code, body=text)

        errors = payload.get("errors") if isinstance(payload, dict) else None
        if not response.is_success or errors:
            detail = json.dumps(errors) if errors else text
            log.error(f"Shopify GraphQL error: {response.status_code} - {detail[:500]}")
            raise UpstreamError(f"Shopify GraphQL error: {detail}", status=response.status_code, body=detail)

        return payload.get("data") or {}

    async def fetch_graphql_page(self, resource: str, params: Dict[str, Any], token: Optional[str]) -> Page:
        """
        Fetch one page of a GraphQL connection

        Args:
            resource: Key of GRAPHQL_COLLECTIONS
            params: Query variables other than the cursor
            token: Cursor of the last edge of the previous page
        """
        query, path = GRAPHQL_COLLECTIONS[resource]
        data = await self.graphql(query, {**params, "cursor": token})

        connection: Any = data
        for key in path:
            connection = (connection or {}).get(key)
        connection = connection or {}

        records = [edge.get("node") or {} for edge in _edges(connection)]
        return Page(records=records, next_token=get_connection_cursor(connection))

    async def fetch_rest_page(self, resource: str, params: Dict[str, Any], token: Optional[str]) -> Page:
        """
        Fetch one page of a REST collection (e.g. "orders.json")

        Subsequent pages only carry ``limit`` and ``page_info``; Shopify rejects
        other filters alongside a page_info token.
        """
        if token:
            params = {"limit": params.get("limit", 250), "page_info": token}

        await self._rate_limit()
        response = await self._request("GET", f"{self.base_url}/{resource}", params=params, headers=self._get_headers())
        if response.status_code == 429:
            self._handle_rate_limit(float(response.headers.get("Retry-After", 2.0)))
        self._raise_for_status(response, resource)

        key = resource.split("/")[-1].split(".")[0]
        records = response.json().get(key, [])
        return Page(records=records, next_token=get_next_page_info(response.headers.get("Link")))

    # ==================== REPORT DATA ====================

    async def fetch_inventory_items(self) -> List[InventoryItem]:
        """
        Enumerate every variant that has an inventory item

        Variants without a SKU are returned too (sku=None); the report
        excludes them.
        """
        items: List[InventoryItem] = []
        products = await collect_all(self.fetch_graphql_page, "products")

        for product in products:
            for v_edge in _edges(product.get("variants")):
                variant = v_edge.get("node") or {}
                inventory_item = variant.get("inventoryItem") or {}
                if not inventory_item.get("id"):
                    continue

                level_edges = _edges(inventory_item.get("inventoryLevels"))
                location = (level_edges[0].get("node") or {}).get("location") if level_edges else None

                sku = variant.get("sku")
                items.append(InventoryItem(
                    item_id=inventory_item["id"],
                    sku=str(sku).strip() if sku else None,
                    location_id=(location or {}).get("id"),
                    variant_id=variant.get("id"),
                ))

        log.info(f"Fetched {len(items)} inventory items across {len(products)} products")
        return items

    async def fetch_inventory_history(self, item_id: str, start: date, end: date) -> List[StockEvent]:
        """
        Inventory adjustments for one item inside [start, end]

        This depends on the store exposing inventory history; stores that
        don't answer with a GraphQL error (UpstreamError).
        """
        params = {
            "id": item_id,
            "start": datetime.combine(start, dt_time.min, tzinfo=timezone.utc).isoformat(),
            "end": datetime.combine(end, dt_time.max, tzinfo=timezone.utc).isoformat(),
        }
        nodes = await collect_all(self.fetch_graphql_page, "inventoryHistory", params)

        events = []
        for node in nodes:
            if not node.get("occurredAt") or node.get("availableDelta") is None:
                continue
            events.append(StockEvent.adjustment(item_id, to_utc_day(node["occurredAt"]), int(node["availableDelta"])))
        return events

    async def fetch_inventory_snapshot(self, item_id: str, as_of: date) -> List[StockEvent]:
        """
        Current available quantity for one item

        Only the first location's level is used (single-location reporting).
        An empty list means the item is not stocked at any location.
        """
        levels = await collect_all(self.fetch_graphql_page, "inventoryLevels", {"id": item_id})
        if not levels:
            return []

        quantities = levels[0].get("quantities") or []
        available = next((q.get("quantity") for q in quantities if q.get("name") == "available"), None)
        return [StockEvent.snapshot(item_id, as_of, int(available or 0))]

    async def fetch_orders(self, start: date) -> List[Dict[str, Any]]:
        """
        Orders created on or after ``start`` with their line items

        Returns:
            List of {"created_at", "line_items": [{"sku", "variant_id", "quantity"}]}
        """
        start_iso = datetime.combine(start, dt_time.min, tzinfo=timezone.utc).strftime("%Y-%m-%dT%H:%M:%SZ")
        nodes = await collect_all(self.fetch_graphql_page, "orders", {"query": f"created_at:>={start_iso}"})

        orders = []
        for node in nodes:
            line_items = []
            for li_edge in _edges(node.get("lineItems")):
                li = li_edge.get("node") or {}
                line_items.append({
                    "sku": li.get("sku"),
                    "variant_id": (li.get("variant") or {}).get("id"),
                    "quantity": li.get("quantity") or 0,
                })
            orders.append({"created_at": node.get("createdAt"), "line_items": line_items})

        log.info(f"Fetched {len(orders)} Shopify orders created since {start_iso}")
        return orders

    # ==================== DIAGNOSTICS ====================

    async def fetch_inventory_item_detail(self, item_id: str) -> Dict[str, Any]:
        """Raw levels and recent history for one inventory item"""
        return await self.graphql(INVENTORY_ITEM_DEBUG_QUERY, {"id": item_id})

    async def fetch_variant(self, variant_id: str) -> Dict[str, Any]:
        """Variant -> SKU / inventory item lookup; accepts a numeric id or a GID"""
        gid = variant_id if variant_id.startswith("gid://") else f"gid://shopify/ProductVariant/{variant_id}"
        data = await self.graphql(VARIANT_QUERY, {"id": gid})
        return data.get("productVariant") or {}

    async def count_orders(self) -> int:
        response = await self._request(
            "GET",
            f"{self.base_url}/orders/count.json",
            params={"status": "any"},
            headers=self._get_headers()
        )
        self._raise_for_status(response, "orders/count.json")
        return int(response.json().get("count", 0))

    async def fetch_order_line_item_sample(self, limit: int = 50) -> List[Dict[str, Any]]:
        """First page of REST orders mapped to line-item SKUs"""
        page = await self.fetch_rest_page(
            "orders.json",
            {"status": "any", "limit": limit, "fields": "id,line_items"},
            None
        )
        return [
            {
                "order_id": order.get("id"),
                "items": [
                    {"variant_id": li.get("variant_id"), "sku": li.get("sku"), "qty": li.get("quantity")}
                    for li in order.get("line_items", [])
                ],
            }
            for order in page.records
        ]

    # ==================== HELPERS ====================

    def _get_headers(self) -> Dict[str, str]:
        return {
            "X-Shopify-Access-Token": self.access_token,
            "Content-Type": "application/json",
        }

    async def _rate_limit(self):
        """
        Enforce the optional client-side request rate

        Each caller reserves the next free slot before sleeping.
        """
        if not self.requests_per_second:
            return

        min_interval = 1.0 / self.requests_per_second
        now = time.monotonic()
        slot = max(now, self.last_request_time + min_interval)
        self.last_request_time = slot

        if slot > now:
            await asyncio.sleep(slot - now)
