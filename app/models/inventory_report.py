"""
Domain types for the inventory availability report.

These are in-memory records built fresh for every report run; nothing here is
persisted.
"""
from dataclasses import dataclass, field, asdict
from datetime import date
from typing import Any, Dict, List, Optional

# Available units at end of day, one entry per day of the report window
DailyAvailability = Dict[date, int]


@dataclass(frozen=True)
class InventoryItem:
    """A Shopify inventory item discovered through the variant catalog"""
    item_id: str
    sku: Optional[str]
    location_id: Optional[str] = None
    variant_id: Optional[str] = None


@dataclass(frozen=True)
class StockEvent:
    """A dated change to an item's on-hand quantity (delta or absolute snapshot)"""
    item_id: str
    occurred_on: date
    kind: str  # delta | snapshot
    delta: Optional[int] = None
    snapshot_quantity: Optional[int] = None

    @classmethod
    def adjustment(cls, item_id: str, occurred_on: date, delta: int) -> "StockEvent":
        return cls(item_id=item_id, occurred_on=occurred_on, kind="delta", delta=delta)

    @classmethod
    def snapshot(cls, item_id: str, occurred_on: date, quantity: int) -> "StockEvent":
        return cls(item_id=item_id, occurred_on=occurred_on, kind="snapshot", snapshot_quantity=quantity)


@dataclass(frozen=True)
class SaleEvent:
    """Units sold on one order line item"""
    occurred_on: date
    sku: Optional[str]
    quantity: int


@dataclass
class ItemEventsResult:
    """Outcome of the inventory sub-fetch for a single item"""
    item_id: str
    ok: bool
    events: List[StockEvent] = field(default_factory=list)
    error: Optional[str] = None

    @classmethod
    def success(cls, item_id: str, events: List[StockEvent]) -> "ItemEventsResult":
        return cls(item_id=item_id, ok=True, events=list(events))

    @classmethod
    def empty(cls, item_id: str, error: Optional[str] = None) -> "ItemEventsResult":
        return cls(item_id=item_id, ok=False, events=[], error=error)


@dataclass
class SkuMetrics:
    """Stocking metrics computed from the reconstructed timeline"""
    sku: str
    sku_raw: Optional[str] = None
    days_in_stock: int = 0
    stockout_days: int = 0
    total_sold: int = 0
    sold_while_in_stock: int = 0

    def to_dict(self) -> Dict[str, Any]:
        return asdict(self)


@dataclass(frozen=True)
class ExternalSkuRecord:
    """One row of the sell-through export, keyed by normalized SKU"""
    sku: str
    sku_raw: str
    product_title: str = ""
    variant_title: str = ""
    abc_grade: str = ""
    days_in_stock: Optional[int] = None
    days_out_of_stock: Optional[int] = None
    units_sold_reported: Optional[int] = None
    sell_through_rate_reported: Optional[float] = None  # percent
    percent_inventory_sold_reported: Optional[float] = None  # percent
    starting_units: Optional[int] = None
    ending_units: Optional[int] = None


@dataclass
class MergedSkuReport:
    """Platform metrics joined with the sell-through export for one SKU"""
    sku: str
    sku_raw: str
    product_title: str
    variant_title: str
    abc_grade: str

    # From Shopify
    total_sold: int
    sold_while_in_stock: int
    platform_days_in_stock: int
    platform_stockout_days: int

    # From the sheet
    days_in_stock: int
    days_out_of_stock: int
    in_stock_rate: Optional[float]  # 0-1
    velocity_in_stock: Optional[float]  # units per in-stock day

    units_sold_reported: Optional[int]
    sell_through_rate_reported: Optional[float]
    percent_inventory_sold_reported: Optional[float]
    starting_units: Optional[int]
    ending_units: Optional[int]

    in_platform: bool = True
    in_sheet: bool = True

    def to_dict(self) -> Dict[str, Any]:
        return asdict(self)
