"""Data Connectors for the Inventory Availability Report"""

from app.connectors.base import BaseConnector
from app.connectors.shopify import ShopifyConnector
from app.connectors.sell_through_sheet import SellThroughSheetConnector

__all__ = [
    "BaseConnector",
    "ShopifyConnector",
    "SellThroughSheetConnector"
]
