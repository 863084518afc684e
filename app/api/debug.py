"""
Diagnostic endpoints

Thin probes against the Shopify Admin API used when a report looks wrong:
does the token see orders, what SKU does a variant carry, what inventory
data does an item expose.
"""
from typing import Callable, Optional

from fastapi import APIRouter, Depends, Query
from fastapi.responses import JSONResponse

from app.api.deps import get_report_config, get_shopify_factory
from app.config import ReportConfig
from app.connectors.shopify import ShopifyConnector
from app.exceptions import ConfigurationError, ReportError
from app.utils.logger import log

router = APIRouter(prefix="/debug", tags=["debug"])

ShopifyFactory = Callable[[ReportConfig], ShopifyConnector]


def _failure(endpoint: str, error: Exception) -> JSONResponse:
    status = 400 if isinstance(error, ConfigurationError) else 500
    log.error(f"Error in {endpoint}: {error}")
    return JSONResponse(status_code=status, content={"ok": False, "error": str(error)})


def _missing_param(message: str) -> JSONResponse:
    return JSONResponse(status_code=400, content={"ok": False, "error": message})


@router.get("/inventory-item")
async def debug_inventory_item(
    item_id: Optional[str] = Query(None, alias="id", description="Inventory item GID"),
    config: ReportConfig = Depends(get_report_config),
    shopify_factory: ShopifyFactory = Depends(get_shopify_factory),
):
    """Raw inventory levels and recent history for one inventory item"""
    if not item_id:
        return _missing_param("Pass ?id=INVENTORY_ITEM_ID")
    try:
        data = await shopify_factory(config).fetch_inventory_item_detail(item_id)
        return {"ok": True, "data": data}
    except ReportError as e:
        return _failure("/debug/inventory-item", e)


@router.get("/variant")
async def debug_variant(
    variant: Optional[str] = Query(None, description="Variant id or GID"),
    config: ReportConfig = Depends(get_report_config),
    shopify_factory: ShopifyFactory = Depends(get_shopify_factory),
):
    """Variant -> SKU / inventory item lookup"""
    if not variant:
        return _missing_param("Pass ?variant=VARIANT_ID")
    try:
        data = await shopify_factory(config).fetch_variant(variant)
        return {"ok": True, "variant": data or None}
    except ReportError as e:
        return _failure("/debug/variant", e)


@router.get("/orders-count")
async def debug_orders_count(
    config: ReportConfig = Depends(get_report_config),
    shopify_factory: ShopifyFactory = Depends(get_shopify_factory),
):
    """Order count probe: a non-zero count means the token can read orders"""
    try:
        count = await shopify_factory(config).count_orders()
    except ReportError as e:
        return _failure("/debug/orders-count", e)

    return {
        "ok": True,
        "domain": config.store_domain,
        "api_version": config.api_version,
        "count": count,
    }


@router.get("/orders")
async def debug_orders(
    limit: int = Query(50, ge=1, le=250),
    config: ReportConfig = Depends(get_report_config),
    shopify_factory: ShopifyFactory = Depends(get_shopify_factory),
):
    """One page of REST orders mapped to their line-item SKUs"""
    try:
        sample = await shopify_factory(config).fetch_order_line_item_sample(limit=limit)
    except ReportError as e:
        return _failure("/debug/orders", e)

    return {"ok": True, "count": len(sample), "sample": sample}
