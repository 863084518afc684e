"""
Inventory Report API Routes

Per-SKU stocking metrics over a trailing window of months, optionally joined
with the sell-through sheet.
"""
from typing import Optional

from fastapi import APIRouter, Depends, Query, Response
from fastapi.responses import JSONResponse

from app.api.deps import ReportServiceFactory, get_report_config, get_report_service_factory
from app.config import ReportConfig, Settings, get_settings
from app.exceptions import ReportError
from app.utils.helpers import parse_range_months
from app.utils.logger import log
from app.utils.response_cache import report_cache_key, response_cache

router = APIRouter(tags=["inventory-report"])

CACHE_CONTROL = "s-maxage=14400, stale-while-revalidate=86400"


def error_response(endpoint: str, error: Exception) -> JSONResponse:
    log.error(f"Error in {endpoint}: {error}")
    return JSONResponse(status_code=500, content={"ok": False, "error": str(error)})


async def _build_report(
    endpoint: str,
    months: int,
    merge: bool,
    required_sheet: bool,
    response: Response,
    config: ReportConfig,
    settings: Settings,
    service_factory: ReportServiceFactory,
):
    cache_key = report_cache_key(endpoint, months, merge=merge, policy=config.reconstruction_policy)
    cached = response_cache.get(cache_key)
    if cached is not None:
        response.headers["Cache-Control"] = CACHE_CONTROL
        return cached

    try:
        service = service_factory(config)
        result = await service.generate(
            range_months=months,
            merge_sell_through=merge,
            require_sell_through=required_sheet,
        )
    except ReportError as e:
        return error_response(endpoint, e)
    except Exception as e:
        log.exception(f"Unexpected failure building {endpoint}")
        return error_response(endpoint, e)

    response_cache.set(cache_key, result, ttl=settings.report_cache_ttl_seconds)
    response.headers["Cache-Control"] = CACHE_CONTROL
    return result


@router.get("/inventory-report")
async def get_inventory_report(
    response: Response,
    range_param: Optional[str] = Query(None, alias="range", description="Trailing window in months (default 24)"),
    merge: bool = Query(False, description="Join the sell-through sheet when it is configured"),
    config: ReportConfig = Depends(get_report_config),
    settings: Settings = Depends(get_settings),
    service_factory: ReportServiceFactory = Depends(get_report_service_factory),
):
    """Days in stock, stockout days and sales per SKU."""
    months = parse_range_months(range_param, config.default_range_months)
    return await _build_report(
        "/inventory-report", months, merge, False, response, config, settings, service_factory
    )


@router.get("/sell-through")
async def get_sell_through_report(
    response: Response,
    months_param: Optional[str] = Query(None, alias="months", description="Trailing window in months (default 24)"),
    config: ReportConfig = Depends(get_report_config),
    settings: Settings = Depends(get_settings),
    service_factory: ReportServiceFactory = Depends(get_report_service_factory),
):
    """Shopify metrics merged with the sell-through sheet; the sheet is required."""
    months = parse_range_months(months_param, config.default_range_months)
    return await _build_report(
        "/sell-through", months, True, True, response, config, settings, service_factory
    )
