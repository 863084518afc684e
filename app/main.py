"""
Inventory Availability Report
Main FastAPI application
"""
from contextlib import asynccontextmanager

from fastapi import FastAPI
from fastapi.middleware.cors import CORSMiddleware

from app import __version__
from app.api import debug, health, inventory_report
from app.config import get_settings
from app.utils.logger import log

settings = get_settings()


@asynccontextmanager
async def lifespan(app: FastAPI):
    """Startup and shutdown events"""
    log.info(f"Starting {settings.app_name} v{__version__}")
    log.info(f"Environment: {settings.environment}")
    log.info(f"Reconstruction policy: {settings.reconstruction_policy}")

    if not settings.shopify_store_domain or not settings.shopify_admin_api_access_token:
        log.warning("Shopify credentials are not configured; report endpoints will fail")

    yield

    log.info("Shutting down application")


app = FastAPI(
    title=settings.app_name,
    version=__version__,
    description="""
    Per-SKU inventory availability report

    Reconstructs daily stock levels from Shopify inventory data and combines
    them with order history:
    - Days in stock and stockout days per SKU
    - Units sold overall and while in stock
    - Optional join with the sell-through spreadsheet export
    """,
    lifespan=lifespan
)

app.add_middleware(
    CORSMiddleware,
    allow_origins=["*"],
    allow_methods=["GET", "OPTIONS"],
    allow_headers=["Content-Type"],
)

app.include_router(health.router, tags=["health"])
app.include_router(inventory_report.router)
app.include_router(debug.router)


@app.get("/")
async def root():
    """Root endpoint with API information"""
    return {
        "app": settings.app_name,
        "version": __version__,
        "docs": "/docs",
        "health": "/health",
        "endpoints": {
            "inventory_report": "GET /inventory-report?range=24&merge=false",
            "sell_through": "GET /sell-through?months=24",
            "env_check": "GET /env-check",
            "debug_inventory_item": "GET /debug/inventory-item?id=INVENTORY_ITEM_ID",
            "debug_variant": "GET /debug/variant?variant=VARIANT_ID",
            "debug_orders_count": "GET /debug/orders-count",
            "debug_orders": "GET /debug/orders"
        }
    }


if __name__ == "__main__":
    import uvicorn
    uvicorn.run(
        "app.main:app",
        host=settings.api_host,
        port=settings.api_port,
        reload=settings.debug
    )
