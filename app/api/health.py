"""
Health check and configuration probes
"""
from datetime import datetime, timezone

from fastapi import APIRouter, Depends

from app import __version__
from app.config import Settings, get_settings

router = APIRouter()


@router.get("/health")
async def health_check():
    """Health check endpoint"""
    return {
        "status": "healthy",
        "timestamp": datetime.now(timezone.utc).isoformat(),
        "version": __version__
    }


@router.get("/env-check")
async def env_check(settings: Settings = Depends(get_settings)):
    """Which Shopify settings are configured; the token itself is never returned"""
    return {
        "domain": settings.shopify_store_domain,
        "token_present": bool(settings.shopify_admin_api_access_token),
        "api_version": settings.shopify_api_version,
        "sell_through_sheet_configured": bool(settings.sellthrough_sheet_csv_url),
        "reconstruction_policy": settings.reconstruction_policy,
    }
