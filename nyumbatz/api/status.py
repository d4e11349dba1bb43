from __future__ import annotations

from fastapi import APIRouter, Depends

from nyumbatz.dependencies import Services, get_services

router = APIRouter(prefix="/api", tags=["status"])


@router.get("/status")
async def status(services: Services = Depends(get_services)):
    """Which data source is answering, and the cache's current size."""
    return {
        "mode": await services.selector.mode(),
        **services.selector.describe(),
        "cached_queries": len(services.cache),
    }
