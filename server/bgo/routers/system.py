"""
B-Go Admin — System Router
GET /system/health, GET /system/cache, POST /system/cache/invalidate
"""
import logging

from fastapi import APIRouter, Depends

from bgo.config import settings
from bgo.dependencies import require_admin
from bgo.models import CacheInvalidateRequest, HealthResponse
from bgo.services import audit
from bgo.services.conductors import conductor_service
from bgo.services.dashboard import summary_cache
from bgo.services.remittance import remittance_service
from bgo.services.revenue import revenue_cache, routes_cache

logger = logging.getLogger("bgo-api")
router = APIRouter(prefix="/system", tags=["System"])


@router.get("/health", response_model=HealthResponse)
async def health():
    """Health check endpoint."""
    return HealthResponse(
        status="ok",
        version=settings.APP_VERSION,
        environment=settings.ENVIRONMENT,
    )


@router.get("/cache")
async def cache_status(admin: dict = Depends(require_admin)):
    return {
        "remittance": remittance_service.cache_info(),
        "revenue": {"cache_size": len(revenue_cache), "cached_keys": revenue_cache.keys()},
        "routes_cached": len(routes_cache) > 0,
        "conductors_cached": len(conductor_service.list_cache) > 0,
        "dashboard_cached": len(summary_cache) > 0,
    }


@router.post("/cache/invalidate")
async def invalidate_cache(req: CacheInvalidateRequest, admin: dict = Depends(require_admin)):
    """Drop one remittance date, or every cache when no date is given."""
    if req.date:
        remittance_service.invalidate(req.date)
        revenue_cache.invalidate_where(lambda key, _value: key.startswith(f"{req.date}|"))
    else:
        remittance_service.invalidate_all()
        revenue_cache.clear()
        routes_cache.clear()
        conductor_service.list_cache.clear()
        summary_cache.clear()

    audit.log_activity(
        audit.SYSTEM_MAINTENANCE,
        f"Cache invalidated ({req.date or 'all'})",
        {"date": req.date},
        admin,
    )
    logger.info(f"Cache invalidated by {admin.get('user_id')}: {req.date or 'all'}")
    return {"invalidated": req.date or "all"}
