"""
B-Go Admin — Backend API Server
FastAPI + Firestore reporting and conductor management for the bus fleet.
"""
import logging
from fastapi import FastAPI
from fastapi.middleware.cors import CORSMiddleware
from slowapi import _rate_limit_exceeded_handler
from slowapi.errors import RateLimitExceeded

from bgo.config import settings
from bgo.rate_limit import limiter
from bgo.routers import system, revenue, remittance, discounts, conductors, dashboard

# Logging
logging.basicConfig(
    level=logging.INFO,
    format="[%(levelname)s] %(name)s: %(message)s",
)
logger = logging.getLogger("bgo-api")

# ── Production safety checks ──
if settings.ENVIRONMENT == "production":
    if not settings.admin_uid_list and not settings.superadmin_uid_list:
        raise RuntimeError(
            "CRITICAL: no ADMIN_UIDS or SUPERADMIN_UIDS configured! "
            "Without them only tokens carrying a role claim can reach the API."
        )

_is_dev = settings.ENVIRONMENT == "development"

# FastAPI app
app = FastAPI(
    title="B-Go Admin API",
    version=settings.APP_VERSION,
    docs_url="/docs" if _is_dev else None,
    openapi_url="/openapi.json" if _is_dev else None,
    redoc_url=None,
)
app.state.limiter = limiter
app.add_exception_handler(RateLimitExceeded, _rate_limit_exceeded_handler)

# CORS for the admin web dashboard
app.add_middleware(
    CORSMiddleware,
    allow_origins=["*"],
    allow_credentials=True,
    allow_methods=["*"],
    allow_headers=["*"],
)

# Register routers under /api/v1
PREFIX = "/api/v1"
app.include_router(system.router, prefix=PREFIX)
app.include_router(revenue.router, prefix=PREFIX)
app.include_router(remittance.router, prefix=PREFIX)
app.include_router(discounts.router, prefix=PREFIX)
app.include_router(conductors.router, prefix=PREFIX)
app.include_router(dashboard.router, prefix=PREFIX)


@app.get("/")
async def root():
    return {"service": "B-Go Admin API", "version": settings.APP_VERSION}


logger.info(f"B-Go Admin API started ({settings.ENVIRONMENT})")
