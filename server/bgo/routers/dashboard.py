"""
B-Go Admin — Dashboard Router
Headline summaries and conductor performance.
"""
import logging
from datetime import date as date_cls

from fastapi import APIRouter, Depends, HTTPException, Query

from bgo.dependencies import require_admin
from bgo.encoding import to_json
from bgo.services.dashboard import (
    TRIP_FILTERS, get_trip_summary, get_revenue_trend, get_conductors_summary,
)
from bgo.services.performance import get_performance_report

logger = logging.getLogger("bgo-api")
router = APIRouter(prefix="/dashboard", tags=["Dashboard"])


def _check_date(value: str):
    try:
        date_cls.fromisoformat(value)
    except ValueError:
        raise HTTPException(status_code=400, detail=f"Invalid date: {value} (expected YYYY-MM-DD)")


@router.get("/trips")
async def trip_summary(
    filter: str = Query(default="today"),
    date: str = Query(default=""),
    admin: dict = Depends(require_admin),
):
    """Trip totals for today, a custom date (filter=custom&date=...) or all dates."""
    if filter not in TRIP_FILTERS:
        raise HTTPException(status_code=400, detail=f"Unknown filter: {filter}")
    if date:
        _check_date(date)
    return to_json(get_trip_summary(filter, date or None))


@router.get("/revenue-trend")
async def revenue_trend(admin: dict = Depends(require_admin)):
    return {"trend": get_revenue_trend()}


@router.get("/conductors")
async def conductors_summary(admin: dict = Depends(require_admin)):
    return get_conductors_summary()


@router.get("/performance")
async def conductor_performance(
    date: str = Query(default=""),
    admin: dict = Depends(require_admin),
):
    """Per-conductor performance; an empty date covers every recorded date."""
    if date:
        _check_date(date)
    return to_json(get_performance_report(date or None))
