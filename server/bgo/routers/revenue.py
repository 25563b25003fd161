"""
B-Go Admin — Revenue Router
Daily and monthly revenue reports, their filters and Excel export.
"""
import logging
from datetime import date as date_cls

from fastapi import APIRouter, Depends, HTTPException, Query, Request
from fastapi.responses import StreamingResponse

from bgo.dependencies import require_admin
from bgo.encoding import to_json
from bgo.rate_limit import limiter
from bgo.services import audit
from bgo.services.export import (
    XLSX_MEDIA_TYPE, build_daily_revenue_workbook, build_monthly_revenue_workbook,
)
from bgo.services.monthly import load_monthly_data, get_available_months, is_valid_month
from bgo.services.revenue import TICKET_TYPES, get_daily_report, get_available_routes

logger = logging.getLogger("bgo-api")
router = APIRouter(prefix="/revenue", tags=["Revenue"])


def _check_date(value: str):
    try:
        date_cls.fromisoformat(value)
    except ValueError:
        raise HTTPException(status_code=400, detail=f"Invalid date: {value} (expected YYYY-MM-DD)")


def _check_ticket_type(value: str):
    if value not in TICKET_TYPES:
        raise HTTPException(status_code=400, detail=f"Unknown ticket type: {value}")


@router.get("/daily")
async def daily_revenue(
    date: str = Query(default=""),
    route: str = Query(default=""),
    ticket_type: str = Query(default=""),
    admin: dict = Depends(require_admin),
):
    """Daily revenue; an empty date aggregates every recorded date."""
    if date:
        _check_date(date)
    _check_ticket_type(ticket_type)
    return to_json(get_daily_report(date or None, route or None, ticket_type))


@router.get("/routes")
async def available_routes(admin: dict = Depends(require_admin)):
    return {"routes": get_available_routes()}


@router.get("/monthly")
async def monthly_revenue(
    month: str = Query(...),
    route: str = Query(default=""),
    ticket_type: str = Query(default=""),
    admin: dict = Depends(require_admin),
):
    if not is_valid_month(month):
        raise HTTPException(status_code=400, detail=f"Invalid month: {month} (expected YYYY-MM)")
    _check_ticket_type(ticket_type)
    return to_json(load_monthly_data(month, route or None, ticket_type))


@router.get("/months")
async def available_months(admin: dict = Depends(require_admin)):
    return {"months": get_available_months()}


@router.get("/export")
@limiter.limit("10/minute")
async def export_revenue(
    request: Request,
    date: str = Query(default=""),
    month: str = Query(default=""),
    route: str = Query(default=""),
    ticket_type: str = Query(default=""),
    format: str = Query(default="xlsx"),
    admin: dict = Depends(require_admin),
):
    """Export the monthly report when month is given, else the daily one."""
    if format != "xlsx":
        raise HTTPException(status_code=400, detail=f"Unsupported format: {format}")
    _check_ticket_type(ticket_type)

    if month:
        if not is_valid_month(month):
            raise HTTPException(status_code=400, detail=f"Invalid month: {month} (expected YYYY-MM)")
        buf = build_monthly_revenue_workbook(load_monthly_data(month, route or None, ticket_type))
        filename = f"bgo_monthly_revenue_{month}.xlsx"
    else:
        if date:
            _check_date(date)
        buf = build_daily_revenue_workbook(get_daily_report(date or None, route or None, ticket_type))
        filename = f"bgo_daily_revenue_{date or 'all'}.xlsx"

    audit.log_activity(
        audit.DATA_EXPORT,
        f"Exported revenue report {filename}",
        {"date": date or None, "month": month or None, "route": route or None,
         "ticketType": ticket_type or None, "format": format},
        admin,
    )
    return StreamingResponse(
        buf,
        media_type=XLSX_MEDIA_TYPE,
        headers={"Content-Disposition": f"attachment; filename={filename}"},
    )
