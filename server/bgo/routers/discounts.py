"""
B-Go Admin — Discount Router
GET /discounts, GET /discounts/export
"""
import logging
from datetime import date as date_cls

from fastapi import APIRouter, Depends, HTTPException, Query, Request
from fastapi.responses import StreamingResponse

from bgo.dependencies import require_admin
from bgo.encoding import to_json
from bgo.rate_limit import limiter
from bgo.services import audit
from bgo.services.discounts import fetch_discount_report, calculate_discount_stats
from bgo.services.export import XLSX_MEDIA_TYPE, build_discount_workbook

logger = logging.getLogger("bgo-api")
router = APIRouter(prefix="/discounts", tags=["Discounts"])


def _range(start: str, end: str) -> tuple:
    """Both bounds or neither; start must not be after end."""
    if bool(start) != bool(end):
        raise HTTPException(status_code=400, detail="Provide both start and end, or neither")
    if not start:
        return None, None
    try:
        first, last = date_cls.fromisoformat(start), date_cls.fromisoformat(end)
    except ValueError:
        raise HTTPException(status_code=400, detail="Dates must be YYYY-MM-DD")
    if first > last:
        raise HTTPException(status_code=400, detail="start must not be after end")
    return start, end


@router.get("")
async def discount_report(
    start: str = Query(default=""),
    end: str = Query(default=""),
    admin: dict = Depends(require_admin),
):
    start, end = _range(start, end)
    report = fetch_discount_report(start, end)
    return to_json({**report, "stats": calculate_discount_stats(report["trips"])})


@router.get("/export")
@limiter.limit("10/minute")
async def export_discounts(
    request: Request,
    start: str = Query(default=""),
    end: str = Query(default=""),
    admin: dict = Depends(require_admin),
):
    start, end = _range(start, end)
    report = fetch_discount_report(start, end)
    buf = build_discount_workbook(report, calculate_discount_stats(report["trips"]))
    filename = f"bgo_discounts_{start or 'all'}_{end or 'now'}.xlsx"

    audit.log_activity(
        audit.DATA_EXPORT,
        f"Exported discount report {filename}",
        {"start": start, "end": end, "trips": len(report["trips"]), "format": "xlsx"},
        admin,
    )
    return StreamingResponse(
        buf,
        media_type=XLSX_MEDIA_TYPE,
        headers={"Content-Disposition": f"attachment; filename={filename}"},
    )
