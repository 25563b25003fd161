"""
B-Go Admin — Remittance Router
GET /remittance, /remittance/dates, /remittance/validate, /remittance/export
"""
import logging
from datetime import date as date_cls

from fastapi import APIRouter, Depends, HTTPException, Query, Request
from fastapi.responses import StreamingResponse

from bgo.dependencies import require_admin
from bgo.encoding import to_json
from bgo.rate_limit import limiter
from bgo.services import audit
from bgo.services.export import XLSX_MEDIA_TYPE, build_remittance_workbook
from bgo.services.remittance import (
    remittance_service, get_remittance_by_date, validate_remittance_data,
)

logger = logging.getLogger("bgo-api")
router = APIRouter(prefix="/remittance", tags=["Remittance"])


def _require_date(value: str) -> str:
    try:
        date_cls.fromisoformat(value)
    except ValueError:
        raise HTTPException(status_code=400, detail=f"Invalid date: {value} (expected YYYY-MM-DD)")
    return value


@router.get("")
async def remittance_for_date(
    date: str = Query(...),
    refresh: bool = Query(default=False),
    admin: dict = Depends(require_admin),
):
    """Trips, summary and per-conductor grouping for one date."""
    _require_date(date)
    if refresh:
        remittance_service.invalidate(date)
    report = get_remittance_by_date(date)
    report["conductors"] = {
        cid: remittance_service.get_conductor_details(cid) for cid in report["grouped_data"]
    }
    return to_json(report)


@router.get("/dates")
async def remittance_dates(admin: dict = Depends(require_admin)):
    return {"dates": remittance_service.get_available_dates()}


@router.get("/validate")
async def validate_remittance(date: str = Query(...), admin: dict = Depends(require_admin)):
    _require_date(date)
    return validate_remittance_data(remittance_service.get_remittance_data(date))


@router.get("/export")
@limiter.limit("10/minute")
async def export_remittance(
    request: Request,
    date: str = Query(...),
    admin: dict = Depends(require_admin),
):
    _require_date(date)
    report = get_remittance_by_date(date)
    conductors = {
        cid: remittance_service.get_conductor_details(cid) for cid in report["grouped_data"]
    }
    buf = build_remittance_workbook(date, report["remittance_data"], report["summary"], conductors)
    filename = f"bgo_remittance_{date}.xlsx"

    audit.log_activity(
        audit.DATA_EXPORT,
        f"Exported remittance report for {date}",
        {"date": date, "trips": len(report["remittance_data"]), "format": "xlsx"},
        admin,
    )
    return StreamingResponse(
        buf,
        media_type=XLSX_MEDIA_TYPE,
        headers={"Content-Disposition": f"attachment; filename={filename}"},
    )
