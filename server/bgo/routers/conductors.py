"""
B-Go Admin — Conductors Router
Conductor listing, account lifecycle, live status and trip maintenance.
"""
import logging

from fastapi import APIRouter, Depends, HTTPException, Query, Request

from bgo.dependencies import require_admin, require_superadmin
from bgo.encoding import to_json
from bgo.models import (
    ConductorCreateRequest, ConductorUpdateRequest, ConductorStatusRequest,
    ConductorLocationRequest,
)
from bgo.rate_limit import limiter
from bgo.services.conductors import (
    conductor_service, ConductorError, ConductorNotFoundError, ConductorConflictError,
    ConductorPermissionError,
)

logger = logging.getLogger("bgo-api")
router = APIRouter(prefix="/conductors", tags=["Conductors"])


def _raise_http(e: ConductorError):
    if isinstance(e, ConductorNotFoundError):
        raise HTTPException(status_code=404, detail=str(e))
    if isinstance(e, ConductorConflictError):
        raise HTTPException(status_code=409, detail=str(e))
    if isinstance(e, ConductorPermissionError):
        raise HTTPException(status_code=403, detail=str(e))
    raise HTTPException(status_code=400, detail=str(e))


# ══════════════════════════════════════════════════
# Reads
# ══════════════════════════════════════════════════

@router.get("")
async def list_conductors(search: str = Query(default=""), admin: dict = Depends(require_admin)):
    conductors = conductor_service.search_conductors(search)
    return to_json({"conductors": conductors, "total": len(conductors)})


@router.get("/online")
async def online_conductors(admin: dict = Depends(require_admin)):
    return to_json({"conductors": conductor_service.get_online_conductors()})


@router.get("/{conductor_id}")
async def get_conductor(conductor_id: str, admin: dict = Depends(require_admin)):
    try:
        return to_json(conductor_service.get_conductor_details(conductor_id))
    except ConductorError as e:
        _raise_http(e)


@router.get("/{conductor_id}/trips")
async def conductor_trips(
    conductor_id: str,
    limit: int | None = Query(default=None, ge=1),
    date: str = Query(default=""),
    admin: dict = Depends(require_admin),
):
    if conductor_service.get_conductor_by_id(conductor_id) is None:
        raise HTTPException(status_code=404, detail="Conductor not found")
    if date:
        return to_json({"all_trips": conductor_service.get_trips_by_date(conductor_id, date),
                        "available_dates": [date]})
    return to_json(conductor_service.get_conductor_trips(conductor_id, limit))


# ══════════════════════════════════════════════════
# Mutations
# ══════════════════════════════════════════════════

@router.post("", status_code=201)
@limiter.limit("10/minute")
async def create_conductor(request: Request, req: ConductorCreateRequest, admin: dict = Depends(require_admin)):
    """Create a conductor (Auth account + document), reactivating a deleted one if possible."""
    try:
        return to_json(conductor_service.create_conductor(req.to_form(), admin))
    except ConductorError as e:
        _raise_http(e)


@router.patch("/{conductor_id}")
async def update_conductor(
    conductor_id: str,
    req: ConductorUpdateRequest,
    admin: dict = Depends(require_admin),
):
    update = req.to_update()
    if not update:
        raise HTTPException(status_code=400, detail="No fields to update")
    try:
        return conductor_service.update_conductor(conductor_id, update, admin)
    except ConductorError as e:
        _raise_http(e)


@router.post("/{conductor_id}/status")
async def update_status(
    conductor_id: str,
    req: ConductorStatusRequest,
    admin: dict = Depends(require_admin),
):
    try:
        return conductor_service.update_conductor_status(conductor_id, req.is_online, admin)
    except ConductorError as e:
        _raise_http(e)


@router.post("/{conductor_id}/location")
async def update_location(
    conductor_id: str,
    req: ConductorLocationRequest,
    admin: dict = Depends(require_admin),
):
    try:
        return conductor_service.update_conductor_location(conductor_id, req.model_dump())
    except ConductorError as e:
        _raise_http(e)


@router.delete("/{conductor_id}")
async def delete_conductor(conductor_id: str, admin: dict = Depends(require_superadmin)):
    """Soft delete; superadmin only."""
    try:
        return conductor_service.delete_conductor(conductor_id, admin)
    except ConductorError as e:
        _raise_http(e)


@router.delete("/{conductor_id}/trips/{date}/{ticket_number}")
async def delete_trip(
    conductor_id: str,
    date: str,
    ticket_number: str,
    trip_id: str = Query(default=""),
    admin: dict = Depends(require_admin),
):
    try:
        return conductor_service.delete_trip(conductor_id, date, ticket_number, trip_id or None, admin)
    except ConductorError as e:
        _raise_http(e)


@router.post("/sync-trip-counts")
async def sync_trip_counts(admin: dict = Depends(require_admin)):
    return conductor_service.sync_all_trip_counts(admin)


@router.post("/sync-coding-days")
async def sync_coding_days(admin: dict = Depends(require_admin)):
    return conductor_service.sync_all_coding_days(admin)
