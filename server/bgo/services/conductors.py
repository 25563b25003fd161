"""
B-Go Admin — Conductor Service
Conductor records, their trip counters and their account lifecycle:
create (paired with a Firebase Auth account), soft delete, reactivation.
"""
import logging
import re
import secrets
import time
from concurrent.futures import ThreadPoolExecutor
from datetime import datetime, timezone

from google.cloud.firestore_v1 import FieldFilter

from bgo.config import settings
from bgo.database import CHANNELS, CHANNEL_TICKETS, conductors_ref, daily_trips_ref, trip_channel_ref
from bgo.firebase import create_auth_user, EmailAlreadyExistsError, AuthAccountError
from bgo.services import audit
from bgo.services.cache import TTLCache
from bgo.services.remittance import remittance_service
from bgo.services.trips import (
    candidate_trip_slots, trip_slot_names, trip_has_counted_tickets, trip_has_any_documents,
)

logger = logging.getLogger("bgo-api")

EMAIL_RE = re.compile(r"^[^\s@]+@[^\s@]+\.[^\s@]+$")

CODING_DAYS = {
    "1": "Monday", "2": "Monday",
    "3": "Tuesday", "4": "Tuesday",
    "5": "Wednesday", "6": "Wednesday",
    "7": "Thursday", "8": "Thursday",
    "9": "Friday", "0": "Friday",
}

LIST_KEY = "conductors"


class ConductorError(Exception):
    """Invalid input or state for a conductor operation."""


class ConductorNotFoundError(ConductorError):
    pass


class ConductorConflictError(ConductorError):
    pass


class ConductorPermissionError(ConductorError):
    pass


def extract_document_id(email: str) -> str:
    """Conductor id: email local part with dots replaced by underscores."""
    return email.split("@")[0].replace(".", "_")


def get_coding_day_from_plate(plate_number: str | None) -> str:
    if not plate_number:
        return "Unknown"
    return CODING_DAYS.get(str(plate_number).strip()[-1:], "Unknown")


def validate_conductor_data(form: dict) -> dict:
    errors = []

    name = (form.get("name") or "").strip()
    if len(name) < 2:
        errors.append("Name must be at least 2 characters long")

    email = form.get("email") or ""
    if not email:
        errors.append("Email is required")
    elif not EMAIL_RE.match(email):
        errors.append("Please enter a valid email address")

    bus_number = form.get("busNumber")
    if bus_number in (None, ""):
        errors.append("Bus number is required")
    else:
        try:
            if int(bus_number) <= 0:
                raise ValueError
        except (TypeError, ValueError):
            errors.append("Please enter a valid bus number")

    if len((form.get("route") or "").strip()) < 3:
        errors.append("Route must be at least 3 characters long")

    password = form.get("password") or ""
    if not password:
        errors.append("Password is required")
    elif len(password) < settings.MIN_PASSWORD_LENGTH:
        errors.append(f"Password must be at least {settings.MIN_PASSWORD_LENGTH} characters long")

    if not (form.get("plateNumber") or "").strip():
        errors.append("Plate number is required")

    return {"is_valid": not errors, "errors": errors}


def _today() -> str:
    return datetime.now(settings.local_tz).date().isoformat()


def _timestamp_sort_value(value) -> float:
    if isinstance(value, datetime):
        return value.timestamp() if value.tzinfo else value.replace(tzinfo=timezone.utc).timestamp()
    return float("-inf")


class ConductorService:

    def __init__(self):
        self.list_cache = TTLCache(settings.CONDUCTOR_CACHE_TTL_MINUTES)
        remittance_service.add_change_handler(self._on_conductors_changed)

    def _on_conductors_changed(self, changed_ids: set):
        self.list_cache.invalidate(LIST_KEY)

    def _invalidate(self, conductor_id: str | None = None):
        self.list_cache.invalidate(LIST_KEY)
        if conductor_id:
            remittance_service.conductor_cache.invalidate(conductor_id)

    def _require(self, conductor_id: str) -> dict:
        snap = conductors_ref().document(conductor_id).get()
        if not snap.exists:
            raise ConductorNotFoundError("Conductor not found")
        return snap.to_dict() or {}

    # ══════════════════════════════════════════════════
    # Reads
    # ══════════════════════════════════════════════════

    def get_all_conductors(self) -> list[dict]:
        """Active conductors with trip counters reconciled against raw tickets."""
        cached = self.list_cache.get(LIST_KEY)
        if cached is not None:
            return cached

        try:
            docs = [d for d in conductors_ref().stream() if (d.to_dict() or {}).get("status") != "deleted"]
        except Exception as e:
            logger.error(f"Error fetching conductors: {e}")
            return self.list_cache.peek(LIST_KEY, [])

        def build(doc):
            data = doc.to_dict() or {}
            total = self.get_conductor_trips_count(doc.id)
            if data.get("totalTrips") != total:
                counts = self.update_conductor_trips_count(doc.id, total=total)
                data.update({"totalTrips": total, "todayTrips": counts.get("today_trips", 0)})
            return {"id": doc.id, **data}

        with ThreadPoolExecutor(max_workers=settings.FANOUT_WORKERS) as executor:
            conductors = list(executor.map(build, docs))

        self.list_cache.set(LIST_KEY, conductors)
        return conductors

    def search_conductors(self, term: str) -> list[dict]:
        term = (term or "").strip().lower()
        conductors = self.get_all_conductors()
        if not term:
            return conductors
        return [
            c for c in conductors
            if term in str(c.get("name") or "").lower()
            or term in str(c.get("route") or "").lower()
            or term in str(c.get("busNumber") or "")
            or term in str(c.get("email") or "").lower()
        ]

    def get_online_conductors(self) -> list[dict]:
        try:
            docs = conductors_ref().where(filter=FieldFilter("isOnline", "==", True)).stream()
            return [
                {"id": d.id, **(d.to_dict() or {})}
                for d in docs
                if (d.to_dict() or {}).get("status") != "deleted"
            ]
        except Exception as e:
            logger.error(f"Error fetching online conductors: {e}")
            return []

    def get_conductor_by_id(self, conductor_id: str) -> dict | None:
        try:
            snap = conductors_ref().document(conductor_id).get()
        except Exception as e:
            logger.error(f"Error fetching conductor {conductor_id}: {e}")
            return None
        return {"id": snap.id, **(snap.to_dict() or {})} if snap.exists else None

    def get_conductor_details(self, conductor_id: str) -> dict:
        data = self._require(conductor_id)
        trips = self.get_conductor_trips(conductor_id)
        return {
            "id": conductor_id,
            **data,
            "trips": trips["all_trips"],
            "available_dates": trips["available_dates"],
            "totalTrips": self.get_conductor_trips_count(conductor_id),
            "todayTrips": self.get_trips_count_for_date(conductor_id, _today()),
        }

    # ══════════════════════════════════════════════════
    # Trip counts
    # ══════════════════════════════════════════════════

    def _count_trips_in_day(self, conductor_id: str, date: str, daily_data: dict) -> int:
        return sum(
            1 for trip in trip_slot_names(daily_data)
            if trip_has_counted_tickets(conductor_id, date, trip)
        )

    def get_conductor_trips_count(self, conductor_id: str) -> int:
        """Unique date/trip slots holding a counted ticket, across all dates."""
        try:
            return sum(
                self._count_trips_in_day(conductor_id, day.id, day.to_dict() or {})
                for day in daily_trips_ref(conductor_id).stream()
            )
        except Exception as e:
            logger.error(f"Error counting trips for {conductor_id}: {e}")
            return 0

    def get_trips_count_for_date(self, conductor_id: str, date: str) -> int:
        try:
            snap = daily_trips_ref(conductor_id).document(date).get()
            if not snap.exists:
                return 0
            return self._count_trips_in_day(conductor_id, date, snap.to_dict() or {})
        except Exception as e:
            logger.error(f"Error counting trips for {conductor_id}/{date}: {e}")
            return 0

    def update_conductor_trips_count(self, conductor_id: str, total: int | None = None) -> dict:
        """Recount and write totalTrips / todayTrips back to the conductor."""
        if total is None:
            total = self.get_conductor_trips_count(conductor_id)
        today = self.get_trips_count_for_date(conductor_id, _today())
        try:
            conductors_ref().document(conductor_id).update({
                "totalTrips": total,
                "todayTrips": today,
                "updatedAt": datetime.now(timezone.utc),
            })
        except Exception as e:
            logger.error(f"Error updating trip counts for {conductor_id}: {e}")
            return {"success": False, "error": str(e)}
        return {"success": True, "total_trips": total, "today_trips": today}

    def sync_all_trip_counts(self, actor: dict | None = None) -> dict:
        results = []
        processed = 0
        for doc in conductors_ref().stream():
            data = doc.to_dict() or {}
            if data.get("status") == "deleted":
                continue
            processed += 1
            cached = data.get("totalTrips") or 0
            actual = self.get_conductor_trips_count(doc.id)
            if cached != actual:
                self.update_conductor_trips_count(doc.id, total=actual)
                results.append({
                    "conductor_id": doc.id,
                    "name": data.get("name"),
                    "old_count": cached,
                    "new_count": actual,
                })

        self._invalidate()
        audit.log_activity(
            audit.CONDUCTOR_UPDATE,
            f"Admin synchronized trip counts for {len(results)} conductors",
            {"action": "bulk_trip_count_sync", "updatedCount": len(results),
             "totalProcessed": processed, "results": results},
            actor,
        )
        return {"success": True, "updated_count": len(results), "results": results}

    def sync_all_coding_days(self, actor: dict | None = None) -> dict:
        updated = 0
        processed = 0
        for doc in conductors_ref().stream():
            data = doc.to_dict() or {}
            if data.get("status") == "deleted" or not data.get("plateNumber"):
                continue
            processed += 1
            coding_day = get_coding_day_from_plate(data["plateNumber"])
            if data.get("codingDay") != coding_day:
                doc.reference.update({"codingDay": coding_day, "updatedAt": datetime.now(timezone.utc)})
                updated += 1

        self._invalidate()
        audit.log_activity(
            audit.CONDUCTOR_UPDATE,
            f"Admin synchronized coding days for {updated} conductors",
            {"action": "bulk_coding_day_sync", "updatedCount": updated, "totalProcessed": processed},
            actor,
        )
        return {"success": True, "updated_count": updated}

    # ══════════════════════════════════════════════════
    # Trips
    # ══════════════════════════════════════════════════

    def get_trips_by_date(self, conductor_id: str, date: str) -> list[dict]:
        trips = []
        for trip in candidate_trip_slots():
            try:
                for doc in trip_channel_ref(conductor_id, date, trip, CHANNEL_TICKETS).stream():
                    trips.append({
                        "id": doc.id,
                        "ticket_number": doc.id,
                        "trip_id": trip,
                        "date": date,
                        **(doc.to_dict() or {}),
                    })
            except Exception as e:
                logger.warning(f"Skipping {conductor_id}/{date}/{trip}: {e}")
        return trips

    def get_conductor_trips(self, conductor_id: str, limit: int | None = None) -> dict:
        """Conductor-issued tickets across all dates, newest first."""
        all_trips, available_dates = [], []
        try:
            for day in daily_trips_ref(conductor_id).stream():
                available_dates.append(day.id)
                for ticket in self.get_trips_by_date(conductor_id, day.id):
                    ticket["timestamp"] = ticket.get("timestamp") or ticket.get("createdAt")
                    all_trips.append(ticket)
        except Exception as e:
            logger.error(f"Error fetching trips for {conductor_id}: {e}")
            return {"all_trips": [], "available_dates": []}

        all_trips.sort(key=lambda t: _timestamp_sort_value(t.get("timestamp")), reverse=True)
        return {
            "all_trips": all_trips[:limit] if limit else all_trips,
            "available_dates": available_dates,
        }

    def delete_trip(self, conductor_id: str, date: str, ticket_number: str,
                    trip_id: str | None = None, actor: dict | None = None) -> dict:
        """
        Delete one conductor ticket. Searches trip1..tripN when trip_id is not
        given or wrong; drops the date document once every channel is empty.
        """
        if not conductor_id or not date or not ticket_number:
            raise ConductorError("Missing required parameters: conductorId, date, or ticketNumber")

        slots = candidate_trip_slots()
        if trip_id:
            slots = [trip_id] + [s for s in slots if s != trip_id]

        found = None
        for slot in slots:
            ref = trip_channel_ref(conductor_id, date, slot, CHANNEL_TICKETS).document(ticket_number)
            if ref.get().exists:
                found = (slot, ref)
                break
        if found is None:
            raise ConductorNotFoundError("Trip not found in any trip collection")

        slot, ref = found
        ref.delete()

        # Reports find slots through the date document; drop it only once every channel is empty.
        day_ref = daily_trips_ref(conductor_id).document(date)
        day_slots = trip_slot_names(day_ref.get().to_dict() or {})
        all_slots = day_slots + [s for s in candidate_trip_slots() if s not in day_slots]
        date_removed = False
        if not any(trip_has_any_documents(conductor_id, date, s) for s in all_slots):
            day_ref.delete()
            date_removed = True

        self.update_conductor_trips_count(conductor_id)
        self._invalidate(conductor_id)
        remittance_service.invalidate(date)

        audit.log_activity(
            audit.TICKET_DELETE,
            f"Deleted ticket {ticket_number} from {conductor_id}/{date}/{slot}",
            {"conductorId": conductor_id, "date": date, "tripId": slot,
             "ticketNumber": ticket_number, "dateRemoved": date_removed},
            actor,
        )
        return {"success": True, "deleted_from": slot, "date_removed": date_removed}

    def delete_all_conductor_trips(self, conductor_id: str) -> dict:
        """Delete every ticket in every channel and every date document."""
        deleted_dates = 0
        deleted_trips = 0
        for day in daily_trips_ref(conductor_id).stream():
            for slot in candidate_trip_slots():
                for channel in CHANNELS:
                    try:
                        for doc in trip_channel_ref(conductor_id, day.id, slot, channel).stream():
                            doc.reference.delete()
                            deleted_trips += 1
                    except Exception as e:
                        logger.warning(f"Could not clear {conductor_id}/{day.id}/{slot}/{channel}: {e}")
            try:
                day.reference.delete()
                deleted_dates += 1
            except Exception as e:
                logger.warning(f"Error deleting date document {conductor_id}/{day.id}: {e}")

        return {"success": True, "deleted_dates": deleted_dates, "deleted_trips": deleted_trips}

    # ══════════════════════════════════════════════════
    # Lifecycle
    # ══════════════════════════════════════════════════

    def check_active_conductor_exists(self, conductor_id: str) -> bool:
        snap = conductors_ref().document(conductor_id).get()
        return snap.exists and (snap.to_dict() or {}).get("status") != "deleted"

    def reactivate_deleted_conductor(self, email: str, form: dict, actor: dict | None = None) -> dict | None:
        """Restore a soft-deleted conductor whose original email matches, keeping its uid."""
        docs = list(
            conductors_ref()
            .where(filter=FieldFilter("originalEmail", "==", email))
            .where(filter=FieldFilter("status", "==", "deleted"))
            .limit(1)
            .stream()
        )
        if not docs:
            return None

        doc = docs[0]
        deleted = doc.to_dict() or {}
        now = datetime.now(timezone.utc)
        data = {
            "uid": deleted.get("uid"),
            "busNumber": int(form["busNumber"]),
            "email": email,
            "name": form["name"],
            "route": form["route"],
            "plateNumber": form["plateNumber"],
            "codingDay": get_coding_day_from_plate(form["plateNumber"]),
            "isOnline": False,
            "status": "active",
            "createdAt": deleted.get("createdAt") or now,
            "reactivatedAt": now,
            "reactivatedBy": (actor or {}).get("user_id") or "system",
            "lastSeen": None,
            "currentLocation": None,
            "totalTrips": 0,
            "todayTrips": 0,
            "updatedAt": now,
            "deletedAt": None,
            "deletedBy": None,
            "deletedByEmail": None,
            "originalEmail": None,
            "originalName": None,
            "userRole": "conductor",
        }
        doc.reference.update(data)
        self._invalidate(doc.id)

        audit.log_activity(
            audit.CONDUCTOR_CREATE,
            f"Reactivated deleted conductor during creation: {email}",
            {"reactivatedEmail": email, "reactivatedName": form["name"],
             "originalUID": deleted.get("uid"), "conductorDocId": doc.id,
             "action": "conductor_reactivation"},
            actor,
        )
        logger.info(f"Conductor reactivated: {doc.id} ({email})")
        return {"id": doc.id, **data, "reactivated": True}

    def create_conductor(self, form: dict, actor: dict | None = None) -> dict:
        validation = validate_conductor_data(form)
        if not validation["is_valid"]:
            raise ConductorError("; ".join(validation["errors"]))

        email = form["email"].strip()
        conductor_id = extract_document_id(email)
        if self.check_active_conductor_exists(conductor_id):
            raise ConductorConflictError("An active conductor with this email already exists")

        try:
            uid = create_auth_user(email, form["password"], form["name"])
        except EmailAlreadyExistsError:
            reactivated = self.reactivate_deleted_conductor(email, form, actor)
            if reactivated:
                return reactivated
            raise ConductorConflictError(
                "This email is already registered in Firebase Authentication "
                "and no deleted conductor account was found to reactivate"
            )
        except AuthAccountError as e:
            raise ConductorError(str(e))

        now = datetime.now(timezone.utc)
        data = {
            "busNumber": int(form["busNumber"]),
            "email": email,
            "name": form["name"],
            "route": form["route"],
            "plateNumber": form["plateNumber"],
            "isOnline": False,
            "createdAt": now,
            "updatedAt": now,
            "lastSeen": None,
            "currentLocation": None,
            "uid": uid,
            "totalTrips": 0,
            "todayTrips": 0,
            "status": "offline",
            "busAvailabilityStatus": "no-reservation",
            "codingDay": get_coding_day_from_plate(form["plateNumber"]),
            "userRole": "conductor",
        }
        conductors_ref().document(conductor_id).set(data)
        self._invalidate(conductor_id)

        audit.log_activity(
            audit.CONDUCTOR_CREATE,
            f"Created new conductor: {form['name']} ({email})",
            {"conductorId": conductor_id, "conductorName": form["name"], "email": email,
             "route": form["route"], "busNumber": data["busNumber"], "uid": uid},
            actor,
        )
        logger.info(f"Conductor created: {conductor_id} ({email})")
        return {"id": conductor_id, **data, "reactivated": False}

    def update_conductor(self, conductor_id: str, update: dict, actor: dict | None = None) -> dict:
        current = self._require(conductor_id)

        data = {**update, "updatedAt": datetime.now(timezone.utc)}
        if update.get("plateNumber"):
            data["codingDay"] = get_coding_day_from_plate(update["plateNumber"])
        conductors_ref().document(conductor_id).update(data)
        self._invalidate(conductor_id)

        changes = [
            f'{key}: "{current.get(key)}" → "{value}"'
            for key, value in update.items()
            if current.get(key) != value
        ]
        audit.log_activity(
            audit.CONDUCTOR_UPDATE,
            f"Admin updated conductor: {current.get('name') or conductor_id}",
            {"conductorId": conductor_id, "conductorName": current.get("name"),
             "plateNumber": current.get("plateNumber"), "changes": changes,
             "updatedFields": list(update.keys())},
            actor,
        )
        return {"success": True, "changes": changes}

    def update_conductor_status(self, conductor_id: str, is_online: bool, actor: dict | None = None) -> dict:
        current = self._require(conductor_id)
        now = datetime.now(timezone.utc)
        status = "online" if is_online else "offline"
        conductors_ref().document(conductor_id).update({
            "isOnline": is_online,
            "lastSeen": now,
            "status": status,
            "updatedAt": now,
        })
        self._invalidate(conductor_id)

        audit.log_activity(
            audit.CONDUCTOR_UPDATE,
            f"Admin updated conductor status: {current.get('name') or conductor_id} is now {status}",
            {"conductorId": conductor_id, "conductorName": current.get("name"),
             "previousStatus": "online" if current.get("isOnline") else "offline",
             "newStatus": status, "action": "status_change"},
            actor,
        )
        return {"success": True, "status": status}

    def update_conductor_location(self, conductor_id: str, location: dict) -> dict:
        self._require(conductor_id)
        now = datetime.now(timezone.utc)
        conductors_ref().document(conductor_id).update({
            "currentLocation": {
                "latitude": location["latitude"],
                "longitude": location["longitude"],
                "timestamp": now,
                "accuracy": location.get("accuracy"),
                "speed": location.get("speed"),
                "heading": location.get("heading"),
            },
            "lastSeen": now,
            "updatedAt": now,
        })
        self._invalidate(conductor_id)
        return {"success": True}

    def delete_conductor(self, conductor_id: str, actor: dict | None = None) -> dict:
        """
        Soft delete: rewrite the email, prefix the name and flag the record
        so the same email can be reactivated later. Trip data is removed.
        """
        if (actor or {}).get("role") != "superadmin":
            raise ConductorPermissionError("Only superadmins can delete conductors")
        current = self._require(conductor_id)
        if current.get("status") == "deleted":
            raise ConductorError("Conductor is already deleted")

        actor = actor or {}
        deleted_email = f"deleted_{int(time.time() * 1000)}_{secrets.token_hex(3)}@deleted.invalid"
        conductors_ref().document(conductor_id).update({
            "email": deleted_email,
            "name": f"[DELETED] {current.get('name', '')}",
            "status": "deleted",
            "originalEmail": current.get("email"),
            "originalName": current.get("name"),
            "deletedAt": datetime.now(timezone.utc),
            "deletedBy": actor.get("user_id") or "unknown",
            "deletedByEmail": actor.get("email") or "unknown",
            "isOnline": False,
        })

        try:
            trips = self.delete_all_conductor_trips(conductor_id)
        except Exception as e:
            logger.warning(f"Error deleting trips of {conductor_id}: {e}")
            trips = {"success": False, "deleted_dates": 0, "deleted_trips": 0}

        self._invalidate(conductor_id)
        remittance_service.invalidate_all()

        audit.log_activity(
            audit.CONDUCTOR_DELETE,
            f"Deleted conductor (pseudo-delete): {current.get('name')} ({current.get('email')}) - "
            f"Removed {trips['deleted_trips']} tickets from {trips['deleted_dates']} dates",
            {"conductorId": conductor_id, "conductorName": current.get("name"),
             "email": current.get("email"), "route": current.get("route"),
             "busNumber": current.get("busNumber"), "uid": current.get("uid"),
             "deletionType": "pseudo_delete_with_trips", "deletedEmail": deleted_email,
             "tripsDeleted": trips["success"], "deletedDates": trips["deleted_dates"],
             "deletedTrips": trips["deleted_trips"]},
            actor,
        )
        logger.info(f"Conductor soft-deleted: {conductor_id}")
        return {
            "success": True,
            "original_email": current.get("email"),
            "deleted_email": deleted_email,
            "deleted_trips": trips["deleted_trips"],
            "deleted_dates": trips["deleted_dates"],
        }


conductor_service = ConductorService()
