"""
B-Go Admin — Remittance Service
Per-date reconciliation of every conductor's trips, cached in memory with
TTL expiry and invalidation driven by a listener on the conductors collection.
"""
import logging
import threading
from concurrent.futures import ThreadPoolExecutor

from bgo.config import settings
from bgo.database import conductors_ref, daily_trips_ref, remittance_ref, bus_number_ref
from bgo.services.cache import TTLCache, CollectionWatcher
from bgo.services.trips import (
    get_trip_data, trip_slot_names, trip_has_any_documents, trip_number_key,
    is_date_id, count_unique_trips,
)

logger = logging.getLogger("bgo-api")

DATES_KEY = "available_dates"


class RemittanceService:

    def __init__(self):
        self.remittance_cache = TTLCache(settings.REMITTANCE_CACHE_TTL_MINUTES)
        self.dates_cache = TTLCache(settings.DATES_CACHE_TTL_MINUTES)
        self.conductor_cache = TTLCache(settings.CONDUCTOR_CACHE_TTL_MINUTES)
        self.watcher = CollectionWatcher(conductors_ref, self._on_conductors_changed, name="conductors")
        self._callbacks: dict = {}
        self._change_handlers: list = []
        self._lock = threading.Lock()

    # ── Remittance data ──

    def get_remittance_data(self, date: str) -> list[dict]:
        """Cache-first remittance entries for a date."""
        if not date:
            return []

        # Cached entries are only trusted while the listener can still invalidate them.
        cached = self.remittance_cache.get(date)
        if cached is not None and self.watcher.active:
            return cached

        try:
            data = self._fetch_remittance_data(date)
        except Exception as e:
            logger.error(f"Failed to load remittance data for {date}: {e}")
            return self.remittance_cache.peek(date, [])

        self.remittance_cache.set(date, data)
        self.watcher.start()
        return data

    def _fetch_remittance_data(self, date: str) -> list[dict]:
        conductor_ids = [doc.id for doc in conductors_ref().stream()]

        with ThreadPoolExecutor(max_workers=settings.FANOUT_WORKERS) as executor:
            per_conductor = list(executor.map(
                lambda cid: self._conductor_entries(cid, date), conductor_ids
            ))

        entries = [entry for group in per_conductor for entry in group]
        entries.sort(key=lambda e: (e["conductor_id"], trip_number_key(e["trip_number"])))
        logger.info(f"Remittance {date}: {len(entries)} trips from {len(conductor_ids)} conductors")
        return entries

    def _conductor_entries(self, conductor_id: str, date: str) -> list[dict]:
        try:
            summary = self.get_remittance_summary(conductor_id, date)
            entries = []
            for trip in get_trip_data(conductor_id, date):
                entries.append({
                    "conductor_id": conductor_id,
                    "trip_number": trip["trip_number"],
                    "date": date,
                    "date_time": trip["start_time"],
                    "trip_direction": trip["trip_direction"],
                    "total_revenue": trip["total_revenue"],
                    "total_passengers": trip["total_passengers"],
                    "ticket_count": trip["ticket_count"],
                    "tickets": trip["tickets"],
                    "document_type": trip["document_type"],
                    "is_complete": trip["is_complete"],
                    "start_time": trip["start_time"],
                    "end_time": trip["end_time"],
                    "place_collection": trip["place_collection"],
                    "trip_data": trip["data"],
                    "remittance_summary": summary,
                })
            return entries
        except Exception as e:
            logger.error(f"Error processing remittance for conductor {conductor_id}: {e}")
            return []

    def get_remittance_summary(self, conductor_id: str, date: str) -> dict | None:
        """Optional conductors/{id}/remittance/{date} rollup."""
        try:
            snap = remittance_ref(conductor_id).document(date).get()
            return snap.to_dict() if snap.exists else None
        except Exception as e:
            logger.warning(f"Remittance summary unavailable for {conductor_id}/{date}: {e}")
            return None

    # ── Available dates ──

    def get_available_dates(self) -> list[str]:
        """YYYY-MM-DD dates with at least one ticket in any channel, newest first."""
        cached = self.dates_cache.get(DATES_KEY)
        if cached is not None:
            return cached

        try:
            conductor_ids = [doc.id for doc in conductors_ref().stream()]
            with ThreadPoolExecutor(max_workers=settings.FANOUT_WORKERS) as executor:
                per_conductor = list(executor.map(self._conductor_dates, conductor_ids))
        except Exception as e:
            logger.error(f"Failed to list remittance dates: {e}")
            return self.dates_cache.peek(DATES_KEY, [])

        dates = sorted(set().union(*per_conductor), reverse=True)
        self.dates_cache.set(DATES_KEY, dates)
        return dates

    def _conductor_dates(self, conductor_id: str) -> set:
        dates = set()
        try:
            for date_doc in daily_trips_ref(conductor_id).stream():
                if not is_date_id(date_doc.id):
                    continue
                for trip in trip_slot_names(date_doc.to_dict() or {}):
                    if trip_has_any_documents(conductor_id, date_doc.id, trip):
                        dates.add(date_doc.id)
                        break
        except Exception as e:
            logger.error(f"Error fetching remittance dates for conductor {conductor_id}: {e}")
        return dates

    # ── Conductor details ──

    def get_conductor_details(self, conductor_id: str) -> dict:
        """Conductor record with a resolved bus number ('N/A' when unknown)."""
        cached = self.conductor_cache.get(conductor_id)
        if cached is not None:
            return cached

        details = {"id": conductor_id, "name": conductor_id, "bus_number": "N/A"}
        try:
            snap = conductors_ref().document(conductor_id).get()
            if snap.exists:
                data = snap.to_dict() or {}
                details.update(data)
                details["name"] = data.get("name") or conductor_id
                details["bus_number"] = "N/A"
                for field in ("busNumber", "bus", "number"):
                    if data.get(field):
                        details["bus_number"] = str(data[field])
                        break

            if details["bus_number"] == "N/A":
                details["bus_number"] = self._bus_number_from_subcollection(conductor_id)
        except Exception as e:
            logger.error(f"Error fetching conductor details for {conductor_id}: {e}")
            return {"id": conductor_id, "name": conductor_id, "bus_number": "N/A"}

        self.conductor_cache.set(conductor_id, details)
        return details

    def _bus_number_from_subcollection(self, conductor_id: str) -> str:
        try:
            docs = list(bus_number_ref(conductor_id).limit(1).stream())
        except Exception as e:
            logger.warning(f"busNumber sub-collection unreadable for {conductor_id}: {e}")
            return "N/A"
        if not docs:
            return "N/A"
        data = docs[0].to_dict() or {}
        value = data.get("busNumber") or data.get("number") or data.get("bus") or docs[0].id
        return str(value) if value else "N/A"

    def get_all_conductor_details(self) -> dict:
        try:
            return {doc.id: self.get_conductor_details(doc.id) for doc in conductors_ref().stream()}
        except Exception as e:
            logger.error(f"Error fetching all conductor details: {e}")
            return {}

    # ── Cache management ──

    def invalidate(self, date: str):
        self.remittance_cache.invalidate(date)

    def invalidate_all(self):
        self.remittance_cache.clear()
        self.dates_cache.clear()
        self.conductor_cache.clear()

    def force_refresh(self, date: str) -> list[dict]:
        self.invalidate(date)
        return self.get_remittance_data(date)

    def cache_info(self) -> dict:
        return {
            "cache_size": len(self.remittance_cache),
            "is_listener_active": self.watcher.active,
            "cached_keys": self.remittance_cache.keys(),
            "available_dates_cached": self.dates_cache.has(DATES_KEY),
            "conductor_details_cached": len(self.conductor_cache),
            "subscriptions": len(self._callbacks),
        }

    def add_change_handler(self, handler):
        """Register handler(changed_conductor_ids) for conductor collection changes."""
        with self._lock:
            if handler not in self._change_handlers:
                self._change_handlers.append(handler)

    def _on_conductors_changed(self, changed_ids: set):
        dropped = self.remittance_cache.invalidate_where(
            lambda date, entries: any(e["conductor_id"] in changed_ids for e in entries)
        )
        for conductor_id in changed_ids:
            self.conductor_cache.invalidate(conductor_id)
        if dropped:
            self.dates_cache.clear()
            logger.info(f"Conductor change invalidated remittance for: {', '.join(dropped)}")

        with self._lock:
            handlers = list(self._change_handlers)
        for handler in handlers:
            handler(changed_ids)

        self._notify(dropped)

    # ── Subscriptions ──

    def subscribe(self, date: str, callback):
        """
        Deliver the date's data to callback now and again whenever a conductor
        change invalidates it. Returns an unsubscribe function.
        """
        key = f"remittance_callback_{date}"
        with self._lock:
            self._callbacks[key] = (date, callback)

        try:
            callback(self.get_remittance_data(date))
        except Exception as e:
            logger.error(f"Remittance subscriber for {date} failed: {e}")

        def unsubscribe():
            with self._lock:
                self._callbacks.pop(key, None)

        return unsubscribe

    def _notify(self, dates: list):
        with self._lock:
            targets = [(d, cb) for d, cb in self._callbacks.values() if d in dates]
        for date, callback in targets:
            try:
                callback(self.get_remittance_data(date))
            except Exception as e:
                logger.error(f"Remittance subscriber for {date} failed: {e}")

    def remove_all_listeners(self):
        with self._lock:
            self._callbacks.clear()
        self.watcher.stop()


remittance_service = RemittanceService()


# ══════════════════════════════════════════════════
# Pure helpers
# ══════════════════════════════════════════════════

def calculate_remittance_summary(entries: list[dict]) -> dict:
    """Totals over trips that carry tickets; trips counted once per conductor/date/slot."""
    with_tickets = [e for e in entries if e.get("ticket_count", 0) > 0]
    total_revenue = sum(e.get("total_revenue", 0) for e in with_tickets)
    total_passengers = sum(e.get("total_passengers", 0) for e in with_tickets)
    return {
        "total_revenue": total_revenue,
        "total_passengers": total_passengers,
        "total_tickets": sum(e.get("ticket_count", 0) for e in with_tickets),
        "total_trips": count_unique_trips(with_tickets),
        "average_fare": total_revenue / total_passengers if total_passengers > 0 else 0,
    }


def group_remittance_by_conductor(entries: list[dict]) -> dict:
    grouped: dict = {}
    for entry in entries:
        grouped.setdefault(entry.get("conductor_id"), []).append(entry)

    result = {}
    for conductor_id, trips in grouped.items():
        revenue = sum(t.get("total_revenue", 0) for t in trips)
        passengers = sum(t.get("total_passengers", 0) for t in trips)
        result[conductor_id] = {
            "trips": trips,
            "conductor_summary": {
                "total_trips": len(trips),
                "total_revenue": revenue,
                "total_passengers": passengers,
                "total_tickets": sum(t.get("ticket_count", 0) for t in trips),
                "average_fare": revenue / passengers if passengers > 0 else 0,
            },
        }
    return result


def validate_remittance_data(entries: list[dict]) -> dict:
    errors, warnings = [], []
    for index, trip in enumerate(entries, 1):
        trip_no = trip.get("trip_number")
        revenue = trip.get("total_revenue", 0)
        passengers = trip.get("total_passengers", 0)

        if not trip.get("conductor_id"):
            errors.append(f"Trip {index}: Missing conductor ID")
        if not trip_no:
            errors.append(f"Trip {index}: Missing trip number")
        if revenue < 0:
            errors.append(f"Trip {trip_no}: Negative revenue")
        if passengers < 0:
            errors.append(f"Trip {trip_no}: Negative passenger count")

        if revenue == 0 and passengers > 0:
            warnings.append(f"Trip {trip_no}: Has passengers but no revenue")
        if revenue > 0 and passengers == 0:
            warnings.append(f"Trip {trip_no}: Has revenue but no passengers")
        if trip.get("ticket_count", 0) == 0:
            warnings.append(f"Trip {trip_no}: No tickets found")
        if not trip.get("is_complete"):
            warnings.append(f"Trip {trip_no}: Trip marked as incomplete")

    return {"is_valid": not errors, "errors": errors, "warnings": warnings}


def get_remittance_by_date(date: str) -> dict:
    entries = remittance_service.get_remittance_data(date)
    return {
        "date": date,
        "remittance_data": entries,
        "summary": calculate_remittance_summary(entries),
        "grouped_data": group_remittance_by_conductor(entries),
    }
