"""
B-Go Admin — In-Memory Caches
Keyed TTL cache plus a Firestore collection watcher that drives invalidation.
Process-local only.
"""
import logging
import threading
from datetime import datetime, timezone

logger = logging.getLogger("bgo-api")


def _utcnow() -> datetime:
    return datetime.now(timezone.utc)


class TTLCache:
    """Dict of key -> (value, fetched_at); entries older than the TTL read as misses."""

    def __init__(self, ttl_minutes: float, clock=_utcnow):
        self.ttl_seconds = ttl_minutes * 60
        self._clock = clock
        self._entries: dict = {}
        self._lock = threading.Lock()

    def _fresh(self, fetched_at: datetime) -> bool:
        return (self._clock() - fetched_at).total_seconds() < self.ttl_seconds

    def get(self, key, default=None):
        with self._lock:
            entry = self._entries.get(key)
            if entry is None:
                return default
            value, fetched_at = entry
            if not self._fresh(fetched_at):
                del self._entries[key]
                return default
            return value

    def peek(self, key, default=None):
        """Return a value even if stale (used as a last-known fallback)."""
        with self._lock:
            entry = self._entries.get(key)
            return entry[0] if entry else default

    def has(self, key) -> bool:
        return self.get(key, _MISSING) is not _MISSING

    def set(self, key, value):
        with self._lock:
            self._entries[key] = (value, self._clock())

    def invalidate(self, key) -> bool:
        with self._lock:
            return self._entries.pop(key, None) is not None

    def invalidate_where(self, predicate) -> list:
        """Drop every entry whose (key, value) satisfies predicate; return dropped keys."""
        with self._lock:
            dropped = [k for k, (v, _) in self._entries.items() if predicate(k, v)]
            for key in dropped:
                del self._entries[key]
        return dropped

    def clear(self):
        with self._lock:
            self._entries.clear()

    def keys(self) -> list:
        with self._lock:
            return list(self._entries.keys())

    def __len__(self):
        with self._lock:
            return len(self._entries)


_MISSING = object()


class CollectionWatcher:
    """
    Wraps collection.on_snapshot(). The first snapshot only primes the
    listener; later snapshots forward the ids of changed documents.
    """

    def __init__(self, collection_factory, on_change, name: str = "collection"):
        self._collection_factory = collection_factory
        self._on_change = on_change
        self.name = name
        self._watch = None
        self._primed = False
        self._lock = threading.Lock()

    @property
    def active(self) -> bool:
        """False once stopped or once the underlying stream has closed."""
        return self._watch is not None and bool(getattr(self._watch, "is_active", True))

    def start(self):
        """Subscribe, replacing a watch whose stream has closed."""
        with self._lock:
            if self.active:
                return
            if self._watch is not None:
                logger.warning(f"Change listener on {self.name} closed; resubscribing")
                self._discard(self._watch)
                self._watch = None
            self._primed = False
            try:
                self._watch = self._collection_factory().on_snapshot(self._handle_snapshot)
                logger.info(f"Change listener started on {self.name}")
            except Exception as e:
                logger.error(f"Failed to start change listener on {self.name}: {e}")
                self._watch = None

    def stop(self):
        with self._lock:
            watch, self._watch = self._watch, None
        if watch is not None:
            self._discard(watch)

    def _discard(self, watch):
        try:
            watch.unsubscribe()
        except Exception as e:
            logger.warning(f"Error stopping change listener on {self.name}: {e}")

    def _handle_snapshot(self, doc_snapshots, changes, read_time):
        if not self._primed:
            self._primed = True
            return
        changed_ids = {change.document.id for change in (changes or [])}
        if not changed_ids:
            return
        try:
            self._on_change(changed_ids)
        except Exception as e:
            logger.error(f"Change handler for {self.name} failed: {e}")
