"""
Tests for server/bgo/services/cache.py
Covers: TTL expiry, stale peek, predicate invalidation, collection watcher.
"""
from datetime import datetime, timedelta, timezone
from unittest.mock import MagicMock

from bgo.services.cache import TTLCache, CollectionWatcher

from firestore_fake import FakeFirestoreClient


class FakeClock:
    def __init__(self):
        self.now = datetime(2025, 3, 10, tzinfo=timezone.utc)

    def __call__(self):
        return self.now

    def advance(self, minutes):
        self.now += timedelta(minutes=minutes)


# ═══════════════════════════════════════
# TTLCache
# ═══════════════════════════════════════

class TestTTLCache:

    def test_fresh_entry_is_returned(self):
        cache = TTLCache(3, clock=FakeClock())
        cache.set("2025-03-10", [1])
        assert cache.get("2025-03-10") == [1]
        assert cache.has("2025-03-10")

    def test_expired_entry_is_a_miss(self):
        clock = FakeClock()
        cache = TTLCache(3, clock=clock)
        cache.set("k", "v")
        clock.advance(3)
        assert cache.get("k") is None
        assert len(cache) == 0

    def test_peek_returns_stale_value(self):
        clock = FakeClock()
        cache = TTLCache(3, clock=clock)
        cache.set("k", "v")
        clock.advance(10)
        assert cache.peek("k") == "v"

    def test_invalidate_where(self):
        cache = TTLCache(5)
        cache.set("a", {"conductor": "c1"})
        cache.set("b", {"conductor": "c2"})
        dropped = cache.invalidate_where(lambda key, value: value["conductor"] == "c1")
        assert dropped == ["a"]
        assert cache.keys() == ["b"]

    def test_invalidate_and_clear(self):
        cache = TTLCache(5)
        cache.set("a", 1)
        cache.set("b", 2)
        assert cache.invalidate("a") is True
        assert cache.invalidate("a") is False
        cache.clear()
        assert len(cache) == 0


# ═══════════════════════════════════════
# CollectionWatcher
# ═══════════════════════════════════════

class TestCollectionWatcher:

    def _watcher(self, db, handler):
        return CollectionWatcher(lambda: db.collection("conductors"), handler, name="conductors")

    def test_first_snapshot_only_primes(self):
        db = FakeFirestoreClient()
        handler = MagicMock()
        watcher = self._watcher(db, handler)
        watcher.start()

        db.fire_snapshot(["c1"])
        handler.assert_not_called()

        db.fire_snapshot(["c1", "c2"])
        handler.assert_called_once_with({"c1", "c2"})

    def test_start_is_idempotent(self):
        db = FakeFirestoreClient()
        watcher = self._watcher(db, MagicMock())
        watcher.start()
        watcher.start()
        assert len(db.watches) == 1
        assert watcher.active

    def test_stop_unsubscribes(self):
        db = FakeFirestoreClient()
        watcher = self._watcher(db, MagicMock())
        watcher.start()
        watcher.stop()
        assert not watcher.active
        assert db.watches == []

    def test_failing_handler_keeps_watcher_attached(self):
        db = FakeFirestoreClient()
        handler = MagicMock(side_effect=RuntimeError("boom"))
        watcher = self._watcher(db, handler)
        watcher.start()
        db.fire_snapshot(["c1"])
        db.fire_snapshot(["c1"])
        db.fire_snapshot(["c2"])
        assert handler.call_count == 2
        assert watcher.active

    def test_empty_change_set_is_ignored(self):
        db = FakeFirestoreClient()
        handler = MagicMock()
        watcher = self._watcher(db, handler)
        watcher.start()
        db.fire_snapshot(["c1"])
        db.fire_snapshot([])
        handler.assert_not_called()

    def test_closed_stream_is_inactive_and_restarts(self):
        db = FakeFirestoreClient()
        handler = MagicMock()
        watcher = self._watcher(db, handler)
        watcher.start()
        dead = db.watches[0]

        dead.close()
        assert not watcher.active

        watcher.start()
        assert watcher.active
        assert dead.unsubscribed
        assert len(db.watches) == 1 and db.watches[0] is not dead

        db.fire_snapshot(["c1"])
        db.fire_snapshot(["c2"])
        handler.assert_called_once_with({"c2"})
