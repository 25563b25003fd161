"""
Tests for server/bgo/config.py
Covers: Settings defaults, uid list properties, operating timezone.
"""
from datetime import timedelta

from bgo.config import Settings


class TestSettingsDefaults:

    def test_default_environment(self):
        s = Settings()
        assert s.ENVIRONMENT == "development"

    def test_default_cache_lifetimes(self):
        s = Settings()
        assert s.REMITTANCE_CACHE_TTL_MINUTES == 3
        assert s.REVENUE_CACHE_TTL_MINUTES == 5
        assert s.DATES_CACHE_TTL_MINUTES == 10
        assert s.CONDUCTOR_CACHE_TTL_MINUTES == 15

    def test_default_trip_slots(self):
        assert Settings().MAX_TRIP_SLOTS == 10

    def test_discount_rate_on_paid_fare(self):
        # 20% off base means discount = 25% of what was paid
        assert Settings().DISCOUNT_RATE_ON_PAID == 0.25


class TestUidLists:

    def test_empty_admin_uids(self):
        assert Settings(ADMIN_UIDS="").admin_uid_list == []

    def test_admin_uids_are_split_and_stripped(self):
        s = Settings(ADMIN_UIDS=" a1 , b2,,c3 ")
        assert s.admin_uid_list == ["a1", "b2", "c3"]

    def test_superadmin_uids(self):
        s = Settings(SUPERADMIN_UIDS="root")
        assert s.superadmin_uid_list == ["root"]


class TestTimezone:

    def test_manila_offset(self):
        assert Settings().local_tz.utcoffset(None) == timedelta(hours=8)

    def test_custom_offset(self):
        assert Settings(TZ_OFFSET_HOURS=7).local_tz.utcoffset(None) == timedelta(hours=7)
