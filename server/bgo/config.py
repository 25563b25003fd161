"""
B-Go Admin — Backend Configuration
"""
from datetime import timedelta, timezone

from pydantic_settings import BaseSettings


class Settings(BaseSettings):
    # Environment
    ENVIRONMENT: str = "development"
    APP_VERSION: str = "1.0.0"

    # Firebase
    GOOGLE_APPLICATION_CREDENTIALS: str = ""
    FIREBASE_PROJECT_ID: str = ""

    # Admin access (comma separated Firebase Auth UIDs)
    ADMIN_UIDS: str = ""
    SUPERADMIN_UIDS: str = ""

    # Operating timezone (Asia/Manila)
    TZ_OFFSET_HOURS: int = 8

    # Trip walking
    MAX_TRIP_SLOTS: int = 10
    FANOUT_WORKERS: int = 8

    # Cache lifetimes
    REMITTANCE_CACHE_TTL_MINUTES: int = 3
    REVENUE_CACHE_TTL_MINUTES: int = 5
    DATES_CACHE_TTL_MINUTES: int = 10
    CONDUCTOR_CACHE_TTL_MINUTES: int = 15

    # Fares & discounts
    DISCOUNT_RATE_ON_PAID: float = 0.25  # paid fare is 80% of base, discount is 25% of paid
    DEFAULT_REGULAR_FARE: float = 15.0

    # Conductor accounts
    MIN_PASSWORD_LENGTH: int = 6

    class Config:
        env_file = ".env"
        extra = "ignore"

    @property
    def admin_uid_list(self) -> list:
        if not self.ADMIN_UIDS:
            return []
        return [uid.strip() for uid in self.ADMIN_UIDS.split(",") if uid.strip()]

    @property
    def superadmin_uid_list(self) -> list:
        if not self.SUPERADMIN_UIDS:
            return []
        return [uid.strip() for uid in self.SUPERADMIN_UIDS.split(",") if uid.strip()]

    @property
    def local_tz(self) -> timezone:
        return timezone(timedelta(hours=self.TZ_OFFSET_HOURS))


settings = Settings()
