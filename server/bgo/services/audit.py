"""
B-Go Admin — Audit Log
Every mutating admin action writes one entry to the AuditLogs collection.
"""
import logging
from datetime import datetime, timezone

from bgo.database import audit_logs_ref

logger = logging.getLogger("bgo-api")

CONDUCTOR_CREATE = "CONDUCTOR_CREATE"
CONDUCTOR_UPDATE = "CONDUCTOR_UPDATE"
CONDUCTOR_DELETE = "CONDUCTOR_DELETE"
TICKET_DELETE = "TICKET_DELETE"
DATA_EXPORT = "DATA_EXPORT"
SYSTEM_MAINTENANCE = "SYSTEM_MAINTENANCE"


def clean_metadata(value):
    """Recursively drop None values (Firestore rejects undefined-like holes)."""
    if isinstance(value, dict):
        cleaned = {}
        for key, item in value.items():
            if item is None:
                continue
            cleaned_item = clean_metadata(item)
            if cleaned_item is not None:
                cleaned[key] = cleaned_item
        return cleaned
    if isinstance(value, (list, tuple)):
        return [clean_metadata(item) for item in value if item is not None]
    return value


def log_activity(
    activity_type: str,
    description: str,
    metadata: dict | None = None,
    actor: dict | None = None,
    severity: str = "info",
) -> str | None:
    """Write an audit entry; failures are logged and never raised."""
    actor = actor or {}
    try:
        _, ref = audit_logs_ref().add({
            "userId": actor.get("user_id") or "system",
            "userEmail": actor.get("email") or "",
            "userName": actor.get("name") or "Unknown",
            "userRole": actor.get("role") or "unknown",
            "activityType": activity_type,
            "description": description,
            "metadata": clean_metadata(metadata or {}),
            "severity": severity,
            "timestamp": datetime.now(timezone.utc),
        })
        return ref.id
    except Exception as e:
        logger.error(f"Failed to write audit log ({activity_type}): {e}")
        return None
