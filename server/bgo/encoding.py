"""
B-Go Admin — Response Encoding
Firestore timestamps are rendered as ISO-8601 in the operating timezone.
"""
from datetime import datetime

from fastapi.encoders import jsonable_encoder

from bgo.config import settings


def _localize(value):
    if isinstance(value, datetime):
        if value.tzinfo is not None:
            return value.astimezone(settings.local_tz)
        return value
    if isinstance(value, dict):
        return {key: _localize(item) for key, item in value.items()}
    if isinstance(value, (list, tuple)):
        return [_localize(item) for item in value]
    return value


def to_json(value):
    return jsonable_encoder(_localize(value))
