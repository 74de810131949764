"""
Firestore helpers shared by the repository layer.
"""

from datetime import datetime, timezone
from typing import Any, Dict, Optional


def where_filter(query, field_path: str, op_string: str, value):
    """
    Apply an equality/comparison filter.

    Usage:
        query = where_filter(collection, "status", "==", "pending")
        query = where_filter(query, "category", "==", "food")
    """
    return query.where(field_path, op_string, value)


def utc_now() -> datetime:
    return datetime.now(timezone.utc)


def parse_timestamp(value) -> Optional[datetime]:
    """
    Parse the timestamp formats Firestore hands back to a timezone-aware UTC datetime.

    All datetimes must be timezone-aware so they compare safely.
    """
    if value is None:
        return None
    if isinstance(value, datetime):
        if value.tzinfo is None:
            return value.replace(tzinfo=timezone.utc)
        return value.astimezone(timezone.utc)
    if isinstance(value, str):
        try:
            dt = datetime.fromisoformat(value.replace("Z", "+00:00"))
        except ValueError:
            return None
        if dt.tzinfo is None:
            dt = dt.replace(tzinfo=timezone.utc)
        return dt.astimezone(timezone.utc)
    if hasattr(value, "to_datetime"):
        return parse_timestamp(value.to_datetime())
    if hasattr(value, "timestamp"):
        return datetime.fromtimestamp(value.timestamp(), tz=timezone.utc)
    return None


def doc_to_dict(doc) -> Dict[str, Any]:
    """Flatten a document snapshot into a dict with its id and parsed timestamps."""
    data = doc.to_dict() or {}
    data["id"] = doc.id
    for key in ("created_at", "updated_at"):
        if key in data:
            data[key] = parse_timestamp(data[key])
    return data
