# mentorship_sync/utils/timestamp_utils.py
from datetime import datetime, timezone
from typing import Any, Optional
import logging

logger = logging.getLogger(__name__)

EPOCH = datetime(1970, 1, 1, tzinfo=timezone.utc)


def normalize_timestamp(value: Any) -> Optional[datetime]:
    """
    Converts whatever the backing store hands back into an aware UTC datetime.

    Accepts datetimes (naive values are taken to be UTC, as SQLite returns them),
    ISO-8601 strings, epoch seconds and objects exposing ``to_datetime()``.
    Returns None for missing or unparseable values.
    """
    if value is None:
        return None
    if hasattr(value, "to_datetime") and not isinstance(value, datetime):
        value = value.to_datetime()
    if isinstance(value, datetime):
        if value.tzinfo is None:
            return value.replace(tzinfo=timezone.utc)
        return value.astimezone(timezone.utc)
    if isinstance(value, bool):
        return None
    if isinstance(value, (int, float)):
        try:
            return datetime.fromtimestamp(value, tz=timezone.utc)
        except (OverflowError, OSError, ValueError):
            logger.warning(f"Ignoring out-of-range epoch timestamp {value!r}")
            return None
    if isinstance(value, str):
        text = value.strip()
        if text.endswith("Z"):
            text = text[:-1] + "+00:00"
        try:
            return normalize_timestamp(datetime.fromisoformat(text))
        except ValueError:
            logger.warning(f"Ignoring unparseable timestamp {value!r}")
            return None
    return None


def sort_key(value: Any) -> datetime:
    """Sort key that places missing timestamps at the epoch."""
    return normalize_timestamp(value) or EPOCH
