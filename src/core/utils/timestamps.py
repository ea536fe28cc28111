"""Timestamp utilities for consistent datetime handling across the pipeline."""

from datetime import datetime, timezone
from typing import Any

from common_lib.logger import get_logger

logger = get_logger(__name__)


def utc_now() -> datetime:
    """Return the current time as a timezone-aware UTC datetime."""
    return datetime.now(timezone.utc)


def utc_now_iso() -> str:
    """Return the current UTC time in ISO format."""
    return utc_now().isoformat()


def normalize_timestamp(value: Any) -> str:
    """
    Convert various timestamp formats to ISO format string.

    Replayed log lines may carry ISO strings, epoch milliseconds (the
    format older webhook logs used for ``received_at``) or datetimes.

    Args:
        value: datetime object, ISO format string, or epoch milliseconds

    Returns:
        ISO format string. If conversion fails, returns current UTC time.
    """
    if isinstance(value, datetime):
        return value.isoformat()
    if isinstance(value, (int, float)) and not isinstance(value, bool):
        return datetime.fromtimestamp(value / 1000, tz=timezone.utc).isoformat()
    if isinstance(value, str):
        try:
            datetime.fromisoformat(value.replace("Z", "+00:00"))
            return value
        except ValueError:
            logger.warning("Invalid datetime format encountered: %s, using current time", value)
    return utc_now_iso()
