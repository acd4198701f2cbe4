"""DateTime utilities for timezone-aware timestamp handling."""

from datetime import datetime, timezone


def utc_now() -> datetime:
    """
    Get current UTC datetime (timezone-aware).

    Replaces deprecated datetime.utcnow().

    Example:
        >>> utc_now().tzinfo
        datetime.timezone.utc
    """
    return datetime.now(timezone.utc)


def isoformat_z(moment: datetime) -> str:
    """ISO 8601 with millisecond precision and a ``Z`` suffix, e.g. ``2024-01-01T12:00:00.000Z``."""
    if moment.tzinfo is not None:
        moment = moment.astimezone(timezone.utc).replace(tzinfo=None)
    return moment.isoformat(timespec="milliseconds") + "Z"
