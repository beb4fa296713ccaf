"""DateTime utilities."""

from datetime import datetime, timezone


def get_current_timestamp() -> datetime:
    """Get current UTC timestamp.

    Returns:
        Current UTC datetime, without tzinfo so it binds as a plain
        TIMESTAMP on drivers that reject aware values
    """
    return datetime.now(timezone.utc).replace(tzinfo=None)
