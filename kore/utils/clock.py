from datetime import datetime, timezone


def utc_now() -> datetime:
    """Current time as naive UTC, matching what the DateTime columns store."""
    return datetime.now(timezone.utc).replace(tzinfo=None)
