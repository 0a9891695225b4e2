from datetime import datetime, timezone


def utcnow() -> datetime:
    """Current UTC time as a naive datetime truncated to whole seconds."""
    return datetime.now(timezone.utc).replace(tzinfo=None, microsecond=0)
