from datetime import datetime, timezone


def utcnow() -> datetime:
    """Timezone-aware UTC timestamp, matching the timestamptz columns."""
    return datetime.now(tz=timezone.utc)
