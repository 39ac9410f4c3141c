from datetime import datetime, timezone


def get_current_timestamp() -> datetime:
    """Timezone-aware UTC 'now', the clock used for conversation activity and document metadata."""
    return datetime.now(timezone.utc)


def to_iso(timestamp: datetime) -> str:
    return timestamp.isoformat()
