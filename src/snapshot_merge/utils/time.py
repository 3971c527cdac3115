from __future__ import annotations

from datetime import datetime, timezone


def parse_datetime(value) -> datetime | None:
    if value is None or value == "":
        return None
    if isinstance(value, datetime):
        return value if value.tzinfo else value.replace(tzinfo=timezone.utc)
    if isinstance(value, (int, float)):
        return datetime.fromtimestamp(value, tz=timezone.utc)
    if isinstance(value, str):
        text = value.strip().replace("Z", "+00:00")
        dt = datetime.fromisoformat(text)
        return dt if dt.tzinfo else dt.replace(tzinfo=timezone.utc)
    raise ValueError(f"Unsupported datetime value: {value!r}")


def format_timestamp(value: datetime) -> str:
    dt = parse_datetime(value)
    return dt.astimezone(timezone.utc).strftime("%Y-%m-%dT%H:%M:%SZ")


def is_after(created_at: str, checkpoint: str) -> bool:
    """True when ``created_at`` is strictly newer than ``checkpoint``.

    An empty checkpoint means nothing has been merged yet. A blank or
    unparsable ``created_at`` is never newer than anything. The checkpoint
    must already be valid; ``ValueError`` is raised otherwise.
    """
    try:
        created = parse_datetime(created_at)
    except ValueError:
        return False
    if created is None:
        return False
    if not checkpoint:
        return True
    return created > parse_datetime(checkpoint)
