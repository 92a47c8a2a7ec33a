from __future__ import annotations

import uuid
from datetime import datetime, timedelta, timezone


def new_id() -> str:
    return uuid.uuid4().hex


def utcnow() -> datetime:
    return datetime.now(timezone.utc)


def format_timestamp(value: datetime) -> str:
    """ISO-8601, with a trailing "Z" for UTC values."""
    if value.tzinfo is not None and value.utcoffset() == timedelta(0):
        return value.replace(tzinfo=None).isoformat() + "Z"
    return value.isoformat()


def parse_timestamp(raw: str) -> datetime:
    if not isinstance(raw, str):
        raise ValueError(f"Timestamp must be an ISO-8601 string, got {type(raw).__name__}.")
    s = raw.strip()
    if not s:
        raise ValueError("Timestamp is required.")
    if s.endswith("Z"):
        s = s[:-1] + "+00:00"
    return datetime.fromisoformat(s)


def clean_str(value: object) -> str:
    return value.strip() if isinstance(value, str) else ""
