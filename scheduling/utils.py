from datetime import datetime, timezone
from typing import Any

from scheduling.constants import Grade
from scheduling.errors import ValidationError


def utc_now() -> datetime:
    return datetime.now(timezone.utc)


def parse_timestamp(value: Any) -> datetime | None:
    """
    Accepts a datetime or an ISO-8601 string ('Z' suffix allowed).
    Naive values are taken as UTC.
    """
    if value is None or value == '':
        return None
    if isinstance(value, datetime):
        dt = value
    else:
        text = str(value).strip()
        if text.endswith('Z'):
            text = text[:-1] + '+00:00'
        try:
            dt = datetime.fromisoformat(text)
        except ValueError:
            raise ValidationError(f"Invalid timestamp: {value!r}", field='timestamp', value=value)
    if dt.tzinfo is None:
        dt = dt.replace(tzinfo=timezone.utc)
    return dt


def to_iso(value: datetime | None) -> str | None:
    if value is None:
        return None
    return value.astimezone(timezone.utc).isoformat(timespec='milliseconds').replace('+00:00', 'Z')


def parse_grade(value: Any) -> Grade:
    if isinstance(value, bool) or not isinstance(value, int):
        raise ValidationError('Invalid grade. Must be 0, 2, 3, or 4', 'INVALID_GRADE', 'grade', value)
    try:
        return Grade(value)
    except ValueError:
        raise ValidationError('Invalid grade. Must be 0, 2, 3, or 4', 'INVALID_GRADE', 'grade', value)


def parse_duration(value: Any) -> int:
    if isinstance(value, bool) or not isinstance(value, (int, float)) or value < 0:
        raise ValidationError('duration_ms must be >= 0', 'INVALID_DURATION', 'duration_ms', value)
    return int(value)


def parse_flag(value: Any) -> bool:
    """Query-string style boolean: only true/'true'/'1' count."""
    if isinstance(value, bool):
        return value
    if value is None:
        return False
    return str(value).strip().lower() in ('true', '1')


def parse_count(value: Any, name: str) -> int:
    """Non-negative integer from an int or a numeric string; missing means 0."""
    if value is None or value == '':
        return 0
    if isinstance(value, bool):
        raise ValidationError(f"{name} must be a non-negative integer", field=name, value=value)
    try:
        number = int(value)
    except (TypeError, ValueError):
        raise ValidationError(f"{name} must be a non-negative integer", field=name, value=value)
    if number < 0:
        raise ValidationError(f"{name} must be a non-negative integer", field=name, value=value)
    return number
