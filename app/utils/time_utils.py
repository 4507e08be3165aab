# app/utils/time_utils.py
from datetime import datetime, timezone
from typing import Any, Optional

from dateutil import parser as date_parser


def utcnow() -> datetime:
    """Naive UTC timestamp, the form every DateTime column stores."""
    return datetime.now(timezone.utc).replace(tzinfo=None)


def to_iso(value: Optional[datetime]) -> Optional[str]:
    if value is None:
        return None
    return value.isoformat(timespec="milliseconds") + "Z"


def parse_datetime(value: Any) -> Optional[datetime]:
    """Parse an ISO-8601 string into naive UTC. Returns None when unparseable."""
    if value is None or value == "":
        return None
    if isinstance(value, datetime):
        parsed = value
    else:
        try:
            parsed = date_parser.isoparse(str(value).strip())
        except (ValueError, OverflowError):
            try:
                parsed = date_parser.parse(str(value).strip())
            except (ValueError, OverflowError):
                return None
    if parsed.tzinfo is not None:
        parsed = parsed.astimezone(timezone.utc).replace(tzinfo=None)
    return parsed
