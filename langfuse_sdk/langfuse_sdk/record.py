"""
Record - the unit buffered by the event manager and sent to ingestion.

A record is built once at admission time. Its body is a structural copy of
whatever the caller handed in (JSON encode, then decode), so later mutation
of the caller's objects cannot race with delivery.
"""

import dataclasses
import json
import uuid
from dataclasses import dataclass
from datetime import date, datetime, timezone
from typing import Any, Dict, Optional

from .errors import SerializationError


def new_id() -> str:
    """Return a globally-unique identifier for a record or observation."""
    return str(uuid.uuid4())


def utc_timestamp(moment: Optional[datetime] = None) -> str:
    """Format a moment (default: now) as an RFC3339 UTC timestamp.

    Naive datetimes are taken as local time.
    """
    moment = (moment or datetime.now(timezone.utc)).astimezone(timezone.utc)
    return moment.strftime("%Y-%m-%dT%H:%M:%S.") + f"{moment.microsecond // 1000:03d}Z"


def _encode(value: Any) -> Any:
    """json.dumps hook for values the stdlib encoder does not know about."""
    if hasattr(value, "to_dict"):
        return value.to_dict()
    if isinstance(value, datetime):
        return utc_timestamp(value)
    if isinstance(value, date):
        return value.isoformat()
    if isinstance(value, (set, frozenset)):
        return list(value)
    if dataclasses.is_dataclass(value) and not isinstance(value, type):
        return dataclasses.asdict(value)
    if isinstance(value, bytes):
        return value.hex()
    raise TypeError(f"Object of type {type(value).__name__} is not JSON serializable")


def copy_body(body: Any) -> Any:
    """Structurally copy a body into plain JSON-compatible data."""
    try:
        return json.loads(json.dumps(body, default=_encode, allow_nan=False))
    except (TypeError, ValueError) as e:
        raise SerializationError(f"Cannot serialize event body: {e}") from e


@dataclass(frozen=True)
class Record:
    """One buffered telemetry item awaiting delivery."""

    id: str
    type: str
    body: Any
    timestamp: str

    def to_dict(self) -> Dict[str, Any]:
        """Ingestion wire shape."""
        return {
            "id": self.id,
            "type": self.type,
            "body": self.body,
            "timestamp": self.timestamp,
        }


def make_record(record_id: str, event_type: str, body: Any) -> Record:
    """Build an admitted record: copy the body and stamp the current UTC time."""
    return Record(
        id=record_id,
        type=event_type,
        body=copy_body(body),
        timestamp=utc_timestamp(),
    )
