"""Event envelope published on the bus: ``{"event": <type>, "data": {...}}``."""
from __future__ import annotations

import json
from datetime import datetime
from typing import Any, Mapping
from uuid import UUID


def _json_default(value: object) -> str:
    if isinstance(value, UUID):
        return str(value)
    if isinstance(value, datetime):
        return value.isoformat()
    raise TypeError(f"{type(value).__name__} cannot be put in an event payload")


def encode_event(event_type: str, data: Mapping[str, Any]) -> str:
    if not event_type:
        raise ValueError("event_type must not be empty")
    return json.dumps(
        {"event": event_type, "data": dict(data)},
        default=_json_default,
        separators=(",", ":"),
    )
