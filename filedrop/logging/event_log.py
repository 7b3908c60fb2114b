"""Lightweight EventLog entry helper reused across services."""
from __future__ import annotations

import logging
from datetime import datetime, timezone
from typing import Any, Callable, Dict, Optional
from uuid import uuid4

from pydantic import BaseModel, Field

_event_logger = logging.getLogger("filedrop.events")


class EventLogEntry(BaseModel):
    event_id: str = Field(default_factory=lambda: str(uuid4()))
    event_type: str
    asset_type: str = "file"
    asset_id: Optional[str] = None
    user_id: Optional[str] = None
    request_id: Optional[str] = None
    created_at: datetime = Field(default_factory=lambda: datetime.now(timezone.utc))
    metadata: Dict[str, Any] = Field(default_factory=dict)


EventLogger = Callable[[EventLogEntry], None]


def default_event_logger(entry: EventLogEntry) -> None:
    """Write the entry as one JSON line on the filedrop.events logger."""
    _event_logger.info(entry.model_dump_json())


def emit_event(event_logger: EventLogger, entry: EventLogEntry) -> None:
    """Emit an event without letting logging failures fail the caller."""
    try:
        event_logger(entry)
    except Exception:
        logging.getLogger(__name__).warning("event logging failed for %s", entry.event_type, exc_info=True)
