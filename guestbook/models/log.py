"""Public log entry model (append-only, hash-chained).

The public log is the only persistent artifact of the system:
- Append-only (no UPDATE, no DELETE)
- Hash-chained (each entry links to the previous via SHA-256)
- Scoped to an emitter (the address of the guestbook instance)
"""

from __future__ import annotations

import uuid
from datetime import datetime, timezone
from typing import Any

from pydantic import BaseModel, ConfigDict, Field

from guestbook.models.events import EventKind


class LogEntry(BaseModel):
    """A single sealed entry in the public log."""

    model_config = ConfigDict(frozen=True)

    entry_id: str = Field(default_factory=lambda: str(uuid.uuid4()))
    emitter: str
    chain_id: int
    event_kind: EventKind
    event_data: dict[str, Any] = {}
    timestamp_utc: datetime = Field(
        default_factory=lambda: datetime.now(timezone.utc)
    )
    previous_entry_hash: str = ""
    entry_hash: str = ""  # computed on append, seals this entry
