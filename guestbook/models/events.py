"""Typed events published to the public log.

Every event is a frozen Pydantic model tagged with an ``EventKind``.  The
indexer deserializes log entries back into these models via
``EVENT_TYPE_MAP``.
"""

from __future__ import annotations

from enum import Enum

from pydantic import BaseModel, ConfigDict, Field

from guestbook.models.records import UINT32_MAX, SignatureRecord


class EventKind(str, Enum):
    """The events a guestbook instance can emit."""

    RECORD_PUBLISHED = "record_published"
    CHAIN_ADDED = "chain_added"
    CHAIN_REMOVED = "chain_removed"
    OWNERSHIP_TRANSFERRED = "ownership_transferred"


class LogEvent(BaseModel):
    """Base for all log events."""

    model_config = ConfigDict(frozen=True)

    event_kind: EventKind


class RecordPublished(LogEvent):
    """A signature record, local or replicated, appeared on this chain."""

    event_kind: EventKind = EventKind.RECORD_PUBLISHED
    signer: str
    origin_chain_id: int
    name: str
    message: str
    timestamp: int

    @classmethod
    def from_record(cls, record: SignatureRecord) -> RecordPublished:
        return cls(**record.model_dump())

    def to_record(self) -> SignatureRecord:
        return SignatureRecord(
            signer=self.signer,
            origin_chain_id=self.origin_chain_id,
            name=self.name,
            message=self.message,
            timestamp=self.timestamp,
        )


class ChainAdded(LogEvent):
    event_kind: EventKind = EventKind.CHAIN_ADDED
    chain_id: int = Field(ge=0, le=UINT32_MAX)


class ChainRemoved(LogEvent):
    event_kind: EventKind = EventKind.CHAIN_REMOVED
    chain_id: int = Field(ge=0, le=UINT32_MAX)


class OwnershipTransferred(LogEvent):
    event_kind: EventKind = EventKind.OWNERSHIP_TRANSFERRED
    previous_owner: str
    new_owner: str


EVENT_TYPE_MAP: dict[EventKind, type[LogEvent]] = {
    EventKind.RECORD_PUBLISHED: RecordPublished,
    EventKind.CHAIN_ADDED: ChainAdded,
    EventKind.CHAIN_REMOVED: ChainRemoved,
    EventKind.OWNERSHIP_TRANSFERRED: OwnershipTransferred,
}
