"""Guestbook data models — all Pydantic v2, all frozen (immutable)."""

from guestbook.models.events import (
    EVENT_TYPE_MAP,
    ChainAdded,
    ChainRemoved,
    EventKind,
    LogEvent,
    OwnershipTransferred,
    RecordPublished,
)
from guestbook.models.log import LogEntry
from guestbook.models.messaging import (
    BroadcastOutcome,
    MessagingReceipt,
    Origin,
    PendingSend,
)
from guestbook.models.records import (
    NULL_PEER,
    RegistryEntry,
    SignatureRecord,
    as_peer_bytes,
    is_null_peer,
    normalize_address,
    peer_id_for,
)

__all__ = [
    # records
    "NULL_PEER",
    "RegistryEntry",
    "SignatureRecord",
    "as_peer_bytes",
    "is_null_peer",
    "normalize_address",
    "peer_id_for",
    # events
    "EVENT_TYPE_MAP",
    "EventKind",
    "LogEvent",
    "RecordPublished",
    "ChainAdded",
    "ChainRemoved",
    "OwnershipTransferred",
    # log
    "LogEntry",
    # messaging
    "Origin",
    "MessagingReceipt",
    "BroadcastOutcome",
    "PendingSend",
]
