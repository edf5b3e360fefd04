"""SignatureIndexer — pure read-only view over a PublicLog.

The indexer is the query side of the system.  Guestbook instances keep no
queryable state; the indexer re-reads the public log on every call and
derives what it needs from the events there.
"""

from __future__ import annotations

from datetime import datetime, timezone

from pydantic import BaseModel, ConfigDict, Field

from guestbook.core.public_log import PublicLog
from guestbook.models.events import (
    EVENT_TYPE_MAP,
    ChainAdded,
    ChainRemoved,
    EventKind,
    LogEvent,
    RecordPublished,
)
from guestbook.models.log import LogEntry
from guestbook.models.records import SignatureRecord, normalize_address


class IndexedSignature(BaseModel):
    """A signature as seen on one chain's log."""

    model_config = ConfigDict(frozen=True)

    record: SignatureRecord
    seen_on_chain: int
    emitter: str
    entry_id: str

    @property
    def is_replicated(self) -> bool:
        return self.record.origin_chain_id != self.seen_on_chain


class IndexSnapshot(BaseModel):
    """Point-in-time summary of one emitter's log.  Never persisted."""

    model_config = ConfigDict(frozen=True)

    emitter: str
    chain_id: int | None = None
    total_signatures: int = 0
    local_signatures: int = 0
    replicated_signatures: int = 0
    registered_chains: list[int] = []
    chain_valid: bool = True
    last_updated: datetime = Field(
        default_factory=lambda: datetime.now(timezone.utc)
    )


def decode_event(entry: LogEntry) -> LogEvent:
    """Rebuild the typed event stored in a log entry."""
    model_cls = EVENT_TYPE_MAP[entry.event_kind]
    return model_cls.model_validate({**entry.event_data, "event_kind": entry.event_kind})


class SignatureIndexer:
    """Read-only projection over a PublicLog.

    Parameters
    ----------
    log:
        The public log to project from.
    emitter:
        Restrict every query to one guestbook instance.  ``None`` spans
        every emitter in the log.
    """

    def __init__(self, log: PublicLog, emitter: str | None = None) -> None:
        self._log = log
        self._emitter = normalize_address(emitter) if emitter else None

    def signatures(
        self,
        *,
        signer: str | None = None,
        origin_chain_id: int | None = None,
    ) -> list[IndexedSignature]:
        """All published signatures in log order, optionally filtered."""
        wanted_signer = normalize_address(signer) if signer else None
        found: list[IndexedSignature] = []
        for entry in self._log.entries(emitter=self._emitter, kind=EventKind.RECORD_PUBLISHED):
            record = RecordPublished.model_validate(entry.event_data).to_record()
            if wanted_signer is not None and record.signer != wanted_signer:
                continue
            if origin_chain_id is not None and record.origin_chain_id != origin_chain_id:
                continue
            found.append(
                IndexedSignature(
                    record=record,
                    seen_on_chain=entry.chain_id,
                    emitter=entry.emitter,
                    entry_id=entry.entry_id,
                )
            )
        return found

    def local_signatures(self) -> list[IndexedSignature]:
        return [s for s in self.signatures() if not s.is_replicated]

    def replicated_signatures(self) -> list[IndexedSignature]:
        return [s for s in self.signatures() if s.is_replicated]

    def registered_chains(self) -> list[int]:
        """Chains currently registered, reconstructed from add/remove events.

        The log does not record the registry's internal order, so the
        result is sorted.
        """
        registered: set[int] = set()
        for entry in self._log.entries(emitter=self._emitter):
            if entry.event_kind not in (EventKind.CHAIN_ADDED, EventKind.CHAIN_REMOVED):
                continue
            event = decode_event(entry)
            if isinstance(event, ChainAdded):
                registered.add(event.chain_id)
            elif isinstance(event, ChainRemoved):
                registered.discard(event.chain_id)
        return sorted(registered)

    def snapshot(self) -> IndexSnapshot:
        if self._emitter is None:
            raise ValueError("snapshot() needs an indexer scoped to one emitter")

        signatures = self.signatures()
        latest = self._log.get_latest(self._emitter)
        replicated = sum(1 for s in signatures if s.is_replicated)
        return IndexSnapshot(
            emitter=self._emitter,
            chain_id=latest.chain_id if latest else None,
            total_signatures=len(signatures),
            local_signatures=len(signatures) - replicated,
            replicated_signatures=replicated,
            registered_chains=self.registered_chains(),
            chain_valid=self._log.verify_chain(self._emitter),
        )
