"""Tests for the PublicLog — append-only, hash-chained, tamper-evident."""

from __future__ import annotations

import sqlite3
from pathlib import Path

import pytest

from conftest import EMITTER
from guestbook.core.public_log import LogIntegrityError, PublicLog
from guestbook.models.events import EventKind
from guestbook.models.log import LogEntry

OTHER_EMITTER = "0x00000000000000000000000000000000000000f5"


def _entry(emitter: str = EMITTER, kind: EventKind = EventKind.CHAIN_ADDED, **data) -> LogEntry:
    return LogEntry(
        emitter=emitter,
        chain_id=1,
        event_kind=kind,
        event_data=data or {"chain_id": 2},
    )


class TestPublicLog:
    def test_append_sets_entry_hash(self, public_log: PublicLog):
        sealed = public_log.append(_entry())
        assert sealed.entry_hash != ""
        assert sealed.previous_entry_hash == ""

    def test_hash_chain_links(self, public_log: PublicLog):
        e1 = public_log.append(_entry())
        e2 = public_log.append(_entry(chain_id=3))
        assert e2.previous_entry_hash == e1.entry_hash

    def test_chains_are_per_emitter(self, public_log: PublicLog):
        public_log.append(_entry())
        other = public_log.append(_entry(emitter=OTHER_EMITTER))
        assert other.previous_entry_hash == ""

    def test_append_many_links_in_order(self, public_log: PublicLog):
        sealed = public_log.append_many([_entry(chain_id=i) for i in (2, 3, 4)])
        assert sealed[1].previous_entry_hash == sealed[0].entry_hash
        assert sealed[2].previous_entry_hash == sealed[1].entry_hash
        assert len(public_log) == 3

    def test_entries_filter_by_kind(self, public_log: PublicLog):
        public_log.append(_entry())
        public_log.append(_entry(kind=EventKind.CHAIN_REMOVED))
        removed = public_log.entries(kind=EventKind.CHAIN_REMOVED)
        assert [e.event_kind for e in removed] == [EventKind.CHAIN_REMOVED]

    def test_event_data_round_trips(self, public_log: PublicLog):
        public_log.append(_entry(kind=EventKind.RECORD_PUBLISHED, timestamp=2**70, name="x"))
        (entry,) = public_log.entries()
        assert entry.event_data == {"timestamp": 2**70, "name": "x"}

    def test_get_latest(self, public_log: PublicLog):
        public_log.append(_entry())
        e2 = public_log.append(_entry(chain_id=9))
        latest = public_log.get_latest(EMITTER)
        assert latest is not None
        assert latest.entry_id == e2.entry_id

    def test_get_latest_unknown_emitter(self, public_log: PublicLog):
        assert public_log.get_latest(OTHER_EMITTER) is None

    def test_emitters_in_first_seen_order(self, public_log: PublicLog):
        public_log.append(_entry(emitter=OTHER_EMITTER))
        public_log.append(_entry())
        public_log.append(_entry(emitter=OTHER_EMITTER))
        assert public_log.emitters() == [OTHER_EMITTER, EMITTER]

    def test_verify_chain_valid(self, public_log: PublicLog):
        public_log.append(_entry())
        public_log.append(_entry(chain_id=3))
        assert public_log.verify_chain(EMITTER) is True

    def test_verify_chain_empty(self, public_log: PublicLog):
        assert public_log.verify_chain(EMITTER) is True

    def test_persists_across_instances(self, tmp_dir: Path):
        db = tmp_dir / "log" / "public.db"
        first = PublicLog(db)
        first.append(_entry())
        first.close()

        reopened = PublicLog(db)
        try:
            assert len(reopened) == 1
            assert reopened.verify_chain(EMITTER) is True
        finally:
            reopened.close()

    def test_tampered_event_detected(self, tmp_dir: Path):
        db = tmp_dir / "public.db"
        log = PublicLog(db)
        log.append(_entry())
        log.append(_entry(chain_id=3))
        log.close()

        conn = sqlite3.connect(str(db))
        conn.execute(
            "UPDATE public_log SET event_json = '{\"chain_id\": 99}' WHERE id = 2"
        )
        conn.commit()
        conn.close()

        log = PublicLog(db)
        try:
            with pytest.raises(LogIntegrityError, match="Tampered"):
                log.verify_chain(EMITTER)
        finally:
            log.close()
