"""Append-only, hash-chained public log backed by SQLite.

The public log is the system's sole persistent artifact.  Guestbook
instances publish typed events into it; the indexer reads them back.

Design:
- Append-only: only `append()` / `append_many()` write; no update, no delete.
- Hash-chained per emitter: each entry includes SHA-256 of the previous one.
- entry_hash UNIQUE constraint for tamper detection.
- ``db_path=None`` keeps the log in memory for tests and simulations.
"""

from __future__ import annotations

import json
import logging
import sqlite3
import threading
from collections.abc import Callable
from datetime import datetime
from pathlib import Path

from guestbook.core.hasher import compute_entry_hash
from guestbook.models.events import EventKind
from guestbook.models.log import LogEntry

logger = logging.getLogger(__name__)

# ---------------------------------------------------------------------------
# DDL
# ---------------------------------------------------------------------------

_CREATE_LOG = """
CREATE TABLE IF NOT EXISTS public_log (
    id                  INTEGER PRIMARY KEY AUTOINCREMENT,
    entry_id            TEXT NOT NULL UNIQUE,
    emitter             TEXT NOT NULL,
    chain_id            INTEGER NOT NULL,
    event_kind          TEXT NOT NULL,
    event_json          TEXT NOT NULL,
    timestamp_utc       TEXT NOT NULL,
    previous_entry_hash TEXT NOT NULL DEFAULT '',
    entry_hash          TEXT NOT NULL UNIQUE
);
"""

_CREATE_IDX_EMITTER = """
CREATE INDEX IF NOT EXISTS idx_emitter ON public_log(emitter, id);
"""

_SELECT_COLUMNS = (
    "entry_id, emitter, chain_id, event_kind, event_json, timestamp_utc, "
    "previous_entry_hash, entry_hash"
)


class LogIntegrityError(RuntimeError):
    """Raised when the hash chain is broken."""


class PublicLog:
    """Append-only, hash-chained public log.

    Parameters
    ----------
    db_path:
        Path to the SQLite database file, created if it does not exist.
        ``None`` keeps the log in memory for the lifetime of this object.
    """

    def __init__(self, db_path: Path | str | None = None) -> None:
        self._db_path = Path(db_path) if db_path is not None else None
        if self._db_path is not None:
            self._db_path.parent.mkdir(parents=True, exist_ok=True)
            target = str(self._db_path)
        else:
            target = ":memory:"
        self._conn = sqlite3.connect(target, check_same_thread=False)
        self._write_lock = threading.Lock()
        self._init_schema()

    def _init_schema(self) -> None:
        with self._conn:
            self._conn.execute(_CREATE_LOG)
            self._conn.execute(_CREATE_IDX_EMITTER)

    @property
    def db_path(self) -> Path | None:
        return self._db_path

    def close(self) -> None:
        self._conn.close()

    # ------------------------------------------------------------------
    # Core: append-only write
    # ------------------------------------------------------------------

    def append(self, entry: LogEntry) -> LogEntry:
        """Append an entry, computing its hash chain link.

        Returns the entry with ``previous_entry_hash`` and ``entry_hash``
        set.  This is the ONLY write method.
        """
        with self._write_lock:
            previous_hash = self._latest_hash(entry.emitter)

            entry_dict = entry.model_dump(mode="json")
            entry_dict["previous_entry_hash"] = previous_hash
            entry_hash = compute_entry_hash(entry_dict)

            sealed = entry.model_copy(
                update={
                    "previous_entry_hash": previous_hash,
                    "entry_hash": entry_hash,
                }
            )
            self._insert(sealed)

        logger.debug(
            "PublicLog: %s %s from %s", sealed.event_kind.value, sealed.entry_id, sealed.emitter
        )
        return sealed

    def append_many(
        self,
        entries: list[LogEntry],
        *,
        before_commit: Callable[[list[LogEntry]], None] | None = None,
    ) -> list[LogEntry]:
        """Append several entries in order, as one SQLite transaction.

        *before_commit* runs with the sealed entries after they are written
        but before the transaction commits.  If it raises, the entries are
        rolled back and the exception propagates.
        """
        sealed_entries: list[LogEntry] = []
        with self._write_lock:
            heads: dict[str, str] = {}
            try:
                for entry in entries:
                    previous_hash = heads.get(entry.emitter)
                    if previous_hash is None:
                        previous_hash = self._latest_hash(entry.emitter)
                    entry_dict = entry.model_dump(mode="json")
                    entry_dict["previous_entry_hash"] = previous_hash
                    sealed = entry.model_copy(
                        update={
                            "previous_entry_hash": previous_hash,
                            "entry_hash": compute_entry_hash(entry_dict),
                        }
                    )
                    self._insert(sealed, commit=False)
                    heads[entry.emitter] = sealed.entry_hash
                    sealed_entries.append(sealed)
                if before_commit is not None:
                    before_commit(sealed_entries)
                self._conn.commit()
            except Exception:
                self._conn.rollback()
                raise
        return sealed_entries

    def _insert(self, entry: LogEntry, *, commit: bool = True) -> None:
        self._conn.execute(
            """
            INSERT INTO public_log
                (entry_id, emitter, chain_id, event_kind, event_json,
                 timestamp_utc, previous_entry_hash, entry_hash)
            VALUES (?, ?, ?, ?, ?, ?, ?, ?)
            """,
            (
                entry.entry_id,
                entry.emitter,
                entry.chain_id,
                entry.event_kind.value,
                json.dumps(entry.event_data, sort_keys=True),
                entry.timestamp_utc.isoformat()
                if isinstance(entry.timestamp_utc, datetime)
                else entry.timestamp_utc,
                entry.previous_entry_hash,
                entry.entry_hash,
            ),
        )
        if commit:
            self._conn.commit()

    def _latest_hash(self, emitter: str) -> str:
        row = self._conn.execute(
            "SELECT entry_hash FROM public_log WHERE emitter = ? ORDER BY id DESC LIMIT 1",
            (emitter,),
        ).fetchone()
        return row[0] if row else ""

    # ------------------------------------------------------------------
    # Query methods (read-only)
    # ------------------------------------------------------------------

    def entries(
        self,
        emitter: str | None = None,
        kind: EventKind | None = None,
    ) -> list[LogEntry]:
        """Return entries in append order, optionally filtered."""
        clauses: list[str] = []
        params: list[str] = []
        if emitter is not None:
            clauses.append("emitter = ?")
            params.append(emitter)
        if kind is not None:
            clauses.append("event_kind = ?")
            params.append(kind.value)
        where = f" WHERE {' AND '.join(clauses)}" if clauses else ""
        rows = self._conn.execute(
            f"SELECT {_SELECT_COLUMNS} FROM public_log{where} ORDER BY id ASC",
            params,
        ).fetchall()
        return [self._row_to_entry(row) for row in rows]

    def get_latest(self, emitter: str) -> LogEntry | None:
        row = self._conn.execute(
            f"SELECT {_SELECT_COLUMNS} FROM public_log WHERE emitter = ? "
            "ORDER BY id DESC LIMIT 1",
            (emitter,),
        ).fetchone()
        return self._row_to_entry(row) if row else None

    def emitters(self) -> list[str]:
        rows = self._conn.execute(
            "SELECT emitter FROM public_log GROUP BY emitter ORDER BY MIN(id)"
        ).fetchall()
        return [row[0] for row in rows]

    def __len__(self) -> int:
        row = self._conn.execute("SELECT COUNT(*) FROM public_log").fetchone()
        return row[0] if row else 0

    # ------------------------------------------------------------------
    # Chain verification
    # ------------------------------------------------------------------

    def verify_chain(self, emitter: str) -> bool:
        """Verify the hash chain for one emitter.

        Returns True if the chain is valid, raises LogIntegrityError otherwise.
        """
        prev_hash = ""
        for entry in self.entries(emitter=emitter):
            if entry.previous_entry_hash != prev_hash:
                raise LogIntegrityError(
                    f"Chain broken at entry {entry.entry_id}: "
                    f"expected previous_hash={prev_hash!r}, "
                    f"got {entry.previous_entry_hash!r}"
                )

            expected_hash = compute_entry_hash(entry.model_dump(mode="json"))
            if entry.entry_hash != expected_hash:
                raise LogIntegrityError(
                    f"Tampered entry {entry.entry_id}: "
                    f"expected hash={expected_hash!r}, "
                    f"got {entry.entry_hash!r}"
                )

            prev_hash = entry.entry_hash

        return True

    # ------------------------------------------------------------------
    # Internal helpers
    # ------------------------------------------------------------------

    @staticmethod
    def _row_to_entry(row: tuple) -> LogEntry:
        (
            entry_id,
            emitter,
            chain_id,
            event_kind,
            event_json,
            timestamp_utc,
            previous_entry_hash,
            entry_hash,
        ) = row
        return LogEntry(
            entry_id=entry_id,
            emitter=emitter,
            chain_id=chain_id,
            event_kind=EventKind(event_kind),
            event_data=json.loads(event_json),
            timestamp_utc=timestamp_utc,
            previous_entry_hash=previous_entry_hash,
            entry_hash=entry_hash,
        )
