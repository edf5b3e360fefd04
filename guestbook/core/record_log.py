"""RecordLog — publishes signature records to the public log.

Publication is a side effect only: nothing is returned and nothing is
kept here.  Querying is the indexer's job.
"""

from __future__ import annotations

import logging
from typing import TYPE_CHECKING

from guestbook.models.events import RecordPublished
from guestbook.models.records import SignatureRecord

if TYPE_CHECKING:
    from guestbook.core.transaction import Transaction

logger = logging.getLogger(__name__)


class RecordLog:
    """Emits ``RecordPublished`` events, one per record."""

    def __init__(self, local_chain_id: int) -> None:
        self._local_chain_id = local_chain_id

    def publish(self, tx: Transaction, record: SignatureRecord) -> None:
        tx.emit(RecordPublished.from_record(record))
        logger.debug(
            "Staged record: signer=%s origin=%d%s",
            record.signer,
            record.origin_chain_id,
            "" if record.origin_chain_id == self._local_chain_id else " (replicated)",
        )
