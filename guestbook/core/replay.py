"""HistoricalReplayer — bulk republication of externally sourced records.

Records are republished unchanged and in input order, with no broadcast
and no fee.  Cost grows linearly with batch size; callers chunk large
histories themselves (see ``config.replay_batch_size``).
"""

from __future__ import annotations

import logging
from collections.abc import Sequence
from typing import TYPE_CHECKING

from guestbook.core.errors import EmptyBatchError
from guestbook.models.records import SignatureRecord

if TYPE_CHECKING:
    from guestbook.core.record_log import RecordLog
    from guestbook.core.transaction import Transaction

logger = logging.getLogger(__name__)


class HistoricalReplayer:
    def __init__(self, record_log: RecordLog) -> None:
        self._record_log = record_log

    def replay(self, tx: Transaction, records: Sequence[SignatureRecord]) -> int:
        """Stage every record for republication; returns how many."""
        if not records:
            raise EmptyBatchError("replay batch is empty")
        for record in records:
            self._record_log.publish(tx, record)
        logger.info("Replayed %d historical record(s)", len(records))
        return len(records)
