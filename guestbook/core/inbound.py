"""InboundHandler — republishes records delivered by the transport.

Sender authentication happens in the transport before the handler is
called.  The decoded record is republished exactly as received, so its
``origin_chain_id`` still names the chain it was created on.  There is no
fee logic here: delivery was paid for at the origin.
"""

from __future__ import annotations

import logging
from enum import Enum
from typing import TYPE_CHECKING

from guestbook.core.codec import decode_record
from guestbook.models.records import SignatureRecord

if TYPE_CHECKING:
    from guestbook.core.record_log import RecordLog
    from guestbook.core.transaction import Transaction

logger = logging.getLogger(__name__)


class InboundState(str, Enum):
    IDLE = "idle"
    PROCESSING_INBOUND = "processing_inbound"


class InboundHandler:
    """Two-state handler: ``IDLE -> PROCESSING_INBOUND -> IDLE``."""

    def __init__(self, record_log: RecordLog) -> None:
        self._record_log = record_log
        self._state = InboundState.IDLE

    @property
    def state(self) -> InboundState:
        return self._state

    def handle(self, tx: Transaction, payload: bytes) -> SignatureRecord:
        """Decode *payload* and stage its republication.

        Raises
        ------
        PayloadDecodeError
            If the payload does not match the record layout.
        """
        if self._state is not InboundState.IDLE:
            raise RuntimeError("inbound handler re-entered while processing")

        self._state = InboundState.PROCESSING_INBOUND
        try:
            record = decode_record(payload)
            self._record_log.publish(tx, record)
        finally:
            self._state = InboundState.IDLE
        return record
