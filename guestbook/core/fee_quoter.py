"""FeeQuoter — aggregate cost of broadcasting one record.

The aggregate is the sum of the transport's quote for every registered
destination.  Cost and latency grow linearly with the number of
destinations, since every term is its own transport round-trip.
"""

from __future__ import annotations

import logging
from typing import TYPE_CHECKING

from guestbook.core.codec import encode_record
from guestbook.models.records import SignatureRecord

if TYPE_CHECKING:
    from guestbook.bridge.transport import MessagingTransport
    from guestbook.core.chain_registry import ChainRegistry

logger = logging.getLogger(__name__)


class FeeQuoter:
    """Read-only fee computation over the current registry."""

    def __init__(
        self,
        local_chain_id: int,
        registry: ChainRegistry,
        transport: MessagingTransport,
    ) -> None:
        self._local_chain_id = local_chain_id
        self._registry = registry
        self._transport = transport

    def build_record(
        self, signer: str, name: str, message: str, timestamp: int
    ) -> SignatureRecord:
        """Canonical locally-originated record."""
        return SignatureRecord(
            signer=signer,
            origin_chain_id=self._local_chain_id,
            name=name,
            message=message,
            timestamp=timestamp,
        )

    def quote(
        self,
        signer: str,
        name: str,
        message: str,
        options: bytes,
        *,
        timestamp: int,
    ) -> int:
        record = self.build_record(signer, name, message, timestamp)
        return self.quote_record(record, options)

    def quote_record(self, record: SignatureRecord, options: bytes) -> int:
        return sum(fee for _, fee in self.breakdown(encode_record(record), options))

    def breakdown(self, payload: bytes, options: bytes) -> list[tuple[int, int]]:
        """``(destination, fee)`` for every registered destination, in registry order."""
        fees: list[tuple[int, int]] = []
        for destination in self._registry.list_all():
            fee = self._transport.quote(destination, payload, options)
            logger.debug("Quote for chain %d: %d", destination, fee)
            fees.append((destination, fee))
        return fees
