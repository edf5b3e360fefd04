"""BroadcastDispatcher — sends one record to every registered destination.

Runs after the record has been staged for local publication, inside the
same ``Transaction``.  Every destination receives the identical payload
bytes and is charged exactly its own fee; whatever budget is left over
goes back to the caller.

The fee for each destination is re-queried at dispatch time instead of
reusing the aggregate quote.  If fees or the registry drifted since the
caller quoted, the shortfall surfaces here as ``InsufficientFundsError``
and the whole operation is discarded: no partial broadcast is ever
committed.
"""

from __future__ import annotations

import logging
from typing import TYPE_CHECKING

from pydantic import BaseModel, ConfigDict

from guestbook.core.codec import encode_record
from guestbook.core.errors import InsufficientFundsError
from guestbook.models.messaging import PendingSend
from guestbook.models.records import SignatureRecord

if TYPE_CHECKING:
    from guestbook.bridge.transport import MessagingTransport
    from guestbook.core.chain_registry import ChainRegistry
    from guestbook.core.transaction import Transaction

logger = logging.getLogger(__name__)


class DispatchPlan(BaseModel):
    """What the dispatcher staged on the transaction."""

    model_config = ConfigDict(frozen=True)

    fees: dict[int, int] = {}
    fees_paid: int = 0
    refunded: int = 0


class BroadcastDispatcher:
    """Stages one send per registered destination plus the excess refund."""

    def __init__(self, registry: ChainRegistry, transport: MessagingTransport) -> None:
        self._registry = registry
        self._transport = transport

    def dispatch(
        self,
        tx: Transaction,
        record: SignatureRecord,
        options: bytes,
        *,
        budget: int,
        refund_address: str,
    ) -> DispatchPlan:
        """Stage sends for *record* to every destination, paid from *budget*.

        Raises
        ------
        InsufficientFundsError
            If the remaining budget cannot cover a destination's fee.
        """
        destinations = self._registry.list_all()
        remaining = budget
        fees: dict[int, int] = {}

        if destinations:
            payload = encode_record(record)
            for destination in destinations:
                fee = self._transport.quote(destination, payload, options)
                if remaining < fee:
                    logger.warning(
                        "Broadcast short at chain %d: fee %d, remaining %d",
                        destination, fee, remaining,
                    )
                    raise InsufficientFundsError(fee, remaining, destination=destination)
                tx.stage_send(
                    PendingSend(
                        destination=destination,
                        payload=payload,
                        options=options,
                        fee=fee,
                        refund_address=refund_address,
                    )
                )
                remaining -= fee
                fees[destination] = fee
        else:
            logger.debug("No registered destinations; nothing to broadcast")

        if remaining > 0:
            tx.stage_transfer(refund_address, remaining)

        return DispatchPlan(fees=fees, fees_paid=budget - remaining, refunded=remaining)
