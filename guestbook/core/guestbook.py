"""Guestbook — the public operation surface of one chain's instance.

Wires the registry, record log, fee quoter, broadcast dispatcher, inbound
handler and historical replayer together and enforces access control.

Execution model
---------------
Every operation holds one re-entrant lock for its full duration, so the
registry snapshot seen by quoting and dispatch cannot change underneath
it.  Mutating operations stage their effects on a ``Transaction`` that
is committed only when the operation body completes; an exception
anywhere discards everything staged.

| Operation                  | Access                     |
|----------------------------|----------------------------|
| ``set_peer``               | owner                      |
| ``transfer_ownership``     | owner                      |
| ``quote``                  | anyone (read-only)         |
| ``publish``                | anyone; signer = sender    |
| ``publish_for``            | sender == signer, or owner |
| ``replay``                 | owner                      |
| ``receive``                | transport                  |
"""

from __future__ import annotations

import hashlib
import logging
import threading
import time
from collections.abc import Callable, Iterator, Sequence
from contextlib import contextmanager

from guestbook.bridge.funds import FundsPort, LocalFunds
from guestbook.bridge.transport import MessagingTransport
from guestbook.config import config
from guestbook.core.broadcast import BroadcastDispatcher
from guestbook.core.chain_registry import ChainRegistry
from guestbook.core.codec import encode_record
from guestbook.core.errors import InsufficientFundsError
from guestbook.core.fee_quoter import FeeQuoter
from guestbook.core.inbound import InboundHandler, InboundState
from guestbook.core.ownership import Ownership
from guestbook.core.public_log import PublicLog
from guestbook.core.record_log import RecordLog
from guestbook.core.replay import HistoricalReplayer
from guestbook.core.transaction import Transaction
from guestbook.models.events import OwnershipTransferred
from guestbook.models.messaging import BroadcastOutcome, Origin
from guestbook.models.records import (
    RegistryEntry,
    SignatureRecord,
    normalize_address,
)

logger = logging.getLogger(__name__)


def derive_address(local_chain_id: int, owner: str) -> str:
    """Deterministic instance address for simulations without a real deployer."""
    seed = f"guestbook:{local_chain_id}:{normalize_address(owner)}".encode("utf-8")
    return "0x" + hashlib.sha256(seed).hexdigest()[:40]


class Guestbook:
    """One guestbook instance bound to a single local chain.

    Parameters
    ----------
    local_chain_id:
        Chain id of this instance; fixed for its lifetime.
    owner:
        The single privileged identity.
    transport:
        Cross-chain messaging collaborator (quote/send/peer store).
    address:
        This instance's own address.  Derived from chain id and owner
        when omitted.
    funds:
        Port used to refund excess budget.  Defaults to ``LocalFunds``.
    log:
        Public log receiving events.  Defaults to an in-memory log.
    clock:
        Returns the current unix time; read once per operation.
    default_options:
        Executor options used when a call passes ``options=None``.
    """

    def __init__(
        self,
        *,
        local_chain_id: int,
        owner: str,
        transport: MessagingTransport,
        address: str | None = None,
        funds: FundsPort | None = None,
        log: PublicLog | None = None,
        clock: Callable[[], int] | None = None,
        default_options: bytes | None = None,
    ) -> None:
        self._local_chain_id = local_chain_id
        self._ownership = Ownership(owner)
        self._address = normalize_address(address or derive_address(local_chain_id, owner))
        self._transport = transport
        self._funds = funds if funds is not None else LocalFunds()
        self._log = log if log is not None else PublicLog()
        self._clock = clock or (lambda: int(time.time()))
        self._default_options = (
            default_options if default_options is not None else config.default_options
        )
        self._lock = threading.RLock()

        self._registry = ChainRegistry(local_chain_id, transport)
        self._record_log = RecordLog(local_chain_id)
        self._quoter = FeeQuoter(local_chain_id, self._registry, transport)
        self._dispatcher = BroadcastDispatcher(self._registry, transport)
        self._inbound = InboundHandler(self._record_log)
        self._replayer = HistoricalReplayer(self._record_log)

    # ------------------------------------------------------------------
    # Identity
    # ------------------------------------------------------------------

    @property
    def local_chain_id(self) -> int:
        return self._local_chain_id

    @property
    def owner(self) -> str:
        return self._ownership.owner

    @property
    def address(self) -> str:
        return self._address

    @property
    def log(self) -> PublicLog:
        return self._log

    @property
    def inbound_state(self) -> InboundState:
        return self._inbound.state

    # ------------------------------------------------------------------
    # Execution
    # ------------------------------------------------------------------

    @contextmanager
    def _operation(self, name: str) -> Iterator[Transaction]:
        with self._lock:
            tx = Transaction(
                name,
                emitter=self._address,
                chain_id=self._local_chain_id,
                log=self._log,
                transport=self._transport,
                funds=self._funds,
                timestamp=self._clock(),
            )
            try:
                yield tx
            except BaseException as exc:
                tx.discard(exc)
                raise

    def _resolve_options(self, options: bytes | None) -> bytes:
        return self._default_options if options is None else options

    # ------------------------------------------------------------------
    # Owner operations
    # ------------------------------------------------------------------

    def set_peer(self, chain_id: int, peer_id: bytes | str | None, *, sender: str) -> None:
        """Configure the peer for *chain_id*; a null peer unregisters it."""
        self._ownership.require_owner(sender, "set_peer")
        with self._operation("set_peer") as tx:
            self._registry.set_peer(tx, chain_id, peer_id)
            tx.commit()

    def transfer_ownership(self, new_owner: str, *, sender: str) -> None:
        self._ownership.require_owner(sender, "transfer_ownership")
        new_owner = normalize_address(new_owner)
        with self._operation("transfer_ownership") as tx:
            tx.emit(OwnershipTransferred(previous_owner=self.owner, new_owner=new_owner))
            tx.commit()
            previous = self._ownership.transfer(new_owner)
        logger.info("Ownership transferred from %s to %s", previous, new_owner)

    def replay(self, records: Sequence[SignatureRecord], *, sender: str) -> int:
        """Republish historical records as-is; no broadcast, no fee."""
        self._ownership.require_owner(sender, "replay")
        with self._operation("replay") as tx:
            count = self._replayer.replay(tx, records)
            tx.commit()
        return count

    # ------------------------------------------------------------------
    # Quoting and publishing
    # ------------------------------------------------------------------

    def quote(
        self,
        signer: str,
        name: str,
        message: str,
        options: bytes | None = None,
    ) -> int:
        """Aggregate fee to broadcast this signature to every registered chain."""
        with self._lock:
            return self._quoter.quote(
                normalize_address(signer),
                name,
                message,
                self._resolve_options(options),
                timestamp=self._clock(),
            )

    def publish(
        self,
        name: str,
        message: str,
        options: bytes | None = None,
        *,
        sender: str,
        value: int,
    ) -> BroadcastOutcome:
        """Sign as *sender* and broadcast, paying from *value*."""
        return self._publish(sender, name, message, options, sender=sender, value=value)

    def publish_for(
        self,
        signer: str,
        name: str,
        message: str,
        options: bytes | None = None,
        *,
        sender: str,
        value: int,
    ) -> BroadcastOutcome:
        """Sign on behalf of *signer*.  Only the signer or the owner may do this."""
        self._ownership.require_owner_or(sender, signer, "publish_for")
        return self._publish(signer, name, message, options, sender=sender, value=value)

    def _publish(
        self,
        signer: str,
        name: str,
        message: str,
        options: bytes | None,
        *,
        sender: str,
        value: int,
    ) -> BroadcastOutcome:
        if value < 0:
            raise ValueError(f"value must be non-negative, got {value}")
        sender = normalize_address(sender)
        options = self._resolve_options(options)

        with self._operation("publish") as tx:
            record = self._quoter.build_record(
                normalize_address(signer), name, message, tx.timestamp
            )
            required = self._quoter.quote_record(record, options)
            if value < required:
                raise InsufficientFundsError(required, value)

            self._record_log.publish(tx, record)
            plan = self._dispatcher.dispatch(
                tx, record, options, budget=value, refund_address=sender
            )
            result = tx.commit()

        logger.info(
            "Published signature by %s to %d chain(s): fees=%d refunded=%d",
            record.signer, len(result.receipts), plan.fees_paid, plan.refunded,
        )
        return BroadcastOutcome(
            record=record,
            receipts=result.receipts,
            fees_paid=plan.fees_paid,
            refunded=plan.refunded,
        )

    # ------------------------------------------------------------------
    # Inbound
    # ------------------------------------------------------------------

    def receive(self, origin: Origin, guid: str, payload: bytes) -> SignatureRecord:
        """Entry point for transport deliveries (already authenticated)."""
        with self._operation("receive") as tx:
            record = self._inbound.handle(tx, payload)
            tx.commit()
        logger.info(
            "Received record %s from chain %d (origin %d)",
            guid[:12], origin.src_chain_id, record.origin_chain_id,
        )
        return record

    # ------------------------------------------------------------------
    # Read-only views
    # ------------------------------------------------------------------

    def list_registered_chains(self) -> list[int]:
        with self._lock:
            return self._registry.list_all()

    def is_registered(self, chain_id: int) -> bool:
        with self._lock:
            return self._registry.contains(chain_id)

    def registry_entries(self) -> list[RegistryEntry]:
        with self._lock:
            return self._registry.entries()

    def peer_of(self, chain_id: int) -> bytes:
        with self._lock:
            return self._transport.get_peer(chain_id)

    def quote_breakdown(
        self,
        signer: str,
        name: str,
        message: str,
        options: bytes | None = None,
    ) -> list[tuple[int, int]]:
        """Per-destination fees for this signature, in registry order."""
        with self._lock:
            record = self._quoter.build_record(
                normalize_address(signer), name, message, self._clock()
            )
            return self._quoter.breakdown(
                encode_record(record), self._resolve_options(options)
            )
