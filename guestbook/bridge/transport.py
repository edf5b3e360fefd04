"""Transport bridge — the cross-chain messaging collaborator.

Bridge boundary
---------------
The guestbook consumes these primitives from its transport:

* ``quote(destination, payload, options) -> fee``
* ``preflight(sends)``: raise unless every send in the batch would be accepted
* ``send(destination, payload, options, fee, refund_address) -> receipt``
* ``get_peer(chain_id)`` / ``set_peer(chain_id, peer)``

A batch that passed ``preflight`` must then be accepted send by send
while the caller still holds its operation lock; that is what keeps a
broadcast all-or-nothing.  Delivery, ordering, timing, retries and sender
authentication all belong to the transport.  ``LocalTransport`` implements the contract in-process:
it keeps the peer store, prices messages with a flat-plus-per-byte fee
model, and queues accepted packets in a bounded outbox until a
``LocalMesh`` picks them up for delivery.
"""

from __future__ import annotations

import collections
import hashlib
import logging
from collections.abc import Callable, Sequence
from typing import Protocol, runtime_checkable

from pydantic import BaseModel, ConfigDict

from guestbook.models.messaging import MessagingReceipt, Origin, PendingSend
from guestbook.models.records import (
    NULL_PEER,
    as_peer_bytes,
    is_null_peer,
    peer_id_for,
)

logger = logging.getLogger(__name__)

InboundReceiver = Callable[[Origin, str, bytes], object]


class TransportError(RuntimeError):
    """Raised when a transport-level operation fails."""


@runtime_checkable
class MessagingTransport(Protocol):
    """The transport primitives the guestbook depends on."""

    def quote(self, destination: int, payload: bytes, options: bytes) -> int:
        ...

    def preflight(self, sends: Sequence[PendingSend]) -> None:
        ...

    def send(
        self,
        destination: int,
        payload: bytes,
        options: bytes,
        fee: int,
        refund_address: str,
    ) -> MessagingReceipt:
        ...

    def get_peer(self, chain_id: int) -> bytes:
        ...

    def set_peer(self, chain_id: int, peer: bytes) -> None:
        ...


class Packet(BaseModel):
    """One accepted message waiting in (or delivered from) an outbox."""

    model_config = ConfigDict(frozen=True)

    guid: str
    nonce: int
    src_chain_id: int
    dst_chain_id: int
    sender: bytes
    payload: bytes
    options: bytes
    fee: int


class LocalTransport:
    """In-process transport endpoint for one chain.

    Parameters
    ----------
    local_chain_id:
        The chain this endpoint lives on.
    base_fee:
        Flat native fee charged per message.
    fee_per_byte:
        Additional fee per payload byte.
    fee_overrides:
        Per-destination flat fee replacing ``base_fee``.
    max_outbox:
        Maximum number of undelivered packets.
    """

    def __init__(
        self,
        local_chain_id: int,
        *,
        base_fee: int = 0,
        fee_per_byte: int = 0,
        fee_overrides: dict[int, int] | None = None,
        max_outbox: int = 1024,
    ) -> None:
        self._local_chain_id = local_chain_id
        self._base_fee = base_fee
        self._fee_per_byte = fee_per_byte
        self._fee_overrides: dict[int, int] = dict(fee_overrides or {})
        self._max_outbox = max_outbox
        self._peers: dict[int, bytes] = {}
        self._nonces: dict[int, int] = collections.defaultdict(int)
        self._outbox: collections.deque[Packet] = collections.deque()
        self._history: list[Packet] = []
        self._sender: bytes = NULL_PEER
        self._receiver: InboundReceiver | None = None
        self.fees_collected = 0

    # ------------------------------------------------------------------
    # Binding
    # ------------------------------------------------------------------

    @property
    def local_chain_id(self) -> int:
        return self._local_chain_id

    def bind(self, app_address: str, receiver: InboundReceiver) -> None:
        """Attach the application that sends from and receives on this endpoint."""
        self._sender = peer_id_for(app_address)
        self._receiver = receiver
        logger.info(
            "LocalTransport[%d]: bound app %s", self._local_chain_id, app_address
        )

    # ------------------------------------------------------------------
    # Peer store
    # ------------------------------------------------------------------

    def get_peer(self, chain_id: int) -> bytes:
        return self._peers.get(chain_id, NULL_PEER)

    def set_peer(self, chain_id: int, peer: bytes) -> None:
        peer = as_peer_bytes(peer)
        if is_null_peer(peer):
            self._peers.pop(chain_id, None)
        else:
            self._peers[chain_id] = peer

    # ------------------------------------------------------------------
    # Pricing
    # ------------------------------------------------------------------

    def set_fee(self, destination: int, fee: int) -> None:
        """Override the flat fee for one destination."""
        self._fee_overrides[destination] = fee

    def quote(self, destination: int, payload: bytes, options: bytes) -> int:
        if is_null_peer(self.get_peer(destination)):
            raise TransportError(f"no peer configured for destination {destination}")
        flat = self._fee_overrides.get(destination, self._base_fee)
        return flat + self._fee_per_byte * len(payload)

    # ------------------------------------------------------------------
    # Sending
    # ------------------------------------------------------------------

    def _check_fee(self, destination: int, payload: bytes, options: bytes, fee: int) -> None:
        required = self.quote(destination, payload, options)
        if fee < required:
            raise TransportError(
                f"fee {fee} below required {required} for destination {destination}"
            )

    def _check_capacity(self, count: int) -> None:
        if len(self._outbox) + count > self._max_outbox:
            raise TransportError(
                f"outbox full ({self._max_outbox} undelivered packets, "
                f"{len(self._outbox)} queued, {count} more requested)"
            )

    def preflight(self, sends: Sequence[PendingSend]) -> None:
        """Raise ``TransportError`` unless ``send`` would accept every item."""
        for pending in sends:
            self._check_fee(pending.destination, pending.payload, pending.options, pending.fee)
        self._check_capacity(len(sends))

    def send(
        self,
        destination: int,
        payload: bytes,
        options: bytes,
        fee: int,
        refund_address: str,
    ) -> MessagingReceipt:
        """Accept a packet for *destination* if *fee* covers the quote."""
        self._check_fee(destination, payload, options, fee)
        self._check_capacity(1)

        self._nonces[destination] += 1
        nonce = self._nonces[destination]
        guid = hashlib.sha256(
            b"".join(
                (
                    nonce.to_bytes(8, "big"),
                    self._local_chain_id.to_bytes(4, "big"),
                    self._sender,
                    destination.to_bytes(4, "big"),
                    self.get_peer(destination),
                )
            )
        ).hexdigest()

        packet = Packet(
            guid=guid,
            nonce=nonce,
            src_chain_id=self._local_chain_id,
            dst_chain_id=destination,
            sender=self._sender,
            payload=payload,
            options=options,
            fee=fee,
        )
        self._outbox.append(packet)
        self._history.append(packet)
        self.fees_collected += fee

        logger.debug(
            "LocalTransport[%d]: packet %s -> %d (nonce=%d, fee=%d, refund=%s)",
            self._local_chain_id, guid[:12], destination, nonce, fee, refund_address,
        )
        return MessagingReceipt(guid=guid, nonce=nonce, destination=destination, fee=fee)

    @property
    def sent(self) -> list[Packet]:
        """Every packet ever accepted, in send order."""
        return list(self._history)

    @property
    def outbox_depth(self) -> int:
        return len(self._outbox)

    def drain(self) -> list[Packet]:
        """Remove and return every undelivered packet."""
        packets = list(self._outbox)
        self._outbox.clear()
        return packets

    # ------------------------------------------------------------------
    # Receiving
    # ------------------------------------------------------------------

    def deliver(self, packet: Packet) -> object:
        """Hand an inbound packet to the bound application.

        The sender must be the peer configured for the packet's source
        chain; anything else is rejected before the application sees it.
        """
        if packet.dst_chain_id != self._local_chain_id:
            raise TransportError(
                f"packet for chain {packet.dst_chain_id} delivered to {self._local_chain_id}"
            )
        if self._receiver is None:
            raise TransportError(f"no application bound on chain {self._local_chain_id}")
        expected = self.get_peer(packet.src_chain_id)
        if is_null_peer(expected) or expected != packet.sender:
            raise TransportError(
                f"sender 0x{packet.sender.hex()} is not the peer for chain "
                f"{packet.src_chain_id}"
            )
        origin = Origin(
            src_chain_id=packet.src_chain_id, sender=packet.sender, nonce=packet.nonce
        )
        return self._receiver(origin, packet.guid, packet.payload)
