"""LocalMesh — several guestbook chains wired together in one process.

Each chain gets its own ``LocalTransport``, ``LocalFunds``, public log
and ``Guestbook``.  ``deliver_all()`` moves packets from every outbox to
the destination endpoint.  With ``shuffle=True`` packets are delivered
in arbitrary order: cross-chain delivery carries no ordering guarantee,
and tests can exercise that.
"""

from __future__ import annotations

import logging
import random
from collections.abc import Callable

from pydantic import BaseModel, ConfigDict

from guestbook.bridge.funds import LocalFunds
from guestbook.bridge.transport import LocalTransport, Packet, TransportError
from guestbook.core.guestbook import Guestbook
from guestbook.core.public_log import PublicLog
from guestbook.models.records import peer_id_for

logger = logging.getLogger(__name__)


class DeliveryReport(BaseModel):
    """Outcome of delivering one packet."""

    model_config = ConfigDict(frozen=True)

    guid: str
    src_chain_id: int
    dst_chain_id: int
    delivered: bool
    error: str = ""


class LocalMesh:
    """In-process network of guestbook chains.

    Parameters
    ----------
    base_fee:
        Flat fee every endpoint charges per message.
    fee_per_byte:
        Per-payload-byte fee every endpoint charges.
    shuffle:
        Deliver packets in random order.
    seed:
        Seed for the shuffle, for reproducible runs.
    """

    def __init__(
        self,
        *,
        base_fee: int = 0,
        fee_per_byte: int = 0,
        shuffle: bool = False,
        seed: int | None = None,
    ) -> None:
        self._base_fee = base_fee
        self._fee_per_byte = fee_per_byte
        self._shuffle = shuffle
        self._rng = random.Random(seed)
        self.transports: dict[int, LocalTransport] = {}
        self.guestbooks: dict[int, Guestbook] = {}
        self.funds: dict[int, LocalFunds] = {}

    def add_chain(
        self,
        chain_id: int,
        *,
        owner: str,
        log: PublicLog | None = None,
        clock: Callable[[], int] | None = None,
        default_options: bytes | None = None,
    ) -> Guestbook:
        """Create and bind a guestbook instance on a new chain."""
        if chain_id in self.guestbooks:
            raise ValueError(f"chain {chain_id} already exists in the mesh")

        transport = LocalTransport(
            chain_id, base_fee=self._base_fee, fee_per_byte=self._fee_per_byte
        )
        funds = LocalFunds()
        guestbook = Guestbook(
            local_chain_id=chain_id,
            owner=owner,
            transport=transport,
            funds=funds,
            log=log,
            clock=clock,
            default_options=default_options,
        )
        transport.bind(guestbook.address, guestbook.receive)

        self.transports[chain_id] = transport
        self.funds[chain_id] = funds
        self.guestbooks[chain_id] = guestbook
        return guestbook

    def connect(self, src_chain_id: int, dst_chain_id: int) -> None:
        """Register *dst* as a peer of *src* (one direction only)."""
        src = self.guestbooks[src_chain_id]
        dst = self.guestbooks[dst_chain_id]
        src.set_peer(dst_chain_id, peer_id_for(dst.address), sender=src.owner)

    def wire_all(self) -> None:
        """Connect every chain to every other chain, in both directions."""
        for src_chain_id in self.guestbooks:
            for dst_chain_id in self.guestbooks:
                if src_chain_id != dst_chain_id:
                    self.connect(src_chain_id, dst_chain_id)

    @property
    def pending(self) -> int:
        return sum(t.outbox_depth for t in self.transports.values())

    def deliver_all(self) -> list[DeliveryReport]:
        """Deliver every queued packet once.

        Packets rejected by the destination (unknown chain, sender not a
        configured peer, undecodable payload) are reported, not retried.
        """
        packets: list[Packet] = []
        for transport in self.transports.values():
            packets.extend(transport.drain())
        if self._shuffle:
            self._rng.shuffle(packets)

        reports: list[DeliveryReport] = []
        for packet in packets:
            destination = self.transports.get(packet.dst_chain_id)
            try:
                if destination is None:
                    raise TransportError(f"unknown destination chain {packet.dst_chain_id}")
                destination.deliver(packet)
            except (TransportError, ValueError) as exc:
                logger.warning(
                    "Delivery of %s (%d -> %d) failed: %s",
                    packet.guid[:12], packet.src_chain_id, packet.dst_chain_id, exc,
                )
                reports.append(
                    DeliveryReport(
                        guid=packet.guid,
                        src_chain_id=packet.src_chain_id,
                        dst_chain_id=packet.dst_chain_id,
                        delivered=False,
                        error=str(exc),
                    )
                )
                continue
            reports.append(
                DeliveryReport(
                    guid=packet.guid,
                    src_chain_id=packet.src_chain_id,
                    dst_chain_id=packet.dst_chain_id,
                    delivered=True,
                )
            )
        return reports
