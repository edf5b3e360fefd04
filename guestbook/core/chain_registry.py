"""ChainRegistry — enumerable mirror of the transport's peer store.

The transport exposes peer lookup by chain id but cannot enumerate the
chains that have one.  The registry is that enumeration.  ``set_peer``
and ``remove_peer`` validate immediately but stage both mutations on the
transaction, where they are applied together on commit, so a chain id is
registered if and only if its peer is non-null, and a failed operation
changes neither.

Ordering
--------
Membership order is insertion order until the first removal.  Removal
moves the last entry into the removed slot, so order is NOT stable
across removals.  Broadcast order follows this order; consumers must
not depend on it.
"""

from __future__ import annotations

import logging
from typing import TYPE_CHECKING

from guestbook.core.errors import SelfPeeringError
from guestbook.models.events import ChainAdded, ChainRemoved
from guestbook.models.records import (
    NULL_PEER,
    RegistryEntry,
    as_peer_bytes,
    is_null_peer,
)

if TYPE_CHECKING:
    from guestbook.bridge.transport import MessagingTransport
    from guestbook.core.transaction import Transaction

logger = logging.getLogger(__name__)


class ChainRegistry:
    """Registered destination chains, kept in lock-step with the peer store.

    Parameters
    ----------
    local_chain_id:
        The chain this instance runs on.  It can never be registered.
    transport:
        Owner of the authoritative peer store.
    """

    def __init__(self, local_chain_id: int, transport: MessagingTransport) -> None:
        self._local_chain_id = local_chain_id
        self._transport = transport
        self._chains: list[int] = []

    # ------------------------------------------------------------------
    # Mutation
    # ------------------------------------------------------------------

    def set_peer(self, tx: Transaction, chain_id: int, peer_id: bytes | str | None) -> None:
        """Stage the peer for *chain_id*; a null peer clears it.

        Re-peering an already registered chain updates the peer store only:
        no registry change and no event.  Nothing changes until *tx*
        commits.
        """
        if chain_id == self._local_chain_id:
            raise SelfPeeringError(
                f"chain {chain_id} is the local chain and cannot be its own peer"
            )
        peer = as_peer_bytes(peer_id)
        if is_null_peer(peer):
            self.remove_peer(tx, chain_id)
            return

        if self.contains(chain_id):
            tx.stage_action(lambda: self._repeer(chain_id, peer))
            return

        tx.emit(ChainAdded(chain_id=chain_id))
        tx.stage_action(lambda: self._add(chain_id, peer))

    def remove_peer(self, tx: Transaction, chain_id: int) -> None:
        """Stage the removal of *chain_id*; a no-op when it is not registered."""
        if not self.contains(chain_id):
            return
        tx.emit(ChainRemoved(chain_id=chain_id))
        tx.stage_action(lambda: self._remove(chain_id))

    def _add(self, chain_id: int, peer: bytes) -> None:
        self._transport.set_peer(chain_id, peer)
        self._chains.append(chain_id)
        logger.info("Chain %d added (peer 0x%s)", chain_id, peer.hex())

    def _repeer(self, chain_id: int, peer: bytes) -> None:
        self._transport.set_peer(chain_id, peer)
        logger.debug("Re-peered chain %d to 0x%s", chain_id, peer.hex())

    def _remove(self, chain_id: int) -> None:
        index = self._chains.index(chain_id)
        last = self._chains.pop()
        if index < len(self._chains):
            self._chains[index] = last
        self._transport.set_peer(chain_id, NULL_PEER)
        logger.info("Chain %d removed", chain_id)

    # ------------------------------------------------------------------
    # Queries
    # ------------------------------------------------------------------

    def contains(self, chain_id: int) -> bool:
        # Linear scan; registries hold tens of chains, not thousands.
        return chain_id in self._chains

    def list_all(self) -> list[int]:
        """Snapshot of registered chain ids in current order."""
        return list(self._chains)

    def entries(self) -> list[RegistryEntry]:
        return [
            RegistryEntry(chain_id=chain_id, peer_id=self._transport.get_peer(chain_id))
            for chain_id in self._chains
        ]

    def __len__(self) -> int:
        return len(self._chains)
