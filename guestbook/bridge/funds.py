"""Native value port — returns excess budget to callers.

``FundsPort`` is the only way the guestbook moves value it did not spend
on fees.  ``LocalFunds`` is the in-process implementation used by tests,
the local mesh and the CLI demo; it can be told to reject transfers to
specific recipients, which is how a refund to an address that cannot
accept value is modelled.
"""

from __future__ import annotations

import logging
from typing import Protocol, runtime_checkable

from guestbook.models.records import normalize_address

logger = logging.getLogger(__name__)


@runtime_checkable
class FundsPort(Protocol):
    """Transfers native value out of an in-flight operation."""

    def transfer(self, recipient: str, amount: int) -> bool:
        """Send *amount* to *recipient*.  Return ``False`` if it was refused."""
        ...


class LocalFunds:
    """In-memory value ledger that credits recipients."""

    def __init__(self) -> None:
        self._credited: dict[str, int] = {}
        self._rejecting: set[str] = set()

    def reject(self, address: str) -> None:
        """Make every future transfer to *address* fail."""
        self._rejecting.add(normalize_address(address))

    def accept(self, address: str) -> None:
        self._rejecting.discard(normalize_address(address))

    def transfer(self, recipient: str, amount: int) -> bool:
        recipient = normalize_address(recipient)
        if amount < 0:
            raise ValueError(f"transfer amount must be non-negative, got {amount}")
        if recipient in self._rejecting:
            logger.info("LocalFunds: %s refused transfer of %d", recipient, amount)
            return False
        self._credited[recipient] = self._credited.get(recipient, 0) + amount
        return True

    def balance_of(self, address: str) -> int:
        return self._credited.get(normalize_address(address), 0)

    @property
    def total_credited(self) -> int:
        return sum(self._credited.values())
