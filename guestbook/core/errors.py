"""Guestbook error taxonomy.

Every error aborts the triggering operation as a whole: no partial registry
mutation, no partial publication, no partial send sequence.  Nothing is
retried internally.
"""

from __future__ import annotations


class GuestbookError(RuntimeError):
    """Base class for all guestbook operation failures."""


class AuthorizationError(GuestbookError):
    """Raised when a caller lacks the privilege an operation requires."""


class SelfPeeringError(GuestbookError):
    """Raised when the local chain is registered as its own peer."""


class InsufficientFundsError(GuestbookError):
    """Raised when the supplied budget cannot cover the required fee."""

    def __init__(self, required: int, supplied: int, *, destination: int | None = None) -> None:
        self.required = required
        self.supplied = supplied
        self.destination = destination
        where = f" for destination {destination}" if destination is not None else ""
        super().__init__(
            f"Insufficient funds{where}: required {required}, available {supplied}"
        )


class EmptyBatchError(GuestbookError):
    """Raised when a replay batch contains no records."""


class RefundFailedError(GuestbookError):
    """Raised when excess budget could not be returned to the caller."""

    def __init__(self, recipient: str, amount: int) -> None:
        self.recipient = recipient
        self.amount = amount
        super().__init__(f"Refund of {amount} to {recipient} failed")
