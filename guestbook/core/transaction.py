"""Unit of work for a single guestbook operation.

An operation stages everything it wants to make observable (log events,
registry changes, outbound sends, a value transfer) on a ``Transaction``.
Nothing is applied until ``commit()``; an operation that raises before
or during commit leaves no trace.  This is how "every error aborts the
whole operation" is upheld.

Commit order
------------
1. Transport preflight: every staged send is checked (peer, fee, outbox
   room) before anything is applied.
2. Log events are written to the public log inside one SQLite
   transaction, which stays open for the remaining steps.
3. The value transfer (refund).  A rejected transfer raises
   ``RefundFailedError`` and the log write is rolled back.
4. Outbound sends, handed to the transport in staging order.  The batch
   already passed preflight, so the transport accepts every one of them.
5. Staged state changes (registry membership, peer store).
6. The log transaction commits.
"""

from __future__ import annotations

import logging
from collections.abc import Callable
from typing import TYPE_CHECKING

from pydantic import BaseModel, ConfigDict

from guestbook.core.errors import RefundFailedError
from guestbook.models.events import LogEvent
from guestbook.models.log import LogEntry
from guestbook.models.messaging import MessagingReceipt, PendingSend

if TYPE_CHECKING:
    from guestbook.bridge.funds import FundsPort
    from guestbook.bridge.transport import MessagingTransport
    from guestbook.core.public_log import PublicLog

logger = logging.getLogger(__name__)

__all__ = ["CommitResult", "PendingSend", "PendingTransfer", "Transaction"]


class PendingTransfer(BaseModel):
    model_config = ConfigDict(frozen=True)

    recipient: str
    amount: int


class CommitResult(BaseModel):
    """What a committed transaction made observable."""

    model_config = ConfigDict(frozen=True)

    entries: list[LogEntry] = []
    receipts: list[MessagingReceipt] = []
    transferred: int = 0


class Transaction:
    """Staged effects of one operation.

    Parameters
    ----------
    name:
        Operation name, used in log lines.
    emitter:
        Address of the guestbook instance emitting events.
    chain_id:
        The emitter's local chain id, stamped on every log entry.
    log:
        Public log receiving events on commit.
    transport:
        Transport receiving sends on commit.
    funds:
        Value port settling the transfer on commit.
    timestamp:
        Block timestamp captured once for the whole operation.
    """

    def __init__(
        self,
        name: str,
        *,
        emitter: str,
        chain_id: int,
        log: PublicLog,
        transport: MessagingTransport,
        funds: FundsPort,
        timestamp: int,
    ) -> None:
        self.name = name
        self.timestamp = timestamp
        self._emitter = emitter
        self._chain_id = chain_id
        self._log = log
        self._transport = transport
        self._funds = funds
        self._events: list[LogEvent] = []
        self._sends: list[PendingSend] = []
        self._transfer: PendingTransfer | None = None
        self._actions: list[Callable[[], None]] = []
        self._closed = False

    # ------------------------------------------------------------------
    # Staging
    # ------------------------------------------------------------------

    def emit(self, event: LogEvent) -> None:
        self._check_open()
        self._events.append(event)

    def stage_send(self, send: PendingSend) -> None:
        self._check_open()
        self._sends.append(send)

    def stage_transfer(self, recipient: str, amount: int) -> None:
        """Stage the operation's single value transfer.

        Only one transfer per transaction: a second one could be refused
        after the first had already moved value.
        """
        self._check_open()
        if self._transfer is not None:
            raise RuntimeError(f"transaction {self.name!r} already has a transfer staged")
        self._transfer = PendingTransfer(recipient=recipient, amount=amount)

    def stage_action(self, action: Callable[[], None]) -> None:
        """Run *action* on commit, after the transfer and the sends.

        Actions mutate in-memory state only and must not raise.
        """
        self._check_open()
        self._actions.append(action)

    @property
    def staged_events(self) -> list[LogEvent]:
        return list(self._events)

    @property
    def staged_sends(self) -> list[PendingSend]:
        return list(self._sends)

    # ------------------------------------------------------------------
    # Completion
    # ------------------------------------------------------------------

    def commit(self) -> CommitResult:
        """Apply all staged effects in commit order (see module docstring)."""
        self._check_open()
        self._closed = True

        settled: dict[str, object] = {}

        def settle(_entries: list[LogEntry]) -> None:
            settled["transferred"] = self._settle_transfer()
            settled["receipts"] = [
                self._transport.send(
                    send.destination,
                    send.payload,
                    send.options,
                    send.fee,
                    send.refund_address,
                )
                for send in self._sends
            ]
            for action in self._actions:
                action()

        try:
            if self._sends:
                self._transport.preflight(self._sends)
            entries = self._log.append_many(
                [
                    LogEntry(
                        emitter=self._emitter,
                        chain_id=self._chain_id,
                        event_kind=event.event_kind,
                        event_data=event.model_dump(mode="json", exclude={"event_kind"}),
                    )
                    for event in self._events
                ],
                before_commit=settle,
            )
        except Exception as exc:
            self._log_abort(exc)
            raise

        return CommitResult(
            entries=entries,
            receipts=settled["receipts"],
            transferred=settled["transferred"],
        )

    def _settle_transfer(self) -> int:
        transfer = self._transfer
        if transfer is None:
            return 0
        try:
            accepted = self._funds.transfer(transfer.recipient, transfer.amount)
        except Exception as exc:
            logger.warning(
                "%s: transfer of %d to %s raised: %s",
                self.name, transfer.amount, transfer.recipient, exc,
            )
            raise RefundFailedError(transfer.recipient, transfer.amount) from exc
        if not accepted:
            logger.warning(
                "%s: transfer of %d to %s rejected",
                self.name, transfer.amount, transfer.recipient,
            )
            raise RefundFailedError(transfer.recipient, transfer.amount)
        return transfer.amount

    def discard(self, reason: BaseException | None = None) -> None:
        """Drop all staged effects.  Safe to call more than once."""
        if self._closed:
            return
        self._closed = True
        self._log_abort(reason)

    def _log_abort(self, reason: BaseException | None) -> None:
        logger.warning(
            "%s aborted (%s): discarded %d event(s), %d send(s), %d transfer(s)",
            self.name,
            type(reason).__name__ if reason is not None else "discarded",
            len(self._events),
            len(self._sends),
            0 if self._transfer is None else 1,
        )

    def _check_open(self) -> None:
        if self._closed:
            raise RuntimeError(f"transaction {self.name!r} is already closed")
