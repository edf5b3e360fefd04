"""Cross-chain messaging models: origins, receipts, broadcast outcomes."""

from __future__ import annotations

from pydantic import BaseModel, ConfigDict

from guestbook.models.records import SignatureRecord


class Origin(BaseModel):
    """Where a delivered packet came from, as reported by the transport."""

    model_config = ConfigDict(frozen=True)

    src_chain_id: int
    sender: bytes  # 32-byte peer id of the sending instance
    nonce: int = 0


class MessagingReceipt(BaseModel):
    """What the transport hands back for one accepted send."""

    model_config = ConfigDict(frozen=True)

    guid: str
    nonce: int
    destination: int
    fee: int


class BroadcastOutcome(BaseModel):
    """Result of a successful publish.

    ``fees_paid + refunded`` always equals the budget the caller supplied.
    """

    model_config = ConfigDict(frozen=True)

    record: SignatureRecord
    receipts: list[MessagingReceipt] = []
    fees_paid: int = 0
    refunded: int = 0

    @property
    def destinations(self) -> list[int]:
        return [r.destination for r in self.receipts]


class PendingSend(BaseModel):
    """A send staged for the transport, handed over only on commit."""

    model_config = ConfigDict(frozen=True)

    destination: int
    payload: bytes
    options: bytes
    fee: int
    refund_address: str
