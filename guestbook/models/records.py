"""Signature records and registry entries.

A ``SignatureRecord`` is transient: it is built, emitted to the public log,
optionally serialized for transport, then discarded.  There is no identity
or uniqueness key; duplicates are permitted and log order is the only order.
"""

from __future__ import annotations

import re

from pydantic import BaseModel, ConfigDict, Field, field_validator

ADDRESS_BYTES = 20
PEER_BYTES = 32
UINT32_MAX = 2**32 - 1
UINT256_MAX = 2**256 - 1

NULL_PEER = bytes(PEER_BYTES)

_ADDRESS_RE = re.compile(r"^0x[0-9a-fA-F]{40}$")


def normalize_address(value: str) -> str:
    """Return a lowercase ``0x``-prefixed 20-byte address or raise ``ValueError``."""
    if not isinstance(value, str) or not _ADDRESS_RE.match(value):
        raise ValueError(f"not a 20-byte hex address: {value!r}")
    return value.lower()


def as_peer_bytes(peer: bytes | str | None) -> bytes:
    """Coerce a peer identifier to 32 raw bytes.

    ``None`` and the all-zero identifier both mean "no peer".  Hex strings
    may be given with or without the ``0x`` prefix.
    """
    if peer is None:
        return NULL_PEER
    if isinstance(peer, str):
        text = peer[2:] if peer.startswith(("0x", "0X")) else peer
        try:
            peer = bytes.fromhex(text)
        except ValueError as exc:
            raise ValueError(f"peer is not valid hex: {peer!r}") from exc
    if len(peer) != PEER_BYTES:
        raise ValueError(f"peer must be {PEER_BYTES} bytes, got {len(peer)}")
    return bytes(peer)


def is_null_peer(peer: bytes | str | None) -> bool:
    return as_peer_bytes(peer) == NULL_PEER


def peer_id_for(address: str) -> bytes:
    """Left-pad a 20-byte address into a 32-byte peer identifier."""
    raw = bytes.fromhex(normalize_address(address)[2:])
    return bytes(PEER_BYTES - ADDRESS_BYTES) + raw


class SignatureRecord(BaseModel):
    """One guestbook signature.

    ``origin_chain_id`` is the chain the record was created on and is
    preserved through every republication, which is what lets an observer
    tell a local record from a replicated one.
    """

    model_config = ConfigDict(frozen=True)

    signer: str
    origin_chain_id: int = Field(ge=0, le=UINT32_MAX)
    name: str
    message: str
    timestamp: int = Field(ge=0, le=UINT256_MAX)

    @field_validator("signer")
    @classmethod
    def _check_signer(cls, value: str) -> str:
        return normalize_address(value)


class RegistryEntry(BaseModel):
    """A destination chain together with its configured peer."""

    model_config = ConfigDict(frozen=True)

    chain_id: int = Field(ge=0, le=UINT32_MAX)
    peer_id: bytes

    @field_validator("peer_id", mode="before")
    @classmethod
    def _check_peer(cls, value: bytes | str) -> bytes:
        return as_peer_bytes(value)
