"""Shared test fixtures for Guestbook."""

from __future__ import annotations

from collections.abc import Callable
from pathlib import Path
from typing import Any

import pytest

from guestbook.bridge.funds import LocalFunds
from guestbook.bridge.transport import LocalTransport
from guestbook.core.guestbook import Guestbook
from guestbook.core.public_log import PublicLog
from guestbook.core.transaction import Transaction
from guestbook.models.records import SignatureRecord

LOCAL_CHAIN_ID = 1
NOW = 1_700_000_000
OPTIONS = bytes.fromhex("0003010011010000000000000000000000000000c350")

OWNER = "0x00000000000000000000000000000000000000a1"
ALICE = "0x00000000000000000000000000000000000000b2"
BOB = "0x00000000000000000000000000000000000000c3"
EMITTER = "0x00000000000000000000000000000000000000e4"

PEER_A = bytes(12) + bytes.fromhex("aa" * 20)
PEER_B = bytes(12) + bytes.fromhex("bb" * 20)
PEER_C = bytes(12) + bytes.fromhex("cc" * 20)


@pytest.fixture
def tmp_dir(tmp_path: Path) -> Path:
    """Provide a temporary directory for test artifacts."""
    return tmp_path


@pytest.fixture
def public_log() -> PublicLog:
    """Provide a fresh in-memory PublicLog."""
    log = PublicLog()
    yield log
    log.close()


@pytest.fixture
def transport() -> LocalTransport:
    """Provide a LocalTransport on chain 1 charging 1000 per message."""
    return LocalTransport(LOCAL_CHAIN_ID, base_fee=1000)


@pytest.fixture
def funds() -> LocalFunds:
    return LocalFunds()


@pytest.fixture
def guestbook(
    transport: LocalTransport, funds: LocalFunds, public_log: PublicLog
) -> Guestbook:
    """Provide a Guestbook on chain 1 with a fixed clock and no peers."""
    return Guestbook(
        local_chain_id=LOCAL_CHAIN_ID,
        owner=OWNER,
        transport=transport,
        address=EMITTER,
        funds=funds,
        log=public_log,
        clock=lambda: NOW,
        default_options=OPTIONS,
    )


@pytest.fixture
def peered_guestbook(guestbook: Guestbook) -> Guestbook:
    """The guestbook fixture with chains 2 and 3 registered."""
    guestbook.set_peer(2, PEER_A, sender=OWNER)
    guestbook.set_peer(3, PEER_B, sender=OWNER)
    return guestbook


@pytest.fixture
def make_tx(
    transport: LocalTransport, funds: LocalFunds, public_log: PublicLog
) -> Callable[..., Transaction]:
    """Factory fixture: open a Transaction on the shared log, transport and funds."""

    def _factory(name: str = "test") -> Transaction:
        return Transaction(
            name,
            emitter=EMITTER,
            chain_id=LOCAL_CHAIN_ID,
            log=public_log,
            transport=transport,
            funds=funds,
            timestamp=NOW,
        )

    return _factory


@pytest.fixture
def tx(make_tx: Callable[..., Transaction]) -> Transaction:
    """Provide an open Transaction for exercising components directly."""
    return make_tx()


@pytest.fixture
def commit_peer(make_tx: Callable[..., Transaction]) -> Callable[..., None]:
    """Set (or, with ``None``, clear) a registry peer in its own committed transaction."""

    def _set(registry: Any, chain_id: int, peer: bytes | None) -> None:
        peer_tx = make_tx("set_peer")
        registry.set_peer(peer_tx, chain_id, peer)
        peer_tx.commit()

    return _set


@pytest.fixture
def make_record() -> Callable[..., SignatureRecord]:
    """Factory fixture: build a SignatureRecord with sensible defaults."""

    def _factory(**overrides: Any) -> SignatureRecord:
        defaults: dict[str, Any] = {
            "signer": ALICE,
            "origin_chain_id": LOCAL_CHAIN_ID,
            "name": "Alice",
            "message": "gm",
            "timestamp": NOW,
        }
        defaults.update(overrides)
        return SignatureRecord(**defaults)

    return _factory
