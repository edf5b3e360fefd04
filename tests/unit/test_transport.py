"""Tests for LocalTransport and LocalFunds."""

from __future__ import annotations

import pytest

from conftest import ALICE, EMITTER, OPTIONS, PEER_A
from guestbook.bridge.funds import FundsPort, LocalFunds
from guestbook.bridge.transport import LocalTransport, MessagingTransport, TransportError
from guestbook.models.messaging import Origin
from guestbook.models.records import NULL_PEER, peer_id_for

REMOTE_APP = "0x00000000000000000000000000000000000000d5"


class TestPeerStore:
    def test_unknown_peer_is_null(self, transport: LocalTransport):
        assert transport.get_peer(2) == NULL_PEER

    def test_set_and_clear(self, transport: LocalTransport):
        transport.set_peer(2, PEER_A)
        assert transport.get_peer(2) == PEER_A
        transport.set_peer(2, NULL_PEER)
        assert transport.get_peer(2) == NULL_PEER

    def test_satisfies_protocol(self, transport: LocalTransport):
        assert isinstance(transport, MessagingTransport)


class TestQuoteAndSend:
    def test_quote_requires_peer(self, transport: LocalTransport):
        with pytest.raises(TransportError, match="no peer"):
            transport.quote(2, b"x", OPTIONS)

    def test_override_and_per_byte(self):
        transport = LocalTransport(1, base_fee=100, fee_per_byte=3, fee_overrides={2: 7})
        transport.set_peer(2, PEER_A)
        transport.set_peer(3, PEER_A)
        assert transport.quote(2, b"abcd", OPTIONS) == 7 + 12
        assert transport.quote(3, b"abcd", OPTIONS) == 100 + 12

    def test_send_queues_packet(self, transport: LocalTransport):
        transport.bind(EMITTER, lambda *args: None)
        transport.set_peer(2, PEER_A)
        receipt = transport.send(2, b"payload", OPTIONS, 1000, ALICE)

        assert receipt.destination == 2
        assert receipt.nonce == 1
        assert receipt.fee == 1000
        assert transport.outbox_depth == 1
        assert transport.fees_collected == 1000
        (packet,) = transport.sent
        assert packet.sender == peer_id_for(EMITTER)
        assert packet.guid == receipt.guid

    def test_nonce_per_destination(self, transport: LocalTransport):
        transport.set_peer(2, PEER_A)
        transport.set_peer(3, PEER_A)
        nonces = [transport.send(d, b"p", OPTIONS, 1000, ALICE).nonce for d in (2, 2, 3)]
        assert nonces == [1, 2, 1]

    def test_guids_unique(self, transport: LocalTransport):
        transport.set_peer(2, PEER_A)
        first = transport.send(2, b"p", OPTIONS, 1000, ALICE)
        second = transport.send(2, b"p", OPTIONS, 1000, ALICE)
        assert first.guid != second.guid

    def test_underpaid_send_rejected(self, transport: LocalTransport):
        transport.set_peer(2, PEER_A)
        with pytest.raises(TransportError, match="below required"):
            transport.send(2, b"p", OPTIONS, 999, ALICE)
        assert transport.sent == []

    def test_outbox_limit(self):
        transport = LocalTransport(1, max_outbox=1)
        transport.set_peer(2, PEER_A)
        transport.send(2, b"p", OPTIONS, 0, ALICE)
        with pytest.raises(TransportError, match="outbox full"):
            transport.send(2, b"p", OPTIONS, 0, ALICE)

    def test_drain_empties_outbox(self, transport: LocalTransport):
        transport.set_peer(2, PEER_A)
        transport.send(2, b"p", OPTIONS, 1000, ALICE)
        assert len(transport.drain()) == 1
        assert transport.outbox_depth == 0
        assert len(transport.sent) == 1


class TestDeliver:
    @pytest.fixture
    def endpoints(self):
        sender = LocalTransport(2)
        receiver = LocalTransport(1)
        received: list[tuple[Origin, str, bytes]] = []
        sender.bind(REMOTE_APP, lambda *args: None)
        receiver.bind(EMITTER, lambda origin, guid, payload: received.append((origin, guid, payload)))
        sender.set_peer(1, peer_id_for(EMITTER))
        return sender, receiver, received

    def test_authenticated_delivery(self, endpoints):
        sender, receiver, received = endpoints
        receiver.set_peer(2, peer_id_for(REMOTE_APP))
        receipt = sender.send(1, b"hello", OPTIONS, 0, ALICE)
        (packet,) = sender.drain()

        receiver.deliver(packet)

        ((origin, guid, payload),) = received
        assert origin.src_chain_id == 2
        assert origin.sender == peer_id_for(REMOTE_APP)
        assert origin.nonce == receipt.nonce
        assert guid == receipt.guid
        assert payload == b"hello"

    def test_unknown_sender_rejected(self, endpoints):
        sender, receiver, received = endpoints
        sender.send(1, b"hello", OPTIONS, 0, ALICE)
        (packet,) = sender.drain()
        with pytest.raises(TransportError, match="not the peer"):
            receiver.deliver(packet)
        assert received == []

    def test_wrong_destination_rejected(self, endpoints):
        sender, _, _ = endpoints
        sender.set_peer(9, PEER_A)
        sender.send(9, b"hello", OPTIONS, 0, ALICE)
        (packet,) = sender.drain()
        with pytest.raises(TransportError, match="delivered to"):
            LocalTransport(1).deliver(packet)


class TestLocalFunds:
    def test_transfer_credits(self):
        funds = LocalFunds()
        assert funds.transfer(ALICE, 10) is True
        assert funds.transfer(ALICE.upper().replace("0X", "0x"), 5) is True
        assert funds.balance_of(ALICE) == 15
        assert funds.total_credited == 15

    def test_rejecting_recipient(self):
        funds = LocalFunds()
        funds.reject(ALICE)
        assert funds.transfer(ALICE, 10) is False
        assert funds.balance_of(ALICE) == 0
        funds.accept(ALICE)
        assert funds.transfer(ALICE, 10) is True

    def test_negative_amount(self):
        with pytest.raises(ValueError):
            LocalFunds().transfer(ALICE, -1)

    def test_satisfies_protocol(self):
        assert isinstance(LocalFunds(), FundsPort)
