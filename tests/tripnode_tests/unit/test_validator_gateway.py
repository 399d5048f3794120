"""
Unit tests for tripnode.network.validator_gateway.
"""

from unittest.mock import Mock

import pytest

from tripnode.core.schemas import BatchTransactionRequest, CriticalProcessRequest, TransactionRequest, parse_payload
from tripnode.network.broadcast import (
    BATCH,
    CRITICAL,
    MEMPOOL_CRITICAL,
    MEMPOOL_TX,
    STATUS_CRITICAL,
    STATUS_TX,
    TRANSACTION,
)
from tripnode.network.models import BroadcastResult
from tripnode.network.validator_gateway import ValidatorGateway


@pytest.fixture
def directory(peers_factory):
    directory = Mock()
    directory.active_peers.return_value = peers_factory("v1:1", "v2:1")
    return directory


@pytest.fixture
def engine():
    engine = Mock()
    engine.broadcast.return_value = BroadcastResult()
    return engine


@pytest.fixture
def gateway(directory, engine):
    return ValidatorGateway(directory, engine)


class TestSends:
    def test_transaction_sent_with_wire_names(self, gateway, engine, directory):
        tx = TransactionRequest.model_validate({"from": "alice", "to": "bob", "amount": 1.5})

        gateway.send_transaction(tx)

        spec, peers, payload = engine.broadcast.call_args.args
        assert spec is TRANSACTION
        assert peers == directory.active_peers.return_value
        assert payload == {"from": "alice", "to": "bob", "amount": 1.5}

    def test_batch(self, gateway, engine):
        batch = BatchTransactionRequest.model_validate(
            {"transactions": [{"from": "a", "to": "b", "amount": 1}, {"from": "b", "to": "c", "amount": 2}]}
        )

        gateway.send_batch(batch)

        spec, _, payload = engine.broadcast.call_args.args
        assert spec is BATCH
        assert len(payload["transactions"]) == 2
        assert payload["transactions"][1]["to"] == "c"

    def test_critical_process(self, gateway, engine):
        request = CriticalProcessRequest.model_validate({"processId": "job-7", "data": {"x": 1}, "priority": 3})

        gateway.send_critical_process(request)

        spec, _, payload = engine.broadcast.call_args.args
        assert spec is CRITICAL
        assert payload == {"processId": "job-7", "data": {"x": 1}, "priority": 3}

    def test_targets_only_active_peers(self, gateway, engine, directory):
        directory.active_peers.return_value = []
        tx = TransactionRequest.model_validate({"from": "a", "to": "b", "amount": 1})

        result = gateway.send_transaction(tx)

        assert result.total == 0
        directory.peers.assert_not_called()
        assert engine.broadcast.call_args.args[1] == []


class TestQueries:
    @pytest.mark.parametrize(
        "chain,expected",
        [("tx", STATUS_TX), ("critical", STATUS_CRITICAL)],
    )
    def test_blockchain_status_selects_chain(self, gateway, engine, chain, expected):
        gateway.blockchain_status(chain)
        spec, _, payload = engine.broadcast.call_args.args
        assert spec is expected
        assert payload is None

    @pytest.mark.parametrize(
        "pool,expected",
        [("tx", MEMPOOL_TX), ("critical", MEMPOOL_CRITICAL)],
    )
    def test_mempool_status_selects_pool(self, gateway, engine, pool, expected):
        gateway.mempool_status(pool)
        assert engine.broadcast.call_args.args[0] is expected

    def test_defaults_to_transaction_chain(self, gateway, engine):
        gateway.blockchain_status()
        assert engine.broadcast.call_args.args[0] is STATUS_TX

    def test_unknown_chain_rejected(self, gateway, engine):
        with pytest.raises(ValueError, match="Unknown chain"):
            gateway.blockchain_status("nft")
        engine.broadcast.assert_not_called()

    def test_unknown_pool_rejected(self, gateway):
        with pytest.raises(ValueError, match="Unknown pool"):
            gateway.mempool_status("other")


class TestDirectoryPassThrough:
    def test_delegates_to_directory(self, gateway, directory):
        directory.refresh.return_value = (True, [])
        directory.ping_peer.return_value = True

        assert gateway.refresh_validators() == (True, [])
        assert gateway.ping_validator("v9:1") is True
        directory.ping_peer.assert_called_once_with("v9:1")
        gateway.validators()
        directory.peers.assert_called_once_with()


class TestForwardedPayloads:
    def test_transaction_forwarded_exactly_as_received(self, gateway, engine):
        body = {"from": "alice", "to": "bob", "amount": 12345678901234567891, "nonce": 7}

        gateway.send_transaction(parse_payload(TransactionRequest, body))

        payload = engine.broadcast.call_args.args[2]
        assert payload == body
        assert type(payload["amount"]) is int

    def test_critical_process_forwarded_exactly_as_received(self, gateway, engine):
        body = {"processId": "job", "data": {"nested": [1, 2.5]}, "priority": 2.5, "origin": "ui"}

        gateway.send_critical_process(parse_payload(CriticalProcessRequest, body))

        assert engine.broadcast.call_args.args[2] == body
