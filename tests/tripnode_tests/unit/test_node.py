"""
Lifecycle tests for ClientNode.
"""

from unittest.mock import Mock, call

import pytest

from tripnode.core.config import NodeConfig
from tripnode.network.connection_manager import ConnectionManager
from tripnode.network.peer_directory import PeerDirectory
from tripnode.network.validator_gateway import ValidatorGateway
from tripnode.node import ClientNode


@pytest.fixture
def parts():
    """One parent mock so call order across components is recorded."""
    return Mock()


@pytest.fixture
def node(parts):
    return ClientNode(
        config=NodeConfig(),
        connection=parts.connection,
        directory=parts.directory,
        gateway=parts.gateway,
        http_client=parts.http,
    )


class TestLifecycle:
    def test_start_connects_before_loading_validators(self, node, parts):
        node.start()

        assert parts.mock_calls == [call.connection.start(), call.directory.start()]
        assert node.is_running is True

    def test_start_twice_is_noop(self, node, parts):
        node.start()
        node.start()
        parts.connection.start.assert_called_once()

    def test_stop_halts_timers_then_closes_http(self, node, parts):
        node.start()
        parts.reset_mock()

        node.stop()

        assert parts.mock_calls == [call.connection.stop(), call.directory.stop(), call.http.close()]
        assert node.is_running is False

    def test_stop_without_start_is_noop(self, node, parts):
        node.stop()
        parts.http.close.assert_not_called()


class TestFromConfig:
    def test_components_share_one_http_client(self, http_client):
        config = NodeConfig(seed_node_address="seed:1", node_port=3200, max_reconnect_attempts=2)

        node = ClientNode.from_config(config, http_client)

        assert isinstance(node.connection, ConnectionManager)
        assert isinstance(node.directory, PeerDirectory)
        assert isinstance(node.gateway, ValidatorGateway)
        assert node.connection.http is http_client
        assert node.directory.http is http_client
        assert node.gateway.engine.http is http_client
        assert node.gateway.directory is node.directory
        assert node.connection.node_address == "localhost:3200"

    def test_builds_http_client_with_configured_timeout(self):
        node = ClientNode.from_config(NodeConfig(http_timeout=2.5))
        try:
            assert node.http.default_timeout == 2.5
        finally:
            node.http.close()
