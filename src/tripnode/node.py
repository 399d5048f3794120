"""
TripCode Client Node

Wires the seed node connection, the validator directory and the broadcast
engine around one shared HTTP client and gives them a single lifecycle.
"""

from __future__ import annotations

import logging
from typing import Optional

from tripnode.core.config import NodeConfig
from tripnode.network.broadcast import BroadcastEngine
from tripnode.network.connection_manager import ConnectionManager
from tripnode.network.http_client import PeerHttpClient
from tripnode.network.peer_directory import PeerDirectory
from tripnode.network.validator_gateway import ValidatorGateway

logger = logging.getLogger(__name__)


class ClientNode:
    """Owns every long-lived component of a client node."""

    def __init__(
        self,
        config: NodeConfig,
        connection: ConnectionManager,
        directory: PeerDirectory,
        gateway: ValidatorGateway,
        http_client: PeerHttpClient,
    ):
        self.config = config
        self.connection = connection
        self.directory = directory
        self.gateway = gateway
        self.http = http_client
        self.is_running = False

    @classmethod
    def from_config(
        cls,
        config: Optional[NodeConfig] = None,
        http_client: Optional[PeerHttpClient] = None,
    ) -> "ClientNode":
        config = config or NodeConfig.from_env()
        http_client = http_client or PeerHttpClient(default_timeout=config.http_timeout)
        directory = PeerDirectory.from_config(config, http_client)
        return cls(
            config=config,
            connection=ConnectionManager.from_config(config, http_client),
            directory=directory,
            gateway=ValidatorGateway(directory, BroadcastEngine(http_client)),
            http_client=http_client,
        )

    def start(self) -> None:
        if self.is_running:
            return
        logger.info(
            "Starting client node %s",
            self.config.node_address,
            extra={"event": "node.start", "node_address": self.config.node_address},
        )
        self.connection.start()
        self.directory.start()
        self.is_running = True

    def stop(self) -> None:
        """Stop all timers, then release the HTTP session."""
        if not self.is_running:
            return
        logger.info("Stopping client node", extra={"event": "node.stop"})
        self.connection.stop()
        self.directory.stop()
        self.http.close()
        self.is_running = False
