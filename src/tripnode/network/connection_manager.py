"""
TripCode Client Node - Seed Node Connection Manager

Implements:
- Initial ping + registration against the seed node
- Periodic ping to keep the connection state current
- Bounded reconnection after a connection or registration failure
- Pass-through queries of the seed node's node directory

Network failures never escape this module; they become boolean results and
transitions of the connection state.
"""

from __future__ import annotations

import logging
import threading
from datetime import datetime, timezone
from typing import Any, Callable, Dict, List, Optional

from tripnode.core.config import NodeConfig
from tripnode.core.exceptions import NetworkError, ProtocolError
from tripnode.network.http_client import PeerHttpClient
from tripnode.network.models import (
    ConnectionState,
    NodeIdentity,
    RegistrationStatus,
    SeedEndpoints,
)
from tripnode.network.timers import RepeatingTimer

logger = logging.getLogger(__name__)

TimerFactory = Callable[[float, Callable[[], None], str], Any]


class ConnectionManager:
    """
    Owns this node's identity and its connection to the seed node.

    ConnectionState is written only from ping(), connect() and the two timer
    callbacks, always under ``_lock``. Network calls are made without the lock
    held so a hung request cannot stall the other timer.
    """

    def __init__(
        self,
        identity: NodeIdentity,
        seed_node_address: str,
        http_client: PeerHttpClient,
        ping_interval: float = 30.0,
        reconnect_interval: float = 10.0,
        max_reconnect_attempts: int = 5,
        timer_factory: TimerFactory = RepeatingTimer,
    ):
        """
        Initialize connection manager

        Args:
            identity: This node's host and port
            seed_node_address: ``host:port`` of the seed node
            http_client: Shared outbound HTTP client
            ping_interval: Seconds between seed node pings
            reconnect_interval: Seconds between reconnection attempts
            max_reconnect_attempts: Attempts per reconnection run before giving up
            timer_factory: Builds recurring timers (``interval, callback, name``)
        """
        if max_reconnect_attempts < 0:
            raise ValueError("Max reconnect attempts must be non-negative")

        self.identity = identity
        self.seed_node_address = seed_node_address
        self.http = http_client
        self.ping_interval = ping_interval
        self.reconnect_interval = reconnect_interval
        self.max_reconnect_attempts = max_reconnect_attempts
        self._timer_factory = timer_factory

        self._state = ConnectionState()
        self._lock = threading.RLock()
        self._ping_timer = None
        self._reconnect_timer = None
        self._stopped = False

        logger.info(
            "Node address: %s, seed node address: %s",
            self.node_address,
            seed_node_address,
            extra={
                "event": "connection.init",
                "node_address": self.node_address,
                "seed_node_address": seed_node_address,
            },
        )

    @classmethod
    def from_config(cls, config: NodeConfig, http_client: PeerHttpClient, **kwargs) -> "ConnectionManager":
        return cls(
            identity=NodeIdentity(config.node_host, config.node_port),
            seed_node_address=config.seed_node_address,
            http_client=http_client,
            ping_interval=config.ping_interval,
            reconnect_interval=config.reconnect_interval,
            max_reconnect_attempts=config.max_reconnect_attempts,
            **kwargs,
        )

    # ==================== Accessors ====================

    @property
    def node_address(self) -> str:
        return self.identity.address

    @property
    def connected(self) -> bool:
        with self._lock:
            return self._state.connected

    @property
    def registration_status(self) -> RegistrationStatus:
        with self._lock:
            return self._state.registration_status

    @property
    def last_ping_time(self) -> Optional[datetime]:
        with self._lock:
            return self._state.last_ping_time

    @property
    def reconnect_attempts(self) -> int:
        with self._lock:
            return self._state.reconnect_attempts

    @property
    def reconnecting(self) -> bool:
        with self._lock:
            return self._reconnect_timer is not None and self._reconnect_timer.is_running

    def status(self) -> Dict[str, Any]:
        """Connection status snapshot for the API layer"""
        with self._lock:
            last_ping = self._state.last_ping_time
            return {
                "connected": self._state.connected,
                "nodeAddress": self.node_address,
                "seedNodeAddress": self.seed_node_address,
                "lastPingTime": last_ping.isoformat() if last_ping else None,
                "registrationStatus": self._state.registration_status.value,
                "reconnectAttempts": self._state.reconnect_attempts,
                "reconnecting": self._reconnect_timer is not None and self._reconnect_timer.is_running,
            }

    # ==================== Lifecycle ====================

    def start(self) -> None:
        """Connect to the seed node and start the ping timer."""
        logger.info("Initializing seed node connection", extra={"event": "connection.start"})
        with self._lock:
            self._stopped = False
        self.connect()
        self._start_ping_timer()

    def stop(self) -> None:
        """Stop both timers. Idempotent."""
        logger.info("Shutting down seed node connection", extra={"event": "connection.stop"})
        with self._lock:
            self._stopped = True
            ping_timer, self._ping_timer = self._ping_timer, None
            reconnect_timer = self._detach_reconnect_timer()
        if ping_timer is not None:
            ping_timer.stop()
        if reconnect_timer is not None:
            reconnect_timer.stop()

    # ==================== Seed node protocol ====================

    def connect(self) -> bool:
        """
        Ping the seed node and, if it answers, register with it.

        Returns:
            True if the node is connected and registered
        """
        if not self.ping():
            logger.error(
                "Seed node is not responding to ping",
                extra={"event": "connection.seed_unreachable", "peer": self.seed_node_address},
            )
            self._handle_connection_failure()
            return False

        if not self.register():
            self._handle_connection_failure()
            return False

        return True

    def ping(self) -> bool:
        """
        Liveness check against the seed node.

        Returns:
            True if the seed node answered 200
        """
        with self._lock:
            was_connected = self._state.connected

        logger.debug(
            "Pinging seed node at %s",
            self.seed_node_address,
            extra={"event": "connection.ping", "peer": self.seed_node_address},
        )
        try:
            response = self.http.request("GET", self.seed_node_address, SeedEndpoints.PING)
            self.http.expect_status(response, self.seed_node_address)
        except NetworkError as exc:
            with self._lock:
                self._state.connected = False
            logger.error(
                "Error during ping: %s",
                exc,
                extra={"event": "connection.ping_failed", "peer": self.seed_node_address},
            )
            if was_connected:
                self._handle_connection_failure()
            return False

        with self._lock:
            self._state.connected = True
            self._state.last_ping_time = datetime.now(timezone.utc)
        logger.debug("Ping successful", extra={"event": "connection.ping_ok"})
        return True

    def register(self) -> bool:
        """
        Register this node's address with the seed node.

        201 (created) and 200 (already registered) both count as success.

        Returns:
            True if registration succeeded
        """
        with self._lock:
            self._state.registration_status = RegistrationStatus.REGISTERING
        logger.info(
            "Registering node %s with seed node",
            self.node_address,
            extra={"event": "connection.register", "node_address": self.node_address},
        )

        try:
            response = self.http.request(
                "POST",
                self.seed_node_address,
                SeedEndpoints.REGISTER,
                json=self.node_address,
            )
            self.http.expect_status(response, self.seed_node_address, accepted=(201, 200))
        except ProtocolError as exc:
            logger.warning(
                "Registration returned unexpected status: %s",
                exc.status_code,
                extra={"event": "connection.register_rejected", "status_code": exc.status_code},
            )
            self._set_registration(RegistrationStatus.FAILED)
            return False
        except NetworkError as exc:
            logger.error(
                "Error during registration: %s",
                exc,
                extra={"event": "connection.register_failed", "peer": self.seed_node_address},
            )
            self._set_registration(RegistrationStatus.FAILED)
            return False

        if response.status_code == 201:
            logger.info("Node registered successfully", extra={"event": "connection.registered"})
        else:
            logger.info(
                "Node was already registered, connection successful",
                extra={"event": "connection.already_registered"},
            )
        self._set_registration(RegistrationStatus.REGISTERED)
        return True

    def known_nodes(self) -> List[Any]:
        """All nodes the seed node knows about, or [] when unavailable."""
        return self._query_seed(SeedEndpoints.NODES)

    def active_nodes(self) -> List[Any]:
        """Nodes the seed node currently considers responding, or [] when unavailable."""
        return self._query_seed(SeedEndpoints.NODES_ACTIVE)

    def _query_seed(self, path: str) -> List[Any]:
        if not self.connected:
            return []
        try:
            data = self.http.get_json(self.seed_node_address, path)
        except NetworkError as exc:
            logger.error(
                "Error getting %s from seed node: %s",
                path,
                exc,
                extra={"event": "connection.query_failed", "endpoint": path},
            )
            return []
        if not isinstance(data, list):
            logger.warning(
                "Seed node returned non-list payload for %s",
                path,
                extra={"event": "connection.query_malformed", "endpoint": path},
            )
            return []
        return data

    def _set_registration(self, status: RegistrationStatus) -> None:
        with self._lock:
            self._state.registration_status = status

    # ==================== Failure handling and timers ====================

    def _handle_connection_failure(self) -> None:
        with self._lock:
            self._state.connected = False
            if self._stopped:
                return
            if self._reconnect_timer is not None and self._reconnect_timer.is_running:
                return
            self._start_reconnect_timer()

    def _start_ping_timer(self) -> None:
        with self._lock:
            previous, self._ping_timer = self._ping_timer, None
        if previous is not None:
            previous.stop()

        timer = self._timer_factory(self.ping_interval, self._on_ping_tick, "seed-ping")
        with self._lock:
            if self._stopped:
                return
            self._ping_timer = timer
            timer.start()
        logger.info(
            "Ping interval started (every %s seconds)",
            self.ping_interval,
            extra={"event": "connection.ping_timer_started", "interval": self.ping_interval},
        )

    def _start_reconnect_timer(self) -> None:
        # Caller holds _lock. Any previous timer is already stopped, so no join happens here.
        previous = self._detach_reconnect_timer()
        if previous is not None:
            previous.stop()
        self._state.reconnect_attempts = 0
        self._reconnect_timer = self._timer_factory(
            self.reconnect_interval, self._on_reconnect_tick, "seed-reconnect"
        )
        self._reconnect_timer.start()
        logger.info(
            "Reconnect interval started (every %s seconds)",
            self.reconnect_interval,
            extra={"event": "connection.reconnect_timer_started", "interval": self.reconnect_interval},
        )

    def _detach_reconnect_timer(self):
        timer, self._reconnect_timer = self._reconnect_timer, None
        return timer

    def _on_ping_tick(self) -> None:
        self.ping()

    def _on_reconnect_tick(self) -> None:
        with self._lock:
            if self._state.reconnect_attempts >= self.max_reconnect_attempts:
                self._give_up_reconnecting()
                return
            self._state.reconnect_attempts += 1
            attempt = self._state.reconnect_attempts

        logger.info(
            "Attempting to reconnect to seed node (attempt %d/%d)",
            attempt,
            self.max_reconnect_attempts,
            extra={"event": "connection.reconnect_attempt", "attempt": attempt},
        )
        self.connect()

        with self._lock:
            if self._state.connected:
                logger.info("Reconnected successfully", extra={"event": "connection.reconnected"})
                timer = self._detach_reconnect_timer()
                self._state.reconnect_attempts = 0
                if timer is not None:
                    timer.stop()
            elif self._state.reconnect_attempts >= self.max_reconnect_attempts:
                self._give_up_reconnecting()

    def _give_up_reconnecting(self) -> None:
        # Caller holds _lock; runs on the reconnect timer's own thread.
        logger.error(
            "Maximum reconnect attempts (%d) reached. Stopping reconnect attempts.",
            self.max_reconnect_attempts,
            extra={"event": "connection.reconnect_exhausted", "attempts": self.max_reconnect_attempts},
        )
        timer = self._detach_reconnect_timer()
        if timer is not None:
            timer.stop()
