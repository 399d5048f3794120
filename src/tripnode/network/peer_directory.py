"""
TripCode Client Node - Validator Peer Directory

Implements:
- Loading the validator list from the seed node
- Explicit refresh of the cached list
- Periodic concurrent health checks of every cached validator
- Ad hoc liveness probes of arbitrary addresses
"""

from __future__ import annotations

import logging
import threading
from concurrent.futures import ThreadPoolExecutor
from typing import Any, Callable, List, Optional, Tuple

from tripnode.core.config import NodeConfig
from tripnode.core.exceptions import NetworkError
from tripnode.network.http_client import PeerHttpClient
from tripnode.network.models import PeerRecord, SeedEndpoints, ValidatorEndpoints
from tripnode.network.timers import RepeatingTimer

logger = logging.getLogger(__name__)

PROBE_TIMEOUT = 5.0
MAX_PROBE_WORKERS = 32


class PeerDirectory:
    """
    Cached collection of validator peers, keyed by address.

    The collection is replaced wholesale by load()/refresh(); health sweeps
    only flip flags on the records they were given.
    """

    def __init__(
        self,
        seed_node_address: str,
        http_client: PeerHttpClient,
        health_check_interval: float = 60.0,
        probe_timeout: float = PROBE_TIMEOUT,
        source_path: str = SeedEndpoints.NODES,
        timer_factory: Callable[[float, Callable[[], None], str], Any] = RepeatingTimer,
    ):
        """
        Initialize peer directory

        Args:
            seed_node_address: ``host:port`` of the seed node
            http_client: Shared outbound HTTP client
            health_check_interval: Seconds between health sweeps
            probe_timeout: Timeout for each liveness probe
            source_path: Seed node endpoint listing peer descriptors
            timer_factory: Builds recurring timers (``interval, callback, name``)
        """
        self.seed_node_address = seed_node_address
        self.http = http_client
        self.health_check_interval = health_check_interval
        self.probe_timeout = probe_timeout
        self.source_path = source_path
        self._timer_factory = timer_factory

        self._peers: List[PeerRecord] = []
        self._lock = threading.Lock()
        self._health_timer = None

        logger.info(
            "Validator directory initialized with seed node: %s",
            seed_node_address,
            extra={"event": "directory.init", "seed_node_address": seed_node_address},
        )

    @classmethod
    def from_config(cls, config: NodeConfig, http_client: PeerHttpClient, **kwargs) -> "PeerDirectory":
        return cls(
            seed_node_address=config.seed_node_address,
            http_client=http_client,
            health_check_interval=config.health_check_interval,
            **kwargs,
        )

    # ==================== Lifecycle ====================

    def start(self) -> None:
        """Load validators and start the health check timer."""
        logger.info("Initializing validator directory", extra={"event": "directory.start"})
        self.load()
        self.stop()
        timer = self._timer_factory(self.health_check_interval, self.check_health, "validator-health")
        with self._lock:
            self._health_timer = timer
        timer.start()
        logger.info(
            "Validator health check interval started",
            extra={"event": "directory.health_timer_started", "interval": self.health_check_interval},
        )

    def stop(self) -> None:
        with self._lock:
            timer, self._health_timer = self._health_timer, None
        if timer is not None:
            timer.stop()

    # ==================== Collection ====================

    def load(self) -> Tuple[bool, List[PeerRecord]]:
        """
        Fetch the peer list from the seed node and replace the cache.

        Returns:
            (success, validators). On failure the cache is left untouched
            and the list is empty.
        """
        logger.info("Loading validator nodes from seed node", extra={"event": "directory.load"})
        try:
            descriptors = self.http.get_json(self.seed_node_address, self.source_path)
        except NetworkError as exc:
            logger.error(
                "Error loading validator nodes: %s",
                exc,
                extra={"event": "directory.load_failed", "peer": self.seed_node_address},
            )
            return False, []

        if not isinstance(descriptors, list):
            logger.error(
                "Seed node returned a non-list peer payload",
                extra={"event": "directory.load_malformed", "peer": self.seed_node_address},
            )
            return False, []

        validators = self._parse_validators(descriptors)
        with self._lock:
            self._peers = validators

        logger.info(
            "Loaded %d validator nodes",
            len(validators),
            extra={"event": "directory.loaded", "count": len(validators)},
        )
        return True, list(validators)

    def refresh(self) -> Tuple[bool, List[PeerRecord]]:
        """Reload the validator list on demand."""
        logger.info("Refreshing validator nodes list", extra={"event": "directory.refresh"})
        return self.load()

    def peers(self) -> List[PeerRecord]:
        with self._lock:
            return list(self._peers)

    def active_peers(self) -> List[PeerRecord]:
        """Validators currently marked responding, in load order."""
        with self._lock:
            return [peer for peer in self._peers if peer.is_responding]

    @staticmethod
    def _parse_validators(descriptors: List[Any]) -> List[PeerRecord]:
        validators: List[PeerRecord] = []
        seen = set()
        for descriptor in descriptors:
            if not isinstance(descriptor, dict):
                continue
            try:
                record = PeerRecord.from_descriptor(descriptor)
            except ValueError as exc:
                logger.debug(
                    "Skipping malformed peer descriptor: %s",
                    exc,
                    extra={"event": "directory.descriptor_skipped"},
                )
                continue
            if not record.is_validator or record.address in seen:
                continue
            seen.add(record.address)
            validators.append(record)
        return validators

    # ==================== Health checks ====================

    def ping_peer(self, address: str, timeout: Optional[float] = None) -> bool:
        """
        Liveness probe of a single address. Does not touch the directory.

        Returns:
            True if the peer answered 200
        """
        try:
            response = self.http.request(
                "GET",
                address,
                ValidatorEndpoints.PING,
                timeout=timeout if timeout is not None else self.probe_timeout,
            )
            self.http.expect_status(response, address)
            return True
        except NetworkError as exc:
            logger.debug(
                "Ping failed for validator %s: %s",
                address,
                exc,
                extra={"event": "directory.ping_failed", "peer": address},
            )
            return False

    def check_health(self) -> int:
        """
        Probe every cached validator concurrently and update its flags.

        Returns:
            Number of validators responding after the sweep
        """
        peers = self.peers()
        logger.debug("Checking validator nodes health", extra={"event": "directory.health_check"})
        if not peers:
            return 0

        workers = min(len(peers), MAX_PROBE_WORKERS)
        with ThreadPoolExecutor(max_workers=workers, thread_name_prefix="health-probe") as executor:
            results = list(executor.map(self._probe, peers))

        responding = sum(1 for alive in results if alive)
        logger.debug(
            "Health check completed. %d/%d validators are active",
            responding,
            len(peers),
            extra={"event": "directory.health_checked", "responding": responding, "total": len(peers)},
        )
        return responding

    def _probe(self, peer: PeerRecord) -> bool:
        if self.ping_peer(peer.address):
            peer.mark_responding()
            return True
        peer.mark_unresponsive()
        logger.warning(
            "Validator node %s is not responding",
            peer.address,
            extra={"event": "directory.peer_unresponsive", "peer": peer.address},
        )
        return False
