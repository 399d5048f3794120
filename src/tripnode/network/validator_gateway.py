"""
Operations the API layer runs against the validator set.

Every send and query targets the directory's currently responding
validators and returns a BroadcastResult.
"""

from __future__ import annotations

import logging
from typing import Any, List, Tuple

from tripnode.core.schemas import (
    BatchTransactionRequest,
    CriticalProcessRequest,
    TransactionRequest,
)
from tripnode.network.broadcast import (
    BATCH,
    CRITICAL,
    MEMPOOL_SPECS,
    STATUS_SPECS,
    TRANSACTION,
    BroadcastEngine,
    RequestSpec,
)
from tripnode.network.models import BroadcastResult, PeerRecord
from tripnode.network.peer_directory import PeerDirectory

logger = logging.getLogger(__name__)


class ValidatorGateway:
    def __init__(self, directory: PeerDirectory, engine: BroadcastEngine):
        self.directory = directory
        self.engine = engine

    def validators(self) -> List[PeerRecord]:
        return self.directory.peers()

    def active_validators(self) -> List[PeerRecord]:
        return self.directory.active_peers()

    def refresh_validators(self) -> Tuple[bool, List[PeerRecord]]:
        return self.directory.refresh()

    def ping_validator(self, address: str) -> bool:
        return self.directory.ping_peer(address)

    def send_transaction(self, transaction: TransactionRequest) -> BroadcastResult:
        return self._broadcast(TRANSACTION, transaction.to_wire())

    def send_batch(self, batch: BatchTransactionRequest) -> BroadcastResult:
        logger.info(
            "Broadcasting batch of %d transactions",
            len(batch.transactions),
            extra={"event": "gateway.batch", "count": len(batch.transactions)},
        )
        return self._broadcast(BATCH, batch.to_wire())

    def send_critical_process(self, request: CriticalProcessRequest) -> BroadcastResult:
        return self._broadcast(CRITICAL, request.to_wire())

    def blockchain_status(self, chain: str = "tx") -> BroadcastResult:
        return self._broadcast(self._select(STATUS_SPECS, chain, "chain"))

    def mempool_status(self, pool: str = "tx") -> BroadcastResult:
        return self._broadcast(self._select(MEMPOOL_SPECS, pool, "pool"))

    @staticmethod
    def _select(specs: dict, key: str, label: str) -> RequestSpec:
        try:
            return specs[key]
        except KeyError:
            raise ValueError(
                f"Unknown {label} {key!r}; expected one of {sorted(specs)}"
            ) from None

    def _broadcast(self, spec: RequestSpec, payload: Any = None) -> BroadcastResult:
        peers = self.directory.active_peers()
        if not peers:
            logger.warning(
                "No active validators available for %s",
                spec.name,
                extra={"event": "gateway.no_active_validators", "request": spec.name},
            )
        return self.engine.broadcast(spec, peers, payload)
