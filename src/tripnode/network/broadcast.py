"""
TripCode Client Node - Validator Broadcast Engine

Sends one request to many validators at once and reports one outcome per
validator. Every request shape (transaction, batch, critical process, status
and mempool queries) goes through the same broadcast() call; only the
RequestSpec differs.
"""

from __future__ import annotations

import logging
from concurrent.futures import Future, ThreadPoolExecutor
from dataclasses import dataclass
from typing import Any, Dict, Optional, Sequence, Type

from pydantic import BaseModel, ValidationError

from tripnode.core.exceptions import NetworkError, ProtocolError
from tripnode.core.schemas import BlockchainStatus, MempoolStatus
from tripnode.network.http_client import PeerHttpClient
from tripnode.network.models import (
    BroadcastOutcome,
    BroadcastResult,
    PeerRecord,
    ValidatorEndpoints,
)

logger = logging.getLogger(__name__)

MAX_DISPATCH_WORKERS = 64


@dataclass(frozen=True)
class RequestSpec:
    """Endpoint, method and timeout for one class of validator request."""

    name: str
    method: str
    path: str
    timeout: float
    response_model: Optional[Type[BaseModel]] = None


TRANSACTION = RequestSpec("transaction", "POST", ValidatorEndpoints.TX, 10.0)
BATCH = RequestSpec("batch", "POST", ValidatorEndpoints.TX_BATCH, 15.0)
CRITICAL = RequestSpec("critical", "POST", ValidatorEndpoints.CRITICAL, 20.0)
STATUS_TX = RequestSpec("status_tx", "GET", ValidatorEndpoints.STATUS_TX, 10.0, BlockchainStatus)
STATUS_CRITICAL = RequestSpec(
    "status_critical", "GET", ValidatorEndpoints.STATUS_CRITICAL, 10.0, BlockchainStatus
)
MEMPOOL_TX = RequestSpec("mempool_tx", "GET", ValidatorEndpoints.MEMPOOL_TX, 10.0, MempoolStatus)
MEMPOOL_CRITICAL = RequestSpec(
    "mempool_critical", "GET", ValidatorEndpoints.MEMPOOL_CRITICAL, 10.0, MempoolStatus
)

STATUS_SPECS: Dict[str, RequestSpec] = {"tx": STATUS_TX, "critical": STATUS_CRITICAL}
MEMPOOL_SPECS: Dict[str, RequestSpec] = {"tx": MEMPOOL_TX, "critical": MEMPOOL_CRITICAL}


class BroadcastEngine:
    """Stateless scatter/gather over a list of peers."""

    def __init__(self, http_client: PeerHttpClient, max_workers: int = MAX_DISPATCH_WORKERS):
        self.http = http_client
        self.max_workers = max_workers

    def broadcast(
        self,
        spec: RequestSpec,
        peers: Sequence[PeerRecord],
        payload: Any = None,
    ) -> BroadcastResult:
        """
        Dispatch ``spec`` to every peer concurrently and wait for all of them.

        Args:
            spec: Request class to send
            peers: Target peers; the result follows this order
            payload: JSON-serializable body for POST requests

        Returns:
            BroadcastResult with exactly one outcome per peer
        """
        if not peers:
            return BroadcastResult()

        logger.info(
            "Sending %s to %d validators",
            spec.name,
            len(peers),
            extra={"event": "broadcast.start", "request": spec.name, "count": len(peers)},
        )

        workers = min(len(peers), self.max_workers)
        with ThreadPoolExecutor(max_workers=workers, thread_name_prefix=f"broadcast-{spec.name}") as executor:
            futures = [
                (peer.address, executor.submit(self._dispatch, spec, peer.address, payload))
                for peer in peers
            ]
            outcomes = tuple(self._settle(address, future) for address, future in futures)

        result = BroadcastResult(outcomes)
        logger.info(
            "%s delivered to %d/%d validators",
            spec.name,
            result.success_count,
            result.total,
            extra={
                "event": "broadcast.complete",
                "request": spec.name,
                "success_count": result.success_count,
                "total": result.total,
            },
        )
        return result

    def _dispatch(self, spec: RequestSpec, address: str, payload: Any) -> BroadcastOutcome:
        try:
            response = self.http.request(
                spec.method,
                address,
                spec.path,
                json=payload if spec.method != "GET" else None,
                timeout=spec.timeout,
            )
            if not 200 <= response.status_code < 300:
                raise ProtocolError(
                    f"Request failed with status code {response.status_code}",
                    status_code=response.status_code,
                    peer_address=address,
                )
            data = self._decode(spec, response, address)
        except NetworkError as exc:
            logger.debug(
                "%s to %s failed: %s",
                spec.name,
                address,
                exc,
                extra={"event": "broadcast.dispatch_failed", "request": spec.name, "peer": address},
            )
            return BroadcastOutcome.failed(address, exc.message)
        return BroadcastOutcome.ok(address, data)

    @staticmethod
    def _decode(spec: RequestSpec, response: Any, address: str) -> Any:
        try:
            data = response.json()
        except ValueError:
            if spec.response_model is not None:
                raise ProtocolError(
                    f"Response from {address} is not valid JSON",
                    status_code=response.status_code,
                    peer_address=address,
                )
            return response.text

        if spec.response_model is None:
            return data
        try:
            return spec.response_model.model_validate(data).to_wire()
        except ValidationError as exc:
            raise ProtocolError(
                f"Malformed {spec.response_model.__name__} from {address}: {exc.error_count()} errors",
                status_code=response.status_code,
                peer_address=address,
            ) from exc

    @staticmethod
    def _settle(address: str, future: Future) -> BroadcastOutcome:
        # _dispatch converts network errors itself; anything else is still one failed outcome.
        try:
            return future.result()
        except (RuntimeError, ValueError, TypeError, AttributeError, KeyError, OSError) as exc:
            logger.error(
                "Dispatch to %s raised: %s",
                address,
                exc,
                extra={"event": "broadcast.dispatch_error", "peer": address},
                exc_info=True,
            )
            return BroadcastOutcome.failed(address, str(exc) or type(exc).__name__)
