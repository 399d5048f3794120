"""
Seed node connection, validator directory and broadcast fan-out

Includes:
- ConnectionManager: registration state machine with ping and reconnect timers
- PeerDirectory: validator cache with concurrent health sweeps
- BroadcastEngine: all-settled concurrent dispatch with per-peer outcomes
- ValidatorGateway: the request shapes the API layer broadcasts
"""

from tripnode.network.broadcast import BroadcastEngine, RequestSpec
from tripnode.network.connection_manager import ConnectionManager
from tripnode.network.http_client import PeerHttpClient
from tripnode.network.models import (
    BroadcastOutcome,
    BroadcastResult,
    NodeIdentity,
    PeerRecord,
    RegistrationStatus,
)
from tripnode.network.peer_directory import PeerDirectory
from tripnode.network.validator_gateway import ValidatorGateway

__all__ = [
    "BroadcastEngine",
    "BroadcastOutcome",
    "BroadcastResult",
    "ConnectionManager",
    "NodeIdentity",
    "PeerDirectory",
    "PeerHttpClient",
    "PeerRecord",
    "RegistrationStatus",
    "RequestSpec",
    "ValidatorGateway",
]
