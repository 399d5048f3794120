"""
Data types shared by the connection, directory and broadcast components.
"""

from __future__ import annotations

from dataclasses import dataclass, field
from datetime import datetime, timezone
from enum import Enum
from typing import Any, Optional

VALIDATOR_NODE_TYPE = "validator"


def utc_timestamp() -> str:
    """Current time as an ISO-8601 UTC string."""
    return datetime.now(timezone.utc).isoformat()


class RegistrationStatus(str, Enum):
    """Registration state of this node with the seed node."""

    NOT_REGISTERED = "NOT_REGISTERED"
    REGISTERING = "REGISTERING"
    REGISTERED = "REGISTERED"
    FAILED = "FAILED"


class SeedEndpoints:
    PING = "/ping"
    REGISTER = "/register"
    NODES = "/nodes"
    NODES_ACTIVE = "/nodes/active"


class ValidatorEndpoints:
    PING = "/ping"
    TX = "/tx"
    TX_BATCH = "/tx/batch"
    CRITICAL = "/critical"
    STATUS_TX = "/status/tx"
    STATUS_CRITICAL = "/status/critical"
    MEMPOOL_TX = "/mempool/tx"
    MEMPOOL_CRITICAL = "/mempool/critical"


@dataclass(frozen=True)
class NodeIdentity:
    """Externally visible identity of this node."""

    host: str
    port: int

    @property
    def address(self) -> str:
        return f"{self.host}:{self.port}"


@dataclass
class ConnectionState:
    """Seed node connection state. Mutated only by ConnectionManager."""

    registration_status: RegistrationStatus = RegistrationStatus.NOT_REGISTERED
    connected: bool = False
    last_ping_time: Optional[datetime] = None
    reconnect_attempts: int = 0


@dataclass
class PeerRecord:
    """Cached information about one validator peer."""

    address: str
    node_type: str = VALIDATOR_NODE_TYPE
    last_seen: Optional[str] = None
    is_responding: bool = False
    version: Optional[str] = None

    @classmethod
    def from_descriptor(cls, descriptor: dict[str, Any]) -> "PeerRecord":
        """
        Build a record from a seed node descriptor.

        Args:
            descriptor: ``{address, nodeType, lastSeen, isResponding, version?}``

        Raises:
            ValueError: If the descriptor has no usable address
        """
        address = descriptor.get("address")
        if not isinstance(address, str) or not address:
            raise ValueError(f"descriptor has no address: {descriptor!r}")
        version = descriptor.get("version")
        return cls(
            address=address,
            node_type=str(descriptor.get("nodeType", "")),
            last_seen=descriptor.get("lastSeen"),
            # Only a real JSON true marks a peer responding; "false" or 1 do not.
            is_responding=descriptor.get("isResponding") is True,
            version=str(version) if version is not None else None,
        )

    @property
    def is_validator(self) -> bool:
        return self.node_type == VALIDATOR_NODE_TYPE

    def mark_responding(self) -> None:
        self.is_responding = True
        self.last_seen = utc_timestamp()

    def mark_unresponsive(self) -> None:
        self.is_responding = False

    def to_dict(self) -> dict[str, Any]:
        return {
            "address": self.address,
            "nodeType": self.node_type,
            "lastSeen": self.last_seen,
            "isResponding": self.is_responding,
            "version": self.version,
        }


@dataclass(frozen=True)
class BroadcastOutcome:
    """Result of one dispatch to one peer."""

    success: bool
    peer_address: str
    timestamp: str = field(default_factory=utc_timestamp)
    data: Any = None
    error: Optional[str] = None

    @classmethod
    def ok(cls, peer_address: str, data: Any) -> "BroadcastOutcome":
        return cls(success=True, peer_address=peer_address, data=data)

    @classmethod
    def failed(cls, peer_address: str, error: str) -> "BroadcastOutcome":
        return cls(success=False, peer_address=peer_address, error=error)

    def to_dict(self) -> dict[str, Any]:
        result: dict[str, Any] = {
            "success": self.success,
            "timestamp": self.timestamp,
            "validatorAddress": self.peer_address,
        }
        if self.success:
            result["data"] = self.data
        else:
            result["error"] = self.error
        return result


@dataclass(frozen=True)
class BroadcastResult:
    """Outcomes of one fan-out, in the order the peers were given."""

    outcomes: tuple[BroadcastOutcome, ...] = ()

    @property
    def success_count(self) -> int:
        return sum(1 for outcome in self.outcomes if outcome.success)

    @property
    def total(self) -> int:
        return len(self.outcomes)

    def __iter__(self):
        return iter(self.outcomes)

    def __len__(self) -> int:
        return len(self.outcomes)

    def to_dict(self) -> dict[str, Any]:
        return {
            "results": [outcome.to_dict() for outcome in self.outcomes],
            "successCount": self.success_count,
            "total": self.total,
        }
