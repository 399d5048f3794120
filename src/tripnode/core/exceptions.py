"""
Exception hierarchy for the TripCode client node.

Network failures are raised by the HTTP client with a precise type and caught
at the component boundary, where they become boolean results, state
transitions or failed broadcast outcomes. Only configuration errors are
allowed to escape, and only at process start.
"""

from __future__ import annotations
from typing import Optional, Any, Dict


class NodeError(Exception):
    """Base exception for all client node errors.

    Attributes:
        message: Human-readable error description
        details: Additional context about the error
        recoverable: Whether the operation can be retried
    """

    def __init__(
        self,
        message: str,
        details: Optional[Dict[str, Any]] = None,
        recoverable: bool = False,
    ) -> None:
        super().__init__(message)
        self.message = message
        self.details = details or {}
        self.recoverable = recoverable


# ==================== Network Errors ====================


class NetworkError(NodeError):
    """Raised when a call to a remote peer does not produce a usable response."""

    def __init__(self, message: str, peer_address: Optional[str] = None, **kwargs: Any) -> None:
        kwargs.setdefault("recoverable", True)
        super().__init__(message, **kwargs)
        self.peer_address = peer_address


class TransportError(NetworkError):
    """Raised when the request never completed.

    Examples: connection refused, DNS failure, timeout.
    """
    pass


class ProtocolError(NetworkError):
    """Raised when the peer answered with an unexpected status or body."""

    def __init__(
        self,
        message: str,
        status_code: Optional[int] = None,
        **kwargs: Any,
    ) -> None:
        super().__init__(message, **kwargs)
        self.status_code = status_code


# ==================== Input Errors ====================


class PayloadValidationError(NodeError):
    """Raised when an inbound request payload fails schema validation."""
    pass


class ConfigurationError(NodeError):
    """Raised when required configuration is missing or invalid."""
    pass
