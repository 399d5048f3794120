"""
TripCode Client Node Configuration

All settings come from environment variables. Interval and timeout variables
are expressed in milliseconds in the environment and stored in seconds.
Empty variables fall back to the documented default.
"""

from __future__ import annotations

import logging
import os
from dataclasses import dataclass
from typing import Mapping, Optional

from tripnode.core.exceptions import ConfigurationError

logger = logging.getLogger(__name__)


DEFAULT_SEED_NODE_ADDRESS = "localhost:3000"
DEFAULT_NODE_HOST = "localhost"
DEFAULT_NODE_PORT = 3100
DEFAULT_PING_INTERVAL_MS = 30000
DEFAULT_RECONNECT_INTERVAL_MS = 10000
DEFAULT_MAX_RECONNECT_ATTEMPTS = 5
DEFAULT_HEALTH_CHECK_INTERVAL_MS = 60000
DEFAULT_HTTP_TIMEOUT_MS = 5000


def _get_str(env: Mapping[str, str], name: str, default: str) -> str:
    value = env.get(name, "").strip()
    return value or default


def _get_positive_int(env: Mapping[str, str], name: str, default: int) -> int:
    """Read a positive integer, rejecting garbage instead of silently defaulting."""
    raw = env.get(name, "").strip()
    if not raw:
        return default
    try:
        value = int(raw)
    except ValueError as exc:
        raise ConfigurationError(
            f"{name} must be an integer, got {raw!r}",
            details={"env_var": name, "value": raw},
        ) from exc
    if value <= 0:
        raise ConfigurationError(
            f"{name} must be positive, got {value}",
            details={"env_var": name, "value": raw},
        )
    return value


def _get_millis_as_seconds(env: Mapping[str, str], name: str, default_ms: int) -> float:
    return _get_positive_int(env, name, default_ms) / 1000.0


@dataclass(frozen=True)
class NodeConfig:
    """Runtime settings for one client node."""

    seed_node_address: str = DEFAULT_SEED_NODE_ADDRESS
    node_host: str = DEFAULT_NODE_HOST
    node_port: int = DEFAULT_NODE_PORT
    ping_interval: float = DEFAULT_PING_INTERVAL_MS / 1000.0
    reconnect_interval: float = DEFAULT_RECONNECT_INTERVAL_MS / 1000.0
    max_reconnect_attempts: int = DEFAULT_MAX_RECONNECT_ATTEMPTS
    health_check_interval: float = DEFAULT_HEALTH_CHECK_INTERVAL_MS / 1000.0
    http_timeout: float = DEFAULT_HTTP_TIMEOUT_MS / 1000.0
    log_level: str = "INFO"
    log_file: Optional[str] = None
    environment: str = "production"

    @property
    def node_address(self) -> str:
        return f"{self.node_host}:{self.node_port}"

    @classmethod
    def from_env(cls, env: Optional[Mapping[str, str]] = None) -> "NodeConfig":
        """
        Build configuration from environment variables.

        Args:
            env: Mapping to read from (defaults to os.environ)

        Returns:
            NodeConfig instance

        Raises:
            ConfigurationError: If a numeric variable is malformed or not positive
        """
        env = os.environ if env is None else env

        config = cls(
            seed_node_address=_get_str(env, "SEED_NODE_ADDRESS", DEFAULT_SEED_NODE_ADDRESS),
            node_host=_get_str(env, "NODE_HOST", DEFAULT_NODE_HOST),
            node_port=_get_positive_int(env, "NODE_PORT", DEFAULT_NODE_PORT),
            ping_interval=_get_millis_as_seconds(env, "PING_INTERVAL", DEFAULT_PING_INTERVAL_MS),
            reconnect_interval=_get_millis_as_seconds(
                env, "RECONNECT_INTERVAL", DEFAULT_RECONNECT_INTERVAL_MS
            ),
            max_reconnect_attempts=_get_positive_int(
                env, "MAX_RECONNECT_ATTEMPTS", DEFAULT_MAX_RECONNECT_ATTEMPTS
            ),
            health_check_interval=_get_millis_as_seconds(
                env, "HEALTH_CHECK_INTERVAL", DEFAULT_HEALTH_CHECK_INTERVAL_MS
            ),
            http_timeout=_get_millis_as_seconds(env, "HTTP_TIMEOUT", DEFAULT_HTTP_TIMEOUT_MS),
            log_level=_get_str(env, "TRIPNODE_LOG_LEVEL", "INFO").upper(),
            log_file=env.get("TRIPNODE_LOG_FILE", "").strip() or None,
            environment=_get_str(env, "TRIPNODE_ENV", "production"),
        )

        logger.debug(
            "Configuration loaded for node %s (seed %s)",
            config.node_address,
            config.seed_node_address,
            extra={
                "event": "config.loaded",
                "node_address": config.node_address,
                "seed_node_address": config.seed_node_address,
            },
        )
        return config
