"""
Outbound HTTP access to the seed node and validator peers.

One PeerHttpClient is shared by every component. It holds only read-only
settings (default timeout, redirect policy, headers); per-call state never
lives on the client.
"""

from __future__ import annotations

import logging
from typing import Any, Iterable, Optional

import requests

from tripnode.core.exceptions import ProtocolError, TransportError

logger = logging.getLogger(__name__)

DEFAULT_HEADERS = {"Content-Type": "application/json", "Accept": "application/json"}


class PeerHttpClient:
    """Thin wrapper over a requests session that raises typed errors."""

    def __init__(
        self,
        default_timeout: float = 5.0,
        allow_redirects: bool = False,
        session: Optional[requests.Session] = None,
    ):
        self.default_timeout = default_timeout
        self.allow_redirects = allow_redirects
        self._session = session or requests.Session()
        self._session.headers.update(DEFAULT_HEADERS)

    @staticmethod
    def build_url(address: str, path: str) -> str:
        """Join a ``host:port`` address (or full base URL) with an endpoint path."""
        base = address if "://" in address else f"http://{address}"
        return f"{base.rstrip('/')}{path}"

    def request(
        self,
        method: str,
        address: str,
        path: str,
        json: Any = None,
        timeout: Optional[float] = None,
    ) -> requests.Response:
        """
        Send one request.

        Raises:
            TransportError: If no response was received (refused, DNS, timeout)
        """
        url = self.build_url(address, path)
        kwargs: dict[str, Any] = {
            "timeout": timeout if timeout is not None else self.default_timeout,
            "allow_redirects": self.allow_redirects,
        }
        if json is not None:
            kwargs["json"] = json
        try:
            return self._session.request(method, url, **kwargs)
        except requests.Timeout as exc:
            raise TransportError(
                f"timeout of {kwargs['timeout']}s exceeded calling {url}",
                peer_address=address,
                details={"url": url},
            ) from exc
        except requests.RequestException as exc:
            raise TransportError(
                f"{method} {url} failed: {exc}",
                peer_address=address,
                details={"url": url},
            ) from exc

    def expect_status(
        self,
        response: requests.Response,
        address: str,
        accepted: Iterable[int] = (200,),
    ) -> requests.Response:
        """
        Raises:
            ProtocolError: If the response status is not in ``accepted``
        """
        accepted = tuple(accepted)
        if response.status_code not in accepted:
            raise ProtocolError(
                f"Request failed with status code {response.status_code}",
                status_code=response.status_code,
                peer_address=address,
            )
        return response

    def get_json(
        self,
        address: str,
        path: str,
        timeout: Optional[float] = None,
    ) -> Any:
        """
        GET an endpoint that must answer 200 with a JSON body.

        Raises:
            TransportError: If no response was received
            ProtocolError: On a non-200 status or an undecodable body
        """
        response = self.expect_status(self.request("GET", address, path, timeout=timeout), address)
        try:
            return response.json()
        except ValueError as exc:
            raise ProtocolError(
                f"Response from {address}{path} is not valid JSON",
                status_code=response.status_code,
                peer_address=address,
            ) from exc

    def close(self) -> None:
        self._session.close()
