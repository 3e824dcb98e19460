"""Network reachability probe."""

import logging
from dataclasses import dataclass
from typing import Protocol

import httpx

_logger = logging.getLogger(__name__)


class ReachabilityProbe(Protocol):
    """Interface for a boolean network reachability signal."""

    async def is_reachable(self) -> bool:
        """Return True when the remote side can be reached."""


@dataclass
class HttpxReachabilityProbe(ReachabilityProbe):
    """HTTPX-backed probe: any HTTP response counts as reachable."""

    url: str
    http_client: httpx.AsyncClient
    timeout_seconds: float = 3.0

    @classmethod
    def create(
        cls, url: str, timeout_seconds: float = 3.0
    ) -> "HttpxReachabilityProbe":
        """Create a probe with a managed httpx session."""
        return cls(
            url=url,
            http_client=httpx.AsyncClient(),
            timeout_seconds=timeout_seconds,
        )

    async def is_reachable(self) -> bool:
        """Send a HEAD request to the configured URL."""
        try:
            await self.http_client.head(self.url, timeout=self.timeout_seconds)
        except httpx.TransportError as exc:
            _logger.debug("Reachability probe failed: %s", exc)
            return False
        return True

    async def close(self) -> None:
        """Close the underlying HTTP session."""
        await self.http_client.aclose()
