"""HTTP retrieval bounded by a fixed deadline."""

from __future__ import annotations

import asyncio
import logging
from dataclasses import dataclass
from typing import Callable, Optional

import httpx

from camsync.errors import FetchTimeoutError, TransportError

logger = logging.getLogger(__name__)

# Relays report an upstream timeout with these instead of dropping the connection
TIMEOUT_STATUSES = frozenset({408, 504})

ClientFactory = Callable[[], httpx.AsyncClient]


@dataclass(frozen=True)
class FetchedPayload:
    text: str
    status_code: int
    content_type: str = ""


class BoundedFetcher:
    """Performs one GET per call, bounded by ``timeout`` seconds.

    Every call opens its own client inside ``async with`` so sockets are
    released on success, failure and cancellation alike. The deadline is
    enforced with ``asyncio.wait_for``: when it fires first the request task
    is cancelled and the attempt is reported as :class:`FetchTimeoutError`.
    """

    def __init__(
        self,
        timeout: float,
        user_agent: str = "camsync/1.0",
        client_factory: Optional[ClientFactory] = None,
    ) -> None:
        if timeout <= 0:
            raise ValueError("timeout must be positive")
        self.timeout = timeout
        self._headers = {"User-Agent": user_agent, "Accept": "application/xml, text/xml, application/json, */*"}
        self._client_factory = client_factory or self._default_client

    def _default_client(self) -> httpx.AsyncClient:
        return httpx.AsyncClient(timeout=self.timeout, follow_redirects=True)

    async def _get(self, address: str) -> httpx.Response:
        async with self._client_factory() as client:
            return await client.get(address, headers=self._headers)

    async def fetch(self, address: str) -> FetchedPayload:
        try:
            response = await asyncio.wait_for(self._get(address), timeout=self.timeout)
        except asyncio.TimeoutError as e:
            raise FetchTimeoutError(f"No response from {address} within {self.timeout:.1f}s") from e
        except httpx.TimeoutException as e:
            raise FetchTimeoutError(f"Transport timeout from {address}: {e}") from e
        except (httpx.HTTPError, httpx.InvalidURL) as e:
            raise TransportError(f"Request to {address} failed: {e}") from e

        if response.status_code in TIMEOUT_STATUSES:
            raise FetchTimeoutError(f"{address} answered {response.status_code}")
        if not response.is_success:
            raise TransportError(f"{address} answered {response.status_code}")

        logger.debug(f"Fetched {len(response.content)} bytes from {address}")
        return FetchedPayload(
            text=response.text,
            status_code=response.status_code,
            content_type=response.headers.get("content-type", ""),
        )
