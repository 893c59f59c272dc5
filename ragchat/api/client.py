"""HTTP transport for the completion service.

Opens a single streaming POST per turn and hands the raw body chunks to
the caller. No retries: a failed request surfaces as one exception.
"""

from __future__ import annotations

import logging
from collections.abc import AsyncIterator
from contextlib import asynccontextmanager

import httpx

from ragchat.api.schemas import ChatRequest
from ragchat.config import Settings

logger = logging.getLogger(__name__)


class TransportError(RuntimeError):
    """The service answered with a non-success status."""

    def __init__(self, status_code: int, body: str = "") -> None:
        super().__init__(f"Completion API error ({status_code}): {body[:200]}")
        self.status_code = status_code
        self.body = body


class CompletionClient:
    """Thin wrapper around httpx.AsyncClient for the streaming endpoint."""

    def __init__(
        self,
        settings: Settings,
        transport: httpx.AsyncBaseTransport | None = None,
    ) -> None:
        self._settings = settings
        self._transport = transport
        self._http: httpx.AsyncClient | None = None

    async def start(self) -> None:
        """Create the httpx client with timeout settings."""
        if self._http is not None:
            return
        settings = self._settings
        timeout = httpx.Timeout(
            connect=settings.api_timeout_connect,
            read=settings.api_timeout_read,
            write=10.0,
            pool=10.0,
        )
        self._http = httpx.AsyncClient(
            headers={"content-type": "application/json"},
            timeout=timeout,
            transport=self._transport,
        )
        logger.info("httpx client initialized (endpoint: %s)", settings.api_url)

    async def close(self) -> None:
        """Clean up httpx client."""
        if self._http:
            await self._http.aclose()
            self._http = None

    @asynccontextmanager
    async def stream(self, request: ChatRequest) -> AsyncIterator[AsyncIterator[bytes]]:
        """POST the request and yield the response body as a chunk iterator.

        Raises TransportError on a non-2xx status and lets httpx errors
        (connect, timeout, read) propagate.
        """
        if not self._http:
            await self.start()
        assert self._http is not None

        async with self._http.stream(
            "POST",
            self._settings.api_url,
            json=request.to_payload(),
        ) as response:
            if not response.is_success:
                error_body = await response.aread()
                raise TransportError(
                    response.status_code,
                    error_body.decode("utf-8", errors="replace"),
                )
            yield response.aiter_bytes()
