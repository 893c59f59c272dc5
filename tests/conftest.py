"""Shared fixtures: settings, a recording render sink, and a scripted
completion service built on httpx.MockTransport."""

from __future__ import annotations

import asyncio
import json
from collections.abc import AsyncIterator, Callable, Iterable
from datetime import datetime
from typing import Any

import httpx
import pytest

from ragchat.api.client import CompletionClient
from ragchat.chat.session import ChatSession
from ragchat.config import Settings

FIXED_NOW = datetime(2024, 5, 1, 9, 30)

# ---------------------------------------------------------------------------
# Render sink double
# ---------------------------------------------------------------------------


class RecordingSink:
    """Records every sink call as a tuple, in order."""

    def __init__(self) -> None:
        self.calls: list[tuple[Any, ...]] = []

    def on_loading_start(self) -> None:
        self.calls.append(("loading_start",))

    def on_loading_end(self) -> None:
        self.calls.append(("loading_end",))

    def on_new_message(self, role: str, text: str, timestamp: datetime) -> None:
        self.calls.append(("new_message", role, text))

    def on_append_delta(self, text: str) -> None:
        self.calls.append(("append_delta", text))

    def on_annotations(self, links) -> None:
        self.calls.append(("annotations", tuple(links)))

    def kinds(self) -> list[str]:
        return [call[0] for call in self.calls]

    def count(self, kind: str) -> int:
        return self.kinds().count(kind)


# ---------------------------------------------------------------------------
# Scripted completion service
# ---------------------------------------------------------------------------


class FakeService:
    """MockTransport handler that replays a list of body chunks.

    A chunk may be bytes, or an exception instance raised mid-body, or an
    asyncio.Event the body waits on before continuing.
    """

    def __init__(self) -> None:
        self.requests: list[dict[str, Any]] = []
        self.status_code = 200
        self.chunks: list[Any] = []
        self.connect_error: Exception | None = None

    def reply(self, *chunks: Any) -> None:
        self.chunks = list(chunks)

    def reply_lines(self, lines: Iterable[str]) -> None:
        self.chunks = [f"{line}\n".encode() for line in lines]

    async def _body(self, chunks: list[Any]) -> AsyncIterator[bytes]:
        for chunk in chunks:
            if isinstance(chunk, asyncio.Event):
                await chunk.wait()
            elif isinstance(chunk, Exception):
                raise chunk
            else:
                yield chunk

    def __call__(self, request: httpx.Request) -> httpx.Response:
        self.requests.append(json.loads(request.content))
        if self.connect_error is not None:
            raise self.connect_error
        if self.status_code != 200:
            return httpx.Response(self.status_code, text="service unavailable")
        return httpx.Response(self.status_code, content=self._body(list(self.chunks)))


# ---------------------------------------------------------------------------
# Fixtures
# ---------------------------------------------------------------------------


@pytest.fixture
def settings() -> Settings:
    return Settings(
        api_url="https://chat.test/v1/chat/completions",
        rag_namespace="docs",
        rag_top_k=5,
        fallback_message="Sorry, try again later.",
        welcome_message="Hello there!",
    )


@pytest.fixture
def sink() -> RecordingSink:
    return RecordingSink()


@pytest.fixture
def service() -> FakeService:
    return FakeService()


@pytest.fixture
def make_session(settings, sink, service) -> Callable[[], ChatSession]:
    def _make() -> ChatSession:
        client = CompletionClient(settings, transport=httpx.MockTransport(service))
        return ChatSession(client, sink, settings, clock=lambda: FIXED_NOW)

    return _make
