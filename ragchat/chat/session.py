"""Chat session -- drives one streamed turn at a time.

ChatSession is the stateful shell around the pure transitions in
ragchat.chat.state: it owns the current TurnSessionState, the history,
and the render sink, and it is the only place where transport errors
are caught.
"""

from __future__ import annotations

import asyncio
import logging
from collections.abc import Callable
from contextlib import aclosing
from datetime import datetime
from uuid import uuid4

import httpx

from ragchat.api.client import CompletionClient, TransportError
from ragchat.api.schemas import ChatRequest, RagOptions, build_request
from ragchat.chat.state import (
    Lifecycle,
    Transition,
    TurnSessionState,
    advance,
    begin,
    connected,
    fail,
)
from ragchat.config import Settings
from ragchat.history import ConversationHistory, Role, Turn
from ragchat.render.base import NEW_MESSAGE, RenderCommand, RenderSink, apply_command
from ragchat.stream.decoder import iter_lines
from ragchat.stream.parser import parse_line
from ragchat.stream.schemas import STREAM_END, StreamEvent

logger = logging.getLogger(__name__)


def generate_session_id() -> str:
    return f"session_{uuid4().hex[:9]}"


class ChatSession:
    """One conversation with the completion service.

    At most one send is in flight; submit() while loading is a no-op.
    """

    def __init__(
        self,
        client: CompletionClient,
        sink: RenderSink,
        settings: Settings,
        history: ConversationHistory | None = None,
        clock: Callable[[], datetime] = datetime.now,
    ) -> None:
        self.session_id = generate_session_id()
        self.history = history if history is not None else ConversationHistory()
        self._client = client
        self._sink = sink
        self._settings = settings
        self._rag = RagOptions.from_settings(settings)
        self._clock = clock
        self._state = TurnSessionState()

    @property
    def state(self) -> TurnSessionState:
        return self._state

    @property
    def is_loading(self) -> bool:
        return self._state.is_active

    def greet(self) -> None:
        """Show the welcome message. It is not part of the history."""
        apply_command(
            self._sink,
            RenderCommand(NEW_MESSAGE, text=self._settings.welcome_message),
            self._clock(),
        )

    async def submit(self, text: str) -> bool:
        """Send one user message and render the streamed reply.

        Returns False without side effects when the text is blank or a
        send is already in progress.
        """
        message = text.strip()
        if not message or self.is_loading:
            return False

        request = build_request(self.history, message, self._rag)
        self.history.append(Turn(Role.USER, message))

        try:
            # A raising sink must still land the turn in a terminal state
            self._apply(begin(self._state, message))
            await self._run(request)
        except asyncio.CancelledError:
            logger.info("[%s] Turn cancelled", self.session_id)
            self._apply(fail(self._state, None))
            raise
        except (TransportError, httpx.HTTPError) as e:
            logger.error("[%s] Chat error: %s", self.session_id, e)
            self._apply(fail(self._state, self._settings.fallback_message))
        except Exception:
            logger.exception("[%s] Unexpected error while streaming reply", self.session_id)
            self._apply(fail(self._state, self._settings.fallback_message))
        return True

    async def aclose(self) -> None:
        await self._client.close()

    async def _run(self, request: ChatRequest) -> None:
        async with self._client.stream(request) as chunks:
            self._apply(connected(self._state))
            async with aclosing(iter_lines(chunks)) as lines:
                async for line in lines:
                    for event in parse_line(line):
                        self._handle(event)
                        if self._state.is_terminal:
                            return
        # Body ended without a sentinel: keep what arrived
        logger.debug("[%s] Stream closed without end marker", self.session_id)
        self._handle(StreamEvent(type=STREAM_END))

    def _handle(self, event: StreamEvent) -> None:
        state, commands = advance(self._state, event)
        if state.lifecycle is Lifecycle.COMMITTED and not self._state.is_terminal:
            self.history.append(Turn(Role.ASSISTANT, state.accumulated_text))
            logger.info(
                "[%s] Reply committed (%d chars, history=%d)",
                self.session_id,
                len(state.accumulated_text),
                len(self.history),
            )
        self._apply((state, commands))

    def _apply(self, transition: Transition) -> None:
        self._state, commands = transition
        if not commands:
            return
        now = self._clock()
        for command in commands:
            apply_command(self._sink, command, now)
