"""Turn lifecycle as a pure transition function.

advance() takes the current TurnSessionState and one input and returns
the next state plus the render commands to apply, in order. It never
touches the sink or the history; ChatSession does that with the result.

    idle -> sending -> streaming -> committed
                 \\          \\
                  +-> failed <-+
"""

from __future__ import annotations

import logging
from dataclasses import dataclass, replace
from enum import StrEnum

from ragchat.history import Role
from ragchat.render.base import (
    ANNOTATIONS,
    APPEND_DELTA,
    LOADING_END,
    LOADING_START,
    NEW_MESSAGE,
    RenderCommand,
)
from ragchat.stream.schemas import RETRIEVAL, STREAM_END, StreamEvent

logger = logging.getLogger(__name__)


class Lifecycle(StrEnum):
    IDLE = "idle"
    SENDING = "sending"
    STREAMING = "streaming"
    COMMITTED = "committed"
    FAILED = "failed"


TERMINAL_STATES = frozenset({Lifecycle.COMMITTED, Lifecycle.FAILED})


@dataclass(frozen=True)
class TurnSessionState:
    """Per-request state, discarded once the turn reaches a terminal state."""

    lifecycle: Lifecycle = Lifecycle.IDLE
    accumulated_text: str = ""
    retrieval_shown: bool = False
    message_started: bool = False

    @property
    def is_active(self) -> bool:
        return self.lifecycle in (Lifecycle.SENDING, Lifecycle.STREAMING)

    @property
    def is_terminal(self) -> bool:
        return self.lifecycle in TERMINAL_STATES


Transition = tuple[TurnSessionState, list[RenderCommand]]


def begin(state: TurnSessionState, user_text: str) -> Transition:
    """idle -> sending. Rejected (no commands) if a send is already active."""
    if state.is_active:
        return state, []
    return TurnSessionState(lifecycle=Lifecycle.SENDING), [
        RenderCommand(LOADING_START),
        RenderCommand(NEW_MESSAGE, role=Role.USER, text=user_text),
    ]


def connected(state: TurnSessionState) -> Transition:
    """sending -> streaming once the response headers are accepted."""
    if state.lifecycle is not Lifecycle.SENDING:
        return state, []
    return replace(state, lifecycle=Lifecycle.STREAMING), []


def advance(state: TurnSessionState, event: StreamEvent) -> Transition:
    """Fold one parsed stream event into the turn."""
    if not state.is_active:
        logger.debug("Ignoring %s event in %s state", event.type, state.lifecycle)
        return state, []

    if state.lifecycle is Lifecycle.SENDING:
        state = replace(state, lifecycle=Lifecycle.STREAMING)

    if event.type == STREAM_END:
        return replace(state, lifecycle=Lifecycle.COMMITTED), [RenderCommand(LOADING_END)]

    if event.type == RETRIEVAL:
        if state.retrieval_shown:
            logger.debug("Dropping repeated retrieval annotation (%d links)", len(event.links))
            return state, []
        return replace(state, retrieval_shown=True), [
            RenderCommand(ANNOTATIONS, links=event.links),
        ]

    if event.is_text and event.text:
        kind = APPEND_DELTA if state.message_started else NEW_MESSAGE
        return (
            replace(
                state,
                accumulated_text=state.accumulated_text + event.text,
                message_started=True,
            ),
            [RenderCommand(kind, text=event.text)],
        )

    return state, []


def fail(state: TurnSessionState, fallback_message: str | None) -> Transition:
    """Active -> failed. Partial text is dropped with the state.

    fallback_message=None aborts quietly (cancellation).
    """
    if not state.is_active:
        return state, []
    commands: list[RenderCommand] = []
    if fallback_message is not None:
        commands.append(RenderCommand(NEW_MESSAGE, text=fallback_message))
    commands.append(RenderCommand(LOADING_END))
    return replace(state, lifecycle=Lifecycle.FAILED), commands
