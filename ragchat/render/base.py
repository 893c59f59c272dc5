"""Render sink interface -- the only way the core talks to presentation."""

from __future__ import annotations

from collections.abc import Sequence
from dataclasses import dataclass, field
from datetime import datetime
from typing import Protocol, runtime_checkable

from ragchat.history import Role
from ragchat.stream.schemas import RetrievalLink

# RenderCommand.kind values, one per RenderSink method
LOADING_START = "loading_start"
LOADING_END = "loading_end"
NEW_MESSAGE = "new_message"
APPEND_DELTA = "append_delta"
ANNOTATIONS = "annotations"


@dataclass(frozen=True)
class RenderCommand:
    """One call to make on the render sink."""

    kind: str
    role: Role = Role.ASSISTANT
    text: str = ""
    links: tuple[RetrievalLink, ...] = field(default_factory=tuple)


@runtime_checkable
class RenderSink(Protocol):
    """Presentation callbacks.

    Implementations own all formatting, including escaping of
    retrieval headings and links before they reach any markup.
    """

    def on_loading_start(self) -> None: ...

    def on_loading_end(self) -> None: ...

    def on_new_message(self, role: str, text: str, timestamp: datetime) -> None: ...

    def on_append_delta(self, text: str) -> None: ...

    def on_annotations(self, links: Sequence[RetrievalLink]) -> None: ...


def apply_command(sink: RenderSink, command: RenderCommand, now: datetime) -> None:
    """Dispatch one RenderCommand to the matching sink method."""
    if command.kind == LOADING_START:
        sink.on_loading_start()
    elif command.kind == LOADING_END:
        sink.on_loading_end()
    elif command.kind == NEW_MESSAGE:
        sink.on_new_message(command.role.value, command.text, now)
    elif command.kind == APPEND_DELTA:
        sink.on_append_delta(command.text)
    elif command.kind == ANNOTATIONS:
        sink.on_annotations(command.links)
    else:
        raise ValueError(f"Unknown render command: {command.kind}")
