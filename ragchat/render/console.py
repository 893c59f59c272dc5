"""Plain terminal rendering for the CLI."""

from __future__ import annotations

import sys
from collections.abc import Sequence
from datetime import datetime
from typing import TextIO

from ragchat.stream.schemas import RetrievalLink

ROLE_LABELS = {"user": "you", "assistant": "bot"}


class ConsoleSink:
    """Writes messages to a text stream as they arrive.

    Deltas are written without a newline so the reply grows in place;
    the line is closed when loading ends.
    """

    def __init__(self, out: TextIO | None = None, show_user: bool = False) -> None:
        self._out = out or sys.stdout
        self._show_user = show_user
        self._open_line = False

    def on_loading_start(self) -> None:
        self._write("… ")
        self._open_line = True

    def on_loading_end(self) -> None:
        self._end_line()

    def on_new_message(self, role: str, text: str, timestamp: datetime) -> None:
        if role == "user" and not self._show_user:
            return
        self._end_line()
        label = ROLE_LABELS.get(role, role)
        self._write(f"[{timestamp:%H:%M}] {label}: {text}")
        self._open_line = True

    def on_append_delta(self, text: str) -> None:
        self._write(text)

    def on_annotations(self, links: Sequence[RetrievalLink]) -> None:
        self._end_line()
        self._write("\U0001f50e Related Sections:\n")
        for link in links:
            self._write(f"  - {link.heading} <{link.link}>\n")

    def _end_line(self) -> None:
        if self._open_line:
            self._write("\n")
            self._open_line = False

    def _write(self, text: str) -> None:
        self._out.write(text)
        self._out.flush()
