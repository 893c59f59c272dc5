"""HTML transcript rendering for embedding the chat in a web page.

Every piece of text coming from the service -- message deltas, retrieval
headings and links -- is escaped before it is placed into markup.
"""

from __future__ import annotations

import html as html_module
from collections.abc import Sequence
from dataclasses import dataclass
from datetime import datetime
from urllib.parse import urlparse

from ragchat.stream.schemas import RetrievalLink

_SAFE_SCHEMES = frozenset({"http", "https", "mailto", ""})


def safe_href(link: str) -> str:
    """Escape a link for an href attribute, neutralising script URLs."""
    scheme = urlparse(link.strip()).scheme.lower()
    if scheme not in _SAFE_SCHEMES:
        return "#"
    return html_module.escape(link, quote=True)


def render_annotations(links: Sequence[RetrievalLink]) -> str:
    """Markup for the "Related Sections" block."""
    items = "<br>".join(
        f'<a href="{safe_href(link.link)}" target="_blank" rel="noopener">'
        f"{html_module.escape(link.heading)}</a>"
        for link in links
    )
    return f"<b>\U0001f50e Related Sections:</b><br>{items}"


@dataclass
class HtmlBlock:
    """One message bubble in the transcript."""

    css_class: str
    text: str = ""  # raw, unescaped
    markup: str | None = None  # pre-built, already escaped
    time: str = ""
    partial: bool = False

    def render(self) -> str:
        content = self.markup if self.markup is not None else html_module.escape(self.text)
        time_html = f'<div class="message-time">{self.time}</div>' if self.time else ""
        return (
            f'<div class="{self.css_class}">'
            f'<div class="message-content">{content}</div>{time_html}</div>'
        )


class HtmlTranscriptSink:
    """Builds the transcript as a list of blocks; render() joins them."""

    def __init__(self) -> None:
        self.blocks: list[HtmlBlock] = []
        self.loading = False
        self._current: HtmlBlock | None = None

    def on_loading_start(self) -> None:
        self.loading = True

    def on_loading_end(self) -> None:
        self.loading = False
        if self._current is not None:
            self._current.partial = False
            self._current = None

    def on_new_message(self, role: str, text: str, timestamp: datetime) -> None:
        block = HtmlBlock(
            css_class=f"chat-message {role}-message",
            text=text,
            time=f"{timestamp:%H:%M}",
        )
        self.blocks.append(block)
        # Only a streamed assistant reply keeps growing
        if role == "assistant" and self.loading:
            block.partial = True
            self._current = block
        else:
            self._current = None

    def on_append_delta(self, text: str) -> None:
        if self._current is None:
            return
        self._current.text += text

    def on_annotations(self, links: Sequence[RetrievalLink]) -> None:
        block = HtmlBlock(
            css_class="chat-message assistant-message retrieval-message",
            markup=render_annotations(links),
        )
        # The reference block sits above the reply it belongs to
        if self._current is not None:
            index = next(i for i, b in enumerate(self.blocks) if b is self._current)
            self.blocks.insert(index, block)
        else:
            self.blocks.append(block)

    def render(self) -> str:
        body = "".join(block.render() for block in self.blocks)
        if self.loading:
            body += (
                '<div class="chat-message assistant-message loading-message">'
                '<div class="message-content"><div class="typing-indicator">'
                "<span></span><span></span><span></span></div></div></div>"
            )
        return body
