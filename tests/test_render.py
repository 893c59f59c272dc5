"""Tests for the render sinks and command dispatch.

Tests cover:
- apply_command() routing to sink methods
- HTML escaping of untrusted retrieval headings and links
- Annotation block placed above the reply it belongs to
- Console sink output
"""

import io
from datetime import datetime

import pytest

from ragchat.history import Role
from ragchat.render import ConsoleSink, HtmlTranscriptSink, RenderSink, apply_command
from ragchat.render.base import (
    ANNOTATIONS,
    APPEND_DELTA,
    LOADING_END,
    LOADING_START,
    NEW_MESSAGE,
    RenderCommand,
)
from ragchat.render.html import render_annotations, safe_href
from ragchat.stream.schemas import RetrievalLink

NOW = datetime(2024, 5, 1, 14, 5)


class TestApplyCommand:
    def test_routes_every_kind(self, sink):
        link = RetrievalLink("Doc", "/doc")
        for command in (
            RenderCommand(LOADING_START),
            RenderCommand(NEW_MESSAGE, role=Role.USER, text="hi"),
            RenderCommand(ANNOTATIONS, links=(link,)),
            RenderCommand(APPEND_DELTA, text="more"),
            RenderCommand(LOADING_END),
        ):
            apply_command(sink, command, NOW)
        assert sink.calls == [
            ("loading_start",),
            ("new_message", "user", "hi"),
            ("annotations", (link,)),
            ("append_delta", "more"),
            ("loading_end",),
        ]

    def test_unknown_kind_raises(self, sink):
        with pytest.raises(ValueError):
            apply_command(sink, RenderCommand("explode"), NOW)

    def test_stock_sinks_satisfy_protocol(self):
        assert isinstance(HtmlTranscriptSink(), RenderSink)
        assert isinstance(ConsoleSink(io.StringIO()), RenderSink)


class TestHtmlEscaping:
    def test_heading_escaped(self):
        html = render_annotations([RetrievalLink("<script>alert(1)</script>", "/ok")])
        assert "<script>" not in html
        assert "&lt;script&gt;alert(1)&lt;/script&gt;" in html

    def test_link_attribute_escaped(self):
        html = render_annotations([RetrievalLink("x", '/a" onmouseover="alert(1)')])
        assert 'onmouseover="alert' not in html
        assert "&quot;" in html

    @pytest.mark.parametrize("link", ["javascript:alert(1)", " JavaScript:alert(1)", "data:text/html,x"])
    def test_script_urls_neutralised(self, link):
        assert safe_href(link) == "#"

    def test_http_links_kept(self):
        assert safe_href("https://example.com/a?b=1&c=2") == "https://example.com/a?b=1&amp;c=2"

    def test_defaults_render(self):
        html = render_annotations([RetrievalLink()])
        assert '<a href="#" target="_blank" rel="noopener">Untitled</a>' in html

    def test_message_text_escaped(self):
        sink = HtmlTranscriptSink()
        sink.on_new_message("assistant", "<b>bold</b>", NOW)
        assert "&lt;b&gt;bold&lt;/b&gt;" in sink.render()


class TestHtmlTranscript:
    def test_streamed_reply_grows(self):
        sink = HtmlTranscriptSink()
        sink.on_loading_start()
        sink.on_new_message("user", "q", NOW)
        sink.on_new_message("assistant", "Hel", NOW)
        sink.on_append_delta("lo")
        assert "typing-indicator" in sink.render()
        sink.on_loading_end()
        assert [b.text for b in sink.blocks] == ["q", "Hello"]
        assert "typing-indicator" not in sink.render()
        assert '<div class="message-time">14:05</div>' in sink.render()

    def test_annotation_inserted_above_started_reply(self):
        sink = HtmlTranscriptSink()
        sink.on_loading_start()
        sink.on_new_message("user", "q", NOW)
        sink.on_new_message("assistant", "answer", NOW)
        sink.on_annotations([RetrievalLink("Doc", "/doc")])
        classes = [b.css_class for b in sink.blocks]
        assert classes == [
            "chat-message user-message",
            "chat-message assistant-message retrieval-message",
            "chat-message assistant-message",
        ]

    def test_annotation_appended_before_reply_starts(self):
        sink = HtmlTranscriptSink()
        sink.on_loading_start()
        sink.on_annotations([RetrievalLink("Doc", "/doc")])
        sink.on_new_message("assistant", "answer", NOW)
        assert sink.blocks[0].css_class.endswith("retrieval-message")

    def test_delta_without_open_message_ignored(self):
        sink = HtmlTranscriptSink()
        sink.on_append_delta("stray")
        assert sink.blocks == []


class TestConsoleSink:
    def test_streamed_output(self):
        out = io.StringIO()
        sink = ConsoleSink(out)
        sink.on_loading_start()
        sink.on_new_message("user", "q", NOW)
        sink.on_annotations([RetrievalLink("Doc", "/doc")])
        sink.on_new_message("assistant", "Hel", NOW)
        sink.on_append_delta("lo")
        sink.on_loading_end()
        text = out.getvalue()
        assert "you:" not in text
        assert "  - Doc </doc>\n" in text
        assert text.endswith("[14:05] bot: Hello\n")

    def test_show_user(self):
        out = io.StringIO()
        sink = ConsoleSink(out, show_user=True)
        sink.on_new_message("user", "question", NOW)
        sink.on_loading_end()
        assert out.getvalue() == "[14:05] you: question\n"
