"""Presentation side: the render sink interface and stock implementations."""

from ragchat.render.base import RenderSink, apply_command
from ragchat.render.console import ConsoleSink
from ragchat.render.html import HtmlTranscriptSink, render_annotations

__all__ = [
    "ConsoleSink",
    "HtmlTranscriptSink",
    "RenderSink",
    "apply_command",
    "render_annotations",
]
