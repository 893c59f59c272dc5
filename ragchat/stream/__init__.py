"""Stream protocol handling -- line framing and event parsing."""

from ragchat.stream.decoder import FrameDecoder, iter_lines
from ragchat.stream.parser import SENTINEL, parse_line
from ragchat.stream.schemas import RetrievalLink, StreamEvent

__all__ = [
    "FrameDecoder",
    "RetrievalLink",
    "SENTINEL",
    "StreamEvent",
    "iter_lines",
    "parse_line",
]
