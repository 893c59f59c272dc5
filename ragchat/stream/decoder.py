"""Line framing for the chunked response body.

The transport hands over chunks wherever the network happened to split
them. FrameDecoder reassembles those into newline-terminated lines,
holding back any partial line until its terminator shows up, and decodes
UTF-8 incrementally so a character split across two chunks survives.
"""

from __future__ import annotations

import codecs
import logging
from collections.abc import AsyncIterable, AsyncIterator

logger = logging.getLogger(__name__)


class FrameDecoder:
    """Stateful chunk -> line splitter.

    feed() returns the lines completed by a chunk; flush() returns whatever
    is left once the stream ends. Invalid byte sequences are replaced with
    U+FFFD rather than raising.
    """

    def __init__(self, encoding: str = "utf-8") -> None:
        self._decoder = codecs.getincrementaldecoder(encoding)(errors="replace")
        self._pieces: list[str] = []

    @property
    def pending(self) -> str:
        """Buffered text not yet terminated by a newline."""
        return "".join(self._pieces)

    def feed(self, chunk: bytes | str) -> list[str]:
        """Consume one chunk and return every line it completes."""
        if isinstance(chunk, bytes):
            text = self._decoder.decode(chunk)
        else:
            text = chunk
        if not text:
            return []

        # Only the new text is scanned; earlier pieces hold no newline
        if "\n" not in text:
            self._pieces.append(text)
            return []

        first, *complete, rest = text.split("\n")
        lines = ["".join(self._pieces) + first, *complete]
        self._pieces = [rest] if rest else []
        return [_strip_cr(line) for line in lines]

    def flush(self) -> list[str]:
        """Drain the decoder at end of stream.

        A trailing line that never received its terminator is returned as
        a final line so the last record is not lost.
        """
        tail = "".join(self._pieces) + self._decoder.decode(b"", final=True)
        self._pieces = []
        self._decoder.reset()
        if not tail:
            return []
        lines = [_strip_cr(line) for line in tail.split("\n")]
        if lines[-1] == "":
            lines.pop()
        if lines:
            logger.debug("Flushing unterminated line at end of stream (%d chars)", len(lines[-1]))
        return lines


def _strip_cr(line: str) -> str:
    return line[:-1] if line.endswith("\r") else line


async def iter_lines(
    chunks: AsyncIterable[bytes | str],
    decoder: FrameDecoder | None = None,
) -> AsyncIterator[str]:
    """Yield logical lines from an async chunk source, in arrival order."""
    decoder = decoder or FrameDecoder()
    async for chunk in chunks:
        for line in decoder.feed(chunk):
            yield line
    for line in decoder.flush():
        yield line
