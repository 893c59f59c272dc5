"""Event records produced by the stream parser."""

from __future__ import annotations

from dataclasses import dataclass, field
from typing import Any

# StreamEvent.type values
TEXT_DELTA = "text_delta"
RETRIEVAL = "retrieval"
STREAM_END = "stream_end"
UNPARSABLE = "unparsable"


@dataclass(frozen=True)
class RetrievalLink:
    """One reference surfaced by the retrieval step.

    Both fields come straight from the service and are untrusted.
    """

    heading: str = "Untitled"
    link: str = "#"

    @classmethod
    def from_raw(cls, raw: Any) -> RetrievalLink:
        """Build a link from a raw record, falling back on missing or empty fields."""
        if not isinstance(raw, dict):
            return cls()
        heading = raw.get("heading")
        link = raw.get("link")
        return cls(
            heading=str(heading) if heading else "Untitled",
            link=str(link) if link else "#",
        )


@dataclass(frozen=True)
class StreamEvent:
    """A single event decoded from the completion stream."""

    type: str  # text_delta, retrieval, stream_end, unparsable
    text: str = ""
    links: tuple[RetrievalLink, ...] = field(default_factory=tuple)

    @property
    def is_text(self) -> bool:
        """True for events whose text is shown as assistant output."""
        return self.type in (TEXT_DELTA, UNPARSABLE)
