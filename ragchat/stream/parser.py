"""Classify logical stream lines into StreamEvents.

Lines look like SSE data frames (``data: {...}``) but the prefix is
optional. Each line is either the end-of-stream sentinel, a JSON record,
or something else, which is passed through as literal text.

parse_line() is a pure function: deduplication and ordering across lines
belong to the caller.
"""

from __future__ import annotations

import json
import logging
from collections.abc import Callable
from typing import Any

from ragchat.stream.schemas import (
    RETRIEVAL,
    STREAM_END,
    TEXT_DELTA,
    UNPARSABLE,
    RetrievalLink,
    StreamEvent,
)

logger = logging.getLogger(__name__)

FIELD_PREFIX = "data:"
SENTINEL = "[DONE]"

DeltaExtractor = Callable[[dict[str, Any]], str | None]


def _reply_field(record: dict[str, Any]) -> str | None:
    """``{"response": "..."}`` (Workers AI style). Numbers are shown as text."""
    value = record.get("response")
    if isinstance(value, bool):
        return None
    if isinstance(value, (int, float)):
        return str(value) if value else None
    return value if isinstance(value, str) else None


def _choice_delta(record: dict[str, Any]) -> str | None:
    """``{"choices": [{"delta": {"content": "..."}}]}`` (OpenAI style)."""
    choices = record.get("choices")
    if not isinstance(choices, list) or not choices:
        return None
    first = choices[0]
    if not isinstance(first, dict):
        return None
    delta = first.get("delta")
    if not isinstance(delta, dict):
        return None
    value = delta.get("content")
    return value if isinstance(value, str) else None


# Tried in order; first non-empty result wins
DELTA_EXTRACTORS: tuple[DeltaExtractor, ...] = (_reply_field, _choice_delta)


def strip_prefix(line: str) -> str:
    """Remove the ``data:`` field marker and one following space, if present."""
    if line.startswith(FIELD_PREFIX):
        line = line[len(FIELD_PREFIX):]
        if line.startswith(" "):
            line = line[1:]
    return line


def is_sentinel(line: str) -> bool:
    """True for ``[DONE]`` with or without the field marker."""
    return strip_prefix(line.strip()).strip() == SENTINEL


def extract_delta(record: dict[str, Any]) -> str:
    for extractor in DELTA_EXTRACTORS:
        value = extractor(record)
        if value:
            return value
    return ""


def extract_links(record: dict[str, Any]) -> tuple[RetrievalLink, ...]:
    raw = record.get("retrieval")
    if not isinstance(raw, list):
        return ()
    return tuple(RetrievalLink.from_raw(item) for item in raw)


def parse_line(line: str) -> list[StreamEvent]:
    """Turn one logical line into zero or more events.

    Never raises. A record carrying both a retrieval list and a delta
    yields the retrieval event first.
    """
    if not line.strip():
        return []

    if is_sentinel(line):
        return [StreamEvent(type=STREAM_END)]

    body = strip_prefix(line)
    if not body.strip():
        return []

    try:
        record = json.loads(body)
    except ValueError:
        logger.debug("Non-JSON stream line treated as text: %.80r", body)
        return [StreamEvent(type=UNPARSABLE, text=body)]

    if not isinstance(record, dict):
        return []

    events: list[StreamEvent] = []

    links = extract_links(record)
    if links:
        events.append(StreamEvent(type=RETRIEVAL, links=links))

    delta = extract_delta(record)
    if delta:
        events.append(StreamEvent(type=TEXT_DELTA, text=delta))

    return events
