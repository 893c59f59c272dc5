"""Outbound request building and HTTP transport."""

from ragchat.api.client import CompletionClient, TransportError
from ragchat.api.schemas import ChatMessage, ChatRequest, RagOptions, build_request

__all__ = [
    "ChatMessage",
    "ChatRequest",
    "CompletionClient",
    "RagOptions",
    "TransportError",
    "build_request",
]
