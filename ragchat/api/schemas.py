"""Pydantic DTOs for the outbound completion request."""

from __future__ import annotations

from pydantic import BaseModel, ConfigDict, Field

from ragchat.config import Settings
from ragchat.history import ConversationHistory, Role


class ChatMessage(BaseModel):
    role: Role
    content: str


class RagOptions(BaseModel):
    """Retrieval settings forwarded to the service."""

    model_config = ConfigDict(populate_by_name=True)

    enable: bool = True
    namespace: str = "default"
    top_k: int = Field(3, ge=1, alias="topK")

    @classmethod
    def from_settings(cls, settings: Settings) -> RagOptions:
        return cls(
            enable=settings.rag_enabled,
            namespace=settings.rag_namespace,
            top_k=settings.rag_top_k,
        )


class ChatRequest(BaseModel):
    """Body of the streaming completion POST."""

    messages: list[ChatMessage]
    stream: bool = True
    rag: RagOptions = Field(default_factory=RagOptions)

    def to_payload(self) -> dict:
        return self.model_dump(mode="json", by_alias=True)


def build_request(history: ConversationHistory, user_text: str, rag: RagOptions) -> ChatRequest:
    """Full history in send order followed by the new user turn."""
    messages = [ChatMessage(**message) for message in history.as_messages()]
    messages.append(ChatMessage(role=Role.USER, content=user_text))
    return ChatRequest(messages=messages, stream=True, rag=rag)
