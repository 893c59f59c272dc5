"""Append-only conversation log for the active session."""

from __future__ import annotations

from dataclasses import dataclass
from enum import StrEnum


class Role(StrEnum):
    USER = "user"
    ASSISTANT = "assistant"


@dataclass(frozen=True)
class Turn:
    """A single committed message in a conversation."""

    role: Role
    content: str

    def __post_init__(self) -> None:
        # Accept plain strings ("user"/"assistant") and normalise to Role
        object.__setattr__(self, "role", Role(self.role))

    def to_message(self) -> dict[str, str]:
        return {"role": self.role.value, "content": self.content}


class ConversationHistory:
    """Ordered record of committed turns.

    Only append() mutates it; there is no edit or delete. snapshot()
    hands out an immutable tuple so request building never sees a
    half-updated log.
    """

    def __init__(self) -> None:
        self._turns: list[Turn] = []

    def append(self, turn: Turn) -> None:
        self._turns.append(turn)

    def snapshot(self) -> tuple[Turn, ...]:
        return tuple(self._turns)

    def as_messages(self) -> list[dict[str, str]]:
        """Role/content dicts in send order, as the service expects them."""
        return [turn.to_message() for turn in self._turns]

    def __len__(self) -> int:
        return len(self._turns)

    def __iter__(self):
        return iter(self.snapshot())
