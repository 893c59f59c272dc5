"""Turn lifecycle: pure state transitions and the session that drives them."""

from ragchat.chat.session import ChatSession
from ragchat.chat.state import Lifecycle, TurnSessionState, advance, begin, connected, fail

__all__ = [
    "ChatSession",
    "Lifecycle",
    "TurnSessionState",
    "advance",
    "begin",
    "connected",
    "fail",
]
