"""ragchat entry point.

Composition root: Settings -> CompletionClient -> ChatSession (+ sink).
Run as a small REPL:

    RAGCHAT_API_URL=https://example.workers.dev/v1/chat/completions python -m ragchat.main
"""

from __future__ import annotations

import asyncio
import logging

from ragchat.api.client import CompletionClient
from ragchat.chat.session import ChatSession
from ragchat.config import Settings
from ragchat.render.base import RenderSink
from ragchat.render.console import ConsoleSink

logger = logging.getLogger(__name__)

QUIT_COMMANDS = frozenset({"/quit", "/exit"})


def create_session(
    settings: Settings,
    sink: RenderSink,
    client: CompletionClient | None = None,
) -> ChatSession:
    """Wire transport, history and sink together for one conversation."""
    client = client or CompletionClient(settings)
    return ChatSession(client, sink, settings)


async def repl(session: ChatSession) -> None:
    """Read lines from stdin until EOF or /quit, submitting each one."""
    session.greet()
    while True:
        try:
            line = await asyncio.to_thread(input, "> ")
        except EOFError:
            break
        if line.strip() in QUIT_COMMANDS:
            break
        await session.submit(line)


async def main() -> None:
    """Entry point."""
    settings = Settings()
    logging.basicConfig(
        level=settings.log_level.upper(),
        format="%(asctime)s %(name)s %(levelname)s %(message)s",
    )

    session = create_session(settings, ConsoleSink())
    logger.info("Starting chat session %s", session.session_id)
    try:
        await repl(session)
    finally:
        await session.aclose()


def run() -> None:
    try:
        asyncio.run(main())
    except KeyboardInterrupt:
        pass


if __name__ == "__main__":
    run()
