"""Settings via pydantic-settings with RAGCHAT_ env prefix.

A single .env file (or plain environment variables) drives the endpoint,
the retrieval options sent with every request, and the canned texts the
client renders on its own.
"""

from pydantic import Field
from pydantic_settings import BaseSettings, SettingsConfigDict


class Settings(BaseSettings):
    model_config = SettingsConfigDict(env_prefix="RAGCHAT_", env_file=".env")

    # Completion service
    api_url: str = "https://rag-ai-tutorial.mt18843011356.workers.dev/v1/chat/completions"
    api_timeout_connect: int = 10  # seconds
    api_timeout_read: int = 120  # seconds

    # Retrieval options forwarded in the request body
    rag_enabled: bool = True
    rag_namespace: str = "default"
    rag_top_k: int = Field(3, ge=1)

    log_level: str = "info"

    # Client-side texts
    welcome_message: str = (
        "\U0001f44b Hi! I'm here to help you learn more about projects posted "
        "on my website. What would you like to know?"
    )
    fallback_message: str = (
        "Sorry, I'm having trouble connecting right now. "
        "Please try again later! \U0001f605"
    )
