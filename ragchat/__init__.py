"""ragchat -- streaming client for a retrieval-augmented chat completion service."""

__version__ = "0.1.0"
