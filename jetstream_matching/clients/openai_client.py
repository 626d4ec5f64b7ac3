"""Singleton accessor for the OpenAI SDK client."""

from __future__ import annotations

from openai import OpenAI as _OpenAIClient

from ..config import OPENAI_API_KEY
from ..exceptions import ConfigurationError

_client: _OpenAIClient | None = None


def get_openai(api_key: str | None = None) -> _OpenAIClient:
    """Return a singleton instance of :class:`openai.OpenAI`."""
    global _client
    if _client is None:
        key = api_key or OPENAI_API_KEY
        if not key:
            raise ConfigurationError("OPENAI_API_KEY is not set in environment variables")
        _client = _OpenAIClient(api_key=key)
    return _client

__all__ = ["get_openai"]
