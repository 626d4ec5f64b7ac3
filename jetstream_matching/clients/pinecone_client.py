"""Singleton accessor for Pinecone and helper for obtaining the Index."""

from __future__ import annotations

from typing import Any

from pinecone import Pinecone as _Pinecone

from ..config import PINECONE_API_KEY, PINECONE_INDEX_NAME
from ..exceptions import ConfigurationError

_pc: _Pinecone | None = None


def get_pinecone(api_key: str | None = None) -> _Pinecone:
    """Return a singleton :class:`pinecone.Pinecone` client."""
    global _pc
    if _pc is None:
        key = api_key or PINECONE_API_KEY
        if not key:
            raise ConfigurationError("PINECONE_API_KEY is not set in environment variables")
        _pc = _Pinecone(api_key=key)
    return _pc


def get_index(index_name: str | None = None, api_key: str | None = None) -> Any:
    """Return the configured Pinecone Index instance (the index must already exist)."""
    return get_pinecone(api_key).Index(index_name or PINECONE_INDEX_NAME)

__all__ = ["get_pinecone", "get_index"]
