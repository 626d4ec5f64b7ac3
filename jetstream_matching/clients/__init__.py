"""Convenience re-exports for singleton SDK accessors."""

from .openai_client import get_openai  # noqa: F401
from .pinecone_client import get_index as get_pinecone_index  # noqa: F401
from .pinecone_client import get_pinecone  # noqa: F401
from .mongodb_client import get_mongo_client, get_database  # noqa: F401
from .http_session import get_session as get_http_session  # noqa: F401

__all__ = [
    "get_openai",
    "get_pinecone_index",
    "get_pinecone",
    "get_mongo_client",
    "get_database",
    "get_http_session",
]
