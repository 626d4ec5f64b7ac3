"""Singleton accessor for the MongoDB client."""

from __future__ import annotations

from pymongo import MongoClient
from pymongo.database import Database

from ..config import MONGODB_DATABASE, MONGODB_URI

_client: MongoClient | None = None


def get_mongo_client(uri: str | None = None) -> MongoClient:
    """Return a singleton :class:`pymongo.MongoClient`."""
    global _client
    if _client is None:
        _client = MongoClient(uri or MONGODB_URI)
    return _client


def get_database(name: str | None = None, uri: str | None = None) -> Database:
    """Return the application database holding profiles, flights, offers and logs."""
    return get_mongo_client(uri)[name or MONGODB_DATABASE]

__all__ = ["get_mongo_client", "get_database"]
