"""Exception types raised across the matching pipeline."""

from __future__ import annotations


class ConfigurationError(EnvironmentError):
    """A required credential or setting is missing."""


class EmbeddingFailure(RuntimeError):
    """No provider could produce an embedding.

    ``cause`` holds the primary provider's exception; when a fallback was
    attempted its exception is chained as ``__cause__`` and also kept on
    ``fallback_error``.
    """

    def __init__(
        self,
        message: str,
        *,
        provider: str,
        stage: str,
        cause: BaseException | None = None,
        fallback_error: BaseException | None = None,
    ) -> None:
        super().__init__(message)
        self.provider = provider
        self.stage = stage
        self.cause = cause
        self.fallback_error = fallback_error


class VectorStoreError(RuntimeError):
    """The vector database rejected or failed a request."""


class DimensionMismatchError(VectorStoreError):
    """A vector's length does not match the store's configured dimension."""


class MatchingError(RuntimeError):
    """Matching failed at some stage of the pipeline."""


class ProfileNotFound(MatchingError):
    """The querying user's profile does not exist."""

    def __init__(self, user_id: str) -> None:
        super().__init__(f"User profile not found: {user_id}")
        self.user_id = user_id


class InvalidStatusTransition(ValueError):
    """A JetShare offer was moved to a status its lifecycle does not allow."""


__all__ = [
    "ConfigurationError",
    "EmbeddingFailure",
    "VectorStoreError",
    "DimensionMismatchError",
    "MatchingError",
    "ProfileNotFound",
    "InvalidStatusTransition",
]
