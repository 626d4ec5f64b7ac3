"""Batch workflows that drive the service layer end to end."""

from .reindex import run  # noqa: F401

__all__ = ["run"]
