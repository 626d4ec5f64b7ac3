"""Top-level package for the jetstream-matching project.

This package exposes the public run() helper so callers can do
`python -m jetstream_matching` or `from jetstream_matching import run; run()`.
"""

from importlib import metadata as _metadata

try:
    __version__: str = _metadata.version("jetstream-matching")
except _metadata.PackageNotFoundError:  # pragma: no cover – running from source
    __version__ = "0.0.0"

from .workflows.reindex import run  # convenience re-export

__all__ = ["run", "__version__"]
