"""Utility functions for the matching pipeline.

Re-exports the datetime and formatting helpers so that imports like
`from ..utils import format_currency` or `from ..utils import parse_datetime`
work as expected.
"""

from .datetime_utils import (  # noqa: F401
    get_current_timestamp,
    parse_datetime,
    as_utc,
    to_iso,
    format_date,
    format_time,
    format_datetime,
)
from .formatting import format_currency, join_values, collapse_whitespace, unique_in_order  # noqa: F401

__all__ = [
    "get_current_timestamp",
    "parse_datetime",
    "as_utc",
    "to_iso",
    "format_date",
    "format_time",
    "format_datetime",
    "format_currency",
    "join_values",
    "collapse_whitespace",
    "unique_in_order",
]
