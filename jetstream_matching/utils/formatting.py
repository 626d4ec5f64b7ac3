"""Small text helpers shared by the text generator and match reasons."""

from __future__ import annotations

import re
from typing import Iterable, List, Set

__all__ = ["format_currency", "join_values", "collapse_whitespace", "unique_in_order"]


def format_currency(amount: float | int) -> str:
    """Format *amount* in US dollars with thousands separators.

    Whole amounts drop the cents (``$10,000``); fractional ones keep two
    decimals (``$1,234.50``).
    """
    value = float(amount)
    if value.is_integer():
        return f"${value:,.0f}"
    return f"${value:,.2f}"


def join_values(values: Iterable[str], sep: str = ", ") -> str:
    """Join the non-empty string values of *values*."""
    return sep.join(str(v) for v in values if v)


def collapse_whitespace(text: str) -> str:
    """Collapse runs of whitespace into single spaces."""
    return re.sub(r"\s+", " ", text).strip()


def unique_in_order(values: Iterable[str]) -> List[str]:
    """Deduplicate *values* while preserving first-seen order."""
    seen: Set[str] = set()
    result: List[str] = []
    for value in values:
        if value and value not in seen:
            seen.add(value)
            result.append(value)
    return result
