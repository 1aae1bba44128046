"""
Ordering helpers shared by discovery, aggregation and graph output.

Output ordering has to be stable across runs and platforms, so every list
the tool prints or serializes is sorted with :func:`locale_key`: a
case-insensitive comparison with a case-sensitive tie-break.
"""

from __future__ import annotations

from typing import Tuple


def locale_key(value: str) -> Tuple[str, str]:
    """Sort key approximating a locale-aware string comparison.

    Example:
        >>> sorted(["b", "B", "a"], key=locale_key)
        ['a', 'B', 'b']
    """
    return (value.casefold(), value)
