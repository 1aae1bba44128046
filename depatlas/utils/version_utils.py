"""
Version comparison utilities for depatlas.

npm and Maven/NuGet versions do not share a grammar, so this module does not
try to be a compliant SemVer or Maven ordering. It implements one pragmatic
ordering that handles the shapes actually published to those registries::

    1.2.3            1.2.3.4           5.3.20.RELEASE
    2.0.0-SNAPSHOT   2.0.0-M1          1.0.0-rc2
    1.0.0-alpha      1.0.0-beta        3.1.0.Final

Typical usage::

    >>> compare_versions("1.0.0-rc1", "1.0.0")
    -1
    >>> get_update_type("2.0.0-SNAPSHOT", "2.0.0")
    'prerelease'
"""

from __future__ import annotations

import re
import functools
from dataclasses import dataclass
from typing import Iterable, List, Optional

__all__ = [
    "VersionComponents",
    "parse_version_components",
    "compare_versions",
    "is_newer_version",
    "get_update_type",
    "sort_versions",
]

_RELEASE_QUALIFIER_RE = re.compile(r"^(.+?)\.(RELEASE|FINAL)$", re.IGNORECASE)
_PRERELEASE_RE = re.compile(
    r"^(.+?)[-._](M\d+|RC\d+|SNAPSHOT|alpha|beta|a\d+|b\d+)$",
    re.IGNORECASE,
)
_SEGMENT_SPLIT_RE = re.compile(r"[.-]")
_LEADING_INT_RE = re.compile(r"\s*([+-]?\d+)")
_DIGITS_RE = re.compile(r"\d+")


@dataclass(frozen=True)
class VersionComponents:
    """Numeric view of a version string.

    ``build`` is the fourth numeric segment and stays ``None`` when the
    version has three segments or fewer. ``prerelease`` is the upper-cased
    qualifier token (``SNAPSHOT``, ``RC1``, ``M2``, ``ALPHA`` ...).
    """

    major: int
    minor: int
    patch: int
    build: Optional[int] = None
    prerelease: Optional[str] = None


def _leading_int(segment: str) -> int:
    """Parse the leading integer of ``segment``; non-numeric segments are 0."""
    match = _LEADING_INT_RE.match(segment)
    return int(match.group(1)) if match else 0


def parse_version_components(version: str) -> VersionComponents:
    """Split a version string into numeric components and a prerelease token.

    Steps:

    1. ``.RELEASE`` / ``.FINAL`` suffixes are dropped (Maven treats them as
       plain releases).
    2. A trailing ``M<n>``, ``RC<n>``, ``SNAPSHOT``, ``alpha``/``a<n>`` or
       ``beta``/``b<n>`` token separated by ``.``, ``_`` or ``-`` is removed
       and kept (upper-cased) as the prerelease.
    3. The remainder is split on ``.`` and ``-``; each segment contributes
       its leading integer, anything non-numeric counts as 0.

    Example::

        >>> parse_version_components("5.3.20.RELEASE")
        VersionComponents(major=5, minor=3, patch=20, build=None, prerelease=None)
        >>> parse_version_components("2.0.0-M1")
        VersionComponents(major=2, minor=0, patch=0, build=None, prerelease='M1')
    """
    clean = version.strip()

    qualifier = _RELEASE_QUALIFIER_RE.match(clean)
    if qualifier:
        clean = qualifier.group(1)

    prerelease: Optional[str] = None
    pre_match = _PRERELEASE_RE.match(clean)
    if pre_match:
        clean = pre_match.group(1)
        prerelease = pre_match.group(2).upper()

    parts = [_leading_int(segment) for segment in _SEGMENT_SPLIT_RE.split(clean)]

    return VersionComponents(
        major=parts[0] if len(parts) > 0 else 0,
        minor=parts[1] if len(parts) > 1 else 0,
        patch=parts[2] if len(parts) > 2 else 0,
        build=parts[3] if len(parts) > 3 else None,
        prerelease=prerelease,
    )


def _prerelease_rank(token: str) -> int:
    """Rank a prerelease token: SNAPSHOT < ALPHA < BETA < M<n> < RC<n> < other."""
    if token.startswith("SNAPSHOT"):
        return 0
    if token.startswith("ALPHA") or token.startswith("A"):
        return 1
    if token.startswith("BETA") or token.startswith("B"):
        return 2
    if token.startswith("M"):
        return 3 + _leading_int(token[1:])
    if token.startswith("RC"):
        return 100 + _leading_int(token[2:])
    return 200


def _first_number(token: str) -> int:
    match = _DIGITS_RE.search(token)
    return int(match.group(0)) if match else 0


def _compare_prerelease(left: str, right: str) -> int:
    left, right = left.upper(), right.upper()

    rank_diff = _prerelease_rank(left) - _prerelease_rank(right)
    if rank_diff:
        return rank_diff

    return _first_number(left) - _first_number(right)


def _sign(value: int) -> int:
    return (value > 0) - (value < 0)


def compare_versions(left: str, right: str) -> int:
    """Compare two version strings.

    Numeric components are compared in order (major, minor, patch, build).
    A prerelease sorts below the release with the same numbers; two
    prereleases are ordered by :func:`_prerelease_rank`, then by the number
    embedded in their token.

    Returns:
        ``-1`` if ``left < right``, ``0`` if equal, ``1`` if ``left > right``.
    """
    a = parse_version_components(left)
    b = parse_version_components(right)

    for a_part, b_part in ((a.major, b.major), (a.minor, b.minor), (a.patch, b.patch)):
        if a_part != b_part:
            return _sign(a_part - b_part)

    # A missing build segment counts as 0 once either side has one.
    if a.build is not None or b.build is not None:
        a_build = a.build or 0
        b_build = b.build or 0
        if a_build != b_build:
            return _sign(a_build - b_build)

    if a.prerelease and not b.prerelease:
        return -1
    if not a.prerelease and b.prerelease:
        return 1
    if a.prerelease and b.prerelease:
        return _sign(_compare_prerelease(a.prerelease, b.prerelease))

    return 0


def is_newer_version(current: str, candidate: str) -> bool:
    """Return True if ``candidate`` orders strictly after ``current``."""
    return compare_versions(current, candidate) < 0


def sort_versions(versions: Iterable[str], *, reverse: bool = False) -> List[str]:
    """Sort version strings with :func:`compare_versions`."""
    return sorted(
        versions,
        key=functools.cmp_to_key(compare_versions),
        reverse=reverse,
    )


def get_update_type(current: str, latest: str) -> Optional[str]:
    """Classify the move from ``current`` to ``latest``.

    Returns:
        ``"major"``, ``"minor"``, ``"patch"`` or ``"prerelease"``, or ``None``
        when ``latest`` is not strictly newer than ``current``.

    A fourth (build) segment counts as a patch bump, but only when both
    versions carry one. Moving off a prerelease without a numeric bump, or
    any remaining change that involves a prerelease, is ``"prerelease"``.

    Examples:
        >>> get_update_type("1.2.3", "2.0.0")
        'major'
        >>> get_update_type("1.2.3", "1.2.3")
        >>> get_update_type("1.0.0-rc1", "1.0.0")
        'prerelease'
    """
    if compare_versions(current, latest) >= 0:
        return None

    cur = parse_version_components(current)
    new = parse_version_components(latest)

    if new.major > cur.major:
        return "major"
    if new.minor > cur.minor:
        return "minor"
    if new.patch > cur.patch:
        return "patch"

    if new.build is not None and cur.build is not None and new.build > cur.build:
        return "patch"

    if cur.prerelease or new.prerelease:
        return "prerelease"

    return None
