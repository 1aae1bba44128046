"""
Dependency specifier classification.

:func:`parse_dependency_spec` is total: every string yields a
:class:`DependencySpec`, unparseable input becomes :attr:`SpecKind.UNKNOWN`.
Classification order, first match wins::

    ""                       -> unknown
    workspace:*              -> workspace
    file:../x, link:../x     -> file
    ./x  ../x  /x  .\\x      -> path
    git+..., github:u/r ...  -> git
    latest, next, ...        -> tag
    ^1.2.3, ~1.2, >=1        -> semver
    anything else            -> unknown
"""

from __future__ import annotations

import re
from typing import FrozenSet, Tuple

from depatlas.models.spec import DependencySpec, SpecKind

#: Distribution tags that registries resolve to a concrete version.
TAG_SPECS: FrozenSet[str] = frozenset(
    {"latest", "next", "beta", "alpha", "rc", "canary", "nightly", "dev", "lts"}
)

_FILE_PREFIXES: Tuple[str, ...] = ("file:", "link:")
_PATH_PREFIXES: Tuple[str, ...] = ("./", "../", "/", ".\\", "..\\")
_GIT_PREFIXES: Tuple[str, ...] = ("git+", "git@", "github:", "gitlab:", "bitbucket:")

_GIT_URL_RE = re.compile(r"^https?://.+\.git(?:#.+)?$", re.IGNORECASE)
_RANGE_OPERATORS_RE = re.compile(r"^[\^~<>=\s]+")
_SEMVER_LIKE_RE = re.compile(r"^\d+(\.\d+){0,2}([.-][0-9A-Za-z.-]+)?$")


def _spec(raw: str, kind: SpecKind, display: str = "") -> DependencySpec:
    return DependencySpec(
        raw=raw,
        kind=kind,
        display_text=display or raw,
        is_registry_resolvable=False,
    )


def parse_dependency_spec(raw: str) -> DependencySpec:
    """Classify a raw dependency specifier.

    Examples:
        >>> parse_dependency_spec("^1.2.3").normalized_version
        '1.2.3'
        >>> parse_dependency_spec("workspace:*").kind
        <SpecKind.WORKSPACE: 'workspace'>
    """
    value = (raw or "").strip()

    if not value:
        return _spec(value, SpecKind.UNKNOWN)

    if value.startswith("workspace:"):
        return _spec(value, SpecKind.WORKSPACE)

    if value.startswith(_FILE_PREFIXES):
        return _spec(value, SpecKind.FILE)

    if value.startswith(_PATH_PREFIXES):
        return _spec(value, SpecKind.PATH)

    if value.startswith(_GIT_PREFIXES) or _GIT_URL_RE.match(value):
        return _spec(value, SpecKind.GIT)

    if value.lower() in TAG_SPECS:
        return DependencySpec(
            raw=value,
            kind=SpecKind.TAG,
            display_text=value,
            is_registry_resolvable=True,
            normalized_version=value,
        )

    normalized = _RANGE_OPERATORS_RE.sub("", value)
    if _SEMVER_LIKE_RE.match(normalized):
        return DependencySpec(
            raw=value,
            kind=SpecKind.SEMVER,
            display_text=normalized,
            is_registry_resolvable=True,
            normalized_version=normalized,
        )

    return _spec(value, SpecKind.UNKNOWN)


def format_dependency_spec_display(
    spec: DependencySpec,
    *,
    workspace_local: bool = False,
    workspace_self: bool = False,
) -> str:
    """Render a specifier for humans.

    ``workspace_self`` wins over ``workspace_local``, which wins over the
    kind-based defaults.
    """
    if workspace_self:
        return f"workspace self ({spec.raw})"
    if workspace_local or spec.kind is SpecKind.WORKSPACE:
        return f"workspace local ({spec.raw})"
    if spec.kind in (SpecKind.FILE, SpecKind.PATH):
        return f"local path ({spec.raw})"
    if spec.kind is SpecKind.GIT:
        return f"git ({spec.raw})"
    return spec.display_text


def strip_local_spec_prefix(raw: str) -> str:
    """Path part of a ``file:``/``link:`` specifier; other input unchanged."""
    for prefix in _FILE_PREFIXES:
        if raw.startswith(prefix):
            return raw[len(prefix):]
    return raw
