"""
Dependency specifier model for depatlas.

A :class:`DependencySpec` is the classified form of the raw version string a
manifest declares for one dependency (``^1.2.3``, ``workspace:*``,
``file:../lib``, ``github:user/repo`` ...). Specs are immutable and created
on demand by :func:`depatlas.core.spec_parser.parse_dependency_spec`.
"""

from __future__ import annotations

from enum import Enum
from dataclasses import dataclass
from typing import Any, Dict, Optional


class SpecKind(str, Enum):
    """What a raw dependency specifier points at."""

    SEMVER = "semver"
    TAG = "tag"
    WORKSPACE = "workspace"
    FILE = "file"
    PATH = "path"
    GIT = "git"
    UNKNOWN = "unknown"

    @property
    def is_local(self) -> bool:
        """True for kinds that never resolve against a registry by design."""
        return self in _LOCAL_KINDS


_LOCAL_KINDS = frozenset({SpecKind.WORKSPACE, SpecKind.FILE, SpecKind.PATH, SpecKind.GIT})


@dataclass(frozen=True)
class DependencySpec:
    """Parsed dependency specifier.

    Attributes:
        raw: The trimmed specifier as written in the manifest.
        kind: Classification of the specifier.
        display_text: Text shown to users (the stripped version for semver).
        is_registry_resolvable: Whether a registry lookup makes sense.
        normalized_version: Range operators stripped (semver) or the tag.
    """

    raw: str
    kind: SpecKind
    display_text: str
    is_registry_resolvable: bool
    normalized_version: Optional[str] = None

    def to_json(self) -> Dict[str, Any]:
        """Return a JSON-serializable representation."""
        return {
            "raw": self.raw,
            "kind": self.kind.value,
            "normalized_version": self.normalized_version,
            "display_text": self.display_text,
            "is_registry_resolvable": self.is_registry_resolvable,
        }
