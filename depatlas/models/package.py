"""
Installed package model for depatlas.

An :class:`InstalledPackage` is one dependency edge: a package name declared
in one bucket of one manifest. The same package declared by three manifests
yields three instances. Instances are rebuilt on every manifest parse and
held by :class:`depatlas.core.package_cache.InstalledPackageCache` until a
change notification or an explicit refresh invalidates them.
"""

from __future__ import annotations

import dataclasses
from enum import Enum
from dataclasses import dataclass
from typing import Any, Dict, Optional, Union

from depatlas.models.spec import SpecKind


class DependencyType(str, Enum):
    """Dependency bucket, named after the package.json fields."""

    DEPENDENCIES = "dependencies"
    DEV = "devDependencies"
    PEER = "peerDependencies"
    OPTIONAL = "optionalDependencies"


class Ecosystem(str, Enum):
    """Registry family a package is resolved against."""

    NPM = "npm"
    MAVEN = "maven"
    NUGET = "nuget"


@dataclass(frozen=True)
class InstalledPackage:
    """One declared dependency of one manifest.

    Attributes:
        name: Package name (``group:artifact`` for Maven).
        current_version: Display string for the declared version.
        type: Dependency bucket.
        manifest_path: Absolute path of the owning manifest.
        ecosystem: Registry family used for latest-version lookups.
        workspace_folder_path: Workspace root containing the manifest.
        manifest_name: Name of the owning project, if it declares one.
        resolved_version: Registry-comparable version, if any.
        version_specifier: Raw specifier as written.
        spec_kind: Classification of ``version_specifier``.
        is_registry_resolvable: Whether updates can be looked up at all.
        has_update: Always ``update_type is not None``.
        latest_version: Latest registry version, once looked up.
        update_type: ``major``/``minor``/``patch``/``prerelease``.
    """

    name: str
    current_version: str
    type: DependencyType
    manifest_path: str
    ecosystem: Ecosystem = Ecosystem.NPM
    workspace_folder_path: Optional[str] = None
    manifest_name: Optional[str] = None
    resolved_version: Optional[str] = None
    version_specifier: Optional[str] = None
    spec_kind: SpecKind = SpecKind.SEMVER
    is_registry_resolvable: bool = True
    has_update: bool = False
    latest_version: Optional[str] = None
    update_type: Optional[str] = None

    def with_latest(
        self,
        latest_version: str,
        update_type: Optional[str],
    ) -> "InstalledPackage":
        """Return a copy carrying lookup results.

        ``has_update`` is derived from ``update_type`` so the two never
        disagree. Packages that are not registry resolvable never get an
        update type.
        """
        if not self.is_registry_resolvable:
            update_type = None
        return dataclasses.replace(
            self,
            latest_version=latest_version,
            update_type=update_type,
            has_update=update_type is not None,
        )

    def to_json(self) -> Dict[str, Any]:
        """Return a JSON-serializable representation."""
        entry: Dict[str, Any] = {
            "name": self.name,
            "current_version": self.current_version,
            "type": self.type.value,
            "manifest_path": self.manifest_path,
            "ecosystem": self.ecosystem.value,
            "spec_kind": self.spec_kind.value,
            "is_registry_resolvable": self.is_registry_resolvable,
            "has_update": self.has_update,
        }
        optional = {
            "workspace_folder_path": self.workspace_folder_path,
            "manifest_name": self.manifest_name,
            "resolved_version": self.resolved_version,
            "version_specifier": self.version_specifier,
            "latest_version": self.latest_version,
            "update_type": self.update_type,
        }
        entry.update({k: v for k, v in optional.items() if v is not None})
        return entry


# ---------------------------------------------------------------------------
# Scopes
# ---------------------------------------------------------------------------


@dataclass(frozen=True)
class ManifestScope:
    """Restrict an operation to the entries of one manifest."""

    manifest_path: str

    def matches(self, package: InstalledPackage) -> bool:
        return package.manifest_path == self.manifest_path


@dataclass(frozen=True)
class FolderScope:
    """Restrict an operation to the manifests of one workspace folder."""

    workspace_folder_path: str

    def matches(self, package: InstalledPackage) -> bool:
        return package.workspace_folder_path == self.workspace_folder_path


#: A refresh/update scope: exactly one manifest or one workspace folder.
PackageScope = Union[ManifestScope, FolderScope]


# ---------------------------------------------------------------------------
# Change notifications and operation results
# ---------------------------------------------------------------------------


class ChangeKind(str, Enum):
    """Kind of file-system notification delivered to the aggregator."""

    CREATED = "created"
    CHANGED = "changed"
    DELETED = "deleted"
    FOLDERS_CHANGED = "folders-changed"


@dataclass(frozen=True)
class ManifestChangeEvent:
    """A manifest create/change/delete or a workspace folder set change.

    ``path`` is ``None`` for :attr:`ChangeKind.FOLDERS_CHANGED`.
    """

    kind: ChangeKind
    path: Optional[str] = None


@dataclass(frozen=True)
class OperationResult:
    """Outcome of a mutating workspace operation.

    Attributes:
        success: Whether the operation did what was asked.
        message: Human-readable summary, set on failure.
        updated: Number of manifests written.
    """

    success: bool
    message: str = ""
    updated: int = 0

    @classmethod
    def failure(cls, message: str) -> "OperationResult":
        return cls(success=False, message=message)


@dataclass(frozen=True)
class ManifestInfo:
    """A manifest contributing at least one installed package."""

    path: str
    name: str
    workspace_folder_path: Optional[str] = None

    def to_json(self) -> Dict[str, Any]:
        return {
            "path": self.path,
            "name": self.name,
            "workspace_folder_path": self.workspace_folder_path,
        }
