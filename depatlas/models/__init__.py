"""
Unified data model exports for depatlas.

Example:
    >>> from depatlas.models import InstalledPackage, DependencySpec
"""

from __future__ import annotations

from depatlas.models.spec import DependencySpec, SpecKind
from depatlas.models.package import (
    ChangeKind,
    DependencyType,
    Ecosystem,
    FolderScope,
    InstalledPackage,
    ManifestChangeEvent,
    ManifestInfo,
    ManifestScope,
    OperationResult,
    PackageScope,
)
from depatlas.models.workspace import (
    MonorepoTool,
    WorkspaceAlignmentIssue,
    WorkspaceDependencyConsumer,
    WorkspaceProjectDependency,
    WorkspaceProjectGraph,
    WorkspaceProjectNode,
)

__all__ = [
    "DependencySpec",
    "SpecKind",
    "DependencyType",
    "Ecosystem",
    "InstalledPackage",
    "ManifestScope",
    "FolderScope",
    "PackageScope",
    "ChangeKind",
    "ManifestChangeEvent",
    "ManifestInfo",
    "OperationResult",
    "MonorepoTool",
    "WorkspaceProjectDependency",
    "WorkspaceProjectNode",
    "WorkspaceDependencyConsumer",
    "WorkspaceAlignmentIssue",
    "WorkspaceProjectGraph",
]
