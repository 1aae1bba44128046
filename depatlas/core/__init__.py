"""
Core functionality exports for depatlas.

Importing from here keeps user-facing imports short:

    from depatlas.core import WorkspaceService, parse_dependency_spec
"""

from __future__ import annotations

from depatlas.core.aggregator import InstalledPackageAggregator
from depatlas.core.data_store import RegistryDataStore
from depatlas.core.discovery import ManifestDiscovery
from depatlas.core.graph import WorkspaceGraphBuilder
from depatlas.core.manifests import ManifestEditor, ManifestKind, manifest_kind
from depatlas.core.package_cache import InstalledPackageCache
from depatlas.core.registry import (
    MavenRegistryClient,
    NpmRegistryClient,
    NuGetRegistryClient,
    RegistryRouter,
)
from depatlas.core.spec_parser import format_dependency_spec_display, parse_dependency_spec
from depatlas.core.updates import UpdateDetector
from depatlas.core.workspace import WorkspaceService

__all__ = [
    "InstalledPackageAggregator",
    "InstalledPackageCache",
    "ManifestDiscovery",
    "ManifestEditor",
    "ManifestKind",
    "MavenRegistryClient",
    "NpmRegistryClient",
    "NuGetRegistryClient",
    "RegistryDataStore",
    "RegistryRouter",
    "UpdateDetector",
    "WorkspaceGraphBuilder",
    "WorkspaceService",
    "format_dependency_spec_display",
    "manifest_kind",
    "parse_dependency_spec",
]
