"""
Workspace service: the public entry point of the dependency engine.

:class:`WorkspaceService` wires discovery, aggregation, update detection,
the project graph and manifest editing together for one set of workspace
folders. Its operations never raise for runtime conditions: unreadable
manifests are skipped, failed lookups mean "no update info", and edits
report ``False`` or a failed :class:`~depatlas.models.OperationResult`.

Typical usage::

    async with HTTPClient() as client:
        registry = RegistryDataStore(RegistryRouter.create(client))
        service = WorkspaceService(["/path/to/repo"], registry=registry)

        outdated = await service.get_updatable_packages()
        graph = await service.get_workspace_project_graph()
"""

from __future__ import annotations

import asyncio
from pathlib import Path
from typing import Callable, Iterable, List, Optional, Sequence

from depatlas.constants import DEFAULT_UPDATE_BATCH_SIZE
from depatlas.core.aggregator import ChangeListener, InstalledPackageAggregator
from depatlas.core.data_store import LatestVersionLookup
from depatlas.core.discovery import ManifestDiscovery
from depatlas.core.graph import WorkspaceGraphBuilder
from depatlas.core.manifests import ManifestEditor, ManifestKind, manifest_kind
from depatlas.core.spec_parser import parse_dependency_spec
from depatlas.core.updates import UpdateDetector
from depatlas.exceptions import DepAtlasError
from depatlas.models.package import (
    DependencyType,
    InstalledPackage,
    ManifestChangeEvent,
    ManifestInfo,
    ManifestScope,
    OperationResult,
    PackageScope,
)
from depatlas.models.workspace import WorkspaceProjectGraph
from depatlas.nuget.style import (
    NuGetManagementStyle,
    detect_management_style,
    order_install_targets,
)
from depatlas.utils.filesystem import ManifestFileSystem
from depatlas.utils.logger import get_logger

logger = get_logger("workspace")

_NO_REGISTRY = "No registry client is configured"


def _is_registry_resolvable(spec: str) -> bool:
    return parse_dependency_spec(spec).is_registry_resolvable


class WorkspaceService:
    """Dependency operations for a set of workspace folders.

    Args:
        workspace_folders: Root folders, in priority order.
        fs: File system capability; a real one by default.
        registry: Latest-version lookup. Without one, update operations
            return empty or failed results.
        exclude_dirs: Extra directory names skipped during discovery.
        update_batch_size: Concurrent registry lookups per batch.
    """

    def __init__(
        self,
        workspace_folders: Sequence[str],
        *,
        fs: Optional[ManifestFileSystem] = None,
        registry: Optional[LatestVersionLookup] = None,
        exclude_dirs: Iterable[str] = (),
        update_batch_size: int = DEFAULT_UPDATE_BATCH_SIZE,
    ) -> None:
        self.fs = fs or ManifestFileSystem()
        self.discovery = ManifestDiscovery(self.fs, workspace_folders, exclude_dirs=exclude_dirs)
        self.aggregator = InstalledPackageAggregator(self.fs, self.discovery)
        self.graph_builder = WorkspaceGraphBuilder(self.fs, self.discovery)
        self.editor = ManifestEditor(self.fs)
        self.registry = registry
        self.update_batch_size = update_batch_size

    # -- installed packages ----------------------------------------------------

    async def get_installed_packages(
        self,
        scope: Optional[PackageScope] = None,
    ) -> List[InstalledPackage]:
        if scope is None:
            return await self.aggregator.get_installed_packages()
        return await self.aggregator.get_installed_packages_for_scope(scope)

    async def refresh_installed_packages(
        self,
        scope: Optional[PackageScope] = None,
    ) -> List[InstalledPackage]:
        return await self.aggregator.refresh_installed_packages(scope)

    async def get_manifest_infos(self) -> List[ManifestInfo]:
        return await self.aggregator.get_manifest_infos()

    def handle_change(self, event: ManifestChangeEvent) -> Optional[PackageScope]:
        return self.aggregator.handle_change(event)

    def subscribe(self, listener: ChangeListener) -> Callable[[], None]:
        return self.aggregator.subscribe(listener)

    # -- updates ----------------------------------------------------------------

    async def get_updatable_packages(
        self,
        scope: Optional[PackageScope] = None,
    ) -> List[InstalledPackage]:
        """Installed packages with a newer registry version.

        Returns an empty list when no registry is configured.
        """
        if self.registry is None:
            logger.warning("%s; skipping update detection", _NO_REGISTRY)
            return []

        packages = await self.get_installed_packages(scope)
        detector = UpdateDetector(self.registry, self.update_batch_size)
        return await detector.get_updatable_packages(packages)

    # -- workspace graph -----------------------------------------------------------

    async def get_workspace_project_graph(self) -> WorkspaceProjectGraph:
        return await self.graph_builder.build()

    def _align_sync(self, package_name: str, target_version: str) -> int:
        updated = 0
        for path in self.discovery.get_package_json_files():
            if self.editor.align_package_json(path, package_name, target_version, _is_registry_resolvable):
                updated += 1
        return updated

    async def align_workspace_dependency_versions(self, package_name: str, target_version: str) -> int:
        """Set ``package_name`` to ``target_version`` in every package.json.

        Only registry-resolvable entries that differ are rewritten.

        Returns:
            Number of manifests written.
        """
        updated = await asyncio.to_thread(self._align_sync, package_name, target_version)
        if updated > 0:
            self.aggregator.invalidate()
        logger.info("Aligned %s to %s in %d manifests", package_name, target_version, updated)
        return updated

    # -- manifest edits -------------------------------------------------------------

    def _edited(self, path: str, changed: bool) -> bool:
        if changed:
            self.aggregator.invalidate(ManifestScope(str(Path(path).resolve())))
        return changed

    def update_package_json(
        self,
        path: str,
        name: str,
        version: str,
        dep_type: DependencyType = DependencyType.DEPENDENCIES,
    ) -> bool:
        return self._edited(path, self.editor.update_package_json(path, name, version, dep_type))

    def update_maven_dependency(self, pom_path: str, group_id: str, artifact_id: str, version: str) -> bool:
        return self._edited(
            pom_path, self.editor.update_maven_dependency(pom_path, group_id, artifact_id, version)
        )

    def update_cpm_package_version(self, props_path: str, package_id: str, version: str) -> bool:
        return self._edited(
            props_path, self.editor.update_cpm_package_version(props_path, package_id, version)
        )

    def update_paket_dependency(self, path: str, package_id: str, version: str) -> bool:
        return self._edited(path, self.editor.update_paket_dependency(path, package_id, version))

    def update_cake_reference(self, path: str, package_id: str, version: str) -> bool:
        return self._edited(path, self.editor.update_cake_reference(path, package_id, version))

    def _apply_version(self, package: InstalledPackage, version: str) -> bool:
        path = package.manifest_path
        kind = manifest_kind(path)

        if kind is ManifestKind.PACKAGE_JSON:
            return self.update_package_json(path, package.name, version, package.type)
        if kind is ManifestKind.POM_XML:
            group_id, _, artifact_id = package.name.partition(":")
            return self.update_maven_dependency(path, group_id, artifact_id, version)
        if kind is ManifestKind.CPM:
            return self.update_cpm_package_version(path, package.name, version)
        if kind is ManifestKind.PAKET:
            return self.update_paket_dependency(path, package.name, version)
        if kind is ManifestKind.CAKE:
            return self.update_cake_reference(path, package.name, version)

        logger.warning("Editing %s is not supported", path)
        return False

    async def update_package(
        self,
        package: InstalledPackage,
        version: Optional[str] = None,
    ) -> OperationResult:
        """Rewrite one declaration to ``version``, or to the latest version."""
        if version is None:
            if self.registry is None:
                return OperationResult.failure(f"{_NO_REGISTRY}; pass an explicit version")
            try:
                version = await self.registry.get_latest_version(package.name, package.ecosystem)
            except DepAtlasError as exc:
                return OperationResult.failure(f"Latest version lookup failed for {package.name}: {exc}")
            if not version:
                return OperationResult.failure(f"No latest version found for {package.name}")

        changed = await asyncio.to_thread(self._apply_version, package, version)
        if not changed:
            return OperationResult.failure(
                f"{package.name} was not updated in {package.manifest_path}"
            )
        return OperationResult(
            success=True,
            message=f"Updated {package.name} to {version}",
            updated=1,
        )

    # -- NuGet ----------------------------------------------------------------------

    def detect_nuget_style(self, context_path: str) -> NuGetManagementStyle:
        folder = self.discovery.workspace_folder_for(context_path)
        return detect_management_style(self.fs, context_path, folder)

    async def get_dotnet_install_targets(self) -> List[str]:
        """.NET manifests ordered by install-target priority."""
        manifests = await asyncio.to_thread(self.discovery.get_dotnet_manifest_files)
        return order_install_targets(manifests)
