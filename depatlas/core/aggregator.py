"""
Installed-package aggregation across every manifest format.

:class:`InstalledPackageAggregator` turns the manifests found by
:class:`~depatlas.core.discovery.ManifestDiscovery` into one flat list of
:class:`~depatlas.models.InstalledPackage` entries and keeps it in an
:class:`~depatlas.core.package_cache.InstalledPackageCache`.

Manifests that cannot be read or parsed are skipped and logged; a broken
file never fails the whole aggregation.
"""

from __future__ import annotations

import os
import asyncio
from pathlib import Path
from typing import Any, Callable, Dict, List, Optional, Sequence, Set, Tuple

from depatlas.core.discovery import ManifestDiscovery
from depatlas.core.manifests import (
    ManifestKind,
    iter_package_json_dependencies,
    load_package_json,
    manifest_kind,
    package_json_name,
    parse_manifest,
)
from depatlas.core.package_cache import InstalledPackageCache
from depatlas.core.spec_parser import (
    format_dependency_spec_display,
    parse_dependency_spec,
    strip_local_spec_prefix,
)
from depatlas.exceptions import DepAtlasError, FileOperationError
from depatlas.models.package import (
    ChangeKind,
    Ecosystem,
    FolderScope,
    InstalledPackage,
    ManifestChangeEvent,
    ManifestInfo,
    ManifestScope,
    PackageScope,
)
from depatlas.models.spec import DependencySpec, SpecKind
from depatlas.utils.filesystem import ManifestFileSystem
from depatlas.utils.logger import get_logger
from depatlas.utils.sorting import locale_key

logger = get_logger("aggregator")

ChangeListener = Callable[[Optional[PackageScope]], None]

PackageJsonInfo = Tuple[str, Dict[str, Any]]

class InstalledPackageAggregator:
    """Read every manifest of a workspace into :class:`InstalledPackage` s.

    Args:
        fs: File system capability.
        discovery: Manifest discovery for the workspace folders.
    """

    def __init__(self, fs: ManifestFileSystem, discovery: ManifestDiscovery) -> None:
        self.fs = fs
        self.discovery = discovery
        self.cache = InstalledPackageCache(self._load_all, self._load_scope)
        self._listeners: List[ChangeListener] = []

    # -- public API ----------------------------------------------------------

    async def get_installed_packages(self) -> List[InstalledPackage]:
        """Every declared dependency of the workspace, cached."""
        return await self.cache.get()

    async def get_installed_packages_for_scope(self, scope: PackageScope) -> List[InstalledPackage]:
        packages = await self.cache.get()
        return [pkg for pkg in packages if scope.matches(pkg)]

    async def refresh_installed_packages(
        self,
        scope: Optional[PackageScope] = None,
    ) -> List[InstalledPackage]:
        """Reload now; returns the scope's packages, or all of them."""
        return await self.cache.refresh(scope)

    def invalidate(self, scope: Optional[PackageScope] = None) -> None:
        self.cache.invalidate(scope)

    async def get_manifest_infos(self) -> List[ManifestInfo]:
        """Distinct manifests that contribute at least one package."""
        infos: Dict[str, ManifestInfo] = {}
        for pkg in await self.cache.get():
            if pkg.manifest_path in infos:
                continue
            name = (pkg.manifest_name or "").strip()
            infos[pkg.manifest_path] = ManifestInfo(
                path=pkg.manifest_path,
                name=name or self.discovery.fallback_manifest_name(pkg.manifest_path),
                workspace_folder_path=pkg.workspace_folder_path,
            )
        return sorted(infos.values(), key=lambda info: locale_key(info.path))

    # -- change notifications --------------------------------------------------

    def subscribe(self, listener: ChangeListener) -> Callable[[], None]:
        """Call ``listener`` after every handled change.

        Returns:
            A callable removing the listener again.
        """
        self._listeners.append(listener)

        def unsubscribe() -> None:
            if listener in self._listeners:
                self._listeners.remove(listener)

        return unsubscribe

    def scope_for_event(self, event: ManifestChangeEvent) -> Optional[PackageScope]:
        """Manifest events map to their manifest; anything else is global."""
        if event.kind is ChangeKind.FOLDERS_CHANGED or not event.path:
            return None
        if manifest_kind(event.path) is None:
            return None
        return ManifestScope(str(Path(event.path).resolve()))

    def is_tracked(self, event: ManifestChangeEvent) -> bool:
        """Whether ``event`` can change what a full load returns.

        Manifest events count only for manifests that discovery returns or
        that the cache still holds packages from, so churn below
        ``node_modules`` or outside the workspace patterns is ignored.
        """
        scope = self.scope_for_event(event)
        if not isinstance(scope, ManifestScope):
            return True
        return self.discovery.is_discovered_manifest(scope.manifest_path) or self.cache.holds_manifest(
            scope.manifest_path
        )

    def handle_change(self, event: ManifestChangeEvent) -> Optional[PackageScope]:
        """Invalidate what ``event`` affects and notify listeners.

        Untracked manifest events are dropped without notifying anyone.
        """
        if not self.is_tracked(event):
            logger.debug("Ignoring change %s on untracked %s", event.kind.value, event.path)
            return None

        scope = self.scope_for_event(event)
        logger.debug("Change %s on %s -> scope %s", event.kind.value, event.path, scope)
        self.cache.invalidate(scope)

        for listener in list(self._listeners):
            listener(scope)
        return scope

    # -- loading ---------------------------------------------------------------

    async def _load_all(self) -> List[InstalledPackage]:
        files = await asyncio.to_thread(self.discovery.get_all_manifest_files)
        package_jsons = [path for path in files if manifest_kind(path) is ManifestKind.PACKAGE_JSON]
        infos = await self._read_package_jsons(package_jsons)
        packages = await self._load_files(files, infos, infos)
        logger.info("Loaded %d installed packages from %d manifests", len(packages), len(files))
        return packages

    async def _load_scope(self, scope: PackageScope) -> List[InstalledPackage]:
        files = await asyncio.to_thread(self._files_for_scope, scope)

        all_package_jsons = await asyncio.to_thread(self.discovery.get_package_json_files)
        universe = await self._read_package_jsons(all_package_jsons)
        scoped = set(files)
        known = {path for path, _ in universe}
        infos = [info for info in universe if info[0] in scoped]
        infos += await self._read_package_jsons(
            [
                path
                for path in files
                if manifest_kind(path) is ManifestKind.PACKAGE_JSON and path not in known
            ]
        )

        return await self._load_files(files, infos, universe)

    def _files_for_scope(self, scope: PackageScope) -> List[str]:
        if isinstance(scope, ManifestScope):
            if self.discovery.is_discovered_manifest(scope.manifest_path):
                return [scope.manifest_path]
            return []

        if isinstance(scope, FolderScope):
            return [
                path
                for path in self.discovery.get_all_manifest_files()
                if self.discovery.workspace_folder_for(path) == scope.workspace_folder_path
            ]
        return []

    def _read_package_json(self, path: str) -> Dict[str, Any]:
        text = self.fs.read_text(path)
        if text is None:
            raise FileOperationError("Cannot read manifest", file_path=path, operation="read")
        return load_package_json(text, path)

    async def _read_package_jsons(self, paths: Sequence[str]) -> List[PackageJsonInfo]:
        results = await asyncio.gather(
            *(asyncio.to_thread(self._read_package_json, path) for path in paths),
            return_exceptions=True,
        )

        infos: List[PackageJsonInfo] = []
        for path, result in zip(paths, results):
            if isinstance(result, DepAtlasError):
                logger.debug("Skipping %s: %s", path, result)
                continue
            if isinstance(result, BaseException):
                raise result
            infos.append((path, result))
        return infos

    def _root_package_name(self, universe: Sequence[PackageJsonInfo]) -> Optional[str]:
        if self.discovery.workspace_folders:
            root_manifest = os.path.join(self.discovery.workspace_folders[0], "package.json")
            for path, data in universe:
                if path == root_manifest:
                    return package_json_name(data)
        return package_json_name(universe[0][1]) if universe else None

    async def _load_files(
        self,
        files: Sequence[str],
        package_json_infos: Sequence[PackageJsonInfo],
        universe: Sequence[PackageJsonInfo],
    ) -> List[InstalledPackage]:
        names: Set[str] = {name for name in (package_json_name(data) for _, data in universe) if name}
        root_name = self._root_package_name(universe)

        npm_results = await asyncio.gather(
            *(
                asyncio.to_thread(self._packages_from_package_json, path, data, names, root_name)
                for path, data in package_json_infos
            )
        )

        others = [path for path in files if manifest_kind(path) not in (None, ManifestKind.PACKAGE_JSON)]
        other_results = await asyncio.gather(
            *(asyncio.to_thread(self._packages_from_manifest, path) for path in others),
            return_exceptions=True,
        )

        packages: List[InstalledPackage] = []
        for result in npm_results:
            packages.extend(result)

        for path, result in zip(others, other_results):
            if isinstance(result, DepAtlasError):
                logger.debug("Skipping %s: %s", path, result)
                continue
            if isinstance(result, BaseException):
                raise result
            packages.extend(result)

        return packages

    # -- per-format extraction -------------------------------------------------

    def _packages_from_package_json(
        self,
        path: str,
        data: Dict[str, Any],
        workspace_names: Set[str],
        root_name: Optional[str],
    ) -> List[InstalledPackage]:
        folder = self.discovery.workspace_folder_for(path)
        manifest_name = package_json_name(data)

        packages = []
        for entry in iter_package_json_dependencies(data):
            spec = parse_dependency_spec(entry.version)
            packages.append(
                InstalledPackage(
                    name=entry.name,
                    current_version=self._display_version(
                        entry.name, spec, path, workspace_names, root_name
                    ),
                    type=entry.type,
                    manifest_path=path,
                    ecosystem=Ecosystem.NPM,
                    workspace_folder_path=folder,
                    manifest_name=manifest_name,
                    resolved_version=spec.normalized_version,
                    version_specifier=spec.raw,
                    spec_kind=spec.kind,
                    is_registry_resolvable=spec.is_registry_resolvable,
                )
            )
        return packages

    def _packages_from_manifest(self, path: str) -> List[InstalledPackage]:
        kind = manifest_kind(path)
        if kind is None:
            return []

        text = self.fs.read_text(path)
        if text is None:
            raise FileOperationError("Cannot read manifest", file_path=path, operation="read")

        manifest_name, entries = parse_manifest(kind, text)
        ecosystem = Ecosystem.MAVEN if kind is ManifestKind.POM_XML else Ecosystem.NUGET
        folder = self.discovery.workspace_folder_for(path)

        return [
            InstalledPackage(
                name=entry.name,
                current_version=entry.version,
                type=entry.type,
                manifest_path=path,
                ecosystem=ecosystem,
                workspace_folder_path=folder,
                manifest_name=manifest_name,
                # ${property} placeholders cannot be compared
                resolved_version=entry.version if entry.version[:1].isdigit() else None,
                version_specifier=entry.version,
            )
            for entry in entries
        ]

    def _local_package_name(self, manifest_path: str, raw: str) -> Optional[str]:
        target = os.path.join(os.path.dirname(manifest_path), strip_local_spec_prefix(raw), "package.json")
        return package_json_name(self.fs.read_json(os.path.normpath(target)))

    def _display_version(
        self,
        name: str,
        spec: DependencySpec,
        manifest_path: str,
        workspace_names: Set[str],
        root_name: Optional[str],
    ) -> str:
        if spec.kind in (SpecKind.SEMVER, SpecKind.TAG):
            return spec.display_text

        local_by_name = name in workspace_names
        self_by_name = bool(root_name) and name == root_name

        if spec.kind is SpecKind.WORKSPACE:
            return format_dependency_spec_display(
                spec, workspace_local=local_by_name, workspace_self=self_by_name
            )

        if spec.kind in (SpecKind.FILE, SpecKind.PATH):
            resolved = self._local_package_name(manifest_path, spec.raw)
            return format_dependency_spec_display(
                spec,
                workspace_local=resolved == name or local_by_name,
                workspace_self=bool(root_name) and resolved == name and name == root_name,
            )

        return format_dependency_spec_display(spec)
