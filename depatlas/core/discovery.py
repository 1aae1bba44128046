"""
Manifest discovery across workspace folders.

For npm-style workspaces the member projects are taken from explicit
configuration only:

- the ``workspaces`` field of the root ``package.json`` (array form or
  ``{"packages": [...]}`` form);
- the ``packages:`` list of ``pnpm-workspace.yaml``;
- the ``packages`` array of ``lerna.json``;
- Nx projects: every ``project.json`` with a sibling ``package.json``,
  plus the ``root`` entries of a legacy ``workspace.json``.

When none of those exist in any folder, discovery falls back to a flat
``**/package.json`` search that skips ``node_modules``.

Maven and .NET manifests are found with plain recursive searches that skip
build output directories.
"""

from __future__ import annotations

import os
import re
from pathlib import Path
from typing import Any, Dict, Iterable, List, Optional, Sequence, Set, Tuple

from depatlas.constants import (
    DOTNET_EXCLUDES,
    DOTNET_MANIFEST_PATTERNS,
    MAVEN_EXCLUDES,
    NPM_FALLBACK_EXCLUDES,
    NPM_WORKSPACE_EXCLUDES,
)
from depatlas.utils.filesystem import ManifestFileSystem
from depatlas.utils.logger import get_logger
from depatlas.utils.sorting import locale_key

logger = get_logger("discovery")

_PNPM_PACKAGES_KEY_RE = re.compile(r"^\s*packages\s*:")
_PNPM_LIST_ITEM_RE = re.compile(r"""^\s*-\s*['"]?(.+?)['"]?\s*$""")


def normalize_workspace_pattern(pattern: str) -> str:
    """Drop a leading ``./`` and use forward slashes."""
    return re.sub(r"^\./+", "", pattern).replace("\\", "/")


def to_manifest_glob(pattern: str) -> str:
    """Turn a workspace pattern into a ``package.json`` glob.

    Example:
        >>> to_manifest_glob("./packages/*/")
        'packages/*/package.json'
    """
    normalized = normalize_workspace_pattern(pattern)
    if normalized.endswith("package.json"):
        return normalized
    if not normalized or normalized == ".":
        return "package.json"
    return normalized.rstrip("/") + "/package.json"


def parse_pnpm_workspace_packages(text: str) -> List[str]:
    """Extract the ``packages:`` list of a ``pnpm-workspace.yaml``.

    Only top-level ``- pattern`` items under ``packages:`` are read; the
    block ends at the first unindented line that is not a list item.
    """
    patterns: List[str] = []
    in_packages = False

    for line in text.splitlines():
        if _PNPM_PACKAGES_KEY_RE.match(line):
            in_packages = True
            continue

        if not in_packages:
            continue

        item = _PNPM_LIST_ITEM_RE.match(line)
        if item:
            patterns.append(item.group(1))
            continue

        if line.strip() and not line.startswith(" "):
            break

    return patterns


def _string_items(values: Any) -> List[str]:
    if not isinstance(values, list):
        return []
    return [value for value in values if isinstance(value, str)]


def npm_workspace_patterns(package_json: Optional[Dict[str, Any]]) -> List[str]:
    """Return the ``workspaces`` patterns declared by a root package.json."""
    if not isinstance(package_json, dict):
        return []

    workspaces = package_json.get("workspaces")
    if isinstance(workspaces, list):
        return _string_items(workspaces)
    if isinstance(workspaces, dict):
        return _string_items(workspaces.get("packages"))
    return []


class ManifestDiscovery:
    """Locate dependency manifests under a set of workspace folders.

    Args:
        fs: File system capability.
        workspace_folders: Root folders, in priority order.
        exclude_dirs: Extra directory names skipped by every search.
    """

    def __init__(
        self,
        fs: ManifestFileSystem,
        workspace_folders: Sequence[str],
        *,
        exclude_dirs: Iterable[str] = (),
    ) -> None:
        self.fs = fs
        self.workspace_folders: List[str] = [
            str(Path(folder).resolve()) for folder in workspace_folders
        ]
        self.exclude_dirs: Tuple[str, ...] = tuple(exclude_dirs)

    # -- workspace folder helpers ------------------------------------------

    def workspace_folder_for(self, path: str) -> Optional[str]:
        """Return the innermost workspace folder containing ``path``."""
        target = Path(path).resolve()
        best: Optional[str] = None
        for folder in self.workspace_folders:
            try:
                target.relative_to(folder)
            except ValueError:
                continue
            if best is None or len(folder) > len(best):
                best = folder
        return best

    def relative_path(self, path: str) -> str:
        """Path relative to its workspace folder, with forward slashes.

        With several workspace folders the folder name is prefixed so
        paths stay unique. Paths outside every folder are returned as-is.
        """
        folder = self.workspace_folder_for(path)
        if folder is None:
            return path

        relative = Path(path).resolve().relative_to(folder).as_posix()
        if len(self.workspace_folders) > 1:
            return f"{Path(folder).name}/{relative}"
        return relative

    def fallback_manifest_name(self, path: str) -> str:
        """Name for a manifest that declares none: its parent directory."""
        relative = self.relative_path(path).replace("\\", "/")
        segments = [segment for segment in relative.split("/") if segment]
        if len(segments) >= 2:
            return segments[-2]
        return relative

    def _excludes(self, base: Iterable[str]) -> Tuple[str, ...]:
        return tuple(base) + self.exclude_dirs

    # -- npm ---------------------------------------------------------------

    def _collect_patterns(self, folder: str, root_package_json: Any) -> List[str]:
        patterns: Dict[str, None] = {}

        for pattern in npm_workspace_patterns(root_package_json):
            patterns[pattern] = None

        pnpm_text = self.fs.read_text(os.path.join(folder, "pnpm-workspace.yaml"))
        if pnpm_text:
            for pattern in parse_pnpm_workspace_packages(pnpm_text):
                patterns[pattern] = None

        lerna = self.fs.read_json(os.path.join(folder, "lerna.json"))
        if isinstance(lerna, dict):
            for pattern in _string_items(lerna.get("packages")):
                patterns[pattern] = None

        return list(patterns)

    def _nx_project_manifests(self, folder: str) -> List[str]:
        if self.fs.read_json(os.path.join(folder, "nx.json")) is None:
            return []

        manifests: Dict[str, None] = {}
        for project_file in self.fs.find_files(
            folder,
            "**/project.json",
            exclude_dirs=self._excludes(NPM_WORKSPACE_EXCLUDES),
        ):
            candidate = os.path.join(os.path.dirname(project_file), "package.json")
            if self.fs.exists(candidate):
                manifests[candidate] = None

        workspace_json = self.fs.read_json(os.path.join(folder, "workspace.json"))
        projects = workspace_json.get("projects") if isinstance(workspace_json, dict) else None
        if isinstance(projects, dict):
            for value in projects.values():
                root = value if isinstance(value, str) else None
                if isinstance(value, dict) and isinstance(value.get("root"), str):
                    root = value["root"]
                if not root:
                    continue
                candidate = os.path.normpath(
                    os.path.join(folder, normalize_workspace_pattern(root), "package.json")
                )
                if self.fs.exists(candidate):
                    manifests[candidate] = None

        return list(manifests)

    def _match_patterns(self, folder: str, patterns: Sequence[str]) -> List[str]:
        excludes = self._excludes(NPM_WORKSPACE_EXCLUDES)
        excluded: Set[str] = set()

        for pattern in patterns:
            if pattern.startswith("!"):
                excluded.update(
                    self.fs.find_files(folder, to_manifest_glob(pattern[1:]), exclude_dirs=excludes)
                )

        matched: Dict[str, None] = {}
        for pattern in patterns:
            if not pattern or pattern.startswith("!"):
                continue
            for path in self.fs.find_files(folder, to_manifest_glob(pattern), exclude_dirs=excludes):
                if path not in excluded:
                    matched[path] = None

        return list(matched)

    def discover_workspace_package_json_files(self) -> List[str]:
        """Return package.json files declared by workspace configuration.

        An empty list means no folder has explicit workspace configuration.
        """
        manifests: Dict[str, None] = {}
        has_explicit_config = False

        for folder in self.workspace_folders:
            root_manifest = os.path.join(folder, "package.json")
            root_package_json = self.fs.read_json(root_manifest)
            if root_package_json is not None:
                manifests[root_manifest] = None

            patterns = self._collect_patterns(folder, root_package_json)
            if patterns:
                has_explicit_config = True

            nx_manifests = self._nx_project_manifests(folder)
            if nx_manifests:
                has_explicit_config = True
            for path in nx_manifests:
                manifests[path] = None

            for path in self._match_patterns(folder, patterns):
                manifests[path] = None

        if not has_explicit_config:
            return []

        logger.debug("Workspace configuration declares %d manifests", len(manifests))
        return sorted(manifests, key=locale_key)

    def get_package_json_files(self) -> List[str]:
        """Workspace-declared package.json files, or every package.json."""
        discovered = self.discover_workspace_package_json_files()
        if discovered:
            return discovered

        found: Dict[str, None] = {}
        for folder in self.workspace_folders:
            for path in self.fs.find_files(
                folder,
                "**/package.json",
                exclude_dirs=self._excludes(NPM_FALLBACK_EXCLUDES),
            ):
                found[path] = None
        return sorted(found, key=locale_key)

    # -- Maven / .NET --------------------------------------------------------

    def _search(self, pattern: str, excludes: Iterable[str]) -> List[str]:
        found: Dict[str, None] = {}
        for folder in self.workspace_folders:
            for path in self.fs.find_files(
                folder,
                pattern,
                exclude_dirs=self._excludes(excludes),
            ):
                found[path] = None
        return sorted(found, key=locale_key)

    def get_pom_xml_files(self) -> List[str]:
        return self._search("**/pom.xml", MAVEN_EXCLUDES)

    def get_cake_files(self) -> List[str]:
        return self._search("**/*.cake", DOTNET_EXCLUDES)

    def get_dotnet_manifest_files(self) -> List[str]:
        """Return .NET manifests in install-target priority order.

        Directory.Packages.props, then paket.dependencies, then
        packages.config, then project files. Within one kind paths are
        sorted.
        """
        ordered: Dict[str, None] = {}
        for patterns in DOTNET_MANIFEST_PATTERNS.values():
            kind: Dict[str, None] = {}
            for pattern in patterns:
                for path in self._search(f"**/{pattern}", DOTNET_EXCLUDES):
                    kind[path] = None
            for path in sorted(kind, key=locale_key):
                ordered[path] = None
        return list(ordered)

    def get_all_manifest_files(self) -> List[str]:
        """Every manifest the aggregator knows how to read."""
        files: Dict[str, None] = {}
        for group in (
            self.get_package_json_files(),
            self.get_pom_xml_files(),
            self.get_dotnet_manifest_files(),
            self.get_cake_files(),
        ):
            for path in group:
                files[path] = None
        return list(files)

    def is_discovered_manifest(self, path: str) -> bool:
        """Whether a full discovery currently returns ``path``."""
        return str(Path(path).resolve()) in self.get_all_manifest_files()
