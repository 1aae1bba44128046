"""
.NET package management style detection and install-target ordering.

A .NET workspace manages NuGet packages in one of five ways. The active
style for a file is found by walking from its directory up to the owning
workspace folder; styles are tried in priority order across that whole
chain, so a ``paket.dependencies`` at the repository root wins over a
``Directory.Packages.props`` next to the project.
"""

from __future__ import annotations

import os
from enum import Enum
from pathlib import Path
from typing import Callable, List, Mapping, Optional, Sequence, Tuple

from depatlas.utils.filesystem import ManifestFileSystem
from depatlas.utils.logger import get_logger
from depatlas.utils.sorting import locale_key

logger = get_logger("nuget.style")


class NuGetManagementStyle(str, Enum):
    PACKAGE_REFERENCE = "packagereference"
    CPM = "cpm"
    PAKET = "paket"
    PACKAGES_CONFIG = "packages.config"
    CAKE = "cake"


MANAGEMENT_STYLE_LABELS: Mapping[NuGetManagementStyle, str] = {
    NuGetManagementStyle.PACKAGE_REFERENCE: "PackageReference (.NET CLI)",
    NuGetManagementStyle.CPM: "Central Package Management (CPM)",
    NuGetManagementStyle.PAKET: "Paket CLI",
    NuGetManagementStyle.PACKAGES_CONFIG: "packages.config (Legacy)",
    NuGetManagementStyle.CAKE: "Cake",
}


def _has_file(name: str) -> Callable[[ManifestFileSystem, str], bool]:
    def check(fs: ManifestFileSystem, directory: str) -> bool:
        return fs.exists(os.path.join(directory, name))

    return check


def _has_cake_script(fs: ManifestFileSystem, directory: str) -> bool:
    return any(entry.lower().endswith(".cake") for entry in fs.list_dir(directory))


#: Detection order; PackageReference is the fallback.
_STYLE_CHECKS: Tuple[Tuple[NuGetManagementStyle, Callable[[ManifestFileSystem, str], bool]], ...] = (
    (NuGetManagementStyle.PAKET, _has_file("paket.dependencies")),
    (NuGetManagementStyle.CPM, _has_file("Directory.Packages.props")),
    (NuGetManagementStyle.PACKAGES_CONFIG, _has_file("packages.config")),
    (NuGetManagementStyle.CAKE, _has_cake_script),
)


def ancestor_directories(context_path: str, workspace_folder: Optional[str]) -> List[str]:
    """Directories from ``context_path`` up to ``workspace_folder``.

    ``context_path`` may be a file or a directory. Without a workspace
    folder only the starting directory is returned.
    """
    start = Path(context_path).resolve()
    if not start.is_dir():
        start = start.parent

    if workspace_folder is None:
        return [str(start)]

    root = Path(workspace_folder).resolve()
    directories: List[str] = []
    current = start
    while True:
        directories.append(str(current))
        if current == root or current.parent == current:
            break
        try:
            current.relative_to(root)
        except ValueError:
            break
        current = current.parent
    return directories


def detect_management_style(
    fs: ManifestFileSystem,
    context_path: str,
    workspace_folder: Optional[str] = None,
) -> NuGetManagementStyle:
    """Detect the NuGet management style in effect for ``context_path``.

    Priority: Paket, CPM, packages.config, any ``.cake`` script, then
    PackageReference.
    """
    directories = ancestor_directories(context_path, workspace_folder)
    for style, check in _STYLE_CHECKS:
        if any(check(fs, directory) for directory in directories):
            logger.debug("Detected %s management for %s", style.value, context_path)
            return style
    return NuGetManagementStyle.PACKAGE_REFERENCE


# ---------------------------------------------------------------------------
# Install targets
# ---------------------------------------------------------------------------


def _target_rank(manifest_path: str) -> int:
    lower = manifest_path.replace("\\", "/").lower()
    if lower.endswith("directory.packages.props"):
        return 0
    if lower.endswith("paket.dependencies"):
        return 1
    if lower.endswith("packages.config"):
        return 2
    if lower.endswith((".csproj", ".vbproj", ".fsproj")):
        return 3
    return 4


def install_target_label(manifest_path: str) -> Tuple[str, str]:
    """Return ``(label, package manager)`` describing a .NET manifest."""
    rank = _target_rank(manifest_path)
    name = Path(manifest_path).name
    if rank == 0:
        return "Directory.Packages.props (CPM)", "NuGet CPM"
    if rank == 1:
        return "paket.dependencies (Paket CLI)", "Paket"
    if rank == 2:
        return "packages.config (Legacy)", "packages.config"
    if rank == 3:
        return f"{name} (PackageReference)", "PackageReference"
    return name, "NuGet"


def order_install_targets(manifest_paths: Sequence[str]) -> List[str]:
    """Sort .NET manifests: CPM, Paket, packages.config, project files."""
    unique = dict.fromkeys(manifest_paths)
    return sorted(unique, key=lambda path: (_target_rank(path), locale_key(path)))


def preferred_install_target(manifest_paths: Sequence[str]) -> Optional[str]:
    ordered = order_install_targets(manifest_paths)
    return ordered[0] if ordered else None
