"""
depatlas — Multi-ecosystem dependency intelligence

depatlas discovers every dependency manifest in a workspace (npm, pnpm,
Lerna and Nx monorepos, Maven, NuGet CPM, Paket and Cake), resolves the
declared packages against their registries, and reports:

    • Available updates classified as major / minor / patch / prerelease
    • A cross-project graph of local workspace dependencies
    • Version-alignment issues between sibling projects
    • NuGet target-framework compatibility closures
"""

from __future__ import annotations

from depatlas.__version__ import __version__

# ---------------------------------------------------------------------------
# Package Metadata
# ---------------------------------------------------------------------------

__author__ = "depatlas Contributors"
__license__ = "Apache-2.0"
__description__ = "Dependency intelligence for npm, Maven and NuGet workspaces."

__all__ = [
    "__version__",
]
