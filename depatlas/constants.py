"""
Centralized constants for depatlas.

This module defines immutable configuration values used across depatlas,
including registry endpoints, manifest file names, discovery excludes, and
logging formats. All values are intended to be treated as read-only.
"""

from typing import Final, Mapping, Sequence, Tuple

# ---------------------------------------------------------------------------
# Project metadata
# ---------------------------------------------------------------------------

#: HTTP User-Agent template used for outbound requests.
USER_AGENT_TEMPLATE: Final[str] = "depatlas/{version}"

# ---------------------------------------------------------------------------
# Registry endpoints
# ---------------------------------------------------------------------------

#: Base URL for the public npm registry.
NPM_REGISTRY_URL: Final[str] = "https://registry.npmjs.org"

#: NuGet V3 service index.
NUGET_SERVICE_INDEX_URL: Final[str] = "https://api.nuget.org/v3/index.json"

#: Maven Central Solr search endpoint.
MAVEN_SEARCH_URL: Final[str] = "https://search.maven.org/solrsearch/select"

# ---------------------------------------------------------------------------
# HTTP configuration
# ---------------------------------------------------------------------------

#: Default network timeout in seconds.
DEFAULT_TIMEOUT: Final[int] = 30

#: Maximum number of retries for failed HTTP requests.
DEFAULT_MAX_RETRIES: Final[int] = 3

# ---------------------------------------------------------------------------
# Update detection
# ---------------------------------------------------------------------------

#: Number of latest-version lookups issued concurrently per batch.
DEFAULT_UPDATE_BATCH_SIZE: Final[int] = 8

#: Seconds a latest-version lookup stays cached.
DEFAULT_CACHE_TTL: Final[int] = 300

# ---------------------------------------------------------------------------
# Manifest discovery
# ---------------------------------------------------------------------------

#: Dependency buckets of a package.json, in declaration order.
DEPENDENCY_TYPES: Final[Tuple[str, ...]] = (
    "dependencies",
    "devDependencies",
    "peerDependencies",
    "optionalDependencies",
)

#: Directories skipped when expanding npm workspace patterns.
NPM_WORKSPACE_EXCLUDES: Final[Tuple[str, ...]] = (
    "node_modules",
    "dist",
    "build",
    "tmp",
    ".next",
    ".turbo",
)

#: Directories skipped by the flat package.json fallback search.
NPM_FALLBACK_EXCLUDES: Final[Tuple[str, ...]] = ("node_modules",)

#: Directories skipped when searching for pom.xml files.
MAVEN_EXCLUDES: Final[Tuple[str, ...]] = ("target",)

#: Directories skipped when searching for .NET manifests.
DOTNET_EXCLUDES: Final[Tuple[str, ...]] = ("node_modules", "bin", "obj", "out")

#: .NET manifest globs in install-target priority order.
DOTNET_MANIFEST_PATTERNS: Final[Mapping[str, Sequence[str]]] = {
    "cpm": ("Directory.Packages.props",),
    "paket": ("paket.dependencies",),
    "packages.config": ("packages.config",),
    "packagereference": ("*.csproj", "*.vbproj", "*.fsproj"),
}

# ---------------------------------------------------------------------------
# Security constraints
# ---------------------------------------------------------------------------

#: Maximum allowed file size (in bytes) when reading manifests.
MAX_FILE_SIZE: Final[int] = 10 * 1024 * 1024  # 10 MB

# ---------------------------------------------------------------------------
# Logging configuration
# ---------------------------------------------------------------------------

#: Timestamp format for verbose logging.
LOG_DATE_FORMAT: Final[str] = "%Y-%m-%d %H:%M:%S"

#: Default log format (non-verbose).
LOG_DEFAULT_FORMAT: Final[str] = "%(levelname)s: %(message)s"

#: Verbose log format including timestamp and logger name.
LOG_VERBOSE_FORMAT: Final[str] = "%(asctime)s - %(name)s - %(levelname)s - %(message)s"
