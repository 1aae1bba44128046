"""
Update detection for installed packages.

:class:`UpdateDetector` looks up the latest version of every distinct
registry-resolvable package and attaches the result to each declaration
of it. Lookups run in fixed-size batches: the requests of one batch run
concurrently, batches run one after another.
"""

from __future__ import annotations

import asyncio
from typing import Dict, Iterable, List, Optional, Tuple

from depatlas.constants import DEFAULT_UPDATE_BATCH_SIZE
from depatlas.core.data_store import LatestVersionLookup
from depatlas.exceptions import DepAtlasError
from depatlas.models.package import Ecosystem, InstalledPackage
from depatlas.utils.logger import get_logger
from depatlas.utils.version_utils import get_update_type

logger = get_logger("updates")

LookupKey = Tuple[Ecosystem, str]


class UpdateDetector:
    """Attach latest-version information to installed packages.

    Args:
        lookup: Latest-version capability, usually a
            :class:`~depatlas.core.data_store.RegistryDataStore`.
        batch_size: Number of lookups issued concurrently.
    """

    def __init__(
        self,
        lookup: LatestVersionLookup,
        batch_size: int = DEFAULT_UPDATE_BATCH_SIZE,
    ) -> None:
        if batch_size < 1:
            raise ValueError("batch_size must be at least 1")
        self.lookup = lookup
        self.batch_size = batch_size

    @staticmethod
    def resolvable(packages: Iterable[InstalledPackage]) -> List[InstalledPackage]:
        """Entries that can be compared against a registry at all."""
        return [pkg for pkg in packages if pkg.is_registry_resolvable and pkg.resolved_version]

    async def _lookup_one(self, key: LookupKey) -> Optional[str]:
        ecosystem, name = key
        try:
            return await self.lookup.get_latest_version(name, ecosystem)
        except DepAtlasError as exc:
            logger.debug("No update info for %s: %s", name, exc)
            return None
        except Exception as exc:
            logger.warning("Latest version lookup failed for %s (%s): %s", name, ecosystem.value, exc)
            return None

    async def fetch_latest_versions(self, keys: Iterable[LookupKey]) -> Dict[LookupKey, str]:
        """Look up every key; keys without a result are left out."""
        unique = list(dict.fromkeys(keys))
        latest: Dict[LookupKey, str] = {}

        for start in range(0, len(unique), self.batch_size):
            batch = unique[start:start + self.batch_size]
            results = await asyncio.gather(*(self._lookup_one(key) for key in batch))
            for key, version in zip(batch, results):
                if version:
                    latest[key] = version

        logger.debug("Resolved latest versions for %d of %d packages", len(latest), len(unique))
        return latest

    async def annotate(self, packages: Iterable[InstalledPackage]) -> List[InstalledPackage]:
        """Return resolvable packages carrying their lookup results."""
        candidates = self.resolvable(packages)
        latest = await self.fetch_latest_versions((pkg.ecosystem, pkg.name) for pkg in candidates)

        annotated = []
        for pkg in candidates:
            version = latest.get((pkg.ecosystem, pkg.name))
            if version and pkg.resolved_version:
                pkg = pkg.with_latest(version, get_update_type(pkg.resolved_version, version))
            annotated.append(pkg)
        return annotated

    async def get_updatable_packages(
        self,
        packages: Iterable[InstalledPackage],
    ) -> List[InstalledPackage]:
        """Only the packages with a newer registry version."""
        return [pkg for pkg in await self.annotate(packages) if pkg.has_update]
