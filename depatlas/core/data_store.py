"""Shared latest-version cache for depatlas.

Every latest-version lookup in a run goes through one
:class:`RegistryDataStore` so that a package declared by twenty manifests
costs one registry round-trip. Results are cached for ``ttl`` seconds,
concurrent lookups of the same package share one in-flight request, and
lookup failures resolve to ``None`` instead of raising.

Typical usage::

    from depatlas.utils.http import HTTPClient
    from depatlas.core.registry import RegistryRouter
    from depatlas.core.data_store import RegistryDataStore

    async with HTTPClient() as client:
        store = RegistryDataStore(RegistryRouter.create(client))
        await store.get_latest_version("react")             # e.g. "18.3.1"
        await store.get_latest_version("Serilog", Ecosystem.NUGET)
"""

from __future__ import annotations

import time
import asyncio
from typing import Callable, Dict, Iterable, Optional, Protocol, Tuple

from depatlas.constants import DEFAULT_CACHE_TTL
from depatlas.exceptions import DepAtlasError
from depatlas.models.package import Ecosystem
from depatlas.utils.logger import get_logger

logger = get_logger("data_store")

__all__ = ["LatestVersionLookup", "RegistryDataStore"]

CacheKey = Tuple[Ecosystem, str]


class LatestVersionLookup(Protocol):
    """Anything that can resolve the latest version of a package."""

    async def get_latest_version(
        self,
        name: str,
        ecosystem: Ecosystem = Ecosystem.NPM,
    ) -> Optional[str]: ...


class RegistryDataStore:
    """TTL cache with in-flight coalescing in front of a registry lookup.

    Args:
        lookup: Usually a :class:`~depatlas.core.registry.RegistryRouter`.
        ttl: Seconds a successful lookup stays cached.
        concurrent_limit: Maximum lookups in flight at once.
        clock: Monotonic time source, replaceable in tests.
    """

    def __init__(
        self,
        lookup: LatestVersionLookup,
        *,
        ttl: float = DEFAULT_CACHE_TTL,
        concurrent_limit: int = 10,
        clock: Callable[[], float] = time.monotonic,
    ) -> None:
        self.lookup = lookup
        self.ttl = ttl
        self._clock = clock
        self._semaphore = asyncio.Semaphore(concurrent_limit)

        # (ecosystem, name) -> (version, expires_at)
        self._cache: Dict[CacheKey, Tuple[str, float]] = {}
        self._inflight: Dict[CacheKey, "asyncio.Future[Optional[str]]"] = {}
        self._generation = 0

    def get_cached(self, name: str, ecosystem: Ecosystem = Ecosystem.NPM) -> Optional[str]:
        """Return a fresh cached version without touching the network."""
        entry = self._cache.get((ecosystem, name))
        if entry is None:
            return None
        version, expires_at = entry
        if expires_at <= self._clock():
            del self._cache[(ecosystem, name)]
            return None
        return version

    def invalidate(self) -> None:
        """Drop cached versions; in-flight lookups will not be stored."""
        self._cache.clear()
        self._inflight.clear()
        self._generation += 1

    async def get_latest_version(
        self,
        name: str,
        ecosystem: Ecosystem = Ecosystem.NPM,
    ) -> Optional[str]:
        """Latest version of ``name``, or ``None`` if it cannot be determined."""
        cached = self.get_cached(name, ecosystem)
        if cached is not None:
            return cached

        key = (ecosystem, name)
        pending = self._inflight.get(key)
        if pending is None:
            pending = asyncio.ensure_future(self._fetch(key, self._generation))
            self._inflight[key] = pending
            pending.add_done_callback(lambda done: self._forget(key, done))

        # shield: one cancelled caller must not cancel the shared lookup
        return await asyncio.shield(pending)

    def _forget(self, key: CacheKey, done: "asyncio.Future[Optional[str]]") -> None:
        if self._inflight.get(key) is done:
            del self._inflight[key]

    async def prefetch(self, keys: Iterable[CacheKey]) -> None:
        """Warm the cache for several packages concurrently."""
        await asyncio.gather(*(self.get_latest_version(name, eco) for eco, name in keys))

    async def _fetch(self, key: CacheKey, generation: int) -> Optional[str]:
        ecosystem, name = key
        try:
            async with self._semaphore:
                version = await self.lookup.get_latest_version(name, ecosystem)
        except DepAtlasError as exc:
            logger.debug("Latest version lookup failed for %s (%s): %s", name, ecosystem.value, exc)
            return None
        except (AttributeError, KeyError, TypeError, ValueError) as exc:
            logger.warning("Unexpected registry payload for %s (%s): %s", name, ecosystem.value, exc)
            return None

        if version and generation == self._generation:
            self._cache[key] = (version, self._clock() + self.ttl)
        return version
