"""
Scope-aware cache of installed packages.

The cache holds the aggregated :class:`InstalledPackage` list for the
whole workspace. It is owned by one
:class:`~depatlas.core.aggregator.InstalledPackageAggregator` and mutated
only through the methods below:

- :meth:`InstalledPackageCache.get` loads everything once; concurrent
  callers share the same in-flight load.
- :meth:`InstalledPackageCache.invalidate` drops everything, or marks one
  scope dirty so the next :meth:`get` reloads only that scope.
- :meth:`InstalledPackageCache.refresh` reloads one scope now and merges it
  into the retained remainder.

Every load captures a generation token. A load that finishes after an
intervening invalidation or refresh of the same scope is discarded
instead of overwriting the newer state.
"""

from __future__ import annotations

import asyncio
from typing import Awaitable, Callable, Dict, List, Optional

from depatlas.models.package import InstalledPackage, PackageScope
from depatlas.utils.logger import get_logger

logger = get_logger("package_cache")

FullLoader = Callable[[], Awaitable[List[InstalledPackage]]]
ScopeLoader = Callable[[PackageScope], Awaitable[List[InstalledPackage]]]


class InstalledPackageCache:
    """Cache of the workspace's installed packages.

    Args:
        load_all: Coroutine function loading every manifest.
        load_scope: Coroutine function loading the manifests of one scope.
    """

    def __init__(self, load_all: FullLoader, load_scope: ScopeLoader) -> None:
        self._load_all = load_all
        self._load_scope = load_scope

        self._packages: Optional[List[InstalledPackage]] = None
        self._loading: Optional["asyncio.Future[List[InstalledPackage]]"] = None
        self._generation = 0
        self._scope_tokens: Dict[PackageScope, int] = {}
        self._dirty: Dict[PackageScope, None] = {}

    @property
    def is_loaded(self) -> bool:
        return self._packages is not None

    @property
    def dirty_scopes(self) -> List[PackageScope]:
        return list(self._dirty)

    def holds_manifest(self, manifest_path: str) -> bool:
        """Whether loaded packages include entries from ``manifest_path``."""
        if self._packages is None:
            return False
        return any(pkg.manifest_path == manifest_path for pkg in self._packages)

    def invalidate(self, scope: Optional[PackageScope] = None) -> None:
        """Forget cached packages.

        Without ``scope`` everything is dropped and any in-flight load is
        orphaned. With a scope, its entries are reloaded on the next
        :meth:`get`; nothing happens if the cache is not loaded yet.
        """
        if scope is None:
            self._packages = None
            self._loading = None
            self._dirty.clear()
            self._generation += 1
            logger.debug("Installed package cache invalidated")
            return

        if self._packages is not None or self._loading is not None:
            self._dirty[scope] = None
            self._bump(scope)
            logger.debug("Installed package cache scope invalidated: %s", scope)

    def _bump(self, scope: PackageScope) -> int:
        token = self._scope_tokens.get(scope, 0) + 1
        self._scope_tokens[scope] = token
        return token

    async def _run_full_load(self, generation: int) -> List[InstalledPackage]:
        try:
            packages = await self._load_all()
        except BaseException:
            if generation == self._generation:
                self._loading = None
            raise

        if generation == self._generation:
            self._packages = packages
            self._loading = None
        else:
            logger.debug("Discarding stale installed package load")
        return packages

    async def _ensure_loaded(self) -> List[InstalledPackage]:
        if self._packages is not None:
            return self._packages

        task = self._loading
        if task is None:
            task = asyncio.ensure_future(self._run_full_load(self._generation))
            self._loading = task
        return await asyncio.shield(task)

    async def get(self) -> List[InstalledPackage]:
        """Return all packages, loading or reloading dirty scopes first."""
        packages = await self._ensure_loaded()

        while self._dirty and self._packages is not None:
            scope = next(iter(self._dirty))
            del self._dirty[scope]
            await self._reload(scope, self._scope_tokens.get(scope, 0))

        return list(self._packages if self._packages is not None else packages)

    async def refresh(self, scope: Optional[PackageScope] = None) -> List[InstalledPackage]:
        """Reload now and return the reloaded packages.

        Without ``scope`` this is a full reload. With a scope, only that
        scope is re-read and merged into the retained remainder; the
        scope's packages are returned.
        """
        if scope is None:
            self.invalidate()
            return await self.get()

        await self._ensure_loaded()
        self._dirty.pop(scope, None)
        return await self._reload(scope, self._bump(scope))

    async def _reload(self, scope: PackageScope, token: int) -> List[InstalledPackage]:
        generation = self._generation
        scoped = await self._load_scope(scope)

        if generation != self._generation or self._scope_tokens.get(scope, 0) != token:
            logger.debug("Discarding stale reload of %s", scope)
            return scoped

        if self._packages is not None:
            remaining = [pkg for pkg in self._packages if not scope.matches(pkg)]
            self._packages = remaining + scoped
        return scoped
