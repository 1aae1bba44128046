"""Unit tests for depatlas.core.package_cache.

The loaders are plain coroutines over a mutable "disk" dictionary, so each
test controls what a reload sees and when a load completes.
"""

from __future__ import annotations

import asyncio
import pytest
from typing import Dict, List, Optional

from depatlas.core.package_cache import InstalledPackageCache
from depatlas.models.package import (
    DependencyType,
    FolderScope,
    InstalledPackage,
    ManifestScope,
    PackageScope,
)


def pkg(name: str, manifest: str, version: str = "1.0.0", folder: str = "/ws") -> InstalledPackage:
    return InstalledPackage(
        name=name,
        current_version=version,
        type=DependencyType.DEPENDENCIES,
        manifest_path=manifest,
        workspace_folder_path=folder,
        resolved_version=version,
    )


class FakeDisk:
    """In-memory manifests with call counters and an optional load gate."""

    def __init__(self) -> None:
        self.packages: Dict[str, List[InstalledPackage]] = {
            "/ws/a/package.json": [pkg("react", "/ws/a/package.json")],
            "/ws/b/package.json": [pkg("vue", "/ws/b/package.json")],
        }
        self.full_loads = 0
        self.scope_loads: List[PackageScope] = []
        self.gate: Optional[asyncio.Event] = None

    async def load_all(self) -> List[InstalledPackage]:
        self.full_loads += 1
        snapshot = [p for items in self.packages.values() for p in items]
        if self.gate is not None:
            await self.gate.wait()
        return snapshot

    async def load_scope(self, scope: PackageScope) -> List[InstalledPackage]:
        self.scope_loads.append(scope)
        snapshot = [p for items in self.packages.values() for p in items if scope.matches(p)]
        if self.gate is not None:
            await self.gate.wait()
        return snapshot


@pytest.fixture
def disk() -> FakeDisk:
    return FakeDisk()


@pytest.fixture
def cache(disk: FakeDisk) -> InstalledPackageCache:
    return InstalledPackageCache(disk.load_all, disk.load_scope)


def names(packages: List[InstalledPackage]) -> List[str]:
    return sorted(p.name for p in packages)


@pytest.mark.unit
class TestInstalledPackageCache:
    """Tests for loading, invalidation and refresh."""

    @pytest.mark.asyncio
    async def test_loads_once(self, cache: InstalledPackageCache, disk: FakeDisk) -> None:
        assert names(await cache.get()) == ["react", "vue"]
        assert names(await cache.get()) == ["react", "vue"]
        assert disk.full_loads == 1
        assert cache.is_loaded

    @pytest.mark.asyncio
    async def test_concurrent_callers_share_load(self, cache: InstalledPackageCache, disk: FakeDisk) -> None:
        disk.gate = asyncio.Event()
        waiters = [asyncio.ensure_future(cache.get()) for _ in range(3)]
        await asyncio.sleep(0)
        disk.gate.set()

        results = await asyncio.gather(*waiters)

        assert disk.full_loads == 1
        assert all(names(r) == ["react", "vue"] for r in results)

    @pytest.mark.asyncio
    async def test_get_returns_copy(self, cache: InstalledPackageCache) -> None:
        first = await cache.get()
        first.clear()

        assert len(await cache.get()) == 2

    @pytest.mark.asyncio
    async def test_full_invalidate_reloads(self, cache: InstalledPackageCache, disk: FakeDisk) -> None:
        await cache.get()
        disk.packages["/ws/c/package.json"] = [pkg("svelte", "/ws/c/package.json")]

        cache.invalidate()

        assert names(await cache.get()) == ["react", "svelte", "vue"]
        assert disk.full_loads == 2

    @pytest.mark.asyncio
    async def test_scope_invalidate_reloads_only_scope(self, cache: InstalledPackageCache, disk: FakeDisk) -> None:
        await cache.get()
        disk.packages["/ws/a/package.json"] = [pkg("react", "/ws/a/package.json", "18.0.0")]
        disk.packages["/ws/b/package.json"] = [pkg("vue", "/ws/b/package.json", "3.0.0")]
        scope = ManifestScope("/ws/a/package.json")

        cache.invalidate(scope)
        assert cache.dirty_scopes == [scope]
        packages = await cache.get()

        versions = {p.name: p.current_version for p in packages}
        assert versions == {"react": "18.0.0", "vue": "1.0.0"}
        assert disk.full_loads == 1
        assert disk.scope_loads == [scope]
        assert cache.dirty_scopes == []

    @pytest.mark.asyncio
    async def test_scope_invalidate_before_load_is_noop(self, cache: InstalledPackageCache, disk: FakeDisk) -> None:
        cache.invalidate(ManifestScope("/ws/a/package.json"))

        await cache.get()

        assert disk.scope_loads == []

    @pytest.mark.asyncio
    async def test_refresh_scope_merges(self, cache: InstalledPackageCache, disk: FakeDisk) -> None:
        await cache.get()
        del disk.packages["/ws/b/package.json"]

        refreshed = await cache.refresh(ManifestScope("/ws/b/package.json"))

        assert refreshed == []
        assert names(await cache.get()) == ["react"]

    @pytest.mark.asyncio
    async def test_refresh_folder_scope(self, cache: InstalledPackageCache, disk: FakeDisk) -> None:
        disk.packages["/other/package.json"] = [pkg("lit", "/other/package.json", folder="/other")]
        await cache.get()
        disk.packages["/other/package.json"] = [pkg("lit", "/other/package.json", "3.0.0", folder="/other")]

        refreshed = await cache.refresh(FolderScope("/other"))

        assert [p.current_version for p in refreshed] == ["3.0.0"]
        assert names(await cache.get()) == ["lit", "react", "vue"]

    @pytest.mark.asyncio
    async def test_refresh_without_scope_is_full_reload(self, cache: InstalledPackageCache, disk: FakeDisk) -> None:
        await cache.get()

        await cache.refresh()

        assert disk.full_loads == 2

    @pytest.mark.asyncio
    async def test_stale_full_load_discarded(self, cache: InstalledPackageCache, disk: FakeDisk) -> None:
        """A load finishing after an invalidation must not repopulate the cache."""
        disk.gate = asyncio.Event()
        stale = asyncio.ensure_future(cache.get())
        await asyncio.sleep(0)
        await asyncio.sleep(0)

        cache.invalidate()
        disk.packages["/ws/c/package.json"] = [pkg("svelte", "/ws/c/package.json")]
        disk.gate.set()
        await stale

        assert not cache.is_loaded
        assert names(await cache.get()) == ["react", "svelte", "vue"]

    @pytest.mark.asyncio
    async def test_stale_scope_reload_discarded(self, cache: InstalledPackageCache, disk: FakeDisk) -> None:
        await cache.get()
        scope = ManifestScope("/ws/a/package.json")
        disk.gate = asyncio.Event()

        disk.packages["/ws/a/package.json"] = [pkg("react", "/ws/a/package.json", "17.0.0")]
        older = asyncio.ensure_future(cache.refresh(scope))
        await asyncio.sleep(0)

        disk.packages["/ws/a/package.json"] = [pkg("react", "/ws/a/package.json", "18.0.0")]
        newer = asyncio.ensure_future(cache.refresh(scope))
        await asyncio.sleep(0)
        disk.gate.set()
        await asyncio.gather(older, newer)
        disk.gate = None

        versions = [p.current_version for p in await cache.get() if p.name == "react"]
        assert versions == ["18.0.0"]

    @pytest.mark.asyncio
    async def test_failed_load_is_retried(self, disk: FakeDisk) -> None:
        calls = {"count": 0}

        async def flaky() -> List[InstalledPackage]:
            calls["count"] += 1
            if calls["count"] == 1:
                raise OSError("transient")
            return await disk.load_all()

        cache = InstalledPackageCache(flaky, disk.load_scope)

        with pytest.raises(OSError):
            await cache.get()

        assert names(await cache.get()) == ["react", "vue"]
