"""
Registry clients for latest-version lookups.

Each ecosystem has its own client behind one capability,
``get_latest_version(name) -> Optional[str]``:

- :class:`NpmRegistryClient` - ``GET {registry}/{name}/latest``.
- :class:`NuGetRegistryClient` - V3 service index, registration index and
  search service.
- :class:`MavenRegistryClient` - Maven Central Solr search.

:class:`RegistryRouter` dispatches by :class:`~depatlas.models.Ecosystem`.
Clients raise :class:`~depatlas.exceptions.RegistryError` /
:class:`~depatlas.exceptions.NetworkError`; swallowing failures is left to
:class:`depatlas.core.data_store.RegistryDataStore`.

Typical usage::

    async with HTTPClient() as client:
        router = RegistryRouter.create(client)
        await router.get_latest_version("react", Ecosystem.NPM)
"""

from __future__ import annotations

import asyncio
from urllib.parse import quote
from typing import Any, Dict, List, Mapping, Optional, Sequence

from depatlas.constants import (
    MAVEN_SEARCH_URL,
    NPM_REGISTRY_URL,
    NUGET_SERVICE_INDEX_URL,
)
from depatlas.exceptions import RegistryError
from depatlas.models.package import Ecosystem
from depatlas.utils.http import HTTPClient
from depatlas.utils.logger import get_logger
from depatlas.utils.version_utils import sort_versions

logger = get_logger("registry")

__all__ = [
    "NpmRegistryClient",
    "NuGetRegistryClient",
    "MavenRegistryClient",
    "RegistryRouter",
]


class NpmRegistryClient:
    """npm registry client."""

    ecosystem = Ecosystem.NPM

    def __init__(self, http_client: HTTPClient, registry_url: str = NPM_REGISTRY_URL) -> None:
        self.http_client = http_client
        self.registry_url = registry_url.rstrip("/")

    def package_url(self, name: str) -> str:
        # Scoped names keep the "@" and escape the slash: @types%2Fnode
        return f"{self.registry_url}/{quote(name, safe='@')}"

    async def get_latest_version(self, name: str) -> Optional[str]:
        """Return the version behind the ``latest`` dist-tag."""
        data = await self.http_client.get_json(f"{self.package_url(name)}/latest")
        version = data.get("version")
        return version if isinstance(version, str) else None


def _is_stable_nuget_version(version: str) -> bool:
    return "-" not in version.split("+", 1)[0]


class NuGetRegistryClient:
    """NuGet V3 client.

    Resource URLs are read from the service index on first use; concurrent
    first calls share a single service index request.
    """

    ecosystem = Ecosystem.NUGET

    REGISTRATION_TYPES = (
        "RegistrationsBaseUrl/3.6.0",
        "RegistrationsBaseUrl/3.4.0",
        "RegistrationsBaseUrl",
    )
    SEARCH_TYPES = ("SearchQueryService/3.5.0", "SearchQueryService")

    def __init__(
        self,
        http_client: HTTPClient,
        service_index_url: str = NUGET_SERVICE_INDEX_URL,
    ) -> None:
        self.http_client = http_client
        self.service_index_url = service_index_url
        self._resources: Optional[List[Dict[str, Any]]] = None
        self._resources_lock = asyncio.Lock()

    async def _get_resources(self) -> List[Dict[str, Any]]:
        if self._resources is not None:
            return self._resources

        async with self._resources_lock:
            if self._resources is None:
                index = await self.http_client.get_json(self.service_index_url)
                resources = index.get("resources")
                self._resources = [r for r in resources if isinstance(r, dict)] if isinstance(resources, list) else []
            return self._resources

    async def _resource_url(self, types: Sequence[str]) -> str:
        resources = await self._get_resources()
        for wanted in types:
            for resource in resources:
                if resource.get("@type") == wanted and isinstance(resource.get("@id"), str):
                    return resource["@id"]
        raise RegistryError(
            f"NuGet service index has no {types[-1]} resource",
            url=self.service_index_url,
            ecosystem=self.ecosystem.value,
        )

    async def get_registration_index(self, package_id: str) -> List[str]:
        """Return every listed version of ``package_id``.

        Registration pages that are not inlined in the index are fetched.
        """
        base = (await self._resource_url(self.REGISTRATION_TYPES)).rstrip("/")
        index = await self.http_client.get_json(f"{base}/{package_id.lower()}/index.json")

        versions: List[str] = []
        for page in index.get("items") or []:
            leaves = page.get("items")
            if leaves is None and isinstance(page.get("@id"), str):
                leaves = (await self.http_client.get_json(page["@id"])).get("items")
            for leaf in leaves or []:
                entry = leaf.get("catalogEntry") or {}
                version = entry.get("version")
                if isinstance(version, str) and entry.get("listed", True) is not False:
                    versions.append(version)
        return versions

    async def search(self, query: str, take: int = 20) -> List[Dict[str, Any]]:
        url = await self._resource_url(self.SEARCH_TYPES)
        data = await self.http_client.get_json(
            url,
            params={"q": query, "take": take, "prerelease": "true", "semVerLevel": "2.0.0"},
        )
        results = data.get("data")
        return [item for item in results if isinstance(item, dict)] if isinstance(results, list) else []

    async def get_latest_version(self, package_id: str) -> Optional[str]:
        """Highest stable listed version, else the highest prerelease."""
        versions = await self.get_registration_index(package_id)
        if not versions:
            return None

        stable = [v for v in versions if _is_stable_nuget_version(v)]
        candidates = stable or versions
        return sort_versions(candidates, reverse=True)[0]


class MavenRegistryClient:
    """Maven Central search client. Names are ``groupId:artifactId``."""

    ecosystem = Ecosystem.MAVEN

    def __init__(self, http_client: HTTPClient, search_url: str = MAVEN_SEARCH_URL) -> None:
        self.http_client = http_client
        self.search_url = search_url

    async def get_latest_version(self, coordinate: str) -> Optional[str]:
        group_id, sep, artifact_id = coordinate.partition(":")
        if not sep or not group_id or not artifact_id:
            logger.debug("Not a Maven coordinate: %s", coordinate)
            return None

        data = await self.http_client.get_json(
            self.search_url,
            params={"q": f'g:"{group_id}" AND a:"{artifact_id}"', "rows": 1, "wt": "json"},
        )
        docs = (data.get("response") or {}).get("docs") or []
        if not docs:
            return None
        latest = docs[0].get("latestVersion")
        return latest if isinstance(latest, str) else None


class RegistryRouter:
    """Dispatch latest-version lookups to the client of an ecosystem."""

    def __init__(self, clients: Mapping[Ecosystem, Any]) -> None:
        self.clients = dict(clients)

    @classmethod
    def create(
        cls,
        http_client: HTTPClient,
        *,
        npm_registry_url: str = NPM_REGISTRY_URL,
        nuget_service_index: str = NUGET_SERVICE_INDEX_URL,
        maven_search_url: str = MAVEN_SEARCH_URL,
    ) -> "RegistryRouter":
        return cls(
            {
                Ecosystem.NPM: NpmRegistryClient(http_client, npm_registry_url),
                Ecosystem.NUGET: NuGetRegistryClient(http_client, nuget_service_index),
                Ecosystem.MAVEN: MavenRegistryClient(http_client, maven_search_url),
            }
        )

    async def get_latest_version(
        self,
        name: str,
        ecosystem: Ecosystem = Ecosystem.NPM,
    ) -> Optional[str]:
        client = self.clients.get(ecosystem)
        if client is None:
            raise RegistryError(
                f"No registry client for {ecosystem.value}",
                package_name=name,
                ecosystem=ecosystem.value,
            )
        return await client.get_latest_version(name)
