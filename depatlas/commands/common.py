"""
Helpers shared by the CLI commands.

Every command works on a list of workspace folders (the current directory
when none are given) and builds one :class:`WorkspaceService` from the
loaded configuration.
"""

from __future__ import annotations

from contextlib import asynccontextmanager
from pathlib import Path
from typing import AsyncIterator, List, Optional, Sequence

import click

from depatlas.context import DepAtlasContext
from depatlas.core.data_store import RegistryDataStore
from depatlas.core.registry import RegistryRouter
from depatlas.core.workspace import WorkspaceService
from depatlas.utils.http import HTTPClient

#: Positional ``FOLDERS...`` argument used by most commands.
folders_argument = click.argument(
    "folders",
    nargs=-1,
    type=click.Path(exists=True, file_okay=False, path_type=Path),
)

#: ``--format table|json`` option.
format_option = click.option(
    "--format",
    "-f",
    "output_format",
    type=click.Choice(["table", "json"], case_sensitive=False),
    default="table",
    show_default=True,
    help="Output format.",
)


def workspace_folders(folders: Sequence[Path]) -> List[str]:
    return [str(folder) for folder in folders] or [str(Path.cwd())]


def create_service(
    ctx: DepAtlasContext,
    folders: Sequence[Path],
    registry: Optional[RegistryDataStore] = None,
) -> WorkspaceService:
    config = ctx.config
    return WorkspaceService(
        workspace_folders(folders),
        registry=registry,
        exclude_dirs=config.exclude_dirs,
        update_batch_size=config.update_batch_size,
    )


@asynccontextmanager
async def registry_store(ctx: DepAtlasContext) -> AsyncIterator[RegistryDataStore]:
    """Open an HTTP client and yield a cached registry lookup over it."""
    config = ctx.config
    async with HTTPClient() as http:
        router = RegistryRouter.create(
            http,
            npm_registry_url=config.npm_registry_url,
            nuget_service_index=config.nuget_service_index,
            maven_search_url=config.maven_search_url,
        )
        yield RegistryDataStore(router, ttl=config.cache_ttl)
