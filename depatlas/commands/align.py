"""Align command: rewrite one package to the same spec everywhere.

Typical usage::

    $ depatlas align react ^18.3.1
    $ depatlas align typescript ~5.4.0 --yes
"""

from __future__ import annotations

import sys
import asyncio
from pathlib import Path
from typing import Tuple

import click

from depatlas.commands.common import create_service, folders_argument
from depatlas.context import DepAtlasContext, pass_context
from depatlas.core.workspace import WorkspaceService
from depatlas.exceptions import DepAtlasError
from depatlas.utils.console import confirm, print_error, print_success, print_warning
from depatlas.utils.logger import get_logger

logger = get_logger("commands.align")


@click.command()
@click.argument("package")
@click.argument("version")
@folders_argument
@click.option("--yes", "-y", is_flag=True, help="Skip the confirmation prompt.")
@pass_context
def align(
    ctx: DepAtlasContext,
    package: str,
    version: str,
    folders: Tuple[Path, ...],
    yes: bool,
) -> None:
    """Set PACKAGE to VERSION in every package.json of FOLDERS.

    Workspace, file, path and git specs are left untouched.
    """
    service = create_service(ctx, folders)

    try:
        consumers = asyncio.run(_consumers(service, package))
    except DepAtlasError as exc:
        print_error(str(exc))
        sys.exit(1)

    if consumers == 0:
        print_warning(f"No project declares {package}")
        return

    if not yes and not confirm(f"Set {package} to {version} in {consumers} declaration(s)?"):
        print_warning("Alignment cancelled")
        return

    updated = asyncio.run(service.align_workspace_dependency_versions(package, version))
    if updated:
        print_success(f"Updated {updated} manifest(s)")
    else:
        print_success(f"{package} already uses {version} everywhere")


async def _consumers(service: WorkspaceService, package: str) -> int:
    graph = await service.get_workspace_project_graph()
    return sum(
        1
        for project in graph.projects
        for dependency in project.dependencies
        if dependency.name == package
    )
