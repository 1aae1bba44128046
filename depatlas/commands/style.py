"""Style command: detect how NuGet packages are managed for a path.

Typical usage::

    $ depatlas style src/App/App.csproj
    $ depatlas style src/App --package Serilog --version 3.1.1
"""

from __future__ import annotations

import asyncio
from pathlib import Path
from typing import Optional, Tuple

import click

from depatlas.commands.common import create_service, folders_argument
from depatlas.context import DepAtlasContext, pass_context
from depatlas.nuget.snippets import STYLE_TO_COPY_FORMAT, get_copy_snippet
from depatlas.nuget.style import MANAGEMENT_STYLE_LABELS, install_target_label
from depatlas.utils.console import get_raw_console, print_table


@click.command()
@click.argument("path", type=click.Path(exists=True, path_type=Path))
@folders_argument
@click.option("--package", "-p", "package_id", help="Print the snippet adding this NuGet package.")
@click.option("--version", "version", help="Version to pin in the snippet.")
@pass_context
def style(
    ctx: DepAtlasContext,
    path: Path,
    folders: Tuple[Path, ...],
    package_id: Optional[str],
    version: Optional[str],
) -> None:
    """Detect the NuGet management style in effect for PATH."""
    service = create_service(ctx, folders)
    detected = service.detect_nuget_style(str(path))
    copy_format = STYLE_TO_COPY_FORMAT[detected]

    console = get_raw_console()
    console.print(f"[bold]Management style:[/bold] {MANAGEMENT_STYLE_LABELS[detected]}")
    console.print(f"[bold]Copy format:[/bold] {copy_format.value}")

    if package_id:
        # snippets may contain square brackets
        console.print(get_copy_snippet(package_id, version, copy_format), markup=False)

    targets = asyncio.run(service.get_dotnet_install_targets())
    if targets:
        rows = []
        for target in targets:
            label, manager = install_target_label(target)
            rows.append({"Target": label, "Manager": manager, "Path": target})
        print_table(rows, title="Install Targets")
