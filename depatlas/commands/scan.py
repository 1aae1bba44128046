"""Scan command: list every declared dependency of a workspace.

Typical usage::

    $ depatlas scan
    $ depatlas scan ./frontend ./backend --format json
"""

from __future__ import annotations

import sys
import asyncio
from pathlib import Path
from typing import Dict, List, Tuple

import click

from depatlas.commands.common import create_service, folders_argument, format_option
from depatlas.context import DepAtlasContext, pass_context
from depatlas.exceptions import DepAtlasError
from depatlas.models import InstalledPackage
from depatlas.utils.console import print_error, print_json, print_table, print_warning
from depatlas.utils.logger import get_logger
from depatlas.utils.sorting import locale_key

logger = get_logger("commands.scan")


@click.command()
@folders_argument
@format_option
@pass_context
def scan(ctx: DepAtlasContext, folders: Tuple[Path, ...], output_format: str) -> None:
    """List installed packages across all manifests of FOLDERS."""
    try:
        packages = asyncio.run(create_service(ctx, folders).get_installed_packages())
    except DepAtlasError as exc:
        print_error(str(exc))
        sys.exit(1)

    packages = sorted(packages, key=lambda p: (locale_key(p.manifest_path), locale_key(p.name)))
    logger.info("Found %d installed packages", len(packages))

    if output_format == "json":
        print_json([pkg.to_json() for pkg in packages])
        return

    if not packages:
        print_warning("No dependency manifests found")
        return

    _display_table(packages)


def _display_table(packages: List[InstalledPackage]) -> None:
    data: List[Dict[str, str]] = [
        {
            "Package": pkg.name,
            "Version": pkg.current_version,
            "Type": pkg.type.value,
            "Ecosystem": pkg.ecosystem.value,
            "Manifest": pkg.manifest_name or pkg.manifest_path,
        }
        for pkg in packages
    ]
    print_table(
        data,
        title="Installed Packages",
        column_styles={
            "Package": {"style": "bold cyan", "no_wrap": True},
            "Version": {"justify": "center"},
            "Type": {"style": "dim"},
        },
    )
