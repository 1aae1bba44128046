"""Check command: report packages with newer registry versions.

Every distinct package is looked up once through a shared
:class:`~depatlas.core.data_store.RegistryDataStore`, in batches of
``update_batch_size`` concurrent requests.

Typical usage::

    $ depatlas check
    $ depatlas check --manifest packages/web/package.json
    $ depatlas check --format json > report.json

Exits with status 1 when at least one update is available, so the command
can gate CI pipelines.
"""

from __future__ import annotations

import sys
import asyncio
from pathlib import Path
from typing import Dict, List, Optional, Tuple

import click

from depatlas.commands.common import (
    create_service,
    folders_argument,
    format_option,
    registry_store,
)
from depatlas.context import DepAtlasContext, pass_context
from depatlas.exceptions import DepAtlasError
from depatlas.models import InstalledPackage, ManifestScope
from depatlas.utils.console import (
    colorize_update_type,
    print_error,
    print_json,
    print_success,
    print_table,
    print_warning,
)
from depatlas.utils.logger import get_logger
from depatlas.utils.sorting import locale_key

logger = get_logger("commands.check")


@click.command()
@folders_argument
@click.option(
    "--manifest",
    "-m",
    type=click.Path(exists=True, dir_okay=False, path_type=Path),
    help="Only check the packages of this manifest.",
)
@format_option
@pass_context
def check(
    ctx: DepAtlasContext,
    folders: Tuple[Path, ...],
    manifest: Optional[Path],
    output_format: str,
) -> None:
    """Check FOLDERS for packages with available updates.

    Exits 0 when everything is up to date and 1 when updates exist or an
    error occurred.
    """
    try:
        updates = asyncio.run(_check_async(ctx, folders, manifest))
    except DepAtlasError as exc:
        print_error(str(exc))
        sys.exit(1)

    if output_format == "json":
        print_json([pkg.to_json() for pkg in updates])
    elif updates:
        _display_table(updates)
        print_warning(f"\n{len(updates)} package declaration(s) have updates available")
    else:
        print_success("All packages are up to date!")

    sys.exit(1 if updates else 0)


async def _check_async(
    ctx: DepAtlasContext,
    folders: Tuple[Path, ...],
    manifest: Optional[Path],
) -> List[InstalledPackage]:
    scope = ManifestScope(str(manifest.resolve())) if manifest else None

    async with registry_store(ctx) as registry:
        service = create_service(ctx, folders, registry)
        updates = await service.get_updatable_packages(scope)

    logger.info("%d package declaration(s) can be updated", len(updates))
    return sorted(updates, key=lambda p: (locale_key(p.name), locale_key(p.manifest_path)))


def _display_table(packages: List[InstalledPackage]) -> None:
    data: List[Dict[str, str]] = [
        {
            "Package": pkg.name,
            "Current": pkg.current_version,
            "Latest": pkg.latest_version or "-",
            "Update Type": colorize_update_type(pkg.update_type or "-"),
            "Manifest": pkg.manifest_name or pkg.manifest_path,
        }
        for pkg in packages
    ]
    print_table(
        data,
        title="Available Updates",
        column_styles={
            "Package": {"style": "bold cyan", "no_wrap": True},
            "Current": {"justify": "center", "style": "dim"},
            "Latest": {"justify": "center", "style": "bold green"},
            "Update Type": {"justify": "center"},
        },
    )
