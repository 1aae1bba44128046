"""TFM command: expand declared target frameworks into a compatibility map.

Typical usage::

    $ depatlas tfm netstandard2.0
    $ depatlas tfm .NETFramework4.6.1 net8.0 --format json
"""

from __future__ import annotations

from typing import Tuple

import click

from depatlas.commands.common import format_option
from depatlas.nuget.tfm import (
    TfmStatus,
    compute_all_tfms_with_status,
    normalized_tfm_to_display,
)
from depatlas.utils.console import colorize_tfm_status, print_json, print_table


@click.command()
@click.argument("tfms", nargs=-1, required=True)
@format_option
def tfm(tfms: Tuple[str, ...], output_format: str) -> None:
    """Show every framework that can consume a package declaring TFMS."""
    statuses = compute_all_tfms_with_status(tfms)

    if output_format == "json":
        print_json({moniker: status.value for moniker, status in statuses.items()})
        return

    declared = sum(1 for status in statuses.values() if status is TfmStatus.COMPATIBLE)
    print_table(
        [
            {
                "Framework": moniker,
                "Display": normalized_tfm_to_display(moniker),
                "Status": colorize_tfm_status(status.value),
            }
            for moniker, status in statuses.items()
        ],
        title="Target Framework Compatibility",
        caption=f"{declared} declared, {len(statuses) - declared} derived",
        column_styles={"Framework": {"style": "bold", "no_wrap": True}},
    )
