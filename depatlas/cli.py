"""
Command-line interface for depatlas.

Provides the main entry point, global options, configuration loading and
command registration.
"""

from __future__ import annotations

import os
import sys
import logging
from pathlib import Path
from typing import Optional

import click

from depatlas.config import load_config
from depatlas.__version__ import __version__
from depatlas.context import DepAtlasContext
from depatlas.exceptions import ConfigError, DepAtlasError
from depatlas.utils.logger import get_logger, level_for_verbosity, setup_logging
from depatlas.utils.console import print_error, print_warning, reconfigure_console
from depatlas.commands.align import align
from depatlas.commands.check import check
from depatlas.commands.graph import graph
from depatlas.commands.scan import scan
from depatlas.commands.style import style
from depatlas.commands.tfm import tfm

logger = get_logger("cli")


@click.group(context_settings={"help_option_names": ["-h", "--help"]})
@click.option(
    "--config",
    "-c",
    type=click.Path(exists=True, dir_okay=False, path_type=Path),
    help="Path to configuration file.",
    envvar="DEPATLAS_CONFIG",
)
@click.option(
    "--verbose",
    "-v",
    count=True,
    help="Increase verbosity (can be repeated: -v, -vv).",
)
@click.option(
    "--color/--no-color",
    default=True,
    help="Enable or disable colored output.",
    envvar="DEPATLAS_COLOR",
)
@click.version_option(
    version=__version__,
    prog_name="depatlas",
    message="%(prog)s %(version)s",
)
@click.pass_context
def cli(
    ctx: click.Context,
    config: Optional[Path],
    verbose: int,
    color: bool,
) -> None:
    """depatlas: dependency intelligence for npm, Maven and NuGet workspaces.

    \b
    Available commands:
      depatlas scan       List installed packages
      depatlas check      Check for available updates
      depatlas graph      Show workspace projects and alignment issues
      depatlas align      Align one package to a single version spec
      depatlas tfm        Expand NuGet target framework compatibility
      depatlas style      Detect the NuGet management style of a path

    Use ``depatlas COMMAND --help`` for command-specific options.
    """
    _configure_logging(verbose)

    try:
        loaded_config = load_config(config)
    except ConfigError as exc:
        print_error(str(exc))
        raise SystemExit(1) from exc

    depatlas_ctx = DepAtlasContext()
    depatlas_ctx.config_path = config or loaded_config.source_path
    depatlas_ctx.color = color
    depatlas_ctx.verbose = verbose
    depatlas_ctx.config = loaded_config
    ctx.obj = depatlas_ctx

    # Respect NO_COLOR for downstream libraries
    if color:
        os.environ.pop("NO_COLOR", None)
    else:
        os.environ["NO_COLOR"] = "1"
    reconfigure_console()

    logger.debug("depatlas v%s", __version__)
    logger.debug("Config path: %s", depatlas_ctx.config_path)
    logger.debug("Verbosity: %s | Color: %s", verbose, color)


def _configure_logging(verbose: int) -> None:
    level = level_for_verbosity(verbose)
    setup_logging(level=level)
    logger.debug("Logging initialized at %s level", logging.getLevelName(level))


cli.add_command(scan)
cli.add_command(check)
cli.add_command(graph)
cli.add_command(align)
cli.add_command(tfm)
cli.add_command(style)


def main() -> int:
    """Main entry point for the depatlas CLI.

    Returns:
        Exit code:
            0   Success
            1   Updates found, or an application error
            2   Usage error (Click)
            130 Interrupted by user (Ctrl+C)
    """
    try:
        cli(standalone_mode=False)
        return 0

    except click.exceptions.Abort:
        print_warning("\nOperation cancelled by user")
        return 130

    except click.ClickException as exc:
        exc.show()
        return exc.exit_code

    except SystemExit as exc:
        return exc.code if isinstance(exc.code, int) else 1

    except DepAtlasError as exc:
        print_error(str(exc))
        logger.debug(
            "DepAtlasError details: %s",
            exc.details or "<none>",
            exc_info=True,
        )
        return 1

    except KeyboardInterrupt:
        print_warning("\nOperation cancelled by user")
        return 130

    except Exception as exc:
        print_error(f"Unexpected error: {exc}")
        logger.exception("Unhandled exception in CLI")
        return 1


if __name__ == "__main__":
    sys.exit(main())
