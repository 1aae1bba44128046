"""Graph command: workspace projects, local links and alignment issues.

Typical usage::

    $ depatlas graph
    $ depatlas graph --format json | jq '.alignment_issues'
"""

from __future__ import annotations

import sys
import asyncio
from pathlib import Path
from typing import Tuple

import click

from depatlas.commands.common import create_service, folders_argument, format_option
from depatlas.context import DepAtlasContext, pass_context
from depatlas.exceptions import DepAtlasError
from depatlas.models import WorkspaceProjectGraph
from depatlas.utils.console import (
    get_raw_console,
    print_error,
    print_json,
    print_success,
    print_table,
    print_warning,
)
from depatlas.utils.logger import get_logger

logger = get_logger("commands.graph")


@click.command()
@folders_argument
@format_option
@pass_context
def graph(ctx: DepAtlasContext, folders: Tuple[Path, ...], output_format: str) -> None:
    """Show the project graph of the package.json projects in FOLDERS."""
    try:
        result = asyncio.run(create_service(ctx, folders).get_workspace_project_graph())
    except DepAtlasError as exc:
        print_error(str(exc))
        sys.exit(1)

    if output_format == "json":
        print_json(result.to_json())
        return

    _display(result)


def _display(result: WorkspaceProjectGraph) -> None:
    if not result.projects:
        print_warning("No package.json projects found")
        return

    console = get_raw_console()
    tools = ", ".join(tool.value for tool in result.tools)
    console.print(f"[bold]Monorepo tools:[/bold] {tools}")

    names = {project.manifest_path: project.name for project in result.projects}
    print_table(
        [
            {
                "Project": project.name,
                "Path": project.relative_path,
                "Dependencies": len(project.dependencies),
                "Uses": ", ".join(names[path] for path in project.local_dependencies) or "-",
                "Used By": ", ".join(names[path] for path in project.local_dependents) or "-",
            }
            for project in result.projects
        ],
        title="Workspace Projects",
        column_styles={"Project": {"style": "bold cyan", "no_wrap": True}},
    )

    if not result.alignment_issues:
        print_success("All shared dependencies use the same version spec")
        return

    print_table(
        [
            {
                "Package": issue.package_name,
                "Specs": ", ".join(issue.specs),
                "Consumers": ", ".join(
                    f"{consumer.manifest_name} ({consumer.spec})" for consumer in issue.consumers
                ),
            }
            for issue in result.alignment_issues
        ],
        title="Alignment Issues",
        column_styles={"Package": {"style": "bold yellow", "no_wrap": True}},
    )
    print_warning(f"{len(result.alignment_issues)} package(s) are declared with diverging specs")
