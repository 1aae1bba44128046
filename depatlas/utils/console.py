"""
Console output utilities for depatlas using Rich.

User-facing output for CLI commands lives here; diagnostics go through
:mod:`depatlas.utils.logger` instead.

- ``print_*`` functions: one-line status messages
- :func:`print_table` / :func:`print_json`: structured command output
- :func:`confirm`: interactive yes/no prompts
"""

from __future__ import annotations

import os
import sys
import threading
from typing import Any, Callable, Dict, List, Optional

from rich.table import Table
from rich.theme import Theme
from rich.console import Console

DEPATLAS_THEME = Theme(
    {
        "success": "bold green",
        "error": "bold red",
        "warning": "bold yellow",
        "info": "bold cyan",
        "dim": "dim",
        "highlight": "bold magenta",
    }
)

_UPDATE_TYPE_COLORS = {
    "major": "red",
    "minor": "yellow",
    "patch": "green",
    "prerelease": "magenta",
}

_TFM_STATUS_COLORS = {
    "compatible": "green",
    "computed": "cyan",
}

_console: Optional[Console] = None
_console_lock = threading.Lock()


def _should_use_color() -> bool:
    if os.environ.get("NO_COLOR") or os.environ.get("CI"):
        return False
    try:
        return sys.stdout.isatty()
    except (AttributeError, OSError):
        return False


def _get_console() -> Console:
    """Return the process-wide Rich console, creating it on first use."""
    global _console

    if _console is None:
        with _console_lock:
            if _console is None:
                use_color = _should_use_color()
                _console = Console(
                    theme=DEPATLAS_THEME,
                    no_color=not use_color,
                    highlight=use_color,
                )
    return _console


def reconfigure_console() -> None:
    """Drop the console so the next call picks up a changed ``NO_COLOR``."""
    global _console
    with _console_lock:
        _console = None


def get_raw_console() -> Console:
    return _get_console()


def print_success(message: str, *, prefix: str = "[OK]") -> None:
    _get_console().print(f"{prefix} {message}", style="success")


def print_error(message: str, *, prefix: str = "[ERROR]") -> None:
    _get_console().print(f"{prefix} {message}", style="error")


def print_warning(message: str, *, prefix: str = "[WARNING]") -> None:
    _get_console().print(f"{prefix} {message}", style="warning")


def print_info(message: str) -> None:
    _get_console().print(message, style="info")


def print_json(data: Any) -> None:
    """Print ``data`` as indented JSON."""
    _get_console().print_json(data=data)


def print_table(
    data: List[Dict[str, Any]],
    *,
    headers: Optional[List[str]] = None,
    title: Optional[str] = None,
    caption: Optional[str] = None,
    column_styles: Optional[Dict[str, Dict[str, Any]]] = None,
    row_styler: Optional[Callable[[Dict[str, Any]], Optional[str]]] = None,
) -> None:
    """Render row dictionaries as a Rich table.

    Args:
        data: Rows; nothing is printed for an empty list.
        headers: Column order. Defaults to the keys of the first row.
        title: Optional table title.
        caption: Optional caption under the table.
        column_styles: Per-column ``style``/``justify``/``no_wrap`` options.
        row_styler: Callback returning a style for a whole row.
    """
    if not data:
        return

    if headers is None:
        headers = list(data[0].keys())

    table = Table(title=title, caption=caption, show_header=True, header_style="bold")

    column_styles = column_styles or {}
    for header in headers:
        config = column_styles.get(header, {})
        table.add_column(
            header,
            style=config.get("style"),
            justify=config.get("justify", "default"),
            no_wrap=config.get("no_wrap", False),
            overflow=config.get("overflow", "fold"),
        )

    for row in data:
        values = [str(row.get(h, "")) for h in headers]
        style = row_styler(row) if row_styler else None
        table.add_row(*values, style=style)

    _get_console().print(table)


def confirm(message: str, *, default: bool = False) -> bool:
    """Ask a yes/no question.

    Empty or unrecognized answers return ``default``; Ctrl+C and EOF
    return ``False``.
    """
    console = _get_console()
    suffix = " [Y/n]: " if default else " [y/N]: "
    # "[y/N]" would otherwise parse as a markup tag
    console.print(f"{message}{suffix}", end="", style="info", markup=False)

    try:
        response = input().strip().lower()
    except (KeyboardInterrupt, EOFError):
        console.print()
        return False

    if response in ("y", "yes"):
        return True
    if response in ("n", "no"):
        return False
    return default


def _colorize(label: str, colors: Dict[str, str]) -> str:
    color = colors.get(label.lower())
    return f"[{color}]{label}[/{color}]" if color else label


def colorize_update_type(update_type: str) -> str:
    """Rich markup for ``major``/``minor``/``patch``/``prerelease``."""
    return _colorize(update_type, _UPDATE_TYPE_COLORS)


def colorize_tfm_status(status: str) -> str:
    return _colorize(status, _TFM_STATUS_COLORS)
