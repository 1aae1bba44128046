"""
Shared context object for depatlas CLI commands.

One :class:`DepAtlasContext` is created per invocation by the top-level
group and handed to sub-commands through Click's context mechanism.
"""

from __future__ import annotations

from pathlib import Path
from typing import Optional

import click

from depatlas.config import DepAtlasConfig


class DepAtlasContext:
    """Global context object for depatlas CLI commands.

    Attributes:
        config_path: Path to the configuration file, if one was used.
        verbose: Verbosity level (0=WARNING, 1=INFO, 2+=DEBUG).
        color: Whether colored terminal output is enabled.
        config: Loaded configuration; defaults until the group callback runs.
    """

    __slots__ = ("config_path", "verbose", "color", "config")

    def __init__(self) -> None:
        self.config_path: Optional[Path] = None
        self.verbose: int = 0
        self.color: bool = True
        self.config: DepAtlasConfig = DepAtlasConfig()


#: Click decorator for injecting :class:`DepAtlasContext` into commands.
pass_context = click.make_pass_decorator(DepAtlasContext, ensure=True)
