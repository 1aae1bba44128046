"""depatlas version information; read by the build backend and ``--version``."""

from __future__ import annotations

__version__ = "0.1.0"
