"""
Executable module for depatlas.

Running ``python -m depatlas`` is equivalent to running ``depatlas``.
"""

from __future__ import annotations

import sys

from depatlas.cli import main

if __name__ == "__main__":
    sys.exit(main())
