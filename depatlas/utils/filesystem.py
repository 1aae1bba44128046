"""
Filesystem utilities for depatlas.

This module provides safe helpers for reading, writing and discovering
manifest files. All filesystem errors are normalized to
``FileOperationError``. :class:`ManifestFileSystem` bundles these helpers
into the read/write/search capability handed to the discovery, aggregation
and graph components, which lets tests substitute an in-memory double.
"""

from __future__ import annotations

import os
import json
import fnmatch
import tempfile
from pathlib import Path
from typing import Any, Iterable, List, Optional, Union

from depatlas.utils.logger import get_logger
from depatlas.exceptions import FileOperationError
from depatlas.constants import MAX_FILE_SIZE


logger = get_logger("filesystem")

PathLike = Union[str, Path]


def _validated_file(path: Path) -> Path:
    """Validate and resolve an existing file path."""
    if not path.exists():
        raise FileOperationError(
            f"File not found: {path}",
            file_path=str(path),
            operation="read",
        )
    if not path.is_file():
        raise FileOperationError(
            f"Not a file: {path}",
            file_path=str(path),
            operation="read",
        )
    return path.resolve()


def _atomic_write(target: Path, content: str) -> None:
    """Atomically write text to a file using a temporary file + replace."""
    target.parent.mkdir(parents=True, exist_ok=True)
    temp_path: Optional[Path] = None

    try:
        with tempfile.NamedTemporaryFile(
            mode="w",
            encoding="utf-8",
            newline="",
            dir=str(target.parent),
            delete=False,
            prefix=f".{target.name}.",
            suffix=".tmp",
        ) as tmp:
            temp_path = Path(tmp.name)
            tmp.write(content)
            tmp.flush()
            os.fsync(tmp.fileno())

        temp_path.replace(target)

    except OSError as exc:
        if temp_path is not None and temp_path.exists():
            try:
                temp_path.unlink()
            except OSError as cleanup_exc:
                logger.warning(
                    "Failed to clean up temporary file %s: %s",
                    temp_path,
                    cleanup_exc,
                )

        raise FileOperationError(
            f"Atomic write failed: {exc}",
            file_path=str(target),
            operation="write",
            original_error=exc,
        ) from exc


def safe_read_file(
    file_path: PathLike,
    *,
    max_size: Optional[int] = MAX_FILE_SIZE,
    encoding: str = "utf-8",
) -> str:
    """Safely read a text file with optional size limits.

    Args:
        file_path: Path to the file.
        max_size: Maximum allowed file size in bytes (None disables limit).
        encoding: Text encoding.

    Returns:
        File contents as a string.
    """
    path = _validated_file(Path(file_path))
    size = path.stat().st_size

    if max_size is not None and size > max_size:
        raise FileOperationError(
            f"File too large: {size} bytes (max {max_size})",
            file_path=str(path),
            operation="read",
        )

    try:
        # newline="" keeps CRLF manifests byte-identical when rewritten.
        with path.open("r", encoding=encoding, newline="") as handle:
            return handle.read()
    except (OSError, UnicodeDecodeError) as exc:
        raise FileOperationError(
            f"Failed to read file: {exc}",
            file_path=str(path),
            operation="read",
            original_error=exc,
        ) from exc


def safe_write_file(file_path: PathLike, content: str) -> None:
    """Safely write text to a file using atomic replacement."""
    _atomic_write(Path(file_path), content)


def _is_excluded(relative: Path, exclude_dirs: Iterable[str]) -> bool:
    excluded = set(exclude_dirs)
    return any(part in excluded for part in relative.parts[:-1])


def find_files(
    root: PathLike,
    pattern: str,
    *,
    exclude_dirs: Iterable[str] = (),
) -> List[Path]:
    """Find files under ``root`` matching a glob ``pattern``.

    ``pattern`` is relative to ``root`` and uses ``*``, ``?`` and ``**``.
    Files inside any directory named in ``exclude_dirs`` are skipped; for
    ``**/<name>`` patterns those directories are not even entered.

    Returns:
        Sorted, de-duplicated absolute paths.
    """
    base = Path(root).resolve()
    if not base.is_dir():
        return []

    excluded = tuple(exclude_dirs)
    pattern = pattern.replace("\\", "/")
    while pattern.startswith("./"):
        pattern = pattern[2:]

    matches: List[Path] = []

    tail = pattern[3:] if pattern.startswith("**/") else None
    if tail is not None and "/" not in tail:
        for dirpath, dirnames, filenames in os.walk(base):
            dirnames[:] = [d for d in dirnames if d not in excluded]
            for filename in fnmatch.filter(filenames, tail):
                matches.append(Path(dirpath) / filename)
    else:
        try:
            candidates = list(base.glob(pattern))
        except (ValueError, NotImplementedError) as exc:
            logger.debug("Ignoring unsupported glob pattern %r under %s: %s", pattern, base, exc)
            return []
        for candidate in candidates:
            if not candidate.is_file():
                continue
            if _is_excluded(candidate.relative_to(base), excluded):
                continue
            matches.append(candidate)

    return sorted(set(matches))


class ManifestFileSystem:
    """Read/write/search capability used by the dependency services.

    Reads never raise for missing or malformed files: :meth:`read_text`
    and :meth:`read_json` return ``None`` and log the reason at DEBUG.
    Writes are atomic and raise :class:`FileOperationError` on failure.
    """

    def exists(self, path: PathLike) -> bool:
        return Path(path).exists()

    def is_dir(self, path: PathLike) -> bool:
        return Path(path).is_dir()

    def list_dir(self, path: PathLike) -> List[str]:
        """Return entry names of a directory, or an empty list."""
        try:
            return sorted(os.listdir(path))
        except OSError:
            return []

    def read_text(self, path: PathLike) -> Optional[str]:
        try:
            return safe_read_file(path)
        except FileOperationError as exc:
            logger.debug("Cannot read %s: %s", path, exc)
            return None

    def read_json(self, path: PathLike) -> Optional[Any]:
        text = self.read_text(path)
        if text is None:
            return None
        try:
            return json.loads(text)
        except json.JSONDecodeError as exc:
            logger.debug("Invalid JSON in %s: %s", path, exc)
            return None

    def write_text(self, path: PathLike, content: str) -> None:
        safe_write_file(path, content)

    def find_files(
        self,
        root: PathLike,
        pattern: str,
        *,
        exclude_dirs: Iterable[str] = (),
    ) -> List[str]:
        return [str(p) for p in find_files(root, pattern, exclude_dirs=exclude_dirs)]
