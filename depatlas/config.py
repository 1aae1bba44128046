"""Configuration file loader for depatlas.

Supports two formats:

- ``depatlas.toml`` — settings under the ``[depatlas]`` table
- ``pyproject.toml`` — settings under the ``[tool.depatlas]`` table

Discovery order:

1. Explicit path from ``--config`` or ``DEPATLAS_CONFIG``
2. ``depatlas.toml`` in the current directory
3. ``pyproject.toml`` with a ``[tool.depatlas]`` section

Configuration precedence: defaults < config file < CLI args.

Example (``depatlas.toml``)::

    [depatlas]
    update_batch_size = 8
    cache_ttl = 600
    npm_registry_url = "https://registry.example.com/npm"
    exclude_dirs = ["vendor", "generated"]
"""

from __future__ import annotations

import tomli as tomllib
from pathlib import Path
from typing import Any, Dict, List, Optional
from dataclasses import dataclass, field

from depatlas.exceptions import ConfigError
from depatlas.utils.logger import get_logger
from depatlas.constants import (
    DEFAULT_CACHE_TTL,
    DEFAULT_UPDATE_BATCH_SIZE,
    MAVEN_SEARCH_URL,
    NPM_REGISTRY_URL,
    NUGET_SERVICE_INDEX_URL,
)

logger = get_logger("config")


@dataclass
class DepAtlasConfig:
    """Parsed and validated depatlas configuration.

    All fields have defaults, so an empty config file is valid.

    Attributes:
        update_batch_size: Registry lookups issued concurrently per batch.
        cache_ttl: Seconds a latest-version lookup stays cached.
        npm_registry_url: Base URL of the npm registry.
        nuget_service_index: NuGet V3 service index URL.
        maven_search_url: Maven Central compatible Solr search URL.
        exclude_dirs: Directory names skipped in addition to each
            ecosystem's fixed excludes.
        source_path: Path of the loaded file, or ``None`` for defaults.
    """

    update_batch_size: int = DEFAULT_UPDATE_BATCH_SIZE
    cache_ttl: int = DEFAULT_CACHE_TTL
    npm_registry_url: str = NPM_REGISTRY_URL
    nuget_service_index: str = NUGET_SERVICE_INDEX_URL
    maven_search_url: str = MAVEN_SEARCH_URL
    exclude_dirs: List[str] = field(default_factory=list)

    # Metadata (not a user-facing option)
    source_path: Optional[Path] = field(default=None, repr=False)

    def to_log_dict(self) -> Dict[str, Any]:
        """Return the options as a dictionary for debug logging."""
        return {
            "update_batch_size": self.update_batch_size,
            "cache_ttl": self.cache_ttl,
            "npm_registry_url": self.npm_registry_url,
            "nuget_service_index": self.nuget_service_index,
            "maven_search_url": self.maven_search_url,
            "exclude_dirs": list(self.exclude_dirs),
        }


def discover_config_file(explicit_path: Optional[Path] = None) -> Optional[Path]:
    """Find the configuration file to load.

    Args:
        explicit_path: Explicit config path. If provided, it must exist.

    Returns:
        Resolved path to the config file, or ``None`` if none was found.

    Raises:
        ConfigError: ``explicit_path`` does not exist.
    """
    if explicit_path is not None:
        resolved = explicit_path.resolve()
        if not resolved.is_file():
            raise ConfigError(
                f"Configuration file not found: {explicit_path}",
                config_path=str(explicit_path),
            )
        logger.debug("Using explicit config: %s", resolved)
        return resolved

    cwd = Path.cwd()

    depatlas_toml = cwd / "depatlas.toml"
    if depatlas_toml.is_file():
        logger.debug("Found depatlas.toml: %s", depatlas_toml)
        return depatlas_toml

    pyproject_toml = cwd / "pyproject.toml"
    if pyproject_toml.is_file() and _pyproject_has_depatlas_section(pyproject_toml):
        logger.debug("Found [tool.depatlas] in pyproject.toml: %s", pyproject_toml)
        return pyproject_toml

    logger.debug("No configuration file found")
    return None


def _pyproject_has_depatlas_section(path: Path) -> bool:
    # An unreadable pyproject.toml simply means "not ours"
    try:
        raw = _read_toml(path)
    except ConfigError:
        return False
    tool = raw.get("tool")
    return isinstance(tool, dict) and "depatlas" in tool


def load_config(config_path: Optional[Path] = None) -> DepAtlasConfig:
    """Load and validate the depatlas configuration.

    Args:
        config_path: Explicit path to a config file. If ``None``, uses
            :func:`discover_config_file`.

    Returns:
        Validated :class:`DepAtlasConfig`, with defaults when no file exists.

    Raises:
        ConfigError: The file cannot be parsed, has unknown keys, or
            invalid values.
    """
    resolved = discover_config_file(config_path)

    if resolved is None:
        logger.debug("No config file found, using defaults")
        return DepAtlasConfig()

    logger.info("Loading configuration from %s", resolved)
    raw = _read_toml(resolved)

    if resolved.name == "pyproject.toml":
        section = raw.get("tool", {}).get("depatlas", {})
    else:
        section = raw.get("depatlas", {})

    if not section:
        logger.debug("Config file found but no depatlas section, using defaults")
        return DepAtlasConfig(source_path=resolved)

    if not isinstance(section, dict):
        raise ConfigError("depatlas configuration must be a table", config_path=str(resolved))

    config = _parse_section(section, config_path=str(resolved))
    config.source_path = resolved

    logger.debug("Loaded configuration: %s", config.to_log_dict())
    return config


def _read_toml(path: Path) -> Dict[str, Any]:
    """Read and parse a TOML file.

    Raises:
        ConfigError: The file cannot be read or is not valid TOML.
    """
    try:
        with open(path, "rb") as fh:
            return tomllib.load(fh)
    except tomllib.TOMLDecodeError as exc:
        raise ConfigError(
            f"Invalid TOML in {path.name}: {exc}",
            config_path=str(path),
        ) from exc
    except OSError as exc:
        raise ConfigError(
            f"Cannot read configuration file {path}: {exc}",
            config_path=str(path),
        ) from exc


def _type_error(option: str, expected: str, value: Any, config_path: str) -> ConfigError:
    return ConfigError(
        f"{option} must be {expected}, got {type(value).__name__}",
        config_path=config_path,
        option=option,
    )


def _parse_section(section: Dict[str, Any], *, config_path: str) -> DepAtlasConfig:
    """Validate a ``[depatlas]`` / ``[tool.depatlas]`` table.

    Raises:
        ConfigError: Unknown keys or values of the wrong type or range.
    """
    config = DepAtlasConfig()

    known = set(config.to_log_dict())
    unknown = set(section) - known
    if unknown:
        raise ConfigError(
            f"Unknown configuration keys: {', '.join(sorted(unknown))}",
            config_path=config_path,
        )

    # bool is an int subclass; reject it explicitly
    if "update_batch_size" in section:
        val = section["update_batch_size"]
        if not isinstance(val, int) or isinstance(val, bool):
            raise _type_error("update_batch_size", "an integer", val, config_path)
        if val < 1:
            raise ConfigError(
                f"update_batch_size must be at least 1, got {val}",
                config_path=config_path,
                option="update_batch_size",
            )
        config.update_batch_size = val

    if "cache_ttl" in section:
        val = section["cache_ttl"]
        if not isinstance(val, int) or isinstance(val, bool):
            raise _type_error("cache_ttl", "an integer", val, config_path)
        if val < 0:
            raise ConfigError(
                f"cache_ttl must not be negative, got {val}",
                config_path=config_path,
                option="cache_ttl",
            )
        config.cache_ttl = val

    for option in ("npm_registry_url", "nuget_service_index", "maven_search_url"):
        if option in section:
            val = section[option]
            if not isinstance(val, str) or not val.strip():
                raise _type_error(option, "a non-empty string", val, config_path)
            setattr(config, option, val.strip())

    if "exclude_dirs" in section:
        val = section["exclude_dirs"]
        if not isinstance(val, list) or not all(isinstance(item, str) for item in val):
            raise _type_error("exclude_dirs", "a list of strings", val, config_path)
        config.exclude_dirs = list(val)

    return config
