"""Locate and read ``[tool.changebump]`` from pyproject.toml.

Only the command line uses this module. Library callers build a
:class:`ChangebumpConfig` themselves (or via ``load_config_from_mapping``).
"""

from __future__ import annotations

import logging
import tomllib
from pathlib import Path
from typing import Any

from changebump.config.models import ChangebumpConfig, load_config_from_mapping
from changebump.exceptions import ConfigError

logger = logging.getLogger(__name__)

TOOL_SECTION = "changebump"


def find_pyproject_toml(start: Path | None = None) -> Path | None:
    """Walk up from ``start`` looking for pyproject.toml.

    The search stops at the enclosing git repository root.
    """
    current = (start or Path.cwd()).resolve()
    for directory in [current, *current.parents]:
        candidate = directory / "pyproject.toml"
        if candidate.is_file():
            return candidate
        if (directory / ".git").exists():
            break
    return None


def load_pyproject_toml(path: Path) -> dict[str, Any]:
    try:
        with path.open("rb") as f:
            return tomllib.load(f)
    except FileNotFoundError as e:
        raise ConfigError(f"Configuration file not found: {path}") from e
    except tomllib.TOMLDecodeError as e:
        raise ConfigError(f"Invalid TOML in {path}: {e}") from e


def extract_changebump_config(pyproject: dict[str, Any]) -> dict[str, Any]:
    return pyproject.get("tool", {}).get(TOOL_SECTION, {})


def load_config(project_path: Path | None = None) -> ChangebumpConfig:
    """Resolve the configuration for a project directory.

    Falls back to the defaults when there is no pyproject.toml or it has no
    ``[tool.changebump]`` table.

    Raises:
        ConfigError: If the file cannot be read or the table is invalid
    """
    pyproject_path = find_pyproject_toml(project_path)
    if pyproject_path is None:
        logger.debug("no pyproject.toml found, using defaults")
        return ChangebumpConfig()
    data = extract_changebump_config(load_pyproject_toml(pyproject_path))
    logger.debug("loaded configuration from %s", pyproject_path)
    return load_config_from_mapping(data)


def merge_overrides(config: ChangebumpConfig, overrides: dict[str, dict[str, Any]]) -> ChangebumpConfig:
    """Layer per-section overrides (``None`` values ignored) on top of ``config``."""
    data = config.model_dump()
    for section, values in overrides.items():
        for key, value in values.items():
            if value is not None:
                data[section][key] = value
    return load_config_from_mapping(data)
