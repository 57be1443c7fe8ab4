"""
Recipe Serialization.

Reads and writes network recipes: YAML mappings whose top-level keys are
``NetworkConfig`` fields. Writes go to a sibling ``.tmp`` file that is then
moved over the target, so an interrupted ``canopy init`` never leaves a
half-written recipe behind.
"""

from __future__ import annotations

import logging
import os
from enum import Enum
from pathlib import Path
from typing import Any

import yaml

from ...exceptions import ConfigurationError
from ..constants import LOGGER_NAME
from ..logger.styles import LogStyle

logger = logging.getLogger(LOGGER_NAME)


def save_config_as_yaml(data: Any, yaml_path: Path, header: str = "") -> Path:
    """
    Write a recipe to ``yaml_path``.

    Args:
        data: A pydantic config (dumped in JSON mode) or a plain mapping.
        yaml_path: Destination file; missing parent directories are created.
        header: Text written verbatim before the YAML body (e.g. comments).

    Returns:
        The path that was written.

    Raises:
        ConfigurationError: If ``data`` cannot be turned into a YAML mapping.
        OSError: If the file cannot be written.
    """
    try:
        raw = data.model_dump(mode="json") if hasattr(data, "model_dump") else data
        body = yaml.safe_dump(
            _sanitize_for_yaml(raw),
            default_flow_style=False,
            sort_keys=False,
            indent=4,
            allow_unicode=True,
        )
    except (TypeError, ValueError, yaml.YAMLError) as e:
        error_msg = f"Could not serialize recipe for {yaml_path.name}: {e}"
        logger.error(f" {LogStyle.FAILURE} {error_msg}")
        raise ConfigurationError(error_msg) from e

    yaml_path.parent.mkdir(parents=True, exist_ok=True)
    tmp_path = yaml_path.with_name(yaml_path.name + ".tmp")
    try:
        with open(tmp_path, "w", encoding="utf-8") as f:
            f.write(header + body)
            f.flush()
            os.fsync(f.fileno())
        os.replace(tmp_path, yaml_path)
    except OSError:
        tmp_path.unlink(missing_ok=True)
        logger.error(f" {LogStyle.FAILURE} Could not write recipe to {yaml_path}")
        raise

    logger.debug(f"Recipe written {LogStyle.ARROW} {yaml_path}")
    return yaml_path


def load_config_from_yaml(yaml_path: Path) -> dict[str, Any]:
    """
    Read a recipe as a plain dict (empty for an empty file).

    Raises:
        FileNotFoundError: If the file does not exist.
        ConfigurationError: If the top level of the document is not a mapping.
    """
    if not yaml_path.exists():
        raise FileNotFoundError(f"Recipe not found at: {yaml_path}")

    with open(yaml_path, "r", encoding="utf-8") as f:
        data = yaml.safe_load(f)

    if data is None:
        return {}
    if not isinstance(data, dict):
        error_msg = (
            f"Recipe {yaml_path.name} must be a mapping of config fields, "
            f"got {type(data).__name__}"
        )
        logger.error(f" {LogStyle.FAILURE} {error_msg}")
        raise ConfigurationError(error_msg)
    return data


def _sanitize_for_yaml(obj: Any) -> Any:
    """Enums to values, paths to strings, tuples to lists; recursive."""
    if isinstance(obj, dict):
        return {k: _sanitize_for_yaml(v) for k, v in obj.items()}
    if isinstance(obj, (list, tuple)):
        return [_sanitize_for_yaml(i) for i in obj]
    if isinstance(obj, Enum):
        return obj.value
    if isinstance(obj, Path):
        return str(obj)
    return obj
