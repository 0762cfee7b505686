"""Configuration loading utilities."""

from __future__ import annotations

import json
import logging
import os
from pathlib import Path
from typing import Any

from pydantic import ValidationError

from ..logs.logger import logger
from .model import ConnectionConfig

DEFAULT_CONF_FILE = "ircflow.conf"


def resolve_config_path(path: str | os.PathLike[str] | None = None) -> Path:
    if path is not None:
        return Path(path)
    return Path(os.environ.get("IRCFLOW_CONF_FILE", DEFAULT_CONF_FILE))


def load_config(
    path: str | os.PathLike[str] | None = None, **overrides: Any
) -> ConnectionConfig:
    """Load a ConnectionConfig from a JSON file.

    A missing file yields the defaults. Keyword overrides that are not None
    take precedence over the file contents.

    Raises:
        ValueError: If the file is not a JSON object or fails validation.
    """
    config_path = resolve_config_path(path)
    data: dict[str, Any] = {}
    try:
        with config_path.open(encoding="utf-8") as f:
            raw = json.load(f)
    except FileNotFoundError:
        logger.log_event(
            "config", "file_missing", level=logging.DEBUG, path=str(config_path)
        )
    else:
        if not isinstance(raw, dict):
            raise ValueError(f"{config_path}: expected a JSON object")
        data.update(raw)

    data.update({k: v for k, v in overrides.items() if v is not None})
    try:
        config = ConnectionConfig.from_dict(data)
    except ValidationError as e:
        logger.log_event(
            "config",
            "invalid",
            level=logging.ERROR,
            path=str(config_path),
            errors=e.error_count(),
        )
        raise ValueError(f"{config_path}: invalid configuration: {e}") from e
    logger.log_event("config", "loaded", level=logging.DEBUG, path=str(config_path))
    return config
