"""
Load and save extraction configs as TOML or JSON.

The format is picked from the file extension; anything other than ``.toml``
or ``.json`` is rejected.
"""

from __future__ import annotations

import json
import os
import tempfile
import tomllib
from enum import Enum
from pathlib import Path
from typing import Any, Dict

import structlog
import tomli_w
from pydantic import ValidationError

from rvp.exceptions import ConfigError

from .models import Config

logger = structlog.get_logger(__name__)


class ConfigFormat(Enum):
    TOML = "toml"
    JSON = "json"

    @classmethod
    def from_path(cls, path: Path) -> ConfigFormat:
        match Path(path).suffix.lower():
            case ".toml":
                return cls.TOML
            case ".json":
                return cls.JSON
            case suffix:
                raise ConfigError(f"unsupported config format {suffix or '(none)'!r} for {path}, use .toml or .json")


def dumps_config(config: Config, fmt: ConfigFormat) -> str:
    data: Dict[str, Any] = config.model_dump(mode="json", exclude_none=True)
    match fmt:
        case ConfigFormat.TOML:
            return tomli_w.dumps(data)
        case ConfigFormat.JSON:
            return json.dumps(data, indent=2, ensure_ascii=False) + "\n"


def loads_config(text: str, fmt: ConfigFormat) -> Config:
    try:
        match fmt:
            case ConfigFormat.TOML:
                data = tomllib.loads(text)
            case ConfigFormat.JSON:
                data = json.loads(text)
    except (tomllib.TOMLDecodeError, json.JSONDecodeError) as e:
        raise ConfigError(f"failed to parse {fmt.value.upper()} config: {e}") from e

    try:
        return Config.model_validate(data)
    except ValidationError as e:
        raise ConfigError(f"invalid config: {e}") from e


def load_config(path: Path) -> Config:
    """Read a config file, raising :class:`ConfigError` on any failure."""
    path = Path(path)
    fmt = ConfigFormat.from_path(path)
    if not path.is_file():
        raise ConfigError(f"config file does not exist: {path}")

    config = loads_config(path.read_text(encoding="utf-8"), fmt)
    logger.debug("Config loaded", path=str(path), name=config.name, resources=len(config.resources))
    return config


def save_config(config: Config, path: Path) -> Path:
    path = Path(path)
    fmt = ConfigFormat.from_path(path)
    content = dumps_config(config, fmt)

    tmp_path: Path | None = None
    try:
        path.parent.mkdir(parents=True, exist_ok=True)
        # unique temp name per save
        fd, tmp_name = tempfile.mkstemp(dir=path.parent, prefix=f".{path.name}.", suffix=".tmp")
        os.close(fd)
        tmp_path = Path(tmp_name)
        tmp_path.write_text(content, encoding="utf-8")
        os.replace(tmp_path, path)
    except OSError as e:
        if tmp_path is not None:
            tmp_path.unlink(missing_ok=True)
        raise ConfigError(f"failed to write config {path}: {e}") from e

    logger.debug("Config saved", path=str(path), format=fmt.value)
    return path
