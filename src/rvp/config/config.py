"""
Application settings for rvp using Pydantic.
"""

from __future__ import annotations

import logging
from pathlib import Path
from typing import Literal

import yaml
from pydantic import BaseModel, Field, field_validator
from pydantic_settings import BaseSettings, SettingsConfigDict

# --- Setup Logging ---
log = logging.getLogger(__name__)

# --- Nested Configuration Models ---


class FetchConfig(BaseModel):
    """HTTP fetch configuration."""

    timeout: float = Field(default=30.0, gt=0, description="Total request timeout in seconds.")
    user_agent: str = Field(
        default="rvp/0.2 (+https://github.com/samgozman/rvp)",
        description="User-Agent string for HTTP requests.",
    )
    max_concurrency: int = Field(default=10, ge=1, description="Maximum simultaneous outbound fetches.")


class ExtractionSettings(BaseModel):
    """How matched text is turned into values."""

    nan_policy: Literal["fail", "propagate"] = Field(
        default="fail",
        description="What a Number field does with text that does not parse: raise, or keep NaN.",
    )
    ignore_token: str = Field(
        default="_",
        description="Positional parameter value that marks a resource as not needing one.",
    )

    @field_validator("ignore_token")
    @classmethod
    def validate_ignore_token(cls, v: str) -> str:
        if not v:
            raise ValueError("ignore_token must not be empty")
        return v


class BatchSettings(BaseModel):
    fail_fast: bool = Field(
        default=False,
        description="Cancel the remaining resources and raise on the first failure.",
    )


class MonitoringConfig(BaseModel):
    """Configuration for logging."""

    log_level: str = Field(default="WARNING", description="Logging level (e.g., DEBUG, INFO, WARNING).")
    log_file: str | None = Field(default=None, description="Path to log file. If None, logs to stderr.")
    json_logs: bool = Field(default=False, description="Render log lines as JSON.")

    @field_validator("log_level")
    @classmethod
    def validate_log_level(cls, v: str) -> str:
        level = v.upper()
        if level not in {"DEBUG", "INFO", "WARNING", "ERROR", "CRITICAL"}:
            raise ValueError(f"unknown log level: {v}")
        return level

    @field_validator("log_file", mode="before")
    @classmethod
    def create_parent_dir(cls, v: str | Path | None) -> str | None:
        if v is None:
            return None
        path = Path(v)
        path.parent.mkdir(parents=True, exist_ok=True)
        return str(path)


# --- Main Configuration Class ---


class Settings(BaseSettings):
    fetch: FetchConfig = Field(default_factory=FetchConfig)
    extraction: ExtractionSettings = Field(default_factory=ExtractionSettings)
    batch: BatchSettings = Field(default_factory=BatchSettings)
    monitoring: MonitoringConfig = Field(default_factory=MonitoringConfig)

    model_config = SettingsConfigDict(env_prefix="RVP_", env_nested_delimiter="__", case_sensitive=False)

    @classmethod
    def from_yaml(cls, path: Path) -> Settings:
        log.debug("Loading settings from YAML file: %s", path)
        if not path.is_file():
            raise FileNotFoundError(f"Settings file not found or is not a file: {path}")
        with open(path, "r", encoding="utf-8") as f:
            yaml_data = yaml.safe_load(f)
        if not yaml_data:
            log.warning("Settings file is empty: %s. Using default settings.", path)
            return cls.model_validate({})
        return cls.model_validate(yaml_data)


def find_settings_file() -> Path | None:
    current_dir = Path.cwd()
    for path in (current_dir / "rvp.yaml", current_dir / "rvp.yml"):
        if path.exists():
            return path
    return None


def load_settings(path: Path | None = None) -> Settings:
    """Load settings from ``path``, a discovered ``rvp.yaml``, or the environment alone."""
    path = path or find_settings_file()
    if path is None:
        return Settings()
    return Settings.from_yaml(path)
