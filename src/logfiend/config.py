"""
Configuration management for LogFiend.

Runtime settings come from the environment (LOGFIEND_*); the provider
configuration comes from a YAML document loaded by load_config().
"""

import os
from datetime import timedelta
from pathlib import Path
from typing import Any

import yaml
from pydantic import Field, ValidationError, field_validator
from pydantic_settings import BaseSettings, SettingsConfigDict

from logfiend.exceptions import ConfigError
from logfiend.models.config import AppConfig, parse_duration


class Settings(BaseSettings):
    """Application settings with environment variable support."""

    model_config = SettingsConfigDict(
        env_prefix="LOGFIEND_",
        env_file=".env",
        env_file_encoding="utf-8",
        extra="ignore",
    )

    config_path: str = Field(
        default="config.yml", description="Default configuration document"
    )
    output_path: str = Field(
        default="datasource_inventory.json", description="Default inventory artifact"
    )
    timeout: timedelta = Field(
        default=timedelta(seconds=30),
        description="Deadline shared by the connection probe and the fetch",
    )

    # The only subdirectories a relative path may point into
    config_dir: str = Field(default="examples", description="Allowed config subdirectory")
    output_dir: str = Field(default="output", description="Allowed output subdirectory")

    @field_validator("timeout", mode="before")
    @classmethod
    def _parse_timeout(cls, value: Any) -> Any:
        return parse_duration(value)


def safe_relative_path(path: str, allowed_dir: str) -> Path:
    """
    Normalize path and refuse anything outside the working directory.

    A path may be a bare file name or a file directly inside allowed_dir.
    Absolute paths and traversal are rejected.

    Raises:
        ValueError
    """
    clean = os.path.normpath(path)
    if os.path.isabs(clean):
        raise ValueError(f"absolute paths not allowed for security: {clean}")

    parent = os.path.dirname(clean)
    if parent not in ("", ".", allowed_dir):
        raise ValueError(f"path traversal not allowed: {clean}")

    return Path(clean)


def load_config(path: str, settings: Settings | None = None) -> AppConfig:
    """
    Read and parse the YAML configuration document.

    Defaults (provider timeout 30s and 3 retries, pretty JSON output, info
    text logging) apply to everything the document leaves out.

    Raises:
        ConfigError: if the path is unsafe or the document cannot be read
            or parsed.
    """
    settings = settings or Settings()

    try:
        config_path = safe_relative_path(path, settings.config_dir)
    except ValueError as e:
        raise ConfigError(f"invalid config path: {e}") from e

    if not config_path.is_file():
        raise ConfigError(f"config file does not exist: {config_path}")

    try:
        raw: Any = yaml.safe_load(config_path.read_text(encoding="utf-8"))
    except OSError as e:
        raise ConfigError(f"error reading config file '{config_path}': {e}") from e
    except yaml.YAMLError as e:
        raise ConfigError(f"error parsing YAML config: {e}") from e

    if raw is None:
        raw = {}
    if not isinstance(raw, dict):
        raise ConfigError("error parsing YAML config: top level must be a mapping")

    try:
        return AppConfig.model_validate(raw)
    except ValidationError as e:
        # Input values are left out: they may be credentials.
        problems = "; ".join(
            f"{'.'.join(str(part) for part in error['loc'])}: {error['msg']}"
            for error in e.errors(include_input=False)
        )
        raise ConfigError(f"error parsing YAML config: {problems}") from None


# Global settings instance
settings = Settings()
