"""Configuration loading and validation for jatsimage."""

from __future__ import annotations

import os
from pathlib import Path

import yaml
from pydantic import BaseModel, Field, field_validator

from jatsimage.core.errors import ConfigError

DEFAULT_CONFIG_PATH = "~/.jatsimage/config.yaml"


class JatsImageConfig(BaseModel):
    """Top-level jatsimage configuration."""

    enabled: bool = Field(default=True, description="Whether the download hook is registered")
    base_url: str = Field(description="Public base URL of the journal site")
    context_path: str = Field(description="Journal path used in download URLs")
    files_dir: str = Field(description="Directory stored file paths are relative to")
    manifest_path: str = Field(
        default="~/.jatsimage/manifest.yaml",
        description="YAML manifest of articles, galleys and files",
    )
    usage_log_path: str = Field(
        default="~/.jatsimage/usage.jsonl", description="JSON-lines usage event log"
    )
    log_level: str = Field(default="INFO", description="Logging level")

    @field_validator("base_url")
    @classmethod
    def validate_base_url(cls, v: str) -> str:
        """Validate base URL is an absolute http(s) URL."""
        if not v.startswith(("http://", "https://")):
            raise ValueError(f"Invalid base_url: {v!r}. Expected an http(s) URL.")
        return v.rstrip("/")

    @field_validator("context_path")
    @classmethod
    def validate_context_path(cls, v: str) -> str:
        """Validate context path is a single non-empty path segment."""
        v = v.strip("/")
        if not v or "/" in v:
            raise ValueError(f"Invalid context_path: {v!r}. Expected a single path segment.")
        return v


def load_config(path: str | None = None) -> JatsImageConfig:
    """Load and validate configuration from a YAML file.

    Environment variable overrides:
        JATSIMAGE_BASE_URL: overrides base_url
        JATSIMAGE_FILES_DIR: overrides files_dir

    Args:
        path: Path to config file. Defaults to ~/.jatsimage/config.yaml.

    Returns:
        Validated JatsImageConfig.

    Raises:
        ConfigError: If config file is missing, unreadable, or invalid.
    """
    config_path = Path(path or DEFAULT_CONFIG_PATH).expanduser()

    if not config_path.exists():
        raise ConfigError(f"Config file not found: {config_path}")

    try:
        raw = config_path.read_text()
    except OSError as e:
        raise ConfigError(f"Cannot read config file: {e}") from e

    try:
        data = yaml.safe_load(raw)
    except yaml.YAMLError as e:
        raise ConfigError(f"Invalid YAML in config file: {e}") from e

    if not isinstance(data, dict):
        raise ConfigError("Config file must contain a YAML mapping")

    env_url = os.environ.get("JATSIMAGE_BASE_URL")
    if env_url:
        data["base_url"] = env_url

    env_files = os.environ.get("JATSIMAGE_FILES_DIR")
    if env_files:
        data["files_dir"] = env_files

    try:
        return JatsImageConfig(**data)
    except Exception as e:
        raise ConfigError(f"Invalid configuration: {e}") from e
