"""Configuration management for omparser."""

import logging
import re
from pathlib import Path
from typing import Optional

import yaml
from pydantic import BaseModel, Field, ValidationError, field_validator

logger = logging.getLogger(__name__)


# Config file paths
CONFIG_DIR = Path.home() / ".config" / "omparser"
CONFIG_FILE = CONFIG_DIR / "config.yaml"

OPENMETRICS_CONTENT_TYPE = "application/openmetrics-text; version=1.0.0; charset=utf-8"


class FetchConfig(BaseModel):
    """Configuration for scraping expositions over HTTP."""

    url: str = "http://localhost:9100/metrics"
    timeout: int = Field(default=5, ge=1, le=300)
    accept: str = OPENMETRICS_CONTENT_TYPE

    @field_validator("url")
    @classmethod
    def validate_url(cls, v: str) -> str:
        """Validate URL format."""
        pattern = r'^https?://[^\s/$.?#].[^\s]*$'
        if not re.match(pattern, v):
            raise ValueError(f"Invalid URL format: {v}")
        return v


class LoggingConfig(BaseModel):
    """Logging configuration."""

    level: str = "WARNING"
    file: Optional[str] = None

    @field_validator("level")
    @classmethod
    def validate_log_level(cls, v: str) -> str:
        """Validate log level."""
        valid_levels = {"DEBUG", "INFO", "WARNING", "ERROR", "CRITICAL"}
        upper_v = v.upper()
        if upper_v not in valid_levels:
            raise ValueError(
                f"Invalid log level: {v}. Must be one of: {', '.join(sorted(valid_levels))}"
            )
        return upper_v


class DisplayConfig(BaseModel):
    """Terminal output configuration."""

    max_samples: int = Field(default=20, ge=0, le=10000)


class Config(BaseModel):
    """Main configuration model."""

    fetch: FetchConfig = Field(default_factory=FetchConfig)
    logging: LoggingConfig = Field(default_factory=LoggingConfig)
    display: DisplayConfig = Field(default_factory=DisplayConfig)


def get_default_config() -> Config:
    """Get default configuration."""
    return Config()


def load_config(config_path: Optional[Path] = None) -> Config:
    """Load configuration from YAML file.

    Args:
        config_path: Path to config file. Defaults to ~/.config/omparser/config.yaml

    Returns:
        Config object
    """
    if config_path is None:
        config_path = CONFIG_FILE

    if not config_path.exists():
        logger.debug(f"Config file not found at {config_path}, using defaults")
        return get_default_config()

    try:
        with open(config_path, "r") as f:
            data = yaml.safe_load(f) or {}
        return Config(**data)
    except yaml.YAMLError as e:
        logger.warning(f"Invalid YAML in config file {config_path}: {e}. Using defaults.")
        return get_default_config()
    except ValidationError as e:
        logger.warning(f"Invalid configuration in {config_path}: {e}. Using defaults.")
        return get_default_config()
    except PermissionError:
        logger.warning(f"Permission denied reading config file {config_path}. Using defaults.")
        return get_default_config()
    except (OSError, TypeError) as e:
        logger.warning(f"Error loading config from {config_path}: {e}. Using defaults.")
        return get_default_config()


def save_config(config: Config, config_path: Optional[Path] = None) -> None:
    """Save configuration to YAML file.

    Args:
        config: Config object to save
        config_path: Path to config file. Defaults to ~/.config/omparser/config.yaml
    """
    if config_path is None:
        config_path = CONFIG_FILE

    config_path.parent.mkdir(parents=True, exist_ok=True)

    with open(config_path, "w") as f:
        yaml.dump(config.model_dump(), f, default_flow_style=False)


def set_config_value(key: str, value: str, config_path: Optional[Path] = None) -> Config:
    """Set a configuration value.

    Args:
        key: Configuration key (e.g., 'fetch.url', 'logging.level')
        value: Value to set
        config_path: Path to config file

    Returns:
        Updated Config object

    Raises:
        ValueError: If the key is unknown or the value is invalid
    """
    config = load_config(config_path)

    try:
        if key == "fetch.url":
            config.fetch = FetchConfig(**{**config.fetch.model_dump(), "url": value})
        elif key == "fetch.timeout":
            config.fetch = FetchConfig(**{**config.fetch.model_dump(), "timeout": int(value)})
        elif key == "fetch.accept":
            config.fetch.accept = value
        elif key == "logging.level":
            config.logging = LoggingConfig(**{**config.logging.model_dump(), "level": value})
        elif key == "logging.file":
            config.logging.file = value if value else None
        elif key == "display.max_samples":
            config.display = DisplayConfig(max_samples=int(value))
        else:
            raise ValueError(f"Unknown configuration key: {key}")
    except ValidationError as e:
        raise ValueError(f"Invalid value for {key}: {value}") from e

    save_config(config, config_path)
    return config
