"""Configuration loader with YAML and environment variable support.

This module reads ~/.config/orgtree/config.yaml and allows environment
variable overrides using the ORGTREE_* prefix.

Environment variables:
- ORGTREE_DEFAULT_TODO_KEYWORDS: Override the implicit TODO keyword set
- ORGTREE_DONT_INDENT: Override the exporter's dont_indent default
"""

import os
from pathlib import Path
from typing import Any, Dict, Optional

import yaml
from pydantic import BaseModel, Field, ValidationError, field_validator

from orgtree.exceptions import ConfigError
from orgtree.utils.logging import get_logger


logger = get_logger(__name__)

DEFAULT_CONFIG_PATH = Path.home() / ".config" / "orgtree" / "config.yaml"

_TRUE_VALUES = {"1", "true", "yes", "on"}


class ParserConfig(BaseModel):
    """Settings that the parser and exporter take from the host application."""

    default_todo_keywords: str = Field(
        default="TODO | DONE",
        description="Keyword set used when a document has no #+TODO line, in #+TODO syntax",
    )

    dont_indent: bool = Field(
        default=False,
        description="Emit generated planning lines and drawers without indentation",
    )

    @field_validator("default_todo_keywords")
    @classmethod
    def validate_default_todo_keywords(cls, v: str) -> str:
        """Validate the keyword string names at least one keyword."""
        if not v.replace("|", " ").split():
            raise ValueError("default_todo_keywords must name at least one keyword")
        return v

    model_config = {"frozen": True}


def load_config(config_path: Optional[Path] = None) -> ParserConfig:
    """Load configuration from YAML file with environment variable overrides.

    A missing file is not an error: the defaults (plus any environment
    overrides) are used instead.

    Args:
        config_path: Path to config file. If None, uses ~/.config/orgtree/config.yaml

    Returns:
        Validated ParserConfig

    Raises:
        ConfigError: If the file is not valid YAML or fails validation
    """
    if config_path is None:
        config_path = DEFAULT_CONFIG_PATH

    data: Dict[str, Any] = {}
    if config_path.exists():
        logger.info("config_loading", path=str(config_path))
        try:
            with config_path.open(encoding="utf-8") as f:
                data = yaml.safe_load(f) or {}
        except yaml.YAMLError as e:
            logger.error("config_yaml_error", path=str(config_path), error=str(e))
            raise ConfigError(f"Invalid YAML in {config_path}: {e}") from e

        if not isinstance(data, dict):
            raise ConfigError(f"Expected a mapping at the top of {config_path}")

    data = _apply_env_overrides(data)

    try:
        config = ParserConfig(**data)
    except ValidationError as e:
        logger.error("config_validation_error", path=str(config_path), error=str(e))
        raise ConfigError(f"Configuration validation failed: {e}") from e

    logger.info("config_loaded", path=str(config_path))
    return config


def _apply_env_overrides(data: Dict[str, Any]) -> Dict[str, Any]:
    """Apply ORGTREE_* environment variable overrides to configuration data.

    Args:
        data: Base configuration dictionary from YAML

    Returns:
        Configuration dictionary with environment overrides applied
    """
    data = dict(data)

    if keywords := os.environ.get("ORGTREE_DEFAULT_TODO_KEYWORDS"):
        data["default_todo_keywords"] = keywords

    if (dont_indent := os.environ.get("ORGTREE_DONT_INDENT")) is not None:
        data["dont_indent"] = dont_indent.strip().lower() in _TRUE_VALUES

    return data
