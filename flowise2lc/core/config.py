"""Configuration loading for the converter."""

import logging
import os
from pathlib import Path
from typing import Any, Dict, List, Optional, Union

import yaml
from pydantic import BaseModel, ConfigDict, Field, ValidationError

from flowise2lc.codegen.errors import ConfigError
from flowise2lc.codegen.fragments import GenerationContext

logger = logging.getLogger(__name__)

CONFIG_ENV_VAR = "FLOWISE2LC_CONFIG"
LOG_LEVEL_ENV_VAR = "FLOWISE2LC_LOG_LEVEL"


class Settings(BaseModel):
    """Contents of a flowise2lc YAML configuration file."""
    model_config = ConfigDict(frozen=True, extra="forbid")

    context: GenerationContext = Field(default_factory=GenerationContext)
    converter_modules: List[str] = Field(default_factory=list)
    log_level: str = "WARNING"


def load_settings(path: Optional[Union[str, Path]] = None) -> Settings:
    """
    Load settings from YAML.

    Args:
        path: Config file; falls back to $FLOWISE2LC_CONFIG, then defaults

    Returns:
        Validated Settings

    Raises:
        ConfigError: if the file is missing, not YAML, or fails validation
    """
    path = path or os.environ.get(CONFIG_ENV_VAR)
    if not path:
        return Settings()

    path = Path(path)
    try:
        with open(path, "r") as f:
            data = yaml.safe_load(f) or {}
    except OSError as e:
        raise ConfigError(f"Cannot read config file {path}: {e}") from e
    except yaml.YAMLError as e:
        raise ConfigError(f"Invalid YAML in {path}: {e}") from e

    if not isinstance(data, dict):
        raise ConfigError(f"Config file {path} must contain a mapping")
    try:
        settings = Settings.model_validate(data)
    except ValidationError as e:
        raise ConfigError(f"Invalid configuration in {path}: {e}") from e
    logger.debug("Loaded settings from %s", path)
    return settings


def apply_overrides(context: GenerationContext, overrides: Dict[str, Any]) -> GenerationContext:
    """New context with the non-None overrides applied and validated."""
    updates = {k: v for k, v in overrides.items() if v is not None}
    if not updates:
        return context
    try:
        return GenerationContext.model_validate({**context.model_dump(), **updates})
    except ValidationError as e:
        raise ConfigError(f"Invalid option: {e}") from e


def resolve_log_level(settings: Settings, verbose: bool = False) -> str:
    if verbose:
        return "DEBUG"
    return os.environ.get(LOG_LEVEL_ENV_VAR, settings.log_level).upper()
