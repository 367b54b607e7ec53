"""
Engine Configuration

Cost thresholds are legally meaningful and change over time (the shoreline
exemption cutoff is adjusted annually), so they live in configuration with
the named constants as defaults.

An optional YAML file overrides the defaults:

    thresholds:
      shoreline_exemption_threshold_cents: 704700
      federal_permit_threshold_cents: 5000000
      building_permit_value_threshold_cents: 2500000
"""

import logging
import os
from pathlib import Path
from typing import Optional, Union

import yaml
from pydantic import BaseModel, Field, ValidationError

from .permit_model import (
    ConfigurationError,
    SHORELINE_EXEMPTION_THRESHOLD_CENTS,
    FEDERAL_PERMIT_THRESHOLD_CENTS,
    BUILDING_PERMIT_VALUE_THRESHOLD_CENTS,
)

logger = logging.getLogger("engine_config")

CONFIG_PATH_ENV = "PERMIT_ENGINE_CONFIG"


class EngineThresholds(BaseModel):
    """Cost thresholds, all in integer cents."""
    shoreline_exemption_threshold_cents: int = Field(
        default=SHORELINE_EXEMPTION_THRESHOLD_CENTS, ge=0
    )
    federal_permit_threshold_cents: int = Field(
        default=FEDERAL_PERMIT_THRESHOLD_CENTS, ge=0
    )
    building_permit_value_threshold_cents: int = Field(
        default=BUILDING_PERMIT_VALUE_THRESHOLD_CENTS, ge=0
    )


class EngineConfig(BaseModel):
    """Top-level engine configuration."""
    thresholds: EngineThresholds = Field(default_factory=EngineThresholds)


DEFAULT_CONFIG = EngineConfig()


def load_engine_config(path: Optional[Union[str, Path]] = None) -> EngineConfig:
    """
    Load engine configuration.

    Resolution order: explicit path, then PERMIT_ENGINE_CONFIG, then defaults.

    Raises:
        ConfigurationError: file missing, unparseable, or invalid
    """
    if path is None:
        path = os.getenv(CONFIG_PATH_ENV)
    if not path:
        return DEFAULT_CONFIG

    config_path = Path(path)
    if not config_path.exists():
        raise ConfigurationError(
            f"Engine config file not found: {config_path}",
            field=CONFIG_PATH_ENV,
            value=str(config_path),
        )

    try:
        with open(config_path, "r") as f:
            data = yaml.safe_load(f) or {}
    except yaml.YAMLError as e:
        logger.warning(f"Rejected engine config {config_path}: {e}")
        raise ConfigurationError(
            f"Engine config is not valid YAML: {config_path}",
            field=CONFIG_PATH_ENV,
            value=str(config_path),
        ) from e

    if not isinstance(data, dict):
        raise ConfigurationError(
            f"Engine config must be a mapping: {config_path}",
            field=CONFIG_PATH_ENV,
            value=str(config_path),
        )

    try:
        config = EngineConfig(**data)
    except ValidationError as e:
        logger.warning(f"Rejected engine config {config_path}: {e}")
        raise ConfigurationError(
            f"Invalid engine config {config_path}: {e.errors()[0]['msg']}",
            field=CONFIG_PATH_ENV,
            value=str(config_path),
        ) from e

    logger.debug(f"Loaded engine config from {config_path}")
    return config
