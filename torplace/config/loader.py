"""YAML config loader."""

import logging
from pathlib import Path

import yaml

from torplace.config.schema import ServiceConfig

logger = logging.getLogger(__name__)


def load_config(path: str | Path | None = None) -> ServiceConfig:
    """Load and validate config from a YAML file.

    A missing path or file yields the defaults.
    """
    if path is None:
        return ServiceConfig()
    path = Path(path)
    if not path.exists():
        logger.info("Config %s not found, using defaults", path)
        return ServiceConfig()
    with open(path) as f:
        raw = yaml.safe_load(f) or {}
    return ServiceConfig(**raw)
