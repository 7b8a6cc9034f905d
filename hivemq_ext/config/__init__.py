from __future__ import annotations

import logging
import os
from pathlib import Path
from typing import Optional

import yaml
from pydantic import ValidationError

from ..errors import ConfigurationError
from .schema import (
    BuildConfig,
    CustomJarConfig,
    DependenciesConfig,
    DependencySpec,
    ExtensionConfig,
    ExtensionMetadata,
    HomeConfig,
    IntegrationTestConfig,
    ProjectConfig,
    ResourceRule,
    SourcesConfig,
)

logger = logging.getLogger(__name__)

DEFAULT_CONFIG_PATH = "hivemq-extension.yaml"


def default_config_path() -> str:
    return os.getenv("HIVEMQ_EXTENSION_CONFIG", DEFAULT_CONFIG_PATH)


def load_config(path: Optional[str | Path] = None) -> BuildConfig:
    """Load and validate the build configuration.

    Relative ``project.directory`` values are anchored at the directory that
    holds the configuration file. ``HIVEMQ_FOLDER`` overrides ``home.hivemq_folder``.
    """
    config_path = Path(path or default_config_path()).expanduser()
    if not config_path.exists():
        raise ConfigurationError(f"Configuration file not found: {config_path}")
    try:
        with config_path.open("r", encoding="utf-8") as handle:
            raw = yaml.safe_load(handle) or {}
    except yaml.YAMLError as exc:
        raise ConfigurationError(f"Invalid YAML in {config_path}: {exc}") from exc
    if not isinstance(raw, dict):
        raise ConfigurationError(f"{config_path} must contain a mapping at the top level")

    try:
        cfg = BuildConfig.model_validate(raw)
    except ValidationError as exc:
        raise ConfigurationError(f"Invalid configuration in {config_path}:\n{exc}") from exc

    project_dir = Path(cfg.project.directory).expanduser()
    if not project_dir.is_absolute():
        project_dir = config_path.resolve().parent / project_dir
    cfg.project.directory = str(project_dir.resolve())

    env_folder = os.getenv("HIVEMQ_FOLDER")
    if env_folder:
        logger.debug("Using HIVEMQ_FOLDER=%s as hivemq folder", env_folder)
        cfg.home.hivemq_folder = env_folder
    return cfg


__all__ = [
    "DEFAULT_CONFIG_PATH",
    "default_config_path",
    "load_config",
    "BuildConfig",
    "CustomJarConfig",
    "DependenciesConfig",
    "DependencySpec",
    "ExtensionConfig",
    "ExtensionMetadata",
    "HomeConfig",
    "IntegrationTestConfig",
    "ProjectConfig",
    "ResourceRule",
    "SourcesConfig",
]
