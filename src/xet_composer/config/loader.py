"""Configuration file loading and merging."""

from __future__ import annotations

import logging
import os
from collections.abc import Mapping
from pathlib import Path

import yaml

from xet_composer.config.schema import DEFAULT_CONFIG, ComposerConfig
from xet_composer.templates.loader import get_package_templates_path

logger = logging.getLogger(__name__)

CONFIG_DIRNAME = ".xet-composer"
CONFIG_FILENAME = "config.yaml"

# Environment variable -> config field
ENV_VARS: dict[str, str] = {
    "XET_SOLC": "solc",
    "XET_RUNNER": "runner",
    "XET_DOCKER_IMAGE": "docker_image",
    "XET_COMPILE_TIMEOUT": "timeout",
    "XET_TEMPLATE_ROOT": "template_root",
    "XET_ARTIFACT_ROOT": "artifact_root",
    "XET_BASE_PATH": "base_path",
    "XET_REMAPPINGS": "remappings",  # Whitespace separated
    "XET_STORAGE": "storage",
}


def get_home_config_path() -> Path:
    """Get path to global config: ~/.xet-composer/config.yaml."""
    return Path.home() / CONFIG_DIRNAME / CONFIG_FILENAME


def get_local_config_path() -> Path:
    """Get path to local config: ./.xet-composer/config.yaml."""
    return Path.cwd() / CONFIG_DIRNAME / CONFIG_FILENAME


def load_yaml_config(path: Path) -> dict[str, object] | None:
    """Load a YAML config file, return None if not found or empty."""
    if not path.exists():
        return None
    try:
        with path.open() as f:
            data = yaml.safe_load(f)
            if data is None:
                return None
            if not isinstance(data, dict):
                return None
            result: dict[str, object] = data
            return result
    except yaml.YAMLError:
        logger.warning("Ignoring unparseable config file %s", path, exc_info=True)
        return None


def _config_from_dict(data: dict[str, object], source: str) -> ComposerConfig:
    """Build a config from one layer, dropping a timeout that is not a number."""
    try:
        return ComposerConfig.from_dict(data)
    except (TypeError, ValueError):
        logger.warning("Ignoring invalid timeout in %s: %r", source, data.get("timeout"))
        data = {k: v for k, v in data.items() if k != "timeout"}
        return ComposerConfig.from_dict(data)


def load_env_config(environ: Mapping[str, str] | None = None) -> ComposerConfig:
    """Build a config from XET_* environment variables."""
    env = os.environ if environ is None else environ
    data: dict[str, object] = {
        field: env[var] for var, field in ENV_VARS.items() if env.get(var)
    }
    return _config_from_dict(data, "XET_COMPILE_TIMEOUT")


def load_config(environ: Mapping[str, str] | None = None) -> ComposerConfig:
    """Load merged configuration.

    Precedence (lowest to highest):
    1. Built-in defaults
    2. Global config (~/.xet-composer/config.yaml)
    3. Local config (./.xet-composer/config.yaml)
    4. XET_* environment variables

    Returns merged ComposerConfig.
    """
    config = DEFAULT_CONFIG

    for path in (get_home_config_path(), get_local_config_path()):
        data = load_yaml_config(path)
        if data:
            config = config.merge(_config_from_dict(data, str(path)))

    return config.merge(load_env_config(environ))


def save_config(config: ComposerConfig, path: Path) -> None:
    """Save config to a YAML file.

    Creates parent directories if needed.
    Only saves non-None values.
    """
    path.parent.mkdir(parents=True, exist_ok=True)
    data = config.to_dict()
    with path.open("w") as f:
        yaml.safe_dump(data, f, default_flow_style=False, sort_keys=False)


def resolve_template_root(config: ComposerConfig) -> Path:
    """Return the configured template root, or the bundled templates if unset."""
    if config.template_root:
        return Path(config.template_root).expanduser()
    return get_package_templates_path()
