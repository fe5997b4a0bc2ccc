"""Configuration and preflight checks."""

from xet_composer.config.loader import (
    get_home_config_path,
    get_local_config_path,
    load_config,
    resolve_template_root,
    save_config,
)
from xet_composer.config.schema import DEFAULT_CONFIG, ComposerConfig

__all__ = [
    "DEFAULT_CONFIG",
    "ComposerConfig",
    "get_home_config_path",
    "get_local_config_path",
    "load_config",
    "resolve_template_root",
    "save_config",
]
