"""Configuration loading for the sharedlib CLI.

Settings for the ``sharedLibrary`` extension come from, in increasing
precedence: built-in defaults, the config file, ``SHAREDLIB_*``
environment variables, and ``--set KEY=VALUE`` arguments.
"""

from __future__ import annotations

import json
import logging
import os
from typing import Any, Dict, Iterable, Mapping, Optional

import yaml

from buildmodel.errors import ConfigurationError
from constants import Constants
from convention.extension import SharedLibraryExtension

logger = logging.getLogger(__name__)


def load_config_file(config_path: Optional[str]) -> Dict[str, Any]:
    """Load the ``sharedLibrary`` section of a YAML or JSON config file.

    A file without that section is treated as the section itself.

    Raises:
        FileNotFoundError: If ``config_path`` does not exist.
        ConfigurationError: If the file is not a mapping or cannot be parsed.
    """
    if not config_path:
        return {}
    with open(config_path, "r", encoding="utf-8") as handle:
        try:
            if config_path.lower().endswith(".json"):
                data = json.load(handle)
            else:
                data = yaml.safe_load(handle)
        except (json.JSONDecodeError, yaml.YAMLError) as exc:
            raise ConfigurationError(f"Failed to parse {config_path}: {exc}") from exc
    if data is None:
        return {}
    if not isinstance(data, dict):
        raise ConfigurationError(f"Config file {config_path} must contain a mapping")
    section = data.get(Constants.CONFIG_SECTION, data)
    if not isinstance(section, dict):
        raise ConfigurationError(f"'{Constants.CONFIG_SECTION}' in {config_path} must be a mapping")
    logger.debug("Loaded configuration from %s", config_path)
    return section


def env_overrides(environ: Optional[Mapping[str, str]] = None) -> Dict[str, str]:
    """Collect ``SHAREDLIB_<KEY>`` variables as lower-case setting keys.

    ``SHAREDLIB_PLUGINS__WORKFLOW_CPS`` maps to ``plugins.workflow_cps``.
    """
    environ = os.environ if environ is None else environ
    overrides: Dict[str, str] = {}
    for name, value in environ.items():
        if not name.startswith(Constants.ENV_PREFIX) or name == Constants.ENV_LOG_LEVEL:
            continue
        key = name[len(Constants.ENV_PREFIX):].lower().replace("__", ".")
        if key not in SharedLibraryExtension.VERSION_KEYS and not key.startswith("plugins."):
            continue
        overrides[key] = value
    return overrides


def parse_overrides(pairs: Iterable[str]) -> Dict[str, str]:
    """Parse ``KEY=VALUE`` strings.

    Raises:
        ConfigurationError: On an entry without ``=`` or with an empty key.
    """
    overrides: Dict[str, str] = {}
    for pair in pairs:
        key, sep, value = pair.partition("=")
        if not sep or not key.strip():
            raise ConfigurationError(f"Invalid override '{pair}', expected KEY=VALUE")
        overrides[key.strip()] = value.strip()
    return overrides


def build_extension(
    config_path: Optional[str] = None,
    overrides: Iterable[str] = (),
    environ: Optional[Mapping[str, str]] = None,
) -> SharedLibraryExtension:
    """Create the extension with every configuration source applied."""
    extension = SharedLibraryExtension.from_mapping(load_config_file(config_path))
    for key, value in env_overrides(environ).items():
        logger.debug("Applying environment override %s", key)
        extension.set(key, value)
    for key, value in parse_overrides(overrides).items():
        logger.debug("Applying CLI override %s", key)
        extension.set(key, value)
    return extension
