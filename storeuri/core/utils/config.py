"""Load named backend configurations from Python modules.

A configuration module exposes a mapping (``CONFIGURATION`` by default) from
backend names to either an adapter configuration dict or a storage URI. Dict
entries may extend another entry through the ``__inherits__`` key; URI entries
are kept as they are and resolved by the adapter factory later.

Example module::

    CONFIGURATION = {
        "archive": {"adapter": "local", "root": "/srv/archive"},
        "cold-archive": {"__inherits__": "archive", "root": "/srv/archive/cold"},
        "scratch": "memory:///",
    }
"""

from __future__ import annotations

import importlib
import logging
from typing import Any

logger = logging.getLogger(__name__)

INHERITS_KEY = "__inherits__"

ConfigEntry = dict[str, Any] | str


class ConfigError(Exception):
    """Raised when configuration loading or resolution fails."""

    pass


def load_config_from_module(
    module_path: str,
    config_name: str = "CONFIGURATION",
    default: Any | None = None,
) -> Any:
    """Load a configuration object from a Python module using importlib.

    Args:
        module_path: Dotted module path (e.g., "configs.storage_backends")
        config_name: Name of the configuration object to retrieve
        default: Value returned when the module or attribute cannot be loaded

    Returns:
        The configuration object from the module, or default if loading fails

    Examples:
        >>> config = load_config_from_module("storeuri.core.storage.backend_config")
        >>> custom = load_config_from_module("myapp.storage_config", "BACKENDS")
    """
    try:
        module = importlib.import_module(module_path)
    except ImportError as e:
        logger.warning(f"Could not import module '{module_path}': {e}")
        return default

    if not hasattr(module, config_name):
        logger.warning(f"Module '{module_path}' does not have attribute '{config_name}'")
        return default

    config = getattr(module, config_name)
    logger.debug(f"Loaded configuration from {module_path}.{config_name}")
    return config


def load_config_with_fallback(
    primary_module: str,
    fallback_modules: list[str] | None = None,
    config_name: str = "CONFIGURATION",
    default: Any | None = None,
) -> Any:
    """Load configuration from the first module in the chain that provides it.

    Examples:
        >>> config = load_config_with_fallback(
        ...     "configs.storage_backends",
        ...     fallback_modules=["storeuri.core.storage.backend_config"],
        ... )
    """
    config = load_config_from_module(primary_module, config_name, default=None)
    if config is not None:
        return config

    for fallback in fallback_modules or []:
        config = load_config_from_module(fallback, config_name, default=None)
        if config is not None:
            logger.info(f"Using fallback configuration from '{fallback}'")
            return config

    logger.warning(f"Could not load configuration from any module, using default: {default}")
    return default


def resolve_config_inheritance(config_dict: dict[str, ConfigEntry]) -> dict[str, ConfigEntry]:
    """Resolve ``__inherits__`` links between configuration entries.

    A child entry starts from a copy of its fully resolved parent and then
    overrides it key by key. URI entries cannot inherit and cannot be inherited
    from, since they have no keys to merge.

    Args:
        config_dict: Named entries, possibly linked through ``__inherits__``

    Returns:
        New dictionary with every dict entry fully expanded

    Raises:
        ConfigError: On circular inheritance, a missing parent or a URI parent

    Examples:
        >>> config = {
        ...     "archive": {"adapter": "local", "root": "/srv/archive"},
        ...     "cold": {"__inherits__": "archive", "root": "/srv/cold"},
        ... }
        >>> resolve_config_inheritance(config)["cold"]
        {'adapter': 'local', 'root': '/srv/cold'}
    """
    resolved_configs: dict[str, ConfigEntry] = {}

    def _resolve_single(name: str, chain: tuple[str, ...]) -> dict[str, Any]:
        if name in chain:
            raise ConfigError(f"Circular inheritance detected: {' -> '.join((*chain, name))}")

        cached = resolved_configs.get(name)
        if isinstance(cached, dict):
            return cached

        config = config_dict[name]
        if isinstance(config, str):
            raise ConfigError(
                f"Configuration '{chain[-1]}' inherits from '{name}', which is a URI entry"
            )

        if INHERITS_KEY not in config:
            resolved = dict(config)
        else:
            parent_name = config[INHERITS_KEY]
            if parent_name not in config_dict:
                raise ConfigError(
                    f"Configuration '{name}' inherits from '{parent_name}', "
                    f"but '{parent_name}' not found"
                )

            resolved = dict(_resolve_single(parent_name, (*chain, name)))
            resolved.update((key, value) for key, value in config.items() if key != INHERITS_KEY)
            logger.debug(f"Resolved inheritance for '{name}' from '{parent_name}'")

        resolved_configs[name] = resolved
        return resolved

    for name, config in config_dict.items():
        if isinstance(config, str):
            resolved_configs[name] = config
        elif name not in resolved_configs:
            _resolve_single(name, ())

    return {name: resolved_configs[name] for name in config_dict}


def load_and_resolve_config(
    module_path: str,
    config_name: str = "CONFIGURATION",
    default: dict[str, ConfigEntry] | None = None,
    fallback_modules: list[str] | None = None,
) -> dict[str, ConfigEntry]:
    """Load named configurations and resolve their inheritance.

    This is the entry point the storage registry uses.

    Raises:
        ConfigError: If the loaded configuration cannot be resolved
    """
    raw_config = load_config_with_fallback(module_path, fallback_modules, config_name, default)

    if not isinstance(raw_config, dict):
        logger.warning(f"Invalid configuration loaded from {module_path}, using default")
        return dict(default or {})

    try:
        resolved = resolve_config_inheritance(raw_config)
    except ConfigError as e:
        logger.error(f"Failed to resolve configuration inheritance: {e}")
        raise

    logger.info(f"Loaded and resolved {len(resolved)} configurations")
    return resolved
