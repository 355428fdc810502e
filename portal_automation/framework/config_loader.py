"""
================================================================================
Configuration Loader
================================================================================

Where portal-automation reads its settings from.

A setting is addressed by its dotted path in config/config.yaml, e.g.
``framework.small_timeout``. The environment variable named after that path
(``FRAMEWORK_SMALL_TIMEOUT``) wins over the file, and is converted to the
type of the caller's default. Settings are read per section:

    - ``framework``: timings and overlay handling (BrowserSettings)
    - ``browser``: the portal endpoint, ``server`` and ``port``
    - ``portal``: login form locators (PortalPage)
    - ``logging``: loguru sinks (init_logger)

Set $PORTAL_AUTOMATION_CONFIG to use another file.

Author: Automation Team
License: MIT
================================================================================
"""

from __future__ import annotations

import os
from pathlib import Path
from typing import Any, Dict, Mapping, Optional, Tuple

import yaml
from loguru import logger


DEFAULT_CONFIG_PATH = Path(__file__).parent.parent.parent / "config" / "config.yaml"

CONFIG_PATH_ENV = "PORTAL_AUTOMATION_CONFIG"

_TRUE_WORDS = ("true", "1", "yes", "on")
_FALSE_WORDS = ("false", "0", "no", "off", "")


class ConfigurationError(Exception):
    """Raised when the configuration file or an override cannot be used."""
    pass


def env_name(key: str) -> str:
    """Environment variable overriding a dotted key: browser.port -> BROWSER_PORT."""
    return key.upper().replace(".", "_")


def coerce(raw: str, like: Any, source: str = "value") -> Any:
    """
    Convert an environment string to the type of ``like``.

    Strings and untyped (None) defaults are returned as written.

    Raises:
        ConfigurationError: If the string is not a valid bool, int or float
    """
    if like is None or isinstance(like, str):
        return raw

    text = raw.strip()
    # bool before int: bool is an int subclass
    if isinstance(like, bool):
        if text.lower() in _TRUE_WORDS:
            return True
        if text.lower() in _FALSE_WORDS:
            return False
        raise ConfigurationError(f"{source}={raw!r} is not a boolean")
    try:
        if isinstance(like, int):
            return int(text)
        if isinstance(like, float):
            return float(text)
    except ValueError as e:
        raise ConfigurationError(
            f"{source}={raw!r} is not a valid {type(like).__name__}"
        ) from e
    return raw


def _endpoint_part(value: Any) -> Optional[str]:
    if value is None:
        return None
    text = str(value).strip()
    return text or None


class ConfigSource:
    """
    Read access shared by the YAML loader and in-memory configurations.

    Subclasses provide get(); sections and the endpoint are built on it.
    """

    def get(self, key: str, default: Any = None) -> Any:
        raise NotImplementedError

    def get_section(self, section: str, defaults: Mapping[str, Any]) -> Dict[str, Any]:
        """
        Typed values for the given keys of one section.

        Args:
            section: Top-level section, e.g. "framework"
            defaults: Key name to default; each value takes its default's type

        Returns:
            Mapping with one entry per key in ``defaults``
        """
        return {name: self.get(f"{section}.{name}", default) for name, default in defaults.items()}

    def endpoint(self) -> Tuple[Optional[str], Optional[str]]:
        """
        The configured portal server and port, as text.

        A YAML ``port: 443`` and ``BROWSER_PORT=443`` both give "443".
        Missing or blank values are None.
        """
        return (
            _endpoint_part(self.get("browser.server")),
            _endpoint_part(self.get("browser.port")),
        )


class ConfigLoader(ConfigSource):
    """
    Process-wide configuration read from config/config.yaml.

    Lookup order for a key:
        1. Environment variable named after the key (FRAMEWORK_SMALL_TIMEOUT)
        2. The YAML file
        3. The caller's default

    Usage:
        >>> config = ConfigLoader()
        >>> config.get("framework.small_timeout", 30.0)
        30.0
        >>> config.endpoint()
        ('portal.example.com', '443')
    """

    _instance: Optional["ConfigLoader"] = None

    def __new__(cls, config_path: Optional[Path] = None) -> "ConfigLoader":
        if cls._instance is None:
            instance = super().__new__(cls)
            instance._tree = None
            cls._instance = instance
        return cls._instance

    def __init__(self, config_path: Optional[Path] = None) -> None:
        """
        Args:
            config_path: YAML file to read. Only the first construction in a
                         process reads a file; later ones share it.
        """
        if self._tree is not None:
            return
        self._config_path = self._choose_path(config_path)
        self._tree = self._read(self._config_path)

    @staticmethod
    def _choose_path(config_path: Optional[Path]) -> Path:
        if config_path:
            return Path(config_path)
        from_env = os.environ.get(CONFIG_PATH_ENV)
        return Path(from_env) if from_env else DEFAULT_CONFIG_PATH

    @staticmethod
    def _read(path: Path) -> Dict[str, Any]:
        if not path.exists():
            logger.warning(f"No configuration at {path}; using defaults and environment only")
            return {}
        try:
            with open(path, "r", encoding="utf-8") as f:
                tree = yaml.safe_load(f)
        except yaml.YAMLError as e:
            raise ConfigurationError(f"Invalid YAML in {path}: {e}") from e

        if tree is None:
            return {}
        if not isinstance(tree, dict):
            raise ConfigurationError(f"Configuration root must be a mapping: {path}")
        logger.debug(f"Configuration read from {path}")
        return tree

    @property
    def config_path(self) -> Path:
        return self._config_path

    def get(self, key: str, default: Any = None) -> Any:
        """
        Value at a dotted key.

        Raises:
            ConfigurationError: If an environment override does not parse
                                as the default's type
        """
        variable = env_name(key)
        raw = os.environ.get(variable)
        if raw is not None:
            return coerce(raw, default, source=variable)

        node: Any = self._tree
        for part in key.split("."):
            if not isinstance(node, dict) or node.get(part) is None:
                return default
            node = node[part]
        return node

    @classmethod
    def reset(cls) -> None:
        """Forget the shared instance; the next construction reads the file again."""
        cls._instance = None


__all__ = [
    "CONFIG_PATH_ENV",
    "ConfigLoader",
    "ConfigSource",
    "ConfigurationError",
    "DEFAULT_CONFIG_PATH",
    "coerce",
    "env_name",
]
