"""
================================================================================
Browser Settings
================================================================================

Timing and environment settings shared by every component of a browser
session.

Settings come from three places:
    - BrowserSettings defaults (the values below)
    - config/config.yaml and environment overrides via ConfigLoader
    - a short server/port specification string, e.g.
      ``"server=portal.example.com, port=443"`` or
      ``"server is localhost and port is 8080"``

All durations are seconds.

Author: Automation Team
License: MIT
================================================================================
"""

from __future__ import annotations

import re
from dataclasses import dataclass, fields, replace
from enum import Enum
from typing import Any, Dict, Iterable, Optional

from loguru import logger

from portal_automation.framework.config_loader import ConfigLoader, ConfigSource


SERVER_SETTING = "server"
PORT_SETTING = "port"
PERMITTED_SPEC_SETTINGS = (SERVER_SETTING, PORT_SETTING)

DEFAULT_SERVER = "localhost"
DEFAULT_PORTS = ("80", "443")

DEFAULT_ASYNC_PROBE = "return window.jQuery != undefined && jQuery.active === 0"

_PAIR_SEPARATOR = re.compile(r",\s*|\s+and\s+")
_KEY_VALUE_SEPARATOR = re.compile(r"\s*=\s*|\s+is\s+")


class TestMode(str, Enum):
    """How the application under test is hosted."""
    __test__ = False

    ANT = "ant"            # local or ad-hoc build on a non-standard port
    DEPLOYED = "deployed"  # regular deployment on 80/443


@dataclass
class BrowserSettings:
    """
    Settings for one browser session.

    Attributes:
        base_url: Portal root URL
        test_mode: Hosting mode derived from server/port
        default_timeout: General-purpose wait timeout
        small_timeout: Timeout for quick UI reactions (content, URL checks)
        large_timeout: Timeout for long-running server work
        default_interval: Poll interval for the general-purpose waits
        implicit_wait: How long a single element lookup may wait for presence
        implicit_wait_interval: Poll interval of that lookup
        element_wait_polls: Poll count for "wait for element"
        element_wait_interval: Poll interval for "wait for element"
        no_element_timeout: Timeout for "wait for no element"
        no_element_interval: Poll interval for "wait for no element"
        overlay_locator: Identifier of the page-level loading overlay
        overlay_max_polls: Poll count while the overlay is displayed
        overlay_poll_interval: Poll interval while the overlay is displayed
        async_probe_script: Script returning true when no requests are pending
        menu_settle_pause: Pause after a menu click while the menu tears down
        report_frame_marker: Substring identifying a report viewer frame source
        backspace_run_length: Backspaces used to empty masked date cells
        strict: Raise AmbiguousUIStateError instead of returning fallbacks
    """
    base_url: str = f"http://{DEFAULT_SERVER}"
    test_mode: TestMode = TestMode.DEPLOYED

    default_timeout: float = 300.0
    small_timeout: float = 30.0
    large_timeout: float = 3600.0
    default_interval: float = 0.05
    implicit_wait: float = 20.0
    implicit_wait_interval: float = 0.5

    element_wait_polls: int = 30
    element_wait_interval: float = 1.0
    no_element_timeout: float = 10.0
    no_element_interval: float = 1.0

    overlay_locator: str = "ajaxSpinner"
    overlay_max_polls: int = 120
    overlay_poll_interval: float = 1.0
    async_probe_script: str = DEFAULT_ASYNC_PROBE

    menu_settle_pause: float = 0.5
    report_frame_marker: str = "ReportViewer"
    backspace_run_length: int = 10
    strict: bool = False

    def __post_init__(self) -> None:
        for name in (
            "default_timeout", "small_timeout", "large_timeout", "default_interval",
            "implicit_wait", "implicit_wait_interval", "element_wait_interval", "no_element_timeout",
            "no_element_interval", "overlay_poll_interval", "menu_settle_pause",
        ):
            value = getattr(self, name)
            if value is None or value < 0:
                raise ValueError(f"{name} must be a non-negative number of seconds, got {value!r}")
        for name in ("element_wait_polls", "overlay_max_polls", "backspace_run_length"):
            if getattr(self, name) < 0:
                raise ValueError(f"{name} must not be negative")

    @property
    def overlay_timeout(self) -> float:
        return self.overlay_max_polls * self.overlay_poll_interval

    @property
    def element_wait_timeout(self) -> float:
        return self.element_wait_polls * self.element_wait_interval

    def with_overrides(self, **overrides: Any) -> "BrowserSettings":
        """Copy of these settings with some fields replaced."""
        return replace(self, **overrides)

    @classmethod
    def from_config(
        cls,
        config: Optional[ConfigSource] = None,
        specification: Optional[str] = None,
    ) -> "BrowserSettings":
        """
        Build settings from the ``framework`` and ``browser`` config sections.

        Args:
            config: Loader to read from (default: the process-wide ConfigLoader)
            specification: Optional server/port specification taking precedence
                           over ``browser.server`` / ``browser.port``

        Returns:
            Populated BrowserSettings
        """
        config = config or ConfigLoader()
        defaults = cls()
        values = config.get_section(
            "framework",
            {
                f.name: getattr(defaults, f.name)
                for f in fields(cls)
                if f.name not in ("base_url", "test_mode")
            },
        )

        spec_settings = parse_settings_spec(specification) if specification else {}
        server, port = config.endpoint()
        base_url, test_mode = resolve_endpoint(
            spec_settings.get(SERVER_SETTING) or server,
            spec_settings.get(PORT_SETTING) or port,
        )

        settings = cls(base_url=base_url, test_mode=test_mode, **values)
        logger.debug(
            f"Browser settings: base_url={settings.base_url} mode={settings.test_mode.value} "
            f"timeout={settings.default_timeout}s overlay={settings.overlay_locator}"
        )
        return settings


def parse_settings_spec(
    specification: str,
    permitted: Iterable[str] = PERMITTED_SPEC_SETTINGS,
) -> Dict[str, str]:
    """
    Parse a "key=value, key=value" or "key is value and key is value" string.

    Keys are case-insensitive; values are kept as written.

    Args:
        specification: The settings specification
        permitted: Accepted setting names

    Returns:
        Mapping of lower-cased setting name to value

    Raises:
        ValueError: On an unknown setting or a pair without a value
    """
    permitted = tuple(permitted)
    result: Dict[str, str] = {}
    if not specification or not specification.strip():
        return result

    for pair in _PAIR_SEPARATOR.split(specification.strip()):
        parts = _KEY_VALUE_SEPARATOR.split(pair, maxsplit=1)
        key = parts[0].strip().lower()
        if key not in permitted:
            raise ValueError(_invalid_setting_message(parts[0], specification, permitted))
        if len(parts) < 2 or not parts[1].strip():
            raise ValueError(f"The setting '{parts[0]}' in the specification '{specification}' has no value")
        result[key] = parts[1].strip()
    return result


def _invalid_setting_message(setting: str, specification: str, permitted: Iterable[str]) -> str:
    names = list(permitted)
    if len(names) > 1:
        valid = ", ".join(names[:-1]) + " and " + names[-1]
    else:
        valid = "".join(names)
    return (
        f"The setting '{setting}' in the specification '{specification}' is not valid.  "
        f"Valid values are: {valid}"
    )


def resolve_endpoint(server: Optional[str] = None, port: Optional[str] = None):
    """
    Derive base URL and test mode from server and port.

    The server falls back to localhost. Port 443 selects https. Any port
    other than 80/443 means an ad-hoc build (TestMode.ANT).

    Returns:
        Tuple of (base_url, TestMode)
    """
    server = server or DEFAULT_SERVER

    scheme = "https" if port == "443" else "http"
    base_url = f"{scheme}://{server}"
    if port and port not in DEFAULT_PORTS:
        base_url = f"{base_url}:{port}"
        return base_url, TestMode.ANT
    return base_url, TestMode.DEPLOYED


def settings_from_spec(
    specification: str,
    config: Optional[ConfigSource] = None,
    **overrides: Any,
) -> BrowserSettings:
    """
    Build default-timed settings from a server/port specification string.

    A server or port the specification leaves out comes from the
    configured endpoint (browser.server / browser.port, or $BROWSER_SERVER /
    $BROWSER_PORT).
    """
    spec = parse_settings_spec(specification)
    server, port = (config or ConfigLoader()).endpoint()
    base_url, test_mode = resolve_endpoint(
        spec.get(SERVER_SETTING) or server, spec.get(PORT_SETTING) or port
    )
    return BrowserSettings(base_url=base_url, test_mode=test_mode, **overrides)


__all__ = [
    "BrowserSettings",
    "TestMode",
    "parse_settings_spec",
    "resolve_endpoint",
    "settings_from_spec",
]
