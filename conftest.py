"""
Repository-level pytest configuration.

Why this exists:
  - Provide safe defaults for local runs (no real portal or credentials)
  - Keep the logger and configuration singleton predictable across tests

Real runs point BROWSER_SERVER / BROWSER_PORT and the PORTAL_* variables at
an actual deployment from CI/CD.
"""

from __future__ import annotations

import os
from typing import Generator

import pytest

from portal_automation.common.global_config import init_logger


@pytest.fixture(scope="session", autouse=True)
def _safe_env_defaults() -> Generator[None, None, None]:
    """
    Set local defaults if not already provided by the user/CI.
    """
    defaults = {
        "BROWSER_SERVER": "localhost",
        "PORTAL_USER": "demo_user@example.com",
        "PORTAL_PASSWORD": "demo_password",
    }

    for k, v in defaults.items():
        os.environ.setdefault(k, v)

    init_logger()
    yield
