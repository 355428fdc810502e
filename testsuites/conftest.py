"""
================================================================================
Suite Pytest Configuration
================================================================================

Marker registration for the unit and integration suites. Suite markers are
applied by directory; component markers are set per test module.

================================================================================
"""

import pytest


def pytest_configure(config):
    """Register the suite and component markers."""

    # Suite markers
    config.addinivalue_line(
        "markers", "unit: Tests against the in-memory driver and virtual clock"
    )
    config.addinivalue_line(
        "markers", "integration: Tests driving a real browser"
    )

    # Component markers
    config.addinivalue_line(
        "markers", "sync: Tests related to waits and the blocking overlay"
    )
    config.addinivalue_line(
        "markers", "locator: Tests related to locator resolution"
    )
    config.addinivalue_line(
        "markers", "context: Tests related to window and frame switching"
    )
    config.addinivalue_line(
        "markers", "menu: Tests related to menu navigation"
    )
    config.addinivalue_line(
        "markers", "actions: Tests related to widget actions"
    )


def pytest_collection_modifyitems(config, items):
    """
    Modify collected test items.

    Tests are marked by the directory they live in, so ``-m unit`` and
    ``-m integration`` select suites without per-test markers.
    """
    for item in items:
        if "unit" in str(item.fspath):
            item.add_marker(pytest.mark.unit)

        if "integration" in str(item.fspath):
            item.add_marker(pytest.mark.integration)


def pytest_report_header(config):
    """Add custom header to pytest output."""
    return [
        "",
        "=" * 60,
        "Portal UI Automation Framework",
        "=" * 60,
        "",
    ]
