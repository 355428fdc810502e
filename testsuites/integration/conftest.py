"""
Fixtures for the browser suite.

Tests run against local HTML files in a real Playwright browser. The suite
is skipped when Playwright or its browsers are not installed.
"""

import pytest

from portal_automation.framework.browser_session import BrowserSession
from portal_automation.framework.config_loader import ConfigLoader
from portal_automation.framework.element_actions import ElementActions
from portal_automation.framework.settings import BrowserSettings

playwright_api = pytest.importorskip("playwright.sync_api")

from portal_automation.drivers.playwright_driver import PlaywrightDriver  # noqa: E402


@pytest.fixture(scope="module")
def browser_driver():
    browser = ConfigLoader().get_section("browser", {"browser_type": "chromium", "headless": True})
    try:
        driver = PlaywrightDriver.launch(
            browser_type=browser["browser_type"],
            headless=browser["headless"],
        )
    except playwright_api.Error as e:
        pytest.skip(f"Browser not available: {e}")
    yield driver
    driver.quit()


@pytest.fixture
def session(browser_driver):
    settings = BrowserSettings(
        base_url="http://localhost",
        default_timeout=5.0,
        small_timeout=2.0,
        large_timeout=10.0,
        default_interval=0.1,
        implicit_wait=1.0,
        implicit_wait_interval=0.1,
        element_wait_polls=10,
        element_wait_interval=0.2,
        no_element_timeout=2.0,
        no_element_interval=0.2,
        overlay_max_polls=10,
        overlay_poll_interval=0.2,
        menu_settle_pause=0.1,
    )
    return BrowserSession(browser_driver, settings)


@pytest.fixture
def actions(session):
    return ElementActions(session)


@pytest.fixture
def open_page(session, tmp_path):
    """Write ``html`` to a file and open it in the session's browser."""
    def _open(html: str, name: str = "page.html"):
        path = tmp_path / name
        path.write_text(html, encoding="utf-8")
        session.navigate_to(path.as_uri())
        return path
    return _open
