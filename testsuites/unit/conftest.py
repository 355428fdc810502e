"""
Fixtures for the unit suite.

Every session here runs on FakeDriver and FakeClock, so waits finish
instantly and their timing can be asserted exactly.
"""

import pytest

from portal_automation.framework.browser_session import BrowserSession
from portal_automation.framework.config_loader import ConfigLoader
from portal_automation.framework.element_actions import ElementActions
from portal_automation.framework.settings import BrowserSettings
from testsuites.unit.fakes import FakeClock, FakeDriver


@pytest.fixture(autouse=True)
def _fresh_config_loader():
    ConfigLoader.reset()
    yield
    ConfigLoader.reset()


@pytest.fixture
def clock():
    return FakeClock()


@pytest.fixture
def driver(clock):
    return FakeDriver(clock)


@pytest.fixture
def settings():
    return BrowserSettings(
        base_url="http://portal.test",
        default_timeout=10.0,
        small_timeout=3.0,
        large_timeout=20.0,
        default_interval=0.5,
        implicit_wait=2.0,
        implicit_wait_interval=0.5,
        element_wait_polls=5,
        element_wait_interval=1.0,
        no_element_timeout=3.0,
        no_element_interval=1.0,
        overlay_max_polls=10,
        overlay_poll_interval=1.0,
        menu_settle_pause=0.5,
    )


@pytest.fixture
def session(driver, settings, clock):
    return BrowserSession(driver, settings, clock=clock)


@pytest.fixture
def actions(session):
    return ElementActions(session)
