"""
================================================================================
Portal Automation Framework
================================================================================

Components:
    - clock: Deadlines and the injectable time source
    - locators: Locator syntax and structural locator templates
    - smart_locator: Resolution of locators and candidate sets
    - wait_helpers: Synchronization engine
    - browser_session: Driver, settings and window/frame context
    - menu_navigator: Three-level menu navigation
    - element_actions: Widget actions
    - page_base: Portal sign-in, screens and failure capture

Author: Automation Team
License: MIT
================================================================================
"""

from portal_automation.framework.browser_session import BrowserSession, SessionContext
from portal_automation.framework.clock import Clock, Deadline, SystemClock
from portal_automation.framework.element_actions import ElementActions
from portal_automation.framework.exceptions import (
    AmbiguousUIStateError,
    AutomationError,
    ElementNotFoundError,
    WaitTimeoutError,
)
from portal_automation.framework.menu_navigator import MenuNavigator, MenuPath, OpenedScreen
from portal_automation.framework.page_base import PortalPage
from portal_automation.framework.settings import BrowserSettings, settings_from_spec

__all__ = [
    "BrowserSession",
    "SessionContext",
    "Clock",
    "Deadline",
    "SystemClock",
    "ElementActions",
    "AutomationError",
    "AmbiguousUIStateError",
    "ElementNotFoundError",
    "WaitTimeoutError",
    "MenuNavigator",
    "MenuPath",
    "OpenedScreen",
    "PortalPage",
    "BrowserSettings",
    "settings_from_spec",
]
