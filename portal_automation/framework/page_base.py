"""
================================================================================
Portal Page
================================================================================

Entry point for tests driving the portal.

Provides:
    - Sign-in (optionally changing the session date)
    - Opening pages by address, with URL or element checks
    - Opening and closing screens through the menu
    - Entering report frames opened next to a screen
    - Screenshot and failure capture for the Allure report

Usage:
    portal = PortalPage(session)
    portal.sign_in("user@example.com", "secret")
    screen = portal.open_screen(
        MenuPath("G/L", "Transactions", "Journal Entry"),
        "https://portal.example.com/Tenant4/GL/JournalEntry",
    )
    portal.actions.type_text("txtBatchDescription", "Month end")
    portal.close_screen(screen.menu_id)

Author: Automation Team
License: MIT
================================================================================
"""

from __future__ import annotations

from datetime import datetime
from pathlib import Path
from typing import Optional

import allure
from loguru import logger

from portal_automation.framework.browser_session import BrowserSession
from portal_automation.framework.config_loader import ConfigLoader, ConfigSource
from portal_automation.framework.element_actions import ElementActions
from portal_automation.framework.locators import MenuLocators
from portal_automation.framework.menu_navigator import MenuNavigator, MenuPath, OpenedScreen


# Default output directory for screenshots (relative to the working directory)
SCREENSHOT_DIR = Path("reports") / "screenshots"

LOGIN_DEFAULTS = {
    "login_user_field": "sso_Email",
    "login_password_field": "sso_Password",
    "login_submit": "//input[@value='Sign In']",
    "login_timeout": 30.0,
}

SESSION_DATE_EDIT_LINK = "lnkEdit"
SESSION_DATE_FIELD = "datePicker"


class PortalPage:
    """
    The signed-in portal shell around all screens.

    Attributes:
        session: Browser session
        actions: Widget actions in that session
        navigator: Menu navigator in that session
    """

    def __init__(
        self,
        session: BrowserSession,
        actions: Optional[ElementActions] = None,
        config: Optional[ConfigSource] = None,
    ):
        """
        Initialize the portal page.

        Args:
            session: Browser session to drive
            actions: Shared ElementActions (default: a new one on the session)
            config: Configuration for the login form and screenshot directory
        """
        self.session = session
        self.actions = actions or ElementActions(session)
        self.navigator = MenuNavigator(session, self.actions)

        config = config or ConfigLoader()
        portal = config.get_section("portal", LOGIN_DEFAULTS)
        self.user_field = portal["login_user_field"]
        self.password_field = portal["login_password_field"]
        self.submit_button = portal["login_submit"]
        self.login_timeout = float(portal["login_timeout"])
        self.screenshot_dir = Path(config.get("report.screenshot_dir", str(SCREENSHOT_DIR)))

    @property
    def base_url(self) -> str:
        return self.session.settings.base_url.rstrip("/")

    # =========================================================================
    # Sign-in
    # =========================================================================

    def sign_in(self, user: str, password: str) -> Optional[str]:
        """
        Sign in through the portal's login form.

        Returns:
            The home page address once the menu is shown, else None
        """
        with allure.step(f"Sign in as {user}"):
            self.session.navigate_to(self.base_url)
            sync = self.session.sync
            if not sync.wait_for_visible_and_present(self.user_field, timeout=self.login_timeout):
                logger.error(f"Login form not shown at {self.base_url}")
                return None

            self.actions.type_text(self.user_field, user)
            self.actions.type_text(self.password_field, password)
            self.actions.click(self.submit_button)

            if not sync.wait_for_presence(MenuLocators.level1_label(MenuLocators.FIRST_INDEX)):
                logger.error(f"Portal menu did not appear after signing in as {user}")
                return None
            url = self.session.current_url()
            logger.info(f"Signed in as {user}: {url}")
            return url

    def sign_in_with_session_date(self, user: str, password: str, session_date: str) -> Optional[str]:
        """Sign in, then change the session date shown in the portal header."""
        if self.sign_in(user, password) is None:
            return None
        with allure.step(f"Set session date to {session_date}"):
            self.actions.click(SESSION_DATE_EDIT_LINK)
            self.actions.type_text(SESSION_DATE_FIELD, session_date)
        return self.session.current_url()

    # =========================================================================
    # Navigation
    # =========================================================================

    def open_url(self, path: str) -> None:
        """Open ``path`` relative to the portal address, without checks."""
        with allure.step(f"Open {path}"):
            self.session.navigate_to(f"{self.base_url}{path}")

    def open_ui_by_full_url(self, url: str) -> bool:
        """
        Open an absolute address and wait until the browser reports it.

        The comparison ignores case, since the portal normalizes tenant
        names in redirects.
        """
        with allure.step(f"Open {url}"):
            self.session.navigate_to(url)
            return self.session.sync.wait_for_condition(
                lambda: self.session.current_url().lower() == url.lower(),
                timeout=self.session.settings.small_timeout,
                description=f"address {url}",
            )

    def open_url_and_wait_for(self, path: str, element: str) -> bool:
        """Open ``path`` relative to the portal address and wait for ``element``."""
        self.open_url(path)
        settings = self.session.settings
        return self.session.sync.wait_for_presence(
            element,
            timeout=settings.small_timeout,
            interval=settings.default_interval,
        )

    def select_tab(self, locator: str) -> bool:
        return self.actions.click(locator)

    def wait_for_ui_ready(self, locator: str) -> bool:
        return self.session.sync.wait_for_ui_ready(locator)

    # =========================================================================
    # Screens
    # =========================================================================

    def open_screen(self, path: MenuPath, screen_url: str) -> Optional[OpenedScreen]:
        return self.navigator.open_screen(path, screen_url)

    def locate_screen_item(self, path: MenuPath) -> Optional[str]:
        return self.navigator.locate_screen_item(path)

    def get_screen_frame(self, screen_url: str) -> Optional[str]:
        return self.navigator.get_screen_frame(screen_url)

    def close_screen(self, menu_id: str) -> bool:
        return self.navigator.close_screen(menu_id)

    def switch_to_report_frame(self, marker: Optional[str] = None) -> bool:
        """Enter the report viewer the current screen opened next to itself."""
        return self.session.switch_to_frame_in_new_or_refreshed_frame(marker=marker)

    # =========================================================================
    # Screenshot and Debug Utilities
    # =========================================================================

    def screenshot(self, name: str, attach_to_allure: bool = True) -> Path:
        """
        Take screenshot and optionally attach to Allure.

        Args:
            name: Screenshot name (without extension)
            attach_to_allure: Whether to attach to Allure report

        Returns:
            Path to saved screenshot
        """
        self.screenshot_dir.mkdir(parents=True, exist_ok=True)

        timestamp = datetime.now().strftime("%Y%m%d_%H%M%S")
        filepath = self.screenshot_dir / f"{name}_{timestamp}.png"

        png = self.session.screenshot()
        filepath.write_bytes(png)

        if attach_to_allure:
            allure.attach(png, name=name, attachment_type=allure.attachment_type.PNG)

        logger.debug(f"Screenshot saved: {filepath}")
        return filepath

    def capture_failure(self, test_name: str) -> None:
        """
        Capture debugging information on test failure.

        Saves:
            - Screenshot
            - Current URL
            - Locator health report
        """
        with allure.step("Capture failure details"):
            self.screenshot(f"failure_{test_name}", attach_to_allure=True)

            allure.attach(
                self.session.current_url(),
                name="Current URL",
                attachment_type=allure.attachment_type.TEXT
            )
            allure.attach(
                self.get_locator_health_report(),
                name="Locator Health",
                attachment_type=allure.attachment_type.TEXT
            )

    def get_locator_health_report(self) -> str:
        return self.session.locator.get_health_report()


__all__ = [
    "PortalPage",
]
