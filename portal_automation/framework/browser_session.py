"""
================================================================================
Browser Session
================================================================================

One driver, its settings, its clock and its current context (window plus
frame path). Every component reaches the browser through a session, so two
sessions never share context state.

Context rules:
    - a new session starts in the current window, default content
    - every frame switch starts from default content, because sibling
      frames cannot be reached from one another
    - a window or frame that is not there yet is retried until the timeout,
      then reported as False
    - after a failed switch the session falls back to the default content of
      a live window, and the recorded context says so

Usage:
    session = BrowserSession(PlaywrightDriver.launch(), BrowserSettings.from_config())
    session.switch_to_frame("iFrameMenu3")
    session.switch_to_frame("outer.inner")  # nested frames
    session.switch_to_newly_opened_window()

Author: Automation Team
License: MIT
================================================================================
"""

from __future__ import annotations

from dataclasses import dataclass
from typing import TYPE_CHECKING, Any, Optional, Tuple

import allure
from loguru import logger

from portal_automation.framework.clock import Clock, SystemClock
from portal_automation.framework.config_loader import ConfigSource
from portal_automation.framework.exceptions import (
    DriverError,
    NoSuchFrameError,
    NoSuchWindowError,
)
from portal_automation.framework.locators import ScreenFrameLocators
from portal_automation.framework.settings import BrowserSettings
from portal_automation.framework.smart_locator import SmartLocator
from portal_automation.framework.wait_helpers import Synchronizer

if TYPE_CHECKING:
    from portal_automation.drivers.base import BrowserDriver


ALLOW_UNLOAD_SCRIPT = "window.onbeforeunload = function(e){};"


@dataclass(frozen=True)
class SessionContext:
    """
    Where driver queries currently run.

    Attributes:
        window_handle: Handle of the current window (None if it is gone)
        frame_path: Frame names from the top document down; empty means
                    default content
    """
    window_handle: Optional[str]
    frame_path: Tuple[str, ...] = ()

    @property
    def in_default_content(self) -> bool:
        return not self.frame_path

    def __str__(self) -> str:
        frames = ".".join(self.frame_path) or "<default>"
        return f"{self.window_handle}:{frames}"


class BrowserSession:
    """
    Explicit browser session: driver, settings, clock and current context.

    Attributes:
        driver: The external browser driver
        settings: Timing and environment settings
        clock: Time source for every wait in this session
        locator: Locator resolver bound to this session
        sync: Synchronization engine bound to this session
    """

    def __init__(
        self,
        driver: "BrowserDriver",
        settings: BrowserSettings,
        clock: Optional[Clock] = None,
    ):
        if driver is None:
            raise ValueError("A browser driver must be supplied")
        if settings is None:
            raise ValueError("The browser settings must be supplied")

        self.driver = driver
        self.settings = settings
        self.clock = clock or SystemClock()
        self.locator = SmartLocator(self)
        self.sync = Synchronizer(self)

        self._main_window: Optional[str] = None
        self._screen_frame_id: Optional[str] = None

        driver.switch_to_default_content()
        self._context = SessionContext(self.current_window())
        logger.debug(f"Browser session started in {self._context}")

    @classmethod
    def from_config(
        cls,
        driver: "BrowserDriver",
        config: Optional[ConfigSource] = None,
        clock: Optional[Clock] = None,
    ) -> "BrowserSession":
        """Session whose settings come from config/config.yaml and the environment."""
        return cls(driver, BrowserSettings.from_config(config), clock=clock)

    # ==================== Context ====================

    @property
    def context(self) -> SessionContext:
        return self._context

    @property
    def main_window(self) -> Optional[str]:
        return self._main_window

    @property
    def screen_frame_id(self) -> Optional[str]:
        """Id of the content frame of the most recently opened screen."""
        return self._screen_frame_id

    def remember_screen_frame(self, frame_id: Optional[str]) -> None:
        self._screen_frame_id = frame_id

    def current_window(self) -> Optional[str]:
        try:
            return self.driver.current_window_handle()
        except NoSuchWindowError:
            return None

    def remember_main_window(self) -> Optional[str]:
        """Record the current window as the one to return to after a screen closes."""
        self._main_window = self.current_window()
        return self._main_window

    def return_to_main_window(self) -> bool:
        if self._main_window is None:
            return self.switch_to_default_content()
        return self.switch_to_window(self._main_window)

    def _restore(self) -> None:
        """Fall back to default content of a live window after a failed switch."""
        candidates = [self._context.window_handle]
        try:
            handles = list(self.driver.window_handles())
        except DriverError as e:
            logger.warning(f"Cannot list windows while restoring context: {e}")
            handles = []
        candidates.extend(reversed(handles))

        for handle in candidates:
            if handle is None:
                continue
            try:
                self.driver.switch_to_window(handle)
                self.driver.switch_to_default_content()
            except DriverError:
                continue
            self._context = SessionContext(handle)
            logger.debug(f"Context restored to {self._context}")
            return

        self._context = SessionContext(None)
        logger.warning("No live window left to restore the context to")

    # ==================== Windows ====================

    def switch_to_window(self, handle: str) -> bool:
        """
        Make ``handle`` the current window (default content).

        Returns:
            False if the window does not exist
        """
        if not handle:
            raise ValueError("Window handle must be a non-empty string")
        try:
            self.driver.switch_to_window(handle)
            self.driver.switch_to_default_content()
        except NoSuchWindowError as e:
            logger.debug(f"No such window {handle}: {e}")
            self._restore()
            return False
        self._context = SessionContext(handle)
        logger.debug(f"Switched to window {handle}")
        return True

    @allure.step("Switch to newly opened window")
    def switch_to_newly_opened_window(self, timeout: Optional[float] = None) -> bool:
        """
        Wait for a window other than the current one and switch to it.

        Retries back off between attempts (the "context_switch" wait scenario).

        Args:
            timeout: Seconds to wait (default: settings.default_timeout)

        Returns:
            True once switched to the new window, False on timeout
        """
        previous = self._context.window_handle or self.current_window()

        def new_window() -> Tuple[bool, Optional[str]]:
            others = [h for h in self.driver.window_handles() if h != previous]
            return bool(others), (others[-1] if others else None)

        opened = self.sync.retry_with_backoff(
            new_window,
            description="new window",
            timeout=self.settings.default_timeout if timeout is None else timeout,
        )
        if opened is None:
            logger.warning(f"No new window appeared besides {previous}")
            return False
        return self.switch_to_window(opened)

    def switch_to_default_window(self) -> bool:
        """Switch to the most recently opened window."""
        handles = list(self.driver.window_handles())
        if not handles:
            return False
        return self.switch_to_window(handles[-1])

    def current_window_title(self) -> str:
        return self.driver.title()

    def window_title_exists(self, title: str) -> bool:
        """
        True if any open window has exactly this title.

        The current window is restored (at default content) afterwards.
        """
        original = self._context.window_handle or self.current_window()
        found = False
        for handle in list(self.driver.window_handles()):
            try:
                self.driver.switch_to_window(handle)
            except NoSuchWindowError:
                continue
            if self.driver.title() == title:
                found = True
        if original is None or not self.switch_to_window(original):
            self._restore()
        return found

    # ==================== Frames ====================

    def switch_to_default_content(self) -> bool:
        self.driver.switch_to_default_content()
        self._context = SessionContext(self._context.window_handle)
        return True

    @allure.step("Switch to frame: {frame_name}")
    def switch_to_frame(self, frame_name: str, timeout: Optional[float] = None) -> bool:
        """
        Enter a frame, starting from default content.

        A dotted name ``parent.child`` enters the parent, then the child.

        Args:
            frame_name: Frame name or id, optionally dotted
            timeout: Seconds to keep retrying a missing frame, backing off
                     between attempts
                     (default: settings.small_timeout)

        Returns:
            True when the frame was entered, False if it never appeared
        """
        if not frame_name:
            raise ValueError("Frame name must be a non-empty string")
        path = tuple(part for part in frame_name.split(".") if part)

        def enter() -> Tuple[bool, bool]:
            self.driver.switch_to_default_content()
            try:
                for part in path:
                    self.driver.switch_to_frame(part)
            except NoSuchFrameError:
                self.driver.switch_to_default_content()
                return False, False
            return True, True

        entered = self.sync.retry_with_backoff(
            enter,
            description=f"frame {frame_name}",
            timeout=self.settings.small_timeout if timeout is None else timeout,
        )
        if not entered:
            logger.debug(f"Frame '{frame_name}' not found")
            self._restore()
            return False

        self._context = SessionContext(self._context.window_handle, path)
        logger.debug(f"Switched to frame {frame_name}")
        return True

    @allure.step("Switch to frame opened after the current screen")
    def switch_to_frame_in_new_or_refreshed_frame(
        self,
        predecessor_id: Optional[str] = None,
        marker: Optional[str] = None,
        timeout: Optional[float] = None,
    ) -> bool:
        """
        Enter the sibling frame a screen opens next to itself (e.g. a report viewer).

        The new frame's id follows the predecessor's (``iFrameMenu4`` ->
        ``iFrameMenu5``). Its source must contain ``marker`` for the switch
        to happen.

        Args:
            predecessor_id: Frame the new one follows (default: current screen frame)
            marker: Required substring of the frame source
                    (default: settings.report_frame_marker)
            timeout: Seconds to wait for the frame (default: element wait)

        Returns:
            True when switched into the new frame
        """
        predecessor_id = predecessor_id or self._screen_frame_id
        if not predecessor_id:
            logger.warning("No screen frame recorded; open a screen first")
            return False
        marker = self.settings.report_frame_marker if marker is None else marker

        self.sync.wait_for_no_blocking_overlay()
        self.switch_to_default_content()

        frame_id = ScreenFrameLocators.next_frame_id(predecessor_id)
        frame_locator = ScreenFrameLocators.by_id(frame_id)
        if not self.sync.wait_for_visible_and_present(frame_locator, timeout=timeout):
            logger.warning(f"Frame {frame_id} did not appear after {predecessor_id}")
            return False

        frame = self.locator.lookup(frame_locator)
        source = (self.driver.get_attribute(frame, "src") or "") if frame is not None else ""
        if marker not in source:
            logger.warning(f"Frame {frame_id} source '{source}' does not contain '{marker}'")
            return False
        return self.switch_to_frame(frame_id)

    # ==================== Page ====================

    def execute_script(self, script: str, *args: Any) -> Any:
        return self.driver.execute_script(script, *args)

    def current_url(self) -> str:
        return self.driver.current_url()

    def navigate_to(self, url: str) -> None:
        self.driver.navigate_to(url)
        self._context = SessionContext(self.current_window())

    def maximize_window(self) -> None:
        self.driver.maximize_window()

    def screenshot(self) -> bytes:
        return self.driver.screenshot()

    def close_current_window(self) -> bool:
        self.driver.close_window()
        self._restore()
        return True

    def close(self, force: bool = False) -> bool:
        """
        Quit the browser.

        Args:
            force: Suppress "leave this page?" prompts before quitting
        """
        if force:
            try:
                self.execute_script(ALLOW_UNLOAD_SCRIPT)
            except DriverError as e:
                logger.debug(f"Could not clear unload handler: {e}")
        self.driver.quit()
        self._context = SessionContext(None)
        logger.info("Browser session closed")
        return True


__all__ = [
    "BrowserSession",
    "SessionContext",
]
