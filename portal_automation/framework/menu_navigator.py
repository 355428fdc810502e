"""
================================================================================
Menu Navigator
================================================================================

Opens portal screens through the three-level menu:

    application (level 1) -> category (level 2) -> screen (level 3)

The menu is rendered by script and only unfolds on hover, which is not
reliable under automation. Each matched level is therefore forced visible
with a script call, and the screen item is clicked by script. Once the
screen is open its content frame is located by address and entered.

Navigation states:
    AT_ROOT -> LEVEL1_MATCHED -> LEVEL2_MATCHED -> LEVEL3_CLICKED
    any state -> FAILED (session left at the main window)

Usage:
    navigator = MenuNavigator(session, actions)
    screen = navigator.open_screen(
        MenuPath("G/L", "Transactions", "Journal Entry"),
        "https://portal.example.com/Tenant4/GL/JournalEntry",
    )
    ...
    navigator.close_screen(screen.menu_id)

Author: Automation Team
License: MIT
================================================================================
"""

from __future__ import annotations

from dataclasses import dataclass
from enum import Enum
from typing import TYPE_CHECKING, Callable, Optional

import allure
from loguru import logger

from portal_automation.framework.exceptions import (
    AutomationError,
    ContextSwitchError,
    DriverError,
    MenuLevelNotFoundError,
)
from portal_automation.framework.locators import MenuLocators, ScreenFrameLocators

if TYPE_CHECKING:
    from portal_automation.framework.browser_session import BrowserSession
    from portal_automation.framework.element_actions import ElementActions


PATH_SEPARATOR = ">"

# Unfolds the screen tab strip so the close controls become clickable
SHOW_SCREEN_TABS_SCRIPT = '$("div#draggable > div:eq(1) > span").mouseover();'


class MenuState(str, Enum):
    AT_ROOT = "at_root"
    LEVEL1_MATCHED = "level1_matched"
    LEVEL2_MATCHED = "level2_matched"
    LEVEL3_CLICKED = "level3_clicked"
    FAILED = "failed"


@dataclass(frozen=True)
class MenuPath:
    """
    Menu texts leading to a screen.

    Attributes:
        application: Level-1 text
        category: Level-2 text
        screen: Level-3 text
    """
    application: str
    category: str
    screen: str

    def __post_init__(self) -> None:
        for name in ("application", "category", "screen"):
            if not (getattr(self, name) or "").strip():
                raise ValueError(f"Menu path {name} must be a non-empty string")

    @classmethod
    def parse(cls, text: str) -> "MenuPath":
        """``"G/L > Transactions > Journal Entry"`` -> MenuPath."""
        parts = [part.strip() for part in text.split(PATH_SEPARATOR)]
        if len(parts) != 3:
            raise ValueError(f"Menu path needs exactly three levels: {text!r}")
        return cls(*parts)

    def __str__(self) -> str:
        return f" {PATH_SEPARATOR} ".join((self.application, self.category, self.screen))


@dataclass(frozen=True)
class OpenedScreen:
    """
    An open screen.

    Attributes:
        menu_id: The screen's menu id (also the id of its tab)
        frame_locator: Id of the content frame the session switched into
    """
    menu_id: str
    frame_locator: str


def _same_text(displayed: str, wanted: str) -> bool:
    return displayed.strip().lower() == wanted.strip().lower()


class MenuNavigator:
    """
    Drives the portal menu for one BrowserSession.

    Attributes:
        state: Where the last navigation got to
        last_error: Why the last navigation failed, if it did
    """

    def __init__(self, session: "BrowserSession", actions: "ElementActions"):
        self.session = session
        self.actions = actions
        self.state = MenuState.AT_ROOT
        self.last_error: Optional[AutomationError] = None

    # ==================== Level scans ====================

    def _label_text(self, locator: str, strip_nested_span: bool = False) -> Optional[str]:
        element = self.session.locator.lookup(locator)
        if element is None:
            return None
        inner = self.session.driver.get_attribute(element, "innerHTML")
        return MenuLocators.label_text(inner, strip_nested_span)

    def _scan(
        self,
        level: int,
        wanted: str,
        label_at: Callable[[int], str],
        first_index: int,
        next_index: Callable[[int], int],
        strip_nested_span: bool = False,
    ) -> Optional[int]:
        """
        Linear scan of one menu level.

        Returns:
            Index of the first label matching ``wanted``, or None
        """
        sync = self.session.sync
        sync.wait_for_no_blocking_overlay()
        if not sync.wait_for_visible_and_present(label_at(first_index)):
            logger.warning(f"Menu level {level} never became visible")
            return None

        index = first_index
        while True:
            text = self._label_text(label_at(index), strip_nested_span)
            if text is None:
                return None
            if _same_text(text, wanted):
                logger.debug(f"Menu level {level}: '{wanted}' at index {index}")
                return index
            index = next_index(index)

    def _level3_next(self, level2_locator: str) -> Callable[[int], int]:
        def following(index: int) -> int:
            row = self.session.locator.lookup(MenuLocators.level3_row(level2_locator, index + 1))
            row_class = None
            if row is not None:
                row_class = self.session.driver.get_attribute(row, "class")
            return MenuLocators.next_level3_index(index, row_class)
        return following

    def _expand_category(self, path: MenuPath) -> Optional[str]:
        """Unfold levels 1 and 2; return the level-2 locator."""
        level1 = self._scan(
            1,
            path.application,
            MenuLocators.level1_label,
            MenuLocators.FIRST_INDEX,
            lambda index: index + 1,
        )
        if level1 is None:
            return self._not_found(1, path.application)
        if not self._run_script(MenuLocators.show_level1_script(level1)):
            return None
        level1_locator = MenuLocators.level1(level1)
        self.state = MenuState.LEVEL1_MATCHED

        level2 = self._scan(
            2,
            path.category,
            lambda index: MenuLocators.level2_label(level1_locator, index),
            MenuLocators.FIRST_INDEX,
            lambda index: index + 1,
            strip_nested_span=True,
        )
        if level2 is None:
            return self._not_found(2, path.category)
        if not self._run_script(MenuLocators.show_level2_script(level1, level2)):
            return None
        self.state = MenuState.LEVEL2_MATCHED
        return MenuLocators.level2(level1_locator, level2)

    def _find_screen_item(self, level2_locator: str, screen: str) -> Optional[str]:
        level3 = self._scan(
            3,
            screen,
            lambda index: MenuLocators.level3_link(level2_locator, index),
            MenuLocators.LEVEL3_FIRST_INDEX,
            self._level3_next(level2_locator),
        )
        if level3 is None:
            return self._not_found(3, screen)
        return MenuLocators.level3_link(level2_locator, level3)

    # ==================== Failure ====================

    def _run_script(self, script: str) -> bool:
        try:
            self.session.execute_script(script)
        except DriverError as e:
            self.last_error = ContextSwitchError(f"Menu script failed: {e}")
            return False
        return True

    def _not_found(self, level: int, text: str) -> None:
        self.last_error = MenuLevelNotFoundError(level, text)
        return None

    def _fail(self, path: MenuPath) -> None:
        self.state = MenuState.FAILED
        if self.last_error is None:
            self.last_error = ContextSwitchError(f"Could not enter the screen {path}")
        logger.error(f"Navigation to '{path}' failed: {self.last_error}")
        try:
            self.session.execute_script(MenuLocators.HIDE_MENUS_SCRIPT)
        except DriverError as e:
            logger.debug(f"Could not hide the menu after failing: {e}")
        self.session.return_to_main_window()
        return None

    def _start(self) -> None:
        self.state = MenuState.AT_ROOT
        self.last_error = None
        self.session.switch_to_default_content()

    # ==================== Public API ====================

    @allure.step("Open screen: {path}")
    def open_screen(self, path: MenuPath, screen_url: str) -> Optional[OpenedScreen]:
        """
        Open a screen through the menu and switch into its content frame.

        Args:
            path: Menu texts (matched case-insensitively, trimmed)
            screen_url: Full address the screen's frame loads
                        (``https://host/<tenant>/<app>/<screen>``)

        Returns:
            OpenedScreen, or None when any level or the frame was not found
            (``last_error`` says which)
        """
        screen_path = ScreenFrameLocators.screen_path(screen_url)
        self._start()

        level2_locator = self._expand_category(path)
        if level2_locator is None:
            return self._fail(path)

        self.session.remember_main_window()
        item = self._find_screen_item(level2_locator, path.screen)
        if item is None:
            return self._fail(path)

        if not self.actions.click_by_script(item):
            return self._fail(path)
        if not self._run_script(MenuLocators.HIDE_MENUS_SCRIPT):
            return self._fail(path)
        self.session.clock.sleep(self.session.settings.menu_settle_pause)
        self.state = MenuState.LEVEL3_CLICKED

        menu_id = (self.actions.get_attribute(item, "data-menuid") or "").strip()
        if not self.session.sync.wait_for_presence(ScreenFrameLocators.by_source(screen_path)):
            logger.warning(f"No frame loading {screen_path} appeared")
            return self._fail(path)

        frame_id = self.get_screen_frame(screen_url)
        if frame_id is None or not self.session.switch_to_frame(frame_id):
            return self._fail(path)

        self.session.remember_screen_frame(frame_id)
        logger.info(f"Opened screen '{path}' (menu id {menu_id}, frame {frame_id})")
        return OpenedScreen(menu_id=menu_id, frame_locator=frame_id)

    @allure.step("Locate screen item: {path}")
    def locate_screen_item(self, path: MenuPath) -> Optional[str]:
        """
        Unfold the menu down to ``path`` without opening the screen.

        Returns:
            Locator of the level-3 item, or None
        """
        self._start()
        level2_locator = self._expand_category(path)
        if level2_locator is None:
            return self._fail(path)

        self.session.remember_main_window()
        self.session.sync.wait_for_presence(level2_locator + "/div")
        item = self._find_screen_item(level2_locator, path.screen)
        if item is None:
            return self._fail(path)
        return item

    def get_screen_frame(self, screen_url: str) -> Optional[str]:
        """
        Id of the screen-layout frame whose source is ``screen_url``.

        Drivers report either the absolute address or the attribute as
        written, so the tenant/app/screen path also matches.
        """
        accepted = {screen_url, ScreenFrameLocators.screen_path(screen_url)}
        index = 1
        while True:
            frame = self.session.locator.lookup(ScreenFrameLocators.by_position(index))
            if frame is None:
                logger.debug(f"No screen frame loads {screen_url}")
                return None
            source = (self.session.driver.get_attribute(frame, "src") or "").strip()
            if source in accepted:
                return (self.session.driver.get_attribute(frame, "id") or "").strip() or None
            index += 1

    @allure.step("Close screen: {menu_id}")
    def close_screen(self, menu_id: str) -> bool:
        """
        Close an opened screen through its tab.

        Returns:
            True once the tab is gone
        """
        if not menu_id:
            raise ValueError("Menu id must be a non-empty string")
        self.session.switch_to_default_content()
        try:
            self.session.execute_script(SHOW_SCREEN_TABS_SCRIPT)
        except DriverError as e:
            logger.warning(f"Could not unfold the screen tabs: {e}")
            return False

        close_button = ScreenFrameLocators.close_button(menu_id)
        if not self.session.sync.wait_for_visible_and_present(close_button):
            logger.warning(f"Screen tab {menu_id} has no close control")
            return False
        self.actions.click(close_button)
        closed = self.session.sync.wait_for_absence(close_button)
        if closed and self.session.screen_frame_id is not None:
            self.session.remember_screen_frame(None)
        return closed


__all__ = [
    "MenuNavigator",
    "MenuPath",
    "MenuState",
    "OpenedScreen",
]
