"""
================================================================================
Selenium Driver
================================================================================

BrowserDriver adapter over Selenium WebDriver, for grids and browsers that
are driven through a WebDriver endpoint. Install with the ``selenium``
extra: ``pip install portal-automation[selenium]``.

Author: Automation Team
License: MIT
================================================================================
"""

from __future__ import annotations

from typing import Any, List, Optional, Sequence

from loguru import logger
from selenium import webdriver
from selenium.common.exceptions import (
    NoSuchElementException,
    NoSuchFrameException,
    NoSuchWindowException,
    StaleElementReferenceException,
    WebDriverException,
)
from selenium.webdriver.common.action_chains import ActionChains
from selenium.webdriver.common.by import By
from selenium.webdriver.common.keys import Keys
from selenium.webdriver.remote.webelement import WebElement
from selenium.webdriver.support.ui import Select

from portal_automation.drivers.base import BrowserDriver, FrameReference
from portal_automation.framework.exceptions import (
    DriverError,
    NoSuchElementError,
    NoSuchFrameError,
    NoSuchWindowError,
    StaleElementError,
)
from portal_automation.framework.keys import Chord, SpecialKey
from portal_automation.framework.locators import SyntaxKind


_BY = {
    SyntaxKind.PATH_EXPRESSION: By.XPATH,
    SyntaxKind.ALTERNATE_SELECTOR: By.CSS_SELECTOR,
    SyntaxKind.IDENTIFIER: By.ID,
}

# Selenium names that differ from SpecialKey member names
_KEY_NAMES = {
    SpecialKey.LEFT: "ARROW_LEFT",
    SpecialKey.RIGHT: "ARROW_RIGHT",
    SpecialKey.UP: "ARROW_UP",
    SpecialKey.DOWN: "ARROW_DOWN",
}


def to_selenium_keys(chord: Chord) -> str:
    """Render a chord as a Selenium key sequence; modifiers are released at the end."""
    parts = []
    for key in chord:
        if isinstance(key, SpecialKey):
            parts.append(getattr(Keys, _KEY_NAMES.get(key, key.name)))
        else:
            parts.append(key)
    return "".join(parts) + Keys.NULL


class SeleniumDriver(BrowserDriver):
    """BrowserDriver backed by a selenium.webdriver instance."""

    def __init__(self, driver: webdriver.Remote):
        self._driver = driver

    @classmethod
    def launch(cls, browser_type: str = "chrome", headless: bool = True) -> "SeleniumDriver":
        """
        Start a local Selenium-managed browser.

        Args:
            browser_type: chrome or firefox
            headless: Run without a visible window
        """
        if browser_type == "chrome":
            options = webdriver.ChromeOptions()
            if headless:
                options.add_argument("--headless=new")
            options.add_argument("--ignore-certificate-errors")
            driver = webdriver.Chrome(options=options)
        elif browser_type == "firefox":
            options = webdriver.FirefoxOptions()
            if headless:
                options.add_argument("-headless")
            driver = webdriver.Firefox(options=options)
        else:
            raise ValueError(f"Unknown browser type: {browser_type}")
        logger.info(f"Selenium browser launched: {browser_type} (headless={headless})")
        return cls(driver)

    @property
    def webdriver(self) -> webdriver.Remote:
        return self._driver

    def find_elements(self, kind: SyntaxKind, value: str) -> List[WebElement]:
        return self._call(self._driver.find_elements, _BY[kind], value)

    def is_displayed(self, element: WebElement) -> bool:
        return self._call(element.is_displayed)

    def is_enabled(self, element: WebElement) -> bool:
        return self._call(element.is_enabled)

    def is_selected(self, element: WebElement) -> bool:
        return self._call(element.is_selected)

    def get_attribute(self, element: WebElement, name: str) -> Optional[str]:
        return self._call(element.get_attribute, name)

    def get_text(self, element: WebElement) -> str:
        return self._call(lambda: element.text)

    def click(self, element: WebElement) -> None:
        self._call(element.click)

    def clear(self, element: WebElement) -> None:
        self._call(element.clear)

    def send_keys(self, element: WebElement, text: str) -> None:
        self._call(element.send_keys, text)

    def press(self, element: WebElement, chord: Chord) -> None:
        self._call(element.send_keys, to_selenium_keys(chord))

    def hover(self, element: WebElement) -> None:
        self._call(lambda: ActionChains(self._driver).move_to_element(element).perform())

    def select_by_visible_text(self, element: WebElement, text: str) -> None:
        self._call(Select(element).select_by_visible_text, text)

    def deselect_by_visible_text(self, element: WebElement, text: str) -> None:
        self._call(Select(element).deselect_by_visible_text, text)

    def option_texts(self, element: WebElement) -> List[str]:
        return self._call(
            lambda: [o.get_attribute("textContent") for o in Select(element).options]
        )

    def selected_option_texts(self, element: WebElement) -> List[str]:
        return self._call(lambda: [o.text for o in Select(element).all_selected_options])

    def execute_script(self, script: str, *args: Any) -> Any:
        return self._call(self._driver.execute_script, script, *args)

    def current_window_handle(self) -> str:
        return self._call(lambda: self._driver.current_window_handle)

    def window_handles(self) -> Sequence[str]:
        return self._call(lambda: list(self._driver.window_handles))

    def switch_to_window(self, handle: str) -> None:
        self._call(self._driver.switch_to.window, handle)

    def switch_to_frame(self, reference: FrameReference) -> None:
        self._call(self._driver.switch_to.frame, reference)

    def switch_to_default_content(self) -> None:
        self._call(self._driver.switch_to.default_content)

    def title(self) -> str:
        return self._call(lambda: self._driver.title)

    def current_url(self) -> str:
        return self._call(lambda: self._driver.current_url)

    def navigate_to(self, url: str) -> None:
        self._call(self._driver.get, url)

    def screenshot(self) -> bytes:
        return self._call(self._driver.get_screenshot_as_png)

    def maximize_window(self) -> None:
        self._call(self._driver.maximize_window)

    def close_window(self) -> None:
        self._call(self._driver.close)

    def quit(self) -> None:
        self._driver.quit()
        logger.info("Selenium browser closed")

    @staticmethod
    def _call(func, *args):
        try:
            return func(*args)
        except NoSuchElementException as e:
            raise NoSuchElementError(e.msg) from e
        except NoSuchWindowException as e:
            raise NoSuchWindowError(e.msg) from e
        except NoSuchFrameException as e:
            raise NoSuchFrameError(e.msg) from e
        except StaleElementReferenceException as e:
            raise StaleElementError(e.msg) from e
        except WebDriverException as e:
            raise DriverError(e.msg) from e


__all__ = [
    "SeleniumDriver",
    "to_selenium_keys",
]
