"""
================================================================================
Playwright Driver
================================================================================

BrowserDriver adapter over the Playwright sync API.

Mapping:
    - windows  -> pages of one BrowserContext (popups included)
    - frames   -> Playwright Frame objects, tracked as the "current frame"
    - elements -> ElementHandle
    - scripts  -> Frame.evaluate of a wrapper that applies the function body
                  to the argument list, so ``arguments[0]`` works as usual

Usage:
    driver = PlaywrightDriver.launch(headless=True)
    try:
        session = BrowserSession(driver, settings)
        ...
    finally:
        driver.quit()

Author: Automation Team
License: MIT
================================================================================
"""

from __future__ import annotations

from typing import Any, Dict, List, Optional, Sequence

from loguru import logger
from playwright.sync_api import (
    Browser,
    BrowserContext,
    ElementHandle,
    Error as PlaywrightError,
    Frame,
    Page,
    Playwright,
    sync_playwright,
)

from portal_automation.drivers.base import BrowserDriver, FrameReference
from portal_automation.framework.exceptions import (
    DriverError,
    NoSuchFrameError,
    NoSuchWindowError,
)
from portal_automation.framework.keys import Chord, chord_to_playwright
from portal_automation.framework.locators import SyntaxKind


# Property-or-attribute read with WebDriver semantics
_GET_ATTRIBUTE_JS = """
(e, name) => {
    const v = e[name];
    if (typeof v === 'boolean') return v ? 'true' : null;
    if (v !== undefined && v !== null && typeof v !== 'object' && typeof v !== 'function') {
        return String(v);
    }
    return e.getAttribute(name);
}
"""

_IS_SELECTED_JS = "e => !!(e.checked || e.selected)"
_OPTION_TEXTS_JS = "e => Array.from(e.options || []).map(o => o.textContent)"
_SELECTED_TEXTS_JS = "e => Array.from(e.selectedOptions || []).map(o => o.text)"
_DESELECT_JS = """
(e, text) => {
    for (const o of Array.from(e.options || [])) {
        if (o.text.trim() === text) o.selected = false;
    }
    e.dispatchEvent(new Event('change', { bubbles: true }));
}
"""
_EXECUTE_JS = "([body, args]) => new Function(body).apply(window, args)"


class PlaywrightDriver(BrowserDriver):
    """
    BrowserDriver backed by a Playwright BrowserContext.

    The adapter keeps its own notion of "current window" and "current frame",
    because Playwright addresses pages and frames explicitly instead of
    switching a global focus.
    """

    # Default browser launch options
    DEFAULT_LAUNCH_OPTIONS: Dict[str, Any] = {
        "headless": True,
        "args": [
            "--ignore-certificate-errors",
            "--disable-features=IsolateOrigins,site-per-process",
        ],
    }

    # Default context options
    DEFAULT_CONTEXT_OPTIONS: Dict[str, Any] = {
        "viewport": {"width": 1920, "height": 1080},
        "ignore_https_errors": True,
    }

    def __init__(
        self,
        context: BrowserContext,
        page: Optional[Page] = None,
        browser: Optional[Browser] = None,
        playwright: Optional[Playwright] = None,
    ):
        """
        Wrap an existing context.

        Args:
            context: Browser context whose pages are the session's windows
            page: Page to start on (default: first page, created if needed)
            browser: Owning browser, closed by quit() when given
            playwright: Playwright instance, stopped by quit() when given
        """
        self._context = context
        self._browser = browser
        self._playwright = playwright
        self._handles: Dict[str, Page] = {}
        self._next_handle = 1

        if page is None:
            page = context.pages[0] if context.pages else context.new_page()
        self._page = page
        self._frame: Frame = page.main_frame

    @classmethod
    def launch(
        cls,
        browser_type: str = "chromium",
        headless: bool = True,
        viewport_width: int = 1920,
        viewport_height: int = 1080,
        **launch_options: Any,
    ) -> "PlaywrightDriver":
        """
        Start Playwright, launch a browser and open one page.

        Args:
            browser_type: chromium, firefox or webkit
            headless: Run without a visible window
            viewport_width: Viewport width in pixels
            viewport_height: Viewport height in pixels
            **launch_options: Extra options merged into DEFAULT_LAUNCH_OPTIONS

        Returns:
            Driver owning the Playwright instance and the browser
        """
        playwright = sync_playwright().start()
        try:
            launcher = getattr(playwright, browser_type)
        except AttributeError:
            playwright.stop()
            raise ValueError(f"Unknown browser type: {browser_type}")

        options = {**cls.DEFAULT_LAUNCH_OPTIONS, "headless": headless, **launch_options}
        try:
            browser = launcher.launch(**options)
        except PlaywrightError:
            playwright.stop()
            raise

        context_options = {
            **cls.DEFAULT_CONTEXT_OPTIONS,
            "viewport": {"width": viewport_width, "height": viewport_height},
        }
        context = browser.new_context(**context_options)
        logger.info(f"Browser launched: {browser_type} (headless={headless})")
        return cls(context, browser=browser, playwright=playwright)

    # ==================== Helpers ====================

    @property
    def page(self) -> Page:
        return self._page

    @property
    def frame(self) -> Frame:
        return self._frame

    def _handle_for(self, page: Page) -> str:
        for handle, known in self._handles.items():
            if known is page:
                return handle
        handle = f"page-{self._next_handle}"
        self._next_handle += 1
        self._handles[handle] = page
        return handle

    @staticmethod
    def _selector(kind: SyntaxKind, value: str) -> str:
        if kind is SyntaxKind.PATH_EXPRESSION:
            return f"xpath={value}"
        if kind is SyntaxKind.ALTERNATE_SELECTOR:
            return f"css={value}"
        escaped = value.replace("\\", "\\\\").replace('"', '\\"')
        return f'[id="{escaped}"]'

    # ==================== Element queries ====================

    def find_elements(self, kind: SyntaxKind, value: str) -> List[ElementHandle]:
        try:
            return self._frame.query_selector_all(self._selector(kind, value))
        except PlaywrightError as e:
            raise DriverError(f"Query failed for {value}: {e}") from e

    # ==================== Element state ====================

    def is_displayed(self, element: ElementHandle) -> bool:
        return self._call(element.is_visible)

    def is_enabled(self, element: ElementHandle) -> bool:
        return self._call(element.is_enabled)

    def is_selected(self, element: ElementHandle) -> bool:
        return bool(self._call(element.evaluate, _IS_SELECTED_JS))

    def get_attribute(self, element: ElementHandle, name: str) -> Optional[str]:
        return self._call(element.evaluate, _GET_ATTRIBUTE_JS, name)

    def get_text(self, element: ElementHandle) -> str:
        return self._call(element.inner_text)

    # ==================== Element interaction ====================

    def click(self, element: ElementHandle) -> None:
        self._call(element.click)

    def clear(self, element: ElementHandle) -> None:
        self._call(element.fill, "")

    def send_keys(self, element: ElementHandle, text: str) -> None:
        self._call(element.type, text)

    def press(self, element: ElementHandle, chord: Chord) -> None:
        self._call(element.press, chord_to_playwright(chord))

    def hover(self, element: ElementHandle) -> None:
        self._call(element.hover)

    def select_by_visible_text(self, element: ElementHandle, text: str) -> None:
        self._call(element.select_option, label=text)

    def deselect_by_visible_text(self, element: ElementHandle, text: str) -> None:
        self._call(element.evaluate, _DESELECT_JS, text)

    def option_texts(self, element: ElementHandle) -> List[str]:
        return list(self._call(element.evaluate, _OPTION_TEXTS_JS))

    def selected_option_texts(self, element: ElementHandle) -> List[str]:
        return list(self._call(element.evaluate, _SELECTED_TEXTS_JS))

    # ==================== Scripts ====================

    def execute_script(self, script: str, *args: Any) -> Any:
        return self._call(self._frame.evaluate, _EXECUTE_JS, [script, list(args)])

    # ==================== Windows and frames ====================

    def current_window_handle(self) -> str:
        if self._page.is_closed():
            raise NoSuchWindowError("Current window has been closed")
        return self._handle_for(self._page)

    def window_handles(self) -> Sequence[str]:
        return [self._handle_for(page) for page in self._context.pages if not page.is_closed()]

    def switch_to_window(self, handle: str) -> None:
        page = self._handles.get(handle)
        if page is None:
            # Handles are assigned lazily; register any new pages first
            self.window_handles()
            page = self._handles.get(handle)
        if page is None or page.is_closed():
            raise NoSuchWindowError(f"No such window: {handle}")
        self._page = page
        self._frame = page.main_frame
        page.bring_to_front()

    def switch_to_frame(self, reference: FrameReference) -> None:
        if isinstance(reference, ElementHandle):
            frame = self._call(reference.content_frame)
            if frame is None:
                raise NoSuchFrameError("Element does not host a frame")
            self._frame = frame
            return

        for child in self._frame.child_frames:
            if child.name == reference:
                self._frame = child
                return
            owner = child.frame_element()
            if owner.get_attribute("id") == reference:
                self._frame = child
                return
        raise NoSuchFrameError(f"No such frame: {reference}")

    def switch_to_default_content(self) -> None:
        self._frame = self._page.main_frame

    # ==================== Page ====================

    def title(self) -> str:
        return self._call(self._page.title)

    def current_url(self) -> str:
        return self._page.url

    def navigate_to(self, url: str) -> None:
        self._call(self._page.goto, url)
        self._frame = self._page.main_frame

    def screenshot(self) -> bytes:
        return self._call(self._page.screenshot)

    def close_window(self) -> None:
        self._page.close()
        remaining = [page for page in self._context.pages if not page.is_closed()]
        if remaining:
            self._page = remaining[-1]
            self._frame = self._page.main_frame

    def quit(self) -> None:
        try:
            self._context.close()
            if self._browser is not None:
                self._browser.close()
        finally:
            if self._playwright is not None:
                self._playwright.stop()
        logger.info("Browser closed")

    @staticmethod
    def _call(func, *args, **kwargs):
        try:
            return func(*args, **kwargs)
        except PlaywrightError as e:
            raise DriverError(str(e)) from e


__all__ = [
    "PlaywrightDriver",
]
