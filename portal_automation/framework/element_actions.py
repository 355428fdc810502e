# ================================================================================
# Element Actions Module
# ================================================================================
#
# Widget-level actions addressed by symbolic locators.
#
# Every action runs in the same order:
#   wait for the blocking overlay -> resolve the locator -> act -> verify
#
# Key Features:
#   - Retry of actions that hit a stale element
#   - Driver-level misses reported as False / "" / None, never raised
#   - Clearing strategy chosen per widget and grid-cell shape
#   - Typed values read back and compared (case-insensitive)
#   - Allure step integration
#
# Usage:
#   actions = ElementActions(session)
#   actions.type_text("txtBatchDescription", "Month end")
#   actions.select_combo_box("cboType", "Adjustment")
#   actions.click_and_wait_for("btnSave", "lblSaved")
#
# ================================================================================

from __future__ import annotations

from functools import wraps
from typing import TYPE_CHECKING, Any, Callable, List, Optional

import allure
from loguru import logger

from portal_automation.framework.exceptions import (
    AmbiguousUIStateError,
    DriverError,
    ElementNotFoundError,
    StaleElementError,
)
from portal_automation.framework.keys import SELECT_ALL, Chord, SpecialKey, SpecialKeyCombo
from portal_automation.framework.locators import ListBoxLocators
from portal_automation.framework.widgets import (
    ClearStrategy,
    WidgetKind,
    clear_strategy_for,
    clear_strategy_for_cell,
    inspect_widget,
    read_display_text,
)

if TYPE_CHECKING:
    from portal_automation.framework.browser_session import BrowserSession


CLICK_SCRIPT = "arguments[0].click();"
SET_VALUE_SCRIPT = (
    "arguments[0].value = arguments[1];"
    "if (window.jQuery) { jQuery(arguments[0]).trigger('change'); }"
    "else { arguments[0].dispatchEvent(new Event('change', {bubbles: true})); }"
)
SCROLL_WINDOW_SCRIPT = "if (window.screen) {window.scroll(arguments[0], arguments[1]);};"
SCROLL_CONTAINER_SCRIPT = (
    "var objDiv = document.getElementById(arguments[0]);"
    "objDiv.scrollTop = objDiv.scrollHeight;"
)
SCROLLBAR_SCRIPTS = {
    "horizontal": "return document.body.scrollWidth > document.body.clientWidth;",
    "vertical": "return document.body.scrollHeight > document.body.clientHeight;",
}
CSS_VALUE_SCRIPT = "return window.getComputedStyle(arguments[0]).getPropertyValue(arguments[1]);"

# Tags whose disabled state the browser always reports
FORM_CONTROL_TAGS = frozenset({"INPUT", "SELECT", "BUTTON", "TEXTAREA", "OPTION", "FIELDSET"})


class RetryConfig:
    """Configuration for retry behavior."""

    def __init__(
        self,
        max_attempts: int = 3,
        delay_seconds: float = 0.5,
        backoff_multiplier: float = 2.0,
        max_delay_seconds: float = 2.0
    ):
        """
        Initialize retry configuration.

        Args:
            max_attempts: Maximum number of attempts
            delay_seconds: Initial delay between attempts
            backoff_multiplier: Multiplier for exponential backoff
            max_delay_seconds: Maximum delay between attempts
        """
        self.max_attempts = max_attempts
        self.delay_seconds = delay_seconds
        self.backoff_multiplier = backoff_multiplier
        self.max_delay_seconds = max_delay_seconds


def with_retry(config: RetryConfig = None):
    """
    Decorator re-running an action whose element went stale mid-action.

    The action re-resolves its locator on every attempt. Sleeps use the
    session clock.

    Args:
        config: RetryConfig object for controlling retry behavior
    """
    if config is None:
        config = RetryConfig()

    def decorator(func: Callable):
        @wraps(func)
        def wrapper(self, *args, **kwargs):
            delay = config.delay_seconds

            for attempt in range(config.max_attempts):
                try:
                    return func(self, *args, **kwargs)
                except StaleElementError as e:
                    if attempt == config.max_attempts - 1:
                        logger.error(
                            f"All {config.max_attempts} attempts failed for "
                            f"{func.__name__}: {e}"
                        )
                        raise
                    logger.warning(
                        f"Attempt {attempt + 1}/{config.max_attempts} failed for "
                        f"{func.__name__}: {e}. Retrying in {delay}s..."
                    )
                    self.session.clock.sleep(delay)
                    delay = min(
                        delay * config.backoff_multiplier,
                        config.max_delay_seconds
                    )

        return wrapper
    return decorator


def on_miss(default: Any):
    """
    Decorator turning an element or driver miss into ``default``.

    Args:
        default: Value returned when the element is missing or the driver
                 reports a failure
    """
    def decorator(func: Callable):
        @wraps(func)
        def wrapper(self, *args, **kwargs):
            try:
                return func(self, *args, **kwargs)
            except (ElementNotFoundError, DriverError) as e:
                target = args[0] if args else ""
                logger.warning(f"{func.__name__}({target}) failed: {e}")
                return default

        return wrapper
    return decorator


def format_telephone_number(digits: str) -> str:
    """
    Telephone mask as the portal renders partially typed numbers.

    >>> format_telephone_number("41655")
    '(416) 55'
    >>> format_telephone_number("4165551234")
    '(416) 555-1234'
    """
    if len(digits) <= 3:
        return f"({digits}"
    if len(digits) <= 6:
        return f"({digits[:3]}) {digits[3:]}"
    return f"({digits[:3]}) {digits[3:6]}-{digits[6:]}"


def _same_text(actual: str, expected: str) -> bool:
    return (actual or "").lower() == (expected or "").lower()


class ElementActions:
    """
    Widget actions bound to one BrowserSession.

    Example:
        actions = ElementActions(session)
        actions.type_text("txtBatchDescription", "Month end")
        actions.click_and_wait_for_absence("btnDelete", "dlgConfirm")
    """

    def __init__(self, session: "BrowserSession"):
        """
        Initialize ElementActions with a session.

        Args:
            session: Browser session the actions run in
        """
        self.session = session

    @property
    def driver(self):
        return self.session.driver

    @property
    def settings(self):
        return self.session.settings

    def _find(self, locator: str) -> Any:
        return self.session.locator.find(locator)

    def _wait_interactable(self, locator: str, element: Any) -> bool:
        ready = self.session.sync.wait_for_condition(
            lambda: self.driver.is_displayed(element) and self.driver.is_enabled(element),
            timeout=self.settings.element_wait_timeout,
            interval=self.settings.element_wait_interval,
            description=f"{locator} interactable",
        )
        if not ready:
            logger.warning(f"{locator} never became visible and enabled; not typing")
        return ready

    def _press(self, element: Any, *keys) -> None:
        chord: Chord = tuple(keys)
        self.driver.press(element, chord)

    def _clear(self, element: Any, strategy: ClearStrategy) -> None:
        logger.debug(f"Clearing with {strategy.value}")
        if strategy is ClearStrategy.NATIVE:
            self.driver.clear(element)
        elif strategy is ClearStrategy.SELECT_ALL_DELETE:
            self.driver.press(element, SELECT_ALL)
            self._press(element, SpecialKey.DELETE)
        elif strategy is ClearStrategy.HOME_SHIFT_END_DELETE:
            self._press(element, SpecialKey.HOME)
            self.driver.press(element, SpecialKeyCombo.SHIFT__END.keys)
            self._press(element, SpecialKey.DELETE)
        elif strategy is ClearStrategy.BACKSPACE_RUN:
            for _ in range(self.settings.backspace_run_length):
                self._press(element, SpecialKey.END)
                self._press(element, SpecialKey.BACK_SPACE)
            self._press(element, SpecialKey.DELETE)
        elif strategy is ClearStrategy.SCRIPT:
            self.session.execute_script(SET_VALUE_SCRIPT, element, "")

    def _typed(self, locator: str, element: Any, expected: str, tab: bool) -> bool:
        actual = self.get_text(locator)
        success = _same_text(actual, expected)
        if not success:
            logger.warning(f"Field {locator} reads '{actual}', expected '{expected}'")
        if tab:
            self._press(element, SpecialKey.TAB)
        return success

    # ==================== Clicks ====================

    @on_miss(False)
    @with_retry()
    @allure.step("Click: {locator}")
    def click(self, locator: str) -> bool:
        element = self._find(locator)
        logger.info(f"Clicking: {locator}")
        self.driver.click(element)
        return True

    @on_miss(False)
    @with_retry()
    @allure.step("Click by script: {locator}")
    def click_by_script(self, locator: str) -> bool:
        """Click through the DOM, for elements a native click cannot reach."""
        element = self._find(locator)
        logger.info(f"Clicking by script: {locator}")
        self.session.execute_script(CLICK_SCRIPT, element)
        return True

    @on_miss(False)
    @with_retry()
    @allure.step("Click by return: {locator}")
    def click_by_return(self, locator: str) -> bool:
        element = self._find(locator)
        logger.info(f"Pressing Enter on: {locator}")
        self._press(element, SpecialKey.ENTER)
        return True

    @allure.step("Click {locator} and wait for {element}")
    def click_and_wait_for(
        self,
        locator: str,
        element: str,
        timeout: Optional[float] = None,
    ) -> bool:
        """
        Click, then wait for ``element`` to be present and displayed.

        Args:
            locator: What to click
            element: What must appear
            timeout: Seconds to wait (default: settings.default_timeout)
        """
        if not self.click(locator):
            return False
        return self.session.sync.wait_for_visible_and_present(
            element,
            timeout=self.settings.default_timeout if timeout is None else timeout,
            interval=self.settings.default_interval,
        )

    @allure.step("Click {locator} and wait for {element} to disappear")
    def click_and_wait_for_absence(
        self,
        locator: str,
        element: str,
        timeout: Optional[float] = None,
    ) -> bool:
        if not self.click(locator):
            return False
        return self.session.sync.wait_for_absence(
            element,
            timeout=self.settings.default_timeout if timeout is None else timeout,
            interval=self.settings.default_interval,
        )

    @allure.step("Click {locator} and wait for {element} (or dismiss {alternate})")
    def click_and_wait_for_either(
        self,
        locator: str,
        element: str,
        alternate: str,
        timeout: Optional[float] = None,
    ) -> bool:
        """
        Click, then wait for ``element``; whenever ``alternate`` shows up
        instead (a confirmation, a warning) click it and keep waiting.
        """
        if not self.click(locator):
            return False
        lookup = self.session.locator.lookup

        def arrived() -> bool:
            if lookup(element) is not None:
                return True
            interrupting = lookup(alternate)
            if interrupting is not None:
                logger.info(f"Dismissing {alternate}")
                self.driver.click(interrupting)
            return False

        return self.session.sync.wait_for_condition(
            arrived,
            timeout=timeout,
            description=f"{element} after dismissing {alternate}",
        )

    @allure.step("Click {locator} and wait for window {window}")
    def click_and_wait_for_window(
        self,
        locator: str,
        window: str,
        element: str,
        timeout: Optional[float] = None,
    ) -> bool:
        """Click, switch to window ``window`` once it exists, then wait for ``element`` in it."""
        if not self.click(locator):
            return False

        def window_ready() -> bool:
            if window not in self.driver.window_handles():
                return False
            if self.session.context.window_handle != window and not self.session.switch_to_window(window):
                return False
            return self.session.locator.lookup(element) is not None

        return self.session.sync.wait_for_condition(
            window_ready,
            timeout=timeout,
            description=f"{element} in window {window}",
        )

    @allure.step("Click {locator} and wait for {element} in frame {frame}")
    def click_and_wait_for_frame(
        self,
        locator: str,
        element: str,
        frame: str,
        timeout: Optional[float] = None,
    ) -> bool:
        """Click, then re-enter ``frame`` on every poll until ``element`` shows in it."""
        if not self.click(locator):
            return False

        def frame_ready() -> bool:
            if not self.session.switch_to_frame(frame, timeout=0):
                return False
            return self.session.locator.lookup(element) is not None

        return self.session.sync.wait_for_condition(
            frame_ready,
            timeout=timeout,
            description=f"{element} in frame {frame}",
        )

    # ==================== Typing ====================

    @on_miss(False)
    @with_retry()
    @allure.step("Type into {locator}: {value}")
    def type_text(self, locator: str, value: str, tab: bool = True) -> bool:
        """
        Replace the field's content with ``value``.

        Args:
            locator: Field locator
            value: Text to type
            tab: Press Tab afterwards, so the field commits its value

        Returns:
            True if the field reads back ``value`` (case-insensitive)
        """
        element = self._find(locator)
        if not self._wait_interactable(locator, element):
            return False
        logger.info(f"Typing into {locator}: '{value}'")
        self._clear(element, clear_strategy_for(inspect_widget(self.driver, element)))
        self.driver.send_keys(element, value)
        return self._typed(locator, element, value, tab)

    @on_miss(False)
    @with_retry()
    @allure.step("Click and type into {locator}: {value}")
    def click_and_type(self, locator: str, value: str, tab: bool = True) -> bool:
        """type_text() for fields that only accept keys after a click."""
        element = self._find(locator)
        if not self._wait_interactable(locator, element):
            return False
        self.driver.click(element)
        self._clear(element, ClearStrategy.SELECT_ALL_DELETE)
        self.driver.send_keys(element, value)
        return self._typed(locator, element, value, tab)

    @on_miss(False)
    @allure.step("Type by script into {locator}: {value}")
    def type_by_script(self, locator: str, value: str) -> bool:
        """Assign the value by script and fire ``change``; no key events."""
        element = self._find(locator)
        if not self._wait_interactable(locator, element):
            return False
        self.session.execute_script(SET_VALUE_SCRIPT, element, value)
        return _same_text(self.get_text(locator), value)

    @on_miss(False)
    @allure.step("Type into cell {locator}: {value}")
    def type_into_cell(self, locator: str, value: str, tab: bool = True) -> bool:
        """
        Type into a grid-cell editor.

        The clearing technique follows the editor shape (numeric, masked
        date, plain). A cell that refuses focus is reported as False, which
        is how read-only cells are asserted.
        """
        resolution = self.session.locator.resolve_one(locator)
        if not resolution:
            return False
        element = resolution.element
        try:
            data_role = self.driver.get_attribute(element, "data-role")
            self._clear(element, clear_strategy_for_cell(locator, data_role))
            self.driver.send_keys(element, value)
        except DriverError as e:
            logger.info(f"Cell {locator} is not editable: {e}")
            return False
        return self._typed(locator, element, value, tab)

    @on_miss(False)
    @allure.step("Type without clearing into {locator}: {value}")
    def type_without_clear(self, locator: str, value: str, tab: bool = True) -> bool:
        element = self._find(locator)
        self.driver.send_keys(element, value)
        return self._typed(locator, element, value, tab)

    @on_miss(False)
    @allure.step("Type telephone number into {locator}: {digits}")
    def type_telephone_number(self, locator: str, digits: str, tab: bool = True) -> bool:
        """Type digits into a masked telephone field and check the rendered mask."""
        element = self._find(locator)
        self.driver.send_keys(element, digits)
        if tab:
            self._press(element, SpecialKey.TAB)
        return _same_text(self.get_text(locator), format_telephone_number(digits))

    @on_miss(False)
    @allure.step("Press {key} on {locator}")
    def press_key(self, locator: str, key: SpecialKey) -> bool:
        self._press(self._find(locator), key)
        return True

    @on_miss(False)
    @allure.step("Press {combo} on {locator}")
    def press_combo(self, locator: str, combo: SpecialKeyCombo) -> bool:
        self.driver.press(self._find(locator), combo.keys)
        return True

    @on_miss(False)
    def clear_text(self, locator: str) -> bool:
        self.driver.clear(self._find(locator))
        return True

    @on_miss(False)
    def clear_by_select_all(self, locator: str) -> bool:
        self._clear(self._find(locator), ClearStrategy.SELECT_ALL_DELETE)
        return True

    @on_miss(False)
    @allure.step("Clear {locator} and expect {default_value}")
    def clear_and_validate(self, locator: str, default_value: str) -> bool:
        """Clear natively; True if the field falls back to ``default_value``."""
        self.driver.clear(self._find(locator))
        return _same_text(self.get_text(locator), default_value)

    # ==================== Reading ====================

    @on_miss("")
    def get_text(self, locator: str) -> str:
        """Text a user would read off the element ("" when it is missing)."""
        element = self._find(locator)
        return read_display_text(self.driver, element, locator)

    @on_miss(None)
    def get_attribute(self, locator: str, name: str) -> Optional[str]:
        return self.driver.get_attribute(self._find(locator), name)

    @on_miss(None)
    def get_css_property(self, locator: str, name: str) -> Optional[str]:
        return self.session.execute_script(CSS_VALUE_SCRIPT, self._find(locator), name)

    def get_placeholder(self, locator: str) -> Optional[str]:
        return self.get_attribute(locator, "placeholder")

    def exists(self, locator: str) -> bool:
        return self.session.locator.exists(locator)

    def exists_no_wait(self, locator: str) -> bool:
        return self.session.locator.exists_no_wait(locator)

    @on_miss(False)
    def is_visible(self, locator: str) -> bool:
        return self.driver.is_displayed(self._find(locator))

    @on_miss(False)
    def is_selected(self, locator: str) -> bool:
        return self.driver.is_selected(self._find(locator))

    @on_miss(False)
    def is_disabled(self, locator: str) -> bool:
        """
        True if the element carries ``disabled``.

        Form controls without it are enabled. Other elements (spans, divs
        styled as buttons) have no disabled state of their own and are
        reported as enabled; in strict mode that case raises
        AmbiguousUIStateError instead, since such widgets disable
        themselves through classes only.
        """
        element = self._find(locator)
        disabled = self.driver.get_attribute(element, "disabled")
        if disabled is None:
            tag = (self.driver.get_attribute(element, "tagName") or "").upper()
            if tag in FORM_CONTROL_TAGS:
                return False
            message = f"{locator} <{tag.lower()}> has no disabled state; reporting it as enabled"
            if self.settings.strict:
                raise AmbiguousUIStateError(message)
            logger.warning(message)
            return False
        return disabled == "true"

    @on_miss(False)
    def is_disabled_for_tab(self, locator: str) -> bool:
        css_class = self.driver.get_attribute(self._find(locator), "class") or ""
        return "k-state-disabled" in css_class

    @on_miss(False)
    def is_disabled_by_class(self, locator: str) -> bool:
        css_class = self.driver.get_attribute(self._find(locator), "class") or ""
        return "disabled" in css_class

    @on_miss(False)
    def is_editable(self, locator: str) -> bool:
        """Visible, enabled and of an input flavor (or content-editable)."""
        element = self._find(locator)
        if not self.driver.is_displayed(element):
            return False
        if self.driver.get_attribute(element, "disabled") == "true":
            return False
        if self.driver.get_attribute(element, "readonly") is not None:
            return False
        css_class = self.driver.get_attribute(element, "class") or ""
        kind = inspect_widget(self.driver, element)
        if "ListBox" in css_class or kind in (WidgetKind.CHECK_BOX, WidgetKind.COMBO_BOX, WidgetKind.TEXT_INPUT):
            return True
        return self.driver.get_attribute(element, "isContentEditable") == "true"

    @on_miss(False)
    def verify_element_source(self, expected_source: str, locator: str) -> bool:
        return expected_source in (self.driver.get_attribute(self._find(locator), "src") or "")

    # ==================== Selection ====================

    @on_miss(False)
    @allure.step("Select radio button: {locator}")
    def select_radio_button(self, locator: str) -> bool:
        self.session.execute_script(CLICK_SCRIPT, self._find(locator))
        return self.is_selected(locator)

    @on_miss(False)
    @allure.step("Select check box: {locator}")
    def select_check_box(self, locator: str) -> bool:
        if not self.is_selected(locator):
            self.session.execute_script(CLICK_SCRIPT, self._find(locator))
        return self.is_selected(locator)

    @on_miss(False)
    @allure.step("Clear check box: {locator}")
    def clear_check_box(self, locator: str) -> bool:
        if self.is_selected(locator):
            self.session.execute_script(CLICK_SCRIPT, self._find(locator))
        return not self.is_selected(locator)

    @on_miss(False)
    @allure.step("Select '{value}' in {locator}")
    def select_combo_box(self, locator: str, value: str, tab: bool = True) -> bool:
        """
        Select an option by its visible text.

        With ``tab`` the selection is read back, Tab commits it and the
        async barrier is awaited twice, since the requests the change
        triggers may not have started when the first wait begins.
        """
        element = self._find(locator)
        logger.info(f"Selecting '{value}' in {locator}")
        self.driver.select_by_visible_text(element, value)
        if not tab:
            return True
        success = _same_text(self.get_text(locator), value)
        self._press(element, SpecialKey.TAB)
        self.session.sync.wait_for_no_outstanding_async_work()
        self.session.sync.wait_for_no_outstanding_async_work()
        return success

    @on_miss(False)
    def select_from_list(self, locator: str, value: str) -> bool:
        element = self._find(locator)
        self.driver.select_by_visible_text(element, value)
        return any(_same_text(text, value) for text in self.driver.selected_option_texts(element))

    @on_miss(False)
    def deselect_from_list(self, locator: str, value: str) -> bool:
        element = self._find(locator)
        for text in self.driver.selected_option_texts(element):
            if _same_text(text, value):
                self.driver.deselect_by_visible_text(element, text)
                break
        return not any(_same_text(text, value) for text in self.driver.selected_option_texts(element))

    @on_miss(False)
    def remove_all_selections(self, locator: str) -> bool:
        element = self._find(locator)
        for text in self.driver.selected_option_texts(element):
            self.driver.deselect_by_visible_text(element, text)
        return not self.driver.selected_option_texts(element)

    @on_miss(False)
    def select_all_selections(self, locator: str) -> bool:
        element = self._find(locator)
        options = self.driver.option_texts(element)
        for text in options:
            self.driver.select_by_visible_text(element, text)
        return len(self.driver.selected_option_texts(element)) == len(options)

    def get_all_options(self, locator: str) -> List[str]:
        resolution = self.session.locator.resolve_one(locator)
        if not resolution:
            return []
        return list(self.driver.option_texts(resolution.element))

    def _list_box_options(self, list_id: str, selected_only: bool) -> List[str]:
        options = []
        index = 1
        while True:
            option = self.session.locator.lookup(ListBoxLocators.option(list_id, index))
            if option is None:
                return options
            if not selected_only or self.driver.get_attribute(option, "aria-selected") == "true":
                options.append(self.driver.get_attribute(option, "innerHTML") or "")
            index += 1

    def list_box_options(self, list_id: str) -> List[str]:
        """Every option of a styled list box, as markup."""
        return self._list_box_options(list_id, selected_only=False)

    def list_box_selected_options(self, list_id: str) -> List[str]:
        return self._list_box_options(list_id, selected_only=True)

    # ==================== Window and pointer ====================

    @allure.step("Scroll window to ({x}, {y})")
    def scroll_window(self, x: int = 0, y: int = 0) -> bool:
        self.session.execute_script(SCROLL_WINDOW_SCRIPT, x, y)
        return True

    def scroll_window_vertically(self, pixels: int) -> bool:
        return self.scroll_window(0, pixels)

    def scroll_window_horizontally(self, pixels: int) -> bool:
        return self.scroll_window(pixels, 0)

    def scroll_container_to_bottom(self, element_id: str) -> bool:
        self.session.execute_script(SCROLL_CONTAINER_SCRIPT, element_id)
        return True

    def is_scrollbar_present(self, orientation: str = "vertical") -> bool:
        script = SCROLLBAR_SCRIPTS.get(orientation.lower())
        if script is None:
            raise ValueError(f"Unknown scrollbar orientation: {orientation}")
        return self.session.execute_script(script) is True

    @on_miss(False)
    @allure.step("Hover: {locator}")
    def hover(self, locator: str) -> bool:
        self.driver.hover(self._find(locator))
        return True

    @allure.step("Take screenshot: {name}")
    def take_screenshot(self, name: str = "screenshot") -> bytes:
        """Capture the current window and attach it to the Allure report."""
        png = self.session.screenshot()
        allure.attach(png, name=name, attachment_type=allure.attachment_type.PNG)
        logger.debug(f"Screenshot attached: {name}")
        return png


__all__ = [
    "ElementActions",
    "RetryConfig",
    "with_retry",
    "on_miss",
    "format_telephone_number",
]
