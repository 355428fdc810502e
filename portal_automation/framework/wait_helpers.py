# ================================================================================
# Wait Helpers Module
# ================================================================================
#
# Synchronization engine for UI automation: every bounded wait in the framework
# is built on wait_for_condition().
#
# Key Features:
#   - Deadline computed once per wait from an injectable clock, never extended
#   - Timeouts are an ordinary outcome (False), not an exception
#   - Driver-level misses inside a predicate count as "not yet"
#   - Named wait scenarios derived from BrowserSettings
#   - Exponential backoff with jitter for retrying flaky operations
#   - Allure integration for step reporting
#
# Usage:
#   sync = session.sync
#   sync.wait_for_presence("//div[@id='x']", timeout=1.0, interval=0.1)
#   sync.wait_for_no_blocking_overlay()
#   require(sync.wait_for_absence("dlgSave"), "save dialog closed")
#
# ================================================================================

from __future__ import annotations

import random
from dataclasses import dataclass, replace
from typing import TYPE_CHECKING, Callable, Dict, Optional, Tuple, TypeVar

import allure
from loguru import logger

from portal_automation.framework.clock import Clock, SystemClock
from portal_automation.framework.exceptions import DriverError, WaitTimeoutError
from portal_automation.framework.settings import BrowserSettings
from portal_automation.framework.widgets import read_display_text

if TYPE_CHECKING:
    from portal_automation.framework.browser_session import BrowserSession


T = TypeVar('T')


@dataclass
class WaitConfig:
    """
    Configuration for wait operations.

    Attributes:
        initial_interval: Initial wait interval in seconds
        multiplier: Multiplier for exponential backoff (1.0 = fixed polling)
        max_interval: Maximum interval between attempts
        timeout: Total timeout in seconds
        jitter: Add random jitter to the backoff interval
    """
    initial_interval: float = 1.0
    multiplier: float = 1.0
    max_interval: float = 30.0
    timeout: float = 120.0
    jitter: bool = False


def build_wait_scenarios(settings: BrowserSettings) -> Dict[str, WaitConfig]:
    """
    Pre-configured wait strategies for common UI scenarios.

    Args:
        settings: Session settings the scenario timings derive from

    Returns:
        Mapping of scenario name to WaitConfig
    """
    return {
        # General-purpose waits
        "default": WaitConfig(
            initial_interval=settings.default_interval,
            timeout=settings.default_timeout,
        ),

        # Element waits
        "element": WaitConfig(
            initial_interval=settings.element_wait_interval,
            timeout=settings.element_wait_timeout,
        ),
        "no_element": WaitConfig(
            initial_interval=settings.no_element_interval,
            timeout=settings.no_element_timeout,
        ),
        "overlay": WaitConfig(
            initial_interval=settings.overlay_poll_interval,
            timeout=settings.overlay_timeout,
        ),
        "content": WaitConfig(
            initial_interval=settings.default_interval,
            timeout=settings.small_timeout,
        ),

        # Browser-level waits
        "async_requests": WaitConfig(
            initial_interval=settings.default_interval,
            timeout=settings.large_timeout,
        ),

        # Retried context switches (popups, report frames still rendering)
        "context_switch": WaitConfig(
            initial_interval=settings.default_interval,
            multiplier=2.0,
            max_interval=2.0,
            timeout=settings.small_timeout,
            jitter=True,
        ),
    }


WAIT_SCENARIOS: Dict[str, WaitConfig] = build_wait_scenarios(BrowserSettings())


def get_wait_config(scenario: str, settings: Optional[BrowserSettings] = None) -> WaitConfig:
    """
    Get wait configuration for a specific scenario.

    Args:
        scenario: Scenario name (e.g., "element", "async_requests")
        settings: Settings to derive the scenario from (default: built-in defaults)

    Returns:
        WaitConfig for the scenario, or default if not found
    """
    scenarios = WAIT_SCENARIOS if settings is None else build_wait_scenarios(settings)
    return scenarios.get(scenario, scenarios["default"])


def calculate_next_interval(
    current_interval: float,
    config: WaitConfig
) -> float:
    """
    Calculate the next wait interval with exponential backoff and jitter.

    Args:
        current_interval: Current interval in seconds
        config: Wait configuration

    Returns:
        Next interval in seconds
    """
    next_interval = min(
        current_interval * config.multiplier,
        config.max_interval
    )

    if config.jitter:
        # Add +/- 25% jitter
        jitter_factor = 0.75 + (random.random() * 0.5)
        next_interval = next_interval * jitter_factor

    return next_interval


def _check_timing(timeout: float, interval: float) -> None:
    if timeout is None or timeout < 0:
        raise ValueError(f"timeout must be >= 0 seconds, got {timeout!r}")
    if interval is None or interval <= 0:
        raise ValueError(f"interval must be > 0 seconds, got {interval!r}")


def _holds(predicate: Callable[[], bool]) -> bool:
    try:
        return bool(predicate())
    except DriverError as e:
        logger.debug(f"Predicate raised driver error, treating as not yet: {e}")
        return False


def wait_for_condition(
    predicate: Callable[[], bool],
    timeout: float,
    interval: float,
    clock: Optional[Clock] = None,
    description: str = "condition",
) -> bool:
    """
    Poll a predicate until it holds or the deadline passes.

    The predicate is evaluated at least once. A success observed after the
    deadline is reported as a timeout. Sleeps are capped at the time
    remaining, so the call never blocks past the deadline by more than one
    predicate evaluation.

    Args:
        predicate: Zero-argument callable re-evaluated against live state
        timeout: Seconds until the deadline (>= 0)
        interval: Seconds between evaluations (> 0)
        clock: Time source (default: SystemClock)
        description: Human-readable description for logging

    Returns:
        True if the predicate held at or before the deadline, else False

    Raises:
        ValueError: On a negative timeout or non-positive interval
    """
    _check_timing(timeout, interval)
    clock = clock or SystemClock()
    deadline = clock.compute_deadline(timeout)
    attempt = 0

    while True:
        attempt += 1
        satisfied = _holds(predicate)
        if satisfied and not clock.expired(deadline):
            logger.debug(f"Wait satisfied after {attempt} attempt(s): {description}")
            return True

        remaining = clock.remaining(deadline)
        if remaining <= 0:
            logger.debug(f"Wait timed out after {attempt} attempt(s) ({timeout}s): {description}")
            return False
        clock.sleep(min(interval, remaining))


@allure.step("Waiting with backoff: {description}")
def wait_with_backoff(
    check_fn: Callable[[], Tuple[bool, T]],
    scenario: str = "context_switch",
    description: str = "Waiting for condition",
    config: Optional[WaitConfig] = None,
    clock: Optional[Clock] = None,
    settings: Optional[BrowserSettings] = None,
) -> T:
    """
    Wait for a condition with exponential backoff.

    Args:
        check_fn: Function that returns (success: bool, result: T)
        scenario: Predefined scenario name for configuration
        description: Human-readable description for logging
        config: Optional custom WaitConfig (overrides scenario)
        clock: Time source (default: SystemClock)
        settings: Settings the scenario derives from (default: built-in defaults)

    Returns:
        Result from check_fn when successful

    Raises:
        WaitTimeoutError: If timeout is reached without success
    """
    if config is None:
        config = get_wait_config(scenario, settings)
    clock = clock or SystemClock()

    deadline = clock.compute_deadline(config.timeout)
    current_interval = config.initial_interval
    attempt = 0
    last_result = None
    last_error = None

    logger.debug(
        f"Starting wait: {description} "
        f"(timeout={config.timeout}s, scenario={scenario})"
    )

    while True:
        attempt += 1

        try:
            success, result = check_fn()
            last_result = result
            if success:
                logger.debug(f"Wait successful after {attempt} attempts: {description}")
                return result
        except DriverError as e:
            last_error = str(e)
            logger.debug(f"Attempt {attempt} failed with driver error: {e}")

        remaining = clock.remaining(deadline)
        if remaining <= 0:
            error_msg = (
                f"Timeout after {config.timeout}s waiting for: {description}. "
                f"Last result: {last_result}, Last error: {last_error}"
            )
            logger.warning(error_msg)
            raise WaitTimeoutError(error_msg, timeout=config.timeout)

        clock.sleep(min(current_interval, remaining))
        current_interval = calculate_next_interval(current_interval, config)


def require(result: bool, description: str, timeout: Optional[float] = None) -> None:
    """
    Turn a failed wait into an exception, for callers that demand the condition.

    Raises:
        WaitTimeoutError: If result is False
    """
    if not result:
        raise WaitTimeoutError(f"Condition not met in time: {description}", timeout=timeout)


class Synchronizer:
    """
    Element-level waits bound to one BrowserSession.

    Every method returns a boolean; whether False is fatal is the caller's
    decision. Timeouts and intervals default to the session settings.

    Presence, absence, visibility and content waits observe the page with
    plain lookups. The blocking overlay is only awaited by the resolver
    before an element is used, and by wait_for_ui_ready().
    """

    def __init__(self, session: "BrowserSession"):
        self._session = session

    @property
    def settings(self) -> BrowserSettings:
        return self._session.settings

    @property
    def clock(self) -> Clock:
        return self._session.clock

    def _timing(
        self, scenario: str, timeout: Optional[float], interval: Optional[float]
    ) -> Tuple[float, float]:
        config = get_wait_config(scenario, self.settings)
        return (
            config.timeout if timeout is None else timeout,
            config.initial_interval if interval is None else interval,
        )

    def wait_for_condition(
        self,
        predicate: Callable[[], bool],
        timeout: Optional[float] = None,
        interval: Optional[float] = None,
        description: str = "condition",
    ) -> bool:
        """wait_for_condition() with the session clock and default timings."""
        timeout, interval = self._timing("default", timeout, interval)
        return wait_for_condition(
            predicate,
            timeout=timeout,
            interval=interval,
            clock=self.clock,
            description=description,
        )

    def retry_with_backoff(
        self,
        check_fn: Callable[[], Tuple[bool, T]],
        description: str,
        timeout: Optional[float] = None,
        scenario: str = "context_switch",
    ) -> Optional[T]:
        """
        wait_with_backoff() on the session clock, returning None on timeout.

        Used for context switches whose target may still be rendering: each
        failed attempt waits longer than the last, up to the scenario's cap.
        """
        config = get_wait_config(scenario, self.settings)
        if timeout is not None:
            config = replace(config, timeout=timeout)
        try:
            return wait_with_backoff(
                check_fn,
                scenario=scenario,
                description=description,
                config=config,
                clock=self.clock,
            )
        except WaitTimeoutError:
            return None

    def _present(self, locator: str) -> bool:
        return self._session.locator.lookup(locator) is not None

    def _present_and_visible(self, locator: str) -> bool:
        element = self._session.locator.lookup(locator)
        return element is not None and self._session.driver.is_displayed(element)

    def wait_for_presence(
        self,
        locator: str,
        timeout: Optional[float] = None,
        interval: Optional[float] = None,
    ) -> bool:
        """Wait until an element matching the locator exists in the current frame."""
        timeout, interval = self._timing("element", timeout, interval)
        return self.wait_for_condition(
            lambda: self._present(locator),
            timeout=timeout,
            interval=interval,
            description=f"presence of {locator}",
        )

    def wait_for_absence(
        self,
        locator: str,
        timeout: Optional[float] = None,
        interval: Optional[float] = None,
    ) -> bool:
        """Wait until the element is gone or no longer displayed."""
        timeout, interval = self._timing("no_element", timeout, interval)
        return self.wait_for_condition(
            lambda: not self._present_and_visible(locator),
            timeout=timeout,
            interval=interval,
            description=f"absence of {locator}",
        )

    def wait_for_visible_and_present(
        self,
        locator: str,
        timeout: Optional[float] = None,
        interval: Optional[float] = None,
    ) -> bool:
        """Wait until the element exists and is displayed."""
        timeout, interval = self._timing("element", timeout, interval)
        return self.wait_for_condition(
            lambda: self._present_and_visible(locator),
            timeout=timeout,
            interval=interval,
            description=f"visibility of {locator}",
        )

    def wait_for_content_equals(
        self,
        locator: str,
        text: str,
        timeout: Optional[float] = None,
        interval: Optional[float] = None,
    ) -> bool:
        """Wait until the element's display text equals ``text`` exactly."""

        def content_matches() -> bool:
            element = self._session.locator.lookup(locator)
            if element is None:
                return False
            return read_display_text(self._session.driver, element, locator) == text

        timeout, interval = self._timing("content", timeout, interval)
        return self.wait_for_condition(
            content_matches,
            timeout=timeout,
            interval=interval,
            description=f"content of {locator} == {text!r}",
        )

    def wait_for_no_blocking_overlay(self) -> bool:
        """
        Wait until the page-level loading overlay is hidden.

        A page without the overlay element counts as ready immediately. Screens
        that never render the overlay (report viewers, plain pages) would
        otherwise wait forever; the flip side is that such screens get no
        loading protection from this check.
        """
        overlay = self.settings.overlay_locator
        if not overlay:
            return True

        locator = self._session.locator
        if locator.lookup(overlay) is None:
            return True

        def overlay_hidden() -> bool:
            element = locator.lookup(overlay)
            return element is None or not self._session.driver.is_displayed(element)

        timeout, interval = self._timing("overlay", None, None)
        done = wait_for_condition(
            overlay_hidden,
            timeout=timeout,
            interval=interval,
            clock=self.clock,
            description=f"overlay {overlay} hidden",
        )
        if not done:
            logger.warning(
                f"Loading overlay '{overlay}' still displayed after "
                f"{self.settings.overlay_timeout}s"
            )
        return done

    def wait_for_no_outstanding_async_work(
        self,
        timeout: Optional[float] = None,
        interval: Optional[float] = None,
    ) -> bool:
        """Poll the async probe script until it reports no pending requests."""
        probe = self.settings.async_probe_script
        timeout, interval = self._timing("async_requests", timeout, interval)
        return self.wait_for_condition(
            lambda: self._session.execute_script(probe) is True,
            timeout=timeout,
            interval=interval,
            description="no outstanding async requests",
        )

    @allure.step("Wait for UI ready: {locator}")
    def wait_for_ui_ready(self, locator: str) -> bool:
        """Overlay gone, then the given element present and visible."""
        if not self.wait_for_no_blocking_overlay():
            return False
        return self.wait_for_visible_and_present(locator)


__all__ = [
    "WaitConfig",
    "WAIT_SCENARIOS",
    "build_wait_scenarios",
    "get_wait_config",
    "calculate_next_interval",
    "wait_for_condition",
    "wait_with_backoff",
    "require",
    "Synchronizer",
]
