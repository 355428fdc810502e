"""
================================================================================
Automation Exceptions
================================================================================

Error taxonomy shared by the locator resolver, the synchronization engine,
the context manager, the menu navigator and the action facade.

Expected misses (element not there yet, frame not loaded) are normally
reported as ``False``/``None``/failed resolutions. The exceptions below are
raised only when a caller explicitly demands the outcome, or attached to a
failed result for diagnostics.

Argument errors (missing locator, missing settings, negative timeout) are
plain ``ValueError``.

Author: Automation Team
License: MIT
================================================================================
"""

from __future__ import annotations

from typing import Optional, Sequence


class AutomationError(Exception):
    """Base class for all automation core errors."""
    pass


class ElementNotFoundError(AutomationError):
    """Raised when a locator does not resolve to an element."""

    def __init__(self, locator: str, message: Optional[str] = None):
        self.locator = locator
        super().__init__(message or f"Element not found: {locator}")


class NoCandidateMatchedError(ElementNotFoundError):
    """Raised when none of the structural candidates under a base locator matched."""

    def __init__(self, base_locator: str, candidates: Sequence[str]):
        self.candidates = tuple(candidates)
        super().__init__(
            base_locator,
            f"No candidate matched under '{base_locator}'. "
            f"Tried suffixes: {list(self.candidates)}",
        )


class WaitTimeoutError(AutomationError):
    """Raised when a caller demands a condition that did not hold before its deadline."""

    def __init__(self, message: str, timeout: Optional[float] = None):
        self.timeout = timeout
        super().__init__(message)


class ContextSwitchError(AutomationError):
    """Raised when a window or frame switch is demanded and fails."""
    pass


class MenuLevelNotFoundError(AutomationError):
    """A menu level was exhausted without a matching entry."""

    def __init__(self, level: int, text: str):
        self.level = level
        self.text = text
        super().__init__(f"Menu level {level} has no entry '{text}'")


class AmbiguousUIStateError(AutomationError):
    """Raised in strict mode when a widget state cannot be read reliably."""
    pass


# ------------------------------------------------------------------------------
# Driver-level errors. Adapters translate their library's errors into these.
# ------------------------------------------------------------------------------

class DriverError(AutomationError):
    """Base class for errors reported by the external browser driver."""
    pass


class NoSuchElementError(DriverError):
    """The driver could not find the requested element."""
    pass


class NoSuchWindowError(DriverError):
    """The driver could not find the requested window handle."""
    pass


class NoSuchFrameError(DriverError):
    """The driver could not find the requested frame."""
    pass


class StaleElementError(DriverError):
    """The element handle no longer refers to a node in the document."""
    pass


__all__ = [
    "AutomationError",
    "ElementNotFoundError",
    "NoCandidateMatchedError",
    "WaitTimeoutError",
    "ContextSwitchError",
    "MenuLevelNotFoundError",
    "AmbiguousUIStateError",
    "DriverError",
    "NoSuchElementError",
    "NoSuchWindowError",
    "NoSuchFrameError",
    "StaleElementError",
]
