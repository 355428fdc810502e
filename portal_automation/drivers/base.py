"""
================================================================================
Browser Driver Boundary
================================================================================

The automation core never touches a browser library directly. Everything it
needs from the browser goes through BrowserDriver:

    - element queries by syntax family (identifier / path / css)
    - element state and interaction (click, keys, attributes, selects)
    - script execution, WebDriver style: a function body that reads
      ``arguments`` and may ``return`` a value
    - window and frame switching

Adapters translate their library's errors into the driver errors from
portal_automation.framework.exceptions (NoSuchElementError,
NoSuchWindowError, NoSuchFrameError, DriverError).

Author: Automation Team
License: MIT
================================================================================
"""

from __future__ import annotations

from abc import ABC, abstractmethod
from typing import Any, List, Optional, Sequence, Union

from portal_automation.framework.keys import Chord
from portal_automation.framework.locators import SyntaxKind


# Opaque element handle owned by the adapter
Element = Any
FrameReference = Union[str, Element]


class BrowserDriver(ABC):
    """Abstract browser driver used by BrowserSession."""

    # -- element queries -------------------------------------------------------

    @abstractmethod
    def find_elements(self, kind: SyntaxKind, value: str) -> List[Element]:
        """
        Return all elements matching a locator in the current frame.

        An empty list means no match; it is not an error.
        """

    # -- element state ---------------------------------------------------------

    @abstractmethod
    def is_displayed(self, element: Element) -> bool: ...

    @abstractmethod
    def is_enabled(self, element: Element) -> bool: ...

    @abstractmethod
    def is_selected(self, element: Element) -> bool: ...

    @abstractmethod
    def get_attribute(self, element: Element, name: str) -> Optional[str]:
        """
        Property-or-attribute read with WebDriver semantics.

        DOM properties win over attributes (``innerHTML``, ``value``), boolean
        properties read as ``"true"`` or None, missing attributes as None.
        """

    @abstractmethod
    def get_text(self, element: Element) -> str:
        """Rendered (visible) text of the element."""

    # -- element interaction ---------------------------------------------------

    @abstractmethod
    def click(self, element: Element) -> None: ...

    @abstractmethod
    def clear(self, element: Element) -> None: ...

    @abstractmethod
    def send_keys(self, element: Element, text: str) -> None:
        """Type printable text into the element."""

    @abstractmethod
    def press(self, element: Element, chord: Chord) -> None:
        """Press the keys of a chord together (e.g. Control+a)."""

    @abstractmethod
    def hover(self, element: Element) -> None: ...

    # -- <select> support ------------------------------------------------------

    @abstractmethod
    def select_by_visible_text(self, element: Element, text: str) -> None: ...

    @abstractmethod
    def deselect_by_visible_text(self, element: Element, text: str) -> None: ...

    @abstractmethod
    def option_texts(self, element: Element) -> List[str]: ...

    @abstractmethod
    def selected_option_texts(self, element: Element) -> List[str]: ...

    # -- scripts ---------------------------------------------------------------

    @abstractmethod
    def execute_script(self, script: str, *args: Any) -> Any:
        """Run a function body in the current frame with ``arguments`` = args."""

    # -- windows and frames ----------------------------------------------------

    @abstractmethod
    def current_window_handle(self) -> str: ...

    @abstractmethod
    def window_handles(self) -> Sequence[str]: ...

    @abstractmethod
    def switch_to_window(self, handle: str) -> None:
        """Raises NoSuchWindowError for unknown or closed handles."""

    @abstractmethod
    def switch_to_frame(self, reference: FrameReference) -> None:
        """
        Enter a child frame of the current frame, by name/id or frame element.

        Raises NoSuchFrameError when there is no such child frame.
        """

    @abstractmethod
    def switch_to_default_content(self) -> None: ...

    # -- page ------------------------------------------------------------------

    @abstractmethod
    def title(self) -> str: ...

    @abstractmethod
    def current_url(self) -> str: ...

    @abstractmethod
    def navigate_to(self, url: str) -> None: ...

    @abstractmethod
    def screenshot(self) -> bytes: ...

    def maximize_window(self) -> None:
        """Best effort; headless adapters may ignore it."""

    @abstractmethod
    def close_window(self) -> None: ...

    @abstractmethod
    def quit(self) -> None: ...


__all__ = [
    "BrowserDriver",
    "Element",
    "FrameReference",
]
