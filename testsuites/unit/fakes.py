"""
In-memory browser driver and virtual clock for unit tests.

FakeDriver keeps one page per window handle. A page maps (frame path,
locator value) to the elements registered there, and lists the frames that
can be entered. Elements and frames can appear, hide or vanish at given
virtual times, so waits run without real sleeps.

Key handling is a small model of a text field: a cursor (None = end of
text), a select-all flag, and the keys the portal's editors accept.
"""

from __future__ import annotations

from dataclasses import dataclass, field
from typing import Any, Callable, Dict, List, Optional, Sequence, Tuple

from portal_automation.drivers.base import BrowserDriver
from portal_automation.framework.clock import Clock
from portal_automation.framework.config_loader import ConfigSource
from portal_automation.framework.exceptions import (
    DriverError,
    NoSuchElementError,
    NoSuchFrameError,
    NoSuchWindowError,
    StaleElementError,
)
from portal_automation.framework.keys import SELECT_ALL, SpecialKey, SpecialKeyCombo
from portal_automation.framework.locators import Locator, SyntaxKind

FramePath = Tuple[str, ...]


def frame_path(frame) -> FramePath:
    if not frame:
        return ()
    if isinstance(frame, str):
        return tuple(frame.split("."))
    return tuple(frame)


class DummyConfig(ConfigSource):
    """Dictionary standing in for ConfigLoader, keyed by dotted path."""

    def __init__(self, data=None):
        self.data = data or {}

    def get(self, key, default=None):
        return self.data.get(key, default)


class FakeClock(Clock):
    """Virtual clock: sleeping advances time instantly."""

    def __init__(self, start: float = 0.0):
        self.time = start
        self.sleeps: List[float] = []

    def now(self) -> float:
        return self.time

    def sleep(self, interval: float) -> None:
        if interval < 0:
            raise ValueError(f"negative sleep: {interval}")
        self.sleeps.append(interval)
        self.time += interval

    def advance(self, seconds: float) -> None:
        self.time += seconds


@dataclass(eq=False)
class FakeElement:
    tag: str = "div"
    attributes: Dict[str, Optional[str]] = field(default_factory=dict)
    text: str = ""
    value: str = ""
    displayed: bool = True
    enabled: bool = True
    selected: bool = False
    editable: bool = True
    options: List[str] = field(default_factory=list)
    selected_options: List[str] = field(default_factory=list)
    multiple: bool = False

    # Timing, in virtual seconds
    appear_at: Optional[float] = None
    vanish_at: Optional[float] = None
    hide_at: Optional[float] = None

    # Editor behaviour
    select_all_works: bool = True
    shift_select_works: bool = True
    clear_to: str = ""
    mask: Optional[Callable[[str], str]] = None

    # Interaction hooks and logs
    stale_clicks: int = 0
    on_click: Optional[Callable[[], None]] = None
    clicks: int = 0
    hovered: bool = False
    keys: List[Tuple[Any, ...]] = field(default_factory=list)
    cursor: Optional[int] = None
    all_selected: bool = False

    def present(self, now: float) -> bool:
        if self.appear_at is not None and now < self.appear_at:
            return False
        return self.vanish_at is None or now < self.vanish_at

    def visible(self, now: float) -> bool:
        return self.displayed and (self.hide_at is None or now < self.hide_at)


@dataclass
class FakePage:
    title: str = ""
    url: str = "about:blank"
    frames: Dict[FramePath, Optional[float]] = field(default_factory=dict)
    elements: Dict[Tuple[FramePath, str], List[FakeElement]] = field(default_factory=dict)


class FakeDriver(BrowserDriver):
    """
    BrowserDriver over FakePage objects.

    Usage:
        driver = FakeDriver(clock)
        field = driver.add("txtName", tag="input", value="old")
        driver.add_frame("iFrameMenu3")
        driver.add("lblTitle", frame="iFrameMenu3", text="Journal Entry")
    """

    PNG = b"\x89PNG\r\n\x1a\nfake"

    def __init__(self, clock: Optional[FakeClock] = None, handle: str = "main"):
        self.clock = clock
        self.pages: Dict[str, FakePage] = {handle: FakePage(title="Portal")}
        self.handle = handle
        self.frame: FramePath = ()
        self.scripts: List[Tuple[str, Tuple[Any, ...]]] = []
        self.script_handlers: Dict[str, Callable[..., Any]] = {}
        self.redirects: Dict[str, str] = {}
        self.navigations: List[str] = []
        self.maximized = False
        self.quit_called = False

    # ==================== Setup helpers ====================

    def _now(self) -> float:
        return self.clock.now() if self.clock is not None else 0.0

    def _page(self) -> FakePage:
        page = self.pages.get(self.handle)
        if page is None:
            raise NoSuchWindowError(f"Window {self.handle} is closed")
        return page

    def add(self, locator: str, tag: str = "div", frame=None, window: Optional[str] = None, **kwargs) -> FakeElement:
        return self.place(locator, FakeElement(tag=tag, **kwargs), frame=frame, window=window)

    def place(self, locator: str, element: FakeElement, frame=None, window: Optional[str] = None) -> FakeElement:
        page = self.pages[window or self.handle]
        key = (frame_path(frame), Locator(locator).value)
        page.elements.setdefault(key, []).append(element)
        return element

    def add_frame(self, path, window: Optional[str] = None, appear_at: Optional[float] = None) -> None:
        page = self.pages[window or self.handle]
        path = frame_path(path)
        for depth in range(1, len(path) + 1):
            page.frames.setdefault(path[:depth], appear_at)

    def open_window(self, handle: str, title: str = "", url: str = "about:blank") -> FakePage:
        self.pages[handle] = FakePage(title=title, url=url)
        return self.pages[handle]

    def on_script(self, fragment: str, handler: Callable[..., Any]) -> None:
        """Answer scripts containing ``fragment`` with ``handler(*args)``."""
        self.script_handlers[fragment] = handler

    def ran(self, fragment: str) -> int:
        return sum(1 for script, _ in self.scripts if fragment in script)

    # ==================== Element queries ====================

    def find_elements(self, kind: SyntaxKind, value: str) -> List[FakeElement]:
        now = self._now()
        candidates = self._page().elements.get((self.frame, value), [])
        return [element for element in candidates if element.present(now)]

    def is_displayed(self, element: FakeElement) -> bool:
        return element.visible(self._now())

    def is_enabled(self, element: FakeElement) -> bool:
        return element.enabled

    def is_selected(self, element: FakeElement) -> bool:
        return element.selected

    def get_attribute(self, element: FakeElement, name: str) -> Optional[str]:
        if name == "tagName":
            return element.tag.upper()
        if name == "value":
            return element.mask(element.value) if element.mask else element.value
        return element.attributes.get(name)

    def get_text(self, element: FakeElement) -> str:
        return element.text

    # ==================== Interaction ====================

    def click(self, element: FakeElement) -> None:
        if element.stale_clicks > 0:
            element.stale_clicks -= 1
            raise StaleElementError("stale element reference")
        element.clicks += 1
        input_type = element.attributes.get("type")
        if input_type == "checkbox":
            element.selected = not element.selected
        elif input_type == "radio":
            element.selected = True
        if element.on_click is not None:
            element.on_click()

    def clear(self, element: FakeElement) -> None:
        if not element.editable:
            raise DriverError("invalid element state")
        element.value = element.clear_to
        element.cursor = None
        element.all_selected = False

    def send_keys(self, element: FakeElement, text: str) -> None:
        if not element.editable:
            raise DriverError("element not interactable")
        if element.all_selected:
            element.value = text
            element.all_selected = False
        elif element.cursor is None:
            element.value += text
        else:
            position = element.cursor
            element.value = element.value[:position] + text + element.value[position:]
            element.cursor = position + len(text)

    def press(self, element: FakeElement, chord: Sequence[Any]) -> None:
        chord = tuple(chord)
        element.keys.append(chord)

        if chord == SELECT_ALL:
            element.all_selected = element.select_all_works
            return
        if chord == SpecialKeyCombo.SHIFT__END.keys:
            element.all_selected = element.shift_select_works and element.cursor == 0
            return
        if len(chord) != 1:
            return

        key = chord[0]
        if key is SpecialKey.HOME:
            element.cursor = 0
            element.all_selected = False
        elif key is SpecialKey.END:
            element.cursor = None
            element.all_selected = False
        elif key is SpecialKey.DELETE:
            if element.all_selected:
                element.value = ""
                element.all_selected = False
            elif element.cursor is not None:
                position = element.cursor
                element.value = element.value[:position] + element.value[position + 1:]
        elif key is SpecialKey.BACK_SPACE:
            if element.all_selected:
                element.value = ""
                element.all_selected = False
                return
            position = len(element.value) if element.cursor is None else element.cursor
            if position > 0:
                element.value = element.value[:position - 1] + element.value[position:]
                if element.cursor is not None:
                    element.cursor = position - 1
        elif key is SpecialKey.ENTER and element.on_click is not None:
            element.on_click()

    def hover(self, element: FakeElement) -> None:
        element.hovered = True

    # ==================== Selects ====================

    def select_by_visible_text(self, element: FakeElement, text: str) -> None:
        if text not in element.options:
            raise NoSuchElementError(f"Cannot locate option with text: {text}")
        if not element.multiple:
            element.selected_options = [text]
        elif text not in element.selected_options:
            element.selected_options.append(text)

    def deselect_by_visible_text(self, element: FakeElement, text: str) -> None:
        element.selected_options = [option for option in element.selected_options if option != text]

    def option_texts(self, element: FakeElement) -> List[str]:
        return list(element.options)

    def selected_option_texts(self, element: FakeElement) -> List[str]:
        return list(element.selected_options)

    # ==================== Scripts ====================

    def execute_script(self, script: str, *args: Any) -> Any:
        self._page()
        self.scripts.append((script, args))
        for fragment, handler in self.script_handlers.items():
            if fragment in script:
                return handler(*args)
        if "arguments[0].click()" in script:
            self.click(args[0])
        elif "arguments[0].value = arguments[1]" in script:
            args[0].value = args[1]
        return None

    # ==================== Windows and frames ====================

    def current_window_handle(self) -> str:
        self._page()
        return self.handle

    def window_handles(self) -> List[str]:
        return list(self.pages)

    def switch_to_window(self, handle: str) -> None:
        if handle not in self.pages:
            raise NoSuchWindowError(f"No such window: {handle}")
        self.handle = handle
        self.frame = ()

    def switch_to_frame(self, reference) -> None:
        name = reference.attributes.get("id") if isinstance(reference, FakeElement) else reference
        path = self.frame + (name,)
        frames = self._page().frames
        if path not in frames:
            raise NoSuchFrameError(f"No such frame: {name}")
        appear_at = frames[path]
        if appear_at is not None and self._now() < appear_at:
            raise NoSuchFrameError(f"Frame {name} is not loaded yet")
        self.frame = path

    def switch_to_default_content(self) -> None:
        self.frame = ()

    # ==================== Page ====================

    def title(self) -> str:
        return self._page().title

    def current_url(self) -> str:
        return self._page().url

    def navigate_to(self, url: str) -> None:
        self.navigations.append(url)
        self._page().url = self.redirects.get(url, url)
        self.frame = ()

    def screenshot(self) -> bytes:
        self._page()
        return self.PNG

    def maximize_window(self) -> None:
        self.maximized = True

    def close_window(self) -> None:
        self._page()
        del self.pages[self.handle]

    def quit(self) -> None:
        self.quit_called = True


__all__ = [
    "DummyConfig",
    "FakeClock",
    "FakeDriver",
    "FakeElement",
    "FakePage",
    "frame_path",
]
