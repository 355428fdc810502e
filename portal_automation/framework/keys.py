"""
Special keys and key chords.

Key values use the names understood by Playwright's ``press``; the Selenium
adapter maps them by enum member name onto ``selenium.webdriver.Keys``.
"""

from __future__ import annotations

from enum import Enum
from typing import Tuple, Union


class SpecialKey(Enum):
    """Non-printable keys that can be sent to an element."""
    BACK_SPACE = "Backspace"
    TAB = "Tab"
    ENTER = "Enter"
    SHIFT = "Shift"
    CONTROL = "Control"
    ALT = "Alt"
    ESCAPE = "Escape"
    SPACE = "Space"
    PAGE_UP = "PageUp"
    PAGE_DOWN = "PageDown"
    END = "End"
    HOME = "Home"
    LEFT = "ArrowLeft"
    UP = "ArrowUp"
    RIGHT = "ArrowRight"
    DOWN = "ArrowDown"
    INSERT = "Insert"
    DELETE = "Delete"
    F1 = "F1"
    F2 = "F2"
    F3 = "F3"
    F4 = "F4"
    F5 = "F5"
    F6 = "F6"
    F7 = "F7"
    F8 = "F8"
    F9 = "F9"
    F10 = "F10"
    F11 = "F11"
    F12 = "F12"


# A chord element is either a special key or a single printable character.
ChordKey = Union[SpecialKey, str]
Chord = Tuple[ChordKey, ...]


class SpecialKeyCombo(Enum):
    """
    Named key chords. Member names list the keys, separated by a double
    underscore because some key names contain a single one.
    """
    ALT__DELETE = "ALT__DELETE"
    ALT__BACK_SPACE = "ALT__BACK_SPACE"
    SHIFT__TAB = "SHIFT__TAB"
    SHIFT__F8__LEFT = "SHIFT__F8__LEFT"
    SHIFT__F8__HOME = "SHIFT__F8__HOME"
    SHIFT__F8__END = "SHIFT__F8__END"
    CONTROL__SHIFT__F8__END = "CONTROL__SHIFT__F8__END"
    SHIFT__END = "SHIFT__END"

    @property
    def keys(self) -> Chord:
        return tuple(SpecialKey[name] for name in self.name.split("__"))


SELECT_ALL: Chord = (SpecialKey.CONTROL, "a")


def chord_to_playwright(chord: Chord) -> str:
    """
    Render a chord in Playwright's ``Modifier+Key`` syntax.

    >>> chord_to_playwright((SpecialKey.CONTROL, "a"))
    'Control+a'
    """
    return "+".join(key.value if isinstance(key, SpecialKey) else key for key in chord)


__all__ = [
    "SpecialKey",
    "SpecialKeyCombo",
    "ChordKey",
    "Chord",
    "SELECT_ALL",
    "chord_to_playwright",
]
