"""
================================================================================
Locators and Locator Templates
================================================================================

Symbolic locators and the structural templates built from them.

A locator is an opaque string tagged by its prefix:
    - ``//...``   path expression (XPath)
    - ``css=...`` alternate selector (CSS, prefix stripped before use)
    - anything else is an element identifier

Menu items, screen frames and grid cells have no stable identifiers, so they
are addressed by position. The builders below keep that index arithmetic in
one place:
    - MenuLocators: three-level portal menu (level 3 starts at index 2)
    - ScreenFrameLocators: content frames under the screen layout
    - GridLocators: header, body and cell locators of a data grid

Author: Automation Team
License: MIT
================================================================================
"""

from __future__ import annotations

from dataclasses import dataclass
from enum import Enum
from typing import Optional, Tuple


PATH_PREFIX = "//"
CSS_PREFIX = "css="


class SyntaxKind(str, Enum):
    """Locator syntax families understood by the drivers."""
    IDENTIFIER = "identifier"
    PATH_EXPRESSION = "path_expression"
    ALTERNATE_SELECTOR = "alternate_selector"


def classify(locator: str) -> SyntaxKind:
    """
    Classify a locator string by its prefix.

    Pure and total over non-empty strings.

    Args:
        locator: Raw locator string

    Returns:
        The syntax family of the locator

    Raises:
        ValueError: If the locator is empty or None
    """
    if not locator:
        raise ValueError("Locator must be a non-empty string")
    if locator.startswith(PATH_PREFIX):
        return SyntaxKind.PATH_EXPRESSION
    if locator.startswith(CSS_PREFIX):
        return SyntaxKind.ALTERNATE_SELECTOR
    return SyntaxKind.IDENTIFIER


@dataclass(frozen=True)
class Locator:
    """
    Immutable, classified locator.

    Attributes:
        raw: The locator string as written by the test author
    """
    raw: str

    def __post_init__(self) -> None:
        classify(self.raw)

    @property
    def kind(self) -> SyntaxKind:
        return classify(self.raw)

    @property
    def value(self) -> str:
        """Expression handed to the driver (``css=`` prefix removed)."""
        if self.kind is SyntaxKind.ALTERNATE_SELECTOR:
            return self.raw[len(CSS_PREFIX):]
        return self.raw

    def extend(self, suffix: str) -> "Locator":
        return Locator(self.raw + suffix)

    def __str__(self) -> str:
        return self.raw


def as_locator(locator) -> Locator:
    """Accept either a Locator or a raw string."""
    if isinstance(locator, Locator):
        return locator
    return Locator(locator)


# ------------------------------------------------------------------------------
# Candidate sets: suffixes tried in order under a cell or field base locator.
# More specific shapes first; the identity suffix "" is the last resort.
# ------------------------------------------------------------------------------

CandidateSet = Tuple[str, ...]

TEXT_BOX_CANDIDATES: CandidateSet = (
    "/span/span/input[2]",  # numeric text box
    "/span/span/input",     # date text box
    "/input",               # plain text box
    "/div/div/input",       # nested optional-field editor
    "",                     # read-only cell
)

FINDER_BUTTON_CANDIDATES: CandidateSet = (
    "/input[2]",
    "/input",
    "/div/div[2]/input",
)

COMBO_BOX_CANDIDATES: CandidateSet = (
    "/span/select",
)


# ------------------------------------------------------------------------------
# Menu
# ------------------------------------------------------------------------------

class MenuLocators:
    """
    Locator and script templates for the three-level portal menu.

    Indexes are 1-based, as in XPath. Script selectors use jQuery ``:eq()``
    which is 0-based, so the conversion happens here and only here.
    """

    ROOT = "//ul[@id='menu']"
    FIRST_INDEX = 1
    LEVEL3_FIRST_INDEX = 2
    SUB_HEADING_CLASS = "sub-heading"

    HIDE_MENUS_SCRIPT = '$("ul#menu > li .std-menu").css("display", "")'

    @classmethod
    def level1(cls, index: int) -> str:
        return f"{cls.ROOT}/li[{_check_index(index)}]"

    @classmethod
    def level1_label(cls, index: int) -> str:
        return cls.level1(index) + "/span"

    @staticmethod
    def level2(level1_locator: str, index: int) -> str:
        return f"{level1_locator}/ul/li[{_check_index(index)}]"

    @classmethod
    def level2_label(cls, level1_locator: str, index: int) -> str:
        return cls.level2(level1_locator, index) + "/span"

    @staticmethod
    def level3_row(level2_locator: str, index: int) -> str:
        return f"{level2_locator}/div/div/ul/li[{_check_index(index)}]"

    @classmethod
    def level3_link(cls, level2_locator: str, index: int) -> str:
        return cls.level3_row(level2_locator, index) + "/a"

    @classmethod
    def is_sub_heading(cls, row_class: Optional[str]) -> bool:
        return (row_class or "").strip() == cls.SUB_HEADING_CLASS

    @classmethod
    def next_level3_index(cls, index: int, next_row_class: Optional[str]) -> int:
        """
        Index of the level-3 row to compare after ``index``.

        ``next_row_class`` is the class attribute of row ``index + 1``; a
        sub-heading there is stepped over.
        """
        following = index + 1
        if cls.is_sub_heading(next_row_class):
            following += 1
        return following

    @staticmethod
    def show_level1_script(index: int) -> str:
        return f'$("ul#menu > li:eq({_check_index(index) - 1}) .std-menu").show()'

    @staticmethod
    def show_level2_script(level1_index: int, level2_index: int) -> str:
        return (
            f'$("ul#menu > li:eq({_check_index(level1_index) - 1}) > ul > '
            f'li:eq({_check_index(level2_index) - 1}) > span")'
            '.addClass("active").next().show();'
        )

    @staticmethod
    def label_text(inner_html: Optional[str], strip_nested_span: bool = False) -> str:
        """Display text of a menu label, optionally dropping a nested ``<span``."""
        text = (inner_html or "").strip()
        if strip_nested_span:
            text = text.split("<span")[0]
        return text.strip()


# ------------------------------------------------------------------------------
# Screen frames
# ------------------------------------------------------------------------------

class ScreenFrameLocators:
    """Content frames hosted under the portal's screen layout container."""

    LAYOUT = "//div[@id='screenLayout']"
    MENU_FRAME_PREFIX = "iFrameMenu"

    @classmethod
    def by_position(cls, index: int) -> str:
        return f"{cls.LAYOUT}/iframe[{_check_index(index)}]"

    @classmethod
    def by_source(cls, source: str) -> str:
        return f"{cls.LAYOUT}/iframe[@src='{source}']"

    @classmethod
    def by_id(cls, frame_id: str) -> str:
        return f"{cls.LAYOUT}/iframe[@id='{frame_id}']"

    @staticmethod
    def close_button(menu_id: str) -> str:
        """Close control on the tab of an opened screen."""
        return f"//div[@id='{menu_id}']/span[2]"

    @classmethod
    def next_frame_id(cls, frame_id: str) -> str:
        """
        Id of the frame opened after ``frame_id`` (``iFrameMenu7`` -> ``iFrameMenu8``).

        Raises:
            ValueError: If the id does not end with a number
        """
        prefix = frame_id.rstrip("0123456789")
        number = frame_id[len(prefix):]
        if not number:
            raise ValueError(f"Frame id has no numeric suffix: {frame_id!r}")
        return f"{prefix}{int(number) + 1}"

    @staticmethod
    def screen_path(complete_url: str) -> str:
        """
        Tenant/application/screen path of a screen URL.

        ``https://host/Tenant4/GL/BatchList`` -> ``/Tenant4/GL/BatchList``

        Raises:
            ValueError: If the URL has fewer than three path segments
        """
        parts = complete_url.split("/")
        if len(parts) < 6:
            raise ValueError(f"Screen URL needs tenant, application and screen: {complete_url!r}")
        return "/" + "/".join(parts[3:6])


# ------------------------------------------------------------------------------
# Grids
# ------------------------------------------------------------------------------

class GridLocators:
    """
    Locators for a data grid identified by its container id.

    Example:
        >>> grid = GridLocators("gridLines")
        >>> grid.cell(1, 2)
        "//div[@id='gridLines']/div[@class='k-grid-content']/table/tbody/tr[1]/td[2]"
    """

    def __init__(self, grid_id: str):
        if not grid_id:
            raise ValueError("Grid id must be a non-empty string")
        self.grid_id = grid_id

    @property
    def header_row(self) -> str:
        return f"//div[@id='{self.grid_id}']/div[@class='k-grid-header']/div/table/thead/tr"

    @property
    def body(self) -> str:
        return f"//div[@id='{self.grid_id}']/div[@class='k-grid-content']/table/tbody"

    def header_cell(self, column: int) -> str:
        return f"{self.header_row}/th[{_check_index(column)}]"

    def row(self, row: int) -> str:
        return f"{self.body}/tr[{_check_index(row)}]"

    def cell(self, row: int, column: int) -> str:
        return f"{self.row(row)}/td[{_check_index(column)}]"

    def cell_by_column_id(self, row: int, column_id: str) -> str:
        return f"{self.row(row)}/td[@date-field='{column_id}']"


class ListBoxLocators:
    """Options of a styled list box (a div of divs, selection in aria-selected)."""

    @staticmethod
    def option(list_id: str, index: int) -> str:
        return f"//div[@id='{list_id}']/div[{_check_index(index)}]"


def _check_index(index: int) -> int:
    if index < 1:
        raise ValueError(f"Structural indexes are 1-based, got {index}")
    return index


__all__ = [
    "SyntaxKind",
    "Locator",
    "classify",
    "as_locator",
    "CandidateSet",
    "TEXT_BOX_CANDIDATES",
    "FINDER_BUTTON_CANDIDATES",
    "COMBO_BOX_CANDIDATES",
    "MenuLocators",
    "ScreenFrameLocators",
    "GridLocators",
    "ListBoxLocators",
]
