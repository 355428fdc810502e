"""
================================================================================
Widgets
================================================================================

Closed set of widget flavors and the rules that depend on them.

    - WidgetKind: LABEL, TEXT_INPUT, COMBO_BOX, CHECK_BOX, BUTTON
    - classify_widget(): the single place that maps DOM facts to a kind
    - ClearStrategy: how prior content is removed before typing
    - read_display_text(): the text a user would read off an element
    - GridTable: cells of a data grid resolved through candidate sets

Author: Automation Team
License: MIT
================================================================================
"""

from __future__ import annotations

from dataclasses import dataclass
from enum import Enum
from typing import TYPE_CHECKING, Mapping, Optional

from loguru import logger

from portal_automation.framework.locators import (
    COMBO_BOX_CANDIDATES,
    FINDER_BUTTON_CANDIDATES,
    TEXT_BOX_CANDIDATES,
    CandidateSet,
    GridLocators,
)

if TYPE_CHECKING:
    from portal_automation.drivers.base import BrowserDriver, Element
    from portal_automation.framework.element_actions import ElementActions


class WidgetKind(str, Enum):
    """Capability variants a logical widget can have."""
    LABEL = "label"
    TEXT_INPUT = "text_input"
    COMBO_BOX = "combo_box"
    CHECK_BOX = "check_box"
    BUTTON = "button"


class ClearStrategy(str, Enum):
    """Ways to remove a field's prior content."""
    NATIVE = "native"                                # driver clear()
    SELECT_ALL_DELETE = "select_all_delete"          # Ctrl+A, Delete
    HOME_SHIFT_END_DELETE = "home_shift_end_delete"  # numeric cells: Home, Shift+End, Delete
    BACKSPACE_RUN = "backspace_run"                  # masked date cells: End+Backspace repeated
    SCRIPT = "script"                                # value assignment + change event


_BUTTON_INPUT_TYPES = {"button", "submit", "reset", "image"}
_TEXT_DATA_ROLES = {"numerictextbox", "datepicker", "maskedtextbox", "autocomplete"}
_EDIT_CELL_CLASS = "k-edit-cell"

# Attributes read by inspect_widget()
WIDGET_ATTRIBUTES = ("type", "class", "role", "data-role", "contenteditable")


def classify_widget(tag: str, attributes: Optional[Mapping[str, Optional[str]]] = None) -> WidgetKind:
    """
    Decide the widget flavor of an element from its tag and a few attributes.

    Args:
        tag: Element tag name (any case)
        attributes: Attribute values; missing attributes may be absent or None

    Returns:
        The widget kind

    Example:
        >>> classify_widget("input", {"type": "checkbox"})
        <WidgetKind.CHECK_BOX: 'check_box'>
    """
    tag = (tag or "").lower()
    attrs = {k: (v or "").strip() for k, v in (attributes or {}).items()}
    input_type = attrs.get("type", "").lower()
    role = attrs.get("role", "").lower()

    if tag == "select" or role in ("combobox", "listbox"):
        return WidgetKind.COMBO_BOX
    if tag == "input" and input_type in ("checkbox", "radio"):
        return WidgetKind.CHECK_BOX
    if role in ("checkbox", "radio"):
        return WidgetKind.CHECK_BOX
    if tag == "button" or role == "button" or (tag == "input" and input_type in _BUTTON_INPUT_TYPES):
        return WidgetKind.BUTTON
    if tag in ("input", "textarea"):
        return WidgetKind.TEXT_INPUT
    if attrs.get("data-role", "").lower() in _TEXT_DATA_ROLES:
        return WidgetKind.TEXT_INPUT
    if attrs.get("contenteditable", "").lower() == "true":
        return WidgetKind.TEXT_INPUT
    if tag == "td" and _EDIT_CELL_CLASS in attrs.get("class", "").split():
        return WidgetKind.TEXT_INPUT
    return WidgetKind.LABEL


def inspect_widget(driver: "BrowserDriver", element: "Element") -> WidgetKind:
    """Classify a live element."""
    tag = driver.get_attribute(element, "tagName") or ""
    attributes = {name: driver.get_attribute(element, name) for name in WIDGET_ATTRIBUTES}
    return classify_widget(tag, attributes)


def clear_strategy_for(kind: WidgetKind) -> ClearStrategy:
    """Default clearing technique for a stand-alone widget of the given kind."""
    if kind is WidgetKind.TEXT_INPUT:
        return ClearStrategy.SELECT_ALL_DELETE
    return ClearStrategy.NATIVE


def clear_strategy_for_cell(locator: str, data_role: Optional[str]) -> ClearStrategy:
    """
    Clearing technique for an editor inside a grid cell.

    Numeric editors ignore select-all but accept Home then Shift+End. Masked
    date editors reject selection keys entirely, so they are emptied one
    character at a time.
    """
    if "input[2]" in locator and (data_role or "") == "numerictextbox":
        return ClearStrategy.HOME_SHIFT_END_DELETE
    if locator.endswith("/span/span/input"):
        return ClearStrategy.BACKSPACE_RUN
    return ClearStrategy.SELECT_ALL_DELETE


def read_display_text(driver: "BrowserDriver", element: "Element", locator: str = "") -> str:
    """
    Text a user would read off the element.

    Rules, in order:
        - empty markup: the element is an input, use its value
        - markup starting with <option: a select, use the selected option
        - markup containing >select<: a styled select, drop the "select" caption
        - header cells (locator under /thead/): the raw markup text
        - anything else: the rendered text
    """
    inner = driver.get_attribute(element, "innerHTML") or ""
    if inner == "":
        return (driver.get_attribute(element, "value") or "").strip()
    if inner.lower().startswith("<option "):
        selected = driver.selected_option_texts(element)
        return selected[0].strip() if selected else ""
    if ">select<" in inner:
        return driver.get_text(element).replace("\nselect", "").strip()
    if "/thead/" in locator:
        return inner.strip()
    return driver.get_text(element).strip()


@dataclass(frozen=True)
class WidgetField:
    """
    A resolved logical field.

    Attributes:
        kind: Widget flavor
        locator: Concrete locator of the interactive element
        candidate_index: Which candidate suffix matched, if resolved from a set
    """
    kind: WidgetKind
    locator: str
    candidate_index: Optional[int] = None


class GridTable:
    """
    Data grid addressed by container id, row and column (both 1-based).

    Cells render differently depending on their editor (plain value, bare
    input, nested numeric/date input), so editors are found by trying the
    candidate sets from locators.py.

    Example:
        >>> grid = GridTable(actions, "gridJournalDetails")
        >>> grid.type_into_cell(1, grid.column_index("Account"), "1000")
        True
    """

    def __init__(self, actions: "ElementActions", grid_id: str):
        self.actions = actions
        self.locators = GridLocators(grid_id)

    @property
    def _resolver(self):
        return self.actions.session.locator

    # ==================== Structure ====================

    def column_count(self) -> int:
        count = 0
        while self._resolver.exists_no_wait(self.locators.cell(1, count + 1)):
            count += 1
        return count

    def row_count(self) -> int:
        count = 0
        while self._resolver.exists_no_wait(self.locators.row(count + 1)):
            count += 1
        return count

    def column_name(self, column: int) -> Optional[str]:
        locator = self.locators.header_cell(column)
        if not self._resolver.exists_no_wait(locator):
            return None
        return self.actions.get_text(locator)

    def column_index(self, name: str) -> Optional[int]:
        """1-based index of the column whose heading matches ``name``, or None."""
        wanted = name.strip().lower()
        column = 1
        while self._resolver.exists_no_wait(self.locators.header_cell(column)):
            heading = self.actions.get_text(self.locators.header_cell(column))
            if heading.strip().lower() == wanted:
                return column
            column += 1
        logger.debug(f"Grid {self.locators.grid_id} has no column '{name}'")
        return None

    def row_index_by_value(self, column: int, value: str) -> Optional[int]:
        row = 1
        while self._resolver.exists_no_wait(self.locators.cell(row, column)):
            if self.actions.get_text(self.locators.cell(row, column)) == value:
                return row
            row += 1
        return None

    # ==================== Fields ====================

    def _first_of(self, kind: WidgetKind, candidates: CandidateSet, base: str) -> Optional[WidgetField]:
        resolution = self._resolver.resolve_first_of(candidates, base)
        if not resolution:
            logger.debug(f"No {kind.value} editor under {base}")
            return None
        return WidgetField(kind, resolution.locator, resolution.index)

    def field(self, row: int, column: int) -> Optional[WidgetField]:
        """Editable cells resolve to their text editor, others to a label."""
        base = self.locators.cell(row, column)
        element = self._resolver.lookup(base)
        if element is None:
            return None
        cell_class = self.actions.session.driver.get_attribute(element, "class") or ""
        if _EDIT_CELL_CLASS in cell_class:
            return self.text_box_field(row, column)
        return WidgetField(WidgetKind.LABEL, base)

    def text_box_field(self, row: int, column: int) -> Optional[WidgetField]:
        return self._first_of(WidgetKind.TEXT_INPUT, TEXT_BOX_CANDIDATES, self.locators.cell(row, column))

    def text_box_field_by_column_id(self, row: int, column_id: str) -> Optional[WidgetField]:
        return self._first_of(
            WidgetKind.TEXT_INPUT,
            TEXT_BOX_CANDIDATES,
            self.locators.cell_by_column_id(row, column_id),
        )

    def combo_box_field(self, row: int, column: int) -> Optional[WidgetField]:
        return self._first_of(WidgetKind.COMBO_BOX, COMBO_BOX_CANDIDATES, self.locators.cell(row, column))

    def finder_button_field(self, row: int, column: int) -> Optional[WidgetField]:
        return self._first_of(WidgetKind.BUTTON, FINDER_BUTTON_CANDIDATES, self.locators.cell(row, column))

    # ==================== Actions ====================

    def cell_text(self, row: int, column: int) -> str:
        return self.actions.get_text(self.locators.cell(row, column))

    def header_text(self, column: int) -> str:
        return self.actions.get_text(self.locators.header_cell(column))

    def click_cell(self, row: int, column: int) -> bool:
        return self.actions.click(self.locators.cell(row, column))

    def click_finder_in_cell(self, row: int, column: int) -> bool:
        field = self.finder_button_field(row, column)
        return field is not None and self.actions.click(field.locator)

    def type_into_cell(self, row: int, column: int, value: str, tab: bool = True) -> bool:
        field = self.text_box_field(row, column)
        if field is None:
            return False
        return self.actions.type_into_cell(field.locator, value, tab=tab)

    def select_from_cell(self, row: int, column: int, value: str) -> bool:
        field = self.combo_box_field(row, column)
        if field is None:
            return False
        return self.actions.select_combo_box(field.locator, value)

    def wait_for_cell_content(self, row: int, column: int, content: str) -> bool:
        return self.actions.session.sync.wait_for_content_equals(
            self.locators.cell(row, column), content
        )


__all__ = [
    "WidgetKind",
    "ClearStrategy",
    "WidgetField",
    "GridTable",
    "classify_widget",
    "inspect_widget",
    "clear_strategy_for",
    "clear_strategy_for_cell",
    "read_display_text",
]
