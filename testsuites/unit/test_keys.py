import pytest

from portal_automation.drivers.playwright_driver import PlaywrightDriver
from portal_automation.framework.keys import SELECT_ALL, SpecialKey, SpecialKeyCombo, chord_to_playwright
from portal_automation.framework.locators import SyntaxKind


def test_combo_names_expand_to_keys():
    assert SpecialKeyCombo.SHIFT__END.keys == (SpecialKey.SHIFT, SpecialKey.END)
    assert SpecialKeyCombo.ALT__BACK_SPACE.keys == (SpecialKey.ALT, SpecialKey.BACK_SPACE)
    assert SpecialKeyCombo.CONTROL__SHIFT__F8__END.keys == (
        SpecialKey.CONTROL, SpecialKey.SHIFT, SpecialKey.F8, SpecialKey.END,
    )


@pytest.mark.parametrize(
    "chord, expected",
    [
        (SELECT_ALL, "Control+a"),
        ((SpecialKey.TAB,), "Tab"),
        (SpecialKeyCombo.SHIFT__TAB.keys, "Shift+Tab"),
        ((SpecialKey.BACK_SPACE,), "Backspace"),
    ],
)
def test_playwright_chord_syntax(chord, expected):
    assert chord_to_playwright(chord) == expected


@pytest.mark.parametrize(
    "kind, value, selector",
    [
        (SyntaxKind.PATH_EXPRESSION, "//div[@id='menu']", "xpath=//div[@id='menu']"),
        (SyntaxKind.ALTERNATE_SELECTOR, ".k-grid td", "css=.k-grid td"),
        (SyntaxKind.IDENTIFIER, "txtName", '[id="txtName"]'),
        (SyntaxKind.IDENTIFIER, 'odd"id', '[id="odd\\"id"]'),
    ],
)
def test_playwright_selectors(kind, value, selector):
    assert PlaywrightDriver._selector(kind, value) == selector
