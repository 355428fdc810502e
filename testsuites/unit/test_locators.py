import pytest

from portal_automation.framework.locators import (
    GridLocators,
    ListBoxLocators,
    Locator,
    MenuLocators,
    ScreenFrameLocators,
    SyntaxKind,
    classify,
)


@pytest.mark.locator
class TestClassify:
    def test_prefixes_select_the_syntax_family(self):
        assert classify("//a/b") is SyntaxKind.PATH_EXPRESSION
        assert classify("css=.x") is SyntaxKind.ALTERNATE_SELECTOR
        assert classify("field1") is SyntaxKind.IDENTIFIER

    def test_classification_is_pure(self):
        assert classify("//a/b") is classify("//a/b")

    def test_single_slash_is_an_identifier(self):
        assert classify("/a") is SyntaxKind.IDENTIFIER

    @pytest.mark.parametrize("locator", ["", None])
    def test_empty_locator_is_rejected(self, locator):
        with pytest.raises(ValueError):
            classify(locator)


@pytest.mark.locator
class TestLocator:
    def test_alternate_selector_prefix_is_stripped_for_the_driver(self):
        locator = Locator("css=div.grid > td")
        assert locator.kind is SyntaxKind.ALTERNATE_SELECTOR
        assert locator.value == "div.grid > td"
        assert str(locator) == "css=div.grid > td"

    def test_extend_appends_a_suffix(self):
        assert Locator("//td[3]").extend("/input").raw == "//td[3]/input"
        assert Locator("//td[3]").extend("").raw == "//td[3]"

    def test_empty_locator_cannot_be_built(self):
        with pytest.raises(ValueError):
            Locator("")


@pytest.mark.menu
class TestMenuLocators:
    def test_level_paths(self):
        level1 = MenuLocators.level1(2)
        assert level1 == "//ul[@id='menu']/li[2]"
        assert MenuLocators.level1_label(2) == level1 + "/span"

        level2 = MenuLocators.level2(level1, 3)
        assert level2 == "//ul[@id='menu']/li[2]/ul/li[3]"
        assert MenuLocators.level2_label(level1, 3) == level2 + "/span"

        assert MenuLocators.level3_link(level2, 2) == level2 + "/div/div/ul/li[2]/a"

    def test_level3_skips_a_sub_heading_row(self):
        assert MenuLocators.next_level3_index(2, None) == 3
        assert MenuLocators.next_level3_index(2, "item") == 3
        assert MenuLocators.next_level3_index(2, "sub-heading") == 4
        assert MenuLocators.next_level3_index(2, " sub-heading ") == 4

    def test_show_scripts_use_zero_based_positions(self):
        assert MenuLocators.show_level1_script(1) == '$("ul#menu > li:eq(0) .std-menu").show()'
        assert "li:eq(1) > ul > li:eq(3) > span" in MenuLocators.show_level2_script(2, 4)

    def test_label_text_drops_nested_markup_on_request(self):
        inner = " Transactions<span class='arrow'></span> "
        assert MenuLocators.label_text(inner, strip_nested_span=True) == "Transactions"
        assert MenuLocators.label_text(None) == ""

    def test_indexes_are_one_based(self):
        with pytest.raises(ValueError):
            MenuLocators.level1(0)


class TestScreenFrameLocators:
    def test_frame_locators(self):
        assert ScreenFrameLocators.by_position(1) == "//div[@id='screenLayout']/iframe[1]"
        assert ScreenFrameLocators.by_id("iFrameMenu4") == "//div[@id='screenLayout']/iframe[@id='iFrameMenu4']"
        assert ScreenFrameLocators.close_button("GL0012") == "//div[@id='GL0012']/span[2]"

    def test_next_frame_id_increments_the_numeric_suffix(self):
        assert ScreenFrameLocators.next_frame_id("iFrameMenu9") == "iFrameMenu10"

    def test_next_frame_id_needs_a_number(self):
        with pytest.raises(ValueError):
            ScreenFrameLocators.next_frame_id("iFrameMenu")

    def test_screen_path_keeps_tenant_application_and_screen(self):
        url = "https://portal.example.com/Tenant4/GL/JournalEntry"
        assert ScreenFrameLocators.screen_path(url) == "/Tenant4/GL/JournalEntry"
        assert ScreenFrameLocators.by_source("/Tenant4/GL/JournalEntry").endswith(
            "iframe[@src='/Tenant4/GL/JournalEntry']"
        )

    def test_screen_path_rejects_short_urls(self):
        with pytest.raises(ValueError):
            ScreenFrameLocators.screen_path("https://portal.example.com/Tenant4")


class TestGridAndListBoxLocators:
    def test_cell_addresses(self):
        grid = GridLocators("gridLines")
        assert grid.cell(1, 2) == "//div[@id='gridLines']/div[@class='k-grid-content']/table/tbody/tr[1]/td[2]"
        assert grid.header_cell(3).endswith("/thead/tr/th[3]")
        assert grid.cell_by_column_id(2, "Amount").endswith("/tr[2]/td[@date-field='Amount']")

    def test_grid_needs_an_id(self):
        with pytest.raises(ValueError):
            GridLocators("")

    def test_list_box_option(self):
        assert ListBoxLocators.option("lstAccounts", 2) == "//div[@id='lstAccounts']/div[2]"
