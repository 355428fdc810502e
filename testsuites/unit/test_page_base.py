import pytest

from portal_automation.framework.locators import MenuLocators
from portal_automation.framework.page_base import PortalPage
from testsuites.unit.fakes import DummyConfig, FakeDriver


HOME = "http://portal.test/Tenant4/Home"


@pytest.fixture
def portal(session, actions, tmp_path):
    config = DummyConfig({
        "portal.login_submit": "btnSignIn",
        "portal.login_timeout": 5,
        "report.screenshot_dir": str(tmp_path / "shots"),
    })
    return PortalPage(session, actions=actions, config=config)


def login_form(driver: FakeDriver, menu_appears: bool = True):
    user = driver.add("sso_Email", tag="input")
    password = driver.add("sso_Password", tag="input")

    def submit():
        driver._page().url = HOME
        if menu_appears:
            driver.add(MenuLocators.level1_label(MenuLocators.FIRST_INDEX), tag="span", text="G/L")

    driver.add("btnSignIn", tag="button", on_click=submit)
    return user, password


class TestSignIn:
    def test_returns_home_address(self, portal, driver):
        user, password = login_form(driver)

        assert portal.sign_in("clerk@example.com", "secret") == HOME
        assert driver.navigations == ["http://portal.test"]
        assert user.value == "clerk@example.com"
        assert password.value == "secret"

    def test_menu_never_shown(self, portal, driver, clock):
        login_form(driver, menu_appears=False)

        assert portal.sign_in("clerk@example.com", "secret") is None
        assert clock.now() >= 5

    def test_login_form_missing(self, portal, driver, clock):
        assert portal.sign_in("clerk@example.com", "secret") is None
        assert clock.now() >= 5

    def test_session_date(self, portal, driver):
        login_form(driver)
        edit = driver.add("lnkEdit", tag="a")
        date = driver.add("datePicker", tag="input", value="01/01/2024")

        assert portal.sign_in_with_session_date("clerk@example.com", "secret", "03/31/2024") == HOME
        assert edit.clicks == 1
        assert date.value == "03/31/2024"


class TestNavigation:
    def test_full_url_ignores_case(self, portal, driver):
        url = "http://portal.test/tenant4/GL/JournalEntry"
        driver.redirects[url] = "http://portal.test/Tenant4/GL/JournalEntry"

        assert portal.open_ui_by_full_url(url)

    def test_full_url_redirected_to_login(self, portal, driver, clock):
        url = "http://portal.test/Tenant4/GL/JournalEntry"
        driver.redirects[url] = "http://portal.test/Account/Login"

        assert not portal.open_ui_by_full_url(url)
        assert clock.now() >= 3

    def test_relative_url_and_element(self, portal, driver):
        driver.add("lblTitle", text="Vendors", appear_at=1.0)

        assert portal.open_url_and_wait_for("/Tenant4/AP/Vendors", "lblTitle")
        assert driver.navigations == ["http://portal.test/Tenant4/AP/Vendors"]

    def test_relative_url_element_missing(self, portal, driver):
        assert not portal.open_url_and_wait_for("/Tenant4/AP/Vendors", "lblTitle")

    def test_select_tab(self, portal, driver):
        tab = driver.add("tabDetails", tag="a")

        assert portal.select_tab("tabDetails")
        assert tab.clicks == 1


class TestCapture:
    def test_screenshot_written(self, portal, tmp_path):
        path = portal.screenshot("journal_entry", attach_to_allure=False)

        assert path.parent == tmp_path / "shots"
        assert path.name.startswith("journal_entry_")
        assert path.read_bytes() == FakeDriver.PNG

    def test_capture_failure(self, portal, tmp_path):
        portal.capture_failure("test_post_batch")

        shots = list((tmp_path / "shots").glob("failure_test_post_batch_*.png"))
        assert len(shots) == 1

    def test_health_report_is_text(self, portal, actions, driver):
        driver.add("btnSave", tag="button")
        actions.click("btnSave")

        assert "btnSave" in portal.get_locator_health_report()
