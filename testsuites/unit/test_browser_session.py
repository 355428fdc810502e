import pytest

from portal_automation.framework.browser_session import (
    ALLOW_UNLOAD_SCRIPT,
    BrowserSession,
    SessionContext,
)
from portal_automation.framework.locators import ScreenFrameLocators
from testsuites.unit.fakes import DummyConfig, FakeDriver

pytestmark = pytest.mark.context


def test_session_requires_driver_and_settings(driver, settings):
    with pytest.raises(ValueError):
        BrowserSession(None, settings)
    with pytest.raises(ValueError):
        BrowserSession(driver, None)


def test_new_session_starts_at_default_content(driver, settings, clock):
    driver.add_frame("iFrameMenu1")
    driver.switch_to_frame("iFrameMenu1")

    session = BrowserSession(driver, settings, clock=clock)

    assert session.context == SessionContext("main")
    assert session.context.in_default_content
    assert driver.frame == ()


def test_from_config_reads_framework_settings(driver, clock):
    config = DummyConfig({"framework.small_timeout": 7.5, "browser.server": "portal.example.com", "browser.port": "443"})

    session = BrowserSession.from_config(driver, config, clock=clock)

    assert session.settings.small_timeout == 7.5
    assert session.settings.base_url == "https://portal.example.com"


class TestFrames:
    def test_nested_frames_are_entered_from_default_content(self, session, driver):
        driver.add_frame("outer.inner")

        assert session.switch_to_frame("outer.inner")
        assert session.context.frame_path == ("outer", "inner")
        assert driver.frame == ("outer", "inner")
        assert str(session.context) == "main:outer.inner"

    def test_sibling_frame_is_reachable_from_another_frame(self, session, driver):
        driver.add_frame("iFrameMenu1")
        driver.add_frame("iFrameMenu2")

        assert session.switch_to_frame("iFrameMenu1")
        assert session.switch_to_frame("iFrameMenu2")
        assert session.context.frame_path == ("iFrameMenu2",)

    def test_frame_that_loads_late_is_retried(self, session, driver, clock):
        driver.add_frame("iFrameMenu3", appear_at=1.0)

        assert session.switch_to_frame("iFrameMenu3")
        assert 1.0 <= clock.now() <= session.settings.small_timeout

    def test_missing_frame_restores_default_content(self, session, driver, clock):
        driver.add_frame("iFrameMenu1")
        session.switch_to_frame("iFrameMenu1")

        assert not session.switch_to_frame("iFrameMenu9", timeout=1.0)
        assert clock.now() == pytest.approx(1.0)
        assert session.context == SessionContext("main")
        assert driver.frame == ()

    def test_frame_retries_back_off(self, session, clock, settings):
        assert not session.switch_to_frame("iFrameMenu9")

        assert clock.sleeps[0] == settings.default_interval
        assert clock.sleeps[1] > clock.sleeps[0]
        assert clock.now() == pytest.approx(settings.small_timeout)

    def test_empty_frame_name_is_an_argument_error(self, session):
        with pytest.raises(ValueError):
            session.switch_to_frame("")

    def test_default_content_resets_the_frame_path(self, session, driver):
        driver.add_frame("iFrameMenu1")
        session.switch_to_frame("iFrameMenu1")

        session.switch_to_default_content()
        assert session.context.in_default_content
        assert driver.frame == ()


class TestReportFrame:
    def _report_frame(self, driver, source):
        driver.add(ScreenFrameLocators.by_id("iFrameMenu5"), tag="iframe", attributes={"src": source})
        driver.add_frame("iFrameMenu5")

    def test_enters_the_frame_following_the_screen_frame(self, session, driver):
        self._report_frame(driver, "/Tenant4/Reports/ReportViewer.aspx?id=12")
        session.remember_screen_frame("iFrameMenu4")

        assert session.switch_to_frame_in_new_or_refreshed_frame()
        assert session.context.frame_path == ("iFrameMenu5",)

    def test_rejects_a_frame_without_the_marker(self, session, driver):
        self._report_frame(driver, "/Tenant4/GL/BatchList")

        assert not session.switch_to_frame_in_new_or_refreshed_frame("iFrameMenu4")
        assert session.context.in_default_content

    def test_custom_marker(self, session, driver):
        self._report_frame(driver, "/Tenant4/GL/BatchList")
        assert session.switch_to_frame_in_new_or_refreshed_frame("iFrameMenu4", marker="BatchList")

    def test_needs_a_predecessor(self, session):
        assert not session.switch_to_frame_in_new_or_refreshed_frame()

    def test_frame_that_never_appears(self, session, clock):
        assert not session.switch_to_frame_in_new_or_refreshed_frame("iFrameMenu4", timeout=2.0)
        assert clock.now() == 2.0


class TestWindows:
    def test_switch_to_missing_window_keeps_the_current_one(self, session, driver):
        driver.add_frame("iFrameMenu1")
        session.switch_to_frame("iFrameMenu1")

        assert not session.switch_to_window("popup")
        assert session.context == SessionContext("main")

    def test_empty_handle_is_an_argument_error(self, session):
        with pytest.raises(ValueError):
            session.switch_to_window("")

    def test_newly_opened_window(self, session, driver):
        driver.open_window("popup", title="Finder")

        assert session.switch_to_newly_opened_window()
        assert session.context == SessionContext("popup")
        assert session.current_window_title() == "Finder"

    def test_no_new_window(self, session, clock):
        assert not session.switch_to_newly_opened_window(timeout=2.0)
        assert clock.now() == pytest.approx(2.0)
        assert session.context.window_handle == "main"

    def test_window_retries_back_off_up_to_a_cap(self, session, clock, settings):
        assert not session.switch_to_newly_opened_window()

        assert clock.sleeps[0] == settings.default_interval
        assert clock.sleeps[1] > clock.sleeps[0]
        assert max(clock.sleeps) <= 2.0 * 1.25
        assert clock.now() == pytest.approx(settings.default_timeout)

    def test_default_window_is_the_latest(self, session, driver):
        driver.open_window("popup")
        driver.open_window("report")

        assert session.switch_to_default_window()
        assert session.context.window_handle == "report"

    def test_window_title_lookup_restores_the_current_window(self, session, driver):
        driver.open_window("popup", title="Account Finder")

        assert session.window_title_exists("Account Finder")
        assert not session.window_title_exists("Vendor Finder")
        assert driver.handle == "main"
        assert session.context == SessionContext("main")

    def test_main_window_round_trip(self, session, driver):
        session.remember_main_window()
        driver.open_window("popup")
        session.switch_to_window("popup")

        assert session.return_to_main_window()
        assert session.context.window_handle == "main"

    def test_closing_a_popup_falls_back_to_a_live_window(self, session, driver):
        driver.open_window("popup")
        session.switch_to_window("popup")

        session.close_current_window()

        assert session.context == SessionContext("main")
        assert driver.handle == "main"


class TestPage:
    def test_navigation_resets_the_context(self, session, driver):
        driver.add_frame("iFrameMenu1")
        session.switch_to_frame("iFrameMenu1")

        session.navigate_to("http://portal.test/home")

        assert session.current_url() == "http://portal.test/home"
        assert session.context.in_default_content

    def test_forced_close_disarms_unload_prompts(self, session, driver):
        session.close(force=True)

        assert driver.ran(ALLOW_UNLOAD_SCRIPT) == 1
        assert driver.quit_called
        assert session.context.window_handle is None

    def test_plain_close(self, session, driver):
        session.close()
        assert driver.scripts == []
        assert driver.quit_called

    def test_maximize_and_screenshot(self, session, driver):
        session.maximize_window()
        assert driver.maximized
        assert session.screenshot() == FakeDriver.PNG


def test_sessions_do_not_share_context(settings, clock):
    first_driver, second_driver = FakeDriver(clock), FakeDriver(clock)
    first_driver.add_frame("iFrameMenu1")
    first = BrowserSession(first_driver, settings, clock=clock)
    second = BrowserSession(second_driver, settings, clock=clock)

    first.switch_to_frame("iFrameMenu1")

    assert first.context.frame_path == ("iFrameMenu1",)
    assert second.context.in_default_content
