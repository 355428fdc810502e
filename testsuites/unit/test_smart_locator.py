import pytest

from portal_automation.framework.exceptions import (
    ElementNotFoundError,
    NoCandidateMatchedError,
    NoSuchWindowError,
)
from portal_automation.framework.locators import TEXT_BOX_CANDIDATES

pytestmark = pytest.mark.locator

CANDIDATES = ["/span/span/input[2]", "/span/span/input", "/input"]


def test_first_of_reports_the_matching_candidate(session, driver):
    field = driver.add("//td[3]/input", tag="input")

    resolution = session.locator.resolve_first_of(CANDIDATES, "//td[3]")

    assert resolution.found
    assert resolution.element is field
    assert resolution.locator == "//td[3]/input"
    assert resolution.index == 2


def test_first_match_wins_over_later_candidates(session, driver):
    nested = driver.add("//td[3]/span/span/input", tag="input")
    driver.add("//td[3]/input", tag="input")

    resolution = session.locator.resolve_first_of(CANDIDATES, "//td[3]")

    assert resolution.index == 1
    assert resolution.element is nested


def test_first_of_does_not_wait_for_candidates(session, driver, clock):
    driver.add("//td[3]/input", tag="input", appear_at=0.5)

    resolution = session.locator.resolve_first_of(CANDIDATES, "//td[3]")

    assert not resolution
    assert clock.now() == 0.0


def test_no_candidate_matched(session):
    resolution = session.locator.resolve_first_of(TEXT_BOX_CANDIDATES, "//td[9]/div")

    assert not resolution.found
    assert isinstance(resolution.error, NoCandidateMatchedError)
    assert resolution.error.candidates == TEXT_BOX_CANDIDATES
    with pytest.raises(NoCandidateMatchedError):
        resolution.unwrap()


def test_identity_candidate_matches_the_base_itself(session, driver):
    cell = driver.add("//td[5]", tag="td", text="Read only")

    resolution = session.locator.resolve_first_of(TEXT_BOX_CANDIDATES, "//td[5]")

    assert resolution.element is cell
    assert resolution.index == len(TEXT_BOX_CANDIDATES) - 1


def test_resolve_one_waits_for_late_elements(session, driver, clock):
    late = driver.add("txtAmount", tag="input", appear_at=1.2)

    resolution = session.locator.resolve_one("txtAmount")

    assert resolution.element is late
    assert 1.2 <= clock.now() <= 1.5


def test_resolve_one_gives_up_after_the_implicit_wait(session, clock):
    resolution = session.locator.resolve_one("txtMissing")

    assert not resolution
    assert isinstance(resolution.error, ElementNotFoundError)
    assert clock.now() == pytest.approx(session.settings.implicit_wait)


def test_resolve_one_without_wait_queries_once(session, clock):
    assert not session.locator.resolve_one("txtMissing", implicit_wait=False)
    assert clock.now() == 0.0


def test_resolve_one_waits_out_the_blocking_overlay(session, driver, clock):
    driver.add("ajaxSpinner", hide_at=3.0)
    driver.add("btnSave", tag="button")

    assert session.locator.resolve_one("btnSave").found
    assert clock.now() >= 3.0


def test_alternate_selectors_reach_the_driver_without_prefix(session, driver):
    row = driver.add("css=tr.k-alt", tag="tr")
    assert session.locator.find("css=tr.k-alt") is row


def test_find_raises_on_a_miss(session):
    with pytest.raises(ElementNotFoundError) as info:
        session.locator.find("txtMissing")
    assert info.value.locator == "txtMissing"


def test_exists_checks(session, driver, clock):
    driver.add("lblLate", appear_at=1.0)

    assert not session.locator.exists_no_wait("lblLate")
    assert session.locator.exists("lblLate")
    assert clock.now() >= 1.0


def test_lookup_treats_driver_errors_as_no_match(session, driver, monkeypatch):
    def window_gone(kind, value):
        raise NoSuchWindowError("window closed")

    monkeypatch.setattr(driver, "find_elements", window_gone)
    assert session.locator.lookup("anything") is None


def test_health_report_lists_fallbacks_first(session, driver):
    driver.add("//td[1]/span/span/input[2]", tag="input")
    driver.add("//td[2]/input", tag="input")

    session.locator.resolve_first_of(CANDIDATES, "//td[1]")
    session.locator.resolve_first_of(CANDIDATES, "//td[2]")
    session.locator.resolve_first_of(CANDIDATES, "//td[2]")
    session.locator.resolve_first_of(CANDIDATES, "//td[7]")

    health = session.locator.health
    assert health["//td[1]"].hits == {0: 1}
    assert not health["//td[1]"].used_fallback
    assert health["//td[2]"].hits == {2: 2}
    assert health["//td[2]"].used_fallback
    assert health["//td[7]"].misses == 1

    lines = session.locator.get_health_report().splitlines()
    assert lines[0] == "Locator Health Report"
    assert lines[2] == "[FALLBACK] //td[2] hits(#2: 2) misses=0"
    assert "[ok] //td[7] hits(none) misses=1" in lines
