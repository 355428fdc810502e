"""
portal-automation test suites.

    unit/         FakeDriver and FakeClock sessions; no browser, virtual time
    integration/  PlaywrightDriver against local HTML pages; skipped when
                  Playwright or its browsers are not installed

Importable as a package so shared fakes resolve as ``testsuites.unit.fakes``
and run_tests.py can select suites by directory.
"""
