import pytest
import yaml

from portal_automation.framework.config_loader import (
    DEFAULT_CONFIG_PATH,
    ConfigLoader,
    ConfigurationError,
    coerce,
    env_name,
)


def _write(tmp_path, tree, name="config.yaml"):
    config_path = tmp_path / name
    config_path.write_text(yaml.dump(tree), encoding="utf-8")
    return config_path


def test_env_override_and_defaults(monkeypatch, tmp_path):
    config_path = _write(tmp_path, {"framework": {"small_timeout": 30, "overlay_locator": "ajaxSpinner"}})

    monkeypatch.delenv("FRAMEWORK_SMALL_TIMEOUT", raising=False)
    loader = ConfigLoader(config_path=config_path)
    assert loader.get("framework.overlay_locator") == "ajaxSpinner"
    assert loader.get("framework.menu_settle_pause", 0.5) == 0.5

    monkeypatch.setenv("FRAMEWORK_SMALL_TIMEOUT", "45")
    assert loader.get("framework.small_timeout", 30) == 45


def test_env_values_follow_the_default_type(monkeypatch, tmp_path):
    monkeypatch.setenv("FRAMEWORK_STRICT", "yes")
    monkeypatch.setenv("FRAMEWORK_DEFAULT_INTERVAL", "0.25")
    monkeypatch.setenv("FRAMEWORK_OVERLAY_LOCATOR", "loadingMask")

    loader = ConfigLoader(config_path=_write(tmp_path, {}))

    assert loader.get("framework.strict", False) is True
    assert loader.get("framework.default_interval", 0.05) == 0.25
    assert loader.get("framework.overlay_locator", "ajaxSpinner") == "loadingMask"


def test_unparsable_env_value_names_the_variable(monkeypatch, tmp_path):
    monkeypatch.setenv("FRAMEWORK_ELEMENT_WAIT_POLLS", "many")
    loader = ConfigLoader(config_path=_write(tmp_path, {}))

    with pytest.raises(ConfigurationError, match="FRAMEWORK_ELEMENT_WAIT_POLLS"):
        loader.get("framework.element_wait_polls", 30)


class TestCoerce:
    def test_env_name_follows_the_dotted_path(self):
        assert env_name("browser.port") == "BROWSER_PORT"
        assert env_name("framework.small_timeout") == "FRAMEWORK_SMALL_TIMEOUT"

    @pytest.mark.parametrize("raw, expected", [("on", True), ("0", False), (" True ", True), ("", False)])
    def test_booleans(self, raw, expected):
        assert coerce(raw, False) is expected

    def test_bad_boolean(self):
        with pytest.raises(ConfigurationError, match="not a boolean"):
            coerce("maybe", True, source="FRAMEWORK_STRICT")

    def test_numbers(self):
        assert coerce("12", 30) == 12
        assert coerce("1.5", 0.5) == 1.5
        with pytest.raises(ConfigurationError, match="float"):
            coerce("soon", 0.5)

    def test_untyped_defaults_keep_the_text(self):
        assert coerce("443", None) == "443"


class TestSections:
    def test_section_is_typed_by_its_defaults(self, monkeypatch, tmp_path):
        config_path = _write(tmp_path, {"portal": {"login_timeout": 60, "login_submit": "btnSignIn"}})
        monkeypatch.setenv("PORTAL_LOGIN_TIMEOUT", "90")

        section = ConfigLoader(config_path=config_path).get_section(
            "portal", {"login_timeout": 30.0, "login_submit": "", "login_user_field": "sso_Email"}
        )

        assert section == {"login_timeout": 90.0, "login_submit": "btnSignIn", "login_user_field": "sso_Email"}

    def test_missing_section_gives_the_defaults(self, tmp_path):
        loader = ConfigLoader(config_path=_write(tmp_path, {}))
        assert loader.get_section("report", {"screenshot_dir": "shots"}) == {"screenshot_dir": "shots"}


class TestEndpoint:
    def test_yaml_port_is_returned_as_text(self, monkeypatch, tmp_path):
        monkeypatch.delenv("BROWSER_SERVER", raising=False)
        monkeypatch.delenv("BROWSER_PORT", raising=False)
        config_path = _write(tmp_path, {"browser": {"server": "portal.example.com", "port": 443}})

        assert ConfigLoader(config_path=config_path).endpoint() == ("portal.example.com", "443")

    def test_environment_wins_over_the_file(self, monkeypatch, tmp_path):
        monkeypatch.setenv("BROWSER_SERVER", "ci-portal")
        monkeypatch.setenv("BROWSER_PORT", "9000")
        config_path = _write(tmp_path, {"browser": {"server": "portal.example.com", "port": 443}})

        assert ConfigLoader(config_path=config_path).endpoint() == ("ci-portal", "9000")

    def test_blank_values_are_unset(self, monkeypatch, tmp_path):
        monkeypatch.setenv("BROWSER_SERVER", "  ")
        monkeypatch.delenv("BROWSER_PORT", raising=False)

        assert ConfigLoader(config_path=_write(tmp_path, {})).endpoint() == (None, None)


def test_loader_is_shared_until_reset(tmp_path):
    first_path = _write(tmp_path, {"portal": {"login_timeout": 60}})
    second_path = _write(tmp_path, {"portal": {"login_timeout": 15}}, name="other.yaml")

    first = ConfigLoader(config_path=first_path)
    assert ConfigLoader(config_path=second_path) is first
    assert ConfigLoader().get("portal.login_timeout") == 60

    ConfigLoader.reset()
    fresh = ConfigLoader(config_path=second_path)
    assert fresh is not first
    assert fresh.get("portal.login_timeout") == 15


def test_config_path_from_environment(monkeypatch, tmp_path):
    config_path = _write(tmp_path, {"browser": {"browser_type": "firefox"}}, name="ci.yaml")
    monkeypatch.setenv("PORTAL_AUTOMATION_CONFIG", str(config_path))
    monkeypatch.delenv("BROWSER_BROWSER_TYPE", raising=False)

    loader = ConfigLoader()

    assert loader.config_path == config_path
    assert loader.get("browser.browser_type") == "firefox"


def test_missing_file_falls_back_to_defaults(tmp_path):
    loader = ConfigLoader(config_path=tmp_path / "absent.yaml")
    assert loader.get("framework.small_timeout", 30) == 30


def test_empty_file_is_an_empty_configuration(tmp_path):
    config_path = tmp_path / "config.yaml"
    config_path.write_text("", encoding="utf-8")

    assert ConfigLoader(config_path=config_path).get("framework.strict", False) is False


def test_invalid_yaml_is_a_configuration_error(tmp_path):
    config_path = tmp_path / "config.yaml"
    config_path.write_text("framework: [unclosed", encoding="utf-8")

    with pytest.raises(ConfigurationError):
        ConfigLoader(config_path=config_path)


def test_non_mapping_root_is_rejected(tmp_path):
    config_path = tmp_path / "config.yaml"
    config_path.write_text("- just\n- a list\n", encoding="utf-8")

    with pytest.raises(ConfigurationError):
        ConfigLoader(config_path=config_path)


def test_shipped_defaults_load(monkeypatch):
    monkeypatch.delenv("PORTAL_LOGIN_USER_FIELD", raising=False)
    monkeypatch.delenv("FRAMEWORK_OVERLAY_LOCATOR", raising=False)
    loader = ConfigLoader(config_path=DEFAULT_CONFIG_PATH)

    assert loader.get("framework.overlay_locator") == "ajaxSpinner"
    assert loader.get("portal.login_user_field") == "sso_Email"
