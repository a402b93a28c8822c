import pytest

from ricky_api.core.config import Config, parse_setting
from ricky_api.core.exceptions import ConfigurationError


class Settings:
    PORT = "8080"
    DB_TIMEOUT = "2.5"
    MAX_POOL_SIZE = "abc"
    ZERO = "0"
    NEGATIVE = "-3"


def test_numeric_settings_are_left_unparsed_on_the_class():
    # A bad environment value must not break importing the config module
    assert isinstance(Config.PORT, str)
    assert isinstance(Config.MAX_POOL_SIZE, str)
    assert isinstance(Config.DB_TIMEOUT, str)


def test_parse_setting_converts_values():
    assert parse_setting(Settings, "PORT", int) == 8080
    assert parse_setting(Settings, "DB_TIMEOUT", float) == 2.5


def test_parse_setting_defaults_are_valid():
    assert parse_setting(Config, "PORT", int) > 0
    assert parse_setting(Config, "MAX_POOL_SIZE", int) > 0
    assert parse_setting(Config, "DB_TIMEOUT", float) > 0


def test_unparseable_setting_raises_configuration_error():
    with pytest.raises(ConfigurationError, match="MAX_POOL_SIZE must be a number"):
        parse_setting(Settings, "MAX_POOL_SIZE", int)


def test_missing_setting_raises_configuration_error():
    with pytest.raises(ConfigurationError, match="HOSTNAME"):
        parse_setting(Settings, "HOSTNAME", int)


@pytest.mark.parametrize("name", ["ZERO", "NEGATIVE"])
def test_non_positive_setting_is_rejected(name):
    with pytest.raises(ConfigurationError, match="greater than zero"):
        parse_setting(Settings, name, int)


def test_non_positive_allowed_when_requested():
    assert parse_setting(Settings, "NEGATIVE", int, positive=False) == -3


def test_configuration_error_is_a_value_error():
    with pytest.raises(ValueError):
        parse_setting(Settings, "MAX_POOL_SIZE", int)
