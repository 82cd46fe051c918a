# solar_forecast_alert/tests/test_config.py

import textwrap

import pytest

from solar_forecast_alert.config import (
    TEST_MODE_DURATION_HOURS,
    TEST_MODE_THRESHOLD_KW,
    Config,
)


def _write(tmp_path, body):
    path = tmp_path / "solar_forecast_alert.conf"
    path.write_text(textwrap.dedent(body))
    return path


BASE = """
[location]
latitude = 52.37
longitude = 4.89
"""


def test_defaults_apply_when_sections_missing(tmp_path):
    cfg = Config.load(_write(tmp_path, BASE), environ={})

    assert cfg.location.latitude == 52.37
    assert cfg.system.rated_capacity_kw == 5.0
    assert cfg.system.inverter_efficiency == 0.97
    assert cfg.system.temp_coefficient == -0.4
    assert cfg.alert.production_threshold_kw == 2.0
    assert cfg.alert.duration_threshold_hours == 6
    assert cfg.alert.daylight_ghi_threshold == 50.0
    assert cfg.alert.analysis_window_hours == 48
    assert cfg.weather.forecast_days == 7
    assert cfg.daylight.timezone is None
    assert not cfg.email.enabled
    assert cfg.logging.debug_modules == []


def test_sections_are_parsed(tmp_path):
    body = BASE + textwrap.dedent(
        """
        [system]
        rated_capacity_kw = 8.9
        inverter_efficiency = 0.95  # datasheet value

        [alert]
        production_threshold_kw = 1.5
        duration_threshold_hours = 4

        [email]
        enabled = yes
        sender = me@example.com
        password = pw
        recipient = you@example.com

        [daylight]
        timezone = Europe/Amsterdam

        [logging]
        debug_modules = solar_forecast.analysis, solar_forecast.state
        """
    )
    cfg = Config.load(_write(tmp_path, body), environ={})

    assert cfg.system.rated_capacity_kw == 8.9
    assert cfg.system.inverter_efficiency == 0.95
    assert cfg.alert.production_threshold_kw == 1.5
    assert cfg.alert.duration_threshold_hours == 4
    assert cfg.email.enabled
    assert cfg.daylight.timezone == "Europe/Amsterdam"
    assert cfg.logging.debug_modules == ["solar_forecast.analysis", "solar_forecast.state"]


def test_env_overrides_credentials_and_thresholds(tmp_path):
    env = {
        "SOLAR_EMAIL_PASSWORD": "from-env",
        "SOLAR_PUSHOVER_USER_KEY": "u",
        "SOLAR_PUSHOVER_API_TOKEN": "t",
        "SOLAR_PRODUCTION_THRESHOLD_KW": "3.5",
        "SOLAR_DURATION_THRESHOLD_HOURS": "not-a-number",
    }
    cfg = Config.load(_write(tmp_path, BASE), environ=env)

    assert cfg.email.password == "from-env"
    assert cfg.pushover.user == "u"
    assert cfg.pushover.token == "t"
    assert cfg.alert.production_threshold_kw == 3.5
    assert cfg.alert.duration_threshold_hours == 6


def test_test_mode_lowers_thresholds(tmp_path):
    cfg = Config.load(_write(tmp_path, BASE), environ={"SOLAR_TEST_MODE": "1"})

    assert cfg.alert.test_mode
    assert cfg.alert.production_threshold_kw == TEST_MODE_THRESHOLD_KW
    assert cfg.alert.duration_threshold_hours == TEST_MODE_DURATION_HOURS
    assert not cfg.daylight.skip_at_night


def test_missing_file(tmp_path):
    with pytest.raises(FileNotFoundError):
        Config.load(tmp_path / "missing.conf", environ={})


def test_missing_location_section(tmp_path):
    with pytest.raises(ValueError, match="location"):
        Config.load(_write(tmp_path, "[system]\nrated_capacity_kw = 5\n"), environ={})


@pytest.mark.parametrize(
    "extra",
    [
        "[system]\nrated_capacity_kw = 0\n",
        "[system]\ninverter_efficiency = 1.2\n",
        "[alert]\nduration_threshold_hours = 0\n",
        "[email]\nenabled = true\nsender = me@example.com\n",
    ],
)
def test_invalid_values_are_rejected(tmp_path, extra):
    with pytest.raises(ValueError):
        Config.load(_write(tmp_path, BASE + extra), environ={})


def test_zero_coordinates_are_rejected(tmp_path):
    with pytest.raises(ValueError, match="latitude"):
        Config.load(_write(tmp_path, "[location]\nlatitude = 0\nlongitude = 0\n"), environ={})
