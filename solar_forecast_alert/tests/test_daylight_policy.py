# solar_forecast_alert/tests/test_daylight_policy.py

from datetime import datetime, timezone

from solar_forecast_alert.config import DaylightConfig
from solar_forecast_alert.logging import ConsoleLog, get_logger
from solar_forecast_alert.services.daylight_policy import DaylightPolicy, filter_daylight

from solar_forecast_alert.tests.fake_services import production_hours, weather_hours


ConsoleLog(level="INFO", quiet=True).setup()
LOG = get_logger("daylight-test")


def _policy(latitude=52.0, longitude=5.0, **overrides):
    cfg = DaylightConfig(
        timezone="UTC",
        skip_at_night=True,
        static_sunrise="06:00",
        static_sunset="18:00",
    )
    for key, value in overrides.items():
        setattr(cfg, key, value)
    return DaylightPolicy(cfg, latitude, longitude, LOG)


def test_filter_keeps_only_daylight_hours_in_order():
    samples = weather_hours([0, 30, 100, 800, 60, 40, 0])

    filtered = filter_daylight(samples, 50.0)

    assert [s.ghi_wm2 for s in filtered] == [100.0, 800.0, 60.0]
    assert [s.timestamp for s in filtered] == [samples[2].timestamp, samples[3].timestamp, samples[4].timestamp]


def test_filter_threshold_is_inclusive_and_defaults_to_50():
    samples = weather_hours([49.9, 50.0, 50.1])

    assert [s.ghi_wm2 for s in filter_daylight(samples)] == [50.0, 50.1]


def test_filter_accepts_production_samples_and_empty_input():
    prod = production_hours([1.0, 2.0], ghi_wm2=[10.0, 200.0])

    assert filter_daylight(prod, 50.0) == [prod[1]]
    assert filter_daylight([], 50.0) == []


def test_midday_is_daylight():
    info = _policy().get_info(datetime(2024, 6, 1, 12, 0, tzinfo=timezone.utc))
    assert info.phase == "DAY"
    assert info.is_daylight
    assert info.source == "astral"


def test_night_is_skipped_when_configured():
    policy = _policy()
    now = datetime(2024, 6, 1, 1, 0, tzinfo=timezone.utc)
    assert policy.get_info(now).phase == "NIGHT"
    assert policy.should_skip(now)


def test_night_not_skipped_when_disabled():
    policy = _policy(skip_at_night=False)
    assert not policy.should_skip(datetime(2024, 6, 1, 1, 0, tzinfo=timezone.utc))


def test_polar_night_falls_back_to_static_times():
    # Tromso has no sunrise in mid December
    policy = _policy(latitude=69.65, longitude=18.96)
    info = policy.get_info(datetime(2024, 12, 20, 12, 0, tzinfo=timezone.utc))
    assert info.source == "static"
    assert info.sunrise.hour == 6
    assert info.sunset.hour == 18
    assert info.is_daylight


def test_naive_datetime_is_localized():
    policy = _policy()
    local = policy.localize(datetime(2024, 6, 1, 12, 0))
    assert local.tzinfo is not None


def test_unset_timezone_uses_host_local_zone():
    policy = _policy(timezone=None)
    now = datetime.now(timezone.utc)

    local = policy.localize(now)

    assert local.utcoffset() == now.astimezone().utcoffset()
    assert local.date() == now.astimezone().date()
