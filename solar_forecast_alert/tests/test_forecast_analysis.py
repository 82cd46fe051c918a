# solar_forecast_alert/tests/test_forecast_analysis.py

from dataclasses import replace
from datetime import datetime, timedelta, timezone
from zoneinfo import ZoneInfo

from solar_forecast_alert.config import AlertConfig, SystemConfig
from solar_forecast_alert.services.forecast_analysis import (
    EMPTY_WINDOW_RECOMMENDATION,
    NORMAL_RECOMMENDATION,
    analysis_window,
    analyze_forecast,
)

from solar_forecast_alert.tests.fake_services import START, weather_hours


# 10 kW at 25 C with a lossless inverter: output in kW == GHI / 100
SYSTEM = SystemConfig(rated_capacity_kw=10.0, inverter_efficiency=1.0, temp_coefficient=-0.4)


def _alert(**overrides):
    cfg = AlertConfig(production_threshold_kw=2.0, duration_threshold_hours=3)
    for key, value in overrides.items():
        setattr(cfg, key, value)
    return cfg


def _day(ghi_values):
    """One 24-hour block: night padding around the given daytime irradiance."""
    night_before = [0.0] * 6
    night_after = [0.0] * (24 - 6 - len(ghi_values))
    return night_before + list(ghi_values) + night_after


def test_normal_forecast_is_not_triggered():
    samples = weather_hours(_day([400, 600, 800, 800, 600, 400]), start=START.replace(hour=0))

    analysis = analyze_forecast(samples, SYSTEM, _alert())

    assert not analysis.criteria.any_triggered
    assert analysis.recommended_action == NORMAL_RECOMMENDATION
    assert len(analysis.all_production_hours) == 24
    assert analysis.low_production_hours == []


def test_night_hours_never_count_toward_a_run():
    # 6 night hours with zero output, daytime all healthy
    samples = weather_hours(_day([400, 600, 600, 400]), start=START.replace(hour=0))

    analysis = analyze_forecast(samples, SYSTEM, _alert(duration_threshold_hours=1))

    assert not analysis.criteria.any_triggered


def test_cloudy_day_triggers_with_in_window_recovery():
    samples = weather_hours(_day([100, 120, 150, 150, 400, 500]), start=START.replace(hour=0))

    analysis = analyze_forecast(samples, SYSTEM, _alert())

    assert analysis.criteria.any_triggered
    assert analysis.criteria.low_production_duration_triggered
    assert analysis.consecutive_hour_count == 4
    assert analysis.first_low_production_hour == samples[6].timestamp
    assert analysis.last_low_production_hour == samples[9].timestamp
    assert analysis.has_recovery
    assert analysis.recovery_hour == samples[10].timestamp
    assert analysis.hours_until_recovery == 4
    assert "recover" in analysis.recommended_action
    assert "4 consecutive daylight hours" in analysis.recommended_action


def test_recovery_found_beyond_analysis_window():
    gloomy = _day([100, 100, 100, 100, 100, 100])
    sunny = _day([500, 700, 700, 500])
    samples = weather_hours(gloomy + gloomy + sunny, start=START.replace(hour=0))

    analysis = analyze_forecast(samples, SYSTEM, _alert())

    assert analysis.criteria.any_triggered
    assert analysis.consecutive_hour_count == 12
    recovery = START.replace(hour=0) + timedelta(hours=48 + 6)
    assert analysis.has_recovery
    assert analysis.recovery_hour == recovery
    assert analysis.hours_until_recovery == 48


def test_no_recovery_anywhere_in_forecast():
    gloomy = _day([100, 100, 100, 100])
    samples = weather_hours(gloomy * 3, start=START.replace(hour=0))

    analysis = analyze_forecast(samples, SYSTEM, _alert())

    assert analysis.criteria.any_triggered
    assert not analysis.has_recovery
    assert analysis.recovery_hour is None
    assert analysis.hours_until_recovery is None
    assert analysis.recommended_action.endswith("No recovery expected within the forecast horizon.")


def test_empty_window_is_not_triggered():
    samples = weather_hours([0.0] * 24, start=START.replace(hour=0))

    analysis = analyze_forecast(samples, SYSTEM, _alert())

    assert not analysis.criteria.any_triggered
    assert analysis.recommended_action == EMPTY_WINDOW_RECOMMENDATION
    assert len(analysis.all_production_hours) == 24


def test_empty_forecast():
    analysis = analyze_forecast([], SYSTEM, _alert())

    assert not analysis.criteria.any_triggered
    assert analysis.all_production_hours == []
    assert analysis.recommended_action == EMPTY_WINDOW_RECOMMENDATION


def test_analysis_window_is_anchored_at_first_sample():
    samples = weather_hours([100.0] * 72)

    window = analysis_window(samples, 48)

    assert len(window) == 48
    assert window[-1].timestamp == START + timedelta(hours=47)
    assert analysis_window([], 48) == []


def test_hours_until_recovery_is_elapsed_time_across_dst():
    berlin = ZoneInfo("Europe/Berlin")
    # 2024-03-31 02:00 local does not exist; build the hours in UTC
    start_utc = datetime(2024, 3, 30, 9, 0, tzinfo=timezone.utc)
    ghi = [100.0] * 3 + [0.0] * 20 + [600.0]
    samples = [
        replace(s, timestamp=s.timestamp.astimezone(berlin))
        for s in weather_hours(ghi, start=start_utc)
    ]

    analysis = analyze_forecast(samples, SYSTEM, _alert())

    assert analysis.first_low_production_hour == datetime(2024, 3, 30, 10, 0, tzinfo=berlin)
    assert analysis.recovery_hour == datetime(2024, 3, 31, 10, 0, tzinfo=berlin)
    assert analysis.hours_until_recovery == 23
