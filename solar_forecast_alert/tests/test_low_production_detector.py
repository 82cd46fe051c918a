# solar_forecast_alert/tests/test_low_production_detector.py

from dataclasses import replace
from datetime import datetime, timedelta
from zoneinfo import ZoneInfo

from solar_forecast_alert.services.forecast_analysis import detect_low_production, find_recovery

from solar_forecast_alert.tests.fake_services import START, production_hours


THRESHOLD = 2.0
GHI = 50.0


def _detect(kw_values, duration=3, **kwargs):
    return detect_low_production(production_hours(kw_values, **kwargs), THRESHOLD, duration, GHI)


def test_run_shorter_than_duration_does_not_trigger():
    window = _detect([5.0, 1.0, 1.0, 5.0])

    assert not window.triggered
    assert window.run_length == 2
    assert window.run_start is None
    assert window.run_samples == []
    assert not window.has_recovery


def test_run_exactly_at_duration_triggers():
    window = _detect([5.0, 1.0, 1.0, 1.0, 5.0])

    assert window.triggered
    assert window.run_length == 3
    assert window.run_start == START + timedelta(hours=1)
    assert window.run_end == START + timedelta(hours=3)
    assert [p.estimated_output_kw for p in window.run_samples] == [1.0, 1.0, 1.0]


def test_threshold_is_strictly_below():
    window = _detect([2.0, 2.0, 2.0, 2.0])

    assert not window.triggered
    assert window.run_length == 0


def test_longest_run_wins():
    window = _detect([1.0, 1.0, 5.0, 1.0, 1.0, 1.0, 1.0, 5.0])

    assert window.triggered
    assert window.run_length == 4
    assert window.run_start == START + timedelta(hours=3)
    assert window.recovery_hour == START + timedelta(hours=7)


def test_equal_runs_keep_the_earlier_one_and_its_recovery():
    window = _detect([1.0, 1.0, 1.0, 5.0, 1.0, 1.0, 1.0, 6.0])

    assert window.run_start == START
    assert window.run_end == START + timedelta(hours=2)
    assert window.recovery_hour == START + timedelta(hours=3)
    assert window.has_recovery


def test_recovery_right_after_run():
    window = _detect([1.0, 1.0, 1.0, 5.0])

    assert window.has_recovery
    assert window.recovery_hour == START + timedelta(hours=3)
    assert (window.recovery_hour - window.run_start) == timedelta(hours=window.run_length)


def test_run_reaching_end_of_window_has_no_recovery():
    window = _detect([5.0, 1.0, 1.0, 1.0])

    assert window.triggered
    assert not window.has_recovery
    assert window.recovery_hour is None


def test_sunset_dip_is_not_a_recovery():
    # last hour is above threshold but has too little irradiance to count
    window = _detect([1.0, 1.0, 1.0, 3.0], ghi_wm2=[300.0, 200.0, 100.0, 30.0])

    assert window.triggered
    assert not window.has_recovery


def test_empty_input_is_not_triggered():
    window = detect_low_production([], THRESHOLD, 3, GHI)

    assert not window.triggered
    assert window.run_length == 0


def test_find_recovery_scans_past_the_run():
    hours = production_hours([1.0, 1.0, 1.0, 1.0, 1.5, 4.0, 4.0])

    ts, until = find_recovery(hours, hours[3].timestamp, THRESHOLD, GHI, hours[0].timestamp)

    assert ts == hours[5].timestamp
    assert until == 5


def test_find_recovery_ignores_hours_before_run_end():
    hours = production_hours([4.0, 1.0, 1.0, 1.0, 1.0])

    assert find_recovery(hours, hours[2].timestamp, THRESHOLD, GHI, hours[1].timestamp) == (None, None)


def test_find_recovery_skips_low_irradiance_hours():
    hours = production_hours([1.0, 3.0, 3.0], ghi_wm2=[200.0, 10.0, 300.0])

    ts, until = find_recovery(hours, hours[0].timestamp, THRESHOLD, GHI, hours[0].timestamp)

    assert ts == hours[2].timestamp
    assert until == 2


def test_find_recovery_counts_elapsed_hours_across_dst():
    berlin = ZoneInfo("Europe/Berlin")
    hours = production_hours([1.0, 4.0])
    run_start = datetime(2024, 3, 30, 10, 0, tzinfo=berlin)
    recovery = datetime(2024, 3, 31, 10, 0, tzinfo=berlin)
    hours = [replace(hours[0], timestamp=run_start), replace(hours[1], timestamp=recovery)]

    ts, until = find_recovery(hours, run_start, THRESHOLD, GHI, run_start)

    # clocks spring forward overnight, so only 23 hours elapse
    assert ts == recovery
    assert until == 23
