# solar_forecast_alert/services/forecast_analysis.py

from __future__ import annotations

import logging
from datetime import datetime, timedelta
from typing import Iterable, List, Optional, Sequence, Tuple

from solar_forecast_alert.config import AlertConfig, SystemConfig
from solar_forecast_alert.models.alert import AlertAnalysis, AlertCriteria, LowProductionWindow
from solar_forecast_alert.models.production import ProductionSample
from solar_forecast_alert.models.weather import WeatherSample
from solar_forecast_alert.services.daylight_policy import filter_daylight


# Standard Test Conditions
STC_IRRADIANCE_WM2 = 1000.0
STC_TEMPERATURE_C = 25.0

NORMAL_RECOMMENDATION = "Solar production forecast looks normal. No action required."
EMPTY_WINDOW_RECOMMENDATION = "No data in analysis window. Check again during daytime hours."

_log = logging.getLogger("solar_forecast.analysis")


def estimate_production(sample: WeatherSample, system: SystemConfig) -> ProductionSample:
    """
    Estimate AC output for one forecast hour.

    P = P_rated * (GHI / 1000) * eta_inverter * (1 + coeff/100 * (T - 25))

    The rated capacity is the STC nameplate and already includes panel
    efficiency. The coefficient is negative, so output rises below 25 C and
    falls above it. The percentage is clamped to 100 even when a cold, bright
    hour pushes the raw estimate past nameplate.
    """
    ghi_factor = sample.ghi_wm2 / STC_IRRADIANCE_WM2
    temp_factor = 1.0 + (system.temp_coefficient / 100.0) * (sample.temperature_c - STC_TEMPERATURE_C)

    output_kw = system.rated_capacity_kw * ghi_factor * system.inverter_efficiency * temp_factor
    output_kw = max(0.0, output_kw)

    pct = output_kw / system.rated_capacity_kw * 100.0
    pct = max(0.0, min(100.0, pct))

    return ProductionSample(
        timestamp=sample.timestamp,
        estimated_output_kw=output_kw,
        output_percentage=pct,
        cloud_cover_pct=sample.cloud_cover_pct,
        temperature_c=sample.temperature_c,
        ghi_wm2=sample.ghi_wm2,
        precipitation_probability_pct=sample.precipitation_probability_pct,
    )


def _whole_hours(start: datetime, end: datetime) -> int:
    # elapsed hours, not wall-clock hours (DST)
    return int((end.timestamp() - start.timestamp()) // 3600)


def detect_low_production(
    production: Sequence[ProductionSample],
    threshold_kw: float,
    duration_hours: int,
    daylight_ghi_threshold: float,
) -> LowProductionWindow:
    """
    Find the longest run of consecutive sub-threshold hours.

    ``production`` must be chronological and already daylight-filtered.
    A run only replaces the best one when strictly longer, so on ties the
    earlier run wins and keeps its own recovery hour. A recovery hour is the
    first at/above-threshold sample right after the best run, provided it is
    still daylight (a dip at sunset is not a recovery).
    """
    best_len = 0
    best_start: Optional[datetime] = None
    best_end: Optional[datetime] = None
    best_samples: List[ProductionSample] = []
    best_recovery: Optional[datetime] = None

    cur_len = 0
    cur_start: Optional[datetime] = None
    cur_samples: List[ProductionSample] = []
    cur_is_best = False

    for prod in production:
        below = prod.estimated_output_kw < threshold_kw
        _log.debug(
            "Production hour %s: %.2f kW (below_threshold=%s)",
            prod.timestamp.strftime("%Y-%m-%d %H:%M"),
            prod.estimated_output_kw,
            below,
        )

        if below:
            if cur_len == 0:
                cur_start = prod.timestamp
                cur_is_best = False
            cur_len += 1
            cur_samples.append(prod)

            if cur_len > best_len:
                best_len = cur_len
                best_start = cur_start
                best_end = prod.timestamp
                best_samples = list(cur_samples)
                best_recovery = None
                cur_is_best = True
            continue

        if cur_len > 0 and cur_is_best and prod.ghi_wm2 >= daylight_ghi_threshold:
            best_recovery = prod.timestamp
            _log.debug(
                "Recovery detected at %s after %d-hour streak (ghi=%.0f)",
                prod.timestamp.strftime("%Y-%m-%d %H:%M"),
                best_len,
                prod.ghi_wm2,
            )

        cur_len = 0
        cur_start = None
        cur_samples = []
        cur_is_best = False

    triggered = best_len > 0 and best_len >= duration_hours

    _log.debug(
        "Low production evaluation: threshold=%.2f kW, duration=%dh, longest=%dh, triggered=%s, recovery=%s",
        threshold_kw,
        duration_hours,
        best_len,
        triggered,
        best_recovery is not None,
    )

    if not triggered:
        return LowProductionWindow(
            triggered=False,
            run_length=best_len,
            run_start=None,
            run_end=None,
            run_samples=[],
            recovery_hour=None,
            has_recovery=False,
        )

    return LowProductionWindow(
        triggered=True,
        run_length=best_len,
        run_start=best_start,
        run_end=best_end,
        run_samples=best_samples,
        recovery_hour=best_recovery,
        has_recovery=best_recovery is not None,
    )


def find_recovery(
    all_daylight: Iterable[ProductionSample],
    after: datetime,
    threshold_kw: float,
    daylight_ghi_threshold: float,
    run_start: datetime,
) -> Tuple[Optional[datetime], Optional[int]]:
    """Return (recovery hour, hours since run start) from the full forecast, or (None, None)."""
    for prod in all_daylight:
        if prod.timestamp <= after:
            continue
        if prod.estimated_output_kw >= threshold_kw and prod.ghi_wm2 >= daylight_ghi_threshold:
            hours = _whole_hours(run_start, prod.timestamp)
            _log.debug(
                "Recovery found in extended forecast at %s (%d hours after run start)",
                prod.timestamp.strftime("%Y-%m-%d %H:%M"),
                hours,
            )
            return prod.timestamp, hours

    _log.debug("No recovery found within forecast horizon")
    return None, None


def build_recommendation(analysis: AlertAnalysis, threshold_kw: float) -> str:
    if not analysis.criteria.any_triggered:
        return NORMAL_RECOMMENDATION

    start = analysis.first_low_production_hour
    end = analysis.last_low_production_hour
    window = f"{start:%a %H:%M}-{end:%a %H:%M}" if start and end else "the forecast period"
    text = (
        f"Solar production will drop below {threshold_kw:.1f} kW for "
        f"{analysis.consecutive_hour_count} consecutive daylight hours during {window}. "
        "Expect severely limited power output during this period. "
        "Consider reducing consumption or activating backup power sources."
    )
    if analysis.has_recovery and analysis.recovery_hour is not None:
        text += (
            f" Production is expected to recover at {analysis.recovery_hour:%a %H:%M}, "
            f"{analysis.hours_until_recovery} hours after the low period begins."
        )
    else:
        text += " No recovery expected within the forecast horizon."
    return text


def analysis_window(samples: Sequence[WeatherSample], hours: int) -> List[WeatherSample]:
    """Samples within ``hours`` of the first forecast hour."""
    if not samples:
        return []
    cutoff = samples[0].timestamp + timedelta(hours=hours)
    return [s for s in samples if s.timestamp < cutoff]


def analyze_forecast(
    samples: Sequence[WeatherSample],
    system: SystemConfig,
    alert: AlertConfig,
) -> AlertAnalysis:
    """Run estimator, daylight filter, detector and recovery search over one forecast."""
    analysis = AlertAnalysis()
    analysis.all_production_hours = [estimate_production(s, system) for s in samples]

    window_hours = filter_daylight(
        analysis_window(samples, alert.analysis_window_hours),
        alert.daylight_ghi_threshold,
    )
    _log.debug(
        "Filtered to daylight hours: total=%d, daylight_in_window=%d, ghi_threshold=%.0f",
        len(samples),
        len(window_hours),
        alert.daylight_ghi_threshold,
    )
    if not window_hours:
        _log.warning("No daylight hours in analysis window")
        analysis.recommended_action = EMPTY_WINDOW_RECOMMENDATION
        return analysis

    production = [estimate_production(s, system) for s in window_hours]
    window = detect_low_production(
        production,
        alert.production_threshold_kw,
        alert.duration_threshold_hours,
        alert.daylight_ghi_threshold,
    )

    analysis.criteria = AlertCriteria(
        low_production_duration_triggered=window.triggered,
        any_triggered=window.triggered,
    )
    if not analysis.criteria.any_triggered:
        analysis.recommended_action = NORMAL_RECOMMENDATION
        return analysis

    analysis.low_production_hours = window.run_samples
    analysis.consecutive_hour_count = window.run_length
    analysis.first_low_production_hour = window.run_start
    analysis.last_low_production_hour = window.run_end
    analysis.has_recovery = window.has_recovery
    if window.has_recovery:
        analysis.recovery_hour = window.recovery_hour
        analysis.hours_until_recovery = _whole_hours(window.run_start, window.recovery_hour)
    else:
        all_daylight = filter_daylight(analysis.all_production_hours, alert.daylight_ghi_threshold)
        recovery_hour, hours = find_recovery(
            all_daylight,
            window.run_end,
            alert.production_threshold_kw,
            alert.daylight_ghi_threshold,
            window.run_start,
        )
        if recovery_hour is not None:
            analysis.has_recovery = True
            analysis.recovery_hour = recovery_hour
            analysis.hours_until_recovery = hours

    analysis.recommended_action = build_recommendation(analysis, alert.production_threshold_kw)
    return analysis
