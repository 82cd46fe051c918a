# solar_forecast_alert/services/output_formatter.py

from __future__ import annotations

import json
from datetime import datetime, timedelta
from typing import Iterable, List, Optional, Sequence

from solar_forecast_alert.models.alert import AlertAnalysis
from solar_forecast_alert.models.production import ProductionSample
from solar_forecast_alert.services.daylight_policy import DEFAULT_DAYLIGHT_GHI_THRESHOLD


OUTLOOK_HOURS = 48


def _hhmm(ts: Optional[datetime]) -> str:
    return ts.strftime("%H:%M") if ts else "-"


def _day_hhmm(ts: Optional[datetime]) -> str:
    return ts.strftime("%a %d %b %H:%M") if ts else "-"


def condition_text(
    cloud_cover_pct: float,
    ghi_wm2: float,
    daylight_ghi_threshold: float = DEFAULT_DAYLIGHT_GHI_THRESHOLD,
) -> str:
    if ghi_wm2 < daylight_ghi_threshold:
        return "Night"
    if cloud_cover_pct >= 80:
        return "Overcast"
    if cloud_cover_pct >= 50:
        return "Mostly cloudy"
    if cloud_cover_pct >= 20:
        return "Partly cloudy"
    return "Clear"


def _hour_rows(
    hours: Iterable[ProductionSample],
    daylight_ghi_threshold: float = DEFAULT_DAYLIGHT_GHI_THRESHOLD,
) -> List[str]:
    rows = []
    for prod in hours:
        rows.append(
            f"  {_day_hhmm(prod.timestamp)}  {prod.estimated_output_kw:5.2f} kW "
            f"({prod.output_percentage:5.1f}%)  cloud={prod.cloud_cover_pct:3.0f}%  "
            f"ghi={prod.ghi_wm2:4.0f} W/m2  temp={prod.temperature_c:5.1f}C  "
            f"rain={prod.precipitation_probability_pct:3.0f}%  {condition_text(prod.cloud_cover_pct, prod.ghi_wm2, daylight_ghi_threshold)}"
        )
    return rows


def recovery_line(analysis: AlertAnalysis) -> str:
    if analysis.has_recovery and analysis.recovery_hour is not None:
        return (
            f"Recovery expected at {_day_hhmm(analysis.recovery_hour)} "
            f"({analysis.hours_until_recovery} hours after the low period begins)"
        )
    return "Recovery: not expected within the forecast horizon"


def format_alert_subject(analysis: AlertAnalysis) -> str:
    return f"Solar Production Alert - {analysis.consecutive_hour_count} hours of low output forecast"


def outlook_hours(
    hours: Sequence[ProductionSample],
    now: Optional[datetime] = None,
    span_hours: int = OUTLOOK_HOURS,
) -> List[ProductionSample]:
    """Hours in ``[now, now + span_hours)``, anchored at the first hour when ``now`` is None."""
    if not hours:
        return []
    start = now.replace(minute=0, second=0, microsecond=0) if now else hours[0].timestamp
    end = start + timedelta(hours=span_hours)
    return [p for p in hours if start <= p.timestamp < end]


def format_alert_text(
    analysis: AlertAnalysis,
    threshold_kw: float,
    *,
    now: Optional[datetime] = None,
    daylight_ghi_threshold: float = DEFAULT_DAYLIGHT_GHI_THRESHOLD,
    include_outlook: bool = True,
) -> str:
    lines = [
        "Solar production is forecast to stay low.",
        "",
        f"Low period: {analysis.consecutive_hour_count} consecutive daylight hours below {threshold_kw:.1f} kW",
        f"From {_day_hhmm(analysis.first_low_production_hour)} to {_day_hhmm(analysis.last_low_production_hour)}",
        recovery_line(analysis),
        "",
        analysis.recommended_action,
        "",
        "Low production hours:",
    ]
    lines.extend(_hour_rows(analysis.low_production_hours, daylight_ghi_threshold))

    outlook = outlook_hours(analysis.all_production_hours, now) if include_outlook else []
    if outlook:
        lines.extend(["", f"Forecast, next {OUTLOOK_HOURS} hours:"])
        lines.extend(_hour_rows(outlook, daylight_ghi_threshold))
    return "\n".join(lines)


def format_push_message(analysis: AlertAnalysis, threshold_kw: float) -> str:
    message = (
        f"Low production: {analysis.consecutive_hour_count} hours below {threshold_kw:.1f} kW\n"
        f"{_hhmm(analysis.first_low_production_hour)}-{_hhmm(analysis.last_low_production_hour)}"
    )
    if analysis.has_recovery and analysis.recovery_hour is not None:
        message += (
            f"\n\nRecovery expected at {_hhmm(analysis.recovery_hour)} "
            f"({analysis.hours_until_recovery} hours)"
        )
    else:
        message += "\n\nNo recovery expected within forecast horizon"
    return message


RECOVERY_SUBJECT = "Solar Production Alert Cleared - Conditions Recovered"


def format_recovery_text(now: Optional[datetime] = None) -> str:
    stamp = (now or datetime.now()).strftime("%Y-%m-%d %H:%M")
    return "\n".join(
        [
            "Good news: the forecast no longer shows a sustained low-production period.",
            "",
            "Solar production is expected to return to normal levels.",
            f"Checked at {stamp}.",
        ]
    )


# ----------------------------------------------------------------------
def analysis_to_dict(analysis: AlertAnalysis) -> dict:
    def _iso(ts: Optional[datetime]) -> Optional[str]:
        return ts.isoformat() if ts else None

    def _hour(prod: ProductionSample) -> dict:
        return {
            "timestamp": prod.timestamp.isoformat(),
            "estimated_output_kw": round(prod.estimated_output_kw, 3),
            "output_percentage": round(prod.output_percentage, 1),
            "cloud_cover_pct": prod.cloud_cover_pct,
            "temperature_c": prod.temperature_c,
            "ghi_wm2": prod.ghi_wm2,
            "precipitation_probability_pct": prod.precipitation_probability_pct,
        }

    return {
        "triggered": analysis.criteria.any_triggered,
        "low_production_duration_triggered": analysis.criteria.low_production_duration_triggered,
        "consecutive_hour_count": analysis.consecutive_hour_count,
        "first_low_production_hour": _iso(analysis.first_low_production_hour),
        "last_low_production_hour": _iso(analysis.last_low_production_hour),
        "has_recovery": analysis.has_recovery,
        "recovery_hour": _iso(analysis.recovery_hour),
        "hours_until_recovery": analysis.hours_until_recovery,
        "recommended_action": analysis.recommended_action,
        "low_production_hours": [_hour(p) for p in analysis.low_production_hours],
        "all_production_hours": [_hour(p) for p in analysis.all_production_hours],
    }


def emit_json(analysis: AlertAnalysis) -> None:
    print(json.dumps(analysis_to_dict(analysis), indent=2))


def emit_human(
    analysis: AlertAnalysis,
    threshold_kw: float,
    daylight_ghi_threshold: float = DEFAULT_DAYLIGHT_GHI_THRESHOLD,
) -> None:
    print("=== SOLAR FORECAST ===")
    if analysis.criteria.any_triggered:
        print(
            format_alert_text(
                analysis,
                threshold_kw,
                daylight_ghi_threshold=daylight_ghi_threshold,
                include_outlook=False,
            )
        )
    else:
        print(analysis.recommended_action)
    daylight = [p for p in analysis.all_production_hours if p.ghi_wm2 > 0]
    if daylight:
        print("\nForecast hours with irradiance:")
        print("\n".join(_hour_rows(daylight, daylight_ghi_threshold)))
