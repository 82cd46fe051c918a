from __future__ import annotations

from dataclasses import dataclass
from datetime import date, datetime
from typing import Optional

from solar_forecast_alert.config import AlertConfig, LocationConfig, SystemConfig
from solar_forecast_alert.models.alert import AlertAnalysis, AlertState
from solar_forecast_alert.services.alert_state import AlertAction, AlertStateManager
from solar_forecast_alert.services.forecast_analysis import analyze_forecast


@dataclass
class CycleResult:
    timestamp: datetime
    today: date
    action: AlertAction
    analysis: AlertAnalysis
    state: AlertState
    state_reset: bool
    forecast_hours: int


class ForecastMonitor:
    """
    One evaluation cycle: load state, daily reset, fetch, analyze, notify, save.

    Not reentrant. The caller (cron) must not run two cycles at once because
    the alert state is read, modified and written back without locking.
    A forecast failure raises before anything is written.
    """

    def __init__(
        self,
        location: LocationConfig,
        system: SystemConfig,
        alert: AlertConfig,
        weather,
        state_manager: AlertStateManager,
        log,
    ):
        self.location = location
        self.system = system
        self.alert = alert
        self.weather = weather
        self.state_manager = state_manager
        self.log = log

    def analyze(self) -> tuple[AlertAnalysis, int]:
        forecast = self.weather.get_forecast(self.location.latitude, self.location.longitude)
        analysis = analyze_forecast(forecast, self.system, self.alert)
        self.log.info(
            "Forecast analysis complete: hours=%d triggered=%s consecutive=%d window=%s-%s recovery=%s",
            len(forecast),
            analysis.criteria.any_triggered,
            analysis.consecutive_hour_count,
            analysis.first_low_production_hour.strftime("%H:%M") if analysis.first_low_production_hour else "-",
            analysis.last_low_production_hour.strftime("%H:%M") if analysis.last_low_production_hour else "-",
            analysis.recovery_hour.isoformat() if analysis.recovery_hour else None,
        )
        return analysis, len(forecast)

    def run_cycle(self, now: datetime, today: Optional[date] = None) -> CycleResult:
        today = today or now.date()
        self.log.info("Starting solar forecast check for %s", today.isoformat())

        state, was_reset = self.state_manager.load(today)
        analysis, hours = self.analyze()
        action, new_state = self.state_manager.apply(state, analysis, today, was_reset=was_reset)

        return CycleResult(
            timestamp=now,
            today=today,
            action=action,
            analysis=analysis,
            state=new_state,
            state_reset=was_reset,
            forecast_hours=hours,
        )
