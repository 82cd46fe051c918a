# solar_forecast_alert/main.py

from datetime import datetime, timedelta
import json
from pathlib import Path

from .cli import build_parser
from .config import Config
from .errors import SolarForecastError
from .logging import ConsoleLog, StructuredLog, RunLogEntry

from .models.alert import AlertAnalysis, AlertCriteria
from .models.production import ProductionSample
from .services.alert_state import AlertStateManager
from .services.app_state import AppState
from .services.daylight_policy import DaylightPolicy
from .services.forecast_analysis import build_recommendation
from .services.forecast_monitor import ForecastMonitor
from .services.notification_manager import NotificationManager
from .services.output_formatter import emit_human, emit_json
from .services.weather_client import WeatherClient


def _synthetic_analysis(now: datetime, threshold_kw: float) -> AlertAnalysis:
    start = now.replace(minute=0, second=0, microsecond=0) + timedelta(hours=1)
    hours = [
        ProductionSample(
            timestamp=start + timedelta(hours=i),
            estimated_output_kw=0.4,
            output_percentage=8.0,
            cloud_cover_pct=95.0,
            temperature_c=12.0,
            ghi_wm2=90.0,
            precipitation_probability_pct=80.0,
        )
        for i in range(3)
    ]
    analysis = AlertAnalysis(
        criteria=AlertCriteria(low_production_duration_triggered=True, any_triggered=True),
        low_production_hours=hours,
        all_production_hours=hours,
        consecutive_hour_count=len(hours),
        first_low_production_hour=hours[0].timestamp,
        last_low_production_hour=hours[-1].timestamp,
        has_recovery=True,
        recovery_hour=hours[-1].timestamp + timedelta(hours=1),
        hours_until_recovery=len(hours),
    )
    analysis.recommended_action = build_recommendation(analysis, threshold_kw)
    return analysis


def run_notify_test(notifier: NotificationManager, log, mode: str, now: datetime) -> None:
    if mode in ("alert", "both"):
        log.info("[notify-test] Sending synthetic low-production alert.")
        notifier.send_alert(_synthetic_analysis(now, notifier.threshold_kw))

    if mode in ("recovery", "both"):
        log.info("[notify-test] Sending recovery notice.")
        notifier.send_recovery_notice()


def main(argv=None):
    parser = build_parser()
    args = parser.parse_args(argv)

    app_cfg = Config.load(args.config)
    console_logger = ConsoleLog(
        level="DEBUG" if args.debug else app_cfg.logging.console_level,
        quiet=args.quiet or app_cfg.logging.console_quiet,
        debug_modules=app_cfg.logging.debug_modules,
        verbose_libraries=args.debug,
    )
    log = console_logger.setup()
    structured_logger = StructuredLog(
        app_cfg.logging.structured_path,
        app_cfg.logging.structured_enabled,
    )
    if app_cfg.alert.test_mode:
        log.warning(
            "[TEST MODE] Using lowered thresholds: %.1f kW, %d hour(s)",
            app_cfg.alert.production_threshold_kw,
            app_cfg.alert.duration_threshold_hours,
        )

    daylight_policy = DaylightPolicy(
        app_cfg.daylight,
        app_cfg.location.latitude,
        app_cfg.location.longitude,
        log,
    )
    now = datetime.now(daylight_policy.timezone)
    state_path = Path(app_cfg.state.path).expanduser() if app_cfg.state.path else None

    notifier = NotificationManager(
        app_cfg.email,
        app_cfg.pushover,
        log,
        threshold_kw=app_cfg.alert.production_threshold_kw,
        daylight_ghi_threshold=app_cfg.alert.daylight_ghi_threshold,
    )
    weather_client = WeatherClient(app_cfg.weather, log)

    if args.command == "notify-test":
        try:
            run_notify_test(notifier, log, args.mode, now)
        except SolarForecastError as exc:
            log.error("Test notification failed: %s", exc)
            raise SystemExit(1)
        return

    if args.command == "state":
        state = AppState(path=state_path)
        try:
            if args.reset:
                state.clear()
                log.info("Alert state cleared.")
            shown = state.load().as_dict()
            shown["saved_at"] = state.saved_at()
            print(json.dumps(shown, indent=2))
        except SolarForecastError as exc:
            log.error("State access failed: %s", exc)
            raise SystemExit(1)
        finally:
            state.close()
        return

    if args.command == "analyze":
        monitor = ForecastMonitor(
            app_cfg.location,
            app_cfg.system,
            app_cfg.alert,
            weather_client,
            AlertStateManager(AppState(persist=False), notifier, log),
            log,
        )
        try:
            analysis, _ = monitor.analyze()
        except SolarForecastError as exc:
            log.error("Forecast analysis failed: %s", exc)
            raise SystemExit(1)
        if not args.quiet:
            if args.json:
                emit_json(analysis)
            else:
                emit_human(
                    analysis,
                    app_cfg.alert.production_threshold_kw,
                    app_cfg.alert.daylight_ghi_threshold,
                )
        return

    if args.command != "check":
        raise ValueError(f"Unsupported command: {args.command}")

    if not args.force and daylight_policy.should_skip(now):
        info = daylight_policy.get_info(now)
        log.info(
            "Nighttime (%s); skipping forecast check until sunrise %s",
            info.phase,
            info.sunrise.strftime("%H:%M"),
        )
        return

    state = AppState(path=state_path)
    monitor = ForecastMonitor(
        app_cfg.location,
        app_cfg.system,
        app_cfg.alert,
        weather_client,
        AlertStateManager(state, notifier, log),
        log,
    )
    try:
        result = monitor.run_cycle(now, today=now.date())
    except SolarForecastError as exc:
        log.error("Forecast check failed: %s", exc)
        structured_logger.write(RunLogEntry.for_cycle(now, args.command, error=str(exc)))
        raise SystemExit(1)
    finally:
        state.close()

    structured_logger.write(RunLogEntry.for_cycle(now, args.command, result))
    log.info("Check completed (action=%s)", result.action.value)

    if not args.quiet:
        if args.json:
            emit_json(result.analysis)
        else:
            emit_human(
                result.analysis,
                app_cfg.alert.production_threshold_kw,
                app_cfg.alert.daylight_ghi_threshold,
            )


if __name__ == "__main__":
    main()
