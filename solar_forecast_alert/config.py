# solar_forecast_alert/config.py
from dataclasses import dataclass, field
from pathlib import Path
import configparser
import os


@dataclass
class LocationConfig:
    latitude: float
    longitude: float


@dataclass
class SystemConfig:
    rated_capacity_kw: float = 5.0  # rated output at STC, panel efficiency already included
    inverter_efficiency: float = 0.97
    temp_coefficient: float = -0.4  # % per degree C


@dataclass
class AlertConfig:
    production_threshold_kw: float = 2.0
    duration_threshold_hours: int = 6
    daylight_ghi_threshold: float = 50.0
    analysis_window_hours: int = 48
    test_mode: bool = False


@dataclass
class WeatherConfig:
    base_url: str = "https://api.open-meteo.com/v1/forecast"
    forecast_days: int = 7
    retry_attempts: int = 3
    retry_delay_seconds: float = 5.0
    timeout_seconds: float = 10.0


@dataclass
class DaylightConfig:
    timezone: str | None = None  # None: host local zone
    skip_at_night: bool = True
    static_sunrise: str | None = "06:00"
    static_sunset: str | None = "18:00"


@dataclass
class EmailConfig:
    enabled: bool = False
    smtp_host: str = "smtp.gmail.com"
    smtp_port: int = 587
    sender: str | None = None
    password: str | None = None
    recipient: str | None = None
    timeout: float = 15.0


@dataclass
class PushoverConfig:
    token: str | None = None
    user: str | None = None
    enabled: bool = False


@dataclass
class StateConfig:
    path: str | None = None


@dataclass
class LoggingConfig:
    console_level: str = "INFO"
    console_quiet: bool = False
    debug_modules: list[str] = field(default_factory=list)
    structured_enabled: bool = False
    structured_path: str | None = None


@dataclass
class AppConfig:
    location: LocationConfig
    system: SystemConfig
    alert: AlertConfig
    weather: WeatherConfig
    daylight: DaylightConfig
    email: EmailConfig
    pushover: PushoverConfig
    state: StateConfig
    logging: LoggingConfig


TEST_MODE_THRESHOLD_KW = 5.0
TEST_MODE_DURATION_HOURS = 1


def _as_bool(value: str) -> bool:
    return value.strip().lower() in ("true", "1", "yes", "on")


def apply_env_overrides(cfg: AppConfig, environ=None) -> AppConfig:
    """Apply SOLAR_* environment overrides (credentials, thresholds, test mode)."""
    env = os.environ if environ is None else environ

    if env.get("SOLAR_TEST_MODE") == "1":
        cfg.alert.test_mode = True

    if v := env.get("SOLAR_EMAIL_PASSWORD"):
        cfg.email.password = v
    if v := env.get("SOLAR_EMAIL_SENDER"):
        cfg.email.sender = v
    if v := env.get("SOLAR_EMAIL_RECIPIENT"):
        cfg.email.recipient = v
    if v := env.get("SOLAR_PUSHOVER_USER_KEY"):
        cfg.pushover.user = v
    if v := env.get("SOLAR_PUSHOVER_API_TOKEN"):
        cfg.pushover.token = v

    if v := env.get("SOLAR_PRODUCTION_THRESHOLD_KW"):
        try:
            cfg.alert.production_threshold_kw = float(v)
        except ValueError:
            pass
    if v := env.get("SOLAR_DURATION_THRESHOLD_HOURS"):
        try:
            cfg.alert.duration_threshold_hours = int(v)
        except ValueError:
            pass

    if cfg.alert.test_mode:
        cfg.alert.production_threshold_kw = TEST_MODE_THRESHOLD_KW
        cfg.alert.duration_threshold_hours = TEST_MODE_DURATION_HOURS
        cfg.daylight.skip_at_night = False

    return cfg


def validate(cfg: AppConfig) -> None:
    if cfg.location.latitude == 0 or cfg.location.longitude == 0:
        raise ValueError("latitude and longitude must be configured in [location]")
    if cfg.system.rated_capacity_kw <= 0:
        raise ValueError("rated_capacity_kw must be greater than 0")
    if not 0 < cfg.system.inverter_efficiency <= 1:
        raise ValueError("inverter_efficiency must be in (0, 1]")
    if cfg.alert.duration_threshold_hours < 1:
        raise ValueError("duration_threshold_hours must be at least 1")
    if cfg.alert.analysis_window_hours < 1:
        raise ValueError("analysis_window_hours must be at least 1")
    if cfg.email.enabled and not (cfg.email.sender and cfg.email.password and cfg.email.recipient):
        raise ValueError("[email] enabled but sender/password/recipient not configured")


class Config:
    def __init__(self, path: str):
        self.path = Path(path).expanduser()
        self.parser = configparser.ConfigParser(inline_comment_prefixes=("#",))
        read = self.parser.read(self.path)
        if not read:
            raise FileNotFoundError(f"Config file not found: {self.path}")

    @classmethod
    def load(cls, path: str, *, environ=None) -> AppConfig:
        cfg = cls(path)

        p = cfg.parser

        def _maybe_float(raw: str | None) -> float | None:
            if raw is None:
                return None
            raw = raw.strip()
            if not raw:
                return None
            return float(raw)

        # --- Location ---
        if "location" not in p:
            raise ValueError("[location] section missing from config")
        loc_sec = p["location"]
        latitude = _maybe_float(loc_sec.get("latitude"))
        longitude = _maybe_float(loc_sec.get("longitude"))
        if latitude is None or longitude is None:
            raise ValueError("[location] requires latitude and longitude")
        location = LocationConfig(latitude=latitude, longitude=longitude)

        # --- System ---
        system_kwargs = {}
        if "system" in p:
            sys_sec = p["system"]
            if "rated_capacity_kw" in sys_sec:
                system_kwargs["rated_capacity_kw"] = float(sys_sec["rated_capacity_kw"])
            if "inverter_efficiency" in sys_sec:
                system_kwargs["inverter_efficiency"] = float(sys_sec["inverter_efficiency"])
            if "temp_coefficient" in sys_sec:
                system_kwargs["temp_coefficient"] = float(sys_sec["temp_coefficient"])
        system = SystemConfig(**system_kwargs)

        # --- Alert ---
        alert_kwargs = {}
        if "alert" in p:
            alert_sec = p["alert"]
            if "production_threshold_kw" in alert_sec:
                alert_kwargs["production_threshold_kw"] = float(alert_sec["production_threshold_kw"])
            if "duration_threshold_hours" in alert_sec:
                alert_kwargs["duration_threshold_hours"] = int(alert_sec["duration_threshold_hours"])
            if "daylight_ghi_threshold" in alert_sec:
                alert_kwargs["daylight_ghi_threshold"] = float(alert_sec["daylight_ghi_threshold"])
            if "analysis_window_hours" in alert_sec:
                alert_kwargs["analysis_window_hours"] = int(alert_sec["analysis_window_hours"])
            if "test_mode" in alert_sec:
                alert_kwargs["test_mode"] = _as_bool(alert_sec["test_mode"])
        alert = AlertConfig(**alert_kwargs)

        # --- Weather ---
        weather_kwargs = {}
        if "weather" in p:
            weather_sec = p["weather"]
            if "base_url" in weather_sec:
                weather_kwargs["base_url"] = weather_sec["base_url"]
            if "forecast_days" in weather_sec:
                weather_kwargs["forecast_days"] = int(weather_sec["forecast_days"])
            if "retry_attempts" in weather_sec:
                weather_kwargs["retry_attempts"] = max(1, int(weather_sec["retry_attempts"]))
            if "retry_delay_seconds" in weather_sec:
                weather_kwargs["retry_delay_seconds"] = float(weather_sec["retry_delay_seconds"])
            if "timeout_seconds" in weather_sec:
                weather_kwargs["timeout_seconds"] = float(weather_sec["timeout_seconds"])
        weather = WeatherConfig(**weather_kwargs)

        # --- Daylight ---
        daylight_kwargs = {}
        if "daylight" in p:
            daylight_sec = p["daylight"]
            if "timezone" in daylight_sec:
                daylight_kwargs["timezone"] = daylight_sec["timezone"].strip() or None
            if "skip_at_night" in daylight_sec:
                daylight_kwargs["skip_at_night"] = _as_bool(daylight_sec["skip_at_night"])
            if "static_sunrise" in daylight_sec:
                daylight_kwargs["static_sunrise"] = daylight_sec["static_sunrise"]
            if "static_sunset" in daylight_sec:
                daylight_kwargs["static_sunset"] = daylight_sec["static_sunset"]
        daylight = DaylightConfig(**daylight_kwargs)

        # --- Email ---
        email_kwargs = {}
        if "email" in p:
            email_sec = p["email"]
            if "enabled" in email_sec:
                email_kwargs["enabled"] = _as_bool(email_sec["enabled"])
            if "smtp_host" in email_sec:
                email_kwargs["smtp_host"] = email_sec["smtp_host"]
            if "smtp_port" in email_sec:
                email_kwargs["smtp_port"] = int(email_sec["smtp_port"])
            for key in ("sender", "password", "recipient"):
                if key in email_sec:
                    email_kwargs[key] = email_sec[key]
            if "timeout" in email_sec:
                email_kwargs["timeout"] = float(email_sec["timeout"])
        email = EmailConfig(**email_kwargs)

        # --- Pushover ---
        pushover_kwargs = {}
        if "pushover" in p:
            pushover_sec = p["pushover"]
            if "token" in pushover_sec:
                pushover_kwargs["token"] = pushover_sec["token"]
            if "user" in pushover_sec:
                pushover_kwargs["user"] = pushover_sec["user"]
            if "enabled" in pushover_sec:
                pushover_kwargs["enabled"] = _as_bool(pushover_sec["enabled"])
        pushover = PushoverConfig(**pushover_kwargs)

        # --- State ---
        state_kwargs = {}
        if "state" in p and "path" in p["state"]:
            state_kwargs["path"] = p["state"]["path"]
        state_cfg = StateConfig(**state_kwargs)

        logging_kwargs = {}
        if "logging" in p:
            logging_sec = p["logging"]
            if "console_level" in logging_sec:
                logging_kwargs["console_level"] = logging_sec["console_level"]
            if "console_quiet" in logging_sec:
                logging_kwargs["console_quiet"] = _as_bool(logging_sec["console_quiet"])
            if "debug_modules" in logging_sec:
                raw = logging_sec["debug_modules"]
                logging_kwargs["debug_modules"] = [x.strip() for x in raw.split(",") if x.strip()]
            if "structured_enabled" in logging_sec:
                logging_kwargs["structured_enabled"] = _as_bool(logging_sec["structured_enabled"])
            if "structured_path" in logging_sec:
                logging_kwargs["structured_path"] = logging_sec["structured_path"]
        logging_cfg = LoggingConfig(**logging_kwargs)

        app_cfg = AppConfig(
            location=location,
            system=system,
            alert=alert,
            weather=weather,
            daylight=daylight,
            email=email,
            pushover=pushover,
            state=state_cfg,
            logging=logging_cfg,
        )
        apply_env_overrides(app_cfg, environ)
        validate(app_cfg)
        return app_cfg
