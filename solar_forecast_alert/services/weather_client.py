from __future__ import annotations

import time
from dataclasses import dataclass
from datetime import datetime
from typing import Any, Callable, List, Optional
from zoneinfo import ZoneInfo, ZoneInfoNotFoundError

import requests

from solar_forecast_alert.config import WeatherConfig
from solar_forecast_alert.errors import TransientError
from solar_forecast_alert.models.weather import WeatherSample


HOURLY_FIELDS = (
    "temperature_2m",
    "cloud_cover",
    "shortwave_radiation",
    "relative_humidity_2m",
    "precipitation_probability",
)
MAX_FORECAST_HOURS = 168
USER_AGENT = "SolarForecastAlert/1.0"


def _parse_time(ts: str | None, tz: ZoneInfo) -> Optional[datetime]:
    if not ts:
        return None
    try:
        dt = datetime.fromisoformat(ts)
    except ValueError:
        return None
    if dt.tzinfo is None:
        dt = dt.replace(tzinfo=tz)
    return dt


def _clamp_pct(value: float) -> float:
    return max(0.0, min(100.0, float(value)))


@dataclass
class WeatherClient:
    """Open-Meteo hourly forecast provider."""

    cfg: WeatherConfig
    log: Any
    session: Optional[requests.Session] = None
    sleep: Callable[[float], None] = time.sleep

    def __post_init__(self):
        if self.session is None:
            self.session = requests.Session()
            self.session.headers["User-Agent"] = USER_AGENT

    def get_forecast(self, latitude: float, longitude: float) -> List[WeatherSample]:
        params = {
            "latitude": f"{latitude:.2f}",
            "longitude": f"{longitude:.2f}",
            "hourly": ",".join(HOURLY_FIELDS),
            "forecast_days": self.cfg.forecast_days,
            "timezone": "auto",
        }

        attempts = max(1, self.cfg.retry_attempts)
        last_exc: Exception | None = None
        for attempt in range(attempts):
            if attempt > 0:
                self.log.info(
                    "Retrying Open-Meteo (attempt %d/%d) in %.0fs",
                    attempt + 1,
                    attempts,
                    self.cfg.retry_delay_seconds,
                )
                self.sleep(self.cfg.retry_delay_seconds)
            try:
                resp = self.session.get(self.cfg.base_url, params=params, timeout=self.cfg.timeout_seconds)
                resp.raise_for_status()
                data = resp.json()
                samples = self._parse(data)
            except (requests.RequestException, ValueError, TransientError) as exc:
                last_exc = exc
                self.log.warning("Weather fetch failed (attempt %d/%d): %s", attempt + 1, attempts, exc)
                continue

            self.log.info("Fetched %d forecast hours from Open-Meteo", len(samples))
            return samples

        raise TransientError(f"failed to get forecast after {attempts} attempts: {last_exc}")

    def _parse(self, data: Any) -> List[WeatherSample]:
        if not isinstance(data, dict):
            raise TransientError("Open-Meteo returned an unexpected payload")

        tzname = data.get("timezone") or "UTC"
        try:
            tz = ZoneInfo(tzname)
        except (ZoneInfoNotFoundError, ValueError):
            self.log.warning("Unknown forecast timezone %r; assuming UTC", tzname)
            tz = ZoneInfo("UTC")

        hourly = data.get("hourly") or {}
        series = {name: list(hourly.get(name) or []) for name in HOURLY_FIELDS}
        times = list(hourly.get("time") or [])
        count = min([len(times)] + [len(values) for values in series.values()])
        count = min(count, MAX_FORECAST_HOURS)

        samples: list[WeatherSample] = []
        for idx in range(count):
            ts = _parse_time(times[idx], tz)
            if ts is None:
                self.log.debug("Skipping forecast hour with unparseable time %r", times[idx])
                continue
            row = {name: series[name][idx] for name in HOURLY_FIELDS}
            if any(value is None for value in row.values()):
                self.log.debug("Skipping forecast hour %s with missing values", times[idx])
                continue
            samples.append(
                WeatherSample(
                    timestamp=ts,
                    temperature_c=float(row["temperature_2m"]),
                    cloud_cover_pct=_clamp_pct(row["cloud_cover"]),
                    ghi_wm2=max(0.0, float(row["shortwave_radiation"])),
                    relative_humidity_pct=_clamp_pct(row["relative_humidity_2m"]),
                    precipitation_probability_pct=_clamp_pct(row["precipitation_probability"]),
                )
            )

        if not samples:
            raise TransientError("no valid forecast hours extracted")
        return samples
