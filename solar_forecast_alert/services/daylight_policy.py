from __future__ import annotations

from datetime import datetime, time, timedelta, tzinfo
from typing import Iterable, List, TypeVar
from zoneinfo import ZoneInfo

from astral import Observer
from astral.sun import sun

from solar_forecast_alert.config import DaylightConfig
from solar_forecast_alert.models.daylight import DaylightInfo


DEFAULT_DAYLIGHT_GHI_THRESHOLD = 50.0

S = TypeVar("S")


def filter_daylight(samples: Iterable[S], ghi_threshold: float = DEFAULT_DAYLIGHT_GHI_THRESHOLD) -> List[S]:
    """
    Keep samples whose irradiance meets ``ghi_threshold``, in input order.

    Irradiance tracks seasonal sunrise/sunset drift, which fixed clock hours do not.
    Accepts anything with a ``ghi_wm2`` attribute (weather or production samples).
    """
    return [s for s in samples if s.ghi_wm2 >= ghi_threshold]


class DaylightPolicy:
    """Sunrise/sunset lookup used to skip forecast checks overnight."""

    def __init__(self, cfg: DaylightConfig, latitude: float, longitude: float, log):
        self.cfg = cfg
        self.log = log
        self._tz: tzinfo = ZoneInfo(cfg.timezone) if cfg.timezone else datetime.now().astimezone().tzinfo
        self._observer = Observer(latitude=latitude, longitude=longitude)

        self._static_sunrise = self._parse_time(cfg.static_sunrise) or time(6, 0)
        self._static_sunset = self._parse_time(cfg.static_sunset) or time(18, 0)

    @staticmethod
    def _parse_time(raw: str | None) -> time | None:
        if not raw:
            return None
        text = raw.strip()
        if not text:
            return None
        parts = text.split(":")
        hour = int(parts[0])
        minute = int(parts[1]) if len(parts) > 1 else 0
        return time(hour=hour, minute=minute)

    def _sun_times(self, local_date) -> tuple[datetime, datetime, str]:
        try:
            data = sun(self._observer, date=local_date, tzinfo=self._tz)
            sunrise = data["sunrise"]
            sunset = data["sunset"]
            source = "astral"
        except ValueError as exc:
            # astral raises when the sun never rises or never sets (polar day/night)
            self.log.debug("astral could not resolve sun times for %s: %s", local_date, exc)
            sunrise = datetime.combine(local_date, self._static_sunrise, tzinfo=self._tz)
            sunset = datetime.combine(local_date, self._static_sunset, tzinfo=self._tz)
            source = "static"

        if sunset <= sunrise:
            sunset = sunrise + timedelta(hours=12)

        return sunrise, sunset, source

    @property
    def timezone(self) -> tzinfo:
        return self._tz

    def localize(self, now: datetime) -> datetime:
        if now.tzinfo is None:
            self.log.warning(
                "DaylightPolicy received naive datetime; assuming %s timezone",
                self._tz,
            )
            return now.replace(tzinfo=self._tz)
        return now.astimezone(self._tz)

    def get_info(self, now: datetime) -> DaylightInfo:
        local_now = self.localize(now)
        sunrise, sunset, source = self._sun_times(local_now.date())

        is_daylight = sunrise <= local_now < sunset
        phase = "DAY" if is_daylight else "NIGHT"

        self.log.debug(
            "Daylight policy: phase=%s, sunrise=%s, sunset=%s (%s)",
            phase,
            sunrise,
            sunset,
            source,
        )

        return DaylightInfo(
            is_daylight=is_daylight,
            phase=phase,
            sunrise=sunrise,
            sunset=sunset,
            source=source,
        )

    def should_skip(self, now: datetime) -> bool:
        if not self.cfg.skip_at_night:
            return False
        return not self.get_info(now).is_daylight
