from __future__ import annotations

from dataclasses import dataclass
from datetime import datetime


@dataclass(frozen=True)
class WeatherSample:
    """One hour of forecast data."""

    timestamp: datetime
    temperature_c: float
    cloud_cover_pct: float
    ghi_wm2: float
    relative_humidity_pct: float
    precipitation_probability_pct: float
