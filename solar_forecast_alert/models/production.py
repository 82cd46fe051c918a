from __future__ import annotations

from dataclasses import dataclass
from datetime import datetime


@dataclass(frozen=True)
class ProductionSample:
    timestamp: datetime
    estimated_output_kw: float
    output_percentage: float  # of rated capacity, clamped 0-100

    # Weather context carried through for notifications
    cloud_cover_pct: float
    temperature_c: float
    ghi_wm2: float
    precipitation_probability_pct: float
