from dataclasses import dataclass
from datetime import datetime


@dataclass
class DaylightInfo:
    is_daylight: bool
    phase: str  # NIGHT, DAY
    sunrise: datetime
    sunset: datetime
    source: str  # astral, static
