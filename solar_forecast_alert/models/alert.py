from __future__ import annotations

from dataclasses import dataclass, field
from datetime import date, datetime
from typing import List, Optional

from solar_forecast_alert.models.production import ProductionSample


@dataclass
class AlertCriteria:
    low_production_duration_triggered: bool = False
    # Mirrors the duration criterion today; separate so new criteria can be OR'ed in.
    any_triggered: bool = False


@dataclass
class LowProductionWindow:
    triggered: bool
    run_length: int
    run_start: Optional[datetime]
    run_end: Optional[datetime]
    run_samples: List[ProductionSample]
    recovery_hour: Optional[datetime]
    has_recovery: bool


@dataclass
class AlertAnalysis:
    criteria: AlertCriteria = field(default_factory=AlertCriteria)
    low_production_hours: List[ProductionSample] = field(default_factory=list)
    all_production_hours: List[ProductionSample] = field(default_factory=list)
    consecutive_hour_count: int = 0
    first_low_production_hour: Optional[datetime] = None
    last_low_production_hour: Optional[datetime] = None
    has_recovery: bool = False
    recovery_hour: Optional[datetime] = None
    hours_until_recovery: Optional[int] = None
    recommended_action: str = ""


@dataclass(frozen=True)
class AlertState:
    """Persisted alert bookkeeping; replaced, never mutated."""

    last_alert_date: Optional[date] = None
    alert_sent: bool = False
    alert_recovered: bool = False  # reserved
    recovery_notice_sent: bool = False

    def as_dict(self) -> dict:
        return {
            "last_alert_date": self.last_alert_date.isoformat() if self.last_alert_date else None,
            "alert_sent": self.alert_sent,
            "alert_recovered": self.alert_recovered,
            "recovery_email_sent": self.recovery_notice_sent,
        }

    @classmethod
    def from_dict(cls, raw: dict) -> "AlertState":
        raw_date = raw.get("last_alert_date")
        return cls(
            last_alert_date=date.fromisoformat(raw_date) if raw_date else None,
            alert_sent=bool(raw.get("alert_sent", False)),
            alert_recovered=bool(raw.get("alert_recovered", False)),
            recovery_notice_sent=bool(raw.get("recovery_email_sent", False)),
        )
