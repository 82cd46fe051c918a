# solar_forecast_alert/services/notifiers/pushover.py

from __future__ import annotations

import urllib.error
import urllib.parse
import urllib.request

from solar_forecast_alert.config import PushoverConfig
from solar_forecast_alert.errors import DeliveryError
from solar_forecast_alert.models.alert import AlertAnalysis
from solar_forecast_alert.services.output_formatter import format_push_message


class PushoverNotifier:
    """Minimal Pushover client with helpful logging and validation."""

    API_URL = "https://api.pushover.net/1/messages.json"
    PLACEHOLDERS = {"YOUR_PUSHOVER_USER_KEY", "YOUR_PUSHOVER_API_TOKEN"}

    def __init__(self, cfg: PushoverConfig, log, *, opener=None):
        self.cfg = cfg
        self.log = log
        self._opener = opener or urllib.request.urlopen
        self._enabled = bool(
            cfg.enabled
            and cfg.token
            and cfg.user
            and cfg.token not in self.PLACEHOLDERS
            and cfg.user not in self.PLACEHOLDERS
        )

    @property
    def enabled(self) -> bool:
        return self._enabled

    # ------------------------------------------------------------------
    def _post(self, title: str, message: str, priority: int = 0) -> None:
        if not self._enabled:
            self.log.debug("[Pushover] Disabled; skipping message: %s", title)
            return

        data = urllib.parse.urlencode(
            {
                "token": self.cfg.token,
                "user": self.cfg.user,
                "title": title,
                "message": message,
                "priority": priority,
            }
        ).encode("utf-8")

        req = urllib.request.Request(self.API_URL, data=data)

        try:
            self._opener(req, timeout=15)
        except urllib.error.URLError as exc:
            self.log.warning("[Pushover] Failed to send message: %s", exc)
            raise DeliveryError(f"pushover delivery failed: {exc}") from exc
        self.log.info("[Pushover] Sent notification: %s", title)

    # ------------------------------------------------------------------
    def send_alert(self, analysis: AlertAnalysis, threshold_kw: float) -> None:
        self._post("Solar Production Alert", format_push_message(analysis, threshold_kw), priority=1)

    def send_recovery_notice(self) -> None:
        self._post(
            "Solar Production Recovered",
            "Forecast no longer shows a sustained low-production period.",
        )

