# solar_forecast_alert/services/notification_manager.py

from __future__ import annotations

from solar_forecast_alert.config import EmailConfig, PushoverConfig
from solar_forecast_alert.errors import DeliveryError
from solar_forecast_alert.models.alert import AlertAnalysis
from solar_forecast_alert.services.daylight_policy import DEFAULT_DAYLIGHT_GHI_THRESHOLD
from solar_forecast_alert.services.notifiers.email import EmailNotifier
from solar_forecast_alert.services.notifiers.pushover import PushoverNotifier


class NotificationManager:
    """
    Coordinates outbound notifications (email + Pushover).

    Email is the delivery-critical channel: its failure raises DeliveryError so
    the state machine does not record the notification. Pushover is
    best-effort alongside email, and becomes the critical channel when email
    is disabled.
    """

    def __init__(
        self,
        email_cfg: EmailConfig,
        pushover_cfg: PushoverConfig,
        log,
        *,
        threshold_kw: float,
        daylight_ghi_threshold: float = DEFAULT_DAYLIGHT_GHI_THRESHOLD,
        email: EmailNotifier | None = None,
        pushover: PushoverNotifier | None = None,
    ):
        self.log = log
        self.threshold_kw = threshold_kw
        self.email = email or EmailNotifier(email_cfg, log, daylight_ghi_threshold=daylight_ghi_threshold)
        self.pushover = pushover or PushoverNotifier(pushover_cfg, log)

    # ------------------------------------------------------------------
    def _dispatch(self, label: str, send_email, send_push) -> None:
        if not self.email.enabled and not self.pushover.enabled:
            self.log.warning("No notification channel enabled; %s not delivered.", label)
            return

        if self.email.enabled:
            send_email()
            if self.pushover.enabled:
                try:
                    send_push()
                except DeliveryError as exc:
                    self.log.warning("Push %s failed (email delivered): %s", label, exc)
            return

        send_push()

    # ------------------------------------------------------------------
    def send_alert(self, analysis: AlertAnalysis) -> None:
        self._dispatch(
            "alert",
            lambda: self.email.send_alert(analysis, self.threshold_kw),
            lambda: self.pushover.send_alert(analysis, self.threshold_kw),
        )

    def send_recovery_notice(self) -> None:
        self._dispatch(
            "recovery notice",
            self.email.send_recovery_notice,
            self.pushover.send_recovery_notice,
        )

