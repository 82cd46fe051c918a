# solar_forecast_alert/services/notifiers/email.py

from __future__ import annotations

import smtplib
from datetime import datetime
from email.message import EmailMessage

from solar_forecast_alert.config import EmailConfig
from solar_forecast_alert.errors import DeliveryError
from solar_forecast_alert.models.alert import AlertAnalysis
from solar_forecast_alert.services.daylight_policy import DEFAULT_DAYLIGHT_GHI_THRESHOLD
from solar_forecast_alert.services.output_formatter import (
    RECOVERY_SUBJECT,
    format_alert_subject,
    format_alert_text,
    format_recovery_text,
)


class EmailNotifier:
    """Plain-text SMTP (STARTTLS) notifier."""

    def __init__(
        self,
        cfg: EmailConfig,
        log,
        *,
        smtp_factory=smtplib.SMTP,
        clock=None,
        daylight_ghi_threshold: float = DEFAULT_DAYLIGHT_GHI_THRESHOLD,
    ):
        self.cfg = cfg
        self.log = log
        self._smtp_factory = smtp_factory
        self._clock = clock or (lambda: datetime.now().astimezone())
        self.daylight_ghi_threshold = daylight_ghi_threshold
        self._enabled = bool(cfg.enabled and cfg.sender and cfg.password and cfg.recipient)

    @property
    def enabled(self) -> bool:
        return self._enabled

    def _build(self, subject: str, body: str) -> EmailMessage:
        msg = EmailMessage()
        msg["Subject"] = subject
        msg["From"] = self.cfg.sender
        msg["To"] = self.cfg.recipient
        msg.set_content(body)
        return msg

    def _send(self, msg: EmailMessage) -> None:
        if not self._enabled:
            self.log.debug("[Email] Disabled; skipping message: %s", msg["Subject"])
            return
        try:
            with self._smtp_factory(self.cfg.smtp_host, self.cfg.smtp_port, timeout=self.cfg.timeout) as smtp:
                smtp.starttls()
                smtp.login(self.cfg.sender, self.cfg.password)
                smtp.send_message(msg)
        except (smtplib.SMTPException, OSError) as exc:
            self.log.error("[Email] Failed to send %r: %s", msg["Subject"], exc)
            raise DeliveryError(f"email delivery failed: {exc}") from exc
        self.log.info("[Email] Sent %r to %s", msg["Subject"], self.cfg.recipient)

    # ------------------------------------------------------------------
    def send_alert(self, analysis: AlertAnalysis, threshold_kw: float) -> None:
        body = format_alert_text(
            analysis,
            threshold_kw,
            now=self._clock(),
            daylight_ghi_threshold=self.daylight_ghi_threshold,
        )
        self._send(self._build(format_alert_subject(analysis), body))

    def send_recovery_notice(self) -> None:
        self._send(self._build(RECOVERY_SUBJECT, format_recovery_text(self._clock())))
