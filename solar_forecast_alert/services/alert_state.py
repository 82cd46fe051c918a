from __future__ import annotations

from dataclasses import replace
from datetime import date
from enum import Enum
from typing import Tuple

from solar_forecast_alert.errors import PersistenceError
from solar_forecast_alert.models.alert import AlertAnalysis, AlertState


class AlertPhase(str, Enum):
    IDLE = "idle"
    ALERT_ACTIVE = "alert_active"
    RECOVERY_SENT = "recovery_sent"


class AlertAction(str, Enum):
    SEND_ALERT = "send_alert"
    SEND_RECOVERY = "send_recovery"
    SUPPRESSED = "suppressed"  # triggered, but already alerted today
    NONE = "none"


# Pure transitions -----------------------------------------------------

def phase_of(state: AlertState) -> AlertPhase:
    if not state.alert_sent:
        return AlertPhase.IDLE
    if state.recovery_notice_sent:
        return AlertPhase.RECOVERY_SENT
    return AlertPhase.ALERT_ACTIVE


def reset_if_new_day(state: AlertState, today: date) -> Tuple[AlertState, bool]:
    """Clear all flags when the last alert date is before ``today``."""
    if state.last_alert_date is None or state.last_alert_date >= today:
        return state, False
    return AlertState(last_alert_date=today), True


def decide(state: AlertState, analysis: AlertAnalysis) -> AlertAction:
    phase = phase_of(state)
    if not analysis.criteria.any_triggered:
        if phase is AlertPhase.ALERT_ACTIVE:
            return AlertAction.SEND_RECOVERY
        return AlertAction.NONE
    # A second event after RECOVERY_SENT on the same day is suppressed too;
    # alert_sent stays true until the daily reset.
    if phase is AlertPhase.IDLE:
        return AlertAction.SEND_ALERT
    return AlertAction.SUPPRESSED


def mark_alert_sent(state: AlertState, today: date) -> AlertState:
    return replace(state, last_alert_date=today, alert_sent=True)


def mark_recovery_notice_sent(state: AlertState) -> AlertState:
    return replace(state, recovery_notice_sent=True)


# Effectful manager ------------------------------------------------------

class AlertStateManager:
    """
    Applies the alert/recovery transitions for one evaluation cycle.

    The daily reset is applied before anything else, so a stale alert from a
    previous day can never produce a recovery notice. Notifications go out
    first and state is saved afterwards: a crash in between re-sends on the
    next cycle rather than silently dropping the message.
    """

    def __init__(self, store, notifier, log):
        self.store = store
        self.notifier = notifier
        self.log = log

    def load(self, today: date) -> Tuple[AlertState, bool]:
        try:
            state = self.store.load()
        except PersistenceError as exc:
            self.log.warning("Could not read alert state (%s); starting from an empty state.", exc)
            state = AlertState()

        state, was_reset = reset_if_new_day(state, today)
        if was_reset:
            self.log.info("New day detected (%s); alert state reset.", today.isoformat())
        self.log.debug(
            "Alert state: last_alert_date=%s alert_sent=%s recovery_notice_sent=%s",
            state.last_alert_date,
            state.alert_sent,
            state.recovery_notice_sent,
        )
        return state, was_reset

    def apply(
        self,
        state: AlertState,
        analysis: AlertAnalysis,
        today: date,
        *,
        was_reset: bool = False,
    ) -> Tuple[AlertAction, AlertState]:
        action = decide(state, analysis)

        if action is AlertAction.SEND_ALERT:
            self.log.warning(
                "Low production forecast: %d hours below threshold; sending alert.",
                analysis.consecutive_hour_count,
            )
            self.notifier.send_alert(analysis)
            new_state = mark_alert_sent(state, today)
        elif action is AlertAction.SEND_RECOVERY:
            self.log.info("Conditions recovered since today's alert; sending recovery notice.")
            self.notifier.send_recovery_notice()
            new_state = mark_recovery_notice_sent(state)
        elif action is AlertAction.SUPPRESSED:
            self.log.info("Alert already sent today; skipping.")
            new_state = state
        else:
            self.log.debug("No alert criteria triggered and no recovery notice due.")
            new_state = state

        if new_state != state or was_reset:
            self.store.save(new_state)

        return action, new_state

    def evaluate(self, analysis: AlertAnalysis, today: date) -> Tuple[AlertAction, AlertState]:
        state, was_reset = self.load(today)
        return self.apply(state, analysis, today, was_reset=was_reset)
