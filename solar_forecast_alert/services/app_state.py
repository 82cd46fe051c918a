# solar_forecast_alert/services/app_state.py

from __future__ import annotations

import json
import logging
import sqlite3
from datetime import datetime, timezone
from pathlib import Path
from typing import Any, Dict, Optional, Tuple, Union

from solar_forecast_alert.errors import PersistenceError
from solar_forecast_alert.models.alert import AlertState


ALERT_STATE_KEY = "alert_state"
DEFAULT_STATE_PATH = Path.home() / ".solar_forecast_alert_state.db"

_SCHEMA = """
CREATE TABLE IF NOT EXISTS kv_store (
    key TEXT PRIMARY KEY,
    value TEXT NOT NULL,
    updated_at TEXT NOT NULL
)
"""


class AppState:
    """
    Durable home of the alert state between cron runs.

    Values are JSON documents in a single SQLite ``kv_store`` table. With
    ``persist=False`` everything lives in a dict, which the ``analyze`` dry
    run uses so it can never touch the real state file.
    """

    def __init__(self, path: Optional[Union[Path, str]] = None, *, persist: bool = True):
        self._log = logging.getLogger("solar_forecast.state")
        self._conn: Optional[sqlite3.Connection] = None
        self._memory: Dict[str, Tuple[Any, str]] = {}
        self.path: Optional[Path] = None

        if persist:
            self.path = Path(path).expanduser() if path else DEFAULT_STATE_PATH

    @property
    def persistent(self) -> bool:
        return self.path is not None

    def _connection(self) -> sqlite3.Connection:
        """Open the database on first use; a damaged file raises PersistenceError."""
        if self._conn is not None:
            return self._conn
        conn = None
        try:
            self.path.parent.mkdir(parents=True, exist_ok=True)
            conn = sqlite3.connect(self.path)
            conn.execute("PRAGMA journal_mode=WAL")
            with conn:
                conn.execute(_SCHEMA)
        except (sqlite3.Error, OSError) as exc:
            if conn is not None:
                conn.close()
            raise PersistenceError(f"cannot open state database {self.path}: {exc}") from exc
        self._conn = conn
        return conn

    # ------------------------------------------------------------------
    def _row(self, key: str) -> Optional[Tuple[Any, str]]:
        if not self.persistent:
            return self._memory.get(key)
        row = self._connection().execute(
            "SELECT value, updated_at FROM kv_store WHERE key = ?", (key,)
        ).fetchone()
        if row is None:
            return None
        return json.loads(row[0]), row[1]

    def get(self, key: str, default=None):
        row = self._row(key)
        return default if row is None else row[0]

    def set(self, key: str, value) -> None:
        stamp = datetime.now(timezone.utc).isoformat(timespec="seconds")
        if not self.persistent:
            self._memory[key] = (value, stamp)
            return
        conn = self._connection()
        with conn:
            conn.execute(
                "INSERT OR REPLACE INTO kv_store(key, value, updated_at) VALUES (?, ?, ?)",
                (key, json.dumps(value), stamp),
            )

    # Alert state -----------------------------------------------------
    def load(self) -> AlertState:
        """Stored alert state, or an empty one; unreadable data raises PersistenceError."""
        try:
            raw = self.get(ALERT_STATE_KEY)
        except (sqlite3.Error, json.JSONDecodeError) as exc:
            raise PersistenceError(f"failed to read alert state: {exc}") from exc
        if raw is None:
            self._log.debug("No alert state stored; returning empty state")
            return AlertState()
        if not isinstance(raw, dict):
            raise PersistenceError(f"malformed alert state: {raw!r}")
        try:
            return AlertState.from_dict(raw)
        except (ValueError, TypeError) as exc:
            raise PersistenceError(f"failed to parse alert state: {exc}") from exc

    def save(self, state: AlertState) -> None:
        try:
            self.set(ALERT_STATE_KEY, state.as_dict())
        except sqlite3.Error as exc:
            raise PersistenceError(f"failed to write alert state: {exc}") from exc
        self._log.debug("Saved alert state: %s", state.as_dict())

    def saved_at(self) -> Optional[str]:
        try:
            row = self._row(ALERT_STATE_KEY)
        except (sqlite3.Error, json.JSONDecodeError) as exc:
            raise PersistenceError(f"failed to read alert state: {exc}") from exc
        return row[1] if row else None

    def clear(self) -> None:
        self.save(AlertState())

    def close(self) -> None:
        if self._conn is not None:
            self._conn.close()
            self._conn = None
