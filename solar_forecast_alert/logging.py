from __future__ import annotations

import json
import logging
import sys
from dataclasses import dataclass, asdict, is_dataclass
from datetime import date, datetime
from enum import Enum
from pathlib import Path
from typing import Any, Iterable, Optional


LOGGER_NAME = "solar_forecast"

# Chatty libraries kept at WARNING unless --debug asks for more.
NOISY_LIBRARIES = ("urllib3", "requests")

CONSOLE_FORMAT = "%(asctime)s %(levelname)-7s [%(name)s] %(message)s"


class ConsoleLog:
    """Console handler on the root logger; per-module DEBUG via ``debug_modules``."""

    def __init__(
        self,
        level: str = "INFO",
        quiet: bool = False,
        debug_modules: Iterable[str] | None = None,
        verbose_libraries: bool = False,
    ):
        self.level = level.upper()
        self.quiet = quiet
        self.debug_modules = list(debug_modules or [])
        self.verbose_libraries = verbose_libraries

    def setup(self) -> logging.Logger:
        root = logging.getLogger()
        root.handlers.clear()
        root.setLevel(logging.DEBUG)

        if not self.quiet:
            handler = logging.StreamHandler(sys.stdout)
            handler.setLevel(getattr(logging, self.level, logging.INFO))
            handler.setFormatter(logging.Formatter(CONSOLE_FORMAT, datefmt="%Y-%m-%d %H:%M:%S"))
            root.addHandler(handler)

        library_level = logging.INFO if self.verbose_libraries else logging.WARNING
        for name in NOISY_LIBRARIES:
            logging.getLogger(name).setLevel(library_level)

        for name in self.debug_modules:
            logging.getLogger(name).setLevel(logging.DEBUG)

        return logging.getLogger(LOGGER_NAME)


def _iso(value: Optional[datetime]) -> Optional[str]:
    return value.isoformat() if value else None


@dataclass
class RunLogEntry:
    """One line of the structured run log, written per ``check`` invocation."""

    timestamp: str
    command: str
    action: str | None
    triggered: bool | None
    consecutive_hours: int | None
    first_low_hour: str | None
    last_low_hour: str | None
    has_recovery: bool | None
    recovery_hour: str | None
    hours_until_recovery: int | None
    forecast_hours: int | None
    state: dict[str, Any] | None
    error: str | None = None

    @classmethod
    def for_cycle(cls, now: datetime, command: str, result=None, error: str | None = None) -> "RunLogEntry":
        """Build an entry from a cycle result; a failed cycle carries only ``error``."""
        analysis = result.analysis if result else None
        return cls(
            timestamp=now.isoformat(),
            command=command,
            action=result.action if result else None,
            triggered=analysis.criteria.any_triggered if analysis else None,
            consecutive_hours=analysis.consecutive_hour_count if analysis else None,
            first_low_hour=_iso(analysis.first_low_production_hour) if analysis else None,
            last_low_hour=_iso(analysis.last_low_production_hour) if analysis else None,
            has_recovery=analysis.has_recovery if analysis else None,
            recovery_hour=_iso(analysis.recovery_hour) if analysis else None,
            hours_until_recovery=analysis.hours_until_recovery if analysis else None,
            forecast_hours=result.forecast_hours if result else None,
            state=result.state.as_dict() if result else None,
            error=error,
        )


def _to_jsonable(obj: Any) -> Any:
    if obj is None or isinstance(obj, (bool, int, float, str)):
        return obj
    if isinstance(obj, Enum):
        return obj.value
    if isinstance(obj, (datetime, date)):
        return obj.isoformat()
    if isinstance(obj, Path):
        return str(obj)
    if is_dataclass(obj):
        return _to_jsonable(asdict(obj))
    if isinstance(obj, dict):
        return {str(k): _to_jsonable(v) for k, v in obj.items()}
    if isinstance(obj, (list, tuple)):
        return [_to_jsonable(x) for x in obj]
    return str(obj)


class StructuredLog:
    """Append-only JSONL run log. Disabled unless both enabled and given a path."""

    def __init__(self, path: str | None, enabled: bool = False):
        self.path = Path(path).expanduser() if path else None
        self.enabled = bool(enabled and self.path)
        if self.enabled:
            self.path.parent.mkdir(parents=True, exist_ok=True)

    def write(self, entry: RunLogEntry) -> None:
        if not self.enabled:
            return
        line = json.dumps(_to_jsonable(entry), sort_keys=True)
        try:
            with self.path.open("a", encoding="utf-8") as fh:
                fh.write(line + "\n")
        except OSError as exc:
            # The run log must never fail a cycle.
            logging.getLogger(LOGGER_NAME).warning("Structured log write to %s failed: %s", self.path, exc)


def get_logger(name: str) -> logging.Logger:
    return logging.getLogger(name)
