# clinic/maintenance.py
import json
import logging
import os
from dataclasses import dataclass
from typing import Optional
from datetime import datetime, timedelta

from .core.config import settings

logger = logging.getLogger(__name__)


@dataclass
class MaintenanceState:
    start_time: datetime
    end_time: Optional[datetime]
    message: str

    def is_expired(self, now: datetime) -> bool:
        return self.end_time is not None and now >= self.end_time


def _path(path: Optional[str]) -> str:
    return path or settings.MAINTENANCE_FILE


def enable(duration_minutes: Optional[int] = None, message: Optional[str] = None,
           path: Optional[str] = None, now: Optional[datetime] = None) -> MaintenanceState:
    now = now or datetime.now()
    state = MaintenanceState(
        start_time=now,
        end_time=now + timedelta(minutes=duration_minutes) if duration_minutes else None,
        message=message or settings.MAINTENANCE_DEFAULT_MESSAGE,
    )
    with open(_path(path), "w", encoding="utf-8") as fh:
        json.dump({
            "start_time": state.start_time.isoformat(),
            "end_time": state.end_time.isoformat() if state.end_time else None,
            "message": state.message,
        }, fh)
    logger.info("Maintenance mode enabled")
    return state


def disable(path: Optional[str] = None) -> bool:
    try:
        os.remove(_path(path))
    except FileNotFoundError:
        return False
    logger.info("Maintenance mode disabled")
    return True


def _when(value: str) -> datetime:
    parsed = datetime.fromisoformat(value)
    if parsed.tzinfo is not None:
        parsed = parsed.astimezone().replace(tzinfo=None)
    return parsed


def _parse(raw) -> MaintenanceState:
    if not isinstance(raw, dict):
        raise ValueError("maintenance file must hold a JSON object")
    start, end, message = raw.get("start_time"), raw.get("end_time"), raw.get("message")
    return MaintenanceState(
        start_time=_when(start) if start else datetime.now(),
        end_time=_when(end) if end else None,
        message=message if isinstance(message, str) and message else settings.MAINTENANCE_DEFAULT_MESSAGE,
    )


def read_state(path: Optional[str] = None) -> Optional[MaintenanceState]:
    try:
        with open(_path(path), encoding="utf-8") as fh:
            return _parse(json.load(fh))
    except FileNotFoundError:
        return None
    except (OSError, ValueError, TypeError) as e:
        # an unreadable lock still means maintenance
        logger.error(f"Invalid maintenance file: {e}")
        return MaintenanceState(start_time=datetime.now(), end_time=None, message=settings.MAINTENANCE_DEFAULT_MESSAGE)


def active_state(path: Optional[str] = None, now: Optional[datetime] = None) -> Optional[MaintenanceState]:
    """Current maintenance state; an expired lock file is removed."""
    state = read_state(path)
    if state is None:
        return None
    if state.is_expired(now or datetime.now()):
        disable(path)
        return None
    return state
