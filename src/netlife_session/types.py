from __future__ import annotations

from dataclasses import dataclass
from enum import Enum


DEFAULT_ACTIVITY_EVENTS: tuple[str, ...] = (
    "mousedown",
    "mousemove",
    "keypress",
    "scroll",
    "touchstart",
    "click",
)

LAST_ACTIVITY_KEY = "netlife_last_activity"
LAST_LOGOUT_KEY = "netlife_last_logout"


class MonitorState(str, Enum):
    STOPPED = "STOPPED"
    IDLE_TRACKING = "IDLE_TRACKING"
    WARNING_SHOWN = "WARNING_SHOWN"
    TERMINATED = "TERMINATED"


@dataclass(slots=True, frozen=True)
class WarningSignal:
    message: str
    remaining_time_ms: float
