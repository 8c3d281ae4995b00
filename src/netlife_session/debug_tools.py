from __future__ import annotations

import logging
from datetime import datetime, timezone
from typing import Any, Callable

from netlife_session.activity_bus import ActivityBus
from netlife_session.config import AutoLogoutConfig
from netlife_session.idle_tracker import wall_clock_ms
from netlife_session.monitor import InactivityMonitor
from netlife_session.persistence import DiagnosticStore
from netlife_session.types import LAST_ACTIVITY_KEY, LAST_LOGOUT_KEY, WarningSignal


TEST_WARNING_MS = 5 * 60 * 1000


def _iso(ts_ms: float | None) -> str | None:
    if ts_ms is None:
        return None
    return datetime.fromtimestamp(ts_ms / 1000.0, tz=timezone.utc).isoformat()


class AutoLogoutDebugTools:
    """Inspection helpers built on the diagnostic store, never on monitor state."""

    def __init__(
        self,
        config: AutoLogoutConfig,
        store: DiagnosticStore,
        bus: ActivityBus | None = None,
        monitor: InactivityMonitor | None = None,
        clock: Callable[[], float] | None = None,
    ) -> None:
        self.config = config
        self.store = store
        self.bus = bus
        self.monitor = monitor
        self.clock = clock or wall_clock_ms
        self.log = logging.getLogger("AutoLogoutDebugTools")

    def get_config(self) -> AutoLogoutConfig:
        return self.config

    def simulate_activity(self) -> int:
        if self.bus is None:
            return 0
        delivered = self.bus.dispatch("mousemove")
        self.log.info("activity simulated", extra={"event_type": "mousemove"})
        return delivered

    def _stored_ts(self, key: str) -> float | None:
        raw = self.store.get(key)
        if raw is None:
            return None
        return float(raw)

    def get_remaining_time(self) -> float | None:
        last = self._stored_ts(LAST_ACTIVITY_KEY)
        if last is None:
            return None
        return max(0.0, self.config.inactivity_timeout_ms - (self.clock() - last))

    def trigger_warning(self) -> WarningSignal | None:
        if self.monitor is None:
            return None
        signal = WarningSignal(
            message="Test warning - you will be logged out in 5 minutes.",
            remaining_time_ms=TEST_WARNING_MS,
        )
        self.monitor.publish_warning(signal)
        self.log.info("warning triggered for testing", extra={"event_type": "auto_logout_warning"})
        return signal

    def clear_storage(self) -> None:
        self.store.delete(LAST_ACTIVITY_KEY)
        self.store.delete(LAST_LOGOUT_KEY)

    def get_debug_info(self) -> dict[str, Any]:
        remaining = self.get_remaining_time()
        return {
            "config": {
                "inactivity_timeout_min": self.config.inactivity_timeout_ms / 1000 / 60,
                "warning_lead_time_min": self.config.warning_lead_time_ms / 1000 / 60,
                "poll_interval_sec": self.config.poll_interval_ms / 1000,
            },
            "storage": {
                "last_activity": _iso(self._stored_ts(LAST_ACTIVITY_KEY)),
                "last_logout": _iso(self._stored_ts(LAST_LOGOUT_KEY)),
            },
            "current_time": _iso(self.clock()),
            "remaining_min": None if remaining is None else remaining / 1000 / 60,
        }
