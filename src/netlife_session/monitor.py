from __future__ import annotations

import asyncio
import inspect
import logging
from typing import Any, Callable, Union

from netlife_session.activity_bus import ActivityBus
from netlife_session.config import AutoLogoutConfig, validate_auto_logout
from netlife_session.idle_tracker import IdleTracker, wall_clock_ms
from netlife_session.persistence import DiagnosticStore, MemoryDiagnosticStore
from netlife_session.types import LAST_ACTIVITY_KEY, LAST_LOGOUT_KEY, MonitorState, WarningSignal


TerminateCallback = Callable[[], Any]
WarningHandler = Callable[[WarningSignal], None]
SessionFlag = Union[bool, Callable[[], bool]]


class InactivityMonitor:
    """Warns, then ends the session, after a configured stretch of user inactivity.

    All state is touched from a single event loop: interaction listeners call
    ``record_activity`` and the polling task calls ``poll``. Idle time is
    recomputed from the clock on every poll, so a late or skipped tick only
    delays detection until the next one.
    """

    def __init__(
        self,
        config: AutoLogoutConfig,
        terminate: TerminateCallback,
        session_active: SessionFlag = True,
        *,
        bus: ActivityBus | None = None,
        store: DiagnosticStore | None = None,
        clock: Callable[[], float] | None = None,
    ) -> None:
        self.config = validate_auto_logout(config)
        self.terminate = terminate
        self.bus = bus or ActivityBus()
        self.store: DiagnosticStore = store if store is not None else MemoryDiagnosticStore()
        self.clock = clock or wall_clock_ms
        self.log = logging.getLogger("InactivityMonitor")

        self._session_active: SessionFlag = session_active
        self._tracker = IdleTracker(timeout_ms=config.inactivity_timeout_ms, clock=self.clock)
        self._warning_handlers: list[WarningHandler] = []
        self._attached_events: tuple[str, ...] = ()
        self._poll_task: asyncio.Task | None = None
        self._pending: set[asyncio.Task] = set()
        self.state = MonitorState.STOPPED
        self.warning_shown = False

    @property
    def last_activity_ms(self) -> float:
        return self._tracker.last_activity_ms

    @property
    def warning_threshold_ms(self) -> float:
        return self.config.inactivity_timeout_ms - self.config.warning_lead_time_ms

    @property
    def running(self) -> bool:
        return self._poll_task is not None

    def is_session_active(self) -> bool:
        flag = self._session_active
        return bool(flag()) if callable(flag) else bool(flag)

    def subscribe_warning(self, handler: WarningHandler) -> Callable[[], None]:
        self._warning_handlers.append(handler)

        def _unsubscribe() -> None:
            if handler in self._warning_handlers:
                self._warning_handlers.remove(handler)

        return _unsubscribe

    def publish_warning(self, signal: WarningSignal) -> None:
        for handler in list(self._warning_handlers):
            try:
                handler(signal)
            except Exception:
                self.log.exception("warning handler failed", extra={"event_type": "auto_logout_warning"})

    def record_activity(self, event_type: str | None = None) -> None:
        now = self._tracker.touch(self.clock())
        self.warning_shown = False
        if self.state == MonitorState.WARNING_SHOWN:
            self.state = MonitorState.IDLE_TRACKING
        self._persist(LAST_ACTIVITY_KEY, now)

    def poll(self) -> None:
        if self.state in (MonitorState.STOPPED, MonitorState.TERMINATED):
            return
        if not self.is_session_active():
            # Session ended elsewhere; a later start() re-arms from a fresh timestamp.
            self.end_session()
            return
        idle = self._tracker.idle_ms(self.clock())

        if idle >= self.warning_threshold_ms and not self.warning_shown:
            self.warning_shown = True
            self.state = MonitorState.WARNING_SHOWN
            remaining = self.config.inactivity_timeout_ms - idle
            self.log.info(
                "inactivity warning",
                extra={"event_type": "auto_logout_warning", "remaining_ms": remaining},
            )
            self.publish_warning(WarningSignal(message=self.config.warning_message, remaining_time_ms=remaining))

        if idle >= self.config.inactivity_timeout_ms:
            self._terminate()

    def get_remaining_time(self) -> float:
        return self._tracker.remaining_ms(self.clock())

    def get_time_since_last_activity(self) -> float:
        return self._tracker.idle_ms(self.clock())

    def start(self, session_active: SessionFlag | None = None) -> None:
        self.stop()
        if session_active is not None:
            self._session_active = session_active
        if not self.is_session_active():
            return

        loop = asyncio.get_running_loop()
        self._attached_events = tuple(self.config.activity_events)
        for event_type in self._attached_events:
            self.bus.add_listener(event_type, self.record_activity)
        self._poll_task = loop.create_task(self._poll_loop(), name="inactivity_poll")
        self.state = MonitorState.IDLE_TRACKING
        self.record_activity()
        self.log.info("activity monitor started", extra={"event_type": "activity_monitor_start"})

    def stop(self) -> None:
        was_running = self.running or bool(self._attached_events)
        for event_type in self._attached_events:
            self.bus.remove_listener(event_type, self.record_activity)
        self._attached_events = ()
        if self._poll_task is not None:
            if not self._poll_task.done():
                self._poll_task.cancel()
            self._poll_task = None
        self.warning_shown = False
        if self.state != MonitorState.TERMINATED:
            self.state = MonitorState.STOPPED
        if was_running:
            self.log.info("activity monitor stopped", extra={"event_type": "activity_monitor_stop"})

    def end_session(self) -> None:
        """Session ended outside the monitor; detach without calling ``terminate``."""
        self.stop()
        self.state = MonitorState.TERMINATED

    async def _poll_loop(self) -> None:
        interval = self.config.poll_interval_ms / 1000.0
        while True:
            await asyncio.sleep(interval)
            try:
                self.poll()
            except Exception:
                self.log.exception("inactivity poll failed")

    def _terminate(self) -> None:
        self.log.warning("auto-logout due to inactivity", extra={"event_type": "auto_logout"})
        self.end_session()
        try:
            result = self.terminate()
            if inspect.isawaitable(result):
                self._schedule(result)
        except Exception:
            self.log.exception("termination callback failed", extra={"event_type": "auto_logout"})
        self._persist(LAST_LOGOUT_KEY, self.clock())

    def _schedule(self, awaitable: Any) -> None:
        task = asyncio.ensure_future(awaitable)
        self._pending.add(task)
        task.add_done_callback(self._on_pending_done)

    def _on_pending_done(self, task: asyncio.Future) -> None:
        self._pending.discard(task)
        if task.cancelled():
            return
        exc = task.exception()
        if exc is not None:
            self.log.error("termination callback failed: %r", exc, extra={"event_type": "auto_logout"})

    def _persist(self, key: str, ts_ms: float) -> None:
        try:
            self.store.put(key, str(int(ts_ms)))
        except Exception:
            self.log.exception("diagnostic write failed", extra={"event_type": key})
