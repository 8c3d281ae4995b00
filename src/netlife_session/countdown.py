from __future__ import annotations

import asyncio
import logging
from typing import Callable

from netlife_session.monitor import InactivityMonitor, SessionFlag
from netlife_session.types import WarningSignal


DEFAULT_REMAINING_SEC = 300


def format_time(seconds: int) -> str:
    minutes, secs = divmod(max(0, int(seconds)), 60)
    return f"{minutes}:{secs:02d}"


class WarningCountdown:
    """View-model behind the session-timeout dialog.

    Shows the remaining time once a warning arrives, counts it down once per
    tick and logs out when it reaches zero. Rendering is left to the caller.
    """

    def __init__(
        self,
        monitor: InactivityMonitor,
        logout: Callable[[], None],
        session_active: SessionFlag = True,
        *,
        tick_sec: float = 1.0,
    ) -> None:
        self.monitor = monitor
        self.logout = logout
        self.tick_sec = tick_sec
        self.log = logging.getLogger("WarningCountdown")
        self._session_active = session_active
        self.visible = False
        self.message = ""
        self.remaining_sec = DEFAULT_REMAINING_SEC
        self._task: asyncio.Task | None = None
        self._unsubscribe = monitor.subscribe_warning(self.on_warning)

    def is_session_active(self) -> bool:
        flag = self._session_active
        return bool(flag()) if callable(flag) else bool(flag)

    @property
    def display(self) -> str:
        return format_time(self.remaining_sec)

    def on_warning(self, signal: WarningSignal) -> None:
        self.visible = True
        self.message = signal.message
        self.remaining_sec = int(signal.remaining_time_ms // 1000)
        self._start_ticker()

    def tick(self) -> None:
        if not self.visible:
            return
        if not self.is_session_active():
            self.hide()
            return
        if self.remaining_sec <= 1:
            self.remaining_sec = 0
            self._cancel_ticker()
            self.visible = False
            self.log.info("countdown expired", extra={"event_type": "auto_logout"})
            self._invoke_logout()
            return
        self.remaining_sec -= 1

    def stay_logged_in(self) -> None:
        self.hide()
        self.monitor.record_activity()

    def logout_now(self) -> None:
        self._invoke_logout()

    def hide(self) -> None:
        self._cancel_ticker()
        self.visible = False
        self.remaining_sec = DEFAULT_REMAINING_SEC

    def close(self) -> None:
        self._unsubscribe()
        self._cancel_ticker()

    def _invoke_logout(self) -> None:
        try:
            self.logout()
        except Exception:
            self.log.exception("logout failed")

    def _start_ticker(self) -> None:
        self._cancel_ticker()
        try:
            loop = asyncio.get_running_loop()
        except RuntimeError:
            # No loop: the owner drives tick() itself.
            return
        self._task = loop.create_task(self._tick_loop(), name="warning_countdown")

    def _cancel_ticker(self) -> None:
        if self._task is not None:
            if not self._task.done() and self._task is not asyncio.current_task():
                self._task.cancel()
            self._task = None

    async def _tick_loop(self) -> None:
        while self.visible:
            await asyncio.sleep(self.tick_sec)
            self.tick()
