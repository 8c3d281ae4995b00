from __future__ import annotations

import asyncio
import logging

from netlife_session.activity_bus import ActivityBus
from netlife_session.config import AppConfig
from netlife_session.control import CLIControl
from netlife_session.countdown import WarningCountdown
from netlife_session.debug_tools import AutoLogoutDebugTools
from netlife_session.monitor import InactivityMonitor
from netlife_session.persistence import SqliteDiagnosticStore
from netlife_session.session import Session


class SessionRunner:
    """Wires one session, its inactivity monitor and the warning dialog together."""

    def __init__(self, cfg: AppConfig, user_id: str = "local-user", phone: str | None = None) -> None:
        self.cfg = cfg
        self.log = logging.getLogger("SessionRunner")
        self.session = Session()
        self.user_id = user_id
        self.phone = phone
        self.bus = ActivityBus()
        self.store = SqliteDiagnosticStore(
            cfg.diagnostics.db_path,
            flush_interval_sec=cfg.diagnostics.flush_interval_sec,
            buffer_maxsize=cfg.diagnostics.buffer_maxsize,
        )
        self.monitor = InactivityMonitor(
            cfg.auto_logout,
            terminate=self.session.logout,
            session_active=self.session.is_active,
            bus=self.bus,
            store=self.store,
        )
        self.countdown = WarningCountdown(self.monitor, self.session.logout, self.session.is_active)
        self.debug = AutoLogoutDebugTools(cfg.auto_logout, self.store, bus=self.bus, monitor=self.monitor)
        self.control = CLIControl(self.session, self.bus, self.monitor, self.countdown, self.debug)
        self.session.on_logout(self.monitor.end_session)
        self.session.on_logout(self.countdown.hide)
        self._logged_out = asyncio.Event()
        self.session.on_logout(self._logged_out.set)
        self._tasks: list[asyncio.Task] = []

    async def start(self) -> None:
        await self.store.init()
        self.session.login(self.user_id, self.phone)
        self.monitor.start(self.session.is_active)

        self._tasks = [
            asyncio.create_task(self.store.run_writer(), name="diagnostics_writer"),
            asyncio.create_task(self.control.run(), name="cli_control"),
        ]
        self.log.info("session runner started", extra={"session_id": self.user_id, "event_type": "runner_start"})
        stop_waiter = asyncio.create_task(self._logged_out.wait(), name="logout_waiter")
        await asyncio.wait([stop_waiter, self._tasks[1]], return_when=asyncio.FIRST_COMPLETED)
        stop_waiter.cancel()
        await self.shutdown()

    async def shutdown(self) -> None:
        self.session.logout()
        self.monitor.stop()
        self.countdown.close()
        for task in self._tasks:
            if not task.done():
                task.cancel()
        await self.store.stop(self.cfg.diagnostics.flush_timeout_sec)
        self.log.info("session runner stopped; press Enter to exit", extra={"event_type": "runner_stop"})
