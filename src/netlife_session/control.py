from __future__ import annotations

import asyncio
import json
import logging
from typing import Protocol

from netlife_session.activity_bus import ActivityBus
from netlife_session.countdown import WarningCountdown, format_time
from netlife_session.debug_tools import AutoLogoutDebugTools
from netlife_session.logging_utils import redact_payload
from netlife_session.monitor import InactivityMonitor
from netlife_session.session import Session


class ControlAPI(Protocol):
    async def run(self) -> None:
        ...


class CLIControl:
    """Stdin driver: each line is an interaction or a dialog action."""

    def __init__(
        self,
        session: Session,
        bus: ActivityBus,
        monitor: InactivityMonitor,
        countdown: WarningCountdown,
        debug: AutoLogoutDebugTools,
    ) -> None:
        self.session = session
        self.bus = bus
        self.monitor = monitor
        self.countdown = countdown
        self.debug = debug
        self.log = logging.getLogger("CLIControl")

    def handle(self, line: str) -> bool:
        """Apply one command; returns False once the driver should exit."""
        cmd = line.strip().lower()
        if not cmd:
            return True
        if cmd == "quit":
            return False
        if cmd == "activity" or cmd.startswith("activity "):
            event_type = cmd.replace("activity", "", 1).strip() or "keypress"
            delivered = self.bus.dispatch(event_type)
            if delivered == 0:
                self.log.warning("event not monitored: %s", event_type)
        elif cmd == "stay":
            self.countdown.stay_logged_in()
        elif cmd == "logout":
            self.countdown.logout_now()
        elif cmd == "status":
            remaining_ms = self.monitor.get_remaining_time()
            print(
                json.dumps(
                    {
                        "state": self.monitor.state.value,
                        "warning_shown": self.monitor.warning_shown,
                        "remaining": format_time(int(remaining_ms // 1000)),
                        "dialog_visible": self.countdown.visible,
                        "dialog_remaining": self.countdown.display,
                    }
                )
            )
        elif cmd == "debug":
            info = self.debug.get_debug_info()
            info["session"] = {"user_id": self.session.user_id, "phone": self.session.phone, "active": self.session.is_active()}
            print(json.dumps(redact_payload(info), indent=2, sort_keys=True))
        elif cmd == "warn":
            self.debug.trigger_warning()
        else:
            self.log.warning("unknown command")
        return self.session.is_active()

    async def run(self) -> None:
        self.log.info("control ready: activity [event]|stay|logout|status|debug|warn|quit")
        loop = asyncio.get_running_loop()
        while self.session.is_active():
            line = await loop.run_in_executor(None, input, "> ")
            if not self.handle(line):
                return
