from __future__ import annotations

import logging
from typing import Callable


LogoutHook = Callable[[], None]


class Session:
    """Authenticated session flag with an idempotent ``logout``.

    The hosted auth service is outside this package; this object is the local
    view the inactivity monitor reads and the callback it invokes.
    """

    def __init__(self, user_id: str | None = None, phone: str | None = None) -> None:
        self.user_id = user_id
        self.phone = phone
        self.active = user_id is not None
        self.logout_count = 0
        self._hooks: list[LogoutHook] = []
        self.log = logging.getLogger("Session")

    def is_active(self) -> bool:
        return self.active

    def login(self, user_id: str, phone: str | None = None) -> None:
        self.user_id = user_id
        self.phone = phone
        self.active = True
        self.log.info("session started", extra={"session_id": user_id, "event_type": "login"})

    def on_logout(self, hook: LogoutHook) -> None:
        self._hooks.append(hook)

    def logout(self) -> None:
        if not self.active:
            return
        self.active = False
        self.logout_count += 1
        self.log.info("session ended", extra={"session_id": self.user_id, "event_type": "logout"})
        for hook in list(self._hooks):
            try:
                hook()
            except Exception:
                self.log.exception("logout hook failed", extra={"session_id": self.user_id})
