from __future__ import annotations

import time
from dataclasses import dataclass
from typing import Callable


def wall_clock_ms() -> float:
    return time.time() * 1000.0


@dataclass(slots=True)
class IdleTracker:
    timeout_ms: float
    clock: Callable[[], float] = wall_clock_ms
    last_activity_ms: float | None = None

    def __post_init__(self) -> None:
        if self.last_activity_ms is None:
            self.last_activity_ms = self.clock()

    def touch(self, now_ms: float | None = None) -> float:
        self.last_activity_ms = self.clock() if now_ms is None else now_ms
        return self.last_activity_ms

    def idle_ms(self, now_ms: float | None = None) -> float:
        now = self.clock() if now_ms is None else now_ms
        return now - self.last_activity_ms

    def remaining_ms(self, now_ms: float | None = None) -> float:
        return max(0.0, self.timeout_ms - self.idle_ms(now_ms))

    def is_timed_out(self, now_ms: float | None = None) -> bool:
        return self.idle_ms(now_ms) >= self.timeout_ms
