"""Per-user cooldown gate for expensive AI operations.

One window per operation class ("generate", "analyze"). A slot is reserved
atomically before the external call, so a double-click cannot start two
generations. The cooldown only starts once the operation commits; a failed
attempt releases its reservation without consuming the window.

State is process-local. Running several API workers means each keeps its own
view of the cooldown.
"""

from __future__ import annotations

import math
import threading
import time
from dataclasses import dataclass
from typing import Callable

from applytrack.config import settings
from applytrack.exceptions import RateLimitError

GENERATE = "generate"
ANALYZE = "analyze"


@dataclass(frozen=True)
class CooldownDecision:
    allowed: bool
    seconds_remaining: int = 0


class CooldownLimiter:
    def __init__(self, windows: dict[str, float], clock: Callable[[], float] = time.monotonic):
        for op, window in windows.items():
            if window < 0:
                raise ValueError(f"Cooldown window for '{op}' must be >= 0")
        self._windows = dict(windows)
        self._clock = clock
        self._lock = threading.Lock()
        self._last_completed: dict[str, dict[int, float]] = {op: {} for op in windows}
        self._in_flight: dict[str, set[int]] = {op: set() for op in windows}

    def window(self, op: str) -> float:
        try:
            return self._windows[op]
        except KeyError:
            raise ValueError(f"Unknown operation class: {op}") from None

    def _decide(self, user_id: int, op: str, now: float) -> CooldownDecision:
        window = self.window(op)
        if user_id in self._in_flight[op]:
            return CooldownDecision(False, max(1, math.ceil(window)))
        last = self._last_completed[op].get(user_id)
        if last is None:
            return CooldownDecision(True)
        elapsed = now - last
        if elapsed >= window:
            return CooldownDecision(True)
        return CooldownDecision(False, max(1, math.ceil(window - elapsed)))

    def check(self, user_id: int, op: str) -> CooldownDecision:
        with self._lock:
            return self._decide(user_id, op, self._clock())

    def reserve(self, user_id: int, op: str) -> None:
        """Check and claim the slot in one step.

        Raises:
            RateLimitError: while the cooldown runs or another call is in flight.
        """
        with self._lock:
            decision = self._decide(user_id, op, self._clock())
            if not decision.allowed:
                raise RateLimitError(op, decision.seconds_remaining)
            self._in_flight[op].add(user_id)

    def commit(self, user_id: int, op: str) -> None:
        """Record a successful completion; the cooldown starts now."""
        with self._lock:
            self._in_flight[op].discard(user_id)
            self._last_completed[op][user_id] = self._clock()

    def release(self, user_id: int, op: str) -> None:
        """Drop a reservation after a failed attempt."""
        with self._lock:
            self._in_flight[op].discard(user_id)

    def reset(self) -> None:
        with self._lock:
            for op in self._windows:
                self._last_completed[op].clear()
                self._in_flight[op].clear()


resume_cooldown = CooldownLimiter(
    {
        GENERATE: settings.RESUME_GENERATE_COOLDOWN_SECONDS,
        ANALYZE: settings.RESUME_ANALYZE_COOLDOWN_SECONDS,
    }
)
