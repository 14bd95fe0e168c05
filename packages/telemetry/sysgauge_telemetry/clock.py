"""Clock capability injected into the sampler."""

from __future__ import annotations

import time
from typing import Protocol


class Clock(Protocol):
    def monotonic_ms(self) -> int: ...

    def wall_ms(self) -> int: ...


class SystemClock:
    """Monotonic time for rate deltas, epoch time for history timestamps."""

    def monotonic_ms(self) -> int:
        return time.monotonic_ns() // 1_000_000

    def wall_ms(self) -> int:
        return time.time_ns() // 1_000_000


class ManualClock:
    """Clock advanced explicitly, for deterministic passes."""

    def __init__(self, start_ms: int = 0, wall_start_ms: int = 1_700_000_000_000) -> None:
        self._mono = start_ms
        self._wall = wall_start_ms

    def advance(self, ms: int) -> None:
        self._mono += ms
        self._wall += ms

    def monotonic_ms(self) -> int:
        return self._mono

    def wall_ms(self) -> int:
        return self._wall
