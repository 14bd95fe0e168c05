"""Counter delta to rate derivation."""

from __future__ import annotations

import logging
from typing import Sequence

KILOBYTE = 1024
SECTOR_BYTES = 512

# Positions of idle and iowait in a /proc/stat cpu line (after the label).
_IDLE = 3
_IOWAIT = 4

logger = logging.getLogger("sysgauge.telemetry.rates")


def compute_rate(
    prev_value: int | float,
    curr_value: int | float,
    prev_time_ms: int | float,
    curr_time_ms: int | float,
    unit: int | float = 1,
) -> float:
    """Return ``(curr - prev) / unit`` per second between two counter readings.

    Zero or negative elapsed time yields 0. A counter that went backwards
    (device reattached, wraparound) yields 0 instead of a negative rate.
    """
    elapsed_ms = curr_time_ms - prev_time_ms
    if elapsed_ms <= 0:
        return 0.0
    delta = curr_value - prev_value
    if delta < 0:
        logger.debug("counter regression %s -> %s clamped", prev_value, curr_value)
        return 0.0
    return (delta / unit) / (elapsed_ms / 1000.0)


def _idle_ticks(ticks: Sequence[int]) -> int:
    idle = ticks[_IDLE] if len(ticks) > _IDLE else 0
    iowait = ticks[_IOWAIT] if len(ticks) > _IOWAIT else 0
    return idle + iowait


def cpu_usage_percent(prev_ticks: Sequence[int], curr_ticks: Sequence[int]) -> float:
    """Busy percentage between two positional tick vectors.

    Ticks already encode elapsed CPU time, so no wall clock is involved.
    """
    total_delta = sum(curr_ticks) - sum(prev_ticks)
    if total_delta <= 0:
        return 0.0
    idle_delta = _idle_ticks(curr_ticks) - _idle_ticks(prev_ticks)
    busy = (total_delta - idle_delta) / total_delta * 100.0
    return max(0.0, min(100.0, busy))
