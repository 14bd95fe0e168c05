"""Process enumeration, per-process I/O rates and signal delivery."""

from __future__ import annotations

import logging
import signal
from typing import Any, Callable, Iterable

import psutil

from .clock import Clock, SystemClock
from .models import ProcessInfo, SignalResult
from .tracker import EntityRateTracker

logger = logging.getLogger("sysgauge.telemetry.processes")

_ATTRS = [
    "pid",
    "ppid",
    "username",
    "name",
    "cmdline",
    "status",
    "cpu_percent",
    "memory_percent",
    "memory_info",
    "num_threads",
    "nice",
    "create_time",
    "io_counters",
]

SORT_FIELDS = ("cpu", "memory", "memory_rss_kb", "disk_read_kb_s", "disk_write_kb_s", "pid", "name", "user", "threads")

ProcessIterator = Callable[..., Iterable[Any]]


def _to_info(info: dict[str, Any], rates: dict[str, float] | None) -> ProcessInfo:
    name = info.get("name") or ""
    cmdline = info.get("cmdline") or []
    mem = info.get("memory_info")
    rates = rates or {}
    return ProcessInfo(
        pid=int(info["pid"]),
        ppid=int(info.get("ppid") or 0),
        user=info.get("username") or "",
        name=name,
        cmdline=" ".join(cmdline) or name,
        state=str(info.get("status") or ""),
        cpu=float(info.get("cpu_percent") or 0.0),
        memory=float(info.get("memory_percent") or 0.0),
        memory_rss_kb=int(mem.rss // 1024) if mem is not None else 0,
        threads=int(info.get("num_threads") or 0),
        nice=int(info.get("nice") or 0),
        start_time=float(info.get("create_time") or 0.0),
        disk_read_kb_s=rates.get("read", 0.0),
        disk_write_kb_s=rates.get("write", 0.0),
    )


class ProcessMonitor:
    """Lists processes and derives disk I/O rates from cumulative byte counters.

    A process gets rates from its second listing on; exited processes are
    forgotten at the end of the listing that no longer reports them.
    """

    def __init__(
        self,
        clock: Clock | None = None,
        io_rates: bool = True,
        iterator: ProcessIterator | None = None,
    ) -> None:
        self.clock = clock or SystemClock()
        self.io_rates = io_rates
        self._iter = iterator or psutil.process_iter
        self.io = EntityRateTracker("process", {"read": "read_bytes", "write": "write_bytes"})

    def list_processes(self) -> list[ProcessInfo]:
        now = self.clock.monotonic_ms()
        attrs = _ATTRS if self.io_rates else [a for a in _ATTRS if a != "io_counters"]
        rows: list[dict[str, Any]] = []
        counters: dict[str, dict[str, int]] = {}

        for proc in self._iter(attrs=attrs, ad_value=None):
            info = proc.info
            if info.get("pid") is None:
                continue
            rows.append(info)
            io = info.get("io_counters")
            if io is not None:
                counters[str(info["pid"])] = {"read_bytes": io.read_bytes, "write_bytes": io.write_bytes}

        rates = self.io.observe(counters, now) if self.io_rates else {}
        processes = [_to_info(info, rates.get(str(info["pid"]))) for info in rows]
        return sort_processes(processes, "cpu")


def sort_processes(processes: list[ProcessInfo], field: str, descending: bool = True) -> list[ProcessInfo]:
    if field not in SORT_FIELDS:
        raise ValueError(f"unknown sort field {field!r}")
    return sorted(processes, key=lambda p: getattr(p, field), reverse=descending)


def _resolve_signal(name: str) -> signal.Signals:
    if name.isdigit():
        return signal.Signals(int(name))
    upper = name.upper()
    return signal.Signals[upper if upper.startswith("SIG") else f"SIG{upper}"]


def send_signal(pid: int, signal_name: str = "TERM") -> SignalResult:
    try:
        sig = _resolve_signal(signal_name)
    except (KeyError, ValueError):
        return SignalResult(success=False, error=f"unknown signal {signal_name!r}")

    try:
        psutil.Process(pid).send_signal(sig)
    except (psutil.Error, OSError) as exc:
        logger.warning(f"signal {sig.name} to {pid} failed: {exc}", extra={"event": "signal_failed"})
        return SignalResult(success=False, error=str(exc) or type(exc).__name__)

    logger.info(f"sent {sig.name} to {pid}", extra={"event": "signal_sent"})
    return SignalResult(success=True)
