"""Counter sampling, rate derivation and rolling histories."""

from .clock import Clock, ManualClock, SystemClock
from .errors import ParseError, ProbeError, TelemetryError
from .facade import TelemetryFacade
from .gpu import GpuProbe, GpuProbeChain, NvidiaSmiProbe, NvmlProbe, SysfsDrmProbe, default_probes
from .history import RingHistory
from .models import (
    CounterSnapshot,
    CpuStats,
    DiskDevice,
    DiskStats,
    GpuDevice,
    GpuStats,
    HardwareInfo,
    HistoryPoint,
    HistorySnapshot,
    InterfaceInfo,
    MemoryStats,
    NetworkStats,
    ProcessInfo,
    SignalResult,
    SystemInfo,
    TelemetrySample,
)
from .rates import compute_rate, cpu_usage_percent
from .sampler import PassResult, Sampler
from .source import CounterSource, ProcCounterSource
from .store import EntitySnapshotStore
from .tracker import EntityRateTracker, EntityState

try:  # pragma: no cover - optional at import time for minimal test environments
    from .hardware import HardwareInventory
    from .processes import ProcessMonitor, send_signal, sort_processes
except Exception:  # pragma: no cover
    HardwareInventory = None  # type: ignore[assignment]
    ProcessMonitor = None  # type: ignore[assignment]
    send_signal = None  # type: ignore[assignment]
    sort_processes = None  # type: ignore[assignment]

__all__ = [
    "Clock",
    "CounterSnapshot",
    "CounterSource",
    "CpuStats",
    "DiskDevice",
    "DiskStats",
    "EntityRateTracker",
    "EntitySnapshotStore",
    "EntityState",
    "GpuDevice",
    "GpuProbe",
    "GpuProbeChain",
    "GpuStats",
    "HardwareInfo",
    "HistoryPoint",
    "HistorySnapshot",
    "InterfaceInfo",
    "ManualClock",
    "MemoryStats",
    "NetworkStats",
    "NvidiaSmiProbe",
    "NvmlProbe",
    "ParseError",
    "PassResult",
    "ProbeError",
    "ProcCounterSource",
    "ProcessInfo",
    "RingHistory",
    "Sampler",
    "SignalResult",
    "SysfsDrmProbe",
    "SystemClock",
    "SystemInfo",
    "TelemetryError",
    "TelemetryFacade",
    "compute_rate",
    "cpu_usage_percent",
    "default_probes",
]

if ProcessMonitor is not None:
    __all__ += ["HardwareInventory", "ProcessMonitor", "send_signal", "sort_processes"]
