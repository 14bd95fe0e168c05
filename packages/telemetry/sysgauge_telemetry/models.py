"""Typed telemetry models."""

from __future__ import annotations

from dataclasses import asdict, dataclass, field
from types import MappingProxyType
from typing import Any, Literal, Mapping

GpuVendor = Literal["nvidia", "amd", "intel", "unknown"]

HistoryPoints = tuple["HistoryPoint", ...]


@dataclass(frozen=True)
class HistoryPoint:
    timestamp: int
    value: float


@dataclass(frozen=True)
class CounterSnapshot:
    """Cumulative counters of one entity as seen in one pass."""

    entity_key: str
    fields: Mapping[str, int]
    captured_at: int

    def __post_init__(self) -> None:
        object.__setattr__(self, "fields", MappingProxyType(dict(self.fields)))


@dataclass(frozen=True)
class CpuStats:
    usage_percent: float = 0.0
    cores: int = 1
    per_core: tuple[float, ...] = ()


@dataclass(frozen=True)
class MemoryStats:
    total_kb: int = 0
    used_kb: int = 0
    free_kb: int = 0
    cached_kb: int = 0
    swap_total_kb: int = 0
    swap_used_kb: int = 0

    @property
    def percent(self) -> float:
        if self.total_kb <= 0:
            return 0.0
        return self.used_kb / self.total_kb * 100.0


@dataclass(frozen=True)
class DiskStats:
    read_kb_s: float = 0.0
    write_kb_s: float = 0.0


@dataclass(frozen=True)
class NetworkStats:
    sent_kb_s: float = 0.0
    recv_kb_s: float = 0.0


@dataclass(frozen=True)
class SystemInfo:
    uptime_s: float = 0.0
    load_avg: tuple[float, float, float] = (0.0, 0.0, 0.0)


@dataclass(frozen=True)
class GpuDevice:
    index: int
    name: str
    vendor: GpuVendor


@dataclass(frozen=True)
class GpuStats:
    usage_percent: float
    memory_usage_percent: float
    memory_total_mb: float
    memory_used_mb: float
    temperature_c: float = -1.0
    power_draw_w: float = -1.0


@dataclass(frozen=True)
class HistorySnapshot:
    """Read-only copies of every history stream, grouped by family."""

    aggregate: dict[str, HistoryPoints] = field(default_factory=dict)
    per_core: dict[int, HistoryPoints] = field(default_factory=dict)
    per_disk: dict[str, dict[str, HistoryPoints]] = field(default_factory=dict)
    per_interface: dict[str, dict[str, HistoryPoints]] = field(default_factory=dict)
    per_gpu: dict[int, dict[str, HistoryPoints]] = field(default_factory=dict)


@dataclass(frozen=True)
class TelemetrySample:
    cpu: CpuStats
    memory: MemoryStats
    disk: DiskStats
    network: NetworkStats
    system: SystemInfo
    per_disk: dict[str, dict[str, float]]
    per_interface: dict[str, dict[str, float]]
    gpus: dict[int, GpuStats]
    history: HistorySnapshot
    timestamp: int
    error: str | None = None

    def as_dict(self) -> dict[str, Any]:
        data = asdict(self)
        data["memory"]["percent"] = self.memory.percent
        return data


@dataclass(frozen=True)
class DiskDevice:
    name: str
    size_bytes: int


@dataclass(frozen=True)
class InterfaceInfo:
    name: str
    speed_mbps: int | None = None


@dataclass(frozen=True)
class HardwareInfo:
    """Static inventory read once; empty fields mean the host did not expose them."""

    cpu_model: str = ""
    cpu_freq_mhz: float | None = None
    cpu_count: int = 0
    disks: tuple[DiskDevice, ...] = ()
    interfaces: tuple[InterfaceInfo, ...] = ()
    gpus: tuple[GpuDevice, ...] = ()


@dataclass(frozen=True)
class ProcessInfo:
    pid: int
    ppid: int
    user: str
    name: str
    cmdline: str
    state: str
    cpu: float
    memory: float
    memory_rss_kb: int
    threads: int
    nice: int
    start_time: float
    disk_read_kb_s: float = 0.0
    disk_write_kb_s: float = 0.0


@dataclass(frozen=True)
class SignalResult:
    success: bool
    error: str | None = None
