"""One sampling pass across every metric family."""

from __future__ import annotations

import logging
from dataclasses import dataclass, field
from typing import Callable, Mapping, Sequence

from .clock import Clock, SystemClock
from .errors import ParseError
from .gpu import GpuProbeChain
from .history import DEFAULT_CAPACITY, RingHistory
from .models import CounterSnapshot, CpuStats, DiskStats, GpuStats, MemoryStats, NetworkStats, SystemInfo
from .parsers import parse_diskstats, parse_loadavg, parse_meminfo, parse_net_dev, parse_stat, parse_uptime
from .rates import KILOBYTE, compute_rate, cpu_usage_percent
from .source import CounterSource
from .store import EntitySnapshotStore
from .tracker import EntityRateTracker

logger = logging.getLogger("sysgauge.telemetry.sampler")

_TICK_NAMES = ("user", "nice", "system", "idle", "iowait", "irq", "softirq", "steal", "guest", "guest_nice")

CPU_USAGE = ("cpu", None, "usage")
MEMORY_PERCENT = ("memory", None, "percent")
DISK_READ = ("disk", None, "read")
DISK_WRITE = ("disk", None, "write")
NET_SENT = ("net", None, "sent")
NET_RECV = ("net", None, "recv")


@dataclass(frozen=True)
class PassResult:
    cpu: CpuStats
    memory: MemoryStats
    disk: DiskStats
    network: NetworkStats
    system: SystemInfo
    per_disk: dict[str, dict[str, float]] = field(default_factory=dict)
    per_interface: dict[str, dict[str, float]] = field(default_factory=dict)
    gpus: dict[int, GpuStats] = field(default_factory=dict)
    timestamp: int = 0


def _tick_fields(ticks: Sequence[int]) -> dict[str, int]:
    return {(_TICK_NAMES[i] if i < len(_TICK_NAMES) else f"t{i}"): v for i, v in enumerate(ticks)}


class Sampler:
    """Owns every counter store and history stream of one monitored host.

    ``run_pass`` must not be called concurrently; callers serialize passes.
    A family that cannot be read or parsed keeps its last reported value.
    """

    def __init__(
        self,
        source: CounterSource,
        clock: Clock | None = None,
        gpu_chain: GpuProbeChain | None = None,
    ) -> None:
        self.source = source
        self.clock = clock or SystemClock()
        self.gpu_chain = gpu_chain
        self.history = RingHistory(DEFAULT_CAPACITY)
        self.disks = EntityRateTracker("disk", {"read": "read_bytes", "write": "write_bytes"}, history=self.history)
        self.interfaces = EntityRateTracker("net", {"sent": "sent_bytes", "recv": "recv_bytes"}, history=self.history)
        self.cores = EntitySnapshotStore("core")
        self.passes = 0

        self._prev_cpu: tuple[int, ...] | None = None
        self._aggregate_prev: dict[str, CounterSnapshot] = {}
        self._failing: set[str] = set()

        self._cpu = CpuStats()
        self._memory = MemoryStats()
        self._system = SystemInfo()
        self._disk = DiskStats()
        self._network = NetworkStats()
        self._per_disk: dict[str, dict[str, float]] = {}
        self._per_interface: dict[str, dict[str, float]] = {}

    def run_pass(self) -> PassResult:
        now = self.clock.monotonic_ms()
        wall = self.clock.wall_ms()

        raw = {
            "cpu": self._read("cpu", self.source.read_stat),
            "memory": self._read("memory", self.source.read_meminfo),
            "uptime": self._read("uptime", self.source.read_uptime),
            "load": self._read("load", self.source.read_loadavg),
            "disk": self._read("disk", self.source.read_diskstats),
            "net": self._read("net", self.source.read_net_dev),
        }

        self._process("cpu", raw["cpu"], lambda text: self._update_cpu(text, now, wall))
        self._process("memory", raw["memory"], self._update_memory)
        self._process("uptime", raw["uptime"], self._update_uptime)
        self._process("load", raw["load"], self._update_load)
        self._process("disk", raw["disk"], lambda text: self._update_disk(text, now, wall))
        self._process("net", raw["net"], lambda text: self._update_network(text, now, wall))
        gpus = self._update_gpus(wall)

        self.history.append(CPU_USAGE, self._cpu.usage_percent, wall)
        self.history.append(MEMORY_PERCENT, self._memory.percent, wall)
        self.history.append(DISK_READ, self._disk.read_kb_s, wall)
        self.history.append(DISK_WRITE, self._disk.write_kb_s, wall)
        self.history.append(NET_SENT, self._network.sent_kb_s, wall)
        self.history.append(NET_RECV, self._network.recv_kb_s, wall)
        self.passes += 1

        return PassResult(
            cpu=self._cpu,
            memory=self._memory,
            disk=self._disk,
            network=self._network,
            system=self._system,
            per_disk={k: dict(v) for k, v in self._per_disk.items()},
            per_interface={k: dict(v) for k, v in self._per_interface.items()},
            gpus=gpus,
            timestamp=wall,
        )

    def _read(self, family: str, reader: Callable[[], str]) -> str | None:
        try:
            return reader()
        except OSError as exc:
            self._mark_failed(family, exc)
            return None

    def _process(self, family: str, text: str | None, update: Callable[[str], None]) -> None:
        if text is None:
            return
        try:
            update(text)
        except ParseError as exc:
            self._mark_failed(family, exc)
            return
        if family in self._failing:
            self._failing.discard(family)
            logger.info(f"{family} counters recovered", extra={"event": "family_recovered", "family": family})

    def _mark_failed(self, family: str, exc: Exception) -> None:
        if family in self._failing:
            logger.debug(f"{family} counters still unavailable: {exc}")
            return
        self._failing.add(family)
        logger.warning(
            f"{family} counters unavailable, keeping last values: {exc}",
            extra={"event": "family_unavailable", "family": family},
        )

    def _update_cpu(self, text: str, now: int, wall: int) -> None:
        aggregate, cores = parse_stat(text)
        usage = cpu_usage_percent(self._prev_cpu, aggregate) if self._prev_cpu is not None else 0.0
        self._prev_cpu = aggregate
        per_core = self._update_cores(cores, now, wall)
        self._cpu = CpuStats(usage_percent=usage, cores=len(cores) or 1, per_core=tuple(per_core))

    def _update_cores(self, cores: list[tuple[int, ...]], now: int, wall: int) -> list[float]:
        if len(cores) != len(self.cores):
            # Core count changed (or first pass): restart every core from a baseline.
            if len(self.cores):
                logger.info(
                    f"core count changed {len(self.cores)} -> {len(cores)}",
                    extra={"event": "cores_changed", "family": "core"},
                )
            self.cores.clear()
            usages = [0.0] * len(cores)
            for index, ticks in enumerate(cores):
                self.cores.update(str(index), CounterSnapshot(str(index), _tick_fields(ticks), now))
        else:
            usages = []
            for index, ticks in enumerate(cores):
                previous = self.cores.update(str(index), CounterSnapshot(str(index), _tick_fields(ticks), now))
                usages.append(cpu_usage_percent(tuple(previous.fields.values()), ticks) if previous else 0.0)

        for stream in self.history.streams():
            if stream[0] == "core" and stream[1] >= len(cores):
                self.history.discard(stream)
        for index, usage in enumerate(usages):
            self.history.append(("core", index, "usage"), usage, wall)
        return usages

    def _update_memory(self, text: str) -> None:
        info = parse_meminfo(text)
        total = info["MemTotal"]
        free = info.get("MemFree", 0)
        cached = info.get("Cached", 0) + info.get("Buffers", 0) + info.get("SReclaimable", 0)
        swap_total = info.get("SwapTotal", 0)
        self._memory = MemoryStats(
            total_kb=total,
            used_kb=max(0, total - free - cached),
            free_kb=free,
            cached_kb=cached,
            swap_total_kb=swap_total,
            swap_used_kb=max(0, swap_total - info.get("SwapFree", 0)),
        )

    def _update_uptime(self, text: str) -> None:
        self._system = SystemInfo(uptime_s=parse_uptime(text), load_avg=self._system.load_avg)

    def _update_load(self, text: str) -> None:
        self._system = SystemInfo(uptime_s=self._system.uptime_s, load_avg=parse_loadavg(text))

    def _update_disk(self, text: str, now: int, wall: int) -> None:
        counters = parse_diskstats(text)
        self._per_disk = self.disks.observe(counters, now, wall)
        read, write = self._aggregate_rates("disk", counters, ("read_bytes", "write_bytes"), now)
        self._disk = DiskStats(read_kb_s=read, write_kb_s=write)

    def _update_network(self, text: str, now: int, wall: int) -> None:
        counters = parse_net_dev(text)
        self._per_interface = self.interfaces.observe(counters, now, wall)
        sent, recv = self._aggregate_rates("net", counters, ("sent_bytes", "recv_bytes"), now)
        self._network = NetworkStats(sent_kb_s=sent, recv_kb_s=recv)

    def _aggregate_rates(
        self,
        family: str,
        counters: Mapping[str, Mapping[str, int]],
        field_names: Sequence[str],
        now: int,
    ) -> list[float]:
        """Rates of the summed family totals against the previous pass's totals."""
        totals = {name: sum(row.get(name, 0) for row in counters.values()) for name in field_names}
        previous = self._aggregate_prev.get(family)
        self._aggregate_prev[family] = CounterSnapshot(family, totals, now)
        if previous is None:
            return [0.0] * len(field_names)
        return [
            compute_rate(previous.fields.get(name, 0), totals[name], previous.captured_at, now, KILOBYTE)
            for name in field_names
        ]

    def _update_gpus(self, wall: int) -> dict[int, GpuStats]:
        if self.gpu_chain is None:
            return {}
        stats = self.gpu_chain.sample()
        for index, gpu in stats.items():
            self.history.append(("gpu", index, "usage"), gpu.usage_percent, wall)
            self.history.append(("gpu", index, "memory"), gpu.memory_usage_percent, wall)
        return stats
