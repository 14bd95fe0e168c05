"""Wires one telemetry engine per host from settings."""

from __future__ import annotations

from dataclasses import dataclass

from sysgauge_telemetry import (
    Clock,
    GpuProbe,
    GpuProbeChain,
    ProcCounterSource,
    Sampler,
    SystemClock,
    TelemetryFacade,
    default_probes,
)
from sysgauge_telemetry.hardware import HardwareInventory
from sysgauge_telemetry.processes import ProcessMonitor
from sysgauge_telemetry.source import CounterSource

from .config import AppConfig


@dataclass
class Engine:
    facade: TelemetryFacade
    sampler: Sampler
    processes: ProcessMonitor
    hardware: HardwareInventory


def build_engine(
    cfg: AppConfig,
    source: CounterSource | None = None,
    clock: Clock | None = None,
    probes: list[GpuProbe] | None = None,
) -> Engine:
    clock = clock or SystemClock()
    source = source or ProcCounterSource(cfg.sources.proc_root)

    chain = None
    if cfg.gpu.enabled:
        if probes is None:
            probes = default_probes(
                nvidia_smi=cfg.gpu.nvidia_smi,
                timeout_s=cfg.gpu.timeout_s,
                drm_root=cfg.sources.drm_root,
            )
        chain = GpuProbeChain(probes)

    sampler = Sampler(source, clock=clock, gpu_chain=chain)
    return Engine(
        facade=TelemetryFacade(sampler),
        sampler=sampler,
        processes=ProcessMonitor(clock=clock, io_rates=cfg.processes.io_rates),
        hardware=HardwareInventory(cfg.sources.proc_root, cfg.sources.sys_root, gpu_chain=chain),
    )
