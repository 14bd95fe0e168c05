"""Diagnostics payload describing what this host can report."""

from __future__ import annotations

import platform
from dataclasses import asdict
from datetime import datetime, timezone
from typing import Any

from sysgauge_telemetry import GpuProbe, GpuProbeChain, ProcCounterSource, default_probes

from .config import AppConfig

_FAMILIES = {
    "cpu": "read_stat",
    "memory": "read_meminfo",
    "uptime": "read_uptime",
    "load": "read_loadavg",
    "disk": "read_diskstats",
    "net": "read_net_dev",
}


def probe_families(source: ProcCounterSource) -> dict[str, dict[str, Any]]:
    families: dict[str, dict[str, Any]] = {}
    for family, method in _FAMILIES.items():
        try:
            text = getattr(source, method)()
        except OSError as exc:
            families[family] = {"readable": False, "error": str(exc)}
        else:
            families[family] = {"readable": True, "bytes": len(text)}
    return families


def build_doctor_payload(cfg: AppConfig, probes: list[GpuProbe] | None = None) -> dict[str, Any]:
    source = ProcCounterSource(cfg.sources.proc_root)
    if not cfg.gpu.enabled:
        probes = []
    elif probes is None:
        probes = default_probes(cfg.gpu.nvidia_smi, cfg.gpu.timeout_s, cfg.sources.drm_root)
    chain = GpuProbeChain(probes)
    devices = chain.detect()
    return {
        "ts_utc": datetime.now(timezone.utc).isoformat(),
        "platform": platform.platform(),
        "python": platform.python_version(),
        "config": asdict(cfg),
        "families": probe_families(source),
        "gpu": {
            "enabled": cfg.gpu.enabled,
            "probe": chain.active_probe,
            "devices": [asdict(d) for d in devices],
        },
    }
