"""Hardware inventory: CPU model, whole disks and network link speeds."""

from __future__ import annotations

import logging
import re
from pathlib import Path
from typing import Callable

import psutil

from .gpu import GpuProbeChain
from .models import DiskDevice, HardwareInfo, InterfaceInfo
from .parsers import is_whole_disk

logger = logging.getLogger("sysgauge.telemetry.hardware")

_MODEL_RE = re.compile(r"^model name\s*:\s*(.+)$", re.MULTILINE)
_MHZ_RE = re.compile(r"^cpu MHz\s*:\s*([\d.]+)", re.MULTILINE)
_PROCESSOR_RE = re.compile(r"^processor\s*:", re.MULTILINE)

# /sys/block/<dev>/size counts 512-byte sectors regardless of the device's block size.
_SECTOR = 512


def parse_cpuinfo(text: str) -> tuple[str, float | None, int]:
    """Return (model name, MHz of the first core, processor count)."""
    model = _MODEL_RE.search(text)
    mhz = _MHZ_RE.search(text)
    return (
        model.group(1).strip() if model else "",
        float(mhz.group(1)) if mhz else None,
        len(_PROCESSOR_RE.findall(text)),
    )


def _psutil_freq_mhz() -> float | None:
    try:
        freq = psutil.cpu_freq()
    except (NotImplementedError, OSError):
        return None
    return float(freq.current) if freq and freq.current else None


class HardwareInventory:
    def __init__(
        self,
        proc_root: Path | str = "/proc",
        sys_root: Path | str = "/sys",
        gpu_chain: GpuProbeChain | None = None,
        cpu_freq: Callable[[], float | None] = _psutil_freq_mhz,
    ) -> None:
        self.proc_root = Path(proc_root)
        self.sys_root = Path(sys_root)
        self.gpu_chain = gpu_chain
        self._cpu_freq = cpu_freq

    def collect(self) -> HardwareInfo:
        model, mhz, count = self._cpu()
        return HardwareInfo(
            cpu_model=model,
            cpu_freq_mhz=mhz,
            cpu_count=count,
            disks=tuple(self._disks()),
            interfaces=tuple(self._interfaces()),
            gpus=tuple(self.gpu_chain.detect()) if self.gpu_chain is not None else (),
        )

    def _cpu(self) -> tuple[str, float | None, int]:
        try:
            model, mhz, count = parse_cpuinfo((self.proc_root / "cpuinfo").read_text(encoding="utf-8", errors="replace"))
        except OSError as exc:
            logger.debug(f"cpuinfo unavailable: {exc}", extra={"event": "hardware_partial", "family": "cpu"})
            model, mhz, count = "", None, 0
        if mhz is None:
            # ARM kernels omit "cpu MHz"; cpufreq still knows the clock.
            mhz = self._cpu_freq()
        return model, mhz, count or (psutil.cpu_count() or 0)

    def _disks(self) -> list[DiskDevice]:
        block = self.sys_root / "block"
        try:
            names = sorted(p.name for p in block.iterdir())
        except OSError as exc:
            logger.debug(f"block devices unavailable: {exc}", extra={"event": "hardware_partial", "family": "disk"})
            return []
        disks: list[DiskDevice] = []
        for name in names:
            if not is_whole_disk(name):
                continue
            try:
                sectors = int((block / name / "size").read_text(encoding="utf-8").strip())
            except (OSError, ValueError):
                sectors = 0
            disks.append(DiskDevice(name=name, size_bytes=sectors * _SECTOR))
        return disks

    def _interfaces(self) -> list[InterfaceInfo]:
        net = self.sys_root / "class" / "net"
        try:
            names = sorted(p.name for p in net.iterdir() if p.name != "lo")
        except OSError as exc:
            logger.debug(f"interfaces unavailable: {exc}", extra={"event": "hardware_partial", "family": "net"})
            return []
        interfaces: list[InterfaceInfo] = []
        for name in names:
            # Reading speed fails with EINVAL while the link is down.
            try:
                speed: int | None = int((net / name / "speed").read_text(encoding="utf-8").strip())
            except (OSError, ValueError):
                speed = None
            interfaces.append(InterfaceInfo(name=name, speed_mbps=speed if speed and speed > 0 else None))
        return interfaces

