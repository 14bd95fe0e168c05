"""GPU detection and sampling with vendor fallbacks."""

from __future__ import annotations

import logging
import re
import subprocess
from pathlib import Path
from typing import Callable, Sequence

from .errors import ProbeError
from .models import GpuDevice, GpuStats, GpuVendor
from .parsers import Err, parse_csv_row

logger = logging.getLogger("sysgauge.telemetry.gpu")

UNAVAILABLE = -1.0
_MB = 1024 * 1024

_PCI_VENDORS: dict[str, GpuVendor] = {
    "0x1002": "amd",
    "0x8086": "intel",
    "0x10de": "nvidia",
}
_CARD_RE = re.compile(r"^card(\d+)$")

Runner = Callable[[Sequence[str], float], str]


def _float(value: str, default: float) -> float:
    try:
        return float(value)
    except ValueError:
        # nvidia-smi prints "[N/A]" / "[Not Supported]" for missing readings.
        return default


class GpuProbe:
    """One way of finding and reading GPUs. Subclasses override both methods."""

    name = "none"

    def detect(self) -> list[GpuDevice]:
        return []

    def begin_pass(self) -> None:
        """Called by the chain before sampling the devices of one pass."""

    def sample(self, device: GpuDevice) -> GpuStats:
        raise ProbeError(f"{self.name} cannot sample {device.name}")


class NvmlProbe(GpuProbe):
    name = "nvml"

    def __init__(self) -> None:
        self._nvml = None

    def _lib(self):
        if self._nvml is None:
            import pynvml  # type: ignore

            pynvml.nvmlInit()
            self._nvml = pynvml
        return self._nvml

    def detect(self) -> list[GpuDevice]:
        nvml = self._lib()
        devices: list[GpuDevice] = []
        for index in range(nvml.nvmlDeviceGetCount()):
            name = nvml.nvmlDeviceGetName(nvml.nvmlDeviceGetHandleByIndex(index))
            if isinstance(name, bytes):
                name = name.decode("utf-8", errors="replace")
            devices.append(GpuDevice(index=index, name=str(name), vendor="nvidia"))
        return devices

    def sample(self, device: GpuDevice) -> GpuStats:
        nvml = self._lib()
        h = nvml.nvmlDeviceGetHandleByIndex(device.index)
        util = nvml.nvmlDeviceGetUtilizationRates(h)
        mem = nvml.nvmlDeviceGetMemoryInfo(h)
        try:
            temp = float(nvml.nvmlDeviceGetTemperature(h, nvml.NVML_TEMPERATURE_GPU))
        except Exception:
            temp = UNAVAILABLE
        try:
            power = float(nvml.nvmlDeviceGetPowerUsage(h)) / 1000.0
        except Exception:
            power = UNAVAILABLE
        return GpuStats(
            usage_percent=float(util.gpu),
            memory_usage_percent=float(util.memory),
            memory_total_mb=mem.total / _MB,
            memory_used_mb=mem.used / _MB,
            temperature_c=temp,
            power_draw_w=power,
        )


def _run_command(argv: Sequence[str], timeout_s: float) -> str:
    completed = subprocess.run(
        list(argv),
        capture_output=True,
        text=True,
        timeout=timeout_s,
        check=True,
    )
    return completed.stdout


class NvidiaSmiProbe(GpuProbe):
    name = "nvidia-smi"

    _SAMPLE_FIELDS = "index,utilization.gpu,utilization.memory,memory.total,memory.used,temperature.gpu,power.draw"

    def __init__(self, executable: str = "nvidia-smi", timeout_s: float = 2.0, runner: Runner | None = None) -> None:
        self.executable = executable
        self.timeout_s = timeout_s
        self._runner = runner or _run_command
        self._rows: dict[str, list[str]] | None = None

    def _query(self, fields: str, arity: int) -> list[list[str]]:
        out = self._runner(
            [self.executable, f"--query-gpu={fields}", "--format=csv,noheader,nounits"],
            self.timeout_s,
        )
        rows: list[list[str]] = []
        for line in out.splitlines():
            if not line.strip():
                continue
            result = parse_csv_row(line, arity)
            if isinstance(result, Err):
                logger.debug("skipping nvidia-smi row: %s", result.reason)
                continue
            rows.append(result.value)
        return rows

    def detect(self) -> list[GpuDevice]:
        devices: list[GpuDevice] = []
        for index, name in self._query("index,name", 2):
            try:
                devices.append(GpuDevice(index=int(index), name=name, vendor="nvidia"))
            except ValueError:
                logger.debug("skipping nvidia-smi row with index %r", index)
        return devices

    def begin_pass(self) -> None:
        self._rows = None

    def _sample_rows(self) -> dict[str, list[str]]:
        # One query per pass serves every device; a failed query is not retried until the next pass.
        if self._rows is None:
            self._rows = {}
            self._rows = {row[0]: row for row in self._query(self._SAMPLE_FIELDS, 7)}
        return self._rows

    def sample(self, device: GpuDevice) -> GpuStats:
        row = self._sample_rows().get(str(device.index))
        if row is None:
            raise ProbeError(f"nvidia-smi reported no row for gpu {device.index}")
        return GpuStats(
            usage_percent=_float(row[1], 0.0),
            memory_usage_percent=_float(row[2], 0.0),
            memory_total_mb=_float(row[3], 0.0),
            memory_used_mb=_float(row[4], 0.0),
            temperature_c=_float(row[5], UNAVAILABLE),
            power_draw_w=_float(row[6], UNAVAILABLE),
        )


class SysfsDrmProbe(GpuProbe):
    """AMD and Intel cards exposing ``gpu_busy_percent`` under the DRM class."""

    name = "sysfs-drm"

    def __init__(self, root: Path | str = "/sys/class/drm") -> None:
        self.root = Path(root)

    def _device_dir(self, index: int) -> Path:
        return self.root / f"card{index}" / "device"

    @staticmethod
    def _read(path: Path) -> str:
        return path.read_text(encoding="utf-8").strip()

    def _read_int(self, path: Path, default: int) -> int:
        try:
            return int(self._read(path))
        except (OSError, ValueError):
            return default

    def _hwmon_value(self, device_dir: Path, filename: str) -> int | None:
        for candidate in sorted(device_dir.glob(f"hwmon/hwmon*/{filename}")):
            value = self._read_int(candidate, -1)
            if value >= 0:
                return value
        return None

    def detect(self) -> list[GpuDevice]:
        cards: list[tuple[int, Path]] = []
        for path in self.root.iterdir():
            match = _CARD_RE.match(path.name)
            if match:
                cards.append((int(match.group(1)), path))

        devices: list[GpuDevice] = []
        for index, card in sorted(cards):
            device_dir = card / "device"
            if not (device_dir / "gpu_busy_percent").is_file():
                continue
            try:
                vendor = _PCI_VENDORS.get(self._read(device_dir / "vendor").lower(), "unknown")
            except OSError:
                vendor = "unknown"
            try:
                name = self._read(device_dir / "product_name") or f"GPU {index}"
            except OSError:
                name = f"GPU {index}"
            devices.append(GpuDevice(index=index, name=name, vendor=vendor))
        return devices

    def sample(self, device: GpuDevice) -> GpuStats:
        device_dir = self._device_dir(device.index)
        try:
            busy = float(self._read(device_dir / "gpu_busy_percent"))
        except (OSError, ValueError) as exc:
            raise ProbeError(f"card{device.index}: {exc}") from exc

        total_mb = self._read_int(device_dir / "mem_info_vram_total", 0) / _MB
        used_mb = self._read_int(device_dir / "mem_info_vram_used", 0) / _MB
        temp_milli = self._hwmon_value(device_dir, "temp1_input")
        power_micro = self._hwmon_value(device_dir, "power1_average")
        return GpuStats(
            usage_percent=busy,
            memory_usage_percent=(used_mb / total_mb * 100.0) if total_mb > 0 else 0.0,
            memory_total_mb=total_mb,
            memory_used_mb=used_mb,
            temperature_c=(temp_milli / 1000.0) if temp_milli is not None else UNAVAILABLE,
            power_draw_w=(power_micro / 1_000_000.0) if power_micro is not None else UNAVAILABLE,
        )


def default_probes(
    nvidia_smi: str = "nvidia-smi",
    timeout_s: float = 2.0,
    drm_root: Path | str = "/sys/class/drm",
) -> list[GpuProbe]:
    return [NvmlProbe(), NvidiaSmiProbe(nvidia_smi, timeout_s), SysfsDrmProbe(drm_root)]


class GpuProbeChain:
    """Tries probes in order once; the first with devices serves every later pass."""

    def __init__(self, probes: Sequence[GpuProbe]) -> None:
        self._probes = list(probes)
        self._devices: list[GpuDevice] | None = None
        self._active: GpuProbe | None = None

    @property
    def active_probe(self) -> str | None:
        self.detect()
        return self._active.name if self._active else None

    def detect(self) -> list[GpuDevice]:
        if self._devices is not None:
            return list(self._devices)

        self._devices = []
        for probe in self._probes:
            try:
                devices = probe.detect()
            except Exception as exc:
                logger.info(
                    f"gpu probe {probe.name} unavailable: {exc}",
                    extra={"event": "gpu_probe_skipped", "family": "gpu"},
                )
                continue
            if devices:
                self._devices = list(devices)
                self._active = probe
                logger.info(
                    f"detected {len(devices)} gpu(s) via {probe.name}",
                    extra={"event": "gpu_detected", "family": "gpu"},
                )
                break
        return list(self._devices)

    def sample(self) -> dict[int, GpuStats]:
        """Stats per GPU index. A device missing from the result is temporarily unavailable."""
        devices = self.detect()
        if self._active is None:
            return {}
        self._active.begin_pass()
        stats: dict[int, GpuStats] = {}
        for device in devices:
            try:
                stats[device.index] = self._active.sample(device)
            except Exception as exc:
                logger.warning(
                    f"gpu {device.index} sample failed: {exc}",
                    extra={"event": "gpu_sample_failed", "family": "gpu", "entity": str(device.index)},
                )
        return stats
