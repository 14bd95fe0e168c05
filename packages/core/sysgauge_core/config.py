"""Persistent settings schema and load/save helpers."""

from __future__ import annotations

import json
import logging
import os
import platform
from dataclasses import asdict, dataclass, field
from pathlib import Path
from typing import Any


CONFIG_VERSION = 1

_LOG_LEVELS = ("DEBUG", "INFO", "WARNING", "ERROR")


@dataclass
class SamplingConfig:
    interval_ms: int = 2000


@dataclass
class SourcesConfig:
    proc_root: str = "/proc"
    sys_root: str = "/sys"
    drm_root: str = "/sys/class/drm"


@dataclass
class GpuConfig:
    enabled: bool = True
    nvidia_smi: str = "nvidia-smi"
    timeout_s: float = 2.0


@dataclass
class ProcessesConfig:
    io_rates: bool = True
    limit: int = 25


@dataclass
class DiagnosticsConfig:
    keep_log_files: int = 7
    log_level: str = "INFO"


@dataclass
class AppConfig:
    config_version: int = CONFIG_VERSION
    sampling: SamplingConfig = field(default_factory=SamplingConfig)
    sources: SourcesConfig = field(default_factory=SourcesConfig)
    gpu: GpuConfig = field(default_factory=GpuConfig)
    processes: ProcessesConfig = field(default_factory=ProcessesConfig)
    diagnostics: DiagnosticsConfig = field(default_factory=DiagnosticsConfig)


def config_root() -> Path:
    override = os.environ.get("SYSGAUGE_HOME")
    if override:
        return Path(override)
    system = platform.system()
    if system == "Windows":
        base = Path(os.environ.get("APPDATA", Path.home() / "AppData" / "Roaming"))
        return base / "SysGauge"
    if system == "Darwin":
        return Path.home() / "Library" / "Application Support" / "SysGauge"
    return Path.home() / ".config" / "sysgauge"


def config_path() -> Path:
    return config_root() / "config.json"


def _merge(dataclass_type, raw: Any):
    defaults = dataclass_type()  # type: ignore[misc]
    if not isinstance(raw, dict):
        return defaults
    for k, v in raw.items():
        if hasattr(defaults, k):
            setattr(defaults, k, v)
    return defaults


def _normalize_sampling(cfg: AppConfig) -> None:
    # Sub-second sampling is not supported.
    cfg.sampling.interval_ms = max(1000, min(60000, int(cfg.sampling.interval_ms)))


def _normalize_gpu(cfg: AppConfig) -> None:
    cfg.gpu.enabled = bool(cfg.gpu.enabled)
    cfg.gpu.timeout_s = float(max(0.1, cfg.gpu.timeout_s))


def _normalize_processes(cfg: AppConfig) -> None:
    cfg.processes.io_rates = bool(cfg.processes.io_rates)
    cfg.processes.limit = max(1, int(cfg.processes.limit))


def _normalize_diagnostics(cfg: AppConfig) -> None:
    cfg.diagnostics.keep_log_files = max(2, int(cfg.diagnostics.keep_log_files))
    level = str(cfg.diagnostics.log_level).upper()
    cfg.diagnostics.log_level = level if level in _LOG_LEVELS else "INFO"


def log_level(cfg: AppConfig) -> int:
    return getattr(logging, cfg.diagnostics.log_level)


def load_config(path: Path | None = None) -> AppConfig:
    path = path or config_path()
    if not path.exists():
        return AppConfig()

    try:
        data = json.loads(path.read_text(encoding="utf-8"))
    except Exception:
        return AppConfig()
    if not isinstance(data, dict):
        return AppConfig()

    cfg = AppConfig(
        config_version=int(data.get("config_version", CONFIG_VERSION)),
        sampling=_merge(SamplingConfig, data.get("sampling", {})),
        sources=_merge(SourcesConfig, data.get("sources", {})),
        gpu=_merge(GpuConfig, data.get("gpu", {})),
        processes=_merge(ProcessesConfig, data.get("processes", {})),
        diagnostics=_merge(DiagnosticsConfig, data.get("diagnostics", {})),
    )

    _normalize_sampling(cfg)
    _normalize_gpu(cfg)
    _normalize_processes(cfg)
    _normalize_diagnostics(cfg)
    return cfg


def save_config(cfg: AppConfig, path: Path | None = None) -> Path:
    cfg.config_version = CONFIG_VERSION
    path = path or config_path()
    path.parent.mkdir(parents=True, exist_ok=True)
    path.write_text(json.dumps(asdict(cfg), indent=2, sort_keys=True), encoding="utf-8")
    return path
