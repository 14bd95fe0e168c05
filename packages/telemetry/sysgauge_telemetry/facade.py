"""Entry point for dashboards: one call, one pass, copies only."""

from __future__ import annotations

import logging
import threading
from dataclasses import replace

from .models import CpuStats, DiskStats, GpuDevice, HistorySnapshot, MemoryStats, NetworkStats, SystemInfo, TelemetrySample
from .sampler import PassResult, Sampler

logger = logging.getLogger("sysgauge.telemetry.facade")

_AGGREGATE_NAMES = {
    ("cpu", "usage"): "cpu",
    ("memory", "percent"): "memory",
    ("disk", "read"): "disk_read",
    ("disk", "write"): "disk_write",
    ("net", "sent"): "network_sent",
    ("net", "recv"): "network_recv",
}


def _copy_nested(groups: dict) -> dict:
    return {key: dict(values) for key, values in groups.items()}


def copy_history(history: HistorySnapshot) -> HistorySnapshot:
    return HistorySnapshot(
        aggregate=dict(history.aggregate),
        per_core=dict(history.per_core),
        per_disk=_copy_nested(history.per_disk),
        per_interface=_copy_nested(history.per_interface),
        per_gpu=_copy_nested(history.per_gpu),
    )


def copy_sample(sample: TelemetrySample, error: str | None = None) -> TelemetrySample:
    """A sample sharing no mutable container with ``sample``. Stats dataclasses are frozen."""
    return replace(
        sample,
        per_disk=_copy_nested(sample.per_disk),
        per_interface=_copy_nested(sample.per_interface),
        gpus=dict(sample.gpus),
        history=copy_history(sample.history),
        error=error if error is not None else sample.error,
    )


class TelemetryFacade:
    def __init__(self, sampler: Sampler) -> None:
        self._sampler = sampler
        self._lock = threading.Lock()
        self._latest: TelemetrySample | None = None

    def sample(self) -> TelemetrySample:
        """Run exactly one pass.

        If the pass fails unexpectedly the previous values are returned with
        ``error`` set, so a dashboard keeps showing stale data instead of blanks.
        """
        with self._lock:
            try:
                result = self._sampler.run_pass()
            except Exception as exc:
                logger.exception("sampling pass failed", extra={"event": "pass_failed"})
                sample = self._stale(f"{type(exc).__name__}: {exc}")
            else:
                sample = self._build(result)
            self._latest = sample
            return copy_sample(sample)

    def latest(self) -> TelemetrySample | None:
        with self._lock:
            return copy_sample(self._latest) if self._latest is not None else None

    def latest_history(self) -> HistorySnapshot:
        with self._lock:
            return self._history()

    def gpus(self) -> list[GpuDevice]:
        chain = self._sampler.gpu_chain
        return chain.detect() if chain is not None else []

    def _build(self, result: PassResult) -> TelemetrySample:
        return TelemetrySample(
            cpu=result.cpu,
            memory=result.memory,
            disk=result.disk,
            network=result.network,
            system=result.system,
            per_disk=result.per_disk,
            per_interface=result.per_interface,
            gpus=dict(result.gpus),
            history=self._history(),
            timestamp=result.timestamp,
        )

    def _stale(self, error: str) -> TelemetrySample:
        previous = self._latest
        if previous is None:
            return TelemetrySample(
                cpu=CpuStats(),
                memory=MemoryStats(),
                disk=DiskStats(),
                network=NetworkStats(),
                system=SystemInfo(),
                per_disk={},
                per_interface={},
                gpus={},
                history=self._history(),
                timestamp=0,
                error=error,
            )
        return replace(copy_sample(previous, error), history=self._history())

    def _history(self) -> HistorySnapshot:
        snapshot = HistorySnapshot()
        for (family, entity, metric), points in self._sampler.history.snapshot_all().items():
            if entity is None:
                snapshot.aggregate[_AGGREGATE_NAMES.get((family, metric), f"{family}_{metric}")] = points
            elif family == "core":
                snapshot.per_core[entity] = points
            elif family == "disk":
                snapshot.per_disk.setdefault(entity, {})[metric] = points
            elif family == "net":
                snapshot.per_interface.setdefault(entity, {})[metric] = points
            elif family == "gpu":
                snapshot.per_gpu.setdefault(entity, {})[metric] = points
        return snapshot
