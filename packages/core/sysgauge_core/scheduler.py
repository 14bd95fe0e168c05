"""Fixed-interval and manual sampling triggers."""

from __future__ import annotations

import threading
import time
from dataclasses import dataclass
from datetime import datetime, timezone
from typing import Any, Callable

from sysgauge_telemetry import TelemetryFacade, TelemetrySample

from .logging_setup import get_logger

SampleCallback = Callable[[TelemetrySample], None]


@dataclass
class SchedulerStatus:
    running: bool = False
    passes: int = 0
    failed_passes: int = 0
    last_error: str | None = None
    last_pass_ms: float = 0.0


class SamplingScheduler:
    """Calls ``facade.sample()`` every ``interval_ms`` on a background thread.

    ``trigger_now`` runs an extra pass from the calling thread; the facade
    serializes it against the interval pass.
    """

    def __init__(
        self,
        facade: TelemetryFacade,
        interval_ms: int = 2000,
        on_sample: SampleCallback | None = None,
    ) -> None:
        self.facade = facade
        self.interval_ms = interval_ms
        self.on_sample = on_sample

        self._status = SchedulerStatus()
        self._lock = threading.RLock()
        self._stop = threading.Event()
        self._thread: threading.Thread | None = None
        self._events: list[dict[str, Any]] = []
        self._logger = get_logger().getChild("scheduler")

    @property
    def status(self) -> SchedulerStatus:
        return self._status

    def recent_events(self, limit: int = 200) -> list[dict[str, Any]]:
        return self._events[-limit:]

    def _log_event(self, event: str, **fields: Any) -> None:
        row = {"ts_utc": datetime.now(timezone.utc).isoformat(), "event": event}
        row.update(fields)
        with self._lock:
            self._events.append(row)
            if len(self._events) > 1000:
                self._events = self._events[-1000:]

    def start(self) -> None:
        with self._lock:
            if self._thread is not None and self._thread.is_alive():
                return
            self._stop.clear()
            self._thread = threading.Thread(target=self._run, name="sysgauge-sampler", daemon=True)
            self._status.running = True
            self._thread.start()
            self._log_event("scheduler_start", interval_ms=self.interval_ms)

    def stop(self, timeout: float = 5.0) -> None:
        with self._lock:
            thread = self._thread
            self._stop.set()
        if thread is not None:
            thread.join(timeout)
        with self._lock:
            self._thread = None
            self._status.running = False
            self._log_event("scheduler_stop")

    def trigger_now(self) -> TelemetrySample:
        return self._tick(manual=True)

    def _run(self) -> None:
        while not self._stop.is_set():
            self._tick(manual=False)
            self._stop.wait(self.interval_ms / 1000.0)

    def _tick(self, manual: bool) -> TelemetrySample:
        start = time.perf_counter()
        sample = self.facade.sample()
        elapsed_ms = (time.perf_counter() - start) * 1000.0

        with self._lock:
            self._status.passes += 1
            self._status.last_pass_ms = elapsed_ms
            if sample.error:
                self._status.failed_passes += 1
                self._status.last_error = sample.error
                self._log_event("pass_error", manual=manual, error=sample.error)
            else:
                self._log_event("pass_ok", manual=manual, duration_ms=elapsed_ms)

        if self.on_sample is not None:
            try:
                self.on_sample(sample)
            except Exception:
                self._logger.exception("sample callback failed", extra={"event": "callback_failed"})
        return sample
