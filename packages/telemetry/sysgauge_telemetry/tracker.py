"""Per-entity counter tracking shared by disk, network and process families."""

from __future__ import annotations

import logging
from enum import Enum
from typing import Mapping

from .history import RingHistory
from .models import CounterSnapshot
from .rates import KILOBYTE, compute_rate
from .store import EntitySnapshotStore

logger = logging.getLogger("sysgauge.telemetry.tracker")


class EntityState(str, Enum):
    UNSEEN = "unseen"
    SEEN_ONCE = "seen_once"
    TRACKED = "tracked"


class EntityRateTracker:
    """Turns per-entity cumulative counters into per-entity rates.

    ``metrics`` maps an output metric name to the counter field it is derived
    from, e.g. ``{"read": "read_bytes"}``. An entity's first pass only stores a
    baseline (and a 0 history point); rates start on its second pass. Entities
    missing from a pass are dropped together with their history streams.
    """

    def __init__(
        self,
        family: str,
        metrics: Mapping[str, str],
        unit: int | float = KILOBYTE,
        history: RingHistory | None = None,
    ) -> None:
        self.family = family
        self.metrics = dict(metrics)
        self.unit = unit
        self.history = history
        self.store = EntitySnapshotStore(family)
        self._tracked: set[str] = set()

    def state(self, key: str) -> EntityState:
        if key in self._tracked:
            return EntityState.TRACKED
        if key in self.store:
            return EntityState.SEEN_ONCE
        return EntityState.UNSEEN

    def observe(
        self,
        counters: Mapping[str, Mapping[str, int]],
        now_ms: int,
        wall_ms: int | None = None,
    ) -> dict[str, dict[str, float]]:
        """Process one pass worth of counters and return rates of tracked entities."""
        wall_ms = now_ms if wall_ms is None else wall_ms
        rates: dict[str, dict[str, float]] = {}

        for key, fields in counters.items():
            previous = self.store.update(key, CounterSnapshot(entity_key=key, fields=fields, captured_at=now_ms))
            if previous is None:
                self._append(key, dict.fromkeys(self.metrics, 0.0), wall_ms)
                continue

            sample = {
                metric: compute_rate(
                    previous.fields.get(field_name, 0),
                    fields.get(field_name, 0),
                    previous.captured_at,
                    now_ms,
                    self.unit,
                )
                for metric, field_name in self.metrics.items()
            }
            rates[key] = sample
            self._tracked.add(key)
            self._append(key, sample, wall_ms)

        for key in self.store.prune_except(counters):
            self._tracked.discard(key)
            if self.history is not None:
                self.history.discard_entity(self.family, key)
            logger.debug(
                "entity pruned",
                extra={"event": "entity_pruned", "family": self.family, "entity": key},
            )
        return rates

    def _append(self, key: str, values: Mapping[str, float], wall_ms: int) -> None:
        if self.history is None:
            return
        for metric, value in values.items():
            self.history.append((self.family, key, metric), value, wall_ms)
