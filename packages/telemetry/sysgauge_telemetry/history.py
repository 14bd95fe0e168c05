"""Fixed-capacity rolling histories keyed by metric stream."""

from __future__ import annotations

from collections import deque
from typing import Hashable

from .models import HistoryPoint, HistoryPoints

DEFAULT_CAPACITY = 60

# (family, entity, metric); aggregate streams use entity None.
StreamKey = tuple[str, Hashable, str]


class RingHistory:
    """Per-stream FIFO of history points.

    Streams are created on first append. Readers only ever get tuples, so a
    snapshot cannot be mutated or observe a later append.
    """

    def __init__(self, capacity: int = DEFAULT_CAPACITY) -> None:
        if capacity < 1:
            raise ValueError("history capacity must be positive")
        self.capacity = capacity
        self._streams: dict[StreamKey, deque[HistoryPoint]] = {}

    def __len__(self) -> int:
        return len(self._streams)

    def __contains__(self, stream: object) -> bool:
        return stream in self._streams

    def append(self, stream: StreamKey, value: float, timestamp_ms: int) -> None:
        points = self._streams.get(stream)
        if points is None:
            points = deque(maxlen=self.capacity)
            self._streams[stream] = points
        points.append(HistoryPoint(timestamp=int(timestamp_ms), value=float(value)))

    def snapshot(self, stream: StreamKey) -> HistoryPoints:
        return tuple(self._streams.get(stream, ()))

    def snapshot_all(self) -> dict[StreamKey, HistoryPoints]:
        return {key: tuple(points) for key, points in self._streams.items()}

    def streams(self) -> list[StreamKey]:
        return list(self._streams)

    def discard(self, stream: StreamKey) -> None:
        self._streams.pop(stream, None)

    def discard_entity(self, family: str, entity: Hashable) -> None:
        for key in [k for k in self._streams if k[0] == family and k[1] == entity]:
            del self._streams[key]
