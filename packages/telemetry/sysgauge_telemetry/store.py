"""Last-seen counter snapshots per entity."""

from __future__ import annotations

from typing import Iterable, Iterator

from .models import CounterSnapshot


class EntitySnapshotStore:
    """Mapping of entity key to its most recent counter snapshot.

    One store exists per entity class, so keys only need to be unique within
    a class (disk names, interface names, core indexes, pids).
    """

    def __init__(self, family: str) -> None:
        self.family = family
        self._snapshots: dict[str, CounterSnapshot] = {}

    def __len__(self) -> int:
        return len(self._snapshots)

    def __contains__(self, key: object) -> bool:
        return key in self._snapshots

    def __iter__(self) -> Iterator[str]:
        return iter(list(self._snapshots))

    def keys(self) -> set[str]:
        return set(self._snapshots)

    def get(self, key: str) -> CounterSnapshot | None:
        return self._snapshots.get(key)

    def update(self, key: str, snapshot: CounterSnapshot) -> CounterSnapshot | None:
        """Store ``snapshot`` and return the one it replaced.

        ``None`` means first sight: the caller has a baseline but no rate yet.
        """
        previous = self._snapshots.get(key)
        self._snapshots[key] = snapshot
        return previous

    def prune_except(self, present_keys: Iterable[str]) -> list[str]:
        present = set(present_keys)
        removed = [key for key in self._snapshots if key not in present]
        for key in removed:
            del self._snapshots[key]
        return removed

    def clear(self) -> None:
        self._snapshots.clear()
