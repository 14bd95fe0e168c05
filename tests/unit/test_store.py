import sys
import unittest
from pathlib import Path

ROOT = Path(__file__).resolve().parents[2]
sys.path.insert(0, str(ROOT / "packages" / "telemetry"))

from sysgauge_telemetry.history import RingHistory
from sysgauge_telemetry.models import CounterSnapshot
from sysgauge_telemetry.store import EntitySnapshotStore
from sysgauge_telemetry.tracker import EntityRateTracker, EntityState


def _snap(key, value, at):
    return CounterSnapshot(entity_key=key, fields={"bytes": value}, captured_at=at)


class EntitySnapshotStoreTests(unittest.TestCase):
    def test_update_returns_previous(self):
        store = EntitySnapshotStore("disk")
        self.assertIsNone(store.update("sda", _snap("sda", 1, 0)))
        previous = store.update("sda", _snap("sda", 2, 1000))
        self.assertEqual(previous.fields["bytes"], 1)
        self.assertEqual(store.get("sda").fields["bytes"], 2)

    def test_prune_except(self):
        store = EntitySnapshotStore("net")
        for key in ("eth0", "wlan0", "docker0"):
            store.update(key, _snap(key, 0, 0))
        removed = store.prune_except(["eth0"])
        self.assertEqual(sorted(removed), ["docker0", "wlan0"])
        self.assertEqual(store.keys(), {"eth0"})

    def test_snapshot_fields_are_read_only(self):
        snap = _snap("sda", 1, 0)
        with self.assertRaises(TypeError):
            snap.fields["bytes"] = 5  # type: ignore[index]


class EntityRateTrackerTests(unittest.TestCase):
    def setUp(self):
        self.history = RingHistory()
        self.tracker = EntityRateTracker("disk", {"read": "read_bytes"}, unit=1024, history=self.history)

    def test_first_sight_emits_baseline_only(self):
        rates = self.tracker.observe({"sda": {"read_bytes": 4096}}, now_ms=0, wall_ms=5000)
        self.assertEqual(rates, {})
        self.assertEqual(self.tracker.state("sda"), EntityState.SEEN_ONCE)
        points = self.history.snapshot(("disk", "sda", "read"))
        self.assertEqual([(p.timestamp, p.value) for p in points], [(5000, 0.0)])

    def test_second_pass_emits_rate(self):
        self.tracker.observe({"sda": {"read_bytes": 0}}, now_ms=0)
        rates = self.tracker.observe({"sda": {"read_bytes": 2048}}, now_ms=2000)
        self.assertAlmostEqual(rates["sda"]["read"], 1.0)
        self.assertEqual(self.tracker.state("sda"), EntityState.TRACKED)

    def test_lifecycle_through_prune(self):
        self.assertEqual(self.tracker.state("sdb"), EntityState.UNSEEN)
        self.tracker.observe({"sdb": {"read_bytes": 0}}, now_ms=0)
        self.tracker.observe({"sdb": {"read_bytes": 10}}, now_ms=1000)
        self.tracker.observe({}, now_ms=2000)
        self.assertEqual(self.tracker.state("sdb"), EntityState.UNSEEN)
        self.assertNotIn(("disk", "sdb", "read"), self.history)

        rates = self.tracker.observe({"sdb": {"read_bytes": 50}}, now_ms=3000)
        self.assertEqual(rates, {})
        self.assertEqual(self.tracker.state("sdb"), EntityState.SEEN_ONCE)

    def test_store_matches_reported_set(self):
        self.tracker.observe({"sda": {"read_bytes": 0}, "sdb": {"read_bytes": 0}}, now_ms=0)
        self.tracker.observe({"sdb": {"read_bytes": 0}, "sdc": {"read_bytes": 0}}, now_ms=1000)
        self.assertEqual(self.tracker.store.keys(), {"sdb", "sdc"})

    def test_without_history(self):
        tracker = EntityRateTracker("process", {"read": "read_bytes"})
        tracker.observe({"42": {"read_bytes": 0}}, now_ms=0)
        rates = tracker.observe({"42": {"read_bytes": 1024}}, now_ms=1000)
        self.assertAlmostEqual(rates["42"]["read"], 1.0)


if __name__ == "__main__":
    unittest.main()
