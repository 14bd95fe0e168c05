import sys
import unittest
from pathlib import Path

ROOT = Path(__file__).resolve().parents[2]
sys.path.insert(0, str(ROOT / "packages" / "telemetry"))

from sysgauge_telemetry import ProcCounterSource, Sampler, TelemetryFacade


@unittest.skipUnless(Path("/proc/stat").exists(), "procfs required")
class ProcSourceIntegrationTests(unittest.TestCase):
    def test_two_live_passes(self):
        facade = TelemetryFacade(Sampler(ProcCounterSource()))
        facade.sample()
        sample = facade.sample()
        self.assertIsNone(sample.error)
        self.assertGreater(sample.memory.total_kb, 0)
        self.assertGreaterEqual(sample.cpu.usage_percent, 0.0)
        self.assertLessEqual(sample.cpu.usage_percent, 100.0)
        self.assertEqual(len(sample.history.aggregate["cpu"]), 2)
        for rates in sample.per_interface.values():
            self.assertGreaterEqual(rates["recv"], 0.0)


if __name__ == "__main__":
    unittest.main()
