import sys
import unittest
from pathlib import Path

ROOT = Path(__file__).resolve().parents[2]
sys.path.insert(0, str(ROOT / "packages" / "telemetry"))

from sysgauge_telemetry.units import format_kb, format_rate, format_uptime


class UnitsTests(unittest.TestCase):
    def test_format_kb(self):
        self.assertEqual(format_kb(0), "0 KB")
        self.assertEqual(format_kb(512), "512.0 KB")
        self.assertEqual(format_kb(2048), "2.0 MB")
        self.assertEqual(format_kb(3 * 1024 * 1024), "3.0 GB")

    def test_format_rate(self):
        self.assertEqual(format_rate(0.5), "512 B/s")
        self.assertEqual(format_rate(256), "256.0 KB/s")
        self.assertEqual(format_rate(1536), "1.5 MB/s")

    def test_format_uptime(self):
        self.assertEqual(format_uptime(93784.55), "1d 2h 3m")
        self.assertEqual(format_uptime(7380), "2h 3m")


if __name__ == "__main__":
    unittest.main()
