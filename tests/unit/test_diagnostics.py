import sys
import tempfile
import unittest
from pathlib import Path

ROOT = Path(__file__).resolve().parents[2]
sys.path.insert(0, str(ROOT / "packages" / "telemetry"))
sys.path.insert(0, str(ROOT / "packages" / "core"))
sys.path.insert(0, str(Path(__file__).resolve().parent))

from fakes import MEMINFO
from sysgauge_core.config import AppConfig
from sysgauge_core.diagnostics import build_doctor_payload
from sysgauge_telemetry.gpu import SysfsDrmProbe


class DiagnosticsTests(unittest.TestCase):
    def test_doctor_reports_families_and_gpus(self):
        with tempfile.TemporaryDirectory() as tmp:
            proc = Path(tmp) / "proc"
            proc.mkdir()
            (proc / "meminfo").write_text(MEMINFO, encoding="utf-8")
            drm = Path(tmp) / "drm"
            (drm / "card0" / "device").mkdir(parents=True)
            (drm / "card0" / "device" / "gpu_busy_percent").write_text("5\n", encoding="utf-8")

            cfg = AppConfig()
            cfg.sources.proc_root = str(proc)
            payload = build_doctor_payload(cfg, probes=[SysfsDrmProbe(drm)])

            self.assertTrue(payload["families"]["memory"]["readable"])
            self.assertFalse(payload["families"]["cpu"]["readable"])
            self.assertEqual(payload["gpu"]["probe"], "sysfs-drm")
            self.assertEqual(payload["gpu"]["devices"][0]["vendor"], "unknown")

    def test_doctor_with_gpu_disabled(self):
        cfg = AppConfig()
        cfg.gpu.enabled = False
        payload = build_doctor_payload(cfg)
        self.assertIsNone(payload["gpu"]["probe"])
        self.assertEqual(payload["gpu"]["devices"], [])


if __name__ == "__main__":
    unittest.main()
