import json
import logging
import os
import sys
import tempfile
import unittest
from pathlib import Path
from unittest import mock

ROOT = Path(__file__).resolve().parents[2]
sys.path.insert(0, str(ROOT / "packages" / "telemetry"))
sys.path.insert(0, str(ROOT / "packages" / "core"))

from sysgauge_core.config import AppConfig, config_path, load_config, log_level, save_config


class ConfigTests(unittest.TestCase):
    def test_load_default_when_missing(self):
        with tempfile.TemporaryDirectory() as tmp:
            cfg = load_config(Path(tmp) / "missing.json")
            self.assertIsInstance(cfg, AppConfig)
            self.assertEqual(cfg.sampling.interval_ms, 2000)
            self.assertTrue(cfg.gpu.enabled)

    def test_save_and_reload(self):
        with tempfile.TemporaryDirectory() as tmp:
            path = Path(tmp) / "config.json"
            cfg = load_config(path)
            cfg.sampling.interval_ms = 5000
            cfg.gpu.enabled = False
            save_config(cfg, path)
            reloaded = load_config(path)
            self.assertEqual(reloaded.sampling.interval_ms, 5000)
            self.assertFalse(reloaded.gpu.enabled)

    def test_normalizes_values(self):
        with tempfile.TemporaryDirectory() as tmp:
            path = Path(tmp) / "config.json"
            raw = {
                "sampling": {"interval_ms": 100, "unknown": 1},
                "processes": {"limit": -4},
                "diagnostics": {"log_level": "chatty"},
            }
            path.write_text(json.dumps(raw), encoding="utf-8")
            cfg = load_config(path)
            self.assertEqual(cfg.sampling.interval_ms, 1000)
            self.assertFalse(hasattr(cfg.sampling, "history_capacity"))
            self.assertFalse(hasattr(cfg.sampling, "unknown"))
            self.assertEqual(cfg.processes.limit, 1)
            self.assertEqual(cfg.diagnostics.log_level, "INFO")
            self.assertEqual(log_level(cfg), logging.INFO)

    def test_corrupt_file_falls_back_to_defaults(self):
        with tempfile.TemporaryDirectory() as tmp:
            path = Path(tmp) / "config.json"
            path.write_text("{not json", encoding="utf-8")
            self.assertEqual(load_config(path), AppConfig())

    def test_home_override(self):
        with tempfile.TemporaryDirectory() as tmp:
            with mock.patch.dict(os.environ, {"SYSGAUGE_HOME": tmp}):
                self.assertEqual(config_path(), Path(tmp) / "config.json")


if __name__ == "__main__":
    unittest.main()
