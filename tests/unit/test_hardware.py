import sys
import tempfile
import unittest
from pathlib import Path

ROOT = Path(__file__).resolve().parents[2]
sys.path.insert(0, str(ROOT / "packages" / "telemetry"))

from sysgauge_telemetry.gpu import GpuProbe, GpuProbeChain
from sysgauge_telemetry.hardware import HardwareInventory, parse_cpuinfo
from sysgauge_telemetry.models import DiskDevice, GpuDevice, InterfaceInfo

CPUINFO = """processor\t: 0
vendor_id\t: GenuineIntel
model name\t: Intel(R) Core(TM) i7-8700 CPU @ 3.20GHz
cpu MHz\t\t: 3192.613

processor\t: 1
vendor_id\t: GenuineIntel
model name\t: Intel(R) Core(TM) i7-8700 CPU @ 3.20GHz
cpu MHz\t\t: 800.000
"""

ARM_CPUINFO = """processor\t: 0
BogoMIPS\t: 108.00

processor\t: 1
BogoMIPS\t: 108.00
"""


def _write(path: Path, text: str) -> None:
    path.parent.mkdir(parents=True, exist_ok=True)
    path.write_text(text, encoding="utf-8")


def _build_tree(root: Path) -> tuple[Path, Path]:
    proc = root / "proc"
    sys_root = root / "sys"
    _write(proc / "cpuinfo", CPUINFO)
    _write(sys_root / "block" / "sda" / "size", "1953525168\n")
    _write(sys_root / "block" / "nvme0n1" / "size", "2000409264\n")
    _write(sys_root / "block" / "loop0" / "size", "0\n")
    _write(sys_root / "block" / "sda1" / "size", "2048\n")
    _write(sys_root / "class" / "net" / "eth0" / "speed", "1000\n")
    _write(sys_root / "class" / "net" / "wlan0" / "speed", "-1\n")
    (sys_root / "class" / "net" / "docker0").mkdir(parents=True)
    _write(sys_root / "class" / "net" / "lo" / "speed", "10\n")
    return proc, sys_root


class _Probe(GpuProbe):
    name = "fake"

    def detect(self):
        return [GpuDevice(index=0, name="Radeon", vendor="amd")]


class ParseCpuinfoTests(unittest.TestCase):
    def test_first_core_model_and_clock(self):
        model, mhz, count = parse_cpuinfo(CPUINFO)
        self.assertEqual(model, "Intel(R) Core(TM) i7-8700 CPU @ 3.20GHz")
        self.assertAlmostEqual(mhz, 3192.613)
        self.assertEqual(count, 2)

    def test_missing_fields(self):
        self.assertEqual(parse_cpuinfo(ARM_CPUINFO), ("", None, 2))


class HardwareInventoryTests(unittest.TestCase):
    def test_collect_from_tree(self):
        with tempfile.TemporaryDirectory() as tmp:
            proc, sys_root = _build_tree(Path(tmp))
            inventory = HardwareInventory(proc, sys_root, gpu_chain=GpuProbeChain([_Probe()]), cpu_freq=lambda: 1.0)
            info = inventory.collect()

        self.assertEqual(info.cpu_model, "Intel(R) Core(TM) i7-8700 CPU @ 3.20GHz")
        self.assertAlmostEqual(info.cpu_freq_mhz, 3192.613)
        self.assertEqual(info.cpu_count, 2)
        self.assertEqual(
            info.disks,
            (DiskDevice("nvme0n1", 2000409264 * 512), DiskDevice("sda", 1953525168 * 512)),
        )
        self.assertEqual(
            info.interfaces,
            (InterfaceInfo("docker0", None), InterfaceInfo("eth0", 1000), InterfaceInfo("wlan0", None)),
        )
        self.assertEqual([g.name for g in info.gpus], ["Radeon"])

    def test_clock_falls_back_to_cpufreq(self):
        with tempfile.TemporaryDirectory() as tmp:
            proc, sys_root = _build_tree(Path(tmp))
            (proc / "cpuinfo").write_text(ARM_CPUINFO, encoding="utf-8")
            info = HardwareInventory(proc, sys_root, cpu_freq=lambda: 1800.0).collect()
        self.assertEqual(info.cpu_model, "")
        self.assertEqual(info.cpu_freq_mhz, 1800.0)
        self.assertEqual(info.cpu_count, 2)

    def test_missing_tree_yields_empty_inventory(self):
        with tempfile.TemporaryDirectory() as tmp:
            info = HardwareInventory(Path(tmp) / "proc", Path(tmp) / "sys", cpu_freq=lambda: None).collect()
        self.assertEqual(info.cpu_model, "")
        self.assertIsNone(info.cpu_freq_mhz)
        self.assertEqual(info.disks, ())
        self.assertEqual(info.interfaces, ())
        self.assertEqual(info.gpus, ())


if __name__ == "__main__":
    unittest.main()
