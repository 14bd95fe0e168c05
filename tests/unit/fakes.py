"""Synthetic counter text for engine tests."""

from __future__ import annotations

MEMINFO = """MemTotal:       16000000 kB
MemFree:         4000000 kB
MemAvailable:    9000000 kB
Buffers:          500000 kB
Cached:          2500000 kB
SReclaimable:    1000000 kB
SwapTotal:       2000000 kB
SwapFree:        1500000 kB
"""

UPTIME = "93784.55 350000.10\n"
LOADAVG = "0.52 0.58 0.59 2/1234 56789\n"


def stat_text(aggregate: str, cores: list[str] | None = None) -> str:
    lines = [aggregate]
    for index, ticks in enumerate(cores or []):
        lines.append(f"cpu{index} {ticks}")
    lines.append("intr 12345 0 0")
    lines.append("ctxt 987654")
    return "\n".join(lines) + "\n"


def diskstats_text(disks: dict[str, tuple[int, int]]) -> str:
    lines = []
    for minor, (name, (read_sectors, write_sectors)) in enumerate(disks.items()):
        lines.append(f"   8      {minor} {name} 10 0 {read_sectors} 0 20 0 {write_sectors} 0 0 0 0")
    return "\n".join(lines) + "\n"


def net_dev_text(interfaces: dict[str, tuple[int, int]]) -> str:
    lines = [
        "Inter-|   Receive                                                |  Transmit",
        " face |bytes    packets errs drop fifo frame compressed multicast|bytes    packets errs drop fifo colls carrier compressed",
    ]
    for name, (recv, sent) in interfaces.items():
        lines.append(f"{name:>6}: {recv} 0 0 0 0 0 0 0 {sent} 0 0 0 0 0 0 0")
    return "\n".join(lines) + "\n"


class FakeSource:
    """Counter source whose texts are set per pass; ``None`` or an exception means unavailable."""

    def __init__(self, **texts) -> None:
        self.texts = {
            "stat": stat_text("cpu 0 0 0 0 0 0 0 0"),
            "meminfo": MEMINFO,
            "uptime": UPTIME,
            "loadavg": LOADAVG,
            "diskstats": "",
            "net_dev": net_dev_text({}),
        }
        self.texts.update(texts)

    def _get(self, name: str) -> str:
        value = self.texts.get(name)
        if value is None:
            raise FileNotFoundError(name)
        if isinstance(value, Exception):
            raise value
        return value

    def read_stat(self) -> str:
        return self._get("stat")

    def read_meminfo(self) -> str:
        return self._get("meminfo")

    def read_uptime(self) -> str:
        return self._get("uptime")

    def read_loadavg(self) -> str:
        return self._get("loadavg")

    def read_diskstats(self) -> str:
        return self._get("diskstats")

    def read_net_dev(self) -> str:
        return self._get("net_dev")
