"""Raw counter text acquisition."""

from __future__ import annotations

from pathlib import Path
from typing import Protocol


class CounterSource(Protocol):
    """Supplies raw counter text on demand. Every read may raise ``OSError``."""

    def read_stat(self) -> str: ...

    def read_meminfo(self) -> str: ...

    def read_uptime(self) -> str: ...

    def read_loadavg(self) -> str: ...

    def read_diskstats(self) -> str: ...

    def read_net_dev(self) -> str: ...


class ProcCounterSource:
    """Reads counters from a procfs mount."""

    def __init__(self, root: Path | str = "/proc") -> None:
        self.root = Path(root)

    def _read(self, *parts: str) -> str:
        return self.root.joinpath(*parts).read_text(encoding="utf-8", errors="replace")

    def read_stat(self) -> str:
        return self._read("stat")

    def read_meminfo(self) -> str:
        return self._read("meminfo")

    def read_uptime(self) -> str:
        return self._read("uptime")

    def read_loadavg(self) -> str:
        return self._read("loadavg")

    def read_diskstats(self) -> str:
        return self._read("diskstats")

    def read_net_dev(self) -> str:
        return self._read("net", "dev")
