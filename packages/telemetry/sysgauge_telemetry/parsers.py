"""Strict row parsers for procfs counter text.

Row parsers return ``Ok(value)`` or ``Err(reason)`` so one malformed line is
skipped without losing the rest of the table. Table parsers raise
``ParseError`` only when the content they must provide is missing entirely.
"""

from __future__ import annotations

import logging
import re
from dataclasses import dataclass
from typing import Generic, TypeVar, Union

from .errors import ParseError
from .rates import SECTOR_BYTES

T = TypeVar("T")

logger = logging.getLogger("sysgauge.telemetry.parsers")

# Whole block devices only: sda, vdb, xvda, hdc, nvme0n1, mmcblk0.
# Partitions (sda1, nvme0n1p2, mmcblk0p1) do not match.
_DISK_RE = re.compile(r"^(?:(?:sd|vd|xvd|hd)[a-z]+|nvme\d+n\d+|mmcblk\d+)$")
_CPU_LABEL_RE = re.compile(r"^cpu(\d*)$")

LOOPBACK = "lo"


@dataclass(frozen=True)
class Ok(Generic[T]):
    value: T


@dataclass(frozen=True)
class Err:
    reason: str


ParseResult = Union[Ok[T], Err]


def _ints(values: list[str]) -> list[int] | None:
    try:
        return [int(v) for v in values]
    except ValueError:
        return None


def parse_cpu_line(line: str) -> ParseResult[tuple[str, tuple[int, ...]]]:
    """Parse ``cpu``/``cpuN`` followed by positional tick categories."""
    parts = line.split()
    if not parts or not _CPU_LABEL_RE.match(parts[0]):
        return Err("not a cpu line")
    if len(parts) < 5:
        return Err(f"expected at least 4 tick fields, got {len(parts) - 1}")
    ticks = _ints(parts[1:])
    if ticks is None:
        return Err("non-numeric tick field")
    return Ok((parts[0], tuple(ticks)))


def parse_stat(text: str) -> tuple[tuple[int, ...], list[tuple[int, ...]]]:
    """Return the aggregate tick vector and per-core vectors ordered by index."""
    aggregate: tuple[int, ...] | None = None
    cores: dict[int, tuple[int, ...]] = {}
    for line in text.splitlines():
        if not line.startswith("cpu"):
            continue
        result = parse_cpu_line(line)
        if isinstance(result, Err):
            logger.debug("skipping stat row: %s", result.reason)
            continue
        label, ticks = result.value
        if label == "cpu":
            aggregate = ticks
        else:
            cores[int(label[3:])] = ticks
    if aggregate is None:
        raise ParseError("cpu", "no aggregate cpu line")
    return aggregate, [cores[i] for i in sorted(cores)]


def parse_meminfo(text: str) -> dict[str, int]:
    """Return meminfo values in KB keyed by field name."""
    values: dict[str, int] = {}
    for line in text.splitlines():
        key, sep, rest = line.partition(":")
        parts = rest.split()
        if not sep or not parts:
            continue
        try:
            values[key.strip()] = int(parts[0])
        except ValueError:
            logger.debug("skipping meminfo row %r", key)
    if "MemTotal" not in values:
        raise ParseError("memory", "MemTotal missing")
    return values


def parse_uptime(text: str) -> float:
    parts = text.split()
    try:
        return float(parts[0])
    except (IndexError, ValueError):
        raise ParseError("uptime", f"unexpected content {text[:40]!r}") from None


def parse_loadavg(text: str) -> tuple[float, float, float]:
    parts = text.split()
    try:
        one, five, fifteen = (float(v) for v in parts[:3])
    except ValueError:
        raise ParseError("load", f"unexpected content {text[:40]!r}") from None
    return one, five, fifteen


def is_whole_disk(name: str) -> bool:
    return bool(_DISK_RE.match(name))


def parse_diskstats_row(line: str) -> ParseResult[tuple[str, int, int]]:
    """Return (device, sectors read, sectors written)."""
    parts = line.split()
    if len(parts) < 14:
        return Err(f"expected at least 14 fields, got {len(parts)}")
    sectors = _ints([parts[5], parts[9]])
    if sectors is None:
        return Err("non-numeric sector field")
    return Ok((parts[2], sectors[0], sectors[1]))


def parse_diskstats(text: str) -> dict[str, dict[str, int]]:
    """Cumulative read/write bytes per whole disk."""
    disks: dict[str, dict[str, int]] = {}
    for line in text.splitlines():
        if not line.strip():
            continue
        result = parse_diskstats_row(line)
        if isinstance(result, Err):
            logger.debug("skipping diskstats row: %s", result.reason)
            continue
        name, read_sectors, write_sectors = result.value
        if not is_whole_disk(name):
            continue
        disks[name] = {
            "read_bytes": read_sectors * SECTOR_BYTES,
            "write_bytes": write_sectors * SECTOR_BYTES,
        }
    return disks


def parse_net_dev_row(line: str) -> ParseResult[tuple[str, int, int]]:
    """Return (interface, bytes received, bytes sent).

    The interface name is split on ``:`` rather than whitespace since large
    counters can be printed flush against it.
    """
    name, sep, rest = line.partition(":")
    if not sep:
        return Err("missing interface separator")
    parts = rest.split()
    if len(parts) < 16:
        return Err(f"expected 16 counter fields, got {len(parts)}")
    counters = _ints([parts[0], parts[8]])
    if counters is None:
        return Err("non-numeric byte field")
    return Ok((name.strip(), counters[0], counters[1]))


def parse_net_dev(text: str) -> dict[str, dict[str, int]]:
    """Cumulative received/sent bytes per interface, loopback excluded."""
    interfaces: dict[str, dict[str, int]] = {}
    # Two header lines precede the interface rows.
    for line in text.splitlines()[2:]:
        if not line.strip():
            continue
        result = parse_net_dev_row(line)
        if isinstance(result, Err):
            logger.debug("skipping net/dev row: %s", result.reason)
            continue
        name, recv, sent = result.value
        if name == LOOPBACK:
            continue
        interfaces[name] = {"recv_bytes": recv, "sent_bytes": sent}
    return interfaces


def parse_csv_row(line: str, arity: int) -> ParseResult[list[str]]:
    """Split a ``--format=csv,noheader`` row into exactly ``arity`` cells."""
    cells = [cell.strip() for cell in line.split(",")]
    if len(cells) < arity:
        return Err(f"expected {arity} columns, got {len(cells)}")
    return Ok(cells[:arity])
