"""Human-readable formatting of engine units."""

from __future__ import annotations


def format_kb(kb: float, decimals: int = 1) -> str:
    if kb == 0:
        return "0 KB"
    if kb < 1024:
        return f"{kb:.{decimals}f} KB"
    if kb < 1024 * 1024:
        return f"{kb / 1024:.{decimals}f} MB"
    return f"{kb / 1024 / 1024:.{decimals}f} GB"


def format_rate(kb_per_s: float) -> str:
    if kb_per_s < 1:
        return f"{kb_per_s * 1024:.0f} B/s"
    if kb_per_s < 1024:
        return f"{kb_per_s:.1f} KB/s"
    return f"{kb_per_s / 1024:.1f} MB/s"


def format_uptime(seconds: float) -> str:
    secs = int(seconds)
    days, rem = divmod(secs, 86400)
    hours, rem = divmod(rem, 3600)
    mins = rem // 60
    if days > 0:
        return f"{days}d {hours}h {mins}m"
    return f"{hours}h {mins}m"
