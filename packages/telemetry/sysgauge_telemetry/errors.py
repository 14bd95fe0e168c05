"""Telemetry engine exceptions."""

from __future__ import annotations


class TelemetryError(Exception):
    """Base class for engine errors."""


class ParseError(TelemetryError):
    """Counter text could not be turned into usable values."""

    def __init__(self, family: str, reason: str) -> None:
        super().__init__(f"{family}: {reason}")
        self.family = family
        self.reason = reason


class ProbeError(TelemetryError):
    """A GPU probe could not detect or sample a device."""
