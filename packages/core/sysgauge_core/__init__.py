"""Core services: settings, logging, engine wiring, scheduling and diagnostics."""

from .config import AppConfig, load_config, save_config
from .diagnostics import build_doctor_payload
from .engine import Engine, build_engine
from .scheduler import SamplingScheduler, SchedulerStatus

__all__ = [
    "AppConfig",
    "Engine",
    "SamplingScheduler",
    "SchedulerStatus",
    "build_doctor_payload",
    "build_engine",
    "load_config",
    "save_config",
]
