"""CLI entrypoints for sampling, watching, process control and diagnostics."""

from __future__ import annotations

import argparse
import json
import threading
import time
from dataclasses import asdict

from sysgauge_core import SamplingScheduler, build_doctor_payload, build_engine, load_config
from sysgauge_core.config import config_path, log_level
from sysgauge_core.logging_setup import configure_logging, install_crash_hooks
from sysgauge_telemetry import GpuProbeChain, TelemetrySample, default_probes
from sysgauge_telemetry.processes import SORT_FIELDS, send_signal, sort_processes
from sysgauge_telemetry.units import format_kb, format_rate, format_uptime


def _print_json(data: object) -> None:
    print(json.dumps(data, indent=2, sort_keys=True, default=str))


def _interval_ms(args: argparse.Namespace, default: int) -> int:
    value = getattr(args, "interval_ms", None)
    return max(1000, int(value)) if value else default


def _sample_payload(sample: TelemetrySample, with_history: bool) -> dict:
    payload = sample.as_dict()
    if not with_history:
        payload.pop("history", None)
    return payload


def format_line(sample: TelemetrySample) -> str:
    line = (
        f"cpu {sample.cpu.usage_percent:5.1f}%  "
        f"mem {sample.memory.percent:5.1f}% ({format_kb(sample.memory.used_kb)} / {format_kb(sample.memory.total_kb)})  "
        f"disk r {format_rate(sample.disk.read_kb_s)} w {format_rate(sample.disk.write_kb_s)}  "
        f"net tx {format_rate(sample.network.sent_kb_s)} rx {format_rate(sample.network.recv_kb_s)}  "
        f"load {' '.join(f'{v:.2f}' for v in sample.system.load_avg)}  "
        f"up {format_uptime(sample.system.uptime_s)}"
    )
    for index, gpu in sorted(sample.gpus.items()):
        line += f"  gpu{index} {gpu.usage_percent:5.1f}%"
    if sample.error:
        line += f"  [stale: {sample.error}]"
    return line


def cmd_sample(args: argparse.Namespace) -> int:
    cfg = load_config()
    engine = build_engine(cfg)
    engine.facade.sample()
    time.sleep(_interval_ms(args, cfg.sampling.interval_ms) / 1000.0)
    sample = engine.facade.sample()
    _print_json(_sample_payload(sample, args.history))
    return 0 if sample.error is None else 1


def cmd_watch(args: argparse.Namespace) -> int:
    cfg = load_config()
    engine = build_engine(cfg)
    done = threading.Event()
    seen = 0

    def _emit(sample: TelemetrySample) -> None:
        nonlocal seen
        seen += 1
        if args.json:
            print(json.dumps(_sample_payload(sample, False), sort_keys=True, default=str), flush=True)
        else:
            print(format_line(sample), flush=True)
        if args.count and seen >= args.count:
            done.set()

    scheduler = SamplingScheduler(engine.facade, interval_ms=_interval_ms(args, cfg.sampling.interval_ms), on_sample=_emit)
    scheduler.start()
    try:
        done.wait()
    except KeyboardInterrupt:
        pass
    finally:
        scheduler.stop()
    return 0


def cmd_processes(args: argparse.Namespace) -> int:
    cfg = load_config()
    monitor = build_engine(cfg).processes
    monitor.list_processes()
    time.sleep(_interval_ms(args, cfg.sampling.interval_ms) / 1000.0)
    rows = sort_processes(monitor.list_processes(), args.sort, descending=not args.ascending)
    _print_json([asdict(p) for p in rows[: args.limit or cfg.processes.limit]])
    return 0


def cmd_kill(args: argparse.Namespace) -> int:
    result = send_signal(args.pid, args.signal)
    _print_json(asdict(result))
    return 0 if result.success else 1


def cmd_gpus(_args: argparse.Namespace) -> int:
    cfg = load_config()
    chain = GpuProbeChain(default_probes(cfg.gpu.nvidia_smi, cfg.gpu.timeout_s, cfg.sources.drm_root))
    devices = chain.detect()
    _print_json({"probe": chain.active_probe, "devices": [asdict(d) for d in devices]})
    return 0


def cmd_hardware(_args: argparse.Namespace) -> int:
    _print_json(asdict(build_engine(load_config()).hardware.collect()))
    return 0


def cmd_doctor(_args: argparse.Namespace) -> int:
    _print_json(build_doctor_payload(load_config()))
    return 0


def cmd_config_show(_args: argparse.Namespace) -> int:
    _print_json(asdict(load_config()))
    return 0


def cmd_config_path(_args: argparse.Namespace) -> int:
    print(config_path())
    return 0


def build_parser() -> argparse.ArgumentParser:
    parser = argparse.ArgumentParser(prog="sysgauge", description="SysGauge host telemetry sampler")
    sub = parser.add_subparsers(dest="command", required=True)

    sample_cmd = sub.add_parser("sample", help="Take two passes and print the second as JSON")
    sample_cmd.add_argument("--interval-ms", type=int, default=None)
    sample_cmd.add_argument("--history", action="store_true", help="Include history streams")
    sample_cmd.set_defaults(func=cmd_sample)

    watch_cmd = sub.add_parser("watch", help="Sample on a fixed interval and print each pass")
    watch_cmd.add_argument("--interval-ms", type=int, default=None)
    watch_cmd.add_argument("--count", type=int, default=0, help="Stop after N passes (0 = until interrupted)")
    watch_cmd.add_argument("--json", action="store_true", help="Print one JSON object per pass")
    watch_cmd.set_defaults(func=cmd_watch)

    proc_cmd = sub.add_parser("processes", help="List processes with disk I/O rates")
    proc_cmd.add_argument("--interval-ms", type=int, default=None)
    proc_cmd.add_argument("--limit", type=int, default=None)
    proc_cmd.add_argument("--sort", choices=SORT_FIELDS, default="cpu")
    proc_cmd.add_argument("--ascending", action="store_true")
    proc_cmd.set_defaults(func=cmd_processes)

    kill_cmd = sub.add_parser("kill", help="Send a signal to a process")
    kill_cmd.add_argument("pid", type=int)
    kill_cmd.add_argument("--signal", default="TERM", help="Signal name or number (default: TERM)")
    kill_cmd.set_defaults(func=cmd_kill)

    gpus_cmd = sub.add_parser("gpus", help="List detected GPUs")
    gpus_cmd.set_defaults(func=cmd_gpus)

    hardware_cmd = sub.add_parser("hardware", help="Print CPU model, disks, link speeds and GPUs")
    hardware_cmd.set_defaults(func=cmd_hardware)

    doctor_cmd = sub.add_parser("doctor", help="Print readable counter families and GPU detection")
    doctor_cmd.set_defaults(func=cmd_doctor)

    config_cmd = sub.add_parser("config", help="Inspect settings")
    config_sub = config_cmd.add_subparsers(dest="config_cmd", required=True)
    show_cmd = config_sub.add_parser("show", help="Print effective settings")
    show_cmd.set_defaults(func=cmd_config_show)
    path_cmd = config_sub.add_parser("path", help="Print settings file location")
    path_cmd.set_defaults(func=cmd_config_path)

    return parser


def main(argv: list[str] | None = None) -> int:
    cfg = load_config()
    configure_logging(keep_files=cfg.diagnostics.keep_log_files, console=False, level=log_level(cfg))
    install_crash_hooks()
    parser = build_parser()
    args = parser.parse_args(argv)
    return int(args.func(args))


if __name__ == "__main__":
    raise SystemExit(main())
