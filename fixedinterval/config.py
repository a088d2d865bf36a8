from __future__ import annotations
import argparse
import os
from dataclasses import dataclass
from typing import List, Optional


@dataclass
class TickerConfig:
    frequency_hz: float = 15.0
    run_seconds: float = 5.0
    work_ms: float = 0.0
    jitter_ms: float = 0.0
    seed: Optional[int] = None
    log_dir: str = "logs"
    display_tz: str = "UTC"
    write_metrics: bool = True
    stats_window: int = 256
    verbose: bool = False


def env_default(name: str, default: str) -> str:
    return os.environ.get(name, default)


def env_bool(name: str, default: bool) -> bool:
    val = os.environ.get(name)
    if val is None:
        return default
    return val.strip().lower() in {"1", "true", "yes", "y"}


def load_dotenv(path: str = ".env") -> None:
    if not os.path.exists(path):
        return
    with open(path, "r", encoding="utf-8") as f:
        for line in f:
            line = line.strip()
            if not line or line.startswith("#") or "=" not in line:
                continue
            key, val = line.split("=", 1)
            key = key.strip()
            val = val.strip().strip("\"").strip("'")
            if key and key not in os.environ:
                os.environ[key] = val


def parse_args(argv: Optional[List[str]] = None) -> argparse.Namespace:
    p = argparse.ArgumentParser(prog="fixedinterval")
    sub = p.add_subparsers(dest="cmd", required=True)

    run = sub.add_parser("run")
    run.add_argument("--hz", type=float, default=None)
    run.add_argument("--seconds", type=float, default=None)
    run.add_argument("--work-ms", type=float, default=None)
    run.add_argument("--jitter-ms", type=float, default=None)
    run.add_argument("--seed", type=int, default=None)
    run.add_argument("--log-dir", default=None)
    run.add_argument("--no-metrics", action="store_true")
    run.add_argument("--verbose", "-v", action="store_true")

    info = sub.add_parser("info")
    info.add_argument("--hz", type=float, default=None)

    return p.parse_args(argv)


def load_config(args: argparse.Namespace) -> TickerConfig:
    load_dotenv()
    cfg = TickerConfig(
        frequency_hz=float(env_default("TICKER_FREQUENCY_HZ", "15")),
        run_seconds=float(env_default("TICKER_RUN_SECONDS", "5")),
        work_ms=float(env_default("TICKER_WORK_MS", "0")),
        jitter_ms=float(env_default("TICKER_JITTER_MS", "0")),
        log_dir=env_default("TICKER_LOG_DIR", "logs"),
        display_tz=env_default("TICKER_LOG_TZ", "UTC"),
        write_metrics=env_bool("TICKER_WRITE_METRICS", True),
        stats_window=int(env_default("TICKER_STATS_WINDOW", "256")),
    )

    if args.hz is not None:
        cfg.frequency_hz = args.hz
    if args.cmd == "run":
        if args.seconds is not None:
            cfg.run_seconds = args.seconds
        if args.work_ms is not None:
            cfg.work_ms = args.work_ms
        if args.jitter_ms is not None:
            cfg.jitter_ms = args.jitter_ms
        if args.log_dir:
            cfg.log_dir = args.log_dir
        if args.no_metrics:
            cfg.write_metrics = False
        cfg.seed = args.seed
        cfg.verbose = args.verbose
    return cfg
