from __future__ import annotations
import argparse
import asyncio
import logging
import signal
import time
from typing import Callable, List, Optional

import numpy as np

from .config import TickerConfig, load_config, parse_args
from .metrics import TickMetrics
from .ticker import create
from .utils.time import fmt_ms, get_zone, now_ms

log = logging.getLogger(__name__)


def busy_work(work_ms: float, jitter_ms: float, rng: np.random.Generator) -> Callable[[], None]:
    def work() -> None:
        target = work_ms
        if jitter_ms:
            target += float(rng.uniform(-jitter_ms, jitter_ms))
        end = time.perf_counter() + max(0.0, target) / 1000.0
        while time.perf_counter() < end:
            pass

    return work


def setup_logging(verbose: bool) -> None:
    logging.basicConfig(
        level=logging.DEBUG if verbose else logging.INFO,
        format="[%(asctime)s] [%(name)s] %(levelname)s: %(message)s",
    )


async def run_ticker(cfg: TickerConfig) -> dict:
    tz = get_zone(cfg.display_tz)
    metrics = TickMetrics(cfg.log_dir if cfg.write_metrics else None, window=cfg.stats_window)
    work = busy_work(cfg.work_ms, cfg.jitter_ms, np.random.default_rng(cfg.seed))

    def on_overrun(elapsed_ms: float) -> None:
        log.debug("overrun: %.1fms", elapsed_ms)

    ticker = create(cfg.frequency_hz, work, on_overrun, metrics=metrics, name="synthetic")
    loop = asyncio.get_running_loop()
    stop_event = asyncio.Event()

    def _stop(*_args) -> None:
        stop_event.set()

    for sig in (signal.SIGINT, signal.SIGTERM):
        loop.add_signal_handler(sig, _stop)

    started = now_ms()
    log.info("ticking at %.2fHz for %.2fs from %s", ticker.frequency, cfg.run_seconds, fmt_ms(started, tz))
    ticker.run_for(cfg.run_seconds, _stop)
    try:
        await stop_event.wait()
    finally:
        ticker.stop()
        for sig in (signal.SIGINT, signal.SIGTERM):
            loop.remove_signal_handler(sig)

    summary = metrics.summary()
    log.info("stopped at %s after %d ticks", fmt_ms(now_ms(), tz), summary["ticks"])
    metrics.write_summary(ticker.name)
    return summary


def info_cmd(cfg: TickerConfig) -> None:
    ticker = create(cfg.frequency_hz)
    print(f"frequency_hz={ticker.frequency:g} tick_interval_ms={ticker.tick_interval:g} warn_interval_ms={ticker.warn_interval:g}")


def run_cmd(args: argparse.Namespace) -> None:
    cfg = load_config(args)
    setup_logging(cfg.verbose)
    summary = asyncio.run(run_ticker(cfg))
    print(" ".join(f"{k}={v}" for k, v in summary.items()))


def main(argv: Optional[List[str]] = None) -> None:
    args = parse_args(argv)
    if args.cmd == "run":
        run_cmd(args)
    elif args.cmd == "info":
        info_cmd(load_config(args))


if __name__ == "__main__":
    main()
