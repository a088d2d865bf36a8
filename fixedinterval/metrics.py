from __future__ import annotations
import csv
import json
import os
import time
from dataclasses import dataclass
from typing import Optional

from .utils.rolling import SampleWindow


@dataclass
class TickStats:
    ticks: int = 0
    dropped: int = 0
    warnings: int = 0
    errors: int = 0


class TickMetrics:
    def __init__(self, log_dir: Optional[str] = None, window: int = 256):
        self.log_dir = log_dir
        self.json_path = None
        self.csv_path = None
        if log_dir:
            os.makedirs(log_dir, exist_ok=True)
            self.json_path = os.path.join(log_dir, "ticks.jsonl")
            self.csv_path = os.path.join(log_dir, "tick_summary.csv")
        self.stats = TickStats()
        self.work = SampleWindow(window)
        self.period_error = SampleWindow(window)
        self._last_start: Optional[float] = None

    def log_event(self, event: str, payload: dict) -> None:
        if not self.json_path:
            return
        record = {"ts": time.time(), "event": event, **payload}
        with open(self.json_path, "a", encoding="utf-8") as f:
            f.write(json.dumps(record) + "\n")

    def record_tick(self, start_ms: float, work_ms: float, interval_ms: float) -> None:
        self.stats.ticks += 1
        self.work.add(work_ms)
        if self._last_start is not None:
            # late starts and dropped intervals show up as positive error
            self.period_error.add(start_ms - self._last_start - interval_ms)
        self._last_start = start_ms

    def record_warn(self, work_ms: float) -> None:
        self.stats.warnings += 1
        self.log_event("warn", {"work_ms": work_ms})

    def record_drop(self, count: int) -> None:
        self.stats.dropped += count
        self.log_event("drop", {"count": count})

    def record_error(self, exc: BaseException) -> None:
        self.stats.errors += 1
        self.log_event("error", {"type": type(exc).__name__, "message": str(exc)})

    def reset_phase(self) -> None:
        # a restart is not a late tick
        self._last_start = None

    def summary(self) -> dict:
        return {
            "ticks": self.stats.ticks,
            "dropped": self.stats.dropped,
            "warnings": self.stats.warnings,
            "errors": self.stats.errors,
            "mean_work_ms": round(self.work.mean(), 3),
            "std_work_ms": round(self.work.std(), 3),
            "max_work_ms": round(self.work.max(), 3),
            "mean_period_error_ms": round(self.period_error.mean(), 3),
            "std_period_error_ms": round(self.period_error.std(), 3),
            "p95_period_error_ms": round(self.period_error.percentile(95), 3),
        }

    def write_summary(self, name: str) -> None:
        if not self.csv_path:
            return
        row = {"name": name, **self.summary()}
        write_header = not os.path.exists(self.csv_path)
        with open(self.csv_path, "a", newline="", encoding="utf-8") as f:
            w = csv.DictWriter(f, fieldnames=list(row))
            if write_header:
                w.writeheader()
            w.writerow(row)
        self.log_event("summary", row)
